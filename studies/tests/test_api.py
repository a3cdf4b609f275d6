"""
Integration tests for the EPIC-Q coordination API.

These tests exercise authentication, role based access control, the
hospital cascade endpoints and the coordinator recruitment period
endpoints through DRF's APIClient within the APITestCase base class.

To run the tests:

```
pytest -q studies/tests
```
"""
from datetime import timedelta

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from ..models import (
    Hospital, Project, ProjectCoordinator, ProjectHospital, RecruitmentPeriod, User,
)


class StudyAPITests(APITestCase):
    def setUp(self) -> None:
        self.project = Project.objects.create(name='EPIC-Q')
        self.hospital = Hospital.objects.create(name='Hospital Italiano', city='Buenos Aires')
        self.other_hospital = Hospital.objects.create(name='Hospital Central', city='Mendoza')
        self.link = ProjectHospital.objects.create(project=self.project, hospital=self.hospital)
        self.other_link = ProjectHospital.objects.create(project=self.project, hospital=self.other_hospital)

        self.admin_user = User.objects.create_user(
            email='admin@epicq.test', password='adminpass', role='admin', name='Admin'
        )
        self.coordinator = User.objects.create_user(
            email='ana@epicq.test', password='coordpass', role='coordinator', name='Ana',
            hospital=self.hospital,
        )
        ProjectCoordinator.objects.create(user=self.coordinator, project=self.project, hospital=self.hospital)
        self.other_coordinator = User.objects.create_user(
            email='bruno@epicq.test', password='coordpass', role='coordinator', name='Bruno',
            hospital=self.other_hospital,
        )
        ProjectCoordinator.objects.create(
            user=self.other_coordinator, project=self.project, hospital=self.other_hospital
        )
        self.today = timezone.localdate()

    def authenticate(self, user: User) -> APIClient:
        """Return an authenticated APIClient for the given user."""
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    def periods_url(self):
        return reverse('recruitment_periods') + f'?projectId={self.project.id}'

    # -- authentication ---------------------------------------------------

    def test_login_returns_tokens(self):
        response = self.client.post(
            reverse('login_view'), {'email': 'ANA@epicq.test', 'password': 'coordpass'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['token'])
        self.assertTrue(response.data['jwt_access'])
        self.assertEqual(response.data['user']['role'], 'coordinator')

    def test_login_rejects_bad_password(self):
        response = self.client.post(
            reverse('login_view'), {'email': 'ana@epicq.test', 'password': 'nope'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['ok'])

    def test_anonymous_is_rejected(self):
        response = self.client.get(reverse('hospital_delete_analysis', args=[self.hospital.id]))
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))

    # -- hospital cascade -------------------------------------------------

    def test_coordinator_cannot_delete_hospitals(self):
        client = self.authenticate(self.coordinator)
        response = client.post(reverse('hospital_confirm_delete', args=[self.hospital.id]), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Hospital.objects.filter(pk=self.hospital.pk).exists())

    def test_analysis_of_hospital_in_active_project(self):
        client = self.authenticate(self.admin_user)
        response = client.get(reverse('hospital_delete_analysis', args=[self.hospital.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['canDelete'])
        self.assertEqual(response.data['actions'], [])

    def test_confirm_delete_blocked_by_active_project(self):
        client = self.authenticate(self.admin_user)
        response = client.post(
            reverse('hospital_confirm_delete', args=[self.hospital.id]), {'deleteCoordinators': True}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error']['code'], 'blocked')

    def test_confirm_delete_removes_hospital_and_coordinator(self):
        self.link.status = ProjectHospital.STATUS_INACTIVE
        self.link.save()
        client = self.authenticate(self.admin_user)

        analysis = client.get(reverse('hospital_delete_analysis', args=[self.hospital.id]))
        self.assertTrue(analysis.data['canDelete'])
        self.assertIn('delete', [a['type'] for a in analysis.data['actions']])

        response = client.post(
            reverse('hospital_confirm_delete', args=[self.hospital.id]), {'deleteCoordinators': True}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Hospital.objects.filter(pk=self.hospital.pk).exists())
        self.assertFalse(User.objects.filter(pk=self.coordinator.pk).exists())

    def test_missing_hospital_is_404(self):
        client = self.authenticate(self.admin_user)
        response = client.get(reverse('hospital_delete_analysis', args=[9999]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error']['code'], 'not_found')

    def test_bulk_delete_requires_ids(self):
        client = self.authenticate(self.admin_user)
        response = client.post(reverse('hospitals_bulk_delete'), {'hospitalIds': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    # -- project participation -------------------------------------------

    def project_hospital_url(self, project_id=None, hospital_id=None):
        return reverse('project_hospital_detail', args=[
            project_id or self.project.id, hospital_id or self.hospital.id,
        ])

    def test_deactivating_link_makes_hospital_deletable(self):
        client = self.authenticate(self.admin_user)
        blocked = client.get(reverse('hospital_delete_analysis', args=[self.hospital.id]))
        self.assertFalse(blocked.data['canDelete'])

        response = client.put(self.project_hospital_url(), {'status': 'inactive', 'requiredPeriods': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['projectHospital']['status'], 'inactive')
        self.link.refresh_from_db()
        self.assertEqual(self.link.required_periods, 1)

        analysis = client.get(reverse('hospital_delete_analysis', args=[self.hospital.id]))
        self.assertTrue(analysis.data['canDelete'])

        deleted = client.post(
            reverse('hospital_confirm_delete', args=[self.hospital.id]), {'deleteCoordinators': False}, format='json'
        )
        self.assertEqual(deleted.status_code, status.HTTP_200_OK)
        self.assertFalse(Hospital.objects.filter(pk=self.hospital.pk).exists())

    def test_removing_link_makes_hospital_deletable(self):
        RecruitmentPeriod.objects.create(
            project_hospital=self.link, period_number=1,
            start_date=self.today + timedelta(days=1), end_date=self.today + timedelta(days=8),
        )
        client = self.authenticate(self.admin_user)
        response = client.delete(self.project_hospital_url())
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(ProjectHospital.objects.filter(pk=self.link.pk).exists())
        self.assertEqual(RecruitmentPeriod.objects.count(), 0)

        analysis = client.get(reverse('hospital_delete_analysis', args=[self.hospital.id]))
        self.assertTrue(analysis.data['canDelete'])

    def test_link_status_must_be_known(self):
        client = self.authenticate(self.admin_user)
        response = client.put(self.project_hospital_url(), {'status': 'paused'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.link.refresh_from_db()
        self.assertEqual(self.link.status, ProjectHospital.STATUS_ACTIVE)

    def test_missing_link_is_404(self):
        other_project = Project.objects.create(name='Other')
        client = self.authenticate(self.admin_user)
        response = client.delete(self.project_hospital_url(project_id=other_project.id))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = client.put(self.project_hospital_url(hospital_id=9999), {'status': 'inactive'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_coordinator_cannot_change_links(self):
        client = self.authenticate(self.coordinator)
        response = client.put(self.project_hospital_url(), {'status': 'inactive'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    # -- user accounts ----------------------------------------------------

    def test_admin_cannot_delete_self(self):
        client = self.authenticate(self.admin_user)
        response = client.post(reverse('user_confirm_delete', args=[self.admin_user.id]), {}, format='json')
        self.assertEqual(response.data['error']['message'], 'you cannot delete your own account')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(User.objects.filter(pk=self.admin_user.pk).exists())

    def test_deactivate_and_reactivate_user(self):
        client = self.authenticate(self.admin_user)
        response = client.post(reverse('user_deactivate', args=[self.coordinator.id]), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.coordinator.refresh_from_db()
        self.assertFalse(self.coordinator.is_active)
        # assignments are untouched
        self.assertTrue(ProjectCoordinator.objects.get(user=self.coordinator).is_active)

        again = client.post(reverse('user_deactivate', args=[self.coordinator.id]), {}, format='json')
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)

        response = client.post(reverse('user_reactivate', args=[self.coordinator.id]), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['user']['isActive'])

    def test_delete_coordinator(self):
        client = self.authenticate(self.admin_user)
        analysis = client.get(reverse('user_delete_analysis', args=[self.coordinator.id]))
        self.assertEqual(analysis.status_code, status.HTTP_200_OK)
        self.assertTrue(analysis.data['warnings'])

        response = client.post(reverse('user_confirm_delete', args=[self.coordinator.id]), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(User.objects.filter(pk=self.coordinator.pk).exists())

    # -- recruitment periods ----------------------------------------------

    def test_project_id_is_required(self):
        client = self.authenticate(self.coordinator)
        response = client.get(reverse('recruitment_periods'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_project_id_must_be_numeric(self):
        client = self.authenticate(self.coordinator)
        response = client.get(reverse('recruitment_periods') + '?projectId=abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'invalid')

        response = client.get(reverse('recruitment_periods'), HTTP_X_PROJECT_ID='1; drop')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_project_id_header(self):
        client = self.authenticate(self.coordinator)
        response = client.get(reverse('recruitment_periods'), HTTP_X_PROJECT_ID=str(self.project.id))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['periods'], [])

    def test_unassigned_project_is_forbidden(self):
        other_project = Project.objects.create(name='Other')
        client = self.authenticate(self.coordinator)
        response = client.get(reverse('recruitment_periods') + f'?projectId={other_project.id}')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_cannot_use_coordinator_endpoints(self):
        client = self.authenticate(self.admin_user)
        response = client.get(self.periods_url())
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_and_list_periods(self):
        client = self.authenticate(self.coordinator)
        start = self.today + timedelta(days=1)
        response = client.post(
            self.periods_url(),
            {'startDate': start.isoformat(), 'endDate': (start + timedelta(days=7)).isoformat()},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['period']['periodNumber'], 1)
        self.assertEqual(response.data['period']['status'], 'planned')

        listing = client.get(self.periods_url())
        self.assertEqual(len(listing.data['periods']), 1)
        self.assertEqual(listing.data['maxPeriods'], 2)

    def test_past_start_is_rejected(self):
        client = self.authenticate(self.coordinator)
        start = self.today - timedelta(days=1)
        response = client.post(
            self.periods_url(),
            {'startDate': start.isoformat(), 'endDate': (start + timedelta(days=7)).isoformat()},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(RecruitmentPeriod.objects.count(), 0)

    def test_third_period_is_rejected(self):
        for n in (1, 2):
            RecruitmentPeriod.objects.create(
                project_hospital=self.link, period_number=n,
                start_date=self.today + timedelta(days=n * 150),
                end_date=self.today + timedelta(days=n * 150 + 7),
            )
        client = self.authenticate(self.coordinator)
        start = self.today + timedelta(days=400)
        response = client.post(
            self.periods_url(),
            {'startDate': start.isoformat(), 'endDate': (start + timedelta(days=7)).isoformat()},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'limit_exceeded')
        self.assertEqual(RecruitmentPeriod.objects.filter(project_hospital=self.link).count(), 2)

    def test_update_and_delete_own_period(self):
        period = RecruitmentPeriod.objects.create(
            project_hospital=self.link, period_number=1,
            start_date=self.today + timedelta(days=1), end_date=self.today + timedelta(days=8),
        )
        client = self.authenticate(self.coordinator)
        url = reverse('recruitment_period_detail', args=[period.id])

        new_end = self.today + timedelta(days=15)
        response = client.put(url, {'endDate': new_end.isoformat()}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['period']['endDate'], new_end.isoformat())

        response = client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(RecruitmentPeriod.objects.filter(pk=period.pk).exists())

    def test_cannot_touch_another_hospitals_period(self):
        period = RecruitmentPeriod.objects.create(
            project_hospital=self.other_link, period_number=1,
            start_date=self.today + timedelta(days=1), end_date=self.today + timedelta(days=8),
        )
        client = self.authenticate(self.coordinator)
        response = client.delete(reverse('recruitment_period_detail', args=[period.id]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(RecruitmentPeriod.objects.filter(pk=period.pk).exists())

    def test_missing_period_is_404(self):
        client = self.authenticate(self.coordinator)
        response = client.delete(reverse('recruitment_period_detail', args=[9999]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    # -- progress ---------------------------------------------------------

    def test_ethics_update_and_progress(self):
        client = self.authenticate(self.coordinator)
        response = client.put(
            reverse('coordinator_ethics') + f'?projectId={self.project.id}',
            {'ethicsSubmitted': True, 'ethicsApproved': False, 'ethicsSubmittedDate': self.today.isoformat()},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        summary = client.get(reverse('coordinator_progress') + f'?projectId={self.project.id}')
        self.assertEqual(summary.status_code, status.HTTP_200_OK)
        self.assertEqual(summary.data['progress']['completed'], 1)

    def test_ethics_approval_without_submission(self):
        client = self.authenticate(self.coordinator)
        response = client.put(
            reverse('coordinator_ethics') + f'?projectId={self.project.id}',
            {'ethicsSubmitted': False, 'ethicsApproved': True},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
