from unittest import mock

import pytest
from django.db import IntegrityError
from rest_framework.exceptions import NotFound

from studies.exceptions import BlockedByActiveDependency, InternalError
from studies.models import (
    Alert, AuditEvent, Communication, Hospital, HospitalContact, HospitalDetails,
    HospitalProgress, Project, ProjectCoordinator, ProjectHospital, RecruitmentPeriod, User,
)
from studies.services import cascade

pytestmark = pytest.mark.django_db


@pytest.fixture
def project():
    return Project.objects.create(name='EPIC-Q')


@pytest.fixture
def admin():
    return User.objects.create_user(email='admin@epicq.test', password='x', role='admin')


def make_hospital(project, name, status='inactive'):
    hospital = Hospital.objects.create(name=name)
    link = ProjectHospital.objects.create(project=project, hospital=hospital, status=status)
    return hospital, link


def make_coordinator(email, project, *hospitals):
    user = User.objects.create_user(email=email, password='x', role='coordinator', name=email.split('@')[0])
    for h in hospitals:
        ProjectCoordinator.objects.create(user=user, project=project, hospital=h)
    return user


def populate(hospital, link):
    HospitalContact.objects.create(hospital=hospital, name='PI')
    HospitalDetails.objects.create(hospital=hospital, num_beds=100)
    Alert.objects.create(hospital=hospital, alert_type='inactivity', message='no activity')
    Communication.objects.create(hospital=hospital, subject='Welcome')
    HospitalProgress.objects.create(hospital=hospital, project=link.project, project_hospital=link, ethics_submitted=True)
    RecruitmentPeriod.objects.create(project_hospital=link, period_number=1,
                                     start_date='2030-03-04', end_date='2030-03-11')


def test_active_project_blocks_deletion_without_mutation(project):
    hospital, _ = make_hospital(project, 'Hospital Italiano', status='active')
    user = make_coordinator('ana@epicq.test', project, hospital)

    plan = cascade.analyze_hospital_deletion(hospital.id)

    assert plan.can_delete is False
    assert plan.actions == []
    assert '1 active project' in plan.warnings[0]
    assert Hospital.objects.filter(pk=hospital.pk).exists()
    assert ProjectCoordinator.objects.get(user=user).is_active


def test_execute_rechecks_active_projects(project):
    hospital, _ = make_hospital(project, 'Hospital Italiano', status='active')
    with pytest.raises(BlockedByActiveDependency):
        cascade.execute_hospital_deletion(hospital.id, True)
    assert Hospital.objects.filter(pk=hospital.pk).exists()


def test_link_activated_before_lock_blocks_deletion(project):
    hospital, link = make_hospital(project, 'Hospital Italiano')
    user = make_coordinator('ana@epicq.test', project, hospital)
    lock = Hospital.objects.select_for_update

    def activate_then_lock(*args, **kwargs):
        # another admin re-activates the link right before the row lock
        ProjectHospital.objects.filter(pk=link.pk).update(status=ProjectHospital.STATUS_ACTIVE)
        return lock(*args, **kwargs)

    with mock.patch.object(Hospital.objects, 'select_for_update', side_effect=activate_then_lock):
        with pytest.raises(BlockedByActiveDependency):
            cascade.execute_hospital_deletion(hospital.id, True)

    assert Hospital.objects.filter(pk=hospital.pk).exists()
    assert ProjectHospital.objects.filter(pk=link.pk).exists()
    assert User.objects.filter(pk=user.pk).exists()


def test_execute_locks_hospital_and_links(project):
    hospital, _ = make_hospital(project, 'Hospital Italiano')
    with mock.patch.object(Hospital.objects, 'select_for_update',
                           wraps=Hospital.objects.select_for_update) as lock_hospital, \
            mock.patch.object(ProjectHospital.objects, 'select_for_update',
                              wraps=ProjectHospital.objects.select_for_update) as lock_links:
        cascade.execute_hospital_deletion(hospital.id)
    lock_hospital.assert_called_once()
    lock_links.assert_called_once()
    assert not Hospital.objects.filter(pk=hospital.pk).exists()


def test_unknown_hospital():
    with pytest.raises(NotFound):
        cascade.analyze_hospital_deletion(9999)
    with pytest.raises(NotFound):
        cascade.execute_hospital_deletion(9999)


def test_analysis_classifies_coordinators(project):
    h1, _ = make_hospital(project, 'Hospital Italiano')
    h2, _ = make_hospital(project, 'Hospital Central')
    solo = make_coordinator('solo@epicq.test', project, h1)
    multi = make_coordinator('multi@epicq.test', project, h1, h2)

    plan = cascade.analyze_hospital_deletion(h1.id)

    assert plan.can_delete
    by_user = {a.data.get('userId'): a for a in plan.actions if a.type != cascade.ACTION_NOTIFY}
    assert by_user[solo.id].type == cascade.ACTION_DELETE
    assert by_user[multi.id].type == cascade.ACTION_UNASSIGN
    assert by_user[multi.id].data['otherHospitals'] == ['Hospital Central']
    # Two coordinators share h1, so nobody is left alone there.
    assert not any(a.type == cascade.ACTION_NOTIFY for a in plan.actions)


def test_analysis_warns_about_uncovered_hospitals(project):
    h1, _ = make_hospital(project, 'Hospital Italiano')
    make_coordinator('solo@epicq.test', project, h1)

    plan = cascade.analyze_hospital_deletion(h1.id)

    notify = [a for a in plan.actions if a.type == cascade.ACTION_NOTIFY]
    assert notify and notify[0].data['hospitals'] == ['Hospital Italiano']
    assert plan.warnings


def test_single_hospital_coordinator_deleted_with_hospital(project, admin):
    hospital, link = make_hospital(project, 'Hospital Italiano')
    populate(hospital, link)
    user = make_coordinator('ana@epicq.test', project, hospital)

    plan = cascade.execute_hospital_deletion(hospital.id, True, actor=admin)

    assert not Hospital.objects.filter(pk=hospital.pk).exists()
    assert not User.objects.filter(pk=user.pk).exists()
    assert not ProjectHospital.objects.filter(pk=link.pk).exists()
    assert RecruitmentPeriod.objects.count() == 0
    assert HospitalProgress.objects.count() == 0
    assert HospitalContact.objects.count() == 0
    assert Communication.objects.count() == 0
    assert [a.type for a in plan.actions] == [cascade.ACTION_DELETE]
    assert AuditEvent.objects.filter(action='hospital_delete', object_id=hospital.id).exists()


def test_single_hospital_coordinator_kept_when_not_requested(project):
    hospital, _ = make_hospital(project, 'Hospital Italiano')
    user = make_coordinator('ana@epicq.test', project, hospital)

    cascade.execute_hospital_deletion(hospital.id, False)

    user.refresh_from_db()
    assert user.is_active
    pc = ProjectCoordinator.objects.get(user=user)
    assert pc.is_active is False
    assert pc.hospital_id is None


def test_multi_hospital_coordinator_only_unassigned(project):
    h1, _ = make_hospital(project, 'Hospital Italiano')
    h2, _ = make_hospital(project, 'Hospital Central')
    user = make_coordinator('multi@epicq.test', project, h1, h2)

    cascade.execute_hospital_deletion(h1.id, True)

    user.refresh_from_db()
    assert user.is_active
    remaining = ProjectCoordinator.objects.get(user=user, hospital=h2)
    assert remaining.is_active
    assert ProjectCoordinator.objects.filter(user=user, is_active=False).count() == 1


def test_failure_mid_transaction_rolls_everything_back(project):
    hospital, link = make_hospital(project, 'Hospital Italiano')
    populate(hospital, link)
    user = make_coordinator('ana@epicq.test', project, hospital)

    with mock.patch.object(Communication.objects, 'filter', side_effect=IntegrityError('duplicate key')):
        with pytest.raises(InternalError):
            cascade.execute_hospital_deletion(hospital.id, True)

    assert Hospital.objects.filter(pk=hospital.pk).exists()
    assert User.objects.filter(pk=user.pk).exists()
    assert ProjectCoordinator.objects.get(user=user).is_active
    assert ProjectHospital.objects.filter(pk=link.pk).exists()
    assert RecruitmentPeriod.objects.filter(project_hospital=link).count() == 1
    assert HospitalProgress.objects.filter(hospital=hospital).count() == 1
    assert HospitalContact.objects.filter(hospital=hospital).count() == 1
    assert Communication.objects.count() == 1


def test_missing_coordinator_broadcast_after_commit(project, django_capture_on_commit_callbacks):
    hospital, _ = make_hospital(project, 'Hospital Italiano')
    make_coordinator('ana@epicq.test', project, hospital)

    with mock.patch.object(cascade, '_broadcast_missing_coordinators') as broadcast:
        with django_capture_on_commit_callbacks(execute=True):
            cascade.execute_hospital_deletion(hospital.id, True)

    broadcast.assert_called_once()
    assert broadcast.call_args[0][0] == ['Hospital Italiano']


def test_bulk_delete_is_all_or_nothing(project):
    h1, _ = make_hospital(project, 'Hospital Italiano')
    h2, _ = make_hospital(project, 'Hospital Central', status='active')

    with pytest.raises(BlockedByActiveDependency):
        cascade.bulk_delete_hospitals([h1.id, h2.id])
    assert Hospital.objects.count() == 2

    with pytest.raises(NotFound):
        cascade.bulk_delete_hospitals([h1.id, 9999])
    assert Hospital.objects.count() == 2


def test_bulk_delete(project):
    h1, _ = make_hospital(project, 'Hospital Italiano')
    h2, _ = make_hospital(project, 'Hospital Central')
    make_coordinator('ana@epicq.test', project, h1)

    plans = cascade.bulk_delete_hospitals([h1.id, h2.id], True)

    assert len(plans) == 2
    assert Hospital.objects.count() == 0
    assert not User.objects.filter(email='ana@epicq.test').exists()


def test_deactivate_hospital(project, admin):
    hospital, link = make_hospital(project, 'Hospital Italiano', status='active')
    with pytest.raises(BlockedByActiveDependency):
        cascade.deactivate_hospital(hospital.id, actor=admin)

    link.status = ProjectHospital.STATUS_INACTIVE
    link.save()
    cascade.deactivate_hospital(hospital.id, actor=admin)
    hospital.refresh_from_db()
    assert hospital.status == 'inactive'


def test_coordinator_deletion_analysis(project):
    h1, _ = make_hospital(project, 'Hospital Italiano')
    h2, _ = make_hospital(project, 'Hospital Central')
    user = make_coordinator('ana@epicq.test', project, h1, h2)
    make_coordinator('bruno@epicq.test', project, h2)

    plan = cascade.analyze_coordinator_deletion(user.id)

    unassign = [a for a in plan.actions if a.type == cascade.ACTION_UNASSIGN]
    notify = [a for a in plan.actions if a.type == cascade.ACTION_NOTIFY]
    assert {a.data['hospitalName'] for a in unassign} == {'Hospital Italiano', 'Hospital Central'}
    assert notify[0].data['hospitals'] == ['Hospital Italiano']


def test_coordinator_deletion(project, admin):
    hospital, _ = make_hospital(project, 'Hospital Italiano')
    user = make_coordinator('ana@epicq.test', project, hospital)

    plan = cascade.execute_coordinator_deletion(user.id, actor=admin)

    assert not User.objects.filter(pk=user.pk).exists()
    assert ProjectCoordinator.objects.count() == 0
    assert Hospital.objects.filter(pk=hospital.pk).exists()
    assert plan.actions[0].data['count'] == 1
