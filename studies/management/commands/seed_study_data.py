"""
Management command to populate the database with study test data.
"""
from datetime import timedelta
import random

from django.core.management.base import BaseCommand
from django.contrib.auth.hashers import make_password
from django.utils import timezone

from studies.models import (
    User, Project, Hospital, HospitalContact, HospitalDetails, ProjectHospital,
    ProjectCoordinator, HospitalProgress, RecruitmentPeriod,
)

HOSPITALS = [
    ('Hospital Italiano', 'Buenos Aires', 'CABA'),
    ('Hospital de Clínicas', 'Buenos Aires', 'CABA'),
    ('Hospital Privado', 'Córdoba', 'Córdoba'),
    ('Hospital Provincial', 'Rosario', 'Santa Fe'),
    ('Hospital Central', 'Mendoza', 'Mendoza'),
]


class Command(BaseCommand):
    help = 'Populate database with study test data'

    def handle(self, *args, **options):
        self.stdout.write('Creating test data...')

        project = self.create_project()
        hospitals = self.create_hospitals()
        links = self.link_hospitals(project, hospitals)
        coordinators = self.create_coordinators(project, hospitals)
        self.create_progress(links)
        self.create_periods(links)

        self.stdout.write(self.style.SUCCESS(
            f'Test data ready: {len(hospitals)} hospitals, {len(coordinators)} coordinators.'
        ))

    def create_project(self):
        project, _ = Project.objects.get_or_create(
            name='EPIC-Q',
            defaults={
                'description': 'Perioperative outcomes study',
                'status': 'active',
                'start_date': timezone.localdate(),
            },
        )
        return project

    def create_hospitals(self):
        hospitals = []
        for name, city, province in HOSPITALS:
            hospital, created = Hospital.objects.get_or_create(
                name=name, defaults={'city': city, 'province': province, 'status': 'active'}
            )
            if created:
                HospitalDetails.objects.create(
                    hospital=hospital,
                    num_beds=random.randint(80, 600),
                    num_operating_rooms=random.randint(4, 30),
                    num_icu_beds=random.randint(6, 60),
                    financing_type=random.choice(['public', 'private', 'mixed']),
                    has_ethics_committee=random.choice([True, False]),
                )
                HospitalContact.objects.create(
                    hospital=hospital,
                    role='principal_investigator',
                    name=f'Investigator {hospital.id}',
                    email=f'pi{hospital.id}@epicq.test',
                    is_primary=True,
                )
            hospitals.append(hospital)
        return hospitals

    def link_hospitals(self, project, hospitals):
        links = []
        for hospital in hospitals:
            link, _ = ProjectHospital.objects.get_or_create(project=project, hospital=hospital)
            links.append(link)
        return links

    def create_coordinators(self, project, hospitals):
        coordinators = []
        for i, hospital in enumerate(hospitals, start=1):
            email = f'coordinator{i}@epicq.test'
            user, _ = User.objects.get_or_create(
                email=email,
                defaults={
                    'username': email,
                    'name': f'Coordinator {i}',
                    'role': User.ROLE_COORDINATOR,
                    'hospital': hospital,
                    'password': make_password('123456'),
                },
            )
            ProjectCoordinator.objects.get_or_create(user=user, project=project, hospital=hospital)
            coordinators.append(user)
        # The first coordinator also covers the second hospital.
        if len(hospitals) > 1:
            ProjectCoordinator.objects.get_or_create(user=coordinators[0], project=project, hospital=hospitals[1])
        return coordinators

    def create_progress(self, links):
        for link in links:
            submitted = random.choice([True, False])
            HospitalProgress.objects.get_or_create(
                hospital=link.hospital,
                project=link.project,
                defaults={
                    'project_hospital': link,
                    'ethics_submitted': submitted,
                    'ethics_submitted_date': timezone.localdate() if submitted else None,
                },
            )

    def create_periods(self, links):
        today = timezone.localdate()
        for link in links[:2]:
            start = today + timedelta(days=random.randint(1, 30))
            RecruitmentPeriod.objects.get_or_create(
                project_hospital=link,
                period_number=1,
                defaults={'start_date': start, 'end_date': start + timedelta(days=7)},
            )
