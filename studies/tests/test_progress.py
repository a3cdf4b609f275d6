from datetime import date

import pytest
from rest_framework.exceptions import ValidationError

from studies.models import Hospital, HospitalProgress, Project, ProjectHospital, RecruitmentPeriod
from studies.services import progress

pytestmark = pytest.mark.django_db


@pytest.fixture
def link():
    project = Project.objects.create(name='EPIC-Q')
    hospital = Hospital.objects.create(name='Hospital Italiano')
    return ProjectHospital.objects.create(project=project, hospital=hospital)


def test_empty_summary(link):
    summary = progress.progress_summary(link, date(2030, 3, 4))
    assert summary['completed'] == 0
    assert summary['percentage'] == 0
    assert summary['ethics']['ethicsSubmitted'] is False
    assert summary['periods'] == []
    assert not HospitalProgress.objects.exists()


def test_approval_requires_submission(link):
    with pytest.raises(ValidationError):
        progress.update_ethics(link, submitted=False, approved=True)


def test_approval_date_cannot_precede_submission(link):
    with pytest.raises(ValidationError):
        progress.update_ethics(link, submitted=True, approved=True,
                               submitted_date=date(2030, 3, 10), approved_date=date(2030, 3, 1))


def test_summary_counts_completed_items(link):
    progress.update_ethics(link, submitted=True, approved=False, submitted_date=date(2030, 3, 1))
    RecruitmentPeriod.objects.create(project_hospital=link, period_number=1,
                                     start_date=date(2030, 3, 4), end_date=date(2030, 3, 11))

    summary = progress.progress_summary(link, date(2030, 3, 5))

    assert summary['completed'] == 2
    assert summary['percentage'] == 67
    assert summary['ethics']['ethicsSubmittedDate'] == '2030-03-01'
    assert summary['periods'][0]['status'] == 'active'


def test_unsubmitting_clears_dates(link):
    progress.update_ethics(link, submitted=True, approved=True,
                           submitted_date=date(2030, 3, 1), approved_date=date(2030, 3, 8))
    p = progress.update_ethics(link, submitted=False, approved=False,
                               submitted_date=date(2030, 3, 1))
    assert p.ethics_submitted_date is None
    assert p.ethics_approved_date is None
    assert HospitalProgress.objects.count() == 1
