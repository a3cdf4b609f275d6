"""
Coordinator progress checklist: ethics submission, ethics approval and
registered recruitment periods for one hospital in one project.
"""
from __future__ import annotations

import datetime
from typing import Optional

from rest_framework.exceptions import ValidationError

from studies.models import HospitalProgress, ProjectHospital, RecruitmentPeriod
from studies.services.recruitment import list_periods


def get_or_create_progress(project_hospital: ProjectHospital) -> HospitalProgress:
    progress, _ = HospitalProgress.objects.get_or_create(
        hospital_id=project_hospital.hospital_id,
        project_id=project_hospital.project_id,
        defaults={'project_hospital': project_hospital},
    )
    if progress.project_hospital_id is None:
        progress.project_hospital = project_hospital
        progress.save(update_fields=['project_hospital', 'updated_at'])
    return progress


def update_ethics(project_hospital: ProjectHospital, *, submitted: bool, approved: bool,
                  submitted_date: Optional[datetime.date] = None,
                  approved_date: Optional[datetime.date] = None) -> HospitalProgress:
    if approved and not submitted:
        raise ValidationError({'ethicsApproved': 'ethics cannot be approved before it is submitted'})
    if submitted_date and approved_date and approved_date < submitted_date:
        raise ValidationError({'ethicsApprovedDate': 'approval date cannot precede the submission date'})

    progress = get_or_create_progress(project_hospital)
    progress.ethics_submitted = submitted
    progress.ethics_submitted_date = submitted_date if submitted else None
    progress.ethics_approved = approved
    progress.ethics_approved_date = approved_date if approved else None
    progress.save()
    return progress


def serialize_progress(progress: HospitalProgress) -> dict:
    return {
        'ethicsSubmitted': progress.ethics_submitted,
        'ethicsSubmittedDate': progress.ethics_submitted_date.isoformat() if progress.ethics_submitted_date else None,
        'ethicsApproved': progress.ethics_approved,
        'ethicsApprovedDate': progress.ethics_approved_date.isoformat() if progress.ethics_approved_date else None,
    }


def progress_summary(project_hospital: ProjectHospital, now=None) -> dict:
    progress = HospitalProgress.objects.filter(
        hospital_id=project_hospital.hospital_id, project_id=project_hospital.project_id
    ).first()
    has_periods = RecruitmentPeriod.objects.filter(project_hospital=project_hospital).exists()
    items = [
        {'key': 'ethicsSubmitted', 'label': 'Ethics submitted', 'completed': bool(progress and progress.ethics_submitted)},
        {'key': 'ethicsApproved', 'label': 'Ethics approved', 'completed': bool(progress and progress.ethics_approved)},
        {'key': 'recruitmentPeriods', 'label': 'Recruitment periods', 'completed': has_periods},
    ]
    completed = sum(1 for i in items if i['completed'])
    return {
        'items': items,
        'completed': completed,
        'percentage': round(completed * 100 / len(items)),
        'ethics': serialize_progress(progress) if progress else serialize_progress(HospitalProgress()),
        'periods': list_periods(project_hospital, now),
    }
