"""
Hospital participation in projects.

Deactivating or removing a hospital's project link is what lifts the
active-project block on deleting or deactivating the hospital.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.db import transaction
from rest_framework.exceptions import NotFound

from studies.models import Hospital, Project, ProjectHospital
from studies.services.audit import log_action

logger = logging.getLogger(__name__)


def _lock_link(project_id, hospital_id) -> ProjectHospital:
    if not Project.objects.filter(pk=project_id).exists():
        raise NotFound('project not found')
    if not Hospital.objects.filter(pk=hospital_id).exists():
        raise NotFound('hospital not found')
    link = (
        ProjectHospital.objects.select_for_update()
        .filter(project_id=project_id, hospital_id=hospital_id)
        .select_related('hospital', 'project')
        .first()
    )
    if not link:
        raise NotFound('hospital is not part of this project')
    return link


def update_project_hospital(project_id, hospital_id, *, status: str,
                            required_periods: Optional[int] = None, actor=None) -> ProjectHospital:
    with transaction.atomic():
        link = _lock_link(project_id, hospital_id)
        link.status = status
        fields = ['status']
        if required_periods is not None:
            link.required_periods = required_periods
            fields.append('required_periods')
        link.save(update_fields=fields)
        log_action(user=actor, action='project_hospital_update', object_type='project_hospital',
                   object_id=link.id, detail={'status': status, 'requiredPeriods': link.required_periods})
    logger.info('hospital %s in project %s set to %s', hospital_id, project_id, status)
    return link


def remove_project_hospital(project_id, hospital_id, *, actor=None) -> str:
    """Delete the link; its recruitment periods go with it."""
    with transaction.atomic():
        link = _lock_link(project_id, hospital_id)
        name = link.hospital.name
        link_id = link.id
        link.delete()
        log_action(user=actor, action='project_hospital_remove', object_type='project_hospital',
                   object_id=link_id, detail={'projectId': project_id, 'hospitalId': hospital_id})
    logger.info('hospital %s removed from project %s', hospital_id, project_id)
    return name


def serialize_project_hospital(link: ProjectHospital) -> dict:
    return {
        'id': link.id,
        'projectId': link.project_id,
        'hospitalId': link.hospital_id,
        'status': link.status,
        'requiredPeriods': link.required_periods,
    }
