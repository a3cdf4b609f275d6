"""
Cascade deletion of hospitals and coordinators.

Every deletion is split into an ``analyze_*`` step that describes what
would happen without touching the database, and an ``execute_*`` step
that performs it inside a single transaction.  A hospital with an active
project link is never removed.  A coordinator whose only active
assignment is the hospital being removed may be deleted with it; one who
still coordinates elsewhere is only unassigned.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction
from rest_framework.exceptions import NotFound

from studies.exceptions import BlockedByActiveDependency, InternalError
from studies.models import (
    Alert,
    CaseMetric,
    Communication,
    Hospital,
    HospitalContact,
    HospitalDetails,
    HospitalProgress,
    ProjectCoordinator,
    ProjectHospital,
    RecruitmentPeriod,
)
from studies.services.audit import log_action

logger = logging.getLogger(__name__)

User = get_user_model()

ACTION_DELETE = 'delete'
ACTION_UNASSIGN = 'unassign'
ACTION_NOTIFY = 'notify'

ALERTS_GROUP = 'admin.alerts'


@dataclass
class DeletionAction:
    type: str
    description: str
    data: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {'type': self.type, 'description': self.description, 'data': self.data}


@dataclass
class DeletionPlan:
    can_delete: bool
    message: str
    warnings: list[str] = field(default_factory=list)
    actions: list[DeletionAction] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            'canDelete': self.can_delete,
            'message': self.message,
            'warnings': list(self.warnings),
            'actions': [a.as_dict() for a in self.actions],
        }


def _get_hospital(hospital_id) -> Hospital:
    hospital = Hospital.objects.filter(pk=hospital_id).first()
    if not hospital:
        raise NotFound('hospital not found')
    return hospital


def _get_user(user_id):
    user = User.objects.filter(pk=user_id).first()
    if not user:
        raise NotFound('user not found')
    return user


def _active_project_count(hospital: Hospital) -> int:
    return ProjectHospital.objects.filter(hospital=hospital, status=ProjectHospital.STATUS_ACTIVE).count()


def _blocking_message(count: int) -> str:
    return (
        f'The hospital is linked to {count} active project(s). '
        'It must be removed from every project first.'
    )


def _other_assignments(user_id, hospital: Hospital):
    return (
        ProjectCoordinator.objects
        .filter(user_id=user_id, is_active=True)
        .exclude(hospital=hospital)
        .select_related('hospital')
    )


def _one_per_user(assignments: list[ProjectCoordinator]) -> list[ProjectCoordinator]:
    # A coordinator may hold one row per project for the same hospital.
    seen: set[int] = set()
    unique = []
    for pc in assignments:
        if pc.user_id not in seen:
            seen.add(pc.user_id)
            unique.append(pc)
    return unique


def hospitals_left_without_coordinator(assignments: Iterable[ProjectCoordinator]) -> list[str]:
    """Names of hospitals with no other active coordinator once ``assignments`` go away.

    Each assignment's hospital is checked for an active coordinator other
    than the assignment's user; hospitals are reported once, in order.
    """
    names: list[str] = []
    seen: set[int] = set()
    for pc in assignments:
        if pc.hospital_id is None or pc.hospital_id in seen:
            continue
        seen.add(pc.hospital_id)
        others = (
            ProjectCoordinator.objects
            .filter(hospital_id=pc.hospital_id, is_active=True)
            .exclude(user_id=pc.user_id)
            .exists()
        )
        if not others:
            names.append(pc.hospital.name)
    return names


def _notify_action(names: list[str]) -> DeletionAction:
    return DeletionAction(
        type=ACTION_NOTIFY,
        description='Notify administrators about hospitals left without a coordinator',
        data={'hospitals': names},
    )


def _missing_warning(names: list[str]) -> str:
    return f"The following hospitals will be left without a coordinator: {', '.join(names)}"


def _broadcast_missing_coordinators(names: list[str], reason: str) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    event = {"type": "coordinators.missing", "hospitals": names, "reason": reason}
    async_to_sync(channel_layer.group_send)(ALERTS_GROUP, event)


# ---------------------------------------------------------------------------
# Hospitals
# ---------------------------------------------------------------------------

def analyze_hospital_deletion(hospital_id) -> DeletionPlan:
    hospital = _get_hospital(hospital_id)

    active_projects = _active_project_count(hospital)
    if active_projects:
        return DeletionPlan(
            can_delete=False,
            message='The hospital cannot be deleted',
            warnings=[_blocking_message(active_projects)],
        )

    actions: list[DeletionAction] = []
    warnings: list[str] = []
    coordinators = list(
        ProjectCoordinator.objects
        .filter(hospital=hospital, is_active=True)
        .select_related('user', 'hospital')
    )
    for pc in _one_per_user(coordinators):
        user = pc.user
        others = list(_other_assignments(pc.user_id, hospital))
        data = {'userId': user.id, 'userName': user.display_name, 'userEmail': user.email}
        if not others:
            actions.append(DeletionAction(
                type=ACTION_DELETE,
                description=f'Delete coordinator {user.display_name} ({user.email}), only assigned to this hospital',
                data=data,
            ))
        else:
            data['otherHospitals'] = [o.hospital.name for o in others]
            actions.append(DeletionAction(
                type=ACTION_UNASSIGN,
                description=f'Unassign coordinator {user.display_name} from this hospital',
                data=data,
            ))

    orphaned = hospitals_left_without_coordinator(coordinators)
    if orphaned:
        warnings.append(_missing_warning(orphaned))
        actions.append(_notify_action(orphaned))

    return DeletionPlan(
        can_delete=True,
        message=f'Hospital "{hospital.name}" is ready to be deleted',
        warnings=warnings,
        actions=actions,
    )


def _purge_hospital_records(hospital: Hospital) -> None:
    HospitalContact.objects.filter(hospital=hospital).delete()
    HospitalDetails.objects.filter(hospital=hospital).delete()
    CaseMetric.objects.filter(hospital=hospital).delete()
    Alert.objects.filter(hospital=hospital).delete()
    Communication.objects.filter(hospital=hospital).delete()


def _lock_hospital(hospital_id) -> Hospital:
    """Lock the hospital row and its project links; caller owns the transaction.

    Holding the hospital row also blocks new project links from being
    inserted until the transaction ends.
    """
    hospital = Hospital.objects.select_for_update().filter(pk=hospital_id).first()
    if not hospital:
        raise NotFound('hospital not found')
    list(ProjectHospital.objects.select_for_update().filter(hospital=hospital))
    return hospital


def _delete_hospital_rows(hospital: Hospital, delete_coordinators: bool) -> list[DeletionAction]:
    """Remove ``hospital`` and its dependents; caller holds the row locks."""
    actions: list[DeletionAction] = []

    coordinators = list(
        ProjectCoordinator.objects
        .filter(hospital=hospital, is_active=True)
        .select_related('user')
    )

    HospitalProgress.objects.filter(hospital=hospital).delete()
    RecruitmentPeriod.objects.filter(project_hospital__hospital=hospital).delete()
    ProjectHospital.objects.filter(hospital=hospital).delete()

    for pc in _one_per_user(coordinators):
        user = pc.user
        only_here = not _other_assignments(pc.user_id, hospital).exists()
        if only_here and delete_coordinators:
            user.delete()
            actions.append(DeletionAction(
                type=ACTION_DELETE,
                description=f'Coordinator {user.display_name} deleted',
                data={'userId': pc.user_id},
            ))
        else:
            ProjectCoordinator.objects.filter(user_id=pc.user_id, hospital=hospital).update(is_active=False)
            actions.append(DeletionAction(
                type=ACTION_UNASSIGN,
                description=f'Coordinator {user.display_name} unassigned from the hospital',
                data={'userId': pc.user_id},
            ))

    _purge_hospital_records(hospital)
    hospital.delete()
    return actions


def execute_hospital_deletion(hospital_id, delete_coordinators: bool = False, *, actor=None) -> DeletionPlan:
    try:
        with transaction.atomic():
            hospital = _lock_hospital(hospital_id)
            active_projects = _active_project_count(hospital)
            if active_projects:
                raise BlockedByActiveDependency(_blocking_message(active_projects))

            name = hospital.name
            orphaned = hospitals_left_without_coordinator(
                ProjectCoordinator.objects.filter(hospital=hospital, is_active=True).select_related('hospital')
            )
            actions = _delete_hospital_rows(hospital, delete_coordinators)
            log_action(user=actor, action='hospital_delete', object_type='hospital', object_id=hospital_id,
                       detail={'name': name, 'deleteCoordinators': delete_coordinators,
                               'actions': [a.as_dict() for a in actions]})
            if orphaned:
                transaction.on_commit(lambda: _broadcast_missing_coordinators(orphaned, f'hospital "{name}" deleted'))
    except DatabaseError as exc:
        logger.exception('hospital %s deletion rolled back', hospital_id)
        raise InternalError() from exc

    logger.info('hospital %s (%s) deleted with %d cascade action(s)', hospital_id, name, len(actions))
    return DeletionPlan(can_delete=True, message=f'Hospital "{name}" deleted', actions=actions)


def bulk_delete_hospitals(hospital_ids: list, delete_coordinators: bool = False, *, actor=None) -> list[DeletionPlan]:
    """Delete several hospitals all-or-nothing.

    Every hospital must exist and be free of active projects, otherwise
    nothing is deleted.
    """
    plans = []
    with transaction.atomic():
        hospitals = list(Hospital.objects.select_for_update().filter(pk__in=hospital_ids).order_by('pk'))
        if len(hospitals) != len(set(hospital_ids)):
            raise NotFound('some hospitals were not found')
        blocked = [h.name for h in hospitals if _active_project_count(h)]
        if blocked:
            raise BlockedByActiveDependency(
                f"The following hospitals are linked to active projects: {', '.join(blocked)}"
            )
        for h in hospitals:
            plans.append(execute_hospital_deletion(h.pk, delete_coordinators, actor=actor))
    return plans


def deactivate_hospital(hospital_id, *, actor=None) -> Hospital:
    with transaction.atomic():
        hospital = _lock_hospital(hospital_id)
        if _active_project_count(hospital):
            raise BlockedByActiveDependency(
                'The hospital is linked to active projects. It must be removed from every project first.'
            )
        hospital.status = 'inactive'
        hospital.save(update_fields=['status', 'updated_at'])
        log_action(user=actor, action='hospital_deactivate', object_type='hospital', object_id=hospital.id)
    return hospital


# ---------------------------------------------------------------------------
# Coordinators
# ---------------------------------------------------------------------------

def analyze_coordinator_deletion(user_id) -> DeletionPlan:
    user = _get_user(user_id)
    assignments = list(
        ProjectCoordinator.objects
        .filter(user=user, is_active=True)
        .select_related('hospital', 'project')
    )

    warnings: list[str] = []
    actions: list[DeletionAction] = []
    orphaned = hospitals_left_without_coordinator(assignments)
    if orphaned:
        warnings.append(_missing_warning(orphaned))
        actions.append(_notify_action(orphaned))

    for pc in assignments:
        hospital_name = pc.hospital.name if pc.hospital else None
        actions.append(DeletionAction(
            type=ACTION_UNASSIGN,
            description=f'Unassign from hospital {hospital_name} in project {pc.project.name}',
            data={
                'hospitalId': pc.hospital_id,
                'hospitalName': hospital_name,
                'projectId': pc.project_id,
                'projectName': pc.project.name,
            },
        ))

    return DeletionPlan(
        can_delete=True,
        message=f'Coordinator "{user.display_name}" is ready to be deleted',
        warnings=warnings,
        actions=actions,
    )


def execute_coordinator_deletion(user_id, *, actor=None) -> DeletionPlan:
    user = _get_user(user_id)
    name = user.display_name
    orphaned = hospitals_left_without_coordinator(
        ProjectCoordinator.objects.filter(user=user, is_active=True).select_related('hospital')
    )
    actions: list[DeletionAction] = []
    try:
        with transaction.atomic():
            count = ProjectCoordinator.objects.filter(user=user, is_active=True).update(is_active=False)
            actions.append(DeletionAction(
                type=ACTION_UNASSIGN,
                description=f'Coordinator unassigned from {count} hospital(s)',
                data={'count': count},
            ))
            user.delete()
            actions.append(DeletionAction(
                type=ACTION_DELETE,
                description=f'User {name} deleted',
                data={'userId': user_id},
            ))
            log_action(user=actor, action='coordinator_delete', object_type='user', object_id=user_id,
                       detail={'name': name, 'unassigned': count})
            if orphaned:
                transaction.on_commit(lambda: _broadcast_missing_coordinators(orphaned, f'coordinator "{name}" deleted'))
    except DatabaseError as exc:
        logger.exception('coordinator %s deletion rolled back', user_id)
        raise InternalError() from exc

    logger.info('coordinator %s (%s) deleted', user_id, name)
    return DeletionPlan(can_delete=True, message=f'Coordinator "{name}" deleted', actions=actions)
