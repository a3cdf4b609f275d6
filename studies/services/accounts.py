from typing import Optional
from django.contrib.auth import get_user_model
from rest_framework.exceptions import NotFound, ValidationError

from studies.models import ProjectCoordinator, ProjectHospital
from studies.services.audit import log_action

User = get_user_model()


def set_user_active(user_id, active: bool, *, actor=None) -> User:
    """Deactivate or reactivate an account without touching its assignments."""
    user = User.objects.filter(pk=user_id).first()
    if not user:
        raise NotFound('user not found')
    if actor is not None and user.pk == actor.pk and not active:
        raise ValidationError('you cannot deactivate your own account')
    if user.is_active == active:
        raise ValidationError('user is already active' if active else 'user is already inactive')
    user.is_active = active
    user.save(update_fields=['is_active', 'updated_at'])
    log_action(user=actor, action='user_reactivate' if active else 'user_deactivate',
               object_type='user', object_id=user.id)
    return user


def get_coordinator_assignment(user: User, project_id) -> Optional[ProjectCoordinator]:
    return (
        ProjectCoordinator.objects
        .filter(user=user, project_id=project_id, is_active=True, hospital__isnull=False)
        .select_related('hospital', 'project')
        .first()
    )


def get_project_hospital_for(assignment: ProjectCoordinator) -> Optional[ProjectHospital]:
    return ProjectHospital.objects.filter(
        project_id=assignment.project_id, hospital_id=assignment.hospital_id
    ).first()


def serialize_user(user: User) -> dict:
    return {
        'id': user.id,
        'email': user.email,
        'name': user.display_name,
        'role': user.role,
        'hospital_id': user.hospital_id,
        'hospital_name': user.hospital.name if user.hospital_id else None,
        'isActive': user.is_active,
        'isTemporaryPassword': user.is_temporary_password,
        'lastLogin': user.last_login.isoformat() if user.last_login else None,
    }
