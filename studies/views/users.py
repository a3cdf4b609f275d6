"""
Coordinator account removal and activation endpoints (admin only).
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.exceptions import ValidationError

from ..permissions import IsAdminRole
from ..services import cascade
from ..services.accounts import set_user_active, serialize_user


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_delete_analysis(request, pk: int):
    plan = cascade.analyze_coordinator_deletion(pk)
    return Response({'ok': True, **plan.as_dict()})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_confirm_delete(request, pk: int):
    if pk == request.user.id:
        raise ValidationError('you cannot delete your own account')
    plan = cascade.execute_coordinator_deletion(pk, actor=request.user)
    return Response({'ok': True, 'message': plan.message, 'actions': [a.as_dict() for a in plan.actions]})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_deactivate(request, pk: int):
    user = set_user_active(pk, False, actor=request.user)
    return Response({'ok': True, 'user': serialize_user(user)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_reactivate(request, pk: int):
    user = set_user_active(pk, True, actor=request.user)
    return Response({'ok': True, 'user': serialize_user(user)})
