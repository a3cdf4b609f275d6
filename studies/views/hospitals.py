"""
Hospital deletion and deactivation endpoints.

Deletion is a two-step flow: the portal first fetches the analysis
(``delete-analysis``) to show the cascade to the administrator, then
posts the confirmation.  A hospital with an active project link is
blocked; the project link endpoint deactivates or removes that link.
Only administrators may call these endpoints.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsAdminRole
from ..serializers.cascade import (
    HospitalDeleteSerializer,
    BulkHospitalDeleteSerializer,
    ProjectHospitalUpdateSerializer,
)
from ..services import cascade, projects


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def hospital_delete_analysis(request, pk: int):
    plan = cascade.analyze_hospital_deletion(pk)
    return Response({'ok': True, **plan.as_dict()})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def hospital_confirm_delete(request, pk: int):
    s = HospitalDeleteSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    plan = cascade.execute_hospital_deletion(
        pk, s.validated_data['deleteCoordinators'], actor=request.user
    )
    return Response({'ok': True, 'message': plan.message, 'actions': [a.as_dict() for a in plan.actions]})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def hospital_deactivate(request, pk: int):
    hospital = cascade.deactivate_hospital(pk, actor=request.user)
    return Response({'ok': True, 'hospital': {'id': hospital.id, 'name': hospital.name, 'status': hospital.status}})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def hospitals_bulk_delete(request):
    s = BulkHospitalDeleteSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    plans = cascade.bulk_delete_hospitals(
        s.validated_data['hospitalIds'], s.validated_data['deleteCoordinators'], actor=request.user
    )
    return Response({
        'ok': True,
        'count': len(plans),
        'message': f'{len(plans)} hospital(s) permanently deleted',
    })


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def project_hospital_detail(request, project_id: int, hospital_id: int):
    if request.method == 'PUT':
        s = ProjectHospitalUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        link = projects.update_project_hospital(
            project_id, hospital_id,
            status=s.validated_data['status'],
            required_periods=s.validated_data.get('requiredPeriods'),
            actor=request.user,
        )
        return Response({'ok': True, 'projectHospital': projects.serialize_project_hospital(link)})

    name = projects.remove_project_hospital(project_id, hospital_id, actor=request.user)
    return Response({'ok': True, 'message': f'Hospital "{name}" removed from the project'})
