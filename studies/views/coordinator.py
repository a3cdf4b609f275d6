"""
Coordinator self-service endpoints: recruitment periods and ethics progress.

The project is taken from the ``X-Project-Id`` header or the ``projectId``
query parameter.  A coordinator only reaches the project hospital of an
active assignment in that project.
"""
from __future__ import annotations

from django.shortcuts import get_object_or_404
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status

from ..models import ProjectCoordinator, ProjectHospital, RecruitmentPeriod
from ..permissions import IsCoordinatorRole
from ..serializers.progress import EthicsUpdateSerializer
from ..serializers.recruitment import PeriodCreateSerializer, PeriodUpdateSerializer
from ..services import recruitment
from ..services.accounts import get_coordinator_assignment, get_project_hospital_for
from ..services.audit import log_action
from ..services.progress import update_ethics, progress_summary, serialize_progress


def _project_id(request):
    project_id = request.headers.get('X-Project-Id') or request.query_params.get('projectId')
    if not project_id:
        raise ValidationError('project id is required')
    try:
        return int(project_id)
    except ValueError:
        raise ValidationError('project id must be a number')


def _coordinator_project_hospital(request) -> ProjectHospital:
    assignment = get_coordinator_assignment(request.user, _project_id(request))
    if not assignment:
        raise PermissionDenied('you do not have access to this project')
    project_hospital = get_project_hospital_for(assignment)
    if not project_hospital:
        raise NotFound('hospital not found in this project')
    return project_hospital


def _owned_period(request, pk: int) -> RecruitmentPeriod:
    period = get_object_or_404(RecruitmentPeriod.objects.select_related('project_hospital'), pk=pk)
    ph = period.project_hospital
    owns = ProjectCoordinator.objects.filter(
        user=request.user, project_id=ph.project_id, hospital_id=ph.hospital_id, is_active=True
    ).exists()
    if not owns:
        raise PermissionDenied('you do not have permission to modify this period')
    return period


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsCoordinatorRole])
def recruitment_periods(request):
    project_hospital = _coordinator_project_hospital(request)
    if request.method == 'GET':
        return Response({
            'ok': True,
            'maxPeriods': recruitment.max_periods_for(project_hospital),
            'periods': recruitment.list_periods(project_hospital),
        })

    s = PeriodCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    period = recruitment.create_period(
        project_hospital, s.validated_data['startDate'], s.validated_data['endDate']
    )
    log_action(user=request.user, action='period_create', object_type='recruitment_period',
               object_id=period.id, detail={'periodNumber': period.period_number})
    return Response({'ok': True, 'period': recruitment.serialize_period(period)}, status=status.HTTP_201_CREATED)


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsCoordinatorRole])
def recruitment_period_detail(request, pk: int):
    period = _owned_period(request, pk)
    if request.method == 'PUT':
        s = PeriodUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        period = recruitment.update_period(
            period, s.validated_data.get('startDate'), s.validated_data.get('endDate')
        )
        log_action(user=request.user, action='period_update', object_type='recruitment_period', object_id=period.id)
        return Response({'ok': True, 'period': recruitment.serialize_period(period)})

    period_id = period.id
    recruitment.delete_period(period)
    log_action(user=request.user, action='period_delete', object_type='recruitment_period', object_id=period_id)
    return Response({'ok': True, 'message': 'period deleted'})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsCoordinatorRole])
def coordinator_progress(request):
    project_hospital = _coordinator_project_hospital(request)
    return Response({'ok': True, 'progress': progress_summary(project_hospital)})


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsCoordinatorRole])
def coordinator_ethics(request):
    project_hospital = _coordinator_project_hospital(request)
    s = EthicsUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    progress = update_ethics(
        project_hospital,
        submitted=vd['ethicsSubmitted'],
        approved=vd['ethicsApproved'],
        submitted_date=vd.get('ethicsSubmittedDate'),
        approved_date=vd.get('ethicsApprovedDate'),
    )
    log_action(user=request.user, action='ethics_update', object_type='hospital',
               object_id=project_hospital.hospital_id, detail=serialize_progress(progress))
    return Response({'ok': True, 'progress': serialize_progress(progress)})
