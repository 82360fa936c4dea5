import logging
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from jewelerp.core.pagination import paginated_response
from jewelerp.lots.services import LotAllocationError
from jewelerp.orders.models import Order
from . import services, workflow
from .filters import JobFilter
from .models import Job
from .serializers import (
    AddJobSerializer, JobSerializer, JobDetailSerializer, JobHistorySerializer, RemarksSerializer,
    StoneSelectionSerializer, DiamondSelectionSerializer, SendToManufacturerSerializer,
    QualityCheckSerializer,
)
from .stickers import generate_work_sticker

logger = logging.getLogger(__name__)


def _job_queryset():
    return Job.objects.select_related('order', 'sku', 'manufacturer')


def _conflict(error):
    body = {'error': str(error)}
    if isinstance(error, workflow.UnmappedStatusError):
        body['status'] = error.status
    return Response(body, status=status.HTTP_409_CONFLICT)


def _list_response(request, queryset):
    queryset = JobFilter(request.query_params, queryset=queryset).qs.order_by('due_date', 'id')
    try:
        return paginated_response(request, queryset, JobSerializer)
    except workflow.UnmappedStatusError as e:
        logger.error(f"Job list contains unmapped status {e.status!r}")
        return _conflict(e)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def job_list(request):
    """All jobs, filtered by ?status=&phase=&order=&manufacturer=&sku=&search="""
    return _list_response(request, _job_queryset())


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def order_job_list(request, order_id):
    """Jobs of one order, or POST {sku, size} to add a job to it"""
    order = get_object_or_404(Order, order_id=order_id)
    if request.method == 'GET':
        return _list_response(request, _job_queryset().filter(order=order))

    serializer = AddJobSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    job = services.add_job_to_order(
        order, serializer.validated_data['sku'], serializer.validated_data['size'],
        user=request.user, request=request,
    )
    job = get_object_or_404(_job_queryset().prefetch_related('history__user'), pk=job.pk)
    return Response(JobDetailSerializer(job).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def job_detail(request, job_id):
    job = get_object_or_404(
        _job_queryset().prefetch_related('history__user', 'stone_allocations__lot', 'diamond_allocations__lot'),
        job_id=job_id,
    )
    try:
        return Response(JobDetailSerializer(job).data)
    except workflow.UnmappedStatusError as e:
        logger.error(f"Job {job.job_id} has unmapped status {e.status!r}")
        return _conflict(e)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def job_history(request, job_id):
    job = get_object_or_404(Job, job_id=job_id)
    history = job.history.select_related('user').order_by('created_at', 'id')
    return Response(JobHistorySerializer(history, many=True).data)


def _run_action(request, job_id, serializer_class, action):
    """
    Validate the payload, run a phase action and return the updated job.

    Workflow violations answer 409, allocation problems 400.
    """
    job = get_object_or_404(_job_queryset(), job_id=job_id)
    serializer = serializer_class(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        job = action(job, serializer.validated_data)
    except (workflow.InvalidTransitionError, workflow.UnmappedStatusError) as e:
        logger.warning(f"Rejected action on job {job_id}: {e}")
        return _conflict(e)
    except LotAllocationError as e:
        logger.warning(f"Rejected allocation for job {job_id}: {e}")
        return Response({'error': str(e), 'lot_number': e.lot_number}, status=status.HTTP_400_BAD_REQUEST)

    job = get_object_or_404(
        _job_queryset().prefetch_related('history__user', 'stone_allocations__lot', 'diamond_allocations__lot'),
        pk=job.pk,
    )
    return Response(JobDetailSerializer(job).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def job_create_bag(request, job_id):
    return _run_action(request, job_id, RemarksSerializer, lambda job, data: services.create_bag(
        job, user=request.user, request=request, remarks=data['remarks'],
    ))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def job_select_stones(request, job_id):
    """Body: {"allocations": [{lot_number, quantity, weight, remarks}], "remarks": ""}"""
    return _run_action(request, job_id, StoneSelectionSerializer, lambda job, data: services.select_stones(
        job, data['allocations'], user=request.user, request=request, remarks=data['remarks'],
    ))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def job_select_diamonds(request, job_id):
    """Body: {"allocations": [{lot_number, karat, clarity, quantity, weight, remarks}], "remarks": ""}"""
    return _run_action(request, job_id, DiamondSelectionSerializer, lambda job, data: services.select_diamonds(
        job, data['allocations'], user=request.user, request=request, remarks=data['remarks'],
    ))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def job_send_to_manufacturer(request, job_id):
    return _run_action(request, job_id, SendToManufacturerSerializer, lambda job, data: services.send_to_manufacturer(
        job,
        data['manufacturer'],
        expected_completion_date=data['expected_completion_date'],
        remarks=data['remarks'],
        user=request.user,
        request=request,
    ))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def job_advance_manufacturing(request, job_id):
    return _run_action(request, job_id, RemarksSerializer, lambda job, data: services.advance_manufacturing(
        job, remarks=data['remarks'], user=request.user, request=request,
    ))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def job_quality_check(request, job_id):
    return _run_action(request, job_id, QualityCheckSerializer, lambda job, data: services.quality_check(
        job, data, user=request.user, request=request,
    ))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def job_complete(request, job_id):
    return _run_action(request, job_id, RemarksSerializer, lambda job, data: services.complete_job(
        job, remarks=data['remarks'], user=request.user, request=request,
    ))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def job_sticker(request, job_id):
    """Work sticker for the job's bag as a PNG data URL"""
    job = get_object_or_404(_job_queryset(), job_id=job_id)
    try:
        phase = workflow.phase_info(job.current_phase)
    except workflow.UnmappedStatusError as e:
        return _conflict(e)

    lines = {
        'Order': job.order.order_id,
        'SKU': job.sku.sku_id,
        'Size': job.size or '-',
        'Status': job.status,
    }
    if job.manufacturer:
        lines['Manufacturer'] = job.manufacturer.name
    if job.due_date:
        lines['Due'] = job.due_date.strftime('%d-%m-%Y')

    sticker = generate_work_sticker(job.job_id, phase['label'], lines)
    return Response({'job_id': job.job_id, 'phase': job.current_phase, 'sticker': sticker})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def workflow_reference(request):
    """Statuses, phases and teams for building job screens"""
    return Response({
        'statuses': [
            dict(workflow.status_info(value), value=value, phase=workflow.phase_for_status(value),
                 order_status=workflow.order_status_for_job_status(value))
            for value in workflow.JOB_STATUSES
        ],
        'phases': [
            dict(workflow.phase_info(phase), value=phase, team=workflow.PHASE_TEAMS[phase],
                 route_segment=workflow.phase_route_segment(phase), next_phase=workflow.next_phase(phase),
                 statuses=list(workflow.statuses_for_phase(phase)))
            for phase in workflow.JOB_PHASES
        ],
        'team_queues': dict(workflow.TEAM_QUEUE_STATUS),
        'order_statuses': list(workflow.ORDER_STATUSES),
    })
