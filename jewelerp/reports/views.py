import logging
from django.db.models import Count, F, Sum
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from jewelerp.catalog.models import SKU
from jewelerp.core.cache_utils import cached_query, SKU_STATISTICS_CACHE_TTL, PHASE_SUMMARY_CACHE_TTL
from jewelerp.jobs import workflow
from jewelerp.jobs.models import Job
from jewelerp.jobs.serializers import JobSerializer
from jewelerp.orders.models import Order

logger = logging.getLogger(__name__)

DEFAULT_TOP_SKUS = 5
DEFAULT_PRIORITY_ORDERS = 10


def _limit(request, default):
    try:
        limit = int(request.query_params.get('limit', default))
    except (TypeError, ValueError):
        return default
    return min(max(limit, 1), 100)


@cached_query(cache_ttl=SKU_STATISTICS_CACHE_TTL, key_prefix='sku_statistics')
def get_sku_statistics(limit):
    """Most ordered SKUs by summed item quantity"""
    rows = (
        SKU.objects.annotate(count=Sum('order_items__quantity'))
        .filter(count__gt=0)
        .order_by('-count', 'sku_id')
        .values('sku_id', 'name', 'count')[:limit]
    )
    return [{'id': row['sku_id'], 'name': row['name'], 'count': row['count']} for row in rows]


@cached_query(cache_ttl=PHASE_SUMMARY_CACHE_TTL, key_prefix='phase_summary')
def get_phase_summary():
    """
    Job counts per status and per phase.

    Rows whose status has no phase are counted under 'unmapped' instead of
    being folded into a phase.
    """
    by_status = {value: 0 for value in workflow.JOB_STATUSES}
    by_phase = {phase: 0 for phase in workflow.JOB_PHASES}
    unmapped = {}
    total = 0

    for row in Job.objects.values('status').annotate(count=Count('id')):
        total += row['count']
        try:
            phase = workflow.phase_for_status(row['status'])
        except workflow.UnmappedStatusError:
            unmapped[row['status']] = row['count']
            continue
        by_status[row['status']] = row['count']
        by_phase[phase] += row['count']

    if unmapped:
        logger.warning(f"Phase summary found jobs with unmapped statuses: {unmapped}")
    return {
        'total': total,
        'by_status': [
            dict(workflow.status_info(value), status=value, count=by_status[value])
            for value in workflow.JOB_STATUSES
        ],
        'by_phase': [
            dict(workflow.phase_info(phase), phase=phase, count=by_phase[phase])
            for phase in workflow.JOB_PHASES
        ],
        'unmapped': unmapped,
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sku_statistics(request):
    """Top SKUs by ordered quantity: ?limit= (default 5)"""
    return Response(get_sku_statistics(_limit(request, DEFAULT_TOP_SKUS)))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def phase_summary(request):
    return Response(get_phase_summary())


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def priority_orders(request):
    """Open orders, soonest delivery first"""
    orders = (
        Order.objects.exclude(status=workflow.ORDER_STATUS_COMPLETED)
        .annotate(job_count=Count('jobs'))
        .order_by('delivery_date', 'id')[:_limit(request, DEFAULT_PRIORITY_ORDERS)]
    )
    return Response([
        {
            'order_id': order.order_id,
            'order_type': order.order_type,
            'customer_name': order.customer_name,
            'status': order.status,
            'production_date': order.production_date,
            'delivery_date': order.delivery_date,
            'days_to_due': order.days_to_due,
            'overdue': order.days_to_due is not None and order.days_to_due < 0,
            'delivery_gap_warning': order.delivery_gap_warning,
            'job_count': order.job_count,
        }
        for order in orders
    ])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def next_task(request):
    """Earliest-due job waiting for a team: ?team=bag|stone|diamond|manufacturer|qc"""
    team = request.query_params.get('team', '')
    try:
        queue_status = workflow.queue_status_for_team(team)
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    queue = Job.objects.filter(status=queue_status).select_related('order', 'sku', 'manufacturer')
    job = queue.order_by(F('due_date').asc(nulls_last=True), 'id').first()
    return Response({
        'team': team,
        'status': queue_status,
        'queue_length': queue.count(),
        'job': JobSerializer(job).data if job else None,
    })
