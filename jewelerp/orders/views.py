import logging
from django.db import transaction
from django.db.models import Prefetch
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from jewelerp.core.cache_signals import suspend_cache_signals
from jewelerp.core.pagination import paginated_response
from jewelerp.core.utils import create_audit_log
from jewelerp.jobs.models import Job
from jewelerp.jobs.services import release_order_resources
from jewelerp.jobs.workflow import UnmappedStatusError
from .filters import OrderFilter
from .models import Order, OrderItem
from .serializers import OrderSerializer, OrderDetailSerializer, get_predicted_order_id

logger = logging.getLogger(__name__)


def _order_queryset():
    return Order.objects.select_related('created_by').prefetch_related(
        Prefetch('items', queryset=OrderItem.objects.select_related('sku')),
    )


def _detail_response(order, request, status_code=status.HTTP_200_OK):
    try:
        return Response(OrderDetailSerializer(order, context={'request': request}).data, status=status_code)
    except UnmappedStatusError as e:
        logger.error(f"Order {order.order_id} has a job in unmapped status {e.status!r}")
        return Response({'error': str(e), 'status': e.status}, status=status.HTTP_409_CONFLICT)


def _split_items(request):
    data = request.data.copy()
    items_data = data.pop('items', None)
    return data, items_data


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def order_list_create(request):
    """List orders or create one together with its items and jobs"""
    if request.method == 'GET':
        queryset = OrderFilter(request.query_params, queryset=_order_queryset()).qs
        return paginated_response(request, queryset.order_by('-created_at', '-id'), OrderSerializer)

    data, items_data = _split_items(request)
    serializer = OrderSerializer(data=data, context={'items_data': items_data, 'request': request})
    if not serializer.is_valid():
        logger.warning(f"Rejected order: {serializer.errors}")
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        order = serializer.save(created_by=request.user)

    create_audit_log(
        request=request,
        action='order_create',
        model_name='Order',
        object_id=order.id,
        object_name=order.customer_name,
        object_reference=order.order_id,
        changes={
            'order_type': order.order_type,
            'items': order.items.count(),
            'jobs': order.jobs.count(),
            'delivery_date': str(order.delivery_date),
        },
    )
    return _detail_response(get_object_or_404(_order_queryset(), pk=order.pk), request, status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_predicted_number(request):
    """Order id the next create will get; nothing is reserved"""
    return Response({'predicted_order_id': get_predicted_order_id()})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def order_detail(request, order_id):
    """Retrieve, update or delete an order"""
    queryset = _order_queryset().prefetch_related(
        Prefetch('jobs', queryset=Job.objects.select_related('order', 'sku', 'manufacturer')),
    )
    order = get_object_or_404(queryset, order_id=order_id)

    if request.method == 'GET':
        return _detail_response(order, request)

    if request.method in ('PUT', 'PATCH'):
        data, items_data = _split_items(request)
        serializer = OrderSerializer(
            order,
            data=data,
            partial=request.method == 'PATCH',
            context={'items_data': items_data, 'request': request},
        )
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        with transaction.atomic():
            order = serializer.save()

        changes = {key: str(value) for key, value in serializer.validated_data.items()}
        if items_data is not None:
            changes['items_replaced'] = len(items_data)
        create_audit_log(
            request=request,
            action='order_update',
            model_name='Order',
            object_id=order.id,
            object_name=order.customer_name,
            object_reference=order.order_id,
            changes=changes,
        )
        return _detail_response(get_object_or_404(queryset, pk=order.pk), request)

    # DELETE
    order_pk = order.id
    job_count = order.jobs.count()
    with transaction.atomic(), suspend_cache_signals():
        release_order_resources(order)
        order.delete()
    logger.info(f"Deleted order {order_id} and {job_count} job(s)")
    create_audit_log(
        request=request,
        action='order_delete',
        model_name='Order',
        object_id=order_pk,
        object_name=order.customer_name,
        object_reference=order_id,
        changes={'jobs': job_count},
    )
    return Response(status=status.HTTP_204_NO_CONTENT)
