import logging
from django.db import transaction
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from jewelerp.core.pagination import paginated_response
from jewelerp.core.utils import create_audit_log
from .filters import StoneLotFilter, DiamondLotFilter
from .models import StoneLot, DiamondLot
from .serializers import (
    StoneLotSerializer, DiamondLotSerializer, StoneAllocationSerializer, DiamondAllocationSerializer,
)

logger = logging.getLogger(__name__)


def _lot_list_create(request, model, serializer_class, filter_class):
    if request.method == 'GET':
        queryset = filter_class(request.query_params, queryset=model.objects.all()).qs
        return paginated_response(request, queryset, serializer_class)

    serializer = serializer_class(data=request.data)
    if serializer.is_valid():
        lot = serializer.save()
        logger.info(f"Created {model._meta.verbose_name} {lot.lot_number}")
        create_audit_log(
            request=request,
            action='create',
            model_name=model.__name__,
            object_id=lot.id,
            object_name=lot.lot_number,
            object_reference=lot.lot_number,
            changes={'quantity': lot.quantity, 'weight': str(lot.weight)},
        )
        return Response(serializer_class(lot).data, status=status.HTTP_201_CREATED)
    logger.warning(f"Rejected {model._meta.verbose_name}: {serializer.errors}")
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


def _lot_detail(request, lot, serializer_class, allocation_serializer_class):
    if request.method == 'GET':
        data = serializer_class(lot).data
        allocations = lot.allocations.select_related('job').all()
        data['allocations'] = allocation_serializer_class(allocations, many=True).data
        return Response(data)

    if request.method in ('PUT', 'PATCH'):
        with transaction.atomic():
            lot = lot.__class__.objects.select_for_update().get(pk=lot.pk)
            serializer = serializer_class(lot, data=request.data, partial=request.method == 'PATCH')
            if not serializer.is_valid():
                return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
            serializer.save()
        create_audit_log(
            request=request,
            action='update',
            model_name=lot.__class__.__name__,
            object_id=lot.id,
            object_name=lot.lot_number,
            object_reference=lot.lot_number,
            changes={key: str(value) for key, value in serializer.validated_data.items()},
        )
        return Response(serializer.data)

    # DELETE
    if lot.allocations.exists():
        return Response(
            {'error': f'Lot {lot.lot_number} has allocations and cannot be deleted.'},
            status=status.HTTP_409_CONFLICT,
        )
    lot_id = lot.id
    lot.delete()
    create_audit_log(
        request=request,
        action='delete',
        model_name=lot.__class__.__name__,
        object_id=lot_id,
        object_name=lot.lot_number,
        object_reference=lot.lot_number,
    )
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def stone_lot_list_create(request):
    """List stone lots (?status=&stone_type=&search=&available=true) or create one"""
    return _lot_list_create(request, StoneLot, StoneLotSerializer, StoneLotFilter)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def stone_lot_detail(request, pk):
    lot = get_object_or_404(StoneLot, pk=pk)
    return _lot_detail(request, lot, StoneLotSerializer, StoneAllocationSerializer)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def diamond_lot_list_create(request):
    """List diamond lots (?status=&size=&search=&available=true) or create one"""
    return _lot_list_create(request, DiamondLot, DiamondLotSerializer, DiamondLotFilter)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def diamond_lot_detail(request, pk):
    lot = get_object_or_404(DiamondLot, pk=pk)
    return _lot_detail(request, lot, DiamondLotSerializer, DiamondAllocationSerializer)
