import logging
from django.db import transaction
from django.db.models import Count, Q
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from jewelerp.core.utils import create_audit_log
from .models import Manufacturer
from .serializers import ManufacturerSerializer

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def manufacturer_list_create(request):
    """List manufacturers (ordered by name) or create a new one"""
    if request.method == 'GET':
        queryset = Manufacturer.objects.all().order_by('name')

        active = request.query_params.get('active')
        search = request.query_params.get('search')
        if active is not None and active != '':
            queryset = queryset.filter(active=active.lower() in ('true', '1', 'yes'))
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(contact_person__icontains=search))

        serializer = ManufacturerSerializer(queryset, many=True)
        return Response(serializer.data)

    serializer = ManufacturerSerializer(data=request.data)
    if serializer.is_valid():
        manufacturer = serializer.save()
        logger.info(f"Created manufacturer {manufacturer.name}")
        create_audit_log(
            request=request,
            action='create',
            model_name='Manufacturer',
            object_id=manufacturer.id,
            object_name=manufacturer.name,
        )
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def manufacturer_detail(request, pk):
    """Retrieve, update or delete a manufacturer"""
    manufacturer = get_object_or_404(Manufacturer, pk=pk)

    if request.method == 'GET':
        data = ManufacturerSerializer(manufacturer).data
        data['jobs_by_status'] = {
            row['status']: row['count']
            for row in manufacturer.jobs.values('status').annotate(count=Count('id')).order_by('status')
        }
        return Response(data)

    if request.method in ('PUT', 'PATCH'):
        with transaction.atomic():
            manufacturer = Manufacturer.objects.select_for_update().get(pk=manufacturer.pk)
            serializer = ManufacturerSerializer(manufacturer, data=request.data, partial=request.method == 'PATCH')
            if not serializer.is_valid():
                return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
            serializer.save()
        create_audit_log(
            request=request,
            action='update',
            model_name='Manufacturer',
            object_id=manufacturer.id,
            object_name=manufacturer.name,
            changes={key: str(value) for key, value in serializer.validated_data.items()},
        )
        return Response(serializer.data)

    # DELETE
    job_count = manufacturer.jobs.count()
    if job_count:
        return Response(
            {'error': f'{manufacturer.name} has {job_count} job(s) and cannot be deleted. Deactivate it instead.'},
            status=status.HTTP_409_CONFLICT,
        )
    manufacturer_id = manufacturer.id
    name = manufacturer.name
    manufacturer.delete()
    create_audit_log(
        request=request,
        action='delete',
        model_name='Manufacturer',
        object_id=manufacturer_id,
        object_name=name,
    )
    return Response(status=status.HTTP_204_NO_CONTENT)
