import logging
from django.conf import settings
from django.db import DatabaseError, transaction
from django.shortcuts import get_object_or_404
from rest_framework import serializers, status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from jewelerp.core.pagination import paginated_response
from jewelerp.core.utils import create_audit_log
from . import constants
from .filters import SKUFilter
from .images import InvalidImageError, compress_to_webp, store_sku_image, delete_sku_image, sku_image_path
from .models import SKU
from .serializers import SKUSerializer, SKUBatchSerializer
from .utils import generate_sku_id, get_predicted_sku_number, reserve_sku_number

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def sku_list_create(request):
    """List SKUs or create one, consuming the next SKU number"""
    if request.method == 'GET':
        queryset = SKUFilter(request.query_params, queryset=SKU.objects.all()).qs
        return paginated_response(request, queryset, SKUSerializer)

    serializer = SKUSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        data = serializer.validated_data
        sku_id = generate_sku_id(data['category'], data.get('gold_type', constants.GOLD_NONE))
        if SKU.objects.filter(sku_id=sku_id).exists():
            raise serializers.ValidationError({'sku_id': f'SKU {sku_id} already exists.'})
        sku = serializer.save(sku_id=sku_id)

    logger.info(f"Created SKU {sku.sku_id}")
    create_audit_log(
        request=request,
        action='create',
        model_name='SKU',
        object_id=sku.id,
        object_name=sku.name,
        object_reference=sku.sku_id,
        changes={'category': sku.category, 'gold_type': sku.gold_type},
    )
    return Response(SKUSerializer(sku).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def sku_batch_create(request):
    """
    Create several SKU variants that share one sequence number.

    Body: {"skus": [{name, category, gold_type, ...}, ...]}
    Variants must differ in category code or metal, otherwise their ids
    would collide.
    """
    serializer = SKUBatchSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    variants = serializer.validated_data['skus']
    prefixes = [
        (constants.get_category_code(v['category']), constants.get_gold_short_code(v.get('gold_type', constants.GOLD_NONE)))
        for v in variants
    ]
    if len(set(prefixes)) != len(prefixes):
        return Response(
            {'skus': ['Variants in a batch must differ by category or gold type; generated SKU ids would collide.']},
            status=status.HTTP_400_BAD_REQUEST,
        )

    with transaction.atomic():
        number = reserve_sku_number()
        sku_ids = [
            generate_sku_id(v['category'], v.get('gold_type', constants.GOLD_NONE), number=number)
            for v in variants
        ]
        existing = list(SKU.objects.filter(sku_id__in=sku_ids).values_list('sku_id', flat=True))
        if existing:
            raise serializers.ValidationError({'skus': [f"SKU ids already exist: {', '.join(existing)}"]})
        created = [SKU.objects.create(sku_id=sku_id, **variant) for sku_id, variant in zip(sku_ids, variants)]

    logger.info(f"Created SKU batch {', '.join(sku_ids)}")
    for sku in created:
        create_audit_log(
            request=request,
            action='create',
            model_name='SKU',
            object_id=sku.id,
            object_name=sku.name,
            object_reference=sku.sku_id,
            changes={'batch_number': number},
        )
    return Response(
        {
            'number': number,
            'formatted_number': constants.format_sku_number(number),
            'skus': SKUSerializer(created, many=True).data,
        },
        status=status.HTTP_201_CREATED,
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sku_predicted_number(request):
    """Next SKU number for display; does not reserve it"""
    return Response(get_predicted_sku_number())


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def sku_detail(request, sku_id):
    """Retrieve, update or delete an SKU"""
    sku = get_object_or_404(SKU, sku_id=sku_id)

    if request.method == 'GET':
        return Response(SKUSerializer(sku).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = SKUSerializer(sku, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(
                request=request,
                action='update',
                model_name='SKU',
                object_id=sku.id,
                object_name=sku.name,
                object_reference=sku.sku_id,
                changes={key: str(value) for key, value in serializer.validated_data.items()},
            )
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # DELETE
    if sku.order_items.exists() or sku.jobs.exists():
        return Response(
            {'error': f'SKU {sku.sku_id} is used by existing orders and cannot be deleted.'},
            status=status.HTTP_409_CONFLICT,
        )
    image_url = sku.image_url
    sku_pk = sku.id
    sku.delete()
    if image_url:
        delete_sku_image(sku_image_path(sku_id))
    create_audit_log(
        request=request,
        action='delete',
        model_name='SKU',
        object_id=sku_pk,
        object_name=sku.name,
        object_reference=sku_id,
    )
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST', 'DELETE'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def sku_image(request, sku_id):
    """POST compresses an uploaded image to WebP and attaches it to the SKU; DELETE removes it"""
    sku = get_object_or_404(SKU, sku_id=sku_id)
    if request.method == 'DELETE':
        return _delete_sku_image(request, sku)

    upload = request.FILES.get('image')
    if upload is None:
        return Response({'image': ['No image file was submitted.']}, status=status.HTTP_400_BAD_REQUEST)
    if upload.size > settings.SKU_IMAGE_MAX_UPLOAD_BYTES:
        return Response({'image': ['Image file is too large.']}, status=status.HTTP_400_BAD_REQUEST)

    try:
        data = compress_to_webp(upload)
    except InvalidImageError as e:
        logger.warning(f"Rejected image upload for SKU {sku_id}: {e}")
        return Response({'image': [str(e)]}, status=status.HTTP_400_BAD_REQUEST)

    path, url = store_sku_image(sku.sku_id, data)
    try:
        sku.image_url = url
        sku.save(update_fields=['image_url', 'updated_at'])
    except DatabaseError as e:
        delete_sku_image(path)
        logger.error(f"Failed to update SKU {sku_id} with image URL: {e}")
        return Response({'error': 'Failed to update SKU with image URL'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info(f"Stored image for SKU {sku_id} ({len(data)} bytes)")
    create_audit_log(
        request=request,
        action='sku_image_upload',
        model_name='SKU',
        object_id=sku.id,
        object_name=sku.name,
        object_reference=sku.sku_id,
        changes={'image_url': url, 'size_bytes': len(data), 'original_name': upload.name},
    )
    return Response({'sku_id': sku.sku_id, 'image_url': url, 'size_bytes': len(data)})


def _delete_sku_image(request, sku):
    if not sku.image_url:
        return Response({'error': f'SKU {sku.sku_id} has no image.'}, status=status.HTTP_404_NOT_FOUND)

    old_url = sku.image_url
    sku.image_url = ''
    sku.save(update_fields=['image_url', 'updated_at'])
    delete_sku_image(sku_image_path(sku.sku_id))

    logger.info(f"Removed image for SKU {sku.sku_id}")
    create_audit_log(
        request=request,
        action='sku_image_delete',
        model_name='SKU',
        object_id=sku.id,
        object_name=sku.name,
        object_reference=sku.sku_id,
        changes={'image_url': old_url},
    )
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def catalog_reference(request):
    """Reference lists for SKU and lot forms"""
    return Response({
        'categories': list(constants.CATEGORIES),
        'category_codes': dict(constants.CATEGORY_CODES),
        'collections': list(constants.COLLECTIONS),
        'gold_types': list(constants.GOLD_TYPES),
        'gold_type_codes': dict(constants.GOLD_TYPE_CODES),
        'stone_types': list(constants.STONE_TYPES),
        'stone_type_codes': dict(constants.STONE_TYPE_CODES),
        'stone_shapes': list(constants.STONE_SHAPES),
        'stone_cuts': list(constants.STONE_CUTS),
        'stone_qualities': list(constants.STONE_QUALITIES),
        'stone_locations': list(constants.STONE_LOCATIONS),
        'diamond_shapes': list(constants.DIAMOND_SHAPES),
        'diamond_sizes': list(constants.DIAMOND_SIZES),
        'diamond_qualities': list(constants.DIAMOND_QUALITIES),
        'diamond_types': list(constants.DIAMOND_TYPES),
        'size_rules': {
            category: {key: str(value) for key, value in rule.items()}
            for category, rule in constants.SIZE_RULES.items()
        },
    })
