from decimal import Decimal
from rest_framework import serializers

from jewelerp.catalog.models import SKU
from jewelerp.catalog.validators import validate_size
from jewelerp.lots.serializers import StoneAllocationSerializer, DiamondAllocationSerializer
from jewelerp.manufacturers.models import Manufacturer
from . import workflow
from .models import Job, JobHistory


class JobHistorySerializer(serializers.ModelSerializer):
    user = serializers.CharField(source='user.username', read_only=True, default=None)

    class Meta:
        model = JobHistory
        fields = ['id', 'status', 'action', 'data', 'user', 'created_at']


class JobSerializer(serializers.ModelSerializer):
    """Job row as shown in job lists; phase, order status and route come from the workflow map"""
    order_id = serializers.CharField(source='order.order_id', read_only=True)
    sku_id = serializers.CharField(source='sku.sku_id', read_only=True)
    name = serializers.CharField(source='sku.name', read_only=True)
    category = serializers.CharField(source='sku.category', read_only=True)
    gold_type = serializers.CharField(source='sku.gold_type', read_only=True)
    stone_type = serializers.CharField(source='sku.stone_type', read_only=True)
    diamond_type = serializers.CharField(source='sku.diamond_type', read_only=True)
    image_url = serializers.CharField(source='sku.image_url', read_only=True)
    manufacturer_name = serializers.CharField(source='manufacturer.name', read_only=True, default=None)
    current_phase = serializers.CharField(read_only=True)
    order_status = serializers.CharField(read_only=True)
    route = serializers.CharField(read_only=True)
    phase_info = serializers.SerializerMethodField()
    status_info = serializers.SerializerMethodField()

    class Meta:
        model = Job
        fields = [
            'id', 'job_id', 'order_id', 'sku_id', 'name', 'category', 'gold_type', 'stone_type',
            'diamond_type', 'image_url', 'size', 'status', 'status_info', 'current_phase', 'phase_info',
            'order_status', 'route', 'manufacturer', 'manufacturer_name', 'production_date', 'due_date',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_phase_info(self, obj):
        return workflow.phase_info(obj.current_phase)

    def get_status_info(self, obj):
        return workflow.status_info(obj.status)


class JobDetailSerializer(JobSerializer):
    history = JobHistorySerializer(many=True, read_only=True)
    stone_allocations = StoneAllocationSerializer(many=True, read_only=True)
    diamond_allocations = DiamondAllocationSerializer(many=True, read_only=True)
    next_phase = serializers.SerializerMethodField()

    class Meta(JobSerializer.Meta):
        fields = JobSerializer.Meta.fields + [
            'next_phase', 'stone_data', 'diamond_data', 'manufacturer_data', 'qc_data',
            'stone_allocations', 'diamond_allocations', 'history',
        ]
        read_only_fields = fields

    def get_next_phase(self, obj):
        return workflow.next_phase(obj.current_phase)


class RemarksSerializer(serializers.Serializer):
    remarks = serializers.CharField(required=False, allow_blank=True, default='')


class StoneAllocationInputSerializer(serializers.Serializer):
    lot_number = serializers.CharField()
    quantity = serializers.IntegerField(min_value=1)
    weight = serializers.DecimalField(max_digits=10, decimal_places=3, min_value=Decimal('0'), required=False, default=Decimal('0'))
    remarks = serializers.CharField(required=False, allow_blank=True, default='')


class DiamondAllocationInputSerializer(StoneAllocationInputSerializer):
    karat = serializers.CharField(required=False, allow_blank=True, default='')
    clarity = serializers.CharField(required=False, allow_blank=True, default='')


class StoneSelectionSerializer(RemarksSerializer):
    allocations = StoneAllocationInputSerializer(many=True, allow_empty=False)


class DiamondSelectionSerializer(RemarksSerializer):
    allocations = DiamondAllocationInputSerializer(many=True, allow_empty=False)


class SendToManufacturerSerializer(RemarksSerializer):
    manufacturer = serializers.PrimaryKeyRelatedField(queryset=Manufacturer.objects.all())
    expected_completion_date = serializers.DateField(required=False, allow_null=True, default=None)

    def validate_manufacturer(self, value):
        if not value.active:
            raise serializers.ValidationError(f'Manufacturer {value.name} is inactive.')
        return value


class GoldUsageSerializer(serializers.Serializer):
    description = serializers.CharField()
    gross_weight = serializers.DecimalField(max_digits=10, decimal_places=3)
    scrap_weight = serializers.DecimalField(max_digits=10, decimal_places=3, min_value=Decimal('0'), default=Decimal('0'))

    def validate_gross_weight(self, value):
        if value <= 0:
            raise serializers.ValidationError('Gross weight must be greater than 0.')
        return value


class StoneUsageSerializer(serializers.Serializer):
    """Stones returned, lost or broken during manufacture"""
    type = serializers.CharField()
    return_quantity = serializers.IntegerField(min_value=0, default=0)
    return_weight = serializers.DecimalField(max_digits=10, decimal_places=3, min_value=Decimal('0'), default=Decimal('0'))
    loss_quantity = serializers.IntegerField(min_value=0, default=0)
    loss_weight = serializers.DecimalField(max_digits=10, decimal_places=3, min_value=Decimal('0'), default=Decimal('0'))
    break_quantity = serializers.IntegerField(min_value=0, default=0)
    break_weight = serializers.DecimalField(max_digits=10, decimal_places=3, min_value=Decimal('0'), default=Decimal('0'))


class QualityCheckSerializer(serializers.Serializer):
    measured_weight = serializers.DecimalField(max_digits=10, decimal_places=3)
    passed = serializers.BooleanField()
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    gold_usage = GoldUsageSerializer(many=True, required=False, default=list)
    diamond_usage = StoneUsageSerializer(many=True, required=False, default=list)
    colored_stone_usage = StoneUsageSerializer(many=True, required=False, default=list)

    def validate_measured_weight(self, value):
        if value <= 0:
            raise serializers.ValidationError('Measured weight must be greater than 0.')
        return value


class AddJobSerializer(serializers.Serializer):
    sku = serializers.SlugRelatedField(slug_field='sku_id', queryset=SKU.objects.all())
    size = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        errors = validate_size(attrs['sku'].category, attrs.get('size'))
        if errors:
            raise serializers.ValidationError({'size': errors})
        return attrs
