from django.db import transaction
from rest_framework import serializers
from .models import StoneLot, DiamondLot, StoneAllocation, DiamondAllocation

LOT_FIELDS = [
    'id', 'lot_number', 'quantity', 'weight', 'available_quantity', 'available_weight',
    'allocated_quantity', 'allocated_weight', 'price_per_carat', 'supplier', 'received_date',
    'status', 'remarks', 'created_at', 'updated_at',
]
LOT_READ_ONLY_FIELDS = ['available_quantity', 'available_weight', 'status', 'created_at', 'updated_at']


class LotSerializerMixin:
    """Duplicate lot numbers get a readable message; totals seed the available amounts"""
    lot_label = 'lot'

    def validate_lot_number(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Lot Number is required.')
        queryset = self.Meta.model.objects.filter(lot_number=value)
        if self.instance is not None:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError(f'A {self.lot_label} with Lot Number "{value}" already exists.')
        return value

    def validate(self, attrs):
        if self.instance is not None and ('quantity' in attrs or 'weight' in attrs):
            allocated_quantity = self.instance.allocated_quantity
            allocated_weight = self.instance.allocated_weight
            if attrs.get('quantity', self.instance.quantity) < allocated_quantity:
                raise serializers.ValidationError({'quantity': f'{allocated_quantity} already allocated to jobs.'})
            if attrs.get('weight', self.instance.weight) < allocated_weight:
                raise serializers.ValidationError({'weight': f'{allocated_weight} ct already allocated to jobs.'})
        return attrs

    def create(self, validated_data):
        validated_data['available_quantity'] = validated_data.get('quantity', 0)
        validated_data['available_weight'] = validated_data.get('weight', 0)
        lot = self.Meta.model(**validated_data)
        lot.refresh_status()
        lot.save()
        return lot

    def update(self, instance, validated_data):
        with transaction.atomic():
            # Availability comes from the locked row, not from `instance`
            locked = self.Meta.model.objects.select_for_update().get(pk=instance.pk)
            allocated_quantity = locked.allocated_quantity
            allocated_weight = locked.allocated_weight
            quantity = validated_data.get('quantity', locked.quantity)
            weight = validated_data.get('weight', locked.weight)
            if quantity < allocated_quantity:
                raise serializers.ValidationError({'quantity': f'{allocated_quantity} already allocated to jobs.'})
            if weight < allocated_weight:
                raise serializers.ValidationError({'weight': f'{allocated_weight} ct already allocated to jobs.'})

            for attr, value in validated_data.items():
                setattr(instance, attr, value)
            instance.quantity = quantity
            instance.weight = weight
            instance.available_quantity = quantity - allocated_quantity
            instance.available_weight = weight - allocated_weight
            instance.refresh_status()
            instance.save()
        return instance


class StoneLotSerializer(LotSerializerMixin, serializers.ModelSerializer):
    lot_label = 'stone lot'
    allocated_quantity = serializers.IntegerField(read_only=True)
    allocated_weight = serializers.DecimalField(max_digits=10, decimal_places=3, read_only=True)

    class Meta:
        model = StoneLot
        fields = LOT_FIELDS + ['stone_type', 'shape', 'quality', 'type', 'location', 'stone_size']
        read_only_fields = LOT_READ_ONLY_FIELDS
        extra_kwargs = {'lot_number': {'validators': []}}


class DiamondLotSerializer(LotSerializerMixin, serializers.ModelSerializer):
    lot_label = 'diamond lot'
    allocated_quantity = serializers.IntegerField(read_only=True)
    allocated_weight = serializers.DecimalField(max_digits=10, decimal_places=3, read_only=True)

    class Meta:
        model = DiamondLot
        fields = LOT_FIELDS + ['shape', 'size', 'quality', 'a_type', 'stonegroup', 'price']
        read_only_fields = LOT_READ_ONLY_FIELDS + ['stonegroup']
        extra_kwargs = {'lot_number': {'validators': []}}


class StoneAllocationSerializer(serializers.ModelSerializer):
    job_id = serializers.CharField(source='job.job_id', read_only=True)
    lot_number = serializers.CharField(source='lot.lot_number', read_only=True)
    stone_type = serializers.CharField(source='lot.stone_type', read_only=True)

    class Meta:
        model = StoneAllocation
        fields = ['id', 'job_id', 'lot_number', 'stone_type', 'quantity', 'weight', 'remarks', 'created_at']


class DiamondAllocationSerializer(serializers.ModelSerializer):
    job_id = serializers.CharField(source='job.job_id', read_only=True)
    lot_number = serializers.CharField(source='lot.lot_number', read_only=True)

    class Meta:
        model = DiamondAllocation
        fields = ['id', 'job_id', 'lot_number', 'karat', 'clarity', 'quantity', 'weight', 'remarks', 'created_at']
