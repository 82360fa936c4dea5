from rest_framework import serializers
from .models import SKU
from .validators import validate_size


class SKUSerializer(serializers.ModelSerializer):
    gold_code = serializers.CharField(read_only=True)
    stone_code = serializers.CharField(read_only=True)

    class Meta:
        model = SKU
        fields = [
            'id', 'sku_id', 'name', 'category', 'collection', 'size', 'gold_type', 'gold_code',
            'stone_type', 'stone_code', 'diamond_type', 'weight', 'image_url', 'created_at', 'updated_at',
        ]
        read_only_fields = ['sku_id', 'image_url', 'created_at', 'updated_at']

    def validate_weight(self, value):
        if value is not None and value <= 0:
            raise serializers.ValidationError('Weight must be greater than 0.')
        return value

    def validate(self, attrs):
        category = attrs.get('category', getattr(self.instance, 'category', None))
        size = attrs.get('size', getattr(self.instance, 'size', None))
        errors = validate_size(category, size)
        if errors:
            raise serializers.ValidationError({'size': errors})
        return attrs


class SKUBatchSerializer(serializers.Serializer):
    """A set of variants that share one SKU number"""
    skus = SKUSerializer(many=True)

    def validate_skus(self, value):
        if not value:
            raise serializers.ValidationError('At least one SKU is required.')
        return value
