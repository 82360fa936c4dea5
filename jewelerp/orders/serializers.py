from collections import Counter
import logging

from django.conf import settings
from rest_framework import serializers

from jewelerp.catalog.models import SKU
from jewelerp.catalog.validators import validate_size
from jewelerp.core.cache_signals import suspend_cache_signals
from jewelerp.core.models import Sequence
from jewelerp.jobs import workflow
from jewelerp.jobs.serializers import JobSerializer
from jewelerp.jobs.services import create_jobs_for_order
from .models import Order, OrderItem

logger = logging.getLogger(__name__)

ORDER_SEQUENCE = 'order'


def format_order_id(number):
    return f"O-{number:04d}"


def get_predicted_order_id():
    """Order id the next create will receive; the sequence is not consumed"""
    return format_order_id(Sequence.peek(ORDER_SEQUENCE))


class OrderItemSerializer(serializers.ModelSerializer):
    sku = serializers.SlugRelatedField(slug_field='sku_id', queryset=SKU.objects.all())
    sku_name = serializers.CharField(source='sku.name', read_only=True)
    category = serializers.CharField(source='sku.category', read_only=True)
    image_url = serializers.CharField(source='sku.image_url', read_only=True)
    production_date = serializers.DateField(read_only=True)
    delivery_date = serializers.DateField(read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            'id', 'sku', 'sku_name', 'category', 'image_url', 'quantity', 'size', 'remarks',
            'individual_production_date', 'individual_delivery_date', 'production_date', 'delivery_date',
        ]

    def validate_quantity(self, value):
        if value < 1:
            raise serializers.ValidationError('Quantity must be at least 1.')
        return value

    def validate(self, attrs):
        sku = attrs['sku']
        errors = validate_size(sku.category, attrs.get('size'))
        if errors:
            raise serializers.ValidationError({'size': errors})

        production = attrs.get('individual_production_date')
        delivery = attrs.get('individual_delivery_date')
        if production and delivery and delivery < production:
            raise serializers.ValidationError({
                'individual_delivery_date': 'Delivery date cannot be before production date.'
            })
        return attrs


class OrderSerializer(serializers.ModelSerializer):
    """
    Order header with its items.

    Items are not a writable nested field: views pop them from the payload
    and pass them in as context['items_data'], which create() requires and
    update() treats as a full replacement when present.
    """
    items = OrderItemSerializer(many=True, read_only=True)
    created_by = serializers.CharField(source='created_by.username', read_only=True, default=None)
    days_to_due = serializers.IntegerField(read_only=True)
    delivery_gap_warning = serializers.BooleanField(read_only=True)
    job_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'order_id', 'order_type', 'customer_name', 'customer_id', 'production_date',
            'delivery_date', 'status', 'action', 'remarks', 'days_to_due', 'delivery_gap_warning',
            'job_count', 'items', 'created_by', 'created_at', 'updated_at',
        ]
        read_only_fields = ['order_id', 'created_at', 'updated_at']

    def get_job_count(self, obj):
        return obj.jobs.count()

    def validate(self, attrs):
        production = attrs.get('production_date', getattr(self.instance, 'production_date', None))
        delivery = attrs.get('delivery_date', getattr(self.instance, 'delivery_date', None))
        if production and delivery and delivery < production:
            raise serializers.ValidationError({'delivery_date': 'Delivery date cannot be before production date.'})

        order_type = attrs.get('order_type', getattr(self.instance, 'order_type', Order.ORDER_TYPE_CUSTOMER))
        customer_name = attrs.get('customer_name', getattr(self.instance, 'customer_name', ''))
        if order_type == Order.ORDER_TYPE_CUSTOMER and not (customer_name or '').strip():
            raise serializers.ValidationError({'customer_name': 'Customer name is required for customer orders.'})

        items_data = self.context.get('items_data')
        if self.instance is None and not items_data:
            raise serializers.ValidationError({'items': 'At least one item is required.'})
        if items_data is not None:
            if not isinstance(items_data, list):
                raise serializers.ValidationError({'items': 'Expected a list of items.'})
            if not items_data:
                raise serializers.ValidationError({'items': 'At least one item is required.'})
            item_serializer = OrderItemSerializer(data=items_data, many=True)
            if not item_serializer.is_valid():
                raise serializers.ValidationError({'items': item_serializer.errors})
            self._validated_items = item_serializer.validated_data
        return attrs

    def _create_items(self, order):
        return [OrderItem.objects.create(order=order, **item) for item in self._validated_items]

    def create(self, validated_data):
        if validated_data.get('order_type') == Order.ORDER_TYPE_STOCK and not validated_data.get('customer_name'):
            validated_data['customer_name'] = settings.HOUSE_CUSTOMER_NAME
        validated_data['order_id'] = format_order_id(Sequence.next_value(ORDER_SEQUENCE))
        request = self.context.get('request')
        user = getattr(request, 'user', None)

        with suspend_cache_signals():
            order = super().create(validated_data)
            items = self._create_items(order)
            jobs = create_jobs_for_order(order, items, user=user)
        logger.info(f"Created order {order.order_id} with {len(items)} item(s) and {len(jobs)} job(s)")
        return order

    def update(self, instance, validated_data):
        if validated_data.get('order_type', instance.order_type) == Order.ORDER_TYPE_STOCK \
                and 'customer_name' in validated_data and not validated_data['customer_name']:
            validated_data['customer_name'] = settings.HOUSE_CUSTOMER_NAME

        with suspend_cache_signals():
            order = super().update(instance, validated_data)
            if self.context.get('items_data') is not None:
                # Jobs outlive the items they came from; their order_item is set null
                order.items.all().delete()
                self._create_items(order)
                logger.info(f"Replaced items of order {order.order_id}")
        return order


class OrderDetailSerializer(OrderSerializer):
    jobs = JobSerializer(many=True, read_only=True)
    job_status_breakdown = serializers.SerializerMethodField()

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ['jobs', 'job_status_breakdown']

    def get_job_status_breakdown(self, obj):
        """How many jobs stand for each order status; the order's own status is not derived from this"""
        counts = Counter(workflow.order_status_for_job_status(job.status) for job in obj.jobs.all())
        return {status: counts.get(status, 0) for status in workflow.ORDER_STATUSES}
