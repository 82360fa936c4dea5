from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from jewelerp.jobs.workflow import ORDER_STATUS_CHOICES, ORDER_STATUS_NEW

# Deliveries closer than this to the production date are flagged
DELIVERY_GAP_WARNING_DAYS = 7


class Order(models.Model):
    ORDER_TYPE_STOCK = 'Stock'
    ORDER_TYPE_CUSTOMER = 'Customer'
    ORDER_TYPE_CHOICES = [
        (ORDER_TYPE_STOCK, 'Stock'),
        (ORDER_TYPE_CUSTOMER, 'Customer'),
    ]

    order_id = models.CharField(max_length=20, unique=True, db_index=True, help_text='Display id, e.g. O-0042')
    order_type = models.CharField(max_length=20, choices=ORDER_TYPE_CHOICES, default=ORDER_TYPE_CUSTOMER)
    customer_name = models.CharField(max_length=200, blank=True)
    customer_id = models.CharField(max_length=100, blank=True)
    production_date = models.DateField()
    delivery_date = models.DateField(db_index=True)
    # Set explicitly by API clients; never aggregated from job statuses
    status = models.CharField(max_length=20, choices=ORDER_STATUS_CHOICES, default=ORDER_STATUS_NEW, db_index=True)
    action = models.CharField(max_length=100, blank=True)
    remarks = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.order_id

    @property
    def days_to_due(self):
        if not self.delivery_date:
            return None
        return (self.delivery_date - timezone.localdate()).days

    @property
    def delivery_gap_warning(self):
        if not self.delivery_date or not self.production_date:
            return False
        return (self.delivery_date - self.production_date).days < DELIVERY_GAP_WARNING_DAYS

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at']


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    sku = models.ForeignKey('catalog.SKU', on_delete=models.PROTECT, related_name='order_items')
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    size = models.CharField(max_length=20, blank=True)
    remarks = models.TextField(blank=True)
    individual_production_date = models.DateField(null=True, blank=True)
    individual_delivery_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.order.order_id} - {self.sku.sku_id} x{self.quantity}"

    @property
    def production_date(self):
        return self.individual_production_date or self.order.production_date

    @property
    def delivery_date(self):
        return self.individual_delivery_date or self.order.delivery_date

    class Meta:
        db_table = 'order_items'
        ordering = ['id']
