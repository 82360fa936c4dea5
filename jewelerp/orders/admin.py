from django.contrib import admin
from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    raw_id_fields = ['sku']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_id', 'order_type', 'customer_name', 'production_date', 'delivery_date', 'status', 'created_at']
    list_filter = ['status', 'order_type']
    search_fields = ['order_id', 'customer_name', 'customer_id']
    readonly_fields = ['order_id', 'created_at', 'updated_at']
    inlines = [OrderItemInline]
