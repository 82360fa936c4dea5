from django.contrib import admin
from .models import SKU


@admin.register(SKU)
class SKUAdmin(admin.ModelAdmin):
    list_display = ['sku_id', 'name', 'category', 'collection', 'gold_type', 'stone_type', 'size', 'created_at']
    list_filter = ['category', 'gold_type', 'collection']
    search_fields = ['sku_id', 'name']
    readonly_fields = ['sku_id', 'created_at', 'updated_at']
