from django.contrib import admin
from .models import StoneLot, DiamondLot, StoneAllocation, DiamondAllocation


class StoneAllocationInline(admin.TabularInline):
    model = StoneAllocation
    extra = 0
    readonly_fields = ['job', 'quantity', 'weight', 'remarks', 'created_by', 'created_at']
    can_delete = False


class DiamondAllocationInline(admin.TabularInline):
    model = DiamondAllocation
    extra = 0
    readonly_fields = ['job', 'karat', 'clarity', 'quantity', 'weight', 'remarks', 'created_by', 'created_at']
    can_delete = False


@admin.register(StoneLot)
class StoneLotAdmin(admin.ModelAdmin):
    list_display = ['lot_number', 'stone_type', 'shape', 'quantity', 'available_quantity', 'weight', 'available_weight', 'status']
    list_filter = ['status', 'stone_type']
    search_fields = ['lot_number', 'supplier', 'stone_type']
    readonly_fields = ['available_quantity', 'available_weight', 'created_at', 'updated_at']
    inlines = [StoneAllocationInline]


@admin.register(DiamondLot)
class DiamondLotAdmin(admin.ModelAdmin):
    list_display = ['lot_number', 'size', 'shape', 'quality', 'quantity', 'available_quantity', 'weight', 'available_weight', 'status']
    list_filter = ['status', 'size']
    search_fields = ['lot_number', 'supplier']
    readonly_fields = ['available_quantity', 'available_weight', 'stonegroup', 'created_at', 'updated_at']
    inlines = [DiamondAllocationInline]
