from django.contrib import admin
from .models import Job, JobHistory


class JobHistoryInline(admin.TabularInline):
    model = JobHistory
    extra = 0
    readonly_fields = ['status', 'action', 'data', 'user', 'created_at']
    can_delete = False


@admin.register(Job)
class JobAdmin(admin.ModelAdmin):
    list_display = ['job_id', 'order', 'sku', 'status', 'current_phase', 'manufacturer', 'due_date']
    list_filter = ['status', 'manufacturer']
    search_fields = ['job_id', 'order__order_id', 'sku__sku_id']
    raw_id_fields = ['order', 'order_item', 'sku', 'manufacturer']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [JobHistoryInline]

    @admin.display(description='Phase')
    def current_phase(self, obj):
        try:
            return obj.current_phase
        except ValueError:
            return 'unmapped'
