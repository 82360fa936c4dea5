import django_filters
from django.db.models import Q

from . import workflow
from .models import Job


class JobFilter(django_filters.FilterSet):
    """
    Job list filters.

    ?phase= is resolved through the workflow map to the statuses of that
    phase, so a phase filter always agrees with each job's current_phase.
    """
    status = django_filters.ChoiceFilter(choices=workflow.JOB_STATUS_CHOICES)
    phase = django_filters.ChoiceFilter(choices=[(phase, phase) for phase in workflow.JOB_PHASES], method='filter_phase')
    order = django_filters.CharFilter(field_name='order__order_id', lookup_expr='iexact')
    manufacturer = django_filters.NumberFilter(field_name='manufacturer_id')
    sku = django_filters.CharFilter(field_name='sku__sku_id', lookup_expr='iexact')
    due_before = django_filters.DateFilter(field_name='due_date', lookup_expr='lte')
    due_after = django_filters.DateFilter(field_name='due_date', lookup_expr='gte')
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = Job
        fields = ['status', 'phase', 'order', 'manufacturer', 'sku', 'due_before', 'due_after', 'search']

    def filter_phase(self, queryset, name, value):
        return queryset.filter(status__in=workflow.statuses_for_phase(value))

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(job_id__icontains=value)
            | Q(order__order_id__icontains=value)
            | Q(order__customer_name__icontains=value)
            | Q(sku__sku_id__icontains=value)
            | Q(sku__name__icontains=value)
        )
