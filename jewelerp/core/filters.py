import django_filters

from .models import AuditLog


class AuditLogFilter(django_filters.FilterSet):
    action = django_filters.CharFilter(field_name='action')
    model_name = django_filters.CharFilter(field_name='model_name', lookup_expr='iexact')
    object_id = django_filters.CharFilter(field_name='object_id')
    # Order id, job id or lot number
    reference = django_filters.CharFilter(field_name='object_reference', lookup_expr='icontains')
    user = django_filters.CharFilter(field_name='user__username', lookup_expr='iexact')
    date_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')

    class Meta:
        model = AuditLog
        fields = ['action', 'model_name', 'object_id', 'reference', 'user', 'date_from', 'date_to']
