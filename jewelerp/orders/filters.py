import django_filters
from django.db.models import Q

from jewelerp.jobs.workflow import ORDER_STATUS_CHOICES
from .models import Order


class OrderFilter(django_filters.FilterSet):
    """?status=&order_type=&customer=&date_from=&date_to=&search=; dates apply to the delivery date"""
    status = django_filters.ChoiceFilter(choices=ORDER_STATUS_CHOICES)
    order_type = django_filters.ChoiceFilter(choices=Order.ORDER_TYPE_CHOICES)
    customer = django_filters.CharFilter(field_name='customer_name', lookup_expr='icontains')
    date_from = django_filters.DateFilter(field_name='delivery_date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='delivery_date', lookup_expr='lte')
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = Order
        fields = ['status', 'order_type', 'customer', 'date_from', 'date_to', 'search']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(order_id__icontains=value)
            | Q(customer_name__icontains=value)
            | Q(customer_id__icontains=value)
            | Q(items__sku__sku_id__icontains=value)
        ).distinct()
