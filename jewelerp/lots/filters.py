import django_filters
from django.db.models import Q
from .models import StoneLot, DiamondLot, LotStatus


class LotFilter(django_filters.FilterSet):
    """?status=&search=&available=true, shared by both lot kinds"""
    status = django_filters.ChoiceFilter(choices=LotStatus.choices)
    search = django_filters.CharFilter(method='filter_search')
    available = django_filters.BooleanFilter(method='filter_available')
    supplier = django_filters.CharFilter(field_name='supplier', lookup_expr='icontains')

    search_fields = ('lot_number', 'supplier')

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        query = Q()
        for field in self.search_fields:
            query |= Q(**{f'{field}__icontains': value})
        return queryset.filter(query)

    def filter_available(self, queryset, name, value):
        if value:
            return queryset.filter(status=LotStatus.AVAILABLE, available_quantity__gt=0)
        return queryset.filter(Q(status=LotStatus.EXHAUSTED) | Q(available_quantity=0))


class StoneLotFilter(LotFilter):
    stone_type = django_filters.CharFilter(field_name='stone_type', lookup_expr='iexact')
    shape = django_filters.CharFilter(field_name='shape', lookup_expr='iexact')

    search_fields = ('lot_number', 'supplier', 'stone_type')

    class Meta:
        model = StoneLot
        fields = ['status', 'stone_type', 'shape', 'supplier']


class DiamondLotFilter(LotFilter):
    size = django_filters.CharFilter(field_name='size', lookup_expr='iexact')
    shape = django_filters.CharFilter(field_name='shape', lookup_expr='iexact')

    search_fields = ('lot_number', 'supplier', 'quality')

    class Meta:
        model = DiamondLot
        fields = ['status', 'size', 'shape', 'supplier']
