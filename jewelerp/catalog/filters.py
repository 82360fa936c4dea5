import django_filters
from django.db.models import Q
from .models import SKU


class SKUFilter(django_filters.FilterSet):
    """Filters for the SKU list: ?search=&category=&collection=&gold_type=&stone_type="""
    search = django_filters.CharFilter(method='filter_search')
    category = django_filters.CharFilter(field_name='category', lookup_expr='iexact')
    collection = django_filters.CharFilter(field_name='collection', lookup_expr='iexact')
    gold_type = django_filters.CharFilter(field_name='gold_type', lookup_expr='iexact')
    stone_type = django_filters.CharFilter(field_name='stone_type', lookup_expr='iexact')
    has_image = django_filters.BooleanFilter(method='filter_has_image')

    class Meta:
        model = SKU
        fields = ['search', 'category', 'collection', 'gold_type', 'stone_type', 'has_image']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(Q(sku_id__icontains=value) | Q(name__icontains=value))

    def filter_has_image(self, queryset, name, value):
        if value:
            return queryset.exclude(image_url='')
        return queryset.filter(image_url='')
