from django.urls import path
from .views import (
    sku_list_create, sku_batch_create, sku_predicted_number, sku_detail, sku_image,
    catalog_reference,
)

urlpatterns = [
    # SKU endpoints
    path('skus/', sku_list_create, name='sku-list-create'),
    path('skus/batch/', sku_batch_create, name='sku-batch-create'),
    path('skus/predicted-number/', sku_predicted_number, name='sku-predicted-number'),
    path('skus/<str:sku_id>/', sku_detail, name='sku-detail'),
    path('skus/<str:sku_id>/image/', sku_image, name='sku-image'),

    # Reference data
    path('catalog/reference/', catalog_reference, name='catalog-reference'),
]
