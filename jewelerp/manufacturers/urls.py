from django.urls import path
from .views import manufacturer_list_create, manufacturer_detail

urlpatterns = [
    path('manufacturers/', manufacturer_list_create, name='manufacturer-list-create'),
    path('manufacturers/<int:pk>/', manufacturer_detail, name='manufacturer-detail'),
]
