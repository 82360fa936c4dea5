from django.urls import path
from .views import stone_lot_list_create, stone_lot_detail, diamond_lot_list_create, diamond_lot_detail

urlpatterns = [
    path('stone-lots/', stone_lot_list_create, name='stone-lot-list-create'),
    path('stone-lots/<int:pk>/', stone_lot_detail, name='stone-lot-detail'),
    path('diamond-lots/', diamond_lot_list_create, name='diamond-lot-list-create'),
    path('diamond-lots/<int:pk>/', diamond_lot_detail, name='diamond-lot-detail'),
]
