from django.urls import path
from .views import order_list_create, order_predicted_number, order_detail

urlpatterns = [
    path('orders/', order_list_create, name='order-list-create'),
    path('orders/predicted-number/', order_predicted_number, name='order-predicted-number'),
    path('orders/<str:order_id>/', order_detail, name='order-detail'),
]
