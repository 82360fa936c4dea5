from django.urls import path
from . import views

urlpatterns = [
    path('reports/sku-statistics/', views.sku_statistics, name='sku-statistics'),
    path('reports/phase-summary/', views.phase_summary, name='phase-summary'),
    path('reports/priority-orders/', views.priority_orders, name='priority-orders'),
    path('reports/next-task/', views.next_task, name='next-task'),
]
