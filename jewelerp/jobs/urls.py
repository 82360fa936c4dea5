from django.urls import path
from . import views

urlpatterns = [
    path('jobs/', views.job_list, name='job-list'),
    path('jobs/workflow/', views.workflow_reference, name='job-workflow'),
    path('orders/<str:order_id>/jobs/', views.order_job_list, name='order-job-list'),
    path('jobs/<str:job_id>/', views.job_detail, name='job-detail'),
    path('jobs/<str:job_id>/history/', views.job_history, name='job-history'),
    path('jobs/<str:job_id>/sticker/', views.job_sticker, name='job-sticker'),

    # Phase actions
    path('jobs/<str:job_id>/create-bag/', views.job_create_bag, name='job-create-bag'),
    path('jobs/<str:job_id>/select-stones/', views.job_select_stones, name='job-select-stones'),
    path('jobs/<str:job_id>/select-diamonds/', views.job_select_diamonds, name='job-select-diamonds'),
    path('jobs/<str:job_id>/send-to-manufacturer/', views.job_send_to_manufacturer, name='job-send-to-manufacturer'),
    path('jobs/<str:job_id>/advance-manufacturing/', views.job_advance_manufacturing, name='job-advance-manufacturing'),
    path('jobs/<str:job_id>/quality-check/', views.job_quality_check, name='job-quality-check'),
    path('jobs/<str:job_id>/complete/', views.job_complete, name='job-complete'),
]
