from django.urls import path
from .views import (
    ERPTokenObtainPairView, ERPTokenRefreshView, user_me,
    setting_list_create, setting_detail,
    audit_log_list,
)

urlpatterns = [
    path('auth/login/', ERPTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', ERPTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/me/', user_me, name='user-me'),

    # Operator settings, admin only
    path('settings/', setting_list_create, name='setting-list-create'),
    path('settings/<str:key>/', setting_detail, name='setting-detail'),

    path('audit-logs/', audit_log_list, name='audit-log-list'),
]
