"""
URL configuration for the jewelry ERP backend.

Every app contributes its routes under the shared `api/v1/` prefix.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "Jewelry ERP Admin Panel"
admin.site.site_title = "Jewelry ERP Admin Portal"
admin.site.index_title = "Welcome to the Jewelry Manufacturing ERP"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('jewelerp.core.urls')),
    path('api/v1/', include('jewelerp.catalog.urls')),
    path('api/v1/', include('jewelerp.manufacturers.urls')),
    path('api/v1/', include('jewelerp.lots.urls')),
    path('api/v1/', include('jewelerp.orders.urls')),
    path('api/v1/', include('jewelerp.jobs.urls')),
    path('api/v1/', include('jewelerp.reports.urls')),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
]
