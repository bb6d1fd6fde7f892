"""
URL configuration for the lagerapp project.

Every app mounts its routes under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "LagerApp Verwaltung"
admin.site.site_title = "LagerApp Admin"
admin.site.index_title = "Willkommen in der LagerApp Verwaltung"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('lagerapp.core.urls')),
    path('api/v1/', include('lagerapp.warehouses.urls')),
    path('api/v1/', include('lagerapp.suppliers.urls')),
    path('api/v1/', include('lagerapp.inventory.urls')),
    path('api/v1/', include('lagerapp.orders.urls')),
    path('api/v1/', include('lagerapp.commissions.urls')),
    path('api/v1/', include('lagerapp.labels.urls')),
    path('api/v1/', include('lagerapp.machines.urls')),
    path('api/v1/', include('lagerapp.keys.urls')),
    path('api/v1/', include('lagerapp.workwear.urls')),
    path('api/v1/', include('lagerapp.dashboard.urls')),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
]
