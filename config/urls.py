"""
URL configuration for the back office API.

Every resource lives under ``/api/``; the React dashboards talk to these
paths through their service modules.
"""
from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework_simplejwt.views import TokenRefreshView

from config.views import health_check

urlpatterns = [
    path('api/health/', health_check, name='health-check'),

    # Admin
    path('admin/', admin.site.urls),

    # API Documentation
    path('api/schema/', SpectacularAPIView.as_view(), name='api-schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='api-schema'), name='api-docs'),

    # Authentication
    path('api/auth/', include('apps.accounts.auth_urls')),
    path('api/auth/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    # API endpoints
    path('api/users/', include('apps.accounts.urls')),
    path('api/', include('apps.stations.urls')),
    path('api/fuel/', include('apps.fuel.urls')),
    path('api/banking/', include('apps.banking.urls')),
    path('api/debt-transfer/', include('apps.debts.urls')),
    path('api/staff-payments/', include('apps.staff_accounts.urls')),
]


# Custom error handlers
handler404 = 'config.views.error_404'
handler500 = 'config.views.error_500'
