from django.urls import path, include
from rest_framework.routers import DefaultRouter

from . import views

app_name = 'stations'

router = DefaultRouter()
router.register(r'companies', views.CompanyViewSet, basename='company')
router.register(r'stations', views.StationViewSet, basename='station')
router.register(r'user-assignments', views.StationAssignmentViewSet, basename='assignment')

urlpatterns = [
    # Assignment lookups by user
    path('user-assignments/user/<uuid:user_id>/', views.user_assignments, name='user-assignments'),
    path('user-assignments/user/<uuid:user_id>/stations/', views.user_stations, name='user-stations'),
    path('user-assignments/user/<uuid:user_id>/current-station/', views.user_current_station,
         name='user-current-station'),
    path('user-assignments/user/<uuid:user_id>/station/<uuid:station_id>/', views.user_station_assignments,
         name='user-station-assignments'),

    # Assignment lookups by station
    path('user-assignments/station/<uuid:station_id>/', views.station_assignments, name='station-assignments'),
    path('user-assignments/station/<uuid:station_id>/users/', views.station_users, name='station-users'),
    path('user-assignments/station/<uuid:station_id>/summary/', views.station_users_summary,
         name='station-users-summary'),

    path('', include(router.urls)),
]
