from django.urls import path, include
from rest_framework.routers import DefaultRouter

from . import views

app_name = 'staff_accounts'

router = DefaultRouter()
router.register(r'accounts', views.StaffAccountViewSet, basename='account')
router.register(r'transactions', views.StaffTransactionViewSet, basename='transaction')
router.register(r'shortages', views.ShortageViewSet, basename='shortage')
router.register(r'salary-payments', views.SalaryPaymentViewSet, basename='salary-payment')

urlpatterns = [
    path('stations/<uuid:station_id>/accounts/', views.station_accounts, name='station-accounts'),
    path('stations/<uuid:station_id>/accounts/summary/', views.station_accounts_summary,
         name='station-accounts-summary'),
    path('stations/<uuid:station_id>/payroll/report/', views.payroll_report, name='payroll-report'),
    path('stations/<uuid:station_id>/payroll/summary/', views.payroll_summary, name='payroll-summary'),
    path('payroll/generate/', views.payroll_generate, name='payroll-generate'),
    path('payroll/process-bulk/', views.payroll_process_bulk, name='payroll-process-bulk'),
    path('', include(router.urls)),
]
