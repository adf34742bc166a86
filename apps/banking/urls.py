from django.urls import path, include
from rest_framework.routers import DefaultRouter

from . import views

app_name = 'banking'

router = DefaultRouter()
router.register(r'banks', views.BankViewSet, basename='bank')
router.register(r'bank-accounts', views.BankAccountViewSet, basename='bank-account')
router.register(r'transactions', views.BankTransactionViewSet, basename='transaction')

urlpatterns = [
    path('deposits/', views.create_deposit, name='deposit-create'),
    path('withdrawals/', views.create_withdrawal, name='withdrawal-create'),
    path('wallets/current/', views.current_station_wallet, name='wallet-current'),
    path('wallets/<uuid:station_id>/', views.station_wallet, name='wallet-detail'),
    path('company/summary/', views.company_summary, name='company-summary'),
    path('company/stats/', views.company_stats, name='company-stats'),
    path('reports/transactions/', views.transactions_report, name='report-transactions'),
    path('reports/daily-summary/', views.daily_banking_summary, name='report-daily-summary'),
    path('', include(router.urls)),
]
