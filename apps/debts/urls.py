from django.urls import path, include
from rest_framework.routers import DefaultRouter

from . import views

app_name = 'debts'

router = DefaultRouter()
router.register(r'debtors', views.DebtorViewSet, basename='debtor')
router.register(r'transactions', views.DebtorTransactionViewSet, basename='transaction')
router.register(r'transfers', views.TransferViewSet, basename='transfer')

urlpatterns = [
    path('debts/', views.record_debt, name='debt-record'),
    path('settlements/cash/', views.cash_settlement, name='settlement-cash'),
    path('settlements/cash/bulk/', views.bulk_cash_settlement, name='settlement-cash-bulk'),
    path('settlements/bank/', views.bank_settlement, name='settlement-bank'),
    path('settlements/cross-station/', views.cross_station_settlement, name='settlement-cross-station'),
    path('settlements/preview-allocation/', views.preview_allocation, name='settlement-preview'),
    path('transfers/electronic/', views.electronic_transfer, name='transfer-electronic'),
    path('write-offs/', views.write_off, name='write-off'),
    path('payment-methods/', views.payment_methods, name='payment-methods'),
    path('bank-accounts/', views.bank_accounts, name='bank-accounts'),
    path('reports/summary/', views.debtors_summary, name='report-summary'),
    path('reports/aging/', views.aging_report, name='report-aging'),
    path('reports/settlement-activity/', views.settlement_activity, name='report-settlement-activity'),
    path('reports/settlement-analytics/', views.settlement_analytics, name='report-settlement-analytics'),
    path('', include(router.urls)),
]
