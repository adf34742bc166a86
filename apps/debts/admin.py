from django.contrib import admin
from django.utils.html import format_html

from .models import AccountTransfer, Debtor, DebtorTransaction, StationDebtorAccount


class StationDebtorAccountInline(admin.TabularInline):
    model = StationDebtorAccount
    extra = 0
    can_delete = False
    fields = ['station', 'current_debt', 'total_debited', 'total_credited', 'last_transaction_at']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Debtor)
class DebtorAdmin(admin.ModelAdmin):
    list_display = ['name', 'phone', 'debtor_type', 'category', 'company', 'credit_limit', 'is_active']
    list_filter = ['debtor_type', 'category', 'is_active', 'company']
    search_fields = ['name', 'phone', 'email', 'tax_id']
    list_select_related = ['company']
    readonly_fields = ['name_normalized', 'created_by', 'created_at', 'updated_at']
    inlines = [StationDebtorAccountInline]


@admin.register(StationDebtorAccount)
class StationDebtorAccountAdmin(admin.ModelAdmin):
    list_display = ['debtor', 'station', 'current_debt', 'total_debited', 'total_credited', 'last_transaction_at']
    search_fields = ['debtor__name', 'debtor__phone', 'station__name']
    list_select_related = ['debtor', 'station']
    readonly_fields = ['current_debt', 'total_debited', 'total_credited', 'last_transaction_at']


@admin.register(DebtorTransaction)
class DebtorTransactionAdmin(admin.ModelAdmin):
    list_display = ['transaction_date', 'account', 'direction', 'category', 'amount', 'balance_after']
    list_filter = ['direction', 'category']
    search_fields = ['account__debtor__name', 'payment_reference', 'vehicle_plate']
    list_select_related = ['account__debtor', 'account__station']
    date_hierarchy = 'transaction_date'

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(AccountTransfer)
class AccountTransferAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'debtor', 'station', 'category', 'payment_method', 'amount', 'status_badge']
    list_filter = ['status', 'category', 'payment_method', 'company']
    search_fields = ['debtor__name', 'payment_reference', 'description']
    list_select_related = ['debtor', 'station']
    readonly_fields = [
        'amount', 'status', 'allocations', 'bank_transaction', 'reversal_of',
        'recorded_by', 'completed_at', 'created_at', 'updated_at',
    ]

    def status_badge(self, obj):
        colors = {
            'PENDING': '#ffc107',
            'COMPLETED': '#28a745',
            'CANCELLED': '#6c757d',
        }
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 10px; border-radius: 3px;">{}</span>',
            colors.get(obj.status, '#6c757d'),
            obj.get_status_display()
        )
    status_badge.short_description = 'Status'
