from django.contrib import admin
from django.utils.html import format_html

from .models import Bank, BankAccount, BankTransaction, StationWallet, WalletTransaction


@admin.register(Bank)
class BankAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'swift_code', 'is_active']
    list_filter = ['is_active']
    search_fields = ['name', 'code']


@admin.register(BankAccount)
class BankAccountAdmin(admin.ModelAdmin):
    list_display = ['account_number', 'account_name', 'bank', 'company', 'currency', 'current_balance', 'is_active']
    list_filter = ['is_active', 'bank', 'company']
    search_fields = ['account_number', 'account_name']
    list_select_related = ['bank', 'company']
    readonly_fields = ['current_balance', 'created_at', 'updated_at']


class WalletTransactionInline(admin.TabularInline):
    model = WalletTransaction
    extra = 0
    can_delete = False
    fields = ['created_at', 'direction', 'source', 'amount', 'balance_after', 'reference']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(StationWallet)
class StationWalletAdmin(admin.ModelAdmin):
    list_display = ['station', 'current_balance', 'min_balance', 'updated_at']
    search_fields = ['station__name', 'station__code']
    list_select_related = ['station']
    readonly_fields = ['current_balance', 'created_at', 'updated_at']
    inlines = [WalletTransactionInline]


@admin.register(BankTransaction)
class BankTransactionAdmin(admin.ModelAdmin):
    list_display = [
        'transaction_date', 'transaction_type', 'transaction_mode', 'amount',
        'bank_account', 'station', 'status_badge',
    ]
    list_filter = ['status', 'transaction_type', 'transaction_mode', 'company']
    search_fields = ['reference', 'description']
    list_select_related = ['bank_account__bank', 'station']
    date_hierarchy = 'transaction_date'
    readonly_fields = [
        'amount', 'previous_balance', 'new_balance', 'status',
        'recorded_by', 'approved_by', 'approved_at', 'created_at', 'updated_at',
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
