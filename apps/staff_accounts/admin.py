from django.contrib import admin
from django.utils.html import format_html

from .models import SalaryPayment, Shortage, StaffAccount, StaffTransaction

BADGE = '<span style="background-color: {}; color: white; padding: 3px 10px; border-radius: 3px;">{}</span>'


@admin.register(StaffAccount)
class StaffAccountAdmin(admin.ModelAdmin):
    list_display = [
        'user', 'station', 'salary_amount', 'current_balance', 'outstanding_shortages',
        'payroll_method', 'next_payment_date', 'is_active', 'is_on_hold',
    ]
    list_filter = ['is_active', 'is_on_hold', 'payroll_method', 'payment_schedule', 'station']
    search_fields = ['user__email', 'user__first_name', 'user__last_name', 'station__name']
    list_select_related = ['user', 'station']
    readonly_fields = [
        'current_balance', 'outstanding_shortages', 'outstanding_advances', 'total_shortages',
        'total_advances', 'total_paid', 'last_payment_date', 'last_shortage_date',
        'created_by', 'created_at', 'updated_at',
    ]


@admin.register(StaffTransaction)
class StaffTransactionAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'staff_account', 'transaction_type', 'amount', 'balance_after', 'status_badge']
    list_filter = ['status', 'transaction_type', 'balance_effect']
    search_fields = ['staff_account__user__email', 'reference_number', 'description']
    list_select_related = ['staff_account__user', 'staff_account__station']

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def status_badge(self, obj):
        colors = {
            'PENDING': '#ffc107',
            'APPROVED': '#17a2b8',
            'REJECTED': '#dc3545',
            'SETTLED': '#28a745',
        }
        return format_html(BADGE, colors.get(obj.status, '#6c757d'), obj.get_status_display())
    status_badge.short_description = 'Status'


@admin.register(Shortage)
class ShortageAdmin(admin.ModelAdmin):
    list_display = ['shortage_date', 'staff_account', 'original_amount', 'amount_remaining', 'is_fully_deducted']
    list_filter = ['is_fully_deducted']
    search_fields = ['staff_account__user__email', 'reference_number', 'description']
    list_select_related = ['staff_account__user']
    readonly_fields = ['original_amount', 'amount_deducted', 'amount_remaining', 'is_fully_deducted', 'settled_at']


@admin.register(SalaryPayment)
class SalaryPaymentAdmin(admin.ModelAdmin):
    list_display = ['period_start', 'period_end', 'staff_account', 'station', 'gross_salary', 'net_salary',
                    'status_badge']
    list_filter = ['status', 'payment_method', 'payment_source', 'station']
    search_fields = ['staff_account__user__email', 'staff_account__user__first_name', 'description']
    list_select_related = ['staff_account__user', 'station']
    date_hierarchy = 'payment_date'
    readonly_fields = [
        'gross_salary', 'shortage_deductions', 'advance_deductions', 'other_deductions', 'bonuses_added',
        'total_deductions', 'net_salary', 'amount_paid', 'shortage_allocations', 'wallet_transaction',
        'bank_transaction', 'approved_by', 'approved_at', 'processed_by', 'processed_at',
    ]

    def status_badge(self, obj):
        colors = {
            'PENDING': '#ffc107',
            'CALCULATED': '#17a2b8',
            'APPROVED': '#007bff',
            'PAID': '#28a745',
            'FAILED': '#dc3545',
            'CANCELLED': '#6c757d',
        }
        return format_html(BADGE, colors.get(obj.status, '#6c757d'), obj.get_status_display())
    status_badge.short_description = 'Status'
