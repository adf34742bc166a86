# ==========================================
# apps/accounts/admin.py
# ==========================================

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html

from apps.stations.models import StationAssignment
from .models import User, UserStatus


STATUS_COLORS = {
    UserStatus.ACTIVE: '#6B8E5E',
    UserStatus.INACTIVE: '#999999',
    UserStatus.SUSPENDED: '#B85C5C',
}


class StationAssignmentInline(admin.TabularInline):
    model = StationAssignment
    fk_name = 'user'
    extra = 0
    fields = ['station', 'role', 'is_active', 'assigned_at', 'ended_at']
    readonly_fields = ['assigned_at', 'ended_at']


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin interface for back office users.

    Users log in by email; role and status drive what they can do in the
    dashboards. Station assignments are editable inline.
    """

    list_display = [
        'email',
        'get_full_name',
        'role',
        'company',
        'status_badge',
        'created_at',
        'last_login',
    ]

    list_filter = [
        'role',
        'status',
        'company',
        'is_staff',
        'created_at',
    ]

    search_fields = [
        'email',
        'first_name',
        'last_name',
        'phone',
    ]

    ordering = ['-created_at']
    date_hierarchy = 'created_at'

    fieldsets = (
        ('Basic Information', {
            'fields': ('email', 'first_name', 'last_name', 'phone', 'password')
        }),
        ('Organisation', {
            'fields': ('company', 'role', 'status'),
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
            'classes': ('collapse',),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'last_login'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        ('Create User', {
            'classes': ('wide',),
            'fields': ('email', 'first_name', 'last_name', 'company', 'role', 'password1', 'password2'),
        }),
    )

    readonly_fields = ['created_at', 'last_login']
    filter_horizontal = ['groups', 'user_permissions']
    inlines = [StationAssignmentInline]

    def status_badge(self, obj):
        """Display user status as colored badge."""
        return format_html(
            '<span style="background: {}; color: white; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            STATUS_COLORS.get(obj.status, '#ccc'),
            obj.get_status_display(),
        )
    status_badge.short_description = 'Status'
    status_badge.admin_order_field = 'status'

    actions = ['activate_users', 'suspend_users']

    @admin.action(description='Activate selected users')
    def activate_users(self, request, queryset):
        count = queryset.update(status=UserStatus.ACTIVE, is_active=True)
        self.message_user(request, f'Activated {count} user(s).')

    @admin.action(description='Suspend selected users')
    def suspend_users(self, request, queryset):
        """Suspend selected users (excludes superusers for safety)."""
        safe_queryset = queryset.filter(is_superuser=False)
        count = safe_queryset.update(status=UserStatus.SUSPENDED, is_active=False)
        skipped = queryset.count() - count
        msg = f'Suspended {count} user(s).'
        if skipped:
            msg += f' Skipped {skipped} superuser(s) for safety.'
        self.message_user(request, msg)

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related('company')
