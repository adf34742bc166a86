from django.contrib import admin
from django.utils.html import format_html

from .models import Company, Station, StationAssignment


def _active_badge(is_active):
    if is_active:
        return format_html(
            '<span style="background: #6B8E5E; color: white; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">Active</span>'
        )
    return format_html(
        '<span style="background: #B85C5C; color: white; padding: 3px 8px; '
        'border-radius: 10px; font-size: 11px;">Inactive</span>'
    )


class StationInline(admin.TabularInline):
    model = Station
    extra = 0
    fields = ['name', 'code', 'location', 'is_active']


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ['name', 'email', 'currency', 'station_count', 'status_badge', 'created_at']
    list_filter = ['is_active', 'currency']
    search_fields = ['name', 'email']
    inlines = [StationInline]

    def station_count(self, obj):
        return obj.stations.count()
    station_count.short_description = 'Stations'

    def status_badge(self, obj):
        return _active_badge(obj.is_active)
    status_badge.short_description = 'Status'
    status_badge.admin_order_field = 'is_active'


@admin.register(Station)
class StationAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'company', 'location', 'status_badge']
    list_filter = ['is_active', 'company']
    search_fields = ['name', 'code', 'location']
    list_select_related = ['company']

    def status_badge(self, obj):
        return _active_badge(obj.is_active)
    status_badge.short_description = 'Status'
    status_badge.admin_order_field = 'is_active'


@admin.register(StationAssignment)
class StationAssignmentAdmin(admin.ModelAdmin):
    list_display = ['user', 'station', 'role', 'status_badge', 'assigned_at', 'ended_at']
    list_filter = ['role', 'is_active', 'station__company']
    search_fields = ['user__email', 'station__name', 'station__code']
    list_select_related = ['user', 'station']
    raw_id_fields = ['user', 'assigned_by']
    readonly_fields = ['assigned_at', 'ended_at']

    def status_badge(self, obj):
        return _active_badge(obj.is_active)
    status_badge.short_description = 'Status'
    status_badge.admin_order_field = 'is_active'
