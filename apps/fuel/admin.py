from django.contrib import admin
from django.utils.html import format_html

from .models import FuelCategory, FuelProduct, FuelSubType


class FuelSubTypeInline(admin.TabularInline):
    model = FuelSubType
    extra = 0
    fields = ['name', 'code', 'is_active']


class FuelProductInline(admin.TabularInline):
    model = FuelProduct
    extra = 0
    fields = ['name', 'fuel_code', 'density', 'octane_rating', 'min_selling_price', 'max_selling_price', 'is_active']


@admin.register(FuelCategory)
class FuelCategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'company', 'color_swatch', 'typical_density', 'hazard_class', 'is_active']
    list_filter = ['is_active', 'company']
    search_fields = ['name', 'code']
    inlines = [FuelSubTypeInline]

    def color_swatch(self, obj):
        return format_html(
            '<span style="background: {}; padding: 3px 12px; border-radius: 4px;">&nbsp;</span> {}',
            obj.color,
            obj.color,
        )
    color_swatch.short_description = 'Colour'


@admin.register(FuelSubType)
class FuelSubTypeAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'category', 'is_active']
    list_filter = ['is_active', 'category']
    search_fields = ['name', 'code']
    list_select_related = ['category']
    inlines = [FuelProductInline]


@admin.register(FuelProduct)
class FuelProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'fuel_code', 'subtype', 'density', 'octane_rating', 'price_band', 'is_active']
    list_filter = ['is_active', 'subtype__category']
    search_fields = ['name', 'fuel_code']
    list_select_related = ['subtype__category']

    def price_band(self, obj):
        if obj.min_selling_price is None and obj.max_selling_price is None:
            return '-'
        return f"{obj.min_selling_price or '-'} - {obj.max_selling_price or '-'}"
    price_band.short_description = 'Price band'
