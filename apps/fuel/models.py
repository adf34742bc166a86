# ==========================================
# apps/fuel/models.py
# ==========================================

from decimal import Decimal
import uuid

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class FuelCategory(models.Model):
    """Top level of the fuel catalog (Petrol, Diesel, Kerosene...)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey('stations.Company', on_delete=models.CASCADE, related_name='fuel_categories')
    name = models.CharField(max_length=100)
    code = models.CharField(max_length=20)
    description = models.TextField(blank=True)
    typical_density = models.DecimalField(
        max_digits=6,
        decimal_places=3,
        validators=[MinValueValidator(Decimal('0.001'))],
        help_text="kg/L"
    )
    color = models.CharField(max_length=7, help_text="Hex colour used on dashboards")
    hazard_class = models.CharField(max_length=50)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'fuel_categories'
        unique_together = [['company', 'code']]
        ordering = ['name']
        verbose_name_plural = 'fuel categories'

    def __str__(self):
        return self.name


class FuelSubType(models.Model):
    """A grade within a category (e.g. Super, Regular, ULSD)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    category = models.ForeignKey(FuelCategory, on_delete=models.PROTECT, related_name='subtypes')
    name = models.CharField(max_length=100)
    code = models.CharField(max_length=20)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'fuel_subtypes'
        ordering = ['category__name', 'name']

    def __str__(self):
        return f"{self.category.name} - {self.name}"

    @property
    def company_id(self):
        return self.category.company_id


class FuelProduct(models.Model):
    """A sellable fuel product with its quality parameters and price band."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    subtype = models.ForeignKey(FuelSubType, on_delete=models.PROTECT, related_name='products')
    name = models.CharField(max_length=150)
    fuel_code = models.CharField(max_length=30)
    description = models.TextField(blank=True)

    # Quality parameters
    density = models.DecimalField(
        max_digits=6,
        decimal_places=3,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.001')), MaxValueValidator(Decimal('1.5'))],
        help_text="kg/L"
    )
    octane_rating = models.DecimalField(
        max_digits=5,
        decimal_places=1,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))]
    )
    sulfur_content = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0'))],
        help_text="ppm"
    )
    quality_standards = models.JSONField(default=dict, blank=True)

    # Price band
    min_selling_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    max_selling_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'fuel_products'
        ordering = ['name']
        indexes = [
            models.Index(fields=['fuel_code']),
        ]

    def __str__(self):
        return f"{self.name} ({self.fuel_code})"

    @property
    def company_id(self):
        return self.subtype.category.company_id
