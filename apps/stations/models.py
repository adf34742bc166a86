# ==========================================
# apps/stations/models.py
# ==========================================

from django.conf import settings
from django.db import models
import uuid


class Company(models.Model):
    """Fuel station chain operator."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200, unique=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=30, blank=True)
    currency = models.CharField(max_length=3, default=settings.DEFAULT_CURRENCY)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'companies'
        ordering = ['name']
        verbose_name_plural = 'companies'

    def __str__(self):
        return self.name


class Station(models.Model):
    """A single fuel station belonging to a company."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='stations')
    name = models.CharField(max_length=200)
    code = models.CharField(max_length=20)
    location = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'stations'
        unique_together = [['company', 'code']]
        indexes = [
            models.Index(fields=['company', 'is_active']),
        ]
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.code})"


class StationAssignment(models.Model):
    """A user's working assignment at a station in a station-level role."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='station_assignments')
    station = models.ForeignKey(Station, on_delete=models.CASCADE, related_name='assignments')
    role = models.CharField(max_length=20)
    is_active = models.BooleanField(default=True)
    assigned_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assignments_made'
    )
    assigned_at = models.DateTimeField(auto_now_add=True)
    ended_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'station_assignments'
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'station'],
                condition=models.Q(is_active=True),
                name='unique_active_station_assignment',
            ),
        ]
        indexes = [
            models.Index(fields=['station', 'role', 'is_active']),
            models.Index(fields=['user', 'is_active']),
        ]
        ordering = ['-assigned_at']

    def __str__(self):
        return f"{self.user.email} @ {self.station.name} ({self.role})"
