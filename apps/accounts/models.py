from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.db import models
import uuid


class UserRole(models.TextChoices):
    SUPER_ADMIN = 'SUPER_ADMIN', 'Super Admin'
    COMPANY_ADMIN = 'COMPANY_ADMIN', 'Company Admin'
    STATION_MANAGER = 'STATION_MANAGER', 'Station Manager'
    SUPERVISOR = 'SUPERVISOR', 'Supervisor'
    ATTENDANT = 'ATTENDANT', 'Attendant'


# Roles that work at stations and therefore need station assignments
STATION_ROLES = (UserRole.STATION_MANAGER, UserRole.SUPERVISOR, UserRole.ATTENDANT)


class UserStatus(models.TextChoices):
    ACTIVE = 'ACTIVE', 'Active'
    INACTIVE = 'INACTIVE', 'Inactive'
    SUSPENDED = 'SUSPENDED', 'Suspended'


class UserManager(BaseUserManager):
    """Custom user manager for email-based authentication."""

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('Email is required')

        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', UserRole.SUPER_ADMIN)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True')

        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """Back office user, authenticated by email."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True, max_length=255, db_index=True)
    first_name = models.CharField(max_length=100, blank=True)
    last_name = models.CharField(max_length=100, blank=True)
    phone = models.CharField(max_length=30, blank=True)

    role = models.CharField(max_length=20, choices=UserRole.choices, default=UserRole.ATTENDANT)
    status = models.CharField(max_length=20, choices=UserStatus.choices, default=UserStatus.ACTIVE)
    company = models.ForeignKey(
        'stations.Company',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='users'
    )

    # Django admin access
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    last_login = models.DateTimeField(null=True, blank=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        db_table = 'users'
        indexes = [
            models.Index(fields=['company', 'role']),
            models.Index(fields=['status']),
        ]
        ordering = ['first_name', 'last_name', 'email']

    def __str__(self):
        return self.email

    def get_full_name(self):
        full_name = f"{self.first_name} {self.last_name}".strip()
        return full_name or self.email.split('@')[0]

    @property
    def is_super_admin(self):
        return self.role == UserRole.SUPER_ADMIN

    @property
    def is_company_admin(self):
        return self.role == UserRole.COMPANY_ADMIN

    @property
    def has_station_role(self):
        return self.role in STATION_ROLES

    def station_ids(self):
        """IDs of stations where the user holds an active assignment."""
        return list(
            self.station_assignments.filter(is_active=True).values_list('station_id', flat=True)
        )

    def can_access_company(self, company_id):
        if self.is_super_admin:
            return True
        return company_id is not None and str(self.company_id) == str(company_id)

    def can_access_station(self, station):
        """Company admins see every station of their company; station staff only their own."""
        if self.is_super_admin:
            return True
        if not self.can_access_company(station.company_id):
            return False
        if self.is_company_admin:
            return True
        return self.station_assignments.filter(station=station, is_active=True).exists()

    def set_status(self, status):
        """Keep Django's is_active flag aligned with the business status."""
        self.status = status
        self.is_active = status == UserStatus.ACTIVE
