import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.fuel.models import FuelCategory, FuelProduct, FuelSubType
from apps.stations.models import Company, Station, StationAssignment


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def company(db):
    return Company.objects.create(name='Highway Fuels')


@pytest.fixture
def other_company(db):
    return Company.objects.create(name='Rival Petroleum')


@pytest.fixture
def station(company):
    return Station.objects.create(company=company, name='Thika Road', code='THK')


@pytest.fixture
def company_admin(company):
    return User.objects.create_user(
        email='admin@highway.example.com',
        password='TestPass123!',
        role=UserRole.COMPANY_ADMIN,
        company=company,
    )


@pytest.fixture
def attendant(company, station):
    user = User.objects.create_user(
        email='attendant@highway.example.com',
        password='TestPass123!',
        role=UserRole.ATTENDANT,
        company=company,
    )
    StationAssignment.objects.create(user=user, station=station, role=UserRole.ATTENDANT)
    return user


@pytest.fixture
def admin_client(company_admin):
    return _client_for(company_admin)


@pytest.fixture
def attendant_client(attendant):
    return _client_for(attendant)


@pytest.fixture
def petrol(company):
    return FuelCategory.objects.create(
        company=company,
        name='Petrol',
        code='PET',
        typical_density=Decimal('0.740'),
        color='#FF0000',
        hazard_class='Class 3',
    )


@pytest.fixture
def super_grade(petrol):
    return FuelSubType.objects.create(category=petrol, name='Super', code='SUP')


@pytest.fixture
def super95(super_grade):
    return FuelProduct.objects.create(
        subtype=super_grade,
        name='Super 95',
        fuel_code='PMS95',
        octane_rating=Decimal('95.0'),
        min_selling_price=Decimal('180.00'),
        max_selling_price=Decimal('195.00'),
    )


@pytest.fixture
def foreign_category(other_company):
    return FuelCategory.objects.create(
        company=other_company,
        name='Diesel',
        code='DSL',
        typical_density=Decimal('0.850'),
        color='#0047AB',
        hazard_class='Class 3',
    )
