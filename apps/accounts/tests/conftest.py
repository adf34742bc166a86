import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
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
def second_station(company):
    return Station.objects.create(company=company, name='Mombasa Road', code='MSA')


@pytest.fixture
def super_admin(db):
    return User.objects.create_superuser(
        email='root@example.com',
        password='TestPass123!',
        first_name='Root',
    )


@pytest.fixture
def company_admin(company):
    return User.objects.create_user(
        email='admin@highway.example.com',
        password='TestPass123!',
        first_name='Ada',
        last_name='Admin',
        role=UserRole.COMPANY_ADMIN,
        company=company,
    )


@pytest.fixture
def manager(company, station):
    user = User.objects.create_user(
        email='manager@highway.example.com',
        password='TestPass123!',
        first_name='Mary',
        last_name='Manager',
        role=UserRole.STATION_MANAGER,
        company=company,
    )
    StationAssignment.objects.create(user=user, station=station, role=UserRole.STATION_MANAGER)
    return user


@pytest.fixture
def attendant(company, station):
    user = User.objects.create_user(
        email='attendant@highway.example.com',
        password='TestPass123!',
        first_name='Tom',
        last_name='Pump',
        phone='0711000222',
        role=UserRole.ATTENDANT,
        company=company,
    )
    StationAssignment.objects.create(user=user, station=station, role=UserRole.ATTENDANT)
    return user


@pytest.fixture
def foreign_user(other_company):
    return User.objects.create_user(
        email='someone@rival.example.com',
        password='TestPass123!',
        role=UserRole.ATTENDANT,
        company=other_company,
    )


@pytest.fixture
def super_client(super_admin):
    return _client_for(super_admin)


@pytest.fixture
def admin_client(company_admin):
    return _client_for(company_admin)


@pytest.fixture
def manager_client(manager):
    return _client_for(manager)


@pytest.fixture
def attendant_client(attendant):
    return _client_for(attendant)
