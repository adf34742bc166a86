import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.banking.models import Bank, BankAccount, WalletSource
from apps.banking.services import credit_wallet
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
def foreign_station(other_company):
    return Station.objects.create(company=other_company, name='Rival Station', code='RIV')


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
def attendant(company, station):
    """Attendant assigned to ``station``."""
    user = User.objects.create_user(
        email='attendant@highway.example.com',
        password='TestPass123!',
        first_name='Tom',
        last_name='Pump',
        role=UserRole.ATTENDANT,
        company=company,
    )
    StationAssignment.objects.create(user=user, station=station, role=UserRole.ATTENDANT)
    return user


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
def admin_client(company_admin):
    return _client_for(company_admin)


@pytest.fixture
def attendant_client(attendant):
    return _client_for(attendant)


@pytest.fixture
def manager_client(manager):
    return _client_for(manager)


@pytest.fixture
def bank(db):
    return Bank.objects.create(name='Equity Bank', code='EQBL')


@pytest.fixture
def bank_account(company, bank):
    return BankAccount.objects.create(
        company=company,
        bank=bank,
        account_number='0123456789',
        account_name='Highway Fuels Ltd',
        current_balance=Decimal('10000.00'),
    )


@pytest.fixture
def foreign_bank_account(other_company, bank):
    return BankAccount.objects.create(
        company=other_company,
        bank=bank,
        account_number='9999999999',
        account_name='Rival Petroleum Ltd',
    )


@pytest.fixture
def funded_wallet(station):
    """Station wallet holding 5000.00 of collected cash."""
    credit_wallet(station_id=station.id, amount=Decimal('5000.00'), source=WalletSource.SALES_COLLECTION)
    station.wallet.refresh_from_db()
    return station.wallet
