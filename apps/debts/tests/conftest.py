import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.banking.models import Bank, BankAccount
from apps.debts.models import Debtor, DebtorCategory, DebtorType
from apps.debts.services import record_debt
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
def bank_account(company):
    bank = Bank.objects.create(name='Equity Bank', code='EQBL')
    return BankAccount.objects.create(
        company=company,
        bank=bank,
        account_number='0123456789',
        account_name='Highway Fuels Ltd',
        current_balance=Decimal('10000.00'),
    )


@pytest.fixture
def debtor(company):
    return Debtor.objects.create(
        company=company,
        name='John Kamau',
        phone='0712345678',
        category=DebtorCategory.INDIVIDUAL,
    )


@pytest.fixture
def processor(company):
    """Mobile money payment processor."""
    return Debtor.objects.create(
        company=company,
        name='M-Pesa',
        phone='0700000000',
        debtor_type=DebtorType.PAYMENT_PROCESSOR,
        category=DebtorCategory.MOBILE_MONEY,
    )


@pytest.fixture
def station_debt(debtor, station, attendant):
    """John Kamau owes 3000.00 at Thika Road."""
    return record_debt(
        company=station.company,
        station=station,
        amount=Decimal('3000.00'),
        debtor_id=debtor.id,
        vehicle_plate='KCA 123A',
        recorded_by=attendant,
    )


@pytest.fixture
def spread_debt(station_debt, debtor, second_station):
    """Adds 1000.00 owed at Mombasa Road (4000.00 in total)."""
    return record_debt(
        company=second_station.company,
        station=second_station,
        amount=Decimal('1000.00'),
        debtor_id=debtor.id,
        vehicle_plate='KCA 123A',
    )
