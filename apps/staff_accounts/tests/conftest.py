import pytest
from datetime import date
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.banking.models import Bank, BankAccount, WalletSource
from apps.banking.services import credit_wallet
from apps.staff_accounts.models import PaymentSchedule, PayrollMethod, StaffAccount
from apps.staff_accounts.services import create_shortage
from apps.stations.models import Company, Station, StationAssignment


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


def _staff_user(company, station, email, first_name, last_name):
    user = User.objects.create_user(
        email=email,
        password='TestPass123!',
        first_name=first_name,
        last_name=last_name,
        role=UserRole.ATTENDANT,
        company=company,
    )
    StationAssignment.objects.create(user=user, station=station, role=UserRole.ATTENDANT)
    return user


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
    return _staff_user(company, station, 'attendant@highway.example.com', 'Tom', 'Pump')


@pytest.fixture
def second_attendant(company, station):
    return _staff_user(company, station, 'jane@highway.example.com', 'Jane', 'Nozzle')


@pytest.fixture
def admin_client(company_admin):
    return _client_for(company_admin)


@pytest.fixture
def manager_client(manager):
    return _client_for(manager)


@pytest.fixture
def attendant_client(attendant):
    return _client_for(attendant)


@pytest.fixture
def funded_wallet(station):
    """Thika Road wallet holding 50000.00."""
    return credit_wallet(station_id=station.id, amount=Decimal('50000.00'), source=WalletSource.SALES_COLLECTION)


@pytest.fixture
def bank_account(company):
    bank = Bank.objects.create(name='Equity Bank', code='EQBL')
    return BankAccount.objects.create(
        company=company,
        bank=bank,
        account_number='0123456789',
        account_name='Highway Fuels Ltd',
        current_balance=Decimal('100000.00'),
    )


@pytest.fixture
def staff_account(attendant, station, company_admin):
    """Tom at Thika Road: 20000.00 a month, may owe up to 5000.00."""
    return StaffAccount.objects.create(
        user=attendant,
        station=station,
        salary_amount=Decimal('20000.00'),
        credit_limit=Decimal('5000.00'),
        payroll_method=PayrollMethod.STATION_WALLET,
        payment_schedule=PaymentSchedule.MONTHLY,
        created_by=company_admin,
    )


@pytest.fixture
def second_staff_account(second_attendant, station):
    return StaffAccount.objects.create(
        user=second_attendant,
        station=station,
        salary_amount=Decimal('15000.00'),
        payroll_method=PayrollMethod.STATION_WALLET,
    )


@pytest.fixture
def shortages(staff_account, manager):
    """Two shortages on Tom's account: 1500.00 (older) then 800.00."""
    older = create_shortage(
        staff_account_id=staff_account.id,
        amount=Decimal('1500.00'),
        description='Cash short on night shift',
        shortage_date=date(2024, 5, 2),
        recorded_by=manager,
    )
    newer = create_shortage(
        staff_account_id=staff_account.id,
        amount=Decimal('800.00'),
        description='Fuel variance pump 2',
        shortage_date=date(2024, 5, 20),
        recorded_by=manager,
    )
    return older, newer
