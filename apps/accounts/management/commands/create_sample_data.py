"""
Management command to create sample data for trying out the API.

Usage:
    python manage.py create_sample_data
    python manage.py create_sample_data --clear

This creates:
- 1 company with 2 stations
- 5 users (super admin, company admin, manager, 2 attendants)
- Fuel catalog (Petrol, Diesel, Kerosene)
- Bank account and funded station wallets
- Debtors with credit sales and a cash settlement
- Staff accounts with a shortage and an advance
"""

from datetime import date, timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.accounts.models import User, UserRole
from apps.banking.models import Bank, BankAccount, BankTransaction, WalletSource
from apps.banking.services import credit_wallet
from apps.debts.models import AccountTransfer, Debtor, DebtorTransaction, StationDebtorAccount
from apps.debts.services import create_debtor, process_cash_settlement, record_debt
from apps.fuel.models import FuelCategory, FuelProduct, FuelSubType
from apps.fuel.services import create_category, create_product, create_subtype
from apps.staff_accounts.models import (
    PaymentSchedule,
    PayrollMethod,
    SalaryPayment,
    Shortage,
    StaffAccount,
    StaffTransaction,
    StaffTransactionType,
)
from apps.staff_accounts.services import create_shortage, create_staff_account, create_staff_transaction
from apps.stations.models import Company, Station, StationAssignment

COMPANY_NAME = 'Sample Fuels Ltd'
PASSWORD = 'Sample#Pass1'


class Command(BaseCommand):
    help = 'Create sample data for trying out the API'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Remove the sample company and its users before creating new sample data',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing sample data...')
            self.clear_data()

        if Company.objects.filter(name=COMPANY_NAME).exists():
            self.stdout.write(self.style.WARNING('Sample data already exists, use --clear to recreate it.'))
            return

        self.stdout.write('Creating sample data...')

        company, stations = self.create_company()
        users = self.create_users(company, stations)
        self.create_fuel_catalog(company)
        self.create_money(company, stations, users)
        self.create_debts(company, stations, users)
        self.create_staff_accounts(stations, users)

        self.stdout.write(self.style.SUCCESS('Sample data created successfully!'))
        self.stdout.write('')
        self.stdout.write('Test accounts (password for all: %s):' % PASSWORD)
        for user in users.values():
            self.stdout.write(f'  {user.email} ({user.get_role_display()})')

    def clear_data(self):
        """Delete the sample company; protected financial records go first."""
        company = Company.objects.filter(name=COMPANY_NAME).first()
        if company is None:
            return

        # Shortages and their transactions point at each other
        staff_transactions = StaffTransaction.objects.filter(staff_account__station__company=company)
        staff_transactions.update(shortage=None, salary_payment=None)
        Shortage.objects.filter(staff_account__station__company=company).delete()
        SalaryPayment.objects.filter(station__company=company).delete()
        staff_transactions.delete()
        StaffAccount.objects.filter(station__company=company).delete()

        DebtorTransaction.objects.filter(account__debtor__company=company).delete()
        transfers = AccountTransfer.objects.filter(company=company)
        transfers.update(reversal_of=None)
        transfers.delete()
        StationDebtorAccount.objects.filter(debtor__company=company).delete()
        Debtor.objects.filter(company=company).delete()

        BankTransaction.objects.filter(company=company).delete()
        BankAccount.objects.filter(company=company).delete()

        FuelProduct.objects.filter(subtype__category__company=company).delete()
        FuelSubType.objects.filter(category__company=company).delete()
        FuelCategory.objects.filter(company=company).delete()

        User.objects.filter(email='root@sample.example.com').delete()
        company.delete()

    def create_company(self):
        self.stdout.write('  Creating company and stations...')
        company = Company.objects.create(name=COMPANY_NAME, email='info@sample.example.com', phone='0700000000')
        stations = {
            'thika': Station.objects.create(company=company, name='Thika Road', code='THK', location='Thika'),
            'mombasa': Station.objects.create(company=company, name='Mombasa Road', code='MSA', location='Nairobi'),
        }
        return company, stations

    def create_users(self, company, stations):
        self.stdout.write('  Creating users...')

        root, _ = User.objects.get_or_create(
            email='root@sample.example.com',
            defaults={'first_name': 'Root', 'role': UserRole.SUPER_ADMIN, 'is_staff': True, 'is_superuser': True},
        )
        root.set_password(PASSWORD)
        root.save()

        people = [
            ('admin', 'admin@sample.example.com', 'Ada', 'Admin', UserRole.COMPANY_ADMIN, None),
            ('manager', 'manager@sample.example.com', 'Mary', 'Manager', UserRole.STATION_MANAGER, 'thika'),
            ('tom', 'tom@sample.example.com', 'Tom', 'Pump', UserRole.ATTENDANT, 'thika'),
            ('jane', 'jane@sample.example.com', 'Jane', 'Nozzle', UserRole.ATTENDANT, 'mombasa'),
        ]

        users = {'root': root}
        for key, email, first_name, last_name, role, station_key in people:
            user = User.objects.create_user(
                email=email,
                password=PASSWORD,
                first_name=first_name,
                last_name=last_name,
                role=role,
                company=company,
            )
            if station_key:
                StationAssignment.objects.create(user=user, station=stations[station_key], role=role)
            users[key] = user
        return users

    def create_fuel_catalog(self, company):
        self.stdout.write('  Creating fuel catalog...')

        catalog = [
            ('Petrol', 'PET', [('Super', 'SUP', [('Super 95', 'PMS95', Decimal('95.0'))])]),
            ('Diesel', 'DSL', [('Ultra Low Sulphur', 'ULSD', [('Diesel 10ppm', 'AGO10', None)])]),
            ('Kerosene', 'KER', [('Illuminating', 'IK', [('Illuminating Kerosene', 'IK01', None)])]),
        ]
        for category_name, category_code, subtypes in catalog:
            category = create_category(company=company, name=category_name, code=category_code)
            for subtype_name, subtype_code, products in subtypes:
                subtype = create_subtype(category=category, name=subtype_name, code=subtype_code)
                for product_name, fuel_code, octane in products:
                    create_product(subtype=subtype, name=product_name, fuel_code=fuel_code, octane_rating=octane)

    def create_money(self, company, stations, users):
        self.stdout.write('  Creating bank account and wallets...')

        bank, _ = Bank.objects.get_or_create(code='EQBL', defaults={'name': 'Equity Bank'})
        BankAccount.objects.create(
            company=company,
            bank=bank,
            account_number='0123456789',
            account_name=COMPANY_NAME,
            current_balance=Decimal('250000.00'),
        )

        for station, amount in ((stations['thika'], '60000.00'), (stations['mombasa'], '35000.00')):
            credit_wallet(
                station_id=station.id,
                amount=Decimal(amount),
                source=WalletSource.SALES_COLLECTION,
                description='Opening float',
                recorded_by=users['admin'],
            )

    def create_debts(self, company, stations, users):
        self.stdout.write('  Creating debtors...')

        transporter = create_debtor(
            company=company,
            created_by=users['admin'],
            name='Acme Transporters',
            phone='0722000111',
            credit_limit=Decimal('50000.00'),
        )
        farmer = create_debtor(company=company, created_by=users['admin'], name='John Kamau', phone='0733444555')

        sales = [
            (transporter, stations['thika'], '12000.00', 'KBX 123A'),
            (transporter, stations['mombasa'], '8000.00', 'KBX 123A'),
            (farmer, stations['thika'], '3500.00', ''),
        ]
        for debtor, station, amount, plate in sales:
            record_debt(
                company=company,
                station=station,
                amount=Decimal(amount),
                debtor_id=debtor.id,
                vehicle_plate=plate,
                recorded_by=users['tom'],
            )

        process_cash_settlement(
            debtor_id=transporter.id,
            station_id=stations['thika'].id,
            amount=Decimal('5000.00'),
            recorded_by=users['tom'],
        )

    def create_staff_accounts(self, stations, users):
        self.stdout.write('  Creating staff accounts...')

        tom = create_staff_account(
            user=users['tom'],
            station=stations['thika'],
            created_by=users['admin'],
            salary_amount=Decimal('20000.00'),
            credit_limit=Decimal('5000.00'),
            payroll_method=PayrollMethod.STATION_WALLET,
            payment_schedule=PaymentSchedule.MONTHLY,
        )
        create_staff_account(
            user=users['jane'],
            station=stations['mombasa'],
            created_by=users['admin'],
            salary_amount=Decimal('18000.00'),
            payroll_method=PayrollMethod.STATION_WALLET,
            payment_schedule=PaymentSchedule.MONTHLY,
        )

        create_shortage(
            staff_account_id=tom.id,
            amount=Decimal('1200.00'),
            description='Cash short on night shift',
            shortage_date=date.today() - timedelta(days=3),
            recorded_by=users['manager'],
        )
        create_staff_transaction(
            staff_account_id=tom.id,
            transaction_type=StaffTransactionType.ADVANCE,
            amount=Decimal('2000.00'),
            description='Salary advance',
            recorded_by=users['manager'],
        )
