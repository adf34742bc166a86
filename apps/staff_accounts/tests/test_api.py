import pytest
from datetime import date
from decimal import Decimal
from django.urls import reverse
from rest_framework import status

from apps.staff_accounts.models import (
    SalaryPayment,
    SalaryPaymentStatus,
    StaffAccount,
    StaffTransaction,
    StaffTransactionStatus,
    StaffTransactionType,
)
from apps.staff_accounts.services import approve_salary_payment, create_salary_payment, create_staff_transaction

PERIOD = {'period_start': '2024-05-01', 'period_end': '2024-05-31', 'payment_date': '2024-05-31'}


@pytest.fixture
def pending_advance(staff_account, manager):
    return create_staff_transaction(
        staff_account_id=staff_account.id,
        transaction_type=StaffTransactionType.ADVANCE,
        amount=Decimal('1000.00'),
        description='Advance for rent',
        recorded_by=manager,
    )


@pytest.fixture
def calculated_salary(staff_account, manager):
    return create_salary_payment(
        staff_account_id=staff_account.id,
        period_start=date(2024, 5, 1),
        period_end=date(2024, 5, 31),
        payment_date=date(2024, 5, 31),
        created_by=manager,
    )


@pytest.mark.django_db
class TestStaffAccountEndpoints:
    """Tests for /api/staff-payments/accounts/"""

    def test_create_account(self, manager_client, attendant, station):
        data = {
            'user_id': str(attendant.id),
            'station_id': str(station.id),
            'salary_amount': '18000.00',
            'payroll_method': 'MOBILE_MONEY',
            'mobile_money_number': '0712345678',
        }
        response = manager_client.post(reverse('staff_accounts:account-list'), data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['user_name'] == 'Tom Pump'
        assert response.data['salary_amount'] == '18000.00'
        assert response.data['next_payment_date'] is not None
        assert StaffAccount.objects.filter(user=attendant, station=station).exists()

    def test_create_validation_messages(self, manager_client):
        data = {'salary_amount': '-1', 'payroll_method': 'CHEQUE'}
        response = manager_client.post(reverse('staff_accounts:account-list'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        details = response.data['details']
        assert details['user_id'] == ['User is required']
        assert details['station_id'] == ['Station is required']
        assert details['salary_amount'] == ['Salary amount must be positive']
        assert details['payroll_method'] == ['Invalid payroll method']

    def test_bank_transfer_needs_account_number(self, manager_client, attendant, station):
        data = {'user_id': str(attendant.id), 'station_id': str(station.id), 'payroll_method': 'BANK_TRANSFER'}
        response = manager_client.post(reverse('staff_accounts:account-list'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['details']['bank_account_number'] == [
            'Bank account number is required for bank transfers'
        ]

    def test_duplicate_account(self, manager_client, staff_account, attendant, station):
        data = {'user_id': str(attendant.id), 'station_id': str(station.id)}
        response = manager_client.post(reverse('staff_accounts:account-list'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'duplicate_staff_account'

    def test_manager_cannot_open_account_at_other_station(self, manager_client, attendant, second_station):
        data = {'user_id': str(attendant.id), 'station_id': str(second_station.id)}
        response = manager_client.post(reverse('staff_accounts:account-list'), data, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_attendant_forbidden(self, attendant_client, staff_account):
        response = attendant_client.get(reverse('staff_accounts:account-detail', args=[staff_account.id]))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_requires_authentication(self, api_client):
        response = api_client.get(reverse('staff_accounts:account-list'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_account_at_other_station_hidden(self, manager_client, second_attendant, second_station):
        account = StaffAccount.objects.create(user=second_attendant, station=second_station)
        response = manager_client.get(reverse('staff_accounts:account-detail', args=[account.id]))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_put_on_hold(self, manager_client, staff_account):
        url = reverse('staff_accounts:account-detail', args=[staff_account.id])
        response = manager_client.patch(url, {'is_on_hold': True, 'hold_reason': 'Audit'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['is_on_hold'] is True
        assert response.data['hold_reason'] == 'Audit'

    def test_hold_needs_reason(self, manager_client, staff_account):
        url = reverse('staff_accounts:account-detail', args=[staff_account.id])
        response = manager_client.patch(url, {'is_on_hold': True}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'hold_reason' in response.data['details']

    def test_deactivate_is_admin_only(self, manager_client, admin_client, staff_account):
        url = reverse('staff_accounts:account-detail', args=[staff_account.id])

        assert manager_client.delete(url).status_code == status.HTTP_403_FORBIDDEN
        assert admin_client.delete(url).status_code == status.HTTP_204_NO_CONTENT
        staff_account.refresh_from_db()
        assert staff_account.is_active is False

    def test_station_accounts(self, manager_client, staff_account, second_staff_account, station):
        url = reverse('staff_accounts:station-accounts', args=[station.id])
        response = manager_client.get(url, {'search': 'jane'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        assert response.data['data'][0]['id'] == str(second_staff_account.id)

    def test_station_summary(self, manager_client, staff_account, shortages, station):
        url = reverse('staff_accounts:station-accounts-summary', args=[station.id])
        response = manager_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['total_accounts'] == 1
        assert response.data['data']['total_shortages'] == Decimal('2300.00')

    def test_transactions_summary(self, manager_client, staff_account, shortages):
        url = reverse('staff_accounts:account-transactions-summary', args=[staff_account.id])
        response = manager_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['current_balance'] == Decimal('-2300.00')
        assert response.data['data']['by_type']['SHORTAGE']['count'] == 2

    def test_outstanding_shortages(self, manager_client, staff_account, shortages):
        older, newer = shortages
        url = reverse('staff_accounts:account-shortages-outstanding', args=[staff_account.id])
        response = manager_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert [row['id'] for row in response.data['data']] == [str(older.id), str(newer.id)]

    def test_shortages_summary(self, manager_client, staff_account, shortages):
        url = reverse('staff_accounts:account-shortages-summary', args=[staff_account.id])
        response = manager_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['outstanding']['count'] == 2

    def test_calculate_salary(self, manager_client, staff_account, shortages):
        url = reverse('staff_accounts:account-salary-calculate', args=[staff_account.id])
        response = manager_client.post(url, {'bonuses': '500.00'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['shortage_deductions'] == Decimal('2300.00')
        assert response.data['data']['net_salary'] == Decimal('18200.00')
        assert not SalaryPayment.objects.exists()

    def test_salary_history(self, manager_client, staff_account, calculated_salary):
        url = reverse('staff_accounts:account-salary-payments', args=[staff_account.id])
        response = manager_client.get(url, {'year': 2024})

        assert response.status_code == status.HTTP_200_OK
        assert [row['id'] for row in response.data['data']] == [str(calculated_salary.id)]


@pytest.mark.django_db
class TestStaffTransactionEndpoints:
    """Tests for /api/staff-payments/transactions/"""

    def test_record_transaction(self, manager_client, staff_account):
        data = {
            'staff_account_id': str(staff_account.id),
            'transaction_type': 'FINE',
            'amount': '250.00',
            'description': 'Late for shift',
        }
        response = manager_client.post(reverse('staff_accounts:transaction-list'), data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['status'] == StaffTransactionStatus.PENDING
        assert response.data['balance_effect'] == 'DEBIT'

    def test_validation_messages(self, manager_client):
        data = {'transaction_type': 'GIFT', 'amount': '0'}
        response = manager_client.post(reverse('staff_accounts:transaction-list'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        details = response.data['details']
        assert details['staff_account_id'] == ['Staff account is required']
        assert details['transaction_type'] == ['Invalid transaction type']
        assert details['amount'] == ['Valid amount is required']
        assert details['description'] == ['Description is required']

    def test_earnings_need_payment_method(self, manager_client, staff_account):
        data = {
            'staff_account_id': str(staff_account.id),
            'transaction_type': 'BONUS',
            'amount': '1000.00',
            'description': 'Target reached',
        }
        response = manager_client.post(reverse('staff_accounts:transaction-list'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['details']['payment_method'] == [
            'Valid payment method is required for this transaction type'
        ]

    def test_system_type_refused(self, manager_client, staff_account):
        data = {
            'staff_account_id': str(staff_account.id),
            'transaction_type': 'ADVANCE_DEDUCTION',
            'amount': '100.00',
            'description': 'Manual',
        }
        response = manager_client.post(reverse('staff_accounts:transaction-list'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'system_transaction_type'

    def test_credit_limit(self, manager_client, staff_account):
        data = {
            'staff_account_id': str(staff_account.id),
            'transaction_type': 'ADVANCE',
            'amount': '5000.01',
            'description': 'Big advance',
        }
        response = manager_client.post(reverse('staff_accounts:transaction-list'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'staff_credit_limit_exceeded'

    def test_list_filters_by_type(self, manager_client, staff_account, shortages, pending_advance):
        url = reverse('staff_accounts:transaction-list')
        response = manager_client.get(url, {'transaction_type': 'ADVANCE,FINE'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        assert response.data['results'][0]['id'] == str(pending_advance.id)

    def test_list_rejects_unknown_type(self, manager_client):
        response = manager_client.get(reverse('staff_accounts:transaction-list'), {'transaction_type': 'GIFT'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_approve(self, manager_client, staff_account, pending_advance):
        url = reverse('staff_accounts:transaction-approve', args=[pending_advance.id])
        response = manager_client.post(url, {'notes': 'OK by manager'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == StaffTransactionStatus.APPROVED
        assert response.data['balance_after'] == '-1000.00'

    def test_reject_needs_reason(self, manager_client, pending_advance):
        url = reverse('staff_accounts:transaction-reject', args=[pending_advance.id])
        response = manager_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['details']['reason'] == ['Rejection reason is required']

    def test_process_payment(self, manager_client, manager, station, pending_advance, funded_wallet):
        manager_client.post(reverse('staff_accounts:transaction-approve', args=[pending_advance.id]))
        url = reverse('staff_accounts:transaction-process-payment', args=[pending_advance.id])
        response = manager_client.post(url, {'payment_source': 'STATION_WALLET'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == StaffTransactionStatus.SETTLED
        assert response.data['wallet_transaction'] is not None

    def test_process_payment_bank_needs_account(self, manager_client, pending_advance):
        url = reverse('staff_accounts:transaction-process-payment', args=[pending_advance.id])
        response = manager_client.post(url, {'payment_source': 'BANK_ACCOUNT'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'bank_account_id' in response.data['details']

    def test_process_pending_refused(self, manager_client, pending_advance):
        url = reverse('staff_accounts:transaction-process-payment', args=[pending_advance.id])
        response = manager_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'invalid_transaction_status'


@pytest.mark.django_db
class TestShortageEndpoints:
    """Tests for /api/staff-payments/shortages/"""

    def test_record_shortage(self, manager_client, staff_account):
        data = {
            'staff_account_id': str(staff_account.id),
            'amount': '650.00',
            'description': 'Cash short on morning shift',
            'reference_number': 'SH-0042',
            'shortage_date': '2024-05-10',
            'due_date': '2024-06-10',
        }
        response = manager_client.post(reverse('staff_accounts:shortage-list'), data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['amount_remaining'] == '650.00'
        staff_account.refresh_from_db()
        assert staff_account.current_balance == Decimal('-650.00')

    def test_validation_messages(self, manager_client):
        response = manager_client.post(reverse('staff_accounts:shortage-list'), {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        details = response.data['details']
        assert details['staff_account_id'] == ['Staff account is required']
        assert details['amount'] == ['Valid amount is required']
        assert details['description'] == ['Description is required']

    def test_due_date_before_shortage_date(self, manager_client, staff_account):
        data = {
            'staff_account_id': str(staff_account.id),
            'amount': '100.00',
            'description': 'Short',
            'shortage_date': '2024-05-10',
            'due_date': '2024-05-01',
        }
        response = manager_client.post(reverse('staff_accounts:shortage-list'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_list_outstanding(self, manager_client, shortages):
        older, newer = shortages
        manager_client.post(reverse('staff_accounts:shortage-settle', args=[newer.id]), {}, format='json')
        response = manager_client.get(reverse('staff_accounts:shortage-list'), {'outstanding': 'true'})

        assert response.status_code == status.HTTP_200_OK
        assert [row['id'] for row in response.data['results']] == [str(older.id)]

    def test_settle_partially(self, manager_client, shortages):
        older, _ = shortages
        url = reverse('staff_accounts:shortage-settle', args=[older.id])
        response = manager_client.post(url, {'amount': '400.00', 'payment_source': 'DIRECT_CASH'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['amount_remaining'] == '1100.00'

    def test_settle_more_than_remaining(self, manager_client, shortages):
        _, newer = shortages
        url = reverse('staff_accounts:shortage-settle', args=[newer.id])
        response = manager_client.post(url, {'amount': '900.00'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'amount_exceeds_shortage'

    def test_write_off_admin_only(self, manager_client, admin_client, shortages):
        older, _ = shortages
        url = reverse('staff_accounts:shortage-settle', args=[older.id])

        response = manager_client.post(url, {'settlement_type': 'WRITE_OFF'}, format='json')
        assert response.status_code == status.HTTP_403_FORBIDDEN

        response = admin_client.post(url, {'settlement_type': 'WRITE_OFF', 'notes': 'Till fault'}, format='json')
        assert response.status_code == status.HTTP_200_OK
        assert response.data['is_fully_deducted'] is True
        assert StaffTransaction.objects.filter(transaction_type=StaffTransactionType.WRITE_OFF).count() == 1


@pytest.mark.django_db
class TestSalaryPaymentEndpoints:
    """Tests for /api/staff-payments/salary-payments/"""

    def test_create(self, manager_client, staff_account, station, shortages):
        data = {
            'staff_account_id': str(staff_account.id),
            'station_id': str(station.id),
            'gross_salary': '20000.00',
            'payment_method': 'STATION_WALLET',
            'payment_source': 'STATION_WALLET',
            **PERIOD,
        }
        response = manager_client.post(reverse('staff_accounts:salary-payment-list'), data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['status'] == SalaryPaymentStatus.CALCULATED
        assert response.data['net_salary'] == '17700.00'
        assert response.data['staff_name'] == 'Tom Pump'

    def test_validation_messages(self, manager_client):
        data = {'period_start': '2024-05-31', 'period_end': '2024-05-01', 'gross_salary': '0'}
        response = manager_client.post(reverse('staff_accounts:salary-payment-list'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        details = response.data['details']
        assert details['staff_account_id'] == ['Staff account is required']
        assert details['station_id'] == ['Station is required']
        assert details['payment_date'] == ['Payment date is required']
        assert details['gross_salary'] == ['Valid gross salary is required']
        assert details['payment_method'] == ['Payment method is required']
        assert details['payment_source'] == ['Payment source is required']

    def test_period_end_after_start(self, manager_client, staff_account, station):
        data = {
            'staff_account_id': str(staff_account.id),
            'station_id': str(station.id),
            'gross_salary': '20000.00',
            'payment_method': 'STATION_WALLET',
            'payment_source': 'STATION_WALLET',
            **PERIOD,
            'period_end': '2024-05-01',
        }
        response = manager_client.post(reverse('staff_accounts:salary-payment-list'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['details']['period_end'] == ['Period end must be after period start']

    def test_station_must_match_account(self, admin_client, staff_account, second_station):
        data = {
            'staff_account_id': str(staff_account.id),
            'station_id': str(second_station.id),
            'gross_salary': '20000.00',
            'payment_method': 'STATION_WALLET',
            'payment_source': 'STATION_WALLET',
            **PERIOD,
        }
        response = admin_client.post(reverse('staff_accounts:salary-payment-list'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_approve_and_process_admin_only(self, manager_client, admin_client, calculated_salary, funded_wallet):
        approve_url = reverse('staff_accounts:salary-payment-approve', args=[calculated_salary.id])
        process_url = reverse('staff_accounts:salary-payment-process', args=[calculated_salary.id])

        assert manager_client.post(approve_url).status_code == status.HTTP_403_FORBIDDEN

        response = admin_client.post(approve_url, {'notes': 'May payroll'}, format='json')
        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == SalaryPaymentStatus.APPROVED

        response = admin_client.post(process_url, {'reference': 'PAY-MAY'}, format='json')
        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == SalaryPaymentStatus.PAID
        assert response.data['amount_paid'] == '20000.00'

    def test_process_without_funds(self, admin_client, calculated_salary, company_admin):
        approve_salary_payment(salary_payment_id=calculated_salary.id, approved_by=company_admin)
        url = reverse('staff_accounts:salary-payment-process', args=[calculated_salary.id])
        response = admin_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'insufficient_wallet_balance'

    def test_cancel(self, admin_client, calculated_salary):
        url = reverse('staff_accounts:salary-payment-cancel', args=[calculated_salary.id])
        response = admin_client.post(url, {'reason': 'Wrong period'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == SalaryPaymentStatus.CANCELLED

    def test_list_by_status(self, manager_client, calculated_salary):
        url = reverse('staff_accounts:salary-payment-list')
        response = manager_client.get(url, {'status': 'PAID'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 0


@pytest.mark.django_db
class TestPayrollEndpoints:
    """Tests for payroll generation, bulk payment and reports."""

    def _payroll_data(self, station, **extra):
        return {
            'station_id': str(station.id),
            'payment_method': 'STATION_WALLET',
            'payment_source': 'STATION_WALLET',
            **PERIOD,
            **extra,
        }

    def test_generate(self, manager_client, staff_account, second_staff_account, station):
        response = manager_client.post(
            reverse('staff_accounts:payroll-generate'), self._payroll_data(station), format='json'
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['data']['summary']['successful'] == 2
        assert response.data['data']['summary']['total_net_salary'] == Decimal('35000.00')
        assert len(response.data['data']['results']) == 2

    def test_generate_validation(self, manager_client):
        response = manager_client.post(reverse('staff_accounts:payroll-generate'), {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        details = response.data['details']
        assert details['station_id'] == ['Station is required']
        assert details['period_start'] == ['Period start date is required']
        assert details['period_end'] == ['Period end date is required']

    def test_bulk_needs_selection(self, admin_client, station):
        response = admin_client.post(
            reverse('staff_accounts:payroll-process-bulk'), self._payroll_data(station), format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['details']['staff_account_ids'] == ['Select at least one staff member']

    def test_bulk_is_admin_only(self, manager_client, staff_account, station):
        data = self._payroll_data(station, staff_account_ids=[str(staff_account.id)])
        response = manager_client.post(reverse('staff_accounts:payroll-process-bulk'), data, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_bulk(self, admin_client, staff_account, second_staff_account, station, funded_wallet):
        data = self._payroll_data(station, staff_account_ids=[str(staff_account.id), str(second_staff_account.id)])
        response = admin_client.post(reverse('staff_accounts:payroll-process-bulk'), data, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['summary']['total_paid'] == Decimal('35000.00')
        assert response.data['data']['errors'] == []
        assert SalaryPayment.objects.filter(status=SalaryPaymentStatus.PAID).count() == 2

    def test_report(self, manager_client, calculated_salary, station):
        url = reverse('staff_accounts:payroll-report', args=[station.id])
        response = manager_client.get(url, {'period_start': '2024-05-01', 'period_end': '2024-05-31'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['summary']['total_payments'] == 1
        assert response.data['data']['payments'][0]['staff_name'] == 'Tom Pump'

    def test_summary(self, manager_client, station):
        url = reverse('staff_accounts:payroll-summary', args=[station.id])
        response = manager_client.get(url, {'year': 2024, 'month': 5})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['total_payments'] == 0

    def test_summary_month_range(self, manager_client, station):
        url = reverse('staff_accounts:payroll-summary', args=[station.id])
        response = manager_client.get(url, {'month': 13})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_report_other_station_forbidden(self, manager_client, second_station):
        response = manager_client.get(reverse('staff_accounts:payroll-report', args=[second_station.id]))

        assert response.status_code == status.HTTP_403_FORBIDDEN
