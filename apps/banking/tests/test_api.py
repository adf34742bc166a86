import pytest
from decimal import Decimal
from django.urls import reverse
from rest_framework import status

from apps.banking.models import BankTransaction, BankTransactionMode, BankTransactionType
from apps.banking.services import create_bank_deposit, record_bank_transaction


@pytest.fixture
def deposit(funded_wallet, bank_account, attendant):
    return create_bank_deposit(
        station_id=funded_wallet.station_id,
        bank_account_id=bank_account.id,
        amount=Decimal('1000.00'),
        transaction_mode=BankTransactionMode.CASH_DEPOSIT,
        reference='SLIP-1',
        recorded_by=attendant,
    )


@pytest.mark.django_db
class TestDeposits:
    """Tests for POST /api/banking/deposits/"""

    def test_attendant_deposits_from_current_station(self, attendant_client, funded_wallet, bank_account):
        url = reverse('banking:deposit-create')
        data = {
            'bank_account_id': str(bank_account.id),
            'amount': '1500.00',
            'transaction_mode': 'CASH_DEPOSIT',
            'reference': 'SLIP-42',
        }
        response = attendant_client.post(url, data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['amount'] == '1500.00'
        assert response.data['station'] == funded_wallet.station_id
        funded_wallet.refresh_from_db()
        assert funded_wallet.current_balance == Decimal('3500.00')

    def test_non_positive_amount_rejected(self, attendant_client, funded_wallet, bank_account):
        url = reverse('banking:deposit-create')
        data = {'bank_account_id': str(bank_account.id), 'amount': '0', 'transaction_mode': 'CASH_DEPOSIT'}
        response = attendant_client.post(url, data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'invalid'
        assert 'amount' in response.data['details']

    def test_deposit_above_wallet_balance(self, attendant_client, funded_wallet, bank_account):
        url = reverse('banking:deposit-create')
        data = {'bank_account_id': str(bank_account.id), 'amount': '9000.00', 'transaction_mode': 'CASH_DEPOSIT'}
        response = attendant_client.post(url, data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'insufficient_wallet_balance'

    def test_unauthenticated(self, api_client):
        response = api_client.post(reverse('banking:deposit-create'), {}, format='json')
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestWithdrawals:
    """Tests for POST /api/banking/withdrawals/"""

    def test_company_admin_withdraws(self, admin_client, station, bank_account):
        url = reverse('banking:withdrawal-create')
        data = {
            'station_id': str(station.id),
            'bank_account_id': str(bank_account.id),
            'amount': '400.00',
            'transaction_mode': 'BANK_TRANSFER',
            'description': 'Change float',
        }
        response = admin_client.post(url, data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['transaction_type'] == 'WITHDRAWAL'
        assert response.data['new_balance'] == '9600.00'

    def test_description_required(self, admin_client, station, bank_account):
        url = reverse('banking:withdrawal-create')
        data = {
            'station_id': str(station.id),
            'bank_account_id': str(bank_account.id),
            'amount': '400.00',
            'transaction_mode': 'BANK_TRANSFER',
        }
        response = admin_client.post(url, data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['details']['description'] == ['Description is required']

    def test_attendant_forbidden(self, attendant_client, station, bank_account):
        url = reverse('banking:withdrawal-create')
        response = attendant_client.post(url, {}, format='json')
        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestWallets:

    def test_current_wallet(self, attendant_client, funded_wallet):
        response = attendant_client.get(reverse('banking:wallet-current'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['current_balance'] == '5000.00'
        assert response.data['data']['todays_inflow'] == '5000.00'
        assert len(response.data['data']['recent_transactions']) == 1

    def test_current_wallet_without_assignment(self, admin_client):
        response = admin_client.get(reverse('banking:wallet-current'))
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_other_company_station_forbidden(self, attendant_client, foreign_station):
        url = reverse('banking:wallet-detail', kwargs={'station_id': foreign_station.id})
        response = attendant_client.get(url)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_admin_reads_any_company_station(self, admin_client, second_station):
        url = reverse('banking:wallet-detail', kwargs={'station_id': second_station.id})
        response = admin_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['current_balance'] == '0.00'


@pytest.mark.django_db
class TestBankTransactions:

    def test_list_filtered_by_type(self, admin_client, deposit):
        url = reverse('banking:transaction-list')
        response = admin_client.get(url, {'transaction_type': 'DEPOSIT'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        assert response.data['results'][0]['reference'] == 'SLIP-1'

    def test_attendant_sees_only_own_station(self, attendant_client, deposit, second_station, bank_account):
        record_bank_transaction(
            bank_account_id=bank_account.id,
            amount=Decimal('10.00'),
            transaction_type=BankTransactionType.DEPOSIT,
            transaction_mode=BankTransactionMode.CASH_DEPOSIT,
            station=second_station,
        )
        response = attendant_client.get(reverse('banking:transaction-list'))

        assert response.data['count'] == 1

    def test_invalid_date_range(self, admin_client):
        url = reverse('banking:transaction-list')
        response = admin_client.get(url, {'start_date': '2024-05-01', 'end_date': '2024-04-01'})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_update_only_descriptive_fields(self, admin_client, deposit):
        url = reverse('banking:transaction-detail', kwargs={'pk': deposit.id})
        response = admin_client.patch(url, {'description': 'Morning banking', 'amount': '1.00'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['description'] == 'Morning banking'
        assert response.data['amount'] == '1000.00'

    def test_completed_transaction_cannot_be_deleted(self, admin_client, deposit):
        url = reverse('banking:transaction-detail', kwargs={'pk': deposit.id})
        response = admin_client.delete(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'bank_transaction_not_pending'
        assert BankTransaction.objects.filter(id=deposit.id).exists()

    def test_complete_pending(self, admin_client, bank_account, station):
        cheque = record_bank_transaction(
            bank_account_id=bank_account.id,
            amount=Decimal('250.00'),
            transaction_type=BankTransactionType.DEBT_SETTLEMENT,
            transaction_mode=BankTransactionMode.CHEQUE,
            station=station,
            pending=True,
        )
        url = reverse('banking:transaction-complete', kwargs={'pk': cheque.id})
        response = admin_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'COMPLETED'
        assert response.data['new_balance'] == '10250.00'


@pytest.mark.django_db
class TestBankingReports:

    def test_company_summary(self, admin_client, deposit):
        response = admin_client.get(reverse('banking:company-summary'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['total_deposits'] == Decimal('1000.00')

    def test_company_summary_forbidden_for_attendant(self, attendant_client):
        response = attendant_client.get(reverse('banking:company-summary'))
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_stats_rejects_unknown_period(self, admin_client):
        response = admin_client.get(reverse('banking:company-stats'), {'period': 'hourly'})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_transactions_report_csv(self, manager_client, deposit):
        response = manager_client.get(reverse('banking:report-transactions'), {'format': 'csv'})

        assert response.status_code == status.HTTP_200_OK
        assert response['Content-Type'].startswith('text/csv')
        assert b'SLIP-1' in response.content

    def test_transactions_report_json(self, manager_client, deposit):
        response = manager_client.get(reverse('banking:report-transactions'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        assert response.data['totals_by_type'] == {'DEPOSIT': '1000.00'}

    def test_daily_summary(self, manager_client, deposit):
        response = manager_client.get(reverse('banking:report-daily-summary'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['by_type']['DEPOSIT']['count'] == 1

    def test_bank_account_balances(self, attendant_client, bank_account):
        response = attendant_client.get(reverse('banking:bank-account-balances'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total_balance'] == '10000.00'
        assert response.data['data'][0]['account_number'] == '0123456789'
