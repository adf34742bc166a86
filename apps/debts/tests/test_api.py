import pytest
from decimal import Decimal
from django.urls import reverse
from rest_framework import status

from apps.banking.models import BankTransactionMode
from apps.debts.models import AccountTransfer, Debtor, StationDebtorAccount, TransferStatus
from apps.debts.services import process_bank_settlement, process_cash_settlement


@pytest.fixture
def cash_transfer(debtor, station, station_debt, attendant):
    return process_cash_settlement(
        debtor_id=debtor.id,
        station_id=station.id,
        amount=Decimal('1000.00'),
        recorded_by=attendant,
    )


@pytest.fixture
def pending_cheque(debtor, station, station_debt, bank_account):
    return process_bank_settlement(
        debtor_id=debtor.id,
        station_id=station.id,
        bank_account_id=bank_account.id,
        amount=Decimal('500.00'),
        transaction_mode=BankTransactionMode.CHEQUE,
        payment_reference='CHQ-000123',
    )


@pytest.mark.django_db
class TestDebtorEndpoints:
    """Tests for /api/debt-transfer/debtors/"""

    def test_create_debtor(self, attendant_client, company):
        url = reverse('debts:debtor-list')
        data = {'name': 'Acme Transporters', 'phone': '0722000111', 'category': 'TRANSPORT'}
        response = attendant_client.post(url, data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['data']['name'] == 'Acme Transporters'
        assert response.data['possible_duplicates'] == []
        assert Debtor.objects.get(phone='0722000111').company == company

    def test_create_reports_possible_duplicates(self, attendant_client, debtor):
        url = reverse('debts:debtor-list')
        response = attendant_client.post(url, {'name': 'John Kamau', 'phone': '0799999999'}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['possible_duplicates'][0]['id'] == debtor.id

    def test_create_requires_name_and_phone(self, attendant_client, company):
        response = attendant_client.post(reverse('debts:debtor-list'), {'name': ' '}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['details']['name'] == ['Debtor name is required']
        assert response.data['details']['phone'] == ['Phone number is required']

    def test_duplicate_phone(self, attendant_client, debtor):
        url = reverse('debts:debtor-list')
        response = attendant_client.post(url, {'name': 'Someone', 'phone': debtor.phone}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'duplicate_debtor'

    def test_list_includes_total_debt(self, attendant_client, station_debt):
        response = attendant_client.get(reverse('debts:debtor-list'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        assert response.data['results'][0]['total_debt'] == '3000.00'

    def test_other_company_debtor_hidden(self, attendant_client, other_company):
        foreign = Debtor.objects.create(company=other_company, name='Rival Customer', phone='0700111222')

        response = attendant_client.get(reverse('debts:debtor-detail', args=[foreign.id]))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_attendant_cannot_update(self, attendant_client, debtor):
        url = reverse('debts:debtor-detail', args=[debtor.id])
        response = attendant_client.patch(url, {'name': 'Renamed'}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_manager_updates_credit_limit(self, manager_client, debtor):
        url = reverse('debts:debtor-detail', args=[debtor.id])
        response = manager_client.patch(url, {'credit_limit': '20000.00'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['credit_limit'] == '20000.00'

    def test_delete_deactivates(self, manager_client, debtor):
        response = manager_client.delete(reverse('debts:debtor-detail', args=[debtor.id]))

        assert response.status_code == status.HTTP_204_NO_CONTENT
        debtor.refresh_from_db()
        assert debtor.is_active is False

    def test_search(self, attendant_client, debtor, processor):
        response = attendant_client.get(reverse('debts:debtor-search'), {'q': 'jon kamau'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data'][0]['id'] == str(debtor.id)
        assert response.data['data'][0]['score'] >= 80

    def test_breakdown(self, attendant_client, debtor, spread_debt):
        response = attendant_client.get(reverse('debts:debtor-breakdown', args=[debtor.id]))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['total_debt'] == Decimal('4000.00')
        assert len(response.data['data']['station_debts']) == 2

    def test_profile(self, attendant_client, debtor, station_debt):
        response = attendant_client.get(reverse('debts:debtor-profile', args=[debtor.id]))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['debtor']['name'] == 'John Kamau'
        assert len(response.data['data']['recent_transactions']) == 1

    def test_unauthenticated(self, api_client):
        response = api_client.get(reverse('debts:debtor-list'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestRecordDebtEndpoint:
    """Tests for POST /api/debt-transfer/debts/"""

    def test_record_debt_for_new_debtor(self, attendant_client, station):
        data = {
            'debtor_name': 'Grace Wanjiru',
            'debtor_phone': '0799111222',
            'station_id': str(station.id),
            'amount': '2500.00',
            'vehicle_plate': 'kdd 456b',
        }
        response = attendant_client.post(reverse('debts:debt-record'), data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['vehicle_plate'] == 'KDD 456B'
        assert response.data['balance_after'] == '2500.00'

    def test_amount_limit(self, attendant_client, station, debtor):
        data = {
            'debtor_id': str(debtor.id),
            'station_id': str(station.id),
            'amount': '1000000.01',
            'vehicle_plate': 'KCA 123A',
        }
        response = attendant_client.post(reverse('debts:debt-record'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['details']['amount'] == ['Amount cannot exceed 1,000,000']

    def test_missing_debtor_details(self, attendant_client, station):
        data = {'station_id': str(station.id), 'amount': '100', 'vehicle_plate': 'KCA 123A'}
        response = attendant_client.post(reverse('debts:debt-record'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'debtor_phone' in response.data['details']

    def test_unassigned_station(self, attendant_client, second_station, debtor):
        data = {
            'debtor_id': str(debtor.id),
            'station_id': str(second_station.id),
            'amount': '100',
            'vehicle_plate': 'KCA 123A',
        }
        response = attendant_client.post(reverse('debts:debt-record'), data, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_credit_limit(self, attendant_client, station, debtor):
        debtor.credit_limit = Decimal('1000.00')
        debtor.save()
        data = {
            'debtor_id': str(debtor.id),
            'station_id': str(station.id),
            'amount': '1500',
            'vehicle_plate': 'KCA 123A',
        }
        response = attendant_client.post(reverse('debts:debt-record'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'credit_limit_exceeded'


@pytest.mark.django_db
class TestSettlementEndpoints:

    def test_cash_settlement(self, attendant_client, debtor, station, station_debt):
        data = {'debtor_id': str(debtor.id), 'station_id': str(station.id), 'amount': '1000.00'}
        response = attendant_client.post(reverse('debts:settlement-cash'), data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['category'] == 'CASH_SETTLEMENT'
        assert len(response.data['ledger_entries']) == 1
        account = StationDebtorAccount.objects.get(debtor=debtor, station=station)
        assert account.current_debt == Decimal('2000.00')

    def test_cash_settlement_above_debt(self, attendant_client, debtor, station, station_debt):
        data = {'debtor_id': str(debtor.id), 'station_id': str(station.id), 'amount': '5000.00'}
        response = attendant_client.post(reverse('debts:settlement-cash'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'amount_exceeds_debt'

    def test_bulk_cash_settlement(self, attendant_client, debtor, station, station_debt):
        data = {'payments': [
            {'debtor_id': str(debtor.id), 'station_id': str(station.id), 'amount': '1000.00'},
            {'debtor_id': str(debtor.id), 'station_id': str(station.id), 'amount': '9000.00'},
        ]}
        response = attendant_client.post(reverse('debts:settlement-cash-bulk'), data, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['success_count'] == 1
        assert response.data['failure_count'] == 1
        assert response.data['successful'][0]['category'] == 'CASH_SETTLEMENT'
        assert response.data['failed'][0]['code'] == 'amount_exceeds_debt'
        account = StationDebtorAccount.objects.get(debtor=debtor, station=station)
        assert account.current_debt == Decimal('2000.00')

    def test_bulk_cash_settlement_unassigned_station(self, attendant_client, debtor, second_station, spread_debt):
        data = {'payments': [
            {'debtor_id': str(debtor.id), 'station_id': str(second_station.id), 'amount': '100.00'},
        ]}
        response = attendant_client.post(reverse('debts:settlement-cash-bulk'), data, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['failed'][0]['code'] == 'permission_denied'

    def test_bulk_cash_settlement_validates_rows(self, attendant_client, debtor, station):
        data = {'payments': [{'debtor_id': str(debtor.id), 'station_id': str(station.id), 'amount': '0'}]}
        response = attendant_client.post(reverse('debts:settlement-cash-bulk'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert AccountTransfer.objects.count() == 0

    def test_settlement_requires_amount(self, attendant_client, debtor, station):
        data = {'debtor_id': str(debtor.id), 'station_id': str(station.id), 'amount': '0'}
        response = attendant_client.post(reverse('debts:settlement-cash'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['details']['amount'] == ['Valid settlement amount is required']

    def test_bank_settlement_needs_manager(self, attendant_client, debtor, station, bank_account):
        data = {
            'debtor_id': str(debtor.id),
            'station_id': str(station.id),
            'bank_account_id': str(bank_account.id),
            'amount': '100',
            'transaction_mode': 'EFT',
        }
        response = attendant_client.post(reverse('debts:settlement-bank'), data, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_cheque_settlement_is_pending(self, manager_client, debtor, station, station_debt, bank_account):
        data = {
            'debtor_id': str(debtor.id),
            'station_id': str(station.id),
            'bank_account_id': str(bank_account.id),
            'amount': '500',
            'transaction_mode': 'CHEQUE',
            'payment_reference': 'CHQ-1',
        }
        response = manager_client.post(reverse('debts:settlement-bank'), data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['status'] == 'PENDING'
        assert response.data['ledger_entries'] == []

    def test_electronic_transfer(self, attendant_client, debtor, processor, station, station_debt):
        data = {
            'debtor_id': str(debtor.id),
            'target_debtor_id': str(processor.id),
            'station_id': str(station.id),
            'amount': '1000',
        }
        response = attendant_client.post(reverse('debts:transfer-electronic'), data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['target_debtor_name'] == 'M-Pesa'

    def test_preview_allocation(self, attendant_client, debtor, spread_debt):
        data = {'debtor_id': str(debtor.id), 'amount': '2000', 'allocation_method': 'PROPORTIONAL'}
        response = attendant_client.post(reverse('debts:settlement-preview'), data, format='json')

        assert response.status_code == status.HTTP_200_OK
        amounts = sorted(row['amount'] for row in response.data['data']['allocations'])
        assert amounts == [Decimal('500.00'), Decimal('1500.00')]
        assert AccountTransfer.objects.count() == 0

    def test_cross_station_settlement(self, manager_client, debtor, station, spread_debt):
        data = {
            'debtor_id': str(debtor.id),
            'payment_station_id': str(station.id),
            'amount': '4000',
            'allocation_method': 'OLDEST_FIRST',
        }
        response = manager_client.post(reverse('debts:settlement-cross-station'), data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert len(response.data['allocations']) == 2
        assert not StationDebtorAccount.objects.filter(debtor=debtor, current_debt__gt=0).exists()

    def test_manual_allocation_requires_amounts(self, manager_client, debtor, station, spread_debt):
        data = {
            'debtor_id': str(debtor.id),
            'payment_station_id': str(station.id),
            'amount': '100',
            'allocation_method': 'MANUAL',
        }
        response = manager_client.post(reverse('debts:settlement-cross-station'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'manual_allocations' in response.data['details']

    def test_write_off_admin_only(self, manager_client, admin_client, debtor, station, station_debt):
        data = {
            'debtor_id': str(debtor.id),
            'station_id': str(station.id),
            'amount': '3000',
            'reason': 'Deceased',
            'description': 'Customer passed away, estate has no assets',
        }
        assert manager_client.post(reverse('debts:write-off'), data, format='json').status_code == 403

        response = admin_client.post(reverse('debts:write-off'), data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['payment_method'] == 'NONE'

    def test_write_off_description_length(self, admin_client, debtor, station, station_debt):
        data = {
            'debtor_id': str(debtor.id),
            'station_id': str(station.id),
            'amount': '100',
            'reason': 'Bad',
            'description': 'short',
        }
        response = admin_client.post(reverse('debts:write-off'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['details']['reason'] == ['Reason must be at least 5 characters']
        assert response.data['details']['description'] == ['Description must be at least 20 characters']


@pytest.mark.django_db
class TestLedgerEndpoints:

    def test_list_scoped_to_station(self, attendant_client, debtor, spread_debt):
        response = attendant_client.get(reverse('debts:transaction-list'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        assert response.data['results'][0]['station_name'] == 'Thika Road'

    def test_admin_sees_all_stations(self, admin_client, spread_debt):
        response = admin_client.get(reverse('debts:transaction-list'), {'category': 'SALE'})

        assert response.data['count'] == 2

    def test_reverse(self, admin_client, cash_transfer):
        entry = cash_transfer.ledger_entries.get()
        url = reverse('debts:transaction-reverse', args=[entry.id])
        response = admin_client.post(url, {'reason': 'Counterfeit notes found'}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['category'] == 'REVERSAL'
        assert response.data['reversal_of'] == cash_transfer.id

        again = admin_client.post(url, {'reason': 'Counterfeit notes found'}, format='json')
        assert again.status_code == status.HTTP_400_BAD_REQUEST
        assert again.data['code'] == 'already_reversed'

    def test_reverse_reason_length(self, admin_client, cash_transfer):
        url = reverse('debts:transaction-reverse', args=[cash_transfer.ledger_entries.get().id])
        response = admin_client.post(url, {'reason': 'oops'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['details']['reason'] == ['Reason must be at least 10 characters']

    def test_attendant_cannot_reverse(self, attendant_client, cash_transfer):
        url = reverse('debts:transaction-reverse', args=[cash_transfer.ledger_entries.get().id])
        response = attendant_client.post(url, {'reason': 'Counterfeit notes found'}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestTransferEndpoints:

    def test_list_filters_by_status(self, attendant_client, cash_transfer, pending_cheque):
        response = attendant_client.get(reverse('debts:transfer-list'), {'status': 'PENDING'})

        assert response.status_code == status.HTTP_200_OK
        assert [row['id'] for row in response.data['results']] == [str(pending_cheque.id)]

    def test_retrieve_includes_ledger(self, attendant_client, cash_transfer):
        response = attendant_client.get(reverse('debts:transfer-detail', args=[cash_transfer.id]))

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data['ledger_entries']) == 1

    def test_update_description(self, manager_client, cash_transfer):
        url = reverse('debts:transfer-detail', args=[cash_transfer.id])
        response = manager_client.put(url, {'description': 'Paid by fleet driver', 'amount': '1'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['description'] == 'Paid by fleet driver'
        assert response.data['amount'] == '1000.00'

    def test_complete_cheque(self, admin_client, debtor, station, pending_cheque):
        url = reverse('debts:transfer-complete', args=[pending_cheque.id])
        response = admin_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'COMPLETED'
        account = StationDebtorAccount.objects.get(debtor=debtor, station=station)
        assert account.current_debt == Decimal('2500.00')

    def test_delete_completed_refused(self, admin_client, cash_transfer):
        response = admin_client.delete(reverse('debts:transfer-detail', args=[cash_transfer.id]))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'transfer_not_pending'

    def test_delete_pending(self, admin_client, pending_cheque):
        response = admin_client.delete(reverse('debts:transfer-detail', args=[pending_cheque.id]))

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not AccountTransfer.objects.filter(status=TransferStatus.PENDING).exists()

    def test_payment_methods(self, attendant_client, bank_account):
        response = attendant_client.get(reverse('debts:payment-methods'))

        values = [row['value'] for row in response.data['data']]
        assert values == ['CASH', 'BANK', 'ELECTRONIC', 'CROSS_STATION']

    def test_bank_accounts(self, attendant_client, bank_account):
        response = attendant_client.get(reverse('debts:bank-accounts'))

        assert response.data['data'][0]['account_number'] == '0123456789'


@pytest.mark.django_db
class TestReportEndpoints:

    def test_summary(self, admin_client, spread_debt):
        response = admin_client.get(reverse('debts:report-summary'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['total_outstanding'] == Decimal('4000.00')

    def test_manager_summary_limited_to_station(self, manager_client, spread_debt):
        response = manager_client.get(reverse('debts:report-summary'))

        assert response.data['data']['total_outstanding'] == Decimal('3000.00')

    def test_attendant_cannot_see_reports(self, attendant_client):
        response = attendant_client.get(reverse('debts:report-aging'))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_aging(self, admin_client, spread_debt):
        response = admin_client.get(reverse('debts:report-aging'))

        assert response.data['data']['totals']['current'] == Decimal('4000.00')
        assert response.data['data']['account_count'] == 2

    def test_settlement_activity_date_order(self, admin_client):
        url = reverse('debts:report-settlement-activity')
        response = admin_client.get(url, {'start_date': '2024-03-01', 'end_date': '2024-01-01'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_analytics(self, admin_client, cash_transfer):
        response = admin_client.get(reverse('debts:report-settlement-analytics'))

        assert response.status_code == status.HTTP_200_OK
        data = response.data['data']
        assert data['metrics']['total_settlements'] == 1
        assert data['recommendation'] == 'Maintain current collection strategy'

    def test_analytics_csv(self, admin_client, cash_transfer):
        url = reverse('debts:report-settlement-analytics')
        response = admin_client.get(url, {'format': 'csv', 'report_type': 'detailed'})

        assert response.status_code == status.HTTP_200_OK
        assert response['Content-Type'].startswith('text/csv')
        body = response.content.decode()
        assert 'Detailed Settlement Transactions' in body
        assert 'John Kamau' in body
