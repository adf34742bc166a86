"""
Debt settlements.

Every settlement creates one AccountTransfer and posts its ledger entries
against locked station accounts. Money received in cash goes to the
station wallet, money received through the bank is booked on the chosen
bank account. Cheques stay PENDING until ``complete_transfer`` clears them.
"""
import logging
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import APIException, PermissionDenied

from apps.banking.models import BankTransactionMode, BankTransactionType, WalletSource
from apps.banking.services import (
    credit_wallet,
    debit_wallet,
    record_bank_transaction,
    reverse_bank_transaction,
    to_money,
)
from apps.stations.exceptions import StationNotFoundError
from apps.stations.models import Station
from ..exceptions import (
    AmountExceedsDebtError,
    CompanyScopeError,
    DebtorNotFoundError,
    DebtorTransactionNotFoundError,
    InactiveDebtorError,
    InvalidPaymentProcessorError,
    ReasonRequiredError,
    SettlementAlreadyReversedError,
    SettlementNotReversibleError,
)
from ..models import (
    REVERSIBLE_CATEGORIES,
    AccountTransfer,
    AllocationMethod,
    Debtor,
    DebtorTransaction,
    DebtorType,
    PaymentMethod,
    StationDebtorAccount,
    TransactionCategory,
    TransactionDirection,
    TransferStatus,
)
from .allocation import allocate
from .ledger import lock_account, lock_debtor_accounts, oldest_open_debit_date, post_entry

logger = logging.getLogger(__name__)

MIN_REVERSAL_REASON = 10
MIN_WRITE_OFF_REASON = 5
MIN_WRITE_OFF_DESCRIPTION = 20


def _load_parties(debtor_id: UUID, station_id: UUID):
    try:
        debtor = Debtor.objects.get(id=debtor_id)
    except Debtor.DoesNotExist:
        raise DebtorNotFoundError()
    try:
        station = Station.objects.get(id=station_id)
    except Station.DoesNotExist:
        raise StationNotFoundError()
    if debtor.company_id != station.company_id:
        raise CompanyScopeError()
    return debtor, station


def _new_transfer(*, debtor, station, category, payment_method, amount, recorded_by,
                  status=TransferStatus.COMPLETED, **fields) -> AccountTransfer:
    now = timezone.now()
    return AccountTransfer.objects.create(
        company_id=debtor.company_id,
        debtor=debtor,
        station=station,
        category=category,
        payment_method=payment_method,
        amount=amount,
        status=status,
        recorded_by=recorded_by,
        completed_at=now if status == TransferStatus.COMPLETED else None,
        **fields,
    )


@transaction.atomic
def process_cash_settlement(
    *,
    debtor_id: UUID,
    station_id: UUID,
    amount,
    payment_reference: str = "",
    description: str = "",
    shift_id: Optional[UUID] = None,
    recorded_by=None,
) -> AccountTransfer:
    """
    Debtor pays cash at a station.

    Credits the debtor's account at the station and puts the cash into the
    station wallet.

    Raises:
        DebtorAccountNotFoundError: Debtor never owed anything at the station
        AmountExceedsDebtError: Amount larger than the station debt
    """
    amount = to_money(amount)
    debtor, station = _load_parties(debtor_id, station_id)
    account = lock_account(station_id=station.id, debtor_id=debtor.id)

    transfer = _new_transfer(
        debtor=debtor,
        station=station,
        category=TransactionCategory.CASH_SETTLEMENT,
        payment_method=PaymentMethod.CASH,
        amount=amount,
        payment_reference=payment_reference,
        description=description,
        shift_id=shift_id,
        recorded_by=recorded_by,
    )
    post_entry(
        account=account,
        direction=TransactionDirection.CREDIT,
        category=TransactionCategory.CASH_SETTLEMENT,
        amount=amount,
        transfer=transfer,
        description=description or 'Cash settlement',
        payment_reference=payment_reference,
        shift_id=shift_id,
        recorded_by=recorded_by,
    )
    credit_wallet(
        station_id=station.id,
        amount=amount,
        source=WalletSource.DEBT_SETTLEMENT,
        reference=payment_reference or str(transfer.id),
        description=f'Debt settlement from {debtor.name}',
        recorded_by=recorded_by,
    )
    logger.info('Cash settlement processed',
                extra={'transfer_id': str(transfer.id), 'debtor_id': str(debtor.id), 'amount': str(amount)})
    return transfer


def bulk_record_payments(
    *,
    payments: List[Dict],
    company_id: Optional[UUID] = None,
    station_ids: Optional[List[UUID]] = None,
    recorded_by=None,
) -> Dict:
    """
    Record a batch of cash settlements, one savepoint per payment.

    A payment that fails (unknown debtor, amount above the debt, station
    out of reach) is reported and the rest go through. ``company_id`` and
    ``station_ids`` restrict the debtors and stations a payment may touch;
    None means no restriction.

    Returns:
        Dict with ``successful`` transfers, ``failed`` payments
        (index, payment, error, code), the counts and ``success_rate``.
    """
    successful, failed = [], []
    for index, payment in enumerate(payments):
        try:
            with transaction.atomic():
                if company_id is not None and not Debtor.objects.filter(
                        id=payment['debtor_id'], company_id=company_id).exists():
                    raise DebtorNotFoundError()
                if station_ids is not None and payment['station_id'] not in station_ids:
                    raise PermissionDenied('You do not have access to this station.')
                successful.append(process_cash_settlement(recorded_by=recorded_by, **payment))
        except APIException as exc:
            failed.append({
                'index': index,
                'payment': payment,
                'error': str(exc.detail),
                'code': exc.get_codes(),
            })

    total = len(payments)
    logger.info('Bulk cash settlements recorded',
                extra={'total': total, 'successful': len(successful), 'failed': len(failed)})
    return {
        'successful': successful,
        'failed': failed,
        'total': total,
        'success_count': len(successful),
        'failure_count': len(failed),
        'success_rate': round(len(successful) / total * 100, 1) if total else 0.0,
    }


@transaction.atomic
def process_bank_settlement(
    *,
    debtor_id: UUID,
    station_id: UUID,
    bank_account_id: UUID,
    amount,
    transaction_mode: str = BankTransactionMode.BANK_TRANSFER,
    payment_reference: str = "",
    description: str = "",
    recorded_by=None,
) -> AccountTransfer:
    """
    Debtor pays into a company bank account.

    A cheque creates a PENDING transfer and a pending bank transaction; the
    debt is only reduced when the cheque clears (``complete_transfer``).
    Every other mode settles immediately.
    """
    amount = to_money(amount)
    debtor, station = _load_parties(debtor_id, station_id)
    account = lock_account(station_id=station.id, debtor_id=debtor.id)
    if amount > account.current_debt:
        raise AmountExceedsDebtError(
            f'Amount {amount} exceeds outstanding debt of {account.current_debt} at {station.name}.'
        )

    pending = transaction_mode == BankTransactionMode.CHEQUE
    bank_txn = record_bank_transaction(
        bank_account_id=bank_account_id,
        amount=amount,
        transaction_type=BankTransactionType.DEBT_SETTLEMENT,
        transaction_mode=transaction_mode,
        station=station,
        reference=payment_reference,
        description=description or f'Debt settlement from {debtor.name}',
        recorded_by=recorded_by,
        pending=pending,
    )
    transfer = _new_transfer(
        debtor=debtor,
        station=station,
        category=TransactionCategory.BANK_SETTLEMENT,
        payment_method=PaymentMethod.BANK,
        amount=amount,
        status=TransferStatus.PENDING if pending else TransferStatus.COMPLETED,
        transaction_mode=transaction_mode,
        bank_account_id=bank_account_id,
        bank_transaction=bank_txn,
        payment_reference=payment_reference,
        description=description,
        recorded_by=recorded_by,
    )
    if not pending:
        post_entry(
            account=account,
            direction=TransactionDirection.CREDIT,
            category=TransactionCategory.BANK_SETTLEMENT,
            amount=amount,
            transfer=transfer,
            description=description or 'Bank settlement',
            payment_reference=payment_reference,
            recorded_by=recorded_by,
        )

    logger.info('Bank settlement processed',
                extra={'transfer_id': str(transfer.id), 'mode': transaction_mode,
                       'transfer_status': transfer.status, 'amount': str(amount)})
    return transfer


@transaction.atomic
def process_electronic_transfer(
    *,
    debtor_id: UUID,
    target_debtor_id: UUID,
    station_id: UUID,
    amount,
    payment_reference: str = "",
    description: str = "",
    recorded_by=None,
) -> AccountTransfer:
    """
    Debtor pays through a payment processor (mobile money, card).

    The customer's debt at the station moves to the processor's account at
    the same station; the processor settles it later.

    Raises:
        InvalidPaymentProcessorError: Target is not an active processor of the company
    """
    amount = to_money(amount)
    debtor, station = _load_parties(debtor_id, station_id)
    try:
        processor = Debtor.objects.get(id=target_debtor_id)
    except Debtor.DoesNotExist:
        raise DebtorNotFoundError('Payment processor not found.')
    if (
        processor.id == debtor.id
        or processor.company_id != debtor.company_id
        or processor.debtor_type != DebtorType.PAYMENT_PROCESSOR
        or not processor.is_active
    ):
        raise InvalidPaymentProcessorError()

    customer_account = lock_account(station_id=station.id, debtor_id=debtor.id)
    processor_account = lock_account(station_id=station.id, debtor_id=processor.id, create=True)

    transfer = _new_transfer(
        debtor=debtor,
        station=station,
        category=TransactionCategory.ELECTRONIC_TRANSFER,
        payment_method=PaymentMethod.ELECTRONIC,
        amount=amount,
        target_debtor=processor,
        payment_reference=payment_reference,
        description=description,
        recorded_by=recorded_by,
    )
    post_entry(
        account=customer_account,
        direction=TransactionDirection.CREDIT,
        category=TransactionCategory.ELECTRONIC_TRANSFER,
        amount=amount,
        transfer=transfer,
        description=description or f'Paid via {processor.name}',
        payment_reference=payment_reference,
        recorded_by=recorded_by,
    )
    post_entry(
        account=processor_account,
        direction=TransactionDirection.DEBIT,
        category=TransactionCategory.ELECTRONIC_TRANSFER,
        amount=amount,
        transfer=transfer,
        description=f'Payment received for {debtor.name}',
        payment_reference=payment_reference,
        recorded_by=recorded_by,
    )
    logger.info('Electronic transfer processed',
                extra={'transfer_id': str(transfer.id), 'processor_id': str(processor.id), 'amount': str(amount)})
    return transfer


def _debt_rows(accounts: List[StationDebtorAccount]) -> List[Dict]:
    return [
        {
            'station_id': account.station_id,
            'station_name': account.station.name,
            'account_id': account.id,
            'current_debt': account.current_debt,
            'oldest_debt_date': oldest_open_debit_date(account),
        }
        for account in accounts
        if account.current_debt > 0
    ]


def preview_allocation(
    *,
    debtor_id: UUID,
    amount,
    allocation_method: str = AllocationMethod.PROPORTIONAL,
    manual_allocations: Optional[List[Dict]] = None,
) -> Dict:
    """Allocation a cross-station settlement would make, without saving anything."""
    amount = to_money(amount)
    accounts = list(
        StationDebtorAccount.objects
        .filter(debtor_id=debtor_id)
        .select_related('station')
        .order_by('station__name', 'station_id')
    )
    rows = _debt_rows(accounts)
    total_debt = sum((row['current_debt'] for row in rows), Decimal('0.00'))
    allocations = allocate(amount, rows, allocation_method, manual_allocations)
    return {
        'debtor_id': debtor_id,
        'amount': amount,
        'allocation_method': allocation_method,
        'total_debt': total_debt,
        'remaining_total_debt': total_debt - amount,
        'allocations': allocations,
    }


@transaction.atomic
def process_cross_station_settlement(
    *,
    debtor_id: UUID,
    payment_station_id: UUID,
    amount,
    allocation_method: str = AllocationMethod.PROPORTIONAL,
    manual_allocations: Optional[List[Dict]] = None,
    payment_method: str = PaymentMethod.CASH,
    bank_account_id: Optional[UUID] = None,
    transaction_mode: str = BankTransactionMode.BANK_TRANSFER,
    payment_reference: str = "",
    description: str = "",
    recorded_by=None,
) -> AccountTransfer:
    """
    One payment received at one station settles debt at several stations.

    The payment is split over the debtor's station accounts with the chosen
    allocation method; allocations always add up to the payment exactly.
    Cash goes to the receiving station's wallet, bank payments are booked
    on ``bank_account_id``.
    """
    amount = to_money(amount)
    debtor, station = _load_parties(debtor_id, payment_station_id)
    if not debtor.is_active:
        raise InactiveDebtorError()

    accounts = lock_debtor_accounts(debtor.id)
    by_station = {str(account.station_id): account for account in accounts}
    allocations = allocate(amount, _debt_rows(accounts), allocation_method, manual_allocations)

    bank_txn = None
    if payment_method == PaymentMethod.BANK:
        bank_txn = record_bank_transaction(
            bank_account_id=bank_account_id,
            amount=amount,
            transaction_type=BankTransactionType.DEBT_SETTLEMENT,
            transaction_mode=transaction_mode,
            station=station,
            reference=payment_reference,
            description=description or f'Cross-station settlement from {debtor.name}',
            recorded_by=recorded_by,
        )

    transfer = _new_transfer(
        debtor=debtor,
        station=station,
        category=TransactionCategory.CROSS_STATION,
        payment_method=payment_method,
        amount=amount,
        transaction_mode=transaction_mode if bank_txn else '',
        bank_account_id=bank_account_id if bank_txn else None,
        bank_transaction=bank_txn,
        allocation_method=allocation_method,
        allocations=[
            {
                'station_id': str(row['station_id']),
                'station_name': row['station_name'],
                'amount': str(row['amount']),
                'remaining_debt': str(row['remaining_debt']),
            }
            for row in allocations
        ],
        payment_reference=payment_reference,
        description=description,
        recorded_by=recorded_by,
    )

    for row in allocations:
        post_entry(
            account=by_station[str(row['station_id'])],
            direction=TransactionDirection.CREDIT,
            category=TransactionCategory.CROSS_STATION,
            amount=row['amount'],
            transfer=transfer,
            description=description or f'Paid at {station.name}',
            payment_reference=payment_reference,
            recorded_by=recorded_by,
        )

    if payment_method == PaymentMethod.CASH:
        credit_wallet(
            station_id=station.id,
            amount=amount,
            source=WalletSource.DEBT_SETTLEMENT,
            reference=payment_reference or str(transfer.id),
            description=f'Cross-station settlement from {debtor.name}',
            recorded_by=recorded_by,
        )

    logger.info('Cross-station settlement processed',
                extra={'transfer_id': str(transfer.id), 'allocation_method': allocation_method,
                       'stations': len(allocations), 'amount': str(amount)})
    return transfer


@transaction.atomic
def write_off_debt(
    *,
    debtor_id: UUID,
    station_id: UUID,
    amount,
    reason: str,
    description: str,
    recorded_by=None,
) -> AccountTransfer:
    """
    Write off uncollectable debt at a station. Write-offs cannot be reversed.
    """
    if len((reason or '').strip()) < MIN_WRITE_OFF_REASON:
        raise ReasonRequiredError('Reason must be at least 5 characters.')
    if len((description or '').strip()) < MIN_WRITE_OFF_DESCRIPTION:
        raise ReasonRequiredError('Description must be at least 20 characters.')

    amount = to_money(amount)
    debtor, station = _load_parties(debtor_id, station_id)
    account = lock_account(station_id=station.id, debtor_id=debtor.id)

    transfer = _new_transfer(
        debtor=debtor,
        station=station,
        category=TransactionCategory.WRITE_OFF,
        payment_method=PaymentMethod.NONE,
        amount=amount,
        reason=reason,
        description=description,
        recorded_by=recorded_by,
    )
    post_entry(
        account=account,
        direction=TransactionDirection.CREDIT,
        category=TransactionCategory.WRITE_OFF,
        amount=amount,
        transfer=transfer,
        description=description,
        recorded_by=recorded_by,
    )
    logger.warning('Debt written off',
                   extra={'transfer_id': str(transfer.id), 'debtor_id': str(debtor.id), 'amount': str(amount)})
    return transfer


def _reversible_transfer(transaction_id: UUID) -> AccountTransfer:
    try:
        entry = DebtorTransaction.objects.get(id=transaction_id)
    except DebtorTransaction.DoesNotExist:
        raise DebtorTransactionNotFoundError()
    if entry.transfer_id is None:
        raise SettlementNotReversibleError()

    transfer = (
        AccountTransfer.objects
        .select_for_update()
        .select_related('debtor', 'station', 'bank_transaction')
        .get(id=entry.transfer_id)
    )
    if transfer.category not in REVERSIBLE_CATEGORIES or transfer.status != TransferStatus.COMPLETED:
        raise SettlementNotReversibleError()
    if transfer.is_reversed:
        raise SettlementAlreadyReversedError()
    return transfer


@transaction.atomic
def reverse_settlement(*, transaction_id: UUID, reason: str, recorded_by=None) -> AccountTransfer:
    """
    Undo a completed settlement.

    Every ledger entry of the settlement gets an opposite REVERSAL entry,
    the debt is restored and the money side is undone: cash leaves the
    wallet again, bank payments are reversed on the bank account. A
    settlement can be reversed once.

    Args:
        transaction_id: Any ledger entry of the settlement

    Raises:
        SettlementNotReversibleError: Sale, write-off, reversal or pending transfer
        SettlementAlreadyReversedError: Already reversed
    """
    if len((reason or '').strip()) < MIN_REVERSAL_REASON:
        raise ReasonRequiredError()

    original = _reversible_transfer(transaction_id)
    reversal = _new_transfer(
        debtor=original.debtor,
        station=original.station,
        category=TransactionCategory.REVERSAL,
        payment_method=original.payment_method,
        amount=original.amount,
        target_debtor=original.target_debtor,
        reason=reason,
        description=f'Reversal of {original.get_category_display().lower()}',
        reversal_of=original,
        recorded_by=recorded_by,
    )

    entries = original.ledger_entries.filter(reversed_by__isnull=True).order_by('created_at')
    for entry in entries:
        account = (
            StationDebtorAccount.objects
            .select_for_update()
            .select_related('station')
            .get(id=entry.account_id)
        )
        opposite = (
            TransactionDirection.DEBIT
            if entry.direction == TransactionDirection.CREDIT
            else TransactionDirection.CREDIT
        )
        undo = post_entry(
            account=account,
            direction=opposite,
            category=TransactionCategory.REVERSAL,
            amount=entry.amount,
            transfer=reversal,
            description=f'Reversal: {reason}'[:500],
            payment_reference=entry.payment_reference,
            recorded_by=recorded_by,
        )
        entry.reversed_by = undo
        entry.save(update_fields=['reversed_by'])

    if original.bank_transaction_id:
        bank_txn = reverse_bank_transaction(
            original=original.bank_transaction, reason=reason, recorded_by=recorded_by
        )
        reversal.bank_transaction = bank_txn
        reversal.bank_account_id = bank_txn.bank_account_id
        reversal.save(update_fields=['bank_transaction', 'bank_account', 'updated_at'])
    elif original.payment_method == PaymentMethod.CASH:
        debit_wallet(
            station_id=original.station_id,
            amount=original.amount,
            source=WalletSource.REVERSAL,
            reference=str(original.id),
            description=f'Reversal: {reason}'[:255],
            recorded_by=recorded_by,
        )

    logger.warning('Settlement reversed',
                   extra={'transfer_id': str(original.id), 'reversal_id': str(reversal.id),
                          'amount': str(original.amount)})
    return reversal
