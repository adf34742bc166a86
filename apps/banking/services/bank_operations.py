"""
Bank account operations.

Deposits move cash from a station wallet into a company bank account,
withdrawals move it back. Debt settlements paid through the bank are
recorded here as well; cheques stay PENDING (no balance effect) until
they clear.
"""
import logging
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.db.models import ProtectedError
from django.utils import timezone

from apps.stations.models import Station
from ..exceptions import (
    BankAccountNotFoundError,
    BankTransactionLockedError,
    BankTransactionNotFoundError,
    BankTransactionNotPendingError,
    CompanyMismatchError,
    InactiveBankAccountError,
    InsufficientBankBalanceError,
)
from ..models import (
    BankAccount,
    BankTransaction,
    BankTransactionStatus,
    BankTransactionType,
    WalletSource,
)
from .wallet_operations import credit_wallet, debit_wallet, to_money

logger = logging.getLogger(__name__)


def _lock_bank_account(bank_account_id: UUID) -> BankAccount:
    try:
        account = (
            BankAccount.objects
            .select_for_update()
            .select_related('bank')
            .get(id=bank_account_id)
        )
    except BankAccount.DoesNotExist:
        raise BankAccountNotFoundError()
    if not account.is_active:
        raise InactiveBankAccountError()
    return account


def _apply_to_balance(account: BankAccount, txn: BankTransaction) -> None:
    """Move the bank balance for a completed transaction and snapshot it."""
    before = account.current_balance
    if txn.is_inflow:
        after = before + txn.amount
    else:
        if txn.amount > before:
            raise InsufficientBankBalanceError(
                f'Bank account balance ({before}) is insufficient for {txn.amount}.'
            )
        after = before - txn.amount

    account.current_balance = after
    account.save(update_fields=['current_balance', 'updated_at'])
    txn.previous_balance = before
    txn.new_balance = after


@transaction.atomic
def record_bank_transaction(
    *,
    bank_account_id: UUID,
    amount,
    transaction_type: str,
    transaction_mode: str,
    station: Optional[Station] = None,
    reference: str = "",
    description: str = "",
    recorded_by=None,
    pending: bool = False,
) -> BankTransaction:
    """
    Record a movement on a bank account.

    Args:
        pending: Leave the transaction PENDING without touching the balance
            (uncleared cheques). ``complete_bank_transaction`` applies it later.
    """
    amount = to_money(amount)
    account = _lock_bank_account(bank_account_id)
    if station is not None and station.company_id != account.company_id:
        raise CompanyMismatchError()

    now = timezone.now()
    txn = BankTransaction(
        company_id=account.company_id,
        bank_account=account,
        station=station,
        transaction_type=transaction_type,
        transaction_mode=transaction_mode,
        amount=amount,
        reference=reference,
        description=description,
        recorded_by=recorded_by,
        transaction_date=now,
        status=BankTransactionStatus.PENDING if pending else BankTransactionStatus.COMPLETED,
    )
    if not pending:
        _apply_to_balance(account, txn)
        txn.value_date = now.date()
        txn.approved_by = recorded_by
        txn.approved_at = now
    txn.save()

    logger.info(
        'Bank transaction recorded',
        extra={'bank_transaction_id': str(txn.id), 'type': transaction_type,
               'amount': str(amount), 'status': txn.status},
    )
    return txn


@transaction.atomic
def create_bank_deposit(
    *,
    station_id: UUID,
    bank_account_id: UUID,
    amount,
    transaction_mode: str,
    reference: str = "",
    description: str = "",
    recorded_by=None,
) -> BankTransaction:
    """
    Bank station cash: debit the station wallet, credit the bank account.

    Raises:
        InsufficientWalletBalanceError: Amount exceeds the wallet balance
    """
    station = Station.objects.get(id=station_id)
    txn = record_bank_transaction(
        bank_account_id=bank_account_id,
        amount=amount,
        transaction_type=BankTransactionType.DEPOSIT,
        transaction_mode=transaction_mode,
        station=station,
        reference=reference,
        description=description or 'Station cash deposit',
        recorded_by=recorded_by,
    )
    debit_wallet(
        station_id=station.id,
        amount=txn.amount,
        source=WalletSource.BANK_DEPOSIT,
        reference=reference or str(txn.id),
        description=description or f'Deposit to {txn.bank_account}',
        recorded_by=recorded_by,
    )
    return txn


@transaction.atomic
def create_withdrawal(
    *,
    station_id: UUID,
    bank_account_id: UUID,
    amount,
    transaction_mode: str,
    reference: str = "",
    description: str = "",
    recorded_by=None,
) -> BankTransaction:
    """
    Withdraw cash from the bank into a station wallet.

    Raises:
        InsufficientBankBalanceError: Amount exceeds the bank balance
    """
    station = Station.objects.get(id=station_id)
    txn = record_bank_transaction(
        bank_account_id=bank_account_id,
        amount=amount,
        transaction_type=BankTransactionType.WITHDRAWAL,
        transaction_mode=transaction_mode,
        station=station,
        reference=reference,
        description=description or 'Cash withdrawal to station',
        recorded_by=recorded_by,
    )
    credit_wallet(
        station_id=station.id,
        amount=txn.amount,
        source=WalletSource.BANK_WITHDRAWAL,
        reference=reference or str(txn.id),
        description=description or f'Withdrawal from {txn.bank_account}',
        recorded_by=recorded_by,
    )
    return txn


def _lock_transaction(transaction_id: UUID) -> BankTransaction:
    try:
        return (
            BankTransaction.objects
            .select_for_update()
            .get(id=transaction_id)
        )
    except BankTransaction.DoesNotExist:
        raise BankTransactionNotFoundError()


@transaction.atomic
def complete_bank_transaction(*, transaction_id: UUID, approved_by=None) -> BankTransaction:
    """Clear a pending transaction and apply it to the bank balance."""
    txn = _lock_transaction(transaction_id)
    if txn.status != BankTransactionStatus.PENDING:
        raise BankTransactionNotPendingError()

    account = _lock_bank_account(txn.bank_account_id)
    _apply_to_balance(account, txn)

    now = timezone.now()
    txn.status = BankTransactionStatus.COMPLETED
    txn.value_date = now.date()
    txn.approved_by = approved_by
    txn.approved_at = now
    txn.save()

    logger.info('Bank transaction completed',
                extra={'bank_transaction_id': str(txn.id), 'amount': str(txn.amount)})
    return txn


@transaction.atomic
def cancel_bank_transaction(*, transaction_id: UUID) -> BankTransaction:
    txn = _lock_transaction(transaction_id)
    if txn.status != BankTransactionStatus.PENDING:
        raise BankTransactionNotPendingError()
    txn.status = BankTransactionStatus.CANCELLED
    txn.save(update_fields=['status', 'updated_at'])
    return txn


@transaction.atomic
def update_bank_transaction(*, transaction_id: UUID, **fields) -> BankTransaction:
    """Only descriptive fields are editable; amounts and balances are immutable."""
    txn = _lock_transaction(transaction_id)
    for field in ('description', 'reference', 'value_date'):
        if field in fields:
            setattr(txn, field, fields[field])
    txn.save()
    return txn


@transaction.atomic
def delete_bank_transaction(*, transaction_id: UUID) -> None:
    """
    Delete a pending transaction.

    Completed transactions have moved money and are kept; transactions
    that belong to a debt settlement are removed through the settlement.
    """
    txn = _lock_transaction(transaction_id)
    if txn.status != BankTransactionStatus.PENDING:
        raise BankTransactionNotPendingError('Only pending bank transactions can be deleted.')
    try:
        txn.delete()
    except ProtectedError:
        raise BankTransactionLockedError()


def reverse_bank_transaction(*, original: BankTransaction, reason: str, recorded_by=None) -> BankTransaction:
    """Book a REVERSAL taking the original amount back out of the account."""
    return record_bank_transaction(
        bank_account_id=original.bank_account_id,
        amount=original.amount,
        transaction_type=BankTransactionType.REVERSAL,
        transaction_mode=original.transaction_mode,
        station=original.station,
        reference=original.reference,
        description=f'Reversal: {reason}'[:500],
        recorded_by=recorded_by,
    )
