"""
Station debtor account ledger.

All debt movements go through ``post_entry`` on an account that the caller
has locked with ``lock_account``; this keeps
``current_debt == total_debited - total_credited`` and refuses credits
larger than the outstanding debt.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from django.db.models import Sum
from django.utils import timezone

from ..exceptions import AmountExceedsDebtError, DebtorAccountNotFoundError
from ..models import (
    DebtorTransaction,
    StationDebtorAccount,
    TransactionCategory,
    TransactionDirection,
)

logger = logging.getLogger(__name__)


def lock_account(*, station_id: UUID, debtor_id: UUID, create: bool = False) -> StationDebtorAccount:
    """
    Lock the debtor's account at a station.

    Args:
        create: Open an empty account when none exists (debits only)

    Raises:
        DebtorAccountNotFoundError: No account and ``create`` is False
    """
    if create:
        StationDebtorAccount.objects.get_or_create(station_id=station_id, debtor_id=debtor_id)
    try:
        return (
            StationDebtorAccount.objects
            .select_for_update()
            .select_related('station', 'debtor')
            .get(station_id=station_id, debtor_id=debtor_id)
        )
    except StationDebtorAccount.DoesNotExist:
        raise DebtorAccountNotFoundError()


def lock_debtor_accounts(debtor_id: UUID, station_ids: Optional[Iterable[UUID]] = None) -> List[StationDebtorAccount]:
    """Lock all accounts of a debtor in a stable order."""
    queryset = (
        StationDebtorAccount.objects
        .select_for_update()
        .select_related('station')
        .filter(debtor_id=debtor_id)
    )
    if station_ids is not None:
        queryset = queryset.filter(station_id__in=list(station_ids))
    return list(queryset.order_by('station__name', 'station_id'))


def post_entry(
    *,
    account: StationDebtorAccount,
    direction: str,
    category: str,
    amount: Decimal,
    transfer=None,
    description: str = "",
    payment_reference: str = "",
    vehicle_plate: str = "",
    shift_id: Optional[UUID] = None,
    recorded_by=None,
) -> DebtorTransaction:
    """
    Apply one debit or credit to a locked account.

    Raises:
        AmountExceedsDebtError: Credit larger than the current debt
    """
    before = account.current_debt
    if direction == TransactionDirection.CREDIT:
        if amount > before:
            raise AmountExceedsDebtError(
                f'Amount {amount} exceeds outstanding debt of {before} at {account.station.name}.'
            )
        account.total_credited += amount
    else:
        account.total_debited += amount

    account.current_debt = account.total_debited - account.total_credited
    account.last_transaction_at = timezone.now()
    account.save(update_fields=[
        'current_debt', 'total_debited', 'total_credited', 'last_transaction_at', 'updated_at',
    ])

    entry = DebtorTransaction.objects.create(
        account=account,
        transfer=transfer,
        direction=direction,
        category=category,
        amount=amount,
        balance_before=before,
        balance_after=account.current_debt,
        description=description,
        payment_reference=payment_reference,
        vehicle_plate=vehicle_plate,
        shift_id=shift_id,
        recorded_by=recorded_by,
    )
    logger.info(
        'Debtor ledger entry posted',
        extra={'account_id': str(account.id), 'direction': direction, 'category': category,
               'amount': str(amount), 'balance_after': str(account.current_debt)},
    )
    return entry


def open_debits(account: StationDebtorAccount) -> List[Tuple[datetime, Decimal]]:
    """
    Unpaid parts of the account's debits, oldest first.

    Credits are applied first-in first-out, so the result always sums to
    ``current_debt``. A reversed entry and its REVERSAL counterpart cancel
    out and are left out of both sides, so undoing a payment gives the
    original debits back their own dates.
    """
    live = (
        account.transactions
        .filter(reversed_by__isnull=True)
        .exclude(category=TransactionCategory.REVERSAL)
    )
    pool = (
        live.filter(direction=TransactionDirection.CREDIT).aggregate(total=Sum('amount'))['total']
        or Decimal('0.00')
    )
    remaining = []
    debits = (
        live
        .filter(direction=TransactionDirection.DEBIT)
        .order_by('transaction_date', 'created_at')
        .values_list('transaction_date', 'amount')
    )
    for transaction_date, amount in debits:
        if pool >= amount:
            pool -= amount
            continue
        remaining.append((transaction_date, amount - pool))
        pool = Decimal('0.00')
    return remaining


def oldest_open_debit_date(account: StationDebtorAccount) -> Optional[datetime]:
    items = open_debits(account)
    return items[0][0] if items else None
