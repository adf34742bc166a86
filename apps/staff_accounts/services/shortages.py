"""
Shortages.

A shortage debits the staff account and stays outstanding until it is
recovered (repaid, deducted from salary) or written off. Recoveries are
applied oldest shortage first by payroll.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Optional
from uuid import UUID

from django.db import transaction
from django.db.models import Count, Sum
from django.utils import timezone

from apps.banking.services import to_money
from ..exceptions import AmountExceedsShortageError, ShortageAlreadySettledError, ShortageNotFoundError
from ..models import (
    BalanceEffect,
    SalaryPayment,
    Shortage,
    StaffAccount,
    StaffTransaction,
    StaffTransactionStatus,
    StaffTransactionType,
)
from .accounts import ensure_active, lock_staff_account
from .ledger import apply_balance

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')

SETTLE_BY_PAYMENT = 'PAYMENT'
SETTLE_BY_WRITE_OFF = 'WRITE_OFF'


@transaction.atomic
def create_shortage(
    *,
    staff_account_id: UUID,
    amount,
    description: str,
    reference_number: str = "",
    shortage_date: Optional[date] = None,
    due_date: Optional[date] = None,
    shift_id: Optional[UUID] = None,
    recorded_by=None,
) -> Shortage:
    """
    Record a shortage against a staff member.

    Raises:
        InactiveStaffAccountError: Account is deactivated
    """
    amount = to_money(amount)
    account = lock_staff_account(staff_account_id)
    ensure_active(account)

    now = timezone.now()
    txn = StaffTransaction.objects.create(
        staff_account=account,
        transaction_type=StaffTransactionType.SHORTAGE,
        balance_effect=BalanceEffect.DEBIT,
        status=StaffTransactionStatus.APPROVED,
        amount=amount,
        description=description,
        reference_number=reference_number,
        shift_id=shift_id,
        recorded_by=recorded_by,
        approved_by=recorded_by,
        approved_at=now,
    )
    apply_balance(account, txn)

    shortage = Shortage.objects.create(
        staff_account=account,
        shortage_transaction=txn,
        original_amount=amount,
        amount_remaining=amount,
        description=description,
        reference_number=reference_number,
        shortage_date=shortage_date or timezone.localdate(),
        due_date=due_date,
    )
    logger.info(
        'Shortage recorded',
        extra={'shortage_id': str(shortage.id), 'staff_account_id': str(account.id), 'amount': str(amount)},
    )
    return shortage


def _lock_shortage(shortage_id: UUID) -> Shortage:
    try:
        return Shortage.objects.select_for_update().get(id=shortage_id)
    except Shortage.DoesNotExist:
        raise ShortageNotFoundError()


def recover_shortage(
    *,
    account: StaffAccount,
    shortage: Shortage,
    amount: Decimal,
    transaction_type: str = StaffTransactionType.SHORTAGE_RECOVERY,
    description: str = "",
    salary_payment: Optional[SalaryPayment] = None,
    payment_source: str = "",
    recorded_by=None,
) -> StaffTransaction:
    """Pay down a locked shortage of a locked account."""
    if shortage.is_fully_deducted:
        raise ShortageAlreadySettledError()
    if amount > shortage.amount_remaining:
        raise AmountExceedsShortageError(
            f'Amount {amount} exceeds the remaining shortage of {shortage.amount_remaining}.'
        )

    now = timezone.now()
    txn = StaffTransaction.objects.create(
        staff_account=account,
        transaction_type=transaction_type,
        balance_effect=BalanceEffect.CREDIT,
        status=StaffTransactionStatus.SETTLED,
        amount=amount,
        description=description or f'Recovery of shortage from {shortage.shortage_date}',
        payment_source=payment_source,
        shortage=shortage,
        salary_payment=salary_payment,
        recorded_by=recorded_by,
        approved_by=recorded_by,
        approved_at=now,
        settled_at=now,
    )
    apply_balance(account, txn)

    shortage.amount_deducted += amount
    shortage.amount_remaining -= amount
    if shortage.amount_remaining == ZERO:
        shortage.is_fully_deducted = True
        shortage.settled_at = now
    shortage.save()
    return txn


@transaction.atomic
def settle_shortage(
    *,
    shortage_id: UUID,
    amount=None,
    settlement_type: str = SETTLE_BY_PAYMENT,
    payment_source: str = "",
    notes: str = "",
    recorded_by=None,
) -> Shortage:
    """
    Repay or write off (part of) a shortage. ``amount`` defaults to what remains.

    Raises:
        ShortageAlreadySettledError: Nothing left to recover
        AmountExceedsShortageError: Amount above the remaining shortage
    """
    # Account before shortage, the order payroll takes them in
    account_id = (
        Shortage.objects.filter(id=shortage_id).values_list('staff_account_id', flat=True).first()
    )
    if account_id is None:
        raise ShortageNotFoundError()
    account = lock_staff_account(account_id)
    shortage = _lock_shortage(shortage_id)
    if shortage.is_fully_deducted:
        raise ShortageAlreadySettledError()
    amount = to_money(amount if amount is not None else shortage.amount_remaining)

    if settlement_type == SETTLE_BY_WRITE_OFF:
        txn_type = StaffTransactionType.WRITE_OFF
        description = notes or 'Shortage written off'
    else:
        txn_type = StaffTransactionType.SHORTAGE_RECOVERY
        description = notes or 'Shortage repaid'

    recover_shortage(
        account=account,
        shortage=shortage,
        amount=amount,
        transaction_type=txn_type,
        description=description,
        payment_source=payment_source,
        recorded_by=recorded_by,
    )
    logger.info(
        'Shortage settled',
        extra={'shortage_id': str(shortage.id), 'amount': str(amount), 'settlement_type': settlement_type,
               'remaining': str(shortage.amount_remaining)},
    )
    return shortage


def get_shortage(shortage_id: UUID) -> Shortage:
    try:
        return Shortage.objects.select_related('staff_account__station', 'staff_account__user').get(id=shortage_id)
    except Shortage.DoesNotExist:
        raise ShortageNotFoundError()


def get_outstanding_shortages(staff_account_id: UUID):
    """Unrecovered shortages, oldest first."""
    return (
        Shortage.objects
        .filter(staff_account_id=staff_account_id, is_fully_deducted=False)
        .order_by('shortage_date', 'created_at')
    )


def list_shortages(*, company_id=None, station_ids=None, staff_account_id=None, station_id=None,
                   outstanding=None):
    queryset = Shortage.objects.select_related('staff_account__user', 'staff_account__station')
    if company_id is not None:
        queryset = queryset.filter(staff_account__station__company_id=company_id)
    if station_ids is not None:
        queryset = queryset.filter(staff_account__station_id__in=station_ids)
    if staff_account_id:
        queryset = queryset.filter(staff_account_id=staff_account_id)
    if station_id:
        queryset = queryset.filter(staff_account__station_id=station_id)
    if outstanding is not None:
        queryset = queryset.filter(is_fully_deducted=not outstanding)
    return queryset


def _totals(queryset) -> Dict:
    totals = queryset.aggregate(
        count=Count('id'),
        total_original=Sum('original_amount'),
        total_deducted=Sum('amount_deducted'),
        total_remaining=Sum('amount_remaining'),
    )
    return {key: value if value is not None else ZERO for key, value in totals.items()}


def shortage_summary(staff_account_id: UUID) -> Dict:
    shortages = Shortage.objects.filter(staff_account_id=staff_account_id)
    outstanding = _totals(shortages.filter(is_fully_deducted=False))
    settled = _totals(shortages.filter(is_fully_deducted=True))
    overall = _totals(shortages)

    return {
        'staff_account_id': staff_account_id,
        'outstanding': outstanding,
        'settled': {
            'count': settled['count'],
            'total_original': settled['total_original'],
            'total_deducted': settled['total_deducted'],
        },
        'overall': {
            'count': overall['count'],
            'total_shortages': overall['total_original'],
            'total_deducted': overall['total_deducted'],
            'total_remaining': overall['total_remaining'],
        },
    }
