"""
Staff transactions.

Manually recorded transactions start PENDING and change the balance only
when approved. Approved payouts (advances, bonuses, claims...) are then
paid with ``process_transaction_payment``; everything else is SETTLED on
approval.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, Optional
from uuid import UUID

from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from apps.banking.models import WalletSource
from apps.banking.services import to_money
from ..exceptions import (
    InvalidTransactionStatusError,
    NotPayableTransactionError,
    StaffTransactionNotFoundError,
    SystemTransactionTypeError,
)
from ..models import (
    PAYABLE_TYPES,
    SYSTEM_TYPES,
    PaymentSource,
    StaffTransaction,
    StaffTransactionStatus,
    StaffTransactionType,
    balance_effect_for,
)
from .accounts import ensure_active, ensure_payable, get_staff_account, lock_staff_account
from .ledger import apply_balance, check_credit_limit
from .payouts import pay_out
from .shortages import create_shortage

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')


@transaction.atomic
def create_staff_transaction(
    *,
    staff_account_id: UUID,
    transaction_type: str,
    amount,
    description: str,
    payment_source: str = "",
    payment_method: str = "",
    reference_number: str = "",
    adjustment_effect: Optional[str] = None,
    shift_id: Optional[UUID] = None,
    notes: str = "",
    recorded_by=None,
) -> StaffTransaction:
    """
    Record a staff transaction for approval. Shortages are recorded (and
    applied) immediately.

    Raises:
        SystemTransactionTypeError: Recoveries and advance deductions
        InactiveStaffAccountError: Account is deactivated
        StaffCreditLimitExceededError: Advance above the credit limit
    """
    if transaction_type in SYSTEM_TYPES:
        raise SystemTransactionTypeError()
    if transaction_type == StaffTransactionType.SHORTAGE:
        shortage = create_shortage(
            staff_account_id=staff_account_id,
            amount=amount,
            description=description,
            reference_number=reference_number,
            shift_id=shift_id,
            recorded_by=recorded_by,
        )
        return shortage.shortage_transaction

    amount = to_money(amount)
    account = lock_staff_account(staff_account_id)
    ensure_active(account)
    if transaction_type == StaffTransactionType.ADVANCE:
        check_credit_limit(account, amount)

    txn = StaffTransaction.objects.create(
        staff_account=account,
        transaction_type=transaction_type,
        balance_effect=balance_effect_for(transaction_type, adjustment_effect),
        status=StaffTransactionStatus.PENDING,
        amount=amount,
        description=description,
        reference_number=reference_number,
        payment_source=payment_source,
        payment_method=payment_method,
        shift_id=shift_id,
        notes=notes,
        recorded_by=recorded_by,
    )
    logger.info(
        'Staff transaction recorded',
        extra={'staff_transaction_id': str(txn.id), 'staff_account_id': str(account.id),
               'type': transaction_type, 'amount': str(amount)},
    )
    return txn


def get_staff_transaction(transaction_id: UUID) -> StaffTransaction:
    try:
        return (
            StaffTransaction.objects
            .select_related('staff_account__user', 'staff_account__station')
            .get(id=transaction_id)
        )
    except StaffTransaction.DoesNotExist:
        raise StaffTransactionNotFoundError()


def _lock_transaction(transaction_id: UUID) -> StaffTransaction:
    try:
        return StaffTransaction.objects.select_for_update().get(id=transaction_id)
    except StaffTransaction.DoesNotExist:
        raise StaffTransactionNotFoundError()


def _append_note(txn: StaffTransaction, note: str) -> None:
    if note:
        txn.notes = f"{txn.notes}\n{note}".strip()


@transaction.atomic
def approve_staff_transaction(*, transaction_id: UUID, approved_by=None, notes: str = "") -> StaffTransaction:
    """
    Approve a pending transaction and apply it to the balance.

    Raises:
        InvalidTransactionStatusError: Not PENDING
        InactiveStaffAccountError: Account is deactivated
        StaffCreditLimitExceededError: Advance above the credit limit
    """
    txn = _lock_transaction(transaction_id)
    if txn.status != StaffTransactionStatus.PENDING:
        raise InvalidTransactionStatusError('Only pending transactions can be approved.')

    account = lock_staff_account(txn.staff_account_id)
    ensure_active(account)
    if txn.transaction_type == StaffTransactionType.ADVANCE:
        check_credit_limit(account, txn.amount)

    now = timezone.now()
    txn.approved_by = approved_by
    txn.approved_at = now
    _append_note(txn, notes)
    if txn.transaction_type in PAYABLE_TYPES:
        txn.status = StaffTransactionStatus.APPROVED
    else:
        txn.status = StaffTransactionStatus.SETTLED
        txn.settled_at = now
    txn.save()
    apply_balance(account, txn)
    return txn


@transaction.atomic
def reject_staff_transaction(*, transaction_id: UUID, rejected_by=None, reason: str = "") -> StaffTransaction:
    txn = _lock_transaction(transaction_id)
    if txn.status != StaffTransactionStatus.PENDING:
        raise InvalidTransactionStatusError('Only pending transactions can be rejected.')

    txn.status = StaffTransactionStatus.REJECTED
    txn.approved_by = rejected_by
    txn.approved_at = timezone.now()
    _append_note(txn, reason)
    txn.save()

    logger.info('Staff transaction rejected', extra={'staff_transaction_id': str(txn.id)})
    return txn


@transaction.atomic
def process_transaction_payment(
    *,
    transaction_id: UUID,
    payment_source: str = "",
    payment_method: str = "",
    bank_account_id: Optional[UUID] = None,
    reference: str = "",
    processed_by=None,
) -> StaffTransaction:
    """
    Pay out an approved transaction.

    Raises:
        NotPayableTransactionError: Type is never paid out (fines, shortages...)
        InvalidTransactionStatusError: Not APPROVED
        InactiveStaffAccountError, StaffAccountOnHoldError: Account cannot be paid
        InsufficientWalletBalanceError: Station wallet cannot cover it
    """
    txn = _lock_transaction(transaction_id)
    if txn.transaction_type not in PAYABLE_TYPES:
        raise NotPayableTransactionError()
    if txn.status != StaffTransactionStatus.APPROVED:
        raise InvalidTransactionStatusError('Only approved transactions can be paid.')

    account = lock_staff_account(txn.staff_account_id)
    ensure_payable(account)

    txn.payment_source = payment_source or txn.payment_source or PaymentSource.STATION_WALLET
    txn.payment_method = payment_method or txn.payment_method or account.payroll_method
    wallet_source = (
        WalletSource.SALARY_PAYMENT
        if txn.transaction_type == StaffTransactionType.SALARY_PAYMENT
        else WalletSource.STAFF_PAYMENT
    )
    wallet_txn, bank_txn = pay_out(
        account=account,
        amount=txn.amount,
        payment_source=txn.payment_source,
        payment_method=txn.payment_method,
        wallet_source=wallet_source,
        bank_account_id=bank_account_id,
        reference=reference or txn.reference_number,
        description=f'{txn.get_transaction_type_display()} to {account.user.get_full_name()}',
        recorded_by=processed_by,
    )

    txn.wallet_transaction = wallet_txn
    txn.bank_transaction = bank_txn
    txn.bank_account_id = bank_account_id if bank_txn else None
    if reference:
        txn.reference_number = reference
    txn.status = StaffTransactionStatus.SETTLED
    txn.settled_at = timezone.now()
    txn.save()

    if txn.transaction_type == StaffTransactionType.SALARY_PAYMENT:
        account.total_paid += txn.amount
        account.last_payment_date = timezone.localdate()
        account.save(update_fields=['total_paid', 'last_payment_date', 'updated_at'])

    logger.info(
        'Staff transaction paid',
        extra={'staff_transaction_id': str(txn.id), 'amount': str(txn.amount),
               'payment_source': txn.payment_source},
    )
    return txn


def list_staff_transactions(
    *,
    company_id: Optional[UUID] = None,
    station_ids: Optional[Iterable] = None,
    staff_account_id: Optional[UUID] = None,
    station_id: Optional[UUID] = None,
    transaction_types: Optional[Iterable[str]] = None,
    status: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
):
    queryset = StaffTransaction.objects.select_related(
        'staff_account__user', 'staff_account__station', 'recorded_by', 'approved_by'
    )
    if company_id is not None:
        queryset = queryset.filter(staff_account__station__company_id=company_id)
    if station_ids is not None:
        queryset = queryset.filter(staff_account__station_id__in=station_ids)
    if staff_account_id:
        queryset = queryset.filter(staff_account_id=staff_account_id)
    if station_id:
        queryset = queryset.filter(staff_account__station_id=station_id)
    if transaction_types:
        queryset = queryset.filter(transaction_type__in=transaction_types)
    if status:
        queryset = queryset.filter(status=status)
    if date_from:
        queryset = queryset.filter(created_at__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__date__lte=date_to)
    return queryset


def transaction_summary(staff_account_id: UUID, date_from: Optional[date] = None,
                        date_to: Optional[date] = None) -> Dict:
    """Counts and amounts per transaction type; rejected transactions are left out."""
    account = get_staff_account(staff_account_id)
    transactions = list_staff_transactions(
        staff_account_id=staff_account_id, date_from=date_from, date_to=date_to
    ).exclude(status=StaffTransactionStatus.REJECTED)

    by_type = {
        row['transaction_type']: {'count': row['count'], 'total_amount': row['total_amount'] or ZERO}
        for row in transactions.values('transaction_type').annotate(count=Count('id'), total_amount=Sum('amount'))
    }
    totals = transactions.aggregate(
        count=Count('id'),
        total_amount=Sum('amount'),
        total_shortage_deductions=Sum(
            'amount', filter=Q(transaction_type=StaffTransactionType.SHORTAGE_RECOVERY, salary_payment__isnull=False)
        ),
        total_advance_deductions=Sum('amount', filter=Q(transaction_type=StaffTransactionType.ADVANCE_DEDUCTION)),
        total_net_paid=Sum(
            'amount',
            filter=Q(transaction_type=StaffTransactionType.SALARY_PAYMENT, status=StaffTransactionStatus.SETTLED),
        ),
        pending_count=Count('id', filter=Q(status=StaffTransactionStatus.PENDING)),
    )

    return {
        'staff_account_id': account.id,
        'current_balance': account.current_balance,
        'totals': {key: value if value is not None else ZERO for key, value in totals.items()},
        'by_type': by_type,
    }
