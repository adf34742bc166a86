"""
Salary calculation and payment.

A salary payment moves CALCULATED -> APPROVED -> PAID. Deductions are
worked out when the payment is created (other deductions first, then
outstanding shortages oldest first, then advances) and never exceed the
gross salary. Processing re-checks those balances, records the recoveries
and pays the net amount from the chosen source.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import APIException

from apps.banking.models import WalletSource
from apps.banking.services import to_money
from ..exceptions import (
    BankAccountRequiredError,
    DuplicateSalaryPaymentError,
    InvalidSalaryStatusError,
    SalaryPaymentNotFoundError,
    StaleSalaryCalculationError,
)
from ..models import (
    OPEN_SALARY_STATUSES,
    BalanceEffect,
    PaymentSource,
    SalaryPayment,
    SalaryPaymentStatus,
    Shortage,
    StaffAccount,
    StaffTransaction,
    StaffTransactionStatus,
    StaffTransactionType,
)
from .accounts import ensure_payable, lock_staff_account, next_payment_date
from .ledger import apply_balance
from .payouts import pay_out
from .shortages import get_outstanding_shortages, recover_shortage

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')
CENT = Decimal('0.01')


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT)


def calculate_salary(
    *,
    staff_account: StaffAccount,
    gross_salary=None,
    deduct_shortages: bool = True,
    deduct_advances: bool = True,
    other_deductions=ZERO,
    bonuses=ZERO,
) -> Dict:
    """
    Work out a salary without saving anything.

    ``gross_salary`` defaults to the account's salary. Deductions are
    taken in order (other, shortages oldest first, advances) until the
    gross salary is used up; bonuses are added on top.
    """
    gross = _money(staff_account.salary_amount if gross_salary is None else gross_salary)
    available = gross

    other = min(_money(other_deductions), available)
    available -= other

    allocations = []
    shortage_total = ZERO
    if deduct_shortages:
        for shortage in get_outstanding_shortages(staff_account.id):
            if available <= ZERO:
                break
            take = min(shortage.amount_remaining, available)
            allocations.append({'shortage_id': shortage.id, 'amount': take})
            shortage_total += take
            available -= take

    advance = ZERO
    if deduct_advances:
        advance = min(max(staff_account.outstanding_advances, ZERO), available)
        available -= advance

    bonus = _money(bonuses)
    total_deductions = other + shortage_total + advance
    return {
        'staff_account_id': staff_account.id,
        'gross_salary': gross,
        'shortage_deductions': shortage_total,
        'shortage_allocations': allocations,
        'advance_deductions': advance,
        'other_deductions': other,
        'bonuses_added': bonus,
        'total_deductions': total_deductions,
        'net_salary': gross - total_deductions + bonus,
    }


def _ensure_no_overlap(account: StaffAccount, period_start: date, period_end: date) -> None:
    overlapping = SalaryPayment.objects.filter(
        staff_account=account,
        status__in=OPEN_SALARY_STATUSES,
        period_start__lte=period_end,
        period_end__gte=period_start,
    )
    if overlapping.exists():
        raise DuplicateSalaryPaymentError()


@transaction.atomic
def create_salary_payment(
    *,
    staff_account_id: UUID,
    period_start: date,
    period_end: date,
    payment_date: date,
    payment_source: str = PaymentSource.STATION_WALLET,
    payment_method: str = "",
    bank_account_id: Optional[UUID] = None,
    gross_salary=None,
    other_deductions=ZERO,
    bonuses=ZERO,
    deduct_shortages: bool = True,
    deduct_advances: bool = True,
    description: str = "",
    notes: str = "",
    created_by=None,
) -> SalaryPayment:
    """
    Calculate and save a salary payment for one staff account.

    Raises:
        InactiveStaffAccountError, StaffAccountOnHoldError: Account cannot be paid
        BankAccountRequiredError: Bank source without a bank account
        DuplicateSalaryPaymentError: Overlaps an existing payment
        InvalidAmountError: Gross salary is not positive
    """
    account = lock_staff_account(staff_account_id)
    ensure_payable(account)
    if payment_source == PaymentSource.BANK_ACCOUNT and bank_account_id is None:
        raise BankAccountRequiredError()
    _ensure_no_overlap(account, period_start, period_end)

    calculation = calculate_salary(
        staff_account=account,
        gross_salary=gross_salary,
        deduct_shortages=deduct_shortages,
        deduct_advances=deduct_advances,
        other_deductions=other_deductions,
        bonuses=bonuses,
    )
    to_money(calculation['gross_salary'])

    payment = SalaryPayment.objects.create(
        staff_account=account,
        station_id=account.station_id,
        period_start=period_start,
        period_end=period_end,
        payment_date=payment_date,
        gross_salary=calculation['gross_salary'],
        shortage_deductions=calculation['shortage_deductions'],
        advance_deductions=calculation['advance_deductions'],
        other_deductions=calculation['other_deductions'],
        bonuses_added=calculation['bonuses_added'],
        total_deductions=calculation['total_deductions'],
        net_salary=calculation['net_salary'],
        shortage_allocations=[
            {'shortage_id': str(row['shortage_id']), 'amount': str(row['amount'])}
            for row in calculation['shortage_allocations']
        ],
        payment_source=payment_source,
        payment_method=payment_method or account.payroll_method,
        bank_account_id=bank_account_id,
        description=description,
        notes=notes,
        status=SalaryPaymentStatus.CALCULATED,
        created_by=created_by,
    )
    logger.info(
        'Salary payment calculated',
        extra={'salary_payment_id': str(payment.id), 'staff_account_id': str(account.id),
               'gross': str(payment.gross_salary), 'net': str(payment.net_salary)},
    )
    return payment


def get_salary_payment(salary_payment_id: UUID) -> SalaryPayment:
    try:
        return (
            SalaryPayment.objects
            .select_related('staff_account__user', 'station', 'bank_account')
            .get(id=salary_payment_id)
        )
    except SalaryPayment.DoesNotExist:
        raise SalaryPaymentNotFoundError()


def _lock_payment(salary_payment_id: UUID) -> SalaryPayment:
    try:
        return SalaryPayment.objects.select_for_update().get(id=salary_payment_id)
    except SalaryPayment.DoesNotExist:
        raise SalaryPaymentNotFoundError()


@transaction.atomic
def approve_salary_payment(*, salary_payment_id: UUID, approved_by=None, notes: str = "") -> SalaryPayment:
    payment = _lock_payment(salary_payment_id)
    if payment.status != SalaryPaymentStatus.CALCULATED:
        raise InvalidSalaryStatusError('Only calculated salary payments can be approved.')

    payment.status = SalaryPaymentStatus.APPROVED
    payment.approved_by = approved_by
    payment.approved_at = timezone.now()
    if notes:
        payment.notes = f"{payment.notes}\n{notes}".strip()
    payment.save()
    return payment


@transaction.atomic
def cancel_salary_payment(*, salary_payment_id: UUID, reason: str = "") -> SalaryPayment:
    payment = _lock_payment(salary_payment_id)
    if payment.status == SalaryPaymentStatus.PAID or payment.status == SalaryPaymentStatus.CANCELLED:
        raise InvalidSalaryStatusError('Paid or cancelled salary payments cannot be cancelled.')

    payment.status = SalaryPaymentStatus.CANCELLED
    if reason:
        payment.notes = f"{payment.notes}\n{reason}".strip()
    payment.save()
    return payment


def _recover_deductions(account: StaffAccount, payment: SalaryPayment, recorded_by) -> None:
    period = f'{payment.period_start:%Y-%m-%d} to {payment.period_end:%Y-%m-%d}'

    for row in payment.shortage_allocations:
        amount = Decimal(row['amount'])
        shortage = Shortage.objects.select_for_update().get(id=row['shortage_id'])
        if shortage.amount_remaining < amount:
            raise StaleSalaryCalculationError()
        recover_shortage(
            account=account,
            shortage=shortage,
            amount=amount,
            description=f'Shortage deducted from salary ({period})',
            salary_payment=payment,
            recorded_by=recorded_by,
        )

    if payment.advance_deductions > ZERO:
        if account.outstanding_advances < payment.advance_deductions:
            raise StaleSalaryCalculationError()
        now = timezone.now()
        deduction = StaffTransaction.objects.create(
            staff_account=account,
            transaction_type=StaffTransactionType.ADVANCE_DEDUCTION,
            balance_effect=BalanceEffect.CREDIT,
            status=StaffTransactionStatus.SETTLED,
            amount=payment.advance_deductions,
            description=f'Advance deducted from salary ({period})',
            salary_payment=payment,
            recorded_by=recorded_by,
            approved_by=recorded_by,
            approved_at=now,
            settled_at=now,
        )
        apply_balance(account, deduction)


@transaction.atomic
def process_salary_payment(*, salary_payment_id: UUID, processed_by=None, reference: str = "") -> SalaryPayment:
    """
    Pay an approved (or previously failed) salary.

    Raises:
        InvalidSalaryStatusError: Not APPROVED or FAILED
        InactiveStaffAccountError, StaffAccountOnHoldError: Account cannot be paid
        StaleSalaryCalculationError: Shortages or advances changed since calculation
        InsufficientWalletBalanceError: Station wallet cannot cover the net salary
    """
    payment = _lock_payment(salary_payment_id)
    if payment.status not in (SalaryPaymentStatus.APPROVED, SalaryPaymentStatus.FAILED):
        raise InvalidSalaryStatusError('Only approved salary payments can be processed.')

    account = lock_staff_account(payment.staff_account_id)
    ensure_payable(account)
    _recover_deductions(account, payment, processed_by)

    net = payment.net_salary
    if net > ZERO:
        wallet_txn, bank_txn = pay_out(
            account=account,
            amount=net,
            payment_source=payment.payment_source,
            payment_method=payment.payment_method,
            wallet_source=WalletSource.SALARY_PAYMENT,
            bank_account_id=payment.bank_account_id,
            reference=reference,
            description=f'Salary {payment.period_start:%Y-%m-%d} to {payment.period_end:%Y-%m-%d} '
                        f'for {account.user.get_full_name()}',
            recorded_by=processed_by,
        )
        now = timezone.now()
        StaffTransaction.objects.create(
            staff_account=account,
            transaction_type=StaffTransactionType.SALARY_PAYMENT,
            balance_effect=BalanceEffect.NONE,
            status=StaffTransactionStatus.SETTLED,
            amount=net,
            balance_before=account.current_balance,
            balance_after=account.current_balance,
            description=payment.description or 'Salary payment',
            reference_number=reference,
            payment_source=payment.payment_source,
            payment_method=payment.payment_method,
            salary_payment=payment,
            bank_account_id=payment.bank_account_id if bank_txn else None,
            recorded_by=processed_by,
            approved_by=payment.approved_by,
            approved_at=payment.approved_at,
            settled_at=now,
        )
        payment.wallet_transaction = wallet_txn
        payment.bank_transaction = bank_txn

    account.total_paid += net
    account.last_payment_date = payment.payment_date
    account.next_payment_date = (
        next_payment_date(account.payment_schedule, payment.payment_date) or account.next_payment_date
    )
    account.save()

    payment.amount_paid = net
    payment.status = SalaryPaymentStatus.PAID
    payment.failure_reason = ''
    payment.processed_by = processed_by
    payment.processed_at = timezone.now()
    payment.save()

    logger.info(
        'Salary paid',
        extra={'salary_payment_id': str(payment.id), 'staff_account_id': str(account.id),
               'net': str(net), 'payment_source': payment.payment_source},
    )
    return payment


def salary_payment_history(staff_account_id: UUID, *, status: Optional[str] = None,
                           year: Optional[int] = None):
    queryset = SalaryPayment.objects.filter(staff_account_id=staff_account_id).select_related('station')
    if status:
        queryset = queryset.filter(status=status)
    if year:
        queryset = queryset.filter(period_start__year=year)
    return queryset


def _error_row(account: StaffAccount, exc: APIException) -> Dict:
    return {
        'staff_account_id': account.id,
        'staff_name': account.user.get_full_name(),
        'error': str(exc.detail),
        'code': exc.default_code,
    }


def _payroll_totals(payments: List[SalaryPayment]) -> Dict:
    return {
        'total_gross_salary': sum((p.gross_salary for p in payments), ZERO),
        'total_deductions': sum((p.total_deductions for p in payments), ZERO),
        'total_net_salary': sum((p.net_salary for p in payments), ZERO),
    }


def generate_payroll(
    *,
    station_id: UUID,
    period_start: date,
    period_end: date,
    payment_date: date,
    payment_source: str = PaymentSource.STATION_WALLET,
    payment_method: str = "",
    bank_account_id: Optional[UUID] = None,
    deduct_shortages: bool = True,
    deduct_advances: bool = True,
    staff_account_ids: Optional[Iterable[UUID]] = None,
    description: str = "",
    created_by=None,
) -> Dict:
    """
    Calculate salaries for a station, one payment per staff account.

    Best-effort: accounts that fail (on hold, duplicate period...) are
    reported under ``errors`` and the rest go ahead. Without explicit
    ``staff_account_ids`` every active, payable account with a salary is
    included.
    """
    accounts = StaffAccount.objects.filter(station_id=station_id).select_related('user')
    if staff_account_ids:
        accounts = accounts.filter(id__in=list(staff_account_ids))
    else:
        accounts = accounts.filter(is_active=True, is_on_hold=False, salary_amount__gt=0)

    results, errors = [], []
    for account in accounts:
        try:
            payment = create_salary_payment(
                staff_account_id=account.id,
                period_start=period_start,
                period_end=period_end,
                payment_date=payment_date,
                payment_source=payment_source,
                payment_method=payment_method,
                bank_account_id=bank_account_id,
                deduct_shortages=deduct_shortages,
                deduct_advances=deduct_advances,
                description=description,
                created_by=created_by,
            )
        except APIException as exc:
            logger.warning(
                'Payroll skipped staff account',
                extra={'staff_account_id': str(account.id), 'reason': str(exc.detail)},
            )
            errors.append(_error_row(account, exc))
            continue
        results.append(payment)

    summary = {
        'station_id': station_id,
        'total_staff': len(results) + len(errors),
        'successful': len(results),
        'failed': len(errors),
        'period': {'start': period_start, 'end': period_end},
        'payment_date': payment_date,
        **_payroll_totals(results),
    }
    logger.info(
        'Payroll generated',
        extra={'station_id': str(station_id), 'successful': summary['successful'], 'failed': summary['failed']},
    )
    return {'summary': summary, 'results': results, 'errors': errors}


def _mark_failed(payment: SalaryPayment, reason: str) -> None:
    SalaryPayment.objects.filter(id=payment.id).update(
        status=SalaryPaymentStatus.FAILED,
        failure_reason=reason[:255],
        updated_at=timezone.now(),
    )
    payment.status = SalaryPaymentStatus.FAILED
    payment.failure_reason = reason[:255]


def process_bulk_payments(
    *,
    station_id: UUID,
    staff_account_ids: Iterable[UUID],
    period_start: date,
    period_end: date,
    payment_date: date,
    payment_source: str = PaymentSource.STATION_WALLET,
    payment_method: str = "",
    bank_account_id: Optional[UUID] = None,
    deduct_shortages: bool = True,
    deduct_advances: bool = True,
    description: str = "",
    processed_by=None,
) -> Dict:
    """
    Calculate, approve and pay salaries for the selected staff in one go.

    Each staff member is handled on their own: a payment that cannot be
    made (e.g. the wallet runs dry) is marked FAILED and reported, the
    others are still paid.
    """
    generated = generate_payroll(
        station_id=station_id,
        period_start=period_start,
        period_end=period_end,
        payment_date=payment_date,
        payment_source=payment_source,
        payment_method=payment_method,
        bank_account_id=bank_account_id,
        deduct_shortages=deduct_shortages,
        deduct_advances=deduct_advances,
        staff_account_ids=staff_account_ids,
        description=description,
        created_by=processed_by,
    )

    paid, failed = [], []
    errors = list(generated['errors'])
    for payment in generated['results']:
        approve_salary_payment(salary_payment_id=payment.id, approved_by=processed_by)
        try:
            payment = process_salary_payment(salary_payment_id=payment.id, processed_by=processed_by)
        except APIException as exc:
            logger.warning(
                'Bulk salary payment failed',
                extra={'salary_payment_id': str(payment.id), 'reason': str(exc.detail)},
            )
            _mark_failed(payment, str(exc.detail))
            failed.append(payment)
            errors.append(_error_row(payment.staff_account, exc))
            continue
        paid.append(payment)

    summary = {
        **generated['summary'],
        'successful': len(paid),
        'failed': len(errors),
        'total_paid': sum((p.amount_paid for p in paid), ZERO),
        **_payroll_totals(paid),
    }
    return {'summary': summary, 'results': paid + failed, 'errors': errors}
