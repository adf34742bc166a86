"""
Staff account management.

One account per user and station. Balance fields are only changed by the
transaction, shortage and payroll services.
"""
import calendar
import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Optional
from uuid import UUID

from django.db import transaction
from django.db.models import Avg, Count, Q, Sum
from django.utils import timezone

from apps.stations.models import Station
from ..exceptions import (
    DuplicateStaffAccountError,
    InactiveStaffAccountError,
    StaffAccountNotFoundError,
    StaffAccountOnHoldError,
    StaffCompanyMismatchError,
)
from ..models import PaymentSchedule, StaffAccount

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')

# Fields a caller may change through ``update_staff_account``
EDITABLE_FIELDS = (
    'salary_amount',
    'credit_limit',
    'payroll_method',
    'payment_schedule',
    'bank_name',
    'bank_account_number',
    'mobile_money_number',
    'is_active',
    'is_on_hold',
    'hold_reason',
    'next_payment_date',
)


def _add_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def next_payment_date(schedule: str, after: date) -> Optional[date]:
    """Next pay day for a schedule; CUSTOM schedules are set by hand."""
    if schedule == PaymentSchedule.DAILY:
        return after + timedelta(days=1)
    if schedule == PaymentSchedule.WEEKLY:
        return after + timedelta(weeks=1)
    if schedule == PaymentSchedule.BI_WEEKLY:
        return after + timedelta(weeks=2)
    if schedule == PaymentSchedule.MONTHLY:
        return _add_months(after, 1)
    if schedule == PaymentSchedule.QUARTERLY:
        return _add_months(after, 3)
    return None


def get_staff_account(account_id: UUID) -> StaffAccount:
    try:
        return StaffAccount.objects.select_related('user', 'station').get(id=account_id)
    except StaffAccount.DoesNotExist:
        raise StaffAccountNotFoundError()


def lock_staff_account(account_id: UUID) -> StaffAccount:
    try:
        return (
            StaffAccount.objects
            .select_for_update()
            .select_related('user', 'station')
            .get(id=account_id)
        )
    except StaffAccount.DoesNotExist:
        raise StaffAccountNotFoundError()


def ensure_active(account: StaffAccount) -> None:
    if not account.is_active:
        raise InactiveStaffAccountError()


def ensure_payable(account: StaffAccount) -> None:
    """
    Raises:
        InactiveStaffAccountError: Account is deactivated
        StaffAccountOnHoldError: Payments to the account are on hold
    """
    ensure_active(account)
    if account.is_on_hold:
        raise StaffAccountOnHoldError()


@transaction.atomic
def create_staff_account(*, user, station: Station, created_by=None, **fields) -> StaffAccount:
    """
    Open a staff account for a user at a station.

    Raises:
        StaffCompanyMismatchError: User belongs to another company
        DuplicateStaffAccountError: User already has an account there
    """
    if user.company_id != station.company_id:
        raise StaffCompanyMismatchError()
    if StaffAccount.objects.filter(user=user, station=station).exists():
        raise DuplicateStaffAccountError()

    account = StaffAccount(user=user, station=station, created_by=created_by, **fields)
    if account.next_payment_date is None:
        account.next_payment_date = next_payment_date(account.payment_schedule, timezone.localdate())
    account.save()

    logger.info(
        'Staff account created',
        extra={'staff_account_id': str(account.id), 'user_id': str(user.id), 'station_id': str(station.id)},
    )
    return account


@transaction.atomic
def update_staff_account(*, account: StaffAccount, **fields) -> StaffAccount:
    account = lock_staff_account(account.id)
    for field, value in fields.items():
        if field in EDITABLE_FIELDS:
            setattr(account, field, value)

    if 'payment_schedule' in fields and 'next_payment_date' not in fields:
        account.next_payment_date = next_payment_date(
            account.payment_schedule, account.last_payment_date or timezone.localdate()
        )
    if not account.is_on_hold:
        account.hold_reason = ''
    account.save()
    return account


@transaction.atomic
def deactivate_staff_account(*, account: StaffAccount) -> StaffAccount:
    account = lock_staff_account(account.id)
    account.is_active = False
    account.save(update_fields=['is_active', 'updated_at'])
    logger.info(
        'Staff account deactivated',
        extra={'staff_account_id': str(account.id), 'balance': str(account.current_balance)},
    )
    return account


def list_station_accounts(station_id: UUID, *, is_active=None, is_on_hold=None, search: str = ''):
    queryset = StaffAccount.objects.filter(station_id=station_id).select_related('user', 'station')
    if is_active is not None:
        queryset = queryset.filter(is_active=is_active)
    if is_on_hold is not None:
        queryset = queryset.filter(is_on_hold=is_on_hold)
    if search:
        queryset = queryset.filter(
            Q(user__first_name__icontains=search)
            | Q(user__last_name__icontains=search)
            | Q(user__email__icontains=search)
        )
    return queryset


def station_accounts_summary(station_id: UUID, as_of: Optional[date] = None) -> Dict:
    """Headcount, salary commitment and what staff owe at a station."""
    as_of = as_of or timezone.localdate()
    accounts = StaffAccount.objects.filter(station_id=station_id)
    active = accounts.filter(is_active=True)

    totals = accounts.aggregate(
        total_accounts=Count('id'),
        total_shortages=Sum('outstanding_shortages'),
        total_advances=Sum('outstanding_advances'),
        net_balance=Sum('current_balance'),
    )
    salary = active.aggregate(commitment=Sum('salary_amount'), average=Avg('salary_amount'))

    return {
        'station_id': station_id,
        'total_accounts': totals['total_accounts'],
        'active_accounts': active.count(),
        'on_hold_accounts': accounts.filter(is_on_hold=True).count(),
        'accounts_with_shortages': accounts.filter(outstanding_shortages__gt=0).count(),
        'accounts_due_for_payment': active.filter(is_on_hold=False, next_payment_date__lte=as_of).count(),
        'total_shortages': totals['total_shortages'] or ZERO,
        'total_advances': totals['total_advances'] or ZERO,
        'total_salary_commitment': salary['commitment'] or ZERO,
        'average_salary': Decimal(salary['average'] or ZERO).quantize(Decimal('0.01')),
        'net_balance': totals['net_balance'] or ZERO,
    }
