"""Debtor summaries, aging and settlement activity."""
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from django.conf import settings
from django.db.models import Count, Q, Sum
from django.db.models.functions import TruncDay
from django.utils import timezone

from ..models import (
    AccountTransfer,
    Debtor,
    DebtorType,
    StationDebtorAccount,
    TransactionCategory,
    TransferStatus,
)
from .ledger import open_debits

ZERO = Decimal('0.00')

AGING_BUCKETS = ('current', 'days31_60', 'days61_90', 'over90')


def _bucket_for(age_days: int) -> str:
    first, second, third = settings.AGING_BUCKET_DAYS[:3]
    if age_days <= first:
        return 'current'
    if age_days <= second:
        return 'days31_60'
    if age_days <= third:
        return 'days61_90'
    return 'over90'


def _scoped_accounts(company_id, station_id=None, station_ids=None):
    queryset = StationDebtorAccount.objects.select_related('station', 'debtor')
    if company_id is not None:
        queryset = queryset.filter(debtor__company_id=company_id)
    if station_ids is not None:
        queryset = queryset.filter(station_id__in=station_ids)
    if station_id:
        queryset = queryset.filter(station_id=station_id)
    return queryset


def company_debtors_summary(company_id: Optional[UUID], station_ids=None) -> Dict:
    """Debtor counts, outstanding debt per station and per type, top debtors."""
    debtors = Debtor.objects.all()
    if company_id is not None:
        debtors = debtors.filter(company_id=company_id)
    accounts = _scoped_accounts(company_id, station_ids=station_ids)

    by_station = list(
        accounts
        .values('station_id', 'station__name')
        .annotate(
            debtor_count=Count('debtor', filter=Q(current_debt__gt=0)),
            total_debt=Sum('current_debt'),
        )
        .order_by('station__name')
    )
    by_type = {
        row['debtor__debtor_type']: row['total'] or ZERO
        for row in accounts.values('debtor__debtor_type').annotate(total=Sum('current_debt'))
    }
    top_debtors = list(
        accounts
        .values('debtor_id', 'debtor__name')
        .annotate(total_debt=Sum('current_debt'))
        .filter(total_debt__gt=0)
        .order_by('-total_debt')[:10]
    )

    month_start = timezone.now().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    completed = AccountTransfer.objects.filter(status=TransferStatus.COMPLETED)
    if company_id is not None:
        completed = completed.filter(company_id=company_id)
    if station_ids is not None:
        completed = completed.filter(station_id__in=station_ids)
    collected = completed.filter(
        completed_at__gte=month_start,
        category__in=[
            TransactionCategory.CASH_SETTLEMENT,
            TransactionCategory.BANK_SETTLEMENT,
            TransactionCategory.ELECTRONIC_TRANSFER,
            TransactionCategory.CROSS_STATION,
        ],
    ).aggregate(total=Sum('amount'))['total'] or ZERO
    written_off = completed.filter(
        category=TransactionCategory.WRITE_OFF
    ).aggregate(total=Sum('amount'))['total'] or ZERO

    return {
        'total_debtors': debtors.count(),
        'active_debtors': debtors.filter(is_active=True).count(),
        'payment_processors': debtors.filter(debtor_type=DebtorType.PAYMENT_PROCESSOR).count(),
        'debtors_with_debt': accounts.filter(current_debt__gt=0).values('debtor_id').distinct().count(),
        'total_outstanding': accounts.aggregate(total=Sum('current_debt'))['total'] or ZERO,
        'customer_debt': by_type.get(DebtorType.CUSTOMER, ZERO),
        'processor_debt': by_type.get(DebtorType.PAYMENT_PROCESSOR, ZERO),
        'collected_this_month': collected,
        'total_written_off': written_off,
        'by_station': [
            {
                'station_id': row['station_id'],
                'station_name': row['station__name'],
                'debtor_count': row['debtor_count'],
                'total_debt': row['total_debt'] or ZERO,
            }
            for row in by_station
        ],
        'top_debtors': [
            {'debtor_id': row['debtor_id'], 'debtor_name': row['debtor__name'], 'total_debt': row['total_debt']}
            for row in top_debtors
        ],
    }


def debt_aging_report(
    company_id: Optional[UUID],
    station_id: Optional[UUID] = None,
    station_ids=None,
    as_of: Optional[date] = None,
) -> Dict:
    """
    Age outstanding debt by its unpaid debits.

    Payments settle the oldest debits first, so each account's debt is the
    sum of the unpaid parts of its most recent debits; each part is aged
    from its own transaction date.
    """
    as_of = as_of or timezone.localdate()
    totals = {bucket: ZERO for bucket in AGING_BUCKETS}
    details: List[Dict] = []

    accounts = _scoped_accounts(company_id, station_id, station_ids).filter(current_debt__gt=0)
    for account in accounts.order_by('debtor__name', 'station__name'):
        buckets = {bucket: ZERO for bucket in AGING_BUCKETS}
        items = open_debits(account)
        for transaction_date, remaining in items:
            age = (as_of - timezone.localtime(transaction_date).date()).days
            buckets[_bucket_for(age)] += remaining

        for bucket in AGING_BUCKETS:
            totals[bucket] += buckets[bucket]
        details.append({
            'account_id': account.id,
            'debtor_id': account.debtor_id,
            'debtor_name': account.debtor.name,
            'station_id': account.station_id,
            'station_name': account.station.name,
            'current_debt': account.current_debt,
            'oldest_debt_date': items[0][0] if items else None,
            **buckets,
        })

    return {
        'as_of': as_of,
        'bucket_days': list(settings.AGING_BUCKET_DAYS[:3]),
        'totals': totals,
        'total_outstanding': sum(totals.values(), ZERO),
        'account_count': len(details),
        'aging_details': details,
    }


def settlement_activity_report(
    company_id: Optional[UUID],
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    station_id: Optional[UUID] = None,
    station_ids=None,
) -> Dict:
    """Completed transfers in a date range (last 30 days by default)."""
    date_to = date_to or timezone.localdate()
    date_from = date_from or date_to - timedelta(days=30)

    transfers = AccountTransfer.objects.filter(
        status=TransferStatus.COMPLETED,
        completed_at__date__gte=date_from,
        completed_at__date__lte=date_to,
    ).select_related('debtor', 'station', 'recorded_by')
    if company_id is not None:
        transfers = transfers.filter(company_id=company_id)
    if station_ids is not None:
        transfers = transfers.filter(station_id__in=station_ids)
    if station_id:
        transfers = transfers.filter(station_id=station_id)

    totals = transfers.aggregate(count=Count('id'), total_amount=Sum('amount'))
    by_category = [
        {'category': row['category'], 'count': row['count'], 'total': row['total'] or ZERO}
        for row in transfers.values('category').annotate(count=Count('id'), total=Sum('amount')).order_by('category')
    ]
    by_day = [
        {'date': row['day'].date() if hasattr(row['day'], 'date') else row['day'],
         'count': row['count'], 'total': row['total'] or ZERO}
        for row in (
            transfers
            .annotate(day=TruncDay('completed_at'))
            .values('day')
            .annotate(count=Count('id'), total=Sum('amount'))
            .order_by('day')
        )
    ]

    rows = []
    for transfer in transfers.order_by('-completed_at'):
        rows.append({
            'id': transfer.id,
            'transfer_category': transfer.category,
            'amount': transfer.amount,
            'transaction_date': transfer.completed_at,
            'debtor_id': transfer.debtor_id,
            'debtor_name': transfer.debtor.name,
            'station_id': transfer.station_id,
            'station_name': transfer.station.name,
            'description': transfer.description,
            'recorded_by_name': transfer.recorded_by.get_full_name() if transfer.recorded_by else '',
        })

    return {
        'date_from': date_from,
        'date_to': date_to,
        'totals': {'count': totals['count'], 'total_amount': totals['total_amount'] or ZERO},
        'by_category': by_category,
        'by_day': by_day,
        'transactions': rows,
    }
