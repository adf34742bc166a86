"""Banking summaries and exports."""
import csv
import io
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from django.db.models import Count, Q, Sum
from django.db.models.functions import TruncDay, TruncMonth, TruncWeek
from django.utils import timezone

from apps.stations.models import Station
from ..models import (
    BankAccount,
    BankTransaction,
    BankTransactionStatus,
    BankTransactionType,
    StationWallet,
    WalletDirection,
    WalletTransaction,
)

ZERO = Decimal('0.00')


def _sum(queryset, field='amount') -> Decimal:
    return queryset.aggregate(total=Sum(field))['total'] or ZERO


def _day_bounds(day: date):
    tz = timezone.get_current_timezone()
    start = timezone.make_aware(datetime.combine(day, time.min), tz)
    return start, start + timedelta(days=1)


def company_banking_summary(company_id, date_from: Optional[date] = None,
                            date_to: Optional[date] = None) -> Dict:
    """
    Deposits, withdrawals and balances of a company, with breakdowns per
    station wallet and per bank account.
    """
    completed = BankTransaction.objects.filter(company_id=company_id, status=BankTransactionStatus.COMPLETED)
    if date_from:
        completed = completed.filter(transaction_date__date__gte=date_from)
    if date_to:
        completed = completed.filter(transaction_date__date__lte=date_to)

    inflow = Q(transaction_type__in=[BankTransactionType.DEPOSIT, BankTransactionType.DEBT_SETTLEMENT])
    outflow = Q(transaction_type__in=[BankTransactionType.WITHDRAWAL, BankTransactionType.REVERSAL])

    total_deposits = _sum(completed.filter(inflow))
    total_withdrawals = _sum(completed.filter(outflow))

    station_breakdown = []
    wallets = {w.station_id: w for w in StationWallet.objects.filter(station__company_id=company_id)}
    for station in Station.objects.filter(company_id=company_id).order_by('name'):
        station_txns = completed.filter(station=station)
        deposits = _sum(station_txns.filter(inflow))
        withdrawals = _sum(station_txns.filter(outflow))
        wallet = wallets.get(station.id)
        station_breakdown.append({
            'station_id': station.id,
            'station_name': station.name,
            'wallet_balance': wallet.current_balance if wallet else ZERO,
            'total_deposits': deposits,
            'total_withdrawals': withdrawals,
            'net_flow': deposits - withdrawals,
        })

    bank_account_breakdown = []
    for account in BankAccount.objects.filter(company_id=company_id).select_related('bank'):
        account_txns = completed.filter(bank_account=account)
        bank_account_breakdown.append({
            'bank_account_id': account.id,
            'bank_name': account.bank.name,
            'account_number': account.account_number,
            'current_balance': account.current_balance,
            'total_deposits': _sum(account_txns.filter(inflow)),
            'total_withdrawals': _sum(account_txns.filter(outflow)),
        })

    return {
        'total_deposits': total_deposits,
        'total_withdrawals': total_withdrawals,
        'net_flow': total_deposits - total_withdrawals,
        'total_wallet_balance': sum((w.current_balance for w in wallets.values()), ZERO),
        'total_bank_balance': sum((a['current_balance'] for a in bank_account_breakdown), ZERO),
        'pending_count': BankTransaction.objects.filter(
            company_id=company_id, status=BankTransactionStatus.PENDING
        ).count(),
        'station_breakdown': station_breakdown,
        'bank_account_breakdown': bank_account_breakdown,
    }


PERIOD_TRUNC = {
    'daily': TruncDay,
    'weekly': TruncWeek,
    'monthly': TruncMonth,
}


def banking_stats(company_id, period: str = 'monthly', limit: int = 12) -> List[Dict]:
    """Deposit and withdrawal totals per period, most recent first."""
    trunc = PERIOD_TRUNC[period]
    rows = (
        BankTransaction.objects
        .filter(company_id=company_id, status=BankTransactionStatus.COMPLETED)
        .annotate(period=trunc('transaction_date'))
        .values('period')
        .annotate(
            deposits=Sum('amount', filter=Q(transaction_type__in=[
                BankTransactionType.DEPOSIT, BankTransactionType.DEBT_SETTLEMENT])),
            withdrawals=Sum('amount', filter=Q(transaction_type__in=[
                BankTransactionType.WITHDRAWAL, BankTransactionType.REVERSAL])),
            count=Count('id'),
        )
        .order_by('-period')[:limit]
    )
    stats = []
    for row in rows:
        deposits = row['deposits'] or ZERO
        withdrawals = row['withdrawals'] or ZERO
        stats.append({
            'period': row['period'],
            'deposits': deposits,
            'withdrawals': withdrawals,
            'net_flow': deposits - withdrawals,
            'count': row['count'],
        })
    return stats


def daily_summary(company_id, day: Optional[date] = None, station_ids: Optional[Iterable] = None) -> Dict:
    """Bank and wallet activity of one day (defaults to today)."""
    day = day or timezone.localdate()
    start, end = _day_bounds(day)

    txns = BankTransaction.objects.filter(
        company_id=company_id, transaction_date__gte=start, transaction_date__lt=end
    )
    wallet_moves = WalletTransaction.objects.filter(
        wallet__station__company_id=company_id, created_at__gte=start, created_at__lt=end
    )
    if station_ids is not None:
        txns = txns.filter(station_id__in=station_ids)
        wallet_moves = wallet_moves.filter(wallet__station_id__in=station_ids)

    completed = txns.filter(status=BankTransactionStatus.COMPLETED)
    by_type = {}
    for transaction_type in BankTransactionType.values:
        subset = completed.filter(transaction_type=transaction_type)
        by_type[transaction_type] = {'count': subset.count(), 'total': _sum(subset)}

    by_mode = {
        row['transaction_mode']: {'count': row['count'], 'total': row['total']}
        for row in completed.values('transaction_mode').annotate(count=Count('id'), total=Sum('amount'))
    }

    return {
        'date': day,
        'by_type': by_type,
        'by_mode': by_mode,
        'pending_count': txns.filter(status=BankTransactionStatus.PENDING).count(),
        'wallet_inflow': _sum(wallet_moves.filter(direction=WalletDirection.CREDIT)),
        'wallet_outflow': _sum(wallet_moves.filter(direction=WalletDirection.DEBIT)),
    }


def wallet_today_flows(wallet: StationWallet) -> Dict:
    start, end = _day_bounds(timezone.localdate())
    moves = wallet.transactions.filter(created_at__gte=start, created_at__lt=end)
    return {
        'todays_inflow': _sum(moves.filter(direction=WalletDirection.CREDIT)),
        'todays_outflow': _sum(moves.filter(direction=WalletDirection.DEBIT)),
    }


CSV_COLUMNS = [
    'id', 'transaction_date', 'transaction_type', 'transaction_mode', 'status',
    'amount', 'previous_balance', 'new_balance', 'bank', 'account_number',
    'station', 'reference', 'description', 'recorded_by',
]


def export_transactions_csv(transactions: Iterable[BankTransaction]) -> str:
    """Render bank transactions as CSV text."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_COLUMNS)

    for txn in transactions:
        writer.writerow([
            txn.id,
            txn.transaction_date.isoformat(),
            txn.transaction_type,
            txn.transaction_mode,
            txn.status,
            txn.amount,
            txn.previous_balance if txn.previous_balance is not None else '',
            txn.new_balance if txn.new_balance is not None else '',
            txn.bank_account.bank.name,
            txn.bank_account.account_number,
            txn.station.name if txn.station else '',
            txn.reference,
            txn.description,
            txn.recorded_by.email if txn.recorded_by else '',
        ])

    return buffer.getvalue()
