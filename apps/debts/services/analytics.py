"""
Settlement analytics.

Pure functions over already fetched report data:
``settlement_activity_report`` output as ``settlement_data`` and
``company_debtors_summary`` output as ``debtor_data``. Nothing here
touches the database.
"""
import csv
import io
from collections import Counter, defaultdict
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from django.utils import timezone

ZERO = Decimal('0.00')

HIGH_TOTAL_DEBT = Decimal('100000')
HIGH_AVERAGE_DEBT = Decimal('5000')
HIGH_STATION_DEBT = Decimal('50000')
LOW_EFFICIENCY = 30
GOOD_EFFICIENCY = 60
EXCELLENT_EFFICIENCY = 80
RECENT_DAYS = 7


def _as_datetime(value) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    return value


def calculate_settlement_metrics(settlement_data: Optional[Dict]) -> Optional[Dict]:
    if not settlement_data:
        return None

    transactions = settlement_data.get('transactions') or []
    totals = settlement_data.get('totals') or {}
    total_settlements = totals.get('count', len(transactions))
    total_amount = Decimal(totals.get('total_amount') or ZERO)
    average = (total_amount / total_settlements).quantize(Decimal('0.01')) if total_settlements else ZERO

    by_type = defaultdict(lambda: ZERO)
    by_day = Counter()
    for row in transactions:
        by_type[row.get('transfer_category') or 'UNKNOWN'] += abs(Decimal(row['amount']))
        by_day[_as_datetime(row['transaction_date']).date().isoformat()] += 1

    most_active = by_day.most_common(1)
    return {
        'total_settlements': total_settlements,
        'total_amount': total_amount,
        'average_settlement': average,
        'settlements_by_type': dict(by_type),
        'settlements_by_day': dict(sorted(by_day.items())),
        'most_active_day': list(most_active[0]) if most_active else None,
    }


def _debtor_metrics(debtor_data: Dict) -> Dict:
    total_debt = Decimal(debtor_data.get('total_outstanding') or ZERO)
    with_debt = debtor_data.get('debtors_with_debt') or 0
    return {
        'total_debt': total_debt,
        'active_debtors': debtor_data.get('active_debtors') or 0,
        'average_debt_per_debtor': (total_debt / with_debt).quantize(Decimal('0.01')) if with_debt else ZERO,
    }


def analyze_debtor_settlement_patterns(debtor_data: Optional[Dict], settlement_data: Optional[Dict]) -> Optional[Dict]:
    """
    Collection efficiency (collected / outstanding, in percent), a 0-100
    health score falling 10 points per 1000 of average debt, and a
    recommendation.
    """
    if not debtor_data or not settlement_data:
        return None

    metrics = calculate_settlement_metrics(settlement_data)
    debtor_metrics = _debtor_metrics(debtor_data)

    efficiency = 0.0
    if debtor_metrics['total_debt'] > 0:
        efficiency = float(metrics['total_amount'] / debtor_metrics['total_debt'] * 100)

    health_score = min(100.0, max(0.0, 100 - float(debtor_metrics['average_debt_per_debtor']) / 1000 * 10))

    if efficiency < LOW_EFFICIENCY:
        recommendation = 'Increase collection efforts'
    elif efficiency < GOOD_EFFICIENCY:
        recommendation = 'Maintain current collection strategy'
    else:
        recommendation = 'Excellent collection performance'

    return {
        'metrics': metrics,
        'debtor_metrics': debtor_metrics,
        'settlement_efficiency': round(efficiency, 2),
        'health_score': round(health_score, 2),
        'recommendation': recommendation,
    }


def generate_settlement_insights(debtor_data: Optional[Dict], settlement_data: Optional[Dict]) -> Optional[Dict]:
    analysis = analyze_debtor_settlement_patterns(debtor_data, settlement_data)
    if analysis is None:
        return None

    insights = []
    debtor_metrics = analysis['debtor_metrics']
    efficiency = analysis['settlement_efficiency']

    if debtor_metrics['total_debt'] > HIGH_TOTAL_DEBT:
        insights.append({
            'type': 'HIGH_TOTAL_DEBT',
            'title': 'High Total Debt',
            'message': f"Total outstanding debt is {debtor_metrics['total_debt']:,.2f}",
            'severity': 'warning',
            'suggestion': 'Consider implementing stricter credit policies',
        })
    if efficiency < LOW_EFFICIENCY:
        insights.append({
            'type': 'LOW_SETTLEMENT_EFFICIENCY',
            'title': 'Low Collection Rate',
            'message': f'Only {efficiency:.1f}% of debt is being collected',
            'severity': 'critical',
            'suggestion': 'Review collection processes and follow-up procedures',
        })
    if debtor_metrics['average_debt_per_debtor'] > HIGH_AVERAGE_DEBT:
        insights.append({
            'type': 'HIGH_AVERAGE_DEBT',
            'title': 'High Average Debt',
            'message': f"Average debt per debtor is {debtor_metrics['average_debt_per_debtor']:,.2f}",
            'severity': 'warning',
            'suggestion': 'Monitor high-debt accounts closely',
        })
    if efficiency > EXCELLENT_EFFICIENCY:
        insights.append({
            'type': 'EXCELLENT_PERFORMANCE',
            'title': 'Excellent Collection Performance',
            'message': 'Debt collection efficiency is outstanding',
            'severity': 'success',
            'suggestion': 'Maintain current collection strategies',
        })

    return {
        'insights': insights,
        'analysis': analysis,
        'health_score': analysis['health_score'],
        'recommendation': analysis['recommendation'],
    }


def check_settlement_alerts(
    debtor_data: Optional[Dict],
    settlement_data: Optional[Dict],
    now: Optional[datetime] = None,
) -> List[Dict]:
    alerts = []
    if analyze_debtor_settlement_patterns(debtor_data, settlement_data) is None:
        return alerts

    now = now or timezone.now()
    cutoff = now - timedelta(days=RECENT_DAYS)
    recent = [
        row for row in settlement_data.get('transactions') or []
        if _as_datetime(row['transaction_date']) >= cutoff
    ]
    if not recent:
        alerts.append({
            'type': 'NO_RECENT_SETTLEMENTS',
            'title': 'No Recent Settlements',
            'message': f'No debt settlements recorded in the past {RECENT_DAYS} days',
            'severity': 'warning',
            'action': 'Review collection processes',
        })

    stations = sorted(
        debtor_data.get('by_station') or [],
        key=lambda row: Decimal(row['total_debt'] or ZERO),
        reverse=True,
    )
    if stations and Decimal(stations[0]['total_debt'] or ZERO) > HIGH_STATION_DEBT:
        top = stations[0]
        alerts.append({
            'type': 'HIGH_STATION_DEBT',
            'title': 'High Debt Concentration',
            'message': f"{top['station_name']} has {Decimal(top['total_debt']):,.2f} in outstanding debt",
            'severity': 'warning',
            'action': 'Focus collection efforts on this station',
        })
    return alerts


def export_settlement_report(settlement_data: Optional[Dict], report_type: str = 'detailed',
                             currency: str = 'KES') -> str:
    """CSV settlement report; ``summary`` lists totals per type, ``detailed`` every settlement."""
    if not settlement_data or settlement_data.get('transactions') is None:
        return ''

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(['Debt Settlement Report'])
    writer.writerow(['Report Type', report_type])
    writer.writerow(['Generated', timezone.localtime().strftime('%Y-%m-%d %H:%M')])
    writer.writerow([])

    if report_type == 'summary':
        metrics = calculate_settlement_metrics(settlement_data)
        writer.writerow(['Settlement Summary'])
        writer.writerow(['Metric', 'Value'])
        writer.writerow(['Total Settlements', metrics['total_settlements']])
        writer.writerow(['Total Amount', f"{currency} {metrics['total_amount']:.2f}"])
        writer.writerow(['Average Settlement', f"{currency} {metrics['average_settlement']:.2f}"])
        writer.writerow([])
        writer.writerow(['Settlement by Type'])
        writer.writerow(['Type', 'Amount', 'Percentage'])
        for category, amount in metrics['settlements_by_type'].items():
            share = amount / metrics['total_amount'] * 100 if metrics['total_amount'] else ZERO
            writer.writerow([category, f'{currency} {amount:.2f}', f'{share:.2f}%'])
    else:
        writer.writerow(['Detailed Settlement Transactions'])
        writer.writerow(['Date', 'Debtor', 'Station', 'Amount', 'Type', 'Description', 'Recorded By'])
        for row in settlement_data['transactions']:
            writer.writerow([
                _as_datetime(row['transaction_date']).date().isoformat(),
                row.get('debtor_name') or 'N/A',
                row.get('station_name') or 'N/A',
                f"{currency} {abs(Decimal(row['amount'])):.2f}",
                row.get('transfer_category', ''),
                row.get('description', ''),
                row.get('recorded_by_name', ''),
            ])

    return output.getvalue()
