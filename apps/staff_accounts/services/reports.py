"""Payroll reports per station."""
import calendar
from datetime import date
from decimal import Decimal
from typing import Dict, Optional
from uuid import UUID

from django.db.models import Avg, Count, Sum
from django.utils import timezone

from apps.stations.models import Station
from ..models import SalaryPayment, SalaryPaymentStatus

ZERO = Decimal('0.00')


def _counts(queryset, field: str) -> Dict[str, int]:
    return {row[field]: row['count'] for row in queryset.values(field).annotate(count=Count('id')).order_by(field)}


def payroll_report(station: Station, period_start: Optional[date] = None,
                   period_end: Optional[date] = None) -> Dict:
    """
    Every salary payment of a station whose period overlaps the given
    range (the current month by default), with totals by status and method.
    """
    today = timezone.localdate()
    period_start = period_start or today.replace(day=1)
    period_end = period_end or today.replace(day=calendar.monthrange(today.year, today.month)[1])

    payments = (
        SalaryPayment.objects
        .filter(station=station, period_start__lte=period_end, period_end__gte=period_start)
        .exclude(status=SalaryPaymentStatus.CANCELLED)
        .select_related('staff_account__user')
        .order_by('staff_account__user__first_name', 'period_start')
    )
    totals = payments.aggregate(
        total_gross_salary=Sum('gross_salary'),
        total_deductions=Sum('total_deductions'),
        total_net_salary=Sum('net_salary'),
        total_paid=Sum('amount_paid'),
    )

    return {
        'station': {'id': station.id, 'name': station.name, 'code': station.code},
        'period': {'start': period_start, 'end': period_end},
        'summary': {
            'total_payments': payments.count(),
            **{key: value or ZERO for key, value in totals.items()},
            'by_status': _counts(payments, 'status'),
            'by_payment_method': _counts(payments, 'payment_method'),
        },
        'payments': [
            {
                'id': payment.id,
                'staff_account_id': payment.staff_account_id,
                'staff_name': payment.staff_account.user.get_full_name(),
                'period_start': payment.period_start,
                'period_end': payment.period_end,
                'payment_date': payment.payment_date,
                'gross_salary': payment.gross_salary,
                'total_deductions': payment.total_deductions,
                'net_salary': payment.net_salary,
                'amount_paid': payment.amount_paid,
                'payment_method': payment.payment_method,
                'payment_source': payment.payment_source,
                'status': payment.status,
            }
            for payment in payments
        ],
    }


def payroll_summary(station_id: UUID, year: Optional[int] = None, month: Optional[int] = None) -> Dict:
    """Salaries actually paid at a station in one calendar month."""
    today = timezone.localdate()
    year = year or today.year
    month = month or today.month
    start = date(year, month, 1)
    end = date(year, month, calendar.monthrange(year, month)[1])

    paid = SalaryPayment.objects.filter(
        station_id=station_id,
        status=SalaryPaymentStatus.PAID,
        payment_date__gte=start,
        payment_date__lte=end,
    )
    totals = paid.aggregate(
        total_amount_paid=Sum('amount_paid'),
        total_deductions=Sum('total_deductions'),
        average_salary=Avg('amount_paid'),
    )

    return {
        'station_id': station_id,
        'period': {'start': start, 'end': end},
        'total_staff_paid': paid.values('staff_account_id').distinct().count(),
        'total_payments': paid.count(),
        'total_amount_paid': totals['total_amount_paid'] or ZERO,
        'total_deductions': totals['total_deductions'] or ZERO,
        'average_salary': Decimal(totals['average_salary'] or ZERO).quantize(Decimal('0.01')),
        'payment_breakdown': {
            'by_method': _counts(paid, 'payment_method'),
            'by_source': _counts(paid, 'payment_source'),
        },
    }
