"""
Cross-station allocation of one payment over a debtor's station debts.

Pure functions: amounts are converted to integer cents, split, and
converted back, so the allocated amounts always add up to the payment
exactly. Every row is capped at the station's current debt.

Each debt row is a dict with at least ``station_id`` and ``current_debt``
(``station_name`` and ``oldest_debt_date`` are used for ordering when
present); rows keep their keys and gain ``amount`` and ``remaining_debt``.
"""
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from ..exceptions import AmountExceedsDebtError, InvalidAllocationError
from ..models import AllocationMethod

CENT = Decimal('0.01')


def to_cents(amount) -> int:
    return int((Decimal(str(amount)) * 100).to_integral_value())


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)


def _base_order(rows: List[Dict]) -> List[Dict]:
    return sorted(rows, key=lambda r: (r.get('station_name') or '', str(r['station_id'])))


def _fill_in_order(amount: int, rows: List[Dict], debts: Dict) -> Dict:
    allocated = {}
    remaining = amount
    for row in rows:
        key = str(row['station_id'])
        take = min(remaining, debts[key])
        allocated[key] = take
        remaining -= take
    return allocated


def _equal(amount: int, rows: List[Dict], debts: Dict) -> Dict:
    """Equal shares; stations with less debt are paid off and the rest is re-split."""
    allocated = {str(r['station_id']): 0 for r in rows}
    remaining = amount
    while remaining > 0:
        open_rows = [r for r in rows if allocated[str(r['station_id'])] < debts[str(r['station_id'])]]
        share, extra = divmod(remaining, len(open_rows))
        for index, row in enumerate(open_rows):
            key = str(row['station_id'])
            give = min(share + (1 if index < extra else 0), debts[key] - allocated[key])
            allocated[key] += give
            remaining -= give
    return allocated


def _proportional(amount: int, rows: List[Dict], debts: Dict) -> Dict:
    """Shares proportional to debt; leftover cents go to the largest remainders."""
    total = sum(debts.values())
    allocated = {}
    remainders = []
    for index, row in enumerate(rows):
        key = str(row['station_id'])
        share, remainder = divmod(amount * debts[key], total)
        allocated[key] = share
        remainders.append((-remainder, index, key))

    leftover = amount - sum(allocated.values())
    for _, _, key in sorted(remainders)[:leftover]:
        allocated[key] += 1
    return allocated


def _manual(amount: int, rows: List[Dict], debts: Dict, manual: List[Dict]) -> Dict:
    allocated = {str(r['station_id']): 0 for r in rows}
    for item in manual:
        key = str(item['station_id'])
        if key not in debts:
            raise InvalidAllocationError(f"Debtor has no debt at station {key}.")
        cents = to_cents(item['amount'])
        if cents <= 0:
            raise InvalidAllocationError('Allocated amounts must be positive.')
        allocated[key] += cents
        if allocated[key] > debts[key]:
            raise AmountExceedsDebtError(
                f"Allocation of {from_cents(allocated[key])} exceeds the station debt of {from_cents(debts[key])}."
            )
    if sum(allocated.values()) != amount:
        raise InvalidAllocationError('Manual allocations must add up to the payment amount.')
    return allocated


def allocate(
    amount,
    debts: List[Dict],
    method: str,
    manual: Optional[List[Dict]] = None,
) -> List[Dict]:
    """
    Split ``amount`` over ``debts`` with the given allocation method.

    Returns:
        The debt rows that receive money, in allocation order, each with
        ``amount`` and ``remaining_debt`` added

    Raises:
        AmountExceedsDebtError: Amount larger than the total debt
        InvalidAllocationError: Unknown method or inconsistent manual split
    """
    amount_c = to_cents(amount)
    if amount_c <= 0:
        raise InvalidAllocationError('Payment amount must be positive.')

    rows = [r for r in _base_order(debts) if to_cents(r['current_debt']) > 0]
    debt_c = {str(r['station_id']): to_cents(r['current_debt']) for r in rows}
    total = sum(debt_c.values())
    if amount_c > total:
        raise AmountExceedsDebtError(
            f'Amount {from_cents(amount_c)} exceeds total outstanding debt of {from_cents(total)}.'
        )

    if method == AllocationMethod.EQUAL:
        allocated = _equal(amount_c, rows, debt_c)
    elif method == AllocationMethod.PROPORTIONAL:
        allocated = _proportional(amount_c, rows, debt_c)
    elif method == AllocationMethod.HIGHEST_FIRST:
        rows = sorted(rows, key=lambda r: -debt_c[str(r['station_id'])])
        allocated = _fill_in_order(amount_c, rows, debt_c)
    elif method == AllocationMethod.OLDEST_FIRST:
        rows = sorted(rows, key=lambda r: (r.get('oldest_debt_date') is None,
                                           r.get('oldest_debt_date') or datetime.min))
        allocated = _fill_in_order(amount_c, rows, debt_c)
    elif method == AllocationMethod.MANUAL:
        allocated = _manual(amount_c, rows, debt_c, manual or [])
    else:
        raise InvalidAllocationError(f'Unknown allocation method: {method}')

    result = []
    for row in rows:
        key = str(row['station_id'])
        cents = allocated.get(key, 0)
        if cents <= 0:
            continue
        result.append({
            **row,
            'amount': from_cents(cents),
            'remaining_debt': from_cents(debt_c[key] - cents),
        })
    return result
