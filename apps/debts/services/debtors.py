"""
Debtor management, credit sales and fuzzy debtor search.
"""
import logging
import re
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from django.conf import settings
from django.db import transaction
from django.db.models import DecimalField, Q, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone
from fuzzywuzzy import fuzz

from apps.banking.services import to_money
from ..exceptions import (
    CreditLimitExceededError,
    DebtorNotFoundError,
    DuplicateDebtorError,
    InactiveDebtorError,
)
from ..models import (
    Debtor,
    DebtorTransaction,
    StationDebtorAccount,
    TransactionCategory,
    TransactionDirection,
)
from .ledger import lock_account, oldest_open_debit_date, post_entry

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')


def normalize_name(text: str) -> str:
    return Debtor._normalize_string(text)


def _digits(text: str) -> str:
    return re.sub(r'\D', '', text or '')


def with_total_debt(queryset):
    """Annotate debtors with ``total_debt`` across all stations."""
    return queryset.annotate(
        total_debt=Coalesce(
            Sum('station_accounts__current_debt'),
            Value(ZERO),
            output_field=DecimalField(max_digits=14, decimal_places=2),
        )
    )


def get_debtor(debtor_id: UUID, company_id: Optional[UUID] = None) -> Debtor:
    queryset = Debtor.objects.select_related('company')
    if company_id is not None:
        queryset = queryset.filter(company_id=company_id)
    try:
        return queryset.get(id=debtor_id)
    except Debtor.DoesNotExist:
        raise DebtorNotFoundError()


def find_similar_debtors(
    *,
    company_id: UUID,
    name: str,
    threshold: Optional[int] = None,
    exclude_id: Optional[UUID] = None,
) -> List[Tuple[Debtor, int]]:
    """
    Existing debtors whose name looks like ``name``.

    Returns:
        List of (debtor, similarity_score) tuples, best match first
    """
    threshold = threshold if threshold is not None else settings.DEBTOR_MATCH_THRESHOLD
    name_norm = normalize_name(name)

    queryset = Debtor.objects.filter(company_id=company_id, is_active=True)
    if exclude_id:
        queryset = queryset.exclude(id=exclude_id)

    candidates = []
    for debtor in queryset:
        similarity = fuzz.ratio(name_norm, debtor.name_normalized)
        if similarity >= threshold:
            candidates.append((debtor, similarity))

    candidates.sort(key=lambda x: x[1], reverse=True)
    return candidates[:10]


@transaction.atomic
def create_debtor(*, company, created_by=None, **fields) -> Debtor:
    """
    Register a debtor.

    Raises:
        DuplicateDebtorError: An active debtor of the company has the same phone
    """
    phone = fields.get('phone', '').strip()
    if phone and Debtor.objects.filter(company=company, phone=phone, is_active=True).exists():
        raise DuplicateDebtorError()

    debtor = Debtor.objects.create(company=company, created_by=created_by, **fields)
    logger.info('Debtor created', extra={'debtor_id': str(debtor.id), 'company_id': str(company.id)})
    return debtor


@transaction.atomic
def update_debtor(*, debtor: Debtor, **fields) -> Debtor:
    phone = fields.get('phone')
    if phone and phone != debtor.phone:
        if Debtor.objects.filter(company_id=debtor.company_id, phone=phone, is_active=True).exclude(
            id=debtor.id
        ).exists():
            raise DuplicateDebtorError()

    for field, value in fields.items():
        setattr(debtor, field, value)
    debtor.save()
    return debtor


def deactivate_debtor(*, debtor: Debtor) -> Debtor:
    """Debtors keep their ledger history; they are only deactivated."""
    debtor.is_active = False
    debtor.save(update_fields=['is_active', 'updated_at'])
    return debtor


def _resolve_sale_debtor(*, company, debtor_id, debtor_name, debtor_phone, created_by) -> Debtor:
    if debtor_id:
        return get_debtor(debtor_id, company_id=company.id)

    existing = Debtor.objects.filter(company=company, phone=debtor_phone.strip(), is_active=True).first()
    if existing:
        return existing
    return create_debtor(company=company, created_by=created_by, name=debtor_name, phone=debtor_phone.strip())


@transaction.atomic
def record_debt(
    *,
    company,
    station,
    amount,
    debtor_id: Optional[UUID] = None,
    debtor_name: str = "",
    debtor_phone: str = "",
    vehicle_plate: str = "",
    shift_id: Optional[UUID] = None,
    description: str = "",
    recorded_by=None,
) -> DebtorTransaction:
    """
    Record fuel sold on credit (debit the debtor's station account).

    The debtor is given by id, or looked up by phone (and created when
    unknown). When the debtor has a credit limit, the total debt across
    all stations may not exceed it.

    Raises:
        InactiveDebtorError: Debtor deactivated
        CreditLimitExceededError: Limit would be exceeded
    """
    amount = to_money(amount)
    debtor = _resolve_sale_debtor(
        company=company,
        debtor_id=debtor_id,
        debtor_name=debtor_name,
        debtor_phone=debtor_phone,
        created_by=recorded_by,
    )
    if not debtor.is_active:
        raise InactiveDebtorError()

    account = lock_account(station_id=station.id, debtor_id=debtor.id, create=True)

    if debtor.credit_limit is not None:
        total_debt = StationDebtorAccount.objects.filter(debtor=debtor).aggregate(
            total=Sum('current_debt')
        )['total'] or ZERO
        if total_debt + amount > debtor.credit_limit:
            raise CreditLimitExceededError(
                f'Debt of {total_debt + amount} would exceed the credit limit of {debtor.credit_limit}.'
            )

    return post_entry(
        account=account,
        direction=TransactionDirection.DEBIT,
        category=TransactionCategory.SALE,
        amount=amount,
        description=description or f'Fuel on credit at {station.name}',
        vehicle_plate=vehicle_plate,
        shift_id=shift_id,
        recorded_by=recorded_by,
    )


def _search_score(query: str, debtor: Debtor) -> int:
    query_norm = normalize_name(query)
    score = max(
        fuzz.partial_ratio(query_norm, debtor.name_normalized),
        fuzz.token_set_ratio(query_norm, debtor.name_normalized),
    )
    query_digits = _digits(query)
    if len(query_digits) >= 4 and query_digits in _digits(debtor.phone):
        score = 100
    if debtor.email and query.strip().lower() in debtor.email.lower():
        score = max(score, 90)
    return score


def search_debtors(
    *,
    company_id: Optional[UUID],
    query: str = "",
    station_id: Optional[UUID] = None,
    has_debt: Optional[bool] = None,
    debtor_type: Optional[str] = None,
    include_inactive: bool = False,
    threshold: Optional[int] = None,
) -> List[Tuple[Debtor, int]]:
    """
    Search debtors across all stations of a company.

    Names are matched fuzzily (typos and word order tolerated), phone
    numbers by their digits.

    Returns:
        List of (debtor, score) tuples, best match first; debtors carry a
        ``total_debt`` annotation
    """
    threshold = threshold if threshold is not None else settings.DEBTOR_MATCH_THRESHOLD
    queryset = Debtor.objects.all()
    if company_id is not None:
        queryset = queryset.filter(company_id=company_id)
    if not include_inactive:
        queryset = queryset.filter(is_active=True)
    if debtor_type:
        queryset = queryset.filter(debtor_type=debtor_type)
    if station_id:
        queryset = queryset.filter(station_accounts__station_id=station_id).distinct()
    queryset = with_total_debt(queryset)
    if has_debt is True:
        queryset = queryset.filter(total_debt__gt=0)
    elif has_debt is False:
        queryset = queryset.filter(total_debt=0)

    query = (query or '').strip()
    if not query:
        return [(debtor, 100) for debtor in queryset.order_by('name')]

    results = []
    for debtor in queryset:
        score = _search_score(query, debtor)
        if score >= threshold:
            results.append((debtor, score))

    results.sort(key=lambda x: (-x[1], x[0].name))
    return results


def get_debtor_debt_breakdown(debtor: Debtor) -> Dict:
    """Per-station debt of a debtor with the age of the oldest unpaid debit."""
    today = timezone.now()
    station_debts = []
    accounts = (
        StationDebtorAccount.objects
        .filter(debtor=debtor)
        .select_related('station')
        .order_by('station__name')
    )
    for account in accounts:
        oldest = oldest_open_debit_date(account)
        station_debts.append({
            'account_id': account.id,
            'station_id': account.station_id,
            'station_name': account.station.name,
            'current_debt': account.current_debt,
            'total_debited': account.total_debited,
            'total_credited': account.total_credited,
            'oldest_debt_date': oldest,
            'age_days': (today - oldest).days if oldest else 0,
        })

    return {
        'debtor_id': debtor.id,
        'debtor_name': debtor.name,
        'credit_limit': debtor.credit_limit,
        'total_debt': sum((row['current_debt'] for row in station_debts), ZERO),
        'station_debts': station_debts,
    }


def get_debtor_profile(debtor: Debtor) -> Dict:
    """Debtor details, per-station balances and recent activity."""
    breakdown = get_debtor_debt_breakdown(debtor)
    totals = StationDebtorAccount.objects.filter(debtor=debtor).aggregate(
        debited=Sum('total_debited'),
        credited=Sum('total_credited'),
    )
    recent = (
        DebtorTransaction.objects
        .filter(account__debtor=debtor)
        .select_related('account__station', 'recorded_by')[:10]
    )
    available_credit = None
    if debtor.credit_limit is not None:
        available_credit = max(debtor.credit_limit - breakdown['total_debt'], ZERO)

    return {
        'debtor': debtor,
        'total_debt': breakdown['total_debt'],
        'total_debited': totals['debited'] or ZERO,
        'total_credited': totals['credited'] or ZERO,
        'available_credit': available_credit,
        'station_debts': breakdown['station_debts'],
        'recent_transactions': list(recent),
        'recent_transfers': list(debtor.transfers.select_related('station')[:10]),
    }


def list_debtor_transactions(
    *,
    company_id: Optional[UUID],
    debtor_id: Optional[UUID] = None,
    station_id: Optional[UUID] = None,
    station_ids=None,
    direction: Optional[str] = None,
    category: Optional[str] = None,
    date_from=None,
    date_to=None,
    search: str = "",
):
    queryset = DebtorTransaction.objects.select_related(
        'account__station', 'account__debtor', 'recorded_by', 'transfer'
    )
    if company_id is not None:
        queryset = queryset.filter(account__debtor__company_id=company_id)
    if station_ids is not None:
        queryset = queryset.filter(account__station_id__in=station_ids)
    if debtor_id:
        queryset = queryset.filter(account__debtor_id=debtor_id)
    if station_id:
        queryset = queryset.filter(account__station_id=station_id)
    if direction:
        queryset = queryset.filter(direction=direction)
    if category:
        queryset = queryset.filter(category=category)
    if date_from:
        queryset = queryset.filter(transaction_date__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(transaction_date__date__lte=date_to)
    if search:
        queryset = queryset.filter(
            Q(description__icontains=search) |
            Q(payment_reference__icontains=search) |
            Q(account__debtor__name__icontains=search)
        )
    return queryset
