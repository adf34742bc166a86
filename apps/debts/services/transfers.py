"""
Account transfer management.

Completed transfers are immutable apart from their description and
payment reference. Pending transfers (uncleared cheques) can be
completed, cancelled or deleted.
"""
import logging
from typing import Dict, List, Optional
from uuid import UUID

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from apps.banking.models import BankAccount, BankTransactionMode
from apps.banking.services import (
    cancel_bank_transaction,
    complete_bank_transaction,
    delete_bank_transaction,
)
from ..exceptions import TransferNotFoundError, TransferNotPendingError
from ..models import (
    AccountTransfer,
    AllocationMethod,
    PaymentMethod,
    TransactionCategory,
    TransactionDirection,
    TransferStatus,
)
from .ledger import lock_account, post_entry

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('description', 'payment_reference')


def list_transfers(
    *,
    company_id: Optional[UUID],
    station_ids=None,
    debtor_id: Optional[UUID] = None,
    station_id: Optional[UUID] = None,
    category: Optional[str] = None,
    status: Optional[str] = None,
    payment_method: Optional[str] = None,
    date_from=None,
    date_to=None,
    search: str = "",
):
    queryset = AccountTransfer.objects.select_related(
        'debtor', 'target_debtor', 'station', 'bank_account__bank', 'recorded_by'
    )
    if company_id is not None:
        queryset = queryset.filter(company_id=company_id)
    if station_ids is not None:
        queryset = queryset.filter(station_id__in=station_ids)
    if debtor_id:
        queryset = queryset.filter(Q(debtor_id=debtor_id) | Q(target_debtor_id=debtor_id))
    if station_id:
        queryset = queryset.filter(station_id=station_id)
    if category:
        queryset = queryset.filter(category=category)
    if status:
        queryset = queryset.filter(status=status)
    if payment_method:
        queryset = queryset.filter(payment_method=payment_method)
    if date_from:
        queryset = queryset.filter(created_at__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__date__lte=date_to)
    if search:
        queryset = queryset.filter(
            Q(debtor__name__icontains=search) |
            Q(payment_reference__icontains=search) |
            Q(description__icontains=search)
        )
    return queryset


def get_transfer(transfer_id: UUID, company_id: Optional[UUID] = None) -> AccountTransfer:
    queryset = AccountTransfer.objects.select_related(
        'debtor', 'target_debtor', 'station', 'bank_account__bank', 'bank_transaction', 'recorded_by'
    )
    if company_id is not None:
        queryset = queryset.filter(company_id=company_id)
    try:
        return queryset.get(id=transfer_id)
    except AccountTransfer.DoesNotExist:
        raise TransferNotFoundError()


def _lock_transfer(transfer_id: UUID) -> AccountTransfer:
    try:
        return (
            AccountTransfer.objects
            .select_for_update()
            .select_related('debtor', 'station')
            .get(id=transfer_id)
        )
    except AccountTransfer.DoesNotExist:
        raise TransferNotFoundError()


@transaction.atomic
def update_transfer(*, transfer_id: UUID, **fields) -> AccountTransfer:
    """Amounts, parties and ledger effects are immutable; only notes change."""
    transfer = _lock_transfer(transfer_id)
    changed = [field for field in EDITABLE_FIELDS if field in fields]
    for field in changed:
        setattr(transfer, field, fields[field])
    if changed:
        transfer.save(update_fields=changed + ['updated_at'])
    return transfer


@transaction.atomic
def delete_transfer(*, transfer_id: UUID) -> None:
    """Delete a pending transfer together with its pending bank transaction."""
    transfer = _lock_transfer(transfer_id)
    if transfer.status != TransferStatus.PENDING:
        raise TransferNotPendingError('Only pending transfers can be deleted.')

    bank_transaction_id = transfer.bank_transaction_id
    transfer.delete()
    if bank_transaction_id:
        delete_bank_transaction(transaction_id=bank_transaction_id)
    logger.info('Pending transfer deleted', extra={'transfer_id': str(transfer_id)})


@transaction.atomic
def complete_transfer(*, transfer_id: UUID, completed_by=None) -> AccountTransfer:
    """
    Clear a pending transfer: reduce the debt and complete the bank side.

    Raises:
        TransferNotPendingError: Transfer is not pending
        AmountExceedsDebtError: Debt dropped below the amount meanwhile
    """
    transfer = _lock_transfer(transfer_id)
    if transfer.status != TransferStatus.PENDING:
        raise TransferNotPendingError()

    account = lock_account(station_id=transfer.station_id, debtor_id=transfer.debtor_id)
    post_entry(
        account=account,
        direction=TransactionDirection.CREDIT,
        category=transfer.category,
        amount=transfer.amount,
        transfer=transfer,
        description=transfer.description or 'Cheque cleared',
        payment_reference=transfer.payment_reference,
        recorded_by=completed_by,
    )
    if transfer.bank_transaction_id:
        complete_bank_transaction(transaction_id=transfer.bank_transaction_id, approved_by=completed_by)

    transfer.status = TransferStatus.COMPLETED
    transfer.completed_at = timezone.now()
    transfer.save(update_fields=['status', 'completed_at', 'updated_at'])
    logger.info('Pending transfer completed', extra={'transfer_id': str(transfer.id)})
    return transfer


@transaction.atomic
def cancel_transfer(*, transfer_id: UUID) -> AccountTransfer:
    """Bounced or withdrawn cheque: the debt stays as it is."""
    transfer = _lock_transfer(transfer_id)
    if transfer.status != TransferStatus.PENDING:
        raise TransferNotPendingError()

    if transfer.bank_transaction_id:
        cancel_bank_transaction(transaction_id=transfer.bank_transaction_id)
    transfer.status = TransferStatus.CANCELLED
    transfer.save(update_fields=['status', 'updated_at'])
    logger.info('Pending transfer cancelled', extra={'transfer_id': str(transfer.id)})
    return transfer


def get_payment_methods(company_id: Optional[UUID] = None) -> List[Dict]:
    """Options for the settlement forms."""
    has_bank_accounts = (
        company_id is None
        or BankAccount.objects.filter(company_id=company_id, is_active=True).exists()
    )
    return [
        {
            'value': PaymentMethod.CASH,
            'label': PaymentMethod.CASH.label,
            'category': TransactionCategory.CASH_SETTLEMENT,
            'available': True,
        },
        {
            'value': PaymentMethod.BANK,
            'label': PaymentMethod.BANK.label,
            'category': TransactionCategory.BANK_SETTLEMENT,
            'available': has_bank_accounts,
            'modes': [{'value': value, 'label': label} for value, label in BankTransactionMode.choices],
        },
        {
            'value': PaymentMethod.ELECTRONIC,
            'label': PaymentMethod.ELECTRONIC.label,
            'category': TransactionCategory.ELECTRONIC_TRANSFER,
            'available': True,
        },
        {
            'value': 'CROSS_STATION',
            'label': TransactionCategory.CROSS_STATION.label,
            'category': TransactionCategory.CROSS_STATION,
            'available': True,
            'allocation_methods': [
                {'value': value, 'label': label} for value, label in AllocationMethod.choices
            ],
        },
    ]


def get_bank_accounts(company_id: Optional[UUID]):
    queryset = BankAccount.objects.filter(is_active=True).select_related('bank')
    if company_id is not None:
        queryset = queryset.filter(company_id=company_id)
    return queryset
