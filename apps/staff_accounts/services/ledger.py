"""
Staff account ledger.

``apply_balance`` is the only place a staff account balance changes. The
caller must hold the account lock (``lock_staff_account``).
"""
import logging
from decimal import Decimal

from django.utils import timezone

from ..exceptions import StaffCreditLimitExceededError
from ..models import BalanceEffect, StaffAccount, StaffTransaction, StaffTransactionType

logger = logging.getLogger(__name__)


def check_credit_limit(account: StaffAccount, amount: Decimal) -> None:
    """Raise if taking ``amount`` more would put the staff member above the credit limit."""
    if account.credit_limit is None:
        return
    if account.amount_owed + amount > account.credit_limit:
        raise StaffCreditLimitExceededError(
            f'Staff member owes {account.amount_owed}; '
            f'{amount} more exceeds the credit limit of {account.credit_limit}.'
        )


def apply_balance(account: StaffAccount, txn: StaffTransaction) -> StaffTransaction:
    """Post ``txn`` on the locked account and snapshot the balance on the transaction."""
    amount = txn.amount
    before = account.current_balance
    if txn.balance_effect == BalanceEffect.DEBIT:
        after = before - amount
    elif txn.balance_effect == BalanceEffect.CREDIT:
        after = before + amount
    else:
        after = before

    txn_type = txn.transaction_type
    if txn_type == StaffTransactionType.SHORTAGE:
        account.outstanding_shortages += amount
        account.total_shortages += amount
        account.last_shortage_date = timezone.localdate()
    elif txn_type == StaffTransactionType.ADVANCE:
        account.outstanding_advances += amount
        account.total_advances += amount
    elif txn_type == StaffTransactionType.ADVANCE_DEDUCTION:
        account.outstanding_advances -= amount
    elif txn.shortage_id is not None:
        account.outstanding_shortages -= amount

    account.current_balance = after
    account.save()

    txn.balance_before = before
    txn.balance_after = after
    txn.save(update_fields=['balance_before', 'balance_after', 'updated_at'])

    logger.info(
        'Staff balance updated',
        extra={'staff_account_id': str(account.id), 'staff_transaction_id': str(txn.id),
               'type': txn_type, 'amount': str(amount), 'balance_after': str(after)},
    )
    return txn
