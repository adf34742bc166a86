"""
Money paid to staff.

Station wallet payouts debit the wallet (and fail when it cannot cover
them); bank account payouts book a withdrawal on the company account.
Petty cash, island collections and direct cash are recorded on the staff
ledger only.
"""
import logging
from typing import Optional, Tuple
from uuid import UUID

from apps.banking.models import BankTransaction, BankTransactionMode, BankTransactionType, WalletTransaction
from apps.banking.services import debit_wallet, record_bank_transaction
from ..exceptions import BankAccountRequiredError
from ..models import PaymentSource, PayrollMethod, StaffAccount

logger = logging.getLogger(__name__)


def pay_out(
    *,
    account: StaffAccount,
    amount,
    payment_source: str,
    payment_method: str = "",
    wallet_source: str,
    bank_account_id: Optional[UUID] = None,
    reference: str = "",
    description: str = "",
    recorded_by=None,
) -> Tuple[Optional[WalletTransaction], Optional[BankTransaction]]:
    """
    Raises:
        InsufficientWalletBalanceError: Wallet cannot cover the payout
        BankAccountRequiredError: Bank source without a bank account
        InsufficientBankBalanceError: Bank account cannot cover the payout
    """
    if payment_source == PaymentSource.STATION_WALLET:
        entry = debit_wallet(
            station_id=account.station_id,
            amount=amount,
            source=wallet_source,
            reference=reference,
            description=description,
            recorded_by=recorded_by,
        )
        return entry, None

    if payment_source == PaymentSource.BANK_ACCOUNT:
        if bank_account_id is None:
            raise BankAccountRequiredError()
        mode = (
            BankTransactionMode.MOBILE_MONEY
            if payment_method == PayrollMethod.MOBILE_MONEY
            else BankTransactionMode.BANK_TRANSFER
        )
        txn = record_bank_transaction(
            bank_account_id=bank_account_id,
            amount=amount,
            transaction_type=BankTransactionType.WITHDRAWAL,
            transaction_mode=mode,
            station=account.station,
            reference=reference,
            description=description,
            recorded_by=recorded_by,
        )
        return None, txn

    logger.info(
        'Staff payout recorded off-ledger',
        extra={'staff_account_id': str(account.id), 'amount': str(amount), 'payment_source': payment_source},
    )
    return None, None
