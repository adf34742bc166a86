"""
Banking services.

Station wallets hold cash collected at the stations; bank accounts hold
company money. All balance-changing functions are atomic and lock the
affected rows.
"""

from .wallet_operations import (
    to_money,
    get_station_wallet,
    credit_wallet,
    debit_wallet,
)
from .bank_operations import (
    record_bank_transaction,
    create_bank_deposit,
    create_withdrawal,
    complete_bank_transaction,
    cancel_bank_transaction,
    update_bank_transaction,
    delete_bank_transaction,
    reverse_bank_transaction,
)
from .reports import (
    company_banking_summary,
    banking_stats,
    daily_summary,
    wallet_today_flows,
    export_transactions_csv,
)

__all__ = [
    # Wallets
    'to_money',
    'get_station_wallet',
    'credit_wallet',
    'debit_wallet',

    # Bank transactions
    'record_bank_transaction',
    'create_bank_deposit',
    'create_withdrawal',
    'complete_bank_transaction',
    'cancel_bank_transaction',
    'update_bank_transaction',
    'delete_bank_transaction',
    'reverse_bank_transaction',

    # Reports
    'company_banking_summary',
    'banking_stats',
    'daily_summary',
    'wallet_today_flows',
    'export_transactions_csv',
]
