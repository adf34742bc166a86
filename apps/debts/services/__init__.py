"""
Debt services.

Debtors owe money per station (StationDebtorAccount). Sales on credit
debit an account; settlements, write-offs and electronic transfers credit
it. All ledger changes lock the affected accounts and keep
``current_debt == total_debited - total_credited``.
"""

from .ledger import (
    lock_account,
    lock_debtor_accounts,
    post_entry,
    open_debits,
    oldest_open_debit_date,
)
from .allocation import allocate
from .debtors import (
    get_debtor,
    with_total_debt,
    find_similar_debtors,
    create_debtor,
    update_debtor,
    deactivate_debtor,
    record_debt,
    search_debtors,
    get_debtor_profile,
    get_debtor_debt_breakdown,
    list_debtor_transactions,
)
from .settlements import (
    process_cash_settlement,
    bulk_record_payments,
    process_bank_settlement,
    process_electronic_transfer,
    process_cross_station_settlement,
    preview_allocation,
    write_off_debt,
    reverse_settlement,
)
from .transfers import (
    list_transfers,
    get_transfer,
    update_transfer,
    delete_transfer,
    complete_transfer,
    cancel_transfer,
    get_payment_methods,
    get_bank_accounts,
)
from .reports import (
    company_debtors_summary,
    debt_aging_report,
    settlement_activity_report,
)
from .analytics import (
    calculate_settlement_metrics,
    analyze_debtor_settlement_patterns,
    generate_settlement_insights,
    check_settlement_alerts,
    export_settlement_report,
)

__all__ = [
    # Ledger
    'lock_account',
    'lock_debtor_accounts',
    'post_entry',
    'open_debits',
    'oldest_open_debit_date',
    'allocate',

    # Debtors
    'get_debtor',
    'with_total_debt',
    'find_similar_debtors',
    'create_debtor',
    'update_debtor',
    'deactivate_debtor',
    'record_debt',
    'search_debtors',
    'get_debtor_profile',
    'get_debtor_debt_breakdown',
    'list_debtor_transactions',

    # Settlements
    'process_cash_settlement',
    'bulk_record_payments',
    'process_bank_settlement',
    'process_electronic_transfer',
    'process_cross_station_settlement',
    'preview_allocation',
    'write_off_debt',
    'reverse_settlement',

    # Transfers
    'list_transfers',
    'get_transfer',
    'update_transfer',
    'delete_transfer',
    'complete_transfer',
    'cancel_transfer',
    'get_payment_methods',
    'get_bank_accounts',

    # Reports
    'company_debtors_summary',
    'debt_aging_report',
    'settlement_activity_report',

    # Analytics
    'calculate_settlement_metrics',
    'analyze_debtor_settlement_patterns',
    'generate_settlement_insights',
    'check_settlement_alerts',
    'export_settlement_report',
]
