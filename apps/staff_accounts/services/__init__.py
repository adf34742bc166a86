"""
Staff account services.

Each staff member has one account per station. Shortages, advances and
fines make the balance negative (the staff member owes the station);
recoveries, salary deductions and write-offs bring it back. Salaries are
calculated, approved and paid from the station wallet, a bank account or
cash.
"""

from .accounts import (
    next_payment_date,
    get_staff_account,
    lock_staff_account,
    ensure_active,
    ensure_payable,
    create_staff_account,
    update_staff_account,
    deactivate_staff_account,
    list_station_accounts,
    station_accounts_summary,
)
from .ledger import (
    apply_balance,
    check_credit_limit,
)
from .payouts import pay_out
from .shortages import (
    create_shortage,
    recover_shortage,
    settle_shortage,
    get_shortage,
    get_outstanding_shortages,
    list_shortages,
    shortage_summary,
)
from .transactions import (
    create_staff_transaction,
    get_staff_transaction,
    approve_staff_transaction,
    reject_staff_transaction,
    process_transaction_payment,
    list_staff_transactions,
    transaction_summary,
)
from .payroll import (
    calculate_salary,
    create_salary_payment,
    get_salary_payment,
    approve_salary_payment,
    cancel_salary_payment,
    process_salary_payment,
    salary_payment_history,
    generate_payroll,
    process_bulk_payments,
)
from .reports import (
    payroll_report,
    payroll_summary,
)

__all__ = [
    # Accounts
    'next_payment_date',
    'get_staff_account',
    'lock_staff_account',
    'ensure_active',
    'ensure_payable',
    'create_staff_account',
    'update_staff_account',
    'deactivate_staff_account',
    'list_station_accounts',
    'station_accounts_summary',

    # Ledger
    'apply_balance',
    'check_credit_limit',
    'pay_out',

    # Shortages
    'create_shortage',
    'recover_shortage',
    'settle_shortage',
    'get_shortage',
    'get_outstanding_shortages',
    'list_shortages',
    'shortage_summary',

    # Transactions
    'create_staff_transaction',
    'get_staff_transaction',
    'approve_staff_transaction',
    'reject_staff_transaction',
    'process_transaction_payment',
    'list_staff_transactions',
    'transaction_summary',

    # Payroll
    'calculate_salary',
    'create_salary_payment',
    'get_salary_payment',
    'approve_salary_payment',
    'cancel_salary_payment',
    'process_salary_payment',
    'salary_payment_history',
    'generate_payroll',
    'process_bulk_payments',

    # Reports
    'payroll_report',
    'payroll_summary',
]
