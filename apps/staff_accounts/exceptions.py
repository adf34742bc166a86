"""Domain exceptions for staff accounts and payroll."""
from rest_framework.exceptions import APIException


class StaffAccountNotFoundError(APIException):
    status_code = 404
    default_detail = 'Staff account not found.'
    default_code = 'staff_account_not_found'


class DuplicateStaffAccountError(APIException):
    status_code = 400
    default_detail = 'This user already has a staff account at this station.'
    default_code = 'duplicate_staff_account'


class StaffCompanyMismatchError(APIException):
    status_code = 400
    default_detail = 'The user does not belong to the station\'s company.'
    default_code = 'staff_company_mismatch'


class InactiveStaffAccountError(APIException):
    status_code = 400
    default_detail = 'Staff account is deactivated.'
    default_code = 'staff_account_inactive'


class StaffAccountOnHoldError(APIException):
    status_code = 400
    default_detail = 'Staff account is on hold and cannot be paid.'
    default_code = 'staff_account_on_hold'


class StaffCreditLimitExceededError(APIException):
    status_code = 400
    default_detail = 'This would exceed the staff member\'s credit limit.'
    default_code = 'staff_credit_limit_exceeded'


class StaffTransactionNotFoundError(APIException):
    status_code = 404
    default_detail = 'Staff transaction not found.'
    default_code = 'staff_transaction_not_found'


class InvalidTransactionStatusError(APIException):
    status_code = 400
    default_detail = 'The transaction is not in a state that allows this action.'
    default_code = 'invalid_transaction_status'


class SystemTransactionTypeError(APIException):
    """Recoveries and advance deductions come from settlements and payroll only."""
    status_code = 400
    default_detail = 'This transaction type is recorded automatically and cannot be created directly.'
    default_code = 'system_transaction_type'


class NotPayableTransactionError(APIException):
    status_code = 400
    default_detail = 'This transaction type is not paid out to staff.'
    default_code = 'transaction_not_payable'


class ShortageNotFoundError(APIException):
    status_code = 404
    default_detail = 'Shortage not found.'
    default_code = 'shortage_not_found'


class ShortageAlreadySettledError(APIException):
    status_code = 400
    default_detail = 'This shortage has already been fully recovered.'
    default_code = 'shortage_settled'


class AmountExceedsShortageError(APIException):
    status_code = 400
    default_detail = 'Amount exceeds the remaining shortage.'
    default_code = 'amount_exceeds_shortage'


class SalaryPaymentNotFoundError(APIException):
    status_code = 404
    default_detail = 'Salary payment not found.'
    default_code = 'salary_payment_not_found'


class DuplicateSalaryPaymentError(APIException):
    status_code = 400
    default_detail = 'A salary payment for this staff account and period already exists.'
    default_code = 'duplicate_salary_payment'


class InvalidSalaryStatusError(APIException):
    status_code = 400
    default_detail = 'The salary payment is not in a state that allows this action.'
    default_code = 'invalid_salary_status'


class StaleSalaryCalculationError(APIException):
    """Deductions were calculated against balances that have since changed."""
    status_code = 400
    default_detail = 'Shortage or advance balances changed since the salary was calculated. Recalculate it.'
    default_code = 'stale_salary_calculation'


class BankAccountRequiredError(APIException):
    status_code = 400
    default_detail = 'A bank account is required when paying from a bank account.'
    default_code = 'bank_account_required'
