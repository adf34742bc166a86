"""Domain exceptions for banking."""
from rest_framework.exceptions import APIException


class InvalidAmountError(APIException):
    status_code = 400
    default_detail = 'Amount must be greater than zero.'
    default_code = 'invalid_amount'


class InsufficientWalletBalanceError(APIException):
    """Wallet cannot cover a payout."""
    status_code = 400
    default_detail = 'Station wallet balance is insufficient for this operation.'
    default_code = 'insufficient_wallet_balance'


class InsufficientBankBalanceError(APIException):
    status_code = 400
    default_detail = 'Bank account balance is insufficient for this operation.'
    default_code = 'insufficient_bank_balance'


class BankAccountNotFoundError(APIException):
    status_code = 404
    default_detail = 'Bank account not found.'
    default_code = 'bank_account_not_found'


class InactiveBankAccountError(APIException):
    status_code = 400
    default_detail = 'Bank account is not active.'
    default_code = 'inactive_bank_account'


class BankTransactionNotFoundError(APIException):
    status_code = 404
    default_detail = 'Bank transaction not found.'
    default_code = 'bank_transaction_not_found'


class BankTransactionNotPendingError(APIException):
    """Only pending transactions may be deleted, completed or cancelled."""
    status_code = 400
    default_detail = 'Only pending bank transactions can be changed this way.'
    default_code = 'bank_transaction_not_pending'


class BankTransactionLockedError(APIException):
    """Transaction belongs to a debt settlement and is managed through it."""
    status_code = 400
    default_detail = 'This bank transaction is linked to a debt settlement.'
    default_code = 'bank_transaction_locked'


class CompanyMismatchError(APIException):
    status_code = 400
    default_detail = 'Station and bank account belong to different companies.'
    default_code = 'company_mismatch'
