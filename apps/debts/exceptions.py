"""Domain exceptions for the debt ledger."""
from rest_framework.exceptions import APIException


class DebtorNotFoundError(APIException):
    status_code = 404
    default_detail = 'Debtor not found.'
    default_code = 'debtor_not_found'


class DebtorAccountNotFoundError(APIException):
    status_code = 404
    default_detail = 'Debtor has no account at this station.'
    default_code = 'debtor_account_not_found'


class DebtorTransactionNotFoundError(APIException):
    status_code = 404
    default_detail = 'Debtor transaction not found.'
    default_code = 'debtor_transaction_not_found'


class TransferNotFoundError(APIException):
    status_code = 404
    default_detail = 'Transfer not found.'
    default_code = 'transfer_not_found'


class DuplicateDebtorError(APIException):
    status_code = 400
    default_detail = 'A debtor with this phone number already exists.'
    default_code = 'duplicate_debtor'


class InactiveDebtorError(APIException):
    status_code = 400
    default_detail = 'Debtor is not active.'
    default_code = 'inactive_debtor'


class AmountExceedsDebtError(APIException):
    """Settlement, write-off or allocation larger than the outstanding debt."""
    status_code = 400
    default_detail = 'Amount exceeds outstanding debt.'
    default_code = 'amount_exceeds_debt'


class CreditLimitExceededError(APIException):
    status_code = 400
    default_detail = 'This debt would exceed the debtor credit limit.'
    default_code = 'credit_limit_exceeded'


class InvalidPaymentProcessorError(APIException):
    status_code = 400
    default_detail = 'Target debtor must be an active payment processor of the same company.'
    default_code = 'invalid_payment_processor'


class InvalidAllocationError(APIException):
    status_code = 400
    default_detail = 'Allocation is invalid.'
    default_code = 'invalid_allocation'


class SettlementNotReversibleError(APIException):
    """Only completed credit settlements can be reversed."""
    status_code = 400
    default_detail = 'This transaction cannot be reversed.'
    default_code = 'not_reversible'


class SettlementAlreadyReversedError(APIException):
    status_code = 400
    default_detail = 'This settlement has already been reversed.'
    default_code = 'already_reversed'


class TransferNotPendingError(APIException):
    status_code = 400
    default_detail = 'Only pending transfers can be changed this way.'
    default_code = 'transfer_not_pending'


class CompanyScopeError(APIException):
    status_code = 403
    default_detail = 'Debtor, station and bank account must belong to your company.'
    default_code = 'company_scope'


class ReasonRequiredError(APIException):
    status_code = 400
    default_detail = 'A reason of at least 10 characters is required.'
    default_code = 'reason_required'
