"""Domain-specific exceptions for accounts services."""


class AccountsServiceError(Exception):
    """Base exception for accounts services."""
    pass


class UserCreationError(AccountsServiceError):
    """Raised when a user cannot be created."""
    pass


class InvalidCredentialsError(AccountsServiceError):
    """Raised when authentication credentials are invalid."""
    pass


class InactiveAccountError(AccountsServiceError):
    """Raised when the account is inactive or suspended."""
    pass


class UserNotFoundError(AccountsServiceError):
    """Raised when user does not exist."""
    pass


class RoleAssignmentError(AccountsServiceError):
    """Raised when the acting user may not grant a role or company."""
    pass


class WeakPasswordError(AccountsServiceError):
    """Raised when a password fails the strength policy."""

    def __init__(self, errors):
        self.errors = errors
        super().__init__(errors[0] if errors else 'Password is too weak')


class UserDeletionError(AccountsServiceError):
    """Raised when a user still owns financial records."""
    pass


class InvalidUserOperationError(AccountsServiceError):
    """Raised for operations a user may not perform on their own account."""
    pass
