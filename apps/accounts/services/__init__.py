"""Services for accounts business logic."""

from .exceptions import (
    AccountsServiceError,
    UserCreationError,
    InvalidCredentialsError,
    InactiveAccountError,
    UserNotFoundError,
    RoleAssignmentError,
    WeakPasswordError,
    UserDeletionError,
    InvalidUserOperationError,
)
from .password_policy import validate_password_strength
from .user_authentication import authenticate_user, issue_tokens
from .user_management import (
    create_user,
    create_staff_user,
    create_bulk_users,
    list_users,
    get_user_by_email,
    update_user,
    update_user_status,
    update_user_password,
    reset_password,
    delete_user,
)

__all__ = [
    # Exceptions
    'AccountsServiceError',
    'UserCreationError',
    'InvalidCredentialsError',
    'InactiveAccountError',
    'UserNotFoundError',
    'RoleAssignmentError',
    'WeakPasswordError',
    'UserDeletionError',
    'InvalidUserOperationError',
    # Services
    'validate_password_strength',
    'authenticate_user',
    'issue_tokens',
    'create_user',
    'create_staff_user',
    'create_bulk_users',
    'list_users',
    'get_user_by_email',
    'update_user',
    'update_user_status',
    'update_user_password',
    'reset_password',
    'delete_user',
]
