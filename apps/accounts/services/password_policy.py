"""Password strength policy for back office users."""
import re
from typing import List


MIN_PASSWORD_LENGTH = 8


def validate_password_strength(password: str) -> List[str]:
    """
    Check a password against the back office policy.

    Returns a list of human readable problems; an empty list means the
    password is acceptable.
    """
    errors = []
    password = password or ''

    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
    if not re.search(r'[A-Z]', password):
        errors.append('Password must contain at least one uppercase letter')
    if not re.search(r'[a-z]', password):
        errors.append('Password must contain at least one lowercase letter')
    if not re.search(r'[0-9]', password):
        errors.append('Password must contain at least one number')
    if not re.search(r'[^A-Za-z0-9]', password):
        errors.append('Password must contain at least one special character')

    return errors
