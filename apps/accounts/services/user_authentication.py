"""Login and token issuing."""

import logging
from typing import Dict

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone
from rest_framework_simplejwt.tokens import RefreshToken

from ..models import UserStatus
from .exceptions import InvalidCredentialsError, InactiveAccountError

User = get_user_model()
logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


@transaction.atomic
def authenticate_user(*, email: str, password: str) -> User:
    """
    Check credentials and stamp ``last_login``.

    Emails are matched case-insensitively. Only ACTIVE users of an active
    company get in; super admins have no company.

    Raises:
        InvalidCredentialsError: Unknown email or wrong password
        InactiveAccountError: User is inactive/suspended or the company is deactivated
    """
    user = (
        User.objects
        .select_for_update()
        .select_related('company')
        .filter(email__iexact=email.strip())
        .first()
    )
    if user is None or not user.check_password(password):
        logger.warning('Failed login', extra={'email': email.strip().lower()})
        raise InvalidCredentialsError(INVALID_CREDENTIALS)

    if user.status != UserStatus.ACTIVE:
        raise InactiveAccountError(f"Account is {user.get_status_display().lower()}")
    if user.company_id and not user.company.is_active:
        raise InactiveAccountError("Company account is deactivated")

    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])
    logger.info('User logged in', extra={'user_id': str(user.id), 'role': user.role})
    return user


def issue_tokens(user) -> Dict[str, str]:
    """JWT pair carrying the role and company so clients can route without a lookup."""
    refresh = RefreshToken.for_user(user)
    refresh['role'] = user.role
    refresh['company_id'] = str(user.company_id) if user.company_id else None
    return {
        'refresh': str(refresh),
        'access': str(refresh.access_token),
    }
