"""
User management services.

Creation and modification of back office users, including the role
rules: super admins manage everyone, company admins manage their own
company (but can never grant SUPER_ADMIN), other roles manage nobody.
"""
import logging
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import ProtectedError, Q
from rest_framework.exceptions import APIException

from ..models import STATION_ROLES, UserRole, UserStatus
from .exceptions import (
    InvalidUserOperationError,
    RoleAssignmentError,
    UserCreationError,
    UserDeletionError,
    UserNotFoundError,
    WeakPasswordError,
)
from .password_policy import validate_password_strength

logger = logging.getLogger(__name__)

User = get_user_model()


def _get_user(user_id: UUID, lock: bool = False) -> User:
    queryset = User.objects.select_for_update() if lock else User.objects
    try:
        return queryset.get(id=user_id)
    except User.DoesNotExist:
        raise UserNotFoundError(f"User {user_id} not found")


def _resolve_company_id(actor, role: str, company_id: Optional[UUID]) -> Optional[UUID]:
    """
    Work out which company a new or changed user belongs to.

    Raises:
        RoleAssignmentError: If the actor may not grant this role/company
    """
    if actor.is_super_admin:
        if role == UserRole.SUPER_ADMIN:
            return None
        if company_id is None:
            raise RoleAssignmentError("A company is required for this role")
        return company_id

    if actor.is_company_admin:
        if role == UserRole.SUPER_ADMIN:
            raise RoleAssignmentError("Company admins cannot grant the super admin role")
        if company_id is not None and str(company_id) != str(actor.company_id):
            raise RoleAssignmentError("You can only manage users of your own company")
        return actor.company_id

    raise RoleAssignmentError("You do not have permission to manage users")


def _check_password(password: str) -> None:
    errors = validate_password_strength(password)
    if errors:
        raise WeakPasswordError(errors)


@transaction.atomic
def create_user(
    *,
    created_by,
    email: str,
    password: str,
    role: str,
    first_name: str = "",
    last_name: str = "",
    phone: str = "",
    company_id: Optional[UUID] = None,
    status: str = UserStatus.ACTIVE,
) -> User:
    """
    Create a back office user.

    Args:
        created_by: Acting user (role rules are checked against it)
        email: Login email, unique case-insensitively
        password: Plain password, must pass the strength policy
        role: One of UserRole
        company_id: Target company (ignored for company admins, who always
            create inside their own company)

    Returns:
        Created User instance

    Raises:
        RoleAssignmentError: Actor may not create this user
        WeakPasswordError: Password fails the policy
        UserCreationError: Email already taken
    """
    company_id = _resolve_company_id(created_by, role, company_id)
    _check_password(password)

    email = email.strip().lower()
    if User.objects.filter(email__iexact=email).exists():
        raise UserCreationError("A user with this email already exists")

    try:
        user = User.objects.create_user(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            role=role,
            company_id=company_id,
        )
    except IntegrityError as e:
        raise UserCreationError(f"User creation failed: {e}")

    if status != UserStatus.ACTIVE:
        user.set_status(status)
        user.save(update_fields=['status', 'is_active'])

    logger.info('User created', extra={'user_id': str(user.id), 'role': role, 'created_by': str(created_by.id)})
    return user


def create_staff_user(*, created_by, station_ids: Iterable[UUID] = (), **fields) -> Dict:
    """
    Create a station-level user and assign them to stations.

    The user is created first; each station assignment is then attempted
    in order. A failed assignment is logged and reported but neither stops
    the remaining assignments nor removes the user.

    Returns:
        ``{'user': User, 'assignments': [...], 'failed_assignments': [...]}``
    """
    from apps.stations.models import Station
    from apps.stations.services import assign_user_to_station

    if fields.get('role') not in STATION_ROLES:
        raise RoleAssignmentError("Staff users must have a station role")

    user = create_user(created_by=created_by, **fields)

    assignments = []
    failed = []
    for station_id in station_ids:
        try:
            station = Station.objects.get(id=station_id)
            assignments.append(
                assign_user_to_station(user=user, station=station, assigned_by=created_by)
            )
        except Station.DoesNotExist:
            failed.append({'station_id': str(station_id), 'error': 'Station not found.'})
        except APIException as e:
            failed.append({'station_id': str(station_id), 'error': str(e.detail)})

    if failed:
        logger.warning(
            'Staff user created with failed station assignments',
            extra={'user_id': str(user.id), 'failed': len(failed)},
        )

    return {'user': user, 'assignments': assignments, 'failed_assignments': failed}


def create_bulk_users(*, created_by, users: Iterable[Dict]) -> Dict:
    """
    Create many users, one at a time.

    Returns ``{'created': [User, ...], 'errors': [{'index', 'email', 'error'}]}``.
    """
    created: List[User] = []
    errors: List[Dict] = []

    for index, row in enumerate(users):
        try:
            created.append(create_user(created_by=created_by, **row))
        except (RoleAssignmentError, WeakPasswordError, UserCreationError) as e:
            errors.append({'index': index, 'email': row.get('email'), 'error': str(e)})

    if errors:
        logger.warning('Bulk user creation finished with errors',
                       extra={'created_count': len(created), 'failed': len(errors)})
    return {'created': created, 'errors': errors}


def list_users(
    *,
    requested_by,
    role: Optional[str] = None,
    status: Optional[str] = None,
    company_id: Optional[UUID] = None,
    station_id: Optional[UUID] = None,
    search: Optional[str] = None,
):
    """
    Users visible to ``requested_by``, filtered.

    Super admins see everyone, company admins their company, station
    managers the staff of their stations, everyone else only themselves.
    """
    queryset = User.objects.select_related('company')

    if requested_by.is_super_admin:
        if company_id:
            queryset = queryset.filter(company_id=company_id)
    elif requested_by.is_company_admin:
        queryset = queryset.filter(company_id=requested_by.company_id)
    elif requested_by.role == UserRole.STATION_MANAGER:
        queryset = queryset.filter(
            Q(id=requested_by.id) |
            Q(station_assignments__station_id__in=requested_by.station_ids(),
              station_assignments__is_active=True)
        ).distinct()
    else:
        queryset = queryset.filter(id=requested_by.id)

    if role:
        queryset = queryset.filter(role=role)
    if status:
        queryset = queryset.filter(status=status)
    if station_id:
        queryset = queryset.filter(
            station_assignments__station_id=station_id,
            station_assignments__is_active=True,
        ).distinct()
    if search:
        queryset = queryset.filter(
            Q(email__icontains=search) |
            Q(first_name__icontains=search) |
            Q(last_name__icontains=search) |
            Q(phone__icontains=search)
        )

    return queryset


def get_user_by_email(*, email: str) -> User:
    try:
        return User.objects.get(email__iexact=email.strip())
    except User.DoesNotExist:
        raise UserNotFoundError(f"User with email {email} not found")


@transaction.atomic
def update_user(*, user_id: UUID, updated_by, **fields) -> User:
    """
    Update profile fields of a user.

    Changing ``role`` goes through the same grant rules as creation.
    """
    user = _get_user(user_id, lock=True)

    role = fields.pop('role', None)
    if role is not None and role != user.role:
        if user.pk == updated_by.pk:
            raise InvalidUserOperationError("You cannot change your own role")
        user.company_id = _resolve_company_id(updated_by, role, user.company_id)
        user.role = role

    email = fields.pop('email', None)
    if email is not None:
        email = email.strip().lower()
        if User.objects.filter(email__iexact=email).exclude(pk=user.pk).exists():
            raise UserCreationError("A user with this email already exists")
        user.email = email

    for field in ('first_name', 'last_name', 'phone'):
        if field in fields:
            setattr(user, field, fields[field])

    user.save()
    return user


@transaction.atomic
def update_user_status(*, user_id: UUID, status: str, updated_by) -> User:
    """Activate, deactivate or suspend a user."""
    user = _get_user(user_id, lock=True)
    if user.pk == updated_by.pk:
        raise InvalidUserOperationError("You cannot change your own status")

    user.set_status(status)
    user.save(update_fields=['status', 'is_active', 'updated_at'])
    logger.info('User status changed', extra={'user_id': str(user.id), 'status': status})
    return user


@transaction.atomic
def update_user_password(*, user_id: UUID, password: str) -> User:
    _check_password(password)
    user = _get_user(user_id, lock=True)
    user.set_password(password)
    user.save(update_fields=['password', 'updated_at'])
    return user


@transaction.atomic
def reset_password(*, email: str, new_password: str, confirm_password: str) -> User:
    """Reset a user's password by email (administrative reset)."""
    if new_password != confirm_password:
        raise WeakPasswordError(['Passwords do not match'])
    user = get_user_by_email(email=email)
    return update_user_password(user_id=user.id, password=new_password)


@transaction.atomic
def delete_user(*, user_id: UUID, deleted_by) -> None:
    """
    Delete a user.

    Raises:
        InvalidUserOperationError: When deleting yourself
        UserDeletionError: When the user still owns staff financial records
    """
    user = _get_user(user_id, lock=True)
    if user.pk == deleted_by.pk:
        raise InvalidUserOperationError("You cannot delete your own account")

    try:
        user.delete()
    except ProtectedError:
        raise UserDeletionError("User has financial records; deactivate the account instead")

    logger.info('User deleted', extra={'user_id': str(user_id), 'deleted_by': str(deleted_by.id)})
