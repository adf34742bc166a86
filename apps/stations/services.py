"""
Station assignment services.

A station-level user (manager, supervisor, attendant) works at one or
more stations of their company. Assignments are never deleted: ending an
assignment deactivates it and stamps ``ended_at`` so the history stays
available for payroll and audits.
"""
import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import APIException

from apps.accounts.models import STATION_ROLES, UserStatus
from .exceptions import (
    AssignmentNotFoundError,
    DuplicateAssignmentError,
    InactiveStationError,
    InvalidAssignmentRoleError,
    StationCompanyMismatchError,
    StationNotFoundError,
)
from .models import Station, StationAssignment

logger = logging.getLogger(__name__)

User = get_user_model()


def _get_station(station_id) -> Station:
    try:
        return Station.objects.select_related('company').get(id=station_id)
    except Station.DoesNotExist:
        raise StationNotFoundError()


@transaction.atomic
def assign_user_to_station(
    *,
    user,
    station: Station,
    role: Optional[str] = None,
    assigned_by=None,
) -> StationAssignment:
    """
    Assign a user to a station.

    Args:
        user: User to assign
        station: Target station
        role: Role held at the station, defaults to the user's own role
        assigned_by: User performing the assignment

    Returns:
        The new active StationAssignment

    Raises:
        InvalidAssignmentRoleError: Role is not a station-level role
        StationCompanyMismatchError: Station is in another company
        InactiveStationError: Station is deactivated
        DuplicateAssignmentError: Active assignment already exists
    """
    role = role or user.role
    if role not in STATION_ROLES:
        raise InvalidAssignmentRoleError()

    if user.company_id != station.company_id:
        raise StationCompanyMismatchError()

    if not station.is_active:
        raise InactiveStationError()

    exists = (
        StationAssignment.objects
        .select_for_update()
        .filter(user=user, station=station, is_active=True)
        .exists()
    )
    if exists:
        raise DuplicateAssignmentError()

    assignment = StationAssignment.objects.create(
        user=user,
        station=station,
        role=role,
        assigned_by=assigned_by,
    )
    logger.info(
        'User assigned to station',
        extra={'user_id': str(user.id), 'station_id': str(station.id), 'role': role},
    )
    return assignment


def assign_users_bulk(*, station_id: UUID, assignments: Iterable[Dict], assigned_by=None) -> Dict:
    """
    Assign several users to one station.

    Each row is attempted on its own; a failing row does not undo the
    others. Returns ``{'created': [...], 'errors': [...]}``.
    """
    station = _get_station(station_id)
    created: List[StationAssignment] = []
    errors: List[Dict] = []

    for row in assignments:
        user_id = row.get('user_id')
        try:
            user = User.objects.get(id=user_id)
            created.append(
                assign_user_to_station(
                    user=user,
                    station=station,
                    role=row.get('role'),
                    assigned_by=assigned_by,
                )
            )
        except User.DoesNotExist:
            errors.append({'user_id': str(user_id), 'error': 'User not found.'})
        except APIException as e:
            errors.append({'user_id': str(user_id), 'error': str(e.detail)})

    if errors:
        logger.warning(
            'Bulk station assignment finished with errors',
            extra={'station_id': str(station.id), 'created_count': len(created), 'failed': len(errors)},
        )
    return {'created': created, 'errors': errors}


@transaction.atomic
def update_assignment(*, assignment_id: UUID, role: Optional[str] = None,
                      is_active: Optional[bool] = None) -> StationAssignment:
    """Change the role of an assignment, or reactivate/deactivate it."""
    try:
        assignment = (
            StationAssignment.objects
            .select_for_update()
            .select_related('user', 'station')
            .get(id=assignment_id)
        )
    except StationAssignment.DoesNotExist:
        raise AssignmentNotFoundError()

    if role is not None:
        if role not in STATION_ROLES:
            raise InvalidAssignmentRoleError()
        assignment.role = role

    if is_active is not None and is_active != assignment.is_active:
        if is_active:
            duplicate = StationAssignment.objects.filter(
                user=assignment.user, station=assignment.station, is_active=True
            ).exclude(id=assignment.id).exists()
            if duplicate:
                raise DuplicateAssignmentError()
            assignment.ended_at = None
        else:
            assignment.ended_at = timezone.now()
        assignment.is_active = is_active

    assignment.save()
    return assignment


@transaction.atomic
def unassign_user_from_station(*, assignment_id: UUID) -> StationAssignment:
    """End an active assignment. The row is kept for history."""
    try:
        assignment = (
            StationAssignment.objects
            .select_for_update()
            .get(id=assignment_id, is_active=True)
        )
    except StationAssignment.DoesNotExist:
        raise AssignmentNotFoundError()

    assignment.is_active = False
    assignment.ended_at = timezone.now()
    assignment.save(update_fields=['is_active', 'ended_at'])
    logger.info(
        'User unassigned from station',
        extra={'user_id': str(assignment.user_id), 'station_id': str(assignment.station_id)},
    )
    return assignment


def get_user_assignments(user_id: UUID, include_inactive: bool = False):
    queryset = StationAssignment.objects.filter(user_id=user_id).select_related('station', 'user')
    if not include_inactive:
        queryset = queryset.filter(is_active=True)
    return queryset


def get_station_assignments(station_id: UUID, role: Optional[str] = None, include_inactive: bool = False):
    queryset = StationAssignment.objects.filter(station_id=station_id).select_related('station', 'user')
    if role:
        queryset = queryset.filter(role=role)
    if not include_inactive:
        queryset = queryset.filter(is_active=True)
    return queryset


def get_user_current_station(user_id: UUID) -> Optional[Station]:
    """Station of the user's most recent active assignment."""
    assignment = get_user_assignments(user_id).order_by('-assigned_at').first()
    return assignment.station if assignment else None


def get_users_by_station(station_id: UUID, role: Optional[str] = None,
                         status: Optional[str] = None):
    """Users holding an active assignment at the station."""
    assignments = StationAssignment.objects.filter(station_id=station_id, is_active=True)
    if role:
        assignments = assignments.filter(role=role)

    queryset = User.objects.filter(id__in=assignments.values('user_id'))
    if status:
        queryset = queryset.filter(status=status)
    return queryset


def get_station_users_summary(station_id: UUID) -> Dict:
    """Head count of a station by role and by user status."""
    station = _get_station(station_id)
    assignments = list(
        StationAssignment.objects
        .filter(station=station, is_active=True)
        .select_related('user')
    )

    by_role = Counter(a.role for a in assignments)
    active_users = sum(1 for a in assignments if a.user.status == UserStatus.ACTIVE)

    return {
        'station_id': station.id,
        'station_name': station.name,
        'total_users': len(assignments),
        'active_users': active_users,
        'by_role': {role.value: by_role.get(role, 0) for role in STATION_ROLES},
    }
