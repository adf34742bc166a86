"""
Role-based permission classes shared by every back office app.

Roles form a ladder: super admin > company admin > station manager >
supervisor > attendant. Company-scoped objects are checked against the
caller's company; station-scoped objects against the caller's active
station assignments.

Usage:
    class StationViewSet(viewsets.ModelViewSet):
        permission_classes = [IsAuthenticated, IsCompanyAdmin]
"""
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import BasePermission, SAFE_METHODS

from .models import UserRole


ROLE_RANK = {
    UserRole.ATTENDANT: 1,
    UserRole.SUPERVISOR: 2,
    UserRole.STATION_MANAGER: 3,
    UserRole.COMPANY_ADMIN: 4,
    UserRole.SUPER_ADMIN: 5,
}


def has_min_role(user, role):
    """Check that the user's role is at least ``role`` on the ladder."""
    if not user or not user.is_authenticated:
        return False
    return ROLE_RANK.get(user.role, 0) >= ROLE_RANK[role]


def scope_by_company(queryset, user, field='company'):
    """Limit a queryset to the user's company; super admins see everything."""
    if user.is_super_admin:
        return queryset
    return queryset.filter(**{field: user.company_id})


def scope_by_station(queryset, user, field='station'):
    """Limit a queryset to stations visible to the user."""
    queryset = scope_by_company(queryset, user, field=f'{field}__company')
    if has_min_role(user, UserRole.COMPANY_ADMIN):
        return queryset
    return queryset.filter(**{f'{field}__in': user.station_ids()})


def request_company_id(request, params):
    """Company a request is about; super admins must name one with company_id."""
    user = request.user
    if user.is_super_admin:
        company_id = params.get('company_id')
        if company_id is None:
            raise ValidationError({'company_id': ['This parameter is required for super admins.']})
        return company_id
    return user.company_id


def _object_company_id(obj):
    if hasattr(obj, 'company_id'):
        return obj.company_id
    station = getattr(obj, 'station', None)
    if station is not None:
        return station.company_id
    return None


class IsSuperAdmin(BasePermission):
    """Only super admins."""

    message = 'Only super admins can perform this action.'

    def has_permission(self, request, view):
        return has_min_role(request.user, UserRole.SUPER_ADMIN)


class IsCompanyAdmin(BasePermission):
    """
    Company admins (and super admins).

    Object check: the object must belong to the admin's company.
    """

    message = 'Only company admins can perform this action.'

    def has_permission(self, request, view):
        return has_min_role(request.user, UserRole.COMPANY_ADMIN)

    def has_object_permission(self, request, view, obj):
        return request.user.can_access_company(_object_company_id(obj))


class IsStationManager(BasePermission):
    """Station managers and above."""

    message = 'Only station managers or company admins can perform this action.'

    def has_permission(self, request, view):
        return has_min_role(request.user, UserRole.STATION_MANAGER)

    def has_object_permission(self, request, view, obj):
        return _can_access_object(request.user, obj)


class IsStationStaff(BasePermission):
    """
    Any authenticated back office user; object access limited to the
    caller's company, and for station roles to their assigned stations.
    """

    message = 'You do not have access to this station.'

    def has_permission(self, request, view):
        return has_min_role(request.user, UserRole.ATTENDANT)

    def has_object_permission(self, request, view, obj):
        return _can_access_object(request.user, obj)


class IsCompanyAdminOrReadOnly(BasePermission):
    """Reads for every company member, writes for company admins."""

    message = 'Only company admins can modify this resource.'

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return has_min_role(request.user, UserRole.ATTENDANT)
        return has_min_role(request.user, UserRole.COMPANY_ADMIN)

    def has_object_permission(self, request, view, obj):
        return request.user.can_access_company(_object_company_id(obj))


class CanManageUser(BasePermission):
    """
    Permission to view or change another user.

    - Super admins manage everyone
    - Company admins manage users of their own company
    - Everyone else may only read and update themselves
    """

    message = 'You do not have permission to manage this user.'

    def has_object_permission(self, request, view, obj):
        if obj.pk == request.user.pk and view.action in ('retrieve', 'update', 'partial_update', 'password'):
            return True
        if request.method in SAFE_METHODS:
            return can_view_user(request.user, obj)
        return can_manage_user(request.user, obj)


def can_manage_user(user, target):
    if user.is_super_admin:
        return True
    if user.is_company_admin:
        return target.company_id == user.company_id and not target.is_super_admin
    return False


def can_view_user(user, target):
    """Managers may also see users who share one of their stations."""
    if target.pk == user.pk or can_manage_user(user, target):
        return True
    if user.role == UserRole.STATION_MANAGER:
        return bool(set(user.station_ids()).intersection(target.station_ids()))
    return False


def _can_access_object(user, obj):
    from apps.stations.models import Station

    station = obj if isinstance(obj, Station) else getattr(obj, 'station', None)
    if station is not None:
        return user.can_access_station(station)
    return user.can_access_company(_object_company_id(obj))
