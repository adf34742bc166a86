"""Domain exceptions for the stations app."""
from rest_framework.exceptions import APIException


class InvalidAssignmentRoleError(APIException):
    """Only station-level roles can be assigned to a station."""
    status_code = 400
    default_detail = 'Only station managers, supervisors and attendants can be assigned to stations.'
    default_code = 'invalid_assignment_role'


class StationCompanyMismatchError(APIException):
    """User and station belong to different companies."""
    status_code = 400
    default_detail = 'Station does not belong to the user\'s company.'
    default_code = 'station_company_mismatch'


class DuplicateAssignmentError(APIException):
    """User already holds an active assignment at the station."""
    status_code = 400
    default_detail = 'User is already assigned to this station.'
    default_code = 'duplicate_assignment'


class InactiveStationError(APIException):
    """Assignments are only possible on active stations."""
    status_code = 400
    default_detail = 'Station is not active.'
    default_code = 'inactive_station'


class AssignmentNotFoundError(APIException):
    """Station assignment not found."""
    status_code = 404
    default_detail = 'Station assignment not found.'
    default_code = 'assignment_not_found'


class StationNotFoundError(APIException):
    """Station not found."""
    status_code = 404
    default_detail = 'Station not found.'
    default_code = 'station_not_found'
