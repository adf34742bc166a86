"""Domain exceptions for the fuel catalog."""
from rest_framework.exceptions import APIException


class DuplicateFuelCodeError(APIException):
    """Code already used in the company's catalog."""
    status_code = 400
    default_detail = 'This code is already used in the fuel catalog.'
    default_code = 'duplicate_fuel_code'


class FuelCategoryInUseError(APIException):
    """Category still has subtypes."""
    status_code = 400
    default_detail = 'Cannot delete a category that still has subtypes.'
    default_code = 'category_in_use'


class FuelSubTypeInUseError(APIException):
    """Subtype still has products."""
    status_code = 400
    default_detail = 'Cannot delete a subtype that still has products.'
    default_code = 'subtype_in_use'


class FuelCatalogScopeError(APIException):
    """Referenced catalog entry belongs to another company."""
    status_code = 400
    default_detail = 'Referenced fuel catalog entry does not belong to your company.'
    default_code = 'catalog_scope'
