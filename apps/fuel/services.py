"""
Fuel catalog services.

The catalog is a three level hierarchy per company:
category (Petrol) -> subtype (Super) -> product (Super 95, code PMS95).
Codes are unique across each level within a company.
"""
import logging
from decimal import Decimal
from typing import Dict, List, Optional

from django.db import transaction
from django.db.models import Q
from rest_framework.exceptions import APIException

from .exceptions import (
    DuplicateFuelCodeError,
    FuelCatalogScopeError,
    FuelCategoryInUseError,
    FuelSubTypeInUseError,
)
from .models import FuelCategory, FuelProduct, FuelSubType

logger = logging.getLogger(__name__)


CATEGORY_COLORS = {
    'DIESEL': '#0047AB',
    'PETROL': '#FF0000',
    'KEROSENE': '#FFFF00',
    'LUBRICANTS': '#808080',
}
CATEGORY_DENSITIES = {
    'DIESEL': Decimal('0.85'),
    'PETROL': Decimal('0.74'),
    'KEROSENE': Decimal('0.81'),
}
DEFAULT_COLOR = '#666666'
DEFAULT_DENSITY = Decimal('0.80')
DEFAULT_HAZARD_CLASS = 'Class 3'


def get_default_category_properties(category_name: str) -> Dict:
    """Colour, typical density and hazard class for a category name."""
    key = (category_name or '').strip().upper()
    return {
        'color': CATEGORY_COLORS.get(key, DEFAULT_COLOR),
        'typical_density': CATEGORY_DENSITIES.get(key, DEFAULT_DENSITY),
        'hazard_class': DEFAULT_HAZARD_CLASS,
    }


def get_default_quality_standards(category_name: str) -> Dict:
    """Reference quality limits by fuel family, matched on the category name."""
    name = (category_name or '').upper()

    if 'DIESEL' in name:
        return {
            'sulfur_content': 10,
            'cetane_number': 51,
            'flash_point': 60,
            'viscosity': 2.0,
            'water_content': 200,
        }
    if 'PETROL' in name or 'GASOLINE' in name:
        return {
            'sulfur_content': 50,
            'octane_number': 91,
            'benzene_content': 1.0,
            'vapor_pressure': 45,
            'lead_content': 0.0,
        }
    if 'KEROSENE' in name:
        return {
            'sulfur_content': 50,
            'flash_point': 38,
            'smoke_point': 20,
            'freeze_point': -47,
        }
    return {
        'sulfur_content': 50,
        'flash_point': 60,
        'density': 0.80,
    }


def _code_taken(company_id, code: str, exclude=None) -> bool:
    """A code may appear only once across all catalog levels of a company."""
    code = code.upper()
    categories = FuelCategory.objects.filter(company_id=company_id, code__iexact=code)
    subtypes = FuelSubType.objects.filter(category__company_id=company_id, code__iexact=code)
    products = FuelProduct.objects.filter(subtype__category__company_id=company_id, fuel_code__iexact=code)

    if isinstance(exclude, FuelCategory):
        categories = categories.exclude(pk=exclude.pk)
    elif isinstance(exclude, FuelSubType):
        subtypes = subtypes.exclude(pk=exclude.pk)
    elif isinstance(exclude, FuelProduct):
        products = products.exclude(pk=exclude.pk)

    return categories.exists() or subtypes.exists() or products.exists()


def _ensure_code_free(company_id, code: str, exclude=None) -> str:
    code = code.strip().upper()
    if _code_taken(company_id, code, exclude=exclude):
        raise DuplicateFuelCodeError(f"Code '{code}' is already used in the fuel catalog.")
    return code


@transaction.atomic
def create_category(*, company, name: str, code: str, **fields) -> FuelCategory:
    """Create a category, filling colour/density/hazard class from defaults when absent."""
    code = _ensure_code_free(company.id, code)
    defaults = get_default_category_properties(name)
    for field, value in defaults.items():
        if fields.get(field) in (None, ''):
            fields[field] = value

    category = FuelCategory.objects.create(company=company, name=name.strip(), code=code, **fields)
    logger.info('Fuel category created', extra={'category_id': str(category.id), 'code': code})
    return category


@transaction.atomic
def create_subtype(*, category: FuelCategory, name: str, code: str, **fields) -> FuelSubType:
    code = _ensure_code_free(category.company_id, code)
    return FuelSubType.objects.create(category=category, name=name.strip(), code=code, **fields)


@transaction.atomic
def create_product(*, subtype: FuelSubType, name: str, fuel_code: str, **fields) -> FuelProduct:
    """Create a product; quality standards default to the category's fuel family."""
    fuel_code = _ensure_code_free(subtype.category.company_id, fuel_code)
    if not fields.get('quality_standards'):
        fields['quality_standards'] = get_default_quality_standards(subtype.category.name)
    product = FuelProduct.objects.create(subtype=subtype, name=name.strip(), fuel_code=fuel_code, **fields)
    logger.info('Fuel product created', extra={'product_id': str(product.id), 'fuel_code': fuel_code})
    return product


@transaction.atomic
def update_catalog_entry(instance, **fields):
    """Update any catalog level, re-checking code uniqueness when it changes."""
    code_field = 'fuel_code' if isinstance(instance, FuelProduct) else 'code'
    if code_field in fields:
        fields[code_field] = _ensure_code_free(instance.company_id, fields[code_field], exclude=instance)

    for field, value in fields.items():
        setattr(instance, field, value)
    instance.save()
    return instance


@transaction.atomic
def delete_category(category: FuelCategory) -> None:
    if category.subtypes.exists():
        raise FuelCategoryInUseError()
    category.delete()


@transaction.atomic
def delete_subtype(subtype: FuelSubType) -> None:
    if subtype.products.exists():
        raise FuelSubTypeInUseError()
    subtype.delete()


def delete_product(product: FuelProduct) -> None:
    product.delete()


def get_fuel_hierarchy(company_id, include_inactive: bool = False) -> List[Dict]:
    """
    Nested catalog of a company: categories -> subtypes -> products.

    Returns plain dicts ready for a response serializer.
    """
    categories = FuelCategory.objects.filter(company_id=company_id).prefetch_related('subtypes__products')
    if not include_inactive:
        categories = categories.filter(is_active=True)

    hierarchy = []
    for category in categories:
        subtypes = []
        for subtype in category.subtypes.all():
            if not include_inactive and not subtype.is_active:
                continue
            products = [
                product for product in subtype.products.all()
                if include_inactive or product.is_active
            ]
            subtypes.append({'subtype': subtype, 'products': products})
        hierarchy.append({'category': category, 'subtypes': subtypes})
    return hierarchy


@transaction.atomic
def create_fuel_hierarchy_sequential(
    *,
    company,
    category: Dict,
    subtype: Dict,
    product: Optional[Dict] = None,
) -> Dict:
    """
    Create category, subtype and product in one transaction.

    ``category`` and ``subtype`` may reference an existing entry with
    ``{'id': ...}`` instead of describing a new one. Any failure rolls
    back the whole hierarchy.
    """
    if category.get('id'):
        category_obj = FuelCategory.objects.get(id=category['id'])
        if category_obj.company_id != company.id:
            raise FuelCatalogScopeError()
    else:
        category_obj = create_category(company=company, **category)

    if subtype.get('id'):
        subtype_obj = FuelSubType.objects.select_related('category').get(id=subtype['id'])
        if subtype_obj.category_id != category_obj.id:
            raise FuelCatalogScopeError('Subtype does not belong to the selected category.')
    else:
        subtype_obj = create_subtype(category=category_obj, **subtype)

    product_obj = create_product(subtype=subtype_obj, **product) if product else None

    return {'category': category_obj, 'subtype': subtype_obj, 'product': product_obj}


def batch_create_products(*, company, products: List[Dict]) -> Dict:
    """
    Create several products, keeping the ones that succeed.

    Each row is validated product data (``subtype`` resolved to an object).
    Every row runs in its own savepoint, so a duplicate code or a subtype
    from another company only drops that row.

    Returns:
        Dict with ``successful`` products, ``failed`` rows
        (index, fuel_code, error, code) and the counts.
    """
    successful, failed = [], []
    for index, row in enumerate(products):
        data = dict(row)
        subtype = data.pop('subtype')
        try:
            with transaction.atomic():
                if subtype.category.company_id != company.id:
                    raise FuelCatalogScopeError()
                successful.append(create_product(subtype=subtype, **data))
        except APIException as exc:
            failed.append({
                'index': index,
                'fuel_code': data.get('fuel_code'),
                'error': str(exc.detail),
                'code': exc.get_codes(),
            })

    logger.info('Fuel product batch created',
                extra={'company_id': str(company.id), 'created': len(successful), 'failed': len(failed)})
    return {
        'successful': successful,
        'failed': failed,
        'total': len(products),
        'success_count': len(successful),
        'failure_count': len(failed),
    }


def search_fuel_entities(company_id, query: str) -> Dict:
    """Name or code match across categories, subtypes and products of a company."""
    query = (query or '').strip()
    categories = list(
        FuelCategory.objects
        .filter(company_id=company_id)
        .filter(Q(name__icontains=query) | Q(code__icontains=query))
    )
    subtypes = list(
        FuelSubType.objects
        .select_related('category')
        .filter(category__company_id=company_id)
        .filter(Q(name__icontains=query) | Q(code__icontains=query))
    )
    products = list(
        FuelProduct.objects
        .select_related('subtype__category')
        .filter(subtype__category__company_id=company_id)
        .filter(Q(name__icontains=query) | Q(fuel_code__icontains=query))
    )
    return {
        'query': query,
        'categories': categories,
        'subtypes': subtypes,
        'products': products,
        'total_results': len(categories) + len(subtypes) + len(products),
    }
