from django.db.models import Q
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.accounts.permissions import IsCompanyAdmin, IsCompanyAdminOrReadOnly, scope_by_company
from . import services
from .exceptions import FuelCatalogScopeError
from .models import FuelCategory, FuelProduct, FuelSubType
from .serializers import (
    FuelCategorySerializer,
    FuelFilterSerializer,
    FuelHierarchyCreateSerializer,
    FuelProductBatchResultSerializer,
    FuelProductBatchSerializer,
    FuelProductSerializer,
    FuelSearchResultSerializer,
    FuelSearchSerializer,
    FuelSubTypeSerializer,
    HierarchyCategorySerializer,
)


class FuelPagination(PageNumberPagination):
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


class FuelCatalogViewSet(viewsets.ModelViewSet):
    """Shared filtering and company scoping for the catalog levels."""

    permission_classes = [IsAuthenticated, IsCompanyAdminOrReadOnly]
    pagination_class = FuelPagination
    company_field = 'company'
    code_field = 'code'

    def get_queryset(self):
        queryset = scope_by_company(super().get_queryset(), self.request.user, field=self.company_field)

        filters = FuelFilterSerializer(data=self.request.query_params)
        filters.is_valid(raise_exception=True)
        params = filters.validated_data

        if params.get('is_active') is not None:
            queryset = queryset.filter(is_active=params['is_active'])
        if params.get('search'):
            queryset = queryset.filter(
                Q(name__icontains=params['search']) |
                Q(**{f'{self.code_field}__icontains': params['search']})
            )
        return self.filter_by_parent(queryset, params)

    def filter_by_parent(self, queryset, params):
        return queryset

    def _check_parent_company(self, company_id):
        user = self.request.user
        if not user.is_super_admin and company_id != user.company_id:
            raise FuelCatalogScopeError()

    def perform_update(self, serializer):
        services.update_catalog_entry(serializer.instance, **serializer.validated_data)


class FuelCategoryViewSet(FuelCatalogViewSet):
    """
    Fuel categories.

    GET/POST /api/fuel/categories/
    GET/PUT/PATCH/DELETE /api/fuel/categories/{id}/
    """

    queryset = FuelCategory.objects.select_related('company')
    serializer_class = FuelCategorySerializer

    def perform_create(self, serializer):
        user = self.request.user
        if user.company_id is None:
            raise PermissionDenied('A company is required to manage the fuel catalog.')
        serializer.instance = services.create_category(company=user.company, **serializer.validated_data)

    def perform_destroy(self, instance):
        services.delete_category(instance)


class FuelSubTypeViewSet(FuelCatalogViewSet):
    """Fuel subtypes (``?category=`` to filter)."""

    queryset = FuelSubType.objects.select_related('category')
    serializer_class = FuelSubTypeSerializer
    company_field = 'category__company'

    def filter_by_parent(self, queryset, params):
        if params.get('category'):
            queryset = queryset.filter(category_id=params['category'])
        return queryset

    def perform_create(self, serializer):
        data = serializer.validated_data
        category = data.pop('category')
        self._check_parent_company(category.company_id)
        serializer.instance = services.create_subtype(category=category, **data)

    def perform_update(self, serializer):
        category = serializer.validated_data.get('category')
        if category is not None:
            self._check_parent_company(category.company_id)
        super().perform_update(serializer)

    def perform_destroy(self, instance):
        services.delete_subtype(instance)


class FuelProductViewSet(FuelCatalogViewSet):
    """Fuel products (``?subtype=`` or ``?category=`` to filter)."""

    queryset = FuelProduct.objects.select_related('subtype__category')
    serializer_class = FuelProductSerializer
    company_field = 'subtype__category__company'
    code_field = 'fuel_code'

    def filter_by_parent(self, queryset, params):
        if params.get('subtype'):
            queryset = queryset.filter(subtype_id=params['subtype'])
        if params.get('category'):
            queryset = queryset.filter(subtype__category_id=params['category'])
        return queryset

    def perform_create(self, serializer):
        data = serializer.validated_data
        subtype = data.pop('subtype')
        self._check_parent_company(subtype.category.company_id)
        serializer.instance = services.create_product(subtype=subtype, **data)

    def perform_update(self, serializer):
        subtype = serializer.validated_data.get('subtype')
        if subtype is not None:
            self._check_parent_company(subtype.category.company_id)
        super().perform_update(serializer)

    def perform_destroy(self, instance):
        services.delete_product(instance)


@extend_schema(
    parameters=[OpenApiParameter('include_inactive', bool, required=False)],
    responses={200: HierarchyCategorySerializer(many=True)},
    tags=['fuel'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def fuel_hierarchy(request):
    """
    Full catalog of the caller's company.

    GET /api/fuel/hierarchy/
    """
    if request.user.company_id is None:
        return Response({'data': []})

    include_inactive = request.query_params.get('include_inactive') == 'true'
    hierarchy = services.get_fuel_hierarchy(request.user.company_id, include_inactive=include_inactive)
    return Response({'data': HierarchyCategorySerializer(hierarchy, many=True).data})


@extend_schema(request=FuelHierarchyCreateSerializer, responses={201: HierarchyCategorySerializer}, tags=['fuel'])
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCompanyAdmin])
def create_fuel_hierarchy(request):
    """
    Create category, subtype and product in one go.

    POST /api/fuel/hierarchy/sequential/
    """
    if request.user.company_id is None:
        raise PermissionDenied('A company is required to manage the fuel catalog.')

    serializer = FuelHierarchyCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    result = services.create_fuel_hierarchy_sequential(
        company=request.user.company,
        category=dict(data['category']),
        subtype=dict(data['subtype']),
        product=dict(data['product']) if data.get('product') else None,
    )
    return Response({
        'category': FuelCategorySerializer(result['category']).data,
        'subtype': FuelSubTypeSerializer(result['subtype']).data,
        'product': FuelProductSerializer(result['product']).data if result['product'] else None,
    }, status=status.HTTP_201_CREATED)


@extend_schema(parameters=[OpenApiParameter('category_name', str, required=True)], tags=['fuel'])
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def category_defaults(request):
    """Suggested colour, density, hazard class and quality standards for a category name."""
    name = request.query_params.get('category_name', '')
    return Response({
        'properties': services.get_default_category_properties(name),
        'quality_standards': services.get_default_quality_standards(name),
    })


@extend_schema(request=FuelProductBatchSerializer, responses={200: FuelProductBatchResultSerializer}, tags=['fuel'])
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCompanyAdmin])
def batch_create_products(request):
    """
    Create many products at once; failed rows are reported, not rolled back.

    POST /api/fuel/products/batch/
    """
    if request.user.company_id is None:
        raise PermissionDenied('A company is required to manage the fuel catalog.')

    serializer = FuelProductBatchSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = services.batch_create_products(
        company=request.user.company,
        products=serializer.validated_data['products'],
    )
    return Response(FuelProductBatchResultSerializer(result).data)


@extend_schema(
    parameters=[OpenApiParameter('q', str, required=True)],
    responses={200: FuelSearchResultSerializer},
    tags=['fuel'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def search_fuel_entities(request):
    """
    Search categories, subtypes and products by name or code.

    GET /api/fuel/search/?q=
    """
    serializer = FuelSearchSerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    query = serializer.validated_data['q']

    if request.user.company_id is None:
        result = {'query': query, 'categories': [], 'subtypes': [], 'products': [], 'total_results': 0}
    else:
        result = services.search_fuel_entities(request.user.company_id, query)
    return Response(FuelSearchResultSerializer(result).data)
