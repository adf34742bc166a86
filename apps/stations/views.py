from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.accounts.models import User
from apps.accounts.permissions import (
    can_view_user,
    IsCompanyAdmin,
    IsStationManager,
    IsStationStaff,
    IsSuperAdmin,
    scope_by_company,
    scope_by_station,
)
from apps.accounts.serializers import UserSerializer
from . import services
from .models import Company, Station, StationAssignment
from .serializers import (
    AssignmentCreateSerializer,
    AssignmentUpdateSerializer,
    BulkAssignmentSerializer,
    CompanySerializer,
    StationAssignmentSerializer,
    StationSerializer,
    StationUsersFilterSerializer,
    StationUsersSummarySerializer,
)


class StationPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class CompanyViewSet(viewsets.ModelViewSet):
    """
    Companies operating fuel stations.

    Super admins manage every company; other users only read their own.
    """

    queryset = Company.objects.all()
    serializer_class = CompanySerializer
    permission_classes = [IsAuthenticated, IsSuperAdmin]
    pagination_class = StationPagination

    def get_permissions(self):
        if self.action in ['list', 'retrieve']:
            return [IsAuthenticated()]
        return super().get_permissions()

    def get_queryset(self):
        user = self.request.user
        queryset = super().get_queryset()
        if user.is_super_admin:
            return queryset
        return queryset.filter(id=user.company_id)


class StationViewSet(viewsets.ModelViewSet):
    """
    Stations of the caller's company.

    list/retrieve: any company member (station staff see assigned stations)
    create/update/destroy: company admins
    """

    queryset = Station.objects.select_related('company')
    serializer_class = StationSerializer
    permission_classes = [IsAuthenticated, IsStationStaff]
    pagination_class = StationPagination

    def get_permissions(self):
        if self.action in ['create', 'update', 'partial_update', 'destroy']:
            return [IsAuthenticated(), IsCompanyAdmin()]
        return super().get_permissions()

    def get_queryset(self):
        user = self.request.user
        queryset = scope_by_company(super().get_queryset(), user)
        if user.has_station_role:
            queryset = queryset.filter(id__in=user.station_ids())

        is_active = self.request.query_params.get('is_active')
        if is_active in ('true', 'false'):
            queryset = queryset.filter(is_active=is_active == 'true')
        return queryset

    def get_serializer_context(self):
        context = super().get_serializer_context()
        if self.action == 'create':
            context['company'] = self._target_company()
        return context

    def _target_company(self):
        user = self.request.user
        if user.is_super_admin:
            company_id = self.request.data.get('company_id')
            return get_object_or_404(Company, id=company_id) if company_id else None
        return user.company

    def perform_create(self, serializer):
        company = self._target_company()
        if company is None:
            raise PermissionDenied('A company is required to create a station.')
        serializer.save(company=company)

    def perform_destroy(self, instance):
        """Stations are deactivated, never deleted."""
        instance.is_active = False
        instance.save(update_fields=['is_active', 'updated_at'])


class StationAssignmentViewSet(viewsets.GenericViewSet):
    """
    User to station assignments.

    POST   /api/user-assignments/            assign a user
    POST   /api/user-assignments/bulk/       assign many users to one station
    GET    /api/user-assignments/{id}/
    PUT    /api/user-assignments/{id}/       change role / activation
    DELETE /api/user-assignments/{id}/       end the assignment
    """

    queryset = StationAssignment.objects.select_related('user', 'station')
    serializer_class = StationAssignmentSerializer
    permission_classes = [IsAuthenticated, IsStationManager]

    def get_queryset(self):
        return scope_by_station(super().get_queryset(), self.request.user)

    def get_permissions(self):
        if self.action == 'retrieve':
            return [IsAuthenticated(), IsStationStaff()]
        return super().get_permissions()

    def _station_for_write(self, station_id):
        station = get_object_or_404(Station, id=station_id)
        if not self.request.user.can_access_station(station):
            raise PermissionDenied('You do not have access to this station.')
        return station

    @extend_schema(request=AssignmentCreateSerializer, responses={201: StationAssignmentSerializer})
    def create(self, request):
        serializer = AssignmentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        station = self._station_for_write(data['station_id'])
        user = get_object_or_404(User, id=data['user_id'])

        assignment = services.assign_user_to_station(
            user=user,
            station=station,
            role=data.get('role'),
            assigned_by=request.user,
        )
        return Response(StationAssignmentSerializer(assignment).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=BulkAssignmentSerializer)
    @action(detail=False, methods=['post'])
    def bulk(self, request):
        serializer = BulkAssignmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        station = self._station_for_write(data['station_id'])
        result = services.assign_users_bulk(
            station_id=station.id,
            assignments=data['assignments'],
            assigned_by=request.user,
        )
        return Response({
            'data': StationAssignmentSerializer(result['created'], many=True).data,
            'errors': result['errors'],
        }, status=status.HTTP_201_CREATED if result['created'] else status.HTTP_400_BAD_REQUEST)

    def retrieve(self, request, pk=None):
        assignment = self.get_object()
        return Response(StationAssignmentSerializer(assignment).data)

    @extend_schema(request=AssignmentUpdateSerializer, responses={200: StationAssignmentSerializer})
    def update(self, request, pk=None):
        assignment = self.get_object()
        serializer = AssignmentUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        assignment = services.update_assignment(assignment_id=assignment.id, **serializer.validated_data)
        return Response(StationAssignmentSerializer(assignment).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    def destroy(self, request, pk=None):
        assignment = self.get_object()
        services.unassign_user_from_station(assignment_id=assignment.id)
        return Response(status=status.HTTP_204_NO_CONTENT)


def _check_user_visible(request, user_id):
    target = get_object_or_404(User, id=user_id)
    if not can_view_user(request.user, target):
        raise PermissionDenied('You do not have permission to view this user.')
    return target


def _check_station_visible(request, station_id):
    station = get_object_or_404(Station, id=station_id)
    if not request.user.can_access_station(station):
        raise PermissionDenied('You do not have access to this station.')
    return station


@extend_schema(responses={200: StationAssignmentSerializer(many=True)}, tags=['user-assignments'])
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_assignments(request, user_id):
    """All active assignments of a user (``?include_inactive=true`` for history)."""
    _check_user_visible(request, user_id)
    include_inactive = request.query_params.get('include_inactive') == 'true'
    assignments = services.get_user_assignments(user_id, include_inactive=include_inactive)
    return Response({'data': StationAssignmentSerializer(assignments, many=True).data})


@extend_schema(responses={200: StationAssignmentSerializer(many=True)}, tags=['user-assignments'])
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_station_assignments(request, user_id, station_id):
    """Assignments of one user at one station, including ended ones."""
    _check_user_visible(request, user_id)
    assignments = services.get_user_assignments(user_id, include_inactive=True).filter(station_id=station_id)
    return Response({'data': StationAssignmentSerializer(assignments, many=True).data})


@extend_schema(responses={200: StationSerializer}, tags=['user-assignments'])
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_current_station(request, user_id):
    _check_user_visible(request, user_id)
    station = services.get_user_current_station(user_id)
    return Response({'data': StationSerializer(station).data if station else None})


@extend_schema(responses={200: StationSerializer(many=True)}, tags=['user-assignments'])
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_stations(request, user_id):
    _check_user_visible(request, user_id)
    stations = Station.objects.filter(
        id__in=services.get_user_assignments(user_id).values('station_id')
    )
    return Response({'data': StationSerializer(stations, many=True).data})


@extend_schema(parameters=[StationUsersFilterSerializer], responses={200: StationAssignmentSerializer(many=True)},
               tags=['user-assignments'])
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def station_assignments(request, station_id):
    _check_station_visible(request, station_id)
    filters = StationUsersFilterSerializer(data=request.query_params)
    filters.is_valid(raise_exception=True)
    params = filters.validated_data

    assignments = services.get_station_assignments(
        station_id,
        role=params.get('role'),
        include_inactive=params['include_inactive'],
    )
    return Response({'data': StationAssignmentSerializer(assignments, many=True).data})


@extend_schema(parameters=[StationUsersFilterSerializer], responses={200: UserSerializer(many=True)},
               tags=['user-assignments'])
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def station_users(request, station_id):
    _check_station_visible(request, station_id)
    filters = StationUsersFilterSerializer(data=request.query_params)
    filters.is_valid(raise_exception=True)
    params = filters.validated_data

    users = services.get_users_by_station(station_id, role=params.get('role'), status=params.get('status'))
    return Response({'data': UserSerializer(users, many=True).data})


@extend_schema(responses={200: StationUsersSummarySerializer}, tags=['user-assignments'])
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def station_users_summary(request, station_id):
    _check_station_visible(request, station_id)
    summary = services.get_station_users_summary(station_id)
    return Response({'data': StationUsersSummarySerializer(summary).data})
