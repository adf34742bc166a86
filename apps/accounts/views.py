from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema, inline_serializer
from rest_framework import serializers, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from apps.stations.serializers import StationAssignmentSerializer
from .models import User
from .permissions import CanManageUser, IsCompanyAdmin
from .serializers import (
    BulkUserCreateSerializer,
    PasswordCheckSerializer,
    PasswordResetSerializer,
    PasswordUpdateSerializer,
    StaffUserCreateSerializer,
    UserCreateSerializer,
    UserFilterSerializer,
    UserLoginSerializer,
    UserSerializer,
    UserStatusSerializer,
    UserUpdateSerializer,
)
from . import services
from .services import (
    InactiveAccountError,
    InvalidCredentialsError,
    InvalidUserOperationError,
    RoleAssignmentError,
    UserCreationError,
    UserDeletionError,
    UserNotFoundError,
    WeakPasswordError,
)


# Response serializers for API documentation
class TokensResponseSerializer(serializers.Serializer):
    refresh = serializers.CharField()
    access = serializers.CharField()


class AuthResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
    user = UserSerializer()
    tokens = TokensResponseSerializer()


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()
    code = serializers.CharField()
    status = serializers.IntegerField()


def _error(message, code, http_status):
    return Response({'error': str(message), 'code': code, 'status': http_status}, status=http_status)


def _service_error(exc):
    """Translate an accounts service exception into an HTTP response."""
    if isinstance(exc, RoleAssignmentError):
        return _error(exc, 'role_not_allowed', status.HTTP_403_FORBIDDEN)
    if isinstance(exc, UserNotFoundError):
        return _error(exc, 'user_not_found', status.HTTP_404_NOT_FOUND)
    if isinstance(exc, WeakPasswordError):
        response = _error(exc, 'weak_password', status.HTTP_400_BAD_REQUEST)
        response.data['details'] = {'password': exc.errors}
        return response
    if isinstance(exc, UserCreationError):
        return _error(exc, 'user_exists', status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, UserDeletionError):
        return _error(exc, 'user_has_records', status.HTTP_400_BAD_REQUEST)
    return _error(exc, 'invalid_operation', status.HTTP_400_BAD_REQUEST)


SERVICE_ERRORS = (
    RoleAssignmentError,
    UserNotFoundError,
    WeakPasswordError,
    UserCreationError,
    UserDeletionError,
    InvalidUserOperationError,
)


# =============================================================================
# Authentication
# =============================================================================

@extend_schema(
    request=UserLoginSerializer,
    responses={
        200: AuthResponseSerializer,
        400: ErrorResponseSerializer,
        401: ErrorResponseSerializer,
        403: ErrorResponseSerializer,
    },
    description="Authenticate with email and password to receive JWT tokens.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    """Login with email and password."""
    serializer = UserLoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        user = services.authenticate_user(**serializer.validated_data)
    except InvalidCredentialsError as e:
        return _error(e, 'invalid_credentials', status.HTTP_401_UNAUTHORIZED)
    except InactiveAccountError as e:
        return _error(e, 'account_inactive', status.HTTP_403_FORBIDDEN)

    return Response({
        'message': 'Login successful',
        'user': UserSerializer(user).data,
        'tokens': services.issue_tokens(user),
    })


@extend_schema(
    responses={200: UserSerializer},
    description="Get the current authenticated user's profile.",
    tags=['auth'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def get_current_user(request):
    """Get current authenticated user profile with station assignments."""
    data = UserSerializer(request.user).data
    data['assignments'] = StationAssignmentSerializer(
        request.user.station_assignments.filter(is_active=True).select_related('station'),
        many=True,
    ).data
    return Response(data)


@extend_schema(
    request=PasswordCheckSerializer,
    responses={200: inline_serializer('PasswordCheckResponse', {
        'is_valid': serializers.BooleanField(),
        'errors': serializers.ListField(child=serializers.CharField()),
    })},
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def check_password_strength(request):
    serializer = PasswordCheckSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    errors = services.validate_password_strength(serializer.validated_data['password'])
    return Response({'is_valid': not errors, 'errors': errors})


# =============================================================================
# User management
# =============================================================================

class UserPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class UserViewSet(viewsets.GenericViewSet):
    """
    Back office user management.

    list: users visible to the caller (filters: role, status, company, station, search)
    create: create a user (company admins and super admins)
    staff: create a station user and assign stations in one call
    bulk: create many users, reporting per-row failures
    retrieve / update / destroy: single user
    status / password: PATCH sub-resources
    """

    queryset = User.objects.select_related('company')
    serializer_class = UserSerializer
    permission_classes = [IsAuthenticated, CanManageUser]
    pagination_class = UserPagination

    def get_permissions(self):
        if self.action in ['create', 'staff', 'bulk', 'reset_password']:
            return [IsAuthenticated(), IsCompanyAdmin()]
        return super().get_permissions()

    def get_object(self):
        user = get_object_or_404(self.get_queryset(), pk=self.kwargs['pk'])
        self.check_object_permissions(self.request, user)
        return user

    @extend_schema(parameters=[UserFilterSerializer], responses={200: UserSerializer(many=True)})
    def list(self, request):
        filters = UserFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        params = filters.validated_data

        queryset = services.list_users(
            requested_by=request.user,
            role=params.get('role'),
            status=params.get('status'),
            company_id=params.get('company'),
            station_id=params.get('station'),
            search=params.get('search'),
        )
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(UserSerializer(page, many=True).data)
        return Response(UserSerializer(queryset, many=True).data)

    @extend_schema(request=UserCreateSerializer, responses={201: UserSerializer})
    def create(self, request):
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            user = services.create_user(created_by=request.user, **serializer.validated_data)
        except SERVICE_ERRORS as e:
            return _service_error(e)

        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=StaffUserCreateSerializer, responses={201: UserSerializer})
    @action(detail=False, methods=['post'])
    def staff(self, request):
        """
        Create a station user and assign stations.

        POST /api/users/staff/
        Assignment failures are returned in ``failed_assignments``; the
        user is kept.
        """
        serializer = StaffUserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data.copy()
        station_ids = data.pop('station_ids', [])

        try:
            result = services.create_staff_user(created_by=request.user, station_ids=station_ids, **data)
        except SERVICE_ERRORS as e:
            return _service_error(e)

        return Response({
            'user': UserSerializer(result['user']).data,
            'assignments': StationAssignmentSerializer(result['assignments'], many=True).data,
            'failed_assignments': result['failed_assignments'],
        }, status=status.HTTP_201_CREATED)

    @extend_schema(request=BulkUserCreateSerializer)
    @action(detail=False, methods=['post'])
    def bulk(self, request):
        serializer = BulkUserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = services.create_bulk_users(created_by=request.user, users=serializer.validated_data['users'])
        return Response({
            'data': UserSerializer(result['created'], many=True).data,
            'errors': result['errors'],
        }, status=status.HTTP_201_CREATED if result['created'] else status.HTTP_400_BAD_REQUEST)

    def retrieve(self, request, pk=None):
        return Response(UserSerializer(self.get_object()).data)

    @extend_schema(request=UserUpdateSerializer, responses={200: UserSerializer})
    def update(self, request, pk=None):
        user = self.get_object()
        serializer = UserUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        try:
            user = services.update_user(user_id=user.id, updated_by=request.user, **serializer.validated_data)
        except SERVICE_ERRORS as e:
            return _service_error(e)

        return Response(UserSerializer(user).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    def destroy(self, request, pk=None):
        user = self.get_object()
        try:
            services.delete_user(user_id=user.id, deleted_by=request.user)
        except SERVICE_ERRORS as e:
            return _service_error(e)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=UserStatusSerializer, responses={200: UserSerializer})
    @action(detail=True, methods=['patch'], url_path='status')
    def update_status(self, request, pk=None):
        user = self.get_object()
        serializer = UserStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            user = services.update_user_status(
                user_id=user.id, status=serializer.validated_data['status'], updated_by=request.user
            )
        except SERVICE_ERRORS as e:
            return _service_error(e)

        return Response(UserSerializer(user).data)

    @extend_schema(request=PasswordUpdateSerializer)
    @action(detail=True, methods=['patch'])
    def password(self, request, pk=None):
        user = self.get_object()
        serializer = PasswordUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            services.update_user_password(user_id=user.id, password=serializer.validated_data['password'])
        except SERVICE_ERRORS as e:
            return _service_error(e)

        return Response({'message': 'Password updated successfully'})

    @extend_schema(request=PasswordResetSerializer)
    @action(detail=False, methods=['patch'], url_path='password/reset')
    def reset_password(self, request):
        serializer = PasswordResetSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            target = services.get_user_by_email(email=serializer.validated_data['email'])
            if not request.user.is_super_admin and target.company_id != request.user.company_id:
                raise UserNotFoundError("User not found")
            services.reset_password(**serializer.validated_data)
        except SERVICE_ERRORS as e:
            return _service_error(e)

        return Response({'message': 'Password reset successfully'})

    @action(detail=False, methods=['get'], url_path=r'email/(?P<email>[^/]+)')
    def by_email(self, request, email=None):
        try:
            user = services.get_user_by_email(email=email)
        except UserNotFoundError as e:
            return _service_error(e)

        self.check_object_permissions(request, user)
        return Response(UserSerializer(user).data)
