from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.accounts.models import UserRole
from apps.accounts.permissions import (
    has_min_role,
    IsCompanyAdmin,
    IsStationManager,
    scope_by_station,
)
from apps.stations.models import Station
from . import services
from .models import SalaryPayment, StaffAccount
from .serializers import (
    BulkPaymentSerializer,
    DateRangeSerializer,
    PayrollGenerateSerializer,
    PayrollReportFilterSerializer,
    PayrollSummaryFilterSerializer,
    ProcessPaymentSerializer,
    SalaryApprovalSerializer,
    SalaryCalculationSerializer,
    SalaryCancelSerializer,
    SalaryHistoryFilterSerializer,
    SalaryPaymentCreateSerializer,
    SalaryPaymentSerializer,
    SalaryProcessSerializer,
    ShortageCreateSerializer,
    ShortageFilterSerializer,
    ShortageSerializer,
    ShortageSettleSerializer,
    StaffAccountCreateSerializer,
    StaffAccountFilterSerializer,
    StaffAccountSerializer,
    StaffAccountUpdateSerializer,
    StaffTransactionCreateSerializer,
    StaffTransactionFilterSerializer,
    StaffTransactionSerializer,
    TransactionApprovalSerializer,
    TransactionRejectionSerializer,
)
from .services.shortages import SETTLE_BY_WRITE_OFF

User = get_user_model()


class StaffPaymentPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


def _accessible_station(request, station_id):
    station = get_object_or_404(Station, id=station_id)
    if not request.user.can_access_station(station):
        raise PermissionDenied('You do not have access to this station.')
    return station


def _scoped_company_id(user):
    return None if user.is_super_admin else user.company_id


def _scoped_station_ids(user):
    return None if has_min_role(user, UserRole.COMPANY_ADMIN) else user.station_ids()


def _payroll_response(result, status_code=status.HTTP_201_CREATED):
    return Response(
        {
            'data': {
                'summary': result['summary'],
                'results': SalaryPaymentSerializer(result['results'], many=True).data,
                'errors': result['errors'],
            }
        },
        status=status_code,
    )


# ---------------------------------------------------------------------------
# Staff accounts
# ---------------------------------------------------------------------------

class StaffAccountViewSet(mixins.ListModelMixin,
                          mixins.RetrieveModelMixin,
                          viewsets.GenericViewSet):
    """
    Staff accounts of the caller's stations.

    GET    /api/staff-payments/accounts/
    POST   /api/staff-payments/accounts/
    GET    /api/staff-payments/accounts/{id}/
    PATCH  /api/staff-payments/accounts/{id}/
    DELETE /api/staff-payments/accounts/{id}/                    deactivates
    GET    /api/staff-payments/accounts/{id}/transactions/summary/
    GET    /api/staff-payments/accounts/{id}/shortages/outstanding/
    GET    /api/staff-payments/accounts/{id}/shortages/summary/
    GET    /api/staff-payments/accounts/{id}/salary-payments/
    POST   /api/staff-payments/accounts/{id}/salary/calculate/
    """

    serializer_class = StaffAccountSerializer
    permission_classes = [IsAuthenticated, IsStationManager]
    pagination_class = StaffPaymentPagination

    def get_permissions(self):
        if self.action == 'destroy':
            return [IsAuthenticated(), IsCompanyAdmin()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = scope_by_station(StaffAccount.objects.select_related('user', 'station'), self.request.user)
        params = self.request.query_params
        if params.get('station_id'):
            queryset = queryset.filter(station_id=params['station_id'])
        if params.get('is_active') in ('true', 'false'):
            queryset = queryset.filter(is_active=params['is_active'] == 'true')
        return queryset.order_by('user__first_name', 'user__last_name')

    @extend_schema(request=StaffAccountCreateSerializer, responses={201: StaffAccountSerializer})
    def create(self, request):
        serializer = StaffAccountCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        station = _accessible_station(request, data.pop('station_id'))
        user = get_object_or_404(User, id=data.pop('user_id'))
        account = services.create_staff_account(user=user, station=station, created_by=request.user, **data)
        return Response(StaffAccountSerializer(account).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=StaffAccountUpdateSerializer, responses={200: StaffAccountSerializer})
    def partial_update(self, request, pk=None):
        account = self.get_object()
        serializer = StaffAccountUpdateSerializer(account, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        account = services.update_staff_account(account=account, **serializer.validated_data)
        return Response(StaffAccountSerializer(account).data)

    def destroy(self, request, pk=None):
        services.deactivate_staff_account(account=self.get_object())
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(parameters=[DateRangeSerializer])
    @action(detail=True, methods=['get'], url_path='transactions/summary', url_name='transactions-summary')
    def transactions_summary(self, request, pk=None):
        account = self.get_object()
        filters = DateRangeSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        summary = services.transaction_summary(
            account.id,
            date_from=filters.validated_data.get('start_date'),
            date_to=filters.validated_data.get('end_date'),
        )
        return Response({'data': summary})

    @extend_schema(responses={200: ShortageSerializer(many=True)})
    @action(detail=True, methods=['get'], url_path='shortages/outstanding', url_name='shortages-outstanding')
    def outstanding_shortages(self, request, pk=None):
        """Unrecovered shortages, oldest first (the order salary deductions use)."""
        account = self.get_object()
        shortages = services.get_outstanding_shortages(account.id)
        return Response({
            'data': ShortageSerializer(shortages, many=True).data,
            'total_outstanding': account.outstanding_shortages,
        })

    @action(detail=True, methods=['get'], url_path='shortages/summary', url_name='shortages-summary')
    def shortages_summary(self, request, pk=None):
        account = self.get_object()
        return Response({'data': services.shortage_summary(account.id)})

    @extend_schema(parameters=[SalaryHistoryFilterSerializer], responses={200: SalaryPaymentSerializer(many=True)})
    @action(detail=True, methods=['get'], url_path='salary-payments', url_name='salary-payments')
    def salary_payments(self, request, pk=None):
        account = self.get_object()
        filters = SalaryHistoryFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        history = services.salary_payment_history(account.id, **filters.validated_data)
        return Response({'data': SalaryPaymentSerializer(history, many=True).data})

    @extend_schema(request=SalaryCalculationSerializer)
    @action(detail=True, methods=['post'], url_path='salary/calculate', url_name='salary-calculate')
    def calculate_salary(self, request, pk=None):
        """Preview a salary with deductions; nothing is saved."""
        account = self.get_object()
        serializer = SalaryCalculationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        calculation = services.calculate_salary(staff_account=account, **serializer.validated_data)
        return Response({'data': calculation})


@extend_schema(parameters=[StaffAccountFilterSerializer], responses={200: StaffAccountSerializer(many=True)},
               tags=['staff-payments'])
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStationManager])
def station_accounts(request, station_id):
    station = _accessible_station(request, station_id)
    filters = StaffAccountFilterSerializer(data=request.query_params)
    filters.is_valid(raise_exception=True)

    accounts = services.list_station_accounts(station.id, **filters.validated_data)
    data = StaffAccountSerializer(accounts.order_by('user__first_name'), many=True).data
    return Response({'data': data, 'count': len(data)})


@extend_schema(tags=['staff-payments'])
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStationManager])
def station_accounts_summary(request, station_id):
    station = _accessible_station(request, station_id)
    return Response({'data': services.station_accounts_summary(station.id)})


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

class StaffTransactionViewSet(mixins.ListModelMixin,
                              mixins.RetrieveModelMixin,
                              viewsets.GenericViewSet):
    """
    Staff transactions.

    GET  /api/staff-payments/transactions/
    POST /api/staff-payments/transactions/
    GET  /api/staff-payments/transactions/{id}/
    POST /api/staff-payments/transactions/{id}/approve/
    POST /api/staff-payments/transactions/{id}/reject/
    POST /api/staff-payments/transactions/{id}/process-payment/
    """

    serializer_class = StaffTransactionSerializer
    permission_classes = [IsAuthenticated, IsStationManager]
    pagination_class = StaffPaymentPagination

    def get_queryset(self):
        user = self.request.user
        params = {}
        if self.action == 'list':
            filters = StaffTransactionFilterSerializer(data=self.request.query_params)
            filters.is_valid(raise_exception=True)
            params = filters.validated_data
        return services.list_staff_transactions(
            company_id=_scoped_company_id(user),
            station_ids=_scoped_station_ids(user),
            staff_account_id=params.get('staff_account_id'),
            station_id=params.get('station_id'),
            transaction_types=params.get('transaction_type'),
            status=params.get('status'),
            date_from=params.get('start_date'),
            date_to=params.get('end_date'),
        ).order_by('-created_at')

    @extend_schema(parameters=[StaffTransactionFilterSerializer])
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @extend_schema(request=StaffTransactionCreateSerializer, responses={201: StaffTransactionSerializer})
    def create(self, request):
        serializer = StaffTransactionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        account = services.get_staff_account(data['staff_account_id'])
        self.check_object_permissions(request, account)
        txn = services.create_staff_transaction(recorded_by=request.user, **data)
        return Response(StaffTransactionSerializer(txn).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=TransactionApprovalSerializer, responses={200: StaffTransactionSerializer})
    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        txn = self.get_object()
        serializer = TransactionApprovalSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        txn = services.approve_staff_transaction(
            transaction_id=txn.id, approved_by=request.user, notes=serializer.validated_data['notes']
        )
        return Response(StaffTransactionSerializer(txn).data)

    @extend_schema(request=TransactionRejectionSerializer, responses={200: StaffTransactionSerializer})
    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        txn = self.get_object()
        serializer = TransactionRejectionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        txn = services.reject_staff_transaction(
            transaction_id=txn.id, rejected_by=request.user, reason=serializer.validated_data['reason']
        )
        return Response(StaffTransactionSerializer(txn).data)

    @extend_schema(request=ProcessPaymentSerializer, responses={200: StaffTransactionSerializer})
    @action(detail=True, methods=['post'], url_path='process-payment', url_name='process-payment')
    def process_payment(self, request, pk=None):
        """Pay out an approved advance, bonus, claim or other payable transaction."""
        txn = self.get_object()
        serializer = ProcessPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        txn = services.process_transaction_payment(
            transaction_id=txn.id, processed_by=request.user, **serializer.validated_data
        )
        return Response(StaffTransactionSerializer(txn).data)


# ---------------------------------------------------------------------------
# Shortages
# ---------------------------------------------------------------------------

class ShortageViewSet(mixins.ListModelMixin,
                      mixins.RetrieveModelMixin,
                      viewsets.GenericViewSet):
    """
    Cash and fuel shortages charged to staff.

    GET  /api/staff-payments/shortages/
    POST /api/staff-payments/shortages/
    GET  /api/staff-payments/shortages/{id}/
    POST /api/staff-payments/shortages/{id}/settle/
    """

    serializer_class = ShortageSerializer
    permission_classes = [IsAuthenticated, IsStationManager]
    pagination_class = StaffPaymentPagination

    def get_queryset(self):
        user = self.request.user
        params = {}
        if self.action == 'list':
            filters = ShortageFilterSerializer(data=self.request.query_params)
            filters.is_valid(raise_exception=True)
            params = filters.validated_data
        return services.list_shortages(
            company_id=_scoped_company_id(user),
            station_ids=_scoped_station_ids(user),
            staff_account_id=params.get('staff_account_id'),
            station_id=params.get('station_id'),
            outstanding=params.get('outstanding'),
        ).order_by('-shortage_date', '-created_at')

    @extend_schema(parameters=[ShortageFilterSerializer])
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @extend_schema(request=ShortageCreateSerializer, responses={201: ShortageSerializer})
    def create(self, request):
        serializer = ShortageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        account = services.get_staff_account(data['staff_account_id'])
        self.check_object_permissions(request, account)
        shortage = services.create_shortage(recorded_by=request.user, **data)
        return Response(ShortageSerializer(shortage).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=ShortageSettleSerializer, responses={200: ShortageSerializer})
    @action(detail=True, methods=['post'])
    def settle(self, request, pk=None):
        """Repayment by the staff member, or a write-off (company admins only)."""
        shortage = self.get_object()
        serializer = ShortageSettleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if data['settlement_type'] == SETTLE_BY_WRITE_OFF and not has_min_role(request.user, UserRole.COMPANY_ADMIN):
            raise PermissionDenied('Only company admins can write off shortages.')
        shortage = services.settle_shortage(shortage_id=shortage.id, recorded_by=request.user, **data)
        return Response(ShortageSerializer(shortage).data)


# ---------------------------------------------------------------------------
# Salary payments and payroll
# ---------------------------------------------------------------------------

class SalaryPaymentViewSet(mixins.ListModelMixin,
                           mixins.RetrieveModelMixin,
                           viewsets.GenericViewSet):
    """
    Salary payments: calculated, approved, then paid.

    GET  /api/staff-payments/salary-payments/
    POST /api/staff-payments/salary-payments/
    GET  /api/staff-payments/salary-payments/{id}/
    POST /api/staff-payments/salary-payments/{id}/approve/
    POST /api/staff-payments/salary-payments/{id}/process/
    POST /api/staff-payments/salary-payments/{id}/cancel/
    """

    serializer_class = SalaryPaymentSerializer
    permission_classes = [IsAuthenticated, IsStationManager]
    pagination_class = StaffPaymentPagination

    def get_permissions(self):
        if self.action in ['approve', 'process', 'cancel']:
            return [IsAuthenticated(), IsCompanyAdmin()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = scope_by_station(
            SalaryPayment.objects.select_related('staff_account__user', 'station'), self.request.user
        )
        params = self.request.query_params
        if params.get('station_id'):
            queryset = queryset.filter(station_id=params['station_id'])
        if params.get('staff_account_id'):
            queryset = queryset.filter(staff_account_id=params['staff_account_id'])
        if params.get('status'):
            queryset = queryset.filter(status=params['status'])
        return queryset.order_by('-period_start', '-created_at')

    @extend_schema(request=SalaryPaymentCreateSerializer, responses={201: SalaryPaymentSerializer})
    def create(self, request):
        serializer = SalaryPaymentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        station = _accessible_station(request, data.pop('station_id'))
        account = services.get_staff_account(data['staff_account_id'])
        if account.station_id != station.id:
            raise ValidationError({'station_id': 'Staff account does not belong to this station'})
        payment = services.create_salary_payment(created_by=request.user, **data)
        return Response(SalaryPaymentSerializer(payment).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=SalaryApprovalSerializer, responses={200: SalaryPaymentSerializer})
    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        payment = self.get_object()
        serializer = SalaryApprovalSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = services.approve_salary_payment(
            salary_payment_id=payment.id, approved_by=request.user, notes=serializer.validated_data['notes']
        )
        return Response(SalaryPaymentSerializer(payment).data)

    @extend_schema(request=SalaryProcessSerializer, responses={200: SalaryPaymentSerializer})
    @action(detail=True, methods=['post'])
    def process(self, request, pk=None):
        """Recover the deductions and pay the net salary."""
        payment = self.get_object()
        serializer = SalaryProcessSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = services.process_salary_payment(
            salary_payment_id=payment.id, processed_by=request.user, reference=serializer.validated_data['reference']
        )
        return Response(SalaryPaymentSerializer(payment).data)

    @extend_schema(request=SalaryCancelSerializer, responses={200: SalaryPaymentSerializer})
    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        payment = self.get_object()
        serializer = SalaryCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = services.cancel_salary_payment(
            salary_payment_id=payment.id, reason=serializer.validated_data['reason']
        )
        return Response(SalaryPaymentSerializer(payment).data)


@extend_schema(request=PayrollGenerateSerializer, tags=['staff-payments'])
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStationManager])
def payroll_generate(request):
    """Calculate salaries for every payable staff member of a station."""
    serializer = PayrollGenerateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = dict(serializer.validated_data)

    station = _accessible_station(request, data.pop('station_id'))
    result = services.generate_payroll(station_id=station.id, created_by=request.user, **data)
    return _payroll_response(result)


@extend_schema(request=BulkPaymentSerializer, tags=['staff-payments'])
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCompanyAdmin])
def payroll_process_bulk(request):
    """Calculate, approve and pay the selected staff; failures are reported per person."""
    serializer = BulkPaymentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = dict(serializer.validated_data)

    station = _accessible_station(request, data.pop('station_id'))
    result = services.process_bulk_payments(station_id=station.id, processed_by=request.user, **data)
    return _payroll_response(result, status_code=status.HTTP_200_OK)


@extend_schema(parameters=[PayrollReportFilterSerializer], tags=['staff-payments'])
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStationManager])
def payroll_report(request, station_id):
    station = _accessible_station(request, station_id)
    filters = PayrollReportFilterSerializer(data=request.query_params)
    filters.is_valid(raise_exception=True)
    report = services.payroll_report(station, **filters.validated_data)
    return Response({'data': report})


@extend_schema(parameters=[PayrollSummaryFilterSerializer], tags=['staff-payments'])
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStationManager])
def payroll_summary(request, station_id):
    station = _accessible_station(request, station_id)
    filters = PayrollSummaryFilterSerializer(data=request.query_params)
    filters.is_valid(raise_exception=True)
    return Response({'data': services.payroll_summary(station.id, **filters.validated_data)})
