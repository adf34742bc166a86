from decimal import Decimal

from django.db.models import Q
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes, renderer_classes
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.renderers import JSONRenderer
from rest_framework.response import Response

from apps.accounts.models import UserRole
from apps.accounts.permissions import (
    has_min_role,
    IsCompanyAdmin,
    IsCompanyAdminOrReadOnly,
    IsStationManager,
    IsStationStaff,
    IsSuperAdmin,
    request_company_id,
    scope_by_company,
)
from apps.stations.models import Station
from apps.stations.services import get_user_current_station
from . import services
from .models import Bank, BankAccount, BankTransaction
from .renderers import CSVRenderer
from .serializers import (
    BankAccountBalanceSerializer,
    BankAccountSerializer,
    BankingStatsFilterSerializer,
    BankSerializer,
    BankTransactionFilterSerializer,
    BankTransactionSerializer,
    BankTransactionUpdateSerializer,
    CompanySummaryFilterSerializer,
    DailySummaryFilterSerializer,
    DepositSerializer,
    StationWalletSerializer,
    TransactionReportSerializer,
    WithdrawalSerializer,
)


class BankingPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


def _accessible_station(request, station_id):
    station = get_object_or_404(Station, id=station_id)
    if not request.user.can_access_station(station):
        raise PermissionDenied('You do not have access to this station.')
    return station


def _wallet_payload(station):
    wallet = services.get_station_wallet(station)
    for key, value in services.wallet_today_flows(wallet).items():
        setattr(wallet, key, value)
    return StationWalletSerializer(wallet).data


def _filter_transactions(queryset, params):
    if params.get('transaction_type'):
        queryset = queryset.filter(transaction_type=params['transaction_type'])
    if params.get('transaction_mode'):
        queryset = queryset.filter(transaction_mode=params['transaction_mode'])
    if params.get('status'):
        queryset = queryset.filter(status=params['status'])
    if params.get('station_id'):
        queryset = queryset.filter(station_id=params['station_id'])
    if params.get('bank_account_id'):
        queryset = queryset.filter(bank_account_id=params['bank_account_id'])
    if params.get('start_date'):
        queryset = queryset.filter(transaction_date__date__gte=params['start_date'])
    if params.get('end_date'):
        queryset = queryset.filter(transaction_date__date__lte=params['end_date'])
    if params.get('search'):
        queryset = queryset.filter(
            Q(reference__icontains=params['search']) |
            Q(description__icontains=params['search'])
        )
    return queryset


def _visible_transactions(user):
    queryset = BankTransaction.objects.select_related('bank_account__bank', 'station', 'recorded_by')
    queryset = scope_by_company(queryset, user)
    if user.has_station_role:
        queryset = queryset.filter(station_id__in=user.station_ids())
    return queryset


class BankViewSet(viewsets.ModelViewSet):
    """Banks are shared reference data maintained by super admins."""

    queryset = Bank.objects.all()
    serializer_class = BankSerializer
    permission_classes = [IsAuthenticated, IsSuperAdmin]
    pagination_class = BankingPagination

    def get_permissions(self):
        if self.action in ['list', 'retrieve']:
            return [IsAuthenticated()]
        return super().get_permissions()


class BankAccountViewSet(viewsets.ModelViewSet):
    """
    Company bank accounts.

    Balances only move through transactions, so ``current_balance`` is
    read-only here.
    """

    queryset = BankAccount.objects.select_related('bank', 'company')
    serializer_class = BankAccountSerializer
    permission_classes = [IsAuthenticated, IsCompanyAdminOrReadOnly]
    pagination_class = BankingPagination

    def get_queryset(self):
        queryset = scope_by_company(super().get_queryset(), self.request.user)
        if self.request.query_params.get('is_active') in ('true', 'false'):
            queryset = queryset.filter(is_active=self.request.query_params['is_active'] == 'true')
        return queryset

    def perform_create(self, serializer):
        company_id = request_company_id(self.request, self.request.data)
        serializer.save(company_id=company_id)

    def perform_destroy(self, instance):
        """Accounts with history are deactivated instead of deleted."""
        if instance.transactions.exists():
            instance.is_active = False
            instance.save(update_fields=['is_active', 'updated_at'])
        else:
            instance.delete()

    @extend_schema(responses={200: BankAccountBalanceSerializer(many=True)})
    @action(detail=False, methods=['get'])
    def balances(self, request):
        accounts = self.get_queryset().filter(is_active=True)
        data = BankAccountBalanceSerializer(accounts, many=True).data
        total = sum((account.current_balance for account in accounts), Decimal('0.00'))
        return Response({'data': data, 'total_balance': str(total)})


class BankTransactionViewSet(mixins.ListModelMixin,
                             mixins.RetrieveModelMixin,
                             viewsets.GenericViewSet):
    """
    Bank transactions.

    GET    /api/banking/transactions/            filtered list
    GET    /api/banking/transactions/{id}/
    PATCH  /api/banking/transactions/{id}/       description / reference / value date
    DELETE /api/banking/transactions/{id}/       pending transactions only
    POST   /api/banking/transactions/{id}/complete/
    POST   /api/banking/transactions/{id}/cancel/
    """

    serializer_class = BankTransactionSerializer
    permission_classes = [IsAuthenticated, IsStationStaff]
    pagination_class = BankingPagination

    def get_permissions(self):
        if self.action in ['partial_update', 'destroy', 'complete', 'cancel']:
            return [IsAuthenticated(), IsCompanyAdmin()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = _visible_transactions(self.request.user)
        if self.action != 'list':
            return queryset

        filters = BankTransactionFilterSerializer(data=self.request.query_params)
        filters.is_valid(raise_exception=True)
        return _filter_transactions(queryset, filters.validated_data)

    @extend_schema(parameters=[BankTransactionFilterSerializer])
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @extend_schema(request=BankTransactionUpdateSerializer, responses={200: BankTransactionSerializer})
    def partial_update(self, request, pk=None):
        txn = self.get_object()
        serializer = BankTransactionUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        txn = services.update_bank_transaction(transaction_id=txn.id, **serializer.validated_data)
        return Response(BankTransactionSerializer(txn).data)

    def destroy(self, request, pk=None):
        txn = self.get_object()
        services.delete_bank_transaction(transaction_id=txn.id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        """Clear a pending transaction (e.g. a cheque) into the account balance."""
        txn = self.get_object()
        txn = services.complete_bank_transaction(transaction_id=txn.id, approved_by=request.user)
        return Response(BankTransactionSerializer(txn).data)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        txn = self.get_object()
        txn = services.cancel_bank_transaction(transaction_id=txn.id)
        return Response(BankTransactionSerializer(txn).data)


@extend_schema(request=DepositSerializer, responses={201: BankTransactionSerializer}, tags=['banking'])
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStationStaff])
def create_deposit(request):
    """
    Bank cash held at a station.

    ``station_id`` defaults to the caller's current station.
    """
    serializer = DepositSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    station_id = data.get('station_id')
    if station_id is None:
        station = get_user_current_station(request.user.id)
        if station is None:
            raise ValidationError({'station_id': ['You are not assigned to a station.']})
    else:
        station = _accessible_station(request, station_id)

    txn = services.create_bank_deposit(
        station_id=station.id,
        bank_account_id=data['bank_account_id'],
        amount=data['amount'],
        transaction_mode=data['transaction_mode'],
        reference=data['reference'],
        description=data['description'],
        recorded_by=request.user,
    )
    return Response(BankTransactionSerializer(txn).data, status=status.HTTP_201_CREATED)


@extend_schema(request=WithdrawalSerializer, responses={201: BankTransactionSerializer}, tags=['banking'])
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCompanyAdmin])
def create_withdrawal(request):
    """Company admins move money from a bank account to a station wallet."""
    serializer = WithdrawalSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    station = _accessible_station(request, data['station_id'])
    txn = services.create_withdrawal(
        station_id=station.id,
        bank_account_id=data['bank_account_id'],
        amount=data['amount'],
        transaction_mode=data['transaction_mode'],
        reference=data['reference'],
        description=data['description'],
        recorded_by=request.user,
    )
    return Response(BankTransactionSerializer(txn).data, status=status.HTTP_201_CREATED)


@extend_schema(responses={200: StationWalletSerializer}, tags=['banking'])
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStationStaff])
def current_station_wallet(request):
    """Wallet of ``?station_id=`` or of the caller's current station."""
    station_id = request.query_params.get('station_id')
    if station_id:
        station = _accessible_station(request, station_id)
    else:
        station = get_user_current_station(request.user.id)
        if station is None:
            raise NotFound('You are not assigned to a station.')
    return Response({'data': _wallet_payload(station)})


@extend_schema(responses={200: StationWalletSerializer}, tags=['banking'])
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStationStaff])
def station_wallet(request, station_id):
    station = _accessible_station(request, station_id)
    return Response({'data': _wallet_payload(station)})


@extend_schema(parameters=[CompanySummaryFilterSerializer], tags=['banking'])
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsCompanyAdmin])
def company_summary(request):
    filters = CompanySummaryFilterSerializer(data=request.query_params)
    filters.is_valid(raise_exception=True)
    params = filters.validated_data

    summary = services.company_banking_summary(
        request_company_id(request, params),
        date_from=params.get('start_date'),
        date_to=params.get('end_date'),
    )
    return Response({'data': summary})


@extend_schema(parameters=[BankingStatsFilterSerializer], tags=['banking'])
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsCompanyAdmin])
def company_stats(request):
    filters = BankingStatsFilterSerializer(data=request.query_params)
    filters.is_valid(raise_exception=True)
    params = filters.validated_data

    stats = services.banking_stats(request_company_id(request, params), period=params['period'])
    return Response({'data': stats, 'period': params['period']})


@extend_schema(parameters=[TransactionReportSerializer], tags=['banking'])
@api_view(['GET'])
@renderer_classes([JSONRenderer, CSVRenderer])
@permission_classes([IsAuthenticated, IsStationManager])
def transactions_report(request):
    """Transactions report as JSON (with totals) or as a CSV download."""
    filters = TransactionReportSerializer(data=request.query_params)
    filters.is_valid(raise_exception=True)
    params = filters.validated_data

    transactions = _filter_transactions(_visible_transactions(request.user), params)

    if params['format'] == 'csv':
        response = HttpResponse(services.export_transactions_csv(transactions), content_type='text/csv')
        filename = f"bank-transactions-{timezone.localdate().isoformat()}.csv"
        response['Content-Disposition'] = f'attachment; filename="{filename}"'
        return response

    totals = {}
    for txn in transactions:
        totals[txn.transaction_type] = totals.get(txn.transaction_type, 0) + txn.amount
    return Response({
        'data': BankTransactionSerializer(transactions, many=True).data,
        'count': len(transactions),
        'totals_by_type': {key: str(value) for key, value in totals.items()},
    })


@extend_schema(parameters=[DailySummaryFilterSerializer], tags=['banking'])
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStationManager])
def daily_banking_summary(request):
    filters = DailySummaryFilterSerializer(data=request.query_params)
    filters.is_valid(raise_exception=True)
    params = filters.validated_data

    user = request.user
    station_ids = None if has_min_role(user, UserRole.COMPANY_ADMIN) else user.station_ids()
    summary = services.daily_summary(
        request_company_id(request, params),
        day=params.get('date'),
        station_ids=station_ids,
    )
    return Response({'data': summary})
