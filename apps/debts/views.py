from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes, renderer_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.renderers import JSONRenderer
from rest_framework.response import Response

from apps.accounts.models import UserRole
from apps.accounts.permissions import (
    has_min_role,
    IsCompanyAdmin,
    IsStationManager,
    IsStationStaff,
    request_company_id,
    scope_by_company,
)
from apps.banking.renderers import CSVRenderer
from apps.banking.serializers import BankAccountBalanceSerializer
from apps.stations.models import Company, Station
from . import services
from .models import AccountTransfer, Debtor, DebtorTransaction
from .serializers import (
    AccountTransferDetailSerializer,
    AccountTransferSerializer,
    AgingReportFilterSerializer,
    AllocationPreviewSerializer,
    BankSettlementSerializer,
    BulkCashSettlementResultSerializer,
    BulkCashSettlementSerializer,
    CashSettlementSerializer,
    CrossStationSettlementSerializer,
    DebtorCreateSerializer,
    DebtorSearchResultSerializer,
    DebtorSearchSerializer,
    DebtorSerializer,
    DebtorTransactionFilterSerializer,
    DebtorTransactionSerializer,
    DebtorUpdateSerializer,
    ElectronicTransferSerializer,
    RecordDebtSerializer,
    ReportFilterSerializer,
    ReversalSerializer,
    SettlementAnalyticsSerializer,
    TransferFilterSerializer,
    TransferUpdateSerializer,
    WriteOffSerializer,
)


class DebtPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


def _accessible_station(request, station_id):
    station = get_object_or_404(Station, id=station_id)
    if not request.user.can_access_station(station):
        raise PermissionDenied('You do not have access to this station.')
    return station


def _scoped_company_id(user):
    """None for super admins (no company filter), the user's company otherwise."""
    return None if user.is_super_admin else user.company_id


def _scoped_station_ids(user):
    """None for company admins and above, the assigned stations otherwise."""
    return None if has_min_role(user, UserRole.COMPANY_ADMIN) else user.station_ids()


def _debtor_for(request, debtor_id):
    return services.get_debtor(debtor_id, company_id=_scoped_company_id(request.user))


def _created(transfer):
    return Response(AccountTransferDetailSerializer(transfer).data, status=status.HTTP_201_CREATED)


# ---------------------------------------------------------------------------
# Debtors
# ---------------------------------------------------------------------------

class DebtorViewSet(mixins.ListModelMixin,
                    mixins.RetrieveModelMixin,
                    viewsets.GenericViewSet):
    """
    Debtors of the caller's company.

    GET    /api/debt-transfer/debtors/
    POST   /api/debt-transfer/debtors/
    GET    /api/debt-transfer/debtors/{id}/
    PATCH  /api/debt-transfer/debtors/{id}/
    DELETE /api/debt-transfer/debtors/{id}/           deactivates
    GET    /api/debt-transfer/debtors/search/?q=
    GET    /api/debt-transfer/debtors/{id}/profile/
    GET    /api/debt-transfer/debtors/{id}/breakdown/
    """

    serializer_class = DebtorSerializer
    permission_classes = [IsAuthenticated, IsStationStaff]
    pagination_class = DebtPagination

    def get_permissions(self):
        if self.action in ['update', 'partial_update', 'destroy']:
            return [IsAuthenticated(), IsStationManager()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = services.with_total_debt(scope_by_company(Debtor.objects.all(), self.request.user))
        params = self.request.query_params
        if params.get('debtor_type'):
            queryset = queryset.filter(debtor_type=params['debtor_type'])
        if params.get('is_active') in ('true', 'false'):
            queryset = queryset.filter(is_active=params['is_active'] == 'true')
        return queryset.order_by('name')

    @extend_schema(request=DebtorCreateSerializer, responses={201: DebtorSerializer})
    def create(self, request):
        serializer = DebtorCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        data.pop('company_id', None)

        company = get_object_or_404(Company, id=request_company_id(request, serializer.validated_data))
        debtor = services.create_debtor(company=company, created_by=request.user, **data)
        similar = services.find_similar_debtors(company_id=company.id, name=debtor.name, exclude_id=debtor.id)
        return Response(
            {
                'data': DebtorSerializer(debtor).data,
                'possible_duplicates': [
                    {'id': match.id, 'name': match.name, 'phone': match.phone, 'score': score}
                    for match, score in similar
                ],
            },
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(request=DebtorUpdateSerializer, responses={200: DebtorSerializer})
    def update(self, request, pk=None, partial=False):
        debtor = self.get_object()
        serializer = DebtorUpdateSerializer(debtor, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        debtor = services.update_debtor(debtor=debtor, **serializer.validated_data)
        return Response(DebtorSerializer(debtor).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk, partial=True)

    def destroy(self, request, pk=None):
        services.deactivate_debtor(debtor=self.get_object())
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(parameters=[DebtorSearchSerializer], responses={200: DebtorSearchResultSerializer(many=True)})
    @action(detail=False, methods=['get'])
    def search(self, request):
        """Fuzzy search by name, phone or email across all company stations."""
        filters = DebtorSearchSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        params = filters.validated_data

        company_id = params.get('company_id') if request.user.is_super_admin else request.user.company_id
        results = services.search_debtors(
            company_id=company_id,
            query=params['q'],
            station_id=params.get('station_id'),
            has_debt=params.get('has_debt'),
            debtor_type=params.get('debtor_type'),
            include_inactive=params['include_inactive'],
        )
        for debtor, score in results:
            debtor.score = score
        data = DebtorSearchResultSerializer([debtor for debtor, _ in results], many=True).data
        return Response({'data': data, 'count': len(data)})

    @action(detail=True, methods=['get'])
    def profile(self, request, pk=None):
        profile = services.get_debtor_profile(self.get_object())
        profile['debtor'] = DebtorSerializer(profile['debtor']).data
        profile['recent_transactions'] = DebtorTransactionSerializer(profile['recent_transactions'], many=True).data
        profile['recent_transfers'] = AccountTransferSerializer(profile['recent_transfers'], many=True).data
        return Response({'data': profile})

    @action(detail=True, methods=['get'])
    def breakdown(self, request, pk=None):
        """Debt per station with the age of the oldest unpaid debit."""
        return Response({'data': services.get_debtor_debt_breakdown(self.get_object())})


@extend_schema(request=RecordDebtSerializer, responses={201: DebtorTransactionSerializer}, tags=['debts'])
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStationStaff])
def record_debt(request):
    """Fuel sold on credit; unknown debtors are registered by phone."""
    serializer = RecordDebtSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    station = _accessible_station(request, data['station_id'])
    entry = services.record_debt(
        company=station.company,
        station=station,
        amount=data['amount'],
        debtor_id=data.get('debtor_id'),
        debtor_name=data['debtor_name'],
        debtor_phone=data['debtor_phone'],
        vehicle_plate=data['vehicle_plate'],
        shift_id=data.get('shift_id'),
        description=data['description'],
        recorded_by=request.user,
    )
    return Response(DebtorTransactionSerializer(entry).data, status=status.HTTP_201_CREATED)


# ---------------------------------------------------------------------------
# Settlements
# ---------------------------------------------------------------------------

@extend_schema(request=CashSettlementSerializer, responses={201: AccountTransferDetailSerializer}, tags=['debts'])
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStationStaff])
def cash_settlement(request):
    serializer = CashSettlementSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    station = _accessible_station(request, data['station_id'])
    debtor = _debtor_for(request, data['debtor_id'])
    transfer = services.process_cash_settlement(
        debtor_id=debtor.id,
        station_id=station.id,
        amount=data['amount'],
        payment_reference=data['payment_reference'],
        description=data['description'],
        shift_id=data.get('shift_id'),
        recorded_by=request.user,
    )
    return _created(transfer)


@extend_schema(
    request=BulkCashSettlementSerializer,
    responses={200: BulkCashSettlementResultSerializer},
    tags=['debts'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStationStaff])
def bulk_cash_settlement(request):
    """Many cash payments in one call; each is recorded or reported on its own."""
    serializer = BulkCashSettlementSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = services.bulk_record_payments(
        payments=[dict(payment) for payment in serializer.validated_data['payments']],
        company_id=_scoped_company_id(request.user),
        station_ids=_scoped_station_ids(request.user),
        recorded_by=request.user,
    )
    return Response(BulkCashSettlementResultSerializer(result).data)


@extend_schema(request=BankSettlementSerializer, responses={201: AccountTransferDetailSerializer}, tags=['debts'])
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStationManager])
def bank_settlement(request):
    """Cheques create a pending transfer; other modes settle at once."""
    serializer = BankSettlementSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    station = _accessible_station(request, data['station_id'])
    debtor = _debtor_for(request, data['debtor_id'])
    transfer = services.process_bank_settlement(
        debtor_id=debtor.id,
        station_id=station.id,
        bank_account_id=data['bank_account_id'],
        amount=data['amount'],
        transaction_mode=data['transaction_mode'],
        payment_reference=data['payment_reference'],
        description=data['description'],
        recorded_by=request.user,
    )
    return _created(transfer)


@extend_schema(request=ElectronicTransferSerializer, responses={201: AccountTransferDetailSerializer}, tags=['debts'])
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStationStaff])
def electronic_transfer(request):
    serializer = ElectronicTransferSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    station = _accessible_station(request, data['station_id'])
    debtor = _debtor_for(request, data['debtor_id'])
    transfer = services.process_electronic_transfer(
        debtor_id=debtor.id,
        target_debtor_id=data['target_debtor_id'],
        station_id=station.id,
        amount=data['amount'],
        payment_reference=data['payment_reference'],
        description=data['description'],
        recorded_by=request.user,
    )
    return _created(transfer)


@extend_schema(request=CrossStationSettlementSerializer, responses={201: AccountTransferDetailSerializer},
               tags=['debts'])
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStationManager])
def cross_station_settlement(request):
    serializer = CrossStationSettlementSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    station = _accessible_station(request, data['payment_station_id'])
    debtor = _debtor_for(request, data['debtor_id'])
    transfer = services.process_cross_station_settlement(
        debtor_id=debtor.id,
        payment_station_id=station.id,
        amount=data['amount'],
        allocation_method=data['allocation_method'],
        manual_allocations=data.get('manual_allocations'),
        payment_method=data['payment_method'],
        bank_account_id=data.get('bank_account_id'),
        transaction_mode=data['transaction_mode'],
        payment_reference=data['payment_reference'],
        description=data['description'],
        recorded_by=request.user,
    )
    return _created(transfer)


@extend_schema(request=AllocationPreviewSerializer, tags=['debts'])
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStationStaff])
def preview_allocation(request):
    """What a cross-station settlement would allocate; nothing is saved."""
    serializer = AllocationPreviewSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    debtor = _debtor_for(request, data['debtor_id'])
    preview = services.preview_allocation(
        debtor_id=debtor.id,
        amount=data['amount'],
        allocation_method=data['allocation_method'],
        manual_allocations=data.get('manual_allocations'),
    )
    return Response({'data': preview})


@extend_schema(request=WriteOffSerializer, responses={201: AccountTransferDetailSerializer}, tags=['debts'])
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCompanyAdmin])
def write_off(request):
    serializer = WriteOffSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    station = _accessible_station(request, data['station_id'])
    debtor = _debtor_for(request, data['debtor_id'])
    transfer = services.write_off_debt(
        debtor_id=debtor.id,
        station_id=station.id,
        amount=data['amount'],
        reason=data['reason'],
        description=data['description'],
        recorded_by=request.user,
    )
    return _created(transfer)


# ---------------------------------------------------------------------------
# Ledger and transfers
# ---------------------------------------------------------------------------

class DebtorTransactionViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Debtor ledger entries.

    POST /api/debt-transfer/transactions/{id}/reverse/ undoes the
    settlement the entry belongs to.
    """

    serializer_class = DebtorTransactionSerializer
    permission_classes = [IsAuthenticated, IsStationStaff]
    pagination_class = DebtPagination

    def get_permissions(self):
        if self.action == 'reverse':
            return [IsAuthenticated(), IsCompanyAdmin()]
        return super().get_permissions()

    def get_queryset(self):
        user = self.request.user
        params = {}
        if self.action == 'list':
            filters = DebtorTransactionFilterSerializer(data=self.request.query_params)
            filters.is_valid(raise_exception=True)
            params = filters.validated_data
        return services.list_debtor_transactions(
            company_id=_scoped_company_id(user),
            station_ids=_scoped_station_ids(user),
            debtor_id=params.get('debtor_id'),
            station_id=params.get('station_id'),
            direction=params.get('direction'),
            category=params.get('category'),
            date_from=params.get('start_date'),
            date_to=params.get('end_date'),
            search=params.get('search', ''),
        )

    @extend_schema(parameters=[DebtorTransactionFilterSerializer])
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @extend_schema(request=ReversalSerializer, responses={201: AccountTransferDetailSerializer})
    @action(detail=True, methods=['post'])
    def reverse(self, request, pk=None):
        entry = self.get_object()
        serializer = ReversalSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        reversal = services.reverse_settlement(
            transaction_id=entry.id,
            reason=serializer.validated_data['reason'],
            recorded_by=request.user,
        )
        return _created(reversal)


class TransferViewSet(mixins.ListModelMixin,
                      mixins.RetrieveModelMixin,
                      viewsets.GenericViewSet):
    """
    Account transfers (settlement operations).

    GET    /api/debt-transfer/transfers/
    GET    /api/debt-transfer/transfers/{id}/
    PUT    /api/debt-transfer/transfers/{id}/       description / payment reference
    PATCH  /api/debt-transfer/transfers/{id}/
    DELETE /api/debt-transfer/transfers/{id}/       pending only
    POST   /api/debt-transfer/transfers/{id}/complete/
    POST   /api/debt-transfer/transfers/{id}/cancel/
    """

    permission_classes = [IsAuthenticated, IsStationStaff]
    pagination_class = DebtPagination

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return AccountTransferDetailSerializer
        return AccountTransferSerializer

    def get_permissions(self):
        if self.action in ['update', 'partial_update']:
            return [IsAuthenticated(), IsStationManager()]
        if self.action in ['destroy', 'complete', 'cancel']:
            return [IsAuthenticated(), IsCompanyAdmin()]
        return super().get_permissions()

    def get_queryset(self):
        user = self.request.user
        if self.action != 'list':
            queryset = scope_by_company(AccountTransfer.objects.select_related('debtor', 'station'), user)
            station_ids = _scoped_station_ids(user)
            if station_ids is not None:
                queryset = queryset.filter(station_id__in=station_ids)
            return queryset

        filters = TransferFilterSerializer(data=self.request.query_params)
        filters.is_valid(raise_exception=True)
        params = filters.validated_data
        return services.list_transfers(
            company_id=_scoped_company_id(user),
            station_ids=_scoped_station_ids(user),
            debtor_id=params.get('debtor_id'),
            station_id=params.get('station_id'),
            category=params.get('category'),
            status=params.get('status'),
            payment_method=params.get('payment_method'),
            date_from=params.get('start_date'),
            date_to=params.get('end_date'),
            search=params.get('search', ''),
        )

    @extend_schema(parameters=[TransferFilterSerializer])
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @extend_schema(request=TransferUpdateSerializer, responses={200: AccountTransferSerializer})
    def update(self, request, pk=None, partial=False):
        transfer = self.get_object()
        serializer = TransferUpdateSerializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        transfer = services.update_transfer(transfer_id=transfer.id, **serializer.validated_data)
        return Response(AccountTransferSerializer(transfer).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk, partial=True)

    def destroy(self, request, pk=None):
        transfer = self.get_object()
        services.delete_transfer(transfer_id=transfer.id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        """Clear a pending cheque: the debt is reduced and the bank credited."""
        transfer = self.get_object()
        transfer = services.complete_transfer(transfer_id=transfer.id, completed_by=request.user)
        return Response(AccountTransferDetailSerializer(transfer).data)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        transfer = self.get_object()
        transfer = services.cancel_transfer(transfer_id=transfer.id)
        return Response(AccountTransferSerializer(transfer).data)


@extend_schema(tags=['debts'])
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStationStaff])
def payment_methods(request):
    return Response({'data': services.get_payment_methods(_scoped_company_id(request.user))})


@extend_schema(responses={200: BankAccountBalanceSerializer(many=True)}, tags=['debts'])
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStationStaff])
def bank_accounts(request):
    """Active company bank accounts for bank settlements."""
    accounts = services.get_bank_accounts(_scoped_company_id(request.user))
    return Response({'data': BankAccountBalanceSerializer(accounts, many=True).data})


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

@extend_schema(parameters=[ReportFilterSerializer], tags=['debts'])
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStationManager])
def debtors_summary(request):
    filters = ReportFilterSerializer(data=request.query_params)
    filters.is_valid(raise_exception=True)

    summary = services.company_debtors_summary(
        request_company_id(request, filters.validated_data),
        station_ids=_scoped_station_ids(request.user),
    )
    return Response({'data': summary})


@extend_schema(parameters=[AgingReportFilterSerializer], tags=['debts'])
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStationManager])
def aging_report(request):
    filters = AgingReportFilterSerializer(data=request.query_params)
    filters.is_valid(raise_exception=True)
    params = filters.validated_data

    report = services.debt_aging_report(
        request_company_id(request, params),
        station_id=params.get('station_id'),
        station_ids=_scoped_station_ids(request.user),
        as_of=params.get('as_of'),
    )
    return Response({'data': report})


@extend_schema(parameters=[ReportFilterSerializer], tags=['debts'])
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStationManager])
def settlement_activity(request):
    filters = ReportFilterSerializer(data=request.query_params)
    filters.is_valid(raise_exception=True)
    params = filters.validated_data

    report = services.settlement_activity_report(
        request_company_id(request, params),
        date_from=params.get('start_date'),
        date_to=params.get('end_date'),
        station_id=params.get('station_id'),
        station_ids=_scoped_station_ids(request.user),
    )
    return Response({'data': report})


@extend_schema(parameters=[SettlementAnalyticsSerializer], tags=['debts'])
@api_view(['GET'])
@renderer_classes([JSONRenderer, CSVRenderer])
@permission_classes([IsAuthenticated, IsCompanyAdmin])
def settlement_analytics(request):
    """Collection metrics, insights and alerts, or the settlement report as CSV."""
    filters = SettlementAnalyticsSerializer(data=request.query_params)
    filters.is_valid(raise_exception=True)
    params = filters.validated_data

    company_id = request_company_id(request, params)
    activity = services.settlement_activity_report(
        company_id,
        date_from=params.get('start_date'),
        date_to=params.get('end_date'),
        station_id=params.get('station_id'),
    )

    if params['format'] == 'csv':
        company = get_object_or_404(Company, id=company_id)
        content = services.export_settlement_report(activity, params['report_type'], currency=company.currency)
        response = HttpResponse(content, content_type='text/csv')
        filename = f"settlements-{params['report_type']}-{timezone.localdate().isoformat()}.csv"
        response['Content-Disposition'] = f'attachment; filename="{filename}"'
        return response

    summary = services.company_debtors_summary(company_id)
    insights = services.generate_settlement_insights(summary, activity)
    return Response({
        'data': {
            'metrics': insights['analysis']['metrics'],
            'settlement_efficiency': insights['analysis']['settlement_efficiency'],
            'health_score': insights['health_score'],
            'recommendation': insights['recommendation'],
            'insights': insights['insights'],
            'alerts': services.check_settlement_alerts(summary, activity),
        }
    })
