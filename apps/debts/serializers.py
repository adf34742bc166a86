from datetime import timedelta
from decimal import Decimal

from rest_framework import serializers

from apps.banking.models import BankTransactionMode
from .models import (
    AccountTransfer,
    AllocationMethod,
    Debtor,
    DebtorCategory,
    DebtorTransaction,
    DebtorType,
    PaymentMethod,
    StationDebtorAccount,
    TransactionCategory,
    TransactionDirection,
    TransferStatus,
)

MAX_AMOUNT = Decimal('1000000')


def amount_field(label='amount', max_value=None):
    return serializers.DecimalField(
        max_digits=14,
        decimal_places=2,
        min_value=Decimal('0.01'),
        max_value=max_value,
        error_messages={
            'required': f'Valid {label} is required',
            'invalid': f'Valid {label} is required',
            'min_value': f'Valid {label} is required',
            'max_value': f'Amount cannot exceed {max_value:,.0f}' if max_value else '',
        }
    )


# ---------------------------------------------------------------------------
# Read serializers
# ---------------------------------------------------------------------------

class DebtorSerializer(serializers.ModelSerializer):
    total_debt = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True, default=None)

    class Meta:
        model = Debtor
        fields = [
            'id', 'company', 'name', 'debtor_type', 'category', 'phone', 'email',
            'contact_person', 'address', 'tax_id', 'credit_limit', 'is_active',
            'total_debt', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class DebtorSearchResultSerializer(DebtorSerializer):
    score = serializers.IntegerField(read_only=True)

    class Meta(DebtorSerializer.Meta):
        fields = DebtorSerializer.Meta.fields + ['score']
        read_only_fields = fields


class StationDebtorAccountSerializer(serializers.ModelSerializer):
    station_name = serializers.CharField(source='station.name', read_only=True)
    debtor_name = serializers.CharField(source='debtor.name', read_only=True)

    class Meta:
        model = StationDebtorAccount
        fields = [
            'id', 'station', 'station_name', 'debtor', 'debtor_name', 'current_debt',
            'total_debited', 'total_credited', 'last_transaction_at',
        ]
        read_only_fields = fields


class DebtorTransactionSerializer(serializers.ModelSerializer):
    station_id = serializers.UUIDField(source='account.station_id', read_only=True)
    station_name = serializers.CharField(source='account.station.name', read_only=True)
    debtor_id = serializers.UUIDField(source='account.debtor_id', read_only=True)
    debtor_name = serializers.CharField(source='account.debtor.name', read_only=True)
    recorded_by_name = serializers.CharField(source='recorded_by.get_full_name', read_only=True, default=None)
    is_reversed = serializers.SerializerMethodField()

    class Meta:
        model = DebtorTransaction
        fields = [
            'id', 'account', 'station_id', 'station_name', 'debtor_id', 'debtor_name',
            'transfer', 'direction', 'category', 'amount', 'balance_before', 'balance_after',
            'description', 'payment_reference', 'vehicle_plate', 'shift_id',
            'is_reversed', 'reversed_by', 'recorded_by', 'recorded_by_name',
            'transaction_date', 'created_at',
        ]
        read_only_fields = fields

    def get_is_reversed(self, obj):
        return obj.reversed_by_id is not None


class AccountTransferSerializer(serializers.ModelSerializer):
    debtor_name = serializers.CharField(source='debtor.name', read_only=True)
    target_debtor_name = serializers.CharField(source='target_debtor.name', read_only=True, default=None)
    station_name = serializers.CharField(source='station.name', read_only=True)
    bank_account_number = serializers.CharField(source='bank_account.account_number', read_only=True, default=None)
    recorded_by_name = serializers.CharField(source='recorded_by.get_full_name', read_only=True, default=None)
    is_reversed = serializers.BooleanField(read_only=True)

    class Meta:
        model = AccountTransfer
        fields = [
            'id', 'company', 'debtor', 'debtor_name', 'target_debtor', 'target_debtor_name',
            'station', 'station_name', 'category', 'payment_method', 'transaction_mode',
            'amount', 'status', 'bank_account', 'bank_account_number', 'bank_transaction',
            'allocation_method', 'allocations', 'payment_reference', 'description', 'reason',
            'shift_id', 'reversal_of', 'is_reversed', 'recorded_by', 'recorded_by_name',
            'completed_at', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class AccountTransferDetailSerializer(AccountTransferSerializer):
    ledger_entries = DebtorTransactionSerializer(many=True, read_only=True)

    class Meta(AccountTransferSerializer.Meta):
        fields = AccountTransferSerializer.Meta.fields + ['ledger_entries']
        read_only_fields = fields


# ---------------------------------------------------------------------------
# Input serializers
# ---------------------------------------------------------------------------

class DebtorCreateSerializer(serializers.ModelSerializer):
    """Input for POST /api/debt-transfer/debtors/"""

    name = serializers.CharField(
        max_length=200,
        error_messages={
            'required': 'Debtor name is required',
            'blank': 'Debtor name is required',
            'max_length': 'Debtor name cannot exceed 200 characters',
        }
    )
    phone = serializers.CharField(
        max_length=20,
        error_messages={
            'required': 'Phone number is required',
            'blank': 'Phone number is required',
            'max_length': 'Phone number cannot exceed 20 characters',
        }
    )
    email = serializers.EmailField(
        required=False,
        allow_blank=True,
        error_messages={'invalid': 'Invalid email address format'}
    )
    contact_person = serializers.CharField(
        max_length=100,
        required=False,
        allow_blank=True,
        error_messages={'max_length': 'Contact person name cannot exceed 100 characters'}
    )
    company_id = serializers.UUIDField(required=False, write_only=True)

    class Meta:
        model = Debtor
        fields = [
            'name', 'debtor_type', 'category', 'phone', 'email', 'contact_person',
            'address', 'tax_id', 'credit_limit', 'company_id',
        ]

    def validate_name(self, value):
        return value.strip()

    def validate_phone(self, value):
        return value.strip()

    def validate(self, attrs):
        if attrs.get('debtor_type') == DebtorType.PAYMENT_PROCESSOR and attrs.get('category') not in (
            None, DebtorCategory.MOBILE_MONEY, DebtorCategory.CARD
        ):
            raise serializers.ValidationError(
                {'category': 'Payment processors must be MOBILE_MONEY or CARD'}
            )
        return attrs


class DebtorUpdateSerializer(DebtorCreateSerializer):
    company_id = None

    class Meta(DebtorCreateSerializer.Meta):
        fields = [
            'name', 'category', 'phone', 'email', 'contact_person',
            'address', 'tax_id', 'credit_limit', 'is_active',
        ]


class RecordDebtSerializer(serializers.Serializer):
    """Input for POST /api/debt-transfer/debts/ (fuel sold on credit)."""

    debtor_id = serializers.UUIDField(required=False)
    debtor_name = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    debtor_phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    station_id = serializers.UUIDField(
        error_messages={
            'required': 'Station selection is required',
            'invalid': 'Invalid station ID format',
        }
    )
    shift_id = serializers.UUIDField(
        required=False,
        allow_null=True,
        error_messages={'invalid': 'Invalid shift ID format'}
    )
    amount = amount_field(max_value=MAX_AMOUNT)
    vehicle_plate = serializers.CharField(
        max_length=20,
        error_messages={
            'required': 'Vehicle plate is required',
            'blank': 'Vehicle plate is required',
        }
    )
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if not attrs.get('debtor_id'):
            errors = {}
            if not attrs['debtor_phone'].strip():
                errors['debtor_phone'] = 'Debtor phone is required'
            if not attrs['debtor_name'].strip():
                errors['debtor_name'] = 'Debtor name is required'
            if errors:
                raise serializers.ValidationError(errors)
        attrs['vehicle_plate'] = attrs['vehicle_plate'].strip().upper()
        return attrs


class CashSettlementSerializer(serializers.Serializer):
    debtor_id = serializers.UUIDField(error_messages={'required': 'Debtor selection is required'})
    station_id = serializers.UUIDField(error_messages={'required': 'Station selection is required'})
    amount = amount_field('settlement amount')
    shift_id = serializers.UUIDField(required=False, allow_null=True)
    payment_reference = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


MAX_BULK_PAYMENTS = 100


class BulkCashSettlementSerializer(serializers.Serializer):
    """Input for POST /api/debt-transfer/settlements/cash/bulk/"""

    payments = CashSettlementSerializer(many=True, allow_empty=False)

    def validate_payments(self, value):
        if len(value) > MAX_BULK_PAYMENTS:
            raise serializers.ValidationError(f'At most {MAX_BULK_PAYMENTS} payments per request')
        return value


class BulkPaymentFailureSerializer(serializers.Serializer):
    index = serializers.IntegerField()
    payment = serializers.DictField()
    error = serializers.CharField()
    code = serializers.CharField()


class BulkCashSettlementResultSerializer(serializers.Serializer):
    successful = AccountTransferSerializer(many=True)
    failed = BulkPaymentFailureSerializer(many=True)
    total = serializers.IntegerField()
    success_count = serializers.IntegerField()
    failure_count = serializers.IntegerField()
    success_rate = serializers.FloatField()


class BankSettlementSerializer(CashSettlementSerializer):
    bank_account_id = serializers.UUIDField(error_messages={'required': 'Bank account selection is required'})
    transaction_mode = serializers.ChoiceField(
        choices=BankTransactionMode.choices,
        error_messages={'required': 'Transaction mode is required'}
    )


class ElectronicTransferSerializer(serializers.Serializer):
    debtor_id = serializers.UUIDField(error_messages={'required': 'Payer debtor selection is required'})
    target_debtor_id = serializers.UUIDField(error_messages={'required': 'Payment method selection is required'})
    station_id = serializers.UUIDField(error_messages={'required': 'Station selection is required'})
    amount = amount_field('transfer amount')
    payment_reference = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if attrs['debtor_id'] == attrs['target_debtor_id']:
            raise serializers.ValidationError({'target_debtor_id': 'Debtor cannot pay through itself'})
        return attrs


class ManualAllocationSerializer(serializers.Serializer):
    station_id = serializers.UUIDField()
    amount = amount_field()


class AllocationPreviewSerializer(serializers.Serializer):
    debtor_id = serializers.UUIDField(error_messages={'required': 'Debtor selection is required'})
    amount = amount_field('settlement amount')
    allocation_method = serializers.ChoiceField(
        choices=AllocationMethod.choices,
        default=AllocationMethod.PROPORTIONAL
    )
    manual_allocations = ManualAllocationSerializer(many=True, required=False)

    def validate(self, attrs):
        if attrs['allocation_method'] == AllocationMethod.MANUAL and not attrs.get('manual_allocations'):
            raise serializers.ValidationError(
                {'manual_allocations': 'Manual allocation requires per-station amounts'}
            )
        return attrs


class CrossStationSettlementSerializer(AllocationPreviewSerializer):
    payment_station_id = serializers.UUIDField(error_messages={'required': 'Station selection is required'})
    payment_method = serializers.ChoiceField(
        choices=[PaymentMethod.CASH, PaymentMethod.BANK],
        default=PaymentMethod.CASH
    )
    bank_account_id = serializers.UUIDField(required=False)
    transaction_mode = serializers.ChoiceField(
        choices=[c for c in BankTransactionMode.choices if c[0] != BankTransactionMode.CHEQUE],
        default=BankTransactionMode.BANK_TRANSFER
    )
    payment_reference = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')

    def validate(self, attrs):
        attrs = super().validate(attrs)
        if attrs['payment_method'] == PaymentMethod.BANK and not attrs.get('bank_account_id'):
            raise serializers.ValidationError({'bank_account_id': 'Bank account selection is required'})
        return attrs


class WriteOffSerializer(serializers.Serializer):
    debtor_id = serializers.UUIDField(error_messages={'required': 'Debtor account selection is required'})
    station_id = serializers.UUIDField(error_messages={'required': 'Station selection is required'})
    amount = amount_field('write-off amount')
    reason = serializers.CharField(
        min_length=5,
        max_length=255,
        error_messages={
            'required': 'Write-off reason is required',
            'blank': 'Write-off reason is required',
            'min_length': 'Reason must be at least 5 characters',
        }
    )
    description = serializers.CharField(
        min_length=20,
        max_length=500,
        error_messages={
            'required': 'Description is required',
            'blank': 'Description is required',
            'min_length': 'Description must be at least 20 characters',
        }
    )


class ReversalSerializer(serializers.Serializer):
    reason = serializers.CharField(
        min_length=10,
        max_length=255,
        error_messages={
            'required': 'Reversal reason is required',
            'blank': 'Reversal reason is required',
            'min_length': 'Reason must be at least 10 characters',
        }
    )


class TransferUpdateSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)
    payment_reference = serializers.CharField(max_length=100, required=False, allow_blank=True)


# ---------------------------------------------------------------------------
# Query parameter serializers
# ---------------------------------------------------------------------------

class DateRangeMixin(serializers.Serializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)

    def validate(self, attrs):
        start, end = attrs.get('start_date'), attrs.get('end_date')
        if start and end:
            if start > end:
                raise serializers.ValidationError('Start date cannot be after end date')
            if end - start > timedelta(days=365):
                raise serializers.ValidationError('Date range cannot exceed 1 year')
        return attrs


class DebtorSearchSerializer(serializers.Serializer):
    q = serializers.CharField(required=False, allow_blank=True, default='')
    station_id = serializers.UUIDField(required=False)
    has_debt = serializers.BooleanField(required=False, allow_null=True, default=None)
    debtor_type = serializers.ChoiceField(choices=DebtorType.choices, required=False)
    include_inactive = serializers.BooleanField(required=False, default=False)
    company_id = serializers.UUIDField(required=False)


class DebtorTransactionFilterSerializer(DateRangeMixin):
    debtor_id = serializers.UUIDField(required=False)
    station_id = serializers.UUIDField(required=False)
    direction = serializers.ChoiceField(choices=TransactionDirection.choices, required=False)
    category = serializers.ChoiceField(choices=TransactionCategory.choices, required=False)
    search = serializers.CharField(required=False, allow_blank=True, default='')


class TransferFilterSerializer(DateRangeMixin):
    debtor_id = serializers.UUIDField(required=False)
    station_id = serializers.UUIDField(required=False)
    category = serializers.ChoiceField(choices=TransactionCategory.choices, required=False)
    status = serializers.ChoiceField(choices=TransferStatus.choices, required=False)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices, required=False)
    search = serializers.CharField(required=False, allow_blank=True, default='')


class ReportFilterSerializer(DateRangeMixin):
    station_id = serializers.UUIDField(required=False)
    company_id = serializers.UUIDField(required=False)


class AgingReportFilterSerializer(serializers.Serializer):
    station_id = serializers.UUIDField(required=False)
    company_id = serializers.UUIDField(required=False)
    as_of = serializers.DateField(required=False)


class SettlementAnalyticsSerializer(ReportFilterSerializer):
    format = serializers.ChoiceField(choices=['json', 'csv'], default='json')
    report_type = serializers.ChoiceField(choices=['summary', 'detailed'], default='detailed')
