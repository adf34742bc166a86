from datetime import timedelta
from decimal import Decimal

from rest_framework import serializers

from .models import (
    Bank,
    BankAccount,
    BankTransaction,
    BankTransactionMode,
    BankTransactionStatus,
    BankTransactionType,
    StationWallet,
    WalletTransaction,
)


class BankSerializer(serializers.ModelSerializer):
    class Meta:
        model = Bank
        fields = ['id', 'name', 'code', 'swift_code', 'is_active', 'created_at']
        read_only_fields = ['id', 'created_at']


class BankAccountSerializer(serializers.ModelSerializer):
    bank_name = serializers.CharField(source='bank.name', read_only=True)

    class Meta:
        model = BankAccount
        fields = [
            'id', 'company', 'bank', 'bank_name', 'account_number', 'account_name',
            'branch', 'currency', 'current_balance', 'is_active', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'company', 'current_balance', 'created_at', 'updated_at']


class BankAccountBalanceSerializer(serializers.ModelSerializer):
    bank_name = serializers.CharField(source='bank.name', read_only=True)

    class Meta:
        model = BankAccount
        fields = ['id', 'bank_name', 'account_number', 'account_name', 'currency', 'current_balance', 'is_active']
        read_only_fields = fields


class WalletTransactionSerializer(serializers.ModelSerializer):
    recorded_by_name = serializers.CharField(source='recorded_by.get_full_name', read_only=True, default=None)

    class Meta:
        model = WalletTransaction
        fields = [
            'id', 'direction', 'source', 'amount', 'balance_before', 'balance_after',
            'reference', 'description', 'recorded_by', 'recorded_by_name', 'created_at',
        ]
        read_only_fields = fields


class StationWalletSerializer(serializers.ModelSerializer):
    station_name = serializers.CharField(source='station.name', read_only=True)
    todays_inflow = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    todays_outflow = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    recent_transactions = serializers.SerializerMethodField()

    class Meta:
        model = StationWallet
        fields = [
            'id', 'station', 'station_name', 'opening_balance', 'current_balance',
            'min_balance', 'max_balance', 'todays_inflow', 'todays_outflow',
            'recent_transactions', 'updated_at',
        ]
        read_only_fields = fields

    def get_recent_transactions(self, obj):
        return WalletTransactionSerializer(obj.transactions.all()[:10], many=True).data


class BankTransactionSerializer(serializers.ModelSerializer):
    bank_name = serializers.CharField(source='bank_account.bank.name', read_only=True)
    account_number = serializers.CharField(source='bank_account.account_number', read_only=True)
    station_name = serializers.CharField(source='station.name', read_only=True, default=None)
    recorded_by_name = serializers.CharField(source='recorded_by.get_full_name', read_only=True, default=None)

    class Meta:
        model = BankTransaction
        fields = [
            'id', 'company', 'bank_account', 'bank_name', 'account_number',
            'station', 'station_name', 'transaction_type', 'transaction_mode',
            'amount', 'reference', 'description', 'status',
            'previous_balance', 'new_balance', 'transaction_date', 'value_date',
            'recorded_by', 'recorded_by_name', 'approved_by', 'approved_at',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class DepositSerializer(serializers.Serializer):
    """Input for POST /api/banking/deposits/"""

    station_id = serializers.UUIDField(required=False)
    bank_account_id = serializers.UUIDField(
        error_messages={'required': 'Bank account is required'}
    )
    amount = serializers.DecimalField(
        max_digits=14,
        decimal_places=2,
        min_value=Decimal('0.01'),
        error_messages={'min_value': 'Amount must be positive'}
    )
    transaction_mode = serializers.ChoiceField(
        choices=BankTransactionMode.choices,
        error_messages={'required': 'Transaction mode is required'}
    )
    reference = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    description = serializers.CharField(
        max_length=500,
        required=False,
        allow_blank=True,
        default='',
        error_messages={'max_length': 'Description too long (max 500 characters)'}
    )


class WithdrawalSerializer(DepositSerializer):
    """Input for POST /api/banking/withdrawals/ (a description is mandatory)."""

    station_id = serializers.UUIDField()
    description = serializers.CharField(
        max_length=500,
        error_messages={
            'required': 'Description is required',
            'blank': 'Description is required',
            'max_length': 'Description too long (max 500 characters)',
        }
    )


class BankTransactionUpdateSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)
    reference = serializers.CharField(max_length=100, required=False, allow_blank=True)
    value_date = serializers.DateField(required=False)


class BankTransactionFilterSerializer(serializers.Serializer):
    """Query parameters for the transaction list and report."""

    transaction_type = serializers.ChoiceField(choices=BankTransactionType.choices, required=False)
    transaction_mode = serializers.ChoiceField(choices=BankTransactionMode.choices, required=False)
    status = serializers.ChoiceField(choices=BankTransactionStatus.choices, required=False)
    station_id = serializers.UUIDField(required=False)
    bank_account_id = serializers.UUIDField(required=False)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    search = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        start, end = attrs.get('start_date'), attrs.get('end_date')
        if start and end:
            if start > end:
                raise serializers.ValidationError('Start date cannot be after end date')
            if end - start > timedelta(days=365):
                raise serializers.ValidationError('Date range cannot exceed 1 year')
        return attrs


class TransactionReportSerializer(BankTransactionFilterSerializer):
    format = serializers.ChoiceField(choices=['json', 'csv'], default='json')


class CompanySummaryFilterSerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    company_id = serializers.UUIDField(required=False)


class BankingStatsFilterSerializer(serializers.Serializer):
    period = serializers.ChoiceField(choices=['daily', 'weekly', 'monthly'], default='monthly')
    company_id = serializers.UUIDField(required=False)


class DailySummaryFilterSerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
    company_id = serializers.UUIDField(required=False)
