from decimal import Decimal

from rest_framework import serializers

from .models import (
    EARNING_TYPES,
    BalanceEffect,
    PaymentSchedule,
    PaymentSource,
    PayrollMethod,
    SalaryPayment,
    SalaryPaymentStatus,
    Shortage,
    StaffAccount,
    StaffTransaction,
    StaffTransactionStatus,
    StaffTransactionType,
)
from .services.shortages import SETTLE_BY_PAYMENT, SETTLE_BY_WRITE_OFF


def money_field(required=True, message='Valid amount is required', **kwargs):
    return serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal('0.01'),
        required=required,
        error_messages={
            'required': message,
            'null': message,
            'invalid': message,
            'min_value': message,
        },
        **kwargs
    )


def _payout_details_errors(method, bank_account_number, mobile_money_number):
    errors = {}
    if method == PayrollMethod.BANK_TRANSFER and not bank_account_number:
        errors['bank_account_number'] = 'Bank account number is required for bank transfers'
    if method == PayrollMethod.MOBILE_MONEY and not mobile_money_number:
        errors['mobile_money_number'] = 'Mobile money number is required for mobile money payments'
    return errors


# ---------------------------------------------------------------------------
# Staff accounts
# ---------------------------------------------------------------------------

class StaffAccountSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(source='user.get_full_name', read_only=True)
    user_email = serializers.EmailField(source='user.email', read_only=True)
    station_name = serializers.CharField(source='station.name', read_only=True)
    amount_owed = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = StaffAccount
        fields = [
            'id', 'user', 'user_name', 'user_email', 'station', 'station_name',
            'salary_amount', 'credit_limit', 'current_balance', 'amount_owed',
            'payroll_method', 'payment_schedule', 'bank_name', 'bank_account_number',
            'mobile_money_number', 'is_active', 'is_on_hold', 'hold_reason',
            'outstanding_shortages', 'outstanding_advances', 'total_shortages',
            'total_advances', 'total_paid', 'last_payment_date', 'last_shortage_date',
            'next_payment_date', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class StaffAccountCreateSerializer(serializers.Serializer):
    """Input for POST /api/staff-payments/accounts/"""

    user_id = serializers.UUIDField(error_messages={'required': 'User is required', 'invalid': 'User is required'})
    station_id = serializers.UUIDField(
        error_messages={'required': 'Station is required', 'invalid': 'Station is required'}
    )
    salary_amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal('0.00'),
        required=False,
        default=Decimal('0.00'),
        error_messages={'min_value': 'Salary amount must be positive'}
    )
    credit_limit = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal('0.00'),
        required=False,
        allow_null=True,
        default=None,
        error_messages={'min_value': 'Credit limit must be positive'}
    )
    payroll_method = serializers.ChoiceField(
        choices=PayrollMethod.choices,
        default=PayrollMethod.STATION_WALLET,
        error_messages={'invalid_choice': 'Invalid payroll method'}
    )
    payment_schedule = serializers.ChoiceField(
        choices=PaymentSchedule.choices,
        default=PaymentSchedule.MONTHLY,
        error_messages={'invalid_choice': 'Invalid payment schedule'}
    )
    bank_name = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    bank_account_number = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    mobile_money_number = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    next_payment_date = serializers.DateField(required=False, allow_null=True, default=None)

    def validate(self, attrs):
        errors = _payout_details_errors(
            attrs['payroll_method'], attrs['bank_account_number'], attrs['mobile_money_number']
        )
        if errors:
            raise serializers.ValidationError(errors)
        return attrs


class StaffAccountUpdateSerializer(serializers.Serializer):
    salary_amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal('0.00'),
        required=False,
        error_messages={'min_value': 'Salary amount must be positive'}
    )
    credit_limit = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal('0.00'),
        required=False,
        allow_null=True,
        error_messages={'min_value': 'Credit limit must be positive'}
    )
    payroll_method = serializers.ChoiceField(
        choices=PayrollMethod.choices,
        required=False,
        error_messages={'invalid_choice': 'Invalid payroll method'}
    )
    payment_schedule = serializers.ChoiceField(
        choices=PaymentSchedule.choices,
        required=False,
        error_messages={'invalid_choice': 'Invalid payment schedule'}
    )
    bank_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    bank_account_number = serializers.CharField(max_length=50, required=False, allow_blank=True)
    mobile_money_number = serializers.CharField(max_length=20, required=False, allow_blank=True)
    is_active = serializers.BooleanField(required=False)
    is_on_hold = serializers.BooleanField(required=False)
    hold_reason = serializers.CharField(max_length=255, required=False, allow_blank=True)
    next_payment_date = serializers.DateField(required=False, allow_null=True)

    def validate(self, attrs):
        account = self.instance
        errors = _payout_details_errors(
            attrs.get('payroll_method', account.payroll_method),
            attrs.get('bank_account_number', account.bank_account_number),
            attrs.get('mobile_money_number', account.mobile_money_number),
        )
        if attrs.get('is_on_hold') and not attrs.get('hold_reason', account.hold_reason):
            errors['hold_reason'] = 'A reason is required to put an account on hold'
        if errors:
            raise serializers.ValidationError(errors)
        return attrs


class StaffAccountFilterSerializer(serializers.Serializer):
    is_active = serializers.BooleanField(required=False, allow_null=True, default=None)
    is_on_hold = serializers.BooleanField(required=False, allow_null=True, default=None)
    search = serializers.CharField(required=False, allow_blank=True, default='')


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

class StaffTransactionSerializer(serializers.ModelSerializer):
    staff_name = serializers.CharField(source='staff_account.user.get_full_name', read_only=True)
    station_id = serializers.UUIDField(source='staff_account.station_id', read_only=True)
    recorded_by_name = serializers.CharField(source='recorded_by.get_full_name', read_only=True, default=None)
    approved_by_name = serializers.CharField(source='approved_by.get_full_name', read_only=True, default=None)

    class Meta:
        model = StaffTransaction
        fields = [
            'id', 'staff_account', 'staff_name', 'station_id', 'transaction_type',
            'balance_effect', 'status', 'amount', 'balance_before', 'balance_after',
            'description', 'reference_number', 'payment_source', 'payment_method',
            'shift_id', 'shortage', 'salary_payment', 'bank_account', 'wallet_transaction',
            'bank_transaction', 'notes', 'recorded_by', 'recorded_by_name',
            'approved_by', 'approved_by_name', 'approved_at', 'settled_at', 'created_at',
        ]
        read_only_fields = fields


class StaffTransactionCreateSerializer(serializers.Serializer):
    """Input for POST /api/staff-payments/transactions/"""

    staff_account_id = serializers.UUIDField(
        error_messages={'required': 'Staff account is required', 'invalid': 'Staff account is required'}
    )
    transaction_type = serializers.ChoiceField(
        choices=StaffTransactionType.choices,
        error_messages={
            'required': 'Transaction type is required',
            'invalid_choice': 'Invalid transaction type',
        }
    )
    amount = money_field()
    description = serializers.CharField(
        max_length=500,
        error_messages={'required': 'Description is required', 'blank': 'Description is required'}
    )
    payment_source = serializers.ChoiceField(
        choices=PaymentSource.choices,
        required=False,
        allow_blank=True,
        default='',
        error_messages={'invalid_choice': 'Invalid payment source'}
    )
    payment_method = serializers.ChoiceField(
        choices=PayrollMethod.choices,
        required=False,
        allow_blank=True,
        default=''
    )
    reference_number = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    adjustment_effect = serializers.ChoiceField(
        choices=[BalanceEffect.CREDIT, BalanceEffect.DEBIT],
        required=False,
        allow_null=True,
        default=None
    )
    shift_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if attrs['transaction_type'] in EARNING_TYPES and not attrs['payment_method']:
            raise serializers.ValidationError(
                {'payment_method': 'Valid payment method is required for this transaction type'}
            )
        return attrs


class TransactionApprovalSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class TransactionRejectionSerializer(serializers.Serializer):
    reason = serializers.CharField(
        max_length=500,
        error_messages={'required': 'Rejection reason is required', 'blank': 'Rejection reason is required'}
    )


class ProcessPaymentSerializer(serializers.Serializer):
    payment_source = serializers.ChoiceField(
        choices=PaymentSource.choices,
        required=False,
        allow_blank=True,
        default='',
        error_messages={'invalid_choice': 'Invalid payment source'}
    )
    payment_method = serializers.ChoiceField(choices=PayrollMethod.choices, required=False, allow_blank=True,
                                             default='')
    bank_account_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    reference = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if attrs['payment_source'] == PaymentSource.BANK_ACCOUNT and not attrs['bank_account_id']:
            raise serializers.ValidationError({'bank_account_id': 'Bank account is required for bank payments'})
        return attrs


class DateRangeSerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)

    def validate(self, attrs):
        start, end = attrs.get('start_date'), attrs.get('end_date')
        if start and end and start > end:
            raise serializers.ValidationError('Start date cannot be after end date')
        return attrs


class StaffTransactionFilterSerializer(DateRangeSerializer):
    staff_account_id = serializers.UUIDField(required=False)
    station_id = serializers.UUIDField(required=False)
    transaction_type = serializers.CharField(required=False, allow_blank=True, default='',
                                             help_text='One type or a comma separated list')
    status = serializers.ChoiceField(choices=StaffTransactionStatus.choices, required=False)

    def validate_transaction_type(self, value):
        types = [item.strip() for item in value.split(',') if item.strip()]
        invalid = [item for item in types if item not in StaffTransactionType.values]
        if invalid:
            raise serializers.ValidationError('Invalid transaction type')
        return types


# ---------------------------------------------------------------------------
# Shortages
# ---------------------------------------------------------------------------

class ShortageSerializer(serializers.ModelSerializer):
    staff_name = serializers.CharField(source='staff_account.user.get_full_name', read_only=True)
    station_id = serializers.UUIDField(source='staff_account.station_id', read_only=True)

    class Meta:
        model = Shortage
        fields = [
            'id', 'staff_account', 'staff_name', 'station_id', 'shortage_transaction',
            'original_amount', 'amount_deducted', 'amount_remaining', 'description',
            'reference_number', 'shortage_date', 'due_date', 'is_fully_deducted',
            'settled_at', 'created_at',
        ]
        read_only_fields = fields


class ShortageCreateSerializer(serializers.Serializer):
    """Input for POST /api/staff-payments/shortages/"""

    staff_account_id = serializers.UUIDField(
        error_messages={'required': 'Staff account is required', 'invalid': 'Staff account is required'}
    )
    amount = money_field()
    description = serializers.CharField(
        max_length=500,
        error_messages={'required': 'Description is required', 'blank': 'Description is required'}
    )
    reference_number = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    shortage_date = serializers.DateField(required=False, allow_null=True, default=None)
    due_date = serializers.DateField(required=False, allow_null=True, default=None)
    shift_id = serializers.UUIDField(required=False, allow_null=True, default=None)

    def validate(self, attrs):
        if attrs['due_date'] and attrs['shortage_date'] and attrs['due_date'] < attrs['shortage_date']:
            raise serializers.ValidationError({'due_date': 'Due date cannot be before the shortage date'})
        return attrs


class ShortageSettleSerializer(serializers.Serializer):
    amount = money_field(required=False, allow_null=True, default=None)
    settlement_type = serializers.ChoiceField(
        choices=[SETTLE_BY_PAYMENT, SETTLE_BY_WRITE_OFF],
        default=SETTLE_BY_PAYMENT
    )
    payment_source = serializers.ChoiceField(choices=PaymentSource.choices, required=False, allow_blank=True,
                                             default='')
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class ShortageFilterSerializer(serializers.Serializer):
    staff_account_id = serializers.UUIDField(required=False)
    station_id = serializers.UUIDField(required=False)
    outstanding = serializers.BooleanField(required=False, allow_null=True, default=None)


# ---------------------------------------------------------------------------
# Salary payments and payroll
# ---------------------------------------------------------------------------

class SalaryPaymentSerializer(serializers.ModelSerializer):
    staff_name = serializers.CharField(source='staff_account.user.get_full_name', read_only=True)
    station_name = serializers.CharField(source='station.name', read_only=True)

    class Meta:
        model = SalaryPayment
        fields = [
            'id', 'staff_account', 'staff_name', 'station', 'station_name',
            'period_start', 'period_end', 'payment_date', 'gross_salary',
            'shortage_deductions', 'advance_deductions', 'other_deductions',
            'bonuses_added', 'total_deductions', 'net_salary', 'amount_paid',
            'shortage_allocations', 'payment_method', 'payment_source', 'bank_account',
            'status', 'description', 'notes', 'failure_reason', 'wallet_transaction',
            'bank_transaction', 'approved_by', 'approved_at', 'processed_by',
            'processed_at', 'created_at',
        ]
        read_only_fields = fields


class PeriodMixin(serializers.Serializer):
    period_start = serializers.DateField(error_messages={'required': 'Period start date is required'})
    period_end = serializers.DateField(error_messages={'required': 'Period end date is required'})
    payment_date = serializers.DateField(error_messages={'required': 'Payment date is required'})
    payment_method = serializers.ChoiceField(
        choices=PayrollMethod.choices,
        error_messages={'required': 'Payment method is required', 'invalid_choice': 'Invalid payroll method'}
    )
    payment_source = serializers.ChoiceField(
        choices=PaymentSource.choices,
        error_messages={'required': 'Payment source is required', 'invalid_choice': 'Invalid payment source'}
    )
    bank_account_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    deduct_shortages = serializers.BooleanField(required=False, default=True)
    deduct_advances = serializers.BooleanField(required=False, default=True)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')

    def validate(self, attrs):
        errors = {}
        if attrs['period_end'] <= attrs['period_start']:
            errors['period_end'] = 'Period end must be after period start'
        if attrs['payment_source'] == PaymentSource.BANK_ACCOUNT and not attrs['bank_account_id']:
            errors['bank_account_id'] = 'Bank account is required for bank payments'
        if errors:
            raise serializers.ValidationError(errors)
        return attrs


class SalaryPaymentCreateSerializer(PeriodMixin):
    """Input for POST /api/staff-payments/salary-payments/"""

    staff_account_id = serializers.UUIDField(
        error_messages={'required': 'Staff account is required', 'invalid': 'Staff account is required'}
    )
    station_id = serializers.UUIDField(
        error_messages={'required': 'Station is required', 'invalid': 'Station is required'}
    )
    gross_salary = money_field(message='Valid gross salary is required')
    other_deductions = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.00'),
                                                required=False, default=Decimal('0.00'))
    bonuses = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.00'),
                                       required=False, default=Decimal('0.00'))
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class SalaryCalculationSerializer(serializers.Serializer):
    gross_salary = money_field(required=False, allow_null=True, default=None,
                               message='Valid gross salary is required')
    deduct_shortages = serializers.BooleanField(required=False, default=True)
    deduct_advances = serializers.BooleanField(required=False, default=True)
    other_deductions = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.00'),
                                                required=False, default=Decimal('0.00'))
    bonuses = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.00'),
                                       required=False, default=Decimal('0.00'))


class SalaryApprovalSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class SalaryProcessSerializer(serializers.Serializer):
    reference = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')


class SalaryHistoryFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=SalaryPaymentStatus.choices, required=False)
    year = serializers.IntegerField(min_value=2000, max_value=2100, required=False)


class PayrollGenerateSerializer(PeriodMixin):
    """Input for POST /api/staff-payments/payroll/generate/"""

    station_id = serializers.UUIDField(
        error_messages={'required': 'Station is required', 'invalid': 'Station is required'}
    )
    staff_account_ids = serializers.ListField(child=serializers.UUIDField(), required=False, default=list)


class BulkPaymentSerializer(PayrollGenerateSerializer):
    """Input for POST /api/staff-payments/payroll/process-bulk/"""

    staff_account_ids = serializers.ListField(
        child=serializers.UUIDField(),
        allow_empty=False,
        error_messages={
            'required': 'Select at least one staff member',
            'empty': 'Select at least one staff member',
        }
    )


class PayrollReportFilterSerializer(serializers.Serializer):
    period_start = serializers.DateField(required=False)
    period_end = serializers.DateField(required=False)

    def validate(self, attrs):
        start, end = attrs.get('period_start'), attrs.get('period_end')
        if start and end and end <= start:
            raise serializers.ValidationError({'period_end': 'Period end must be after period start'})
        return attrs


class PayrollSummaryFilterSerializer(serializers.Serializer):
    year = serializers.IntegerField(min_value=2000, max_value=2100, required=False)
    month = serializers.IntegerField(min_value=1, max_value=12, required=False)


class SalaryCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
