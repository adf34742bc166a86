# ==========================================
# apps/staff_accounts/models.py
# ==========================================

from decimal import Decimal
import uuid

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class PayrollMethod(models.TextChoices):
    STATION_WALLET = 'STATION_WALLET', 'Station wallet'
    BANK_TRANSFER = 'BANK_TRANSFER', 'Bank transfer'
    MOBILE_MONEY = 'MOBILE_MONEY', 'Mobile money'
    CASH = 'CASH', 'Cash'
    MIXED = 'MIXED', 'Mixed'


class PaymentSchedule(models.TextChoices):
    DAILY = 'DAILY', 'Daily'
    WEEKLY = 'WEEKLY', 'Weekly'
    BI_WEEKLY = 'BI_WEEKLY', 'Bi-weekly'
    MONTHLY = 'MONTHLY', 'Monthly'
    QUARTERLY = 'QUARTERLY', 'Quarterly'
    CUSTOM = 'CUSTOM', 'Custom'


class PaymentSource(models.TextChoices):
    STATION_WALLET = 'STATION_WALLET', 'Station wallet'
    BANK_ACCOUNT = 'BANK_ACCOUNT', 'Bank account'
    PETTY_CASH = 'PETTY_CASH', 'Petty cash'
    ISLAND_COLLECTION = 'ISLAND_COLLECTION', 'Island collection'
    DIRECT_CASH = 'DIRECT_CASH', 'Direct cash'


class StaffAccount(models.Model):
    """
    A staff member's money account at one station.

    ``current_balance`` is what the station owes the staff member; a
    negative balance means the staff member owes the station (shortages,
    advances, fines).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='staff_accounts')
    station = models.ForeignKey('stations.Station', on_delete=models.PROTECT, related_name='staff_accounts')

    salary_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    credit_limit = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text="Maximum the staff member may owe the station (empty = no limit)"
    )
    current_balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    payroll_method = models.CharField(
        max_length=20,
        choices=PayrollMethod.choices,
        default=PayrollMethod.STATION_WALLET
    )
    payment_schedule = models.CharField(
        max_length=20,
        choices=PaymentSchedule.choices,
        default=PaymentSchedule.MONTHLY
    )
    bank_name = models.CharField(max_length=100, blank=True)
    bank_account_number = models.CharField(max_length=50, blank=True)
    mobile_money_number = models.CharField(max_length=20, blank=True)

    is_active = models.BooleanField(default=True)
    is_on_hold = models.BooleanField(default=False)
    hold_reason = models.CharField(max_length=255, blank=True)

    # Running totals
    outstanding_shortages = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    outstanding_advances = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_shortages = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_advances = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    last_payment_date = models.DateField(null=True, blank=True)
    last_shortage_date = models.DateField(null=True, blank=True)
    next_payment_date = models.DateField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='staff_accounts_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'staff_accounts'
        constraints = [
            models.UniqueConstraint(fields=['user', 'station'], name='unique_staff_account_per_station'),
        ]
        indexes = [
            models.Index(fields=['station', 'is_active']),
        ]
        ordering = ['user__first_name', 'user__last_name']

    def __str__(self):
        return f"{self.user.get_full_name()} @ {self.station.name}"

    @property
    def is_payable(self):
        return self.is_active and not self.is_on_hold

    @property
    def amount_owed(self):
        """What the staff member owes the station (zero when in credit)."""
        return max(-self.current_balance, Decimal('0.00'))


class StaffTransactionType(models.TextChoices):
    SHORTAGE = 'SHORTAGE', 'Shortage'
    ADVANCE = 'ADVANCE', 'Advance'
    FINE = 'FINE', 'Fine'
    EXPENSE_CLAIM = 'EXPENSE_CLAIM', 'Expense claim'
    SALARY_PAYMENT = 'SALARY_PAYMENT', 'Salary payment'
    BONUS = 'BONUS', 'Bonus'
    COMMISSION = 'COMMISSION', 'Commission'
    ALLOWANCE = 'ALLOWANCE', 'Allowance'
    REIMBURSEMENT = 'REIMBURSEMENT', 'Reimbursement'
    SETTLEMENT = 'SETTLEMENT', 'Settlement'
    SHORTAGE_RECOVERY = 'SHORTAGE_RECOVERY', 'Shortage recovery'
    ADVANCE_DEDUCTION = 'ADVANCE_DEDUCTION', 'Advance deduction'
    ADJUSTMENT = 'ADJUSTMENT', 'Adjustment'
    WRITE_OFF = 'WRITE_OFF', 'Write-off'
    TRANSFER = 'TRANSFER', 'Transfer'


class StaffTransactionStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    APPROVED = 'APPROVED', 'Approved'
    REJECTED = 'REJECTED', 'Rejected'
    SETTLED = 'SETTLED', 'Settled'


class BalanceEffect(models.TextChoices):
    DEBIT = 'DEBIT', 'Staff owes more'
    CREDIT = 'CREDIT', 'Staff owes less'
    NONE = 'NONE', 'No balance change'


# Staff owes the station once these are approved
DEBIT_TYPES = (
    StaffTransactionType.SHORTAGE,
    StaffTransactionType.ADVANCE,
    StaffTransactionType.FINE,
)

# Reduce what the staff member owes
CREDIT_TYPES = (
    StaffTransactionType.SETTLEMENT,
    StaffTransactionType.SHORTAGE_RECOVERY,
    StaffTransactionType.ADVANCE_DEDUCTION,
    StaffTransactionType.WRITE_OFF,
)

# Money handed to the staff member by ``process_transaction_payment``
PAYABLE_TYPES = (
    StaffTransactionType.ADVANCE,
    StaffTransactionType.SALARY_PAYMENT,
    StaffTransactionType.BONUS,
    StaffTransactionType.COMMISSION,
    StaffTransactionType.ALLOWANCE,
    StaffTransactionType.EXPENSE_CLAIM,
    StaffTransactionType.REIMBURSEMENT,
    StaffTransactionType.TRANSFER,
)

# Need a payment method when recorded
EARNING_TYPES = (
    StaffTransactionType.SALARY_PAYMENT,
    StaffTransactionType.BONUS,
    StaffTransactionType.COMMISSION,
    StaffTransactionType.ALLOWANCE,
)

# Only created by shortage settlement and payroll processing
SYSTEM_TYPES = (
    StaffTransactionType.SHORTAGE_RECOVERY,
    StaffTransactionType.ADVANCE_DEDUCTION,
)


def balance_effect_for(transaction_type, adjustment_effect=None):
    if transaction_type in DEBIT_TYPES:
        return BalanceEffect.DEBIT
    if transaction_type in CREDIT_TYPES:
        return BalanceEffect.CREDIT
    if transaction_type == StaffTransactionType.ADJUSTMENT:
        return adjustment_effect or BalanceEffect.CREDIT
    return BalanceEffect.NONE


class StaffTransaction(models.Model):
    """One movement on a staff account, with balance snapshots once applied."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    staff_account = models.ForeignKey(StaffAccount, on_delete=models.PROTECT, related_name='transactions')
    transaction_type = models.CharField(max_length=20, choices=StaffTransactionType.choices)
    balance_effect = models.CharField(max_length=6, choices=BalanceEffect.choices, default=BalanceEffect.NONE)
    status = models.CharField(
        max_length=10,
        choices=StaffTransactionStatus.choices,
        default=StaffTransactionStatus.PENDING
    )
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    balance_before = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    balance_after = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    description = models.CharField(max_length=500)
    reference_number = models.CharField(max_length=100, blank=True)
    payment_source = models.CharField(max_length=20, choices=PaymentSource.choices, blank=True)
    payment_method = models.CharField(max_length=20, choices=PayrollMethod.choices, blank=True)
    shift_id = models.UUIDField(null=True, blank=True)

    shortage = models.ForeignKey(
        'Shortage',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='recoveries',
        help_text="Shortage this recovery or write-off pays down"
    )
    salary_payment = models.ForeignKey(
        'SalaryPayment',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='transactions'
    )
    bank_account = models.ForeignKey(
        'banking.BankAccount',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='staff_transactions'
    )
    wallet_transaction = models.OneToOneField(
        'banking.WalletTransaction',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='staff_transaction'
    )
    bank_transaction = models.OneToOneField(
        'banking.BankTransaction',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='staff_transaction'
    )

    notes = models.TextField(blank=True)
    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='staff_transactions_recorded'
    )
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='staff_transactions_approved'
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    settled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'staff_transactions'
        indexes = [
            models.Index(fields=['staff_account', 'transaction_type']),
            models.Index(fields=['status', 'created_at']),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.get_transaction_type_display()} {self.amount} ({self.staff_account})"

    @property
    def station(self):
        return self.staff_account.station


class Shortage(models.Model):
    """
    Cash or fuel missing after a shift, owed by the staff member until it
    is recovered from salary, repaid or written off.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    staff_account = models.ForeignKey(StaffAccount, on_delete=models.PROTECT, related_name='shortages')
    shortage_transaction = models.OneToOneField(
        StaffTransaction,
        on_delete=models.PROTECT,
        related_name='shortage_record'
    )
    original_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    amount_deducted = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    amount_remaining = models.DecimalField(max_digits=12, decimal_places=2)
    description = models.CharField(max_length=500)
    reference_number = models.CharField(max_length=100, blank=True)
    shortage_date = models.DateField()
    due_date = models.DateField(null=True, blank=True)
    is_fully_deducted = models.BooleanField(default=False)
    settled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'staff_shortages'
        indexes = [
            models.Index(fields=['staff_account', 'is_fully_deducted']),
        ]
        ordering = ['shortage_date', 'created_at']

    def __str__(self):
        return f"Shortage {self.original_amount} ({self.staff_account})"

    @property
    def station(self):
        return self.staff_account.station


class SalaryPaymentStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    CALCULATED = 'CALCULATED', 'Calculated'
    APPROVED = 'APPROVED', 'Approved'
    PAID = 'PAID', 'Paid'
    FAILED = 'FAILED', 'Failed'
    CANCELLED = 'CANCELLED', 'Cancelled'


class SalaryPayment(models.Model):
    """
    Salary for one staff account and period.

    ``net_salary = gross_salary - total_deductions + bonuses_added`` where
    deductions never exceed the gross salary.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    staff_account = models.ForeignKey(StaffAccount, on_delete=models.PROTECT, related_name='salary_payments')
    station = models.ForeignKey('stations.Station', on_delete=models.PROTECT, related_name='salary_payments')

    period_start = models.DateField()
    period_end = models.DateField()
    payment_date = models.DateField()

    gross_salary = models.DecimalField(max_digits=12, decimal_places=2)
    shortage_deductions = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    advance_deductions = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    other_deductions = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    bonuses_added = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_deductions = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    net_salary = models.DecimalField(max_digits=12, decimal_places=2)
    amount_paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    shortage_allocations = models.JSONField(
        default=list,
        blank=True,
        help_text="[{shortage_id, amount}] deducted oldest shortage first"
    )

    payment_method = models.CharField(max_length=20, choices=PayrollMethod.choices)
    payment_source = models.CharField(max_length=20, choices=PaymentSource.choices)
    bank_account = models.ForeignKey(
        'banking.BankAccount',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='salary_payments'
    )
    status = models.CharField(
        max_length=12,
        choices=SalaryPaymentStatus.choices,
        default=SalaryPaymentStatus.CALCULATED
    )
    description = models.CharField(max_length=500, blank=True)
    notes = models.TextField(blank=True)
    failure_reason = models.CharField(max_length=255, blank=True)

    wallet_transaction = models.OneToOneField(
        'banking.WalletTransaction',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='salary_payment'
    )
    bank_transaction = models.OneToOneField(
        'banking.BankTransaction',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='salary_payment'
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='salary_payments_created'
    )
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='salary_payments_approved'
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    processed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='salary_payments_processed'
    )
    processed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'salary_payments'
        indexes = [
            models.Index(fields=['station', 'period_start', 'period_end']),
            models.Index(fields=['staff_account', 'status']),
        ]
        ordering = ['-payment_date', '-created_at']

    def __str__(self):
        return f"Salary {self.period_start}..{self.period_end} ({self.staff_account})"


# A staff account may hold only one of these per period
OPEN_SALARY_STATUSES = (
    SalaryPaymentStatus.PENDING,
    SalaryPaymentStatus.CALCULATED,
    SalaryPaymentStatus.APPROVED,
    SalaryPaymentStatus.PAID,
    SalaryPaymentStatus.FAILED,
)
