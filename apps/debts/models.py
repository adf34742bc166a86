# ==========================================
# apps/debts/models.py
# ==========================================

from decimal import Decimal
import re
import uuid

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class DebtorType(models.TextChoices):
    CUSTOMER = 'CUSTOMER', 'Customer'
    PAYMENT_PROCESSOR = 'PAYMENT_PROCESSOR', 'Payment processor'


class DebtorCategory(models.TextChoices):
    INDIVIDUAL = 'INDIVIDUAL', 'Individual'
    CORPORATE = 'CORPORATE', 'Corporate'
    GOVERNMENT = 'GOVERNMENT', 'Government'
    TRANSPORT = 'TRANSPORT', 'Transport operator'
    MOBILE_MONEY = 'MOBILE_MONEY', 'Mobile money'
    CARD = 'CARD', 'Card processor'


class Debtor(models.Model):
    """
    A customer (or payment processor) that can owe money at any station
    of its company.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey('stations.Company', on_delete=models.CASCADE, related_name='debtors')
    name = models.CharField(max_length=200)
    name_normalized = models.CharField(max_length=200, db_index=True, editable=False)
    debtor_type = models.CharField(max_length=20, choices=DebtorType.choices, default=DebtorType.CUSTOMER)
    category = models.CharField(max_length=20, choices=DebtorCategory.choices, default=DebtorCategory.INDIVIDUAL)
    phone = models.CharField(max_length=20)
    email = models.EmailField(blank=True)
    contact_person = models.CharField(max_length=100, blank=True)
    address = models.CharField(max_length=255, blank=True)
    tax_id = models.CharField(max_length=50, blank=True)
    credit_limit = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text="Maximum total debt across all stations (empty = unlimited)"
    )
    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='debtors_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'debtors'
        ordering = ['name']
        indexes = [
            models.Index(fields=['company', 'debtor_type']),
            models.Index(fields=['company', 'phone']),
        ]

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        self.name_normalized = self._normalize_string(self.name)
        super().save(*args, **kwargs)

    @staticmethod
    def _normalize_string(text):
        text = text.lower().strip()
        text = re.sub(r'\s+', ' ', text)
        text = re.sub(r'[^\w\s-]', '', text)
        return text


class StationDebtorAccount(models.Model):
    """
    A debtor's running balance at one station.

    ``current_debt`` always equals ``total_debited - total_credited`` and is
    never negative.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    station = models.ForeignKey('stations.Station', on_delete=models.PROTECT, related_name='debtor_accounts')
    debtor = models.ForeignKey(Debtor, on_delete=models.PROTECT, related_name='station_accounts')
    current_debt = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    total_debited = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    total_credited = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    last_transaction_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'station_debtor_accounts'
        constraints = [
            models.UniqueConstraint(fields=['station', 'debtor'], name='unique_station_debtor_account'),
        ]

    def __str__(self):
        return f"{self.debtor.name} @ {self.station.name}: {self.current_debt}"


class TransactionDirection(models.TextChoices):
    DEBIT = 'DEBIT', 'Debit'
    CREDIT = 'CREDIT', 'Credit'


class TransactionCategory(models.TextChoices):
    SALE = 'SALE', 'Fuel sale on credit'
    CASH_SETTLEMENT = 'CASH_SETTLEMENT', 'Cash settlement'
    BANK_SETTLEMENT = 'BANK_SETTLEMENT', 'Bank settlement'
    ELECTRONIC_TRANSFER = 'ELECTRONIC_TRANSFER', 'Electronic transfer'
    CROSS_STATION = 'CROSS_STATION', 'Cross-station settlement'
    WRITE_OFF = 'WRITE_OFF', 'Write-off'
    REVERSAL = 'REVERSAL', 'Reversal'


class TransferStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    COMPLETED = 'COMPLETED', 'Completed'
    CANCELLED = 'CANCELLED', 'Cancelled'


class PaymentMethod(models.TextChoices):
    CASH = 'CASH', 'Cash'
    BANK = 'BANK', 'Bank'
    ELECTRONIC = 'ELECTRONIC', 'Electronic (payment processor)'
    NONE = 'NONE', 'No payment'


class AllocationMethod(models.TextChoices):
    EQUAL = 'EQUAL', 'Equal split'
    PROPORTIONAL = 'PROPORTIONAL', 'Proportional to debt'
    HIGHEST_FIRST = 'HIGHEST_FIRST', 'Highest debt first'
    OLDEST_FIRST = 'OLDEST_FIRST', 'Oldest debt first'
    MANUAL = 'MANUAL', 'Manual'


# Settlement categories that may be reversed
REVERSIBLE_CATEGORIES = (
    TransactionCategory.CASH_SETTLEMENT,
    TransactionCategory.BANK_SETTLEMENT,
    TransactionCategory.ELECTRONIC_TRANSFER,
    TransactionCategory.CROSS_STATION,
)


class AccountTransfer(models.Model):
    """
    One settlement operation (cash, bank, electronic, cross-station,
    write-off or reversal) grouping the ledger rows it produced.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey('stations.Company', on_delete=models.CASCADE, related_name='account_transfers')
    debtor = models.ForeignKey(Debtor, on_delete=models.PROTECT, related_name='transfers')
    target_debtor = models.ForeignKey(
        Debtor,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='incoming_transfers',
        help_text="Payment processor taking over the debt (electronic transfers)"
    )
    station = models.ForeignKey(
        'stations.Station',
        on_delete=models.PROTECT,
        related_name='account_transfers',
        help_text="Station where the payment was received"
    )
    category = models.CharField(max_length=20, choices=TransactionCategory.choices)
    payment_method = models.CharField(max_length=12, choices=PaymentMethod.choices)
    transaction_mode = models.CharField(max_length=20, blank=True)
    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    status = models.CharField(max_length=10, choices=TransferStatus.choices, default=TransferStatus.COMPLETED)

    bank_account = models.ForeignKey(
        'banking.BankAccount',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='debt_transfers'
    )
    bank_transaction = models.ForeignKey(
        'banking.BankTransaction',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='debt_transfers'
    )
    allocation_method = models.CharField(max_length=15, choices=AllocationMethod.choices, blank=True)
    allocations = models.JSONField(default=list, blank=True)

    payment_reference = models.CharField(max_length=100, blank=True)
    description = models.CharField(max_length=500, blank=True)
    reason = models.CharField(max_length=255, blank=True)
    shift_id = models.UUIDField(null=True, blank=True)
    reversal_of = models.OneToOneField(
        'self',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='reversal'
    )

    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='account_transfers'
    )
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'account_transfers'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['company', '-created_at']),
            models.Index(fields=['debtor', 'status']),
            models.Index(fields=['category', 'status']),
        ]

    def __str__(self):
        return f"{self.category} {self.amount} ({self.status})"

    @property
    def is_reversed(self):
        return hasattr(self, 'reversal')


class DebtorTransaction(models.Model):
    """Ledger row on a station debtor account."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    account = models.ForeignKey(StationDebtorAccount, on_delete=models.PROTECT, related_name='transactions')
    transfer = models.ForeignKey(
        AccountTransfer,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='ledger_entries'
    )
    direction = models.CharField(max_length=6, choices=TransactionDirection.choices)
    category = models.CharField(max_length=20, choices=TransactionCategory.choices)
    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    balance_before = models.DecimalField(max_digits=14, decimal_places=2)
    balance_after = models.DecimalField(max_digits=14, decimal_places=2)

    description = models.CharField(max_length=500, blank=True)
    payment_reference = models.CharField(max_length=100, blank=True)
    vehicle_plate = models.CharField(max_length=20, blank=True)
    shift_id = models.UUIDField(null=True, blank=True)
    reversed_by = models.OneToOneField(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reverses'
    )

    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='debtor_transactions'
    )
    transaction_date = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'debtor_transactions'
        ordering = ['-transaction_date', '-created_at']
        indexes = [
            models.Index(fields=['account', 'transaction_date']),
            models.Index(fields=['category', '-transaction_date']),
        ]

    def __str__(self):
        return f"{self.direction} {self.amount} ({self.category})"

    @property
    def station(self):
        return self.account.station
