# ==========================================
# apps/banking/models.py
# ==========================================

from decimal import Decimal
import uuid

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class Bank(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=150)
    code = models.CharField(max_length=20, unique=True)
    swift_code = models.CharField(max_length=11, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'banks'
        ordering = ['name']

    def __str__(self):
        return self.name


class BankAccount(models.Model):
    """A company's account at a bank. ``current_balance`` is the book balance."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey('stations.Company', on_delete=models.CASCADE, related_name='bank_accounts')
    bank = models.ForeignKey(Bank, on_delete=models.PROTECT, related_name='accounts')
    account_number = models.CharField(max_length=50)
    account_name = models.CharField(max_length=150)
    branch = models.CharField(max_length=100, blank=True)
    currency = models.CharField(max_length=3, default=settings.DEFAULT_CURRENCY)
    current_balance = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'bank_accounts'
        unique_together = [['bank', 'account_number']]
        ordering = ['bank__name', 'account_number']

    def __str__(self):
        return f"{self.bank.name} - {self.account_number}"


class StationWallet(models.Model):
    """Cash held at a station. Every movement is journaled in WalletTransaction."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    station = models.OneToOneField('stations.Station', on_delete=models.CASCADE, related_name='wallet')
    opening_balance = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    current_balance = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    min_balance = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    max_balance = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'station_wallets'

    def __str__(self):
        return f"Wallet {self.station.name}: {self.current_balance}"


class WalletDirection(models.TextChoices):
    CREDIT = 'CREDIT', 'Credit'
    DEBIT = 'DEBIT', 'Debit'


class WalletSource(models.TextChoices):
    SALES_COLLECTION = 'SALES_COLLECTION', 'Sales collection'
    DEBT_SETTLEMENT = 'DEBT_SETTLEMENT', 'Debt settlement'
    BANK_DEPOSIT = 'BANK_DEPOSIT', 'Bank deposit'
    BANK_WITHDRAWAL = 'BANK_WITHDRAWAL', 'Bank withdrawal'
    SALARY_PAYMENT = 'SALARY_PAYMENT', 'Salary payment'
    STAFF_PAYMENT = 'STAFF_PAYMENT', 'Staff payment'
    REVERSAL = 'REVERSAL', 'Reversal'
    ADJUSTMENT = 'ADJUSTMENT', 'Adjustment'


class WalletTransaction(models.Model):
    """Audit row for one wallet movement."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    wallet = models.ForeignKey(StationWallet, on_delete=models.CASCADE, related_name='transactions')
    direction = models.CharField(max_length=6, choices=WalletDirection.choices)
    source = models.CharField(max_length=20, choices=WalletSource.choices)
    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    balance_before = models.DecimalField(max_digits=14, decimal_places=2)
    balance_after = models.DecimalField(max_digits=14, decimal_places=2)
    reference = models.CharField(max_length=100, blank=True)
    description = models.CharField(max_length=255, blank=True)
    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='wallet_transactions'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'wallet_transactions'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['wallet', '-created_at']),
        ]

    def __str__(self):
        return f"{self.direction} {self.amount} ({self.source})"


class BankTransactionType(models.TextChoices):
    DEPOSIT = 'DEPOSIT', 'Deposit'
    WITHDRAWAL = 'WITHDRAWAL', 'Withdrawal'
    DEBT_SETTLEMENT = 'DEBT_SETTLEMENT', 'Debt settlement'
    REVERSAL = 'REVERSAL', 'Reversal'


# Types that increase the bank account balance
INFLOW_TYPES = (BankTransactionType.DEPOSIT, BankTransactionType.DEBT_SETTLEMENT)


class BankTransactionMode(models.TextChoices):
    BANK_TRANSFER = 'BANK_TRANSFER', 'Bank transfer'
    CASH_DEPOSIT = 'CASH_DEPOSIT', 'Cash deposit'
    CHEQUE = 'CHEQUE', 'Cheque'
    MOBILE_MONEY = 'MOBILE_MONEY', 'Mobile money'
    EFT = 'EFT', 'Electronic funds transfer'


class BankTransactionStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    COMPLETED = 'COMPLETED', 'Completed'
    CANCELLED = 'CANCELLED', 'Cancelled'


class BankTransaction(models.Model):
    """
    Movement on a company bank account.

    Balance snapshots are taken when the transaction completes; pending
    transactions (uncleared cheques) do not touch the balance.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey('stations.Company', on_delete=models.CASCADE, related_name='bank_transactions')
    bank_account = models.ForeignKey(BankAccount, on_delete=models.PROTECT, related_name='transactions')
    station = models.ForeignKey(
        'stations.Station',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='bank_transactions'
    )
    transaction_type = models.CharField(max_length=20, choices=BankTransactionType.choices)
    transaction_mode = models.CharField(max_length=20, choices=BankTransactionMode.choices)
    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    reference = models.CharField(max_length=100, blank=True)
    description = models.CharField(max_length=500, blank=True)
    status = models.CharField(
        max_length=10,
        choices=BankTransactionStatus.choices,
        default=BankTransactionStatus.COMPLETED
    )
    previous_balance = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    new_balance = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)

    transaction_date = models.DateTimeField()
    value_date = models.DateField(null=True, blank=True)

    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='bank_transactions_recorded'
    )
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='bank_transactions_approved'
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'bank_transactions'
        ordering = ['-transaction_date', '-created_at']
        indexes = [
            models.Index(fields=['company', '-transaction_date']),
            models.Index(fields=['bank_account', 'status']),
            models.Index(fields=['station', '-transaction_date']),
        ]

    def __str__(self):
        return f"{self.transaction_type} {self.amount} ({self.status})"

    @property
    def is_inflow(self):
        return self.transaction_type in INFLOW_TYPES
