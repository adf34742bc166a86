# Generated manually for the staff_accounts app

import uuid
from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('banking', '0001_initial'),
        ('stations', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='StaffAccount',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('salary_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12, validators=[MinValueValidator(Decimal('0.00'))])),
                ('credit_limit', models.DecimalField(blank=True, decimal_places=2, help_text='Maximum the staff member may owe the station (empty = no limit)', max_digits=12, null=True, validators=[MinValueValidator(Decimal('0.00'))])),
                ('current_balance', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('payroll_method', models.CharField(choices=[('STATION_WALLET', 'Station wallet'), ('BANK_TRANSFER', 'Bank transfer'), ('MOBILE_MONEY', 'Mobile money'), ('CASH', 'Cash'), ('MIXED', 'Mixed')], default='STATION_WALLET', max_length=20)),
                ('payment_schedule', models.CharField(choices=[('DAILY', 'Daily'), ('WEEKLY', 'Weekly'), ('BI_WEEKLY', 'Bi-weekly'), ('MONTHLY', 'Monthly'), ('QUARTERLY', 'Quarterly'), ('CUSTOM', 'Custom')], default='MONTHLY', max_length=20)),
                ('bank_name', models.CharField(blank=True, max_length=100)),
                ('bank_account_number', models.CharField(blank=True, max_length=50)),
                ('mobile_money_number', models.CharField(blank=True, max_length=20)),
                ('is_active', models.BooleanField(default=True)),
                ('is_on_hold', models.BooleanField(default=False)),
                ('hold_reason', models.CharField(blank=True, max_length=255)),
                ('outstanding_shortages', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('outstanding_advances', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('total_shortages', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('total_advances', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('total_paid', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('last_payment_date', models.DateField(blank=True, null=True)),
                ('last_shortage_date', models.DateField(blank=True, null=True)),
                ('next_payment_date', models.DateField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='staff_accounts_created', to=settings.AUTH_USER_MODEL)),
                ('station', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='staff_accounts', to='stations.station')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='staff_accounts', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'staff_accounts',
                'ordering': ['user__first_name', 'user__last_name'],
            },
        ),
        migrations.CreateModel(
            name='SalaryPayment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('period_start', models.DateField()),
                ('period_end', models.DateField()),
                ('payment_date', models.DateField()),
                ('gross_salary', models.DecimalField(decimal_places=2, max_digits=12)),
                ('shortage_deductions', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('advance_deductions', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('other_deductions', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('bonuses_added', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('total_deductions', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('net_salary', models.DecimalField(decimal_places=2, max_digits=12)),
                ('amount_paid', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('shortage_allocations', models.JSONField(blank=True, default=list, help_text='[{shortage_id, amount}] deducted oldest shortage first')),
                ('payment_method', models.CharField(choices=[('STATION_WALLET', 'Station wallet'), ('BANK_TRANSFER', 'Bank transfer'), ('MOBILE_MONEY', 'Mobile money'), ('CASH', 'Cash'), ('MIXED', 'Mixed')], max_length=20)),
                ('payment_source', models.CharField(choices=[('STATION_WALLET', 'Station wallet'), ('BANK_ACCOUNT', 'Bank account'), ('PETTY_CASH', 'Petty cash'), ('ISLAND_COLLECTION', 'Island collection'), ('DIRECT_CASH', 'Direct cash')], max_length=20)),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('CALCULATED', 'Calculated'), ('APPROVED', 'Approved'), ('PAID', 'Paid'), ('FAILED', 'Failed'), ('CANCELLED', 'Cancelled')], default='CALCULATED', max_length=12)),
                ('description', models.CharField(blank=True, max_length=500)),
                ('notes', models.TextField(blank=True)),
                ('failure_reason', models.CharField(blank=True, max_length=255)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('processed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('approved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='salary_payments_approved', to=settings.AUTH_USER_MODEL)),
                ('bank_account', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='salary_payments', to='banking.bankaccount')),
                ('bank_transaction', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='salary_payment', to='banking.banktransaction')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='salary_payments_created', to=settings.AUTH_USER_MODEL)),
                ('processed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='salary_payments_processed', to=settings.AUTH_USER_MODEL)),
                ('staff_account', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='salary_payments', to='staff_accounts.staffaccount')),
                ('station', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='salary_payments', to='stations.station')),
                ('wallet_transaction', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='salary_payment', to='banking.wallettransaction')),
            ],
            options={
                'db_table': 'salary_payments',
                'ordering': ['-payment_date', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='StaffTransaction',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('transaction_type', models.CharField(choices=[('SHORTAGE', 'Shortage'), ('ADVANCE', 'Advance'), ('FINE', 'Fine'), ('EXPENSE_CLAIM', 'Expense claim'), ('SALARY_PAYMENT', 'Salary payment'), ('BONUS', 'Bonus'), ('COMMISSION', 'Commission'), ('ALLOWANCE', 'Allowance'), ('REIMBURSEMENT', 'Reimbursement'), ('SETTLEMENT', 'Settlement'), ('SHORTAGE_RECOVERY', 'Shortage recovery'), ('ADVANCE_DEDUCTION', 'Advance deduction'), ('ADJUSTMENT', 'Adjustment'), ('WRITE_OFF', 'Write-off'), ('TRANSFER', 'Transfer')], max_length=20)),
                ('balance_effect', models.CharField(choices=[('DEBIT', 'Staff owes more'), ('CREDIT', 'Staff owes less'), ('NONE', 'No balance change')], default='NONE', max_length=6)),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('APPROVED', 'Approved'), ('REJECTED', 'Rejected'), ('SETTLED', 'Settled')], default='PENDING', max_length=10)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12, validators=[MinValueValidator(Decimal('0.01'))])),
                ('balance_before', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('balance_after', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('description', models.CharField(max_length=500)),
                ('reference_number', models.CharField(blank=True, max_length=100)),
                ('payment_source', models.CharField(blank=True, choices=[('STATION_WALLET', 'Station wallet'), ('BANK_ACCOUNT', 'Bank account'), ('PETTY_CASH', 'Petty cash'), ('ISLAND_COLLECTION', 'Island collection'), ('DIRECT_CASH', 'Direct cash')], max_length=20)),
                ('payment_method', models.CharField(blank=True, choices=[('STATION_WALLET', 'Station wallet'), ('BANK_TRANSFER', 'Bank transfer'), ('MOBILE_MONEY', 'Mobile money'), ('CASH', 'Cash'), ('MIXED', 'Mixed')], max_length=20)),
                ('shift_id', models.UUIDField(blank=True, null=True)),
                ('notes', models.TextField(blank=True)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('settled_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('approved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='staff_transactions_approved', to=settings.AUTH_USER_MODEL)),
                ('bank_account', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='staff_transactions', to='banking.bankaccount')),
                ('bank_transaction', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='staff_transaction', to='banking.banktransaction')),
                ('recorded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='staff_transactions_recorded', to=settings.AUTH_USER_MODEL)),
                ('salary_payment', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='transactions', to='staff_accounts.salarypayment')),
                ('staff_account', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transactions', to='staff_accounts.staffaccount')),
                ('wallet_transaction', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='staff_transaction', to='banking.wallettransaction')),
            ],
            options={
                'db_table': 'staff_transactions',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Shortage',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('original_amount', models.DecimalField(decimal_places=2, max_digits=12, validators=[MinValueValidator(Decimal('0.01'))])),
                ('amount_deducted', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('amount_remaining', models.DecimalField(decimal_places=2, max_digits=12)),
                ('description', models.CharField(max_length=500)),
                ('reference_number', models.CharField(blank=True, max_length=100)),
                ('shortage_date', models.DateField()),
                ('due_date', models.DateField(blank=True, null=True)),
                ('is_fully_deducted', models.BooleanField(default=False)),
                ('settled_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('shortage_transaction', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='shortage_record', to='staff_accounts.stafftransaction')),
                ('staff_account', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='shortages', to='staff_accounts.staffaccount')),
            ],
            options={
                'db_table': 'staff_shortages',
                'ordering': ['shortage_date', 'created_at'],
            },
        ),
        # Shortages and their recoveries reference each other
        migrations.AddField(
            model_name='stafftransaction',
            name='shortage',
            field=models.ForeignKey(blank=True, help_text='Shortage this recovery or write-off pays down', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='recoveries', to='staff_accounts.shortage'),
        ),
        # Indexes and constraints
        migrations.AddConstraint(
            model_name='staffaccount',
            constraint=models.UniqueConstraint(fields=('user', 'station'), name='unique_staff_account_per_station'),
        ),
        migrations.AddIndex(
            model_name='staffaccount',
            index=models.Index(fields=['station', 'is_active'], name='staff_accou_station_7633c4_idx'),
        ),
        migrations.AddIndex(
            model_name='stafftransaction',
            index=models.Index(fields=['staff_account', 'transaction_type'], name='staff_trans_staff_a_4c035c_idx'),
        ),
        migrations.AddIndex(
            model_name='stafftransaction',
            index=models.Index(fields=['status', 'created_at'], name='staff_trans_status_d660fb_idx'),
        ),
        migrations.AddIndex(
            model_name='shortage',
            index=models.Index(fields=['staff_account', 'is_fully_deducted'], name='staff_short_staff_a_4475ad_idx'),
        ),
        migrations.AddIndex(
            model_name='salarypayment',
            index=models.Index(fields=['station', 'period_start', 'period_end'], name='salary_paym_station_e01ee5_idx'),
        ),
        migrations.AddIndex(
            model_name='salarypayment',
            index=models.Index(fields=['staff_account', 'status'], name='salary_paym_staff_a_d13d41_idx'),
        ),
    ]
