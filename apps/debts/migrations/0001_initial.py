# Generated manually for the debts app

import uuid
from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('banking', '0001_initial'),
        ('stations', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Debtor',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200)),
                ('name_normalized', models.CharField(db_index=True, editable=False, max_length=200)),
                ('debtor_type', models.CharField(choices=[('CUSTOMER', 'Customer'), ('PAYMENT_PROCESSOR', 'Payment processor')], default='CUSTOMER', max_length=20)),
                ('category', models.CharField(choices=[('INDIVIDUAL', 'Individual'), ('CORPORATE', 'Corporate'), ('GOVERNMENT', 'Government'), ('TRANSPORT', 'Transport operator'), ('MOBILE_MONEY', 'Mobile money'), ('CARD', 'Card processor')], default='INDIVIDUAL', max_length=20)),
                ('phone', models.CharField(max_length=20)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('contact_person', models.CharField(blank=True, max_length=100)),
                ('address', models.CharField(blank=True, max_length=255)),
                ('tax_id', models.CharField(blank=True, max_length=50)),
                ('credit_limit', models.DecimalField(blank=True, decimal_places=2, help_text='Maximum total debt across all stations (empty = unlimited)', max_digits=14, null=True, validators=[MinValueValidator(Decimal('0.00'))])),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='debtors', to='stations.company')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='debtors_created', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'debtors',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='StationDebtorAccount',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('current_debt', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('total_debited', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('total_credited', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('last_transaction_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('debtor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='station_accounts', to='debts.debtor')),
                ('station', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='debtor_accounts', to='stations.station')),
            ],
            options={
                'db_table': 'station_debtor_accounts',
            },
        ),
        migrations.CreateModel(
            name='AccountTransfer',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('category', models.CharField(choices=[('SALE', 'Fuel sale on credit'), ('CASH_SETTLEMENT', 'Cash settlement'), ('BANK_SETTLEMENT', 'Bank settlement'), ('ELECTRONIC_TRANSFER', 'Electronic transfer'), ('CROSS_STATION', 'Cross-station settlement'), ('WRITE_OFF', 'Write-off'), ('REVERSAL', 'Reversal')], max_length=20)),
                ('payment_method', models.CharField(choices=[('CASH', 'Cash'), ('BANK', 'Bank'), ('ELECTRONIC', 'Electronic (payment processor)'), ('NONE', 'No payment')], max_length=12)),
                ('transaction_mode', models.CharField(blank=True, max_length=20)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=14, validators=[MinValueValidator(Decimal('0.01'))])),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('COMPLETED', 'Completed'), ('CANCELLED', 'Cancelled')], default='COMPLETED', max_length=10)),
                ('allocation_method', models.CharField(blank=True, choices=[('EQUAL', 'Equal split'), ('PROPORTIONAL', 'Proportional to debt'), ('HIGHEST_FIRST', 'Highest debt first'), ('OLDEST_FIRST', 'Oldest debt first'), ('MANUAL', 'Manual')], max_length=15)),
                ('allocations', models.JSONField(blank=True, default=list)),
                ('payment_reference', models.CharField(blank=True, max_length=100)),
                ('description', models.CharField(blank=True, max_length=500)),
                ('reason', models.CharField(blank=True, max_length=255)),
                ('shift_id', models.UUIDField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('bank_account', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='debt_transfers', to='banking.bankaccount')),
                ('bank_transaction', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='debt_transfers', to='banking.banktransaction')),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='account_transfers', to='stations.company')),
                ('debtor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transfers', to='debts.debtor')),
                ('recorded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='account_transfers', to=settings.AUTH_USER_MODEL)),
                ('reversal_of', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='reversal', to='debts.accounttransfer')),
                ('station', models.ForeignKey(help_text='Station where the payment was received', on_delete=django.db.models.deletion.PROTECT, related_name='account_transfers', to='stations.station')),
                ('target_debtor', models.ForeignKey(blank=True, help_text='Payment processor taking over the debt (electronic transfers)', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='incoming_transfers', to='debts.debtor')),
            ],
            options={
                'db_table': 'account_transfers',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='DebtorTransaction',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('direction', models.CharField(choices=[('DEBIT', 'Debit'), ('CREDIT', 'Credit')], max_length=6)),
                ('category', models.CharField(choices=[('SALE', 'Fuel sale on credit'), ('CASH_SETTLEMENT', 'Cash settlement'), ('BANK_SETTLEMENT', 'Bank settlement'), ('ELECTRONIC_TRANSFER', 'Electronic transfer'), ('CROSS_STATION', 'Cross-station settlement'), ('WRITE_OFF', 'Write-off'), ('REVERSAL', 'Reversal')], max_length=20)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=14, validators=[MinValueValidator(Decimal('0.01'))])),
                ('balance_before', models.DecimalField(decimal_places=2, max_digits=14)),
                ('balance_after', models.DecimalField(decimal_places=2, max_digits=14)),
                ('description', models.CharField(blank=True, max_length=500)),
                ('payment_reference', models.CharField(blank=True, max_length=100)),
                ('vehicle_plate', models.CharField(blank=True, max_length=20)),
                ('shift_id', models.UUIDField(blank=True, null=True)),
                ('transaction_date', models.DateTimeField(default=django.utils.timezone.now)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('account', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transactions', to='debts.stationdebtoraccount')),
                ('recorded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='debtor_transactions', to=settings.AUTH_USER_MODEL)),
                ('reversed_by', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reverses', to='debts.debtortransaction')),
                ('transfer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to='debts.accounttransfer')),
            ],
            options={
                'db_table': 'debtor_transactions',
                'ordering': ['-transaction_date', '-created_at'],
            },
        ),
        # Indexes and constraints
        migrations.AddIndex(
            model_name='debtor',
            index=models.Index(fields=['company', 'debtor_type'], name='debtors_company_d0889a_idx'),
        ),
        migrations.AddIndex(
            model_name='debtor',
            index=models.Index(fields=['company', 'phone'], name='debtors_company_34c0cc_idx'),
        ),
        migrations.AddConstraint(
            model_name='stationdebtoraccount',
            constraint=models.UniqueConstraint(fields=('station', 'debtor'), name='unique_station_debtor_account'),
        ),
        migrations.AddIndex(
            model_name='accounttransfer',
            index=models.Index(fields=['company', '-created_at'], name='account_tra_company_43251a_idx'),
        ),
        migrations.AddIndex(
            model_name='accounttransfer',
            index=models.Index(fields=['debtor', 'status'], name='account_tra_debtor__b5fb02_idx'),
        ),
        migrations.AddIndex(
            model_name='accounttransfer',
            index=models.Index(fields=['category', 'status'], name='account_tra_categor_8b2910_idx'),
        ),
        migrations.AddIndex(
            model_name='debtortransaction',
            index=models.Index(fields=['account', 'transaction_date'], name='debtor_tran_account_28ae38_idx'),
        ),
        migrations.AddIndex(
            model_name='debtortransaction',
            index=models.Index(fields=['category', '-transaction_date'], name='debtor_tran_categor_3ae3ce_idx'),
        ),
    ]
