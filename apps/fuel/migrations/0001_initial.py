# Generated manually for the fuel app

import uuid
from decimal import Decimal
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('stations', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='FuelCategory',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=100)),
                ('code', models.CharField(max_length=20)),
                ('description', models.TextField(blank=True)),
                ('typical_density', models.DecimalField(decimal_places=3, help_text='kg/L', max_digits=6, validators=[MinValueValidator(Decimal('0.001'))])),
                ('color', models.CharField(help_text='Hex colour used on dashboards', max_length=7)),
                ('hazard_class', models.CharField(max_length=50)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='fuel_categories', to='stations.company')),
            ],
            options={
                'verbose_name_plural': 'fuel categories',
                'db_table': 'fuel_categories',
                'ordering': ['name'],
                'unique_together': {('company', 'code')},
            },
        ),
        migrations.CreateModel(
            name='FuelSubType',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=100)),
                ('code', models.CharField(max_length=20)),
                ('description', models.TextField(blank=True)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('category', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='subtypes', to='fuel.fuelcategory')),
            ],
            options={
                'db_table': 'fuel_subtypes',
                'ordering': ['category__name', 'name'],
            },
        ),
        migrations.CreateModel(
            name='FuelProduct',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=150)),
                ('fuel_code', models.CharField(max_length=30)),
                ('description', models.TextField(blank=True)),
                ('density', models.DecimalField(blank=True, decimal_places=3, help_text='kg/L', max_digits=6, null=True, validators=[MinValueValidator(Decimal('0.001')), MaxValueValidator(Decimal('1.5'))])),
                ('octane_rating', models.DecimalField(blank=True, decimal_places=1, max_digits=5, null=True, validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))])),
                ('sulfur_content', models.DecimalField(blank=True, decimal_places=2, help_text='ppm', max_digits=8, null=True, validators=[MinValueValidator(Decimal('0'))])),
                ('quality_standards', models.JSONField(blank=True, default=dict)),
                ('min_selling_price', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('max_selling_price', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('subtype', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='products', to='fuel.fuelsubtype')),
            ],
            options={
                'db_table': 'fuel_products',
                'ordering': ['name'],
            },
        ),
        migrations.AddIndex(
            model_name='fuelproduct',
            index=models.Index(fields=['fuel_code'], name='fuel_produc_fuel_co_22d128_idx'),
        ),
    ]
