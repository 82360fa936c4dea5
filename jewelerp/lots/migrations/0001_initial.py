from decimal import Decimal
from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion


def lot_fields():
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('lot_number', models.CharField(db_index=True, max_length=100, unique=True)),
        ('quantity', models.PositiveIntegerField(default=0)),
        ('weight', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
        ('available_quantity', models.PositiveIntegerField(default=0)),
        ('available_weight', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=10)),
        ('price_per_carat', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
        ('supplier', models.CharField(blank=True, max_length=200)),
        ('received_date', models.DateField(blank=True, null=True)),
        ('status', models.CharField(choices=[('Available', 'Available'), ('Exhausted', 'Exhausted')], db_index=True, default='Available', max_length=20)),
        ('remarks', models.TextField(blank=True)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
    ]


def allocation_fields():
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('quantity', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
        ('weight', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=10)),
        ('remarks', models.TextField(blank=True)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('jobs', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='StoneLot',
            fields=lot_fields() + [
                ('stone_type', models.CharField(db_index=True, max_length=100)),
                ('shape', models.CharField(blank=True, max_length=20, null=True)),
                ('quality', models.CharField(blank=True, max_length=20, null=True)),
                ('type', models.CharField(blank=True, help_text='Cut, e.g. CL / OP / TM', max_length=20, null=True)),
                ('location', models.CharField(blank=True, max_length=50, null=True)),
                ('stone_size', models.CharField(blank=True, max_length=50, null=True)),
            ],
            options={
                'db_table': 'stone_lots',
                'ordering': ['-created_at'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='DiamondLot',
            fields=lot_fields() + [
                ('shape', models.CharField(blank=True, max_length=20, null=True)),
                ('size', models.CharField(blank=True, max_length=20, null=True)),
                ('quality', models.CharField(blank=True, max_length=20, null=True)),
                ('a_type', models.CharField(blank=True, max_length=20, null=True)),
                ('stonegroup', models.CharField(default='diamond', editable=False, max_length=20)),
                ('price', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
            ],
            options={
                'db_table': 'diamond_lots',
                'ordering': ['-created_at'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='StoneAllocation',
            fields=allocation_fields() + [
                ('job', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='stone_allocations', to='jobs.job')),
                ('lot', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='allocations', to='lots.stonelot')),
            ],
            options={
                'db_table': 'stone_allocations',
                'ordering': ['created_at'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='DiamondAllocation',
            fields=allocation_fields() + [
                ('karat', models.CharField(blank=True, max_length=20)),
                ('clarity', models.CharField(blank=True, max_length=20)),
                ('job', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='diamond_allocations', to='jobs.job')),
                ('lot', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='allocations', to='lots.diamondlot')),
            ],
            options={
                'db_table': 'diamond_allocations',
                'ordering': ['created_at'],
                'abstract': False,
            },
        ),
    ]
