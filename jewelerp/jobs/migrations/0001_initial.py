from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        ('manufacturers', '0001_initial'),
        ('orders', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Job',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('job_id', models.CharField(db_index=True, help_text='Display id, e.g. J-0042-3', max_length=30, unique=True)),
                ('size', models.CharField(blank=True, max_length=20)),
                ('status', models.CharField(choices=[('New', 'New'), ('Bag Created', 'Bag Created'), ('Stone Selected', 'Stone Selected'), ('Diamond Selected', 'Diamond Selected'), ('Sent to Manufacturer', 'Sent to Manufacturer'), ('In Production', 'In Production'), ('Received from Manufacturer', 'Received from Manufacturer'), ('QC Passed', 'QC Passed'), ('QC Failed', 'QC Failed'), ('Completed', 'Completed')], db_index=True, default='New', max_length=40)),
                ('production_date', models.DateField(blank=True, null=True)),
                ('due_date', models.DateField(blank=True, db_index=True, null=True)),
                ('stone_data', models.JSONField(blank=True, default=dict)),
                ('diamond_data', models.JSONField(blank=True, default=dict)),
                ('manufacturer_data', models.JSONField(blank=True, default=dict)),
                ('qc_data', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('manufacturer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='jobs', to='manufacturers.manufacturer')),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='jobs', to='orders.order')),
                ('order_item', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='jobs', to='orders.orderitem')),
                ('sku', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='jobs', to='catalog.sku')),
            ],
            options={
                'db_table': 'jobs',
                'ordering': ['created_at', 'id'],
            },
        ),
        migrations.CreateModel(
            name='JobHistory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(max_length=40)),
                ('action', models.CharField(max_length=200)),
                ('data', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('job', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='history', to='jobs.job')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='job_history', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name_plural': 'job history',
                'db_table': 'job_history',
                'ordering': ['created_at', 'id'],
            },
        ),
    ]
