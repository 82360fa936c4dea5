from django.db import migrations, models
import jewelerp.catalog.constants


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='SKU',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('sku_id', models.CharField(db_index=True, help_text='Display id, e.g. RGYG-0042', max_length=20, unique=True)),
                ('name', models.CharField(db_index=True, max_length=200)),
                ('category', models.CharField(choices=jewelerp.catalog.constants.as_choices(jewelerp.catalog.constants.CATEGORIES), db_index=True, max_length=50)),
                ('collection', models.CharField(blank=True, max_length=100, null=True)),
                ('size', models.CharField(blank=True, max_length=20, null=True)),
                ('gold_type', models.CharField(choices=jewelerp.catalog.constants.as_choices(jewelerp.catalog.constants.GOLD_TYPES), default='None', max_length=20)),
                ('stone_type', models.CharField(default='None', max_length=100)),
                ('diamond_type', models.CharField(blank=True, max_length=100, null=True)),
                ('weight', models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True)),
                ('image_url', models.CharField(blank=True, max_length=500)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'SKU',
                'verbose_name_plural': 'SKUs',
                'db_table': 'skus',
                'ordering': ['-created_at'],
            },
        ),
    ]
