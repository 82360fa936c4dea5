from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('core', '0001_initial'),
    ]

    operations = [
        migrations.AlterField(
            model_name='auditlog',
            name='action',
            field=models.CharField(choices=[('create', 'Create'), ('update', 'Update'), ('delete', 'Delete'), ('order_create', 'Order Created'), ('order_update', 'Order Updated'), ('order_delete', 'Order Deleted'), ('job_transition', 'Job Status Changed'), ('lot_allocation', 'Lot Allocation'), ('job_create', 'Job Created'), ('sku_image_upload', 'SKU Image Uploaded'), ('sku_image_delete', 'SKU Image Deleted')], max_length=50),
        ),
    ]
