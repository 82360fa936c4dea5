from django.conf import settings
from django.db import models, transaction


class Setting(models.Model):
    """System settings"""
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.key

    class Meta:
        db_table = 'settings'


class Sequence(models.Model):
    """Named counters used to build human-readable ids (orders, SKUs)"""
    name = models.CharField(max_length=50, unique=True)
    last_value = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name}={self.last_value}"

    @classmethod
    def next_value(cls, name):
        """Consume and return the next value of the named sequence"""
        with transaction.atomic():
            sequence, _ = cls.objects.select_for_update().get_or_create(name=name)
            sequence.last_value += 1
            sequence.save(update_fields=['last_value', 'updated_at'])
            return sequence.last_value

    @classmethod
    def peek(cls, name):
        """Return the value next_value() would hand out, without consuming it"""
        sequence = cls.objects.filter(name=name).first()
        return (sequence.last_value if sequence else 0) + 1

    class Meta:
        db_table = 'sequences'


class AuditLog(models.Model):
    """Audit log for critical operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('order_create', 'Order Created'),
        ('order_update', 'Order Updated'),
        ('order_delete', 'Order Deleted'),
        ('job_transition', 'Job Status Changed'),
        ('lot_allocation', 'Lot Allocation'),
        ('job_create', 'Job Created'),
        ('sku_image_upload', 'SKU Image Uploaded'),
        ('sku_image_delete', 'SKU Image Deleted'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., SKU name, job id)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., order id, lot number)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_9a1f3c_idx'),
            models.Index(fields=['action'], name='audit_logs_action_5e2b7d_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_n_3c8e41_idx'),
            models.Index(fields=['object_reference'], name='audit_logs_object__7d2a90_idx'),
        ]
