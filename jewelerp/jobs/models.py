from django.conf import settings
from django.db import models

from . import workflow


class Job(models.Model):
    """One piece of jewellery moving through the production workflow"""
    job_id = models.CharField(max_length=30, unique=True, db_index=True, help_text='Display id, e.g. J-0042-3')
    order = models.ForeignKey('orders.Order', on_delete=models.CASCADE, related_name='jobs')
    order_item = models.ForeignKey('orders.OrderItem', on_delete=models.SET_NULL, null=True, blank=True, related_name='jobs')
    sku = models.ForeignKey('catalog.SKU', on_delete=models.PROTECT, related_name='jobs')
    size = models.CharField(max_length=20, blank=True)
    status = models.CharField(max_length=40, choices=workflow.JOB_STATUS_CHOICES, default=workflow.STATUS_NEW, db_index=True)
    manufacturer = models.ForeignKey('manufacturers.Manufacturer', on_delete=models.PROTECT, null=True, blank=True, related_name='jobs')
    production_date = models.DateField(null=True, blank=True)
    due_date = models.DateField(null=True, blank=True, db_index=True)
    stone_data = models.JSONField(default=dict, blank=True)
    diamond_data = models.JSONField(default=dict, blank=True)
    manufacturer_data = models.JSONField(default=dict, blank=True)
    qc_data = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.job_id

    @property
    def current_phase(self):
        return workflow.phase_for_status(self.status)

    @property
    def order_status(self):
        return workflow.order_status_for_job_status(self.status)

    @property
    def route(self):
        return workflow.job_route(self.order.order_id, self.job_id, self.status)

    class Meta:
        db_table = 'jobs'
        ordering = ['created_at', 'id']


class JobHistory(models.Model):
    """Status changes and actions recorded against a job"""
    job = models.ForeignKey(Job, on_delete=models.CASCADE, related_name='history')
    status = models.CharField(max_length=40)
    action = models.CharField(max_length=200)
    data = models.JSONField(default=dict, blank=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='job_history')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.job.job_id}: {self.action}"

    class Meta:
        db_table = 'job_history'
        ordering = ['created_at', 'id']
        verbose_name_plural = 'job history'
