from decimal import Decimal
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models


class Manufacturer(models.Model):
    """Workshop that produces pieces for jobs"""
    name = models.CharField(max_length=200, unique=True)
    address = models.TextField(blank=True)
    contact_person = models.CharField(max_length=200, blank=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=50, blank=True)
    specialties = models.JSONField(default=list, blank=True)
    lead_time = models.CharField(max_length=50, blank=True, help_text='e.g. "7-10 days"')
    rating = models.DecimalField(
        max_digits=3, decimal_places=1, default=Decimal('0'),
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('5'))],
    )
    # Jobs currently at the workshop
    current_load = models.PositiveIntegerField(default=0)
    past_job_count = models.PositiveIntegerField(default=0)
    active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'manufacturers'
        ordering = ['name']
