from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class LotStatus(models.TextChoices):
    AVAILABLE = 'Available', 'Available'
    EXHAUSTED = 'Exhausted', 'Exhausted'


class Lot(models.Model):
    """Fields shared by stone and diamond lots"""
    lot_number = models.CharField(max_length=100, unique=True, db_index=True)
    quantity = models.PositiveIntegerField(default=0)
    weight = models.DecimalField(max_digits=10, decimal_places=3, default=Decimal('0'),
                                 validators=[MinValueValidator(Decimal('0'))])
    # Decreased by every allocation against a job
    available_quantity = models.PositiveIntegerField(default=0)
    available_weight = models.DecimalField(max_digits=10, decimal_places=3, default=Decimal('0'))
    price_per_carat = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    supplier = models.CharField(max_length=200, blank=True)
    received_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=LotStatus.choices, default=LotStatus.AVAILABLE, db_index=True)
    remarks = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ['-created_at']

    def __str__(self):
        return self.lot_number

    @property
    def allocated_quantity(self):
        return self.quantity - self.available_quantity

    @property
    def allocated_weight(self):
        return self.weight - self.available_weight

    def refresh_status(self):
        self.status = LotStatus.EXHAUSTED if self.available_quantity <= 0 else LotStatus.AVAILABLE


class StoneLot(Lot):
    stone_type = models.CharField(max_length=100, db_index=True)
    shape = models.CharField(max_length=20, blank=True, null=True)
    quality = models.CharField(max_length=20, blank=True, null=True)
    type = models.CharField(max_length=20, blank=True, null=True, help_text='Cut, e.g. CL / OP / TM')
    location = models.CharField(max_length=50, blank=True, null=True)
    stone_size = models.CharField(max_length=50, blank=True, null=True)

    class Meta(Lot.Meta):
        db_table = 'stone_lots'


class DiamondLot(Lot):
    shape = models.CharField(max_length=20, blank=True, null=True)
    size = models.CharField(max_length=20, blank=True, null=True)
    quality = models.CharField(max_length=20, blank=True, null=True)
    a_type = models.CharField(max_length=20, blank=True, null=True)
    stonegroup = models.CharField(max_length=20, default='diamond', editable=False)
    price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    class Meta(Lot.Meta):
        db_table = 'diamond_lots'

    def save(self, *args, **kwargs):
        self.stonegroup = 'diamond'
        super().save(*args, **kwargs)


class Allocation(models.Model):
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    weight = models.DecimalField(max_digits=10, decimal_places=3, default=Decimal('0'))
    remarks = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True
        ordering = ['created_at']


class StoneAllocation(Allocation):
    job = models.ForeignKey('jobs.Job', on_delete=models.CASCADE, related_name='stone_allocations')
    lot = models.ForeignKey(StoneLot, on_delete=models.PROTECT, related_name='allocations')

    class Meta(Allocation.Meta):
        db_table = 'stone_allocations'

    def __str__(self):
        return f"{self.lot} -> {self.job} x{self.quantity}"


class DiamondAllocation(Allocation):
    job = models.ForeignKey('jobs.Job', on_delete=models.CASCADE, related_name='diamond_allocations')
    lot = models.ForeignKey(DiamondLot, on_delete=models.PROTECT, related_name='allocations')
    karat = models.CharField(max_length=20, blank=True)
    clarity = models.CharField(max_length=20, blank=True)

    class Meta(Allocation.Meta):
        db_table = 'diamond_allocations'

    def __str__(self):
        return f"{self.lot} -> {self.job} x{self.quantity}"
