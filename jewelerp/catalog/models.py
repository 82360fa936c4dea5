from django.db import models
from . import constants


class SKU(models.Model):
    """Catalog design; every order item and job points at one"""
    sku_id = models.CharField(max_length=20, unique=True, db_index=True, help_text='Display id, e.g. RGYG-0042')
    name = models.CharField(max_length=200, db_index=True)
    category = models.CharField(max_length=50, choices=constants.as_choices(constants.CATEGORIES), db_index=True)
    collection = models.CharField(max_length=100, blank=True, null=True)
    size = models.CharField(max_length=20, blank=True, null=True)
    gold_type = models.CharField(max_length=20, choices=constants.as_choices(constants.GOLD_TYPES), default=constants.GOLD_NONE)
    stone_type = models.CharField(max_length=100, default='None')
    diamond_type = models.CharField(max_length=100, blank=True, null=True)
    weight = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    image_url = models.CharField(max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.sku_id} - {self.name}"

    @property
    def gold_code(self):
        return constants.GOLD_TYPE_CODES.get(self.gold_type, 'n/a')

    @property
    def stone_code(self):
        return constants.STONE_TYPE_CODES.get(self.stone_type)

    class Meta:
        db_table = 'skus'
        verbose_name = 'SKU'
        verbose_name_plural = 'SKUs'
        ordering = ['-created_at']
