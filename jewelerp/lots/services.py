"""
Lot allocation

Allocating material to a job decreases the lot's available quantity and
weight under a row lock; a lot with nothing left becomes Exhausted.
"""
import logging
from decimal import Decimal, InvalidOperation
from django.db import transaction

from .models import StoneLot, DiamondLot, StoneAllocation, DiamondAllocation

logger = logging.getLogger(__name__)


class LotAllocationError(Exception):
    """An allocation that the lot cannot satisfy"""

    def __init__(self, message, lot_number=None):
        self.lot_number = lot_number
        super().__init__(message)


def _to_quantity(value, lot_number):
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        raise LotAllocationError(f"Quantity for lot {lot_number} must be a whole number.", lot_number)
    if quantity <= 0:
        raise LotAllocationError(f"Quantity for lot {lot_number} must be greater than 0.", lot_number)
    return quantity


def _to_weight(value, lot_number):
    if value in (None, ''):
        return Decimal('0')
    try:
        weight = Decimal(str(value))
    except InvalidOperation:
        raise LotAllocationError(f"Weight for lot {lot_number} must be a number.", lot_number)
    if not weight.is_finite() or weight < 0:
        raise LotAllocationError(f"Weight for lot {lot_number} cannot be negative.", lot_number)
    return weight


def _allocate(lot_model, allocation_model, job, lot_number, quantity, weight=None, remarks='', user=None, **extra):
    quantity = _to_quantity(quantity, lot_number)
    weight = _to_weight(weight, lot_number)
    label = lot_model._meta.verbose_name

    with transaction.atomic():
        try:
            lot = lot_model.objects.select_for_update().get(lot_number=lot_number)
        except lot_model.DoesNotExist:
            raise LotAllocationError(f"{label.capitalize()} {lot_number} does not exist.", lot_number)

        if quantity > lot.available_quantity:
            raise LotAllocationError(
                f"Cannot allocate {quantity} from {label} {lot_number}: only {lot.available_quantity} available.",
                lot_number,
            )
        if weight > lot.available_weight:
            raise LotAllocationError(
                f"Cannot allocate {weight} ct from {label} {lot_number}: only {lot.available_weight} ct available.",
                lot_number,
            )

        lot.available_quantity -= quantity
        lot.available_weight -= weight
        lot.refresh_status()
        lot.save(update_fields=['available_quantity', 'available_weight', 'status', 'updated_at'])

        allocation = allocation_model.objects.create(
            job=job,
            lot=lot,
            quantity=quantity,
            weight=weight,
            remarks=remarks or '',
            created_by=user if user is not None and user.is_authenticated else None,
            **extra,
        )

    logger.info(f"Allocated {quantity} ({weight} ct) from {label} {lot_number} to job {job.job_id}")
    return allocation


def allocate_stone(job, lot_number, quantity, weight=None, remarks='', user=None):
    return _allocate(StoneLot, StoneAllocation, job, lot_number, quantity, weight, remarks, user)


def allocate_diamond(job, lot_number, quantity, weight=None, remarks='', user=None, karat='', clarity=''):
    return _allocate(
        DiamondLot, DiamondAllocation, job, lot_number, quantity, weight, remarks, user,
        karat=karat or '', clarity=clarity or '',
    )


def release_job_allocations(job):
    """Return everything allocated to `job` to its lots. Call inside a transaction."""
    released = 0
    for allocation_model in (StoneAllocation, DiamondAllocation):
        for allocation in allocation_model.objects.filter(job=job).select_related('lot'):
            lot = allocation.lot.__class__.objects.select_for_update().get(pk=allocation.lot_id)
            lot.available_quantity += allocation.quantity
            lot.available_weight += allocation.weight
            lot.refresh_status()
            lot.save(update_fields=['available_quantity', 'available_weight', 'status', 'updated_at'])
            allocation.delete()
            released += 1
    if released:
        logger.info(f"Released {released} allocation(s) from job {job.job_id}")
    return released
