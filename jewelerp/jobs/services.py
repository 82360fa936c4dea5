"""
Job phase actions

Every action locks the job row, checks the move against the workflow map,
applies its side effects (lot allocations, manufacturer counters), then
records a JobHistory row and an audit log entry. Callers get the updated job.
"""
import json
import logging
from django.core.serializers.json import DjangoJSONEncoder
from django.db import transaction
from django.utils import timezone

from jewelerp.core.utils import create_audit_log
from jewelerp.lots.services import allocate_stone, allocate_diamond, release_job_allocations
from jewelerp.manufacturers.models import Manufacturer
from . import workflow
from .models import Job, JobHistory

logger = logging.getLogger(__name__)


def _json_safe(data):
    """Dates and Decimals as strings so the value can live in a JSONField"""
    return json.loads(json.dumps(data, cls=DjangoJSONEncoder))


def _actor(user):
    return user if user is not None and user.is_authenticated else None


def record_history(job, action, user=None, data=None, status=None):
    return JobHistory.objects.create(
        job=job,
        status=status or job.status,
        action=action,
        data=_json_safe(data or {}),
        user=_actor(user),
    )


def _lock(job):
    return Job.objects.select_for_update(of=('self',)).select_related('order', 'manufacturer').get(pk=job.pk)


def _require_next(job, target_status, passed=True):
    """Raise InvalidTransitionError unless `target_status` is the job's next step"""
    expected = workflow.next_status(job.status, passed=passed)
    if expected != target_status:
        raise workflow.InvalidTransitionError(
            f"Job {job.job_id} is '{job.status}'; it cannot move to '{target_status}' (next step is '{expected}')"
        )


def _move(job, new_status, action, user=None, request=None, data=None, fields=()):
    old_status = job.status
    job.status = new_status
    job.save(update_fields=['status', 'updated_at', *fields])
    record_history(job, action, user=user, data=data)
    create_audit_log(
        request=request,
        user=user,
        action='job_transition',
        model_name='Job',
        object_id=job.id,
        object_name=job.job_id,
        object_reference=job.order.order_id,
        changes={'from': old_status, 'to': new_status, 'action': action},
    )
    logger.info(f"Job {job.job_id}: {old_status} -> {new_status}")
    return job


def _audit_allocation(allocation, job, user, request):
    create_audit_log(
        request=request,
        user=user,
        action='lot_allocation',
        model_name=allocation.lot.__class__.__name__,
        object_id=allocation.lot_id,
        object_name=allocation.lot.lot_number,
        object_reference=job.job_id,
        changes={'quantity': allocation.quantity, 'weight': str(allocation.weight)},
    )


def build_job_id(order_id, seq):
    """'O-0042', 3 -> 'J-0042-3'"""
    return f"J{order_id[1:]}-{seq}"


def _new_job(order, seq, sku, size, production_date, due_date, order_item=None, user=None):
    job = Job.objects.create(
        job_id=build_job_id(order.order_id, seq),
        order=order,
        order_item=order_item,
        sku=sku,
        size=size or sku.size or '',
        status=workflow.STATUS_NEW,
        production_date=production_date,
        due_date=due_date,
    )
    record_history(job, 'Job created', user=user, data={'order_id': order.order_id})
    return job


def create_jobs_for_order(order, items, user=None):
    """
    Fan an order's items out into jobs: `quantity` jobs per item, numbered
    across the whole order, each starting in status New.
    """
    jobs = []
    seq = order.jobs.count() + 1
    for item in items:
        for _ in range(item.quantity):
            jobs.append(_new_job(
                order, seq, item.sku, item.size,
                production_date=item.individual_production_date or order.production_date,
                due_date=item.individual_delivery_date or order.delivery_date,
                order_item=item,
                user=user,
            ))
            seq += 1
    logger.info(f"Created {len(jobs)} job(s) for order {order.order_id}")
    return jobs


@transaction.atomic
def add_job_to_order(order, sku, size='', user=None, request=None):
    """One more New job on an existing order, numbered after the order's current jobs"""
    order = order.__class__.objects.select_for_update().get(pk=order.pk)
    job = _new_job(
        order, order.jobs.count() + 1, sku, size,
        production_date=order.production_date,
        due_date=order.delivery_date,
        user=user,
    )
    create_audit_log(
        request=request,
        user=user,
        action='job_create',
        model_name='Job',
        object_id=job.id,
        object_name=job.job_id,
        object_reference=order.order_id,
        changes={'sku': sku.sku_id, 'size': job.size},
    )
    logger.info(f"Added job {job.job_id} to order {order.order_id}")
    return job


def release_order_resources(order):
    """Give back lot stock and manufacturer capacity held by an order's jobs"""
    in_workshop = {workflow.STATUS_SENT_TO_MANUFACTURER, workflow.STATUS_IN_PRODUCTION}
    for job in order.jobs.select_for_update():
        release_job_allocations(job)
        if job.manufacturer_id and job.status in in_workshop:
            manufacturer = Manufacturer.objects.select_for_update().get(pk=job.manufacturer_id)
            manufacturer.current_load = max(manufacturer.current_load - 1, 0)
            manufacturer.save(update_fields=['current_load', 'updated_at'])


@transaction.atomic
def create_bag(job, user=None, request=None, remarks=''):
    job = _lock(job)
    _require_next(job, workflow.STATUS_BAG_CREATED)
    data = {'remarks': remarks} if remarks else {}
    return _move(job, workflow.STATUS_BAG_CREATED, 'Bag created', user, request, data)


@transaction.atomic
def select_stones(job, allocations, user=None, request=None, remarks=''):
    """
    Allocate stones to the job and mark it Stone Selected.

    `allocations` is a list of {lot_number, quantity, weight, remarks}.
    """
    job = _lock(job)
    _require_next(job, workflow.STATUS_STONE_SELECTED)

    recorded = []
    for entry in allocations:
        allocation = allocate_stone(
            job, entry['lot_number'], entry['quantity'], entry.get('weight'), entry.get('remarks', ''), user,
        )
        _audit_allocation(allocation, job, user, request)
        recorded.append({
            'lot_number': allocation.lot.lot_number,
            'stone_type': allocation.lot.stone_type,
            'quantity': allocation.quantity,
            'weight': allocation.weight,
            'remarks': allocation.remarks,
        })

    job.stone_data = _json_safe({
        'allocations': recorded,
        'total_quantity': sum(a['quantity'] for a in recorded),
        'total_weight': sum(a['weight'] for a in recorded),
        'remarks': remarks,
        'selected_at': timezone.now(),
    })
    return _move(job, workflow.STATUS_STONE_SELECTED, 'Stones selected', user, request,
                 {'allocations': len(recorded)}, fields=['stone_data'])


@transaction.atomic
def select_diamonds(job, allocations, user=None, request=None, remarks=''):
    """
    Allocate diamonds to the job and mark it Diamond Selected.

    `allocations` is a list of {lot_number, karat, clarity, quantity, weight, remarks}.
    """
    job = _lock(job)
    _require_next(job, workflow.STATUS_DIAMOND_SELECTED)

    recorded = []
    for entry in allocations:
        allocation = allocate_diamond(
            job, entry['lot_number'], entry['quantity'], entry.get('weight'), entry.get('remarks', ''), user,
            karat=entry.get('karat', ''), clarity=entry.get('clarity', ''),
        )
        _audit_allocation(allocation, job, user, request)
        recorded.append({
            'lot_number': allocation.lot.lot_number,
            'karat': allocation.karat,
            'clarity': allocation.clarity,
            'quantity': allocation.quantity,
            'weight': allocation.weight,
            'remarks': allocation.remarks,
        })

    job.diamond_data = _json_safe({
        'allocations': recorded,
        'total_quantity': sum(a['quantity'] for a in recorded),
        'total_weight': sum(a['weight'] for a in recorded),
        'remarks': remarks,
        'selected_at': timezone.now(),
    })
    return _move(job, workflow.STATUS_DIAMOND_SELECTED, 'Diamonds selected', user, request,
                 {'allocations': len(recorded)}, fields=['diamond_data'])


@transaction.atomic
def send_to_manufacturer(job, manufacturer, expected_completion_date=None, remarks='', user=None, request=None):
    job = _lock(job)
    _require_next(job, workflow.STATUS_SENT_TO_MANUFACTURER)

    manufacturer = Manufacturer.objects.select_for_update().get(pk=manufacturer.pk)
    if not manufacturer.active:
        raise workflow.InvalidTransitionError(f"Manufacturer {manufacturer.name} is inactive")
    manufacturer.current_load += 1
    manufacturer.save(update_fields=['current_load', 'updated_at'])

    job.manufacturer = manufacturer
    job.manufacturer_data = _json_safe({
        'manufacturer_id': manufacturer.id,
        'manufacturer_name': manufacturer.name,
        'expected_completion_date': expected_completion_date,
        'remarks': remarks,
        'sent_at': timezone.now(),
        'events': [{'status': workflow.STATUS_SENT_TO_MANUFACTURER, 'at': timezone.now()}],
    })
    return _move(job, workflow.STATUS_SENT_TO_MANUFACTURER, f'Sent to {manufacturer.name}', user, request,
                 {'manufacturer': manufacturer.name}, fields=['manufacturer', 'manufacturer_data'])


@transaction.atomic
def advance_manufacturing(job, remarks='', user=None, request=None):
    """
    Step a job through the manufacturer phase: Sent -> In Production ->
    Received from Manufacturer, or QC Failed -> In Production for rework.
    """
    job = _lock(job)
    new_status = workflow.next_manufacturer_status(job.status)
    if new_status is None:
        raise workflow.InvalidTransitionError(f"Job {job.job_id} is '{job.status}', not at the manufacturer")
    if job.manufacturer_id is None:
        raise workflow.InvalidTransitionError(f"Job {job.job_id} has no manufacturer")

    manufacturer = Manufacturer.objects.select_for_update().get(pk=job.manufacturer_id)
    if new_status == workflow.STATUS_RECEIVED_FROM_MANUFACTURER:
        manufacturer.current_load = max(manufacturer.current_load - 1, 0)
        manufacturer.past_job_count += 1
        manufacturer.save(update_fields=['current_load', 'past_job_count', 'updated_at'])
    elif job.status == workflow.STATUS_QC_FAILED:
        manufacturer.current_load += 1
        manufacturer.save(update_fields=['current_load', 'updated_at'])

    data = dict(job.manufacturer_data or {})
    events = list(data.get('events', []))
    events.append({'status': new_status, 'at': timezone.now(), 'remarks': remarks})
    data['events'] = events
    if new_status == workflow.STATUS_RECEIVED_FROM_MANUFACTURER:
        data['received_at'] = timezone.now()
    job.manufacturer_data = _json_safe(data)

    action = 'Rework started' if job.status == workflow.STATUS_QC_FAILED else new_status
    return _move(job, new_status, action, user, request, {'remarks': remarks} if remarks else None,
                 fields=['manufacturer_data'])


@transaction.atomic
def quality_check(job, qc_data, user=None, request=None):
    """Record a quality check; `qc_data` comes from QualityCheckSerializer"""
    job = _lock(job)
    workflow.phase_for_status(job.status)
    if job.status != workflow.STATUS_RECEIVED_FROM_MANUFACTURER:
        raise workflow.InvalidTransitionError(f"Job {job.job_id} is '{job.status}', not ready for quality check")
    passed = bool(qc_data['passed'])
    new_status = workflow.next_status(job.status, passed=passed)

    history = list((job.qc_data or {}).get('history', []))
    record = dict(qc_data, checked_at=timezone.now())
    history.append(record)
    job.qc_data = _json_safe(dict(record, history=history, attempts=len(history)))

    action = 'Quality check passed' if passed else 'Quality check failed'
    return _move(job, new_status, action, user, request,
                 {'measured_weight': qc_data['measured_weight'], 'passed': passed}, fields=['qc_data'])


@transaction.atomic
def complete_job(job, remarks='', user=None, request=None):
    job = _lock(job)
    _require_next(job, workflow.STATUS_COMPLETED)
    return _move(job, workflow.STATUS_COMPLETED, 'Job completed', user, request,
                 {'remarks': remarks} if remarks else None)
