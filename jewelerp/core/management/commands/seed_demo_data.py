"""
Management command to load demo manufacturers, lots, SKUs and orders.

Jobs are moved to their statuses through the job services, so every seeded
job's phase, history and lot allocations are the same as for real work.
"""
import random
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from jewelerp.catalog.models import SKU
from jewelerp.catalog.utils import generate_sku_id
from jewelerp.core.cache_signals import suspend_cache_signals
from jewelerp.core.models import Sequence
from jewelerp.jobs import services, workflow
from jewelerp.lots.models import StoneLot, DiamondLot
from jewelerp.lots.services import LotAllocationError
from jewelerp.manufacturers.models import Manufacturer
from jewelerp.orders.models import Order, OrderItem
from jewelerp.orders.serializers import ORDER_SEQUENCE, format_order_id

MANUFACTURERS = [
    {'name': 'Shree Casting Works', 'contact_person': 'Ramesh Soni', 'specialties': ['Rings', 'Bangles'], 'lead_time': '7-10 days', 'rating': Decimal('4.6')},
    {'name': 'Jaipur Fine Settings', 'contact_person': 'Neha Kothari', 'specialties': ['Necklaces', 'Pendants'], 'lead_time': '10-14 days', 'rating': Decimal('4.2')},
    {'name': 'Zaveri Brothers', 'contact_person': 'Imran Zaveri', 'specialties': ['Earrings'], 'lead_time': '5-7 days', 'rating': Decimal('3.9')},
]

STONE_LOTS = [
    {'lot_number': 'SL-RB-001', 'stone_type': 'Ruby', 'shape': 'FC', 'quality': 'A', 'quantity': 400, 'weight': Decimal('120.000')},
    {'lot_number': 'SL-EM-001', 'stone_type': 'Emerald', 'shape': 'CB', 'quality': 'A', 'quantity': 250, 'weight': Decimal('95.500')},
    {'lot_number': 'SL-AM-001', 'stone_type': 'Amethyst', 'shape': 'FC', 'quality': 'B', 'quantity': 600, 'weight': Decimal('210.000')},
]

DIAMOND_LOTS = [
    {'lot_number': 'DL-RD-001', 'shape': 'RD', 'size': '+2', 'quality': 'HI/SI', 'quantity': 3000, 'weight': Decimal('45.000')},
    {'lot_number': 'DL-BG-001', 'shape': 'BG', 'size': '-2', 'quality': 'HI/SI', 'quantity': 1200, 'weight': Decimal('18.000')},
]

SKUS = [
    {'name': 'Ruby Halo Ring', 'category': 'Ring', 'gold_type': 'Yellow Gold', 'stone_type': 'Ruby', 'size': '14', 'collection': 'Royal'},
    {'name': 'Emerald Drop Pendant', 'category': 'Pendant', 'gold_type': 'White Gold', 'stone_type': 'Emerald', 'size': '18', 'collection': 'Midnight'},
    {'name': 'Amethyst Bangle', 'category': 'Bangle', 'gold_type': 'Rose Gold', 'stone_type': 'Amethyst', 'size': '8', 'collection': 'Floral'},
    {'name': 'Pave Studs', 'category': 'Earring', 'gold_type': 'Yellow Gold', 'stone_type': 'None', 'collection': 'Eternity'},
]

# Statuses seeded jobs are walked to
TARGET_STATUSES = [
    workflow.STATUS_NEW,
    workflow.STATUS_BAG_CREATED,
    workflow.STATUS_STONE_SELECTED,
    workflow.STATUS_DIAMOND_SELECTED,
    workflow.STATUS_SENT_TO_MANUFACTURER,
    workflow.STATUS_IN_PRODUCTION,
    workflow.STATUS_RECEIVED_FROM_MANUFACTURER,
    workflow.STATUS_QC_FAILED,
    workflow.STATUS_QC_PASSED,
    workflow.STATUS_COMPLETED,
]


class Command(BaseCommand):
    help = 'Load demo manufacturers, lots, SKUs and orders with jobs in varied statuses'

    def add_arguments(self, parser):
        parser.add_argument('--orders', type=int, default=6, help='Number of orders to create (default: 6)')
        parser.add_argument('--seed', type=int, default=None, help='Random seed for repeatable data')
        parser.add_argument('--username', default=None, help='User recorded as creator of orders and history')

    def handle(self, *args, **options):
        rng = random.Random(options['seed'])
        user = None
        if options['username']:
            user = get_user_model().objects.get(username=options['username'])

        with transaction.atomic(), suspend_cache_signals():
            manufacturers = [self._manufacturer(data) for data in MANUFACTURERS]
            stone_lots = [self._lot(StoneLot, data) for data in STONE_LOTS]
            diamond_lots = [self._lot(DiamondLot, data) for data in DIAMOND_LOTS]
            skus = [self._sku(data) for data in SKUS]

            job_count = 0
            for index in range(options['orders']):
                order = self._order(index, rng, skus, user)
                for job in order.jobs.all():
                    target = rng.choice(TARGET_STATUSES)
                    self._walk(job, target, rng.choice(stone_lots), rng.choice(diamond_lots),
                               rng.choice(manufacturers), user)
                    job_count += 1

        self.stdout.write(self.style.SUCCESS(
            f"Seeded {len(manufacturers)} manufacturers, {len(stone_lots) + len(diamond_lots)} lots, "
            f"{len(skus)} SKUs, {options['orders']} orders and {job_count} jobs"
        ))

    def _manufacturer(self, data):
        defaults = dict(data)
        name = defaults.pop('name')
        manufacturer, created = Manufacturer.objects.get_or_create(name=name, defaults=defaults)
        if created:
            self.stdout.write(f"  Manufacturer: {name}")
        return manufacturer

    def _lot(self, model, data):
        defaults = dict(data)
        lot_number = defaults.pop('lot_number')
        defaults.update(available_quantity=data['quantity'], available_weight=data['weight'], supplier='Demo Supplier')
        lot, created = model.objects.get_or_create(lot_number=lot_number, defaults=defaults)
        if created:
            self.stdout.write(f"  {model._meta.verbose_name.capitalize()}: {lot_number}")
        elif lot.available_quantity < data['quantity'] // 4 or lot.available_weight < data['weight'] / 4:
            # Drained by earlier runs
            lot = model.objects.select_for_update().get(pk=lot.pk)
            lot.quantity += data['quantity']
            lot.weight += data['weight']
            lot.available_quantity += data['quantity']
            lot.available_weight += data['weight']
            lot.refresh_status()
            lot.save()
            self.stdout.write(f"  Restocked {lot_number}")
        return lot

    def _sku(self, data):
        existing = SKU.objects.filter(name=data['name'], category=data['category'], gold_type=data['gold_type']).first()
        if existing:
            return existing
        sku = SKU.objects.create(sku_id=generate_sku_id(data['category'], data['gold_type']), **data)
        self.stdout.write(f"  SKU: {sku.sku_id} {sku.name}")
        return sku

    def _order(self, index, rng, skus, user):
        today = timezone.localdate()
        production_date = today - timedelta(days=rng.randint(0, 20))
        order_type = Order.ORDER_TYPE_STOCK if index % 3 == 0 else Order.ORDER_TYPE_CUSTOMER
        order = Order.objects.create(
            order_id=format_order_id(Sequence.next_value(ORDER_SEQUENCE)),
            order_type=order_type,
            customer_name=settings.HOUSE_CUSTOMER_NAME if order_type == Order.ORDER_TYPE_STOCK else f'Demo Customer {index + 1}',
            production_date=production_date,
            delivery_date=production_date + timedelta(days=rng.randint(5, 45)),
            created_by=user,
        )
        items = [
            OrderItem.objects.create(order=order, sku=sku, quantity=rng.randint(1, 2), size=sku.size or '')
            for sku in rng.sample(skus, k=rng.randint(1, 2))
        ]
        services.create_jobs_for_order(order, items, user=user)
        self.stdout.write(f"  Order: {order.order_id} ({order.order_type})")
        return order

    def _walk(self, job, target, stone_lot, diamond_lot, manufacturer, user):
        """Drive a job forward through the phase actions until it is in `target`"""
        while job.status != target:
            current = job.status
            if current == workflow.STATUS_NEW:
                job = services.create_bag(job, user=user)
            elif current in (workflow.STATUS_BAG_CREATED, workflow.STATUS_STONE_SELECTED):
                try:
                    if current == workflow.STATUS_BAG_CREATED:
                        job = services.select_stones(job, [{'lot_number': stone_lot.lot_number, 'quantity': 2, 'weight': Decimal('0.600')}], user=user)
                    else:
                        job = services.select_diamonds(job, [{'lot_number': diamond_lot.lot_number, 'quantity': 12, 'weight': Decimal('0.180'), 'karat': '18K', 'clarity': 'SI'}], user=user)
                except LotAllocationError as e:
                    self.stdout.write(self.style.WARNING(f"  Left {job.job_id} at {current}: {e}"))
                    break
            elif current == workflow.STATUS_DIAMOND_SELECTED:
                job = services.send_to_manufacturer(job, manufacturer, remarks='Demo batch', user=user)
            elif current in (workflow.STATUS_SENT_TO_MANUFACTURER, workflow.STATUS_IN_PRODUCTION):
                job = services.advance_manufacturing(job, user=user)
            elif current == workflow.STATUS_RECEIVED_FROM_MANUFACTURER:
                passed = target != workflow.STATUS_QC_FAILED
                job = services.quality_check(job, {'measured_weight': Decimal('5.250'), 'passed': passed, 'notes': 'Demo check'}, user=user)
            elif current == workflow.STATUS_QC_PASSED:
                job = services.complete_job(job, user=user)
            else:
                break
        return job
