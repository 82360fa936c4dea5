"""
Test utilities and factories for creating test data
"""
from datetime import timedelta
from decimal import Decimal
import random
import string

from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from jewelerp.catalog.models import SKU
from jewelerp.catalog.utils import generate_sku_id
from jewelerp.jobs import services, workflow
from jewelerp.jobs.services import create_jobs_for_order
from jewelerp.lots.models import StoneLot, DiamondLot
from jewelerp.manufacturers.models import Manufacturer
from jewelerp.orders.models import Order, OrderItem
from jewelerp.orders.serializers import ORDER_SEQUENCE, format_order_id
from jewelerp.core.models import Sequence

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser
        )

    @staticmethod
    def create_sku(name=None, category='Ring', gold_type='Yellow Gold', size='14', stone_type='Ruby', **extra):
        """Create a test SKU with a freshly generated id"""
        if not name:
            name = f'Design_{TestDataFactory.random_string(6)}'
        return SKU.objects.create(
            sku_id=generate_sku_id(category, gold_type),
            name=name,
            category=category,
            gold_type=gold_type,
            size=size,
            stone_type=stone_type,
            **extra
        )

    @staticmethod
    def create_manufacturer(name=None, active=True, **extra):
        if not name:
            name = f'Workshop_{TestDataFactory.random_string(6)}'
        return Manufacturer.objects.create(
            name=name,
            contact_person='Test Contact',
            phone='1234567890',
            specialties=extra.pop('specialties', ['Rings']),
            lead_time='7-10 days',
            rating=Decimal('4.5'),
            active=active,
            **extra
        )

    @staticmethod
    def create_stone_lot(lot_number=None, quantity=100, weight=Decimal('50.000'), stone_type='Ruby', **extra):
        """Create a stone lot with everything still available"""
        if not lot_number:
            lot_number = f'SL-{TestDataFactory.random_string(6).upper()}'
        return StoneLot.objects.create(
            lot_number=lot_number,
            stone_type=stone_type,
            quantity=quantity,
            weight=weight,
            available_quantity=quantity,
            available_weight=weight,
            **extra
        )

    @staticmethod
    def create_diamond_lot(lot_number=None, quantity=100, weight=Decimal('10.000'), **extra):
        if not lot_number:
            lot_number = f'DL-{TestDataFactory.random_string(6).upper()}'
        return DiamondLot.objects.create(
            lot_number=lot_number,
            shape=extra.pop('shape', 'RD'),
            quality=extra.pop('quality', 'HI/SI'),
            quantity=quantity,
            weight=weight,
            available_quantity=quantity,
            available_weight=weight,
            **extra
        )

    @staticmethod
    def create_order(user=None, items=None, order_type=Order.ORDER_TYPE_CUSTOMER, customer_name='Test Customer',
                     production_date=None, delivery_date=None, status=workflow.ORDER_STATUS_NEW, with_jobs=True):
        """
        Create an order with items and (by default) its jobs.

        `items` is a list of (sku, quantity) pairs; one new SKU x1 when omitted.
        """
        production_date = production_date or timezone.localdate()
        delivery_date = delivery_date or production_date + timedelta(days=30)
        order = Order.objects.create(
            order_id=format_order_id(Sequence.next_value(ORDER_SEQUENCE)),
            order_type=order_type,
            customer_name=customer_name,
            production_date=production_date,
            delivery_date=delivery_date,
            status=status,
            created_by=user,
        )
        if items is None:
            items = [(TestDataFactory.create_sku(), 1)]
        order_items = [
            OrderItem.objects.create(order=order, sku=sku, quantity=quantity, size=sku.size or '')
            for sku, quantity in items
        ]
        if with_jobs:
            create_jobs_for_order(order, order_items, user=user)
        return order

    @staticmethod
    def create_job(user=None, sku=None):
        """Create a single-job order and return the job"""
        sku = sku or TestDataFactory.create_sku()
        order = TestDataFactory.create_order(user=user, items=[(sku, 1)])
        return order.jobs.get()

    @staticmethod
    def advance_job(job, target_status, user=None, manufacturer=None):
        """
        Walk a job forward through the real phase actions until it reaches
        `target_status`. Lots are created on the way as needed.
        """
        while job.status != target_status:
            current = job.status
            if current == workflow.STATUS_NEW:
                job = services.create_bag(job, user=user)
            elif current == workflow.STATUS_BAG_CREATED:
                lot = TestDataFactory.create_stone_lot()
                job = services.select_stones(job, [{'lot_number': lot.lot_number, 'quantity': 2, 'weight': Decimal('0.5')}], user=user)
            elif current == workflow.STATUS_STONE_SELECTED:
                lot = TestDataFactory.create_diamond_lot()
                job = services.select_diamonds(job, [{'lot_number': lot.lot_number, 'quantity': 4, 'weight': Decimal('0.2')}], user=user)
            elif current == workflow.STATUS_DIAMOND_SELECTED:
                manufacturer = manufacturer or TestDataFactory.create_manufacturer()
                job = services.send_to_manufacturer(job, manufacturer, user=user)
            elif current in (workflow.STATUS_SENT_TO_MANUFACTURER, workflow.STATUS_IN_PRODUCTION):
                job = services.advance_manufacturing(job, user=user)
            elif current == workflow.STATUS_RECEIVED_FROM_MANUFACTURER:
                passed = target_status != workflow.STATUS_QC_FAILED
                job = services.quality_check(job, {'measured_weight': Decimal('5.2'), 'passed': passed}, user=user)
            elif current == workflow.STATUS_QC_PASSED:
                job = services.complete_job(job, user=user)
            else:
                raise ValueError(f'Cannot advance job from {current!r} to {target_status!r}')
        return job


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
