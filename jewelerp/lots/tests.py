"""
Tests for stone and diamond lots: creation, listing and allocation to jobs
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import serializers, status

from jewelerp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from jewelerp.lots.models import LotStatus, StoneLot, StoneAllocation, DiamondLot
from jewelerp.lots.serializers import StoneLotSerializer
from jewelerp.lots.services import (
    LotAllocationError, allocate_stone, allocate_diamond, release_job_allocations,
)


class AllocationServiceTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.job = TestDataFactory.create_job(user=self.user)
        self.lot = TestDataFactory.create_stone_lot(lot_number='SL-RUBY-1', quantity=10, weight=Decimal('5.000'))

    def test_allocation_reduces_availability(self):
        allocation = allocate_stone(self.job, 'SL-RUBY-1', 4, Decimal('1.250'), 'centre stones', self.user)
        self.lot.refresh_from_db()
        self.assertEqual(self.lot.available_quantity, 6)
        self.assertEqual(self.lot.available_weight, Decimal('3.750'))
        self.assertEqual(self.lot.allocated_quantity, 4)
        self.assertEqual(self.lot.status, LotStatus.AVAILABLE)
        self.assertEqual(allocation.created_by, self.user)

    def test_allocating_everything_exhausts_lot(self):
        allocate_stone(self.job, 'SL-RUBY-1', 10, Decimal('5.000'))
        self.lot.refresh_from_db()
        self.assertEqual(self.lot.status, LotStatus.EXHAUSTED)

    def test_over_allocation_rejected(self):
        with self.assertRaises(LotAllocationError) as ctx:
            allocate_stone(self.job, 'SL-RUBY-1', 11)
        self.assertEqual(ctx.exception.lot_number, 'SL-RUBY-1')

        with self.assertRaises(LotAllocationError):
            allocate_stone(self.job, 'SL-RUBY-1', 1, Decimal('5.001'))

        self.lot.refresh_from_db()
        self.assertEqual(self.lot.available_quantity, 10)
        self.assertFalse(StoneAllocation.objects.exists())

    def test_unknown_lot_and_bad_quantity_rejected(self):
        with self.assertRaises(LotAllocationError):
            allocate_stone(self.job, 'NO-SUCH-LOT', 1)
        with self.assertRaises(LotAllocationError):
            allocate_stone(self.job, 'SL-RUBY-1', 0)
        with self.assertRaises(LotAllocationError):
            allocate_stone(self.job, 'SL-RUBY-1', 1, '-0.5')

    def test_diamond_allocation_records_karat_and_clarity(self):
        TestDataFactory.create_diamond_lot(lot_number='DL-1', quantity=50, weight=Decimal('2.000'))
        allocation = allocate_diamond(self.job, 'DL-1', 20, Decimal('0.400'), karat='18K', clarity='VS1')
        self.assertEqual(allocation.karat, '18K')
        self.assertEqual(allocation.clarity, 'VS1')
        self.assertEqual(DiamondLot.objects.get(lot_number='DL-1').available_quantity, 30)

    def test_release_returns_stock(self):
        allocate_stone(self.job, 'SL-RUBY-1', 10, Decimal('5.000'))
        self.assertEqual(release_job_allocations(self.job), 1)
        self.lot.refresh_from_db()
        self.assertEqual(self.lot.available_quantity, 10)
        self.assertEqual(self.lot.available_weight, Decimal('5.000'))
        self.assertEqual(self.lot.status, LotStatus.AVAILABLE)


class StoneLotAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)

    def test_create_sets_available_to_totals(self):
        response = self.client.post('/api/v1/stone-lots/', {
            'lot_number': 'SL-EM-7',
            'stone_type': 'Emerald',
            'shape': 'FC',
            'quantity': 40,
            'weight': '12.500',
            'supplier': 'Jaipur Gems',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['available_quantity'], 40)
        self.assertEqual(response.data['available_weight'], '12.500')
        self.assertEqual(response.data['status'], LotStatus.AVAILABLE)

    def test_duplicate_lot_number_message(self):
        TestDataFactory.create_stone_lot(lot_number='SL-EM-7')
        response = self.client.post('/api/v1/stone-lots/', {
            'lot_number': 'SL-EM-7', 'stone_type': 'Emerald', 'quantity': 1, 'weight': '1',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(str(response.data['lot_number'][0]), 'A stone lot with Lot Number "SL-EM-7" already exists.')

    def test_list_filters(self):
        TestDataFactory.create_stone_lot(stone_type='Ruby')
        TestDataFactory.create_stone_lot(stone_type='Emerald')
        TestDataFactory.create_stone_lot(stone_type='Ruby', quantity=0, weight=Decimal('0'), status=LotStatus.EXHAUSTED)

        response = self.client.get('/api/v1/stone-lots/', {'stone_type': 'ruby'})
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/v1/stone-lots/', {'available': 'true'})
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/v1/stone-lots/', {'status': 'Exhausted'})
        self.assertEqual(response.data['count'], 1)

    def test_detail_includes_allocations(self):
        lot = TestDataFactory.create_stone_lot(quantity=10)
        job = TestDataFactory.create_job(user=self.user)
        allocate_stone(job, lot.lot_number, 3)

        response = self.client.get(f'/api/v1/stone-lots/{lot.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['allocations']), 1)
        self.assertEqual(response.data['allocations'][0]['job_id'], job.job_id)

    def test_update_cannot_drop_below_allocated(self):
        lot = TestDataFactory.create_stone_lot(quantity=10)
        allocate_stone(TestDataFactory.create_job(), lot.lot_number, 6)

        response = self.client.patch(f'/api/v1/stone-lots/{lot.id}/', {'quantity': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.patch(f'/api/v1/stone-lots/{lot.id}/', {'quantity': 20}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['available_quantity'], 14)

    def test_edit_keeps_allocations_made_after_lot_was_read(self):
        lot = TestDataFactory.create_stone_lot(lot_number='SL-RB-9', quantity=10)
        stale = StoneLot.objects.get(pk=lot.pk)
        allocate_stone(TestDataFactory.create_job(), 'SL-RB-9', 8)

        serializer = StoneLotSerializer(stale, data={'supplier': 'Surat Traders'}, partial=True)
        self.assertTrue(serializer.is_valid(), serializer.errors)
        serializer.save()

        lot.refresh_from_db()
        self.assertEqual(lot.supplier, 'Surat Traders')
        self.assertEqual(lot.available_quantity, 2)
        self.assertEqual(lot.allocated_quantity, 8)

    def test_edit_checks_totals_against_current_allocations(self):
        lot = TestDataFactory.create_stone_lot(lot_number='SL-RB-10', quantity=10)
        stale = StoneLot.objects.get(pk=lot.pk)
        allocate_stone(TestDataFactory.create_job(), 'SL-RB-10', 8)

        serializer = StoneLotSerializer(stale, data={'quantity': 5}, partial=True)
        self.assertTrue(serializer.is_valid(), serializer.errors)
        with self.assertRaises(serializers.ValidationError):
            serializer.save()
        lot.refresh_from_db()
        self.assertEqual(lot.quantity, 10)
        self.assertEqual(lot.available_quantity, 2)

    def test_delete_blocked_with_allocations(self):
        lot = TestDataFactory.create_stone_lot(quantity=10)
        allocate_stone(TestDataFactory.create_job(), lot.lot_number, 1)
        response = self.client.delete(f'/api/v1/stone-lots/{lot.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(StoneLot.objects.filter(pk=lot.pk).exists())


class DiamondLotAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())

    def test_stonegroup_is_always_diamond(self):
        response = self.client.post('/api/v1/diamond-lots/', {
            'lot_number': 'DL-RD-2',
            'shape': 'RD',
            'size': '+2',
            'quality': 'HI/SI',
            'quantity': 500,
            'weight': '8.000',
            'stonegroup': 'ruby',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['stonegroup'], 'diamond')

    def test_duplicate_lot_number_message(self):
        TestDataFactory.create_diamond_lot(lot_number='DL-RD-2')
        response = self.client.post('/api/v1/diamond-lots/', {'lot_number': 'DL-RD-2', 'quantity': 1, 'weight': '1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('A diamond lot with Lot Number "DL-RD-2" already exists.', response.data['lot_number'])

    def test_delete_unused_lot(self):
        lot = TestDataFactory.create_diamond_lot()
        response = self.client.delete(f'/api/v1/diamond-lots/{lot.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
