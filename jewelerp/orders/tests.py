"""
Tests for orders: creation with job fan-out, updates, deletion and listing
"""
from datetime import timedelta

from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status

from jewelerp.core.models import AuditLog
from jewelerp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from jewelerp.jobs import workflow
from jewelerp.jobs.models import Job, JobHistory
from jewelerp.lots.models import StoneLot
from jewelerp.orders.models import Order, OrderItem


class OrderModelTests(TestCase):

    def test_days_to_due(self):
        today = timezone.localdate()
        order = TestDataFactory.create_order(production_date=today, delivery_date=today + timedelta(days=12))
        self.assertEqual(order.days_to_due, 12)
        self.assertFalse(order.delivery_gap_warning)

    def test_delivery_gap_warning_under_seven_days(self):
        today = timezone.localdate()
        order = TestDataFactory.create_order(production_date=today, delivery_date=today + timedelta(days=6))
        self.assertTrue(order.delivery_gap_warning)

    def test_item_dates_fall_back_to_order(self):
        order = TestDataFactory.create_order()
        item = order.items.get()
        self.assertEqual(item.delivery_date, order.delivery_date)
        item.individual_delivery_date = order.delivery_date - timedelta(days=3)
        self.assertEqual(item.delivery_date, order.delivery_date - timedelta(days=3))


class OrderCreateTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)
        self.ring = TestDataFactory.create_sku(category='Ring', size='14')
        self.pendant = TestDataFactory.create_sku(category='Pendant', size='18')
        self.today = timezone.localdate()

    def payload(self, **overrides):
        data = {
            'order_type': 'Customer',
            'customer_name': 'Anita Rao',
            'production_date': str(self.today),
            'delivery_date': str(self.today + timedelta(days=20)),
            'items': [
                {'sku': self.ring.sku_id, 'quantity': 2, 'size': '15'},
                {
                    'sku': self.pendant.sku_id, 'quantity': 1,
                    'individual_production_date': str(self.today + timedelta(days=2)),
                    'individual_delivery_date': str(self.today + timedelta(days=10)),
                },
            ],
        }
        data.update(overrides)
        return data

    def test_create_fans_out_jobs(self):
        response = self.client.post('/api/v1/orders/', self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['order_id'], 'O-0001')

        order = Order.objects.get(order_id='O-0001')
        self.assertEqual(order.created_by, self.user)
        self.assertEqual(order.status, workflow.ORDER_STATUS_NEW)
        self.assertEqual(order.items.count(), 2)

        jobs = list(order.jobs.order_by('id'))
        self.assertEqual([job.job_id for job in jobs], ['J-0001-1', 'J-0001-2', 'J-0001-3'])
        self.assertTrue(all(job.status == workflow.STATUS_NEW for job in jobs))
        self.assertEqual(jobs[0].size, '15')
        self.assertEqual(jobs[0].due_date, order.delivery_date)
        self.assertEqual(jobs[2].production_date, self.today + timedelta(days=2))
        self.assertEqual(jobs[2].due_date, self.today + timedelta(days=10))
        self.assertEqual(JobHistory.objects.filter(job__order=order, action='Job created').count(), 3)
        self.assertEqual(response.data['job_status_breakdown'], {'New': 3, 'Pending': 0, 'Completed': 0})
        self.assertTrue(AuditLog.objects.filter(action='order_create', object_reference='O-0001').exists())

    def test_order_ids_are_sequential(self):
        self.client.post('/api/v1/orders/', self.payload(), format='json')
        response = self.client.post('/api/v1/orders/', self.payload(), format='json')
        self.assertEqual(response.data['order_id'], 'O-0002')
        self.assertTrue(Job.objects.filter(job_id='J-0002-1').exists())

    @override_settings(HOUSE_CUSTOMER_NAME='House of Tests')
    def test_stock_order_gets_house_customer(self):
        response = self.client.post('/api/v1/orders/', self.payload(order_type='Stock', customer_name=''), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['customer_name'], 'House of Tests')

    def test_customer_order_requires_customer_name(self):
        response = self.client.post('/api/v1/orders/', self.payload(customer_name=''), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('customer_name', response.data)

    def test_delivery_before_production_rejected(self):
        response = self.client.post('/api/v1/orders/', self.payload(
            delivery_date=str(self.today - timedelta(days=1)),
        ), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('delivery_date', response.data)
        self.assertFalse(Order.objects.exists())
        self.assertFalse(Job.objects.exists())

    def test_items_required(self):
        response = self.client.post('/api/v1/orders/', self.payload(items=[]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('items', response.data)

    def test_invalid_item_rejected(self):
        response = self.client.post('/api/v1/orders/', self.payload(items=[
            {'sku': self.ring.sku_id, 'quantity': 0},
            {'sku': 'NOPE-0000', 'quantity': 1},
            {'sku': self.ring.sku_id, 'quantity': 1, 'size': '30'},
        ]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        errors = response.data['items']
        self.assertIn('quantity', errors[0])
        self.assertIn('sku', errors[1])
        self.assertIn('size', errors[2])
        self.assertFalse(Order.objects.exists())

    def test_predicted_number(self):
        response = self.client.get('/api/v1/orders/predicted-number/')
        self.assertEqual(response.data['predicted_order_id'], 'O-0001')
        self.client.post('/api/v1/orders/', self.payload(), format='json')
        response = self.client.get('/api/v1/orders/predicted-number/')
        self.assertEqual(response.data['predicted_order_id'], 'O-0002')


class OrderUpdateDeleteTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)
        self.sku = TestDataFactory.create_sku()
        self.order = TestDataFactory.create_order(user=self.user, items=[(self.sku, 2)])

    def test_update_header(self):
        response = self.client.patch(f'/api/v1/orders/{self.order.order_id}/', {
            'status': workflow.ORDER_STATUS_PENDING, 'remarks': 'Rush',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, workflow.ORDER_STATUS_PENDING)
        self.assertEqual(self.order.remarks, 'Rush')
        self.assertTrue(AuditLog.objects.filter(action='order_update').exists())

    def test_update_rejects_delivery_before_production(self):
        response = self.client.patch(f'/api/v1/orders/{self.order.order_id}/', {
            'delivery_date': str(self.order.production_date - timedelta(days=1)),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_replacing_items_keeps_jobs(self):
        other = TestDataFactory.create_sku(name='New Design')
        response = self.client.patch(f'/api/v1/orders/{self.order.order_id}/', {
            'items': [{'sku': other.sku_id, 'quantity': 1}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(list(self.order.items.values_list('sku__sku_id', flat=True)), [other.sku_id])
        jobs = self.order.jobs.all()
        self.assertEqual(jobs.count(), 2)
        self.assertTrue(all(job.order_item_id is None for job in jobs))

    def test_delete_removes_jobs_and_releases_lots(self):
        job = self.order.jobs.order_by('id').first()
        job = TestDataFactory.advance_job(job, workflow.STATUS_STONE_SELECTED, user=self.user)
        lot = StoneLot.objects.get()
        self.assertEqual(lot.available_quantity, 98)

        response = self.client.delete(f'/api/v1/orders/{self.order.order_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Order.objects.filter(pk=self.order.pk).exists())
        self.assertFalse(Job.objects.filter(order_id=self.order.pk).exists())
        self.assertFalse(OrderItem.objects.filter(order_id=self.order.pk).exists())
        lot.refresh_from_db()
        self.assertEqual(lot.available_quantity, 100)
        self.assertTrue(AuditLog.objects.filter(action='order_delete', object_reference=self.order.order_id).exists())

    def test_delete_releases_manufacturer_load(self):
        manufacturer = TestDataFactory.create_manufacturer()
        job = self.order.jobs.order_by('id').first()
        TestDataFactory.advance_job(job, workflow.STATUS_IN_PRODUCTION, user=self.user, manufacturer=manufacturer)
        manufacturer.refresh_from_db()
        self.assertEqual(manufacturer.current_load, 1)

        self.client.delete(f'/api/v1/orders/{self.order.order_id}/')
        manufacturer.refresh_from_db()
        self.assertEqual(manufacturer.current_load, 0)

    def test_unknown_order_is_404(self):
        response = self.client.get('/api/v1/orders/O-9999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class OrderQueryTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)
        today = timezone.localdate()
        self.soon = TestDataFactory.create_order(customer_name='Meera', delivery_date=today + timedelta(days=5))
        self.later = TestDataFactory.create_order(
            customer_name='Kabir', delivery_date=today + timedelta(days=40), status=workflow.ORDER_STATUS_PENDING,
        )
        self.stock = TestDataFactory.create_order(order_type=Order.ORDER_TYPE_STOCK, customer_name='House')

    def test_list_is_paginated(self):
        response = self.client.get('/api/v1/orders/', {'limit': 2})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 3)
        self.assertEqual(len(response.data['results']), 2)
        self.assertEqual(response.data['total_pages'], 2)
        self.assertIn('days_to_due', response.data['results'][0])

    def test_filters(self):
        response = self.client.get('/api/v1/orders/', {'status': workflow.ORDER_STATUS_PENDING})
        self.assertEqual([o['order_id'] for o in response.data['results']], [self.later.order_id])

        response = self.client.get('/api/v1/orders/', {'order_type': 'Stock'})
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/v1/orders/', {'customer': 'mee'})
        self.assertEqual(response.data['results'][0]['order_id'], self.soon.order_id)

        cutoff = timezone.localdate() + timedelta(days=10)
        response = self.client.get('/api/v1/orders/', {'date_to': str(cutoff)})
        self.assertEqual([o['order_id'] for o in response.data['results']], [self.soon.order_id])

    def test_detail_breakdown_counts_each_job(self):
        sku = TestDataFactory.create_sku()
        order = TestDataFactory.create_order(user=self.user, items=[(sku, 3)])
        jobs = list(order.jobs.order_by('id'))
        TestDataFactory.advance_job(jobs[0], workflow.STATUS_BAG_CREATED, user=self.user)
        TestDataFactory.advance_job(jobs[1], workflow.STATUS_COMPLETED, user=self.user)

        response = self.client.get(f'/api/v1/orders/{order.order_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['job_status_breakdown'], {'New': 1, 'Pending': 1, 'Completed': 1})
        self.assertEqual(response.data['status'], workflow.ORDER_STATUS_NEW)
        phases = {job['job_id']: job['current_phase'] for job in response.data['jobs']}
        self.assertEqual(phases[jobs[1].job_id], workflow.PHASE_COMPLETE)

    def test_detail_with_unmapped_job_status_is_conflict(self):
        Job.objects.filter(order=self.soon).update(status='Lost in Transit')
        response = self.client.get(f'/api/v1/orders/{self.soon.order_id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['status'], 'Lost in Transit')

    def test_gap_warning_reported(self):
        today = timezone.localdate()
        order = TestDataFactory.create_order(production_date=today, delivery_date=today + timedelta(days=3))
        response = self.client.get(f'/api/v1/orders/{order.order_id}/')
        self.assertTrue(response.data['delivery_gap_warning'])
        self.assertEqual(response.data['items'][0]['quantity'], 1)
        self.assertEqual(response.data['days_to_due'], 3)
