"""
Tests for core: sequences, audit logging, auth endpoints, settings, caching and demo data
"""
import io
from decimal import Decimal

from django.contrib.auth.models import Group
from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase, RequestFactory
from rest_framework import status

from jewelerp.core.cache_signals import suspend_cache_signals
from jewelerp.core.management.commands.seed_demo_data import Command as SeedCommand
from jewelerp.core.cache_utils import cached_query, get_generation, invalidate_dashboard_cache
from jewelerp.core.models import Sequence, Setting, AuditLog
from jewelerp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from jewelerp.core.utils import create_audit_log, get_client_ip
from jewelerp.catalog.models import SKU
from jewelerp.jobs import workflow
from jewelerp.jobs.models import Job
from jewelerp.lots.models import StoneLot, DiamondLot
from jewelerp.manufacturers.models import Manufacturer
from jewelerp.orders.models import Order


class SequenceTests(TestCase):

    def test_next_value_starts_at_one_and_increments(self):
        self.assertEqual(Sequence.next_value('demo'), 1)
        self.assertEqual(Sequence.next_value('demo'), 2)
        self.assertEqual(Sequence.objects.get(name='demo').last_value, 2)

    def test_peek_does_not_consume(self):
        self.assertEqual(Sequence.peek('demo'), 1)
        self.assertEqual(Sequence.peek('demo'), 1)
        Sequence.next_value('demo')
        self.assertEqual(Sequence.peek('demo'), 2)

    def test_sequences_are_independent(self):
        Sequence.next_value('a')
        Sequence.next_value('a')
        self.assertEqual(Sequence.next_value('b'), 1)


class AuditLogUtilityTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.factory = RequestFactory()

    def test_create_audit_log_uses_request_user_and_ip(self):
        request = self.factory.get('/', HTTP_X_FORWARDED_FOR='10.0.0.5, 10.0.0.1')
        request.user = self.user
        log = create_audit_log(request=request, action='create', model_name='SKU', object_id=7,
                               object_name='Ruby Ring', object_reference='RGYG-0001')
        self.assertIsNotNone(log)
        self.assertEqual(log.user, self.user)
        self.assertEqual(log.ip_address, '10.0.0.5')
        self.assertEqual(log.object_id, '7')

    def test_create_audit_log_skips_missing_fields(self):
        self.assertIsNone(create_audit_log(action='create', model_name='SKU'))
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_get_client_ip_without_request(self):
        self.assertIsNone(get_client_ip(None))


class AuthEndpointTests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(username='planner', password='secret-pass-1')

    def test_login_returns_tokens(self):
        response = self.client.post('/api/v1/auth/login/', {'username': 'planner', 'password': 'secret-pass-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_login_rejects_wrong_password(self):
        response = self.client.post('/api/v1/auth/login/', {'username': 'planner', 'password': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_returns_current_user(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], 'planner')
        self.assertFalse(response.data['is_admin'])
        self.assertEqual(response.data['teams'], [])

    def test_me_lists_workflow_teams_from_groups(self):
        self.user.groups.add(Group.objects.create(name='QC'), Group.objects.create(name='Accounts'))
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.data['teams'], ['qc'])


class SettingEndpointTests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_settings_require_admin(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/settings/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_can_create_and_update_setting(self):
        self.client.authenticate_user(TestDataFactory.create_user(is_staff=True))
        response = self.client.post('/api/v1/settings/', {'key': 'shop_name', 'value': 'Main'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.patch('/api/v1/settings/shop_name/', {'value': 'Annex'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Setting.objects.get(key='shop_name').value, 'Annex')

        log = AuditLog.objects.get(action='update', model_name='Setting')
        self.assertEqual(log.changes['value'], {'old': 'Main', 'new': 'Annex'})

    def test_delete_setting(self):
        self.client.authenticate_user(TestDataFactory.create_user(is_staff=True))
        Setting.objects.create(key='sticker_title', value='Fine Jewellery')
        response = self.client.delete('/api/v1/settings/sticker_title/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Setting.objects.exists())
        self.assertEqual(self.client.get('/api/v1/settings/sticker_title/').status_code, status.HTTP_404_NOT_FOUND)


class AuditLogEndpointTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)
        create_audit_log(user=self.user, action='create', model_name='SKU', object_id=1, object_reference='RGYG-0001')
        create_audit_log(user=self.user, action='order_create', model_name='Order', object_id=2, object_reference='O-0001')

    def test_list_is_paginated(self):
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        for key in ('results', 'next', 'previous', 'page', 'page_size', 'total_pages'):
            self.assertIn(key, response.data)

    def test_filter_by_action(self):
        response = self.client.get('/api/v1/audit-logs/', {'action': 'order_create'})
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['object_reference'], 'O-0001')

    def test_filter_by_reference_and_model(self):
        response = self.client.get('/api/v1/audit-logs/', {'reference': 'rgyg'})
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/audit-logs/', {'model_name': 'order', 'user': self.user.username})
        self.assertEqual(response.data['count'], 1)


class DashboardCacheTests(TestCase):

    def setUp(self):
        cache.clear()
        self.calls = 0

    def test_cached_query_hits_until_invalidated(self):
        @cached_query(cache_ttl=60, key_prefix='sku_statistics')
        def compute(limit):
            self.calls += 1
            return [limit]

        self.assertEqual(compute(5), [5])
        self.assertEqual(compute(5), [5])
        self.assertEqual(self.calls, 1)

        invalidate_dashboard_cache()
        compute(5)
        self.assertEqual(self.calls, 2)

    def test_order_save_invalidates_dashboard(self):
        before = get_generation('phase_summary')
        TestDataFactory.create_order()
        self.assertGreater(get_generation('phase_summary'), before)

    def test_suspended_signals_invalidate_once(self):
        before = get_generation('sku_statistics')
        with suspend_cache_signals():
            TestDataFactory.create_order()
            TestDataFactory.create_order()
            self.assertEqual(get_generation('sku_statistics'), before)
        self.assertEqual(get_generation('sku_statistics'), before + 1)


class SeedDemoDataCommandTests(TestCase):

    def test_seeds_jobs_through_the_workflow(self):
        out = io.StringIO()
        call_command('seed_demo_data', '--orders', '4', '--seed', '7', stdout=out)

        self.assertEqual(Manufacturer.objects.count(), 3)
        self.assertEqual(SKU.objects.count(), 4)
        self.assertEqual(Order.objects.count(), 4)
        self.assertTrue(Job.objects.exists())
        for job in Job.objects.all():
            workflow.phase_for_status(job.status)
            self.assertTrue(job.history.exists())
        for lot in StoneLot.objects.all():
            allocated = sum(a.quantity for a in lot.allocations.all())
            self.assertEqual(lot.quantity - lot.available_quantity, allocated)
        self.assertIn('Seeded', out.getvalue())

    def test_reference_data_is_not_duplicated(self):
        call_command('seed_demo_data', '--orders', '1', '--seed', '1', stdout=io.StringIO())
        call_command('seed_demo_data', '--orders', '1', '--seed', '2', stdout=io.StringIO())

        self.assertEqual(Manufacturer.objects.count(), 3)
        self.assertEqual(StoneLot.objects.count(), 3)
        self.assertEqual(SKU.objects.count(), 4)
        self.assertEqual(sorted(Order.objects.values_list('order_id', flat=True)), ['O-0001', 'O-0002'])

    def test_rerun_restocks_drained_lots(self):
        call_command('seed_demo_data', '--orders', '2', '--seed', '3', stdout=io.StringIO())
        for model in (StoneLot, DiamondLot):
            for lot in model.objects.all():
                lot.quantity -= lot.available_quantity
                lot.weight -= lot.available_weight
                lot.available_quantity = 0
                lot.available_weight = 0
                lot.refresh_status()
                lot.save()

        out = io.StringIO()
        call_command('seed_demo_data', '--orders', '2', '--seed', '3', stdout=out)

        self.assertIn('Restocked SL-RB-001', out.getvalue())
        self.assertEqual(Order.objects.count(), 4)
        for model in (StoneLot, DiamondLot):
            for lot in model.objects.all():
                allocated = sum(a.quantity for a in lot.allocations.all())
                self.assertEqual(lot.quantity - lot.available_quantity, allocated)
                self.assertGreater(lot.available_quantity, 0)

    def test_walk_stops_at_lot_shortage(self):
        user = TestDataFactory.create_user()
        job = TestDataFactory.create_job(user=user)
        short_lot = TestDataFactory.create_stone_lot(quantity=1, weight=Decimal('0.300'))
        command = SeedCommand(stdout=io.StringIO())

        job = command._walk(job, workflow.STATUS_COMPLETED, short_lot, TestDataFactory.create_diamond_lot(),
                            TestDataFactory.create_manufacturer(), user)

        self.assertEqual(job.status, workflow.STATUS_BAG_CREATED)
        self.assertIn(f'Left {job.job_id}', command.stdout.getvalue())
        short_lot.refresh_from_db()
        self.assertEqual(short_lot.available_quantity, 1)
