"""
Tests for dashboard reports
"""
from datetime import timedelta

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from jewelerp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from jewelerp.jobs import workflow
from jewelerp.jobs.models import Job


class ReportTestCase(TestCase):

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)


class SKUStatisticsTests(ReportTestCase):

    def test_top_skus_by_ordered_quantity(self):
        ruby = TestDataFactory.create_sku(name='Ruby Ring')
        pearl = TestDataFactory.create_sku(name='Pearl Pendant', category='Pendant', size='18')
        TestDataFactory.create_sku(name='Never Ordered')
        TestDataFactory.create_order(items=[(ruby, 2), (pearl, 1)], with_jobs=False)
        TestDataFactory.create_order(items=[(pearl, 4)], with_jobs=False)

        response = self.client.get('/api/v1/reports/sku-statistics/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [
            {'id': pearl.sku_id, 'name': 'Pearl Pendant', 'count': 5},
            {'id': ruby.sku_id, 'name': 'Ruby Ring', 'count': 2},
        ])

        response = self.client.get('/api/v1/reports/sku-statistics/', {'limit': 1})
        self.assertEqual(len(response.data), 1)

    def test_new_order_invalidates_cached_statistics(self):
        sku = TestDataFactory.create_sku()
        TestDataFactory.create_order(items=[(sku, 1)], with_jobs=False)
        self.assertEqual(self.client.get('/api/v1/reports/sku-statistics/').data[0]['count'], 1)

        TestDataFactory.create_order(items=[(sku, 2)], with_jobs=False)
        self.assertEqual(self.client.get('/api/v1/reports/sku-statistics/').data[0]['count'], 3)


class PhaseSummaryTests(ReportTestCase):

    def test_counts_by_status_and_phase(self):
        sku = TestDataFactory.create_sku()
        order = TestDataFactory.create_order(items=[(sku, 3)])
        jobs = list(order.jobs.order_by('id'))
        TestDataFactory.advance_job(jobs[1], workflow.STATUS_STONE_SELECTED)
        TestDataFactory.advance_job(jobs[2], workflow.STATUS_QC_FAILED)

        response = self.client.get('/api/v1/reports/phase-summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 3)
        by_status = {row['status']: row['count'] for row in response.data['by_status']}
        self.assertEqual(by_status['New'], 1)
        self.assertEqual(by_status['Stone Selected'], 1)
        self.assertEqual(by_status['QC Failed'], 1)
        self.assertEqual(len(by_status), 10)
        by_phase = {row['phase']: row['count'] for row in response.data['by_phase']}
        self.assertEqual(by_phase, {'stone': 1, 'diamond': 1, 'manufacturer': 1, 'qc': 0, 'complete': 0})
        self.assertEqual(response.data['unmapped'], {})

    def test_unmapped_statuses_reported_separately(self):
        job = TestDataFactory.create_job()
        Job.objects.filter(pk=job.pk).update(status='Lost in Transit')
        response = self.client.get('/api/v1/reports/phase-summary/')
        self.assertEqual(response.data['total'], 1)
        self.assertEqual(response.data['unmapped'], {'Lost in Transit': 1})
        self.assertEqual(sum(row['count'] for row in response.data['by_phase']), 0)


class PriorityOrderTests(ReportTestCase):

    def test_open_orders_by_delivery_date(self):
        today = timezone.localdate()
        late = TestDataFactory.create_order(delivery_date=today + timedelta(days=30))
        soon = TestDataFactory.create_order(delivery_date=today + timedelta(days=2))
        TestDataFactory.create_order(delivery_date=today + timedelta(days=1), status=workflow.ORDER_STATUS_COMPLETED)

        response = self.client.get('/api/v1/reports/priority-orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['order_id'] for row in response.data], [soon.order_id, late.order_id])
        self.assertEqual(response.data[0]['days_to_due'], 2)
        self.assertEqual(response.data[0]['job_count'], 1)
        self.assertFalse(response.data[0]['overdue'])


class NextTaskTests(ReportTestCase):

    def test_earliest_due_job_for_team(self):
        today = timezone.localdate()
        later = TestDataFactory.create_order(delivery_date=today + timedelta(days=20))
        sooner = TestDataFactory.create_order(delivery_date=today + timedelta(days=5))

        response = self.client.get('/api/v1/reports/next-task/', {'team': 'bag'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], workflow.STATUS_NEW)
        self.assertEqual(response.data['queue_length'], 2)
        self.assertEqual(response.data['job']['job_id'], sooner.jobs.get().job_id)
        self.assertNotEqual(response.data['job']['job_id'], later.jobs.get().job_id)

    def test_empty_queue(self):
        response = self.client.get('/api/v1/reports/next-task/', {'team': 'qc'})
        self.assertEqual(response.data['queue_length'], 0)
        self.assertIsNone(response.data['job'])

    def test_unknown_team(self):
        response = self.client.get('/api/v1/reports/next-task/', {'team': 'polishing'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
