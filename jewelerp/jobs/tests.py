"""
Tests for the job workflow map, phase actions, job queries, stickers and the
workflow check command
"""
import base64
import io
from decimal import Decimal

from django.core.management import call_command, CommandError
from django.test import TestCase, SimpleTestCase
from PIL import Image
from rest_framework import status

from jewelerp.core.models import AuditLog
from jewelerp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from jewelerp.jobs import services, workflow
from jewelerp.jobs.models import Job
from jewelerp.jobs.stickers import generate_work_sticker
from jewelerp.lots.models import LotStatus
from jewelerp.lots.services import LotAllocationError


class WorkflowMapTests(SimpleTestCase):

    def test_every_status_has_exactly_one_known_phase(self):
        for value in workflow.JOB_STATUSES:
            self.assertIn(workflow.phase_for_status(value), workflow.JOB_PHASES)
        self.assertEqual(set(workflow.STATUS_TO_PHASE), set(workflow.JOB_STATUSES))

    def test_phase_table(self):
        expected = {
            'New': 'stone',
            'Bag Created': 'stone',
            'Stone Selected': 'diamond',
            'Diamond Selected': 'manufacturer',
            'Sent to Manufacturer': 'manufacturer',
            'In Production': 'manufacturer',
            'Received from Manufacturer': 'qc',
            'QC Passed': 'complete',
            'QC Failed': 'manufacturer',
            'Completed': 'complete',
        }
        self.assertEqual({s: workflow.phase_for_status(s) for s in expected}, expected)

    def test_order_status_table(self):
        self.assertEqual(workflow.order_status_for_job_status('New'), 'New')
        self.assertEqual(workflow.order_status_for_job_status('Completed'), 'Completed')
        for value in workflow.JOB_STATUSES:
            if value not in ('New', 'Completed'):
                self.assertEqual(workflow.order_status_for_job_status(value), 'Pending')

    def test_unknown_status_raises(self):
        for bad in ('Lost', '', None, 'new'):
            with self.assertRaises(workflow.UnmappedStatusError) as ctx:
                workflow.phase_for_status(bad)
            self.assertEqual(ctx.exception.status, bad)
            with self.assertRaises(workflow.UnmappedStatusError):
                workflow.order_status_for_job_status(bad)

    def test_lookups_are_repeatable(self):
        self.assertEqual(workflow.phase_for_status('In Production'), workflow.phase_for_status('In Production'))

    def test_tables_are_frozen(self):
        with self.assertRaises(TypeError):
            workflow.STATUS_TO_PHASE['Lost'] = 'stone'
        with self.assertRaises(TypeError):
            workflow.PHASE_INFO['stone']['label'] = 'Changed'

    def test_phase_info(self):
        self.assertEqual(workflow.phase_info('qc')['label'], 'Quality Check')
        with self.assertRaises(workflow.UnknownPhaseError):
            workflow.phase_info('polishing')

    def test_status_info(self):
        self.assertEqual(workflow.status_info('New'), {'label': 'New Job', 'color': 'bg-blue-400'})
        self.assertEqual(workflow.status_info('QC Passed')['label'], 'Quality Check Passed')

    def test_statuses_for_phase_in_workflow_order(self):
        self.assertEqual(workflow.statuses_for_phase('stone'), ('New', 'Bag Created'))
        self.assertEqual(
            workflow.statuses_for_phase('manufacturer'),
            ('Diamond Selected', 'Sent to Manufacturer', 'In Production', 'QC Failed'),
        )

    def test_next_phase(self):
        self.assertEqual(workflow.next_phase('stone'), 'diamond')
        self.assertEqual(workflow.next_phase('qc'), 'complete')
        self.assertIsNone(workflow.next_phase('complete'))

    def test_next_status_chain(self):
        chain = ['New']
        while chain[-1] != 'Completed':
            chain.append(workflow.next_status(chain[-1]))
        self.assertEqual(chain, [
            'New', 'Bag Created', 'Stone Selected', 'Diamond Selected', 'Sent to Manufacturer',
            'In Production', 'Received from Manufacturer', 'QC Passed', 'Completed',
        ])
        self.assertEqual(workflow.next_status('Received from Manufacturer', passed=False), 'QC Failed')
        self.assertEqual(workflow.next_status('QC Failed'), 'In Production')
        with self.assertRaises(workflow.InvalidTransitionError):
            workflow.next_status('Completed')

    def test_next_manufacturer_status(self):
        self.assertEqual(workflow.next_manufacturer_status('Sent to Manufacturer'), 'In Production')
        self.assertEqual(workflow.next_manufacturer_status('In Production'), 'Received from Manufacturer')
        self.assertEqual(workflow.next_manufacturer_status('QC Failed'), 'In Production')
        self.assertIsNone(workflow.next_manufacturer_status('Diamond Selected'))

    def test_job_route(self):
        self.assertEqual(workflow.job_route('O-0001', 'J-0001-1', 'New'), '/orders/O-0001/jobs/J-0001-1/stone-selection')
        self.assertEqual(
            workflow.job_route('O-0001', 'J-0001-1', 'Received from Manufacturer'),
            '/orders/O-0001/jobs/J-0001-1/quality-check',
        )
        with self.assertRaises(workflow.UnmappedStatusError):
            workflow.job_route('O-0001', 'J-0001-1', 'Lost')

    def test_team_queues(self):
        self.assertEqual(workflow.queue_status_for_team('bag'), 'New')
        self.assertEqual(workflow.queue_status_for_team('qc'), 'Received from Manufacturer')
        with self.assertRaises(ValueError):
            workflow.queue_status_for_team('polishing')

    def test_job_ids(self):
        self.assertEqual(services.build_job_id('O-0042', 3), 'J-0042-3')


class JobServiceTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.job = TestDataFactory.create_job(user=self.user)

    def test_new_job_properties(self):
        self.assertEqual(self.job.current_phase, workflow.PHASE_STONE)
        self.assertEqual(self.job.order_status, workflow.ORDER_STATUS_NEW)
        self.assertTrue(self.job.route.endswith('/stone-selection'))

    def test_full_walk_writes_history_and_audit(self):
        manufacturer = TestDataFactory.create_manufacturer()
        job = TestDataFactory.advance_job(self.job, workflow.STATUS_COMPLETED, user=self.user, manufacturer=manufacturer)
        self.assertEqual(job.status, workflow.STATUS_COMPLETED)
        self.assertEqual(job.current_phase, workflow.PHASE_COMPLETE)

        actions = list(job.history.values_list('action', flat=True))
        self.assertEqual(actions[0], 'Job created')
        self.assertEqual(actions[-1], 'Job completed')
        self.assertIn('Quality check passed', actions)
        self.assertEqual(AuditLog.objects.filter(action='job_transition', object_name=job.job_id).count(), 8)
        self.assertEqual(AuditLog.objects.filter(action='lot_allocation', object_reference=job.job_id).count(), 2)

        manufacturer.refresh_from_db()
        self.assertEqual(manufacturer.current_load, 0)
        self.assertEqual(manufacturer.past_job_count, 1)

    def test_out_of_order_action_rejected(self):
        lot = TestDataFactory.create_stone_lot()
        with self.assertRaises(workflow.InvalidTransitionError):
            services.select_stones(self.job, [{'lot_number': lot.lot_number, 'quantity': 1}])
        with self.assertRaises(workflow.InvalidTransitionError):
            services.complete_job(self.job)
        self.job.refresh_from_db()
        self.assertEqual(self.job.status, workflow.STATUS_NEW)

    def test_stone_selection_records_allocations(self):
        job = services.create_bag(self.job, user=self.user)
        lot = TestDataFactory.create_stone_lot(quantity=5, weight=Decimal('2.000'))
        job = services.select_stones(job, [
            {'lot_number': lot.lot_number, 'quantity': 5, 'weight': Decimal('2.000'), 'remarks': 'all of it'},
        ], user=self.user)
        self.assertEqual(job.status, workflow.STATUS_STONE_SELECTED)
        self.assertEqual(job.stone_data['total_quantity'], 5)
        self.assertEqual(job.stone_data['allocations'][0]['lot_number'], lot.lot_number)
        lot.refresh_from_db()
        self.assertEqual(lot.status, LotStatus.EXHAUSTED)

    def test_failed_allocation_rolls_back_selection(self):
        job = services.create_bag(self.job)
        good = TestDataFactory.create_stone_lot(quantity=10)
        small = TestDataFactory.create_stone_lot(quantity=1)
        with self.assertRaises(LotAllocationError):
            services.select_stones(job, [
                {'lot_number': good.lot_number, 'quantity': 3},
                {'lot_number': small.lot_number, 'quantity': 2},
            ])
        good.refresh_from_db()
        job.refresh_from_db()
        self.assertEqual(good.available_quantity, 10)
        self.assertEqual(job.status, workflow.STATUS_BAG_CREATED)

    def test_inactive_manufacturer_rejected(self):
        job = TestDataFactory.advance_job(self.job, workflow.STATUS_DIAMOND_SELECTED)
        inactive = TestDataFactory.create_manufacturer(active=False)
        with self.assertRaises(workflow.InvalidTransitionError):
            services.send_to_manufacturer(job, inactive)

    def test_qc_failure_goes_back_to_production(self):
        manufacturer = TestDataFactory.create_manufacturer()
        job = TestDataFactory.advance_job(self.job, workflow.STATUS_QC_FAILED, manufacturer=manufacturer)
        self.assertEqual(job.current_phase, workflow.PHASE_MANUFACTURER)
        self.assertEqual(job.qc_data['attempts'], 1)
        self.assertFalse(job.qc_data['passed'])

        job = services.advance_manufacturing(job, remarks='re-polish')
        self.assertEqual(job.status, workflow.STATUS_IN_PRODUCTION)
        manufacturer.refresh_from_db()
        self.assertEqual(manufacturer.current_load, 1)

        job = services.advance_manufacturing(job)
        job = services.quality_check(job, {'measured_weight': Decimal('5.1'), 'passed': True})
        self.assertEqual(job.status, workflow.STATUS_QC_PASSED)
        self.assertEqual(job.qc_data['attempts'], 2)

    def test_quality_check_requires_received_job(self):
        with self.assertRaises(workflow.InvalidTransitionError):
            services.quality_check(self.job, {'measured_weight': Decimal('1'), 'passed': True})

    def test_unmapped_status_rejected_by_actions(self):
        Job.objects.filter(pk=self.job.pk).update(status='Lost in Transit')
        with self.assertRaises(workflow.UnmappedStatusError):
            services.create_bag(self.job)
        with self.assertRaises(workflow.UnmappedStatusError):
            services.quality_check(self.job, {'measured_weight': Decimal('1'), 'passed': True})


class JobAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)
        self.job = TestDataFactory.create_job(user=self.user)

    def url(self, suffix=''):
        return f'/api/v1/jobs/{self.job.job_id}/{suffix}'

    def test_detail(self):
        response = self.client.get(self.url())
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['current_phase'], 'stone')
        self.assertEqual(response.data['phase_info']['label'], 'Stone Selection')
        self.assertEqual(response.data['status_info']['label'], 'New Job')
        self.assertEqual(response.data['next_phase'], 'diamond')
        self.assertEqual(len(response.data['history']), 1)

    def test_create_bag_then_select_stones(self):
        response = self.client.post(self.url('create-bag/'), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], workflow.STATUS_BAG_CREATED)

        lot = TestDataFactory.create_stone_lot(quantity=10)
        response = self.client.post(self.url('select-stones/'), {
            'allocations': [{'lot_number': lot.lot_number, 'quantity': 4, 'weight': '1.200'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], workflow.STATUS_STONE_SELECTED)
        self.assertEqual(response.data['current_phase'], 'diamond')
        self.assertEqual(len(response.data['stone_allocations']), 1)

    def test_stone_selection_on_new_job_is_conflict(self):
        lot = TestDataFactory.create_stone_lot()
        response = self.client.post(self.url('select-stones/'), {
            'allocations': [{'lot_number': lot.lot_number, 'quantity': 1}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_over_allocation_is_bad_request(self):
        services.create_bag(self.job)
        lot = TestDataFactory.create_stone_lot(quantity=2)
        response = self.client.post(self.url('select-stones/'), {
            'allocations': [{'lot_number': lot.lot_number, 'quantity': 3}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['lot_number'], lot.lot_number)

    def test_empty_allocations_rejected(self):
        services.create_bag(self.job)
        response = self.client.post(self.url('select-stones/'), {'allocations': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_send_to_inactive_manufacturer_is_bad_request(self):
        TestDataFactory.advance_job(self.job, workflow.STATUS_DIAMOND_SELECTED)
        inactive = TestDataFactory.create_manufacturer(active=False)
        response = self.client.post(self.url('send-to-manufacturer/'), {'manufacturer': inactive.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('manufacturer', response.data)

    def test_manufacturing_and_quality_check(self):
        TestDataFactory.advance_job(self.job, workflow.STATUS_DIAMOND_SELECTED)
        manufacturer = TestDataFactory.create_manufacturer()
        response = self.client.post(self.url('send-to-manufacturer/'), {
            'manufacturer': manufacturer.id, 'expected_completion_date': '2030-01-15', 'remarks': 'urgent',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['manufacturer_name'], manufacturer.name)
        self.assertEqual(response.data['manufacturer_data']['expected_completion_date'], '2030-01-15')

        self.client.post(self.url('advance-manufacturing/'), {}, format='json')
        response = self.client.post(self.url('advance-manufacturing/'), {}, format='json')
        self.assertEqual(response.data['status'], workflow.STATUS_RECEIVED_FROM_MANUFACTURER)

        response = self.client.post(self.url('quality-check/'), {
            'measured_weight': '5.400',
            'passed': True,
            'notes': 'Clean finish',
            'gold_usage': [{'description': 'Casting', 'gross_weight': '6.000', 'scrap_weight': '0.600'}],
            'diamond_usage': [{'type': 'RD', 'return_quantity': 2}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], workflow.STATUS_QC_PASSED)
        self.assertEqual(response.data['qc_data']['gold_usage'][0]['gross_weight'], '6.000')

        response = self.client.post(self.url('complete/'), {'remarks': 'Delivered to vault'}, format='json')
        self.assertEqual(response.data['status'], workflow.STATUS_COMPLETED)
        self.assertEqual(response.data['order_status'], workflow.ORDER_STATUS_COMPLETED)

    def test_quality_check_validation(self):
        TestDataFactory.advance_job(self.job, workflow.STATUS_RECEIVED_FROM_MANUFACTURER)
        response = self.client.post(self.url('quality-check/'), {
            'measured_weight': '0',
            'passed': True,
            'gold_usage': [{'description': 'Casting', 'gross_weight': '0'}],
            'colored_stone_usage': [{'type': 'Ruby', 'loss_quantity': -1}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('measured_weight', response.data)
        self.assertIn('gold_usage', response.data)
        self.assertIn('colored_stone_usage', response.data)

        response = self.client.post(self.url('quality-check/'), {'measured_weight': '4.000'}, format='json')
        self.assertIn('passed', response.data)

    def test_complete_before_qc_is_conflict(self):
        response = self.client.post(self.url('complete/'), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertIn('error', response.data)

    def test_unmapped_status_is_conflict_with_status(self):
        Job.objects.filter(pk=self.job.pk).update(status='Lost in Transit')
        response = self.client.get(self.url())
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['status'], 'Lost in Transit')

        response = self.client.post(self.url('create-bag/'), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_history(self):
        services.create_bag(self.job, user=self.user)
        response = self.client.get(self.url('history/'))
        self.assertEqual([row['action'] for row in response.data], ['Job created', 'Bag created'])
        self.assertEqual(response.data[1]['user'], self.user.username)

    def test_list_filters(self):
        other = TestDataFactory.create_job(user=self.user)
        TestDataFactory.advance_job(other, workflow.STATUS_STONE_SELECTED)

        response = self.client.get('/api/v1/jobs/', {'phase': 'diamond'})
        self.assertEqual([job['job_id'] for job in response.data['results']], [other.job_id])

        response = self.client.get('/api/v1/jobs/', {'status': 'New'})
        self.assertEqual([job['job_id'] for job in response.data['results']], [self.job.job_id])

        response = self.client.get('/api/v1/jobs/', {'search': self.job.order.order_id})
        self.assertEqual(response.data['count'], 1)

    def test_order_job_list(self):
        response = self.client.get(f'/api/v1/orders/{self.job.order.order_id}/jobs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['route'], self.job.route)

    def test_add_job_to_existing_order(self):
        order = self.job.order
        sku = TestDataFactory.create_sku(name='Leaf Ring', category='Ring')
        response = self.client.post(f'/api/v1/orders/{order.order_id}/jobs/', {'sku': sku.sku_id, 'size': '15.5'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['job_id'], services.build_job_id(order.order_id, 2))
        self.assertEqual(response.data['status'], workflow.STATUS_NEW)
        self.assertEqual(response.data['size'], '15.5')
        self.assertEqual(len(response.data['history']), 1)

        job = Job.objects.get(job_id=response.data['job_id'])
        self.assertEqual(job.due_date, order.delivery_date)
        self.assertIsNone(job.order_item)
        self.assertEqual(order.jobs.count(), 2)
        self.assertTrue(AuditLog.objects.filter(action='job_create', object_reference=order.order_id).exists())

    def test_add_job_validates_sku_and_size(self):
        order_url = f'/api/v1/orders/{self.job.order.order_id}/jobs/'
        response = self.client.post(order_url, {'sku': 'NO-SUCH-SKU'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        sku = TestDataFactory.create_sku(category='Ring')
        response = self.client.post(order_url, {'sku': sku.sku_id, 'size': '30'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('size', response.data)
        self.assertEqual(self.job.order.jobs.count(), 1)

        response = self.client.post('/api/v1/orders/O-9999/jobs/', {'sku': sku.sku_id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_sticker(self):
        response = self.client.get(self.url('sticker/'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['sticker'].startswith('data:image/png;base64,'))

    def test_workflow_reference(self):
        response = self.client.get('/api/v1/jobs/workflow/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['statuses']), 10)
        self.assertEqual([phase['value'] for phase in response.data['phases']], list(workflow.JOB_PHASES))


class StickerTests(SimpleTestCase):

    def test_renders_png(self):
        url = generate_work_sticker('J-0001-1', 'Stone Selection', {'Order': 'O-0001', 'SKU': 'RGYG-0001'})
        header, encoded = url.split(',', 1)
        self.assertEqual(header, 'data:image/png;base64')
        img = Image.open(io.BytesIO(base64.b64decode(encoded)))
        self.assertEqual(img.format, 'PNG')
        self.assertEqual(img.width, 400)


class CheckJobWorkflowCommandTests(TestCase):

    def test_clean_run(self):
        TestDataFactory.create_job()
        out = io.StringIO()
        call_command('check_job_workflow', stdout=out)
        self.assertIn('All job statuses map to a phase', out.getvalue())
        self.assertIn('Stone Selection: 1', out.getvalue())

    def test_strict_fails_on_unmapped(self):
        job = TestDataFactory.create_job()
        Job.objects.filter(pk=job.pk).update(status='Lost in Transit')
        out = io.StringIO()
        call_command('check_job_workflow', stdout=out)
        self.assertIn(job.job_id, out.getvalue())
        with self.assertRaises(CommandError):
            call_command('check_job_workflow', '--strict', stdout=io.StringIO())
