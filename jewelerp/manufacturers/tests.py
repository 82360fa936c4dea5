"""
Tests for manufacturer management
"""
from django.test import TestCase
from rest_framework import status

from jewelerp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from jewelerp.jobs import workflow
from jewelerp.manufacturers.models import Manufacturer


class ManufacturerAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)

    def test_create_manufacturer(self):
        response = self.client.post('/api/v1/manufacturers/', {
            'name': 'Shree Casting Works',
            'contact_person': 'R. Mehta',
            'email': 'works@example.com',
            'specialties': ['Rings', ' Bangles '],
            'lead_time': '7-10 days',
            'rating': '4.5',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['specialties'], ['Rings', 'Bangles'])
        self.assertEqual(response.data['current_load'], 0)
        self.assertTrue(response.data['active'])

    def test_duplicate_name_rejected(self):
        TestDataFactory.create_manufacturer(name='Shree Casting Works')
        response = self.client.post('/api/v1/manufacturers/', {'name': 'Shree Casting Works'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('name', response.data)

    def test_rating_out_of_range_rejected(self):
        response = self.client.post('/api/v1/manufacturers/', {'name': 'Star Works', 'rating': '6'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('rating', response.data)

    def test_specialties_must_be_strings(self):
        response = self.client.post('/api/v1/manufacturers/', {'name': 'Star Works', 'specialties': [1, 2]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_ordered_by_name_and_filtered_by_active(self):
        TestDataFactory.create_manufacturer(name='Zenith')
        TestDataFactory.create_manufacturer(name='Alpha')
        TestDataFactory.create_manufacturer(name='Mid', active=False)

        response = self.client.get('/api/v1/manufacturers/')
        self.assertEqual([m['name'] for m in response.data], ['Alpha', 'Mid', 'Zenith'])

        response = self.client.get('/api/v1/manufacturers/', {'active': 'true'})
        self.assertEqual([m['name'] for m in response.data], ['Alpha', 'Zenith'])

    def test_update_manufacturer(self):
        manufacturer = TestDataFactory.create_manufacturer()
        response = self.client.patch(f'/api/v1/manufacturers/{manufacturer.id}/', {'active': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        manufacturer.refresh_from_db()
        self.assertFalse(manufacturer.active)

    def test_counters_cannot_be_written(self):
        manufacturer = TestDataFactory.create_manufacturer()
        job = TestDataFactory.create_job(user=self.user)
        TestDataFactory.advance_job(job, workflow.STATUS_SENT_TO_MANUFACTURER, user=self.user, manufacturer=manufacturer)

        response = self.client.patch(
            f'/api/v1/manufacturers/{manufacturer.id}/',
            {'current_load': 0, 'past_job_count': 99, 'lead_time': '5-7 days'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        manufacturer.refresh_from_db()
        self.assertEqual(manufacturer.current_load, 1)
        self.assertEqual(manufacturer.past_job_count, 0)
        self.assertEqual(manufacturer.lead_time, '5-7 days')

    def test_detail_reports_jobs_by_status(self):
        manufacturer = TestDataFactory.create_manufacturer()
        job = TestDataFactory.create_job(user=self.user)
        TestDataFactory.advance_job(job, workflow.STATUS_SENT_TO_MANUFACTURER, user=self.user, manufacturer=manufacturer)

        response = self.client.get(f'/api/v1/manufacturers/{manufacturer.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['jobs_by_status'], {workflow.STATUS_SENT_TO_MANUFACTURER: 1})
        self.assertEqual(response.data['current_load'], 1)

    def test_delete_blocked_while_holding_jobs(self):
        manufacturer = TestDataFactory.create_manufacturer()
        job = TestDataFactory.create_job(user=self.user)
        TestDataFactory.advance_job(job, workflow.STATUS_SENT_TO_MANUFACTURER, user=self.user, manufacturer=manufacturer)

        response = self.client.delete(f'/api/v1/manufacturers/{manufacturer.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(Manufacturer.objects.filter(pk=manufacturer.pk).exists())

    def test_delete_idle_manufacturer(self):
        manufacturer = TestDataFactory.create_manufacturer()
        response = self.client.delete(f'/api/v1/manufacturers/{manufacturer.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Manufacturer.objects.filter(pk=manufacturer.pk).exists())
