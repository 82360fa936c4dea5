"""
Tests for the SKU catalog: id generation, size rules, CRUD, batches and images
"""
import io
import os
import shutil
import tempfile

from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, SimpleTestCase, override_settings
from PIL import Image
from rest_framework import status

from jewelerp.catalog import constants
from jewelerp.catalog.images import compress_to_webp, sku_image_path, InvalidImageError
from jewelerp.catalog.models import SKU
from jewelerp.catalog.utils import generate_sku_id, get_predicted_sku_number
from jewelerp.catalog.validators import validate_size
from jewelerp.core.models import AuditLog
from jewelerp.core.test_utils import TestDataFactory, AuthenticatedAPIClient


def make_image_bytes(size=(64, 48), fmt='PNG', color=(200, 30, 30)):
    buffer = io.BytesIO()
    Image.new('RGB', size, color=color).save(buffer, format=fmt)
    return buffer.getvalue()


class ConstantsTests(SimpleTestCase):

    def test_category_codes(self):
        self.assertEqual(constants.get_category_code('Ring'), 'RG')
        self.assertEqual(constants.get_category_code('Necklace'), 'NK')
        self.assertEqual(constants.get_category_code('Spaceship'), 'OO')

    def test_gold_short_codes(self):
        self.assertEqual(constants.get_gold_short_code('Yellow Gold'), 'YG')
        self.assertEqual(constants.get_gold_short_code('White Gold'), 'WG')
        self.assertEqual(constants.get_gold_short_code('Platinum'), 'NO')

    def test_build_sku_id(self):
        self.assertEqual(constants.build_sku_id('Ring', 'Yellow Gold', 42), 'RGYG-0042')
        self.assertEqual(constants.build_sku_id('Bangle', 'Rose Gold', 12345), 'BNRG-12345')


class SizeValidationTests(SimpleTestCase):

    def test_valid_ring_size(self):
        self.assertEqual(validate_size('Ring', '14.5'), [])

    def test_out_of_range(self):
        errors = validate_size('Ring', '25')
        self.assertEqual(len(errors), 1)
        self.assertIn('between 8 and 20', errors[0])

    def test_wrong_denomination(self):
        errors = validate_size('Ring', '14.3')
        self.assertEqual(len(errors), 1)
        self.assertIn('steps of 0.5', errors[0])

    def test_categories_without_rules_and_free_text_pass(self):
        self.assertEqual(validate_size('Earring', '99'), [])
        self.assertEqual(validate_size('Ring', 'Free'), [])
        self.assertEqual(validate_size('Ring', ''), [])

    def test_non_finite_size_rejected(self):
        self.assertEqual(len(validate_size('Ring', 'NaN')), 1)


class SKUNumberTests(TestCase):

    def test_prediction_does_not_consume(self):
        self.assertEqual(get_predicted_sku_number(), {'predicted_number': 1, 'formatted_number': '0001'})
        self.assertEqual(get_predicted_sku_number()['predicted_number'], 1)

    def test_generate_consumes_sequence(self):
        self.assertEqual(generate_sku_id('Ring', 'Yellow Gold'), 'RGYG-0001')
        self.assertEqual(generate_sku_id('Pendant', 'White Gold'), 'PNWG-0002')
        self.assertEqual(get_predicted_sku_number()['formatted_number'], '0003')


class SKUAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)

    def test_requires_authentication(self):
        response = AuthenticatedAPIClient().get('/api/v1/skus/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_sku_generates_id(self):
        response = self.client.post('/api/v1/skus/', {
            'name': 'Ruby Solitaire',
            'category': 'Ring',
            'gold_type': 'Yellow Gold',
            'stone_type': 'Ruby',
            'size': '14',
            'weight': '4.250',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['sku_id'], 'RGYG-0001')
        self.assertEqual(response.data['gold_code'], '18KYG')
        self.assertTrue(AuditLog.objects.filter(action='create', object_reference='RGYG-0001').exists())

    def test_create_rejects_bad_size_and_weight(self):
        response = self.client.post('/api/v1/skus/', {
            'name': 'Bad Ring', 'category': 'Ring', 'size': '30', 'weight': '0',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('weight', response.data)
        self.assertFalse(SKU.objects.exists())

    def test_predicted_number_endpoint(self):
        TestDataFactory.create_sku()
        response = self.client.get('/api/v1/skus/predicted-number/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['formatted_number'], '0002')

    def test_batch_shares_one_number(self):
        response = self.client.post('/api/v1/skus/batch/', {'skus': [
            {'name': 'Leaf Ring', 'category': 'Ring', 'gold_type': 'Yellow Gold', 'size': '14'},
            {'name': 'Leaf Ring', 'category': 'Ring', 'gold_type': 'White Gold', 'size': '14'},
            {'name': 'Leaf Pendant', 'category': 'Pendant', 'gold_type': 'Yellow Gold'},
        ]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['number'], 1)
        self.assertEqual(
            sorted(sku['sku_id'] for sku in response.data['skus']),
            ['PNYG-0001', 'RGWG-0001', 'RGYG-0001'],
        )

    def test_batch_rejects_empty_and_colliding(self):
        response = self.client.post('/api/v1/skus/batch/', {'skus': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post('/api/v1/skus/batch/', {'skus': [
            {'name': 'A', 'category': 'Ring', 'gold_type': 'Yellow Gold'},
            {'name': 'B', 'category': 'Ring', 'gold_type': 'Yellow Gold'},
        ]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(SKU.objects.exists())

    def test_list_filters(self):
        TestDataFactory.create_sku(name='Ruby Ring', category='Ring')
        TestDataFactory.create_sku(name='Pearl Pendant', category='Pendant', size='18')
        response = self.client.get('/api/v1/skus/', {'category': 'Pendant'})
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['name'], 'Pearl Pendant')

        response = self.client.get('/api/v1/skus/', {'search': 'ruby'})
        self.assertEqual(response.data['count'], 1)

    def test_update_keeps_sku_id(self):
        sku = TestDataFactory.create_sku()
        response = self.client.patch(f'/api/v1/skus/{sku.sku_id}/', {'name': 'Renamed', 'sku_id': 'XX-9999'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        sku.refresh_from_db()
        self.assertEqual(sku.name, 'Renamed')
        self.assertNotEqual(sku.sku_id, 'XX-9999')

    def test_delete_unused_sku(self):
        sku = TestDataFactory.create_sku()
        response = self.client.delete(f'/api/v1/skus/{sku.sku_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(SKU.objects.filter(pk=sku.pk).exists())

    def test_delete_blocked_when_ordered(self):
        sku = TestDataFactory.create_sku()
        TestDataFactory.create_order(items=[(sku, 1)])
        response = self.client.delete(f'/api/v1/skus/{sku.sku_id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(SKU.objects.filter(pk=sku.pk).exists())

    def test_reference_lists(self):
        response = self.client.get('/api/v1/catalog/reference/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('Ring', response.data['categories'])
        self.assertEqual(response.data['size_rules']['Ring']['unit'], 'mm')


class ImageCompressionTests(SimpleTestCase):

    def test_downscales_and_encodes_webp(self):
        data = compress_to_webp(io.BytesIO(make_image_bytes(size=(400, 200))), max_dimension=100)
        img = Image.open(io.BytesIO(data))
        self.assertEqual(img.format, 'WEBP')
        self.assertEqual(max(img.size), 100)

    def test_rejects_non_image(self):
        with self.assertRaises(InvalidImageError):
            compress_to_webp(io.BytesIO(b'not an image at all'))

    def test_shrinks_noisy_image_until_it_fits(self):
        noise = Image.frombytes('RGB', (800, 800), os.urandom(800 * 800 * 3))
        buffer = io.BytesIO()
        noise.save(buffer, format='PNG')
        buffer.seek(0)

        data = compress_to_webp(buffer, max_dimension=800, max_bytes=20000)
        self.assertLessEqual(len(data), 20000)
        self.assertLess(max(Image.open(io.BytesIO(data)).size), 800)

    def test_rejects_image_that_cannot_fit(self):
        with self.assertRaises(InvalidImageError):
            compress_to_webp(io.BytesIO(make_image_bytes(size=(400, 400))), max_dimension=400, max_bytes=10)


class SKUImageUploadTests(TestCase):

    def setUp(self):
        self.media_root = tempfile.mkdtemp()
        self.override = override_settings(MEDIA_ROOT=self.media_root)
        self.override.enable()
        self.client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())
        self.sku = TestDataFactory.create_sku()

    def tearDown(self):
        self.override.disable()
        shutil.rmtree(self.media_root, ignore_errors=True)

    def test_upload_stores_webp_and_updates_sku(self):
        upload = SimpleUploadedFile('ring.png', make_image_bytes(), content_type='image/png')
        response = self.client.post(f'/api/v1/skus/{self.sku.sku_id}/image/', {'image': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.sku.refresh_from_db()
        self.assertTrue(self.sku.image_url.endswith(f'skus/{self.sku.sku_id}/original.webp'))
        self.assertTrue(AuditLog.objects.filter(action='sku_image_upload').exists())

    def test_upload_rejects_non_image(self):
        upload = SimpleUploadedFile('notes.txt', b'plain text', content_type='text/plain')
        response = self.client.post(f'/api/v1/skus/{self.sku.sku_id}/image/', {'image': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.sku.refresh_from_db()
        self.assertEqual(self.sku.image_url, '')

    def test_delete_removes_file_and_clears_url(self):
        upload = SimpleUploadedFile('ring.png', make_image_bytes(), content_type='image/png')
        self.client.post(f'/api/v1/skus/{self.sku.sku_id}/image/', {'image': upload}, format='multipart')
        self.assertTrue(default_storage.exists(sku_image_path(self.sku.sku_id)))

        response = self.client.delete(f'/api/v1/skus/{self.sku.sku_id}/image/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.sku.refresh_from_db()
        self.assertEqual(self.sku.image_url, '')
        self.assertFalse(default_storage.exists(sku_image_path(self.sku.sku_id)))
        self.assertTrue(AuditLog.objects.filter(action='sku_image_delete', object_reference=self.sku.sku_id).exists())

    def test_delete_without_image_is_not_found(self):
        response = self.client.delete(f'/api/v1/skus/{self.sku.sku_id}/image/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_upload_requires_file(self):
        response = self.client.post(f'/api/v1/skus/{self.sku.sku_id}/image/', {}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

