"""
SKU image processing: compress uploads to WebP with Pillow and store them
through Django's default storage under skus/<sku_id>/original.webp.
"""
import io
import logging
from PIL import Image, ImageOps, UnidentifiedImageError
from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage

logger = logging.getLogger(__name__)

INITIAL_QUALITY = 80
MIN_QUALITY = 30
QUALITY_STEP = 10
MIN_DIMENSION = 64
DOWNSCALE_FACTOR = 0.75


class InvalidImageError(ValueError):
    pass


def compress_to_webp(fileobj, max_dimension=None, max_bytes=None) -> bytes:
    """
    Downscale an image so its longest side is at most `max_dimension` and
    encode it as WebP, lowering quality until it fits in `max_bytes`.
    Once quality reaches MIN_QUALITY the image is shrunk further and the
    quality ladder restarts.

    Returns the encoded bytes. Raises InvalidImageError when `fileobj`
    is not an image Pillow can read, or when it still exceeds `max_bytes`
    after shrinking to MIN_DIMENSION.
    """
    max_dimension = max_dimension or settings.SKU_IMAGE_MAX_DIMENSION
    max_bytes = max_bytes or settings.SKU_IMAGE_MAX_BYTES

    try:
        img = Image.open(fileobj)
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImageError(f"Uploaded file is not a valid image: {e}") from e

    img = ImageOps.exif_transpose(img)
    if img.mode not in ('RGB', 'RGBA'):
        img = img.convert('RGBA' if 'A' in img.getbands() else 'RGB')
    img.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)

    quality = INITIAL_QUALITY
    while True:
        buffer = io.BytesIO()
        img.save(buffer, format='WEBP', quality=quality, method=4)
        data = buffer.getvalue()
        buffer.close()
        if len(data) <= max_bytes:
            break
        if quality > MIN_QUALITY:
            quality -= QUALITY_STEP
            continue
        if max(img.size) <= MIN_DIMENSION:
            img.close()
            raise InvalidImageError(f"Image cannot be compressed below {max_bytes} bytes.")
        width, height = img.size
        img = img.resize(
            (max(1, int(width * DOWNSCALE_FACTOR)), max(1, int(height * DOWNSCALE_FACTOR))),
            Image.Resampling.LANCZOS,
        )
        quality = INITIAL_QUALITY

    img.close()
    logger.debug(f"Compressed image to {len(data)} bytes at quality {quality}")
    return data


def sku_image_path(sku_id):
    return f"skus/{sku_id}/original.webp"


def store_sku_image(sku_id, data: bytes):
    """Save encoded image bytes, replacing any previous image for the SKU. Returns (path, url)."""
    path = sku_image_path(sku_id)
    if default_storage.exists(path):
        default_storage.delete(path)
    saved_path = default_storage.save(path, ContentFile(data))
    return saved_path, default_storage.url(saved_path)


def delete_sku_image(path):
    try:
        if path and default_storage.exists(path):
            default_storage.delete(path)
    except OSError as e:
        logger.error(f"Failed to delete stored image {path}: {e}")
