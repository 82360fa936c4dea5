"""
Work sticker rendering with Pillow and python-barcode.

A sticker travels with the job's bag: shop name, a Code128 barcode of the job
id, the current phase and a few key/value lines, returned as a PNG data URL.
"""
import base64
import io
import logging
from datetime import date
from typing import Optional

import barcode
from barcode.writer import ImageWriter
from PIL import Image, ImageDraw, ImageFont

logger = logging.getLogger(__name__)

STICKER_TITLE = 'Exquisite Fine Jewellery'
STICKER_SUBTITLE = 'Work Sticker'


def _load_fonts():
    try:
        return (
            ImageFont.truetype('/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf', 18),
            ImageFont.truetype('/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf', 13),
        )
    except (OSError, IOError):
        default = ImageFont.load_default()
        return default, default


def _centered(draw, y, text, font, width):
    bbox = draw.textbbox((0, 0), text, font=font)
    draw.text(((width - (bbox[2] - bbox[0])) // 2, y), text, fill='black', font=font)
    return y + (bbox[3] - bbox[1]) + 6


def render_barcode(value, width, max_height):
    """Code128 barcode image of `value`, scaled to fit `width` x `max_height`"""
    code128 = barcode.get_barcode_class('code128')
    img = code128(value, writer=ImageWriter()).render({
        'write_text': False,
        'module_width': 0.3,
        'module_height': 12.0,
        'quiet_zone': 2.0,
        'background': 'white',
        'foreground': 'black',
    })
    scale = min(width / img.width, max_height / img.height)
    return img.resize((max(int(img.width * scale), 1), max(int(img.height * scale), 1)), Image.Resampling.BILINEAR)


def generate_work_sticker(job_id: str, phase_label: str, lines: Optional[dict] = None,
                          sticker_date: Optional[date] = None, width: int = 400) -> str:
    """Render a work sticker and return it as a base64 PNG data URL"""
    lines = lines or {}
    sticker_date = sticker_date or date.today()
    margin = 12
    height = 190 + 20 * (len(lines) + 3)

    img = Image.new('RGB', (width, height), color='white')
    draw = ImageDraw.Draw(img)
    font_title, font_body = _load_fonts()

    y = _centered(draw, margin, STICKER_TITLE, font_title, width)
    y = _centered(draw, y, STICKER_SUBTITLE, font_body, width)
    draw.line((margin, y, width - margin, y), fill='black', width=1)
    y += 8

    barcode_img = render_barcode(job_id, width - 2 * margin, 70)
    img.paste(barcode_img, ((width - barcode_img.width) // 2, y))
    y += barcode_img.height + 8

    rows = [('Job ID', job_id), ('Phase', phase_label)]
    rows += [(str(key), '' if value is None else str(value)) for key, value in lines.items()]
    rows.append(('Date', sticker_date.strftime('%d-%m-%Y')))
    for key, value in rows:
        draw.text((margin, y), f"{key}:", fill='black', font=font_body)
        bbox = draw.textbbox((0, 0), value, font=font_body)
        draw.text((width - margin - (bbox[2] - bbox[0]), y), value, fill='black', font=font_body)
        y += 20

    buffer = io.BytesIO()
    img.save(buffer, format='PNG', optimize=False, compress_level=1)
    encoded = base64.b64encode(buffer.getvalue()).decode('utf-8')
    buffer.close()
    img.close()
    logger.debug(f"Rendered work sticker for {job_id}")
    return f'data:image/png;base64,{encoded}'
