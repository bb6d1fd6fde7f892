"""
Local label rendering with Pillow, python-barcode and qrcode.

Every renderer returns PNG bytes; data_uri() wraps them for the print HTML.
"""
import base64
import io
import logging

import barcode
import qrcode
from barcode.errors import BarcodeError
from barcode.writer import ImageWriter
from PIL import Image, ImageDraw, ImageFont

from .layout import LabelConfig

logger = logging.getLogger('lagerapp.labels')

FONT_PATHS = {
    'regular': ['/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf', 'arial.ttf'],
    'bold': ['/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf', 'arialbd.ttf'],
}


def load_font(size, bold=False):
    for path in FONT_PATHS['bold' if bold else 'regular']:
        try:
            return ImageFont.truetype(path, size)
        except (OSError, IOError):
            continue
    return ImageFont.load_default()


def qr_image(data, size):
    qr = qrcode.QRCode(error_correction=qrcode.constants.ERROR_CORRECT_M, border=1)
    qr.add_data(str(data))
    qr.make(fit=True)
    img = qr.make_image(fill_color='black', back_color='white').get_image().convert('RGB')
    return img.resize((size, size), Image.Resampling.NEAREST)


def barcode_image(value, width, height):
    """Code128 image scaled to the box, or None when the value cannot be encoded"""
    try:
        code128 = barcode.get_barcode_class('code128')
        img = code128(str(value), writer=ImageWriter()).render({
            'write_text': False,
            'module_width': 0.3,
            'module_height': 10.0,
            'quiet_zone': 1.0,
            'background': 'white',
            'foreground': 'black',
        })
    except (ValueError, BarcodeError) as e:
        logger.warning(f"Barcode generation failed for '{value}': {str(e)}")
        return None
    return img.resize((width, height), Image.Resampling.BILINEAR)


def fit_text(draw, text, font, max_width):
    """Cut text with an ellipsis until it fits max_width pixels"""
    text = text or ''
    if draw.textlength(text, font=font) <= max_width:
        return text
    while text and draw.textlength(text + '…', font=font) > max_width:
        text = text[:-1]
    return text + '…'


def to_png(img):
    buffer = io.BytesIO()
    img.save(buffer, format='PNG', optimize=False, compress_level=1)
    data = buffer.getvalue()
    buffer.close()
    img.close()
    return data


def data_uri(png_bytes):
    return f"data:image/png;base64,{base64.b64encode(png_bytes).decode('utf-8')}"


def _canvas(config):
    img = Image.new('RGB', config.pixel_size, color='white')
    return img, ImageDraw.Draw(img)


def render_article_label(article, config=None):
    """
    Single article: name, manufacturer number, location, category and
    supplier on the left, QR (article id) top right, barcode across the bottom.
    """
    config = config or LabelConfig()
    img, draw = _canvas(config)
    width, height = img.size
    margin = config.mm(3)
    qr_size = config.mm(19)
    text_width = width - qr_size - 2 * margin - config.mm(1)

    img.paste(qr_image(article.pk, qr_size), (width - qr_size - margin, margin))

    title_font = load_font(config.font_px(12), bold=True)
    info_font = load_font(config.font_px(9))
    info_bold = load_font(config.font_px(9), bold=True)

    y = margin
    draw.text((margin, y), fit_text(draw, article.name, title_font, text_width), fill='black', font=title_font)
    y += config.font_px(12) + config.font_px(4)
    draw.text((margin, y), fit_text(draw, f'Hersteller-Nr.: {article.sku}', info_font, text_width),
              fill='#555555', font=info_font)
    y += config.font_px(9) + config.font_px(8)
    draw.text((margin, y), fit_text(draw, article.location or '-', info_font, text_width), fill='#333333', font=info_font)
    y += config.font_px(9) + config.font_px(2)
    draw.text((margin, y), fit_text(draw, article.category or '', info_font, text_width), fill='#333333', font=info_font)
    y += config.font_px(9) + config.font_px(6)
    draw.text((margin, y), fit_text(draw, article.supplier or '', info_bold, text_width), fill='#333333', font=info_bold)

    bar_height = config.mm(8)
    bar = barcode_image(article.barcode_value, width - 2 * margin, bar_height)
    if bar is not None:
        img.paste(bar, (margin, height - bar_height - margin))
    return to_png(img)


def render_location_label(group, config=None):
    """Shelf label: up to three article names, QR with the location code, location in large print"""
    config = config or LabelConfig()
    img, draw = _canvas(config)
    width, height = img.size
    margin = config.mm(3)
    qr_size = config.mm(19)
    text_width = width - qr_size - 2 * margin - config.mm(1)

    img.paste(qr_image(group['qr_data'], qr_size), (width - qr_size - margin, margin))

    list_font = load_font(config.font_px(8), bold=True)
    sub_font = load_font(config.font_px(6))
    y = margin
    for article in group['label_articles']:
        draw.text((margin, y), fit_text(draw, f'• {article.name}', list_font, text_width), fill='black', font=list_font)
        y += config.font_px(8) + config.font_px(1)
        supplier_info = ' | '.join(part for part in (article.supplier, article.supplier_sku) if part)
        if supplier_info:
            draw.text((margin, y), fit_text(draw, f'   {supplier_info}', sub_font, text_width),
                      fill='#555555', font=sub_font)
            y += config.font_px(6) + config.font_px(1)
        y += config.font_px(2)

    footer_font = load_font(config.font_px(12), bold=True)
    footer = fit_text(draw, group['location'], footer_font, width - 2 * margin)
    draw.line([(margin, height - margin - config.font_px(14)), (width - margin, height - margin - config.font_px(14))],
              fill='#eeeeee', width=max(1, config.mm(0.3)))
    footer_x = (width - int(draw.textlength(footer, font=footer_font))) // 2
    draw.text((footer_x, height - margin - config.font_px(13)), footer, fill='black', font=footer_font)
    return to_png(img)


def render_commission_label(commission, config=None, is_return=False):
    """Commission shelf label with QR 'COMM:<id>'; returns get a RETOURE banner"""
    config = config or LabelConfig()
    img, draw = _canvas(config)
    width, height = img.size
    margin = config.mm(3)
    qr_size = config.mm(22)
    text_width = width - qr_size - 2 * margin - config.mm(1)

    img.paste(qr_image(f'COMM:{commission.pk}', qr_size), (width - qr_size - margin, margin))

    y = margin
    if is_return:
        banner_font = load_font(config.font_px(10), bold=True)
        draw.rectangle([(margin, y), (margin + text_width, y + config.font_px(13))], fill='black')
        draw.text((margin + config.mm(1), y + config.font_px(1)), 'RETOURE', fill='white', font=banner_font)
        y += config.font_px(13) + config.font_px(3)

    number_font = load_font(config.font_px(14), bold=True)
    name_font = load_font(config.font_px(10), bold=True)
    note_font = load_font(config.font_px(7))
    if commission.order_number:
        draw.text((margin, y), fit_text(draw, commission.order_number, number_font, text_width), fill='black', font=number_font)
        y += config.font_px(14) + config.font_px(3)
    draw.text((margin, y), fit_text(draw, commission.name, name_font, text_width), fill='black', font=name_font)
    y += config.font_px(10) + config.font_px(3)
    for line in (commission.notes or '').splitlines()[:3]:
        draw.text((margin, y), fit_text(draw, line, note_font, text_width), fill='#333333', font=note_font)
        y += config.font_px(7) + config.font_px(1)
    return to_png(img)
