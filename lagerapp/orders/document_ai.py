"""
Order extraction from delivery notes, quotes and screenshots.

The document is sent to the Gemini generateContent REST endpoint which
answers with JSON: {"supplier_name": str, "items": [{"sku", "name", "quantity"}]}.
generate_content() is shared with the article analysis in inventory.
"""
import base64
import json
import logging
import os
import re

import requests
from django.conf import settings

logger = logging.getLogger('lagerapp.orders')

GEMINI_ENDPOINT = 'https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent'

EXTRACTION_PROMPT = """
Extract order items from this document.
Return a JSON object with:
- supplier_name: string (if detected)
- items: array of objects with { sku: string (manufacturer or supplier part number), name: string, quantity: number }

Ignore prices.
"""

SUPPORTED_TYPES = ('image/jpeg', 'image/png', 'image/webp', 'application/pdf')


class DocumentExtractionError(Exception):
    """The document could not be analysed"""


def _setting(name, default=''):
    return getattr(settings, name, os.getenv(name, default))


def strip_code_fences(text):
    """Remove a ```json ... ``` wrapper around a model answer"""
    text = (text or '').strip()
    if text.startswith('```'):
        text = re.sub(r'^```(json)?\s*', '', text)
        text = re.sub(r'\s*```$', '', text)
    return text


def parse_extraction(text):
    """Normalise the model answer into supplier_name and a clean item list"""
    try:
        payload = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise DocumentExtractionError(f'Antwort ist kein gültiges JSON: {str(e)}')
    if not isinstance(payload, dict):
        raise DocumentExtractionError('Antwort hat ein unerwartetes Format')

    items = []
    for raw in payload.get('items') or []:
        if not isinstance(raw, dict):
            continue
        try:
            quantity = int(float(raw.get('quantity') or 1))
        except (TypeError, ValueError):
            quantity = 1
        items.append({
            'sku': str(raw.get('sku') or '').strip(),
            'name': str(raw.get('name') or '').strip(),
            'quantity': max(quantity, 1),
        })

    return {
        'supplier_name': str(payload.get('supplier_name') or '').strip(),
        'items': items,
    }


def generate_content(parts, generation_config=None, tools=None, purpose='Dokumentanalyse'):
    """
    Post content parts to Gemini and return the concatenated answer text.

    Raises DocumentExtractionError for missing configuration, transport errors
    and empty answers.
    """
    api_key = _setting('GEMINI_API_KEY')
    if not api_key:
        raise DocumentExtractionError('API Key fehlt.')

    body = {'contents': [{'parts': parts}]}
    if generation_config:
        body['generationConfig'] = generation_config
    if tools:
        body['tools'] = tools
    url = GEMINI_ENDPOINT.format(model=_setting('GEMINI_MODEL', 'gemini-2.5-flash'))

    try:
        response = requests.post(
            url,
            params={'key': api_key},
            json=body,
            timeout=int(_setting('GEMINI_TIMEOUT', 60)),
        )
        response.raise_for_status()
    except requests.exceptions.Timeout:
        logger.warning(f"{purpose} timed out")
        raise DocumentExtractionError(f'Zeitüberschreitung bei der {purpose}')
    except requests.exceptions.RequestException as e:
        logger.error(f"{purpose} request failed: {str(e)}")
        raise DocumentExtractionError(f'{purpose} fehlgeschlagen: {str(e)}')

    try:
        answer_parts = response.json()['candidates'][0]['content']['parts']
    except (ValueError, KeyError, IndexError, TypeError):
        raise DocumentExtractionError(f'Leere Antwort der {purpose}')
    text = ''.join(part.get('text', '') for part in answer_parts if isinstance(part, dict))
    if not text.strip():
        raise DocumentExtractionError(f'Leere Antwort der {purpose}')
    return text


def inline_part(data, mime_type):
    return {'inline_data': {'mime_type': mime_type, 'data': base64.b64encode(data).decode('ascii')}}


def extract_order_items(data, mime_type):
    """Send a document to Gemini and return the parsed extraction"""
    if mime_type not in SUPPORTED_TYPES:
        raise DocumentExtractionError(f'Dateityp {mime_type} wird nicht unterstützt')

    text = generate_content(
        [inline_part(data, mime_type), {'text': EXTRACTION_PROMPT}],
        generation_config={'responseMimeType': 'application/json'},
    )
    result = parse_extraction(text)
    logger.info(f"Extracted {len(result['items'])} items (supplier: {result['supplier_name'] or '-'})")
    return result
