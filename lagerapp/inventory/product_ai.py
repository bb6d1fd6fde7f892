"""
Article master data from a product photo or a shop link.

Photos go to Gemini as inline data with a JSON response. Links are passed in
the prompt together with the Google Search tool, which does not allow a JSON
response type, so the answer may come back wrapped in a code fence.
"""
import json
import logging

from lagerapp.orders.document_ai import (
    DocumentExtractionError, generate_content, inline_part, strip_code_fences,
)
from lagerapp.suppliers.models import Supplier

logger = logging.getLogger('lagerapp.inventory')

IMAGE_TYPES = ('image/jpeg', 'image/png', 'image/webp')

PRODUCT_FIELDS = {
    'name': 'Product name',
    'compact_name_proposal': 'Short SHK name',
    'ean': 'EAN',
    'skus': 'Manufacturer part numbers (array of strings)',
    'supplier_name': 'Supplier',
    'supplier_sku': 'Supplier part number',
    'product_url': 'Product URL (optional)',
}


def _prompt(supplier_names):
    return (
        f"Context: Known Suppliers: {', '.join(supplier_names)}. Extract product data. "
        f"Return a JSON object with the fields {json.dumps(PRODUCT_FIELDS)}."
    )


def _text(value):
    return str(value or '').strip()


def parse_product(text):
    """Normalise the model answer; skus is a list without blanks or duplicates"""
    try:
        payload = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise DocumentExtractionError(f'Antwort ist kein gültiges JSON: {str(e)}')
    if not isinstance(payload, dict):
        raise DocumentExtractionError('Antwort hat ein unerwartetes Format')

    raw_skus = payload.get('skus') or []
    if isinstance(raw_skus, str):
        raw_skus = [raw_skus]
    skus = []
    for sku in raw_skus:
        sku = _text(sku)
        if sku and sku not in skus:
            skus.append(sku)

    return {
        'name': _text(payload.get('name')),
        'compact_name_proposal': _text(payload.get('compact_name_proposal')),
        'ean': _text(payload.get('ean')),
        'skus': skus,
        'supplier_name': _text(payload.get('supplier_name')),
        'supplier_sku': _text(payload.get('supplier_sku')),
        'product_url': _text(payload.get('product_url')),
    }


def match_supplier(name):
    """Known supplier for a detected name: exact match first, then containment"""
    if not name:
        return None
    return (
        Supplier.objects.filter(name__iexact=name).first()
        or Supplier.objects.filter(name__icontains=name).order_by('name').first()
    )


def article_proposal(result, supplier=None, link=''):
    """Fields for a new article built from an analysis result"""
    proposal = {
        'name': result['name'],
        'ean': result['ean'],
        'manufacturer_skus': [
            {'sku': sku, 'is_preferred': index == 0} for index, sku in enumerate(result['skus'])
        ],
        'suppliers': [],
    }
    if supplier is not None:
        proposal['suppliers'].append({
            'supplier': supplier.pk,
            'supplier_sku': result['supplier_sku'],
            'url': result['product_url'] or link,
            'is_preferred': True,
        })
    elif link:
        proposal['product_url'] = link
    return proposal


def analyze_product(image=None, mime_type=None, url=None):
    """
    Ask Gemini for article data from an image (bytes) or a product link.

    Returns the parsed result plus the matched supplier and an article
    proposal. Raises DocumentExtractionError when the analysis fails.
    """
    supplier_names = list(Supplier.objects.order_by('name').values_list('name', flat=True))
    prompt = _prompt(supplier_names)

    if image is not None:
        if mime_type not in IMAGE_TYPES:
            raise DocumentExtractionError(f'Dateityp {mime_type} wird nicht unterstützt')
        text = generate_content(
            [inline_part(image, mime_type), {'text': prompt}],
            generation_config={'responseMimeType': 'application/json'},
            purpose='Produktanalyse',
        )
    elif url:
        text = generate_content(
            [{'text': f'{prompt} Link: {url}'}],
            tools=[{'google_search': {}}],
            purpose='Produktanalyse',
        )
    else:
        raise DocumentExtractionError('Bild oder Link erforderlich')

    result = parse_product(text)
    supplier = match_supplier(result['supplier_name'])
    result['supplier'] = {'id': supplier.pk, 'name': supplier.name} if supplier else None
    result['article'] = article_proposal(result, supplier, link=url or '')
    logger.info(f"Product analysis: '{result['name']}' (supplier: {supplier.name if supplier else '-'})")
    return result
