"""CSV files handed to suppliers"""
import csv
import io

from django.utils import timezone

from lagerapp.suppliers.models import DEFAULT_CSV_FORMAT

ORDER_CSV_HEADER = ['Artikelnummer', 'Bezeichnung', 'Menge']


def render_csv_row(template, sku, amount, name):
    template = template or DEFAULT_CSV_FORMAT
    return (
        template
        .replace('{{sku}}', sku or '')
        .replace('{{amount}}', str(amount))
        .replace('{{name}}', name or '')
    )


def proposal_csv(proposal, quantities=None):
    """
    Rows for an order proposal in the supplier's own format.

    quantities optionally maps article id -> amount; the missing amount is the default.
    """
    quantities = quantities or {}
    rows = []
    for entry in proposal['articles']:
        article = entry['article']
        amount = quantities.get(article.pk, entry['missing_amount'])
        rows.append(render_csv_row(proposal['csv_format'], article.order_sku, amount, article.name))
    return '\n'.join(rows)


def proposal_csv_filename(supplier, day=None):
    day = day or timezone.localdate()
    return f"Bestellung_{supplier}_{day.isoformat()}.csv"


def order_csv(order):
    """Generic CSV of an existing order; names with ; or line breaks are quoted"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=';', lineterminator='\n')
    writer.writerow(ORDER_CSV_HEADER)
    for item in order.items.select_related('article').order_by('id'):
        writer.writerow([item.display_sku or '', item.display_name, item.quantity_ordered])
    return buffer.getvalue()


def order_csv_filename(order):
    return f"Bestellung_{order.supplier}_{order.date.isoformat()}.csv"
