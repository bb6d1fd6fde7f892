"""Print documents: one page per label, images embedded as data URIs"""
from django.template.loader import render_to_string
from django.utils import timezone

from .generator import data_uri
from .layout import safe_filename_part


def document_title(single_name=None, now=None):
    timestamp = (now or timezone.now()).strftime('%Y-%m-%d_%H-%M-%S')
    if single_name is not None:
        return f'Etikett_{safe_filename_part(single_name)}_{timestamp}'
    return f'Etiketten_Batch_{timestamp}'


def print_html(rendered, config, single_name=None):
    """
    Args:
        rendered: list of (name, png_bytes)
        config: LabelConfig used for the page size
        single_name: name for the title when a single label is printed
    """
    labels = [{'name': name, 'image': data_uri(png)} for name, png in rendered]
    return render_to_string('labels/print.html', {
        'title': document_title(single_name),
        'config': config,
        'labels': labels,
    })
