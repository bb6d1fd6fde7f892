"""
Label sizes and the grouping of articles into shelf (location) labels.
"""
import re
from dataclasses import dataclass

from lagerapp.inventory.services import DEFAULT_CATEGORY, LOCATION_PREFIX

UNSORTED_LOCATION = 'Unsortiert'
MAX_ARTICLES_PER_LOCATION = 3
OCCUPANCY_FILTERS = ('all', 'single', 'multi')

# Canvas resolution of the rendered PNGs
PX_PER_MM = 3.78
RENDER_SCALE = 4


@dataclass
class LabelConfig:
    width: float = 70  # mm
    height: float = 37  # mm
    font_scale: float = 1

    @property
    def px_per_mm(self):
        return PX_PER_MM * RENDER_SCALE

    @property
    def pixel_size(self):
        return int(self.width * self.px_per_mm), int(self.height * self.px_per_mm)

    def mm(self, value):
        return int(value * self.px_per_mm)

    def font_px(self, points):
        return int(points * self.font_scale * RENDER_SCALE)


def natural_key(value):
    """Sort key that orders 'Fach 2' before 'Fach 10'"""
    return [int(part) if part.isdigit() else part.lower() for part in re.split(r'(\d+)', value)]


def location_groups(articles, occupancy='all', search=None):
    """
    Group articles into one label per (category, location).

    Returns dicts with key '<cat>::<loc>', category, location, qr_data,
    articles (all) and label_articles (the first three).
    """
    if occupancy not in OCCUPANCY_FILTERS:
        raise ValueError(f'Unbekannter Belegungsfilter: {occupancy}')

    grouped = {}
    for article in articles:
        category = (article.category or '').strip() or DEFAULT_CATEGORY
        location = (article.location or '').strip() or UNSORTED_LOCATION
        key = f'{category}::{location}'
        group = grouped.setdefault(key, {'key': key, 'category': category, 'location': location, 'articles': []})
        group['articles'].append(article)

    groups = list(grouped.values())
    if occupancy == 'single':
        groups = [g for g in groups if len(g['articles']) == 1]
    elif occupancy == 'multi':
        groups = [g for g in groups if len(g['articles']) > 1]

    if search:
        needle = search.lower()
        groups = [g for g in groups if needle in g['location'].lower() or needle in g['category'].lower()]

    for group in groups:
        group['qr_data'] = f"{LOCATION_PREFIX}{group['key']}"
        group['label_articles'] = group['articles'][:MAX_ARTICLES_PER_LOCATION]

    groups.sort(key=lambda g: (g['category'].lower(), natural_key(g['location'])))
    return groups


def safe_filename_part(value, length=10):
    return re.sub(r'[^a-zA-Z0-9]', '_', value[:length]) or 'Etikett'
