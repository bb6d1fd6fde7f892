"""Key handover: checkout to a partner, checkin, and the signed protocol"""
import logging

from django.db import transaction
from django.template.loader import render_to_string
from django.utils import timezone

from lagerapp.core.utils import record_event
from .models import Key, KeyEvent

logger = logging.getLogger('lagerapp.keys')

ISSUE = 'issue'
RETURN = 'return'
COMPANY_NAME = 'Rebelein Haustechnik'


class HandoverError(Exception):
    """Raised when keys cannot be handed over in their current state"""


def handover_details(direction, partner_name, notes=''):
    prefix = 'An' if direction == ISSUE else 'Von'
    details = f'{prefix}: {partner_name}'
    if notes:
        details += f', Notiz: {notes}'
    return details


def checkout_keys(keys, partner_name, user, holder=None, notes=''):
    """Hand keys to a partner; holder links the partner to a user account"""
    partner_name = (partner_name or '').strip()
    if not partner_name:
        raise HandoverError('Bitte Namen angeben')
    unavailable = [k for k in keys if k.status != 'Available']
    if unavailable:
        slots = ', '.join(str(k.slot_number) for k in unavailable)
        raise HandoverError(f'Schlüssel nicht verfügbar: Platz {slots}')

    details = handover_details(ISSUE, partner_name, notes)
    with transaction.atomic():
        for key in keys:
            key.status = 'InUse'
            key.holder = holder
            key.holder_name = partner_name
            key.save(update_fields=['status', 'holder', 'holder_name', 'updated_at'])
    for key in keys:
        record_event(KeyEvent, user=user, key=key, action='checkout', details=details)
    logger.info(f"{len(keys)} key(s) checked out to {partner_name}")
    return keys


def checkin_keys(keys, partner_name, user, notes=''):
    """Take keys back; partner_name defaults to the current holder"""
    not_issued = [k for k in keys if k.status != 'InUse']
    if not_issued:
        slots = ', '.join(str(k.slot_number) for k in not_issued)
        raise HandoverError(f'Schlüssel nicht ausgegeben: Platz {slots}')

    with transaction.atomic():
        for key in keys:
            returned_by = (partner_name or '').strip() or key.holder_name or 'Unbekannt'
            key.status = 'Available'
            key.holder = None
            key.holder_name = ''
            key.save(update_fields=['status', 'holder', 'holder_name', 'updated_at'])
            record_event(
                KeyEvent, user=user, key=key, action='checkin',
                details=handover_details(RETURN, returned_by, notes),
            )
    logger.info(f"{len(keys)} key(s) checked in")
    return keys


def log_key_change(key, action, user):
    details = {
        'create': 'Schlüssel erstellt',
        'update': 'Schlüsseldaten bearbeitet',
        'delete': f'Schlüssel gelöscht: #{key.slot_number} {key.name}',
    }[action]
    return record_event(KeyEvent, user=user, key=key, action=action, details=details)


def protocol_html(direction, keys, partner_name, partner_address='', notes='', date=None):
    """Printable issue or return protocol for the given keys"""
    is_issue = direction == ISSUE
    return render_to_string('keys/protocol.html', {
        'title': 'Schlüssel-Ausgabeprotokoll' if is_issue else 'Schlüssel-Rücknahmeprotokoll',
        'own_role': 'Ausgeber' if is_issue else 'Annehmer',
        'partner_role': 'Empfänger' if is_issue else 'Übergeber',
        'is_issue': is_issue,
        'company_name': COMPANY_NAME,
        'keys': sorted(keys, key=lambda k: k.slot_number),
        'partner_name': partner_name,
        'partner_address': partner_address,
        'notes': notes,
        'date': date or timezone.localdate(),
        'created_at': timezone.localtime(),
    })
