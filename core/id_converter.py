"""
Conversion between UUID primary keys and compact numeric ids.

Sales, users and notifications are keyed by UUID, but a few consumers only
hold integers (notification ``related_id``, the legacy ``sales.related_id``
reporting column). The forward transform is lossy: it only looks at the first
48 bits of the UUID and folds them into ``max_digits`` decimal digits, so two
different UUIDs can share a numeric id. The reverse lookup is a bounded scan,
not an index, and must be treated as a best-effort convenience.
"""
import itertools
import logging
import re
import uuid
from collections.abc import Mapping

from django.db import models

logger = logging.getLogger(__name__)

DEFAULT_MAX_DIGITS = 9
DEFAULT_FETCH_LIMIT = 100
DEFAULT_DISPLAY_LENGTH = 8

# 12 hex characters = 48 bits from the front of the UUID
HEX_PREFIX_LENGTH = 12

NUMERIC_ID_RE = re.compile(r'^[0-9]+$')
HEX_RE = re.compile(r'^[0-9a-fA-F]+$')


def _uuid_text(value):
    """Textual form of a UUID with hyphens, braces and urn prefix removed"""
    if value is None:
        return ''
    text = str(value).strip()
    if text.lower().startswith('urn:uuid:'):
        text = text[len('urn:uuid:'):]
    return text.strip('{}').replace('-', '')


def uuid_to_numeric_id(value, max_digits=DEFAULT_MAX_DIGITS):
    """
    Convert a UUID to a non-negative integer with at most ``max_digits`` digits.

    Returns None for empty or malformed input instead of raising.
    """
    if max_digits < 1:
        raise ValueError('max_digits must be a positive integer')

    text = _uuid_text(value)
    if not text or not HEX_RE.match(text):
        return None

    decimal = int(text[:HEX_PREFIX_LENGTH], 16)
    return decimal % (10 ** max_digits)


def is_numeric_id(value):
    """True when ``value`` looks like a numeric id rather than a UUID"""
    if value is None or isinstance(value, bool):
        return False
    return bool(NUMERIC_ID_RE.match(str(value)))


def parse_numeric_id(value):
    """Parse an int or all-digit string, returning None for anything else"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    text = str(value).strip()
    if not NUMERIC_ID_RE.match(text):
        return None
    return int(text)


def _candidate_ids(collection, field, limit):
    if isinstance(collection, type) and issubclass(collection, models.Model):
        collection = collection._default_manager.all()

    if isinstance(collection, models.QuerySet):
        # Single bounded read; DatabaseError propagates to the caller
        return list(collection.values_list(field, flat=True)[:limit])

    candidates = []
    for record in itertools.islice(collection, limit):
        if isinstance(record, Mapping):
            candidates.append(record.get(field))
        elif isinstance(record, (str, uuid.UUID)):
            candidates.append(record)
        else:
            candidates.append(getattr(record, field, None))
    return candidates


def find_uuid_by_numeric_id(numeric_id, collection, max_digits=DEFAULT_MAX_DIGITS,
                            fetch_limit=DEFAULT_FETCH_LIMIT, field='id'):
    """
    Find the first identifier in ``collection`` whose numeric id equals ``numeric_id``.

    ``collection`` may be a model class, a queryset or any iterable of records
    or raw identifiers. Only the first ``fetch_limit`` records in the
    collection's own order are examined, and the first match wins even when a
    later record shares the same numeric id. Returns None when nothing matches.
    """
    target = parse_numeric_id(numeric_id)
    if target is None or collection is None:
        return None

    candidates = _candidate_ids(collection, field, fetch_limit)
    for candidate in candidates:
        if uuid_to_numeric_id(candidate, max_digits) == target:
            return candidate

    logger.info(
        "No UUID found for numeric id %s within %d candidates (max_digits=%d)",
        target, len(candidates), max_digits,
    )
    return None


def get_display_id(value, length=DEFAULT_DISPLAY_LENGTH):
    """Short human-facing code: the first ``length`` characters without hyphens"""
    if not value or length < 1:
        return ''
    return str(value).replace('-', '')[:length]


def related_id_for(pk, max_digits=DEFAULT_MAX_DIGITS):
    """Value for an integer ``related_id`` column pointing at ``pk``"""
    if pk is None:
        return None
    if isinstance(pk, int) and not isinstance(pk, bool):
        return pk
    return uuid_to_numeric_id(pk, max_digits)
