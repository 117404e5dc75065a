"""
Normalization of BGG XML API responses.

Pure functions: no I/O, no waiting. Turns the ``/collection`` and ``/thing``
XML documents into plain ids and ImportedRecord objects.
"""

import logging
import math
import xml.etree.ElementTree as ET
from typing import List, Optional

from ..models import ImportedRecord

logger = logging.getLogger(__name__)

NUMERIC_FIELDS = {
    'year_published': 'yearpublished',
    'min_players': 'minplayers',
    'max_players': 'maxplayers',
    'playing_time': 'playingtime',
}


def _parse_number(raw: Optional[str]) -> Optional[float]:
    """Parse a numeric string; missing, empty or non-finite values are None."""
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def get_int_value(item: ET.Element, tag: str) -> Optional[int]:
    """Read ``<tag value="..."/>`` from an item as an int, or None."""
    node = item.find(tag)
    if node is None:
        return None
    value = _parse_number(node.get('value'))
    return int(value) if value is not None else None


def get_text_value(item: ET.Element, tag: str) -> Optional[str]:
    node = item.find(tag)
    if node is None or node.text is None:
        return None
    text = node.text.strip()
    return text or None


def get_primary_name(item: ET.Element) -> Optional[str]:
    """
    Pick the display name of an item.

    Items list one ``<name>`` per localization. The one flagged
    ``type="primary"`` wins, otherwise the first listed name is used.
    """
    names = item.findall('name')
    if not names:
        return None
    selected = next((n for n in names if n.get('type') == 'primary'), names[0])
    value = selected.get('value')
    if not value or not value.strip():
        return None
    return value.strip()


def normalize_item(item: ET.Element) -> Optional[ImportedRecord]:
    """
    Convert one ``<item>`` of a ``/thing`` response into an ImportedRecord.

    Returns None when the item has no usable id or name.
    """
    external_id = _parse_number(item.get('id'))
    if external_id is None:
        return None

    name = get_primary_name(item)
    if not name:
        return None

    values = {field: get_int_value(item, tag) for field, tag in NUMERIC_FIELDS.items()}

    return ImportedRecord(
        external_id=int(external_id),
        name=name,
        thumbnail_url=get_text_value(item, 'thumbnail'),
        **values
    )


def parse_xml(content: bytes) -> ET.Element:
    """Parse a response body; raises ET.ParseError on malformed XML."""
    return ET.fromstring(content)


def parse_things(content: bytes) -> List[ImportedRecord]:
    """Normalize every item of a ``/thing`` response, dropping unusable ones."""
    root = parse_xml(content)
    records = []
    for item in root.findall('item'):
        record = normalize_item(item)
        if record is None:
            logger.debug(f"Dropping unusable item (id={item.get('id')!r})")
            continue
        records.append(record)
    return records


def parse_collection(content: bytes) -> List[int]:
    """
    Extract owned board game ids from a ``/collection`` response.

    Only ``subtype="boardgame"`` items are kept; ids are deduplicated
    keeping the order in which BGG listed them.
    """
    root = parse_xml(content)
    ids = []
    for item in root.findall('item'):
        if item.get('subtype') != 'boardgame':
            continue
        value = _parse_number(item.get('objectid'))
        if value is None:
            continue
        ids.append(int(value))
    return list(dict.fromkeys(ids))


def get_error_messages(root: ET.Element) -> List[str]:
    """
    Messages of an ``<errors>`` document.

    BGG reports some failures, such as an unknown username, with a 200
    status and an error document instead of items.
    """
    if root.tag not in ('errors', 'error'):
        return []
    messages = [(node.text or '').strip() for node in root.iter('message')]
    return [m for m in messages if m] or ['Unknown error']
