"""Maps ``name:value`` tokens onto typed leaf filters."""

import logging
import re
from datetime import datetime, timezone

from archive_query.query.types import Filter, FilterField, FilterOperator

logger = logging.getLogger(__name__)

#: Query-language field names (lower-case) and the index attribute each one targets.
FIELD_ALIASES: dict[str, FilterField] = {
    "from": FilterField.FROM,
    "to": FilterField.TO,
    "cc": FilterField.CC,
    "bcc": FilterField.BCC,
    "subject": FilterField.SUBJECT,
    "in": FilterField.INGESTION_SOURCE_ID,
    "tag": FilterField.TAGS,
    "folder": FilterField.PATH,
    "path": FilterField.PATH,
}

_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def parse_date_millis(value: str) -> int | None:
    """Parse a ``YYYY-MM-DD`` date as UTC midnight, in milliseconds since the epoch.

    Returns None for anything else, including out-of-range months and days.
    """
    if not _DATE_RE.fullmatch(value):
        return None
    try:
        day = datetime.strptime(value, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError:
        return None
    return int(day.timestamp()) * 1000


def resolve_field(name: str, value: str) -> Filter | None:
    """Return the filter for a field token, or None if it should be a keyword.

    Field names are matched case-insensitively; values are kept as typed
    except for ``before``/``after`` dates.
    """
    key = name.lower()

    if key == "has" and value.lower() == "attachment":
        return Filter(FilterField.HAS_ATTACHMENTS, FilterOperator.EQ, True)

    if key in ("before", "after"):
        millis = parse_date_millis(value)
        if millis is None:
            logger.debug("Invalid %s: date %r; treating as keyword", key, value)
            return None
        operator = FilterOperator.LT if key == "before" else FilterOperator.GTE
        return Filter(FilterField.TIMESTAMP, operator, millis)

    mapped = FIELD_ALIASES.get(key)
    if mapped is not None:
        return Filter(mapped, FilterOperator.EQ, value)

    logger.debug("Unknown field %r; treating as keyword", name)
    return None
