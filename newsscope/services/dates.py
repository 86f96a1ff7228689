"""
Date normalization shared by every source adapter.

Sources report publication times in very different shapes: ISO-8601
attributes on ``<time>`` elements, RFC 2822 strings in feeds, human
readable calendar dates, or relative phrases such as "3 hours ago".
``parse_date`` turns any of these into an aware UTC ``datetime``.
"""

import re
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

from dateutil import parser as date_parser

RELATIVE_PATTERN = re.compile(r"(\d+)\s+(minute|hour|day)s?\s+ago", re.IGNORECASE)

_UNIT_DELTAS = {
    "minute": timedelta(minutes=1),
    "hour": timedelta(hours=1),
    "day": timedelta(days=1),
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_absolute(token: str) -> Optional[datetime]:
    iso_token = token[:-1] + "+00:00" if token.endswith(("Z", "z")) else token
    try:
        return _as_utc(datetime.fromisoformat(iso_token))
    except ValueError:
        pass
    except OverflowError:
        return None

    try:
        parsed = parsedate_to_datetime(token)
    except (TypeError, ValueError, IndexError):
        parsed = None
    if parsed is not None:
        try:
            return _as_utc(parsed)
        except OverflowError:
            return None

    # dateutil reads "2 hours" as a clock time
    if RELATIVE_PATTERN.search(token):
        return None
    try:
        return _as_utc(date_parser.parse(token))
    except (ValueError, OverflowError):
        return None


def _parse_relative(token: str, now: datetime) -> Optional[datetime]:
    match = RELATIVE_PATTERN.search(token)
    if not match:
        return None
    amount = int(match.group(1))
    unit = match.group(2).lower()
    try:
        return now - amount * _UNIT_DELTAS[unit]
    except OverflowError:
        # falls outside the datetime range
        return None


def parse_date(token: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Parse a timestamp token into an aware UTC datetime.

    Absolute formats are tried first, then relative phrases of the form
    ``<n> minute|hour|day(s) ago``.  Returns ``None`` when nothing matches;
    callers decide what to substitute.

    :param token: Raw timestamp text as scraped from the source
    :param now: Reference instant for relative phrases (defaults to now)
    """
    if not token:
        return None
    token = token.strip()
    if not token:
        return None

    absolute = _parse_absolute(token)
    if absolute is not None:
        return absolute

    return _parse_relative(token, _as_utc(now) if now else utcnow())


def normalize_date(token: Optional[str], now: Optional[datetime] = None) -> datetime:
    """Like ``parse_date`` but falls back to ``now`` when the token is unusable.

    The fallback lets undated articles pass the recency filter.
    """
    reference = _as_utc(now) if now else utcnow()
    parsed = parse_date(token, now=reference)
    return parsed if parsed is not None else reference


def cutoff_for(days_back: int, now: Optional[datetime] = None) -> datetime:
    reference = _as_utc(now) if now else utcnow()
    return reference - timedelta(days=days_back)
