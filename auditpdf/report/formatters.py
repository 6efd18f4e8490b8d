from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from auditpdf.report.sanitize import sanitize
from auditpdf.types import AuditPayload


EM_DASH = '—'

_UUID_RE = re.compile(
    r'^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$',
    re.IGNORECASE,
)
_NUMERIC_RE = re.compile(r'^\d+$')
_OBJECT_NAME_KEYS = ('name', 'title', 'display_name', 'store_name', 'id')
_TIMESTAMP_RE = re.compile(
    r'^(?P<date>\d{4}-\d{2}-\d{2})'
    r'(?:[Tt ](?P<time>\d{2}:\d{2}(?::\d{2})?)(?:[.,](?P<fraction>\d+))?)?'
    r'\s*(?P<offset>[Zz]|[+-]\d{2}(?::?\d{2})?)?$'
)
_WEEKDAYS = ('Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday')
_MONTHS = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')


@dataclass(frozen=True)
class CoverData:
    title: str
    file: str
    store: str
    template: str
    reported_by: str
    started: str
    submitted: str


def _normalize_timestamp(text: str) -> str:
    """Rewrite ISO-8601 variants into the form ``datetime.fromisoformat`` reads on 3.10.

    Handles ``Z``, hour-only or colon-less offsets, a space separator and
    fractional seconds of any length (Postgres trims trailing zeros).
    """
    match = _TIMESTAMP_RE.match(text)
    if match is None:
        return text
    time = match.group('time')
    if time is None:
        return match.group('date')
    if len(time) == 5:
        time = f'{time}:00'
    fraction = match.group('fraction')
    if fraction:
        time = f'{time}.{fraction[:6].ljust(6, "0")}'
    offset = match.group('offset') or ''
    if offset in ('Z', 'z'):
        offset = '+00:00'
    elif offset:
        digits = offset[1:].replace(':', '')
        offset = f'{offset[0]}{digits[:2]}:{digits[2:] or "00"}'
    return f"{match.group('date')}T{time}{offset}"


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 date or timestamp; a trailing ``Z`` means UTC."""
    if isinstance(value, datetime):
        return value
    text = str(value or '').strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(_normalize_timestamp(text))
    except ValueError:
        return None


def ordinal_suffix(day: int) -> str:
    if 11 <= day % 100 <= 13:
        return 'th'
    return {1: 'st', 2: 'nd', 3: 'rd'}.get(day % 10, 'th')


def format_date_verbose(value: Any) -> str:
    """``2024-08-05T10:00:00Z`` -> ``Monday 5th Aug '24``; invalid input -> em-dash."""
    moment = parse_timestamp(value)
    if moment is None:
        return EM_DASH
    # English names regardless of the process locale.
    day = moment.day
    weekday = _WEEKDAYS[moment.weekday()]
    month = _MONTHS[moment.month - 1]
    return f"{weekday} {day}{ordinal_suffix(day)} {month} '{moment.year % 100:02d}"


def ddmmyy(moment: datetime) -> str:
    return moment.strftime('%d%m%y')


def _as_string(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ''
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, dict):
        for key in _OBJECT_NAME_KEYS:
            text = _as_string(value.get(key))
            if text:
                return text
    return ''


def _looks_like_identifier(value: str) -> bool:
    return bool(_UUID_RE.match(value) or _NUMERIC_RE.match(value))


def store_name_candidates(payload: AuditPayload) -> list[str]:
    store = payload.store
    candidates = [
        payload.store_name,
        store,
        payload.store_title,
        payload.store_display_name,
    ]
    if isinstance(store, dict):
        candidates.extend([store.get('name'), store.get('title')])
    return [_as_string(item) for item in candidates]


def derive_store_name(payload: AuditPayload) -> str:
    """Pick a human store name, skipping UUIDs and bare numeric ids when possible."""
    candidates = [item for item in store_name_candidates(payload) if item]
    for item in candidates:
        if not _looks_like_identifier(item):
            return item
    return candidates[0] if candidates else ''


def resolve_template_name(payload: AuditPayload) -> str:
    for value in (payload.template_name, payload.template):
        text = _as_string(value)
        if text:
            return text
    return EM_DASH


def resolve_reporter_name(payload: AuditPayload) -> str:
    user = payload.user or {}
    for value in (
        payload.reported_by_name,
        payload.reporter_name,
        payload.submitted_by_name,
        user.get('full_name'),
        user.get('name'),
    ):
        text = _as_string(value)
        if text:
            return text
    return EM_DASH


def store_token(name: str) -> str:
    token = re.sub(r'[^A-Za-z0-9]+', '_', sanitize(name)).strip('_')
    return token or 'Unknown'


def build_file_base_name(payload: AuditPayload, *, now: datetime | None = None) -> str:
    moment = parse_timestamp(payload.submitted_at)
    if moment is None:
        moment = now or datetime.now(timezone.utc)
    return f'Audit_{store_token(derive_store_name(payload))}_{ddmmyy(moment)}'


def build_cover_data(payload: AuditPayload, file_base: str, *, title: str) -> CoverData:
    # The audit id is never shown on the cover.
    return CoverData(
        title=sanitize(title),
        file=sanitize(f'{file_base}.pdf'),
        store=sanitize(derive_store_name(payload) or EM_DASH),
        template=sanitize(resolve_template_name(payload)),
        reported_by=sanitize(resolve_reporter_name(payload)),
        started=format_date_verbose(payload.started_at),
        submitted=format_date_verbose(payload.submitted_at),
    )
