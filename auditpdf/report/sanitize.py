from __future__ import annotations

from typing import Any


PLACEHOLDER_CHAR = '?'

# Glyphs that commonly arrive from phones and word processors but are outside
# the encoding of the standard PDF fonts (or render badly in them).
REPLACEMENTS: dict[str, str] = {
    '≥': '>=',
    '≤': '<=',
    '≠': '!=',
    '→': '->',
    '←': '<-',
    '–': '-',
    '—': '-',
    '−': '-',
    '‐': '-',
    '‑': '-',
    '‒': '-',
    '―': '-',
    '“': '"',
    '”': '"',
    '„': '"',
    '‟': '"',
    '″': '"',
    '‘': "'",
    '’': "'",
    '‚': "'",
    '‛': "'",
    '′': "'",
    '•': '*',
    '·': '-',
    '…': '...',
    '£': 'GBP ',
    '€': 'EUR ',
    '\u00a0': ' ',
    '\u200b': '',
    '\ufeff': '',
}


def _is_safe(ch: str) -> bool:
    code = ord(ch)
    if ch in '\t\n\r':
        return True
    if 0x20 <= code <= 0x7E:
        return True
    # Latin-1 supplement is covered by WinAnsiEncoding.
    return 0xA1 <= code <= 0xFF


def sanitize(value: Any) -> str:
    if value is None:
        return ''
    text = str(value)
    out: list[str] = []
    for ch in text:
        replacement = REPLACEMENTS.get(ch)
        if replacement is not None:
            out.append(replacement)
        elif _is_safe(ch):
            out.append(ch)
        else:
            out.append(PLACEHOLDER_CHAR)
    return ''.join(out)


def sanitize_deep(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        return sanitize(value)
    if isinstance(value, list):
        return [sanitize_deep(item) for item in value]
    if isinstance(value, tuple):
        return tuple(sanitize_deep(item) for item in value)
    if isinstance(value, dict):
        return {key: sanitize_deep(item) for key, item in value.items()}
    return value
