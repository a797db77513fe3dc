from __future__ import annotations

import re

_CODE_NUMBER_PATTERN = re.compile(r'(\d+)')


def normalize_text(value: str | None) -> str:
    return (value or '').strip().lower()


def code_sort_key(code: str | None) -> tuple:
    """Natural ordering for codes such as PO-9 < PO-10."""
    parts = _CODE_NUMBER_PATTERN.split(normalize_text(code))
    return tuple((0, int(part)) if part.isdigit() else (1, part) for part in parts if part)
