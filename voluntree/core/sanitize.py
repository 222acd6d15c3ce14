"""Input sanitization helpers for form and JSON payloads."""

from __future__ import annotations

import json
import re
import unicodedata
from typing import Any, Iterable

_WHITESPACE_RE = re.compile(r"\s+")


def _strip_control_chars(value: str, *, allow_newlines: bool) -> str:
    return "".join(
        ch
        for ch in value
        if (ch == "\n" and allow_newlines) or unicodedata.category(ch) != "Cc"
    )


def clean_text(value: Any, *, allow_newlines: bool = False) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        value = str(value)
    value = value.replace("\r\n", "\n").replace("\r", "\n")
    value = _strip_control_chars(value, allow_newlines=allow_newlines).strip()
    if not allow_newlines:
        return _WHITESPACE_RE.sub(" ", value)
    value = "\n".join(line.strip() for line in value.split("\n"))
    return re.sub(r"\n{3,}", "\n\n", value)


def clean_single_line(value: Any) -> str:
    return clean_text(value, allow_newlines=False)


def clean_multiline(value: Any) -> str:
    return clean_text(value, allow_newlines=True)


def clean_email(value: Any) -> str:
    return clean_single_line(value).lower()


def clean_csv_list(values: Iterable[str] | str | None, *, lowercase: bool = True) -> list[str]:
    """Normalize a list or a comma-separated string into unique, trimmed items."""
    if values is None:
        return []
    if isinstance(values, str):
        values = values.split(",")
    cleaned: list[str] = []
    seen: set[str] = set()
    for item in values:
        item_clean = clean_single_line(item)
        if lowercase:
            item_clean = item_clean.lower()
        if not item_clean or item_clean in seen:
            continue
        seen.add(item_clean)
        cleaned.append(item_clean)
    return cleaned


def parse_coordinates(value: Any) -> list[Any] | None:
    """Accept ``[lng, lat]``, a JSON array string or ``"lng,lat"``."""
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.startswith("["):
            try:
                value = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ValueError("coordinates_must_be_lng_lat") from exc
        else:
            value = [part.strip() for part in text.split(",")]
    if not isinstance(value, (list, tuple)):
        raise ValueError("coordinates_must_be_lng_lat")
    return list(value)
