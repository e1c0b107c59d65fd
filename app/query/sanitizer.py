# app/query/sanitizer.py
"""Identifier quoting and literal coercion for compiled statements."""

import math
import re
from datetime import datetime
from typing import Any, Optional

from dateutil import parser as date_parser
from dateutil.parser import ParserError

from app.query.exceptions import InvalidIdentifier

QUOTE_CHARACTERS = ('"', "'", "`")

_DIGIT = re.compile(r"\d")


def quote_identifier(name: Optional[str]) -> str:
    """Return ``name`` wrapped in double quotes, or raise InvalidIdentifier."""
    if not isinstance(name, str) or not name.strip():
        raise InvalidIdentifier(name)
    if any(ch in name for ch in QUOTE_CHARACTERS) or "\x00" in name:
        raise InvalidIdentifier(name)
    return f'"{name}"'


def _parse_number(text: str) -> Optional[float]:
    if "_" in text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    return None if math.isnan(number) else number


def _parse_datetime(text: str) -> Optional[datetime]:
    # Month names alone are not dates
    if not _DIGIT.search(text):
        return None
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    try:
        return date_parser.parse(text)
    except (ParserError, ValueError, OverflowError):
        return None


def coerce_literal(raw: Any) -> Any:
    """
    Convert a client-supplied filter value into a typed bind parameter.

    Numeric strings always become numbers, even when the target column is
    textual. Strings that parse as a date become datetimes. Anything else is
    passed through unchanged.
    """
    if not isinstance(raw, str):
        return raw

    text = raw.strip()
    if not text:
        return raw

    number = _parse_number(text)
    if number is not None:
        return number

    moment = _parse_datetime(text)
    if moment is not None:
        return moment

    return raw
