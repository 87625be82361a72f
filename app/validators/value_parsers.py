"""
app/validators/value_parsers.py

Cell-level parsing primitives shared by the row validator and transformer.

Every parser returns ``None`` for a value it cannot interpret instead of
raising, so callers decide whether that is an error or a default.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

TIMESTAMP_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d.%m.%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%d.%m.%Y %H:%M:%S",
)

TRUTHY_FLAGS = frozenset({"1", "true"})

BIGINT_MIN = -(2**63)
BIGINT_MAX = 2**63 - 1

# Decimal exponent above which no value can fit a BIGINT column.
_MAX_INTEGER_EXPONENT = 18

_DIGITS = re.compile(r"^\d+$")


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    return str(value).strip() == ""


def clean_string(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def parse_decimal(value: Any) -> Decimal | None:
    """
    Parse a finite decimal number, or return None.
    """

    if is_blank(value):
        return None
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not parsed.is_finite():
        return None
    return parsed


def parse_float(value: Any) -> float | None:
    parsed = parse_decimal(value)
    if parsed is None:
        return None
    result = float(parsed)
    if math.isinf(result):
        return None
    return result


def parse_int(value: Any) -> int | None:
    """
    Parse a base-10 integer that fits a BIGINT column.

    Decimal and scientific strings are truncated. Values outside the BIGINT
    range return None; exponents are bounded before conversion so strings
    such as ``1e999999999`` never expand into huge integers.
    """

    if is_blank(value):
        return None
    raw = str(value).strip()
    try:
        result = int(raw)
    except ValueError:
        parsed = parse_decimal(raw)
        if parsed is None:
            return None
        if parsed.is_zero():
            return 0
        if parsed.adjusted() > _MAX_INTEGER_EXPONENT:
            return None
        result = int(parsed)

    if not BIGINT_MIN <= result <= BIGINT_MAX:
        return None
    return result


def fits_numeric(value: Decimal, *, precision: int, scale: int) -> bool:
    """
    True when ``value`` rounded to ``scale`` places fits NUMERIC(precision, scale).
    """

    if value.is_zero():
        return True
    integer_digits = precision - scale
    if value.adjusted() >= integer_digits:
        return False
    rounded = value.quantize(Decimal(1).scaleb(-scale), rounding=ROUND_HALF_UP)
    return abs(rounded) < Decimal(10) ** integer_digits


def is_digits(value: Any) -> bool:
    return bool(_DIGITS.match(clean_string(value)))


def parse_datetime(value: Any) -> datetime | None:
    """
    Parse a date or timestamp into a timezone-aware UTC datetime.
    """

    if is_blank(value):
        return None
    raw = str(value).strip()

    normalized = raw[:-1] + "+00:00" if raw.endswith(("Z", "z")) else raw
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        parsed = None

    if parsed is None:
        for fmt in TIMESTAMP_FORMATS:
            try:
                parsed = datetime.strptime(raw, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def is_truthy_flag(value: Any) -> bool:
    return clean_string(value).lower() in TRUTHY_FLAGS
