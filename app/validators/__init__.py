"""
app/validators package marker.
"""

from app.validators.row_validator import RowValidator
from app.validators.value_parsers import (
    fits_numeric,
    is_blank,
    is_truthy_flag,
    parse_datetime,
    parse_decimal,
    parse_float,
    parse_int,
)

__all__ = [
    "RowValidator",
    "fits_numeric",
    "is_blank",
    "is_truthy_flag",
    "parse_datetime",
    "parse_decimal",
    "parse_float",
    "parse_int",
]
