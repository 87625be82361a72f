"""
app/validators/row_validator.py

Field-level validation of raw CSV data rows against a detected schema.
"""

from __future__ import annotations

from typing import Any, Sequence

from app.domain.imports import RowValidationError
from app.mappers.field_mapper import FieldMapper
from app.mappers.schema_definitions import FieldSpec, FieldType
from app.validators.value_parsers import (
    fits_numeric,
    is_blank,
    is_digits,
    parse_datetime,
    parse_decimal,
    parse_int,
)


class RowValidator:
    """
    Collects every problem in one row; bad data never raises.
    """

    def __init__(self, field_mapper: FieldMapper | None = None) -> None:
        self._field_mapper = field_mapper or FieldMapper()

    def validate_row(
        self,
        row: Sequence[Any],
        headers: Sequence[str],
        kind: str,
        row_number: int,
    ) -> list[RowValidationError]:
        """
        Validate one data row.

        ``row_number`` is 1-based and excludes the header row. Cells missing
        from a short row read as empty; cells beyond the header are ignored.
        """

        errors: list[RowValidationError] = []

        for index, header in enumerate(headers):
            field_name = self._field_mapper.map_field(header, kind)
            spec = self._field_mapper.field_spec(kind, field_name)
            if spec is None:
                continue

            raw = row[index] if index < len(row) else ""
            raw_value = "" if raw is None else str(raw)
            message = self._check_value(spec=spec, header=header, value=raw_value)
            if message is not None:
                errors.append(
                    RowValidationError(
                        row_number=row_number,
                        column=header,
                        message=message,
                        value=raw_value,
                    )
                )

        return errors

    @staticmethod
    def _check_value(*, spec: FieldSpec, header: str, value: str) -> str | None:
        if is_blank(value):
            if spec.required:
                return f"{header} is required"
            return None

        if spec.field_type == FieldType.DATE:
            if parse_datetime(value) is None:
                return f"Invalid date format for {header}"
            return None

        if spec.field_type == FieldType.STRING:
            if spec.max_length is not None and len(value.strip()) > spec.max_length:
                return f"{header} exceeds maximum length of {spec.max_length} characters"
            return None

        if spec.field_type == FieldType.INTEGER:
            if spec.digits_only and not is_digits(value):
                return f"Invalid numeric value for {header}"
            parsed = parse_decimal(value)
            if parsed is None or (spec.non_negative and parsed < 0):
                return f"Invalid numeric value for {header}"
            if parse_int(value) is None:
                return f"Invalid numeric value for {header}"
            return None

        if spec.field_type == FieldType.DECIMAL:
            parsed = parse_decimal(value)
            if parsed is None or (spec.non_negative and parsed < 0):
                return f"Invalid numeric value for {header}"
            if spec.precision is not None and not fits_numeric(
                parsed, precision=spec.precision, scale=spec.scale or 0
            ):
                return f"Invalid numeric value for {header}"

        return None
