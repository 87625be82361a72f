"""
app/transformers/row_transformer.py

Coerces raw CSV rows into typed target records keyed by canonical field name.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from app.mappers.field_mapper import FieldMapper
from app.mappers.schema_definitions import FieldSpec, FieldType, OnAbsent
from app.validators.value_parsers import (
    clean_string,
    fits_numeric,
    is_digits,
    is_truthy_flag,
    parse_datetime,
    parse_decimal,
    parse_float,
    parse_int,
)


class RowTransformer:
    """
    Total row coercion: every known field is present in the output and no
    input row makes it raise.
    """

    def __init__(self, field_mapper: FieldMapper | None = None) -> None:
        self._field_mapper = field_mapper or FieldMapper()

    def transform_row(
        self,
        row: Sequence[Any],
        headers: Sequence[str],
        kind: str,
    ) -> dict[str, Any]:
        """
        Build one record with every known field of ``kind``.

        Columns with no known field are dropped; fields absent from the file
        take their declared default.
        """

        raw_by_field: dict[str, Any] = {}
        for index, header in enumerate(headers):
            field_name = self._field_mapper.map_field(header, kind)
            if self._field_mapper.field_spec(kind, field_name) is None:
                continue
            # First occurrence wins when two headers map to the same field.
            if field_name in raw_by_field:
                continue
            raw_by_field[field_name] = row[index] if index < len(row) else None

        return {
            spec.name: self._coerce(spec, raw_by_field.get(spec.name))
            for spec in self._field_mapper.field_specs(kind)
        }

    def to_column_values(self, kind: str, record: Mapping[str, Any]) -> dict[str, Any]:
        """
        Rename canonical keys to database column names.
        """

        values: dict[str, Any] = {}
        for spec in self._field_mapper.field_specs(kind):
            if spec.name in record:
                values[spec.column] = record[spec.name]
        return values

    @staticmethod
    def _coerce(spec: FieldSpec, raw: Any) -> Any:
        if spec.field_type == FieldType.STRING:
            return clean_string(raw)

        if spec.field_type == FieldType.BOOLEAN:
            return is_truthy_flag(raw)

        if spec.field_type == FieldType.DATE:
            return parse_datetime(raw)

        default = 0 if spec.on_absent == OnAbsent.ZERO else None

        if spec.field_type == FieldType.INTEGER:
            if spec.digits_only and not is_digits(raw):
                return default
            parsed_int = parse_int(raw)
            return default if parsed_int is None else parsed_int

        parsed_float = parse_float(raw)
        if spec.precision is not None and parsed_float is not None:
            parsed = parse_decimal(raw)
            if parsed is None or not fits_numeric(parsed, precision=spec.precision, scale=spec.scale or 0):
                parsed_float = None
        if parsed_float is None:
            return 0.0 if spec.on_absent == OnAbsent.ZERO else None
        return parsed_float
