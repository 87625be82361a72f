"""
app/mappers/field_mapper.py

Maps raw CSV header strings onto canonical field names for a schema kind.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping

from app.mappers.schema_definitions import (
    FIELD_TABLES,
    FieldSpec,
    UnknownSchemaKindError,
    header_variants,
)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize_header(header: str) -> str:
    """
    Normalize a header for variant lookup (trim + lower-case).
    """

    return header.strip().lower()


def camel_case_header(header: str) -> str:
    """
    Deterministic camelCase fallback for headers with no known variant.
    """

    words = _NON_ALNUM.sub(" ", header.lower()).split()
    if not words:
        return ""
    return words[0] + "".join(word[:1].upper() + word[1:] for word in words[1:])


class FieldMapper:
    """
    Resolves header spellings to canonical field names.

    Lookup tables are built once from the static field tables and never
    mutated afterwards.
    """

    def __init__(
        self,
        field_tables: Mapping[str, tuple[FieldSpec, ...]] | None = None,
    ) -> None:
        tables = field_tables if field_tables is not None else FIELD_TABLES
        self._specs: dict[str, Mapping[str, FieldSpec]] = {}
        self._variant_lookup: dict[str, Mapping[str, str]] = {}

        for kind, specs in tables.items():
            by_name: dict[str, FieldSpec] = {}
            lookup: dict[str, str] = {}
            for spec in specs:
                by_name[spec.name] = spec
                for variant in header_variants(spec):
                    lookup.setdefault(normalize_header(variant), spec.name)
            self._specs[kind] = MappingProxyType(by_name)
            self._variant_lookup[kind] = MappingProxyType(lookup)

    def map_field(self, header: str, kind: str) -> str:
        """
        Return the canonical field name for one raw header.
        """

        lookup = self._lookup_for(kind)
        canonical = lookup.get(normalize_header(header))
        if canonical is not None:
            return canonical
        return camel_case_header(header)

    def map_headers(self, headers: list[str] | tuple[str, ...], kind: str) -> list[str]:
        return [self.map_field(header, kind) for header in headers]

    def known_fields(self, kind: str) -> tuple[str, ...]:
        """
        Every canonical field name known for ``kind``, in declaration order.
        """

        return tuple(self._specs_for(kind))

    def field_spec(self, kind: str, field_name: str) -> FieldSpec | None:
        return self._specs_for(kind).get(field_name)

    def field_specs(self, kind: str) -> tuple[FieldSpec, ...]:
        return tuple(self._specs_for(kind).values())

    def variants_for(self, kind: str, field_name: str) -> tuple[str, ...]:
        spec = self.field_spec(kind, field_name)
        if spec is None:
            return ()
        return header_variants(spec)

    def _lookup_for(self, kind: str) -> Mapping[str, str]:
        try:
            return self._variant_lookup[kind]
        except KeyError as exc:
            raise UnknownSchemaKindError(kind) from exc

    def _specs_for(self, kind: str) -> Mapping[str, FieldSpec]:
        try:
            return self._specs[kind]
        except KeyError as exc:
            raise UnknownSchemaKindError(kind) from exc
