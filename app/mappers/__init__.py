"""
app/mappers package marker.
"""

from app.mappers.field_mapper import FieldMapper, camel_case_header, normalize_header
from app.mappers.schema_definitions import (
    FIELD_TABLES,
    SCHEMA_DEFINITIONS,
    FieldSpec,
    FieldType,
    OnAbsent,
    SchemaDefinition,
    SchemaKind,
    UnknownSchemaKindError,
    get_field_specs,
    get_schema_definition,
)
from app.mappers.schema_detector import SchemaDetector, SchemaScore

__all__ = [
    "FIELD_TABLES",
    "SCHEMA_DEFINITIONS",
    "FieldMapper",
    "FieldSpec",
    "FieldType",
    "OnAbsent",
    "SchemaDefinition",
    "SchemaDetector",
    "SchemaKind",
    "SchemaScore",
    "UnknownSchemaKindError",
    "camel_case_header",
    "get_field_specs",
    "get_schema_definition",
    "normalize_header",
]
