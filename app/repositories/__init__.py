"""
app/repositories package marker.
"""

from app.repositories.target_record_repository import (
    TargetRecordRepository,
    build_insert_statement,
    natural_key_columns,
)

__all__ = [
    "TargetRecordRepository",
    "build_insert_statement",
    "natural_key_columns",
]
