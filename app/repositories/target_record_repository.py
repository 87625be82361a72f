"""
app/repositories/target_record_repository.py

Persistence layer for traffic report and player records.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import Insert, insert
from sqlalchemy.orm import Session

from app.mappers.schema_definitions import SchemaKind, UnknownSchemaKindError, get_field_specs, get_schema_definition
from db.models.player_record import PLAYER_RECORD_NATURAL_KEY, PlayerRecord
from db.models.traffic_report import TRAFFIC_REPORT_NATURAL_KEY, TrafficReport

_MODELS: dict[str, tuple[type[Any], str]] = {
    SchemaKind.TRAFFIC_REPORT: (TrafficReport, TRAFFIC_REPORT_NATURAL_KEY),
    SchemaKind.PLAYERS_DATA: (PlayerRecord, PLAYER_RECORD_NATURAL_KEY),
}


def _model_for(kind: str) -> tuple[type[Any], str]:
    try:
        return _MODELS[kind]
    except KeyError as exc:
        raise UnknownSchemaKindError(kind) from exc


def natural_key_columns(kind: str) -> tuple[str, ...]:
    """
    Database column names of the natural key for ``kind``.
    """

    columns = {spec.name: spec.column for spec in get_field_specs(kind)}
    return tuple(columns[name] for name in get_schema_definition(kind).natural_key)


def build_insert_statement(kind: str, payloads: Sequence[Mapping[str, Any]]) -> Insert:
    """
    Multi-row INSERT that silently skips natural-key conflicts.
    """

    model, constraint = _model_for(kind)
    return (
        insert(model)
        .values(list(payloads))
        .on_conflict_do_nothing(constraint=constraint)
        .returning(model.id)
    )


class TargetRecordRepository:
    """
    Repository for chunked, duplicate-safe persistence of typed records.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def bulk_insert(
        self,
        kind: str,
        upload_id: uuid.UUID,
        records: Sequence[Mapping[str, Any]],
    ) -> int:
        """
        Insert canonical records for one upload and return how many were new.

        Records already stored under the same natural key, or repeated inside
        ``records``, are skipped.
        """

        if not records:
            return 0

        specs = get_field_specs(kind)
        payloads: list[dict[str, Any]] = []
        for record in records:
            payload: dict[str, Any] = {"upload_id": upload_id}
            for spec in specs:
                payload[spec.column] = record.get(spec.name)
            payloads.append(payload)

        deduped = self._deduplicate_payloads(kind, payloads)
        stmt = build_insert_statement(kind, deduped)
        return len(self._session.scalars(stmt).all())

    def count_records(self, kind: str) -> int:
        model, _ = _model_for(kind)
        return int(self._session.scalar(select(func.count()).select_from(model)) or 0)

    def date_range(self, kind: str) -> tuple[datetime | None, datetime | None]:
        model, _ = _model_for(kind)
        row = self._session.execute(select(func.min(model.date), func.max(model.date))).one()
        return row[0], row[1]

    def _deduplicate_payloads(
        self,
        kind: str,
        payloads: Sequence[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        key_columns = natural_key_columns(kind)
        seen: set[tuple[Any, ...]] = set()
        deduped_payloads: list[dict[str, Any]] = []

        for payload in payloads:
            key = tuple(payload[column] for column in key_columns)
            if key in seen:
                continue
            seen.add(key)
            deduped_payloads.append(payload)

        return deduped_payloads
