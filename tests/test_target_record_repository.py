"""
tests/test_target_record_repository.py

Pytest unit tests for the duplicate-safe record insert path.

SQL is compiled against the PostgreSQL dialect without a connection.
"""

from __future__ import annotations

import uuid
from typing import Any

import pytest
from sqlalchemy.dialects import postgresql

import app.repositories.target_record_repository as target_module
from app.mappers.schema_definitions import SchemaKind, UnknownSchemaKindError
from app.repositories.target_record_repository import (
    TargetRecordRepository,
    build_insert_statement,
    natural_key_columns,
)
from app.transformers.row_transformer import RowTransformer
from conftest import PLAYERS_HEADERS, TRAFFIC_HEADERS, players_row, traffic_row


class _Result:
    def __init__(self, rows: list[Any]) -> None:
        self._rows = rows

    def all(self) -> list[Any]:
        return self._rows


class _CapturingSession:
    def __init__(self, returned: int) -> None:
        self.returned = returned
        self.statements: list[Any] = []

    def scalars(self, statement: Any) -> _Result:
        self.statements.append(statement)
        return _Result([uuid.uuid4() for _ in range(self.returned)])


def _compile(statement: Any) -> str:
    return str(statement.compile(dialect=postgresql.dialect()))


def _traffic_record(**overrides: str) -> dict[str, Any]:
    return RowTransformer().transform_row(traffic_row(**overrides), TRAFFIC_HEADERS, SchemaKind.TRAFFIC_REPORT)


class TestNaturalKeys:
    def test_traffic_natural_key_columns(self) -> None:
        assert natural_key_columns(SchemaKind.TRAFFIC_REPORT) == (
            "date",
            "foreign_brand_id",
            "foreign_partner_id",
            "foreign_campaign_id",
            "foreign_landing_id",
            "traffic_source",
            "device_type",
            "user_agent_family",
            "os_family",
            "country",
        )

    def test_players_natural_key_columns(self) -> None:
        assert natural_key_columns(SchemaKind.PLAYERS_DATA) == (
            "player_id",
            "original_player_id",
            "partner_id",
            "campaign_id",
            "date",
        )


class TestInsertStatement:
    def test_traffic_insert_skips_conflicts_on_natural_key(self) -> None:
        payload = {"upload_id": uuid.uuid4(), "date": None, "all_clicks": 1}

        sql = _compile(build_insert_statement(SchemaKind.TRAFFIC_REPORT, [payload]))

        assert sql.startswith("INSERT INTO traffic_reports")
        assert "ON CONFLICT ON CONSTRAINT uq_traffic_reports_natural_key DO NOTHING" in sql
        assert "RETURNING traffic_reports.id" in sql

    def test_players_insert_skips_conflicts_on_natural_key(self) -> None:
        payload = {"upload_id": uuid.uuid4(), "player_id": 1}

        sql = _compile(build_insert_statement(SchemaKind.PLAYERS_DATA, [payload]))

        assert "INSERT INTO player_records" in sql
        assert "ON CONFLICT ON CONSTRAINT uq_player_records_natural_key DO NOTHING" in sql

    def test_unknown_kind_raises(self) -> None:
        with pytest.raises(UnknownSchemaKindError):
            build_insert_statement("conversions", [{}])


class TestBulkInsert:
    def test_empty_chunk_does_not_hit_the_database(self) -> None:
        session = _CapturingSession(returned=0)

        inserted = TargetRecordRepository(session).bulk_insert(  # type: ignore[arg-type]
            SchemaKind.TRAFFIC_REPORT, uuid.uuid4(), []
        )

        assert inserted == 0
        assert session.statements == []

    def test_returns_count_of_returned_ids(self) -> None:
        session = _CapturingSession(returned=1)

        inserted = TargetRecordRepository(session).bulk_insert(  # type: ignore[arg-type]
            SchemaKind.TRAFFIC_REPORT,
            uuid.uuid4(),
            [_traffic_record(), _traffic_record(day=16)],
        )

        assert inserted == 1
        assert len(session.statements) == 1

    def test_payloads_use_column_names_and_dedupe_in_chunk(self, monkeypatch: pytest.MonkeyPatch) -> None:
        captured: list[list[dict[str, Any]]] = []
        real_builder = target_module.build_insert_statement

        def _capture(kind: str, payloads: list[dict[str, Any]]) -> Any:
            captured.append(list(payloads))
            return real_builder(kind, payloads)

        monkeypatch.setattr(target_module, "build_insert_statement", _capture)
        upload_id = uuid.uuid4()
        first = _traffic_record(clicks="120")
        repeat = _traffic_record(clicks="999")
        other = _traffic_record(brand_id="102")

        TargetRecordRepository(_CapturingSession(returned=2)).bulk_insert(  # type: ignore[arg-type]
            SchemaKind.TRAFFIC_REPORT, upload_id, [first, repeat, other]
        )

        payloads = captured[0]
        assert len(payloads) == 2
        assert payloads[0]["all_clicks"] == 120
        assert payloads[0]["upload_id"] == upload_id
        assert payloads[1]["foreign_brand_id"] == 102
        assert "allClicks" not in payloads[0]

    def test_players_records_with_null_keys_are_deduped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        captured: list[list[dict[str, Any]]] = []
        real_builder = target_module.build_insert_statement

        def _capture(kind: str, payloads: list[dict[str, Any]]) -> Any:
            captured.append(list(payloads))
            return real_builder(kind, payloads)

        monkeypatch.setattr(target_module, "build_insert_statement", _capture)
        row = players_row()
        row[PLAYERS_HEADERS.index("Campaign ID")] = ""
        record = RowTransformer().transform_row(row, PLAYERS_HEADERS, SchemaKind.PLAYERS_DATA)

        TargetRecordRepository(_CapturingSession(returned=1)).bulk_insert(  # type: ignore[arg-type]
            SchemaKind.PLAYERS_DATA, uuid.uuid4(), [record, dict(record)]
        )

        assert len(captured[0]) == 1
        assert captured[0][0]["campaign_id"] is None
