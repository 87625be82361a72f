"""
tests/conftest.py

Shared fixtures and in-memory fakes for the import pipeline tests.

Nothing here talks to PostgreSQL: the session fake stores ORM objects in a
dict, the record repository fake enforces natural keys in memory.
"""

from __future__ import annotations

import csv
import io
import uuid
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy.exc import OperationalError

from app.mappers.schema_definitions import get_schema_definition
from app.services.csv_import_service import CSVImportService
from app.services.import_orchestrator_service import ImportOrchestratorService
from db.models.import_job import ImportJob, ImportJobStatus
from db.repositories.import_job_repository import ImportJobRepository
from db.repositories.storage import LocalStagingStore

TRAFFIC_HEADERS: list[str] = [
    "Date",
    "Foreign Brand ID",
    "Foreign Partner ID",
    "Foreign Campaign ID",
    "Foreign Landing ID",
    "Traffic Source",
    "Device Type",
    "User Agent Family",
    "OS Family",
    "Country",
    "All Clicks",
    "Unique Clicks",
    "Registrations Count",
    "FTD Count",
    "Deposits Count",
    "CR",
    "CFTD",
    "CD",
    "RFTD",
]

PLAYERS_HEADERS: list[str] = [
    "Player ID",
    "Original player ID",
    "Sign up date",
    "First deposit date",
    "Partner ID",
    "Company name",
    "Partners email",
    "Partner tags",
    "Campaign ID",
    "Campaign name",
    "Promo ID",
    "Promo code",
    "Player country",
    "Tag: clickid",
    "Tag: os",
    "Tag: source",
    "Tag: sub2",
    "Tag: webID",
    "Date",
    "Prequalified",
    "Duplicate",
    "Self-excluded",
    "Disabled",
    "Currency",
    "FTD count",
    "FTD sum",
    "Deposits count",
    "Deposits sum",
    "Cashouts count",
    "Cashouts sum",
    "Casino bets count",
    "Casino Real NGR",
    "Fixed per player",
    "Casino bets sum",
    "Casino wins sum",
]


def traffic_row(day: int = 15, *, brand_id: str = "101", clicks: str = "120") -> list[str]:
    return [
        f"2024-01-{day:02d}",
        brand_id,
        "202",
        "303",
        "404",
        "",
        "Phone",
        "Chrome Mobile",
        "Android",
        "US",
        clicks,
        "100",
        "5",
        "2",
        "3",
        "4.17",
        "40",
        "60",
        "0.67",
    ]


def players_row(player_id: str = "9001") -> list[str]:
    return [
        player_id,
        player_id,
        "2024-01-02",
        "2024-01-03",
        "55",
        "Acme Media",
        "partner@example.com",
        "tag-a",
        "77",
        "Winter Promo",
        "12",
        "WINTER24",
        "DE",
        "abc123",
        "android",
        "fb",
        "",
        "web-1",
        "2024-01-31",
        "1",
        "0",
        "false",
        "TRUE",
        "EUR",
        "1",
        "25.50",
        "3",
        "100.00",
        "0",
        "0",
        "42",
        "-12.30",
        "15",
        "300.00",
        "287.70",
    ]


def build_csv(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue().encode("utf-8")


# ---------------------------------------------------------------------------
# Session / repository fakes
# ---------------------------------------------------------------------------


class FakeSession:
    """
    Minimal stand-in for ``sqlalchemy.orm.Session``.
    """

    def __init__(self) -> None:
        self.objects: dict[tuple[type, Any], Any] = {}
        self.commits = 0
        self.rollbacks = 0
        self.closed = False
        self.fail_next_commit = False
        self.locked_gets: list[Any] = []

    def add(self, obj: Any) -> None:
        if getattr(obj, "id", None) is None:
            obj.id = uuid.uuid4()
        now = datetime.now(timezone.utc)
        if getattr(obj, "created_at", None) is None:
            obj.created_at = now
        if getattr(obj, "updated_at", None) is None:
            obj.updated_at = now
        self.objects[(type(obj), obj.id)] = obj

    def get(self, model: type, ident: Any, **options: Any) -> Any:
        if options.get("with_for_update"):
            self.locked_gets.append(ident)
        return self.objects.get((model, ident))

    def flush(self) -> None:
        return None

    def refresh(self, obj: Any) -> None:
        return None

    def expire_all(self) -> None:
        return None

    def execute(self, statement: Any, *args: Any, **kwargs: Any) -> None:
        return None

    def commit(self) -> None:
        if self.fail_next_commit:
            self.fail_next_commit = False
            raise OperationalError("COMMIT", {}, Exception("connection lost"))
        self.commits += 1
        now = datetime.now(timezone.utc)
        for obj in self.objects.values():
            obj.updated_at = now

    def rollback(self) -> None:
        self.rollbacks += 1

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "FakeSession":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        return None

    def jobs(self) -> list[ImportJob]:
        return [obj for (model, _), obj in self.objects.items() if model is ImportJob]


class InMemoryImportJobRepository(ImportJobRepository):
    """
    Real lifecycle logic with in-memory list/aggregate queries.
    """

    def __init__(self, session: FakeSession) -> None:
        super().__init__(session)  # type: ignore[arg-type]
        self._fake_session = session

    def list_jobs(
        self,
        *,
        limit: int = 100,
        job_type: str | None = None,
        status: str | None = None,
        user_id: str | None = None,
    ) -> list[ImportJob]:
        jobs = self._fake_session.jobs()
        if job_type:
            jobs = [job for job in jobs if job.type == job_type]
        if status:
            jobs = [job for job in jobs if job.status == status]
        if user_id:
            jobs = [job for job in jobs if job.user_id == user_id]
        jobs.sort(key=lambda job: job.created_at, reverse=True)
        return jobs[: max(1, limit)]

    def count_active(self) -> int:
        return sum(1 for job in self._fake_session.jobs() if job.status in ImportJobStatus.ACTIVE)

    def latest_created_at(self) -> datetime | None:
        jobs = self._fake_session.jobs()
        if not jobs:
            return None
        return max(job.created_at for job in jobs)


class InMemoryRecordStore:
    """
    Shared storage behind every ``InMemoryRecordRepository``.
    """

    def __init__(self) -> None:
        self.rows: dict[str, dict[tuple[Any, ...], dict[str, Any]]] = {}
        self.insert_calls = 0
        self.fail_on_call: int | None = None

    def count(self, kind: str) -> int:
        return len(self.rows.get(kind, {}))


class InMemoryRecordRepository:
    def __init__(self, session: Any, store: InMemoryRecordStore) -> None:
        self._store = store

    def bulk_insert(
        self,
        kind: str,
        upload_id: uuid.UUID,
        records: Sequence[Mapping[str, Any]],
    ) -> int:
        self._store.insert_calls += 1
        if self._store.fail_on_call is not None and self._store.insert_calls >= self._store.fail_on_call:
            raise OperationalError("INSERT", {}, Exception("storage unreachable"))

        key_fields = get_schema_definition(kind).natural_key
        table = self._store.rows.setdefault(kind, {})
        inserted = 0
        for record in records:
            key = tuple(record.get(name) for name in key_fields)
            if key in table:
                continue
            table[key] = {**record, "upload_id": upload_id}
            inserted += 1
        return inserted

    def count_records(self, kind: str) -> int:
        return self._store.count(kind)

    def date_range(self, kind: str) -> tuple[datetime | None, datetime | None]:
        dates = [row["date"] for row in self._store.rows.get(kind, {}).values() if row.get("date")]
        if not dates:
            return None, None
        return min(dates), max(dates)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture()
def record_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture()
def staging_store(tmp_path: Path) -> LocalStagingStore:
    return LocalStagingStore(tmp_path / "uploads")


@pytest.fixture()
def import_service_factory() -> Callable[..., CSVImportService]:
    def _factory(**overrides: Any) -> CSVImportService:
        options: dict[str, Any] = {
            "batch_size": 500,
            "max_upload_bytes": 50 * 1024 * 1024,
            "detection_sample_rows": 5,
            "preview_rows": 3,
            "max_stored_errors": 10000,
            "log_validation_errors": False,
        }
        options.update(overrides)
        return CSVImportService(**options)

    return _factory


@pytest.fixture()
def import_service(import_service_factory: Callable[..., CSVImportService]) -> CSVImportService:
    return import_service_factory()


@pytest.fixture()
def orchestrator_factory(
    session: FakeSession,
    record_store: InMemoryRecordStore,
    staging_store: LocalStagingStore,
    import_service_factory: Callable[..., CSVImportService],
) -> Callable[..., ImportOrchestratorService]:
    def _factory(**service_overrides: Any) -> ImportOrchestratorService:
        return ImportOrchestratorService(
            session_factory=lambda: session,
            import_service=import_service_factory(**service_overrides),
            staging_store=staging_store,
            job_repository_factory=InMemoryImportJobRepository,
            record_repository_factory=lambda db: InMemoryRecordRepository(db, record_store),
        )

    return _factory


@pytest.fixture()
def orchestrator(
    orchestrator_factory: Callable[..., ImportOrchestratorService],
) -> ImportOrchestratorService:
    return orchestrator_factory()
