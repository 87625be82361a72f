"""
tests/test_csv_import_service.py

Pytest unit tests for CSVImportService inspection and chunked loading.

Loading runs against the in-memory session and record store fakes.
"""

from __future__ import annotations

import io
import uuid
from collections.abc import Callable

import pytest

from app.mappers.schema_definitions import SchemaKind
from app.services.csv_import_service import (
    CSVFormatError,
    CSVImportService,
    CSVSchemaDetectionError,
    CSVUploadTooLargeError,
    ImportPersistenceError,
    iter_data_rows,
)
from db.models.import_job import ImportJob, ImportJobStatus
from conftest import (
    PLAYERS_HEADERS,
    TRAFFIC_HEADERS,
    FakeSession,
    InMemoryImportJobRepository,
    InMemoryRecordRepository,
    InMemoryRecordStore,
    build_csv,
    players_row,
    traffic_row,
)


# ---------------------------------------------------------------------------
# Inspection
# ---------------------------------------------------------------------------


class TestInspectUpload:
    def test_detects_traffic_report(self, import_service: CSVImportService) -> None:
        content = build_csv(TRAFFIC_HEADERS, [traffic_row(day) for day in (1, 2, 3, 4)])

        inspection = import_service.inspect_upload(content=content, filename="traffic.csv")

        assert inspection.kind == SchemaKind.TRAFFIC_REPORT
        assert inspection.column_count == 19
        assert inspection.total_rows == 4
        assert inspection.file_size_bytes == len(content)

    def test_preview_includes_header_row(self, import_service: CSVImportService) -> None:
        content = build_csv(PLAYERS_HEADERS, [players_row("1"), players_row("2"), players_row("3")])

        inspection = import_service.inspect_upload(content=content, filename="players.CSV")

        assert inspection.kind == SchemaKind.PLAYERS_DATA
        assert len(inspection.preview) == 3
        assert inspection.preview[0] == PLAYERS_HEADERS
        assert inspection.preview[1][0] == "1"

    def test_blank_lines_are_not_counted(self, import_service: CSVImportService) -> None:
        content = build_csv(TRAFFIC_HEADERS, [traffic_row(1)]) + b"\n,,,\n" + build_csv([], [traffic_row(2)])

        inspection = import_service.inspect_upload(content=content, filename="traffic.csv")

        assert inspection.total_rows == 2

    def test_utf8_bom_is_stripped(self, import_service: CSVImportService) -> None:
        content = b"\xef\xbb\xbf" + build_csv(TRAFFIC_HEADERS, [traffic_row()])

        inspection = import_service.inspect_upload(content=content, filename="traffic.csv")

        assert inspection.kind == SchemaKind.TRAFFIC_REPORT
        assert inspection.preview[0][0] == "Date"

    def test_header_only_file_has_zero_rows(self, import_service: CSVImportService) -> None:
        inspection = import_service.inspect_upload(content=build_csv(TRAFFIC_HEADERS, []), filename="t.csv")

        assert inspection.total_rows == 0

    def test_non_csv_extension_is_rejected(self, import_service: CSVImportService) -> None:
        with pytest.raises(CSVFormatError, match="Only CSV files"):
            import_service.inspect_upload(content=b"a,b\n1,2\n", filename="report.xlsx")

    def test_oversized_upload_is_rejected(self, import_service_factory: Callable[..., CSVImportService]) -> None:
        service = import_service_factory(max_upload_bytes=10)

        with pytest.raises(CSVUploadTooLargeError) as exc_info:
            service.inspect_upload(content=b"x" * 11, filename="big.csv")

        assert exc_info.value.size_bytes == 11
        assert exc_info.value.max_bytes == 10

    def test_empty_upload_is_rejected(self, import_service: CSVImportService) -> None:
        with pytest.raises(CSVFormatError, match="empty"):
            import_service.inspect_upload(content=b"  \n", filename="empty.csv")

    def test_non_utf8_upload_is_rejected(self, import_service: CSVImportService) -> None:
        with pytest.raises(CSVFormatError, match="UTF-8"):
            import_service.inspect_upload(content="Datum,Länge\n".encode("latin-1"), filename="x.csv")

    def test_detection_failure_carries_diagnostics(self, import_service: CSVImportService) -> None:
        content = build_csv(["Date", "Clicks", "Country"], [["2024-01-01", "5", "US"]])

        with pytest.raises(CSVSchemaDetectionError) as exc_info:
            import_service.inspect_upload(content=content, filename="unknown.csv")

        payload = exc_info.value.to_dict()
        assert payload["message"] == "Unable to detect CSV format"
        assert payload["headers"] == ["Date", "Clicks", "Country"]
        assert payload["column_count"] == 3
        assert any("Unexpected column count: 3" in line for line in payload["details"])


def test_iter_data_rows_skips_blank_rows() -> None:
    rows = [["a", "b"], [], ["", " "], ["1", ""]]

    assert list(iter_data_rows(rows)) == [["a", "b"], ["1", ""]]


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _start_job(session: FakeSession, *, kind: str, total_rows: int) -> ImportJob:
    repository = InMemoryImportJobRepository(session)
    job = repository.create_job(user_id="user-1", filename="f.csv", job_type=kind, total_rows=total_rows)
    repository.mark_processing(job_id=job.id)
    return job


def _load(
    service: CSVImportService,
    session: FakeSession,
    store: InMemoryRecordStore,
    job: ImportJob,
    content: bytes,
):
    return service.load_rows(
        db=session,  # type: ignore[arg-type]
        job_id=job.id,
        kind=job.type,
        text_stream=io.StringIO(content.decode("utf-8")),
        job_repository=InMemoryImportJobRepository(session),
        record_repository=InMemoryRecordRepository(session, store),  # type: ignore[arg-type]
    )


class TestLoadRows:
    def test_valid_rows_are_inserted(
        self,
        import_service: CSVImportService,
        session: FakeSession,
        record_store: InMemoryRecordStore,
    ) -> None:
        job = _start_job(session, kind=SchemaKind.TRAFFIC_REPORT, total_rows=3)
        content = build_csv(TRAFFIC_HEADERS, [traffic_row(day) for day in (1, 2, 3)])

        summary = _load(import_service, session, record_store, job, content)

        assert summary.processed_rows == 3
        assert summary.rows_inserted == 3
        assert summary.rows_rejected == 0
        assert record_store.count(SchemaKind.TRAFFIC_REPORT) == 3
        assert job.processed_rows == 3
        assert job.status == ImportJobStatus.PROCESSING

    def test_progress_is_committed_per_chunk(
        self,
        import_service_factory: Callable[..., CSVImportService],
        session: FakeSession,
        record_store: InMemoryRecordStore,
    ) -> None:
        service = import_service_factory(batch_size=2)
        job = _start_job(session, kind=SchemaKind.TRAFFIC_REPORT, total_rows=5)
        content = build_csv(TRAFFIC_HEADERS, [traffic_row(day) for day in range(1, 6)])

        summary = _load(service, session, record_store, job, content)

        assert summary.processed_rows == 5
        assert record_store.insert_calls == 3
        assert session.commits == 3

    def test_rejected_rows_are_counted_and_reported(
        self,
        import_service: CSVImportService,
        session: FakeSession,
        record_store: InMemoryRecordStore,
    ) -> None:
        bad_clicks = traffic_row(2, clicks="lots")
        bad_date = traffic_row(3)
        bad_date[0] = ""
        job = _start_job(session, kind=SchemaKind.TRAFFIC_REPORT, total_rows=3)
        content = build_csv(TRAFFIC_HEADERS, [traffic_row(1), bad_clicks, bad_date])

        summary = _load(import_service, session, record_store, job, content)

        assert summary.rows_inserted == 1
        assert summary.rows_rejected == 2
        assert summary.error_count == 2
        assert [(error.row_number, error.column) for error in summary.errors] == [
            (2, "All Clicks"),
            (3, "Date"),
        ]
        assert job.errors[0] == {
            "row": 2,
            "column": "All Clicks",
            "message": "Invalid numeric value for All Clicks",
            "value": "lots",
            "severity": "error",
        }
        assert job.rows_rejected == 2

    def test_values_too_large_for_storage_reject_only_their_row(
        self,
        import_service: CSVImportService,
        session: FakeSession,
        record_store: InMemoryRecordStore,
    ) -> None:
        long_country = traffic_row(2)
        long_country[TRAFFIC_HEADERS.index("Country")] = "United States of America"
        huge_clicks = traffic_row(3, clicks="99999999999999999999999")
        huge_rate = traffic_row(4)
        huge_rate[TRAFFIC_HEADERS.index("CR")] = "123456789012"
        job = _start_job(session, kind=SchemaKind.TRAFFIC_REPORT, total_rows=5)
        content = build_csv(
            TRAFFIC_HEADERS,
            [traffic_row(1), long_country, huge_clicks, huge_rate, traffic_row(5)],
        )

        summary = _load(import_service, session, record_store, job, content)

        assert summary.rows_inserted == 2
        assert summary.rows_rejected == 3
        assert [(error.row_number, error.column) for error in summary.errors] == [
            (2, "Country"),
            (3, "All Clicks"),
            (4, "CR"),
        ]
        assert record_store.insert_calls == 1
        assert job.status == ImportJobStatus.PROCESSING

    def test_duplicates_are_skipped(
        self,
        import_service: CSVImportService,
        session: FakeSession,
        record_store: InMemoryRecordStore,
    ) -> None:
        job = _start_job(session, kind=SchemaKind.PLAYERS_DATA, total_rows=3)
        content = build_csv(PLAYERS_HEADERS, [players_row("1"), players_row("1"), players_row("2")])

        summary = _load(import_service, session, record_store, job, content)

        assert summary.rows_inserted == 2
        assert summary.rows_skipped_duplicates == 1
        assert job.rows_skipped_duplicates == 1

    def test_stored_errors_are_capped_but_counted(
        self,
        import_service_factory: Callable[..., CSVImportService],
        session: FakeSession,
        record_store: InMemoryRecordStore,
    ) -> None:
        service = import_service_factory(max_stored_errors=2)
        rows = [traffic_row(day, clicks="x") for day in range(1, 5)]
        job = _start_job(session, kind=SchemaKind.TRAFFIC_REPORT, total_rows=4)

        summary = _load(service, session, record_store, job, build_csv(TRAFFIC_HEADERS, rows))

        assert summary.error_count == 4
        assert len(summary.errors) == 2
        assert len(job.errors) == 2
        assert job.error_count == 4

    def test_storage_failure_keeps_earlier_chunks(
        self,
        import_service_factory: Callable[..., CSVImportService],
        session: FakeSession,
        record_store: InMemoryRecordStore,
    ) -> None:
        service = import_service_factory(batch_size=2)
        record_store.fail_on_call = 2
        job = _start_job(session, kind=SchemaKind.TRAFFIC_REPORT, total_rows=4)
        content = build_csv(TRAFFIC_HEADERS, [traffic_row(day) for day in range(1, 5)])

        with pytest.raises(ImportPersistenceError):
            _load(service, session, record_store, job, content)

        assert record_store.count(SchemaKind.TRAFFIC_REPORT) == 2
        assert job.processed_rows == 2
        assert session.rollbacks == 1

    def test_commit_failure_is_a_persistence_error(
        self,
        import_service: CSVImportService,
        session: FakeSession,
        record_store: InMemoryRecordStore,
    ) -> None:
        job = _start_job(session, kind=SchemaKind.TRAFFIC_REPORT, total_rows=1)
        session.fail_next_commit = True

        with pytest.raises(ImportPersistenceError, match="commit progress"):
            _load(import_service, session, record_store, job, build_csv(TRAFFIC_HEADERS, [traffic_row()]))

    def test_missing_header_is_a_format_error(
        self,
        import_service: CSVImportService,
        session: FakeSession,
        record_store: InMemoryRecordStore,
    ) -> None:
        job = _start_job(session, kind=SchemaKind.TRAFFIC_REPORT, total_rows=0)

        with pytest.raises(CSVFormatError):
            _load(import_service, session, record_store, job, b"\n\n")

    def test_unknown_job_aborts_loading(
        self,
        import_service: CSVImportService,
        session: FakeSession,
        record_store: InMemoryRecordStore,
    ) -> None:
        with pytest.raises(RuntimeError, match="not found"):
            import_service.load_rows(
                db=session,  # type: ignore[arg-type]
                job_id=uuid.uuid4(),
                kind=SchemaKind.TRAFFIC_REPORT,
                text_stream=io.StringIO(build_csv(TRAFFIC_HEADERS, [traffic_row()]).decode("utf-8")),
                job_repository=InMemoryImportJobRepository(session),
                record_repository=InMemoryRecordRepository(session, record_store),  # type: ignore[arg-type]
            )
