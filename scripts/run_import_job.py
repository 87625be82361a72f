"""
Upload and/or process a CSV import job from the CLI.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import uuid
from dataclasses import asdict
from pathlib import Path

from app.services.csv_import_service import CSVSchemaDetectionError, CSVUploadError
from app.services.import_orchestrator_service import (
    ImportJobNotFoundError,
    ImportOrchestratorService,
    InlineTaskExecutor,
)
from db.models.import_job import ImportJobStateError
from db.session import SessionLocal, session_scope


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run an affiliate CSV import.")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument(
        "--file",
        dest="file",
        type=Path,
        default=None,
        help="CSV file to upload and process.",
    )
    target.add_argument(
        "--job-id",
        dest="job_id",
        type=uuid.UUID,
        default=None,
        help="Process an already uploaded job.",
    )
    parser.add_argument(
        "--user-id",
        dest="user_id",
        default="cli",
        help="Owning user reference recorded on new jobs.",
    )
    parser.add_argument(
        "--no-process",
        dest="process",
        action="store_false",
        help="Only upload and register the job.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    args = _build_parser().parse_args(argv)

    content: bytes | None = None
    if args.file is not None:
        try:
            content = args.file.read_bytes()
        except OSError as exc:
            print(f"Cannot read {args.file}: {exc}", file=sys.stderr)
            return 2

    orchestrator = ImportOrchestratorService(session_factory=SessionLocal)
    with session_scope() as db:
        job_id = args.job_id
        if content is not None:
            try:
                receipt = orchestrator.receive_content(
                    db=db,
                    content=content,
                    filename=args.file.name,
                    user_id=args.user_id,
                )
            except CSVSchemaDetectionError as exc:
                print(json.dumps(exc.to_dict(), indent=2), file=sys.stderr)
                return 2
            except CSVUploadError as exc:
                print(str(exc), file=sys.stderr)
                return 2
            job_id = receipt.job_id

        if args.process or args.job_id is not None:
            try:
                orchestrator.trigger_processing(db=db, executor=InlineTaskExecutor(), job_id=job_id)
            except (ImportJobNotFoundError, ImportJobStateError) as exc:
                print(str(exc), file=sys.stderr)
                return 1

        db.expire_all()
        view = orchestrator.get_job_status(db=db, job_id=job_id)

    print(json.dumps(asdict(view), indent=2, default=str))
    return 0 if view.status != "failed" else 1


if __name__ == "__main__":
    raise SystemExit(main())
