"""
app/mappers/schema_detector.py

Classifies a CSV header row as one of the two supported export formats.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from app.domain.imports import (
    DetectionOutcome,
    DetectionResult,
    SchemaAmbiguous,
    SchemaMatched,
    SchemaNoMatch,
)
from app.mappers.field_mapper import normalize_header
from app.mappers.schema_definitions import SCHEMA_DEFINITIONS, RequiredColumn, SchemaDefinition


@dataclass(frozen=True)
class SchemaScore:
    """
    How well one header row fits one schema definition.
    """

    kind: str
    missing: tuple[str, ...]
    expected_count: int
    count_matches: bool

    @property
    def is_match(self) -> bool:
        return not self.missing and self.count_matches


class SchemaDetector:
    """
    Strict detector: all required columns present AND exact column count.
    """

    def __init__(self, definitions: Sequence[SchemaDefinition] | None = None) -> None:
        self._definitions = tuple(definitions or SCHEMA_DEFINITIONS)
        if len(self._definitions) != 2:
            raise ValueError("SchemaDetector expects exactly two schema definitions.")

    def scoring(self, headers: Sequence[str]) -> list[SchemaScore]:
        """
        Score the header row against every schema definition.
        """

        normalized = {normalize_header(header) for header in headers}
        column_count = len(headers)
        return [
            SchemaScore(
                kind=definition.kind,
                missing=tuple(
                    column.field
                    for column in definition.required_columns
                    if not self._column_present(column, normalized)
                ),
                expected_count=definition.expected_column_count,
                count_matches=column_count == definition.expected_column_count,
            )
            for definition in self._definitions
        ]

    def detect(self, headers: Sequence[str]) -> DetectionResult:
        """
        Detect the schema kind of a parsed header row.
        """

        header_tuple = tuple(headers)
        column_count = len(header_tuple)
        scores = self.scoring(header_tuple)

        matches = [score for score in scores if score.is_match]
        if len(matches) == 1:
            return DetectionResult(
                outcome=SchemaMatched(matches[0].kind),
                column_count=column_count,
                headers=header_tuple,
                diagnostics=[],
            )

        diagnostics: list[str] = []
        for score in scores:
            if score.count_matches and score.missing:
                diagnostics.append(
                    f"Matches {score.kind} column count ({column_count}) "
                    f"but missing: {', '.join(score.missing)}"
                )

        outcome: DetectionOutcome | None = None
        first, second = scores
        if first.missing and second.missing:
            if len(first.missing) != len(second.missing):
                closest = first if len(first.missing) < len(second.missing) else second
                diagnostics.append(
                    f"Closest match: {closest.kind} "
                    f"(missing {len(closest.missing)} columns: {', '.join(closest.missing)})"
                )
            else:
                diagnostics.append(
                    "CSV doesn't clearly match any format. "
                    f"Missing for {first.kind}: {', '.join(first.missing)} | "
                    f"Missing for {second.kind}: {', '.join(second.missing)}"
                )
                outcome = SchemaAmbiguous(candidates=(first.kind, second.kind))

        if not any(score.count_matches for score in scores):
            expected = " or ".join(f"{score.expected_count} ({score.kind})" for score in scores)
            diagnostics.append(f"Unexpected column count: {column_count}. Expected {expected}")

        if outcome is None:
            outcome = SchemaNoMatch(reasons=tuple(diagnostics))

        return DetectionResult(
            outcome=outcome,
            column_count=column_count,
            headers=header_tuple,
            diagnostics=diagnostics,
        )

    @staticmethod
    def _column_present(column: RequiredColumn, normalized_headers: set[str]) -> bool:
        return any(normalize_header(variant) in normalized_headers for variant in column.variants)
