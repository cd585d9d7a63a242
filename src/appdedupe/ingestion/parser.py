"""
Clusters CSV parsing.

Turns an uploaded byte buffer into an in-memory replacement plan. Nothing in
this module touches the database, so a malformed upload is rejected before
the existing clusters are wiped.

Accepted header vocabularies (cells are trimmed and lower-cased first):

    canonical name | standardized_app   -> canonical name of the row
    variants       | similar_app_names  -> zero or more variant names

The variants cell is either a bracketed list (``['A', 'B']``) or a plain
comma-separated string (``A, B``).
"""

from __future__ import annotations

import csv
import io
import json
import logging
from dataclasses import dataclass, field

from appdedupe.errors import CsvFormatError

logger = logging.getLogger(__name__)

CANONICAL_COLUMNS = ("canonical name", "standardized_app")
VARIANT_COLUMNS = ("variants", "similar_app_names")


@dataclass
class PlannedCluster:
    """One cluster to create, with its variant names in file order."""

    canonical_name: str
    variants: list[str] = field(default_factory=list)

    @property
    def app_names(self) -> list[str]:
        """Canonical name first, then each variant."""
        return [self.canonical_name, *self.variants]


@dataclass
class IngestionPlan:
    """The full replacement set derived from one upload."""

    clusters: list[PlannedCluster] = field(default_factory=list)
    skipped_rows: list[int] = field(default_factory=list)

    @property
    def app_count(self) -> int:
        return sum(len(c.app_names) for c in self.clusters)


def normalize_header(cell: str) -> str:
    return cell.strip().lower()


def parse_variants(raw: str | None) -> list[str]:
    """
    Parse a variants cell.

    A bracketed value has its single quotes rewritten to double quotes and is
    read as a JSON array. If that fails, the bracket content becomes a single
    variant. Anything else is split on commas.
    """
    trimmed = (raw or "").strip()
    if not trimmed:
        return []

    if trimmed.startswith("[") and trimmed.endswith("]"):
        try:
            parsed = json.loads(trimmed.replace("'", '"'))
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list) and all(isinstance(v, str) for v in parsed):
            return [v.strip() for v in parsed if v.strip()]
        logger.warning("Could not parse variants list %r, keeping it as one name", trimmed)
        inner = trimmed[1:-1].strip()
        return [inner] if inner else []

    return [v.strip() for v in trimmed.split(",") if v.strip()]


def _first_present(row: dict[str, str], columns: tuple[str, ...]) -> str:
    for column in columns:
        value = (row.get(column) or "").strip()
        if value:
            return value
    return ""


def _decode(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        msg = "Invalid CSV format"
        raise CsvFormatError(msg, errors=[{"row": None, "message": f"File is not valid UTF-8: {e}"}]) from e


def parse_csv(data: bytes) -> IngestionPlan:
    """
    Parse a clusters CSV into an ``IngestionPlan``.

    Rows sharing a canonical name are merged into one cluster. Rows with no
    canonical name are skipped and reported by 1-based data row number.

    Raises:
        CsvFormatError: On undecodable bytes, CSV syntax errors, a missing
            header, or a row whose cell count differs from the header's.
    """
    text = _decode(data)
    reader = csv.reader(io.StringIO(text, newline=""), strict=True)

    try:
        rows = [row for row in reader if row]
    except csv.Error as e:
        msg = "Invalid CSV format"
        raise CsvFormatError(msg, errors=[{"row": reader.line_num, "message": str(e)}]) from e

    if not rows:
        msg = "Invalid CSV format"
        raise CsvFormatError(msg, errors=[{"row": None, "message": "CSV has no header row"}])

    header = [normalize_header(cell) for cell in rows[0]]
    if not any(column in header for column in CANONICAL_COLUMNS):
        msg = "Invalid CSV format"
        raise CsvFormatError(
            msg,
            errors=[{"row": None, "message": f"Header needs one of: {', '.join(CANONICAL_COLUMNS)}"}],
        )

    problems = [
        {
            "row": number,
            "message": f"Invalid record length: expected {len(header)} columns, got {len(cells)}",
        }
        for number, cells in enumerate(rows[1:], start=1)
        if len(cells) != len(header)
    ]
    if problems:
        msg = "Invalid CSV format"
        raise CsvFormatError(msg, errors=problems)

    plan = IngestionPlan()
    by_name: dict[str, PlannedCluster] = {}
    for number, cells in enumerate(rows[1:], start=1):
        record = dict(zip(header, cells))
        canonical_name = _first_present(record, CANONICAL_COLUMNS)
        if not canonical_name:
            logger.warning("Row %d missing canonical name, skipping", number)
            plan.skipped_rows.append(number)
            continue

        variants = parse_variants(_first_present(record, VARIANT_COLUMNS))
        planned = by_name.get(canonical_name)
        if planned is None:
            planned = PlannedCluster(canonical_name=canonical_name)
            by_name[canonical_name] = planned
            plan.clusters.append(planned)
        planned.variants.extend(variants)

    return plan
