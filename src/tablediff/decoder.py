"""
Decoding of diff query rows into DiffRecords.

Each result row carries the id column plus, for both sides, the primary key
and every compared column under its aliased name. Routing uses the
projection list produced with the query, so no alias string is parsed here.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .config import ComparisonConfig
from .exceptions import DataShapeError
from .fuzzy import fuzzy_match
from .sql import DEST, SOURCE, DiffQuery


@dataclass
class DiffRecord:
    """A row that differs between source and destination."""

    id: Any
    source_exists: bool
    dest_exists: bool
    source_diff: dict[str, Any] | None
    dest_diff: dict[str, Any] | None
    source_row: dict[str, Any] = field(default_factory=dict)
    dest_row: dict[str, Any] = field(default_factory=dict)

    @property
    def kind(self) -> str:
        """missing_source, missing_dest or modified."""
        if not self.source_exists:
            return "missing_source"
        if not self.dest_exists:
            return "missing_dest"
        return "modified"

    def as_args(self) -> tuple[Any, dict | None, dict | None, dict, dict]:
        """Positional arguments passed to ``each()`` callbacks."""
        return (self.id, self.source_diff, self.dest_diff, self.source_row, self.dest_row)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "kind": self.kind,
            "source_exists": self.source_exists,
            "dest_exists": self.dest_exists,
            "source_diff": self.source_diff,
            "dest_diff": self.dest_diff,
            "source_row": self.source_row,
            "dest_row": self.dest_row,
        }


def directional_diff(a: Mapping[str, Any], b: Mapping[str, Any]) -> dict[str, Any]:
    """
    Entries of ``a`` whose key is missing from ``b`` or holds a different value

    Order follows ``a``. Applied in both directions this yields a two-way diff.
    """
    return {k: v for k, v in a.items() if k not in b or b[k] != v}


def decode_row(
    row: Mapping[str, Any],
    query: DiffQuery,
    config: ComparisonConfig,
) -> DiffRecord | None:
    """
    Build a DiffRecord from one result row

    Args:
        row: Column name -> value mapping from the diff query
        query: The query that produced the row
        config: Active comparison configuration

    Returns:
        DiffRecord, or None when fuzzy matching judged every differing
        column equal

    Raises:
        DataShapeError: If the row lacks a projected column
    """
    record_id = _read(row, query.id_alias)

    exists = {SOURCE: False, DEST: False}
    full_rows: dict[str, dict[str, Any]] = {SOURCE: {}, DEST: {}}

    for projection in query.projections:
        value = _read(row, projection.alias)
        if projection.column == config.primary_key:
            exists[projection.side] = bool(value)
        else:
            full_rows[projection.side][projection.column] = value

    # A missing side contributes no values, only NULL padding from the join
    source_row = full_rows[SOURCE] if exists[SOURCE] else {}
    dest_row = full_rows[DEST] if exists[DEST] else {}
    source_diff = directional_diff(source_row, dest_row) if exists[SOURCE] else None
    dest_diff = directional_diff(dest_row, source_row) if exists[DEST] else None

    if source_diff is not None and dest_diff is not None and config.fuzzy:
        source_diff, dest_diff = fuzzy_match(
            source_diff, dest_diff, config.normalizers, config.comparators
        )
        if not source_diff and not dest_diff:
            return None

    return DiffRecord(
        id=record_id,
        source_exists=exists[SOURCE],
        dest_exists=exists[DEST],
        source_diff=source_diff,
        dest_diff=dest_diff,
        source_row=source_row,
        dest_row=dest_row,
    )


def _read(row: Mapping[str, Any], alias: str) -> Any:
    try:
        return row[alias]
    except KeyError:
        raise DataShapeError(alias, list(row)) from None
