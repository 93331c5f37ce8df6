"""
Comparison configuration.

ComparisonConfig is the frozen value the execution path consumes. It is built
and validated by ``TableDiff.build()`` (see :mod:`tablediff.engine`) or
directly through :func:`make_config`.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .exceptions import ConfigurationError
from .fuzzy import Comparator, Normalizer

DEFAULT_PRIMARY_KEY = "id"


@dataclass(frozen=True)
class TableRef:
    """A table name with its optional owning database (or schema)."""

    name: str
    database: str | None = None

    @property
    def key(self) -> tuple[str | None, str]:
        return (self.database, self.name)

    def __str__(self) -> str:
        return f"{self.database}.{self.name}" if self.database else self.name


@dataclass(frozen=True)
class ComparisonConfig:
    """Immutable set of parameters for one table comparison."""

    source: TableRef
    dest: TableRef
    columns: tuple[str, ...]
    primary_key: str = DEFAULT_PRIMARY_KEY
    constraints: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    max_results: int = 0
    normalizers: Mapping[str, tuple[Normalizer, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    comparators: Mapping[str, Comparator] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def fuzzy(self) -> bool:
        """Whether any normalizer or comparator is configured."""
        return bool(self.normalizers) or bool(self.comparators)


def normalize_chains(
    normalizers: Mapping[str, Normalizer | Iterable[Normalizer]],
) -> dict[str, tuple[Normalizer, ...]]:
    """
    Turn a normalizer mapping into column -> ordered chain

    A single callable is accepted in place of a chain.
    """
    chains = {}
    for column, chain in normalizers.items():
        if callable(chain):
            chains[column] = (chain,)
        else:
            chains[column] = tuple(chain)
        for fn in chains[column]:
            if not callable(fn):
                raise ConfigurationError(f"Normalizer for column {column!r} is not callable: {fn!r}")
    return chains


def make_config(
    source: TableRef | None,
    dest: TableRef | None,
    columns: Iterable[str] | None,
    primary_key: str = DEFAULT_PRIMARY_KEY,
    constraints: Mapping[str, Any] | None = None,
    max_results: int = 0,
    normalizers: Mapping[str, Normalizer | Iterable[Normalizer]] | None = None,
    comparators: Mapping[str, Comparator] | None = None,
) -> ComparisonConfig:
    """
    Validate the parameters and build a ComparisonConfig

    Args:
        source: Source table
        dest: Destination table
        columns: Columns to compare (primary key excluded)
        primary_key: Primary key column shared by both tables
        constraints: Column -> value filters, satisfied by either side
        max_results: Maximum number of diffs to report (0 = unlimited)
        normalizers: Column -> normalizer or chain of normalizers
        comparators: Column -> equality predicate

    Returns:
        Frozen ComparisonConfig

    Raises:
        ConfigurationError: If tables or columns are missing, or the values
            are inconsistent
    """
    if source is None or dest is None:
        raise ConfigurationError(
            "Source and destination tables must be set before executing a comparison"
        )
    if columns is None:
        raise ConfigurationError("Columns to compare must be set before executing a comparison")

    columns = tuple(columns)
    if not columns:
        raise ConfigurationError("At least one column must be compared")
    if not primary_key:
        raise ConfigurationError("Primary key column cannot be empty")
    if primary_key in columns:
        raise ConfigurationError(
            f"Primary key {primary_key!r} cannot be one of the compared columns"
        )
    duplicates = sorted({c for c in columns if columns.count(c) > 1})
    if duplicates:
        raise ConfigurationError(f"Duplicate compared columns: {', '.join(duplicates)}")
    if source.key == dest.key:
        raise ConfigurationError(f"Cannot compare table {source} with itself")
    if isinstance(max_results, bool) or not isinstance(max_results, int) or max_results < 0:
        raise ConfigurationError(f"Invalid max_results: {max_results!r}. Must be an integer >= 0.")

    comparators = dict(comparators or {})
    for column, comparator in comparators.items():
        if not callable(comparator):
            raise ConfigurationError(f"Comparator for column {column!r} is not callable: {comparator!r}")

    return ComparisonConfig(
        source=source,
        dest=dest,
        columns=columns,
        primary_key=primary_key,
        constraints=MappingProxyType(dict(constraints or {})),
        max_results=max_results,
        normalizers=MappingProxyType(normalize_chains(normalizers or {})),
        comparators=MappingProxyType(comparators),
    )

