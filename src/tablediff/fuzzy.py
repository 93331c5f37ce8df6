"""
Fuzzy matching for column differences.

A raw SQL-level difference can be relaxed per column in two stages:

1. Normalizers transform each side's value independently (e.g. trimming
   whitespace) before comparison.
2. Comparators decide whether two (normalized) values are equal.

Columns judged equal are removed from both diff maps. Full rows are never
touched, and the values left in the diff maps are the original raw values.

Only columns present in the source-side diff are eligible. A column that
differs only through the destination side stays reported even when a
comparator is configured for it.
"""

import logging
import math
import numbers
from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Normalizer(Protocol):
    """Transforms a single column value before comparison."""

    def __call__(self, value: Any) -> Any: ...


class Comparator(Protocol):
    """Returns True when two column values should be treated as equal."""

    def __call__(self, a: Any, b: Any) -> bool: ...


def apply_normalizers(value: Any, normalizers: Sequence[Normalizer]) -> Any:
    """Pass a value through a chain of normalizers, in order."""
    for normalizer in normalizers:
        value = normalizer(value)
    return value


def fuzzy_match(
    source_diff: Mapping[str, Any],
    dest_diff: Mapping[str, Any],
    normalizers: Mapping[str, Sequence[Normalizer]],
    comparators: Mapping[str, Comparator],
) -> tuple[dict[str, Any], dict[str, Any]]:
    """
    Remove columns that are equal under relaxed semantics

    Args:
        source_diff: Source-side diff map (column -> raw value)
        dest_diff: Destination-side diff map (column -> raw value)
        normalizers: Column -> ordered normalizer chain
        comparators: Column -> equality predicate

    Returns:
        Tuple of (source_diff, dest_diff) restricted to the columns that still
        differ. Values are the original raw values.
    """
    source_work = dict(source_diff)
    dest_work = dict(dest_diff)

    # Defaults for normalized-but-uncompared columns live only for this call
    active = dict(comparators)

    for column, chain in normalizers.items():
        if column in source_work:
            source_work[column] = apply_normalizers(source_work[column], chain)
            dest_work[column] = apply_normalizers(dest_work.get(column), chain)
            if column not in active:
                active[column] = strict_equals

    for column, comparator in active.items():
        if column in source_work and comparator(source_work[column], dest_work.get(column)):
            logger.debug(f"Column {column!r} matched under fuzzy comparison")
            del source_work[column]
            dest_work.pop(column, None)

    return (
        {k: v for k, v in source_diff.items() if k in source_work},
        {k: v for k, v in dest_diff.items() if k in dest_work},
    )


# Comparators

def strict_equals(a: Any, b: Any) -> bool:
    """Exact equality, with matching types."""
    return type(a) is type(b) and a == b


def case_insensitive_equals(a: Any, b: Any) -> bool:
    """Compare strings ignoring case; other values compare strictly."""
    if isinstance(a, str) and isinstance(b, str):
        return a.casefold() == b.casefold()
    return strict_equals(a, b)


def numeric_tolerance(tolerance: float = 1e-9) -> Comparator:
    """
    Build a comparator accepting numbers within an absolute tolerance

    Non-numeric values (including None) fall back to strict equality.

    Args:
        tolerance: Maximum absolute difference still considered equal

    Returns:
        Comparator function
    """
    if tolerance < 0:
        raise ValueError(f"Tolerance cannot be negative: {tolerance}")

    def compare(a: Any, b: Any) -> bool:
        if _is_number(a) and _is_number(b):
            return math.isclose(float(a), float(b), rel_tol=0.0, abs_tol=tolerance)
        return strict_equals(a, b)

    compare.__name__ = f"numeric_tolerance_{tolerance}"
    return compare


def _is_number(value: Any) -> bool:
    return isinstance(value, (numbers.Real, Decimal)) and not isinstance(value, bool)


# Normalizers

def strip(value: Any) -> Any:
    """Trim surrounding whitespace from strings."""
    return value.strip() if isinstance(value, str) else value


def casefold(value: Any) -> Any:
    return value.casefold() if isinstance(value, str) else value


def collapse_whitespace(value: Any) -> Any:
    """Trim strings and squeeze internal runs of whitespace to one space."""
    return " ".join(value.split()) if isinstance(value, str) else value


def none_as_empty(value: Any) -> Any:
    """Treat NULL as an empty string."""
    return "" if value is None else value
