"""
Property-based tests for table diffing.

Tests properties related to:
- Directional diffs and fuzzy matching
- Parameter binding of synthesized SQL
- Agreement of SQLite results with a Python model of the two tables
"""

import sqlite3

import pytest
from hypothesis import given, settings, strategies as st
from prometheus_client import CollectorRegistry

from tablediff import TableDiff, TableRef, make_config
from tablediff.decoder import directional_diff
from tablediff.dialects import SQLITE
from tablediff.fuzzy import fuzzy_match, strip
from tablediff.sql import build_diff_query
from utils.metrics import DiffMetrics

pytestmark = pytest.mark.property

COLUMNS = ("a", "b", "c")

column_value = st.one_of(st.integers(min_value=-3, max_value=3), st.sampled_from(["x", "y", " x"]))
row_values = st.tuples(*(column_value for _ in COLUMNS))
table = st.dictionaries(st.integers(min_value=1, max_value=30), row_values, max_size=15)
diff_map = st.dictionaries(st.sampled_from(COLUMNS), column_value, max_size=3)


def _load(conn, name, rows):
    conn.execute(f'CREATE TABLE "{name}" ("id" INTEGER PRIMARY KEY, "a", "b", "c")')
    conn.executemany(f'INSERT INTO "{name}" VALUES (?, ?, ?, ?)', [(k, *v) for k, v in rows.items()])


def _run(source, dest, max_results=0):
    conn = sqlite3.connect(":memory:")
    try:
        _load(conn, "src", source)
        _load(conn, "dst", dest)
        diff = (
            TableDiff(conn, metrics=DiffMetrics(registry=CollectorRegistry()))
            .compare(COLUMNS)
            .from_tables("src", "dst")
            .max(max_results)
        )
        seen = []
        diff.each(lambda id, *rest: seen.append(id))
        return seen, diff.count()
    finally:
        conn.close()


# Property: a directional diff only holds entries of its first argument
@given(a=diff_map, b=diff_map)
def test_directional_diff_subset(a, b):
    result = directional_diff(a, b)

    assert result.items() <= a.items()
    for key in result:
        assert key not in b or b[key] != a[key]


# Property: two rows with the same columns differ iff either diff is non-empty
@given(a=row_values, b=row_values)
def test_directional_diff_symmetric_emptiness(a, b):
    left = dict(zip(COLUMNS, a))
    right = dict(zip(COLUMNS, b))

    assert (directional_diff(left, right) == {}) == (left == right)
    assert set(directional_diff(left, right)) == set(directional_diff(right, left))


# Property: fuzzy matching only removes columns, and is stable when repeated
@given(source=diff_map, dest=diff_map)
def test_fuzzy_match_only_removes(source, dest):
    normalizers = {"a": (strip,)}
    comparators = {"b": lambda x, y: True}

    once = fuzzy_match(source, dest, normalizers, comparators)
    twice = fuzzy_match(*once, normalizers, comparators)

    assert once[0].items() <= source.items()
    assert once[1].items() <= dest.items()
    assert twice == once


# Property: every constraint value is bound four times
@given(constraints=st.dictionaries(st.sampled_from(["v", "w", "z"]), st.integers(), max_size=3))
def test_constraint_params_bound_four_times(constraints):
    config = make_config(TableRef("src"), TableRef("dst"), COLUMNS, constraints=constraints)
    query = build_diff_query(config, SQLITE)

    assert len(query.params) == 4 * len(constraints)
    assert query.sql.count("?") == len(query.params)


# Property: reported ids match a Python model of the two tables
@given(source=table, dest=table)
@settings(max_examples=50, deadline=None)
def test_sqlite_matches_model(source, dest):
    expected = (
        (source.keys() ^ dest.keys())
        | {k for k in source.keys() & dest.keys() if source[k] != dest[k]}
    )

    seen, total = _run(source, dest)

    assert len(seen) == len(set(seen))
    assert set(seen) == expected
    assert total == len(expected)


# Property: max_results caps the number of reported rows, never the count
@given(source=table, dest=table, max_results=st.integers(min_value=1, max_value=10))
@settings(max_examples=30, deadline=None)
def test_max_results_caps_each(source, dest, max_results):
    seen, total = _run(source, dest, max_results)

    assert len(seen) == min(max_results, total)
