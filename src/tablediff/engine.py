"""
Table diff engine.

TableDiff is the fluent configuration surface. Each terminal call (count,
each, records, output) builds a fresh frozen ComparisonConfig, synthesizes the
SQL, runs it once and streams the results; nothing is cached between calls.

Example:
    >>> diff = (
    ...     TableDiff(connection)
    ...     .compare(["name", "price"])
    ...     .from_tables("products_backup", "products")
    ...     .where("vendor", "Acme")
    ...     .using_normalizers({"name": str.strip})
    ... )
    >>> diff.count()
    >>> diff.output()
"""

import logging
import sys
import time
from collections.abc import Callable, Iterable, Iterator, Mapping
from contextlib import closing, contextmanager
from typing import Any

from opentelemetry import trace

from utils.metrics import DiffMetrics, get_diff_metrics
from utils.tracing import add_span_event, trace_operation

from .config import DEFAULT_PRIMARY_KEY, ComparisonConfig, TableRef, make_config
from .database import Database, as_database
from .decoder import DiffRecord, decode_row
from .dialects import Dialect
from .exceptions import ConfigurationError
from .formatters import Formatter, TableFormatter
from .fuzzy import Comparator, Normalizer
from .sql import DiffQuery, build_count_query, build_diff_query

logger = logging.getLogger(__name__)

Callback = Callable[[Any, dict | None, dict | None, dict, dict], Any]
Handler = Callable[[str], Any]

_UNSET = object()


def _print_handler(text: str) -> None:
    sys.stdout.write(text)


class TableDiff:
    """Computes the row-level difference between two tables."""

    def __init__(
        self,
        connection: Any = None,
        dialect: Dialect | None = None,
        metrics: DiffMetrics | None = None,
    ):
        """
        Initialize a table diff

        Args:
            connection: DB-API connection or Database implementation; can also
                be set later with connect()
            dialect: SQL dialect override (detected from the connection otherwise)
            metrics: Metrics sink (default: process-wide metrics on the global registry)
        """
        self._database: Database | None = None
        self._source: TableRef | None = None
        self._dest: TableRef | None = None
        self._columns: list[str] | None = None
        self._primary_key = DEFAULT_PRIMARY_KEY
        self._constraints: dict[str, Any] = {}
        self._max_results = 0
        self._formatter: Formatter | None = None
        self._normalizers: dict[str, Any] = {}
        self._comparators: dict[str, Comparator] = {}
        self._metrics = metrics

        if connection is not None:
            self.connect(connection, dialect)

    # Configuration

    def connect(self, connection: Any, dialect: Dialect | None = None) -> "TableDiff":
        """Set the connection used to execute the query."""
        self._database = as_database(connection, dialect)
        return self

    def compare(self, columns: Iterable[str]) -> "TableDiff":
        """Set the columns to compare (primary key excluded)."""
        self._columns = list(columns)
        return self

    def from_tables(
        self,
        source: str,
        dest: str,
        database: str | None = None,
        dest_database: Any = _UNSET,
    ) -> "TableDiff":
        """
        Set the source and destination tables

        Args:
            source: Source table name
            dest: Destination table name
            database: Database (or schema) of the source table, also used for
                the destination unless dest_database is given
            dest_database: Database (or schema) of the destination table
        """
        if dest_database is _UNSET:
            dest_database = database
        self._source = TableRef(source, database)
        self._dest = TableRef(dest, dest_database)
        return self

    def where(self, column: str, value: Any) -> "TableDiff":
        """
        Add a constraint that the source or destination row must satisfy

        Setting the same column again replaces its value.
        """
        self._constraints[column] = value
        return self

    def primary_key(self, column: str) -> "TableDiff":
        """Set the primary key shared by both tables (default: id)."""
        self._primary_key = column
        return self

    def max(self, max_results: int) -> "TableDiff":
        """Stop after this many differences (0 = unlimited)."""
        self._max_results = max_results
        return self

    def format(self, formatter: Formatter) -> "TableDiff":
        """Set the formatter used by output()."""
        self._formatter = formatter
        return self

    def using_normalizers(
        self, normalizers: Mapping[str, Normalizer | Iterable[Normalizer]]
    ) -> "TableDiff":
        """Set column -> normalizer (or chain of normalizers) used for fuzzy matching."""
        self._normalizers = dict(normalizers)
        return self

    def using_comparators(self, comparators: Mapping[str, Comparator]) -> "TableDiff":
        """Set column -> equality predicate used for fuzzy matching."""
        self._comparators = dict(comparators)
        return self

    def build(self) -> ComparisonConfig:
        """
        Validate the configuration and freeze it

        Raises:
            ConfigurationError: If tables or columns are missing or invalid
        """
        return make_config(
            source=self._source,
            dest=self._dest,
            columns=self._columns,
            primary_key=self._primary_key,
            constraints=self._constraints,
            max_results=self._max_results,
            normalizers=self._normalizers,
            comparators=self._comparators,
        )

    # Execution

    def sql(self) -> DiffQuery:
        """Return the diff statement that each() would run."""
        return build_diff_query(self.build(), self._require_database().dialect)

    def count(self) -> int:
        """
        Count the rows the diff statement returns

        Fuzzy matching and the max_results cap are not applied, so with
        normalizers or comparators configured this can exceed what each()
        reports.

        Returns:
            Number of qualifying rows
        """
        config = self.build()
        database = self._require_database()
        query = build_count_query(config, database.dialect)

        with self._execution("count", config) as span:
            total = int(database.scalar(query.sql, query.params) or 0)
            span.set_attribute("tablediff.count", total)

        logger.info(f"Counted {total} differing row(s): {config.source} -> {config.dest}")
        return total

    def each(self, callback: Callback) -> int:
        """
        Call ``callback(id, source_diff, dest_diff, source_row, dest_row)`` per difference

        Iteration stops when the callback returns False or when max_results
        differences have been reported.

        Returns:
            Number of callback invocations
        """
        config = self.build()
        database = self._require_database()
        metrics = self._get_metrics()

        count = 0
        with self._execution("each", config) as span:
            with closing(self._iter_records(database, config, metrics)) as records:
                for record in records:
                    count += 1
                    if callback(*record.as_args()) is False:
                        logger.debug(f"Callback stopped iteration at id={record.id!r}")
                        add_span_event("tablediff.stopped", reason="callback", id=record.id)
                        break
                    if count == config.max_results:
                        logger.debug(f"Reached max results ({config.max_results})")
                        add_span_event("tablediff.stopped", reason="max_results", id=record.id)
                        break
            span.set_attribute("tablediff.differences", count)

        logger.info(f"Reported {count} difference(s): {config.source} -> {config.dest}")
        return count

    def records(self) -> Iterator[DiffRecord]:
        """
        Yield DiffRecords, honoring max_results

        The query runs when iteration starts; closing the iterator early
        closes the underlying cursor.
        """
        config = self.build()
        database = self._require_database()
        metrics = self._get_metrics()

        count = 0
        # Detached span; control returns to the consumer on every yield
        with self._execution("records", config, current=False):
            with closing(self._iter_records(database, config, metrics)) as records:
                for record in records:
                    count += 1
                    yield record
                    if count == config.max_results:
                        break

    def output(self, handler: Handler | None = None) -> int:
        """
        Format every difference and pass the text to ``handler``

        Args:
            handler: Receives formatted strings (default: write to stdout)

        Returns:
            Number of differences reported
        """
        if handler is None:
            handler = _print_handler

        formatter = self._get_formatter()
        # Validate before the header goes out
        config = self.build()
        build_diff_query(config, self._require_database().dialect)
        source_table = config.source.name
        dest_table = config.dest.name

        header = formatter.header(source_table, dest_table)
        if header:
            handler(header)

        def process(id, source_diff, dest_diff, source_row, dest_row):
            handler(
                formatter.format(
                    id,
                    source_diff,
                    dest_diff,
                    source_row,
                    dest_row,
                    source_table,
                    dest_table,
                )
            )

        return self.each(process)

    # Internals

    def _iter_records(
        self,
        database: Database,
        config: ComparisonConfig,
        metrics: DiffMetrics,
    ) -> Iterator[DiffRecord]:
        """Stream the diff query and yield the records that survive decoding."""
        query = build_diff_query(config, database.dialect)
        logger.debug(f"Executing diff query: {query.sql} (params: {len(query.params)})")

        source_label = str(config.source)
        dest_label = str(config.dest)

        rows = database.stream(query.sql, query.params)
        try:
            for row in rows:
                metrics.record_scanned(source_label, dest_label)
                record = decode_row(row, query, config)
                if record is None:
                    metrics.record_suppressed(source_label, dest_label)
                    continue
                metrics.record_difference(source_label, dest_label, record.kind)
                yield record
        finally:
            # Plain iterators have nothing to release
            close = getattr(rows, "close", None)
            if close is not None:
                close()

    @contextmanager
    def _execution(self, operation: str, config: ComparisonConfig, current: bool = True):
        """Span, timing, metrics and error logging around one execution."""
        metrics = self._get_metrics()
        source_label = str(config.source)
        dest_label = str(config.dest)
        start = time.perf_counter()
        success = False

        logger.debug(f"Starting {operation}: {source_label} -> {dest_label}")
        try:
            with trace_operation(
                f"tablediff.{operation}",
                kind=trace.SpanKind.CLIENT,
                current=current,
                source_table=source_label,
                dest_table=dest_label,
                columns=",".join(config.columns),
                primary_key=config.primary_key,
            ) as span:
                yield span
            success = True
        except GeneratorExit:
            # records() closed early by its consumer
            success = True
            raise
        except Exception:
            logger.error(
                f"Diff {operation} failed: {source_label} -> {dest_label}",
                exc_info=True,
            )
            raise
        finally:
            metrics.record_run(
                operation,
                source_label,
                dest_label,
                success=success,
                duration=time.perf_counter() - start,
            )

    def _require_database(self) -> Database:
        if self._database is None:
            raise ConfigurationError("No database connection set; call connect() first")
        return self._database

    def _get_formatter(self) -> Formatter:
        if self._formatter is None:
            self._formatter = TableFormatter()
        return self._formatter

    def _get_metrics(self) -> DiffMetrics:
        if self._metrics is None:
            self._metrics = get_diff_metrics()
        return self._metrics
