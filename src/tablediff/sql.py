"""
SQL synthesis for table diffs.

One statement returns every row that needs inspection: the union of a
source-anchored and a destination-anchored LEFT JOIN, each filtered to rows
where a compared column differs or the counterpart row is missing.

Every compared column (and the primary key) is projected for both sides under
the alias ``<token>_<column>``. The side tokens come from the AliasMap and do
not depend on which side anchors the SELECT, so both halves of the UNION
produce identical column names.
"""

from dataclasses import dataclass
from typing import Any

from .config import ComparisonConfig, TableRef
from .dialects import Dialect
from .exceptions import ConfigurationError

SOURCE = "source"
DEST = "dest"

ALIAS_SEPARATOR = "_"


class AliasMap:
    """
    Maps (database, table) pairs to side tokens.

    The source pair always resolves to ``s`` and the destination pair to
    ``d``, so tables sharing a name in different databases stay distinct.
    """

    TOKENS = {SOURCE: "s", DEST: "d"}

    def __init__(self, source: TableRef, dest: TableRef):
        if source.key == dest.key:
            raise ConfigurationError(f"Cannot compare table {source} with itself")
        self._tables = {SOURCE: source, DEST: dest}
        self._tokens = {
            source.key: self.TOKENS[SOURCE],
            dest.key: self.TOKENS[DEST],
        }

    def token(self, table: TableRef) -> str:
        return self._tokens[table.key]

    def side_token(self, side: str) -> str:
        return self.TOKENS[side]

    def table(self, side: str) -> TableRef:
        return self._tables[side]


@dataclass(frozen=True)
class Projection:
    """One aliased output column and the side/column it carries."""

    alias: str
    side: str
    column: str


@dataclass(frozen=True)
class DiffQuery:
    """A synthesized statement with its bound parameters and column routing."""

    sql: str
    params: tuple[Any, ...]
    projections: tuple[Projection, ...]
    id_alias: str


class SqlSynthesizer:
    """Builds the diff and count statements for a ComparisonConfig."""

    def __init__(self, config: ComparisonConfig, dialect: Dialect):
        self.config = config
        self.dialect = dialect
        self.aliases = AliasMap(config.source, config.dest)
        self._check_aliases()

    def projections(self) -> tuple[Projection, ...]:
        """Aliased columns in projection order: source pk + columns, then dest."""
        columns = (self.config.primary_key, *self.config.columns)
        return tuple(
            Projection(
                alias=f"{self.aliases.side_token(side)}{ALIAS_SEPARATOR}{column}",
                side=side,
                column=column,
            )
            for side in (SOURCE, DEST)
            for column in columns
        )

    def _check_aliases(self) -> None:
        """The id column and every projection need distinct result names."""
        taken = {p.alias for p in self.projections()}
        if self.config.primary_key in taken:
            raise ConfigurationError(
                f"Primary key {self.config.primary_key!r} collides with a projected "
                f"column alias; rename it or compare different columns"
            )

    def diff_query(self) -> DiffQuery:
        source_sql, source_params = self._select(SOURCE, DEST)
        dest_sql, dest_params = self._select(DEST, SOURCE)
        return DiffQuery(
            sql=f"{source_sql} UNION {dest_sql}",
            params=(*source_params, *dest_params),
            projections=self.projections(),
            id_alias=self.config.primary_key,
        )

    def count_query(self) -> DiffQuery:
        query = self.diff_query()
        return DiffQuery(
            sql=f"SELECT COUNT(*) AS total FROM ({query.sql}) AS t",
            params=query.params,
            projections=(),
            id_alias="total",
        )

    def _select(self, anchor: str, joined: str) -> tuple[str, list[Any]]:
        """Return one half of the UNION anchored on the given side."""
        pk = self.config.primary_key
        anchor_table = self.aliases.table(anchor)
        joined_table = self.aliases.table(joined)

        select_list = [f"{self._column(anchor, pk)} AS {self.dialect.quote(pk)}"]
        select_list.extend(
            f"{self._column(p.side, p.column)} AS {self.dialect.quote(p.alias)}"
            for p in self.projections()
        )

        clauses = [
            "SELECT " + ", ".join(select_list),
            f"FROM {self._table(anchor_table)}",
            f"LEFT JOIN {self._table(joined_table)} "
            f"ON {self._column(SOURCE, pk)} = {self._column(DEST, pk)}",
        ]

        conditions = []
        constraint_sql, params = self._constraints_clause()
        if constraint_sql:
            conditions.append(constraint_sql)
        conditions.append(self._difference_clause(missing=joined))
        clauses.append("WHERE " + " AND ".join(conditions))

        return " ".join(clauses), params

    def _constraints_clause(self) -> tuple[str | None, list[Any]]:
        """Rows pass when either side holds the required value."""
        parts = []
        params = []
        placeholder = self.dialect.placeholder
        for column, value in self.config.constraints.items():
            parts.append(
                f"({self._column(SOURCE, column)} = {placeholder} "
                f"OR {self._column(DEST, column)} = {placeholder})"
            )
            params.extend((value, value))
        if not parts:
            return None, []
        return "(" + " AND ".join(parts) + ")", params

    def _difference_clause(self, missing: str) -> str:
        """Any compared column differs, or the joined side has no row."""
        parts = [
            f"{self._column(SOURCE, column)} <> {self._column(DEST, column)}"
            for column in self.config.columns
        ]
        parts.append(f"{self._column(missing, self.config.primary_key)} IS NULL")
        return "(" + " OR ".join(parts) + ")"

    def _table(self, table: TableRef) -> str:
        qualified = self.dialect.qualify_table(table.name, table.database)
        return f"{qualified} AS {self.aliases.token(table)}"

    def _column(self, side: str, column: str) -> str:
        return f"{self.aliases.side_token(side)}.{self.dialect.quote(column)}"


def build_diff_query(config: ComparisonConfig, dialect: Dialect) -> DiffQuery:
    """
    Synthesize the diff statement for a configuration

    Args:
        config: Validated comparison configuration
        dialect: Target SQL dialect

    Returns:
        DiffQuery with SQL, positional parameters and projection routing
    """
    return SqlSynthesizer(config, dialect).diff_query()


def build_count_query(config: ComparisonConfig, dialect: Dialect) -> DiffQuery:
    """Synthesize ``SELECT COUNT(*)`` over the diff statement."""
    return SqlSynthesizer(config, dialect).count_query()
