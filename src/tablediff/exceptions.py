"""
Exception hierarchy for table diffing.

All errors raised by the engine itself derive from TableDiffError. Errors
raised by the database driver are never wrapped and reach the caller as-is.
"""


class TableDiffError(Exception):
    """Base exception for table diff errors."""

    pass


class ConfigurationError(TableDiffError, ValueError):
    """Raised when a comparison is executed with an incomplete or invalid configuration."""

    pass


class DataShapeError(TableDiffError, KeyError):
    """Raised when a result row does not carry the columns the query projected."""

    def __init__(self, alias: str, available: list[str] | None = None):
        self.alias = alias
        self.available = available or []
        super().__init__(
            f"Result row is missing expected column {alias!r} "
            f"(available: {', '.join(self.available) or 'none'})"
        )

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.args[0]
