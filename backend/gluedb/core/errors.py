"""
Error taxonomy for datasource lookup, binding, execution and verification.

No retries happen anywhere in gluedb; every error is surfaced to the caller
after any acquired connection has been released.
"""


class GlueDatabaseError(Exception):
    """Base class for all gluedb errors."""


class ConfigurationError(GlueDatabaseError, ValueError):
    """Missing or invalid datasource configuration (raised at first use)."""


class DatasourceConnectionError(GlueDatabaseError, ConnectionError):
    """Driver could not open a connection."""


class BindingError(GlueDatabaseError, ValueError):
    """A placeholder could not be bound from the variable scope."""


class ExecutionError(GlueDatabaseError):
    """Driver-level statement failure; the driver error is chained as __cause__."""


class AssertionFailure(GlueDatabaseError, AssertionError):
    """A fail-fast verification check did not hold."""

    def __init__(self, group: str, label: str, expected: object = None, actual: object = None) -> None:
        self.group = group
        self.label = label
        self.expected = expected
        self.actual = actual
        super().__init__(f"[{group}] {label}: expected {expected!r}, got {actual!r}")


class TemplateRenderError(GlueDatabaseError, ValueError):
    """The Jinja2 SQL template could not be parsed or rendered."""
