"""Exception hierarchy for pglinter."""

from __future__ import annotations


class PglinterError(Exception):
    """Base class for all pglinter errors."""


class RuleNotFoundError(PglinterError):
    """The rule code has no row in the catalog."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Rule '{code}' not found in the rule catalog")


class RuleConfigError(PglinterError):
    """The catalog row exists but cannot be evaluated as configured."""

    def __init__(self, code: str, reason: str):
        self.code = code
        self.reason = reason
        super().__init__(f"Rule '{code}' is misconfigured: {reason}")


class RuleExecutionError(PglinterError):
    """A query belonging to a rule failed."""

    def __init__(self, code: str, cause: str):
        self.code = code
        self.cause = cause
        super().__init__(f"{code} failed: {cause}")


class CatalogError(PglinterError):
    """The rule catalog rejected a read or write."""


class ImportParseError(PglinterError):
    """The import document is not a valid rules export."""
