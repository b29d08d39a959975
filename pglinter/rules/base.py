"""Base class for rule execution shapes."""

from __future__ import annotations

import abc
import logging
from decimal import Decimal, InvalidOperation

from pglinter import locator
from pglinter.exceptions import RuleConfigError, RuleExecutionError
from pglinter.models import Finding, Rule

logger = logging.getLogger(__name__)


class BaseRule(abc.ABC):
    """Abstract base class for the ways a catalog rule can be executed.

    A catalog row is matched to exactly one subclass when it is loaded (see
    ``pglinter.registry.build_rule``); the subclass never re-inspects the row
    shape at evaluation time.

    Attributes:
        shape: Short label for the execution shape, used in listings and logs.
    """

    shape: str = ""

    def __init__(self, rule: Rule):
        self.rule = rule

    @classmethod
    @abc.abstractmethod
    def matches(cls, rule: Rule) -> bool:
        """Return True if this shape can execute the given catalog row."""
        ...

    @abc.abstractmethod
    def evaluate(self, runner) -> Finding | None:
        """Run the rule's queries and build its finding.

        Args:
            runner: query-execution handle (see ``pglinter.connection.QueryRunner``).

        Returns:
            A Finding, or None when the rule has nothing to report.

        Raises:
            RuleExecutionError: a query failed.
            RuleConfigError: the catalog row cannot be evaluated.
        """
        ...

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if not cls.shape:
            cls.shape = cls.__name__

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.rule.code} [{self.rule.scope}]>"

    @property
    def code(self) -> str:
        return self.rule.code

    def thresholds(self) -> tuple[int, int]:
        warning, error = self.rule.warning_level, self.rule.error_level
        for label, value in (("warning_level", warning), ("error_level", error)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise RuleConfigError(self.code, f"{label} must be an integer, got {value!r}")
            if value < 0:
                raise RuleConfigError(self.code, f"{label} must not be negative, got {value}")
        return warning, error

    def fetch(self, runner, query: str, params: dict | None = None) -> list[dict]:
        try:
            return runner.fetch_all(query, params)
        except Exception as exc:
            raise RuleExecutionError(self.code, f"Database error: {exc}") from exc

    def fetch_count(self, runner, query: str) -> int:
        """First column of the first row as an integer; 0 for NULL or no rows."""
        rows = self.fetch(runner, query)
        if not rows:
            return 0
        value = next(iter(rows[0].values()), None)
        if value is None:
            return 0
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, int):
            return value
        try:
            return int(Decimal(str(value)))
        except (InvalidOperation, ValueError) as exc:
            raise RuleExecutionError(
                self.code, f"expected a numeric result, got {value!r}"
            ) from exc

    def enrich(self, runner, message: str) -> tuple[str, list[str]]:
        """Append q3 detail rows and q4 object names to a finding message."""
        locations: list[str] = []
        if self.rule.q3:
            details = [row_detail(row, i) for i, row in enumerate(self.fetch(runner, self.rule.q3), 1)]
            if details:
                message = f"{message}\nDetails:\n" + "\n".join(details)
        if self.rule.q4:
            locations = locator.resolve_all(runner, self.fetch(runner, self.rule.q4))
            if locations:
                message = f"{message}\nObjects:\n" + "\n".join(locations)
        return message, locations


def row_detail(row: dict, index: int) -> str:
    """Text describing one violating row.

    Uses the ``object_name`` column when present, else the first column, and
    falls back to a row label when that value is missing.
    """
    if "object_name" in row:
        value = row["object_name"]
    else:
        value = next(iter(row.values()), None)
    if value is None or value == "":
        return f"row {index}"
    return str(value)
