"""Rule catalog storage."""

from __future__ import annotations

import abc
import dataclasses
import logging
from pathlib import Path

import psycopg2

from pglinter.exceptions import CatalogError
from pglinter.models import Rule

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"
SCHEMA_FILE = DATA_DIR / "schema.sql"
DEFAULT_RULES_FILE = DATA_DIR / "default_rules.yaml"

RULE_COLUMNS = (
    "id", "name", "code", "enable", "warning_level", "error_level",
    "scope", "description", "message", "fixes", "q1", "q2", "q3", "q4",
)


class RuleCatalog(abc.ABC):
    """Keyed store of rule definitions: by ``code`` for reads, by ``id`` for upserts."""

    @abc.abstractmethod
    def all(self) -> list[Rule]:
        """Every rule, ordered by code."""
        ...

    @abc.abstractmethod
    def get(self, code: str) -> Rule | None:
        ...

    @abc.abstractmethod
    def upsert(self, rule: Rule) -> bool:
        """Insert or fully replace the row with ``rule.id``.

        Returns:
            True if the row was new, False if an existing row was replaced.

        Raises:
            CatalogError: the row was rejected (e.g. duplicate code).
        """
        ...

    @abc.abstractmethod
    def set_enabled(self, code: str, enabled: bool) -> bool:
        """Set the enable flag. Returns False when the code is unknown."""
        ...

    @abc.abstractmethod
    def set_all_enabled(self, enabled: bool) -> int:
        """Set the enable flag on every rule. Returns the number of rows changed."""
        ...

    @abc.abstractmethod
    def set_levels(self, code: str, warning_level: int, error_level: int) -> bool:
        ...


class MemoryRuleCatalog(RuleCatalog):
    """Catalog held in memory; used for offline runs and tests."""

    def __init__(self, rules: list[Rule] | None = None):
        self._rules: dict[int, Rule] = {}
        for rule in rules or []:
            self.upsert(rule)

    def all(self) -> list[Rule]:
        rules = sorted(self._rules.values(), key=lambda r: r.code)
        return [dataclasses.replace(r, fixes=list(r.fixes)) for r in rules]

    def get(self, code: str) -> Rule | None:
        for rule in self._rules.values():
            if rule.code == code:
                return dataclasses.replace(rule, fixes=list(rule.fixes))
        return None

    def upsert(self, rule: Rule) -> bool:
        for other in self._rules.values():
            if other.code == rule.code and other.id != rule.id:
                raise CatalogError(
                    f"duplicate key value violates unique constraint on code "
                    f"(code)=({rule.code}) already used by id {other.id}"
                )
        is_new = rule.id not in self._rules
        self._rules[rule.id] = dataclasses.replace(rule, fixes=list(rule.fixes))
        return is_new

    def set_enabled(self, code: str, enabled: bool) -> bool:
        for rule in self._rules.values():
            if rule.code == code:
                rule.enable = enabled
                return True
        return False

    def set_all_enabled(self, enabled: bool) -> int:
        changed = 0
        for rule in self._rules.values():
            if rule.enable != enabled:
                rule.enable = enabled
                changed += 1
        return changed

    def set_levels(self, code: str, warning_level: int, error_level: int) -> bool:
        for rule in self._rules.values():
            if rule.code == code:
                rule.warning_level = warning_level
                rule.error_level = error_level
                return True
        return False


class PostgresRuleCatalog(RuleCatalog):
    """Catalog stored in the ``pglinter.rules`` table."""

    def __init__(self, runner, table: str = "pglinter.rules"):
        self.runner = runner
        self.table = table

    def _select(self, where: str = "", params: tuple | None = None) -> list[Rule]:
        query = f"SELECT {', '.join(RULE_COLUMNS)} FROM {self.table} {where} ORDER BY code"
        try:
            rows = self.runner.fetch_all(query, params)
        except psycopg2.Error as e:
            raise CatalogError(f"Database error: {e}") from e
        return [_row_to_rule(row) for row in rows]

    def all(self) -> list[Rule]:
        return self._select()

    def get(self, code: str) -> Rule | None:
        rules = self._select("WHERE code = %s", (code,))
        return rules[0] if rules else None

    def upsert(self, rule: Rule) -> bool:
        columns = ", ".join(RULE_COLUMNS)
        placeholders = ", ".join(f"%({c})s" for c in RULE_COLUMNS)
        updates = ",\n                ".join(f"{c} = EXCLUDED.{c}" for c in RULE_COLUMNS if c != "id")
        query = f"""
            INSERT INTO {self.table} ({columns})
            VALUES ({placeholders})
            ON CONFLICT (id)
            DO UPDATE SET
                {updates}
            RETURNING (xmax = 0) AS is_new
        """
        params = dataclasses.asdict(rule)
        try:
            with self.runner.savepoint():
                rows = self.runner.fetch_all(query, params)
        except psycopg2.Error as e:
            raise CatalogError(str(e).strip()) from e
        return bool(rows and rows[0].get("is_new"))

    def _update(self, query: str, params: tuple) -> int:
        try:
            return self.runner.execute(query, params)
        except psycopg2.Error as e:
            raise CatalogError(f"Database error: {e}") from e

    def set_enabled(self, code: str, enabled: bool) -> bool:
        return self._update(f"UPDATE {self.table} SET enable = %s WHERE code = %s", (enabled, code)) > 0

    def set_all_enabled(self, enabled: bool) -> int:
        return self._update(
            f"UPDATE {self.table} SET enable = %s WHERE enable IS DISTINCT FROM %s", (enabled, enabled)
        )

    def set_levels(self, code: str, warning_level: int, error_level: int) -> bool:
        return self._update(
            f"UPDATE {self.table} SET warning_level = %s, error_level = %s WHERE code = %s",
            (warning_level, error_level, code),
        ) > 0


def install_catalog(runner) -> None:
    """Create the ``pglinter`` schema and rules table if they do not exist."""
    try:
        runner.execute(SCHEMA_FILE.read_text())
    except psycopg2.Error as e:
        raise CatalogError(f"Could not create rule catalog: {e}") from e


def _row_to_rule(row: dict) -> Rule:
    return Rule(
        id=row["id"],
        name=row.get("name") or "",
        code=row["code"],
        enable=row["enable"] if row.get("enable") is not None else True,
        warning_level=row["warning_level"] if row.get("warning_level") is not None else 50,
        error_level=row["error_level"] if row.get("error_level") is not None else 90,
        scope=row.get("scope") or "",
        description=row.get("description") or "",
        message=row.get("message") or "",
        fixes=[f for f in row.get("fixes") or [] if f is not None],
        q1=row.get("q1"),
        q2=row.get("q2"),
        q3=row.get("q3"),
        q4=row.get("q4"),
    )
