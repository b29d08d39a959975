"""Shared fixtures for pglinter tests."""

from __future__ import annotations

import contextlib

import pytest

from pglinter.catalog import MemoryRuleCatalog
from pglinter.models import Finding, Rule, Severity


def make_rule(
    id: int = 1,
    code: str = "B001",
    name: str = "TestRule",
    scope: str = "BASE",
    message: str = "{0}/{1} objects failed, {2} threshold: {3}%.",
    **kwargs,
) -> Rule:
    """Factory for creating Rule instances with sensible defaults."""
    kwargs.setdefault("warning_level", 10)
    kwargs.setdefault("error_level", 50)
    return Rule(id=id, code=code, name=name, scope=scope, message=message, **kwargs)


def make_finding(
    ruleid: str = "B001",
    level: Severity = Severity.WARNING,
    message: str = "Test finding",
    count: int | None = 1,
    **kwargs,
) -> Finding:
    """Factory for creating Finding instances with sensible defaults."""
    return Finding(ruleid=ruleid, level=level, message=message, count=count, **kwargs)


class FakeRunner:
    """Stand-in for QueryRunner keyed by exact query text.

    A response is a list of row dicts, an exception instance to raise, or a
    callable taking the bind parameters and returning rows. Unknown queries
    return no rows.
    """

    def __init__(self, responses: dict | None = None):
        self.responses = dict(responses or {})
        self.calls: list[tuple[str, object]] = []
        self.savepoints = 0
        self.rolled_back = 0

    def fetch_all(self, query, params=None):
        self.calls.append((query, params))
        response = self.responses.get(query, [])
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = response(params)
        return [dict(row) for row in response]

    def fetch_scalar(self, query, params=None):
        rows = self.fetch_all(query, params)
        return next(iter(rows[0].values()), None) if rows else None

    @contextlib.contextmanager
    def savepoint(self):
        self.savepoints += 1
        try:
            yield
        except Exception:
            self.rolled_back += 1
            raise

    def queries(self) -> list[str]:
        return [q for q, _ in self.calls]


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def sample_rules() -> list[Rule]:
    """A ratio rule, a listing rule, a parameterized rule, a disabled rule and an inert rule."""
    return [
        make_rule(id=1, code="B001", q1="SELECT total_tables", q2="SELECT tables_without_pk"),
        make_rule(
            id=21,
            code="T001",
            scope="TABLE",
            message="No primary key on table {schema}.{table}",
            q1="SELECT tables_without_pk_list",
        ),
        make_rule(
            id=26,
            code="T006",
            scope="TABLE",
            warning_level=1,
            error_level=50,
            message="Unused index {index_name}",
            q1="SELECT unused WHERE size >= %(warning_bytes)s",
        ),
        make_rule(id=2, code="B002", enable=False, q1="SELECT total_indexes", q2="SELECT redundant"),
        make_rule(id=40, code="S001", scope="SCHEMA"),
    ]


@pytest.fixture
def catalog(sample_rules) -> MemoryRuleCatalog:
    return MemoryRuleCatalog(sample_rules)


@pytest.fixture
def sample_findings() -> list[Finding]:
    return [
        make_finding(ruleid="B001", level=Severity.ERROR, message="6/10 tables without primary key", count=6),
        make_finding(ruleid="T001", level=Severity.WARNING, message="TABLE TestRule 1 : \npublic.orders\n", count=1),
        make_finding(ruleid="C001", level=Severity.INFO, message="High connection count", count=600),
    ]
