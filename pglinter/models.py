"""Data models for rules, findings and lint results."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime


class Severity(enum.Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    def __lt__(self, other):
        order = {Severity.ERROR: 0, Severity.WARNING: 1, Severity.INFO: 2}
        return order[self] < order[other]


class RuleScope(enum.Enum):
    BASE = "BASE"
    CLUSTER = "CLUSTER"
    TABLE = "TABLE"
    SCHEMA = "SCHEMA"


@dataclass
class Rule:
    """One row of the rule catalog."""

    id: int
    code: str
    name: str = ""
    enable: bool = True
    warning_level: int = 50
    error_level: int = 90
    scope: str = RuleScope.BASE.value
    description: str = ""
    message: str = ""
    fixes: list[str] = field(default_factory=list)
    q1: str | None = None
    q2: str | None = None
    q3: str | None = None
    q4: str | None = None


@dataclass
class Finding:
    ruleid: str
    level: Severity
    message: str
    count: int | None = None
    locations: list[str] = field(default_factory=list)


@dataclass
class RuleResult:
    code: str
    name: str
    scope: str
    finding: Finding | None = None
    error: str | None = None
    skipped: bool = False
    skip_reason: str = ""


@dataclass
class LintReport:
    database: str
    timestamp: datetime
    scope: str = "ALL"
    results: list[RuleResult] = field(default_factory=list)
    pg_version: str = ""

    @property
    def findings(self) -> list[Finding]:
        return [r.finding for r in self.results if r.finding is not None]

    @property
    def errors(self) -> list[RuleResult]:
        return [r for r in self.results if r.error]

    @property
    def error_count(self) -> int:
        return sum(1 for f in self.findings if f.level == Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for f in self.findings if f.level == Severity.WARNING)

    @property
    def info_count(self) -> int:
        return sum(1 for f in self.findings if f.level == Severity.INFO)

    @property
    def rules_passed(self) -> int:
        return sum(1 for r in self.results if not r.finding and not r.error and not r.skipped)

    @property
    def rules_total(self) -> int:
        return len(self.results)


@dataclass
class ExportMetadata:
    export_timestamp: str
    total_rules: int
    format_version: str


@dataclass
class RulesExport:
    metadata: ExportMetadata
    rules: list[Rule] = field(default_factory=list)


@dataclass
class ImportSummary:
    new: int = 0
    updated: int = 0
    errors: list[str] = field(default_factory=list)
    max_errors_shown: int = 5

    @property
    def message(self) -> str:
        lines = [f"Import completed: {self.new} new rules, {self.updated} updated rules"]
        if self.errors:
            lines.append(f"{len(self.errors)} errors encountered:")
            for error in self.errors[: self.max_errors_shown]:
                lines.append(f"  - {error}")
            hidden = len(self.errors) - self.max_errors_shown
            if hidden > 0:
                lines.append(f"  ... and {hidden} more errors")
        return "\n".join(lines)
