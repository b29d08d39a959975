"""Rule executor: loads rules from the catalog, runs them, collects results."""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import TextIO

from pglinter.catalog import RuleCatalog
from pglinter.exceptions import PglinterError, RuleExecutionError, RuleNotFoundError
from pglinter.models import Finding, LintReport, Rule, RuleResult, RuleScope
from pglinter.registry import build_rule, select_rules

logger = logging.getLogger(__name__)


def evaluate_rule(runner, rule: Rule) -> Finding | None:
    """Evaluate one catalog row, isolated from the rest of the session.

    Raises:
        RuleExecutionError: a query failed (tagged with the rule code).
        RuleConfigError: thresholds or bind parameters are unusable.
    """
    shape = build_rule(rule)
    if shape is None:
        logger.debug("%s: no query defined, nothing to evaluate", rule.code)
        return None

    logger.debug("%s: evaluating as %s rule", rule.code, shape.shape)
    try:
        with runner.savepoint():
            return shape.evaluate(runner)
    except PglinterError:
        raise
    except Exception as exc:
        raise RuleExecutionError(rule.code, f"Database error: {exc}") from exc


def check_rule(runner, catalog: RuleCatalog, code: str) -> Finding | None:
    """Evaluate a single rule by code, whether or not it is enabled.

    Raises:
        RuleNotFoundError: no catalog row has this code.
    """
    rule = catalog.get(code)
    if rule is None:
        raise RuleNotFoundError(code)
    return evaluate_rule(runner, rule)


def run_checks(
    runner,
    catalog: RuleCatalog,
    scope: str | None = None,
    database: str = "",
    verbose: bool = False,
    exclude: set[str] | None = None,
    include_only: set[str] | None = None,
    stop_on_error: bool = False,
    pg_version: str = "",
) -> LintReport:
    """Execute every selected rule against the database.

    Args:
        runner: query-execution handle.
        catalog: rule catalog to read rules from.
        scope: Only run rules of this scope (None runs all scopes).
        database: Database name for the report.
        verbose: Print progress to stderr.
        exclude: Optional set of rule codes to exclude.
        include_only: Optional set of rule codes to include (whitelist mode).
        stop_on_error: Re-raise the first rule failure instead of recording it.
        pg_version: Server version string for the report.

    Returns:
        LintReport with one RuleResult per selected rule, ordered by code.
    """
    report = LintReport(
        database=database,
        timestamp=datetime.now(timezone.utc),
        scope=scope.upper() if scope else "ALL",
        pg_version=pg_version,
    )

    rules = select_rules(catalog.all(), scope=scope, exclude=exclude, include_only=include_only)
    total = len(rules)

    if verbose:
        target = database or "database"
        print(f"Lint {report.scope.lower()}: running {total} rules against {target}...", file=sys.stderr)

    for i, rule in enumerate(rules, 1):
        result = RuleResult(code=rule.code, name=rule.name, scope=rule.scope)
        report.results.append(result)

        if not rule.enable:
            result.skipped = True
            result.skip_reason = "rule disabled"
            continue
        if not rule.q1:
            result.skipped = True
            result.skip_reason = "no query defined"
            continue

        if verbose:
            print(f"  [{i}/{total}] {rule.code}: {rule.name}", file=sys.stderr)

        try:
            result.finding = evaluate_rule(runner, rule)
        except PglinterError as exc:
            if stop_on_error:
                raise
            result.error = str(exc)
            logger.warning("%s", exc)
            if verbose:
                print(f"    ERROR: {result.error}", file=sys.stderr)

    if verbose:
        print(
            f"Done. {report.error_count} errors, "
            f"{report.warning_count} warnings, "
            f"{report.info_count} info, "
            f"{len(report.errors)} failed rules.",
            file=sys.stderr,
        )

    return report


def perform_check(
    runner,
    catalog: RuleCatalog,
    scope: str | None = None,
    output_file: str | None = None,
    out: TextIO | None = None,
    max_errors_shown: int = 5,
    **kwargs,
) -> bool:
    """Run a scope and emit its findings.

    Writes a SARIF document when ``output_file`` is given, otherwise prints the
    console summary. Rules that failed to execute are listed on stderr, at most
    ``max_errors_shown`` of them. Returns True when no rule failed to execute.
    """
    from pglinter.reporters import console_reporter, sarif_reporter

    report = run_checks(runner, catalog, scope=scope, **kwargs)
    if output_file:
        sarif_reporter.write(report.findings, output_file)
    else:
        print(console_reporter.render(report.findings), file=out or sys.stdout)
    report_rule_errors(report, max_errors_shown)
    return not report.errors


def check_all(runner, catalog: RuleCatalog, out: TextIO | None = None, **kwargs) -> bool:
    """Run every scope in turn, printing a heading before each."""
    out = out or sys.stdout
    print("Running comprehensive pglinter check...", file=out)
    all_success = True
    for scope in RuleScope:
        print(f"\n{scope.value} CHECKS:", file=out)
        if not perform_check(runner, catalog, scope=scope.value, out=out, **kwargs):
            all_success = False

    print("", file=out)
    if all_success:
        print("All pglinter checks completed successfully!", file=out)
    else:
        print("Some pglinter checks failed - please review above", file=out)
    return all_success


def report_rule_errors(report: LintReport, max_errors_shown: int = 5, stream: TextIO | None = None) -> int:
    """Print a capped list of the rules that failed to execute.

    Returns the number of failed rules.
    """
    failed = report.errors
    if not failed:
        return 0
    stream = stream or sys.stderr
    print(f"{len(failed)} rule(s) failed to execute:", file=stream)
    for result in failed[:max_errors_shown]:
        print(f"  - {result.error}", file=stream)
    hidden = len(failed) - max_errors_shown
    if hidden > 0:
        print(f"  ... and {hidden} more errors", file=stream)
    return len(failed)
