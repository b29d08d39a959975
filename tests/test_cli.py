"""Tests for pglinter.cli: argument parsing, exit status and offline commands."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from conftest import make_finding

from pglinter.catalog import MemoryRuleCatalog
from pglinter.cli import _exit_status, _split_codes, build_parser, main
from pglinter.codec import export_rules_to_file
from pglinter.config import ReportConfig
from pglinter.models import LintReport, RuleResult, Severity


def _report(*results: RuleResult) -> LintReport:
    return LintReport(database="db", timestamp=datetime.now(timezone.utc), results=list(results))


@pytest.fixture
def rules_file(sample_rules, tmp_path) -> str:
    path = tmp_path / "rules.yaml"
    export_rules_to_file(MemoryRuleCatalog(sample_rules), str(path))
    return str(path)


class TestBuildParser:
    def test_check_defaults(self):
        args = build_parser().parse_args(["check", "--host", "x"])
        assert args.scope == "all"
        assert args.port == 5432
        assert args.fail_on is None
        assert args.output is None

    def test_subcommands_exist(self):
        parser = build_parser()
        for argv in (
            ["check"],
            ["list-rules"],
            ["explain", "B001"],
            ["show-queries", "B001"],
            ["enable", "B001"],
            ["disable", "B001"],
            ["enable-all"],
            ["disable-all"],
            ["set-levels", "B001", "--warning", "5"],
            ["export"],
            ["import", "rules.yaml"],
            ["init", "--load-defaults"],
        ):
            assert parser.parse_args(argv).command == argv[0]

    def test_scope_choices(self):
        args = build_parser().parse_args(["check", "--scope", "table"])
        assert args.scope == "table"
        with pytest.raises(SystemExit):
            build_parser().parse_args(["check", "--scope", "everything"])

    def test_set_levels_optional_values(self):
        args = build_parser().parse_args(["set-levels", "B001", "--error", "90"])
        assert args.warning is None
        assert args.error == 90


class TestMain:
    def test_no_args_prints_help(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1
        assert "usage:" in capsys.readouterr().out

    def test_list_rules_from_file(self, rules_file, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["list-rules", "--rules-file", rules_file])
        assert exc_info.value.code == 0
        assert "Summary: 4 enabled, 1 disabled" in capsys.readouterr().out

    def test_explain_from_file(self, rules_file, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["explain", "T001", "--rules-file", rules_file])
        assert exc_info.value.code == 0
        assert "Rule Explanation for T001" in capsys.readouterr().out

    def test_show_queries_from_file(self, rules_file, capsys):
        with pytest.raises(SystemExit):
            main(["show-queries", "B001", "--rules-file", rules_file])
        assert "SELECT tables_without_pk" in capsys.readouterr().out

    def test_unknown_rule_is_error(self, rules_file, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["explain", "Z999", "--rules-file", rules_file])
        assert exc_info.value.code == 1
        assert "Error: Rule 'Z999' not found" in capsys.readouterr().err

    def test_missing_rules_file(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["list-rules", "--rules-file", "/nonexistent/rules.yaml"])
        assert exc_info.value.code == 1
        assert "Rules file not found" in capsys.readouterr().err


class TestSplitCodes:
    def test_none(self):
        assert _split_codes(None) is None

    def test_splits_and_strips(self):
        assert _split_codes("B001, T003,,") == {"B001", "T003"}


class TestExitStatus:
    def test_clean(self):
        assert _exit_status(_report(RuleResult("B001", "r", "BASE")), ReportConfig()) == 0

    def test_findings_do_not_fail_by_default(self):
        result = RuleResult("B001", "r", "BASE", finding=make_finding(level=Severity.ERROR))
        assert _exit_status(_report(result), ReportConfig()) == 0

    def test_fail_on_warning(self):
        result = RuleResult("T001", "r", "TABLE", finding=make_finding(level=Severity.WARNING))
        assert _exit_status(_report(result), ReportConfig(fail_on="warning")) == 1
        assert _exit_status(_report(result), ReportConfig(fail_on="error")) == 0

    def test_fail_on_error(self):
        result = RuleResult("B001", "r", "BASE", finding=make_finding(level=Severity.ERROR))
        assert _exit_status(_report(result), ReportConfig(fail_on="warning")) == 1
        assert _exit_status(_report(result), ReportConfig(fail_on="error")) == 1

    def test_rule_errors_fail_and_are_capped(self, capsys):
        results = [RuleResult(f"B00{i}", "r", "BASE", error=f"B00{i} failed: boom") for i in range(1, 5)]
        assert _exit_status(_report(*results), ReportConfig(max_errors_shown=2)) == 1
        err = capsys.readouterr().err
        assert "4 rule(s) failed to execute:" in err
        assert "  - B002 failed: boom" in err
        assert "B003" not in err
        assert "  ... and 2 more errors" in err
