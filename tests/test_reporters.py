"""Tests for pglinter.reporters: SARIF and console output."""

from __future__ import annotations

import json

from conftest import make_finding

from pglinter.models import Severity
from pglinter.reporters import console_reporter, sarif_reporter


class TestSarifReporter:
    def test_document_shape(self, sample_findings):
        data = json.loads(sarif_reporter.render(sample_findings))
        assert data["version"] == "2.1.0"
        driver = data["runs"][0]["tool"]["driver"]
        assert driver["name"] == "pglinter"
        assert driver["informationUri"] == "https://github.com/decathlon/pglinter"

    def test_result_levels(self, sample_findings):
        results = sarif_reporter.build(sample_findings)["runs"][0]["results"]
        assert [(r["ruleId"], r["level"]) for r in results] == [
            ("B001", "error"),
            ("T001", "warning"),
            ("C001", "note"),
        ]

    def test_result_fields(self, sample_findings):
        result = sarif_reporter.build(sample_findings)["runs"][0]["results"][0]
        assert result["message"]["text"] == "6/10 tables without primary key"
        assert result["properties"] == {"count": 6}
        assert result["locations"] == [{"physicalLocation": {"artifactLocation": {"uri": "database"}}}]

    def test_logical_locations(self):
        finding = make_finding(locations=["table public.orders", "table app.events"])
        location = sarif_reporter.build([finding])["runs"][0]["results"][0]["locations"][0]
        assert location["logicalLocations"] == [
            {"fullyQualifiedName": "table public.orders"},
            {"fullyQualifiedName": "table app.events"},
        ]

    def test_count_omitted_when_unknown(self):
        result = sarif_reporter.build([make_finding(count=None)])["runs"][0]["results"][0]
        assert "properties" not in result

    def test_no_findings(self):
        assert sarif_reporter.build([])["runs"][0]["results"] == []

    def test_write_creates_directory(self, sample_findings, tmp_path):
        path = tmp_path / "reports" / "lint.sarif"
        assert sarif_reporter.write(sample_findings, str(path)) == str(path)
        assert len(json.loads(path.read_text())["runs"][0]["results"]) == 3


class TestConsoleReporter:
    def test_no_findings(self):
        assert console_reporter.render([]) == "No issues found - database schema looks good!"

    def test_summary(self, sample_findings):
        text = console_reporter.render(sample_findings)
        lines = text.splitlines()
        assert lines[0] == "pglinter found 3 issue(s):"
        assert "[B001] ERROR: 6/10 tables without primary key" in text
        assert "[C001] INFO: High connection count" in text
        assert "Summary: 1 error(s), 1 warning(s), 1 info" in text
        assert lines[-1] == "Critical issues found - please review and fix errors"

    def test_warnings_only(self):
        text = console_reporter.render([make_finding(level=Severity.WARNING)])
        assert text.endswith("Some warnings found - consider reviewing for optimization")

    def test_info_only(self):
        text = console_reporter.render([make_finding(level=Severity.INFO)])
        assert text.endswith("Only informational messages - good job!")
