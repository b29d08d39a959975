"""SARIF report renderer."""

from __future__ import annotations

import json
import os

from pglinter import __version__
from pglinter.models import Finding, Severity

SARIF_VERSION = "2.1.0"
TOOL_NAME = "pglinter"
INFORMATION_URI = "https://github.com/decathlon/pglinter"

_SARIF_LEVEL = {Severity.ERROR: "error", Severity.WARNING: "warning", Severity.INFO: "note"}


def build(findings: list[Finding]) -> dict:
    """Build the SARIF document for a list of findings."""
    results = []
    for f in findings:
        location = {"physicalLocation": {"artifactLocation": {"uri": "database"}}}
        if f.locations:
            location["logicalLocations"] = [{"fullyQualifiedName": name} for name in f.locations]
        entry = {
            "ruleId": f.ruleid,
            "level": _SARIF_LEVEL[f.level],
            "message": {"text": f.message},
            "locations": [location],
        }
        if f.count is not None:
            entry["properties"] = {"count": f.count}
        results.append(entry)

    return {
        "version": SARIF_VERSION,
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": TOOL_NAME,
                        "version": __version__,
                        "informationUri": INFORMATION_URI,
                    }
                },
                "results": results,
            }
        ],
    }


def render(findings: list[Finding]) -> str:
    return json.dumps(build(findings), indent=2)


def write(findings: list[Finding], output_file: str) -> str:
    """Write the SARIF document to ``output_file`` and return the path."""
    parent = os.path.dirname(output_file)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(output_file, "w") as f:
        f.write(render(findings))
    return output_file
