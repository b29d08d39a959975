"""Human-readable console summary."""

from __future__ import annotations

from pglinter.models import Finding, Severity

_GLYPH = {Severity.ERROR: "❌", Severity.WARNING: "⚠️ ", Severity.INFO: "ℹ️ "}
_RULE = "=" * 50


def render(findings: list[Finding]) -> str:
    """Render findings as a summary: one line each, counts, and a closing status."""
    if not findings:
        return "No issues found - database schema looks good!"

    lines = [f"pglinter found {len(findings)} issue(s):", _RULE]
    for f in findings:
        lines.append(f"{_GLYPH[f.level]} [{f.ruleid}] {f.level.value.upper()}: {f.message}")
    lines.append(_RULE)

    errors = sum(1 for f in findings if f.level == Severity.ERROR)
    warnings = sum(1 for f in findings if f.level == Severity.WARNING)
    infos = sum(1 for f in findings if f.level == Severity.INFO)
    lines.append(f"Summary: {errors} error(s), {warnings} warning(s), {infos} info")

    if errors:
        lines.append("Critical issues found - please review and fix errors")
    elif warnings:
        lines.append("Some warnings found - consider reviewing for optimization")
    else:
        lines.append("Only informational messages - good job!")
    return "\n".join(lines)
