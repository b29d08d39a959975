"""Rule management: enable/disable, thresholds, listing and explanations."""

from __future__ import annotations

import logging

from pglinter.catalog import RuleCatalog
from pglinter.exceptions import RuleConfigError, RuleNotFoundError
from pglinter.models import Rule

logger = logging.getLogger(__name__)

_RULE_WIDTH = 60


def enable_rule(catalog: RuleCatalog, code: str) -> bool:
    if catalog.set_enabled(code, True):
        logger.info("Rule %s has been enabled", code)
        return True
    logger.warning("Rule %s not found", code)
    return False


def disable_rule(catalog: RuleCatalog, code: str) -> bool:
    if catalog.set_enabled(code, False):
        logger.info("Rule %s has been disabled", code)
        return True
    logger.warning("Rule %s not found", code)
    return False


def is_rule_enabled(catalog: RuleCatalog, code: str) -> bool:
    """Unknown rules count as disabled."""
    rule = catalog.get(code)
    return bool(rule and rule.enable)


def enable_all_rules(catalog: RuleCatalog) -> int:
    count = catalog.set_all_enabled(True)
    logger.info("Enabled %d rule(s)", count)
    return count


def disable_all_rules(catalog: RuleCatalog) -> int:
    count = catalog.set_all_enabled(False)
    logger.info("Disabled %d rule(s)", count)
    return count


def require_rule(catalog: RuleCatalog, code: str) -> Rule:
    rule = catalog.get(code)
    if rule is None:
        raise RuleNotFoundError(code)
    return rule


def get_rule_levels(catalog: RuleCatalog, code: str) -> tuple[int, int]:
    rule = require_rule(catalog, code)
    return rule.warning_level, rule.error_level


def update_rule_levels(
    catalog: RuleCatalog,
    code: str,
    warning_level: int | None = None,
    error_level: int | None = None,
) -> bool:
    """Change a rule's thresholds; a None keeps the current value.

    Returns:
        False when the rule does not exist.
    """
    for label, value in (("warning_level", warning_level), ("error_level", error_level)):
        if value is not None and value < 0:
            raise RuleConfigError(code, f"{label} must not be negative, got {value}")

    rule = catalog.get(code)
    if rule is None:
        logger.warning("Rule %s not found", code)
        return False

    new_warning = rule.warning_level if warning_level is None else warning_level
    new_error = rule.error_level if error_level is None else error_level
    catalog.set_levels(code, new_warning, new_error)
    logger.info("Updated rule %s levels: warning=%s, error=%s", code, new_warning, new_error)
    return True


def list_rules(catalog: RuleCatalog) -> list[tuple[str, str, bool]]:
    return [(r.code, r.name, r.enable) for r in catalog.all()]


def show_rule_status(catalog: RuleCatalog) -> str:
    rules = list_rules(catalog)
    if not rules:
        return "No rules found."

    lines = ["pglinter Rule Status:", "=" * _RULE_WIDTH]
    lines.append(f"{'Code':<6} {'Status':<8} {'Name':<40}")
    lines.append("-" * _RULE_WIDTH)
    enabled_count = 0
    for code, name, enabled in rules:
        enabled_count += enabled
        lines.append(f"{code:<6} {'ON' if enabled else 'OFF':<8} {name:<40}".rstrip())
    lines.append("=" * _RULE_WIDTH)
    lines.append(f"Summary: {enabled_count} enabled, {len(rules) - enabled_count} disabled")
    return "\n".join(lines)


def explain_rule(catalog: RuleCatalog, code: str) -> str:
    rule = require_rule(catalog, code)

    if rule.fixes:
        fixes_section = "\n".join(f"   {i}. {fix}" for i, fix in enumerate(rule.fixes, 1))
    else:
        fixes_section = "No specific fixes available."

    return "\n".join([
        f"Rule Explanation for {rule.code}",
        "=" * _RULE_WIDTH,
        "",
        f"Rule Name: {rule.name}",
        f"Scope: {rule.scope}",
        "",
        "Description:",
        rule.description,
        "",
        "Message Template:",
        rule.message,
        "",
        "How to Fix:",
        fixes_section,
        "=" * _RULE_WIDTH,
    ])


def show_rule_queries(catalog: RuleCatalog, code: str) -> str:
    rule = require_rule(catalog, code)
    lines = [f"Rule {rule.code} Queries ('{rule.name}'):", "=" * _RULE_WIDTH]
    for label in ("q1", "q2", "q3", "q4"):
        query = getattr(rule, label)
        if query:
            lines.append(f"{label} Query:")
            lines.append(query.strip())
        else:
            lines.append(f"{label} Query: <NOT SET>")
        lines.append("")
    lines[-1] = "=" * _RULE_WIDTH
    return "\n".join(lines)
