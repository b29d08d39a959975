"""Single-query rules where every returned row is one violation."""

from __future__ import annotations

import logging
import re

from pglinter import templating
from pglinter.exceptions import RuleConfigError
from pglinter.models import Finding, Rule, Severity
from pglinter.rules.base import BaseRule, row_detail
from pglinter.thresholds import mb_to_bytes

logger = logging.getLogger(__name__)

_BIND_PLACEHOLDER = re.compile(r"%\((\w+)\)s")


class ListingRule(BaseRule):
    """``q1`` alone; any returned row produces a warning.

    Listing rules have no error tier.
    """

    shape = "listing"

    @classmethod
    def matches(cls, rule: Rule) -> bool:
        return bool(rule.q1) and not rule.q2 and not _BIND_PLACEHOLDER.search(rule.q1)

    def bind_params(self) -> dict | None:
        return None

    def evaluate(self, runner) -> Finding | None:
        rows = self.fetch(runner, self.rule.q1, self.bind_params())
        count = len(rows)
        logger.debug("%s: %s violating rows", self.code, count)
        if count == 0:
            return None

        level = Severity.WARNING
        template = self.rule.message
        if templating.named_placeholders(template):
            details = templating.render_rows(template, rows)
            label = self.rule.name
        else:
            details = [row_detail(row, i) for i, row in enumerate(rows, 1)]
            label = templating.render(template, {"0": count, "2": level.value})

        message = f"{self.rule.scope} {label} {count} : \n" + "\n".join(details) + "\n"
        message, locations = self.enrich(runner, message)
        return Finding(
            ruleid=self.code,
            level=level,
            message=message,
            count=count,
            locations=locations,
        )


class ParameterizedListingRule(ListingRule):
    """Listing rule whose query takes bind values derived from the thresholds.

    Supported placeholders: ``%(warning_level)s``, ``%(error_level)s``,
    ``%(warning_bytes)s`` and ``%(error_bytes)s`` (levels read as MB).
    """

    shape = "parameterized"

    @classmethod
    def matches(cls, rule: Rule) -> bool:
        return bool(rule.q1) and not rule.q2 and bool(_BIND_PLACEHOLDER.search(rule.q1))

    def bind_params(self) -> dict:
        warning, error = self.thresholds()
        available = {
            "warning_level": warning,
            "error_level": error,
            "warning_bytes": mb_to_bytes(warning),
            "error_bytes": mb_to_bytes(error),
        }
        wanted = set(_BIND_PLACEHOLDER.findall(self.rule.q1))
        unknown = wanted - available.keys()
        if unknown:
            raise RuleConfigError(
                self.code, f"unknown bind parameter(s): {', '.join(sorted(unknown))}"
            )
        params = {key: available[key] for key in wanted}
        logger.debug("%s: bind parameters %s", self.code, params)
        return params
