"""Two-query rules: violations as a percentage of a population."""

from __future__ import annotations

import logging

from pglinter import templating
from pglinter.models import Finding, Rule
from pglinter.rules.base import BaseRule
from pglinter.thresholds import classify, percentage

logger = logging.getLogger(__name__)


class RatioRule(BaseRule):
    """``q1`` counts the population, ``q2`` the violating subset."""

    shape = "ratio"

    @classmethod
    def matches(cls, rule: Rule) -> bool:
        return bool(rule.q1) and bool(rule.q2)

    def evaluate(self, runner) -> Finding | None:
        warning, error = self.thresholds()
        logger.debug("%s: thresholds warning=%s error=%s", self.code, warning, error)

        total = self.fetch_count(runner, self.rule.q1)
        violations = self.fetch_count(runner, self.rule.q2)
        logger.debug("%s: total=%s violations=%s", self.code, total, violations)

        pct = percentage(violations, total)
        if pct is None:
            logger.debug("%s: skipped, empty population", self.code)
            return None

        level = classify(pct, warning, error)
        if level is None:
            logger.debug("%s: %s%% below warning threshold %s%%", self.code, pct, warning)
            return None
        logger.debug("%s: %s%% triggered %s", self.code, pct, level.value)

        message = templating.render(
            self.rule.message,
            templating.ratio_bindings(violations, total, level.value, pct),
        )
        message, locations = self.enrich(runner, message)
        return Finding(
            ruleid=self.code,
            level=level,
            message=message,
            count=violations,
            locations=locations,
        )
