"""Threshold classification for rule metrics."""

from __future__ import annotations

from pglinter.models import Severity


def classify(metric: int | float, warning: int | float, error: int | float) -> Severity | None:
    """Map a metric onto a severity tier.

    Thresholds share the metric's unit (percentage, MB or raw count); no
    conversion happens here. The error tier is tested first, so a metric that
    satisfies both thresholds is always an error.

    Returns:
        Severity.ERROR, Severity.WARNING, or None when below both thresholds.
    """
    if metric >= error:
        return Severity.ERROR
    if metric >= warning:
        return Severity.WARNING
    return None


def percentage(part: int, total: int) -> int | None:
    """Integer percentage of ``part`` in ``total``, truncated toward zero.

    Returns None when ``total`` is zero: an empty population makes the rule
    not applicable.
    """
    if total == 0:
        return None
    scaled = part * 100
    result = abs(scaled) // abs(total)
    return result if (scaled >= 0) == (total > 0) else -result


def mb_to_bytes(megabytes: int) -> int:
    return megabytes * 1024 * 1024
