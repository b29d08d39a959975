"""Resolve catalog rows into execution shapes."""

from __future__ import annotations

import functools
import importlib
import logging
import pkgutil
from pathlib import Path

from pglinter.models import Rule
from pglinter.rules.base import BaseRule

logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=None)
def rule_shapes() -> tuple[type[BaseRule], ...]:
    """
    Discover every concrete BaseRule subclass under the pglinter.rules package.

    The package is walked once per process.

    Returns:
        tuple[type[BaseRule], ...]: Shape classes in depth-first discovery order.
    """
    rules_package = importlib.import_module("pglinter.rules")
    assert rules_package.__file__ is not None
    _import_submodules("pglinter.rules", Path(rules_package.__file__).parent)

    shapes = []
    for cls in _all_subclasses(BaseRule):
        if cls not in shapes:
            shapes.append(cls)
    return tuple(shapes)


def build_rule(rule: Rule) -> BaseRule | None:
    """
    Pick the execution shape for a catalog row.

    Parameters:
        rule (Rule): The catalog row.

    Returns:
        BaseRule | None: The bound shape instance, or None for an inert rule (no q1).
    """
    for cls in rule_shapes():
        if cls.matches(rule):
            return cls(rule)
    return None


def select_rules(
    rules: list[Rule],
    scope: str | None = None,
    exclude: set[str] | None = None,
    include_only: set[str] | None = None,
) -> list[Rule]:
    """
    Filter catalog rows by scope and code lists, ordered by code.

    Parameters:
        rules (list[Rule]): All catalog rows.
        scope (str | None): Only keep rows of this scope (case-insensitive).
        exclude (set[str] | None): Codes to drop.
        include_only (set[str] | None): If given, only these codes are kept.

    Returns:
        list[Rule]: Selected rows sorted by code.
    """
    exclude = {c.upper() for c in exclude or ()}
    include = {c.upper() for c in include_only} if include_only is not None else None

    selected = []
    for rule in rules:
        if scope and rule.scope.upper() != scope.upper():
            continue
        if rule.code.upper() in exclude:
            continue
        if include is not None and rule.code.upper() not in include:
            continue
        selected.append(rule)

    selected.sort(key=lambda r: r.code)
    return selected


def _import_submodules(package_name: str, package_dir: Path):
    for _importer, modname, _ispkg in pkgutil.walk_packages(
        path=[str(package_dir)],
        prefix=package_name + ".",
    ):
        try:
            importlib.import_module(modname)
        except Exception as e:
            logger.warning("Could not import rule shape module %s: %s", modname, e)


def _all_subclasses(cls):
    result = []
    for sub in cls.__subclasses__():
        result.append(sub)
        result.extend(_all_subclasses(sub))
    return result
