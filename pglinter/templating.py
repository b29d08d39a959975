"""Placeholder substitution for rule message templates.

Templates only support literal ``{key}`` replacement. Placeholders without a
binding are left in the output verbatim; existing catalog messages rely on
that, so it must stay lenient.
"""

from __future__ import annotations

import re

_NAMED_PLACEHOLDER = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


def render(template: str, bindings: dict[str, object]) -> str:
    """Substitute ``{key}`` placeholders and unescape literal ``\\n`` sequences."""
    message = template
    for key, value in bindings.items():
        message = message.replace("{" + str(key) + "}", "" if value is None else str(value))
    return unescape_newlines(message)


def unescape_newlines(text: str) -> str:
    return text.replace("\\n", "\n")


def ratio_bindings(violations: int, total: int, level: str, pct: int) -> dict[str, object]:
    """Positional bindings used by ratio-mode messages."""
    return {"0": violations, "1": total, "2": level, "3": pct}


def named_placeholders(template: str) -> set[str]:
    return set(_NAMED_PLACEHOLDER.findall(template))


def render_rows(template: str, rows: list[dict]) -> list[str]:
    """Render the template once per row, using each row's columns as bindings."""
    return [render(template, row) for row in rows]
