"""YAML export and import of the rule catalog."""

from __future__ import annotations

import dataclasses
import logging
import os
from datetime import datetime, timezone

import yaml

from pglinter.catalog import RuleCatalog
from pglinter.exceptions import CatalogError, ImportParseError
from pglinter.models import ExportMetadata, ImportSummary, Rule, RulesExport

logger = logging.getLogger(__name__)

FORMAT_VERSION = "1.0"

_REQUIRED_RULE_FIELDS = {
    "id": int,
    "name": str,
    "code": str,
    "enable": bool,
    "warning_level": int,
    "error_level": int,
    "scope": str,
    "description": str,
    "message": str,
}
_QUERY_FIELDS = ("q1", "q2", "q3", "q4")


class _LiteralDumper(yaml.SafeDumper):
    """Dump multi-line strings (queries) as literal blocks."""


def _str_representer(dumper, value: str):
    if "\n" in value:
        return dumper.represent_scalar("tag:yaml.org,2002:str", value, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", value)


_LiteralDumper.add_representer(str, _str_representer)


def build_export(catalog: RuleCatalog) -> RulesExport:
    rules = catalog.all()
    return RulesExport(
        metadata=ExportMetadata(
            export_timestamp=datetime.now(timezone.utc).isoformat(),
            total_rules=len(rules),
            format_version=FORMAT_VERSION,
        ),
        rules=rules,
    )


def dump_export(export: RulesExport) -> str:
    data = {
        "metadata": dataclasses.asdict(export.metadata),
        "rules": [_rule_to_dict(r) for r in export.rules],
    }
    return yaml.dump(data, Dumper=_LiteralDumper, sort_keys=False, allow_unicode=True)


def export_rules_to_yaml(catalog: RuleCatalog) -> str:
    """Serialize every rule in the catalog plus export metadata to YAML."""
    return dump_export(build_export(catalog))


def export_rules_to_file(catalog: RuleCatalog, file_path: str) -> str:
    content = export_rules_to_yaml(catalog)
    parent = os.path.dirname(file_path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(file_path, "w") as f:
        f.write(content)
    return f"Rules exported successfully to: {file_path}"


def parse_export(yaml_content: str) -> RulesExport:
    """Parse and validate a rules export document.

    Raises:
        ImportParseError: the document is not valid YAML or does not have the
            expected structure and types.
    """
    try:
        data = yaml.safe_load(yaml_content)
    except yaml.YAMLError as e:
        raise ImportParseError(f"YAML parsing error: {e}") from e

    if not isinstance(data, dict):
        raise ImportParseError("YAML parsing error: document must be a mapping")
    metadata = _parse_metadata(data.get("metadata"))

    raw_rules = data.get("rules")
    if raw_rules is None:
        raw_rules = []
    if not isinstance(raw_rules, list):
        raise ImportParseError("YAML parsing error: 'rules' must be a list")

    rules = [_parse_rule(entry, i) for i, entry in enumerate(raw_rules)]
    return RulesExport(metadata=metadata, rules=rules)


def import_rules_from_yaml(catalog: RuleCatalog, yaml_content: str, max_errors_shown: int = 5) -> ImportSummary:
    """Upsert every rule of the document into the catalog, keyed by id.

    A document that fails to parse raises before anything is written. A rule
    rejected by the catalog is recorded in the summary and the remaining rules
    are still imported.
    """
    export = parse_export(yaml_content)
    logger.info(
        "Importing %d rules from YAML (format v%s)",
        export.metadata.total_rules,
        export.metadata.format_version,
    )

    summary = ImportSummary(max_errors_shown=max_errors_shown)
    for rule in export.rules:
        try:
            is_new = catalog.upsert(rule)
        except CatalogError as e:
            logger.warning("Import of rule %s failed: %s", rule.code, e)
            summary.errors.append(f"Rule {rule.code}: {e}")
            continue
        if is_new:
            summary.new += 1
        else:
            summary.updated += 1
    return summary


def import_rules_from_file(catalog: RuleCatalog, file_path: str, max_errors_shown: int = 5) -> ImportSummary:
    if not os.path.isfile(file_path):
        raise FileNotFoundError(f"Rules file not found: {file_path}")
    logger.info("Reading rules from: %s", file_path)
    with open(file_path) as f:
        return import_rules_from_yaml(catalog, f.read(), max_errors_shown=max_errors_shown)


def _rule_to_dict(rule: Rule) -> dict:
    return {
        "id": rule.id,
        "name": rule.name,
        "code": rule.code,
        "enable": rule.enable,
        "warning_level": rule.warning_level,
        "error_level": rule.error_level,
        "scope": rule.scope,
        "description": rule.description,
        "message": rule.message,
        "fixes": [f for f in rule.fixes if f is not None],
        "q1": rule.q1,
        "q2": rule.q2,
        "q3": rule.q3,
        "q4": rule.q4,
    }


def _parse_metadata(raw) -> ExportMetadata:
    if not isinstance(raw, dict):
        raise ImportParseError("YAML parsing error: missing 'metadata' mapping")
    try:
        total = raw["total_rules"]
        version = raw["format_version"]
        timestamp = raw["export_timestamp"]
    except KeyError as e:
        raise ImportParseError(f"YAML parsing error: metadata: missing field {e}") from e
    if isinstance(total, bool) or not isinstance(total, int):
        raise ImportParseError("YAML parsing error: metadata.total_rules must be an integer")
    return ExportMetadata(
        export_timestamp=str(timestamp),
        total_rules=total,
        format_version=str(version),
    )


def _parse_rule(entry, index: int) -> Rule:
    where = f"rules[{index}]"
    if not isinstance(entry, dict):
        raise ImportParseError(f"YAML parsing error: {where}: expected a mapping")

    values = {}
    for name, expected in _REQUIRED_RULE_FIELDS.items():
        if name not in entry:
            raise ImportParseError(f"YAML parsing error: {where}: missing field '{name}'")
        value = entry[name]
        # bool is an int subclass; keep the two apart
        if expected is int and isinstance(value, bool) or not isinstance(value, expected):
            raise ImportParseError(
                f"YAML parsing error: {where}.{name}: expected {expected.__name__}, "
                f"got {type(value).__name__}"
            )
        values[name] = value

    fixes = entry.get("fixes", [])
    if fixes is None:
        fixes = []
    if not isinstance(fixes, list) or not all(f is None or isinstance(f, str) for f in fixes):
        raise ImportParseError(f"YAML parsing error: {where}.fixes: expected a list of strings")
    values["fixes"] = [f for f in fixes if f is not None]

    for name in _QUERY_FIELDS:
        value = entry.get(name)
        if value is not None and not isinstance(value, str):
            raise ImportParseError(
                f"YAML parsing error: {where}.{name}: expected string or null, "
                f"got {type(value).__name__}"
            )
        values[name] = value

    return Rule(**values)
