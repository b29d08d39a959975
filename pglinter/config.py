"""Configuration loading and management for pglinter."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from pglinter.models import RuleScope

CONFIG_FILENAME = "pglinter.yaml"


@dataclass
class CheckConfig:
    """Configuration for which rules to include/exclude."""

    exclude: set[str] = field(default_factory=set)
    include_only: set[str] | None = None  # None = no whitelist, run all minus exclude


@dataclass
class ReportConfig:
    """Configuration for report output and exit status."""

    fail_on: str | None = None  # "warning" or "error"; None = findings never fail the run
    max_errors_shown: int = 5


@dataclass
class EngineConfig:
    stop_on_error: bool = False


@dataclass
class Config:
    """Complete configuration for pglinter."""

    global_checks: CheckConfig = field(default_factory=CheckConfig)
    scope_checks: dict[str, CheckConfig] = field(default_factory=dict)
    report: ReportConfig = field(default_factory=ReportConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)

    def get_check_config(self, scope: str | None) -> CheckConfig:
        """Get merged check config for a specific scope.

        Scope-specific settings are merged with global settings:
        - exclude: union of global and scope-specific excludes
        - include_only: scope-specific overrides global if set
        """
        global_cfg = self.global_checks
        scope_cfg = self.scope_checks.get((scope or "").upper(), CheckConfig())

        merged_exclude = global_cfg.exclude | scope_cfg.exclude
        merged_include_only = (
            scope_cfg.include_only if scope_cfg.include_only is not None else global_cfg.include_only
        )

        return CheckConfig(exclude=merged_exclude, include_only=merged_include_only)


def find_config_file() -> str | None:
    """Search for pglinter.yaml in cwd, then home dir.

    Returns:
        Path to config file if found, None otherwise.
    """
    cwd_config = Path.cwd() / CONFIG_FILENAME
    if cwd_config.is_file():
        return str(cwd_config)

    home_config = Path.home() / CONFIG_FILENAME
    if home_config.is_file():
        return str(home_config)

    return None


def load_config(config_path: str | None = None, auto_discover: bool = True) -> Config:
    """Load configuration from YAML file.

    Args:
        config_path: Explicit path to config file. If None and auto_discover is True,
                     searches default locations.
        auto_discover: If True and config_path is None, search for config file.

    Returns:
        Config object. Returns default config if no file found.
    """
    if config_path is None and auto_discover:
        config_path = find_config_file()

    if config_path is None:
        return Config()

    if not os.path.isfile(config_path):
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    return _parse_config(data)


def _parse_config(data: dict) -> Config:
    """Parse YAML data into Config object."""
    config = Config()

    if "checks" in data:
        config.global_checks = _parse_check_config(data["checks"])

    # Scope sections are keyed by lower-case scope name: base, cluster, table, schema
    for scope in RuleScope:
        section = data.get(scope.value.lower())
        if section and "checks" in section:
            config.scope_checks[scope.value] = _parse_check_config(section["checks"])

    if "report" in data:
        report_data = data["report"]
        fail_on = report_data.get("fail_on")
        if fail_on is not None and fail_on not in ("warning", "error"):
            raise ValueError(f"report.fail_on must be 'warning' or 'error', got {fail_on!r}")
        config.report = ReportConfig(
            fail_on=fail_on,
            max_errors_shown=int(report_data.get("max_errors_shown", 5)),
        )

    if "engine" in data:
        config.engine = EngineConfig(
            stop_on_error=bool(data["engine"].get("stop_on_error", False)),
        )

    return config


def _parse_check_config(data: dict) -> CheckConfig:
    """Parse check configuration section."""
    exclude = {str(c).upper() for c in data.get("exclude") or []}

    include_only = None
    if "include_only" in data:
        include_only = {str(c).upper() for c in data["include_only"] or []}

    return CheckConfig(exclude=exclude, include_only=include_only)


def merge_cli_with_config(
    config: Config,
    scope: str | None,
    cli_exclude: set[str] | None = None,
    cli_include_only: set[str] | None = None,
    cli_stop_on_error: bool = False,
    cli_fail_on: str | None = None,
) -> tuple[CheckConfig, ReportConfig, EngineConfig]:
    """Merge CLI arguments with config file settings.

    CLI arguments take precedence over config file.

    Args:
        config: Loaded configuration.
        scope: Scope being checked (None for all scopes).
        cli_exclude: Rules to exclude (from --exclude flag).
        cli_include_only: Rules to include only (from --include-only flag).
        cli_stop_on_error: Abort on the first failing rule (from --stop-on-error).
        cli_fail_on: Lowest finding level that fails the run (from --fail-on).

    Returns:
        Tuple of (CheckConfig, ReportConfig, EngineConfig) with merged settings.
    """
    check_cfg = config.get_check_config(scope)

    # CLI exclude adds to config exclude
    if cli_exclude:
        check_cfg = CheckConfig(
            exclude=check_cfg.exclude | {c.upper() for c in cli_exclude},
            include_only=check_cfg.include_only,
        )

    # CLI include_only completely overrides config
    if cli_include_only is not None:
        check_cfg = CheckConfig(
            exclude=check_cfg.exclude,
            include_only={c.upper() for c in cli_include_only},
        )

    report_cfg = ReportConfig(
        fail_on=cli_fail_on or config.report.fail_on,
        max_errors_shown=config.report.max_errors_shown,
    )
    engine_cfg = EngineConfig(stop_on_error=cli_stop_on_error or config.engine.stop_on_error)

    return check_cfg, report_cfg, engine_cfg
