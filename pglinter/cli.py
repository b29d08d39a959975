"""CLI entry point for pglinter."""

from __future__ import annotations

import argparse
import logging
import sys

from pglinter import __version__
from pglinter.exceptions import PglinterError
from pglinter.models import RuleScope, Severity

_SCOPE_CHOICES = [s.value.lower() for s in RuleScope] + ["all"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pglinter",
        description="Lint a PostgreSQL database against a catalog of configurable rules.",
    )
    parser.add_argument("--version", action="version", version=f"pglinter {__version__}")
    parser.add_argument("--config", help="Path to pglinter.yaml (default: ./pglinter.yaml or ~/pglinter.yaml)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # -- check --
    check_parser = subparsers.add_parser("check", help="Run the enabled rules and report findings")
    _add_connection_args(check_parser)
    _add_rules_file_arg(check_parser)
    check_parser.add_argument(
        "--scope",
        choices=_SCOPE_CHOICES,
        default="all",
        help="Rule scope to run (default: all)",
    )
    check_parser.add_argument("--output", "-o", help="Write a SARIF report to this file instead of the console summary")
    check_parser.add_argument("--exclude", help="Comma-separated rule codes to skip")
    check_parser.add_argument("--include-only", help="Comma-separated rule codes to run exclusively")
    check_parser.add_argument("--stop-on-error", action="store_true", help="Abort on the first rule that fails to execute")
    check_parser.add_argument(
        "--fail-on",
        choices=["warning", "error"],
        default=None,
        help="Exit with status 1 when a finding at or above this level is reported",
    )
    check_parser.add_argument("--verbose", "-v", action="store_true", help="Print progress")

    # -- read-only catalog commands --
    list_parser = subparsers.add_parser("list-rules", help="List all rules and their status")
    _add_connection_args(list_parser)
    _add_rules_file_arg(list_parser)

    for name, help_text in (
        ("explain", "Explain a rule and how to fix its findings"),
        ("show-queries", "Show the queries attached to a rule"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("code", help="Rule code (e.g. B001)")
        _add_connection_args(sub)
        _add_rules_file_arg(sub)

    # -- catalog updates --
    for name, help_text in (("enable", "Enable a rule"), ("disable", "Disable a rule")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("code", help="Rule code (e.g. B001)")
        _add_connection_args(sub)

    for name, help_text in (("enable-all", "Enable every rule"), ("disable-all", "Disable every rule")):
        _add_connection_args(subparsers.add_parser(name, help=help_text))

    levels_parser = subparsers.add_parser("set-levels", help="Change a rule's warning/error thresholds")
    levels_parser.add_argument("code", help="Rule code (e.g. B001)")
    levels_parser.add_argument("--warning", type=int, default=None, help="New warning threshold")
    levels_parser.add_argument("--error", type=int, default=None, help="New error threshold")
    _add_connection_args(levels_parser)

    export_parser = subparsers.add_parser("export", help="Export the rule catalog to YAML")
    export_parser.add_argument("--output", "-o", help="Output file (default: stdout)")
    _add_connection_args(export_parser)

    import_parser = subparsers.add_parser("import", help="Import rules from a YAML export")
    import_parser.add_argument("file", help="YAML file produced by 'pglinter export'")
    _add_connection_args(import_parser)

    init_parser = subparsers.add_parser("init", help="Create the rule catalog table")
    init_parser.add_argument("--load-defaults", action="store_true", help="Import the bundled default rules")
    _add_connection_args(init_parser)

    return parser


def _add_connection_args(parser: argparse.ArgumentParser):
    grp = parser.add_argument_group("connection")
    grp.add_argument("--dsn", help="PostgreSQL connection URI (postgres://...)")
    grp.add_argument("--host", "-H", default=None, help="Database host")
    grp.add_argument("--port", "-p", type=int, default=5432, help="Database port (default: 5432)")
    grp.add_argument("--dbname", "-d", default=None, help="Database name")
    grp.add_argument("--user", "-U", default=None, help="Database user")
    grp.add_argument("--password", "-W", default=None, help="Database password")


def _add_rules_file_arg(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--rules-file",
        help="Read rules from a YAML export instead of the pglinter.rules table",
    )


def main(argv: list[str] | None = None):
    parser = build_parser()
    raw_args = argv if argv is not None else sys.argv[1:]
    if not raw_args:
        parser.print_help()
        sys.exit(1)

    args = parser.parse_args(raw_args)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    handler = _COMMANDS[args.command]
    try:
        code = handler(args)
    except (PglinterError, FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(code or 0)


def _connect(args, readonly: bool = True):
    import psycopg2

    from pglinter.connection import connect

    try:
        return connect(
            host=args.host,
            port=args.port,
            dbname=args.dbname,
            user=args.user,
            password=args.password,
            dsn=args.dsn,
            readonly=readonly,
        )
    except psycopg2.OperationalError as e:
        error_msg = str(e).strip()
        print("Error: Could not connect to database.", file=sys.stderr)
        print(f"       {error_msg}", file=sys.stderr)
        if "no password supplied" in error_msg:
            print("\nHint: Use --password to provide a password, or set PGPASSWORD environment variable.", file=sys.stderr)
        elif "does not exist" in error_msg:
            print("\nHint: Check that the database name is correct.", file=sys.stderr)
        elif "Connection refused" in error_msg or "could not connect" in error_msg.lower():
            print(f"\nHint: Check that PostgreSQL is running on {args.host or 'localhost'}:{args.port or 5432}.", file=sys.stderr)
        sys.exit(1)


def _open_catalog(args, runner):
    from pglinter.catalog import MemoryRuleCatalog, PostgresRuleCatalog
    from pglinter.codec import import_rules_from_file

    rules_file = getattr(args, "rules_file", None)
    if rules_file:
        catalog = MemoryRuleCatalog()
        summary = import_rules_from_file(catalog, rules_file)
        if summary.errors:
            raise PglinterError(summary.message)
        return catalog
    return PostgresRuleCatalog(runner)


def _with_catalog(readonly: bool, needs_db: bool = True):
    """Open a connection and catalog, run the command, close the connection."""

    def decorator(func):
        def wrapper(args):
            from pglinter.connection import QueryRunner

            if not needs_db and getattr(args, "rules_file", None):
                return func(args, None, _open_catalog(args, None))

            conn = _connect(args, readonly=readonly)
            try:
                runner = QueryRunner(conn)
                return func(args, runner, _open_catalog(args, runner))
            finally:
                conn.close()

        return wrapper

    return decorator


def _split_codes(value: str | None) -> set[str] | None:
    if value is None:
        return None
    return {c.strip() for c in value.split(",") if c.strip()}


@_with_catalog(readonly=True)
def _cmd_check(args, runner, catalog) -> int:
    from pglinter.config import load_config, merge_cli_with_config
    from pglinter.connection import get_pg_version
    from pglinter.engine import run_checks
    from pglinter.reporters import console_reporter, sarif_reporter

    scope = None if args.scope == "all" else args.scope.upper()
    config = load_config(args.config)
    check_cfg, report_cfg, engine_cfg = merge_cli_with_config(
        config,
        scope,
        cli_exclude=_split_codes(args.exclude),
        cli_include_only=_split_codes(args.include_only),
        cli_stop_on_error=args.stop_on_error,
        cli_fail_on=args.fail_on,
    )

    report = run_checks(
        runner,
        catalog,
        scope=scope,
        database=args.dbname or runner.conn.info.dbname,
        verbose=args.verbose,
        exclude=check_cfg.exclude,
        include_only=check_cfg.include_only,
        stop_on_error=engine_cfg.stop_on_error,
        pg_version=get_pg_version(runner),
    )

    if args.output:
        path = sarif_reporter.write(report.findings, args.output)
        print(f"Report written to {path}", file=sys.stderr)
    else:
        print(console_reporter.render(report.findings))

    return _exit_status(report, report_cfg)


def _exit_status(report, report_cfg) -> int:
    from pglinter.engine import report_rule_errors

    if report_rule_errors(report, report_cfg.max_errors_shown):
        return 1

    if report_cfg.fail_on:
        threshold = Severity(report_cfg.fail_on)
        if any(not threshold < f.level for f in report.findings):
            return 1
    return 0


@_with_catalog(readonly=True, needs_db=False)
def _cmd_list_rules(args, runner, catalog) -> int:
    from pglinter.manage import show_rule_status

    print(show_rule_status(catalog))
    return 0


@_with_catalog(readonly=True, needs_db=False)
def _cmd_explain(args, runner, catalog) -> int:
    from pglinter.manage import explain_rule

    print(explain_rule(catalog, args.code))
    return 0


@_with_catalog(readonly=True, needs_db=False)
def _cmd_show_queries(args, runner, catalog) -> int:
    from pglinter.manage import show_rule_queries

    print(show_rule_queries(catalog, args.code))
    return 0


@_with_catalog(readonly=False)
def _cmd_enable(args, runner, catalog) -> int:
    from pglinter.manage import enable_rule

    if not enable_rule(catalog, args.code):
        print(f"Rule {args.code} not found", file=sys.stderr)
        return 1
    print(f"Rule {args.code} has been enabled")
    return 0


@_with_catalog(readonly=False)
def _cmd_disable(args, runner, catalog) -> int:
    from pglinter.manage import disable_rule

    if not disable_rule(catalog, args.code):
        print(f"Rule {args.code} not found", file=sys.stderr)
        return 1
    print(f"Rule {args.code} has been disabled")
    return 0


@_with_catalog(readonly=False)
def _cmd_enable_all(args, runner, catalog) -> int:
    from pglinter.manage import enable_all_rules

    count = enable_all_rules(catalog)
    print(f"Enabled {count} rule(s)" if count else "All rules were already enabled")
    return 0


@_with_catalog(readonly=False)
def _cmd_disable_all(args, runner, catalog) -> int:
    from pglinter.manage import disable_all_rules

    count = disable_all_rules(catalog)
    print(f"Disabled {count} rule(s)" if count else "All rules were already disabled")
    return 0


@_with_catalog(readonly=False)
def _cmd_set_levels(args, runner, catalog) -> int:
    from pglinter.manage import get_rule_levels, update_rule_levels

    if not update_rule_levels(catalog, args.code, args.warning, args.error):
        print(f"Rule {args.code} not found", file=sys.stderr)
        return 1
    warning, error = get_rule_levels(catalog, args.code)
    print(f"warning_level={warning}, error_level={error}")
    return 0


@_with_catalog(readonly=True)
def _cmd_export(args, runner, catalog) -> int:
    from pglinter.codec import export_rules_to_file, export_rules_to_yaml

    if args.output:
        print(export_rules_to_file(catalog, args.output), file=sys.stderr)
    else:
        sys.stdout.write(export_rules_to_yaml(catalog))
    return 0


@_with_catalog(readonly=False)
def _cmd_import(args, runner, catalog) -> int:
    from pglinter.codec import import_rules_from_file

    summary = import_rules_from_file(catalog, args.file)
    print(summary.message)
    return 1 if summary.errors else 0


@_with_catalog(readonly=False)
def _cmd_init(args, runner, catalog) -> int:
    from pglinter.catalog import DEFAULT_RULES_FILE, install_catalog
    from pglinter.codec import import_rules_from_file

    install_catalog(runner)
    print("Rule catalog ready: pglinter.rules")
    if args.load_defaults:
        summary = import_rules_from_file(catalog, str(DEFAULT_RULES_FILE))
        print(summary.message)
        return 1 if summary.errors else 0
    return 0


_COMMANDS = {
    "check": _cmd_check,
    "list-rules": _cmd_list_rules,
    "explain": _cmd_explain,
    "show-queries": _cmd_show_queries,
    "enable": _cmd_enable,
    "disable": _cmd_disable,
    "enable-all": _cmd_enable_all,
    "disable-all": _cmd_disable_all,
    "set-levels": _cmd_set_levels,
    "export": _cmd_export,
    "import": _cmd_import,
    "init": _cmd_init,
}
