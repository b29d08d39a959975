"""pglinter: data-driven schema linter for PostgreSQL."""

__version__ = "0.1.0"
