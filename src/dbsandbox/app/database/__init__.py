"""Database provisioning subcommands."""

from .service import DatabaseService, SqlStep  # noqa: F401

__all__ = ["DatabaseService", "SqlStep"]
