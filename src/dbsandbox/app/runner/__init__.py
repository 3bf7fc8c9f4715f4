"""Subcommands delegated to the project's build/test runner."""

from .service import RunnerService  # noqa: F401

__all__ = ["RunnerService"]
