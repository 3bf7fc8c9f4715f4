"""Sandbox lifecycle subcommands."""

from .service import SandboxService  # noqa: F401

__all__ = ["SandboxService"]
