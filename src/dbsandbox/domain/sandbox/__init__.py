"""Sandbox domain exports."""

from .value_objects import (
    SANDBOX_PATH_ENV,
    SANDBOX_USER_ENV,
    SandboxContext,
    resolve_sandbox,
)

__all__ = [
    "SANDBOX_PATH_ENV",
    "SANDBOX_USER_ENV",
    "SandboxContext",
    "resolve_sandbox",
]
