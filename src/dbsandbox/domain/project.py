"""Project variant detection from the working directory's descriptor."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from dbsandbox.domain.errors import WorkingDirectoryMismatchError

PROJECT_DESCRIPTOR = "project.clj"
OPEN_MARKER = "(defproject puppetlabs/puppetdb"
ENTERPRISE_MARKER = "(defproject puppetlabs/pe-puppetdb"


class ProjectVariant(str, Enum):
    OPEN = "open"
    ENTERPRISE = "enterprise"
    UNKNOWN = "unknown"

    @property
    def known(self) -> bool:
        return self is not ProjectVariant.UNKNOWN


def detect_variant(root: Path) -> ProjectVariant:
    descriptor = root / PROJECT_DESCRIPTOR
    try:
        text = descriptor.read_text(encoding="utf-8", errors="ignore")
    except OSError:
        return ProjectVariant.UNKNOWN
    if ENTERPRISE_MARKER in text:
        return ProjectVariant.ENTERPRISE
    if OPEN_MARKER in text:
        return ProjectVariant.OPEN
    return ProjectVariant.UNKNOWN


@dataclass(frozen=True)
class ProjectDetector:
    """Gatekeeper used by subcommands that only make sense inside a checkout."""

    root: Path

    @property
    def descriptor_path(self) -> Path:
        return self.root / PROJECT_DESCRIPTOR

    def detect(self) -> ProjectVariant:
        return detect_variant(self.root)

    def require_known(self) -> ProjectVariant:
        variant = self.detect()
        if not variant.known:
            raise WorkingDirectoryMismatchError(
                f"{self.descriptor_path} does not describe a puppetdb or pe-puppetdb project"
            )
        return variant

    def require_open(self) -> ProjectVariant:
        return self._require(ProjectVariant.OPEN)

    def require_enterprise(self) -> ProjectVariant:
        return self._require(ProjectVariant.ENTERPRISE)

    def _require(self, expected: ProjectVariant) -> ProjectVariant:
        variant = self.detect()
        if variant is not expected:
            raise WorkingDirectoryMismatchError(
                f"{self.descriptor_path} is not a {expected.value} project (detected: {variant.value})"
            )
        return variant


__all__ = [
    "PROJECT_DESCRIPTOR",
    "OPEN_MARKER",
    "ENTERPRISE_MARKER",
    "ProjectVariant",
    "ProjectDetector",
    "detect_variant",
]
