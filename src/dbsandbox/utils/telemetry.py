"""Structured telemetry events appended to a local JSONL log (opt-out)."""

from __future__ import annotations

import json
import os
import time
from importlib import resources
from typing import Any

import jsonschema

from dbsandbox.settings import RuntimeSettings

TELEMETRY_FILENAME = "telemetry.jsonl"

_DISABLE_VALUES = {"0", "false", "no", "off"}

_TELEMETRY_VALIDATOR: jsonschema.protocols.Validator | None = None


def telemetry_enabled() -> bool:
    value = os.getenv("DBBOX_TELEMETRY", "1").lower()
    return value not in _DISABLE_VALUES


def record_structured_event(
    settings: RuntimeSettings,
    event: str,
    *,
    payload: dict[str, Any] | None = None,
    level: str = "info",
    status: str | None = None,
    component: str | None = None,
    duration_ms: float | None = None,
) -> None:
    """Validate ``event`` against the packaged schema and append it to the log.

    Raises ``jsonschema.ValidationError`` for malformed records and ``OSError``
    when the log cannot be written.
    """
    if not telemetry_enabled():
        return
    record: dict[str, Any] = {
        "ts": time.time(),
        "event": event,
        "payload": payload or {},
        "level": level,
    }
    if status:
        record["status"] = status
    if component:
        record["component"] = component
    if duration_ms is not None:
        record["durationMs"] = duration_ms
    _telemetry_validator().validate(record)
    log_path = settings.log_dir / TELEMETRY_FILENAME
    log_path.parent.mkdir(parents=True, exist_ok=True)
    with log_path.open("a", encoding="utf-8") as fh:
        fh.write(json.dumps(record, ensure_ascii=False) + "\n")


def _telemetry_validator() -> jsonschema.protocols.Validator:  # pragma: no cover - trivial cache
    global _TELEMETRY_VALIDATOR
    if _TELEMETRY_VALIDATOR is not None:
        return _TELEMETRY_VALIDATOR
    schema_resource = resources.files("dbsandbox.resources") / "telemetry.schema.json"
    schema = json.loads(schema_resource.read_text(encoding="utf-8"))
    _TELEMETRY_VALIDATOR = jsonschema.Draft202012Validator(schema)
    return _TELEMETRY_VALIDATOR


__all__ = ["record_structured_event", "telemetry_enabled", "TELEMETRY_FILENAME"]
