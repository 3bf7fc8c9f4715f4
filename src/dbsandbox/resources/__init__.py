"""Packaged resources (telemetry schema)."""
