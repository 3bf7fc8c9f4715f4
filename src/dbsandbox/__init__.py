"""Local sandbox dispatcher for the database-backed service."""

__version__ = "0.3.0"

__all__ = ["__version__"]
