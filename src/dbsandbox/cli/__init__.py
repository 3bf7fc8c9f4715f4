"""Command-line entry points for dbbox."""
