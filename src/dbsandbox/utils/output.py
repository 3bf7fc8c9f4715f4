"""Leveled console diagnostics for dbbox."""

from __future__ import annotations

import sys
from typing import TextIO

PROGRAM = "dbbox"
LEVELS = ("debug", "info", "warn", "error")


class OutputChannel:
    """Writes ``dbbox: <level>: <message>`` lines to stderr or stdout.

    Debug lines are dropped unless verbose mode has been switched on, which the
    parser does as soon as it sees ``-v``.
    """

    def __init__(self, verbose: bool = False, out: TextIO | None = None, err: TextIO | None = None) -> None:
        self.verbose = verbose
        self._out = out
        self._err = err

    def _stream(self, name: str) -> TextIO:
        if name == "out":
            return self._out or sys.stdout
        if name == "err":
            return self._err or sys.stderr
        raise ValueError(f"Unknown output stream '{name}'")

    def log(self, level: str, message: str, *, stream: str = "err") -> None:
        if level not in LEVELS:
            raise ValueError(f"Unknown output level '{level}'")
        if level == "debug" and not self.verbose:
            return
        print(f"{PROGRAM}: {level}: {message}", file=self._stream(stream))

    def debug(self, message: str, *, stream: str = "err") -> None:
        self.log("debug", message, stream=stream)

    def info(self, message: str, *, stream: str = "err") -> None:
        self.log("info", message, stream=stream)

    def warn(self, message: str, *, stream: str = "err") -> None:
        self.log("warn", message, stream=stream)

    def error(self, message: str, *, stream: str = "err") -> None:
        self.log("error", message, stream=stream)

    def echo(self, text: str, *, stream: str = "out") -> None:
        print(text, file=self._stream(stream))


__all__ = ["OutputChannel", "LEVELS", "PROGRAM"]
