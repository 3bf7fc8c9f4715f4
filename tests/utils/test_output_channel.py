from __future__ import annotations

import io

import pytest

from dbsandbox.utils.output import OutputChannel


def test_levels_and_streams() -> None:
    out, err = io.StringIO(), io.StringIO()
    channel = OutputChannel(out=out, err=err)
    channel.info("hello")
    channel.warn("careful", stream="out")
    channel.debug("hidden")
    channel.echo("raw text")
    assert err.getvalue() == "dbbox: info: hello\n"
    assert out.getvalue() == "dbbox: warn: careful\nraw text\n"


def test_debug_echo_when_verbose() -> None:
    err = io.StringIO()
    channel = OutputChannel(verbose=True, err=err)
    channel.debug("shown")
    assert err.getvalue() == "dbbox: debug: shown\n"


def test_unknown_stream_rejected() -> None:
    with pytest.raises(ValueError):
        OutputChannel().error("x", stream="log")
