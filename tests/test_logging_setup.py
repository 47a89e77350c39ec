# tests/test_logging_setup.py

from __future__ import annotations

import logging

import pytest

from wbs_sync.logging_setup import _ConsoleNoiseFilter


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


@pytest.mark.parametrize(
    ("name", "level", "shown"),
    [
        ("wbs_sync", logging.DEBUG, True),
        ("wbs_sync.remote.client", logging.INFO, True),
        ("httpx", logging.INFO, False),
        ("httpcore.http11", logging.WARNING, True),
        ("py.warnings", logging.WARNING, False),
        ("asyncio", logging.ERROR, True),
        ("wbs_syncer", logging.INFO, False),
    ],
)
def test_console_filter(name: str, level: int, shown: bool) -> None:
    assert _ConsoleNoiseFilter().filter(_record(name, level)) is shown
