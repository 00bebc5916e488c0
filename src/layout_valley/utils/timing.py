from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager

from layout_valley.utils.logger import PACKAGE_LOGGER


@contextmanager
def trace(name: str, logger: logging.Logger | None = None) -> Iterator[None]:
    """ブロックの経過時間をログに出す"""
    log = logger or logging.getLogger(PACKAGE_LOGGER)
    t0 = time.perf_counter()
    log.info("[%s] start", name)
    try:
        yield
    finally:
        log.info("[%s] done in %.2fs", name, time.perf_counter() - t0)
