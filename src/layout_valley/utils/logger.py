from __future__ import annotations

import logging
import time
from logging import FileHandler, StreamHandler
from pathlib import Path

PACKAGE_LOGGER = "layout_valley"


def enable_child_loggers(name: str) -> None:
    """logging.config.dictConfig(disable_existing_loggers=True) で無効化された配下のロガーを戻す"""
    logging.getLogger(name).disabled = False
    for child_name, child in list(logging.root.manager.loggerDict.items()):
        if child_name.startswith(f"{name}.") and isinstance(child, logging.Logger):
            child.disabled = False


def get_logger(name: str, log_dir: Path | str | None = None) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    enable_child_loggers(name)

    if logger.handlers:
        return logger

    stream_handler = StreamHandler()
    stream_handler.setLevel(logging.INFO)
    logger.addHandler(stream_handler)

    if log_dir is not None:
        log_dir_path = Path(log_dir)
        log_dir_path.mkdir(parents=True, exist_ok=True)
        log_file = log_dir_path / f"{time.strftime('%Y%m%d_%H%M%S')}.log"

        file_handler = FileHandler(log_file)
        file_handler.setLevel(logging.INFO)
        formatter = logging.Formatter("[%(asctime)s : %(levelname)s - %(filename)s] %(message)s")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger
