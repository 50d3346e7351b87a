#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
log_config.py

loguru の出力先をまとめて設定する。
ライブラリとして使うときは何もしない（loguru の既定のまま）。
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

_STDERR_FORMAT = "<level>{level: <7}</level> {message}"


def setup_logging(verbose: bool = False, log_file: Optional[Union[str, Path]] = None) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO", format=_STDERR_FORMAT)
    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            rotation="10 MB",
            retention="7 days",
            level="DEBUG",
            encoding="utf-8",
        )


__all__ = ["logger", "setup_logging"]
