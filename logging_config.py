from __future__ import annotations

import logging
import sys
from typing import Iterable, Optional, Union


def _configure_handler(formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    return handler


def setup_logging(level: Union[int, str] = logging.INFO, extra_loggers: Optional[Iterable[str]] = None) -> None:
    """Configure root logging for the API.

    Format: [2025-01-01 10:00:00] [INFO] [module:function:line] message

    Safe to call more than once: root handlers are cleared and rebuilt.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    formatter = logging.Formatter(
        fmt="[%(asctime)s] [%(levelname)s] [%(name)s:%(funcName)s:%(lineno)d] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(_configure_handler(formatter))

    names = [
        "storage",
        "routes",
        "open_charge_map",
        "auth",
    ]
    if extra_loggers:
        names.extend(extra_loggers)
    for name in names:
        lg = logging.getLogger(name)
        lg.setLevel(level)
        lg.propagate = True


__all__ = ["setup_logging"]
