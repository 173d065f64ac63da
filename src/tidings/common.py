#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2025-12-06 17:02:11 krylon>
#
# /data/code/python/tidings/src/tidings/common.py
# created on 30. 09. 2025
# (c) 2025 Benjamin Walkenhorst
#
# This file is part of the tidings feed reader. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
tidings.common

(c) 2025 Benjamin Walkenhorst

Constants, paths and helpers shared by all parts of the application.
"""


import logging
import logging.handlers
import os
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Final, Iterator, Optional, Union
from zoneinfo import ZoneInfo

AppName: Final[str] = "Tidings"
AppVersion: Final[str] = "0.3.1"
Debug: bool = True
TimeFmt: Final[str] = "%Y-%m-%d %H:%M:%S"
LogFmt: Final[str] = \
    "%(asctime)s (%(name)-16s / line %(lineno)-4d) - %(levelname)-8s %(message)s"


class TidingsError(Exception):
    """Base class for application-specific exceptions."""


class Paths:
    """Paths holds the locations of the files and directories we use."""

    __slots__ = ["__base"]

    __base: Path

    def __init__(self, base: Union[str, Path]) -> None:
        self.__base = Path(base).expanduser()

    def base(self, path: Optional[Union[str, Path]] = None) -> Path:
        """Get or set the base directory."""
        if path is not None:
            self.__base = Path(path).expanduser()
        return self.__base

    @property
    def db(self) -> Path:
        """Return the path of the SQLite database."""
        return self.__base.joinpath(f"{AppName.lower()}.db")

    @property
    def log(self) -> Path:
        """Return the path of the log file."""
        return self.__base.joinpath(f"{AppName.lower()}.log")

    @property
    def secret(self) -> Path:
        """Return the path of the file holding the cookie secret."""
        return self.__base.joinpath("secret")


path: Paths = Paths(os.environ.get(f"{AppName.upper()}_BASEDIR",
                                   os.path.expanduser(f"~/.{AppName.lower()}")))

_lock: Final[Lock] = Lock()  # pylint: disable-msg=C0103
_cache: Final[dict[str, logging.Logger]] = {}  # pylint: disable-msg=C0103


def set_basedir(folder: Union[str, Path]) -> None:
    """Set the base dir to the specified path."""
    with _lock:
        path.base(folder)
        init_app()
        # Loggers created earlier still write to the old log file.
        _cache.clear()


def init_app() -> None:
    """Initialize the application environment"""
    base: Final[Path] = path.base()
    if not base.is_dir():
        base.mkdir(parents=True, exist_ok=True)


def get_logger(name: str, terminal: bool = True) -> logging.Logger:
    """Create and return a logger with the given name"""
    with _lock:
        if name in _cache:
            return _cache[name]

        init_app()

        log_format = logging.Formatter(LogFmt)
        max_log_size = 256 * 2**20
        max_log_count = 4

        log_obj = logging.getLogger(name)
        log_obj.setLevel(logging.DEBUG)
        log_obj.propagate = False
        for h in list(log_obj.handlers):
            log_obj.removeHandler(h)
            h.close()

        log_file_handler = logging.handlers.RotatingFileHandler(path.log,
                                                                'a',
                                                                max_log_size,
                                                                max_log_count)
        log_file_handler.setFormatter(log_format)
        log_obj.addHandler(log_file_handler)

        if terminal:
            log_console_handler = logging.StreamHandler()
            log_console_handler.setFormatter(log_format)
            log_console_handler.setLevel(logging.DEBUG if Debug else logging.INFO)
            log_obj.addHandler(log_console_handler)

        _cache[name] = log_obj
        return log_obj


@contextmanager
def execution_time(log: logging.Logger, label: str) -> Iterator[None]:
    """Log how long the body of the with-statement took to execute."""
    t1: Final[float] = time.perf_counter()
    try:
        yield
    finally:
        elapsed: float = time.perf_counter() - t1
        log.debug("%s took %.3f ms", label, elapsed * 1000)


def to_datetime(value: Union[None, int, float, str, datetime],
                tz: Union[str, ZoneInfo] = "UTC") -> Optional[datetime]:
    """Turn a timestamp as returned by the database into an aware datetime.

    SQLite hands us Unix timestamps or ISO 8601 strings, PostgreSQL hands us
    datetime objects, which may be naive if they went through AT TIME ZONE.
    In that case, the naive value is taken to be local time in <tz>.
    """
    zone: Final[ZoneInfo] = tz if isinstance(tz, ZoneInfo) else ZoneInfo(tz)
    match value:
        case None:
            return None
        case bool():
            raise TypeError("A bool is not a timestamp")
        case int() | float():
            return datetime.fromtimestamp(value, zone)
        case str():
            stamp = datetime.fromisoformat(value)
        case datetime():
            stamp = value
        case _:
            raise TypeError(f"Cannot convert {value.__class__.__name__} to datetime")

    if stamp.tzinfo is None:
        return stamp.replace(tzinfo=zone)
    return stamp.astimezone(zone)


def utc_now() -> datetime:
    """Return the current time as an aware datetime in UTC."""
    return datetime.now(timezone.utc)

# Local Variables: #
# python-indent: 4 #
# End: #
