#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2025-12-07 11:18:52 krylon>
#
# /data/code/python/tidings/src/tidings/tokens.py
# created on 02. 12. 2025
# (c) 2025 Benjamin Walkenhorst
#
# This file is part of the tidings feed reader. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
tidings.tokens

(c) 2025 Benjamin Walkenhorst

Everything that ends up in the text of an SQL query, rather than being passed
as a parameter, has to go through one of the functions in this module.
Column names, sort directions and time zones are checked against a fixed list,
numbers are checked to actually be non-negative integers.
"""


import re
from functools import cache
from typing import Final, Optional, Union
from zoneinfo import available_timezones

from tidings.common import TidingsError
from tidings.model import EntryStatus


class InvalidTokenError(TidingsError, ValueError):
    """InvalidTokenError means a value was rejected before it could reach SQL text."""


SortColumns: Final[frozenset[str]] = frozenset({"id", "published_at", "status"})
Directions: Final[frozenset[str]] = frozenset({"ASC", "DESC"})
Statuses: Final[frozenset[str]] = frozenset(s.value for s in EntryStatus)
Operators: Final[frozenset[str]] = frozenset({"=", "<>", "!=", "<", "<=", ">", ">="})
DefaultTimezone: Final[str] = "UTC"

column_pat: Final[re.Pattern] = re.compile(r"^(?:[a-z]{1,2}\.)?[a-z_][a-z0-9_]*$")


@cache
def known_timezones() -> frozenset[str]:
    """Return the names of all time zones the system knows about."""
    return frozenset(available_timezones()) | {DefaultTimezone}


def _text(value, what: str) -> str:
    """Make sure <value> is a string, None counts as an empty one."""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvalidTokenError(f"{what} must be a string, not {value.__class__.__name__}")
    return value


def sort_column(name: Optional[str]) -> str:
    """Check that <name> is a column Entries may be sorted by.

    An empty string or None means no particular order and is returned as "".
    """
    if not _text(name, "Sort column"):
        return ""
    if name not in SortColumns:
        raise InvalidTokenError(f"Invalid sort column '{name}'")
    return name


def direction(name: Optional[str]) -> str:
    """Check and normalize a sort direction. Empty means unspecified."""
    norm: Final[str] = _text(name, "Sort direction").upper()
    if not norm:
        return ""
    if norm not in Directions:
        raise InvalidTokenError(f"Invalid sort direction '{name}'")
    return norm


def status(value: Union[None, str, EntryStatus]) -> str:
    """Check an Entry status. Empty means any status."""
    if isinstance(value, EntryStatus):
        return value.value
    if not _text(value, "Entry status"):
        return ""
    if value not in Statuses:
        raise InvalidTokenError(f"Invalid entry status '{value}'")
    return value


def operator(op: str) -> str:
    """Check a comparison operator."""
    if _text(op, "Operator") not in Operators:
        raise InvalidTokenError(f"Invalid operator '{op}'")
    return op


def column(name: str) -> str:
    """Check that <name> looks like a plain, optionally qualified column name."""
    if not isinstance(name, str) or column_pat.match(name) is None:
        raise InvalidTokenError(f"Invalid column name '{name}'")
    return name


def count(value: int, label: str = "value") -> int:
    """Check that <value> is a non-negative integer."""
    # bool is a subclass of int, but True is not a sensible LIMIT.
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidTokenError(f"{label} must be an integer, not {value.__class__.__name__}")
    if value < 0:
        raise InvalidTokenError(f"{label} must not be negative: {value}")
    return value


def timezone(name: Optional[str]) -> str:
    """Return <name> if it is a known time zone, otherwise UTC.

    This never fails, since a User with a broken time zone setting should
    still be able to read their news.
    """
    if isinstance(name, str) and name in known_timezones():
        return name
    return DefaultTimezone


def is_valid_timezone(name: Optional[str]) -> bool:
    """Return True if <name> is a known time zone."""
    return isinstance(name, str) and name in known_timezones()

# Local Variables: #
# python-indent: 4 #
# End: #
