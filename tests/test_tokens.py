#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2025-12-15 19:02:51 krylon>
#
# /data/code/python/tidings/tests/test_tokens.py
# created on 03. 12. 2025
# (c) 2025 Benjamin Walkenhorst
#
# This file is part of the tidings feed reader. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
tidings.test_tokens

(c) 2025 Benjamin Walkenhorst
"""

import unittest
from dataclasses import dataclass
from typing import Any, Callable, Final

from tidings import tokens
from tidings.common import TidingsError
from tidings.model import EntryStatus


@dataclass(slots=True)
class TokenTestCase:
    """A value to check, and what we expect to get back."""

    fn: Callable[[Any], Any]
    val: Any
    res: Any = None
    err: bool = False


class TestTokens(unittest.TestCase):
    """Test checking the values that end up in query text."""

    def test_01_check(self) -> None:
        """Accept what is on the list, reject everything else."""
        cases: Final[list[TokenTestCase]] = [
            TokenTestCase(tokens.sort_column, "id", "id"),
            TokenTestCase(tokens.sort_column, "published_at", "published_at"),
            TokenTestCase(tokens.sort_column, "status", "status"),
            TokenTestCase(tokens.sort_column, "", ""),
            TokenTestCase(tokens.sort_column, None, ""),
            TokenTestCase(tokens.sort_column, "title", err=True),
            TokenTestCase(tokens.sort_column, "id; DROP TABLE entries", err=True),
            TokenTestCase(tokens.direction, "ASC", "ASC"),
            TokenTestCase(tokens.direction, "desc", "DESC"),
            TokenTestCase(tokens.direction, "", ""),
            TokenTestCase(tokens.direction, "up", err=True),
            TokenTestCase(tokens.status, "unread", "unread"),
            TokenTestCase(tokens.status, EntryStatus.Removed, "removed"),
            TokenTestCase(tokens.status, "", ""),
            TokenTestCase(tokens.status, "UNREAD", err=True),
            TokenTestCase(tokens.status, "starred", err=True),
            TokenTestCase(tokens.operator, "<=", "<="),
            TokenTestCase(tokens.operator, "<>", "<>"),
            TokenTestCase(tokens.operator, "LIKE", err=True),
            TokenTestCase(tokens.operator, "= 1 OR 1 =", err=True),
            TokenTestCase(tokens.column, "e.feed_id", "e.feed_id"),
            TokenTestCase(tokens.column, "status", "status"),
            TokenTestCase(tokens.column, "e.id)", err=True),
            TokenTestCase(tokens.column, "E.ID", err=True),
            TokenTestCase(tokens.column, 42, err=True),
            TokenTestCase(tokens.count, 0, 0),
            TokenTestCase(tokens.count, 100, 100),
            TokenTestCase(tokens.count, -1, err=True),
            TokenTestCase(tokens.count, True, err=True),
            TokenTestCase(tokens.count, 1.5, err=True),
            TokenTestCase(tokens.count, "10", err=True),
            TokenTestCase(tokens.timezone, "Europe/Paris", "Europe/Paris"),
            TokenTestCase(tokens.timezone, "UTC", "UTC"),
            TokenTestCase(tokens.timezone, "", "UTC"),
            TokenTestCase(tokens.timezone, None, "UTC"),
            TokenTestCase(tokens.timezone, "Europe/Paris'; --", "UTC"),
        ]

        for c, i in zip(cases, range(len(cases))):
            with self.subTest(i=i, val=c.val):
                if c.err:
                    with self.assertRaises(tokens.InvalidTokenError):
                        _ = c.fn(c.val)
                else:
                    self.assertEqual(c.fn(c.val), c.res)

    def test_02_error_types(self) -> None:
        """InvalidTokenError can be caught as a ValueError or as one of ours."""
        with self.assertRaises(ValueError):
            tokens.direction("sideways")
        with self.assertRaises(TidingsError):
            tokens.sort_column("url")

    def test_03_is_valid_timezone(self) -> None:
        """Check time zone names without a fallback."""
        self.assertTrue(tokens.is_valid_timezone("America/New_York"))
        self.assertFalse(tokens.is_valid_timezone("Atlantis/Capital"))
        self.assertFalse(tokens.is_valid_timezone(""))

    def test_04_wrong_types(self) -> None:
        """Values that are not strings are rejected as invalid tokens."""
        cases: Final[list[TokenTestCase]] = [
            TokenTestCase(tokens.sort_column, 3, err=True),
            TokenTestCase(tokens.sort_column, ["id"], err=True),
            TokenTestCase(tokens.direction, 1, err=True),
            TokenTestCase(tokens.direction, b"ASC", err=True),
            TokenTestCase(tokens.status, ["unread"], err=True),
            TokenTestCase(tokens.status, {"unread": 1}, err=True),
            TokenTestCase(tokens.status, None, ""),
            TokenTestCase(tokens.operator, ["="], err=True),
            TokenTestCase(tokens.timezone, ["UTC"], "UTC"),
        ]

        for c, i in zip(cases, range(len(cases))):
            with self.subTest(i=i, val=c.val):
                if c.err:
                    with self.assertRaises(tokens.InvalidTokenError):
                        _ = c.fn(c.val)
                else:
                    self.assertEqual(c.fn(c.val), c.res)
        self.assertFalse(tokens.is_valid_timezone({"UTC"}))  # type: ignore

# Local Variables: #
# python-indent: 4 #
# End: #
