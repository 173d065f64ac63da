#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2025-12-15 17:40:12 krylon>
#
# /data/code/python/tidings/tests/test_query.py
# created on 08. 12. 2025
# (c) 2025 Benjamin Walkenhorst
#
# This file is part of the tidings feed reader. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
tidings.test_query

(c) 2025 Benjamin Walkenhorst

Check the queries EntryQueryBuilder generates, without running them.
"""

import itertools
import os
import re
import shutil
import sqlite3
import unittest
from datetime import datetime
from typing import Any, Final

from tidings import common
from tidings.database import DatabaseError, PostgresDialect, Rows, SQLiteDialect
from tidings.model import EntryStatus
from tidings.query import Conditions, EntryQueryBuilder, build_sorting
from tidings.tokens import InvalidTokenError

test_dir: Final[str] = os.path.join(
    "/tmp",
    datetime.now().strftime("tidings_test_query_%Y%m%d_%H%M%S"))

placeholder_pat: Final[re.Pattern] = re.compile(r"\$(\d+)")


class FakeStore:
    """FakeStore has just enough of a Database to build queries."""

    def __init__(self, dialect=None) -> None:
        self.dialect = dialect if dialect is not None else PostgresDialect()


class ScriptedCursor:
    """ScriptedCursor hands out prepared rows. Exceptions are raised instead of returned."""

    def __init__(self, items: list) -> None:
        self.items = list(items)
        self.closed = False

    def fetchone(self):
        """Return the next row, None when there are no more."""
        if not self.items:
            return None
        item = self.items.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self) -> None:
        """Remember we were closed."""
        self.closed = True


class ScriptedStore(FakeStore):
    """ScriptedStore answers every query with the same Rows."""

    def __init__(self, rows: Rows) -> None:
        super().__init__()
        self.rows = rows

    def query(self, _sql: str, _args=()) -> Rows:
        """Return the prepared Rows."""
        return self.rows


def builder(user_id: int = 42, tz: str = "UTC", dialect=None) -> EntryQueryBuilder:
    """Create a builder on a FakeStore."""
    return EntryQueryBuilder(FakeStore(dialect), user_id, tz)  # type: ignore


def configurations() -> list[dict[str, Any]]:
    """Return a bunch of combinations of filters."""
    confs: list[dict[str, Any]] = []
    for feed, cat, eid, gt, lt, status in itertools.product((0, 33),
                                                            (0, 2),
                                                            (0, 999),
                                                            (0, 1000),
                                                            (0, 2000),
                                                            ("", "unread")):
        confs.append({
            "feed_id": feed,
            "category_id": cat,
            "entry_id": eid,
            "gt": gt,
            "lt": lt,
            "status": status,
        })
    return confs


def configure(b: EntryQueryBuilder, conf: dict[str, Any]) -> EntryQueryBuilder:
    """Apply a configuration to a builder."""
    return b.with_feed_id(conf["feed_id"]) \
            .with_category_id(conf["category_id"]) \
            .with_entry_id(conf["entry_id"]) \
            .with_entry_id_greater_than(conf["gt"]) \
            .with_entry_id_lower_than(conf["lt"]) \
            .with_status(conf["status"])


class TestQuery(unittest.TestCase):
    """Test the EntryQueryBuilder's output."""

    @classmethod
    def setUpClass(cls) -> None:
        """Prepare the testing environment."""
        common.set_basedir(test_dir)

    @classmethod
    def tearDownClass(cls) -> None:
        """Clean up afterwards."""
        shutil.rmtree(test_dir, ignore_errors=True)

    def test_01_conditions_numbering(self) -> None:
        """Placeholders are numbered in the order values are added."""
        cond = Conditions()
        cond.add("a = {}", 1).add("b < {}", 2).add("c > {}", 3)
        text, args = cond.render()
        self.assertEqual(text, "a = $1 AND b < $2 AND c > $3")
        self.assertEqual(args, [1, 2, 3])
        self.assertEqual(len(cond), 3)

    def test_02_sorting(self) -> None:
        """Check the ORDER BY/LIMIT/OFFSET tail."""
        self.assertEqual(build_sorting(), "")
        self.assertEqual(build_sorting("id"), 'ORDER BY "id"')
        self.assertEqual(build_sorting("status", "asc"), 'ORDER BY "status" ASC')
        self.assertEqual(build_sorting(limit=10), "LIMIT 10")
        self.assertEqual(build_sorting(offset=20), "OFFSET 20")
        self.assertEqual(build_sorting("published_at", "DESC", 100, 100),
                         'ORDER BY "published_at" DESC LIMIT 100 OFFSET 100')
        with self.assertRaises(InvalidTokenError):
            build_sorting("title")
        with self.assertRaises(InvalidTokenError):
            build_sorting(limit=-1)

    def test_03_unread_listing_page_two(self) -> None:
        """Second page of unread Entries, newest first."""
        b = builder(42, "Europe/Paris") \
            .with_status(EntryStatus.Unread) \
            .with_order("published_at") \
            .with_direction("DESC") \
            .with_limit(100) \
            .with_offset(100)
        sql, args = b.build_query()

        self.assertIn("e.user_id = $1 AND e.status=$2", sql)
        self.assertEqual(args, [42, "unread"])
        self.assertIn('ORDER BY "published_at" DESC LIMIT 100 OFFSET 100', sql)
        self.assertIn("published_at at time zone 'Europe/Paris'", sql)

    def test_04_single_entry(self) -> None:
        """Loading a single Entry filters by user and entry ID."""
        _, args = builder(7).with_entry_id(999).build_query()
        self.assertEqual(args, [7, 999])

    def test_05_empty_count(self) -> None:
        """Counting without filters only checks ownership."""
        sql, args = builder(1).build_count_query()
        self.assertTrue(sql.startswith("SELECT count(*) FROM entries e"))
        self.assertTrue(sql.endswith("WHERE e.user_id = $1"))
        self.assertEqual(args, [1])

    def test_06_category_and_feed(self) -> None:
        """The Category filter comes before the Feed filter."""
        sql, args = builder(5).with_category_id(2).with_feed_id(33).build_query()
        self.assertIn("e.user_id = $1 AND f.category_id=$2 AND e.feed_id=$3", sql)
        self.assertEqual(args, [5, 2, 33])

    def test_07_id_range(self) -> None:
        """Both bounds of an ID range are passed in declaration order."""
        sql, args = builder(9) \
            .with_entry_id_greater_than(1000) \
            .with_entry_id_lower_than(2000) \
            .build_query()
        self.assertIn("e.id > $2 AND e.id < $3", sql)
        self.assertEqual(args, [9, 1000, 2000])

    def test_08_extra_condition_numbering(self) -> None:
        """Extra conditions come right after the ownership clause, numbered correctly."""
        sql, args = builder(3) \
            .with_status("read") \
            .with_condition("e.author", "=", "Bob") \
            .with_feed_id(8) \
            .build_query()
        self.assertIn("e.user_id = $1 AND e.author = $2 AND e.feed_id=$3 AND e.status=$4", sql)
        self.assertEqual(args, [3, "Bob", 8, "read"])

    def test_09_ownership_everywhere(self) -> None:
        """Every query checks the user ID, and passes it as the first parameter."""
        for conf in configurations():
            b = configure(builder(77), conf)
            for sql, args in (b.build_query(), b.build_count_query()):
                self.assertIn("e.user_id = $1", sql)
                self.assertEqual(args[0], 77)

    def test_10_placeholders_match_args(self) -> None:
        """Placeholders are numbered 1..N, N being the number of arguments."""
        for conf in configurations():
            b = configure(builder(), conf).with_condition("e.id", ">=", 5)
            for sql, args in (b.build_query(), b.build_count_query()):
                numbers = {int(n) for n in placeholder_pat.findall(sql)}
                self.assertEqual(numbers, set(range(1, len(args) + 1)), sql)

    def test_11_no_values_in_sql(self) -> None:
        """Filter values never show up in the query text."""
        b = builder(123456, "Asia/Tokyo") \
            .with_feed_id(918273) \
            .with_category_id(564738) \
            .with_entry_id(192837) \
            .with_entry_id_greater_than(102938) \
            .with_entry_id_lower_than(847561) \
            .with_status(EntryStatus.Removed) \
            .with_condition("e.author", "<>", "Mallory'; DROP TABLE entries; --")
        for sql, args in (b.build_query(), b.build_count_query()):
            for value in args:
                self.assertNotIn(str(value), sql)
            self.assertNotIn("DROP TABLE", sql)

    def test_12_invalid_tokens(self) -> None:
        """Anything outside the closed sets is rejected before SQL is built."""
        b = builder()
        with self.assertRaises(InvalidTokenError):
            b.with_order("title; DROP TABLE entries")
        with self.assertRaises(InvalidTokenError):
            b.with_direction("sideways")
        with self.assertRaises(InvalidTokenError):
            b.with_status("starred")
        with self.assertRaises(InvalidTokenError):
            b.with_limit(-5)
        with self.assertRaises(InvalidTokenError):
            b.with_offset(True)  # type: ignore
        with self.assertRaises(InvalidTokenError):
            b.with_condition("e.id; --", "=", 1)
        with self.assertRaises(InvalidTokenError):
            b.with_condition("e.id", "LIKE", 1)
        # Nothing of the above stuck.
        self.assertEqual(b.build_query(), builder().build_query())

    def test_13_direction_is_normalized(self) -> None:
        """Directions are accepted in lower case, too."""
        sql, _ = builder().with_order("id").with_direction("asc").build_query()
        self.assertIn('ORDER BY "id" ASC', sql)

    def test_14_unknown_timezone(self) -> None:
        """An unknown time zone is replaced by UTC."""
        b = builder(1, "Mars/Olympus_Mons'; --")
        self.assertEqual(b.timezone, "UTC")
        sql, _ = b.build_query()
        self.assertIn("published_at at time zone 'UTC'", sql)
        self.assertNotIn("Mars", sql)

    def test_15_user_and_timezone_are_fixed(self) -> None:
        """User ID and time zone cannot be changed after construction."""
        b = builder(10, "Europe/Berlin")
        with self.assertRaises(AttributeError):
            b.user_id = 11  # type: ignore
        with self.assertRaises(AttributeError):
            b.timezone = "UTC"  # type: ignore

    def test_16_idempotent_configuration(self) -> None:
        """Setting a filter twice is the same as setting it once, zero is the same as nothing."""
        once = builder().with_feed_id(4).with_status("read").with_limit(5).build_query()
        twice = builder().with_feed_id(4).with_feed_id(4) \
                         .with_status("read").with_status("read") \
                         .with_limit(5).with_limit(5).build_query()
        self.assertEqual(once, twice)

        plain = builder().build_query()
        zeroed = builder().with_feed_id(0) \
                          .with_category_id(0) \
                          .with_entry_id(0) \
                          .with_entry_id_greater_than(0) \
                          .with_entry_id_lower_than(0) \
                          .with_status("") \
                          .with_order("") \
                          .with_direction("") \
                          .with_limit(0) \
                          .with_offset(0) \
                          .build_query()
        self.assertEqual(plain, zeroed)

    def test_17_order_independent(self) -> None:
        """The order in which filters are set does not matter."""
        a = builder().with_status("unread").with_feed_id(3).with_category_id(1).build_query()
        b = builder().with_category_id(1).with_feed_id(3).with_status("unread").build_query()
        self.assertEqual(a, b)

    def test_18_sqlite_dialect(self) -> None:
        """SQLite converts time zones with a function instead of AT TIME ZONE."""
        sql, _ = builder(1, "America/New_York", SQLiteDialect()).build_query()
        self.assertIn("tz_convert(e.published_at, 'America/New_York')", sql)
        self.assertNotIn("at time zone", sql)

    def test_19_broken_rows(self) -> None:
        """Rows that cannot be read or converted make get_entries fail."""
        cases = (
            [sqlite3.OperationalError("database disk image is malformed")],
            [("not", "an", "entry")],
        )
        for items in cases:
            with self.subTest(items=items):
                cur = ScriptedCursor(items)
                b = EntryQueryBuilder(ScriptedStore(Rows(cur, sqlite3.Error)), 42, "UTC")  # type: ignore
                with self.assertRaises(DatabaseError) as ctx:
                    b.get_entries()
                self.assertIn("unable to fetch entry row", str(ctx.exception))
                self.assertTrue(cur.closed)


# Local Variables: #
# python-indent: 4 #
# End: #
