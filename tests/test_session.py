#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2025-12-15 19:31:08 krylon>
#
# /data/code/python/tidings/tests/test_session.py
# created on 10. 12. 2025
# (c) 2025 Benjamin Walkenhorst
#
# This file is part of the tidings feed reader. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
tidings.test_session

(c) 2025 Benjamin Walkenhorst
"""

import os
import shutil
import unittest
from datetime import datetime
from typing import Final, Optional

from tidings import common
from tidings.database import Database
from tidings.model import User
from tidings.session import AuthenticationError, Context, Session
from tidings.web import decode_session, load_secret, session_data

test_dir: Final[str] = os.path.join(
    "/tmp",
    datetime.now().strftime("tidings_test_session_%Y%m%d_%H%M%S"))


class TestSession(unittest.TestCase):
    """Test Sessions and request Contexts."""

    conn: Optional[Database] = None

    @classmethod
    def setUpClass(cls) -> None:
        """Prepare the testing environment."""
        common.set_basedir(test_dir)
        cls.conn = Database()

    @classmethod
    def tearDownClass(cls) -> None:
        """Clean up afterwards."""
        if cls.conn is not None:
            cls.conn.close()
            cls.conn = None
        shutil.rmtree(test_dir, ignore_errors=True)

    @classmethod
    def db(cls) -> Database:
        """Return the database."""
        assert cls.conn is not None
        return cls.conn

    def test_01_anonymous(self) -> None:
        """Garbage in the cookie means nobody is logged in."""
        for raw in (None, "", "not json", "[1, 2, 3]", '{"user_id": "1"}',
                    '{"user_id": true}', '{"user_id": -4}'):
            with self.subTest(raw=raw):
                s = decode_session(raw)
                self.assertFalse(s.is_authenticated)
                self.assertEqual(s.user_id, 0)

    def test_02_round_trip(self) -> None:
        """A session cookie payload decodes to the same Session."""
        s = decode_session(session_data(17, "Asia/Tokyo", True, "token123"))
        self.assertTrue(s.is_authenticated)
        self.assertEqual(s.user_id, 17)
        self.assertEqual(s.timezone, "Asia/Tokyo")
        self.assertTrue(s.is_admin)
        self.assertEqual(s.csrf_token, "token123")

        s = decode_session(session_data(18, "Moon/Base"))
        self.assertEqual(s.timezone, "UTC")
        self.assertFalse(s.is_admin)
        self.assertNotEqual(s.csrf_token, "")

    def test_03_frozen(self) -> None:
        """Sessions cannot be modified."""
        s = Session(user_id=1, is_authenticated=True)
        with self.assertRaises(AttributeError):
            s.user_id = 2  # type: ignore

    def test_04_context_anonymous(self) -> None:
        """An anonymous Context has no User."""
        ctx = Context(Session.anonymous(), self.db())
        self.assertFalse(ctx.is_authenticated)
        self.assertFalse(ctx.is_admin)
        self.assertEqual(ctx.user_id, 0)
        self.assertEqual(ctx.timezone, "UTC")
        self.assertEqual(ctx.csrf_token, "")
        with self.assertRaises(AuthenticationError):
            _ = ctx.user

    def test_05_context_user(self) -> None:
        """An authenticated Context loads its User from the database."""
        db: Final[Database] = self.db()
        user = User(username="carol", timezone="Europe/Berlin", language="de_DE")
        db.user_add(user)

        ctx = Context(Session(user_id=user.user_id,
                              is_authenticated=True,
                              timezone=user.timezone,
                              csrf_token="abc"),
                      db)
        self.assertEqual(ctx.user.username, "carol")
        self.assertIs(ctx.user, ctx.user)
        self.assertEqual(ctx.language, "de_DE")
        self.assertEqual(ctx.csrf_token, "abc")

        ghost = Context(Session(user_id=user.user_id + 100, is_authenticated=True), db)
        with self.assertRaises(AuthenticationError):
            _ = ghost.user

    def test_06_secret(self) -> None:
        """The cookie secret is created once and then reused."""
        first = load_secret()
        self.assertEqual(len(first), 64)
        self.assertEqual(load_secret(), first)
        self.assertEqual(common.path.secret.stat().st_mode & 0o777, 0o600)

# Local Variables: #
# python-indent: 4 #
# End: #
