#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2025-12-09 18:12:40 krylon>
#
# /data/code/python/tidings/src/tidings/pgsql.py
# created on 03. 12. 2025
# (c) 2025 Benjamin Walkenhorst
#
# This file is part of the tidings feed reader. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
tidings.pgsql

(c) 2025 Benjamin Walkenhorst

PostgresDatabase runs the same queries as Database, but on PostgreSQL.
We use psycopg's RawCursor, which passes $1, $2, ... to the server as they
are, instead of psycopg's own %s placeholders.
"""


from typing import Any, Final, Optional, Sequence

import psycopg

from tidings import common
from tidings.database import Database, PostgresDialect

qinit: Final[list[str]] = [
    """
CREATE TABLE IF NOT EXISTS users (
    id bigserial PRIMARY KEY,
    username text UNIQUE NOT NULL,
    timezone text NOT NULL DEFAULT 'UTC',
    language text NOT NULL DEFAULT 'en_US',
    is_admin smallint NOT NULL DEFAULT 0,
    CHECK (is_admin IN (0, 1))
)
    """,
    """
CREATE TABLE IF NOT EXISTS categories (
    id bigserial PRIMARY KEY,
    user_id bigint NOT NULL REFERENCES users (id) ON DELETE CASCADE,
    title text NOT NULL,
    UNIQUE (user_id, title)
)
    """,
    """
CREATE TABLE IF NOT EXISTS feeds (
    id bigserial PRIMARY KEY,
    user_id bigint NOT NULL REFERENCES users (id) ON DELETE CASCADE,
    category_id bigint NOT NULL REFERENCES categories (id) ON DELETE CASCADE,
    title text NOT NULL,
    feed_url text NOT NULL,
    site_url text NOT NULL DEFAULT '',
    checked_at timestamptz NOT NULL DEFAULT to_timestamp(0),
    parsing_error_count integer NOT NULL DEFAULT 0 CHECK (parsing_error_count >= 0),
    parsing_error_msg text NOT NULL DEFAULT '',
    UNIQUE (user_id, feed_url)
)
    """,
    "CREATE INDEX IF NOT EXISTS feeds_user_idx ON feeds (user_id)",
    "CREATE INDEX IF NOT EXISTS feeds_job_idx ON feeds (parsing_error_count, checked_at)",
    """
CREATE TABLE IF NOT EXISTS icons (
    id bigserial PRIMARY KEY,
    hash text UNIQUE NOT NULL,
    mime_type text NOT NULL,
    content bytea NOT NULL
)
    """,
    """
CREATE TABLE IF NOT EXISTS feed_icons (
    feed_id bigint PRIMARY KEY REFERENCES feeds (id) ON DELETE CASCADE,
    icon_id bigint NOT NULL REFERENCES icons (id) ON DELETE CASCADE
)
    """,
    """
CREATE TABLE IF NOT EXISTS entries (
    id bigserial PRIMARY KEY,
    user_id bigint NOT NULL REFERENCES users (id) ON DELETE CASCADE,
    feed_id bigint NOT NULL REFERENCES feeds (id) ON DELETE CASCADE,
    hash text NOT NULL,
    published_at timestamptz NOT NULL,
    title text NOT NULL,
    url text NOT NULL,
    author text NOT NULL DEFAULT '',
    content text NOT NULL DEFAULT '',
    status text NOT NULL DEFAULT 'unread' CHECK (status IN ('unread', 'read', 'removed')),
    UNIQUE (feed_id, hash)
)
    """,
    "CREATE INDEX IF NOT EXISTS entries_user_status_idx ON entries (user_id, status)",
    "CREATE INDEX IF NOT EXISTS entries_feed_idx ON entries (feed_id)",
    "CREATE INDEX IF NOT EXISTS entries_published_idx ON entries (published_at)",
    """
CREATE TABLE IF NOT EXISTS enclosures (
    id bigserial PRIMARY KEY,
    user_id bigint NOT NULL REFERENCES users (id) ON DELETE CASCADE,
    entry_id bigint NOT NULL REFERENCES entries (id) ON DELETE CASCADE,
    url text NOT NULL,
    size bigint NOT NULL DEFAULT 0,
    mime_type text NOT NULL DEFAULT ''
)
    """,
    "CREATE INDEX IF NOT EXISTS enclosures_entry_idx ON enclosures (entry_id)",
]


class PostgresDatabase(Database):
    """PostgresDatabase is a Database backed by a PostgreSQL server."""

    __slots__ = [
        "dsn",
        "_tx",
    ]

    driver_error = psycopg.Error
    dialect = PostgresDialect()

    dsn: str
    _tx: Optional[psycopg.Transaction]

    # pylint: disable-msg=W0231
    def __init__(self, dsn: str) -> None:
        self.dsn = dsn
        self.path = common.path.db
        self._tx = None
        self.log = common.get_logger("database")
        self.log.debug("Connect to %s database", self.dialect.name)

        try:
            self.db = psycopg.connect(dsn,
                                      autocommit=True,
                                      cursor_factory=psycopg.RawCursor)
        except psycopg.Error as err:
            msg: Final[str] = f"Cannot connect to PostgreSQL: {err}"
            self.log.error(msg)
            raise common.TidingsError(msg) from err

        self._create_db(qinit)

    def __enter__(self) -> None:
        self._tx = self.db.transaction()
        self._tx.__enter__()

    def __exit__(self, ex_type, ex_val, tb):
        tx = self._tx
        self._tx = None
        if tx is not None:
            tx.__exit__(ex_type, ex_val, tb)
        return False

    def _bind(self, args: Sequence[Any]) -> Sequence[Any]:
        return list(args)

# Local Variables: #
# python-indent: 4 #
# End: #
