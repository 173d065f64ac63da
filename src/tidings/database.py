#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2025-12-08 19:44:03 krylon>
#
# /data/code/python/tidings/src/tidings/database.py
# created on 30. 09. 2025
# (c) 2025 Benjamin Walkenhorst
#
# This file is part of the tidings feed reader. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
tidings.database

(c) 2025 Benjamin Walkenhorst

All queries use numbered placeholders ($1, $2, ...), which both SQLite and
PostgreSQL understand. SQLite treats them as named parameters, so we bind
them by name, PostgreSQL gets them positionally.
"""


import logging
import sqlite3
from datetime import datetime
from enum import Enum, auto
from pathlib import Path
from threading import Lock
from typing import Any, Final, Iterator, Optional, Sequence, Union
from zoneinfo import ZoneInfo

from tidings import common, tokens
from tidings.model import (Category, Enclosure, Entry, EntryStatus, Feed,
                           FeedIcon, Job, User)

MaxParsingError: Final[int] = 3


class DatabaseError(common.TidingsError):
    """Exception class for database-specific errors."""


class Dialect:
    """Dialect renders the few bits of SQL that differ between database engines."""

    name: str = "generic"

    def localtime(self, col: str, tz: str) -> str:
        """Return an expression converting the timestamp <col> to time zone <tz>."""
        raise NotImplementedError

    def encode_time(self, stamp: datetime) -> Any:
        """Convert a datetime to what the database stores."""
        raise NotImplementedError


class SQLiteDialect(Dialect):
    """SQLite has no AT TIME ZONE, so we register a function to do the conversion."""

    name = "sqlite"

    def localtime(self, col: str, tz: str) -> str:
        return f"tz_convert({col}, '{tokens.timezone(tz)}')"

    def encode_time(self, stamp: datetime) -> int:
        return int(stamp.timestamp())


class PostgresDialect(Dialect):
    """PostgreSQL stores timestamptz and converts them natively."""

    name = "postgresql"

    def localtime(self, col: str, tz: str) -> str:
        return f"{col} at time zone '{tokens.timezone(tz)}'"

    def encode_time(self, stamp: datetime) -> datetime:
        return stamp


def tz_convert(stamp: Optional[int], tz: str) -> Optional[str]:
    """Convert a Unix timestamp to an ISO 8601 string in the given time zone."""
    if stamp is None:
        return None
    return datetime.fromtimestamp(stamp, ZoneInfo(tz)).isoformat()


qinit: Final[list[str]] = [
    """
CREATE TABLE users (
    id INTEGER PRIMARY KEY,
    username TEXT UNIQUE NOT NULL,
    timezone TEXT NOT NULL DEFAULT 'UTC',
    language TEXT NOT NULL DEFAULT 'en_US',
    is_admin INTEGER NOT NULL DEFAULT 0,
    CHECK (is_admin IN (0, 1))
) STRICT
    """,
    """
CREATE TABLE categories (
    id INTEGER PRIMARY KEY,
    user_id INTEGER NOT NULL,
    title TEXT NOT NULL,
    UNIQUE (user_id, title),
    FOREIGN KEY (user_id) REFERENCES users (id)
        ON UPDATE RESTRICT
        ON DELETE CASCADE
) STRICT
    """,
    """
CREATE TABLE feeds (
    id INTEGER PRIMARY KEY,
    user_id INTEGER NOT NULL,
    category_id INTEGER NOT NULL,
    title TEXT NOT NULL,
    feed_url TEXT NOT NULL,
    site_url TEXT NOT NULL DEFAULT '',
    checked_at INTEGER NOT NULL DEFAULT 0,
    parsing_error_count INTEGER NOT NULL DEFAULT 0,
    parsing_error_msg TEXT NOT NULL DEFAULT '',
    UNIQUE (user_id, feed_url),
    FOREIGN KEY (user_id) REFERENCES users (id)
        ON UPDATE RESTRICT
        ON DELETE CASCADE,
    FOREIGN KEY (category_id) REFERENCES categories (id)
        ON UPDATE RESTRICT
        ON DELETE CASCADE,
    CHECK (parsing_error_count >= 0)
) STRICT
    """,
    "CREATE INDEX feeds_user_idx ON feeds (user_id)",
    "CREATE INDEX feeds_job_idx ON feeds (parsing_error_count, checked_at)",
    """
CREATE TABLE icons (
    id INTEGER PRIMARY KEY,
    hash TEXT UNIQUE NOT NULL,
    mime_type TEXT NOT NULL,
    content BLOB NOT NULL
) STRICT
    """,
    """
CREATE TABLE feed_icons (
    feed_id INTEGER PRIMARY KEY,
    icon_id INTEGER NOT NULL,
    FOREIGN KEY (feed_id) REFERENCES feeds (id)
        ON UPDATE RESTRICT
        ON DELETE CASCADE,
    FOREIGN KEY (icon_id) REFERENCES icons (id)
        ON UPDATE RESTRICT
        ON DELETE CASCADE
) STRICT
    """,
    """
CREATE TABLE entries (
    id INTEGER PRIMARY KEY,
    user_id INTEGER NOT NULL,
    feed_id INTEGER NOT NULL,
    hash TEXT NOT NULL,
    published_at INTEGER NOT NULL,
    title TEXT NOT NULL,
    url TEXT NOT NULL,
    author TEXT NOT NULL DEFAULT '',
    content TEXT NOT NULL DEFAULT '',
    status TEXT NOT NULL DEFAULT 'unread',
    UNIQUE (feed_id, hash),
    FOREIGN KEY (user_id) REFERENCES users (id)
        ON UPDATE RESTRICT
        ON DELETE CASCADE,
    FOREIGN KEY (feed_id) REFERENCES feeds (id)
        ON UPDATE RESTRICT
        ON DELETE CASCADE,
    CHECK (status IN ('unread', 'read', 'removed'))
) STRICT
    """,
    "CREATE INDEX entries_user_status_idx ON entries (user_id, status)",
    "CREATE INDEX entries_feed_idx ON entries (feed_id)",
    "CREATE INDEX entries_published_idx ON entries (published_at)",
    """
CREATE TABLE enclosures (
    id INTEGER PRIMARY KEY,
    user_id INTEGER NOT NULL,
    entry_id INTEGER NOT NULL,
    url TEXT NOT NULL,
    size INTEGER NOT NULL DEFAULT 0,
    mime_type TEXT NOT NULL DEFAULT '',
    FOREIGN KEY (user_id) REFERENCES users (id)
        ON UPDATE RESTRICT
        ON DELETE CASCADE,
    FOREIGN KEY (entry_id) REFERENCES entries (id)
        ON UPDATE RESTRICT
        ON DELETE CASCADE
) STRICT
    """,
    "CREATE INDEX enclosures_entry_idx ON enclosures (entry_id)",
]


class Query(Enum):
    """Query identifies the various operations we perform on the database."""

    UserAdd = auto()
    UserGetByID = auto()
    UserGetByName = auto()

    CategoryAdd = auto()
    CategoryGetAll = auto()
    CategoryGetByTitle = auto()

    FeedAdd = auto()
    FeedGetAll = auto()
    FeedGetByID = auto()
    FeedGetJobs = auto()
    FeedSetChecked = auto()
    FeedIncErrors = auto()
    FeedResetErrors = auto()
    FeedDelete = auto()

    EntryAdd = auto()
    EntrySetStatus = auto()

    EnclosureAdd = auto()
    EnclosureGetByEntry = auto()


qdb: Final[dict[Query, str]] = {
    Query.UserAdd: """
INSERT INTO users (username, timezone, language, is_admin)
           VALUES (      $1,       $2,       $3,       $4)
RETURNING id
    """,
    Query.UserGetByID: """
SELECT
    username,
    timezone,
    language,
    is_admin
FROM users
WHERE id = $1
    """,
    Query.UserGetByName: """
SELECT
    id,
    timezone,
    language,
    is_admin
FROM users
WHERE username = $1
    """,
    Query.CategoryAdd: """
INSERT INTO categories (user_id, title)
                VALUES (     $1,    $2)
RETURNING id
    """,
    Query.CategoryGetAll: """
SELECT
    id,
    title
FROM categories
WHERE user_id = $1
ORDER BY title
    """,
    Query.CategoryGetByTitle: "SELECT id FROM categories WHERE user_id = $1 AND title = $2",
    Query.FeedAdd: """
INSERT INTO feeds (user_id, category_id, title, feed_url, site_url)
           VALUES (     $1,          $2,    $3,       $4,       $5)
RETURNING id
    """,
    Query.FeedGetAll: """
SELECT
    f.id,
    f.title,
    f.feed_url,
    f.site_url,
    f.checked_at,
    f.parsing_error_count,
    f.parsing_error_msg,
    f.category_id,
    c.title,
    fi.icon_id
FROM feeds f
LEFT JOIN categories c ON c.id = f.category_id
LEFT JOIN feed_icons fi ON fi.feed_id = f.id
WHERE f.user_id = $1
ORDER BY lower(f.title)
    """,
    Query.FeedGetByID: """
SELECT
    f.id,
    f.title,
    f.feed_url,
    f.site_url,
    f.checked_at,
    f.parsing_error_count,
    f.parsing_error_msg,
    f.category_id,
    c.title,
    fi.icon_id
FROM feeds f
LEFT JOIN categories c ON c.id = f.category_id
LEFT JOIN feed_icons fi ON fi.feed_id = f.id
WHERE f.user_id = $1 AND f.id = $2
    """,
    # The batch size is an integer checked by tokens.count, see get_jobs.
    Query.FeedGetJobs: """
SELECT
    id,
    user_id
FROM feeds
WHERE parsing_error_count < $1
ORDER BY checked_at ASC
LIMIT {limit}
    """,
    Query.FeedSetChecked: "UPDATE feeds SET checked_at = $1 WHERE id = $2",
    Query.FeedIncErrors: """
UPDATE feeds
SET parsing_error_count = parsing_error_count + 1,
    parsing_error_msg = $1
WHERE id = $2
    """,
    Query.FeedResetErrors: """
UPDATE feeds
SET parsing_error_count = 0,
    parsing_error_msg = ''
WHERE id = $1
    """,
    Query.FeedDelete: "DELETE FROM feeds WHERE user_id = $1 AND id = $2",
    Query.EntryAdd: """
INSERT INTO entries (user_id, feed_id, hash, published_at, title, url, author, content, status)
             VALUES (     $1,      $2,   $3,           $4,    $5,  $6,     $7,      $8,     $9)
ON CONFLICT (feed_id, hash) DO NOTHING
RETURNING id
    """,
    Query.EntrySetStatus: "UPDATE entries SET status = $1 WHERE user_id = $2 AND id = $3",
    Query.EnclosureAdd: """
INSERT INTO enclosures (user_id, entry_id, url, size, mime_type)
                VALUES (     $1,       $2,  $3,   $4,        $5)
RETURNING id
    """,
    Query.EnclosureGetByEntry: """
SELECT
    id,
    user_id,
    url,
    size,
    mime_type
FROM enclosures
WHERE entry_id = $1
ORDER BY id
    """,
}


open_lock: Final[Lock] = Lock()


class Rows:
    """Rows is a stream of result rows. It must be closed, use it in a with-statement."""

    __slots__ = [
        "cursor",
        "driver_error",
        "closed",
    ]

    def __init__(self, cursor, driver_error: type[Exception]) -> None:
        self.cursor = cursor
        self.driver_error = driver_error
        self.closed = False

    def __enter__(self) -> 'Rows':
        return self

    def __exit__(self, _ex_type, _ex_val, _tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[tuple]:
        return self

    def __next__(self) -> tuple:
        if self.closed:
            raise StopIteration
        try:
            row = self.cursor.fetchone()
        except self.driver_error as err:
            self.close()
            raise DatabaseError(f"Error reading row: {err}") from err
        if row is None:
            self.close()
            raise StopIteration
        return tuple(row)

    def close(self) -> None:
        """Release the underlying cursor. Calling close() twice is harmless."""
        if not self.closed:
            self.closed = True
            self.cursor.close()


class Database:
    """Database wraps the database connection and the operations we perform on it.

    This class talks to SQLite, see tidings.pgsql for the PostgreSQL flavor.
    """

    __slots__ = [
        "db",
        "log",
        "path",
    ]

    driver_error: type[Exception] = sqlite3.Error
    dialect: Dialect = SQLiteDialect()

    log: logging.Logger
    db: Any
    path: Path

    def __init__(self, path: Optional[Union[Path, str]] = None) -> None:
        if path is None:
            self.path = common.path.db
        else:
            match path:
                case x if isinstance(x, Path):
                    self.path = x
                case x if isinstance(x, str):
                    self.path = Path(x)

        self.log = common.get_logger("database")
        self.log.debug("Open %s database at %s", self.dialect.name, self.path)

        with open_lock:
            exist: Final[bool] = self.path.exists()
            self.db = sqlite3.connect(str(self.path), check_same_thread=False)
            self.db.isolation_level = None
            self.db.create_function("tz_convert", 2, tz_convert, deterministic=True)

            cur: Final[sqlite3.Cursor] = self.db.cursor()
            try:
                cur.execute("PRAGMA foreign_keys = true")
                cur.execute("PRAGMA journal_mode = WAL")
            finally:
                # journal_mode returns a row, an open cursor would block COMMIT.
                cur.close()

            if not exist:
                self._create_db(qinit)

    def _create_db(self, queries: list[str]) -> None:
        """Initialize a freshly created database"""
        self.log.debug("Initialize fresh database at %s", self.path)
        with self:
            for query in queries:
                try:
                    cur = self.db.cursor()
                    cur.execute(query)
                except self.driver_error as operr:
                    self.log.debug("%s executing init query: %s\n%s\n",
                                   operr.__class__.__name__,
                                   operr,
                                   query)
                    raise
        self.log.debug("Database initialized successfully.")

    def close(self) -> None:
        """Close the database connection."""
        self.db.close()
        del self.db

    def __enter__(self) -> None:
        self.db.execute("BEGIN")

    def __exit__(self, ex_type, ex_val, tb):
        if ex_type is None:
            self.db.execute("COMMIT")
        else:
            self.db.execute("ROLLBACK")
        return False

    def _bind(self, args: Sequence[Any]) -> Union[dict[str, Any], Sequence[Any]]:
        """Prepare the arguments for a query with numbered placeholders."""
        return {str(idx): val for idx, val in enumerate(args, 1)}

    def query(self, sql: str, args: Sequence[Any] = ()) -> Rows:
        """Execute a query, return a stream of result rows."""
        try:
            cur = self.db.cursor()
            cur.execute(sql, self._bind(args))
            return Rows(cur, self.driver_error)
        except self.driver_error as err:
            raise DatabaseError(f"{err.__class__.__name__} executing query: {err}") from err

    def query_row(self, sql: str, args: Sequence[Any] = ()) -> Optional[tuple]:
        """Execute a query, return the first result row, or None."""
        with self.query(sql, args) as rows:
            return next(rows, None)

    def exec(self, sql: str, args: Sequence[Any] = ()) -> int:
        """Execute a statement that returns no rows. Return the number of affected rows."""
        try:
            cur = self.db.cursor()
            try:
                cur.execute(sql, self._bind(args))
                return cur.rowcount
            finally:
                cur.close()
        except self.driver_error as err:
            raise DatabaseError(f"{err.__class__.__name__} executing statement: {err}") from err

    def new_entry_query_builder(self, user_id: int, timezone: str):
        """Return an EntryQueryBuilder on behalf of the given User."""
        # pylint: disable-msg=C0415
        from tidings.query import EntryQueryBuilder
        return EntryQueryBuilder(self, user_id, timezone)

    def user_add(self, user: User) -> None:
        """Add a User to the database, along with a default Category."""
        try:
            row = self.query_row(qdb[Query.UserAdd], (user.username,
                                                      tokens.timezone(user.timezone),
                                                      user.language,
                                                      int(user.is_admin)))
            assert row is not None
            user.user_id = row[0]
            self.category_add(Category(user_id=user.user_id, title="All"))
        except DatabaseError as err:
            msg: Final[str] = f"Error adding User {user.username}: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def user_get_by_id(self, user_id: int) -> Optional[User]:
        """Look up a User by their ID."""
        try:
            row = self.query_row(qdb[Query.UserGetByID], (user_id, ))
            if row is None:
                return None
            return User(
                user_id=user_id,
                username=row[0],
                timezone=row[1],
                language=row[2],
                is_admin=bool(row[3]),
            )
        except DatabaseError as err:
            msg: Final[str] = f"Error looking up User {user_id}: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def user_get_by_name(self, name: str) -> Optional[User]:
        """Look up a User by their name."""
        try:
            row = self.query_row(qdb[Query.UserGetByName], (name, ))
            if row is None:
                return None
            return User(
                user_id=row[0],
                username=name,
                timezone=row[1],
                language=row[2],
                is_admin=bool(row[3]),
            )
        except DatabaseError as err:
            msg: Final[str] = f"Error looking up User {name}: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def category_add(self, category: Category) -> None:
        """Add a Category to the database."""
        try:
            row = self.query_row(qdb[Query.CategoryAdd], (category.user_id, category.title))
            assert row is not None
            category.category_id = row[0]
        except DatabaseError as err:
            msg: Final[str] = f"Error adding Category {category.title}: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def category_get_all(self, user_id: int) -> list[Category]:
        """Load all of a User's Categories."""
        try:
            with self.query(qdb[Query.CategoryGetAll], (user_id, )) as rows:
                return [Category(category_id=row[0], user_id=user_id, title=row[1])
                        for row in rows]
        except DatabaseError as err:
            msg: Final[str] = f"Error loading Categories of User {user_id}: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def category_get_by_title(self, user_id: int, title: str) -> Optional[Category]:
        """Look up one of a User's Categories by its title."""
        try:
            row = self.query_row(qdb[Query.CategoryGetByTitle], (user_id, title))
            if row is None:
                return None
            return Category(category_id=row[0], user_id=user_id, title=title)
        except DatabaseError as err:
            msg: Final[str] = f"Error looking up Category {title}: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def feed_add(self, feed: Feed) -> None:
        """Add a Feed to the database."""
        assert feed.category.category_id > 0
        try:
            row = self.query_row(qdb[Query.FeedAdd], (feed.user_id,
                                                      feed.category.category_id,
                                                      feed.title,
                                                      feed.feed_url,
                                                      feed.site_url))
            assert row is not None
            feed.feed_id = row[0]
            feed.icon.feed_id = feed.feed_id
        except DatabaseError as err:
            msg: Final[str] = f"Error adding Feed {feed.title} ({feed.feed_url}): {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def _feed_from_row(self, user_id: int, row: tuple) -> Feed:
        return Feed(
            feed_id=row[0],
            user_id=user_id,
            title=row[1],
            feed_url=row[2],
            site_url=row[3],
            checked_at=common.to_datetime(row[4]),
            parsing_error_count=row[5],
            parsing_error_msg=row[6],
            category=Category(category_id=row[7], user_id=user_id, title=row[8] or ""),
            icon=FeedIcon(feed_id=row[0], icon_id=row[9] or 0),
        )

    def feed_get_all(self, user_id: int) -> list[Feed]:
        """Load all Feeds a User subscribes to."""
        try:
            with self.query(qdb[Query.FeedGetAll], (user_id, )) as rows:
                return [self._feed_from_row(user_id, row) for row in rows]
        except DatabaseError as err:
            msg: Final[str] = f"Error loading Feeds of User {user_id}: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def feed_get_by_id(self, user_id: int, feed_id: int) -> Optional[Feed]:
        """Look up a Feed by its ID. Only Feeds owned by <user_id> are found."""
        try:
            row = self.query_row(qdb[Query.FeedGetByID], (user_id, feed_id))
            if row is None:
                return None
            return self._feed_from_row(user_id, row)
        except DatabaseError as err:
            msg: Final[str] = f"Error loading Feed {feed_id}: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def feed_set_checked(self, feed_id: int, stamp: datetime) -> None:
        """Record when a Feed was last checked."""
        try:
            self.exec(qdb[Query.FeedSetChecked], (self.dialect.encode_time(stamp), feed_id))
        except DatabaseError as err:
            msg: Final[str] = f"Error setting check timestamp of Feed {feed_id}: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def feed_increment_errors(self, feed_id: int, message: str) -> None:
        """Count one more failed attempt to refresh the Feed."""
        try:
            self.exec(qdb[Query.FeedIncErrors], (message, feed_id))
        except DatabaseError as err:
            msg: Final[str] = f"Error incrementing error count of Feed {feed_id}: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def feed_reset_errors(self, feed_id: int) -> None:
        """Clear a Feed's error counter, so it is refreshed again."""
        try:
            self.exec(qdb[Query.FeedResetErrors], (feed_id, ))
        except DatabaseError as err:
            msg: Final[str] = f"Error resetting error count of Feed {feed_id}: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def feed_delete(self, user_id: int, feed_id: int) -> bool:
        """Delete a Feed and its Entries. Return False if there was no such Feed."""
        try:
            return self.exec(qdb[Query.FeedDelete], (user_id, feed_id)) > 0
        except DatabaseError as err:
            msg: Final[str] = f"Error deleting Feed {feed_id}: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def entry_add(self, entry: Entry) -> bool:
        """Add an Entry, along with its Enclosures.

        Return False if the Feed already has an Entry with the same hash.
        """
        assert entry.published_at is not None
        try:
            row = self.query_row(qdb[Query.EntryAdd],
                                 (entry.user_id,
                                  entry.feed_id,
                                  entry.hash,
                                  self.dialect.encode_time(entry.published_at),
                                  entry.title,
                                  entry.url,
                                  entry.author,
                                  entry.content,
                                  tokens.status(entry.status) or EntryStatus.Unread.value))
            if row is None:
                return False
            entry.entry_id = row[0]
            for enc in entry.enclosures:
                enc.entry_id = entry.entry_id
                enc.user_id = entry.user_id
                self.enclosure_add(enc)
            return True
        except DatabaseError as err:
            msg: Final[str] = f"Error adding Entry {entry.url}: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def entry_set_status(self, user_id: int, entry_id: int, status: Union[str, EntryStatus]) -> bool:
        """Set the status of one of a User's Entries."""
        value: Final[str] = tokens.status(status)
        if not value:
            raise tokens.InvalidTokenError("Status must not be empty")
        try:
            return self.exec(qdb[Query.EntrySetStatus], (value, user_id, entry_id)) > 0
        except DatabaseError as err:
            msg: Final[str] = f"Error setting status of Entry {entry_id}: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def enclosure_add(self, enc: Enclosure) -> None:
        """Add an Enclosure to the database."""
        try:
            row = self.query_row(qdb[Query.EnclosureAdd], (enc.user_id,
                                                           enc.entry_id,
                                                           enc.url,
                                                           enc.size,
                                                           enc.mime_type))
            assert row is not None
            enc.enclosure_id = row[0]
        except DatabaseError as err:
            msg: Final[str] = f"Error adding Enclosure {enc.url}: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def get_enclosures(self, entry_id: int) -> list[Enclosure]:
        """Load all Enclosures of an Entry."""
        try:
            with self.query(qdb[Query.EnclosureGetByEntry], (entry_id, )) as rows:
                return [Enclosure(enclosure_id=row[0],
                                  user_id=row[1],
                                  entry_id=entry_id,
                                  url=row[2],
                                  size=row[3],
                                  mime_type=row[4])
                        for row in rows]
        except DatabaseError as err:
            msg: Final[str] = f"Unable to fetch enclosures of Entry {entry_id}: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

    def get_jobs(self, batch_size: int) -> list[Job]:
        """Return up to <batch_size> Feeds that are due for a refresh, stalest first.

        Feeds that failed to parse MaxParsingError times in a row are skipped.
        Errors are logged, not raised, whatever was loaded up to that point
        is returned.
        """
        jobs: list[Job] = []
        try:
            size: Final[int] = tokens.count(batch_size, "batch size")
        except tokens.InvalidTokenError as err:
            self.log.error("Unable to fetch feed jobs: %s", err)
            return jobs

        if size == 0:
            return jobs

        with common.execution_time(self.log, f"Database.get_jobs[{size}]"):
            try:
                with self.query(qdb[Query.FeedGetJobs].format(limit=size),
                                (MaxParsingError, )) as rows:
                    for row in rows:
                        try:
                            jobs.append(Job(feed_id=int(row[0]), user_id=int(row[1])))
                        except (TypeError, ValueError, IndexError) as err:
                            self.log.error("Unable to fetch feed job: %s", err)
                            break
            except DatabaseError as err:
                self.log.error("Unable to fetch feed jobs: %s", err)

        return jobs


def open_database(dsn: Optional[str] = None) -> Database:
    """Open the database.

    If <dsn> is a PostgreSQL connection string, connect to PostgreSQL,
    otherwise it is taken to be the path of an SQLite database. If it is
    None, the SQLite database in the base directory is used.
    """
    if dsn is not None and dsn.startswith(("postgres://", "postgresql://")):
        # pylint: disable-msg=C0415
        from tidings.pgsql import PostgresDatabase
        return PostgresDatabase(dsn)
    return Database(dsn)

# Local Variables: #
# python-indent: 4 #
# End: #
