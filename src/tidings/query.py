#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2025-12-08 20:31:17 krylon>
#
# /data/code/python/tidings/src/tidings/query.py
# created on 02. 12. 2025
# (c) 2025 Benjamin Walkenhorst
#
# This file is part of the tidings feed reader. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
tidings.query

(c) 2025 Benjamin Walkenhorst

EntryQueryBuilder assembles the queries to load a User's Entries, with
optional filters, sorting and paging. Every query it builds is restricted to
the Entries of the User it was created for, that condition always comes first
and always uses the first parameter.

Filter values are always passed as parameters. The only things that go into
the query text are the time zone, the sort column and direction, and limit
and offset, all of which are checked by tidings.tokens first.
"""


import logging
from typing import Any, Final, Optional, Union

from tidings import common, tokens
from tidings.database import Database, DatabaseError
from tidings.model import Category, Entry, EntryStatus, Feed, FeedIcon

qentries: Final[str] = """
SELECT
    e.id AS id,
    e.user_id,
    e.feed_id,
    e.hash,
    {published_at},
    e.title,
    e.url,
    e.author,
    e.content,
    e.status,
    f.title AS feed_title,
    f.feed_url,
    f.site_url,
    f.checked_at,
    f.category_id,
    c.title AS category_title,
    fi.icon_id
FROM entries e
LEFT JOIN feeds f ON f.id=e.feed_id
LEFT JOIN categories c ON c.id=f.category_id
LEFT JOIN feed_icons fi ON fi.feed_id=f.id
WHERE {conditions} {sorting}
"""

qcount: Final[str] = \
    "SELECT count(*) FROM entries e LEFT JOIN feeds f ON f.id=e.feed_id WHERE {conditions}"


class Conditions:
    """Conditions collects the parts of a WHERE clause and their parameters.

    The placeholder for a value is numbered before the value is appended,
    so the n-th value always belongs to placeholder $n.
    """

    __slots__ = ["clauses", "args"]

    clauses: list[str]
    args: list[Any]

    def __init__(self) -> None:
        self.clauses = []
        self.args = []

    def add(self, template: str, value: Any) -> 'Conditions':
        """Add a clause. <template> contains one {} that is replaced by the placeholder."""
        placeholder: Final[str] = f"${len(self.args) + 1}"
        self.clauses.append(template.format(placeholder))
        self.args.append(value)
        return self

    def render(self) -> tuple[str, list[Any]]:
        """Return the conjunction of all clauses and the list of parameters."""
        return " AND ".join(self.clauses), list(self.args)

    def __len__(self) -> int:
        return len(self.clauses)


def build_sorting(order: str = "",
                  direction: str = "",
                  limit: int = 0,
                  offset: int = 0) -> str:
    """Render the ORDER BY/LIMIT/OFFSET part of a query.

    Everything is checked again here, even though EntryQueryBuilder checks
    its input already, because everything ends up in the query text.
    """
    parts: list[str] = []

    order = tokens.sort_column(order)
    direction = tokens.direction(direction)
    limit = tokens.count(limit, "limit")
    offset = tokens.count(offset, "offset")

    if order != "":
        parts.append(f'ORDER BY "{order}"')

    if direction != "":
        parts.append(direction)

    if limit != 0:
        parts.append(f"LIMIT {limit}")

    if offset != 0:
        parts.append(f"OFFSET {offset}")

    return " ".join(parts)


class EntryQueryBuilder:
    """EntryQueryBuilder loads a User's Entries.

    All the with_* methods return the builder itself, so calls can be chained:

        entries = db.new_entry_query_builder(user.user_id, user.timezone) \\
                    .with_status(EntryStatus.Unread) \\
                    .with_order("published_at") \\
                    .with_direction("DESC") \\
                    .with_limit(100) \\
                    .get_entries()

    A value of 0 or "" means the respective filter is not used.
    A builder must not be shared between threads.
    """

    __slots__ = [
        "log",
        "store",
        "_user_id",
        "_timezone",
        "feed_id",
        "category_id",
        "entry_id",
        "gt_entry_id",
        "lt_entry_id",
        "status",
        "order",
        "direction",
        "limit",
        "offset",
        "extra",
    ]

    log: logging.Logger
    store: Database
    _user_id: int
    _timezone: str
    feed_id: int
    category_id: int
    entry_id: int
    gt_entry_id: int
    lt_entry_id: int
    status: str
    order: str
    direction: str
    limit: int
    offset: int
    extra: list[tuple[str, str, Any]]

    def __init__(self, store: Database, user_id: int, timezone: str) -> None:
        self.log = common.get_logger("query")
        self.store = store
        self._user_id = user_id
        if not tokens.is_valid_timezone(timezone):
            self.log.warning("Unknown time zone '%s' for User %d, using %s instead",
                             timezone,
                             user_id,
                             tokens.DefaultTimezone)
        self._timezone = tokens.timezone(timezone)
        self.feed_id = 0
        self.category_id = 0
        self.entry_id = 0
        self.gt_entry_id = 0
        self.lt_entry_id = 0
        self.status = ""
        self.order = ""
        self.direction = ""
        self.limit = 0
        self.offset = 0
        self.extra = []

    @property
    def user_id(self) -> int:
        """Return the ID of the User whose Entries we query."""
        return self._user_id

    @property
    def timezone(self) -> str:
        """Return the time zone timestamps are converted to."""
        return self._timezone

    def with_condition(self, col: str, operator: str, value: Any) -> 'EntryQueryBuilder':
        """Add an arbitrary condition <col> <operator> <value>.

        This is meant for internal use, col and operator still have to pass
        validation, value is passed as a parameter.
        """
        self.extra.append((tokens.column(col), tokens.operator(operator), value))
        return self

    def with_entry_id(self, entry_id: int) -> 'EntryQueryBuilder':
        """Restrict the query to a single Entry."""
        self.entry_id = entry_id
        return self

    def with_entry_id_greater_than(self, entry_id: int) -> 'EntryQueryBuilder':
        """Only load Entries with an ID greater than <entry_id>."""
        self.gt_entry_id = entry_id
        return self

    def with_entry_id_lower_than(self, entry_id: int) -> 'EntryQueryBuilder':
        """Only load Entries with an ID lower than <entry_id>."""
        self.lt_entry_id = entry_id
        return self

    def with_feed_id(self, feed_id: int) -> 'EntryQueryBuilder':
        """Only load Entries from the given Feed."""
        self.feed_id = feed_id
        return self

    def with_category_id(self, category_id: int) -> 'EntryQueryBuilder':
        """Only load Entries from Feeds in the given Category."""
        self.category_id = category_id
        return self

    def with_status(self, status: Union[str, EntryStatus]) -> 'EntryQueryBuilder':
        """Only load Entries with the given status."""
        self.status = tokens.status(status)
        return self

    def with_order(self, order: str) -> 'EntryQueryBuilder':
        """Sort by the given column (id, published_at or status)."""
        self.order = tokens.sort_column(order)
        return self

    def with_direction(self, direction: str) -> 'EntryQueryBuilder':
        """Set the sort direction, ASC or DESC."""
        self.direction = tokens.direction(direction)
        return self

    def with_limit(self, limit: int) -> 'EntryQueryBuilder':
        """Load at most <limit> Entries."""
        self.limit = tokens.count(limit, "limit")
        return self

    def with_offset(self, offset: int) -> 'EntryQueryBuilder':
        """Skip the first <offset> Entries."""
        self.offset = tokens.count(offset, "offset")
        return self

    def build_condition(self) -> tuple[str, list[Any]]:
        """Return the WHERE clause and its parameters."""
        cond: Conditions = Conditions()
        cond.add("e.user_id = {}", self._user_id)

        for col, op, value in self.extra:
            cond.add(f"{col} {op} {{}}", value)

        if self.category_id != 0:
            cond.add("f.category_id={}", self.category_id)

        if self.feed_id != 0:
            cond.add("e.feed_id={}", self.feed_id)

        if self.entry_id != 0:
            cond.add("e.id={}", self.entry_id)

        if self.gt_entry_id != 0:
            cond.add("e.id > {}", self.gt_entry_id)

        if self.lt_entry_id != 0:
            cond.add("e.id < {}", self.lt_entry_id)

        if self.status != "":
            cond.add("e.status={}", self.status)

        return cond.render()

    def build_sorting(self) -> str:
        """Return the ORDER BY/LIMIT/OFFSET part of the query."""
        return build_sorting(self.order, self.direction, self.limit, self.offset)

    def build_query(self) -> tuple[str, list[Any]]:
        """Return the query to load the Entries and its parameters."""
        conditions, args = self.build_condition()
        query: Final[str] = qentries.format(
            published_at=self.store.dialect.localtime("e.published_at", self._timezone),
            conditions=conditions,
            sorting=self.build_sorting(),
        )
        return query, args

    def build_count_query(self) -> tuple[str, list[Any]]:
        """Return the query to count the Entries and its parameters."""
        conditions, args = self.build_condition()
        return qcount.format(conditions=conditions), args

    def count_entries(self) -> int:
        """Return the number of Entries matching the filters."""
        label: Final[str] = \
            f"[EntryQueryBuilder:count_entries] user_id={self._user_id}, " + \
            f"feed_id={self.feed_id}, status={self.status}"
        with common.execution_time(self.log, label):
            query, args = self.build_count_query()
            try:
                row = self.store.query_row(query, args)
            except DatabaseError as err:
                msg: Final[str] = f"unable to count entries: {err}"
                self.log.error(msg)
                raise DatabaseError(msg) from err

            if row is None:
                return 0
            return int(row[0])

    def get_entry(self) -> Optional[Entry]:
        """Load a single Entry, along with its Enclosures.

        Return None if no Entry matches, or if more than one does.
        """
        self.limit = 1
        entries: Final[list[Entry]] = self.get_entries()
        if len(entries) != 1:
            return None

        entry: Final[Entry] = entries[0]
        entry.enclosures = self.store.get_enclosures(entry.entry_id)
        return entry

    def get_entries(self) -> list[Entry]:
        """Load all Entries matching the filters, in the requested order."""
        label: Final[str] = \
            f"[EntryQueryBuilder:get_entries] user_id={self._user_id}, " + \
            f"feed_id={self.feed_id}, category_id={self.category_id}, " + \
            f"status={self.status}, order={self.order}, direction={self.direction}, " + \
            f"offset={self.offset}, limit={self.limit}"

        with common.execution_time(self.log, label):
            query, args = self.build_query()

            try:
                rows = self.store.query(query, args)
            except DatabaseError as err:
                msg: Final[str] = f"unable to get entries: {err}"
                self.log.error(msg)
                raise DatabaseError(msg) from err

            entries: list[Entry] = []
            with rows:
                try:
                    for row in rows:
                        entries.append(self._entry_from_row(row))
                except (DatabaseError, TypeError, ValueError, IndexError) as err:
                    msg = f"unable to fetch entry row: {err}"
                    self.log.error(msg)
                    raise DatabaseError(msg) from err

            return entries

    def _entry_from_row(self, row: tuple) -> Entry:
        """Build an Entry, with its Feed, Category and FeedIcon, from a result row."""
        feed_id: Final[int] = int(row[2])
        icon_id: Final[Optional[int]] = row[16]

        category = Category(
            category_id=row[14] or 0,
            user_id=self._user_id,
            title=row[15] or "",
        )
        icon = FeedIcon(
            feed_id=feed_id,
            icon_id=0 if icon_id is None else int(icon_id),
        )
        feed = Feed(
            feed_id=feed_id,
            user_id=self._user_id,
            title=row[10] or "",
            feed_url=row[11] or "",
            site_url=row[12] or "",
            checked_at=common.to_datetime(row[13]),
            category=category,
            icon=icon,
        )

        return Entry(
            entry_id=int(row[0]),
            user_id=int(row[1]),
            feed_id=feed_id,
            hash=row[3],
            published_at=common.to_datetime(row[4], self._timezone),
            title=row[5],
            url=row[6],
            author=row[7],
            content=row[8],
            status=EntryStatus(row[9]),
            feed=feed,
        )


def new_entry_query_builder(store: Database, user_id: int, timezone: str) -> EntryQueryBuilder:
    """Create an EntryQueryBuilder for the given User."""
    return EntryQueryBuilder(store, user_id, timezone)

# Local Variables: #
# python-indent: 4 #
# End: #
