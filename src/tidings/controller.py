#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2025-12-11 19:27:03 krylon>
#
# /data/code/python/tidings/src/tidings/controller.py
# created on 04. 12. 2025
# (c) 2025 Benjamin Walkenhorst
#
# This file is part of the tidings feed reader. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
tidings.controller

(c) 2025 Benjamin Walkenhorst

The Controller gathers the data for the pages of the web interface.
It does not know anything about HTTP, it returns the variables a template
needs, and the web layer renders them.
"""


import logging
from dataclasses import dataclass
from typing import Any, Final, Optional

from tidings import common
from tidings.model import (DefaultSortingDirection, DefaultSortingOrder,
                           Entry, EntryStatus, Feed)
from tidings.query import EntryQueryBuilder
from tidings.session import Context

NbItemsPerPage: Final[int] = 100


class NotFoundError(common.TidingsError):
    """NotFoundError means the requested object does not exist, or belongs to someone else."""


@dataclass(kw_only=True, slots=True)
class Pagination:
    """Pagination describes where we are in a list of Entries."""

    route: str
    total: int
    offset: int
    items_per_page: int = NbItemsPerPage

    @property
    def show_next(self) -> bool:
        """Return True if there is a next page."""
        return self.offset + self.items_per_page < self.total

    @property
    def next_offset(self) -> int:
        """Return the offset of the next page."""
        return self.offset + self.items_per_page if self.show_next else self.offset

    @property
    def show_prev(self) -> bool:
        """Return True if there is a previous page."""
        return self.offset > 0

    @property
    def prev_offset(self) -> int:
        """Return the offset of the previous page."""
        return max(0, self.offset - self.items_per_page)


class Controller:
    """Controller implements the pages showing Entries."""

    __slots__ = ["log"]

    log: logging.Logger

    def __init__(self) -> None:
        self.log = common.get_logger("controller")

    def _builder(self, ctx: Context) -> EntryQueryBuilder:
        user = ctx.user
        return ctx.db.new_entry_query_builder(user.user_id, user.timezone)

    def _listing(self,
                 ctx: Context,
                 builder: EntryQueryBuilder,
                 route: str,
                 offset: int) -> dict[str, Any]:
        """Load one page of Entries plus the total count."""
        builder.with_order(DefaultSortingOrder) \
               .with_direction(DefaultSortingDirection) \
               .with_offset(max(0, offset)) \
               .with_limit(NbItemsPerPage)

        entries: Final[list[Entry]] = builder.get_entries()
        count: Final[int] = builder.count_entries()

        return {
            "user": ctx.user,
            "entries": entries,
            "count": count,
            "pagination": Pagination(route=route, total=count, offset=max(0, offset)),
            "csrf": ctx.csrf_token,
        }

    def show_unread_page(self, ctx: Context, offset: int = 0) -> dict[str, Any]:
        """Gather the User's unread Entries, newest first."""
        builder = self._builder(ctx).with_status(EntryStatus.Unread)
        tmpl_vars = self._listing(ctx, builder, "/unread", offset)
        tmpl_vars["menu"] = "unread"
        tmpl_vars["count_unread"] = tmpl_vars["count"]
        return tmpl_vars

    def show_feed_entries(self, ctx: Context, feed_id: int, offset: int = 0) -> dict[str, Any]:
        """Gather the Entries of one of the User's Feeds."""
        feed: Final[Optional[Feed]] = ctx.db.feed_get_by_id(ctx.user.user_id, feed_id)
        if feed is None:
            raise NotFoundError(f"Feed {feed_id} does not exist")

        builder = self._builder(ctx).with_feed_id(feed_id)
        tmpl_vars = self._listing(ctx, builder, f"/feed/{feed_id}/entries", offset)
        tmpl_vars["menu"] = "feeds"
        tmpl_vars["feed"] = feed
        return tmpl_vars

    def show_category_entries(self,
                              ctx: Context,
                              category_id: int,
                              offset: int = 0) -> dict[str, Any]:
        """Gather the Entries of all Feeds in one of the User's Categories."""
        categories = {c.category_id: c for c in ctx.db.category_get_all(ctx.user.user_id)}
        if category_id not in categories:
            raise NotFoundError(f"Category {category_id} does not exist")

        builder = self._builder(ctx).with_category_id(category_id)
        tmpl_vars = self._listing(ctx, builder, f"/category/{category_id}/entries", offset)
        tmpl_vars["menu"] = "categories"
        tmpl_vars["category"] = categories[category_id]
        return tmpl_vars

    def show_entry(self, ctx: Context, entry_id: int) -> dict[str, Any]:
        """Load a single Entry and mark it as read."""
        entry: Final[Optional[Entry]] = \
            self._builder(ctx).with_entry_id(entry_id).get_entry()
        if entry is None:
            raise NotFoundError(f"Entry {entry_id} does not exist")

        if entry.is_unread:
            ctx.db.entry_set_status(ctx.user.user_id, entry.entry_id, EntryStatus.Read)
            entry.status = EntryStatus.Read

        return {
            "user": ctx.user,
            "entry": entry,
            "menu": "unread",
            "csrf": ctx.csrf_token,
        }

# Local Variables: #
# python-indent: 4 #
# End: #
