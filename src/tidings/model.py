#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2025-12-06 17:40:27 krylon>
#
# /data/code/python/tidings/src/tidings/model.py
# created on 30. 09. 2025
# (c) 2025 Benjamin Walkenhorst
#
# This file is part of the tidings feed reader. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
tidings.model

(c) 2025 Benjamin Walkenhorst
"""


from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Final, NamedTuple, Optional

from bs4 import BeautifulSoup

from tidings import common
from tidings.scrub import Scrubber


class EntryStatus(str, Enum):
    """EntryStatus is the read state of an Entry."""

    Unread = "unread"
    Read = "read"
    Removed = "removed"

    def __str__(self) -> str:
        return self.value


DefaultSortingOrder: Final[str] = "published_at"
DefaultSortingDirection: Final[str] = "DESC"


@dataclass(kw_only=True, slots=True)
class User:
    """User is a person who has an account with us."""

    user_id: int = 0
    username: str
    timezone: str = "UTC"
    language: str = "en_US"
    is_admin: bool = False


@dataclass(kw_only=True, slots=True)
class Category:
    """Category groups a User's Feeds."""

    category_id: int = 0
    user_id: int = 0
    title: str = ""


@dataclass(kw_only=True, slots=True)
class FeedIcon:
    """FeedIcon links a Feed to its icon. An icon_id of 0 means there is none."""

    feed_id: int = 0
    icon_id: int = 0


@dataclass(kw_only=True, slots=True)
class Feed:
    """Feed is an RSS/Atom feed a User subscribes to."""

    feed_id: int = 0
    user_id: int = 0
    title: str = ""
    feed_url: str = ""
    site_url: str = ""
    checked_at: Optional[datetime] = None
    category: Category = field(default_factory=Category)
    icon: FeedIcon = field(default_factory=FeedIcon)
    parsing_error_count: int = 0
    parsing_error_msg: str = ""

    @property
    def checked_str(self) -> str:
        """Return checked_at as a human-readable string, "" if it never happened."""
        if self.checked_at is None or self.checked_at.timestamp() <= 0:
            return ""
        return self.checked_at.strftime(common.TimeFmt)


@dataclass(kw_only=True, slots=True)
class Enclosure:
    """Enclosure is a file attached to an Entry, e.g. a podcast episode."""

    enclosure_id: int = 0
    user_id: int = 0
    entry_id: int = 0
    url: str
    mime_type: str = ""
    size: int = 0


@dataclass(kw_only=True, slots=True)
class Entry:
    """Entry is a single item from a Feed."""

    entry_id: int = 0
    user_id: int = 0
    feed_id: int = 0
    hash: str = ""
    published_at: Optional[datetime] = None
    title: str = ""
    url: str = ""
    author: str = ""
    content: str = ""
    status: EntryStatus = EntryStatus.Unread
    feed: Optional[Feed] = None
    enclosures: list[Enclosure] = field(default_factory=list)

    @property
    def published_str(self) -> str:
        """Return the publication time as a properly formatted string."""
        if self.published_at is None:
            return ""
        return self.published_at.strftime(common.TimeFmt)

    @property
    def is_unread(self) -> bool:
        """Return True if the User has not read the Entry yet."""
        return self.status == EntryStatus.Unread

    @property
    def clean_content(self) -> str:
        """Return a sanitized copy of the Entry's content."""
        return Scrubber().scrub_html(self.content)

    @property
    def excerpt(self) -> str:
        """Return the first few hundred characters of the content, without markup."""
        soup = BeautifulSoup(self.clean_content, "html.parser")
        plain: Final[str] = " ".join(soup.get_text().split())
        if len(plain) <= 300:
            return plain
        return plain[:300].rsplit(" ", 1)[0] + " …"


class Job(NamedTuple):
    """Job tells a refresh worker which Feed to fetch, on behalf of which User."""

    feed_id: int
    user_id: int

# Local Variables: #
# python-indent: 4 #
# End: #
