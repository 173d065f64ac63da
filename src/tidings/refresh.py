#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2025-12-13 16:55:20 krylon>
#
# /data/code/python/tidings/src/tidings/refresh.py
# created on 06. 12. 2025
# (c) 2025 Benjamin Walkenhorst
#
# This file is part of the tidings feed reader. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
tidings.refresh

(c) 2025 Benjamin Walkenhorst

Refresher downloads a Feed and stores the Entries we have not seen before.
"""


import hashlib
import logging
from datetime import datetime
from typing import Any, Callable, Final, NoReturn, Optional

import fastfeedparser as ffp  # type: ignore # pylint: disable-msg=E0401

from tidings import common
from tidings.database import Database
from tidings.model import Enclosure, Entry, Feed, Job
from tidings.scrub import safe_url

timepat: Final[str] = "%Y-%m-%dT%H:%M:%S%z"

# Enclosure sizes are stored in a signed 64 bit column.
MaxEnclosureSize: Final[int] = 2**63 - 1


class RefreshError(common.TidingsError):
    """RefreshError indicates a Feed could not be fetched or parsed."""


def entry_hash(article: dict) -> str:
    """Compute the hash identifying an Entry within its Feed."""
    key: str = article.get("id") or article.get("link") or article.get("title") or ""
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


def enclosure_size(length: Any) -> int:
    """Convert the length attribute of an enclosure to a size in bytes.

    Missing, malformed, negative or absurdly large values give 0.
    """
    try:
        size = int(length or 0)
    except (TypeError, ValueError, OverflowError):
        return 0
    if size < 0 or size > MaxEnclosureSize:
        return 0
    return size


class Refresher:
    """Refresher fetches Feeds and stores new Entries in the database."""

    __slots__ = [
        "log",
        "db",
        "parse",
    ]

    log: logging.Logger
    db: Database
    parse: Callable[[str], Any]

    def __init__(self, db: Database, parse: Optional[Callable[[str], Any]] = None) -> None:
        self.log = common.get_logger("refresh")
        self.db = db
        self.parse = parse if parse is not None else ffp.parse

    def refresh(self, job: Job) -> int:
        """Refresh the Feed described by <job>. Return the number of new Entries.

        If the Feed cannot be fetched, parsed or stored, its error counter is
        incremented and RefreshError is raised. A successful refresh resets
        the error counter.
        """
        feed: Final[Optional[Feed]] = self.db.feed_get_by_id(job.user_id, job.feed_id)
        if feed is None:
            self.log.info("Feed %d of User %d does not exist (anymore)",
                          job.feed_id,
                          job.user_id)
            return 0

        self.log.debug("Refresh Feed %s (%d / %s)",
                       feed.title,
                       feed.feed_id,
                       feed.feed_url)

        try:
            parsed = self.parse(feed.feed_url)
        except Exception as err:  # pylint: disable-msg=W0718
            self._failed(feed, "fetch", err)

        cnt: int = 0
        try:
            with self.db:
                for article in parsed.get("entries", []):
                    entry = self._make_entry(feed, article)
                    if self.db.entry_add(entry):
                        cnt += 1

                self.db.feed_set_checked(feed.feed_id, common.utc_now())
                self.db.feed_reset_errors(feed.feed_id)
        except Exception as err:  # pylint: disable-msg=W0718
            self._failed(feed, "store", err)

        self.log.debug("Got %d new Entries from %s", cnt, feed.title)
        return cnt

    def _failed(self, feed: Feed, stage: str, err: Exception) -> NoReturn:
        """Count a failed attempt to refresh <feed>, then raise RefreshError."""
        msg: Final[str] = f"{err.__class__.__name__}: {err}"
        self.log.error("Failed to %s Feed %s (%s): %s",
                       stage,
                       feed.title,
                       feed.feed_url,
                       msg)
        self.db.feed_set_checked(feed.feed_id, common.utc_now())
        self.db.feed_increment_errors(feed.feed_id, msg)
        raise RefreshError(f"Failed to {stage} Feed {feed.feed_url}: {msg}") from err

    def _make_entry(self, feed: Feed, article: dict) -> Entry:
        """Turn an item from the parsed Feed into an Entry."""
        enclosures: list[Enclosure] = []
        for enc in article.get("enclosures") or []:
            url = safe_url(enc.get("url") or "")
            if not url:
                continue
            enclosures.append(Enclosure(url=url,
                                        mime_type=enc.get("type") or "",
                                        size=enclosure_size(enc.get("length"))))

        return Entry(
            user_id=feed.user_id,
            feed_id=feed.feed_id,
            hash=entry_hash(article),
            published_at=self._timestamp(article),
            title=article.get("title") or "",
            url=safe_url(article.get("link") or ""),
            author=article.get("author") or "",
            content=self._content(article),
            enclosures=enclosures,
        )

    def _content(self, article: dict) -> str:
        """Try to get a description/summary from an Atom/RSS item."""
        content = article.get("content")
        if content:
            first = content[0]
            if isinstance(first, dict):
                return first.get("value") or ""
            return str(first)
        return article.get("description") or article.get("summary") or ""

    def _timestamp(self, article: dict) -> datetime:
        """Try to get a timestamp from an Atom or RSS item."""
        timestr: str = article.get("published") or article.get("updated") or ""

        if timestr != "":
            try:
                stamp = datetime.fromisoformat(timestr)
            except ValueError:
                try:
                    stamp = datetime.strptime(timestr, timepat)
                except ValueError:
                    self.log.info("Cannot parse timestamp '%s', using current time.", timestr)
                    return common.utc_now()
            if stamp.tzinfo is None:
                stamp = stamp.replace(tzinfo=common.utc_now().tzinfo)
            return stamp

        self.log.info("Did not find timestamp in Entry, using current time.")
        return common.utc_now()

# Local Variables: #
# python-indent: 4 #
# End: #
