#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2025-12-13 18:21:47 krylon>
#
# /data/code/python/tidings/src/tidings/engine.py
# created on 30. 09. 2025
# (c) 2025 Benjamin Walkenhorst
#
# This file is part of the tidings feed reader. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
tidings.engine

(c) 2025 Benjamin Walkenhorst

Engine periodically asks the database which Feeds are due for a refresh and
hands them to a pool of workers.
"""


import logging
from datetime import timedelta
from queue import Empty, SimpleQueue
from threading import Event, Lock, Thread
from typing import Final, Optional, Union

from tidings import common
from tidings.database import Database, DatabaseError, open_database
from tidings.model import Job
from tidings.refresh import Refresher, RefreshError

qtimeout: Final[int] = 5
default_batch_size: Final[int] = 100
default_worker_count: Final[int] = 8


class Engine:
    """Engine keeps the Feeds fresh."""

    __slots__ = [
        "log",
        "dsn",
        "interval",
        "batch_size",
        "worker_count",
        "lock",
        "_active",
        "_wakeup",
        "_pending",
        "jobq",
        "threads",
    ]

    log: logging.Logger
    dsn: Optional[str]
    interval: timedelta
    batch_size: int
    worker_count: int
    lock: Lock
    _active: bool
    _wakeup: Event
    _pending: set[int]
    jobq: SimpleQueue
    threads: list[Thread]

    def __init__(self,
                 interval: Union[int, float, timedelta],
                 batch_size: int = default_batch_size,
                 worker_count: int = default_worker_count,
                 dsn: Optional[str] = None) -> None:
        self.log = common.get_logger("engine")
        self.dsn = dsn
        self.lock = Lock()
        self._active = False
        self._wakeup = Event()
        self._pending = set()
        self.jobq = SimpleQueue()
        self.threads = []
        match interval:
            case int(x):
                self.interval = timedelta(seconds=x)
            case float(x):
                self.interval = timedelta(seconds=x)
            case x if isinstance(x, timedelta):
                self.interval = x
            case _:
                name = interval.__class__.__name__
                msg = f"Interval must be a number (of seconds) or a timedelta, not a {name}"
                raise ValueError(msg)

        if batch_size <= 0:
            raise ValueError(f"Invalid batch size: {batch_size} (must be > 0)")
        if worker_count <= 0:
            raise ValueError(f"Invalid worker count: {worker_count} (must be > 0)")
        self.batch_size = batch_size
        self.worker_count = worker_count

        self.log.debug("Engine will check for stale Feeds every %s seconds.",
                       self.interval.total_seconds())

    @property
    def active(self) -> bool:
        """Return the Engine's active flag."""
        with self.lock:
            return self._active

    @active.setter
    def active(self, value: bool) -> None:
        """Set the Engine's active flag."""
        with self.lock:
            self._active = value
        if not value:
            self._wakeup.set()

    def start(self) -> None:
        """Start the feeder and the workers."""
        self.log.debug("Engine is starting.")
        self.active = True
        self._wakeup.clear()

        for i in range(self.worker_count):
            idx: int = i+1
            w: Thread = Thread(name=f"Worker{idx:02d}",
                               target=self._worker_loop,
                               args=(idx, ),
                               daemon=True)
            w.start()
            self.threads.append(w)

        feeder: Thread = Thread(name="Feeder", target=self._feeder_loop, daemon=True)
        feeder.start()
        self.threads.append(feeder)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Tell all threads to quit, and wait for them to do so."""
        self.log.debug("Engine is stopping.")
        self.active = False
        for t in self.threads:
            t.join(timeout)
        self.threads.clear()

    def dispatch(self, jobs: list[Job]) -> int:
        """Queue the Jobs whose Feeds are not already being refreshed.

        Return the number of Jobs queued.
        """
        cnt: int = 0
        with self.lock:
            for job in jobs:
                if job.feed_id in self._pending:
                    continue
                self._pending.add(job.feed_id)
                self.jobq.put(job)
                cnt += 1
        return cnt

    def _done(self, job: Job) -> None:
        with self.lock:
            self._pending.discard(job.feed_id)

    def _feeder_loop(self) -> None:
        """Periodically load a batch of stale Feeds and feed them to the Job queue."""
        self.log.debug("Feeder loop is starting up.")
        db: Optional[Database] = None
        try:
            db = open_database(self.dsn)
            while self.active:
                jobs: list[Job] = db.get_jobs(self.batch_size)
                if len(jobs) > 0:
                    cnt = self.dispatch(jobs)
                    self.log.debug("Feeder dispatched %d of %d jobs", cnt, len(jobs))
                self._wakeup.wait(self.interval.total_seconds())
        except common.TidingsError as err:
            self.log.critical("Feeder loop cannot go on: %s", err)
        finally:
            self.log.debug("Feeder loop is quitting.")
            if db is not None:
                db.close()

    def _worker_loop(self, num: int) -> None:
        """Refresh Feeds as they come in through the Job queue."""
        self.log.debug("Worker %02d is starting up.", num)
        db: Optional[Database] = None
        try:
            db = open_database(self.dsn)
            refresher: Final[Refresher] = Refresher(db)
            while self.active:
                try:
                    job: Job = self.jobq.get(True, qtimeout)
                except Empty:
                    continue

                try:
                    cnt = refresher.refresh(job)
                    self.log.debug("Worker %02d got %d new Entries for Feed %d",
                                   num,
                                   cnt,
                                   job.feed_id)
                except RefreshError as err:
                    self.log.error("Worker %02d: %s", num, err)
                except DatabaseError as err:
                    self.log.error("Worker %02d: Database error refreshing Feed %d: %s",
                                   num,
                                   job.feed_id,
                                   err)
                except Exception as err:  # pylint: disable-msg=W0718
                    self.log.exception("Worker %02d: Unexpected %s refreshing Feed %d: %s",
                                       num,
                                       err.__class__.__name__,
                                       job.feed_id,
                                       err)
                finally:
                    self._done(job)
        except common.TidingsError as err:
            self.log.critical("Worker %02d cannot go on: %s", num, err)
        finally:
            self.log.debug("Worker %02d is quitting.", num)
            if db is not None:
                db.close()

# Local Variables: #
# python-indent: 4 #
# End: #
