#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2025-12-14 12:09:35 krylon>
#
# /data/code/python/tidings/src/tidings/main.py
# created on 11. 10. 2025
# (c) 2025 Benjamin Walkenhorst
#
# This file is part of the tidings feed reader. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
tidings.main

(c) 2025 Benjamin Walkenhorst
"""


import argparse
import logging
import pathlib
import signal
import sys
from threading import Thread
from typing import Optional

from tidings import common, tokens
from tidings.database import Database, open_database
from tidings.engine import Engine, default_batch_size, default_worker_count
from tidings.model import Feed, User
from tidings.web import WebUI


def add_user(dsn: Optional[str], name: str, timezone: str) -> int:
    """Create a User. Return their ID."""
    db: Database = open_database(dsn)
    try:
        user = User(username=name, timezone=tokens.timezone(timezone))
        db.user_add(user)
        return user.user_id
    finally:
        db.close()


def subscribe(dsn: Optional[str], user_id: int, url: str) -> int:
    """Subscribe a User to a Feed. The Feed is put in the User's first Category."""
    db: Database = open_database(dsn)
    try:
        if db.user_get_by_id(user_id) is None:
            raise common.TidingsError(f"User {user_id} does not exist")
        categories = db.category_get_all(user_id)
        if len(categories) == 0:
            raise common.TidingsError(f"User {user_id} has no Category to put the Feed in")
        feed = Feed(user_id=user_id,
                    title=url,
                    feed_url=url,
                    category=categories[0])
        db.feed_add(feed)
        return feed.feed_id
    finally:
        db.close()


def main() -> None:
    """Run the tidings application."""
    argp: argparse.ArgumentParser = argparse.ArgumentParser()
    argp.add_argument("-e", "--engine",
                      action="store_true",
                      help="Run the Feed refresh engine")
    argp.add_argument("-w", "--web",
                      action="store_true",
                      help="Run the web server")
    argp.add_argument("-a", "--address",
                      default="localhost",
                      help="The IP address(es) or hostname to listen on")
    argp.add_argument("-p", "--port",
                      type=int,
                      default=4107,
                      help="The port for the web interface to listen on")
    argp.add_argument("-b", "--basedir",
                      type=pathlib.Path,
                      default=common.path.base(),
                      help="The directory to store application-specific files in")
    argp.add_argument("-d", "--dsn",
                      default=None,
                      help="PostgreSQL connection string (default: SQLite in the basedir)")
    argp.add_argument("--batch-size",
                      type=int,
                      default=default_batch_size,
                      help="How many Feeds to refresh per round")
    argp.add_argument("--workers",
                      type=int,
                      default=default_worker_count,
                      help="How many Feeds to refresh in parallel")
    argp.add_argument("--interval",
                      type=int,
                      default=60,
                      help="Seconds to wait between rounds of refreshing")
    argp.add_argument("--add-user",
                      metavar="NAME",
                      help="Create a User")
    argp.add_argument("--timezone",
                      default="UTC",
                      help="The time zone of the User created with --add-user")
    argp.add_argument("--subscribe",
                      metavar="URL",
                      help="Subscribe the User given by --user to a Feed")
    argp.add_argument("--user",
                      type=int,
                      default=0,
                      help="The ID of the User to subscribe")

    args = argp.parse_args()

    common.set_basedir(args.basedir)
    lg: logging.Logger = common.get_logger("main")

    try:
        if args.add_user:
            uid = add_user(args.dsn, args.add_user, args.timezone)
            lg.info("Created User %s with ID %d", args.add_user, uid)
            return

        if args.subscribe:
            fid = subscribe(args.dsn, args.user, args.subscribe)
            lg.info("Subscribed User %d to %s, Feed ID is %d", args.user, args.subscribe, fid)
            return
    except common.TidingsError as err:
        lg.error("%s", err)
        sys.exit(1)

    eng: Engine = Engine(args.interval,
                         batch_size=args.batch_size,
                         worker_count=args.workers,
                         dsn=args.dsn)

    if args.engine:
        eng.start()

    if args.web:
        srv = WebUI("", args.address, args.port, dsn=args.dsn)
        t = Thread(target=srv.run, daemon=True)
        t.start()

    if not (args.engine or args.web):
        # Looks like we have nothing to do! \o/
        return

    try:
        signal.pause()
    except KeyboardInterrupt:
        print("Quitting now, bye!")

    if args.engine:
        eng.stop(5)

    print("So long, and thanks for all the fish.")


if __name__ == '__main__':
    main()

# Local Variables: #
# python-indent: 4 #
# End: #
