#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2025-12-12 20:48:31 krylon>
#
# /data/code/python/tidings/src/tidings/web.py
# created on 11. 10. 2025
# (c) 2025 Benjamin Walkenhorst
#
# This file is part of the tidings feed reader. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
tidings.web

(c) 2025 Benjamin Walkenhorst
"""


import json
import logging
import pathlib
import secrets
import socket
from datetime import datetime
from threading import Lock
from typing import Any, Callable, Final, Optional, Union

import bottle
from bottle import request, response
from jinja2 import Environment, FileSystemLoader, select_autoescape

from tidings import common
from tidings.controller import Controller, NotFoundError
from tidings.database import Database, DatabaseError, open_database
from tidings.scrub import safe_url
from tidings.session import AuthenticationError, Context, Session
from tidings.tokens import InvalidTokenError

SessionCookie: Final[str] = f"{common.AppName.lower()}_session"


def load_secret() -> str:
    """Return the secret used to sign session cookies, create it if needed."""
    path: Final[pathlib.Path] = common.path.secret
    if not path.exists():
        common.init_app()
        path.write_text(secrets.token_hex(32), encoding="utf-8")
        path.chmod(0o600)
    return path.read_text(encoding="utf-8").strip()


def session_data(user_id: int,
                 timezone: str = "UTC",
                 is_admin: bool = False,
                 csrf: Optional[str] = None) -> str:
    """Return the payload of a session cookie for the given User."""
    return json.dumps({
        "user_id": user_id,
        "timezone": timezone,
        "is_admin": is_admin,
        "csrf": csrf if csrf is not None else secrets.token_urlsafe(24),
    })


def decode_session(raw: Optional[str]) -> Session:
    """Turn the payload of a session cookie into a Session."""
    if not raw:
        return Session.anonymous()
    try:
        data = json.loads(raw)
    except ValueError:
        return Session.anonymous()
    return Session.from_dict(data)


class WebUI:
    """Present a shiny face to the casual observer."""

    __slots__ = [
        "log",
        "lock",
        "tmpl_root",
        "env",
        "host",
        "port",
        "dsn",
        "secret",
        "app",
        "controller",
    ]

    log: logging.Logger
    lock: Lock
    tmpl_root: pathlib.Path
    env: Environment
    host: str
    port: int
    dsn: Optional[str]
    secret: str
    app: bottle.Bottle
    controller: Controller

    def __init__(self,
                 root: Union[str, pathlib.Path] = "",
                 host: str = "localhost",
                 port: int = 4107,
                 dsn: Optional[str] = None) -> None:
        self.log = common.get_logger("web")
        self.lock = Lock()

        self.log.info("Web interface is coming up...")

        self.host = host
        self.port = port
        self.dsn = dsn
        self.secret = load_secret()
        self.controller = Controller()

        match root:
            case "":
                self.tmpl_root = pathlib.Path(__file__).parent.joinpath("templates")
            case str() as x:
                self.tmpl_root = pathlib.Path(x)
            case _ if isinstance(root, pathlib.Path):
                self.tmpl_root = root
            case _:
                raise TypeError("Invalid type for root (must be str or pathlib.Path)")

        self.env = Environment(loader=FileSystemLoader(str(self.tmpl_root)),
                               autoescape=select_autoescape(["jinja", "html"]))
        self.env.globals = {
            "dbg": common.Debug,
            "app_string": f"{common.AppName} {common.AppVersion}",
            "hostname": socket.gethostname(),
        }
        self.env.filters["safe_url"] = safe_url

        bottle.debug(common.Debug)
        self.app = bottle.Bottle()
        self.app.route("/", callback=self._handle_index)
        self.app.route("/unread", callback=self._handle_unread)
        self.app.route("/feed/<feed_id:int>/entries", callback=self._handle_feed_entries)
        self.app.route("/category/<category_id:int>/entries",
                       callback=self._handle_category_entries)
        self.app.route("/entry/<entry_id:int>", callback=self._handle_entry)
        self.app.route("/login", method="GET", callback=self._handle_login_form)
        self.app.route("/login", method="POST", callback=self._handle_login)
        self.app.route("/logout", callback=self._handle_logout)

    def _tmpl_vars(self) -> dict:
        """Return a dict with a few default variables filled in already."""
        default: dict = {
            "now": datetime.now().strftime(common.TimeFmt),
            "year": datetime.now().year,
            "time_fmt": common.TimeFmt,
        }

        return default

    def run(self) -> None:
        """Run the web server."""
        bottle.run(app=self.app, host=self.host, port=self.port, debug=common.Debug)

    def session(self) -> Session:
        """Return the Session of the current request."""
        raw = request.get_cookie(SessionCookie, secret=self.secret)
        return decode_session(raw if isinstance(raw, str) else None)

    def _offset(self) -> int:
        """Return the offset query parameter of the current request."""
        try:
            return max(0, int(request.query.get("offset", "0")))
        except ValueError:
            return 0

    def render(self, name: str, tmpl_vars: dict[str, Any]) -> str:
        """Render a template."""
        tmpl = self.env.get_template(name)
        all_vars = self._tmpl_vars()
        all_vars.update(tmpl_vars)
        return tmpl.render(all_vars)

    def _error(self, status: int, message: str) -> str:
        response.status = status
        response.set_header("Cache-Control", "no-store, max-age=0")
        return self.render("error.jinja", {
            "title": f"{common.AppName} - Error {status}",
            "status": status,
            "message": message,
            "url": request.get_header("Referer"),
        })

    def _page(self, title: str, tmpl: str, handler: Callable[[Context], dict[str, Any]]) -> str:
        """Run <handler> in a Context for the current request and render the result."""
        db: Optional[Database] = None
        try:
            db = open_database(self.dsn)
            ctx = Context(self.session(), db)
            tmpl_vars = handler(ctx)
            tmpl_vars["title"] = f"{common.AppName} {common.AppVersion} - {title}"
            response.set_header("Cache-Control", "no-store, max-age=0")
            return self.render(tmpl, tmpl_vars)
        except AuthenticationError as err:
            self.log.info("Rejecting request for %s: %s", request.path, err)
            return self._error(401, "You need to log in to see this page.")
        except NotFoundError as err:
            return self._error(404, str(err))
        except InvalidTokenError as err:
            return self._error(400, str(err))
        except DatabaseError as err:
            self.log.error("Database error handling %s: %s", request.path, err)
            return self._error(500, "Internal error, please try again later.")
        finally:
            if db is not None:
                db.close()

    def _handle_index(self) -> None:
        bottle.redirect("/unread")

    def _handle_login_form(self) -> str:
        """Present the login form."""
        response.set_header("Cache-Control", "no-store, max-age=0")
        return self.render("login.jinja", {
            "title": f"{common.AppName} {common.AppVersion} - Log in",
            "username": "",
            "message": "",
        })

    def _handle_login(self) -> str:
        """Start a Session for the User named in the login form."""
        username: Final[str] = (request.forms.getunicode("username") or "").strip()
        db: Optional[Database] = None
        try:
            db = open_database(self.dsn)
            user = db.user_get_by_name(username) if username else None
        except DatabaseError as err:
            self.log.error("Database error looking up User %s: %s", username, err)
            return self._error(500, "Internal error, please try again later.")
        finally:
            if db is not None:
                db.close()

        if user is None:
            self.log.info("Rejecting login for unknown User '%s'", username)
            response.status = 401
            response.set_header("Cache-Control", "no-store, max-age=0")
            return self.render("login.jinja", {
                "title": f"{common.AppName} {common.AppVersion} - Log in",
                "username": username,
                "message": "Unknown user name.",
            })

        self.log.info("User %s (%d) logged in", user.username, user.user_id)
        response.set_cookie(SessionCookie,
                            session_data(user.user_id, user.timezone, user.is_admin),
                            secret=self.secret,
                            path="/",
                            httponly=True,
                            samesite="lax")
        bottle.redirect("/unread")
        return ""

    def _handle_logout(self) -> None:
        """End the current Session."""
        response.delete_cookie(SessionCookie, path="/")
        bottle.redirect("/login")

    def _handle_unread(self) -> str:
        """Present the unread Entries."""
        offset: Final[int] = self._offset()
        return self._page("Unread",
                          "entries.jinja",
                          lambda ctx: self.controller.show_unread_page(ctx, offset))

    def _handle_feed_entries(self, feed_id: int) -> str:
        """Present the Entries of one Feed."""
        offset: Final[int] = self._offset()
        return self._page("Feed",
                          "entries.jinja",
                          lambda ctx: self.controller.show_feed_entries(ctx, feed_id, offset))

    def _handle_category_entries(self, category_id: int) -> str:
        """Present the Entries of one Category."""
        offset: Final[int] = self._offset()
        return self._page("Category",
                          "entries.jinja",
                          lambda ctx: self.controller.show_category_entries(ctx,
                                                                            category_id,
                                                                            offset))

    def _handle_entry(self, entry_id: int) -> str:
        """Present a single Entry."""
        return self._page("Entry",
                          "entry.jinja",
                          lambda ctx: self.controller.show_entry(ctx, entry_id))

# Local Variables: #
# python-indent: 4 #
# End: #
