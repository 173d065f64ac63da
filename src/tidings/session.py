#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2025-12-10 21:05:56 krylon>
#
# /data/code/python/tidings/src/tidings/session.py
# created on 04. 12. 2025
# (c) 2025 Benjamin Walkenhorst
#
# This file is part of the tidings feed reader. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
tidings.session

(c) 2025 Benjamin Walkenhorst
"""


import logging
from dataclasses import dataclass
from typing import Any, Final, Optional

from tidings import common, tokens
from tidings.database import Database
from tidings.model import User


class AuthenticationError(common.TidingsError):
    """AuthenticationError means we could not figure out who sent a request."""


@dataclass(kw_only=True, slots=True, frozen=True)
class Session:
    """Session holds what we know about the sender of a request."""

    user_id: int = 0
    is_authenticated: bool = False
    is_admin: bool = False
    timezone: str = tokens.DefaultTimezone
    csrf_token: str = ""

    @classmethod
    def anonymous(cls) -> 'Session':
        """Return a Session for a request we know nothing about."""
        return cls()

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> 'Session':
        """Build a Session from the decoded session cookie.

        Anything that is missing or has the wrong type results in an
        anonymous Session.
        """
        if not isinstance(data, dict):
            return cls.anonymous()

        user_id = data.get("user_id")
        if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id <= 0:
            return cls.anonymous()

        csrf = data.get("csrf", "")
        tz = data.get("timezone", tokens.DefaultTimezone)
        return cls(
            user_id=user_id,
            is_authenticated=True,
            is_admin=data.get("is_admin") is True,
            timezone=tokens.timezone(tz if isinstance(tz, str) else None),
            csrf_token=csrf if isinstance(csrf, str) else "",
        )


class Context:
    """Context bundles the Session and the database for handling one request."""

    __slots__ = [
        "log",
        "session",
        "db",
        "_user",
    ]

    log: logging.Logger
    session: Session
    db: Database
    _user: Optional[User]

    def __init__(self, session: Session, db: Database) -> None:
        self.log = common.get_logger("context")
        self.session = session
        self.db = db
        self._user = None

    @property
    def is_admin(self) -> bool:
        """Return True if the logged in User is an administrator."""
        return self.session.is_admin

    @property
    def is_authenticated(self) -> bool:
        """Return True if the request comes from a logged in User."""
        return self.session.is_authenticated

    @property
    def user_id(self) -> int:
        """Return the ID of the logged in User, or 0."""
        return self.session.user_id

    @property
    def timezone(self) -> str:
        """Return the time zone of the logged in User."""
        return self.session.timezone

    @property
    def csrf_token(self) -> str:
        """Return the CSRF token of the Session."""
        if self.session.csrf_token == "":
            self.log.info("No CSRF token in session!")
        return self.session.csrf_token

    @property
    def user(self) -> User:
        """Return the logged in User, load them from the database on first access.

        Raise AuthenticationError if the request is not authenticated or the
        User does not exist (anymore).
        """
        if self._user is None:
            if not self.session.is_authenticated:
                raise AuthenticationError("Request is not authenticated")

            user: Final[Optional[User]] = self.db.user_get_by_id(self.session.user_id)
            if user is None:
                msg: Final[str] = f"Unable to find User {self.session.user_id} from session"
                self.log.error(msg)
                raise AuthenticationError(msg)
            self._user = user

        return self._user

    @property
    def language(self) -> str:
        """Return the language setting of the logged in User."""
        return self.user.language

# Local Variables: #
# python-indent: 4 #
# End: #
