#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2025-12-12 21:30:09 krylon>
#
# /data/code/python/tidings/src/tidings/scrub.py
# created on 05. 11. 2025
# (c) 2025 Benjamin Walkenhorst
#
# This file is part of the tidings feed reader. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
tidings.scrub

(c) 2025 Benjamin Walkenhorst

This module implements the sanitizing of Entry contents.
"""


from typing import Final, Optional
from urllib.parse import urlsplit

from bs4 import BeautifulSoup

safe_schemes: Final[frozenset[str]] = frozenset({"", "http", "https"})
script_schemes: Final[frozenset[str]] = frozenset({"javascript", "vbscript"})

forbidden_tags: Final[tuple[str, ...]] = (
    "script",
    "style",
    "iframe",
    "object",
    "embed",
    "form",
)


def url_scheme(url: str) -> Optional[str]:
    """Return the scheme of <url> as a browser sees it, in lower case.

    If <url> cannot be parsed, return None.
    """
    # Browsers ignore control characters and whitespace in the scheme.
    cleaned: Final[str] = "".join(c for c in url if c > " " and c != "\x7f")
    try:
        return urlsplit(cleaned).scheme.lower()
    except ValueError:
        return None


def safe_url(url: str) -> str:
    """Return <url> if it is a plain http(s) or relative link, an empty string otherwise."""
    if not isinstance(url, str) or url_scheme(url) not in safe_schemes:
        return ""
    return url.strip()


class Scrubber:
    """Scrubber sanitizes the HTML of Entries:

    - Remove Javascript and other active content
    - Change links to open in new tabs/windows
    """

    __slots__: list[str] = []

    def scrub_html(self, content: str) -> str:
        """Attempt to sanitize the given HTML content."""
        soup = BeautifulSoup(content, "html.parser")

        for tag in soup.find_all(forbidden_tags):
            tag.decompose()

        for tag in soup.find_all(True):
            for attr in [a for a in tag.attrs if a.lower().startswith("on")]:
                del tag.attrs[attr]
            for attr in ("href", "src"):
                val = tag.attrs.get(attr)
                if isinstance(val, str) and url_scheme(val) in script_schemes:
                    del tag.attrs[attr]

        for link in soup.find_all("a"):
            link.attrs["target"] = "_blank"
            link.attrs["rel"] = "noopener noreferrer"

        return str(soup)

# Local Variables: #
# python-indent: 4 #
# End: #
