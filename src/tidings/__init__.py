#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2025-12-14 12:15:02 krylon>
#
# /data/code/python/tidings/src/tidings/__init__.py
# created on 30. 09. 2025
# (c) 2025 Benjamin Walkenhorst
#
# This file is part of the tidings feed reader. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
tidings

(c) 2025 Benjamin Walkenhorst

tidings is a self-hosted reader for RSS and Atom feeds.
"""
