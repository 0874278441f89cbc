# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""hashchanges: minimal user-account web application.

Registration, login, server-side sessions and user profiles on top of
FastAPI, SQLAlchemy and Jinja2.
"""

__version__ = "1.0.0"
