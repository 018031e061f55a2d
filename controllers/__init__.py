"""
Controller functions for route handlers.

All controllers are plain functions that:
- Take parsed form data, path values, the session and the session user
- Return FT components or Response objects
- Don't use @rt decorators (those stay in main.py)
"""

from . import admin, auth, home, owner, payment
from .helpers import error_page, query_dict, redirect, render

__all__ = [
    # Controller modules
    "admin",
    "auth",
    "home",
    "owner",
    "payment",
    # Helpers
    "error_page",
    "query_dict",
    "redirect",
    "render",
]
