"""
Response helpers shared by the controllers.
"""

import logging
from typing import Any, Dict, Optional

from fasthtml.common import *
from starlette.responses import RedirectResponse

from auth.session import add_flash
from components import ERROR_PAGES, ErrorAlert, PageLayout

logger = logging.getLogger(__name__)


def render(title: str, *content, sess=None, user=None, status_code: int = 200, wide: bool = False):
    """Full page in the standard layout, with a non-200 status when asked."""
    page = PageLayout(title, *content, sess=sess, user=user, wide=wide)
    if status_code == 200:
        return page
    return FtResponse(page, status_code=status_code)


def redirect(url: str, sess=None, message: Optional[str] = None, kind: str = "success") -> RedirectResponse:
    """303 redirect, optionally queueing a flash message for the next page."""
    if message and sess is not None:
        add_flash(sess, message, kind)
    return RedirectResponse(url, status_code=303)


def error_page(
    status_code: int,
    sess=None,
    user=None,
    title: Optional[str] = None,
    message: Optional[str] = None,
):
    default_title, default_message = ERROR_PAGES.get(status_code, ERROR_PAGES[500])
    return render(
        title or default_title,
        ErrorAlert(title or default_title, message or default_message, status_code=status_code),
        sess=sess,
        user=user,
        status_code=status_code,
    )


def query_dict(req) -> Dict[str, Any]:
    return dict(req.query_params) if req is not None else {}
