"""
Request guard run as FastHTML Beforeware.

Loads the session user into req.scope["auth"] (handlers receive it through an
`auth` parameter), enforces login on owner/payment/admin paths, the admin role
on /admin, and the CSRF token on every state-changing request.
"""

import logging

from fasthtml.common import *
from starlette.responses import RedirectResponse

from auth.auth_service import load_session_user
from auth.session import add_flash, clear_auth_session, csrf_valid, current_user_id
from components import ErrorAlert, PageLayout
from services.errors import DatabaseError
from services.users import is_admin

logger = logging.getLogger(__name__)

LOGIN_REQUIRED_PREFIXES = ("/owner", "/checkout", "/subscription", "/admin")
ADMIN_PREFIX = "/admin"
SAFE_METHODS = ("GET", "HEAD", "OPTIONS")

# Paths the guard never runs for (regexes, matched against the full path)
SKIP_PATHS = [
    r"/favicon\.ico",
    r"/static/.*",
    r".*\.css",
    r".*\.js",
    "/health",
    "/robots.txt",
    "/sitemap.xml",
    r"/webhook.*",
]


def _forbidden(sess, user, message: str):
    page = PageLayout(
        "Forbidden",
        ErrorAlert("Forbidden", message, status_code=403),
        sess=sess,
        user=user,
    )
    return FtResponse(page, status_code=403)


async def _sent_csrf_token(req) -> str:
    token = req.headers.get("x-csrf-token")
    if token:
        return token
    form = await req.form()
    return form.get("csrf_token", "")


async def check_request(req, sess):
    user = None
    user_id = current_user_id(sess)
    if user_id is not None:
        try:
            user = load_session_user(user_id)
        except DatabaseError:
            logger.error(f"Could not load session user id={user_id}; continuing anonymous")
        if user is None:
            clear_auth_session(sess)
        else:
            sess["is_admin"] = is_admin(user)
    req.scope["auth"] = user

    path = req.url.path
    if path.startswith(LOGIN_REQUIRED_PREFIXES) and user is None:
        add_flash(sess, "You must log in to access that resource", "error")
        return RedirectResponse("/login", status_code=303)

    if path.startswith(ADMIN_PREFIX) and not is_admin(user):
        logger.warning(f"⚠️ Non-admin user id={user_id} denied {path}")
        return _forbidden(sess, user, "You do not have permission to access that resource.")

    if req.method not in SAFE_METHODS:
        if not csrf_valid(sess, await _sent_csrf_token(req)):
            logger.warning(f"⚠️ CSRF token mismatch on {req.method} {path}")
            return _forbidden(sess, user, "Invalid or missing CSRF token. Reload the page and try again.")
    return None


beforeware = Beforeware(check_request, skip=SKIP_PATHS)
