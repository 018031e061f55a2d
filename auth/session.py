"""
Session helpers: login state, one-shot flash messages and the CSRF token.

The FastHTML session is a signed cookie dict, so everything stored here must
be JSON serializable.
"""

import hmac
import logging
import secrets
from typing import Any, Dict, List, Optional, Tuple

from constants import AUTH_SESSION_KEYS
from services.users import is_admin

logger = logging.getLogger(__name__)

FLASH_KEY = "flash"
CSRF_KEY = "csrf"


def login_user(sess, user: Dict[str, Any]) -> None:
    sess["auth"] = True
    sess["user_id"] = user["id"]
    sess["user_email"] = user["email"]
    sess["is_admin"] = is_admin(user)
    # New token per login
    sess[CSRF_KEY] = secrets.token_hex(16)
    logger.info(f"✅ Session started for user id={user['id']}")


def clear_auth_session(sess) -> None:
    for key in AUTH_SESSION_KEYS:
        sess.pop(key, None)


def current_user_id(sess) -> Optional[int]:
    if not sess or not sess.get("auth"):
        return None
    try:
        return int(sess.get("user_id"))
    except (TypeError, ValueError):
        return None


# --- Flash messages ---
def add_flash(sess, message: str, kind: str = "success") -> None:
    """Queue a message for the next rendered page. kind: success, error, warning, info."""
    flashes = list(sess.get(FLASH_KEY) or [])
    flashes.append([kind, message])
    sess[FLASH_KEY] = flashes


def pop_flashes(sess) -> List[Tuple[str, str]]:
    if not sess:
        return []
    return [tuple(item) for item in (sess.pop(FLASH_KEY, None) or [])]


# --- CSRF ---
def csrf_token(sess) -> str:
    token = sess.get(CSRF_KEY)
    if not token:
        token = secrets.token_hex(16)
        sess[CSRF_KEY] = token
    return token


def csrf_valid(sess, sent: Optional[str]) -> bool:
    expected = sess.get(CSRF_KEY) if sess else None
    if not expected or not sent:
        return False
    return hmac.compare_digest(str(expected), str(sent))
