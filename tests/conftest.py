"""
Pytest configuration for The Virtual Armory tests.

Every test runs against an in-memory FakeSupabase injected through
db.set_supabase_client, so nothing touches a real database, Stripe or Mailjet.
"""

import os
import re
import sys

import pytest
from dotenv import load_dotenv

# Ensure project root is importable
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

# Load .env ONCE (safe no-op)
load_dotenv()

# ✅ Test defaults, set before the app module reads them
os.environ["TESTING"] = "1"
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_KEY"] = ""
os.environ.setdefault("SESSION_SECRET", "test-session-secret")
os.environ["APP_BASE_URL"] = "http://testserver"
os.environ["ADMIN_EMAILS"] = ""
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test"
os.environ["STRIPE_PRICE_MONTHLY"] = "prod_monthly"
os.environ["STRIPE_PRICE_YEARLY"] = "prod_yearly"
os.environ["STRIPE_PRICE_LIFETIME"] = "prod_lifetime"
os.environ["STRIPE_PRICE_PREMIUM_LIFETIME"] = "prod_premium"
os.environ["STRIPE_IP_FILTER_ENABLED"] = "false"
os.environ["MAILJET_API_KEY"] = "mj-key"
os.environ["MAILJET_SECRET_KEY"] = "mj-secret"
os.environ["MAILJET_SENDER_EMAIL"] = "noreply@example.com"
os.environ["ADMIN_EMAIL"] = "owner@example.com"

import db  # noqa: E402
from auth.passwords import hash_password  # noqa: E402
from services import users  # noqa: E402
from tests.fake_supabase import FakeSupabase  # noqa: E402

PASSWORD = "Str0ng!Pass"
PASSWORD_HASH = hash_password(PASSWORD)

CSRF_RE = re.compile(r'name="csrf_token" value="([^"]+)"')


@pytest.fixture(autouse=True)
def fake_db():
    """A fresh in-memory database for every test."""
    fake = FakeSupabase()
    db.set_supabase_client(fake)
    yield fake
    db.set_supabase_client(None)


@pytest.fixture(autouse=True)
def no_outgoing_email(monkeypatch):
    """Record Mailjet sends instead of making HTTP calls."""
    sent = []

    def fake_send(to_email, subject, text_part, html_part, reply_to=None):
        sent.append({"to": to_email, "subject": subject, "text": text_part, "reply_to": reply_to})

    monkeypatch.setattr("services.email_service.send_email", fake_send)
    return sent


@pytest.fixture
def client():
    from starlette.testclient import TestClient

    import main

    return TestClient(main.app)


def make_user(email="shooter@example.com", verified=True, **extra):
    return users.create_user(email, PASSWORD_HASH, verified=verified, **extra)


def csrf_from(html: str) -> str:
    match = CSRF_RE.search(html)
    assert match, "page has no CSRF token"
    return match.group(1)


def login(client, email, password=PASSWORD):
    """Log in through the real form. Returns the CSRF token for later posts."""
    token = csrf_from(client.get("/login").text)
    r = client.post(
        "/login",
        data={"email": email, "password": password, "csrf_token": token},
        follow_redirects=False,
    )
    assert r.status_code == 303, r.text
    # Login issues a new token
    return csrf_from(client.get("/owner/profile/edit").text)


@pytest.fixture
def user():
    return make_user()


@pytest.fixture
def admin_user():
    return make_user("admin@example.com", role="admin")


@pytest.fixture
def logged_in(client, user):
    """(client, csrf token, user) for a logged-in free-tier owner."""
    token = login(client, user["email"])
    return client, token, user


@pytest.fixture
def admin_client(client, admin_user):
    token = login(client, admin_user["email"])
    return client, token, admin_user
