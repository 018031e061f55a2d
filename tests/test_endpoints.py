import asyncio
from types import SimpleNamespace

import pytest

from services import inventory, users
from services.errors import PaymentError
from tests.conftest import csrf_from, login, make_user


@pytest.fixture
def refs_seeded(fake_db):
    fake_db.add("manufacturers", {"name": "Glock", "country": "Austria", "popularity": 100})
    fake_db.add("calibers", {"caliber": "9mm Luger", "popularity": 100})
    fake_db.add("weapon_types", {"type": "Pistol", "popularity": 100})
    fake_db.add("brands", {"name": "Federal", "popularity": 100})
    return fake_db


def gun_form(token, **overrides):
    data = {
        "csrf_token": token,
        "name": "G19",
        "manufacturer_id": "1",
        "caliber_id": "1",
        "weapon_type_id": "1",
        "paid": "549.99",
        "acquired": "2020-01-15",
    }
    data.update(overrides)
    return data


# =============================================================================
# Public pages
# =============================================================================


def test_index_renders(client):
    r = client.get("/")
    assert r.status_code == 200
    assert "Virtual Armory" in r.text


@pytest.mark.parametrize("path", ["/about", "/contact", "/pricing", "/login", "/register", "/forgot-password"])
def test_public_pages_render(client, path):
    assert client.get(path).status_code == 200


def test_health_reports_database(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "database": "up"}


def test_robots_and_sitemap(client):
    robots = client.get("/robots.txt")
    assert robots.status_code == 200
    assert "Disallow: /admin" in robots.text
    assert "Sitemap: http://testserver/sitemap.xml" in robots.text

    sitemap = client.get("/sitemap.xml")
    assert sitemap.status_code == 200
    assert sitemap.headers["content-type"].startswith("application/xml")
    assert "<loc>http://testserver/pricing</loc>" in sitemap.text


def test_error_preview_pages(client):
    assert client.get("/error/404").status_code == 404
    r = client.get("/error/500")
    assert r.status_code == 500
    assert "Something Went Wrong" in r.text
    assert client.get("/error/418").status_code == 404


def test_unknown_route_uses_404_page(client):
    r = client.get("/no-such-page")
    assert r.status_code == 404
    assert "Page Not Found" in r.text


def test_caliber_search_fragment(client, refs_seeded):
    r = client.get("/api/calibers/search", params={"q": "luger"})
    assert r.status_code == 200
    assert "9mm Luger" in r.text


def test_contact_sends_email(client, no_outgoing_email):
    token = csrf_from(client.get("/contact").text)
    r = client.post(
        "/contact",
        data={"csrf_token": token, "name": "Sam", "email": "sam@example.com", "subject": "Hi", "message": "Hello"},
    )
    assert r.status_code == 200
    assert "Your message has been sent" in r.text
    assert no_outgoing_email[0]["reply_to"] == "sam@example.com"


# =============================================================================
# Guard
# =============================================================================


@pytest.mark.parametrize("path", ["/owner", "/owner/munitions", "/admin/dashboard", "/subscription/cancel/confirm"])
def test_login_required(client, path):
    r = client.get(path, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"


def test_post_without_csrf_token_is_forbidden(client):
    r = client.post("/login", data={"email": "a@b.co", "password": "x"})
    assert r.status_code == 403


def test_non_admin_cannot_reach_admin(logged_in):
    client, _, _ = logged_in
    assert client.get("/admin/dashboard").status_code == 403
    assert client.get("/admin/calibers").status_code == 403


def test_deleted_user_session_is_dropped(logged_in):
    client, _, user = logged_in
    users.soft_delete_user(user["id"])
    r = client.get("/owner", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"


# =============================================================================
# Accounts
# =============================================================================


def test_register_then_verify_then_login(client, no_outgoing_email):
    token = csrf_from(client.get("/register").text)
    r = client.post(
        "/register",
        data={"csrf_token": token, "email": "New@Example.com", "password": "Str0ng!Pass", "password_confirm": "Str0ng!Pass"},
        follow_redirects=False,
    )
    assert r.status_code == 303
    assert r.headers["location"] == "/verification-sent"

    user = users.get_user_by_email("new@example.com")
    r = client.get("/verify-email", params={"token": user["verification_token"]})
    assert "Your email has been verified" in r.text

    login(client, "new@example.com")
    assert client.get("/owner").status_code == 200


def test_register_weak_password(client):
    token = csrf_from(client.get("/register").text)
    r = client.post("/register", data={"csrf_token": token, "email": "a@example.com", "password": "weak"})
    assert r.status_code == 400
    assert "password must be at least 8 characters long" in r.text


def test_login_wrong_password(client, user):
    token = csrf_from(client.get("/login").text)
    r = client.post("/login", data={"csrf_token": token, "email": user["email"], "password": "Wr0ng!Pass"})
    assert r.status_code == 401
    assert "Invalid email or password" in r.text


def test_verify_with_bad_token(client):
    r = client.get("/verify-email", params={"token": "nope"})
    assert r.status_code == 400
    assert "Invalid verification token" in r.text


def test_logout_clears_session(logged_in):
    client, _, _ = logged_in
    r = client.get("/logout", follow_redirects=False)
    assert r.headers["location"] == "/"
    assert client.get("/owner", follow_redirects=False).status_code == 303


def test_password_reset_via_pages(client, user):
    token = csrf_from(client.get("/forgot-password").text)
    client.post("/forgot-password", data={"csrf_token": token, "email": user["email"]})
    recovery = users.get_user(user["id"])["recovery_token"]

    page = client.get("/reset-password", params={"token": recovery})
    assert page.status_code == 200
    r = client.post(
        "/reset-password",
        data={
            "csrf_token": csrf_from(page.text),
            "token": recovery,
            "password": "N3w!Password",
            "password_confirm": "N3w!Password",
        },
        follow_redirects=False,
    )
    assert r.headers["location"] == "/login"
    login(client, user["email"], "N3w!Password")


# =============================================================================
# Owner inventory
# =============================================================================


def test_gun_crud(logged_in, refs_seeded):
    client, token, user = logged_in

    r = client.post("/owner/guns", data=gun_form(token), follow_redirects=False)
    assert r.status_code == 303
    gun_path = r.headers["location"]

    page = client.get(gun_path)
    assert page.status_code == 200
    assert "G19" in page.text
    assert "Glock" in page.text

    r = client.post(f"{gun_path}/update", data=gun_form(token, name="G19 Gen5"), follow_redirects=False)
    assert r.status_code == 303
    assert "G19 Gen5" in client.get(gun_path).text

    r = client.post(f"{gun_path}/delete", data={"csrf_token": token}, follow_redirects=False)
    assert r.headers["location"] == "/owner/guns/arsenal"
    assert client.get(gun_path).status_code == 404


def test_gun_form_errors_rerender(logged_in, refs_seeded):
    client, token, _ = logged_in
    r = client.post("/owner/guns", data=gun_form(token, name="", manufacturer_id="42"))
    assert r.status_code == 400
    assert "gun name is required" in r.text


def test_gun_of_another_owner_is_404(logged_in, refs_seeded):
    client, _, _ = logged_in
    other = make_user("other@example.com")
    gun = inventory.create_gun(other["id"], {"name": "Theirs", "manufacturer_id": 1, "caliber_id": 1, "weapon_type_id": 1})
    assert client.get(f"/owner/guns/{gun['id']}").status_code == 404


def test_free_tier_gun_limit_redirects_to_pricing(logged_in, refs_seeded):
    client, token, user = logged_in
    for name in ("One", "Two"):
        inventory.create_gun(user["id"], {"name": name, "manufacturer_id": 1, "caliber_id": 1, "weapon_type_id": 1})

    r = client.get("/owner/guns/new", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/pricing"
    assert "Free tier only allows 2 guns" in client.get("/pricing").text

    r = client.post("/owner/guns", data=gun_form(token), follow_redirects=False)
    assert r.headers["location"] == "/pricing"
    assert inventory.count_guns(user["id"]) == 2


def test_dashboard_shows_limit_notice(logged_in, refs_seeded):
    client, _, user = logged_in
    for name in ("One", "Two", "Three"):
        inventory.create_gun(user["id"], {"name": name, "manufacturer_id": 1, "caliber_id": 1, "weapon_type_id": 1})
    r = client.get("/owner")
    assert r.status_code == 200
    assert "View plans" in r.text


def test_ammo_create_and_search(logged_in, refs_seeded):
    client, token, _ = logged_in
    r = client.post(
        "/owner/munitions",
        data={"csrf_token": token, "name": "Range box", "brand_id": "1", "caliber_id": "1", "count": "50", "expended": "0"},
        follow_redirects=False,
    )
    assert r.status_code == 303
    assert "Range box" in client.get(r.headers["location"]).text
    assert "Range box" in client.get("/owner/munitions/search", params={"q": "range"}).text


def test_ammo_expended_over_count(logged_in, refs_seeded):
    client, token, _ = logged_in
    r = client.post(
        "/owner/munitions",
        data={"csrf_token": token, "name": "Box", "brand_id": "1", "caliber_id": "1", "count": "5", "expended": "9"},
    )
    assert r.status_code == 400
    assert "expended count cannot be greater than total count" in r.text


def test_profile_email_change(logged_in, no_outgoing_email):
    client, token, user = logged_in
    r = client.post("/owner/profile/update", data={"csrf_token": token, "email": "moved@example.com"})
    assert r.status_code == 200
    assert "Please check your new email address" in r.text
    assert users.get_user(user["id"])["pending_email"] == "moved@example.com"
    assert no_outgoing_email[-1]["to"] == "moved@example.com"


def test_delete_account(logged_in):
    client, token, user = logged_in
    r = client.post("/owner/profile/delete", data={"csrf_token": token}, follow_redirects=False)
    assert r.headers["location"] == "/"
    assert users.get_user(user["id"]) is None
    assert client.get("/owner", follow_redirects=False).status_code == 303


# =============================================================================
# Payments
# =============================================================================


def test_checkout_redirects_to_stripe(logged_in, monkeypatch):
    client, token, _ = logged_in
    monkeypatch.setattr(
        "services.stripe_service.create_checkout_session",
        lambda user, tier: SimpleNamespace(url="https://checkout.stripe.test/abc"),
    )
    r = client.post("/checkout", data={"csrf_token": token, "tier": "monthly"}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "https://checkout.stripe.test/abc"


def test_checkout_requires_tier_and_upgrade(client, monkeypatch):
    make_user(subscription_tier="lifetime")
    token = login(client, "shooter@example.com")
    assert client.post("/checkout", data={"csrf_token": token}).status_code == 400
    r = client.post("/checkout", data={"csrf_token": token, "tier": "monthly"})
    assert r.status_code == 400
    assert "You cannot subscribe to this tier" in r.text


def test_lapsed_subscriber_can_buy_again(client, monkeypatch):
    user = make_user(
        subscription_tier="monthly",
        subscription_status="canceled",
        subscription_end_date="2020-01-01T00:00:00+00:00",
    )
    token = login(client, user["email"])
    assert client.get("/owner").status_code == 200
    refreshed = users.get_user(user["id"])
    assert refreshed["subscription_tier"] == "free"
    assert refreshed["subscription_status"] == "expired"
    assert refreshed["subscription_end_date"] is None

    monkeypatch.setattr(
        "services.stripe_service.create_checkout_session",
        lambda user, tier: SimpleNamespace(url="https://checkout.stripe.test/again"),
    )
    r = client.post("/checkout", data={"csrf_token": token, "tier": "monthly"}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "https://checkout.stripe.test/again"


def test_checkout_expires_lapsed_tier_before_upgrade_check(client, monkeypatch):
    user = make_user(
        subscription_tier="yearly",
        subscription_status="active",
        subscription_end_date="2021-06-30T00:00:00+00:00",
    )
    token = login(client, user["email"])
    monkeypatch.setattr(
        "services.stripe_service.create_checkout_session",
        lambda user, tier: SimpleNamespace(url="https://checkout.stripe.test/m"),
    )
    r = client.post("/checkout", data={"csrf_token": token, "tier": "monthly"}, follow_redirects=False)
    assert r.status_code == 303
    assert users.get_user(user["id"])["subscription_tier"] == "free"


def test_checkout_stripe_failure(logged_in, monkeypatch):
    client, token, _ = logged_in

    def fail(user, tier):
        raise PaymentError("down")

    monkeypatch.setattr("services.stripe_service.create_checkout_session", fail)
    assert client.post("/checkout", data={"csrf_token": token, "tier": "yearly"}).status_code == 500


def test_payment_success_needs_session_id(logged_in):
    client, _, _ = logged_in
    assert client.get("/payment/success").status_code == 400
    assert client.get("/payment/success", params={"session_id": "cs_1"}).status_code == 200


def test_cancel_subscription(client, monkeypatch):
    user = make_user(subscription_tier="monthly", subscription_status="active", stripe_subscription_id="sub_1")
    token = login(client, user["email"])

    def fake_cancel(u):
        return users.update_user(
            u["id"],
            {"subscription_status": "pending_cancellation", "subscription_end_date": "2099-01-01T00:00:00+00:00"},
        )

    monkeypatch.setattr("services.stripe_service.cancel_subscription", fake_cancel)
    assert client.get("/subscription/cancel/confirm").status_code == 200
    r = client.post("/subscription/cancel", data={"csrf_token": token})
    assert r.status_code == 200
    assert "will remain active until January 1, 2099" in r.text


def test_cancel_without_subscription_goes_to_pricing(logged_in):
    client, token, _ = logged_in
    r = client.post("/subscription/cancel", data={"csrf_token": token}, follow_redirects=False)
    assert r.headers["location"] == "/pricing"


def test_webhook_requires_signature(client):
    r = client.post("/webhook", content=b"{}")
    assert r.status_code == 400
    assert r.json() == {"error": "Stripe signature is required"}


def test_webhook_bad_signature(client):
    r = client.post("/webhook", content=b"{}", headers={"stripe-signature": "t=1,v1=bad"})
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid webhook signature"}


def test_webhook_dispatches_verified_event(client, monkeypatch):
    monkeypatch.setattr(
        "services.stripe_service.construct_event",
        lambda payload, signature: {"type": "charge.refunded", "data": {"object": {}}},
    )
    r = client.post("/webhook", content=b"{}", headers={"stripe-signature": "sig"})
    assert r.status_code == 200
    assert r.json() == {"received": True, "handled": False}


def test_webhook_handler_runs_off_the_event_loop(client, monkeypatch):
    seen = {}

    def fake_handle(payload, signature):
        try:
            asyncio.get_running_loop()
            seen["loop"] = True
        except RuntimeError:
            seen["loop"] = False
        return True

    monkeypatch.setattr("services.stripe_service.handle_webhook", fake_handle)
    r = client.post("/webhook", content=b"{}", headers={"stripe-signature": "sig"})
    assert r.json() == {"received": True, "handled": True}
    assert seen["loop"] is False


# =============================================================================
# Admin
# =============================================================================


def test_admin_root_redirects(admin_client):
    client, _, _ = admin_client
    r = client.get("/admin", follow_redirects=False)
    assert r.headers["location"] == "/admin/dashboard"


@pytest.mark.parametrize(
    "path",
    [
        "/admin/dashboard",
        "/admin/users",
        "/admin/promotions",
        "/admin/payments-history",
        "/admin/guns",
        "/admin/munitions",
        "/admin/stripe-security",
        "/admin/manufacturers",
        "/admin/grains/new",
    ],
)
def test_admin_pages_render(admin_client, path):
    client, _, _ = admin_client
    assert client.get(path).status_code == 200


def test_admin_reference_crud(admin_client):
    client, token, _ = admin_client
    r = client.post(
        "/admin/calibers",
        data={"csrf_token": token, "caliber": ".45 ACP", "nickname": ".45", "popularity": "90"},
        follow_redirects=False,
    )
    assert r.headers["location"] == "/admin/calibers"
    assert ".45 ACP" in client.get("/admin/calibers").text

    r = client.post("/admin/calibers", data={"csrf_token": token, "caliber": ".45 ACP"})
    assert r.status_code == 400
    assert "Caliber with this caliber already exists" in r.text

    r = client.post(
        "/admin/calibers/1/update",
        data={"csrf_token": token, "caliber": ".45 Auto", "popularity": "91"},
        follow_redirects=False,
    )
    assert r.headers["location"] == "/admin/calibers/1"

    r = client.post("/admin/calibers/1/delete", data={"csrf_token": token}, follow_redirects=False)
    assert r.headers["location"] == "/admin/calibers"
    assert client.get("/admin/calibers/1").status_code == 404


def test_admin_grant_subscription(admin_client):
    client, token, admin = admin_client
    target = make_user()
    r = client.post(
        f"/admin/users/{target['id']}/grant-subscription",
        data={"csrf_token": token, "subscription_type": "yearly", "grant_reason": "Beta tester"},
        follow_redirects=False,
    )
    assert r.headers["location"] == f"/admin/users/{target['id']}"
    updated = users.get_user(target["id"])
    assert updated["is_admin_granted"] is True
    assert updated["granted_by_id"] == admin["id"]


def test_admin_delete_and_restore_user(admin_client):
    client, token, _ = admin_client
    target = make_user()
    client.post(f"/admin/users/{target['id']}/delete", data={"csrf_token": token})
    assert users.get_user(target["id"]) is None
    assert client.get(f"/admin/users/{target['id']}").status_code == 200

    client.post(f"/admin/users/{target['id']}/restore", data={"csrf_token": token})
    assert users.get_user(target["id"]) is not None


def test_admin_cannot_delete_self(admin_client):
    client, token, admin = admin_client
    r = client.post(f"/admin/users/{admin['id']}/delete", data={"csrf_token": token})
    assert "You cannot delete your own account" in r.text
    assert users.get_user(admin["id"]) is not None


def test_admin_promotion_create(admin_client):
    client, token, _ = admin_client
    r = client.post(
        "/admin/promotions",
        data={
            "csrf_token": token,
            "name": "Launch",
            "type": "launch",
            "start_date": "2025-01-01",
            "end_date": "2025-01-31",
            "benefit_days": "30",
            "active": "on",
        },
        follow_redirects=False,
    )
    assert r.headers["location"] == "/admin/promotions"
    assert "Launch" in client.get("/admin/promotions").text


def test_admin_ip_check(admin_client, monkeypatch):
    client, _, _ = admin_client
    monkeypatch.setattr("services.stripe_ipfilter.ip_filter.is_stripe_ip", lambda ip: True)
    r = client.get("/admin/ip-check", params={"ip": "3.18.12.63"})
    assert r.status_code == 200
    assert "3.18.12.63" in r.text
