import threading
import time
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
import requests
from starlette.applications import Starlette
from starlette.responses import PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from services.stripe_ipfilter import StripeIPFilter, StripeIPMiddleware, parse_networks

SOURCES = {
    "webhooks": ("https://stripe.test/webhooks.json", "WEBHOOKS"),
    "api": ("https://stripe.test/api.json", "API"),
}


def fake_response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


@pytest.fixture
def loaded_filter(monkeypatch):
    payloads = {
        "https://stripe.test/webhooks.json": {"WEBHOOKS": ["3.18.12.63", "13.235.14.0/24"]},
        "https://stripe.test/api.json": {"API": ["2600:1f18::/32"]},
    }
    monkeypatch.setattr(requests, "get", lambda url, timeout: fake_response(payloads[url]))
    ip_filter = StripeIPFilter(SOURCES)
    assert ip_filter.refresh()
    return ip_filter


def test_parse_networks_handles_bare_addresses_and_junk():
    networks = parse_networks(["10.0.0.1", "192.168.0.0/16", "::1", "bogus", ""])
    assert [str(n) for n in networks] == ["10.0.0.1/32", "192.168.0.0/16", "::1/128"]


def test_membership(loaded_filter):
    assert loaded_filter.num_ranges == 3
    assert loaded_filter.is_stripe_ip("3.18.12.63")
    assert loaded_filter.is_stripe_ip("13.235.14.200")
    assert loaded_filter.is_stripe_ip("2600:1f18::1")
    assert not loaded_filter.is_stripe_ip("8.8.8.8")
    assert not loaded_filter.is_stripe_ip("not-an-ip")


def test_partial_failure_keeps_successful_sources(monkeypatch):
    def flaky(url, timeout):
        if "api" in url:
            raise requests.ConnectionError("down")
        return fake_response({"WEBHOOKS": ["1.2.3.4"]})

    monkeypatch.setattr(requests, "get", flaky)
    ip_filter = StripeIPFilter(SOURCES)
    assert ip_filter.refresh()
    status = ip_filter.status()
    assert status.num_ranges == 1
    assert status.failed_sources == ["api"]
    assert status.last_update is not None


def test_total_failure_keeps_previous_ranges(loaded_filter, monkeypatch):
    def down(url, timeout):
        raise requests.Timeout("slow")

    monkeypatch.setattr(requests, "get", down)
    assert loaded_filter.refresh() is False
    assert loaded_filter.num_ranges == 3
    assert loaded_filter.status().failed_sources == ["webhooks", "api"]


# --- Middleware ---
def make_app(ip_filter):
    async def webhook(request):
        return PlainTextResponse("ok")

    async def other(request):
        return PlainTextResponse("other")

    app = Starlette(routes=[Route("/webhook", webhook, methods=["POST"]), Route("/other", other)])
    app.add_middleware(StripeIPMiddleware, filter_instance=ip_filter)
    return TestClient(app)


def test_middleware_disabled_passes_everything(loaded_filter):
    client = make_app(loaded_filter)
    assert client.post("/webhook").status_code == 200


def test_middleware_blocks_non_stripe_ip(loaded_filter, monkeypatch):
    monkeypatch.setenv("STRIPE_IP_FILTER_ENABLED", "true")
    client = make_app(loaded_filter)
    r = client.post("/webhook", headers={"x-forwarded-for": "8.8.8.8"})
    assert r.status_code == 403
    assert r.json() == {"error": "Forbidden"}
    assert client.get("/other").status_code == 200


def test_middleware_allows_stripe_ip(loaded_filter, monkeypatch):
    monkeypatch.setenv("STRIPE_IP_FILTER_ENABLED", "true")
    client = make_app(loaded_filter)
    r = client.post("/webhook", headers={"x-forwarded-for": "3.18.12.63, 10.0.0.1"})
    assert r.status_code == 200


def test_middleware_override_header(loaded_filter, monkeypatch):
    monkeypatch.setenv("STRIPE_IP_FILTER_ENABLED", "true")
    monkeypatch.setenv("STRIPE_OVERRIDE_SECRET", "let-me-in")
    client = make_app(loaded_filter)
    r = client.post("/webhook", headers={"x-forwarded-for": "8.8.8.8", "x-stripe-override": "let-me-in"})
    assert r.status_code == 200


def test_background_refresh_runs_until_stopped(monkeypatch):
    ip_filter = StripeIPFilter(SOURCES)
    refreshed = threading.Event()
    calls = []

    def fake_refresh():
        calls.append(1)
        refreshed.set()
        return True

    monkeypatch.setattr(ip_filter, "refresh", fake_refresh)
    ip_filter.start_background_refresh(interval=timedelta(milliseconds=10))
    thread = ip_filter._thread
    assert thread.daemon
    assert refreshed.wait(timeout=2)

    ip_filter.stop()
    assert not thread.is_alive()
    assert ip_filter._thread is None

    settled = len(calls)
    time.sleep(0.05)
    assert len(calls) == settled


def test_background_refresh_is_started_once():
    ip_filter = StripeIPFilter(SOURCES)
    ip_filter.start_background_refresh(interval=timedelta(hours=1))
    first = ip_filter._thread
    ip_filter.start_background_refresh(interval=timedelta(hours=1))
    assert ip_filter._thread is first

    # The stop event wakes the long wait immediately
    ip_filter.stop()
    assert not first.is_alive()
