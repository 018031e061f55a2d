"""
stripe_ipfilter.py
------------------
Restricts /webhook traffic to Stripe's published source addresses.

Stripe publishes its IP lists as JSON documents. StripeIPFilter downloads
them, keeps the parsed networks in memory, and refreshes them on a
background thread (every 24h by default). StripeIPMiddleware enforces the
filter when STRIPE_IP_FILTER_ENABLED is "true".
"""

import ipaddress
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Union

import requests
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from constants import STRIPE_IP_FETCH_TIMEOUT, STRIPE_IP_REFRESH_INTERVAL, STRIPE_IP_SOURCES
from services.config import get_stripe_config
from utils.dates import utcnow

logger = logging.getLogger(__name__)

Network = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


def parse_networks(entries: List[str], source: str = "") -> List[Network]:
    """
    Parse CIDRs and bare addresses. Bare addresses become /32 or /128.

    Entries that do not parse are skipped with a warning.
    """
    networks = []
    for entry in entries:
        text = str(entry).strip()
        if not text:
            continue
        try:
            if "/" in text:
                networks.append(ipaddress.ip_network(text, strict=False))
            else:
                address = ipaddress.ip_address(text)
                networks.append(ipaddress.ip_network(f"{address}/{address.max_prefixlen}"))
        except ValueError:
            logger.warning(f"Skipping invalid CIDR {text!r} from {source or 'unknown source'}")
    return networks


@dataclass
class IPFilterStatus:
    enabled: bool
    last_update: Optional[datetime]
    num_ranges: int
    failed_sources: List[str] = field(default_factory=list)


class StripeIPFilter:
    """Thread-safe holder of Stripe's IP ranges."""

    def __init__(self, sources: Optional[Dict[str, tuple]] = None):
        self.sources = sources or STRIPE_IP_SOURCES
        self._ranges: List[Network] = []
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.last_update: Optional[datetime] = None
        self.failed_sources: List[str] = []

    # --- fetching ---
    def _fetch_source(self, name: str, url: str, key: str) -> List[Network]:
        response = requests.get(url, timeout=STRIPE_IP_FETCH_TIMEOUT)
        response.raise_for_status()
        entries = response.json().get(key) or []
        if not isinstance(entries, list):
            raise ValueError(f"Unexpected payload for {key}")
        return parse_networks(entries, source=name)

    def refresh(self) -> bool:
        """
        Download every source and swap in the new ranges.

        The current ranges are kept when every source fails.

        Returns:
            bool: True when at least one source succeeded.
        """
        collected: List[Network] = []
        failed: List[str] = []
        for name, (url, key) in self.sources.items():
            try:
                collected.extend(self._fetch_source(name, url, key))
            except (requests.RequestException, ValueError) as e:
                logger.error(f"Failed to fetch Stripe IP list {name}: {e}")
                failed.append(name)

        succeeded = len(failed) < len(self.sources)
        with self._lock:
            self.failed_sources = failed
            if succeeded:
                self._ranges = collected
                self.last_update = utcnow()
        if succeeded:
            logger.info(f"Loaded {len(collected)} Stripe IP ranges")
        else:
            logger.error("All Stripe IP sources failed; keeping previous ranges")
        return succeeded

    # --- queries ---
    @property
    def num_ranges(self) -> int:
        with self._lock:
            return len(self._ranges)

    def is_stripe_ip(self, ip: str) -> bool:
        try:
            address = ipaddress.ip_address((ip or "").strip())
        except ValueError:
            return False
        with self._lock:
            ranges = list(self._ranges)
        return any(address in network for network in ranges)

    def status(self) -> IPFilterStatus:
        with self._lock:
            return IPFilterStatus(
                enabled=get_stripe_config().ip_filter_enabled,
                last_update=self.last_update,
                num_ranges=len(self._ranges),
                failed_sources=list(self.failed_sources),
            )

    # --- background refresh ---
    def _run(self, interval_seconds: float) -> None:
        while not self._stop.wait(interval_seconds):
            self.refresh()

    def start_background_refresh(self, interval=STRIPE_IP_REFRESH_INTERVAL) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run,
            args=(interval.total_seconds(),),
            name="stripe-ip-refresh",
            daemon=True,
        )
        self._thread.start()
        logger.info("Started Stripe IP refresh thread")

    def stop(self) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None


# Shared instance used by the middleware and the admin page
ip_filter = StripeIPFilter()


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""


class StripeIPMiddleware(BaseHTTPMiddleware):
    """Reject /webhook requests that do not come from Stripe."""

    def __init__(self, app, filter_instance: Optional[StripeIPFilter] = None):
        super().__init__(app)
        self.filter_instance = filter_instance

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith("/webhook"):
            return await call_next(request)

        config = get_stripe_config()
        if not config.ip_filter_enabled:
            return await call_next(request)

        override = request.headers.get("x-stripe-override")
        if config.override_secret and override == config.override_secret:
            logger.info("Stripe IP filter bypassed with override header")
            return await call_next(request)

        ip = client_ip(request)
        active = self.filter_instance or ip_filter
        if not active.is_stripe_ip(ip):
            logger.warning(f"Blocked webhook request from non-Stripe IP {ip}")
            return JSONResponse({"error": "Forbidden"}, status_code=403)
        return await call_next(request)
