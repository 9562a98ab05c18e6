"""
Domain Facts Lookup
───────────────────
External collaborator that supplies TLS issuer and registration age.
The URL extractor only consumes DomainFacts; it never computes them.

Providers: RDAP (registration date, free, no key) + a TLS handshake
(issuer organisation). Each provider: timeout, retry, in-memory TTL cache,
safe errors.
"""

import logging
import socket
import ssl
import threading
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import requests as http_req

from . import config
from .errors import NetworkFailure
from .homoglyph import registrable
from .models import DomainFacts

logger = logging.getLogger("phishlens.lookups")

DomainLookup = Callable[[str], DomainFacts]

# ── In-memory TTL cache ──
# Shared by the worker pool; bounded, oldest entry evicted first.
_cache: Dict[str, tuple] = {}
_cache_lock = threading.Lock()


def _cget(key: str) -> Optional[dict]:
    with _cache_lock:
        hit = _cache.get(key)
        if hit is None:
            return None
        val, ts = hit
        if time.time() - ts < config.LOOKUP_CACHE_TTL:
            return val
        _cache.pop(key, None)
    return None


def _cset(key: str, val: dict):
    with _cache_lock:
        _cache.pop(key, None)
        while _cache and len(_cache) >= config.LOOKUP_CACHE_MAX:
            _cache.pop(next(iter(_cache)))
        _cache[key] = (val, time.time())


def no_lookup(host: str) -> DomainFacts:
    """Lookups disabled: no facts, no signals."""
    return DomainFacts()


class StaticLookup:
    """Facts supplied up front, keyed by host (configured feeds, tests)."""

    def __init__(self, facts: Dict[str, DomainFacts]):
        self._facts = dict(facts)

    def __call__(self, host: str) -> DomainFacts:
        return self._facts.get(host.lower(), DomainFacts())


# ── RDAP ──
def query_rdap(domain: str) -> Dict[str, Any]:
    r: Dict[str, Any] = {"provider": "rdap", "available": False, "registered": None, "age_days": None}
    ck = f"rdap:{domain}"
    cached = _cget(ck)
    if cached:
        return cached

    for attempt in range(2):
        try:
            resp = http_req.get(
                f"{config.RDAP_ENDPOINT}{domain}",
                headers={"Accept": "application/rdap+json"},
                timeout=config.LOOKUP_TIMEOUT,
            )
            r["available"] = True
            if resp.status_code == 200:
                for event in resp.json().get("events", []):
                    if event.get("eventAction") == "registration" and event.get("eventDate"):
                        registered = datetime.fromisoformat(event["eventDate"].replace("Z", "+00:00"))
                        if registered.tzinfo is None:
                            registered = registered.replace(tzinfo=timezone.utc)
                        r["registered"] = registered.isoformat()
                        r["age_days"] = (datetime.now(timezone.utc) - registered).days
                        break
            elif resp.status_code != 404:
                r["error"] = f"HTTP {resp.status_code}"
            break
        except http_req.Timeout:
            r["error"] = "Timeout"
        except (http_req.RequestException, ValueError) as exc:
            r["error"] = str(exc)[:120]
            if attempt == 0:
                time.sleep(1)

    _cset(ck, r)
    return r


# ── TLS issuer ──
def query_tls_issuer(host: str, port: int = 443) -> Dict[str, Any]:
    r: Dict[str, Any] = {"provider": "tls", "available": False, "issuer": None, "verified": None}
    ck = f"tls:{host}:{port}"
    cached = _cget(ck)
    if cached:
        return cached

    ctx = ssl.create_default_context()
    try:
        with socket.create_connection((host, port), timeout=config.LOOKUP_TIMEOUT) as sock:
            with ctx.wrap_socket(sock, server_hostname=host) as tls:
                cert = tls.getpeercert() or {}
        issuer = {}
        for rdn in cert.get("issuer", ()):
            for key, value in rdn:
                issuer[key] = value
        r.update(available=True, verified=True,
                 issuer=issuer.get("organizationName") or issuer.get("commonName"))
    except ssl.SSLCertVerificationError as exc:
        r.update(available=True, verified=False, error=exc.verify_message or "verification failed")
    except (OSError, ssl.SSLError) as exc:
        r["error"] = str(exc)[:120]

    _cset(ck, r)
    return r


def network_lookup(host: str) -> DomainFacts:
    """RDAP + TLS handshake. Unavailable providers leave their fact as None."""
    rdap = query_rdap(registrable(host))
    tls = query_tls_issuer(host)
    if not rdap["available"] and not tls["available"]:
        raise NetworkFailure(f"no domain facts provider reachable for {host}: {tls.get('error')}")
    facts = DomainFacts(
        tls_issuer=tls.get("issuer"),
        tls_verified=tls.get("verified"),
        domain_age_days=rdap.get("age_days"),
    )
    logger.debug("Domain facts for %s: %s", host, facts)
    return facts


def default_lookup() -> DomainLookup:
    return network_lookup if config.DOMAIN_LOOKUPS else no_lookup
