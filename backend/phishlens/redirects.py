"""
Redirect Chain Resolver
───────────────────────
Follows HTTP redirects one hop at a time (allow_redirects=False).
Stops on: terminal response, hop cap, cycle, timeout, network failure,
private target, or cancellation. Never raises for network problems; a
partial chain is still evidence.
"""

import logging
import threading
from typing import List, Optional
from urllib.parse import urljoin, urlparse, urlunparse

import requests

from . import config
from .models import RedirectChain, RedirectHop
from .validators import is_private_host

logger = logging.getLogger("phishlens.redirects")

REDIRECT_CODES = {301, 302, 303, 307, 308}
DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_url(url: str) -> str:
    """Canonical form used for cycle detection."""
    p = urlparse(url)
    scheme = (p.scheme or "").lower()
    host = (p.hostname or "").lower().rstrip(".")
    netloc = host
    if p.port and p.port != DEFAULT_PORTS.get(scheme):
        netloc = f"{host}:{p.port}"
    return urlunparse((scheme, netloc, p.path or "/", p.params, p.query, ""))


class RedirectResolver:
    def __init__(
        self,
        session: Optional[requests.Session] = None,
        max_hops: int = config.MAX_REDIRECT_HOPS,
        hop_timeout: float = config.HOP_TIMEOUT,
    ):
        self.session = session or requests.Session()
        self.max_hops = max_hops
        self.hop_timeout = hop_timeout

    def _fetch(self, url: str):
        resp = self.session.get(
            url,
            allow_redirects=False,
            timeout=self.hop_timeout,
            stream=True,
            headers={"User-Agent": config.USER_AGENT},
        )
        resp.close()
        return resp

    def resolve(self, url: str, cancel: Optional[threading.Event] = None) -> RedirectChain:
        hops: List[RedirectHop] = []
        visited = {normalize_url(url)}
        current = url

        def done(incomplete=False, cyclic=False, error=None) -> RedirectChain:
            return RedirectChain(
                start_url=url, hops=tuple(hops), incomplete=incomplete, cyclic=cyclic, error=error,
            )

        for sequence in range(1, self.max_hops + 1):
            if cancel is not None and cancel.is_set():
                return done(incomplete=True, error="cancelled")

            host = urlparse(current).hostname or ""
            if is_private_host(host):
                return done(incomplete=True, error=f"refused private address {host}")

            try:
                resp = self._fetch(current)
            except requests.Timeout:
                logger.info("Hop %d timed out after %ss: %s", sequence, self.hop_timeout, host)
                return done(incomplete=True, error="timeout")
            except requests.RequestException as exc:
                logger.info("Hop %d failed for %s: %s", sequence, host, type(exc).__name__)
                return done(incomplete=True, error=f"network failure: {type(exc).__name__}")

            location = resp.headers.get("Location") if resp.status_code in REDIRECT_CODES else None
            if not location:
                hops.append(RedirectHop(
                    sequence=sequence, url=current, status_code=resp.status_code, is_terminal=True,
                ))
                return done()

            try:
                target = urljoin(current, location)
                key = normalize_url(target)
            except ValueError:
                hops.append(RedirectHop(
                    sequence=sequence, url=current, status_code=resp.status_code, is_terminal=False,
                ))
                logger.info("Hop %d from %s sent an unusable Location header", sequence, host)
                return done(incomplete=True, error="malformed Location")

            hops.append(RedirectHop(
                sequence=sequence, url=current, status_code=resp.status_code,
                is_terminal=False, location=target,
            ))
            if key in visited:
                logger.info("Redirect cycle back to %s after %d hops", urlparse(target).hostname, sequence)
                return done(cyclic=True)
            visited.add(key)
            current = target

        return done(incomplete=True, error=f"hop limit {self.max_hops} reached")
