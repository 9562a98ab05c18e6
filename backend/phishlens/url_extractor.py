"""
URL Extractor
─────────────
Homoglyph match + redirect chain + domain facts → signals.
Redirect resolution and the facts lookup run on the worker pool while the
homoglyph check runs inline; each gets the extractor budget and degrades to
"no evidence" when it overruns.
"""

import logging
import threading
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from typing import Dict, List, Optional
from urllib.parse import urlparse

from . import config, homoglyph
from .catalog import CatalogSnapshot
from .errors import AnalysisCancelled, ExtractorTimeout
from .lookups import DomainLookup, default_lookup
from .models import (
    DomainFacts, Extraction, HomoglyphFinding, RedirectChain, Signal, SignalCategory, UrlEvidence,
)
from .redirects import RedirectResolver

logger = logging.getLogger("phishlens.url")

CREDENTIAL_KEYWORDS = [
    "login", "signin", "sign-in", "verify", "account", "password",
    "secure", "update", "confirm", "wallet", "bank",
]


class _StopFlag:
    """Set when either the request is cancelled or this extractor gives up."""

    def __init__(self, parent: Optional[threading.Event]):
        self.parent = parent
        self.own = threading.Event()

    def is_set(self) -> bool:
        return self.own.is_set() or (self.parent is not None and self.parent.is_set())

    def set(self):
        self.own.set()


# Slice the wait so a cancelled request is noticed while a sub-detector blocks.
POLL_INTERVAL = 0.05


def _await(name: str, future, deadline: float, budget: float, stop: _StopFlag):
    while True:
        remaining = max(0.0, deadline - time.monotonic())
        try:
            return future.result(timeout=min(remaining, POLL_INTERVAL))
        except FuturesTimeout:
            pass
        if stop.parent is not None and stop.parent.is_set():
            stop.set()
            future.cancel()
            raise AnalysisCancelled("analysis cancelled")
        if time.monotonic() >= deadline:
            future.cancel()
            raise ExtractorTimeout(name, budget)


class UrlExtractor:
    def __init__(
        self,
        resolver: Optional[RedirectResolver] = None,
        lookup: Optional[DomainLookup] = None,
        executor: Optional[Executor] = None,
        timeout: float = config.EXTRACTOR_TIMEOUT,
        resolve_redirects: bool = config.RESOLVE_REDIRECTS,
        weights: Optional[dict] = None,
    ):
        self.resolver = resolver or RedirectResolver()
        self.lookup = lookup or default_lookup()
        self.executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="url")
        self.timeout = timeout
        self.resolve_redirects = resolve_redirects
        self.w = weights or config.URL_WEIGHTS

    def extract(self, url: str, snapshot: CatalogSnapshot,
                cancel: Optional[threading.Event] = None) -> Extraction:
        parsed = urlparse(url)
        host = homoglyph.normalize_host(parsed.hostname or "")
        stop = _StopFlag(cancel)
        degraded: List[str] = []

        futures: Dict[str, object] = {}
        if self.resolve_redirects:
            futures["redirects"] = self.executor.submit(self.resolver.resolve, url, stop)
        futures["domain_facts"] = self.executor.submit(self.lookup, host)

        finding = homoglyph.detect(host, snapshot.brand_domains, snapshot.confusables, snapshot.spoof_terms)

        chain = RedirectChain(start_url=url)
        facts = DomainFacts()
        deadline = time.monotonic() + self.timeout
        for name, future in futures.items():
            try:
                value = _await(name, future, deadline, self.timeout, stop)
            except AnalysisCancelled:
                logger.info("Analysis of %s cancelled while waiting on %s", host, name)
                raise
            except ExtractorTimeout as exc:
                stop.set()
                degraded.append(name)
                logger.warning("Sub-detector timed out: %s", exc)
                continue
            except Exception as exc:
                # Graceful: a failing collaborator must never block the scan
                degraded.append(name)
                logger.warning("Sub-detector %s failed: %s", name, exc)
                continue
            if name == "redirects":
                chain = value
            else:
                facts = value

        signals = self._signals(parsed, host, finding, chain, facts, snapshot)
        return Extraction(
            signals=tuple(signals),
            evidence=UrlEvidence(
                url=url,
                host=host,
                final_url=chain.final_url,
                redirect_chain=chain,
                graph=chain.graph(),
                homoglyph=finding,
                domain_facts=facts,
            ),
            low_confidence=bool(degraded) or chain.incomplete,
            degraded=tuple(degraded),
        )

    def _signals(self, parsed, host: str, finding: Optional[HomoglyphFinding], chain: RedirectChain,
                 facts: DomainFacts, snapshot: CatalogSnapshot) -> List[Signal]:
        w = self.w
        signals: List[Signal] = []

        if finding is not None:
            signals.append(Signal(
                id="url.homoglyph",
                category=SignalCategory.HOMOGLYPH_DOMAIN,
                delta=round(w["homoglyph"] * finding.confidence),
                evidence=f"Homoglyph domain: {finding.reason}",
                matched_text=host,
            ))

        extra = chain.redirect_count - config.FREE_REDIRECTS
        if extra > 0:
            final_host = urlparse(chain.final_url).hostname or chain.final_url
            signals.append(Signal(
                id="url.redirect_chain",
                category=SignalCategory.SUSPICIOUS_REDIRECT,
                delta=max(w["redirect_cap"], w["redirect_per_hop"] * extra),
                evidence=f"{chain.redirect_count} redirects before reaching {final_host}",
            ))
        if chain.cyclic:
            signals.append(Signal(
                id="url.redirect_cycle",
                category=SignalCategory.SUSPICIOUS_REDIRECT,
                delta=w["redirect_cycle"],
                evidence="Redirect chain loops back to a previously visited URL",
            ))

        if facts.tls_verified is False:
            signals.append(Signal(
                id="url.tls_issuer",
                category=SignalCategory.TLS_ANOMALY,
                delta=w["tls_untrusted"],
                evidence="TLS certificate failed verification",
            ))
        elif facts.tls_issuer and not snapshot.is_trusted_issuer(facts.tls_issuer):
            signals.append(Signal(
                id="url.tls_issuer",
                category=SignalCategory.TLS_ANOMALY,
                delta=w["tls_untrusted"],
                evidence=f"SSL certificate from untrusted issuer: {facts.tls_issuer}",
                matched_text=facts.tls_issuer,
            ))

        if (parsed.scheme or "").lower() != "https":
            signals.append(Signal(
                id="url.plain_http",
                category=SignalCategory.TLS_ANOMALY,
                delta=w["plain_http"],
                evidence="Connection not encrypted (HTTP)",
            ))

        if facts.domain_age_days is not None and facts.domain_age_days < config.FRESH_DOMAIN_DAYS:
            signals.append(Signal(
                id="url.domain_age",
                category=SignalCategory.DOMAIN_AGE,
                delta=w["domain_age"],
                evidence=f"Domain registered {facts.domain_age_days} day(s) ago",
            ))

        text = (parsed.path + " " + (parsed.query or "")).lower()
        hits = [k for k in CREDENTIAL_KEYWORDS if k in text]
        if hits:
            signals.append(Signal(
                id="url.credential_path",
                category=SignalCategory.CREDENTIAL_HARVEST,
                delta=w["credential_path"],
                evidence="Credential keywords in URL: " + ", ".join(hits[:6]),
                matched_text=", ".join(hits),
            ))

        return signals
