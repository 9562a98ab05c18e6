"""
Risk Engine
───────────
Request → validation → channel extractor → aggregator → explanation.
Holds only read-only catalogs (via CatalogStore) and a worker pool shared
by sub-detectors; nothing request-specific survives a call.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Protocol

from . import config
from .catalog import CatalogSnapshot, CatalogStore
from .errors import AnalysisCancelled
from .explain import explain
from .image_extractor import ImageExtractor
from .lookups import DomainLookup
from .models import AnalysisRequest, AnalysisResult, Channel, Extraction
from .redirects import RedirectResolver
from .scoring import aggregate
from .text_extractor import TextExtractor
from .url_extractor import UrlExtractor
from .validators import validate_request

logger = logging.getLogger("phishlens.engine")

Subscriber = Callable[[AnalysisResult], None]


class Extractor(Protocol):
    def extract(self, payload, snapshot: CatalogSnapshot,
                cancel: Optional[threading.Event] = None) -> Extraction:
        ...


class RiskEngine:
    def __init__(
        self,
        catalogs: Optional[CatalogStore] = None,
        extractors: Optional[Dict[Channel, Extractor]] = None,
        resolver: Optional[RedirectResolver] = None,
        lookup: Optional[DomainLookup] = None,
        resolve_redirects: bool = config.RESOLVE_REDIRECTS,
        timeout: float = config.EXTRACTOR_TIMEOUT,
    ):
        self.catalogs = catalogs or CatalogStore.open()
        self.executor = ThreadPoolExecutor(max_workers=config.WORKER_THREADS, thread_name_prefix="phishlens")
        self.extractors: Dict[Channel, Extractor] = {
            Channel.URL: UrlExtractor(
                resolver=resolver, lookup=lookup, executor=self.executor,
                timeout=timeout, resolve_redirects=resolve_redirects,
            ),
            Channel.TEXT: TextExtractor(),
            Channel.IMAGE: ImageExtractor(),
        }
        if extractors:
            self.extractors.update(extractors)
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber):
        """Register a listener for completed results (event feeds, alerts)."""
        self._subscribers.append(callback)

    def analyze(self, request: AnalysisRequest, cancel: Optional[threading.Event] = None) -> AnalysisResult:
        payload = validate_request(request)
        snapshot = self.catalogs.snapshot()

        extraction = self.extractors[request.channel].extract(payload, snapshot, cancel)
        if cancel is not None and cancel.is_set():
            raise AnalysisCancelled(f"{request.channel.value} analysis cancelled")

        score, label = aggregate(extraction.signals)
        short, long_lines, actions = explain(request.channel, label, extraction.signals)
        result = AnalysisResult(
            channel=request.channel,
            score=score,
            label=label,
            short_explanation=short,
            long_explanation=long_lines,
            actions=actions,
            evidence=extraction.evidence,
            signals=extraction.signals,
            low_confidence=extraction.low_confidence or self.catalogs.stale,
            degraded=extraction.degraded,
            catalog_version=snapshot.version,
        )
        logger.info(
            "%s analysed: score=%d label=%s signals=%d%s",
            request.channel.value, score, label.value, len(extraction.signals),
            " (low confidence)" if result.low_confidence else "",
        )
        self._publish(result)
        return result

    def analyze_url(self, url: str, cancel: Optional[threading.Event] = None) -> AnalysisResult:
        return self.analyze(AnalysisRequest.url(url), cancel)

    def analyze_text(self, text: str, cancel: Optional[threading.Event] = None) -> AnalysisResult:
        return self.analyze(AnalysisRequest.text(text), cancel)

    def analyze_image(self, data: bytes, cancel: Optional[threading.Event] = None) -> AnalysisResult:
        return self.analyze(AnalysisRequest.image(data), cancel)

    def _publish(self, result: AnalysisResult):
        for callback in self._subscribers:
            try:
                callback(result)
            except Exception as exc:
                logger.warning("Result subscriber %r failed: %s", callback, exc)

    def close(self):
        self.executor.shutdown(wait=False, cancel_futures=True)
