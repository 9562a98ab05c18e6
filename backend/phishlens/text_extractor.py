"""
Text Extractor
──────────────
Rule-based scam language detection over a fixed ordered set of pattern
categories, plus homoglyph checks on every embedded link.
One signal per category, however often it matches.
"""

import logging
import re
import threading
from typing import List, Optional, Tuple
from urllib.parse import urlparse

from . import config, homoglyph
from .catalog import CatalogSnapshot
from .models import Extraction, PhraseSpan, Signal, SignalCategory, TextEvidence

logger = logging.getLogger("phishlens.text")

URL_RE = re.compile(r"https?://[^\s<>\"']+", re.IGNORECASE)
TRAILING_PUNCT = ".,;:!?)]}'\""


def _spans(text: str, expressions) -> List[Tuple[int, int, str]]:
    """All matches, earliest-longest first, with overlaps inside a category dropped."""
    found = []
    for expr in expressions:
        for m in expr.finditer(text):
            if m.end() > m.start():
                found.append((m.start(), m.end(), m.group(0)))
    found.sort(key=lambda s: (s[0], -(s[1] - s[0])))

    kept: List[Tuple[int, int, str]] = []
    for span in found:
        if kept and span[0] < kept[-1][1]:
            continue
        kept.append(span)
    return kept


def _distinct(spans) -> List[str]:
    seen: List[str] = []
    for _, _, txt in spans:
        if txt not in seen:
            seen.append(txt)
    return seen


def embedded_urls(text: str) -> List[Tuple[int, int, str]]:
    urls = []
    for m in URL_RE.finditer(text):
        url = m.group(0).rstrip(TRAILING_PUNCT)
        urls.append((m.start(), m.start() + len(url), url))
    return urls


class TextExtractor:
    def __init__(self, weights: Optional[dict] = None):
        self.weights = weights or config.TEXT_WEIGHTS

    def extract(self, text: str, snapshot: CatalogSnapshot,
                cancel: Optional[threading.Event] = None) -> Extraction:
        signals: List[Signal] = []
        highlights: List[PhraseSpan] = []

        for patterns in snapshot.patterns:
            spans = _spans(text, patterns.expressions)
            if not spans:
                continue
            hits = _distinct(spans)
            signals.append(Signal(
                id=f"text.{patterns.key}",
                category=patterns.category,
                delta=self.weights[patterns.key],
                evidence=f"{patterns.title}: " + ", ".join(hits[:4]),
                matched_text=", ".join(hits),
            ))
            highlights.extend(
                PhraseSpan(start=s, end=e, text=t, category=patterns.category) for s, e, t in spans
            )

        links = embedded_urls(text)
        flagged = []
        for start, end, url in links:
            finding = homoglyph.detect(
                urlparse(url).hostname or "", snapshot.brand_domains,
                snapshot.confusables, snapshot.spoof_terms,
            )
            if finding is not None:
                flagged.append((start, end, url, finding))

        if flagged:
            _, _, _, first = flagged[0]
            signals.append(Signal(
                id="text.embedded_homoglyph",
                category=SignalCategory.HOMOGLYPH_DOMAIN,
                delta=self.weights["embedded_homoglyph"],
                evidence=f"Suspicious link with homoglyphs: {first.candidate} ({first.reason})",
                matched_text=", ".join(dict.fromkeys(u for _, _, u, _ in flagged)),
            ))
            highlights.extend(
                PhraseSpan(start=s, end=e, text=u, category=SignalCategory.HOMOGLYPH_DOMAIN)
                for s, e, u, _ in flagged
            )

        highlights.sort(key=lambda p: (p.start, p.end, p.category.value))
        logger.debug("Text analysed: %d signals, %d links", len(signals), len(links))
        return Extraction(
            signals=tuple(signals),
            evidence=TextEvidence(
                highlighted_phrases=tuple(highlights),
                embedded_urls=tuple(u for _, _, u in links),
            ),
        )
