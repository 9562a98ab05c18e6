"""
Homoglyph / Typosquat Detector
──────────────────────────────
Canonicalizes a domain through the confusable table and compares it with
the protected brand domains.

    full confidence     canonical == brand, literal != brand (g00gle.com)
    reduced confidence  edit distance 1-2 with matching prefix/suffix (gooogle.com)
                        or confusables spell a brand / sensitive term (acc0unt)
"""

import logging
from typing import Iterable, List, Optional, Tuple

import idna
import tldextract

from .models import HomoglyphFinding

logger = logging.getLogger("phishlens.homoglyph")

FULL = 1.0
REDUCED = 0.5
MIN_TYPO_LABEL = 5
MAX_TYPO_DISTANCE = 2

# Bundled public suffix snapshot only; never fetched at runtime.
_suffixes = tldextract.TLDExtract(suffix_list_urls=())


def normalize_host(host: str) -> str:
    """Lowercase, strip trailing dot, decode punycode labels."""
    host = (host or "").strip().lower().rstrip(".")
    if "xn--" in host:
        try:
            host = idna.decode(host)
        except idna.IDNAError:
            logger.debug("Undecodable IDNA host kept as-is: %s", host)
    return host


def canonicalize(value: str, confusables: Iterable[Tuple[str, str]]) -> str:
    """Replace confusable sequences, longest first, scanning left to right."""
    table = list(confusables)
    out: List[str] = []
    i = 0
    while i < len(value):
        for seq, repl in table:
            if value.startswith(seq, i):
                out.append(repl)
                i += len(seq)
                break
        else:
            out.append(value[i])
            i += 1
    return "".join(out)


def registrable(host: str) -> str:
    """Domain directly under its public suffix; the host itself when there is none."""
    ext = _suffixes(host)
    if ext.domain and ext.suffix:
        return f"{ext.domain}.{ext.suffix}"
    return host


def levenshtein(a: str, b: str) -> int:
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (ca != cb),
            ))
        previous = current
    return previous[-1]


def _affix(a: str, b: str) -> Tuple[int, int]:
    prefix = 0
    for x, y in zip(a, b):
        if x != y:
            break
        prefix += 1
    suffix = 0
    for x, y in zip(reversed(a), reversed(b)):
        if x != y:
            break
        suffix += 1
    return prefix, suffix


def _brand_label(domain: str) -> str:
    return registrable(domain).split(".")[0]


def is_brand_host(host: str, brand_domains: Iterable[str]) -> bool:
    host = normalize_host(host)
    if host.startswith("www."):
        host = host[4:]
    return any(host == d or host.endswith("." + d) for d in brand_domains)


def detect(host: str, brand_domains: Iterable[str], confusables: Iterable[Tuple[str, str]],
           spoof_terms: Iterable[str] = ()) -> Optional[HomoglyphFinding]:
    """Best homoglyph/typosquat finding for ``host`` or None."""
    brand_domains = list(brand_domains)
    confusables = list(confusables)
    host = normalize_host(host)
    if host.startswith("www."):
        host = host[4:]
    if not host or is_brand_host(host, brand_domains):
        return None

    canon_host = canonicalize(host, confusables)
    canon_reg = registrable(canon_host)
    literal_labels = host.split(".")
    canon_labels = canon_host.split(".")
    findings: List[HomoglyphFinding] = []

    for brand in brand_domains:
        canon_brand = canonicalize(brand, confusables)
        brand_label = _brand_label(canon_brand)

        if canon_reg == canon_brand:
            findings.append(HomoglyphFinding(
                candidate=host, canonical=canon_host, brand_domain=brand, distance=0,
                confidence=FULL, reason=f"Confusable characters normalize to {brand}",
            ))
            continue

        spoofed = [
            lit for lit, can in zip(literal_labels[:-1], canon_labels[:-1])
            if can == brand_label and lit != can
        ]
        if spoofed:
            findings.append(HomoglyphFinding(
                candidate=host, canonical=canon_host, brand_domain=brand, distance=0,
                confidence=FULL, reason=f"Label '{spoofed[0]}' impersonates {brand}",
            ))
            continue

        if len(brand_label) < MIN_TYPO_LABEL:
            continue
        distance = levenshtein(canon_reg, canon_brand)
        if 1 <= distance <= MAX_TYPO_DISTANCE:
            prefix, suffix = _affix(canon_reg, canon_brand)
            if prefix and suffix and prefix + suffix >= len(canon_brand) - MAX_TYPO_DISTANCE:
                findings.append(HomoglyphFinding(
                    candidate=host, canonical=canon_host, brand_domain=brand, distance=distance,
                    confidence=REDUCED, reason=f"{host} is {distance} edit(s) away from {brand}",
                ))

    if findings:
        return max(findings, key=lambda f: (f.confidence, -f.distance))

    if canon_host == host:
        return None
    terms = [_brand_label(b) for b in brand_domains] + list(spoof_terms)
    for term in terms:
        if term in canon_host and term not in host:
            return HomoglyphFinding(
                candidate=host, canonical=canon_host, brand_domain=term, distance=0,
                confidence=REDUCED, reason=f"Confusable characters spell '{term}'",
            )
    return None
