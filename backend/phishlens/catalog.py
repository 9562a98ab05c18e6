"""
Reference Catalogs
──────────────────
Protected brands, confusable characters, trusted TLS issuers, text pattern
tables and canonical logo assets. Loaded once into an immutable snapshot;
reloads build a fresh snapshot and swap it in whole.

Directory layout (every file optional, built-in defaults otherwise):
    brands.json            [{"name", "domains": [...], "logo": "x.png"}]
    confusables.json       {"0": "o", "rn": "m", ...}
    trusted_issuers.json   ["DigiCert Inc", ...]
    spoof_terms.json       ["account", "login", ...]
    patterns.json          {"urgency": [regex, ...], ...}
    logos/<file>.png
"""

import hashlib
import json
import logging
import re
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from . import config
from .errors import CatalogUnavailable
from .imaging import LogoAsset, fingerprint
from .models import SignalCategory

logger = logging.getLogger("phishlens.catalog")


# ── Built-in defaults ──
DEFAULT_BRANDS = [
    {"name": "Google", "domains": ["google.com", "gmail.com", "youtube.com"]},
    {"name": "PayPal", "domains": ["paypal.com"]},
    {"name": "Microsoft", "domains": ["microsoft.com", "live.com", "outlook.com", "office.com"]},
    {"name": "Apple", "domains": ["apple.com", "icloud.com"]},
    {"name": "Amazon", "domains": ["amazon.com"]},
    {"name": "Facebook", "domains": ["facebook.com", "instagram.com"]},
    {"name": "Netflix", "domains": ["netflix.com"]},
]

DEFAULT_CONFUSABLES = {
    # multi-character sequences
    "rn": "m", "vv": "w", "cl": "d",
    # digits
    "0": "o", "1": "l", "3": "e", "4": "a", "5": "s", "7": "t", "8": "b", "9": "g",
    # Cyrillic
    "а": "a", "е": "e", "о": "o", "р": "p", "с": "c", "у": "y", "х": "x",
    "і": "i", "ј": "j", "ѕ": "s", "һ": "h", "ԁ": "d", "ԛ": "q", "ԝ": "w",
    # Greek
    "α": "a", "ο": "o", "ρ": "p", "ν": "v", "τ": "t", "ι": "i", "κ": "k",
    # Latin look-alikes
    "ı": "i", "ł": "l", "ɡ": "g", "ß": "b",
}

DEFAULT_TRUSTED_ISSUERS = [
    "DigiCert Inc", "Let's Encrypt", "Google Trust Services", "Google Trust Services LLC",
    "Sectigo Limited", "GlobalSign nv-sa", "Amazon", "Microsoft Corporation",
    "Entrust, Inc.", "GoDaddy.com, Inc.", "IdenTrust", "Apple Inc.", "Cloudflare, Inc.",
]

DEFAULT_SPOOF_TERMS = [
    "account", "login", "signin", "verify", "secure", "security", "update",
    "password", "bank", "wallet", "support", "billing", "confirm",
]

# Order is the evaluation order of the text extractor.
DEFAULT_PATTERNS = {
    "urgency": [
        r"\burgent(?:ly)?\b", r"\bimmediate(?:ly)?\b", r"\bexpir(?:e|es|ed|ing)\b",
        r"\b(?:within|in)\s+\d+\s+(?:hours?|minutes?|days?)\b", r"\b\d+\s+hours?\b",
        r"\bact\s+(?:now|fast)\b", r"\bverify\s+now\b", r"\basap\b", r"\bright\s+away\b",
        r"\blimited\s+time\b", r"\bfinal\s+notice\b", r"\blast\s+chance\b", r"\bhurry\b",
    ],
    "credential": [
        r"\blog\s?in\b", r"\bsign[\s-]?in\b", r"\bpasswords?\b", r"\bverify\b",
        r"\bconfirm\s+your\b", r"\bclick\s+here\b", r"\bcredentials?\b", r"\baccount\b",
        r"\bssn\b", r"\bsocial\s+security\b", r"\bcredit\s+card\b", r"\bbank\s+details\b",
        r"\bupdate\s+your\s+(?:payment|billing)\b",
    ],
    "threat": [
        r"\bsuspend(?:ed|ing|sion)?\b", r"\bterminat(?:e|ed|ion)\b", r"\bwill\s+be\s+closed\b",
        r"\bclos(?:e|ed|ure)\s+(?:of\s+)?your\s+account\b", r"\block(?:ed)?\b", r"\bblock(?:ed)?\b",
        r"\blegal\s+action\b", r"\bunauthori[sz]ed\b", r"\bdisabled\b", r"\bdeactivat(?:e|ed|ion)\b",
    ],
    "reward": [
        r"\bprizes?\b", r"\bwinners?\b", r"\byou(?:'ve| have)?\s+won\b", r"\bcongratulations\b",
        r"\bselected\b", r"\brewards?\b", r"\bgift\s+cards?\b", r"\bjackpot\b", r"\blottery\b",
        r"\bbonus\b", r"\bclaim\s+your\b", r"\bfree\b",
    ],
}

PATTERN_CATEGORIES = {
    "urgency": (SignalCategory.URGENCY, "Urgency language"),
    "credential": (SignalCategory.CREDENTIAL_HARVEST, "Credential harvesting language"),
    "threat": (SignalCategory.THREAT, "Threat / account closure language"),
    "reward": (SignalCategory.REWARD, "Reward / prize language"),
}


@dataclass(frozen=True)
class Brand:
    name: str
    domains: Tuple[str, ...]
    logo: Optional[str] = None


@dataclass(frozen=True)
class PatternSet:
    key: str
    category: SignalCategory
    title: str
    expressions: Tuple[re.Pattern, ...]


@dataclass(frozen=True)
class CatalogSnapshot:
    version: str
    brands: Tuple[Brand, ...]
    confusables: Tuple[Tuple[str, str], ...]
    trusted_issuers: FrozenSet[str]
    spoof_terms: Tuple[str, ...]
    patterns: Tuple[PatternSet, ...]
    logos: Tuple[LogoAsset, ...] = field(default=())

    @property
    def brand_domains(self) -> Tuple[str, ...]:
        return tuple(d for b in self.brands for d in b.domains)

    def brand_for_domain(self, domain: str) -> Optional[Brand]:
        for b in self.brands:
            if domain in b.domains:
                return b
        return None

    def is_trusted_issuer(self, issuer: str) -> bool:
        issuer = (issuer or "").strip().lower()
        return any(issuer == t.lower() for t in self.trusted_issuers)


def _read_json(directory: Optional[Path], name: str, default):
    if directory is None:
        return default
    path = directory / name
    if not path.exists():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise CatalogUnavailable(f"{name}: {exc}") from exc


def _compile_patterns(raw: Dict[str, list]) -> Tuple[PatternSet, ...]:
    sets = []
    for key, (category, title) in PATTERN_CATEGORIES.items():
        try:
            expressions = tuple(re.compile(p, re.IGNORECASE) for p in raw.get(key, []))
        except re.error as exc:
            raise CatalogUnavailable(f"patterns.json [{key}]: {exc}") from exc
        sets.append(PatternSet(key=key, category=category, title=title, expressions=expressions))
    return tuple(sets)


def _load_logos(directory: Optional[Path], brands: Tuple[Brand, ...]) -> Tuple[LogoAsset, ...]:
    if directory is None:
        return ()
    assets = []
    for brand in brands:
        if not brand.logo:
            continue
        path = directory / "logos" / brand.logo
        try:
            with Image.open(path) as img:
                img.load()
                assets.append(fingerprint(brand.name, img))
        except (OSError, UnidentifiedImageError) as exc:
            raise CatalogUnavailable(f"logo {brand.logo}: {exc}") from exc
    return tuple(assets)


def load_catalog(directory=None) -> CatalogSnapshot:
    """Build a snapshot from ``directory`` (or the built-in defaults)."""
    root = Path(directory) if directory else None
    if root is not None and not root.is_dir():
        raise CatalogUnavailable(f"catalog directory not found: {root}")

    raw_brands = _read_json(root, "brands.json", DEFAULT_BRANDS)
    raw_confusables = _read_json(root, "confusables.json", DEFAULT_CONFUSABLES)
    raw_issuers = _read_json(root, "trusted_issuers.json", DEFAULT_TRUSTED_ISSUERS)
    raw_terms = _read_json(root, "spoof_terms.json", DEFAULT_SPOOF_TERMS)
    raw_patterns = _read_json(root, "patterns.json", DEFAULT_PATTERNS)

    try:
        brands = tuple(
            Brand(
                name=b["name"],
                domains=tuple(d.lower().rstrip(".") for d in b["domains"]),
                logo=b.get("logo"),
            )
            for b in raw_brands
        )
    except (KeyError, TypeError, AttributeError) as exc:
        raise CatalogUnavailable(f"brands.json: {exc}") from exc

    # Longest sequences first so "rn" wins over any single-character rule.
    confusables = tuple(sorted(raw_confusables.items(), key=lambda kv: (-len(kv[0]), kv[0])))
    patterns = _compile_patterns(raw_patterns)
    logos = _load_logos(root, brands)

    digest = hashlib.sha256()
    digest.update(json.dumps([raw_brands, raw_confusables, raw_issuers, raw_terms, raw_patterns],
                             sort_keys=True, ensure_ascii=False).encode("utf-8"))
    for asset in logos:
        digest.update(f"{asset.brand}:{asset.phash}".encode("utf-8"))

    snapshot = CatalogSnapshot(
        version=digest.hexdigest()[:12],
        brands=brands,
        confusables=confusables,
        trusted_issuers=frozenset(raw_issuers),
        spoof_terms=tuple(t.lower() for t in raw_terms),
        patterns=patterns,
        logos=logos,
    )
    logger.info(
        "Catalog %s loaded: %d brands, %d logos, %d confusables",
        snapshot.version, len(brands), len(logos), len(confusables),
    )
    return snapshot


class CatalogStore:
    """Holds the current snapshot. Readers take a reference; reloads swap it whole."""

    def __init__(self, snapshot: CatalogSnapshot, directory=None):
        self._snapshot = snapshot
        self._directory = directory
        self._reload_lock = threading.Lock()
        self.stale = False

    @classmethod
    def open(cls, directory=None) -> "CatalogStore":
        """Startup load. CatalogUnavailable here is fatal."""
        directory = directory if directory is not None else (config.CATALOG_DIR or None)
        return cls(load_catalog(directory), directory)

    def snapshot(self) -> CatalogSnapshot:
        return self._snapshot

    def reload(self) -> CatalogSnapshot:
        """Rebuild from disk. On failure the previous snapshot stays in service."""
        with self._reload_lock:
            try:
                fresh = load_catalog(self._directory)
            except CatalogUnavailable as exc:
                self.stale = True
                logger.warning("Catalog reload failed, keeping %s: %s", self._snapshot.version, exc)
                raise
            self._snapshot = fresh
            self.stale = False
            return fresh
