"""
Engine Configuration
────────────────────
Environment-driven settings (backend/.env) plus the fixed weight tables.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# ── Catalogs ──
CATALOG_DIR = os.getenv("CATALOG_DIR", "").strip()

# ── Redirect resolution ──
RESOLVE_REDIRECTS = _flag("RESOLVE_REDIRECTS", "true")
MAX_REDIRECT_HOPS = int(os.getenv("MAX_REDIRECT_HOPS", "10"))
HOP_TIMEOUT = float(os.getenv("HOP_TIMEOUT", "5"))
USER_AGENT = os.getenv("USER_AGENT", "PhishLens/1.0 (+redirect-resolver)")

# ── Sub-detector budget ──
EXTRACTOR_TIMEOUT = float(os.getenv("EXTRACTOR_TIMEOUT", "20"))
WORKER_THREADS = int(os.getenv("WORKER_THREADS", "8"))

# ── Domain facts (TLS issuer / registration age) ──
DOMAIN_LOOKUPS = _flag("DOMAIN_LOOKUPS", "false")
LOOKUP_CACHE_TTL = int(os.getenv("LOOKUP_CACHE_TTL", "300"))
LOOKUP_CACHE_MAX = int(os.getenv("LOOKUP_CACHE_MAX", "1024"))
LOOKUP_TIMEOUT = float(os.getenv("LOOKUP_TIMEOUT", "5"))
RDAP_ENDPOINT = os.getenv("RDAP_ENDPOINT", "https://rdap.org/domain/")

# ── Input limits ──
MAX_URL_LENGTH = int(os.getenv("MAX_URL_LENGTH", "2048"))
MAX_TEXT_LENGTH = int(os.getenv("MAX_TEXT_LENGTH", "20000"))
MAX_IMAGE_BYTES = int(os.getenv("MAX_IMAGE_BYTES", str(10 * 1024 * 1024)))

# ── Alerts ──
ALERT_WEBHOOK_URL = os.getenv("ALERT_WEBHOOK_URL", "").strip()

# ── HTTP surface ──
RATE_LIMIT = int(os.getenv("RATE_LIMIT", "120"))
RATE_WINDOW = int(os.getenv("RATE_WINDOW", "60"))


# ── Weight tables (negative = more risk) ──
URL_WEIGHTS = {
    "homoglyph": -60,
    "redirect_per_hop": -10,
    "redirect_cap": -30,
    "redirect_cycle": -15,
    "tls_untrusted": -25,
    "plain_http": -10,
    "domain_age": -15,
    "credential_path": -10,
}
FREE_REDIRECTS = 2
FRESH_DOMAIN_DAYS = 30

TEXT_WEIGHTS = {
    "urgency": -25,
    "credential": -20,
    "threat": -20,
    "reward": -15,
    "embedded_homoglyph": -30,
}

IMAGE_WEIGHTS = {
    "palette": -10,
    "aspect_ratio": -10,
    "overlay": -15,
}
SIMILARITY_PASS = 70
SIMILARITY_FLOOR = 50
PALETTE_TOLERANCE = 60.0
ASPECT_TOLERANCE = 0.15
OVERLAY_PIXEL_DIFF = 64
OVERLAY_MIN_AREA = 0.02
OVERLAY_MAX_AREA = 0.35

# ── Label thresholds ──
SAFE_ABOVE = 50
WARNING_FROM = 35
