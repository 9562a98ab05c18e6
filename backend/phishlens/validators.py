"""
Input Validation
────────────────
Requests are rejected here, before any extractor runs.
"""

import re
from urllib.parse import urlparse

from . import config
from .errors import ValidationError
from .models import AnalysisRequest, Channel

PRIVATE_IP_RE = [
    re.compile(r"^127\."),
    re.compile(r"^10\."),
    re.compile(r"^172\.(1[6-9]|2\d|3[01])\."),
    re.compile(r"^192\.168\."),
    re.compile(r"^0\."),
    re.compile(r"^169\.254\."),
    re.compile(r"^fc00:", re.IGNORECASE),
    re.compile(r"^fe80:", re.IGNORECASE),
    re.compile(r"^::1$"),
    re.compile(r"^localhost$", re.IGNORECASE),
]


def is_private_host(host: str) -> bool:
    host = (host or "").strip("[]").lower()
    return any(pat.search(host) for pat in PRIVATE_IP_RE)


def validate_url(url: str) -> str:
    """Absolute http(s) URL with a host. No scheme is guessed."""
    if not isinstance(url, str):
        raise ValidationError("URL payload must be a string")
    url = url.strip()
    if not url:
        raise ValidationError("URL cannot be empty")
    if len(url) > config.MAX_URL_LENGTH:
        raise ValidationError(f"URL too long (max {config.MAX_URL_LENGTH} characters)")

    try:
        parsed = urlparse(url)
        host = parsed.hostname
        parsed.port
    except ValueError as exc:
        raise ValidationError(f"URL is malformed: {exc}") from exc
    if parsed.scheme.lower() not in ("http", "https"):
        raise ValidationError("URL must start with http:// or https://")
    if not host or host.strip(".") == "":
        raise ValidationError("URL has no host")
    if any(ch.isspace() for ch in url):
        raise ValidationError("URL contains whitespace")
    return url


def validate_text(text: str) -> str:
    if not isinstance(text, str):
        raise ValidationError("Text payload must be a string")
    if not text.strip():
        raise ValidationError("Text cannot be empty")
    if len(text) > config.MAX_TEXT_LENGTH:
        raise ValidationError(f"Text too long (max {config.MAX_TEXT_LENGTH} characters)")
    return text


def validate_image(data: bytes) -> bytes:
    if not isinstance(data, (bytes, bytearray)):
        raise ValidationError("Image payload must be bytes")
    if not data:
        raise ValidationError("Image payload is empty")
    if len(data) > config.MAX_IMAGE_BYTES:
        raise ValidationError(f"Image too large (max {config.MAX_IMAGE_BYTES} bytes)")
    return bytes(data)


def validate_request(request: AnalysisRequest):
    """Returns the validated payload for the request's channel."""
    if request.channel == Channel.URL:
        return validate_url(request.payload)
    if request.channel == Channel.TEXT:
        return validate_text(request.payload)
    if request.channel == Channel.IMAGE:
        return validate_image(request.payload)
    raise ValidationError(f"Unknown channel: {request.channel}")
