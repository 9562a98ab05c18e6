"""
Perceptual Image Comparator
───────────────────────────
pHash distance against canonical brand logos plus structural tamper checks
(palette, aspect ratio, localized overlays).
"""

import io
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import imagehash
from PIL import Image, ImageChops, ImageStat, UnidentifiedImageError

from . import config
from .errors import ValidationError

logger = logging.getLogger("phishlens.imaging")

SUPPORTED_FORMATS = {"PNG", "JPEG", "GIF", "BMP", "WEBP"}
THUMB_SIZE = (64, 64)


@dataclass(frozen=True)
class LogoAsset:
    brand: str
    phash: imagehash.ImageHash
    width: int
    height: int
    mean_rgb: Tuple[float, float, float]
    thumbnail: Image.Image

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height if self.height else 0.0


@dataclass(frozen=True)
class Comparison:
    asset: Optional[LogoAsset]
    similarity: int
    detected_brand: str


def _flatten(img: Image.Image) -> Image.Image:
    """RGB on a white background, so transparent logos hash consistently."""
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        rgba = img.convert("RGBA")
        canvas = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
        canvas.alpha_composite(rgba)
        return canvas.convert("RGB")
    return img.convert("RGB")


def decode_image(data: bytes) -> Image.Image:
    if not data:
        raise ValidationError("Image payload is empty")
    if len(data) > config.MAX_IMAGE_BYTES:
        raise ValidationError(f"Image too large (max {config.MAX_IMAGE_BYTES} bytes)")
    try:
        img = Image.open(io.BytesIO(data))
        fmt = img.format
        img.load()
    except Image.DecompressionBombError as exc:
        raise ValidationError("Image dimensions exceed the decoder limit") from exc
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ValidationError("Image could not be decoded") from exc
    if fmt not in SUPPORTED_FORMATS:
        raise ValidationError(f"Unsupported image format: {fmt}")
    return img


def fingerprint(brand: str, img: Image.Image) -> LogoAsset:
    rgb = _flatten(img)
    mean = ImageStat.Stat(rgb).mean
    return LogoAsset(
        brand=brand,
        phash=imagehash.phash(rgb),
        width=rgb.width,
        height=rgb.height,
        mean_rgb=(round(mean[0], 2), round(mean[1], 2), round(mean[2], 2)),
        thumbnail=rgb.convert("L").resize(THUMB_SIZE),
    )


def similarity(a: imagehash.ImageHash, b: imagehash.ImageHash) -> int:
    bits = a.hash.size
    return int(round((bits - (a - b)) / bits * 100))


def closest_asset(probe: LogoAsset, assets: Sequence[LogoAsset]) -> Comparison:
    """Closest canonical asset by pHash; ties go to catalog order."""
    best: Optional[LogoAsset] = None
    best_score = -1
    for asset in assets:
        score = similarity(probe.phash, asset.phash)
        if score > best_score:
            best, best_score = asset, score

    if best is None:
        return Comparison(asset=None, similarity=0, detected_brand="Unknown")

    brand = best.brand if best_score >= config.SIMILARITY_FLOOR else "Unknown"
    return Comparison(asset=best, similarity=best_score, detected_brand=brand)


# ── Tamper heuristics ──
def palette_deviation(probe: LogoAsset, asset: LogoAsset) -> float:
    return round(sum((p - a) ** 2 for p, a in zip(probe.mean_rgb, asset.mean_rgb)) ** 0.5, 2)


def aspect_deviation(probe: LogoAsset, asset: LogoAsset) -> float:
    if not asset.aspect_ratio:
        return 0.0
    return round(abs(probe.aspect_ratio / asset.aspect_ratio - 1), 3)


def overlay_fraction(probe: LogoAsset, asset: LogoAsset) -> float:
    """Share of thumbnail pixels that differ strongly from the canonical logo."""
    diff = ImageChops.difference(probe.thumbnail, asset.thumbnail)
    mask = diff.point(lambda p: 255 if p > config.OVERLAY_PIXEL_DIFF else 0)
    changed = mask.histogram()[255]
    return round(changed / (THUMB_SIZE[0] * THUMB_SIZE[1]), 4)
