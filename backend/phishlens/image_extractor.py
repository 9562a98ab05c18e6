"""
Image Extractor
───────────────
Logo similarity against the canonical asset catalog plus tamper checks
against the matched brand asset. The filename is never consulted.
"""

import logging
import threading
from typing import List, Optional

from . import config, imaging
from .catalog import CatalogSnapshot
from .models import Extraction, ImageEvidence, Signal, SignalCategory

logger = logging.getLogger("phishlens.image")


def mismatch_signal(similarity: int, brand: str) -> Optional[Signal]:
    """LogoMismatch with delta -(70 - similarity) when below the pass mark."""
    if similarity >= config.SIMILARITY_PASS:
        return None
    target = brand if brand != "Unknown" else "any known brand logo"
    return Signal(
        id="image.logo_mismatch",
        category=SignalCategory.LOGO_MISMATCH,
        delta=-(config.SIMILARITY_PASS - similarity),
        evidence=f"Low similarity to {target} ({similarity}/100)",
    )


class ImageExtractor:
    def __init__(self, weights: Optional[dict] = None):
        self.w = weights or config.IMAGE_WEIGHTS

    def extract(self, data: bytes, snapshot: CatalogSnapshot,
                cancel: Optional[threading.Event] = None) -> Extraction:
        img = imaging.decode_image(data)
        probe = imaging.fingerprint("input", img)

        if not snapshot.logos:
            logger.info("No canonical logo assets loaded; image result is low-confidence")
            return Extraction(
                signals=(Signal(
                    id="image.logo_mismatch",
                    category=SignalCategory.LOGO_MISMATCH,
                    delta=0,
                    evidence="No canonical logo assets available for comparison",
                ),),
                evidence=ImageEvidence(width=probe.width, height=probe.height),
                low_confidence=True,
            )

        match = imaging.closest_asset(probe, snapshot.logos)
        signals: List[Signal] = []
        flags: List[str] = []

        mismatch = mismatch_signal(match.similarity, match.detected_brand)
        if mismatch is not None:
            signals.append(mismatch)
            flags.append("Low similarity to canonical logo")

        if match.detected_brand != "Unknown":
            asset = match.asset
            palette = imaging.palette_deviation(probe, asset)
            if palette > config.PALETTE_TOLERANCE:
                flags.append("Color palette deviates from canonical logo")
                signals.append(Signal(
                    id="image.palette",
                    category=SignalCategory.TAMPERING_ARTIFACT,
                    delta=self.w["palette"],
                    evidence=f"Color palette deviates from canonical {asset.brand} logo (distance {palette:g})",
                ))

            aspect = imaging.aspect_deviation(probe, asset)
            if aspect > config.ASPECT_TOLERANCE:
                flags.append("Aspect ratio outside expected bounds")
                signals.append(Signal(
                    id="image.aspect_ratio",
                    category=SignalCategory.TAMPERING_ARTIFACT,
                    delta=self.w["aspect_ratio"],
                    evidence=f"Aspect ratio differs from canonical {asset.brand} logo by {aspect:.0%}",
                ))

            overlay = imaging.overlay_fraction(probe, asset)
            if config.OVERLAY_MIN_AREA <= overlay <= config.OVERLAY_MAX_AREA:
                flags.append("Overlay or watermark artifact detected")
                signals.append(Signal(
                    id="image.overlay",
                    category=SignalCategory.TAMPERING_ARTIFACT,
                    delta=self.w["overlay"],
                    evidence=f"Localized overlay covers {overlay:.0%} of the {asset.brand} logo",
                ))

        return Extraction(
            signals=tuple(signals),
            evidence=ImageEvidence(
                detected_brand=match.detected_brand,
                similarity_score=match.similarity,
                tampering_flags=tuple(flags),
                width=probe.width,
                height=probe.height,
            ),
        )
