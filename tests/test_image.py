"""
PhishLens – Image Channel Tests
───────────────────────────────
Logos are drawn with Pillow at test time; the catalog gets them through
dataclasses.replace so no files are needed.
"""

from dataclasses import replace

import pytest
from PIL import Image, ImageDraw

from phishlens.catalog import CatalogStore, load_catalog
from phishlens.engine import RiskEngine
from phishlens.errors import ValidationError
from phishlens.image_extractor import mismatch_signal
from phishlens.imaging import (
    aspect_deviation, closest_asset, decode_image, fingerprint, overlay_fraction, palette_deviation,
)
from phishlens.lookups import no_lookup
from phishlens.models import Label, SignalCategory

from helpers import make_logo, png_bytes


@pytest.fixture
def logo():
    return make_logo()


@pytest.fixture
def logo_engine(logo):
    snapshot = replace(load_catalog(), logos=(fingerprint("Acme", logo),))
    e = RiskEngine(catalogs=CatalogStore(snapshot), lookup=no_lookup, resolve_redirects=False)
    yield e
    e.close()


# ── Similarity ──
def test_identical_logo_is_safe(logo_engine, logo):
    result = logo_engine.analyze_image(png_bytes(logo))
    assert result.evidence.kind == "image"
    assert result.evidence.similarity_score == 100
    assert result.evidence.detected_brand == "Acme"
    assert result.evidence.tampering_flags == ()
    assert result.signals == ()
    assert result.label == Label.SAFE


def test_jpeg_and_png_inputs_both_decode(logo_engine, logo):
    result = logo_engine.analyze_image(png_bytes(logo, "JPEG"))
    assert result.evidence.width == 200
    assert result.evidence.height == 100


def test_mismatch_delta_tracks_similarity(logo_engine):
    other = Image.new("RGB", (200, 100), "white")
    d = ImageDraw.Draw(other)
    for x in range(0, 200, 20):
        d.rectangle([x, 0, x + 9, 99], fill=(0, 0, 0))
    result = logo_engine.analyze_image(png_bytes(other))
    sim = result.evidence.similarity_score
    mismatch = [s for s in result.signals if s.category == SignalCategory.LOGO_MISMATCH]
    if sim < 70:
        assert mismatch[0].delta == -(70 - sim)
    else:
        assert mismatch == []


def test_mismatch_signal_rule():
    assert mismatch_signal(40, "Unknown").delta == -30
    assert mismatch_signal(69, "Acme").delta == -1
    assert mismatch_signal(70, "Acme") is None
    assert mismatch_signal(100, "Acme") is None


def test_same_bytes_same_result(logo_engine, logo):
    data = png_bytes(logo)
    assert logo_engine.analyze_image(data) == logo_engine.analyze_image(data)


def test_transparent_logo_matches_flat_logo(logo):
    rgba = Image.new("RGBA", logo.size, (0, 0, 0, 0))
    mask = logo.convert("L").point(lambda p: 255 if p < 250 else 0)
    rgba.paste(logo, (0, 0), mask)
    flat = fingerprint("flat", logo)
    clear = fingerprint("clear", rgba)
    assert closest_asset(clear, [flat]).similarity == 100


# ── No catalog ──
def test_without_logo_assets_result_is_low_confidence(engine, logo):
    result = engine.analyze_image(png_bytes(logo))
    assert result.low_confidence
    assert [s.delta for s in result.signals] == [0]
    assert result.signals[0].category == SignalCategory.LOGO_MISMATCH
    assert result.score == 100
    assert result.evidence.detected_brand == "Unknown"


# ── Tamper heuristics ──
def test_identical_assets_show_no_tampering(logo):
    a = fingerprint("a", logo)
    b = fingerprint("b", logo)
    assert palette_deviation(a, b) == 0
    assert aspect_deviation(a, b) == 0
    assert overlay_fraction(a, b) == 0


def test_aspect_deviation(logo):
    asset = fingerprint("Acme", logo)
    stretched = fingerprint("probe", logo.resize((300, 100)))
    assert aspect_deviation(stretched, asset) == 0.5


def test_palette_deviation_grows_with_recolor(logo):
    asset = fingerprint("Acme", logo)
    recolored = fingerprint("probe", make_logo(box=(255, 200, 0)))
    assert palette_deviation(recolored, asset) > 20


def test_overlay_fraction_on_pasted_banner(logo):
    asset = fingerprint("Acme", logo)
    banner = logo.copy()
    ImageDraw.Draw(banner).rectangle([0, 0, 199, 14], fill=(0, 0, 0))
    fraction = overlay_fraction(fingerprint("probe", banner), asset)
    assert 0.05 < fraction < 0.30


# ── Decoding ──
@pytest.mark.parametrize("data", [b"not an image", b"\x89PNG\r\n\x1a\n broken"])
def test_undecodable_bytes_rejected(data):
    with pytest.raises(ValidationError):
        decode_image(data)


def test_empty_image_rejected(engine):
    with pytest.raises(ValidationError):
        engine.analyze_image(b"")


def test_unsupported_format_rejected(logo):
    with pytest.raises(ValidationError):
        decode_image(png_bytes(logo, "TIFF"))
