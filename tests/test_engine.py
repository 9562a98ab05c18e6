"""
PhishLens – Engine Tests
────────────────────────
Determinism, dispatch, subscribers and alerting.
"""

import json

import pytest

from phishlens import alerts
from phishlens.catalog import CatalogStore
from phishlens.engine import RiskEngine
from phishlens.errors import CatalogUnavailable
from phishlens.lookups import no_lookup
from phishlens.models import AnalysisRequest, Channel, Extraction, Label, Signal, SignalCategory, TextEvidence

PHISHING_TEXT = (
    "Urgent: Your account will be suspended in 2 hours. "
    "Click here to verify: http://verify-acc0unt-login.com"
)


class FixedExtractor:
    def __init__(self, delta):
        self.delta = delta

    def extract(self, payload, snapshot, cancel=None):
        return Extraction(
            signals=(Signal(id="fixed", category=SignalCategory.THREAT, delta=self.delta, evidence="fixed"),),
            evidence=TextEvidence(),
        )


# ── Determinism ──
def test_same_input_same_result(engine):
    a = engine.analyze_url("https://g00gle.com/login")
    b = engine.analyze_url("https://g00gle.com/login")
    assert a.model_dump_json() == b.model_dump_json()

    c = engine.analyze_text(PHISHING_TEXT)
    d = engine.analyze_text(PHISHING_TEXT)
    assert c.model_dump_json() == d.model_dump_json()


def test_result_carries_catalog_version(engine):
    result = engine.analyze_text("hello there")
    assert result.catalog_version == engine.catalogs.snapshot().version


def test_dispatch_by_channel(engine):
    result = engine.analyze(AnalysisRequest.text("act now"))
    assert result.channel == Channel.TEXT


def test_custom_extractor_replaces_channel():
    engine = RiskEngine(
        catalogs=CatalogStore.open(None), extractors={Channel.TEXT: FixedExtractor(-70)},
        lookup=no_lookup, resolve_redirects=False,
    )
    try:
        result = engine.analyze_text("anything")
        assert result.score == 30
        assert result.label == Label.PHISHING
        assert result.long_explanation == ("fixed",)
    finally:
        engine.close()


def test_stale_catalog_marks_low_confidence(tmp_path):
    (tmp_path / "brands.json").write_text(json.dumps([{"name": "Acme", "domains": ["acme.com"]}]))
    engine = RiskEngine(catalogs=CatalogStore.open(tmp_path), lookup=no_lookup, resolve_redirects=False)
    try:
        (tmp_path / "brands.json").write_text("[")
        with pytest.raises(CatalogUnavailable):
            engine.catalogs.reload()
        assert engine.analyze_text("hello there").low_confidence
    finally:
        engine.close()


# ── Subscribers ──
def test_subscribers_receive_results(engine):
    seen = []
    engine.subscribe(seen.append)
    result = engine.analyze_text(PHISHING_TEXT)
    assert seen == [result]


def test_failing_subscriber_does_not_break_analysis(engine):
    def broken(result):
        raise RuntimeError("boom")

    engine.subscribe(broken)
    assert engine.analyze_text("hello there").label == Label.SAFE


# ── Alerts ──
class FakePost:
    def __init__(self):
        self.calls = []

    def __call__(self, url, json=None, timeout=None):
        self.calls.append((url, json))

        class Resp:
            ok = True
            status_code = 200
        return Resp()


def test_alert_sent_only_for_phishing(engine, monkeypatch):
    post = FakePost()
    monkeypatch.setattr(alerts.requests, "post", post)

    assert not alerts.send_phishing_alert(engine.analyze_text("hello there"), "https://hooks.example.org/x")
    assert post.calls == []

    result = engine.analyze_text(PHISHING_TEXT)
    assert alerts.send_phishing_alert(result, "https://hooks.example.org/x")
    url, payload = post.calls[0]
    assert url == "https://hooks.example.org/x"
    assert payload["label"] == "Phishing"
    assert payload["channel"] == "text"


def test_alert_without_webhook_is_noop(engine, monkeypatch):
    monkeypatch.setattr(alerts.config, "ALERT_WEBHOOK_URL", "")
    assert not alerts.send_phishing_alert(engine.analyze_text(PHISHING_TEXT))
