"""
PhishLens – Aggregator & Explanation Tests
──────────────────────────────────────────
Run: cd backend && python -m pytest ../tests/ -v
"""

import random

from phishlens.explain import ACTIONS, NO_INDICATORS, SHORT, explain, long_explanation
from phishlens.models import Channel, Label, Signal, SignalCategory
from phishlens.scoring import aggregate, compute_score, label_for


def sig(delta, category=SignalCategory.URGENCY, evidence="x"):
    return Signal(id=f"t.{delta}", category=category, delta=delta, evidence=evidence)


# ── Score ──
def test_no_signals_scores_full():
    assert compute_score([]) == 100


def test_deltas_sum_and_clamp():
    assert compute_score([sig(-25), sig(-20)]) == 55
    assert compute_score([sig(-60), sig(-60)]) == 0
    assert compute_score([sig(20)]) == 100


def test_order_does_not_change_score():
    signals = [sig(-25), sig(-20), sig(-15), sig(-30)]
    shuffled = signals[:]
    random.Random(7).shuffle(shuffled)
    assert aggregate(signals) == aggregate(shuffled)


# ── Label thresholds ──
def test_label_boundaries():
    assert label_for(100) == Label.SAFE
    assert label_for(51) == Label.SAFE
    assert label_for(50) == Label.WARNING
    assert label_for(35) == Label.WARNING
    assert label_for(34) == Label.PHISHING
    assert label_for(0) == Label.PHISHING


def test_aggregate_returns_score_and_label():
    assert aggregate([sig(-65)]) == (35, Label.WARNING)
    assert aggregate([sig(-70)]) == (30, Label.PHISHING)


# ── Explanations ──
def test_long_explanation_lists_signal_evidence_in_order():
    lines = long_explanation([sig(-10, evidence="first"), sig(-5, evidence="second")])
    assert lines == ("first", "second")


def test_long_explanation_without_signals():
    assert long_explanation([]) == (NO_INDICATORS,)


def test_every_label_and_channel_has_prose():
    for channel in Channel:
        for label in Label:
            assert SHORT[(channel, label)]
            assert ACTIONS[(label, channel)]


def test_actions_depend_only_on_label_and_channel():
    _, _, a = explain(Channel.URL, Label.PHISHING, [sig(-70)])
    _, _, b = explain(Channel.URL, Label.PHISHING, [sig(-35), sig(-35, SignalCategory.THREAT)])
    assert a == b
    assert "Do not click" in a
