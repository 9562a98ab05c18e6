"""
Risk Aggregator
───────────────
score = clamp(100 + sum(delta), 0, 100); deltas are negative for risk.
Label thresholds:  >50 Safe  |  35..50 Warning  |  <35 Phishing
"""

from typing import Iterable, Tuple

from . import config
from .models import Label, Signal

BASE_SCORE = 100


def compute_score(signals: Iterable[Signal]) -> int:
    total = BASE_SCORE + sum(s.delta for s in signals)
    return max(0, min(BASE_SCORE, total))


def label_for(score: int) -> Label:
    if score > config.SAFE_ABOVE:
        return Label.SAFE
    if score >= config.WARNING_FROM:
        return Label.WARNING
    return Label.PHISHING


def aggregate(signals: Iterable[Signal]) -> Tuple[int, Label]:
    score = compute_score(signals)
    return score, label_for(score)
