"""
Phishing Alert Subscriber
─────────────────────────
Posts a compact summary to ALERT_WEBHOOK_URL whenever a result is labelled
Phishing. Registered with RiskEngine.subscribe().
"""

import logging

import requests

from . import config
from .models import AnalysisResult, Label

logger = logging.getLogger("phishlens.alerts")


def alert_payload(result: AnalysisResult) -> dict:
    return {
        "channel": result.channel.value,
        "score": result.score,
        "label": result.label.value,
        "summary": result.short_explanation,
        "reasons": list(result.long_explanation[:5]),
        "low_confidence": result.low_confidence,
    }


def send_phishing_alert(result: AnalysisResult, webhook_url: str = "") -> bool:
    """Send a webhook alert for Phishing results. Returns True if sent."""
    webhook_url = webhook_url or config.ALERT_WEBHOOK_URL
    if not webhook_url or result.label != Label.PHISHING:
        return False

    try:
        resp = requests.post(webhook_url, json=alert_payload(result), timeout=5)
        if resp.ok:
            logger.info("Alert sent for %s result (score %d)", result.channel.value, result.score)
            return True
        logger.warning("Alert webhook returned %s", resp.status_code)
    except requests.RequestException as exc:
        logger.warning("Alert send failed: %s", exc)
    return False
