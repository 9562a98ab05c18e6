"""
Explanation Generator
─────────────────────
Facts come from the signals; prose comes from the fixed tables below.
"""

from typing import Sequence, Tuple

from .models import Channel, Label, Signal

NO_INDICATORS = "No phishing indicators detected"

SHORT = {
    (Channel.URL, Label.SAFE): "URL appears legitimate with no obvious phishing indicators",
    (Channel.URL, Label.WARNING): "Some suspicious indicators found - exercise caution",
    (Channel.URL, Label.PHISHING): "Multiple phishing indicators detected - likely malicious URL",
    (Channel.TEXT, Label.SAFE): "Text appears to be legitimate communication",
    (Channel.TEXT, Label.WARNING): "Some suspicious patterns detected - exercise caution",
    (Channel.TEXT, Label.PHISHING): "Multiple phishing indicators detected - likely malicious",
    (Channel.IMAGE, Label.SAFE): "Image appears legitimate with no obvious tampering",
    (Channel.IMAGE, Label.WARNING): "Some inconsistencies detected - verify authenticity",
    (Channel.IMAGE, Label.PHISHING): "Logo tampering detected - likely impersonation attempt",
}

ACTIONS = {
    (Label.SAFE, Channel.URL): ("Proceed with caution", "Verify sender if from email"),
    (Label.WARNING, Channel.URL): ("Verify legitimacy", "Contact sender directly", "Avoid entering credentials"),
    (Label.PHISHING, Channel.URL): ("Do not click", "Report as phishing", "Block domain", "Warn others"),
    (Label.SAFE, Channel.TEXT): ("Proceed normally", "Verify sender if suspicious"),
    (Label.WARNING, Channel.TEXT): ("Verify with sender directly", "Do not click suspicious links",
                                    "Check sender reputation"),
    (Label.PHISHING, Channel.TEXT): ("Do not respond", "Do not click any links", "Report as phishing",
                                     "Delete message"),
    (Label.SAFE, Channel.IMAGE): ("Image appears safe to use", "Verify source if suspicious"),
    (Label.WARNING, Channel.IMAGE): ("Verify image source", "Compare with official brand assets", "Use caution"),
    (Label.PHISHING, Channel.IMAGE): ("Do not trust", "Report as fraudulent", "Block source", "Warn others"),
}


def short_explanation(channel: Channel, label: Label) -> str:
    return SHORT[(channel, label)]


def long_explanation(signals: Sequence[Signal]) -> Tuple[str, ...]:
    lines = tuple(s.evidence for s in signals if s.evidence)
    return lines or (NO_INDICATORS,)


def actions_for(label: Label, channel: Channel) -> Tuple[str, ...]:
    return ACTIONS[(label, channel)]


def explain(channel: Channel, label: Label, signals: Sequence[Signal]):
    """(short, long, actions) for one result."""
    return short_explanation(channel, label), long_explanation(signals), actions_for(label, channel)
