"""Immutable domain types: signals, requests, redirect chains, results."""

from enum import Enum
from typing import List, Literal, Optional, Tuple, Union
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field


class Channel(str, Enum):
    URL = "url"
    TEXT = "text"
    IMAGE = "image"


class Label(str, Enum):
    SAFE = "Safe"
    WARNING = "Warning"
    PHISHING = "Phishing"


class SignalCategory(str, Enum):
    URGENCY = "Urgency"
    CREDENTIAL_HARVEST = "CredentialHarvest"
    THREAT = "Threat"
    REWARD = "Reward"
    HOMOGLYPH_DOMAIN = "HomoglyphDomain"
    SUSPICIOUS_REDIRECT = "SuspiciousRedirect"
    TLS_ANOMALY = "TLSAnomaly"
    DOMAIN_AGE = "DomainAge"
    LOGO_MISMATCH = "LogoMismatch"
    TAMPERING_ARTIFACT = "TamperingArtifact"


class Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Signal(Frozen):
    """One piece of evidence. Negative deltas lower the score."""

    id: str
    category: SignalCategory
    delta: int
    evidence: str
    matched_text: Optional[str] = None


# ── Requests ──
class AnalysisRequest(Frozen):
    channel: Channel
    payload: Union[bytes, str]

    @classmethod
    def url(cls, url: str) -> "AnalysisRequest":
        return cls(channel=Channel.URL, payload=url)

    @classmethod
    def text(cls, text: str) -> "AnalysisRequest":
        return cls(channel=Channel.TEXT, payload=text)

    @classmethod
    def image(cls, data: bytes) -> "AnalysisRequest":
        return cls(channel=Channel.IMAGE, payload=data)


# ── Redirect chain ──
class RedirectHop(Frozen):
    sequence: int
    url: str
    status_code: int
    is_terminal: bool
    location: Optional[str] = None


class GraphNode(Frozen):
    id: str
    label: str
    title: str


class GraphEdge(Frozen):
    from_: str = Field(alias="from")
    to: str
    label: str


class HopGraph(Frozen):
    nodes: Tuple[GraphNode, ...] = ()
    edges: Tuple[GraphEdge, ...] = ()


class RedirectChain(Frozen):
    start_url: str
    hops: Tuple[RedirectHop, ...] = ()
    incomplete: bool = False
    cyclic: bool = False
    error: Optional[str] = None

    @property
    def redirect_count(self) -> int:
        return sum(1 for h in self.hops if not h.is_terminal)

    @property
    def final_url(self) -> str:
        if not self.hops:
            return self.start_url
        last = self.hops[-1]
        if last.is_terminal or not last.location:
            return last.url
        return last.location

    def graph(self) -> HopGraph:
        """Distinct hosts in order of first appearance, one edge per transition."""
        ids: dict = {}
        edges: List[GraphEdge] = []

        def node_for(url: str) -> str:
            host = (urlparse(url).hostname or url).lower()
            if host not in ids:
                ids[host] = str(len(ids) + 1)
            return ids[host]

        node_for(self.start_url)
        for hop in self.hops:
            src = node_for(hop.url)
            if hop.location:
                dst = node_for(hop.location)
                edges.append(GraphEdge(from_=src, to=dst, label=f"{hop.status_code} redirect"))

        final_id = None
        if self.hops and self.hops[-1].is_terminal:
            final_id = node_for(self.hops[-1].url)

        nodes = []
        for host, node_id in ids.items():
            if node_id == "1":
                title = "Original URL"
            elif node_id == final_id:
                title = "Final destination"
            else:
                title = "Redirect"
            nodes.append(GraphNode(id=node_id, label=host, title=title))
        return HopGraph(nodes=tuple(nodes), edges=tuple(edges))


# ── Evidence bundles ──
class HomoglyphFinding(Frozen):
    candidate: str
    canonical: str
    brand_domain: str
    distance: int
    confidence: float
    reason: str


class DomainFacts(Frozen):
    tls_issuer: Optional[str] = None
    tls_verified: Optional[bool] = None
    domain_age_days: Optional[int] = None


class UrlEvidence(Frozen):
    kind: Literal["url"] = "url"
    url: str
    host: str
    final_url: str
    redirect_chain: RedirectChain
    graph: HopGraph
    homoglyph: Optional[HomoglyphFinding] = None
    domain_facts: DomainFacts = DomainFacts()


class PhraseSpan(Frozen):
    start: int
    end: int
    text: str
    category: SignalCategory


class TextEvidence(Frozen):
    kind: Literal["text"] = "text"
    highlighted_phrases: Tuple[PhraseSpan, ...] = ()
    embedded_urls: Tuple[str, ...] = ()


class ImageEvidence(Frozen):
    kind: Literal["image"] = "image"
    detected_brand: str = "Unknown"
    similarity_score: int = 0
    tampering_flags: Tuple[str, ...] = ()
    width: int = 0
    height: int = 0


Evidence = Union[UrlEvidence, TextEvidence, ImageEvidence]


class Extraction(Frozen):
    """What one extractor hands to the aggregator."""

    signals: Tuple[Signal, ...] = ()
    evidence: Evidence = Field(..., discriminator="kind")
    low_confidence: bool = False
    degraded: Tuple[str, ...] = ()


class AnalysisResult(Frozen):
    channel: Channel
    score: int = Field(..., ge=0, le=100)
    label: Label
    short_explanation: str
    long_explanation: Tuple[str, ...]
    actions: Tuple[str, ...]
    evidence: Evidence = Field(..., discriminator="kind")
    signals: Tuple[Signal, ...] = ()
    low_confidence: bool = False
    degraded: Tuple[str, ...] = ()
    catalog_version: str = ""
