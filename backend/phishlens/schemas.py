"""Pydantic request / response schemas for the HTTP surface."""

from typing import Optional

from pydantic import BaseModel


# ── Analysis ──
class UrlRequest(BaseModel):
    url: str


class TextRequest(BaseModel):
    text: str


# ── Catalog ──
class CatalogStatus(BaseModel):
    version: str
    brands: int
    logos: int
    stale: bool = False
    error: Optional[str] = None
