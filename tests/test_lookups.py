"""
PhishLens – Domain Facts Lookup Tests
─────────────────────────────────────
Providers are patched; nothing leaves the machine.
"""

from datetime import datetime, timedelta, timezone

import pytest

from phishlens import lookups
from phishlens.errors import NetworkFailure
from phishlens.lookups import StaticLookup, no_lookup
from phishlens.models import DomainFacts


@pytest.fixture(autouse=True)
def fresh_cache(monkeypatch):
    monkeypatch.setattr(lookups, "_cache", {})


class FakeRdapResponse:
    status_code = 200

    def __init__(self, registered):
        self.registered = registered

    def json(self):
        return {"events": [
            {"eventAction": "last changed", "eventDate": "2024-01-01T00:00:00Z"},
            {"eventAction": "registration", "eventDate": self.registered},
        ]}


def test_no_lookup_returns_empty_facts():
    assert no_lookup("example.com") == DomainFacts()


def test_static_lookup_is_case_insensitive():
    facts = DomainFacts(domain_age_days=5)
    lookup = StaticLookup({"shady.net": facts})
    assert lookup("SHADY.net") == facts
    assert lookup("other.net") == DomainFacts()


def test_rdap_registration_age(monkeypatch):
    registered = (datetime.now(timezone.utc) - timedelta(days=10)).strftime("%Y-%m-%dT%H:%M:%SZ")
    calls = []

    def fake_get(url, headers=None, timeout=None):
        calls.append(url)
        return FakeRdapResponse(registered)

    monkeypatch.setattr(lookups.http_req, "get", fake_get)
    r = lookups.query_rdap("shady.net")
    assert r["available"]
    assert r["age_days"] in (9, 10)

    lookups.query_rdap("shady.net")
    assert len(calls) == 1


def test_network_lookup_combines_providers(monkeypatch):
    monkeypatch.setattr(lookups, "query_rdap", lambda d: {"available": True, "age_days": 400})
    monkeypatch.setattr(lookups, "query_tls_issuer",
                        lambda h: {"available": True, "issuer": "DigiCert Inc", "verified": True})
    facts = lookups.network_lookup("www.example.com")
    assert facts == DomainFacts(tls_issuer="DigiCert Inc", tls_verified=True, domain_age_days=400)


def test_network_lookup_without_any_provider(monkeypatch):
    monkeypatch.setattr(lookups, "query_rdap", lambda d: {"available": False})
    monkeypatch.setattr(lookups, "query_tls_issuer", lambda h: {"available": False, "error": "timed out"})
    with pytest.raises(NetworkFailure):
        lookups.network_lookup("example.com")


def test_cache_evicts_oldest_entry(monkeypatch):
    monkeypatch.setattr(lookups.config, "LOOKUP_CACHE_MAX", 2)
    lookups._cset("a", {"n": 1})
    lookups._cset("b", {"n": 2})
    lookups._cset("c", {"n": 3})
    assert lookups._cget("a") is None
    assert lookups._cget("b") == {"n": 2}
    assert lookups._cget("c") == {"n": 3}


def test_expired_entry_is_dropped(monkeypatch):
    monkeypatch.setattr(lookups.config, "LOOKUP_CACHE_TTL", 0)
    lookups._cset("a", {"n": 1})
    assert lookups._cget("a") is None
    assert lookups._cget("a") is None
    assert "a" not in lookups._cache
