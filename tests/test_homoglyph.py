"""
PhishLens – Homoglyph / Typosquat Tests
───────────────────────────────────────
"""

from phishlens.homoglyph import (
    FULL, REDUCED, canonicalize, detect, is_brand_host, levenshtein, normalize_host, registrable,
)


def check(host, snapshot):
    return detect(host, snapshot.brand_domains, snapshot.confusables, snapshot.spoof_terms)


# ── Helpers ──
def test_canonicalize_multichar_first(snapshot):
    assert canonicalize("rnicrosoft", snapshot.confusables) == "microsoft"
    assert canonicalize("g00gle", snapshot.confusables) == "google"


def test_levenshtein():
    assert levenshtein("kitten", "sitting") == 3
    assert levenshtein("google", "google") == 0
    assert levenshtein("", "abc") == 3


def test_registrable_handles_second_level_suffixes():
    assert registrable("mail.google.com") == "google.com"
    assert registrable("shop.example.co.uk") == "example.co.uk"


def test_registrable_uses_public_suffix_list():
    assert registrable("evil.com.tr") == "evil.com.tr"
    assert registrable("shop.co.za") == "shop.co.za"
    assert registrable("login.gov.uk") == "login.gov.uk"
    assert registrable("a.b.evil.com.au") == "evil.com.au"


def test_registrable_without_suffix_is_host():
    assert registrable("localhost") == "localhost"


def test_normalize_host():
    assert normalize_host("WWW.Google.COM.") == "www.google.com"


def test_brand_subdomains_are_brand_hosts(snapshot):
    assert is_brand_host("accounts.google.com", snapshot.brand_domains)
    assert not is_brand_host("google.com.evil.net", snapshot.brand_domains)


# ── Detection ──
def test_real_brand_domains_are_clean(snapshot):
    for host in ("google.com", "www.google.com", "mail.google.com", "paypal.com"):
        assert check(host, snapshot) is None


def test_unrelated_domains_are_clean(snapshot):
    for host in ("example.com", "github.com", "wikipedia.org"):
        assert check(host, snapshot) is None


def test_digit_substitution_is_full_confidence(snapshot):
    finding = check("g00gle.com", snapshot)
    assert finding is not None
    assert finding.confidence == FULL
    assert finding.brand_domain == "google.com"
    assert finding.canonical == "google.com"


def test_multichar_confusable_is_full_confidence(snapshot):
    finding = check("rnicrosoft.com", snapshot)
    assert finding.confidence == FULL
    assert finding.brand_domain == "microsoft.com"


def test_cyrillic_lookalike_is_full_confidence(snapshot):
    finding = check("аpple.com", snapshot)
    assert finding.confidence == FULL
    assert finding.brand_domain == "apple.com"


def test_spoofed_brand_label_under_other_domain(snapshot):
    finding = check("paypa1.secure-login.net", snapshot)
    assert finding.confidence == FULL
    assert finding.brand_domain == "paypal.com"


def test_one_edit_typosquat_is_reduced(snapshot):
    finding = check("gooogle.com", snapshot)
    assert finding.confidence == REDUCED
    assert finding.distance == 1
    assert finding.brand_domain == "google.com"


def test_confusables_spelling_sensitive_term(snapshot):
    finding = check("verify-acc0unt-login.com", snapshot)
    assert finding is not None
    assert finding.confidence == REDUCED
    assert "account" in finding.reason


def test_plain_sensitive_words_are_not_homoglyphs(snapshot):
    assert check("account-login.com", snapshot) is None
