import pytest
from cacheprobe.logic.ttl import parse_ttl

@pytest.mark.parametrize("value", [
    "s-maxage=30, max-age=10",
    "max-age=10, s-maxage=30",
    "public, max-age=10, must-revalidate, s-maxage=30",
])
def test_s_maxage_wins_in_any_order(value):
    assert parse_ttl(value) == 30

def test_max_age_alone():
    assert parse_ttl("max-age=45") == 45
    assert parse_ttl("public, max-age=45") == 45

def test_no_directive_is_zero():
    assert parse_ttl("no-cache, no-store") == 0
    assert parse_ttl("") == 0

def test_non_numeric_directive_is_zero():
    assert parse_ttl("max-age=abc") == 0

def test_missing_header_is_none():
    """A missing header is distinct from a TTL of 0"""
    assert parse_ttl(None) is None

def test_directive_case_is_ignored():
    assert parse_ttl("Max-Age=15") == 15
    assert parse_ttl("S-MAXAGE=20, max-age=5") == 20
