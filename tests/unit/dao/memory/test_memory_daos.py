"""Unit tests for the in-memory resolution cache, blacklist oracle and provider list."""

from unittest.mock import patch

import pytest

from unshortlink.core import normalize
from unshortlink.models import ResolvedLink
from unshortlink.dao.base import candidate_hosts
from unshortlink.dao.memory import ResolvedLinkMemoryDAO, BlacklistMemoryDAO, ProviderMemoryDAO


@pytest.fixture
def link() -> ResolvedLink:
    return ResolvedLink(short_url=normalize('bit.ly/x'), long_url=normalize('https://example.com/article'), hops=1)


# -------------------------------
# ResolvedLinkMemoryDAO
# -------------------------------


def test_lookup_miss_returns_none():
    assert ResolvedLinkMemoryDAO().lookup(normalize('bit.ly/x')) is None


def test_store_then_lookup(link):
    dao = ResolvedLinkMemoryDAO()
    assert dao.store(link) is True
    assert dao.lookup(normalize('http://bit.ly/x')) == link
    assert dao.count() == 1


def test_store_keeps_first_entry(link):
    dao = ResolvedLinkMemoryDAO()
    dao.store(link)
    other = ResolvedLink(short_url=link.short_url, long_url=normalize('https://elsewhere.example'))

    assert dao.store(other) is False
    assert dao.lookup(link.short_url).long_url == link.long_url
    assert dao.count() == 1


def test_store_never_persists_blacklisted(link):
    dao = ResolvedLinkMemoryDAO()
    dao.store(link.with_blacklisted(True))
    assert dao.lookup(link.short_url).blacklisted is False


def test_entries_expire_after_ttl(link):
    dao = ResolvedLinkMemoryDAO(link_ttl=60)
    with patch('unshortlink.dao.memory.resolved_link_memory_dao.time.monotonic', return_value=1000.0):
        dao.store(link)
    with patch('unshortlink.dao.memory.resolved_link_memory_dao.time.monotonic', return_value=1059.0):
        assert dao.lookup(link.short_url) is not None
    with patch('unshortlink.dao.memory.resolved_link_memory_dao.time.monotonic', return_value=1060.0):
        assert dao.lookup(link.short_url) is None
        assert dao.store(link) is True


# -------------------------------
# BlacklistMemoryDAO
# -------------------------------


@pytest.mark.parametrize(
    'host, expected',
    [
        ('evil.example', True),
        ('WWW.EVIL.EXAMPLE', True),
        ('evil.example.', True),
        ('notevil.example', False),
        ('example', False),
        ('', False),
    ],
)
def test_is_blacklisted(host, expected):
    oracle = BlacklistMemoryDAO(['Evil.Example', '  ', ''])
    assert oracle.is_blacklisted(host) is expected


def test_update_takes_effect_immediately():
    oracle = BlacklistMemoryDAO()
    assert oracle.is_blacklisted('evil.example') is False
    oracle.update(['evil.example'])
    assert oracle.is_blacklisted('evil.example') is True


def test_candidate_hosts():
    assert candidate_hosts('a.b.C.') == ['a.b.c', 'b.c', 'c']
    assert candidate_hosts('  ') == []


# -------------------------------
# ProviderMemoryDAO
# -------------------------------


def test_provider_hosts_are_normalized_and_sorted():
    dao = ProviderMemoryDAO(['T.co', ' bit.ly ', 'bit.ly', 'goo.gl.', ''])
    assert dao.hosts() == ['bit.ly', 'goo.gl', 't.co']


def test_provider_hosts_cannot_be_mutated_by_callers():
    dao = ProviderMemoryDAO(['bit.ly'])
    dao.hosts().append('evil.example')
    assert dao.hosts() == ['bit.ly']


def test_no_providers():
    assert ProviderMemoryDAO().hosts() == []
