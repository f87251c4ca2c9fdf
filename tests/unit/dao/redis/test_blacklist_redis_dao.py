"""Unit tests for the BlacklistRedisDAO"""

import logging

import pytest
import redis

from unshortlink.dao.redis import BlacklistRedisDAO


@pytest.fixture
def dao(redis_client, app_prefix):
    return BlacklistRedisDAO(redis_client=redis_client, prefix=app_prefix)


def test_is_blacklisted_checks_host_and_parent_domains(dao, redis_client):
    redis_client.smismember.return_value = [False, True, False]

    assert dao.is_blacklisted('WWW.Evil.example') is True
    redis_client.smismember.assert_called_once_with(
        'testapp:test:blacklist:hosts',
        ['www.evil.example', 'evil.example', 'example'],
    )


def test_is_not_blacklisted(dao, redis_client):
    redis_client.smismember.return_value = [False, False]
    assert dao.is_blacklisted('example.com') is False


def test_empty_host_is_not_blacklisted(dao, redis_client):
    assert dao.is_blacklisted('') is False
    redis_client.smismember.assert_not_called()


def test_redis_failure_is_not_blacklisted(dao, redis_client, caplog):
    """Ensure oracle failures are logged and answered with False."""
    redis_client.smismember.side_effect = redis.exceptions.ConnectionError('down')

    with caplog.at_level(logging.WARNING, logger='unshortlink.dao.redis.blacklist_redis_dao'):
        assert dao.is_blacklisted('evil.example') is False

    assert 'Blacklist lookup failed' in caplog.text
