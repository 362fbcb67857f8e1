"""Tests for ValkeyClient - thin wrapper over redis-py."""

from unittest.mock import MagicMock, patch

import pytest
import redis

from clients.valkey_client import ValkeyClient


@pytest.fixture
def redis_mock():
    """Patch redis.from_url so no server is needed."""
    with patch("clients.valkey_client.redis.from_url") as from_url:
        client = MagicMock()
        from_url.return_value = client
        yield client


@pytest.fixture
def valkey(redis_mock):
    return ValkeyClient("redis://localhost:6379/0")


class TestValkeyClientInit:
    """Connection initialization - fail fast."""

    def test_connects_with_decoded_responses(self, redis_mock):
        with patch("clients.valkey_client.redis.from_url", return_value=redis_mock) as from_url:
            ValkeyClient("redis://cache:6379/1")
        from_url.assert_called_once_with("redis://cache:6379/1", decode_responses=True)
        redis_mock.ping.assert_called()

    def test_unreachable_server_raises(self, redis_mock):
        redis_mock.ping.side_effect = redis.ConnectionError("refused")
        with pytest.raises(redis.ConnectionError):
            ValkeyClient("redis://nowhere:6379/0")


class TestBasicOperations:
    """Get/set/delete operations."""

    def test_set_without_expiry(self, valkey, redis_mock):
        valkey.set("k", "v")
        redis_mock.set.assert_called_once_with("k", "v")

    def test_set_with_expiry_uses_setex(self, valkey, redis_mock):
        valkey.set("k", "v", expire_seconds=30)
        redis_mock.setex.assert_called_once_with("k", 30, "v")

    def test_delete_reports_existence(self, valkey, redis_mock):
        redis_mock.delete.return_value = 1
        assert valkey.delete("k") is True
        redis_mock.delete.return_value = 0
        assert valkey.delete("k") is False

    def test_expire_returns_bool(self, valkey, redis_mock):
        redis_mock.expire.return_value = 1
        assert valkey.expire("k", 60) is True
        redis_mock.expire.assert_called_once_with("k", 60)


class TestJson:
    """JSON helpers used by the document store."""

    def test_set_json_serializes(self, valkey, redis_mock):
        valkey.set_json("doc", {"users": {}})
        redis_mock.set.assert_called_once_with("doc", '{"users": {}}')

    def test_get_json_missing_returns_none(self, valkey, redis_mock):
        redis_mock.get.return_value = None
        assert valkey.get_json("doc") is None

    def test_get_json_parses(self, valkey, redis_mock):
        redis_mock.get.return_value = '{"messages": []}'
        assert valkey.get_json("doc") == {"messages": []}

    def test_get_json_invalid_raises_value_error(self, valkey, redis_mock):
        redis_mock.get.return_value = "{not json"
        with pytest.raises(ValueError, match="Invalid JSON"):
            valkey.get_json("doc")
