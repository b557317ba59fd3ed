"""Unit tests for Redis client singleton."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from shared.redis_client import close_redis_client, get_redis_client


@pytest.fixture(autouse=True)
def clear_client_cache():
    get_redis_client.cache_clear()
    yield
    get_redis_client.cache_clear()


class TestRedisClient:
    """Tests for Redis client singleton."""

    def test_get_redis_client_returns_instance(self):
        with patch("shared.redis_client.redis.from_url") as mock_from_url:
            mock_client = MagicMock()
            mock_from_url.return_value = mock_client

            assert get_redis_client() == mock_client
            mock_from_url.assert_called_once()

    def test_get_redis_client_is_singleton(self):
        with patch("shared.redis_client.redis.from_url") as mock_from_url:
            mock_from_url.return_value = MagicMock()

            assert get_redis_client() is get_redis_client()
            assert mock_from_url.call_count == 1

    def test_redis_client_configured_with_pool(self):
        with patch("shared.redis_client.redis.from_url") as mock_from_url:
            get_redis_client()

            kwargs = mock_from_url.call_args.kwargs
            assert mock_from_url.call_args.args[0] == "redis://localhost:6379/15"
            assert kwargs["max_connections"] == 20
            assert kwargs["decode_responses"] is True
            assert kwargs["retry_on_timeout"] is True
            assert kwargs["health_check_interval"] == 30

    def test_creation_failure_propagates(self):
        with patch("shared.redis_client.redis.from_url", side_effect=ValueError("bad url")):
            with pytest.raises(ValueError):
                get_redis_client()


class TestCloseRedisClient:

    async def test_close_releases_cached_client(self):
        with patch("shared.redis_client.redis.from_url") as mock_from_url:
            mock_client = MagicMock()
            mock_client.aclose = AsyncMock()
            mock_from_url.return_value = mock_client
            get_redis_client()

            await close_redis_client()

            mock_client.aclose.assert_awaited_once()
            assert get_redis_client.cache_info().currsize == 0

    async def test_close_without_client_is_noop(self):
        with patch("shared.redis_client.redis.from_url") as mock_from_url:
            await close_redis_client()

            mock_from_url.assert_not_called()
