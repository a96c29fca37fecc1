import pytest
import json
from unittest.mock import patch, AsyncMock
from salesboard.services.directory_service import (
    BRANCHES_CACHE_KEY,
    CASHIERS_CACHE_KEY,
    DirectoryService,
)
from salesboard.utils.cache import (
    get_cached_data,
    set_cached_data,
    invalidate_cache,
    get_cache_key,
)


@pytest.mark.asyncio
async def test_cache_operations():
    """Тест базовых операций с кэшем"""

    redis_mock = AsyncMock()
    redis_mock.get.return_value = None

    test_key = "directory:branches"
    test_data = {"1": "Центральный", "2": "Северный"}

    with patch("salesboard.utils.cache.redis_client", redis_mock):
        assert await get_cached_data(test_key) is None
        redis_mock.get.assert_called_once_with(test_key)

    redis_mock.reset_mock()
    with patch("salesboard.utils.cache.redis_client", redis_mock):
        assert await set_cached_data(test_key, test_data, ttl=600) is True
        redis_mock.set.assert_called_once_with(test_key, json.dumps(test_data), ex=600)

    redis_mock.reset_mock()
    redis_mock.get.return_value = json.dumps(test_data)
    with patch("salesboard.utils.cache.redis_client", redis_mock):
        assert await get_cached_data(test_key) == test_data

    redis_mock.reset_mock()
    with patch("salesboard.utils.cache.redis_client", redis_mock):
        await invalidate_cache(test_key)
        redis_mock.delete.assert_called_once_with(test_key)


@pytest.mark.asyncio
async def test_cache_pattern_invalidation():
    redis_mock = AsyncMock()
    redis_mock.keys.return_value = ["directory:branches", "directory:cashiers"]
    redis_mock.delete.return_value = 2

    with patch("salesboard.utils.cache.redis_client", redis_mock):
        deleted = await invalidate_cache(pattern="directory:*")

    redis_mock.keys.assert_called_once_with("directory:*")
    redis_mock.delete.assert_called_once_with("directory:branches", "directory:cashiers")
    assert deleted == 2


@pytest.mark.asyncio
async def test_cache_unavailable_is_a_miss():
    """Недоступный Redis не роняет расчеты"""
    redis_mock = AsyncMock()
    redis_mock.get.side_effect = ConnectionError("redis down")
    redis_mock.set.side_effect = ConnectionError("redis down")

    with patch("salesboard.utils.cache.redis_client", redis_mock):
        assert await get_cached_data("directory:branches") is None
        assert await set_cached_data("directory:branches", {}) is False


def test_cache_key_generation():
    assert get_cache_key("directory", "branches") == "directory:branches"
    assert get_cache_key("snapshot", 3, "2025-02-05") == "snapshot:3:2025-02-05"

    key = get_cache_key("complex", {"id": 1, "name": "test"}, ["a", "b"])
    assert key == "complex:id:1-name:test:a-b"

    with pytest.raises(ValueError):
        get_cache_key()


@pytest.mark.asyncio
async def test_branch_names_read_from_cache(session, redis_mock):
    redis_mock.get.return_value = json.dumps({"5": "Из кэша"})

    names = await DirectoryService(session).branch_names()

    assert names == {5: "Из кэша"}
    redis_mock.get.assert_called_once_with(BRANCHES_CACHE_KEY)


@pytest.mark.asyncio
async def test_branch_names_cache_miss_fills_cache(session, branch, redis_mock):
    names = await DirectoryService(session).branch_names()

    assert names == {branch.id: "Центральный"}
    redis_mock.set.assert_called_once()
    assert redis_mock.set.call_args[0][0] == BRANCHES_CACHE_KEY


@pytest.mark.asyncio
async def test_cashier_names_and_unknown_branch_label(session, cashiers):
    service = DirectoryService(session)

    names = await service.cashier_names()

    assert names == {cashiers[0].id: cashiers[0].full_name, cashiers[1].id: cashiers[1].full_name}
    assert await service.branch_name(9999) == "Филиал ID:9999"


@pytest.mark.asyncio
async def test_invalidate_names_drops_directory_keys(session, redis_mock):
    redis_mock.keys.return_value = [BRANCHES_CACHE_KEY, CASHIERS_CACHE_KEY]
    redis_mock.delete.return_value = 2

    deleted = await DirectoryService(session).invalidate_names()

    assert deleted == 2
    redis_mock.keys.assert_called_once_with("directory:*")
    redis_mock.delete.assert_called_once_with(BRANCHES_CACHE_KEY, CASHIERS_CACHE_KEY)
