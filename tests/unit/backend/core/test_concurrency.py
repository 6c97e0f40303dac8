"""Unit tests for budget_manager.backend.core.concurrency."""

import asyncio
import contextvars
from unittest.mock import MagicMock, patch

import pytest

import budget_manager.backend.core.concurrency as concurrency_module
from budget_manager.backend.core.concurrency import (
    TracedThreadPoolExecutor,
    get_io_pool,
    get_lock,
    get_semaphore,
    shutdown_pools,
)


@pytest.fixture(autouse=True)
def _reset_pools():
    """Reset global pool state before and after each test."""
    concurrency_module._io_pool = None
    concurrency_module._semaphores.clear()
    concurrency_module._locks.clear()
    yield
    if concurrency_module._io_pool is not None:
        concurrency_module._io_pool.shutdown(wait=False)
        concurrency_module._io_pool = None
    concurrency_module._semaphores.clear()
    concurrency_module._locks.clear()


def _mock_concurrency_config(thread_max=4, google_api=10):
    mock_config = MagicMock()
    mock_config.concurrency.thread_pool.max_workers = thread_max
    mock_config.concurrency.semaphores = MagicMock(spec=["google_api", "telegram_api"])
    mock_config.concurrency.semaphores.google_api = google_api
    mock_config.concurrency.semaphores.telegram_api = 20
    return mock_config


class TestTracedThreadPoolExecutor:
    def test_propagates_contextvars(self):
        """Context set on the caller is visible inside the worker thread."""
        request_id: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="none")
        request_id.set("req-42")

        with TracedThreadPoolExecutor(max_workers=1) as pool:
            result = pool.submit(request_id.get).result()

        assert result == "req-42"

    def test_passes_arguments(self):
        with TracedThreadPoolExecutor(max_workers=1) as pool:
            assert pool.submit(pow, 2, 5).result() == 32


class TestGetIoPool:
    def test_created_lazily_from_config(self):
        with patch(
            "budget_manager.backend.core.config.get_app_config",
            return_value=_mock_concurrency_config(thread_max=3),
        ):
            pool = get_io_pool()

        assert isinstance(pool, TracedThreadPoolExecutor)
        assert pool._max_workers == 3

    def test_returns_same_instance(self):
        with patch(
            "budget_manager.backend.core.config.get_app_config",
            return_value=_mock_concurrency_config(),
        ):
            assert get_io_pool() is get_io_pool()

    def test_real_config_is_used(self):
        assert get_io_pool()._max_workers == 16


class TestGetSemaphore:
    def test_capacity_from_config(self):
        with patch(
            "budget_manager.backend.core.config.get_app_config",
            return_value=_mock_concurrency_config(google_api=7),
        ):
            semaphore = get_semaphore("google_api")

        assert isinstance(semaphore, asyncio.Semaphore)
        assert semaphore._value == 7

    def test_unconfigured_name_defaults_to_20(self):
        with patch(
            "budget_manager.backend.core.config.get_app_config",
            return_value=_mock_concurrency_config(),
        ):
            assert get_semaphore("sheets_export")._value == 20

    def test_same_name_returns_same_semaphore(self):
        assert get_semaphore("google_api") is get_semaphore("google_api")

    @pytest.mark.asyncio
    async def test_limits_concurrency(self):
        with patch(
            "budget_manager.backend.core.config.get_app_config",
            return_value=_mock_concurrency_config(google_api=2),
        ):
            semaphore = get_semaphore("google_api")

        active = 0
        peak = 0

        async def work():
            nonlocal active, peak
            async with semaphore:
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.01)
                active -= 1

        await asyncio.gather(*(work() for _ in range(6)))

        assert peak == 2


class TestGetLock:
    def test_same_name_same_lock(self):
        assert get_lock("sheet:s1:budgets") is get_lock("sheet:s1:budgets")
        assert get_lock("sheet:s1:budgets") is not get_lock("sheet:s1:goals")


class TestShutdownPools:
    @pytest.mark.asyncio
    async def test_shuts_down_pool_and_clears_semaphores(self):
        get_io_pool()
        get_semaphore("google_api")
        get_lock("sheet:s1:budgets")

        await shutdown_pools()

        assert concurrency_module._io_pool is None
        assert concurrency_module._semaphores == {}
        assert concurrency_module._locks == {}

    @pytest.mark.asyncio
    async def test_noop_without_pool(self):
        await shutdown_pools()
        assert concurrency_module._io_pool is None
