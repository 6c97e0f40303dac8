"""
Concurrency Infrastructure.

Thread pool, semaphore and lock management. gspread and google-auth are
blocking libraries, so every spreadsheet call runs on the shared I/O pool under
the "google_api" semaphore. Writes that address a row by its index hold the
worksheet's lock between finding the row and writing it.

Usage:
    from budget_manager.backend.core.concurrency import get_io_pool, get_semaphore

    async with get_semaphore("google_api"):
        result = await loop.run_in_executor(get_io_pool(), blocking_fn, arg)
"""

import asyncio
import contextvars
from concurrent.futures import ThreadPoolExecutor

from budget_manager.backend.core.logging import get_logger

logger = get_logger(__name__)

_io_pool: ThreadPoolExecutor | None = None
_semaphores: dict[str, asyncio.Semaphore] = {}
_locks: dict[str, asyncio.Lock] = {}


class TracedThreadPoolExecutor(ThreadPoolExecutor):
    """ThreadPoolExecutor that propagates contextvars to worker threads.

    Keeps structlog context (request_id, frontend) on logs emitted from
    blocking Google API calls.
    """

    def submit(self, fn, /, *args, **kwargs):
        ctx = contextvars.copy_context()
        return super().submit(ctx.run, fn, *args, **kwargs)


def get_io_pool() -> TracedThreadPoolExecutor:
    """Get the shared thread pool for blocking I/O, created lazily from concurrency.yaml."""
    global _io_pool
    if _io_pool is None:
        from budget_manager.backend.core.config import get_app_config
        max_workers = get_app_config().concurrency.thread_pool.max_workers
        _io_pool = TracedThreadPoolExecutor(max_workers=max_workers)
        logger.info("Thread pool created", extra={"max_workers": max_workers})
    return _io_pool


def get_semaphore(name: str) -> asyncio.Semaphore:
    """Get a named semaphore for concurrency-limiting external calls.

    The capacity is read from concurrency.yaml under `semaphores.<name>`.
    If the name is not configured, defaults to 20.
    """
    if name not in _semaphores:
        from budget_manager.backend.core.config import get_app_config
        semaphore_config = get_app_config().concurrency.semaphores
        capacity = getattr(semaphore_config, name, 20)
        _semaphores[name] = asyncio.Semaphore(capacity)
        logger.debug("Semaphore created", extra={"name": name, "capacity": capacity})
    return _semaphores[name]


def get_lock(name: str) -> asyncio.Lock:
    """Get a named lock, created on first use."""
    if name not in _locks:
        _locks[name] = asyncio.Lock()
    return _locks[name]


async def shutdown_pools() -> None:
    """Shut down the I/O pool. Called during application shutdown."""
    global _io_pool

    if _io_pool is not None:
        await asyncio.to_thread(_io_pool.shutdown, wait=True)
        logger.info("Thread pool shut down")
        _io_pool = None

    _semaphores.clear()
    _locks.clear()
    logger.debug("Semaphores and locks cleared")
