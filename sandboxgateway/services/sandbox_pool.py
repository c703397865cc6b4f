# -*- coding: utf-8 -*-
"""Location: ./sandboxgateway/services/sandbox_pool.py
Copyright 2026
SPDX-License-Identifier: Apache-2.0

Sandbox Pool Implementation.

This module keeps the registry of live remote sandboxes. It creates sandboxes
on demand, hands out existing ones for reuse by language, evicts handles that
have been idle for too long and tears everything down on shutdown.

The registry lock only guards local bookkeeping and is never held while a
remote call is in progress. Concurrent misses for the same language are
serialized on a per-language creation lock so they normally end up sharing
one new sandbox.

Examples:
    >>> pool = SandboxPool(provider=None, idle_timeout=300, sweep_interval=60)
    >>> pool.size()
    0
    >>> pool.get_stats()["total_created"]
    0
"""

# Standard
import asyncio
from contextlib import asynccontextmanager
import logging
from typing import Any, AsyncIterator, Dict, List, Optional
import uuid

# First-Party
from sandboxgateway.config import settings
from sandboxgateway.models import Language, SandboxHandle, SandboxSummary, utc_now
from sandboxgateway.providers.base import SandboxProvider

logger = logging.getLogger(__name__)


class SandboxPoolError(Exception):
    """Base error for sandbox pool operations."""


class ProvisioningFailedError(SandboxPoolError):
    """The remote provider could not create a sandbox."""


class PoolClosedError(SandboxPoolError):
    """The pool is draining and accepts no new sandboxes."""


class SandboxNotFoundError(SandboxPoolError):
    """No live sandbox is registered under the requested id.

    Examples:
        >>> str(SandboxNotFoundError("abc"))
        'Sandbox abc not found'
    """

    def __init__(self, sandbox_id: str):
        """Initialize the error.

        Args:
            sandbox_id: Requested sandbox id
        """
        self.sandbox_id = sandbox_id
        super().__init__(f"Sandbox {sandbox_id} not found")


class SandboxPool:
    """Registry of live sandboxes with reuse, idle eviction and draining.

    Attributes:
        provider: Remote sandbox provider
        idle_timeout: Seconds of inactivity after which a sandbox is evicted
        sweep_interval: Seconds between idle sweeps
        creation_timeout: Seconds allowed for one remote creation
        destroy_timeout: Seconds allowed for one remote destroy
    """

    def __init__(
        self,
        provider: SandboxProvider,
        idle_timeout: Optional[float] = None,
        sweep_interval: Optional[float] = None,
        creation_timeout: Optional[float] = None,
        destroy_timeout: Optional[float] = None,
    ):
        """Initialize a sandbox pool.

        Args:
            provider: Remote sandbox provider
            idle_timeout: Idle eviction threshold (defaults to settings)
            sweep_interval: Sweep period (defaults to settings)
            creation_timeout: Creation bound (defaults to settings)
            destroy_timeout: Destroy bound (defaults to settings)
        """
        self.provider = provider
        self.idle_timeout = idle_timeout if idle_timeout is not None else settings.sandbox_idle_timeout_seconds
        self.sweep_interval = sweep_interval if sweep_interval is not None else settings.sandbox_sweep_interval_seconds
        self.creation_timeout = creation_timeout if creation_timeout is not None else settings.sandbox_creation_timeout_seconds
        self.destroy_timeout = destroy_timeout if destroy_timeout is not None else settings.sandbox_destroy_timeout_seconds

        # Pool state
        self._sandboxes: Dict[str, SandboxHandle] = {}
        self._lock = asyncio.Lock()
        self._creation_locks: Dict[Language, asyncio.Lock] = {language: asyncio.Lock() for language in Language}
        self._sweep_task: Optional[asyncio.Task] = None
        self._closed = False
        self._shutdown_started = False

        # Metrics
        self._total_created = 0
        self._total_terminated = 0
        self._total_evicted = 0
        self._total_creation_failures = 0
        self._total_destroy_failures = 0

    @property
    def closed(self) -> bool:
        """Whether the pool has stopped accepting new sandboxes."""
        return self._closed

    def size(self) -> int:
        """Number of registered sandboxes."""
        return len(self._sandboxes)

    # ---------------------------------------------------------------------------
    # Creation and lookup
    # ---------------------------------------------------------------------------

    async def create(self, language: Language) -> str:
        """Create and register a new sandbox.

        Args:
            language: Language of the new sandbox

        Returns:
            str: Local id of the new sandbox

        Raises:
            PoolClosedError: If the pool is draining
            ProvisioningFailedError: If the provider fails or times out
        """
        handle = await self._create_handle(Language(language))
        return handle.sandbox_id

    async def _create_handle(self, language: Language) -> SandboxHandle:
        if self._closed:
            raise PoolClosedError("Sandbox pool is shutting down")

        logger.info(f"Creating new {language.value} sandbox")
        try:
            remote = await asyncio.wait_for(self.provider.create(language, self.creation_timeout), timeout=self.creation_timeout)
        except asyncio.TimeoutError as exc:
            self._total_creation_failures += 1
            logger.error(f"Sandbox creation timed out after {self.creation_timeout}s")
            raise ProvisioningFailedError(f"Sandbox creation timed out after {self.creation_timeout}s") from exc
        except Exception as exc:
            self._total_creation_failures += 1
            logger.error(f"Failed to create {language.value} sandbox: {exc}")
            raise ProvisioningFailedError(f"Failed to create sandbox: {exc}") from exc

        handle = SandboxHandle(str(uuid.uuid4()), language, remote)
        async with self._lock:
            closed = self._closed
            if not closed:
                handle.activate()
                self._sandboxes[handle.sandbox_id] = handle
                self._total_created += 1

        if closed:
            handle.mark_terminated()
            await self._destroy_remote(handle)
            raise PoolClosedError("Sandbox pool is shutting down")

        logger.info(f"Sandbox {handle.sandbox_id} created for {language.value} (remote {remote.remote_id})")
        return handle

    async def get(self, sandbox_id: str) -> Optional[SandboxHandle]:
        """Look up a sandbox and renew its liveness.

        Args:
            sandbox_id: Local sandbox id

        Returns:
            Optional[SandboxHandle]: The handle, or None when unknown
        """
        async with self._lock:
            handle = self._sandboxes.get(sandbox_id)
            if handle is not None:
                handle.touch()
            return handle

    async def require(self, sandbox_id: str) -> SandboxHandle:
        """Look up a sandbox that must exist.

        Args:
            sandbox_id: Local sandbox id

        Returns:
            SandboxHandle: The handle

        Raises:
            SandboxNotFoundError: If no sandbox has that id
        """
        handle = await self.get(sandbox_id)
        if handle is None:
            raise SandboxNotFoundError(sandbox_id)
        return handle

    async def _find_by_language(self, language: Language) -> Optional[SandboxHandle]:
        async with self._lock:
            for handle in self._sandboxes.values():
                if handle.language == language:
                    handle.touch()
                    return handle
        return None

    async def get_or_create(self, language: Language, sandbox_id: Optional[str] = None) -> SandboxHandle:
        """Return a sandbox for ``language``, creating one on a miss.

        An explicit id of the matching language is reused. Otherwise the
        first registered sandbox of that language is reused, and a new one
        is created only when there is none.

        Args:
            language: Required language
            sandbox_id: Preferred sandbox id

        Returns:
            SandboxHandle: A registered handle of ``language``
        """
        language = Language(language)
        if sandbox_id:
            handle = await self.get(sandbox_id)
            if handle is not None and handle.language == language:
                return handle

        handle = await self._find_by_language(language)
        if handle is not None:
            return handle

        async with self._creation_locks[language]:
            # another caller may have created one while we waited
            handle = await self._find_by_language(language)
            if handle is not None:
                return handle
            return await self._create_handle(language)

    @asynccontextmanager
    async def lease(self, handle: SandboxHandle) -> AsyncIterator[SandboxHandle]:
        """Hold a handle for the duration of one invocation.

        Leased handles are skipped by the idle sweep.

        Args:
            handle: Handle to hold

        Yields:
            SandboxHandle: The held handle

        Raises:
            SandboxNotFoundError: If the handle was terminated before the lease
        """
        async with self._lock:
            if handle.is_terminated or self._sandboxes.get(handle.sandbox_id) is not handle:
                raise SandboxNotFoundError(handle.sandbox_id)
            handle.in_flight += 1
            handle.touch()
        try:
            yield handle
        finally:
            handle.in_flight -= 1
            handle.touch()

    # ---------------------------------------------------------------------------
    # Termination
    # ---------------------------------------------------------------------------

    async def terminate(self, sandbox_id: str) -> bool:
        """Remove a sandbox and destroy its remote session.

        The local entry is removed first; a failing remote destroy is logged
        and does not bring it back.

        Args:
            sandbox_id: Local sandbox id

        Returns:
            bool: True if a sandbox was removed, False for an unknown id
        """
        return await self._remove(sandbox_id)

    async def _remove(self, sandbox_id: str, idle_cutoff: Optional[float] = None) -> bool:
        async with self._lock:
            handle = self._sandboxes.get(sandbox_id)
            if handle is None:
                return False
            if idle_cutoff is not None and (handle.in_flight > 0 or handle.idle_seconds <= idle_cutoff):
                return False
            del self._sandboxes[sandbox_id]
            handle.mark_terminated()
            self._total_terminated += 1

        logger.info(f"Terminating sandbox {sandbox_id}")
        await self._destroy_remote(handle)
        return True

    async def _destroy_remote(self, handle: SandboxHandle) -> None:
        try:
            await asyncio.wait_for(handle.remote.destroy(), timeout=self.destroy_timeout)
        except asyncio.TimeoutError:
            self._total_destroy_failures += 1
            logger.warning(f"Destroying sandbox {handle.sandbox_id} timed out after {self.destroy_timeout}s")
        except Exception as exc:
            self._total_destroy_failures += 1
            logger.error(f"Failed to destroy sandbox {handle.sandbox_id}: {exc}")

    async def sweep_idle(self) -> List[str]:
        """Evict every unleased sandbox idle for longer than ``idle_timeout``.

        Returns:
            List[str]: Ids of the evicted sandboxes
        """
        now = utc_now()
        async with self._lock:
            candidates = [
                sandbox_id
                for sandbox_id, handle in self._sandboxes.items()
                if handle.in_flight == 0 and (now - handle.last_used).total_seconds() > self.idle_timeout
            ]

        evicted: List[str] = []
        for sandbox_id in candidates:
            # re-checked under the lock; a sandbox leased since the scan stays
            if await self._remove(sandbox_id, idle_cutoff=self.idle_timeout):
                evicted.append(sandbox_id)
                self._total_evicted += 1

        if evicted:
            logger.info(f"Evicted {len(evicted)} idle sandbox(es): {', '.join(evicted)}")
        return evicted

    async def drain_all(self) -> int:
        """Terminate every registered sandbox concurrently.

        Returns:
            int: Number of sandboxes removed
        """
        async with self._lock:
            sandbox_ids = list(self._sandboxes)

        if not sandbox_ids:
            return 0

        logger.info(f"Draining {len(sandbox_ids)} sandbox(es)")
        results = await asyncio.gather(*(self.terminate(sandbox_id) for sandbox_id in sandbox_ids), return_exceptions=True)
        removed = 0
        for sandbox_id, result in zip(sandbox_ids, results):
            if isinstance(result, BaseException):
                logger.error(f"Error terminating sandbox {sandbox_id} during drain: {result}")
            elif result:
                removed += 1
        return removed

    # ---------------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------------

    async def start(self) -> None:
        """Start the background idle sweep."""
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.create_task(self._sweep_loop())
            logger.info(f"Idle sweep started (interval={self.sweep_interval}s, idle_timeout={self.idle_timeout}s)")

    async def stop(self) -> None:
        """Stop the background idle sweep."""
        task, self._sweep_task = self._sweep_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Idle sweep stopped")

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                await self.sweep_idle()
            except Exception as exc:
                logger.error(f"Idle sweep failed: {exc}")

    async def shutdown(self) -> None:
        """Stop the sweep, refuse new sandboxes and drain the registry once."""
        if self._shutdown_started:
            return
        self._shutdown_started = True

        await self.stop()
        async with self._lock:
            self._closed = True
        removed = await self.drain_all()
        logger.info(f"Sandbox pool shut down ({removed} sandbox(es) terminated)")

    # ---------------------------------------------------------------------------
    # Introspection
    # ---------------------------------------------------------------------------

    async def list_sandboxes(self) -> List[SandboxSummary]:
        """Snapshot every registered sandbox.

        Returns:
            List[SandboxSummary]: Summaries in registration order
        """
        async with self._lock:
            return [handle.summary() for handle in self._sandboxes.values()]

    def get_stats(self) -> Dict[str, Any]:
        """Get pool statistics.

        Returns:
            Dict[str, Any]: Current sizes and lifetime counters
        """
        by_language = {language.value: 0 for language in Language}
        in_use = 0
        for handle in self._sandboxes.values():
            by_language[handle.language.value] += 1
            if handle.in_flight > 0:
                in_use += 1

        return {
            "total_sandboxes": len(self._sandboxes),
            "in_use": in_use,
            "by_language": by_language,
            "closed": self._closed,
            "total_created": self._total_created,
            "total_terminated": self._total_terminated,
            "total_evicted": self._total_evicted,
            "total_creation_failures": self._total_creation_failures,
            "total_destroy_failures": self._total_destroy_failures,
        }
