"""Sync coordinator - decides when to sync and runs one push-then-pull cycle at a time."""

from __future__ import annotations

import asyncio
import enum
import logging
from contextlib import asynccontextmanager
from typing import Optional

from ..config import settings
from ..errors import SyncError, UnauthorizedError
from ..schemas.sync import SyncRunResult, SyncStatusSnapshot
from ..timeutil import utcnow
from .entities import Operation
from .mirror import LocalMirror
from .queue import ChangeQueue
from .store import LocalStore
from .transport import HttpSyncTransport, PushStatus

logger = logging.getLogger(__name__)


class SyncState(str, enum.Enum):
    IDLE = "idle"
    SYNCING = "syncing"


class SyncCoordinator:
    """Owns the SYNCING flag for one queue.

    Runs are triggered by an offline -> online transition, a one-shot initial
    sync after session start, or a manual trigger. There is no periodic
    polling. The flag is checked and set with no await in between, so a
    single event loop never starts two runs.
    """

    def __init__(
        self,
        queue: ChangeQueue,
        transport,
        *,
        mirror: LocalMirror | None = None,
        online: bool = True,
        initial_delay: float | None = None,
    ):
        self.queue = queue
        self.transport = transport
        self.mirror = mirror
        self.state = SyncState.IDLE
        self.online = online
        self.last_result: SyncRunResult | None = None
        self.initial_delay = (
            settings.sync_initial_delay_seconds if initial_delay is None else initial_delay
        )
        self._initial_task: Optional[asyncio.Task] = None

    @property
    def is_syncing(self) -> bool:
        return self.state is SyncState.SYNCING

    # Triggers

    async def set_online(self, online: bool) -> SyncRunResult | None:
        """Record connectivity. Coming back online starts a sync."""
        was_online = self.online
        self.online = online
        if online and not was_online:
            logger.info("Connectivity restored, starting sync")
            return await self.sync()
        return None

    def schedule_initial_sync(self, delay: float | None = None) -> asyncio.Task:
        """Run one sync ``delay`` seconds after the session is established."""
        if self._initial_task is not None and not self._initial_task.done():
            return self._initial_task
        wait = self.initial_delay if delay is None else delay
        self._initial_task = asyncio.create_task(
            self._delayed_sync(wait), name="colortouch-initial-sync"
        )
        return self._initial_task

    async def _delayed_sync(self, delay: float) -> SyncRunResult | None:
        await asyncio.sleep(delay)
        if not self.online:
            logger.info("Skipping initial sync while offline")
            return None
        return await self.sync()

    async def trigger(self) -> SyncRunResult:
        """Manual sync request."""
        if not self.online:
            return SyncRunResult(success=False, message="offline")
        return await self.sync()

    async def close(self) -> None:
        if self._initial_task is None:
            return
        self._initial_task.cancel()
        try:
            await self._initial_task
        except asyncio.CancelledError:
            pass
        finally:
            self._initial_task = None

    # Run

    async def sync(self) -> SyncRunResult:
        if self.state is SyncState.SYNCING:
            return SyncRunResult(success=False, already_syncing=True, message="already syncing")

        self.state = SyncState.SYNCING
        try:
            result = await self._run()
        finally:
            self.state = SyncState.IDLE
        self.last_result = result
        return result

    async def _run(self) -> SyncRunResult:
        result = SyncRunResult(started_at=utcnow())
        blocked: set[tuple[str, str]] = set()
        remapped: dict[tuple[str, str], str] = {}

        try:
            # Records with an unresolved conflict keep their later changes queued
            for entry in await self.queue.list_conflicts():
                blocked.add((entry.model, entry.record_id))

            for entry in await self.queue.list_entries():
                new_id = remapped.get((entry.model, entry.record_id))
                if new_id:
                    entry.record_id = new_id
                key = (entry.model, entry.record_id)
                if key in blocked:
                    continue
                if not await self._push_entry(entry, result, remapped):
                    blocked.add(key)

            await self._pull()
        except UnauthorizedError as e:
            logger.warning("Sync aborted: %s", e.message)
            result.success = False
            result.message = f"{e.message}. {result.summary()}"
        except SyncError as e:
            logger.warning("Sync pull failed: %s", e.message)
            result.success = False
            result.message = f"Pull failed: {e.message}. {result.summary()}"
        except Exception as e:
            logger.exception("Sync run failed")
            result.success = False
            result.message = f"Sync failed: {e}. {result.summary()}"
        else:
            result.message = result.summary()

        result.finished_at = utcnow()
        logger.info("Sync run finished: %s", result.message)
        return result

    async def _push_entry(
        self, entry, result: SyncRunResult, remapped: dict[tuple[str, str], str]
    ) -> bool:
        """Push one entry and update counters. Returns False if it stays queued."""
        try:
            outcome = await self.transport.push(entry)
        except UnauthorizedError:
            raise
        except SyncError as e:
            result.failed += 1
            if not e.retryable:
                logger.warning(
                    "Dropping %s %s %s: %s", entry.operation, entry.model, entry.record_id, e.message
                )
                await self.queue.dequeue(entry.id)
                return True
            logger.warning("Push of %s %s failed: %s", entry.model, entry.record_id, e.message)
            await self.queue.record_failure(entry.id, e.message)
            return False

        if outcome.status is PushStatus.SYNCED:
            await self.queue.dequeue(entry.id)
            result.synced += 1
            if entry.operation == Operation.CREATE.value and outcome.data:
                server_id = outcome.data.get("id")
                if server_id and server_id != entry.record_id:
                    await self.queue.remap_record_id(entry.model, entry.record_id, server_id)
                    remapped[(entry.model, entry.record_id)] = server_id
            if self.mirror is not None:
                if entry.operation == Operation.DELETE.value:
                    await self.mirror.remove(entry.model, entry.record_id)
                elif outcome.data:
                    record_id = outcome.data.get("id") or entry.record_id
                    await self.mirror.upsert(entry.model, record_id, outcome.data)
            return True

        if outcome.status is PushStatus.CONFLICT:
            await self.queue.mark_conflict(entry.id, outcome.server_data)
            result.conflicts += 1
            return False

        logger.warning(
            "Server rejected %s %s %s: %s", entry.operation, entry.model, entry.record_id, outcome.error
        )
        await self.queue.dequeue(entry.id)
        result.failed += 1
        return True

    async def _pull(self) -> None:
        since = await self.queue.get_last_sync_time()
        pulled = await self.transport.pull(since)
        if self.mirror is not None and pulled.changes:
            merged = await self.mirror.apply_changes(pulled.changes)
            logger.info(
                "Pulled %d change(s): %d created, %d updated, %d skipped",
                len(pulled.changes), merged.created, merged.updated, merged.skipped,
            )
        await self.queue.set_last_sync_time(pulled.sync_time)

    async def status(self) -> SyncStatusSnapshot:
        return SyncStatusSnapshot(
            online=self.online,
            state=self.state.value,
            queue_count=await self.queue.get_queue_count(),
            pending=await self.queue.get_pending_count(),
            last_result=self.last_result,
        )


@asynccontextmanager
async def open_coordinator(settings_obj=settings, *, transport=None):
    """Build a coordinator over the configured local store and remote server."""
    store = LocalStore(settings_obj.local_store_url)
    await store.init()
    owns_transport = transport is None
    if transport is None:
        transport = HttpSyncTransport(
            settings_obj.sync_remote_url,
            token=settings_obj.sync_remote_token,
            timeout=settings_obj.sync_timeout_seconds,
        )
    coordinator = SyncCoordinator(
        ChangeQueue(store),
        transport,
        mirror=LocalMirror(store),
        online=settings_obj.sync_start_online,
        initial_delay=settings_obj.sync_initial_delay_seconds,
    )
    try:
        yield coordinator
    finally:
        await coordinator.close()
        if owns_transport:
            await transport.aclose()
        await store.dispose()
