"""
Live queries over Supabase Realtime.

A LiveQuery listens to postgres_changes on one table and, on every change,
re-runs its repository query and hands the full ordered result set to the
subscriber. Change payloads are only used as a trigger: the delivered list
always comes from a fresh read, so the last callback reflects current state
even when intermediate states are skipped.

The channel watches the whole table: Realtime cannot filter DELETE events,
and a row moving out of a filter only shows up as a change to the new values.
Filtering happens in the re-run query instead.

subscribe() only sends the join request. The snapshot is read once the
server confirms the join, and every later confirmation (a rejoin after a
reconnect) triggers a fresh read as well.

Refreshes are coalesced. While one is running, further events only mark the
query dirty and exactly one more refresh follows.
"""

import asyncio
import inspect
import logging
import uuid
from typing import Any, Awaitable, Callable, Generic, List, Optional, TypeVar, Union

from app.shared.errors import RenoDeskError, RepositoryError

logger = logging.getLogger("RenoDesk.Realtime")

RecordT = TypeVar("RecordT")

ResultCallback = Callable[[List[RecordT]], Union[None, Awaitable[None]]]
ErrorCallback = Callable[[Exception], None]

_CHANNEL_FAILURE_STATES = {"CHANNEL_ERROR", "TIMED_OUT"}


class LiveQuery(Generic[RecordT]):
    """One standing subscription; call unsubscribe() to release it."""

    def __init__(
        self,
        client,
        table: str,
        fetch: Callable[[], Awaitable[List[RecordT]]],
        callback: ResultCallback,
        on_error: Optional[ErrorCallback] = None,
        label: Optional[str] = None,
        schema: str = "public",
    ):
        """
        Args:
            client: Supabase AsyncClient
            table: Table to watch
            fetch: Coroutine function returning the ordered result set
            callback: Receives every delivered result set
            on_error: Receives refresh and channel failures
            label: Describes the query filter in logs and the channel topic
        """
        self.client = client
        self.table = table
        self.label = label
        self.schema = schema
        self._fetch = fetch
        self._callback = callback
        self._on_error = on_error

        self._channel = None
        self._refresh_task: Optional[asyncio.Task] = None
        self._dirty = False
        self._closed = False
        self._connecting = False
        self._join_reply = asyncio.Event()
        self._join_failure: Optional[str] = None
        self.deliveries = 0

    @property
    def topic(self) -> str:
        return f"{self.table}:{self.label or '*'}"

    @property
    def active(self) -> bool:
        return self._channel is not None and not self._closed

    # ---------- lifecycle ----------

    async def start(self) -> "LiveQuery[RecordT]":
        """
        Open the channel and wait until the server confirms the join.

        The initial snapshot is read only after the confirmation, so no write
        can fall between the snapshot and the first change event.

        Raises:
            RepositoryError: if the join is refused or times out
        """
        if self._closed:
            raise RuntimeError("LiveQuery cannot be restarted after unsubscribe()")

        channel = self.client.channel(f"{self.topic}:{uuid.uuid4().hex[:8]}")
        channel.on_postgres_changes("*", callback=self._on_change, table=self.table, schema=self.schema)
        self._channel = channel

        self._connecting = True
        try:
            try:
                await channel.subscribe(self._on_status)
            except Exception as e:
                logger.exception(f"Could not subscribe to {self.topic}: {e}")
                self._closed = True
                await self._release_channel()
                raise RepositoryError(self.table, "subscribe") from e
            await self._join_reply.wait()
        finally:
            self._connecting = False

        if self._join_failure is not None:
            logger.error(f"Realtime channel {self.topic} could not join: {self._join_failure}")
            self._closed = True
            await self._release_channel()
            raise RepositoryError(self.table, "subscribe")

        if self._closed:
            return self

        logger.info(f"Live query opened on {self.topic}")
        await self.wait_until_settled()
        return self

    async def unsubscribe(self) -> None:
        """Stop deliveries and release the realtime channel."""
        if self._closed:
            return
        self._closed = True
        # Unblocks a start() still waiting for its join reply
        self._join_reply.set()

        task = self._refresh_task
        # A subscriber may unsubscribe from inside its own callback
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        await self._release_channel()
        logger.info(f"Live query closed on {self.topic} after {self.deliveries} deliveries")

    async def _release_channel(self) -> None:
        channel, self._channel = self._channel, None
        if channel is None:
            return
        try:
            await self.client.remove_channel(channel)
        except Exception as e:
            logger.warning(f"Error removing channel for {self.topic}: {e}")

    async def wait_until_settled(self) -> None:
        """Wait for in-flight refreshes, including ones queued meanwhile."""
        while self._refresh_task is not None and not self._refresh_task.done():
            await asyncio.shield(self._refresh_task)

    # ---------- change handling ----------

    def _on_status(self, status: Any, error: Optional[Exception] = None) -> None:
        state = str(getattr(status, "value", status))
        if self._closed:
            return

        if state == "SUBSCRIBED":
            logger.debug(f"Realtime channel {self.topic} joined")
            self._join_reply.set()
            # Also fires after a reconnect, when changes may have been missed
            self._dirty = True
            self._schedule()
        elif state in _CHANNEL_FAILURE_STATES:
            if self._connecting and not self._join_reply.is_set():
                self._join_failure = state
                self._join_reply.set()
                return
            logger.error(f"Realtime channel {self.topic} reported {state}: {error}")
            self._report(RepositoryError(self.table, "subscribe"))
        else:
            logger.debug(f"Realtime channel {self.topic} is {state}")

    def _on_change(self, payload: Any) -> None:
        if self._closed:
            return
        self._dirty = True
        self._schedule()

    def _schedule(self) -> None:
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self) -> None:
        while self._dirty and not self._closed:
            self._dirty = False
            await self._refresh()

    async def _refresh(self) -> None:
        try:
            records = await self._fetch()
        except RenoDeskError as e:
            self._report(e)
            return

        if self._closed:
            return

        self.deliveries += 1
        try:
            result = self._callback(records)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.exception(f"Subscriber of {self.topic} raised: {e}")
            self._report(e)

    def _report(self, error: Exception) -> None:
        if self._on_error is not None:
            self._on_error(error)
        else:
            logger.error(f"Live query on {self.topic} failed: {error}")
