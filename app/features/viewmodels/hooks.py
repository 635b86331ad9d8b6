"""
View-model hooks.

A hook owns one ListState (data, loading flag, error) and keeps it in step
with either a live query or a one-shot repository list call. Consumers read
`hook.state` or register a listener with `on_change` to be handed every new
state.

Live hooks are bound with filter keyword arguments. Binding again with other
filters closes the previous subscription before opening the next one, so a
consumer never has two subscriptions open at once.
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, TypeVar

from app.features.database.client import DatabaseClient
from app.features.realtime.live_query import LiveQuery
from app.features.realtime.subscriptions import SubscriptionFactory
from app.shared.errors import RenoDeskError

logger = logging.getLogger("RenoDesk.ViewModels")

T = TypeVar("T")


@dataclass(frozen=True)
class ListState(Generic[T]):
    data: List[T] = field(default_factory=list)
    loading: bool = True
    error: Optional[Exception] = None


StateListener = Callable[[ListState], None]


class _StateHook(Generic[T]):
    def __init__(self, name: str):
        self.name = name
        self.state: ListState[T] = ListState()
        self._listeners: List[StateListener] = []

    def on_change(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None

    def _set(self, state: ListState[T]) -> None:
        self.state = state
        for listener in list(self._listeners):
            listener(state)


class LiveListHook(_StateHook[T]):
    """State fed by a live query."""

    def __init__(self, open_query: Callable[..., Awaitable[LiveQuery]], name: str):
        super().__init__(name)
        self._open_query = open_query
        self._query: Optional[LiveQuery] = None
        self._filters: Optional[Dict[str, Any]] = None
        self._lock = asyncio.Lock()

    @property
    def filters(self) -> Optional[Dict[str, Any]]:
        return self._filters

    async def bind(self, **filters: Any) -> ListState[T]:
        """Subscribe with the given filters; a no-op when they are unchanged."""
        async with self._lock:
            if self._query is not None and filters == self._filters:
                return self.state

            await self._teardown()
            self._filters = filters
            self._set(ListState())

            try:
                self._query = await self._open_query(self._deliver, self._fail, **filters)
            except RenoDeskError as e:
                logger.error(f"Could not subscribe {self.name} with {filters}: {e}")
                self._fail(e)

            return self.state

    async def close(self) -> None:
        async with self._lock:
            await self._teardown()
            self._filters = None

    async def _teardown(self) -> None:
        query, self._query = self._query, None
        if query is not None:
            await query.unsubscribe()

    def _deliver(self, records: List[T]) -> None:
        self._set(ListState(data=list(records), loading=False))

    def _fail(self, error: Exception) -> None:
        self._set(replace(self.state, loading=False, error=error))

    async def __aenter__(self) -> "LiveListHook[T]":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


class OneShotListHook(_StateHook[T]):
    """State fed by a single repository list call per load()."""

    def __init__(self, fetch: Callable[..., Awaitable[List[T]]], name: str):
        super().__init__(name)
        self._fetch = fetch

    async def load(self, **filters: Any) -> ListState[T]:
        self._set(replace(self.state, loading=True, error=None))
        try:
            records = await self._fetch(**filters)
        except RenoDeskError as e:
            logger.error(f"Loading {self.name} failed: {e}")
            self._set(replace(self.state, loading=False, error=e))
        else:
            self._set(ListState(data=list(records), loading=False))
        return self.state


# ---------- entity helpers ----------

def use_contacts(subscriptions: SubscriptionFactory) -> LiveListHook:
    return LiveListHook(subscriptions.contacts, "contacts")


def use_tasks(subscriptions: SubscriptionFactory) -> LiveListHook:
    """Live tasks; bind(status=...) narrows to one column of the board."""
    return LiveListHook(subscriptions.tasks, "tasks")


def use_expenses(subscriptions: SubscriptionFactory) -> LiveListHook:
    return LiveListHook(subscriptions.expenses, "expenses")


def use_communications(subscriptions: SubscriptionFactory) -> LiveListHook:
    """Live communications; bind(contact_id=..., limit=...) for a contact history or recent feed."""
    return LiveListHook(subscriptions.communications, "communications")


def use_quotes(db: DatabaseClient) -> OneShotListHook:
    """Quotes are loaded on demand; load(task_id=...) for the quotes of one task."""
    return OneShotListHook(db.quotes.list, "quotes")
