"""
In-memory stand-ins for the Supabase AsyncClient and the TUS upload endpoint.

FakeSupabase implements the slice of the SDK the service uses: the PostgREST
builder (select/insert/update/delete with eq, ilike, contains, in_, lt,
order, limit, range), realtime channels with postgres_changes listeners, and
storage bucket removal. Writes notify matching realtime channels the way the
server would.

FakeTusServer is an httpx.MockTransport handler speaking enough of the TUS
protocol for FileAttachmentService; finished uploads land in the fake bucket.
"""

import asyncio
import base64
import json
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

import httpx

from app.shared.dates import to_instant


class BackendFailure(Exception):
    """Raised by the fake to simulate a network or permission failure."""


@dataclass
class FakeResponse:
    data: List[Dict[str, Any]]


class FakeQuery:
    def __init__(self, backend: "FakeSupabase", table: str, action: str, payload: Any = None, columns: str = "*"):
        self.backend = backend
        self.table = table
        self.action = action
        self.payload = payload
        self.columns = columns
        self.filters: List[Callable[[Dict[str, Any]], bool]] = []
        self.orders: List[Tuple[str, bool]] = []
        self.max_rows: Optional[int] = None
        self.window: Optional[Tuple[int, int]] = None

    # ---------- filters ----------

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def ilike(self, column: str, pattern: str) -> "FakeQuery":
        regex = re.compile("^" + ".*".join(re.escape(part) for part in pattern.split("%")) + "$", re.IGNORECASE)
        self.filters.append(lambda row: row.get(column) is not None and bool(regex.match(str(row[column]))))
        return self

    def contains(self, column: str, value: List[Dict[str, Any]]) -> "FakeQuery":
        def matches(row: Dict[str, Any]) -> bool:
            items = row.get(column) or []
            return all(
                any(all(item.get(k) == v for k, v in wanted.items()) for item in items)
                for wanted in value
            )
        self.filters.append(matches)
        return self

    def in_(self, column: str, values: List[Any]) -> "FakeQuery":
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def lt(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(lambda row: row.get(column) is not None and to_instant(row[column]) < to_instant(value))
        return self

    # ---------- shaping ----------

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self.orders.append((column, desc))
        return self

    def limit(self, count: int) -> "FakeQuery":
        self.max_rows = count
        return self

    def range(self, start: int, end: int) -> "FakeQuery":
        self.window = (start, end)
        return self

    # ---------- execution ----------

    async def execute(self) -> FakeResponse:
        self.backend.calls.append((self.table, self.action))
        self.backend.raise_if_failing(self.table, self.action)

        if self.action == "insert":
            return FakeResponse([self.backend.insert_row(self.table, self.payload)])

        rows = [row for row in self.backend.rows(self.table) if all(f(row) for f in self.filters)]

        if self.action == "update":
            return FakeResponse([self.backend.update_row(self.table, row, self.payload) for row in rows])
        if self.action == "delete":
            return FakeResponse([self.backend.delete_row(self.table, row) for row in rows])

        for column, desc in reversed(self.orders):
            present = [row for row in rows if row.get(column) is not None]
            missing = [row for row in rows if row.get(column) is None]
            rows = sorted(present, key=lambda row: row[column], reverse=desc) + missing
        if self.window is not None:
            rows = rows[self.window[0]:self.window[1] + 1]
        if self.max_rows is not None:
            rows = rows[:self.max_rows]
        return FakeResponse([self._project(row) for row in rows])

    def _project(self, row: Dict[str, Any]) -> Dict[str, Any]:
        if self.columns.strip() == "*":
            return dict(row)
        return {name.strip(): row.get(name.strip()) for name in self.columns.split(",")}


class FakeTable:
    def __init__(self, backend: "FakeSupabase", name: str):
        self.backend = backend
        self.name = name

    def select(self, columns: str = "*") -> FakeQuery:
        return FakeQuery(self.backend, self.name, "select", columns=columns)

    def insert(self, payload: Dict[str, Any]) -> FakeQuery:
        return FakeQuery(self.backend, self.name, "insert", payload=payload)

    def update(self, payload: Dict[str, Any]) -> FakeQuery:
        return FakeQuery(self.backend, self.name, "update", payload=payload)

    def delete(self) -> FakeQuery:
        return FakeQuery(self.backend, self.name, "delete")


class FakeChannel:
    def __init__(self, backend: "FakeSupabase", topic: str):
        self.backend = backend
        self.topic = topic
        self.listeners: List[Tuple[str, str, Callable]] = []
        self.joined = False
        self._status_callback: Optional[Callable] = None

    def on_postgres_changes(self, event: str, callback: Callable, table: str = "*", schema: str = "public", filter: Optional[str] = None):
        self.listeners.append((event, table, callback))
        return self

    async def subscribe(self, callback: Optional[Callable] = None):
        # Like the SDK: the join is only sent here and the server confirms it later
        if self.backend.fail_subscribe:
            raise BackendFailure("realtime unavailable")
        self.backend.channels.append(self)
        self._status_callback = callback
        if self.backend.join_status is not None:
            asyncio.get_running_loop().call_soon(self.confirm, self.backend.join_status)
        return self

    def confirm(self, status: str = "SUBSCRIBED") -> None:
        """Deliver a join reply (or a rejoin after a reconnect)."""
        self.joined = status == "SUBSCRIBED"
        if self._status_callback is not None:
            self._status_callback(status, None)


class FakeBucket:
    def __init__(self, backend: "FakeSupabase", name: str):
        self.backend = backend
        self.name = name

    async def remove(self, paths: List[str]) -> List[Dict[str, Any]]:
        self.backend.storage_calls.append(("remove", self.name, list(paths)))
        if self.backend.storage_failing:
            raise BackendFailure("storage unavailable")
        objects = self.backend.objects.setdefault(self.name, {})
        removed = []
        for path in paths:
            if path in objects:
                del objects[path]
                removed.append({"name": path, "bucket_id": self.name})
        return removed


class FakeStorage:
    def __init__(self, backend: "FakeSupabase"):
        self.backend = backend

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self.backend, bucket)


class FakeSupabase:
    """Enough of supabase.AsyncClient for repositories, live queries and storage."""

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.objects: Dict[str, Dict[str, bytes]] = {}
        self.channels: List[FakeChannel] = []
        self.removed_channels: List[FakeChannel] = []
        self.calls: List[Tuple[str, str]] = []
        self.storage_calls: List[Tuple[str, str, List[str]]] = []
        self.storage = FakeStorage(self)

        self.failures: Set[Tuple[str, str]] = set()
        self.fail_once: List[Tuple[str, str]] = []
        self.fail_subscribe = False
        # None holds joins until a test calls FakeChannel.confirm()
        self.join_status: Optional[str] = "SUBSCRIBED"
        self.storage_failing = False

        self._clock = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)

    # ---------- SDK surface ----------

    def table(self, name: str) -> FakeTable:
        return FakeTable(self, name)

    def channel(self, topic: str) -> FakeChannel:
        return FakeChannel(self, topic)

    async def remove_channel(self, channel: FakeChannel) -> None:
        if channel in self.channels:
            self.channels.remove(channel)
            self.removed_channels.append(channel)

    async def remove_all_channels(self) -> None:
        for channel in list(self.channels):
            await self.remove_channel(channel)

    # ---------- test helpers ----------

    def fail(self, table: str, action: str, once: bool = False) -> None:
        if once:
            self.fail_once.append((table, action))
        else:
            self.failures.add((table, action))

    def raise_if_failing(self, table: str, action: str) -> None:
        if (table, action) in self.fail_once:
            self.fail_once.remove((table, action))
            raise BackendFailure(f"{table} {action} rejected")
        if (table, action) in self.failures:
            raise BackendFailure(f"{table} {action} rejected")

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.setdefault(table, [])

    def seed(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a raw row without validation or realtime events."""
        stored = {"id": str(uuid.uuid4()), "created_at": self.now(), "updated_at": self.now(), **row}
        self.rows(table).append(stored)
        return stored

    def now(self) -> str:
        # Strictly increasing so created_at ordering is deterministic
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat(timespec="microseconds")

    # ---------- row mutations ----------

    def insert_row(self, table: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        stamp = self.now()
        row = {"id": str(uuid.uuid4()), "created_at": stamp, "updated_at": stamp, **json.loads(json.dumps(payload))}
        self.rows(table).append(row)
        self._emit(table, "INSERT", row, None)
        return dict(row)

    def update_row(self, table: str, row: Dict[str, Any], payload: Dict[str, Any]) -> Dict[str, Any]:
        old = dict(row)
        row.update(json.loads(json.dumps(payload)))
        self._emit(table, "UPDATE", row, old)
        return dict(row)

    def delete_row(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        self.rows(table).remove(row)
        self._emit(table, "DELETE", None, row)
        return dict(row)

    def _emit(self, table: str, event: str, new: Optional[Dict[str, Any]], old: Optional[Dict[str, Any]]) -> None:
        payload = {
            "data": {
                "type": event,
                "table": table,
                "schema": "public",
                "record": new,
                "old_record": old,
            }
        }
        for channel in [c for c in self.channels if c.joined]:
            for wanted_event, wanted_table, callback in channel.listeners:
                if wanted_table == table and wanted_event in ("*", event):
                    callback(payload)


class FakeTusServer:
    """httpx.MockTransport handler for /storage/v1/upload/resumable."""

    def __init__(self, backend: FakeSupabase):
        self.backend = backend
        self.uploads: Dict[str, Dict[str, Any]] = {}
        self.requests: List[httpx.Request] = []
        self.reject_names: Set[str] = set()
        self.fail_patch_names: Set[str] = set()
        self.bad_offset_names: Set[str] = set()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST":
            return self._create(request)
        if request.method == "PATCH":
            return self._append(request)
        return httpx.Response(405)

    @staticmethod
    def _metadata(header: str) -> Dict[str, str]:
        pairs = {}
        for item in header.split(","):
            key, _, value = item.strip().partition(" ")
            pairs[key] = base64.b64decode(value).decode("utf-8")
        return pairs

    def _create(self, request: httpx.Request) -> httpx.Response:
        meta = self._metadata(request.headers["Upload-Metadata"])
        user_meta = json.loads(meta.get("metadata", "{}"))
        if user_meta.get("originalName") in self.reject_names:
            return httpx.Response(500, text="upload rejected")

        upload_id = uuid.uuid4().hex
        self.uploads[upload_id] = {
            "bucket": meta["bucketName"],
            "object": meta["objectName"],
            "length": int(request.headers["Upload-Length"]),
            "data": b"",
            "meta": meta,
            "user_meta": user_meta,
        }
        return httpx.Response(201, headers={"Location": f"/storage/v1/upload/resumable/{upload_id}"})

    def _append(self, request: httpx.Request) -> httpx.Response:
        upload = self.uploads.get(request.url.path.rsplit("/", 1)[-1])
        if upload is None:
            return httpx.Response(404)
        if upload["user_meta"].get("originalName") in self.fail_patch_names:
            return httpx.Response(500)
        if int(request.headers["Upload-Offset"]) != len(upload["data"]):
            return httpx.Response(409)

        upload["data"] += request.content
        if upload["user_meta"].get("originalName") in self.bad_offset_names:
            return httpx.Response(204, headers={"Upload-Offset": "n/a"})
        if len(upload["data"]) >= upload["length"]:
            self.backend.objects.setdefault(upload["bucket"], {})[upload["object"]] = upload["data"]
        return httpx.Response(204, headers={"Upload-Offset": str(len(upload["data"]))})

    @property
    def patches(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "PATCH"]


class FakeClock:
    """Deterministic epoch seconds for path building."""

    def __init__(self, start: float = 1_714_550_400.0):
        self.value = start

    def __call__(self) -> float:
        return self.value
