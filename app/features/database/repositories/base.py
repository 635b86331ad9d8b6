"""
Base Repository - shared create/get/update plumbing.

Concrete repositories declare their table, entity name and record models and
add their own list queries. Every backend failure is logged with context and
re-raised as RepositoryError; nothing is retried here.
"""

import logging
from typing import Any, Dict, Generic, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from app.core.logging_utils import sanitize_for_logging, sanitize_log_message
from app.shared.dates import utc_now_iso
from app.shared.errors import RecordNotFoundError, RecordValidationError, RepositoryError

RecordT = TypeVar("RecordT", bound=BaseModel)

Fields = Union[Mapping[str, Any], BaseModel]


class BaseRepository(Generic[RecordT]):
    """Create/get/update over one Supabase table."""

    table: str
    entity: str
    record_model: Type[RecordT]
    create_model: Type[BaseModel]
    update_model: Type[BaseModel]

    def __init__(self, client):
        """Initialize with Supabase client."""
        self.client = client
        self.logger = logging.getLogger(f"RenoDesk.Database.{self.table.title().replace('_', '')}")

    # ---------- validation ----------

    def validate(self, fields: Fields, partial: bool = False) -> BaseModel:
        """Validate caller input without touching the backend."""
        return self._validate(self.update_model if partial else self.create_model, fields)

    def _validate(self, model: Type[BaseModel], fields: Fields) -> BaseModel:
        if isinstance(fields, BaseModel):
            fields = fields.model_dump(exclude_unset=True)
        try:
            return model.model_validate(dict(fields))
        except ValidationError as e:
            errors = e.errors(include_url=False, include_context=False, include_input=False)
            raise RecordValidationError(self.entity, errors) from e

    def _parse(self, row: Dict[str, Any]) -> RecordT:
        return self.record_model.model_validate(row)

    def _fail(self, operation: str, error: Exception, record_id: Optional[str] = None) -> RepositoryError:
        target = f" {record_id}" if record_id else ""
        # Backend messages can echo column values back
        self.logger.exception(sanitize_log_message(f"Error during {self.entity} {operation}{target}: {error}"))
        return RepositoryError(self.entity, operation, record_id)

    # ---------- queries ----------

    def query(self):
        """Base select over the table; list methods add filters and ordering."""
        return self.client.table(self.table).select("*")

    async def fetch(self, query, operation: str = "list") -> List[RecordT]:
        """Execute a prepared select and parse every row."""
        try:
            result = await query.execute()
            return [self._parse(row) for row in result.data or []]
        except Exception as e:
            raise self._fail(operation, e) from e

    # ---------- CRUD ----------

    async def create(self, fields: Fields) -> RecordT:
        """
        Insert a new record.

        Optional fields left as None are omitted so they are absent in the
        stored row. id, created_at and updated_at come from the database.
        """
        validated = self._validate(self.create_model, fields)
        payload = validated.model_dump(mode="json", exclude_none=True)

        try:
            result = await self.client.table(self.table).insert(payload).execute()
            record = self._parse(result.data[0])
        except Exception as e:
            raise self._fail("create", e) from e

        self.logger.info(f"Created {self.entity} {record.id}: {sanitize_for_logging(payload)}")
        return record

    async def get(self, record_id: str) -> Optional[RecordT]:
        """Get a record by ID, or None if it does not exist."""
        try:
            result = await self.query().eq("id", record_id).limit(1).execute()
            return self._parse(result.data[0]) if result.data else None
        except Exception as e:
            raise self._fail("get", e, record_id) from e

    async def update(self, record_id: str, fields: Fields) -> None:
        """Merge the supplied fields into a record and refresh updated_at."""
        validated = self._validate(self.update_model, fields)
        updates = validated.model_dump(mode="json", exclude_unset=True)
        updates["updated_at"] = utc_now_iso()

        try:
            result = await self.client.table(self.table).update(updates).eq("id", record_id).execute()
        except Exception as e:
            raise self._fail("update", e, record_id) from e

        if not result.data:
            self.logger.warning(f"Update matched no {self.entity} with id {record_id}")
            raise RecordNotFoundError(self.entity, "update", record_id)

        self.logger.info(f"Updated {self.entity} {record_id}: {sorted(updates)}")
