"""
Record models for every table the service owns.

Each entity has three shapes:
- <Entity>Create: what a caller supplies on create (validated before any backend call)
- <Entity>Update: partial fields for update (only fields the caller set are sent)
- <Entity>: the stored record as read back, timestamps normalized to aware UTC
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.shared.dates import to_instant, to_optional_instant


# =========================================================================
# ENUMS
# =========================================================================

class CommunicationType(str, Enum):
    EMAIL = "email"
    PHONE = "phone"
    MEETING = "meeting"
    OTHER = "other"


class CommunicationStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    SENT = "sent"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    BLOCKED = "blocked"


class ExpenseCategory(str, Enum):
    TRANSPORT = "transport"
    ACCOMMODATION = "accommodation"
    FOOD = "food"
    EQUIPMENT = "equipment"
    OTHER = "other"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    ESTIMATED = "estimated"
    SETTLED = "settled"


class QuoteStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class IntentStatus(str, Enum):
    PENDING = "pending"
    COMMITTED = "committed"
    FAILED = "failed"


# =========================================================================
# SHARED
# =========================================================================

class _Input(BaseModel):
    model_config = ConfigDict(extra="forbid", use_enum_values=True)


class _Update(_Input):
    """Partial input. Columns named in not_null may be left out but never set to None."""

    not_null: ClassVar[Tuple[str, ...]] = ()

    @field_validator("*")
    @classmethod
    def _not_cleared(cls, v: Any, info) -> Any:
        if v is None and info.field_name in cls.not_null:
            raise ValueError(f"{info.field_name} cannot be cleared")
        return v


class StoredRecord(BaseModel):
    """Fields the database assigns on insert."""
    model_config = ConfigDict(extra="ignore")

    id: str
    created_at: datetime
    updated_at: datetime

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any) -> str:
        return str(v)

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _normalize_timestamps(cls, v: Any) -> datetime:
        return to_instant(v)


def _non_blank(value: Optional[str], field: str) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError(f"{field} must not be empty")
    return value


# =========================================================================
# CONTACTS
# =========================================================================

class ContactCreate(_Input):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    company: Optional[str] = None
    role: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _name_required(cls, v: str) -> str:
        return _non_blank(v, "name")


class ContactUpdate(_Update):
    not_null = ("name",)

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    company: Optional[str] = None
    role: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        return _non_blank(v, "name")


class Contact(StoredRecord):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    company: Optional[str] = None
    role: Optional[str] = None


# =========================================================================
# COMMUNICATIONS
# =========================================================================

class CommunicationCreate(_Input):
    contact_id: str
    task_id: Optional[str] = None
    type: CommunicationType
    subject: str = ""
    content: str = ""
    status: CommunicationStatus = CommunicationStatus.PENDING
    date: Optional[datetime] = None

    @field_validator("contact_id")
    @classmethod
    def _contact_required(cls, v: str) -> str:
        return _non_blank(v, "contact_id")


class CommunicationUpdate(_Update):
    not_null = ("contact_id", "type", "subject", "content", "status")

    contact_id: Optional[str] = None
    task_id: Optional[str] = None
    type: Optional[CommunicationType] = None
    subject: Optional[str] = None
    content: Optional[str] = None
    status: Optional[CommunicationStatus] = None
    date: Optional[datetime] = None


class Communication(StoredRecord):
    contact_id: str
    task_id: Optional[str] = None
    type: CommunicationType = CommunicationType.OTHER
    subject: str = ""
    content: str = ""
    status: CommunicationStatus = CommunicationStatus.PENDING
    date: Optional[datetime] = None

    @field_validator("date", mode="before")
    @classmethod
    def _normalize_date(cls, v: Any) -> Optional[datetime]:
        return to_optional_instant(v)

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, v: Any) -> Any:
        return v or CommunicationStatus.PENDING


# =========================================================================
# TASKS
# =========================================================================

class TaskCreate(_Input):
    title: str
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.TODO
    completion_percentage: int = Field(default=0, ge=0, le=100)
    due_date: Optional[datetime] = None
    assigned_to: Optional[str] = None

    @field_validator("title")
    @classmethod
    def _title_required(cls, v: str) -> str:
        return _non_blank(v, "title")


class TaskUpdate(_Update):
    not_null = ("title", "priority", "status", "completion_percentage")

    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    completion_percentage: Optional[int] = Field(default=None, ge=0, le=100)
    due_date: Optional[datetime] = None
    assigned_to: Optional[str] = None

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: Optional[str]) -> Optional[str]:
        return _non_blank(v, "title")


class Task(StoredRecord):
    title: str
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.TODO
    completion_percentage: int = 0
    due_date: Optional[datetime] = None
    assigned_to: Optional[str] = None

    @field_validator("due_date", mode="before")
    @classmethod
    def _normalize_due_date(cls, v: Any) -> Optional[datetime]:
        return to_optional_instant(v)

    @field_validator("description", mode="before")
    @classmethod
    def _description_text(cls, v: Any) -> str:
        return v or ""


# =========================================================================
# EXPENSES
# =========================================================================

class ExpenseCreate(_Input):
    amount: Decimal = Field(ge=0)
    date: datetime
    category: ExpenseCategory
    status: PaymentStatus = PaymentStatus.PENDING
    description: Optional[str] = None


class ExpenseUpdate(_Update):
    not_null = ("amount", "date", "category", "status")

    amount: Optional[Decimal] = Field(default=None, ge=0)
    date: Optional[datetime] = None
    category: Optional[ExpenseCategory] = None
    status: Optional[PaymentStatus] = None
    description: Optional[str] = None


class Expense(StoredRecord):
    amount: Decimal
    date: datetime
    category: ExpenseCategory = ExpenseCategory.OTHER
    status: PaymentStatus = PaymentStatus.PENDING
    description: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def _normalize_date(cls, v: Any) -> datetime:
        return to_instant(v)

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, v: Any) -> Any:
        return v or PaymentStatus.PENDING


# =========================================================================
# QUOTES
# =========================================================================

class QuoteFile(BaseModel):
    file_url: str
    file_name: str = ""

    @field_validator("file_name", mode="before")
    @classmethod
    def _name_text(cls, v: Any) -> str:
        return v or ""



class QuoteCreate(_Input):
    reference: str
    task_id: str
    contact_id: str
    status: QuoteStatus = QuoteStatus.DRAFT
    notes: Optional[str] = None
    quote_date: datetime
    valid_until: Optional[datetime] = None
    received_at: Optional[datetime] = None
    files: List[QuoteFile] = Field(default_factory=list)

    @field_validator("reference", "task_id", "contact_id")
    @classmethod
    def _required_text(cls, v: str, info) -> str:
        return _non_blank(v, info.field_name)


class QuoteUpdate(_Update):
    not_null = ("reference", "task_id", "contact_id", "status", "quote_date")

    reference: Optional[str] = None
    task_id: Optional[str] = None
    contact_id: Optional[str] = None
    status: Optional[QuoteStatus] = None
    notes: Optional[str] = None
    quote_date: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    received_at: Optional[datetime] = None
    files: Optional[List[QuoteFile]] = None

    @field_validator("reference", "task_id", "contact_id")
    @classmethod
    def _text_not_blank(cls, v: Optional[str], info) -> Optional[str]:
        return _non_blank(v, info.field_name)


class Quote(StoredRecord):
    reference: str
    task_id: str
    contact_id: str
    status: QuoteStatus = QuoteStatus.DRAFT
    notes: Optional[str] = None
    quote_date: datetime
    valid_until: Optional[datetime] = None
    received_at: Optional[datetime] = None
    files: List[QuoteFile] = Field(default_factory=list)

    @field_validator("quote_date", mode="before")
    @classmethod
    def _normalize_quote_date(cls, v: Any) -> datetime:
        return to_instant(v)

    @field_validator("valid_until", "received_at", mode="before")
    @classmethod
    def _normalize_optional_dates(cls, v: Any) -> Optional[datetime]:
        return to_optional_instant(v)

    @model_validator(mode="before")
    @classmethod
    def _fold_legacy_file(cls, data: Any) -> Any:
        # Rows written before the files list existed carry a single file_url/file_name pair
        if isinstance(data, dict) and not data.get("files") and data.get("file_url"):
            data = dict(data)
            data["files"] = [{"file_url": data["file_url"], "file_name": data.get("file_name") or ""}]
        return data

    @field_validator("files", mode="before")
    @classmethod
    def _files_list(cls, v: Any) -> Any:
        return v or []


# =========================================================================
# ATTACHMENT INTENTS
# =========================================================================

class AttachmentIntent(StoredRecord):
    path: str
    quote_id: Optional[str] = None
    status: IntentStatus = IntentStatus.PENDING


class AttachmentIntentCreate(_Input):
    path: str
    quote_id: Optional[str] = None
    status: IntentStatus = IntentStatus.PENDING


class AttachmentIntentUpdate(_Update):
    not_null = ("status",)

    quote_id: Optional[str] = None
    status: Optional[IntentStatus] = None
