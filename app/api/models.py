"""Request and response bodies that are not plain entity records."""

from decimal import Decimal
from typing import Dict, Optional

from pydantic import BaseModel, Field

from app.features.database.models import CommunicationStatus


class StatusResponse(BaseModel):
    status: str
    id: Optional[str] = None


class TaskProgressRequest(BaseModel):
    completion_percentage: int = Field(..., ge=0, le=100)


class MoveCommunicationRequest(BaseModel):
    status: CommunicationStatus


class ExpenseTotalsResponse(BaseModel):
    totals: Dict[str, Decimal]


class ReferenceHintResponse(BaseModel):
    file_name: str
    reference: Optional[str] = None
