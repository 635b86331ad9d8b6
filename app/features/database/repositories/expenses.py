"""Expenses Repository - project expense ledger, newest expense date first."""

from decimal import Decimal
from typing import Dict, List, Optional

from app.features.database.models import (
    Expense,
    ExpenseCategory,
    ExpenseCreate,
    ExpenseUpdate,
    PaymentStatus,
)
from app.features.database.repositories.base import BaseRepository


class ExpensesRepository(BaseRepository[Expense]):
    """Repository for expense operations."""

    table = "expenses"
    entity = "expense"
    record_model = Expense
    create_model = ExpenseCreate
    update_model = ExpenseUpdate

    def list_query(
        self,
        category: Optional[str] = None,
        status: Optional[str] = None,
        limit: Optional[int] = None,
    ):
        query = self.query()
        if category:
            query = query.eq("category", ExpenseCategory(category).value)
        if status:
            query = query.eq("status", PaymentStatus(status).value)
        query = query.order("date", desc=True)
        if limit:
            query = query.limit(limit)
        return query

    async def list(
        self,
        category: Optional[str] = None,
        status: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Expense]:
        """Get expenses ordered by expense date, most recent first."""
        return await self.fetch(self.list_query(category=category, status=status, limit=limit))

    async def totals_by_status(self) -> Dict[str, Decimal]:
        """Sum of amounts per payment status (every status present, zero if none)."""
        totals = {status.value: Decimal("0") for status in PaymentStatus}
        for expense in await self.list():
            totals[expense.status.value] += expense.amount
        return totals
