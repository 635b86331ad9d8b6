from typing import List, Optional

from fastapi import APIRouter, Depends

from app.api.dependencies import get_db
from app.api.models import ExpenseTotalsResponse
from app.features.database import DatabaseClient
from app.features.database.models import (
    Expense,
    ExpenseCategory,
    ExpenseCreate,
    ExpenseUpdate,
    PaymentStatus,
)
from app.shared.errors import RecordNotFoundError

router = APIRouter(tags=["Expenses"])


async def _get_or_404(db: DatabaseClient, expense_id: str) -> Expense:
    expense = await db.expenses.get(expense_id)
    if expense is None:
        raise RecordNotFoundError("expense", "get", expense_id)
    return expense


@router.post("/expenses", response_model=Expense, status_code=201)
async def create_expense(request: ExpenseCreate, db: DatabaseClient = Depends(get_db)):
    return await db.expenses.create(request)


@router.get("/expenses", response_model=List[Expense])
async def list_expenses(
    category: Optional[ExpenseCategory] = None,
    status: Optional[PaymentStatus] = None,
    db: DatabaseClient = Depends(get_db),
):
    """Expenses, latest expense date first."""
    return await db.expenses.list(
        category=category.value if category else None,
        status=status.value if status else None,
    )


@router.get("/expenses/totals", response_model=ExpenseTotalsResponse)
async def expense_totals(db: DatabaseClient = Depends(get_db)):
    """Amount totals per payment status."""
    return ExpenseTotalsResponse(totals=await db.expenses.totals_by_status())


@router.get("/expenses/{expense_id}", response_model=Expense)
async def get_expense(expense_id: str, db: DatabaseClient = Depends(get_db)):
    return await _get_or_404(db, expense_id)


@router.patch("/expenses/{expense_id}", response_model=Expense)
async def update_expense(expense_id: str, request: ExpenseUpdate, db: DatabaseClient = Depends(get_db)):
    await db.expenses.update(expense_id, request)
    return await _get_or_404(db, expense_id)
