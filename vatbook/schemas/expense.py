from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import date, datetime

from vatbook.models.expense import ExpenseCategory, ExpenseStatus


class ExpenseCreate(BaseModel):
    """Date defaults to today on server if not provided."""
    description: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., gt=0)
    category: ExpenseCategory = ExpenseCategory.other
    expense_date: Optional[date] = None
    apply_vat: bool = True
    notes: Optional[str] = None


class ExpenseUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1, max_length=255)
    amount: Optional[Decimal] = Field(None, gt=0)
    category: Optional[ExpenseCategory] = None
    expense_date: Optional[date] = None
    apply_vat: Optional[bool] = None
    notes: Optional[str] = None


class ExpenseStatusUpdate(BaseModel):
    status: ExpenseStatus


class ExpenseResponse(BaseModel):
    id: str
    description: str
    amount: Decimal
    category: ExpenseCategory
    expense_date: date
    apply_vat: bool
    vat_amount: Decimal
    total_amount: Decimal
    notes: Optional[str] = None
    status: ExpenseStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ExpenseListResponse(BaseModel):
    total: int
    total_amount: Decimal
    expenses: List[ExpenseResponse]


class ExpenseMonthGroup(BaseModel):
    month: str
    expenses: List[ExpenseResponse]


class ExpenseGroupedResponse(BaseModel):
    total: int
    groups: List[ExpenseMonthGroup]


class ExpenseSummaryResponse(BaseModel):
    count: int
    total_expenses: Decimal
    approved_amount: Decimal
    approved_vat: Decimal
    pending_count: int
    counts_by_status: Dict[str, int]
