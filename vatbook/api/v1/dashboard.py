from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from vatbook.core.dependencies import get_db, get_current_user
from vatbook.models.user import User
from vatbook.schemas.report import CustomerRevenueResponse, CustomerRevenueRow, DashboardResponse
from vatbook.services.customer_service import get_customer_map
from vatbook.services.expense_service import get_all_expenses
from vatbook.services.invoice_service import get_all_invoices
from vatbook.services.reporting import dashboard_summary, revenue_by_customer

router = APIRouter()


@router.get("", response_model=DashboardResponse)
def get_dashboard(
    as_of: Optional[date] = Query(None, description="Date used for the overdue count; defaults to today"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Revenue, VAT collected / paid / payable, outstanding balance, invoice
    and expense counts and profit, folded from all of the user's records.
    """
    invoices, _ = get_all_invoices(db, current_user.id, limit=None)
    expenses, _, _ = get_all_expenses(db, current_user.id, limit=None)
    return DashboardResponse(**dashboard_summary(invoices, expenses, today=as_of))


@router.get("/customers", response_model=CustomerRevenueResponse)
def get_revenue_by_customer(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    invoices, _ = get_all_invoices(db, current_user.id, limit=None)
    rows = revenue_by_customer(invoices, get_customer_map(db, current_user.id))
    return CustomerRevenueResponse(customers=[CustomerRevenueRow(**row) for row in rows])
