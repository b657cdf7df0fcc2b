from decimal import Decimal
from pydantic import BaseModel
from typing import List, Optional


class DashboardResponse(BaseModel):
    total_revenue: Decimal
    total_vat_collected: Decimal
    total_vat_paid: Decimal
    payable_vat: Decimal  # negative means a VAT credit
    total_outstanding: Decimal
    total_invoiced: Decimal
    invoice_count: int
    paid_invoices: int
    unpaid_invoices: int
    draft_invoices: int
    overdue_invoices: int
    total_expenses: Decimal
    approved_expenses: Decimal
    pending_expenses: int
    expense_count: int
    profit: Decimal


class CustomerRevenueRow(BaseModel):
    customer_id: Optional[str] = None
    customer_name: str
    total_invoiced: Decimal
    total_paid: Decimal
    outstanding: Decimal
    invoice_count: int


class CustomerRevenueResponse(BaseModel):
    customers: List[CustomerRevenueRow]
