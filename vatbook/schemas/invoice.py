from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime

from vatbook.models.invoice import InvoiceStatus


class LineItemIn(BaseModel):
    """line_total is always recomputed server side."""
    description: str = Field("", max_length=500)
    quantity: Decimal = Field(..., ge=0)
    unit_price: Decimal = Field(..., ge=0)


class LineItemOut(BaseModel):
    description: str
    quantity: Decimal
    unit_price: Decimal
    line_total: Decimal


class InvoiceCreate(BaseModel):
    customer_id: str = Field(..., min_length=1)
    invoice_date: Optional[date] = None  # default to today in service
    due_date: Optional[date] = None
    notes: Optional[str] = None
    line_items: List[LineItemIn] = Field(..., min_length=1)
    apply_vat: bool = True
    send: bool = False  # false: save as draft, true: issue as unpaid


class InvoiceUpdate(BaseModel):
    """Draft edits; omitted fields are left as they are."""
    customer_id: Optional[str] = Field(None, min_length=1)
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None
    line_items: Optional[List[LineItemIn]] = Field(None, min_length=1)
    apply_vat: Optional[bool] = None


class PaymentUpdate(BaseModel):
    amount_paid: Decimal = Field(..., ge=0)


class TotalsPreviewRequest(BaseModel):
    line_items: List[LineItemIn] = Field(default_factory=list)
    apply_vat: bool = True


class TotalsPreviewResponse(BaseModel):
    line_items: List[LineItemOut]
    subtotal: Decimal
    vat_amount: Decimal
    total_amount: Decimal
    vat_rate: Decimal


class InvoiceResponse(BaseModel):
    id: str
    customer_id: str
    customer_name: Optional[str] = None
    invoice_number: str
    invoice_date: date
    due_date: Optional[date] = None
    notes: Optional[str] = None
    line_items: List[LineItemOut]
    apply_vat: bool
    subtotal: Decimal
    vat_amount: Decimal
    total_amount: Decimal
    amount_paid: Decimal
    outstanding: Decimal
    status: InvoiceStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InvoiceListResponse(BaseModel):
    total: int
    invoices: List[InvoiceResponse]


class InvoiceMonthGroup(BaseModel):
    month: str
    invoices: List[InvoiceResponse]


class InvoiceGroupedResponse(BaseModel):
    total: int
    total_paid: Decimal
    total_outstanding: Decimal
    total_invoiced: Decimal
    groups: List[InvoiceMonthGroup]
