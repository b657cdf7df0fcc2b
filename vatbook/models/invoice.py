import enum
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from vatbook.core.database import Base
from vatbook.utils.identifiers import generate_custom_id


class InvoiceStatus(str, enum.Enum):
    draft = "draft"
    unpaid = "unpaid"
    partially_paid = "partially_paid"
    paid = "paid"
    overdue = "overdue"


class Invoice(Base):
    """
    Sales invoice. Line items live in a JSON column as
    {description, quantity, unit_price, line_total} with decimal strings.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("owner_id", "invoice_number", name="uq_invoices_owner_number"),
    )

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("IVC"))
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Weak reference: the customer may be deleted while invoices remain
    customer_id = Column(String(20), nullable=False, index=True)

    invoice_number = Column(String(20), nullable=False)
    invoice_date = Column(Date, nullable=False, server_default=func.current_date())
    due_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    line_items = Column(JSON, nullable=False, default=list)
    apply_vat = Column(Boolean, nullable=False, default=True)
    subtotal = Column(Numeric(15, 2), nullable=False, default=0)
    vat_amount = Column(Numeric(15, 2), nullable=False, default=0)
    total_amount = Column(Numeric(15, 2), nullable=False, default=0)
    amount_paid = Column(Numeric(15, 2), nullable=False, default=0)
    status = Column(Enum(InvoiceStatus), nullable=False, default=InvoiceStatus.draft)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="invoices")

    def __repr__(self):
        return f"<Invoice(number='{self.invoice_number}', status='{self.status}')>"
