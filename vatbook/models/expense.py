import enum
from sqlalchemy import Boolean, Column, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from vatbook.core.database import Base
from vatbook.utils.identifiers import generate_custom_id


class ExpenseCategory(str, enum.Enum):
    office_supplies = "office_supplies"
    utilities = "utilities"
    travel = "travel"
    meals = "meals"
    equipment = "equipment"
    services = "services"
    other = "other"


CATEGORY_LABELS = {
    ExpenseCategory.office_supplies: "Office Supplies",
    ExpenseCategory.utilities: "Utilities",
    ExpenseCategory.travel: "Travel",
    ExpenseCategory.meals: "Meals",
    ExpenseCategory.equipment: "Equipment",
    ExpenseCategory.services: "Services",
    ExpenseCategory.other: "Other",
}


class ExpenseStatus(str, enum.Enum):
    draft = "draft"
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class Expense(Base):
    """Business expense; VAT on approved expenses offsets VAT collected."""
    __tablename__ = "expenses"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("EXP"))
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(String(255), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    category = Column(Enum(ExpenseCategory), nullable=False, default=ExpenseCategory.other)
    expense_date = Column(Date, nullable=False, server_default=func.current_date())
    apply_vat = Column(Boolean, nullable=False, default=True)
    vat_amount = Column(Numeric(15, 2), nullable=False, default=0)
    total_amount = Column(Numeric(15, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)
    status = Column(Enum(ExpenseStatus), nullable=False, default=ExpenseStatus.draft)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="expenses")
