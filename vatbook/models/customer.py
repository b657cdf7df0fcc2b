from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from vatbook.core.database import Base
from vatbook.utils.identifiers import generate_custom_id


class Customer(Base):
    """A customer billed by one owner; email is unique per owner."""
    __tablename__ = "customers"
    __table_args__ = (
        UniqueConstraint("owner_id", "email", name="uq_customers_owner_email"),
    )

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("CUS"))
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)
    tax_id = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="customers")

    def __repr__(self):
        return f"<Customer(id='{self.id}', email='{self.email}')>"
