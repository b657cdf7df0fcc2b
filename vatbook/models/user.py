import enum
from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from vatbook.core.database import Base


class BusinessType(str, enum.Enum):
    retail = "retail"
    services = "services"
    manufacturing = "manufacturing"
    technology = "technology"
    food_beverage = "food_beverage"
    healthcare = "healthcare"
    other = "other"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    profile = relationship("UserProfile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    customers = relationship("Customer", back_populates="owner", cascade="all, delete-orphan")
    invoices = relationship("Invoice", back_populates="owner", cascade="all, delete-orphan")
    expenses = relationship("Expense", back_populates="owner", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"


class UserProfile(Base):
    """Business details shown on invoices; one per user."""
    __tablename__ = "user_profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)

    email = Column(String(255), nullable=True)
    full_name = Column(String(255), nullable=True)
    business_name = Column(String(255), nullable=True)
    business_type = Column(Enum(BusinessType), nullable=True)
    phone = Column(String(20), nullable=True)
    location = Column(String(255), nullable=True)
    logo_url = Column(String(500), nullable=True)

    # Foreign key to user
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    user = relationship("User", back_populates="profile")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<UserProfile(user_id={self.user_id}, business='{self.business_name}')>"
