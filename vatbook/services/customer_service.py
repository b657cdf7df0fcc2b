from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import or_
from typing import Optional, List
from vatbook.models.customer import Customer
from vatbook.logger_config import logger

DUPLICATE_EMAIL = "A customer with this email already exists"


def get_customer_by_id(db: Session, owner_id: int, customer_id: str) -> Optional[Customer]:
    """Get one of the owner's customers by ID."""
    return (
        db.query(Customer)
        .filter(Customer.id == customer_id, Customer.owner_id == owner_id)
        .first()
    )


def get_customer_by_email(db: Session, owner_id: int, email: str) -> Optional[Customer]:
    return (
        db.query(Customer)
        .filter(Customer.email == email.strip().lower(), Customer.owner_id == owner_id)
        .first()
    )


def get_all_customers(
    db: Session,
    owner_id: int,
    skip: int = 0,
    limit: int = 100,
    search: Optional[str] = None
) -> tuple[List[Customer], int]:
    """Get the owner's customers, newest first, with optional search."""
    query = db.query(Customer).filter(Customer.owner_id == owner_id)

    if search:
        search_term = f"%{search}%"
        query = query.filter(
            or_(
                Customer.name.ilike(search_term),
                Customer.email.ilike(search_term),
                Customer.phone.ilike(search_term),
            )
        )

    total = query.count()
    customers = (
        query.order_by(Customer.created_at.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )

    return customers, total


def get_customer_map(db: Session, owner_id: int) -> dict:
    """All of the owner's customers keyed by id (for name lookups)."""
    return {c.id: c for c in db.query(Customer).filter(Customer.owner_id == owner_id).all()}


def create_customer(
    db: Session,
    owner_id: int,
    name: str,
    email: str,
    phone: str,
    tax_id: Optional[str] = None,
) -> Customer:
    """Create a new customer."""
    email = email.strip().lower()
    if get_customer_by_email(db, owner_id, email):
        raise ValueError(DUPLICATE_EMAIL)

    customer = Customer(
        owner_id=owner_id,
        name=name,
        email=email,
        phone=phone,
        tax_id=tax_id or None,
    )
    db.add(customer)

    try:
        db.commit()
        db.refresh(customer)
        return customer
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating customer: {str(e)}")
        raise ValueError(DUPLICATE_EMAIL)


def update_customer(
    db: Session,
    owner_id: int,
    customer_id: str,
    name: Optional[str] = None,
    email: Optional[str] = None,
    phone: Optional[str] = None,
    tax_id: Optional[str] = None,
) -> Optional[Customer]:
    """Update customer information."""
    customer = get_customer_by_id(db, owner_id, customer_id)
    if not customer:
        return None

    if name is not None:
        customer.name = name
    if email is not None:
        email = email.strip().lower()
        # Check if email is already taken by another customer of this owner
        existing = get_customer_by_email(db, owner_id, email)
        if existing and existing.id != customer_id:
            raise ValueError(DUPLICATE_EMAIL)
        customer.email = email
    if phone is not None:
        customer.phone = phone
    if tax_id is not None:
        customer.tax_id = tax_id or None

    try:
        db.commit()
        db.refresh(customer)
        return customer
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error updating customer: {str(e)}")
        raise ValueError("Failed to update customer.")


def delete_customer(db: Session, owner_id: int, customer_id: str) -> bool:
    """
    Delete a customer. Invoices keep their customer_id and are reported
    under "Unknown customer" afterwards.
    """
    customer = get_customer_by_id(db, owner_id, customer_id)
    if not customer:
        return False

    db.delete(customer)
    try:
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting customer: {str(e)}")
        raise ValueError("Failed to delete customer.")
