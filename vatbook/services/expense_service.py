from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from vatbook.core.config import settings
from vatbook.core.exceptions import NotFound
from vatbook.logger_config import logger
from vatbook.models.expense import CATEGORY_LABELS, Expense, ExpenseCategory, ExpenseStatus
from vatbook.services import calculator


def _today() -> date:
    return date.today()


def _apply_totals(expense: Expense, amount, apply_vat: bool) -> None:
    policy = settings.AMOUNT_POLICY
    totals = calculator.compute_expense_totals(
        amount, apply_vat, vat_rate=settings.VAT_RATE, policy=policy
    )
    expense.amount = calculator.round2(calculator.to_amount(amount, policy))
    expense.apply_vat = apply_vat
    expense.vat_amount = totals.vat
    expense.total_amount = totals.total


def _categories_matching(term: str) -> List[ExpenseCategory]:
    term = term.lower()
    return [category for category, label in CATEGORY_LABELS.items() if term in label.lower()]


def create_expense(
    db: Session,
    owner_id: int,
    description: str,
    amount: Decimal,
    category: ExpenseCategory = ExpenseCategory.other,
    expense_date: Optional[date] = None,
    apply_vat: bool = True,
    notes: Optional[str] = None,
) -> Expense:
    """Create an expense as a draft; date defaults to today. VAT is worked out here."""
    expense = Expense(
        owner_id=owner_id,
        description=description,
        category=category,
        expense_date=expense_date or _today(),
        notes=notes,
        status=ExpenseStatus.draft,
    )
    try:
        _apply_totals(expense, amount, apply_vat)
        db.add(expense)
        db.commit()
        db.refresh(expense)
        logger.info(f"Expense {expense.id} created: amount={expense.amount}, vat={expense.vat_amount}")
        return expense
    except ValueError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.exception("Error creating expense")
        raise ValueError("Failed to create expense.")


def get_expense_by_id(db: Session, owner_id: int, expense_id: str) -> Optional[Expense]:
    return (
        db.query(Expense)
        .filter(Expense.id == expense_id, Expense.owner_id == owner_id)
        .first()
    )


def get_all_expenses(
    db: Session,
    owner_id: int,
    skip: int = 0,
    limit: Optional[int] = 50,
    status: Optional[ExpenseStatus] = None,
    category: Optional[ExpenseCategory] = None,
    vat_only: bool = False,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
) -> Tuple[List[Expense], int, Decimal]:
    """List expenses with filters: status tab, category, VAT only, date range, search (description, category). Returns (rows, total_count, total_amount)."""
    query = db.query(Expense).filter(Expense.owner_id == owner_id)

    if status is not None:
        query = query.filter(Expense.status == status)
    if category is not None:
        query = query.filter(Expense.category == category)
    if vat_only:
        query = query.filter(Expense.apply_vat.is_(True))
    if start_date is not None:
        query = query.filter(Expense.expense_date >= start_date)
    if end_date is not None:
        query = query.filter(Expense.expense_date <= end_date)
    if search and search.strip():
        term = search.strip()
        conditions = [Expense.description.ilike(f"%{term}%")]
        matching = _categories_matching(term)
        if matching:
            conditions.append(Expense.category.in_(matching))
        query = query.filter(or_(*conditions))

    total_count = query.count()
    total_row = query.with_entities(func.coalesce(func.sum(Expense.total_amount), 0)).first()
    total_amount = calculator.round2(total_row[0]) if total_row else calculator.ZERO

    query = query.order_by(Expense.expense_date.desc(), Expense.created_at.desc()).offset(skip)
    if limit is not None:
        query = query.limit(limit)
    return query.all(), total_count, total_amount


def update_expense(db: Session, owner_id: int, expense_id: str, changes: Dict) -> Expense:
    """Partial update; VAT and total are recomputed when amount or apply_vat changes."""
    expense = get_expense_by_id(db, owner_id, expense_id)
    if not expense:
        raise NotFound("Expense", expense_id)

    try:
        for field in ("description", "category", "expense_date"):
            if changes.get(field) is not None:
                setattr(expense, field, changes[field])
        if "notes" in changes:
            expense.notes = changes["notes"] or None

        if changes.get("amount") is not None or changes.get("apply_vat") is not None:
            amount = changes["amount"] if changes.get("amount") is not None else expense.amount
            apply_vat = changes["apply_vat"] if changes.get("apply_vat") is not None else expense.apply_vat
            _apply_totals(expense, amount, apply_vat)

        db.commit()
        db.refresh(expense)
        logger.info(f"Expense {expense.id} updated: total={expense.total_amount}")
        return expense
    except ValueError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.exception(f"Error updating expense {expense_id}")
        raise ValueError("Failed to update expense.")


def update_expense_status(db: Session, owner_id: int, expense_id: str, status: ExpenseStatus) -> Expense:
    """Any status can be set from any other; there is no approval ordering."""
    expense = get_expense_by_id(db, owner_id, expense_id)
    if not expense:
        raise NotFound("Expense", expense_id)

    old_status = expense.status
    expense.status = status
    try:
        db.commit()
        db.refresh(expense)
        logger.info(f"Expense {expense.id} status: {old_status.value} → {expense.status.value}")
        return expense
    except Exception as e:
        db.rollback()
        logger.exception(f"Error updating expense status {expense_id}")
        raise ValueError("Failed to update expense status.")


def delete_expense(db: Session, owner_id: int, expense_id: str) -> bool:
    expense = get_expense_by_id(db, owner_id, expense_id)
    if not expense:
        return False

    db.delete(expense)
    try:
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting expense: {str(e)}")
        raise ValueError("Failed to delete expense.")
