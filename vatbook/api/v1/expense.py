from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Optional

from vatbook.core.dependencies import get_db, get_current_user
from vatbook.core.exceptions import VATBookError
from vatbook.models.expense import ExpenseCategory, ExpenseStatus
from vatbook.models.user import User
from vatbook.schemas.expense import (
    ExpenseCreate,
    ExpenseUpdate,
    ExpenseStatusUpdate,
    ExpenseResponse,
    ExpenseListResponse,
    ExpenseGroupedResponse,
    ExpenseMonthGroup,
    ExpenseSummaryResponse,
)
from vatbook.services.expense_service import (
    create_expense,
    delete_expense,
    get_all_expenses,
    get_expense_by_id,
    update_expense,
    update_expense_status,
)
from vatbook.services.reporting import expense_summary, group_by_month
from vatbook.logger_config import logger

router = APIRouter()


@router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
def create_single_expense(
    data: ExpenseCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create an expense as a draft; date defaults to today if not provided."""
    try:
        expense = create_expense(
            db,
            owner_id=current_user.id,
            description=data.description,
            amount=data.amount,
            category=data.category,
            expense_date=data.expense_date,
            apply_vat=data.apply_vat,
            notes=data.notes,
        )
        return ExpenseResponse.model_validate(expense)
    except VATBookError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("", response_model=ExpenseListResponse)
def list_expenses(
    db: Session = Depends(get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    expense_status: Optional[ExpenseStatus] = Query(None, alias="status"),
    category: Optional[ExpenseCategory] = Query(None),
    vat_only: bool = Query(False),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    search: Optional[str] = Query(None, description="Matches description or category"),
    current_user: User = Depends(get_current_user),
):
    """List expenses, newest first, with status/category/VAT/date/search filters."""
    rows, total_count, total_amount = get_all_expenses(
        db,
        current_user.id,
        skip=skip,
        limit=limit,
        status=expense_status,
        category=category,
        vat_only=vat_only,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )
    return ExpenseListResponse(
        total=total_count,
        total_amount=total_amount,
        expenses=[ExpenseResponse.model_validate(r) for r in rows],
    )


@router.get("/summary", response_model=ExpenseSummaryResponse)
def get_expense_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Totals, approved amount and VAT, and counts per status."""
    rows, _, _ = get_all_expenses(db, current_user.id, limit=None)
    return ExpenseSummaryResponse(**expense_summary(rows))


@router.get("/grouped", response_model=ExpenseGroupedResponse)
def list_expenses_by_month(
    db: Session = Depends(get_db),
    expense_status: Optional[ExpenseStatus] = Query(None, alias="status"),
    vat_only: bool = Query(False),
    search: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
):
    """Filtered expenses bucketed by month, newest month first."""
    rows, total_count, _ = get_all_expenses(
        db,
        current_user.id,
        limit=None,
        status=expense_status,
        vat_only=vat_only,
        search=search,
    )
    return ExpenseGroupedResponse(
        total=total_count,
        groups=[
            ExpenseMonthGroup(
                month=group.label,
                expenses=[ExpenseResponse.model_validate(e) for e in group.documents],
            )
            for group in group_by_month(rows, date_field="expense_date")
        ],
    )


@router.get("/{expense_id}", response_model=ExpenseResponse)
def get_expense(
    expense_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    expense = get_expense_by_id(db, current_user.id, expense_id)
    if not expense:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")
    return ExpenseResponse.model_validate(expense)


@router.put("/{expense_id}", response_model=ExpenseResponse)
def update_expense_route(
    expense_id: str,
    data: ExpenseUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        expense = update_expense(db, current_user.id, expense_id, data.model_dump(exclude_unset=True))
        return ExpenseResponse.model_validate(expense)
    except VATBookError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.patch("/{expense_id}/status", response_model=ExpenseResponse)
def update_expense_status_route(
    expense_id: str,
    data: ExpenseStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Move an expense to any of draft / pending / approved / rejected."""
    try:
        expense = update_expense_status(db, current_user.id, expense_id, data.status)
        return ExpenseResponse.model_validate(expense)
    except VATBookError:
        raise
    except ValueError as e:
        logger.error(f"Error updating expense status: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense_route(
    expense_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        success = delete_expense(db, current_user.id, expense_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    if not success:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")

    logger.info(f"expense {expense_id} deleted by {current_user.email}")
    return None
