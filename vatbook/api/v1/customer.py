from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Optional
from vatbook.core.dependencies import get_db, get_current_user
from vatbook.models.user import User
from vatbook.services.customer_service import (
    get_customer_by_id,
    get_all_customers,
    create_customer,
    update_customer,
    delete_customer
)
from vatbook.services.invoice_service import get_all_invoices
from vatbook.services.reporting import customer_summary
from vatbook.schemas.customer import (
    CustomerCreate,
    CustomerUpdate,
    CustomerResponse,
    CustomerListResponse,
    CustomerSummaryResponse,
)
from vatbook.logger_config import logger

router = APIRouter()


@router.get("", response_model=CustomerListResponse)
def get_customers(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=100),
    search: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Get the current user's customers with optional search filtering.
    """
    customers, total = get_all_customers(db, current_user.id, skip=skip, limit=limit, search=search)
    return CustomerListResponse(
        total=total,
        customers=[CustomerResponse.model_validate(c) for c in customers]
    )


@router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(
    customer_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    customer = get_customer_by_id(db, current_user.id, customer_id)
    if not customer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found"
        )
    return CustomerResponse.model_validate(customer)


@router.get("/{customer_id}/summary", response_model=CustomerSummaryResponse)
def get_customer_summary(
    customer_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Invoiced, paid and outstanding totals for one customer."""
    customer = get_customer_by_id(db, current_user.id, customer_id)
    if not customer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found"
        )

    invoices, _ = get_all_invoices(db, current_user.id, limit=None, customer_id=customer_id)
    return CustomerSummaryResponse(
        customer=CustomerResponse.model_validate(customer),
        **customer_summary(customer, invoices),
    )


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
def create_customer_route(
    customer_data: CustomerCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        customer = create_customer(
            db=db,
            owner_id=current_user.id,
            name=customer_data.name,
            email=customer_data.email,
            phone=customer_data.phone,
            tax_id=customer_data.tax_id,
        )
        logger.info(f"customer {customer.email} created by {current_user.email}")
        return CustomerResponse.model_validate(customer)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.put("/{customer_id}", response_model=CustomerResponse)
def update_customer_route(
    customer_id: str,
    customer_data: CustomerUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        customer = update_customer(
            db=db,
            owner_id=current_user.id,
            customer_id=customer_id,
            name=customer_data.name,
            email=customer_data.email,
            phone=customer_data.phone,
            tax_id=customer_data.tax_id,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    if not customer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found"
        )

    logger.info(f"customer {customer_id} updated by {current_user.email}")
    return CustomerResponse.model_validate(customer)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer_route(
    customer_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Delete a customer. Their invoices stay and show as "Unknown customer".
    """
    try:
        success = delete_customer(db, current_user.id, customer_id)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )

    if not success:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found"
        )

    logger.info(f"customer {customer_id} deleted by {current_user.email}")
    return None
