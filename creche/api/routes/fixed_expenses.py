"""
Fixed expense CRUD API endpoints.

Active fixed expenses are part of the monthly cost in the forecast.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from creche.api.schemas import FixedExpenseCreate, FixedExpenseUpdate, FixedExpenseResponse
from creche.api.auth import require_admin
from creche.core.engine import forecast
from creche.db.connection import get_db_session
from creche.db.models import User
from creche.db.repositories import FixedExpenseRepository


router = APIRouter()


@router.post("/", response_model=FixedExpenseResponse, status_code=status.HTTP_201_CREATED)
def create_fixed_expense(
    expense: FixedExpenseCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """Create a new fixed expense."""
    repo = FixedExpenseRepository(db)

    try:
        new_expense = repo.create(**expense.model_dump())
        db.commit()
        db.refresh(new_expense)
        return new_expense
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create fixed expense: {str(e)}",
        )


@router.get("/", response_model=List[FixedExpenseResponse])
def list_fixed_expenses(
    active_only: bool = False,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """List fixed expenses."""
    repo = FixedExpenseRepository(db)
    if active_only:
        return repo.get_active()
    return repo.get_all(limit=500, order_by=repo.model.name)


@router.get("/summary")
def get_fixed_expense_summary(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """Monthly total of active fixed expenses and its split per category."""
    expenses = FixedExpenseRepository(db).get_active()
    rows = [{"category": e.category, "value": e.value, "is_active": e.is_active} for e in expenses]
    by_category = forecast.expenses_by_category(rows)
    return {
        "total": round(sum(by_category.values()), 2),
        "by_category": {k: round(v, 2) for k, v in by_category.items()},
    }


@router.get("/{expense_id}", response_model=FixedExpenseResponse)
def get_fixed_expense(
    expense_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """Get a single fixed expense by ID."""
    expense = FixedExpenseRepository(db).get_by_id(expense_id)
    if not expense:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Fixed expense {expense_id} not found",
        )
    return expense


@router.put("/{expense_id}", response_model=FixedExpenseResponse)
def update_fixed_expense(
    expense_id: int,
    expense_update: FixedExpenseUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """Update an existing fixed expense."""
    repo = FixedExpenseRepository(db)
    if not repo.get_by_id(expense_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Fixed expense {expense_id} not found",
        )

    try:
        update_data = {k: v for k, v in expense_update.model_dump().items() if v is not None}
        updated = repo.update(expense_id, **update_data)
        db.commit()
        db.refresh(updated)
        return updated
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update fixed expense: {str(e)}",
        )


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_fixed_expense(
    expense_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """Delete a fixed expense."""
    repo = FixedExpenseRepository(db)
    if not repo.get_by_id(expense_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Fixed expense {expense_id} not found",
        )

    try:
        repo.delete(expense_id)
        db.commit()
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete fixed expense: {str(e)}",
        )
