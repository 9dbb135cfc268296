"""
Employee profile CRUD API endpoints (HR data and payroll).
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from creche.api.schemas import EmployeeProfileCreate, EmployeeProfileUpdate, EmployeeProfileResponse
from creche.api.auth import require_admin
from creche.db.connection import get_db_session
from creche.db.models import User
from creche.db.repositories import EmployeeProfileRepository


router = APIRouter()


def _get_employee_or_404(repo: EmployeeProfileRepository, employee_id: int):
    employee = repo.get_by_id(employee_id)
    if not employee:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Employee {employee_id} not found",
        )
    return employee


@router.post("/", response_model=EmployeeProfileResponse, status_code=status.HTTP_201_CREATED)
def create_employee(
    employee: EmployeeProfileCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    repo = EmployeeProfileRepository(db)

    try:
        new_employee = repo.create(**employee.model_dump())
        db.commit()
        db.refresh(new_employee)
        return new_employee
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create employee: {str(e)}",
        )


@router.get("/", response_model=List[EmployeeProfileResponse])
def list_employees(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    repo = EmployeeProfileRepository(db)
    return repo.get_all(limit=500, order_by=repo.model.full_name)


@router.get("/payroll")
def get_payroll_total(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """Monthly total of net salaries."""
    return {"total_net_salaries": round(EmployeeProfileRepository(db).total_net_salaries(), 2)}


@router.get("/{employee_id}", response_model=EmployeeProfileResponse)
def get_employee(
    employee_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    return _get_employee_or_404(EmployeeProfileRepository(db), employee_id)


@router.put("/{employee_id}", response_model=EmployeeProfileResponse)
def update_employee(
    employee_id: int,
    employee_update: EmployeeProfileUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    repo = EmployeeProfileRepository(db)
    _get_employee_or_404(repo, employee_id)

    try:
        update_data = {k: v for k, v in employee_update.model_dump().items() if v is not None}
        updated = repo.update(employee_id, **update_data)
        db.commit()
        db.refresh(updated)
        return updated
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update employee: {str(e)}",
        )


@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_employee(
    employee_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    repo = EmployeeProfileRepository(db)
    _get_employee_or_404(repo, employee_id)

    try:
        repo.delete(employee_id)
        db.commit()
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete employee: {str(e)}",
        )
