"""
Showcase school endpoints.

The demo account browses a fictional creche (children, billing, menus and
coupons). It can restore that school to its seeded state at any time;
rows created by real accounts are left alone.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from creche.api.auth import get_current_user, is_demo_user
from creche.db.connection import get_db_session
from creche.db.models import User
from creche.scripts.seed_demo_data import delete_demo_data, seed_demo_data

router = APIRouter()


@router.get("/status")
async def demo_status(user: User = Depends(get_current_user)):
    return {"is_demo": is_demo_user(user)}


@router.post("/reset")
async def restore_demo_school(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """Drop the showcase rows and seed them again in one transaction."""
    if not is_demo_user(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the showcase account can restore the demo school.",
        )

    delete_demo_data(db)
    seed_demo_data(db)
    db.commit()
    return {
        "status": "ok",
        "message": "Demo school restored: children, billing, menus and coupons re-seeded.",
    }
