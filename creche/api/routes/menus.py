"""
Weekly menu API endpoints and nutrition analysis.

Each menu row is one weekday of one week for one age group. Nutrition data
lives in the row's JSON column as ``{meal: totals, "<meal>_ingredients":
[...]}``; meal totals are recomputed whenever a meal's ingredients change.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from creche.api.schemas import (
    MealIngredients,
    MenuCreate,
    MenuUpdate,
    MenuResponse,
    WeekNutritionResponse,
)
from creche.api.auth import get_current_user, require_staff
from creche.core.constants import MenuType
from creche.core.engine import nutrition
from creche.db.connection import get_db_session
from creche.db.models import User
from creche.db.repositories import MenuRepository
from creche.utils.date_utils import week_start as monday_of


router = APIRouter()


def _get_menu_or_404(repo: MenuRepository, menu_id: int):
    menu = repo.get_by_id(menu_id)
    if not menu:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Menu {menu_id} not found",
        )
    return menu


@router.post("/", response_model=MenuResponse, status_code=status.HTTP_201_CREATED)
def create_menu(
    menu: MenuCreate,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session),
):
    """Create one day of a weekly menu."""
    repo = MenuRepository(db)
    if repo.get_day(menu.week_start, menu.day_of_week, menu.menu_type):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A menu already exists for this day and menu type",
        )

    try:
        new_menu = repo.create(nutrition_data={}, **menu.model_dump())
        db.commit()
        db.refresh(new_menu)
        return new_menu
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create menu: {str(e)}",
        )


@router.get("/", response_model=List[MenuResponse])
def get_week_menu(
    week_start: date,
    menu_type: Optional[MenuType] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """Menu days of the week containing ``week_start``."""
    return MenuRepository(db).get_week(monday_of(week_start), menu_type.value if menu_type else None)


@router.get("/nutrition", response_model=WeekNutritionResponse)
def get_week_nutrition(
    week_start: date,
    menu_type: MenuType,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """
    Nutrient totals per day, the weekly average and the comparison with the
    reference targets of the age group, rounded for display.
    """
    monday = monday_of(week_start)
    menus = MenuRepository(db).get_week(monday, menu_type.value)

    days = []
    totals_per_day = []
    for menu in menus:
        totals = nutrition.day_totals(menu.nutrition_data or {})
        totals_per_day.append(totals)
        days.append({
            "day_of_week": menu.day_of_week,
            "menu_id": menu.id,
            "totals": nutrition.round_for_display(totals) if totals else None,
        })

    average = nutrition.period_average(totals_per_day)
    return {
        "week_start": monday,
        "menu_type": menu_type,
        "days": days,
        "days_with_data": sum(1 for totals in totals_per_day if totals),
        "average": nutrition.round_for_display(average),
        "targets": nutrition.compare_to_targets(average, menu_type.value),
    }


@router.get("/{menu_id}", response_model=MenuResponse)
def get_menu(
    menu_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    return _get_menu_or_404(MenuRepository(db), menu_id)


@router.put("/{menu_id}", response_model=MenuResponse)
def update_menu(
    menu_id: int,
    menu_update: MenuUpdate,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session),
):
    """Update the meal descriptions of a menu day."""
    repo = MenuRepository(db)
    _get_menu_or_404(repo, menu_id)

    try:
        update_data = {k: v for k, v in menu_update.model_dump().items() if v is not None}
        updated = repo.update(menu_id, **update_data)
        db.commit()
        db.refresh(updated)
        return updated
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update menu: {str(e)}",
        )


@router.put("/{menu_id}/meals/{meal}", response_model=MenuResponse)
def set_meal_ingredients(
    menu_id: int,
    meal: str,
    body: MealIngredients,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session),
):
    """Store the ingredient list of one meal and recompute its totals."""
    if meal not in nutrition.MEAL_FIELDS:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown meal '{meal}'. Expected one of: {', '.join(nutrition.MEAL_FIELDS)}",
        )
    repo = MenuRepository(db)
    menu = _get_menu_or_404(repo, menu_id)

    ingredients = [ingredient.model_dump() for ingredient in body.ingredients]
    # Reassign the dict so the JSON column is flagged as changed
    data = dict(menu.nutrition_data or {})
    data[f"{meal}_ingredients"] = ingredients
    data[meal] = nutrition.aggregate(ingredients)

    try:
        menu.nutrition_data = data
        db.commit()
        db.refresh(menu)
        return menu
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update meal: {str(e)}",
        )


@router.delete("/{menu_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_menu(
    menu_id: int,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session),
):
    repo = MenuRepository(db)
    _get_menu_or_404(repo, menu_id)

    try:
        repo.delete(menu_id)
        db.commit()
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete menu: {str(e)}",
        )
