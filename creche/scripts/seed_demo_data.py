"""
Seed demo data for the creche public showcase.

Creates a demo admin (auth_subject="demo") and a small school around it:
children with a demo parent, subscriptions, invoices, fixed expenses,
staff, coupons and this week's menu with nutrition data.
Idempotent: deletes existing demo data and re-seeds from scratch.

Usage:
    python -m creche.scripts.seed_demo_data
"""

import logging
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from creche.core.engine.nutrition import aggregate
from creche.db.connection import get_db_manager
from creche.db.models import (
    Attendance,
    Child,
    DiscountCoupon,
    EmployeeProfile,
    FixedExpense,
    Invoice,
    ParentChild,
    Subscription,
    User,
    WeeklyMenu,
)
from creche.utils.date_utils import add_months, week_start

logger = logging.getLogger(__name__)

DEMO_SUBJECT = "demo"
DEMO_PARENT_SUBJECT = "demo-parent"
DEMO_TAG = "[demo]"
DEMO_CHILDREN = ("Alice Demo", "Bernardo Demo", "Clara Demo")
DEMO_COUPONS = ("DEMO10", "DEMO50")

# Nutrient profiles per 100 g (TACO table)
ARROZ = {"name": "Arroz cozido", "unit": "g", "energy": 130, "protein": 2.7, "lipid": 0.3, "carbohydrate": 28.1, "fiber": 1.6, "iron": 0.1, "calcium": 4}
FEIJAO = {"name": "Feijão carioca", "unit": "g", "energy": 76, "protein": 4.8, "lipid": 0.5, "carbohydrate": 13.6, "fiber": 8.5, "iron": 1.3, "calcium": 27}
FRANGO = {"name": "Frango grelhado", "unit": "g", "energy": 159, "protein": 32, "lipid": 2.5, "carbohydrate": 0, "iron": 0.3, "calcium": 5}
BANANA = {"name": "Banana prata", "unit": "g", "energy": 98, "protein": 1.3, "lipid": 0.1, "carbohydrate": 26, "fiber": 2, "potassium": 358, "vitamin_c": 21.6}
LEITE = {"name": "Leite integral", "unit": "ml", "energy": 61, "protein": 3.2, "lipid": 3.3, "carbohydrate": 4.7, "calcium": 113, "vitamin_a": 46}


def _portion(food, quantity):
    return dict(food, quantity=quantity)


def delete_demo_data(session):
    """Delete every row the demo seed created."""
    # ORM cascades remove the children's links, invoices, subscriptions and records
    for child in session.query(Child).filter(Child.full_name.in_(DEMO_CHILDREN)).all():
        session.delete(child)
    session.flush()

    for user in session.query(User).filter(User.auth_subject.in_((DEMO_SUBJECT, DEMO_PARENT_SUBJECT))).all():
        session.delete(user)

    session.query(FixedExpense).filter(FixedExpense.notes == DEMO_TAG).delete(synchronize_session=False)
    session.query(EmployeeProfile).filter(EmployeeProfile.job_title.like(f"%{DEMO_TAG}")).delete(synchronize_session=False)
    session.query(DiscountCoupon).filter(DiscountCoupon.code.in_(DEMO_COUPONS)).delete(synchronize_session=False)
    session.query(WeeklyMenu).filter(WeeklyMenu.notes == DEMO_TAG).delete(synchronize_session=False)
    session.flush()
    logger.info("Deleted existing demo data")


def seed_demo_data(session, today=None):
    """Create the demo admin and a small, realistic school."""
    today = today or date.today()

    # --- Users ---
    admin = User(full_name="Diretora Demo", email="demo@creche.example", auth_subject=DEMO_SUBJECT, role="admin")
    parent = User(
        full_name="Responsável Demo",
        email="responsavel.demo@creche.example",
        phone="(11) 98888-7777",
        cpf="123.456.789-09",
        auth_subject=DEMO_PARENT_SUBJECT,
        role="parent",
    )
    session.add_all([admin, parent])
    session.flush()
    logger.info("Created demo admin (id=%s) and parent (id=%s)", admin.id, parent.id)

    # --- Children ---
    alice = Child(
        full_name=DEMO_CHILDREN[0],
        birth_date=add_months(today, -10),
        class_type="bercario",
        shift_type="integral",
        plan_type="intermediario",
        special_milk="Fórmula infantil",
    )
    bernardo = Child(
        full_name=DEMO_CHILDREN[1],
        birth_date=add_months(today, -30),
        class_type="maternal",
        shift_type="manha",
        plan_type="basico",
        allergies="Proteína do leite de vaca",
    )
    clara = Child(
        full_name=DEMO_CHILDREN[2],
        birth_date=add_months(today, -50),
        class_type="jardim",
        shift_type="tarde",
        plan_type="plus",
    )
    children = [alice, bernardo, clara]
    session.add_all(children)
    session.flush()
    session.add_all([ParentChild(parent_id=parent.id, child_id=c.id) for c in children])

    # --- Subscriptions and invoices ---
    values = [Decimal("1299.90"), Decimal("799.90"), Decimal("1299.90")]
    for child, value in zip(children, values):
        subscription = Subscription(
            child_id=child.id,
            parent_id=parent.id,
            description="Mensalidade escolar",
            value=value,
            billing_day=10,
            status="active",
            end_date=date(today.year, 12, 31),
        )
        session.add(subscription)
        session.flush()
        last_month = add_months(today.replace(day=10), -1)
        session.add_all([
            Invoice(
                child_id=child.id,
                parent_id=parent.id,
                subscription_id=subscription.id,
                description="Mensalidade escolar",
                value=value,
                due_date=add_months(last_month, -1),
                status="paid",
                payment_date=add_months(last_month, -1),
            ),
            Invoice(
                child_id=child.id,
                parent_id=parent.id,
                subscription_id=subscription.id,
                description="Mensalidade escolar",
                value=value,
                due_date=last_month,
                status="paid" if child is not bernardo else "overdue",
                payment_date=last_month if child is not bernardo else None,
            ),
            Invoice(
                child_id=child.id,
                parent_id=parent.id,
                subscription_id=subscription.id,
                description="Mensalidade escolar",
                value=value,
                due_date=add_months(last_month, 1),
                status="pending",
            ),
        ])
    logger.info("  Created %s children with subscriptions and invoices", len(children))

    # --- Attendance for the last week ---
    monday = week_start(today) - timedelta(days=7)
    for offset in range(5):
        day = monday + timedelta(days=offset)
        for child in children:
            status = "absent" if (child is clara and offset == 2) else "present"
            session.add(Attendance(child_id=child.id, recorded_by=admin.id, date=day, status=status))

    # --- Fixed expenses and staff ---
    session.add_all([
        FixedExpense(name="Aluguel", category="aluguel", value=Decimal("6500.00"), due_day=5, notes=DEMO_TAG),
        FixedExpense(name="Energia e água", category="utilidades", value=Decimal("1200.00"), due_day=15, notes=DEMO_TAG),
        FixedExpense(name="Hortifruti e mercado", category="alimentacao", value=Decimal("2800.00"), due_day=20, notes=DEMO_TAG),
        FixedExpense(name="Material pedagógico", category="materiais", value=Decimal("450.00"), notes=DEMO_TAG),
    ])
    session.add_all([
        EmployeeProfile(full_name="Professora Demo", job_title=f"Professora {DEMO_TAG}", salary=Decimal("3200.00"), net_salary=Decimal("2780.00"), salary_payment_day=5, hire_date=date(2022, 2, 1)),
        EmployeeProfile(full_name="Cozinheira Demo", job_title=f"Cozinheira {DEMO_TAG}", salary=Decimal("2400.00"), net_salary=Decimal("2150.00"), salary_payment_day=5, hire_date=date(2023, 3, 1)),
        EmployeeProfile(full_name="Auxiliar Demo", job_title=f"Auxiliar {DEMO_TAG}", salary=Decimal("1900.00"), net_salary=Decimal("1720.00"), salary_payment_day=5, hire_date=date(2024, 1, 15)),
    ])

    # --- Coupons ---
    now = datetime.now(timezone.utc)
    session.add_all([
        DiscountCoupon(
            code=DEMO_COUPONS[0],
            description="10% na mensalidade",
            discount_type="percentage",
            discount_value=Decimal("10"),
            valid_until=now + timedelta(days=90),
            max_uses=20,
            current_uses=3,
            applicable_classes=[],
            applicable_plans=[],
        ),
        DiscountCoupon(
            code=DEMO_COUPONS[1],
            description="R$ 50 de desconto no plano plus",
            discount_type="fixed",
            discount_value=Decimal("50"),
            applicable_classes=[],
            applicable_plans=["plus"],
        ),
    ])

    # --- This week's maternal menu ---
    monday = week_start(today)
    lunch = [_portion(ARROZ, 60), _portion(FEIJAO, 50), _portion(FRANGO, 40)]
    snack = [_portion(BANANA, 80)]
    breakfast = [_portion(LEITE, 150)]
    for day in range(1, 6):
        session.add(WeeklyMenu(
            week_start=monday,
            day_of_week=day,
            menu_type="maternal",
            breakfast="Leite com frutas",
            lunch="Arroz, feijão e frango desfiado",
            snack="Banana amassada",
            notes=DEMO_TAG,
            nutrition_data={
                "breakfast": aggregate(breakfast),
                "breakfast_ingredients": breakfast,
                "lunch": aggregate(lunch),
                "lunch_ingredients": lunch,
                "snack": aggregate(snack),
                "snack_ingredients": snack,
            },
        ))
    session.flush()
    logger.info("  Created expenses, staff, coupons and a menu week")


def seed():
    """Full seed: delete existing demo data, then re-seed."""
    db_manager = get_db_manager()
    db_manager.create_all()

    with db_manager.session() as session:
        delete_demo_data(session)
        seed_demo_data(session)

    logger.info("Demo data seeding complete.")


if __name__ == "__main__":
    seed()
