"""
SQLAlchemy ORM models for the creche PostgreSQL schema.

These models provide type-safe database access and support for:
- Connection pooling with PgBouncer-style poolers
- JSONB columns for menu nutrition data and coupon restrictions
- Foreign key relationships to children and users
- Automatic timestamp management
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import relationship

Base = declarative_base()


# ======================
# People
# ======================


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    full_name = Column(Text, nullable=False)
    email = Column(Text, unique=True)
    phone = Column(String(20))
    cpf = Column(String(14))
    role = Column(Text, nullable=False, default="parent")
    auth_subject = Column(Text, unique=True, index=True, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    child_links = relationship("ParentChild", back_populates="parent", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")
    payment_customer = relationship("PaymentCustomer", back_populates="user", uselist=False, cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'teacher', 'parent', 'cook', 'nutritionist', 'pedagogue', 'auxiliar')",
            name="ck_user_role",
        ),
        Index("idx_users_role", "role"),
    )

    def __repr__(self):
        return f"<User(id={self.id}, name='{self.full_name}', role='{self.role}')>"


class Child(Base):
    __tablename__ = "children"

    id = Column(Integer, primary_key=True)
    full_name = Column(Text, nullable=False)
    birth_date = Column(Date, nullable=False)
    class_type = Column(Text, nullable=False)
    shift_type = Column(Text, nullable=False, default="integral")
    plan_type = Column(Text, nullable=False, default="basico")
    allergies = Column(Text)
    dietary_restrictions = Column(Text)
    medical_info = Column(Text)
    special_milk = Column(Text)
    pediatrician_name = Column(Text)
    pediatrician_phone = Column(String(20))
    photo_url = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    parent_links = relationship("ParentChild", back_populates="child", cascade="all, delete-orphan")
    daily_records = relationship("DailyRecord", back_populates="child", cascade="all, delete-orphan")
    attendance = relationship("Attendance", back_populates="child", cascade="all, delete-orphan")
    messages = relationship("Message", back_populates="child", cascade="all, delete-orphan")
    invoices = relationship("Invoice", back_populates="child", cascade="all, delete-orphan")
    subscriptions = relationship("Subscription", back_populates="child", cascade="all, delete-orphan")
    contracts = relationship("EnrollmentContract", back_populates="child", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("class_type IN ('bercario', 'maternal', 'jardim')", name="ck_child_class_type"),
        CheckConstraint("shift_type IN ('manha', 'tarde', 'integral')", name="ck_child_shift_type"),
        CheckConstraint("plan_type IN ('basico', 'intermediario', 'plus')", name="ck_child_plan_type"),
        Index("idx_children_class_type", "class_type"),
        Index("idx_children_full_name", "full_name"),
    )

    def __repr__(self):
        return f"<Child(id={self.id}, name='{self.full_name}', class='{self.class_type}')>"


class ParentChild(Base):
    __tablename__ = "parent_children"

    id = Column(Integer, primary_key=True)
    parent_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    child_id = Column(Integer, ForeignKey("children.id", ondelete="CASCADE"), nullable=False)
    relationship_type = Column(Text, default="responsavel")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    parent = relationship("User", back_populates="child_links")
    child = relationship("Child", back_populates="parent_links")

    __table_args__ = (
        UniqueConstraint("parent_id", "child_id", name="uq_parent_child"),
        Index("idx_parent_children_parent", "parent_id"),
        Index("idx_parent_children_child", "child_id"),
    )

    def __repr__(self):
        return f"<ParentChild(parent_id={self.parent_id}, child_id={self.child_id})>"


class EmployeeProfile(Base):
    __tablename__ = "employee_profiles"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    full_name = Column(Text, nullable=False)
    cpf = Column(String(14))
    birth_date = Column(Date)
    job_title = Column(Text)
    salary = Column(Numeric(12, 2))
    net_salary = Column(Numeric(12, 2))
    salary_payment_day = Column(Integer)
    hire_date = Column(Date)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("salary IS NULL OR salary >= 0", name="ck_employee_salary"),
        CheckConstraint("net_salary IS NULL OR net_salary >= 0", name="ck_employee_net_salary"),
        CheckConstraint(
            "salary_payment_day IS NULL OR (salary_payment_day BETWEEN 1 AND 31)",
            name="ck_employee_payment_day",
        ),
        Index("idx_employee_profiles_user_id", "user_id"),
    )

    def __repr__(self):
        return f"<EmployeeProfile(id={self.id}, name='{self.full_name}', job='{self.job_title}')>"


# ======================
# Daily Routine
# ======================


class DailyRecord(Base):
    __tablename__ = "daily_records"

    id = Column(Integer, primary_key=True)
    child_id = Column(Integer, ForeignKey("children.id", ondelete="CASCADE"), nullable=False)
    teacher_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    record_date = Column(Date, nullable=False)
    breakfast = Column(Text)
    lunch = Column(Text)
    snack = Column(Text)
    dinner = Column(Text)
    slept_morning = Column(Boolean, default=False)
    slept_afternoon = Column(Boolean, default=False)
    sleep_notes = Column(Text)
    urinated = Column(Boolean, default=False)
    evacuated = Column(Text)
    mood = Column(Text)
    had_fever = Column(Boolean, default=False)
    temperature = Column(Numeric(4, 1))
    took_medicine = Column(Boolean, default=False)
    medicine_notes = Column(Text)
    activities = Column(Text)
    school_notes = Column(Text)
    parent_notes = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    child = relationship("Child", back_populates="daily_records")

    __table_args__ = (
        UniqueConstraint("child_id", "record_date", name="uq_daily_record_child_date"),
        CheckConstraint(
            "evacuated IS NULL OR evacuated IN ('normal', 'pastosa', 'liquida', 'nao')",
            name="ck_daily_record_evacuated",
        ),
        CheckConstraint(
            "mood IS NULL OR mood IN ('feliz', 'calmo', 'agitado', 'choroso', 'sonolento')",
            name="ck_daily_record_mood",
        ),
        Index("idx_daily_records_child_id", "child_id"),
        Index("idx_daily_records_date", "record_date"),
    )

    def __repr__(self):
        return f"<DailyRecord(id={self.id}, child_id={self.child_id}, date={self.record_date})>"


class Attendance(Base):
    __tablename__ = "attendance"

    id = Column(Integer, primary_key=True)
    child_id = Column(Integer, ForeignKey("children.id", ondelete="CASCADE"), nullable=False)
    recorded_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    date = Column(Date, nullable=False)
    status = Column(Text, nullable=False, default="present")
    arrival_time = Column(Time)
    departure_time = Column(Time)
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    child = relationship("Child", back_populates="attendance")

    __table_args__ = (
        UniqueConstraint("child_id", "date", name="uq_attendance_child_date"),
        CheckConstraint("status IN ('present', 'absent', 'late', 'excused')", name="ck_attendance_status"),
        Index("idx_attendance_child_id", "child_id"),
        Index("idx_attendance_date", "date"),
    )

    def __repr__(self):
        return f"<Attendance(id={self.id}, child_id={self.child_id}, date={self.date}, status='{self.status}')>"


class WeeklyMenu(Base):
    __tablename__ = "weekly_menus"

    id = Column(Integer, primary_key=True)
    week_start = Column(Date, nullable=False)
    day_of_week = Column(Integer, nullable=False)
    menu_type = Column(Text, nullable=False)
    breakfast = Column(Text)
    morning_snack = Column(Text)
    lunch = Column(Text)
    bottle = Column(Text)
    snack = Column(Text)
    pre_dinner = Column(Text)
    dinner = Column(Text)
    notes = Column(Text)
    nutrition_data = Column(JSONB, server_default="{}")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("week_start", "day_of_week", "menu_type", name="uq_weekly_menu_day"),
        CheckConstraint("day_of_week BETWEEN 1 AND 5", name="ck_weekly_menu_day_of_week"),
        CheckConstraint(
            "menu_type IN ('bercario_0_6', 'bercario_6_12', 'bercario_12_24', 'maternal')",
            name="ck_weekly_menu_type",
        ),
        Index("idx_weekly_menus_week", "week_start", "menu_type"),
    )

    def __repr__(self):
        return f"<WeeklyMenu(id={self.id}, week={self.week_start}, day={self.day_of_week}, type='{self.menu_type}')>"


# ======================
# Communication
# ======================


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True)
    child_id = Column(Integer, ForeignKey("children.id", ondelete="CASCADE"), nullable=False)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    channel_type = Column(Text, nullable=False, default="parent")
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    child = relationship("Child", back_populates="messages")
    sender = relationship("User")

    __table_args__ = (
        CheckConstraint("channel_type IN ('parent', 'staff')", name="ck_message_channel"),
        Index("idx_messages_child_id", "child_id"),
        Index("idx_messages_created_at", "created_at"),
    )

    def __repr__(self):
        return f"<Message(id={self.id}, child_id={self.child_id}, sender_id={self.sender_id})>"


class Announcement(Base):
    __tablename__ = "announcements"

    id = Column(Integer, primary_key=True)
    title = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    priority = Column(Text, nullable=False, default="normal")
    class_type = Column(Text)
    child_id = Column(Integer, ForeignKey("children.id", ondelete="CASCADE"))
    all_classes = Column(Boolean, default=True)
    is_active = Column(Boolean, default=True)
    starts_at = Column(DateTime(timezone=True))
    expires_at = Column(DateTime(timezone=True))
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("priority IN ('low', 'normal', 'high', 'urgent')", name="ck_announcement_priority"),
        Index("idx_announcements_active", "is_active"),
        Index("idx_announcements_class_type", "class_type"),
    )

    def __repr__(self):
        return f"<Announcement(id={self.id}, title='{self.title}', priority='{self.priority}')>"


class FeedPost(Base):
    __tablename__ = "feed_posts"

    id = Column(Integer, primary_key=True)
    content = Column(Text, nullable=False)
    image_url = Column(Text)
    class_type = Column(Text)
    all_classes = Column(Boolean, default=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_feed_posts_created_at", "created_at"),
        Index("idx_feed_posts_class_type", "class_type"),
    )

    def __repr__(self):
        return f"<FeedPost(id={self.id}, class_type='{self.class_type}')>"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    message = Column(Text, nullable=False)
    type = Column(Text, nullable=False, default="info")
    link = Column(Text)
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="notifications")

    __table_args__ = (
        Index("idx_notifications_user_id", "user_id"),
        Index("idx_notifications_unread", "user_id", "is_read"),
    )

    def __repr__(self):
        return f"<Notification(id={self.id}, user_id={self.user_id}, type='{self.type}')>"


# ======================
# Billing
# ======================


class PaymentCustomer(Base):
    __tablename__ = "payment_customers"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    provider_customer_id = Column(Text, nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="payment_customer")

    def __repr__(self):
        return f"<PaymentCustomer(user_id={self.user_id}, provider_id='{self.provider_customer_id}')>"


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True)
    child_id = Column(Integer, ForeignKey("children.id", ondelete="CASCADE"), nullable=False)
    parent_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    provider_subscription_id = Column(Text, unique=True)
    description = Column(Text)
    value = Column(Numeric(12, 2), nullable=False)
    billing_day = Column(Integer, nullable=False, default=10)
    status = Column(Text, nullable=False, default="active")
    end_date = Column(Date)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    child = relationship("Child", back_populates="subscriptions")
    invoices = relationship("Invoice", back_populates="subscription")

    __table_args__ = (
        CheckConstraint("status IN ('active', 'inactive', 'cancelled')", name="ck_subscription_status"),
        CheckConstraint("value > 0", name="ck_subscription_value"),
        CheckConstraint("billing_day BETWEEN 1 AND 28", name="ck_subscription_billing_day"),
        Index("idx_subscriptions_child_id", "child_id"),
        Index("idx_subscriptions_parent_id", "parent_id"),
        Index("idx_subscriptions_status", "status"),
    )

    def __repr__(self):
        return f"<Subscription(id={self.id}, child_id={self.child_id}, value={self.value}, status='{self.status}')>"


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True)
    child_id = Column(Integer, ForeignKey("children.id", ondelete="CASCADE"), nullable=False)
    parent_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    subscription_id = Column(Integer, ForeignKey("subscriptions.id", ondelete="SET NULL"))
    provider_payment_id = Column(Text, unique=True)
    description = Column(Text)
    value = Column(Numeric(12, 2), nullable=False)
    due_date = Column(Date, nullable=False)
    status = Column(Text, nullable=False, default="pending")
    invoice_url = Column(Text)
    bank_slip_url = Column(Text)
    pix_code = Column(Text)
    payment_date = Column(Date)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    child = relationship("Child", back_populates="invoices")
    subscription = relationship("Subscription", back_populates="invoices")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'paid', 'overdue', 'cancelled', 'refunded', 'refunding', 'chargeback')",
            name="ck_invoice_status",
        ),
        CheckConstraint("value > 0", name="ck_invoice_value"),
        Index("idx_invoices_child_id", "child_id"),
        Index("idx_invoices_parent_id", "parent_id"),
        Index("idx_invoices_status", "status"),
        Index("idx_invoices_due_date", "due_date"),
    )

    def __repr__(self):
        return f"<Invoice(id={self.id}, child_id={self.child_id}, value={self.value}, status='{self.status}')>"


class PaymentNotificationLog(Base):
    """One row per payment reminder sent, so each kind goes out once per invoice and parent."""

    __tablename__ = "payment_notification_log"

    id = Column(Integer, primary_key=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    notification_type = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            "notification_type IN ('due_soon', 'overdue')",
            name="ck_payment_notification_type",
        ),
        UniqueConstraint("invoice_id", "notification_type", "user_id", name="uq_payment_notification"),
        Index("idx_payment_notification_log_invoice_id", "invoice_id"),
    )

    def __repr__(self):
        return f"<PaymentNotificationLog(invoice_id={self.invoice_id}, type='{self.notification_type}')>"


class DiscountCoupon(Base):
    __tablename__ = "discount_coupons"

    id = Column(Integer, primary_key=True)
    code = Column(Text, nullable=False, unique=True)
    description = Column(Text)
    discount_type = Column(Text, nullable=False)
    discount_value = Column(Numeric(12, 2), nullable=False)
    is_active = Column(Boolean, default=True)
    valid_from = Column(DateTime(timezone=True))
    valid_until = Column(DateTime(timezone=True))
    max_uses = Column(Integer)
    current_uses = Column(Integer, nullable=False, default=0)
    applicable_classes = Column(JSONB, server_default="[]")
    applicable_plans = Column(JSONB, server_default="[]")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("discount_type IN ('percentage', 'fixed')", name="ck_coupon_discount_type"),
        CheckConstraint("discount_value > 0", name="ck_coupon_discount_value"),
        CheckConstraint(
            "discount_type <> 'percentage' OR discount_value <= 100",
            name="ck_coupon_percentage_limit",
        ),
        CheckConstraint("current_uses >= 0", name="ck_coupon_current_uses"),
        Index("idx_discount_coupons_active", "is_active"),
    )

    def __repr__(self):
        return f"<DiscountCoupon(id={self.id}, code='{self.code}', type='{self.discount_type}')>"


class FixedExpense(Base):
    __tablename__ = "fixed_expenses"

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)
    category = Column(Text, nullable=False, default="outros")
    value = Column(Numeric(12, 2), nullable=False)
    due_day = Column(Integer)
    is_active = Column(Boolean, default=True)
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(
            "category IN ('salarios', 'aluguel', 'utilidades', 'alimentacao', "
            "'materiais', 'manutencao', 'marketing', 'outros')",
            name="ck_fixed_expense_category",
        ),
        CheckConstraint("value >= 0", name="ck_fixed_expense_value"),
        CheckConstraint("due_day IS NULL OR (due_day BETWEEN 1 AND 31)", name="ck_fixed_expense_due_day"),
        Index("idx_fixed_expenses_active", "is_active"),
    )

    def __repr__(self):
        return f"<FixedExpense(id={self.id}, name='{self.name}', value={self.value})>"


# ======================
# Contracts
# ======================


class EnrollmentContract(Base):
    __tablename__ = "enrollment_contracts"

    id = Column(Integer, primary_key=True)
    child_id = Column(Integer, ForeignKey("children.id", ondelete="CASCADE"), nullable=False)
    parent_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    class_type = Column(Text, nullable=False)
    shift_type = Column(Text, nullable=False)
    plan_type = Column(Text, nullable=False)
    monthly_value = Column(Numeric(12, 2), nullable=False)
    status = Column(Text, nullable=False, default="draft")
    doc_token = Column(Text, unique=True)
    signer_token = Column(Text)
    sign_url = Column(Text)
    sent_at = Column(DateTime(timezone=True))
    signed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    child = relationship("Child", back_populates="contracts")
    parent = relationship("User")

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'sent', 'signed', 'refused', 'expired')",
            name="ck_contract_status",
        ),
        CheckConstraint("monthly_value > 0", name="ck_contract_monthly_value"),
        Index("idx_enrollment_contracts_child_id", "child_id"),
        Index("idx_enrollment_contracts_status", "status"),
    )

    def __repr__(self):
        return f"<EnrollmentContract(id={self.id}, child_id={self.child_id}, status='{self.status}')>"
