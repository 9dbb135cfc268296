"""
Pydantic schemas for API request/response validation.

These schemas provide:
- Input validation for API requests
- Response serialization
- OpenAPI documentation generation
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional, Dict, Any, List

from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator

from creche.core.constants import (
    AnnouncementPriority,
    AttendanceStatus,
    ClassType,
    ContractStatus,
    DiscountType,
    EvacuationStatus,
    ExpenseCategory,
    InvoiceStatus,
    MealStatus,
    MenuType,
    MessageChannel,
    Mood,
    PlanType,
    ShiftType,
    SubscriptionStatus,
    UserRole,
)
from creche.core.engine.nutrition import MEAL_FIELDS
from creche.core.pricing import normalize_coupon_code


# ======================
# Base Schemas
# ======================


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,  # Enable ORM mode for SQLAlchemy
        validate_assignment=True,
        use_enum_values=True,
        json_encoders={
            Decimal: lambda v: float(v),
            date: lambda v: v.isoformat(),
            datetime: lambda v: v.isoformat(),
        },
    )


# ======================
# Users
# ======================


class UserCreate(BaseSchema):
    full_name: str = Field(..., min_length=1, max_length=255)
    email: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=20)
    cpf: Optional[str] = Field(None, max_length=14)
    role: UserRole = UserRole.PARENT


class UserResponse(UserCreate):
    id: int
    is_active: bool = True


# ======================
# Children
# ======================


class ChildBase(BaseSchema):
    """Base child schema with common fields."""

    full_name: str = Field(..., min_length=1, max_length=255)
    birth_date: date
    class_type: ClassType
    shift_type: ShiftType = ShiftType.INTEGRAL
    plan_type: PlanType = PlanType.BASICO
    allergies: Optional[str] = None
    dietary_restrictions: Optional[str] = None
    medical_info: Optional[str] = None
    special_milk: Optional[str] = None
    pediatrician_name: Optional[str] = None
    pediatrician_phone: Optional[str] = Field(None, max_length=20)
    photo_url: Optional[str] = None


class ChildCreate(ChildBase):
    """Schema for creating a child."""

    pass


class ChildUpdate(BaseSchema):
    """Schema for updating a child (all fields optional)."""

    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    birth_date: Optional[date] = None
    class_type: Optional[ClassType] = None
    shift_type: Optional[ShiftType] = None
    plan_type: Optional[PlanType] = None
    allergies: Optional[str] = None
    dietary_restrictions: Optional[str] = None
    medical_info: Optional[str] = None
    special_milk: Optional[str] = None
    pediatrician_name: Optional[str] = None
    pediatrician_phone: Optional[str] = Field(None, max_length=20)
    photo_url: Optional[str] = None


class ChildResponse(ChildBase):
    id: int
    created_at: datetime
    updated_at: Optional[datetime] = None


class ParentLinkCreate(BaseSchema):
    parent_id: int
    relationship_type: str = Field(default="responsavel", max_length=50)


# ======================
# Daily Records
# ======================


class DailyRecordBase(BaseSchema):
    breakfast: Optional[MealStatus] = None
    lunch: Optional[MealStatus] = None
    snack: Optional[MealStatus] = None
    dinner: Optional[MealStatus] = None
    slept_morning: bool = False
    slept_afternoon: bool = False
    sleep_notes: Optional[str] = None
    urinated: bool = False
    evacuated: Optional[EvacuationStatus] = None
    mood: Optional[Mood] = None
    had_fever: bool = False
    temperature: Optional[Decimal] = Field(None, ge=30, le=45)
    took_medicine: bool = False
    medicine_notes: Optional[str] = None
    activities: Optional[str] = None
    school_notes: Optional[str] = None
    parent_notes: Optional[str] = None


class DailyRecordCreate(DailyRecordBase):
    child_id: int
    record_date: date


class DailyRecordUpdate(BaseSchema):
    breakfast: Optional[MealStatus] = None
    lunch: Optional[MealStatus] = None
    snack: Optional[MealStatus] = None
    dinner: Optional[MealStatus] = None
    slept_morning: Optional[bool] = None
    slept_afternoon: Optional[bool] = None
    sleep_notes: Optional[str] = None
    urinated: Optional[bool] = None
    evacuated: Optional[EvacuationStatus] = None
    mood: Optional[Mood] = None
    had_fever: Optional[bool] = None
    temperature: Optional[Decimal] = Field(None, ge=30, le=45)
    took_medicine: Optional[bool] = None
    medicine_notes: Optional[str] = None
    activities: Optional[str] = None
    school_notes: Optional[str] = None
    parent_notes: Optional[str] = None


class DailyRecordResponse(DailyRecordBase):
    id: int
    child_id: int
    record_date: date
    teacher_id: Optional[int] = None
    created_at: datetime


# ======================
# Attendance
# ======================


class AttendanceCreate(BaseSchema):
    child_id: int
    date: date
    status: AttendanceStatus = AttendanceStatus.PRESENT
    arrival_time: Optional[time] = None
    departure_time: Optional[time] = None
    notes: Optional[str] = None


class AttendanceUpdate(BaseSchema):
    status: Optional[AttendanceStatus] = None
    arrival_time: Optional[time] = None
    departure_time: Optional[time] = None
    notes: Optional[str] = None


class AttendanceResponse(AttendanceCreate):
    id: int
    recorded_by: Optional[int] = None
    status_label: Optional[str] = None


class AttendanceSummary(BaseSchema):
    start: date
    end: date
    weekdays: int
    children: int
    counts: Dict[str, int]
    attendance_rate: float


# ======================
# Messages, Announcements, Feed, Notifications
# ======================


class MessageCreate(BaseSchema):
    child_id: int
    content: str = Field(..., min_length=1, max_length=5000)
    channel_type: MessageChannel = MessageChannel.PARENT


class MessageResponse(MessageCreate):
    id: int
    sender_id: int
    is_read: bool = False
    created_at: datetime


class AnnouncementBase(BaseSchema):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    priority: AnnouncementPriority = AnnouncementPriority.NORMAL
    class_type: Optional[ClassType] = None
    child_id: Optional[int] = None
    all_classes: bool = True
    is_active: bool = True
    starts_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


class AnnouncementCreate(AnnouncementBase):
    @model_validator(mode="after")
    def check_window(self):
        if self.starts_at and self.expires_at and self.expires_at <= self.starts_at:
            raise ValueError("expires_at must be after starts_at")
        return self


class AnnouncementUpdate(BaseSchema):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = None
    priority: Optional[AnnouncementPriority] = None
    class_type: Optional[ClassType] = None
    child_id: Optional[int] = None
    all_classes: Optional[bool] = None
    is_active: Optional[bool] = None
    starts_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


class AnnouncementResponse(AnnouncementBase):
    id: int
    created_by: Optional[int] = None
    created_at: datetime


class FeedPostCreate(BaseSchema):
    content: str = Field(..., min_length=1)
    image_url: Optional[str] = None
    class_type: Optional[ClassType] = None
    all_classes: bool = True


class FeedPostResponse(FeedPostCreate):
    id: int
    created_by: Optional[int] = None
    created_at: datetime


class NotificationResponse(BaseSchema):
    id: int
    title: str
    message: str
    type: str
    link: Optional[str] = None
    is_read: bool = False
    created_at: datetime


# ======================
# Billing
# ======================


class SubscriptionCreate(BaseSchema):
    child_id: int
    value: Decimal = Field(..., gt=0)
    billing_day: int = Field(default=10, ge=1, le=28)
    description: Optional[str] = None
    end_date: Optional[date] = None


class SubscriptionUpdate(BaseSchema):
    value: Optional[Decimal] = Field(None, gt=0)
    billing_day: Optional[int] = Field(None, ge=1, le=28)
    status: Optional[SubscriptionStatus] = None
    description: Optional[str] = None
    end_date: Optional[date] = None


class SubscriptionResponse(SubscriptionCreate):
    id: int
    parent_id: int
    provider_subscription_id: Optional[str] = None
    status: SubscriptionStatus
    created_at: datetime


class InvoiceCreate(BaseSchema):
    """Local invoice, without a provider charge."""

    child_id: int
    parent_id: int
    description: Optional[str] = None
    value: Decimal = Field(..., gt=0)
    due_date: date
    status: InvoiceStatus = InvoiceStatus.PENDING


class ChargeCreate(BaseSchema):
    """Charge created at the payment provider, optionally in installments."""

    child_id: int
    description: str = Field(..., min_length=1, max_length=255)
    value: Decimal = Field(..., gt=0)
    due_date: date
    installment_count: int = Field(default=1, ge=1, le=12)


class InvoiceUpdate(BaseSchema):
    description: Optional[str] = None
    value: Optional[Decimal] = Field(None, gt=0)
    due_date: Optional[date] = None
    status: Optional[InvoiceStatus] = None
    payment_date: Optional[date] = None


class InvoiceResponse(BaseSchema):
    id: int
    child_id: int
    parent_id: int
    subscription_id: Optional[int] = None
    provider_payment_id: Optional[str] = None
    description: Optional[str] = None
    value: Decimal
    due_date: date
    status: InvoiceStatus
    effective_status: Optional[InvoiceStatus] = None
    status_label: Optional[str] = None
    reminder: Optional[str] = None
    invoice_url: Optional[str] = None
    bank_slip_url: Optional[str] = None
    pix_code: Optional[str] = None
    payment_date: Optional[date] = None
    created_at: datetime


class CustomerLink(BaseSchema):
    parent_id: int
    provider_customer_id: str = Field(..., min_length=1)


# ======================
# Contracts
# ======================


class ContractCreate(BaseSchema):
    child_id: int
    parent_id: Optional[int] = None
    class_type: Optional[ClassType] = None
    shift_type: Optional[ShiftType] = None
    plan_type: Optional[PlanType] = None
    monthly_value: Optional[Decimal] = Field(None, gt=0)
    coupon_code: Optional[str] = None


class ContractUpdate(BaseSchema):
    class_type: Optional[ClassType] = None
    shift_type: Optional[ShiftType] = None
    plan_type: Optional[PlanType] = None
    monthly_value: Optional[Decimal] = Field(None, gt=0)
    status: Optional[ContractStatus] = None


class ContractResponse(BaseSchema):
    id: int
    child_id: int
    parent_id: int
    class_type: ClassType
    shift_type: ShiftType
    plan_type: PlanType
    monthly_value: Decimal
    status: ContractStatus
    doc_token: Optional[str] = None
    sign_url: Optional[str] = None
    sent_at: Optional[datetime] = None
    signed_at: Optional[datetime] = None
    created_at: datetime


# ======================
# Expenses and Staff
# ======================


class FixedExpenseBase(BaseSchema):
    name: str = Field(..., min_length=1, max_length=255)
    category: ExpenseCategory = ExpenseCategory.OUTROS
    value: Decimal = Field(..., ge=0)
    due_day: Optional[int] = Field(None, ge=1, le=31)
    is_active: bool = True
    notes: Optional[str] = None


class FixedExpenseCreate(FixedExpenseBase):
    pass


class FixedExpenseUpdate(BaseSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[ExpenseCategory] = None
    value: Optional[Decimal] = Field(None, ge=0)
    due_day: Optional[int] = Field(None, ge=1, le=31)
    is_active: Optional[bool] = None
    notes: Optional[str] = None


class FixedExpenseResponse(FixedExpenseBase):
    id: int
    created_at: datetime


class EmployeeProfileBase(BaseSchema):
    full_name: str = Field(..., min_length=1, max_length=255)
    cpf: Optional[str] = Field(None, max_length=14)
    birth_date: Optional[date] = None
    job_title: Optional[str] = None
    salary: Optional[Decimal] = Field(None, ge=0)
    net_salary: Optional[Decimal] = Field(None, ge=0)
    salary_payment_day: Optional[int] = Field(None, ge=1, le=31)
    hire_date: Optional[date] = None
    user_id: Optional[int] = None


class EmployeeProfileCreate(EmployeeProfileBase):
    pass


class EmployeeProfileUpdate(BaseSchema):
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    cpf: Optional[str] = Field(None, max_length=14)
    birth_date: Optional[date] = None
    job_title: Optional[str] = None
    salary: Optional[Decimal] = Field(None, ge=0)
    net_salary: Optional[Decimal] = Field(None, ge=0)
    salary_payment_day: Optional[int] = Field(None, ge=1, le=31)
    hire_date: Optional[date] = None
    user_id: Optional[int] = None


class EmployeeProfileResponse(EmployeeProfileBase):
    id: int
    created_at: datetime


# ======================
# Coupons and Pricing
# ======================


class CouponBase(BaseSchema):
    code: str = Field(..., min_length=2, max_length=50)
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: Decimal = Field(..., gt=0)
    is_active: bool = True
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    max_uses: Optional[int] = Field(None, ge=1)
    applicable_classes: List[ClassType] = Field(default_factory=list)
    applicable_plans: List[PlanType] = Field(default_factory=list)


class CouponCreate(CouponBase):
    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return normalize_coupon_code(v)

    @model_validator(mode="after")
    def check_percentage(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and self.discount_value > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        return self


class CouponUpdate(BaseSchema):
    description: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, gt=0)
    is_active: Optional[bool] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    max_uses: Optional[int] = Field(None, ge=1)
    applicable_classes: Optional[List[ClassType]] = None
    applicable_plans: Optional[List[PlanType]] = None


class CouponResponse(CouponBase):
    id: int
    current_uses: int = 0
    status: Optional[str] = None
    status_label: Optional[str] = None
    created_at: datetime


class CouponValidationRequest(BaseSchema):
    code: str = Field(..., min_length=1)
    price: Decimal = Field(..., ge=0)
    class_type: Optional[ClassType] = None
    plan_type: Optional[PlanType] = None


class CouponValidationResponse(BaseSchema):
    valid: bool
    code: str
    reason: Optional[str] = None
    discount: Decimal = Decimal("0.00")
    final_price: Decimal


class PriceQuote(BaseSchema):
    class_type: ClassType
    plan_type: PlanType
    age_months: Optional[int] = None
    monthly_price: Decimal
    enrollment_fee: Decimal


# ======================
# Menus and Nutrition
# ======================


class Ingredient(BaseModel):
    """Ingredient with its nutrient profile per 100 g/ml; extra nutrient keys are kept."""

    model_config = ConfigDict(extra="allow")

    name: str = Field(..., min_length=1)
    quantity: float = Field(..., ge=0)
    unit: str = "g"


class MenuBase(BaseSchema):
    week_start: date
    day_of_week: int = Field(..., ge=1, le=5)
    menu_type: MenuType
    breakfast: Optional[str] = None
    morning_snack: Optional[str] = None
    lunch: Optional[str] = None
    bottle: Optional[str] = None
    snack: Optional[str] = None
    pre_dinner: Optional[str] = None
    dinner: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("week_start")
    @classmethod
    def must_be_monday(cls, v: date) -> date:
        if v.weekday() != 0:
            raise ValueError("week_start must be a Monday")
        return v


class MenuCreate(MenuBase):
    pass


class MenuUpdate(BaseSchema):
    breakfast: Optional[str] = None
    morning_snack: Optional[str] = None
    lunch: Optional[str] = None
    bottle: Optional[str] = None
    snack: Optional[str] = None
    pre_dinner: Optional[str] = None
    dinner: Optional[str] = None
    notes: Optional[str] = None


class MenuResponse(MenuBase):
    id: int
    nutrition_data: Dict[str, Any] = Field(default_factory=dict)


class MealIngredients(BaseSchema):
    ingredients: List[Ingredient]


class NutrientComparison(BaseSchema):
    nutrient: str
    value: float
    target: float
    ratio: float
    status: str


class DayNutrition(BaseSchema):
    day_of_week: int
    menu_id: int
    totals: Optional[Dict[str, float]] = None


class WeekNutritionResponse(BaseSchema):
    week_start: date
    menu_type: MenuType
    days: List[DayNutrition]
    days_with_data: int
    average: Dict[str, float]
    targets: List[NutrientComparison]


# ======================
# Forecast
# ======================


class ForecastMonth(BaseSchema):
    month: date
    label: str
    revenue: float
    cost: float
    net_result: float


class ForecastInputs(BaseSchema):
    recurring_revenue: float
    pending_revenue: float
    acceptance_ratio: float
    fixed_expenses: float
    net_salaries: float
    monthly_cost: float


class ForecastResponse(BaseSchema):
    inputs: ForecastInputs
    months: List[ForecastMonth]
    summary: Dict[str, float]
    expenses_by_category: Dict[str, float]


# ======================
# Pipeline
# ======================


class StageMove(BaseSchema):
    stage_id: str = Field(..., min_length=1)
    pipeline_id: str = Field(..., min_length=1)


# Meal fields accepted by the ingredient endpoint
MEAL_FIELD_NAMES = list(MEAL_FIELDS)
