"""
Core constants and enumerations for the creche backend.

This module defines the enumerated column values, display labels, and
business parameters used throughout the daycare system.
"""

from enum import Enum


class ClassType(str, Enum):
    """Class (turma) a child is enrolled in."""
    BERCARIO = "bercario"
    MATERNAL = "maternal"
    JARDIM = "jardim"


class ShiftType(str, Enum):
    """Attendance shift."""
    MANHA = "manha"
    TARDE = "tarde"
    INTEGRAL = "integral"


class PlanType(str, Enum):
    """Tuition plan."""
    BASICO = "basico"
    INTERMEDIARIO = "intermediario"
    PLUS = "plus"


class UserRole(str, Enum):
    """Application roles; every role except parent is staff."""
    ADMIN = "admin"
    TEACHER = "teacher"
    PARENT = "parent"
    COOK = "cook"
    NUTRITIONIST = "nutritionist"
    PEDAGOGUE = "pedagogue"
    AUXILIAR = "auxiliar"


class MealStatus(str, Enum):
    """How much of a meal the child accepted."""
    TUDO = "tudo"
    QUASE_TUDO = "quase_tudo"
    METADE = "metade"
    POUCO = "pouco"
    NAO_ACEITOU = "nao_aceitou"


class EvacuationStatus(str, Enum):
    NORMAL = "normal"
    PASTOSA = "pastosa"
    LIQUIDA = "liquida"
    NAO = "nao"


class Mood(str, Enum):
    FELIZ = "feliz"
    CALMO = "calmo"
    AGITADO = "agitado"
    CHOROSO = "choroso"
    SONOLENTO = "sonolento"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class InvoiceStatus(str, Enum):
    """Local invoice status, mirrored from the payment provider."""
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    REFUNDING = "refunding"
    CHARGEBACK = "chargeback"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    CANCELLED = "cancelled"


class ContractStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    SIGNED = "signed"
    REFUSED = "refused"
    EXPIRED = "expired"


class CouponStatus(str, Enum):
    """Derived coupon status, in precedence order."""
    INACTIVE = "inactive"
    EXPIRED = "expired"
    SCHEDULED = "scheduled"
    EXHAUSTED = "exhausted"
    ACTIVE = "active"

    @property
    def label(self) -> str:
        return COUPON_STATUS_LABELS[self]


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class ExpenseCategory(str, Enum):
    SALARIOS = "salarios"
    ALUGUEL = "aluguel"
    UTILIDADES = "utilidades"
    ALIMENTACAO = "alimentacao"
    MATERIAIS = "materiais"
    MANUTENCAO = "manutencao"
    MARKETING = "marketing"
    OUTROS = "outros"


class MenuType(str, Enum):
    """Menu age group; each has its own nutrient reference targets."""
    BERCARIO_0_6 = "bercario_0_6"
    BERCARIO_6_12 = "bercario_6_12"
    BERCARIO_12_24 = "bercario_12_24"
    MATERNAL = "maternal"


class AnnouncementPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class MessageChannel(str, Enum):
    PARENT = "parent"
    STAFF = "staff"


# Display labels (pt-BR)
COUPON_STATUS_LABELS = {
    CouponStatus.INACTIVE: "Inativo",
    CouponStatus.EXPIRED: "Expirado",
    CouponStatus.SCHEDULED: "Agendado",
    CouponStatus.EXHAUSTED: "Esgotado",
    CouponStatus.ACTIVE: "Ativo",
}

INVOICE_STATUS_LABELS = {
    "pending": "Pendente",
    "paid": "Pago",
    "overdue": "Vencido",
    "cancelled": "Cancelado",
    "refunded": "Estornado",
    "refunding": "Estorno em andamento",
    "chargeback": "Chargeback",
}

ATTENDANCE_STATUS_LABELS = {
    "present": "Presente",
    "absent": "Ausente",
    "late": "Atrasado",
    "excused": "Justificado",
}

CLASS_LABELS = {"bercario": "Berçário", "maternal": "Maternal", "jardim": "Jardim"}
SHIFT_LABELS = {"manha": "Manhã", "tarde": "Tarde", "integral": "Integral"}
PLAN_LABELS = {"basico": "Básico", "intermediario": "Intermediário", "plus": "Plus+"}

# Billing constants
ENROLLMENT_FEE = 250.00
DEFAULT_BILLING_DAY = 10
DEFAULT_SUBSCRIPTION_DESCRIPTION = "Mensalidade escolar"
PAYMENT_REMINDER_DAYS = 3

# Forecast constants
FORECAST_MONTHS = 6
MAX_FORECAST_MONTHS = 24
DEFAULT_ACCEPTANCE_RATIO = 0.85


STAFF_ROLES = frozenset(role.value for role in UserRole if role is not UserRole.PARENT)
