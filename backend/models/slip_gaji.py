"""
Slip Gaji Model - payroll slip per worker per period

draft -> authorized (director + owner signed) -> issued
Earnings, attendance summary and payment info are snapshots taken at
generation time and never recomputed afterwards.
"""
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field


class SlipStatus(str, Enum):
    DRAFT = "draft"
    AUTHORIZED = "authorized"
    ISSUED = "issued"


class SignerRole(str, Enum):
    DIRECTOR = "director"
    OWNER = "owner"


class AttendanceStatus(str, Enum):
    """Attendance ledger day status"""
    PRESENT = "Present"
    LATE = "Late"
    ABSENT = "Absent"
    HALF_DAY = "Half-day"
    PERMIT = "Permit"


class KasbonStatus(str, Enum):
    """Cash-advance ledger status"""
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    PAID = "Paid"


SIGNER_LABELS = {
    SignerRole.DIRECTOR: ("Director", "Direktur"),
    SignerRole.OWNER: ("Owner", "Pemilik"),
}


class SlipPeriod(BaseModel):
    start_date: str  # YYYY-MM-DDT00:00:00.000Z
    end_date: str    # YYYY-MM-DDT23:59:59.999Z


class AttendanceSummary(BaseModel):
    total_days: int = 0
    present_days: int = 0
    late_days: int = 0
    absent_days: int = 0
    permit_days: int = 0
    total_hours: float = 0


class Earnings(BaseModel):
    daily_rate: float = 0
    total_daily_wage: float = 0
    total_overtime: float = 0
    bonus: float = 0
    deductions: float = 0
    kasbon_deduction: float = 0
    net_pay: float = 0


class WorkerPaymentInfo(BaseModel):
    """Copied from the worker profile, not a live reference."""
    bank_account: str = ""
    bank_platform: str = ""
    account_name: str = ""


class SignatureSlot(BaseModel):
    passphrase_hash: str
    signer_id: str
    signer_name: str = ""
    signed_at: str


class SlipAuthorization(BaseModel):
    director: Optional[SignatureSlot] = None
    owner: Optional[SignatureSlot] = None


class PayrollSlip(BaseModel):
    id: str
    slip_number: str
    worker_id: str
    worker_name: str = ""

    period: SlipPeriod
    attendance_summary: AttendanceSummary
    earnings: Earnings
    worker_payment_info: WorkerPaymentInfo
    authorization: SlipAuthorization = Field(default_factory=SlipAuthorization)

    status: SlipStatus = SlipStatus.DRAFT
    notes: str = ""

    created_by: Optional[str] = None
    created_at: str
    issued_by: Optional[str] = None
    issued_at: Optional[str] = None

    status_history: List[dict] = []


class SlipGenerateRequest(BaseModel):
    worker_id: str
    start_date: str  # YYYY-MM-DD
    end_date: str    # YYYY-MM-DD
    bonus: float = Field(0, ge=0)
    deductions: float = Field(0, ge=0)
    notes: Optional[str] = ""


class SlipAuthorizeRequest(BaseModel):
    passphrase: Optional[str] = None


class SlipIssueRequest(BaseModel):
    note: Optional[str] = ""
