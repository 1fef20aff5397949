"""
Slip Gaji Service - payroll slip generation

Flow: attendance ledger + kasbon ledger → draft slip → signing (slip_authorization)

Formula:
net_pay = max(0, total_daily_wage + total_overtime + bonus - deductions - kasbon_deduction)

Rules:
- one slip per (worker, period.start_date, period.end_date), exact match only
- slip number SG-YYYYMMDD-NNN, NNN counted per calendar month of period start
- everything on the slip is a snapshot; later ledger edits do not touch it
- only draft slips can be deleted
"""
import logging
import uuid
from datetime import datetime
from typing import List, Optional
from pymongo.errors import DuplicateKeyError
from database import db
from models.slip_gaji import (
    AttendanceStatus, AttendanceSummary, Earnings, PayrollSlip,
    SlipAuthorization, SlipPeriod, SlipStatus, WorkerPaymentInfo,
)
from services.ledger_service import (
    get_worker, list_verified_workers, query_approved_advances, query_attendance,
)
from utils.dates import month_bounds, parse_iso, to_iso, utc_now
from utils.error_codes import (
    AppError, DuplicatePeriod, ErrorCode, InvalidPeriod, InvalidState,
    SlipNotFound, WorkerNotFound,
)

logger = logging.getLogger(__name__)

SLIP_NUMBER_ATTEMPTS = 5


# ============================================================
# SLIP NUMBER
# ============================================================

async def count_slips_in_month(period_start: datetime) -> int:
    """Slips whose whole period lies inside the calendar month of period_start."""
    first, last = month_bounds(period_start)
    return await db.payroll_slips.count_documents({
        "period.start_date": {"$gte": to_iso(first)},
        "period.end_date": {"$lte": to_iso(last)},
    })


async def next_month_sequence(period_start: datetime) -> int:
    """
    Atomic per-month counter. On first use for a month it is seeded with
    the number of slips already in that month, so it continues from there.
    """
    counter_id = f"slip_number_{period_start.strftime('%Y%m')}"

    existing = await db.counters.find_one({"id": counter_id}, {"_id": 0})
    if not existing:
        seed = await count_slips_in_month(period_start)
        try:
            await db.counters.update_one(
                {"id": counter_id},
                {"$setOnInsert": {"seq": seed}},
                upsert=True
            )
        except DuplicateKeyError:
            # another request created the counter first
            pass

    result = await db.counters.find_one_and_update(
        {"id": counter_id},
        {"$inc": {"seq": 1}},
        return_document=True
    )
    return result["seq"]


def format_slip_number(period_start: datetime, seq: int) -> str:
    return f"SG-{period_start.strftime('%Y%m%d')}-{seq:03d}"


async def generate_slip_number(period_start: datetime) -> str:
    seq = await next_month_sequence(period_start)
    return format_slip_number(period_start, seq)


# ============================================================
# CALCULATION
# ============================================================

def summarize_attendance(records: List[dict]) -> AttendanceSummary:
    """Status counts and checked-in hours; a day without both punches adds no hours."""
    counts = {status.value: 0 for status in AttendanceStatus}
    total_hours = 0.0

    for rec in records:
        status = rec.get("status")
        if status in counts:
            counts[status] += 1

        check_in = parse_iso((rec.get("check_in") or {}).get("time"))
        check_out = parse_iso((rec.get("check_out") or {}).get("time"))
        if check_in and check_out:
            total_hours += (check_out - check_in).total_seconds() / 3600

    return AttendanceSummary(
        total_days=len(records),
        present_days=counts[AttendanceStatus.PRESENT.value],
        late_days=counts[AttendanceStatus.LATE.value],
        absent_days=counts[AttendanceStatus.ABSENT.value],
        permit_days=counts[AttendanceStatus.PERMIT.value],
        total_hours=round(total_hours, 1),
    )


def calculate_net_pay(total_daily_wage: float, total_overtime: float, bonus: float,
                      deductions: float, kasbon_deduction: float) -> float:
    net = total_daily_wage + total_overtime + bonus - deductions - kasbon_deduction
    return max(0, round(net, 2))


def calculate_earnings(records: List[dict], advances: List[dict], bonus: float = 0, deductions: float = 0) -> Earnings:
    """
    Sums the per-day wage figures the attendance ledger already computed.
    daily_rate is the latest non-zero rate in the period (records sorted by date).
    """
    total_daily_wage = 0.0
    total_overtime = 0.0
    daily_rate = 0.0

    for rec in records:
        rate = rec.get("daily_rate") or 0
        total_daily_wage += rate
        total_overtime += rec.get("overtime_pay") or 0
        if rate > 0:
            daily_rate = rate

    kasbon_deduction = sum((a.get("amount") or 0) for a in advances)
    bonus = bonus or 0
    deductions = deductions or 0

    return Earnings(
        daily_rate=daily_rate,
        total_daily_wage=round(total_daily_wage, 2),
        total_overtime=round(total_overtime, 2),
        bonus=bonus,
        deductions=deductions,
        kasbon_deduction=round(kasbon_deduction, 2),
        net_pay=calculate_net_pay(total_daily_wage, total_overtime, bonus, deductions, kasbon_deduction),
    )


# ============================================================
# GENERATE
# ============================================================

async def find_slip_for_period(worker_id: str, start_iso: str, end_iso: str) -> Optional[dict]:
    return await db.payroll_slips.find_one({
        "worker_id": worker_id,
        "period.start_date": start_iso,
        "period.end_date": end_iso,
    }, {"_id": 0})


async def generate_slip(
    worker_id: str,
    period_start: datetime,
    period_end: datetime,
    bonus: float = 0,
    deductions: float = 0,
    notes: str = "",
    created_by: Optional[str] = None
) -> dict:
    """
    Generate a draft slip. period_start/period_end must already be at
    UTC day boundaries (see utils.dates.day_start / day_end).
    """
    if period_start >= period_end:
        raise InvalidPeriod()
    if (bonus or 0) < 0 or (deductions or 0) < 0:
        raise AppError(ErrorCode.GENERAL_VALIDATION_ERROR, "Bonus and deductions cannot be negative")

    start_iso = to_iso(period_start)
    end_iso = to_iso(period_end)

    if await find_slip_for_period(worker_id, start_iso, end_iso):
        raise DuplicatePeriod()

    worker = await get_worker(worker_id)
    if not worker:
        raise WorkerNotFound()

    # both reads use the same bounds so the numbers agree with each other
    attendance = await query_attendance(worker_id, period_start, period_end)
    advances = await query_approved_advances(worker_id, period_start, period_end)

    summary = summarize_attendance(attendance)
    earnings = calculate_earnings(attendance, advances, bonus, deductions)
    payment = worker.get("payment_info") or {}
    now = to_iso(utc_now())

    for attempt in range(SLIP_NUMBER_ATTEMPTS):
        slip = PayrollSlip(
            id=str(uuid.uuid4()),
            slip_number=await generate_slip_number(period_start),
            worker_id=worker_id,
            worker_name=worker.get("full_name", ""),
            period=SlipPeriod(start_date=start_iso, end_date=end_iso),
            attendance_summary=summary,
            earnings=earnings,
            worker_payment_info=WorkerPaymentInfo(
                bank_account=payment.get("bank_account") or "",
                bank_platform=payment.get("bank_platform") or "",
                account_name=payment.get("account_name") or "",
            ),
            authorization=SlipAuthorization(),
            status=SlipStatus.DRAFT,
            notes=notes or "",
            created_by=created_by,
            created_at=now,
            status_history=[{
                "from_status": None,
                "to_status": SlipStatus.DRAFT.value,
                "actor": created_by,
                "timestamp": now,
                "note": "Slip generated",
            }],
        ).model_dump(mode="json")

        try:
            await db.payroll_slips.insert_one(slip)
        except DuplicateKeyError:
            if await find_slip_for_period(worker_id, start_iso, end_iso):
                raise DuplicatePeriod()
            logger.warning(f"Slip number {slip['slip_number']} taken, retrying ({attempt + 1})")
            continue

        slip.pop("_id", None)
        logger.info(
            f"Slip {slip['slip_number']} generated for worker {worker_id} "
            f"{start_iso[:10]}..{end_iso[:10]} net_pay={earnings.net_pay}"
        )
        return slip

    raise AppError(ErrorCode.SLIP_NUMBER_EXHAUSTED, status_code=503)


# ============================================================
# READ / DELETE
# ============================================================

async def get_slip(slip_id: str) -> dict:
    slip = await db.payroll_slips.find_one({"id": slip_id}, {"_id": 0})
    if not slip:
        raise SlipNotFound()
    return slip


async def list_slips(
    worker_id: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    status: Optional[str] = None
) -> List[dict]:
    query = {}
    if worker_id:
        query["worker_id"] = worker_id
    if start and end:
        query["period.start_date"] = {"$gte": to_iso(start)}
        query["period.end_date"] = {"$lte": to_iso(end)}
    if status:
        query["status"] = status
    return await db.payroll_slips.find(query, {"_id": 0}).sort("created_at", -1).to_list(500)


async def list_worker_slips(worker_id: str) -> List[dict]:
    return await list_slips(worker_id=worker_id)


async def list_payable_workers() -> List[dict]:
    return await list_verified_workers()


async def delete_slip(slip_id: str) -> None:
    """Only drafts; the status condition is part of the delete itself."""
    result = await db.payroll_slips.delete_one({"id": slip_id, "status": SlipStatus.DRAFT.value})
    if result.deleted_count:
        logger.info(f"Draft slip {slip_id} deleted")
        return

    slip = await db.payroll_slips.find_one({"id": slip_id}, {"_id": 0, "status": 1})
    if not slip:
        raise SlipNotFound()
    raise InvalidState(
        f"Only draft slips can be deleted (status: {slip.get('status')})",
        f"Hanya slip draft yang dapat dihapus (status: {slip.get('status')})"
    )
