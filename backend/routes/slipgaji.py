"""
Slip Gaji Routes - payroll slips
============================================================
1. supervisor/director/owner generates a draft from attendance + kasbon
2. director and owner each sign with a passphrase
3. both signed → authorized
4. authorized → issued (paid / exported)
Only drafts can be deleted.
"""

from fastapi import APIRouter, Depends
from typing import Optional
from models.slip_gaji import SlipAuthorizeRequest, SlipGenerateRequest, SlipIssueRequest
from services.slip_service import (
    generate_slip, get_slip, list_slips, list_worker_slips,
    list_payable_workers, delete_slip,
)
from services.slip_authorization import sign_slip, issue_slip, public_slip
from utils.auth import get_current_user, require_roles
from utils.dates import parse_day, day_start, day_end, current_week_range, to_iso
from utils.error_codes import InvalidPeriod

router = APIRouter(prefix="/api/slipgaji", tags=["slipgaji"])

MANAGER_ROLES = ('owner', 'director', 'supervisor')
SIGNER_ROLES = ('owner', 'director')


def period_bounds(start_date: str, end_date: str):
    """YYYY-MM-DD pair → (00:00:00.000Z, 23:59:59.999Z)"""
    try:
        start = day_start(parse_day(start_date))
        end = day_end(parse_day(end_date))
    except (TypeError, ValueError):
        raise InvalidPeriod(
            "Dates must be in YYYY-MM-DD format",
            "Tanggal harus berformat YYYY-MM-DD"
        )
    return start, end


# ============================================================
# LIST
# ============================================================

@router.get("")
async def list_all_slips(
    worker_id: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    status: Optional[str] = None,
    user=Depends(require_roles(*MANAGER_ROLES))
):
    """List slips, newest first"""
    start = end = None
    if start_date and end_date:
        start, end = period_bounds(start_date, end_date)
    slips = await list_slips(worker_id=worker_id, start=start, end=end, status=status)
    return [public_slip(s) for s in slips]


@router.get("/workers")
async def get_workers(user=Depends(require_roles(*MANAGER_ROLES))):
    """Verified workers a slip can be generated for"""
    return await list_payable_workers()


@router.get("/my")
async def get_my_slips(user=Depends(get_current_user)):
    """Slips of the logged-in worker"""
    slips = await list_worker_slips(user["user_id"])
    return [public_slip(s) for s in slips]


@router.get("/week")
async def get_week_range(user=Depends(get_current_user)):
    """Default period: Monday to Saturday of the current week"""
    start, end = current_week_range()
    return {"start_date": to_iso(start), "end_date": to_iso(end)}


# ============================================================
# GET SINGLE SLIP
# ============================================================

@router.get("/{slip_id}")
async def get_single_slip(slip_id: str, user=Depends(require_roles(*MANAGER_ROLES))):
    return public_slip(await get_slip(slip_id))


# ============================================================
# GENERATE
# ============================================================

@router.post("/generate", status_code=201)
async def generate(req: SlipGenerateRequest, user=Depends(require_roles(*MANAGER_ROLES))):
    """Generate a draft slip for one worker and period"""
    start, end = period_bounds(req.start_date, req.end_date)
    slip = await generate_slip(
        worker_id=req.worker_id,
        period_start=start,
        period_end=end,
        bonus=req.bonus,
        deductions=req.deductions,
        notes=req.notes or "",
        created_by=user["user_id"],
    )
    return public_slip(slip)


# ============================================================
# AUTHORIZE (SIGN) / ISSUE
# ============================================================

@router.post("/{slip_id}/authorize")
async def authorize(slip_id: str, req: SlipAuthorizeRequest, user=Depends(require_roles(*SIGNER_ROLES))):
    """Sign as director or owner; the caller's role picks the slot"""
    slip = await sign_slip(slip_id, user.get("role"), req.passphrase, user)
    return public_slip(slip)


@router.post("/{slip_id}/issue")
async def issue(slip_id: str, req: SlipIssueRequest, user=Depends(require_roles(*SIGNER_ROLES))):
    slip = await issue_slip(slip_id, user, req.note or "")
    return public_slip(slip)


# ============================================================
# DELETE
# ============================================================

@router.delete("/{slip_id}")
async def remove_slip(slip_id: str, user=Depends(require_roles(*MANAGER_ROLES))):
    await delete_slip(slip_id)
    return {"msg": "Slip deleted"}
