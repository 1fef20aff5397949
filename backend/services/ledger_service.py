"""
Ledger Service - read access to the external ledgers

- attendance: one record per worker per day, daily_rate/overtime_pay already computed
- kasbon: cash advances; only Approved entries are deducted
- users: identity and payment info
"""
from datetime import datetime
from typing import List, Optional
from database import db
from models.slip_gaji import KasbonStatus
from utils.dates import to_iso

# Older records carry the lowercase status
APPROVED_KASBON_STATUSES = [KasbonStatus.APPROVED.value, KasbonStatus.APPROVED.value.lower()]


async def get_worker(worker_id: str) -> Optional[dict]:
    return await db.users.find_one({"id": worker_id}, {"_id": 0, "password_hash": 0})


async def list_verified_workers() -> List[dict]:
    return await db.users.find(
        {"role": "worker", "is_verified": True},
        {"_id": 0, "id": 1, "full_name": 1, "role": 1, "payment_info": 1}
    ).sort("full_name", 1).to_list(1000)


async def query_attendance(worker_id: str, start: datetime, end: datetime) -> List[dict]:
    """Attendance days of the worker whose calendar date lies within [start, end]."""
    return await db.attendance.find({
        "user_id": worker_id,
        "date": {"$gte": start.date().isoformat(), "$lte": end.date().isoformat()}
    }, {"_id": 0}).sort("date", 1).to_list(1000)


async def query_approved_advances(worker_id: str, start: datetime, end: datetime) -> List[dict]:
    """Approved kasbon entries created within [start, end]."""
    return await db.kasbon.find({
        "user_id": worker_id,
        "status": {"$in": APPROVED_KASBON_STATUSES},
        "created_at": {"$gte": to_iso(start), "$lte": to_iso(end)}
    }, {"_id": 0}).sort("created_at", 1).to_list(1000)
