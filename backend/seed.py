import uuid
from datetime import timedelta
from utils.dates import current_week_range, to_iso, utc_now


def _user(username, full_name, role, payment_info=None):
    return {
        "id": str(uuid.uuid5(uuid.NAMESPACE_DNS, f"mterp-{username}")),
        "username": username,
        "full_name": full_name,
        "role": role,
        "is_active": True,
        "is_verified": True,
        "payment_info": payment_info or {},
        "created_at": to_iso(utc_now()),
    }


SEED_USERS = [
    _user("owner", "Budi Santoso", "owner"),
    _user("director", "Siti Rahayu", "director"),
    _user("supervisor1", "Agus Wijaya", "supervisor"),
    _user("worker1", "Joko Susilo", "worker", {
        "bank_account": "1234567890",
        "bank_platform": "BCA",
        "account_name": "Joko Susilo",
    }),
    _user("worker2", "Dedi Kurniawan", "worker", {
        "bank_account": "081234567890",
        "bank_platform": "DANA",
        "account_name": "Dedi Kurniawan",
    }),
]

DAILY_RATE = 150000


def _attendance_week(user_id: str, monday):
    """Mon-Fri attendance, 08:00-17:00 local (UTC+7)"""
    records = []
    for offset in range(5):
        day = monday + timedelta(days=offset)
        check_in = day.replace(hour=1)
        check_out = day.replace(hour=10)
        records.append({
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "date": day.date().isoformat(),
            "status": "Late" if offset == 4 else "Present",
            "check_in": {"time": to_iso(check_in)},
            "check_out": {"time": to_iso(check_out)},
            "wage_type": "daily",
            "daily_rate": DAILY_RATE,
            "overtime_pay": 0,
            "payment_status": "Unpaid",
            "created_at": to_iso(check_in),
        })
    return records


def _demo_project(created_by: str):
    return {
        "id": str(uuid.uuid4()),
        "nama": "Renovasi Gudang Cikarang",
        "lokasi": "Cikarang, Bekasi",
        "total_budget": 1000000,
        "progress": 0,
        "status": "Planning",
        "work_items": [
            {"id": str(uuid.uuid4()), "name": "Pekerjaan Pondasi", "qty": 40, "volume": "M3", "cost": 100000, "progress": 50},
            {"id": str(uuid.uuid4()), "name": "Pemasangan Atap", "qty": 200, "volume": "M2", "cost": 300000, "progress": 0},
        ],
        "supplies": [
            {"id": str(uuid.uuid4()), "item": "Baja Ringan", "cost": 600000, "status": "Ordered", "delivery_date": None},
        ],
        "daily_reports": [],
        "created_by": created_by,
        "created_at": to_iso(utc_now()),
    }


async def seed_database(db):
    """Demo data for a fresh database; existing data is left alone."""
    if await db.users.count_documents({}) > 0:
        return {"message": "Database already seeded", "seeded": False}

    await db.users.insert_many([dict(u) for u in SEED_USERS])

    monday, _ = current_week_range()
    workers = [u for u in SEED_USERS if u["role"] == "worker"]
    for worker in workers:
        await db.attendance.insert_many(_attendance_week(worker["id"], monday))

    await db.kasbon.insert_one({
        "id": str(uuid.uuid4()),
        "user_id": workers[0]["id"],
        "amount": 50000,
        "reason": "Biaya transport",
        "status": "Approved",
        "approved_by": SEED_USERS[0]["id"],
        "approved_at": to_iso(monday + timedelta(hours=3)),
        "created_at": to_iso(monday + timedelta(hours=2)),
    })

    await db.projects.insert_one(_demo_project(SEED_USERS[0]["id"]))

    return {"message": f"Seeded {len(SEED_USERS)} users with attendance, kasbon and a project", "seeded": True}
