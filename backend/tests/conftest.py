"""
Shared fixtures - in-memory MongoDB (mongomock-motor) patched into every
module that imported `db`, plus users and tokens for each role.
"""
import asyncio
import uuid
import pytest
from mongomock_motor import AsyncMongoMockClient

import database
import server
import routes.projects
import services.ledger_service
import services.progress_service
import services.slip_authorization
import services.slip_service
from utils.auth import create_access_token

DB_MODULES = [
    database,
    server,
    routes.projects,
    services.ledger_service,
    services.progress_service,
    services.slip_authorization,
    services.slip_service,
]


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def mock_db(monkeypatch):
    test_db = AsyncMongoMockClient()[f"mterp_test_{uuid.uuid4().hex[:8]}"]
    for module in DB_MODULES:
        monkeypatch.setattr(module, "db", test_db)
    run(database.ensure_indexes(test_db))
    return test_db


def make_user(role, full_name, payment_info=None, is_verified=True):
    return {
        "id": str(uuid.uuid4()),
        "username": full_name.split()[0].lower(),
        "full_name": full_name,
        "role": role,
        "is_active": True,
        "is_verified": is_verified,
        "payment_info": payment_info or {},
    }


@pytest.fixture
def users(mock_db):
    people = {
        "owner": make_user("owner", "Budi Santoso"),
        "director": make_user("director", "Siti Rahayu"),
        "supervisor": make_user("supervisor", "Agus Wijaya"),
        "worker": make_user("worker", "Joko Susilo", {
            "bank_account": "1234567890",
            "bank_platform": "BCA",
            "account_name": "Joko Susilo",
        }),
        "worker2": make_user("worker", "Dedi Kurniawan"),
    }
    run(mock_db.users.insert_many([dict(u) for u in people.values()]))
    return people


def token_for(user):
    return create_access_token({"user_id": user["id"], "full_name": user["full_name"]}, user["role"])


def auth_header(user):
    return {"Authorization": f"Bearer {token_for(user)}"}


def signer(user):
    """Authenticated-user payload as produced by get_current_user"""
    return {"user_id": user["id"], "full_name": user["full_name"], "role": user["role"]}


def attendance_day(user_id, day, status="Present", daily_rate=150000, overtime_pay=0,
                   check_in="01:00", check_out="10:00"):
    record = {
        "id": str(uuid.uuid4()),
        "user_id": user_id,
        "date": day,
        "status": status,
        "daily_rate": daily_rate,
        "overtime_pay": overtime_pay,
        "payment_status": "Unpaid",
    }
    if check_in:
        record["check_in"] = {"time": f"{day}T{check_in}:00.000Z"}
    if check_out:
        record["check_out"] = {"time": f"{day}T{check_out}:00.000Z"}
    return record


def kasbon(user_id, amount, created_at, status="Approved"):
    return {
        "id": str(uuid.uuid4()),
        "user_id": user_id,
        "amount": amount,
        "status": status,
        "created_at": created_at,
    }


@pytest.fixture
def worker_week(mock_db, users):
    """Scenario week 2026-10-05..09: 4 Present + 1 Late at 150000, one 50000 kasbon"""
    worker_id = users["worker"]["id"]
    days = ["2026-10-05", "2026-10-06", "2026-10-07", "2026-10-08", "2026-10-09"]
    records = [attendance_day(worker_id, d) for d in days[:4]]
    records.append(attendance_day(worker_id, days[4], status="Late"))
    run(mock_db.attendance.insert_many(records))
    run(mock_db.kasbon.insert_one(kasbon(worker_id, 50000, "2026-10-06T03:00:00.000Z")))
    return worker_id
