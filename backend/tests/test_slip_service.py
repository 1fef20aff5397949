"""
Slip Gaji generation tests
============================================================
1. earnings from attendance + kasbon (scenario: net pay 720000)
2. attendance summary and hours
3. slip numbering SG-YYYYMMDD-NNN
4. one slip per worker per exact period
5. snapshot semantics
6. draft-only deletion
7. number collisions and period races under concurrency
"""
import uuid
import pytest

import services.slip_service as slip_service
from conftest import run, attendance_day, kasbon
from services.slip_service import (
    generate_slip, generate_slip_number, format_slip_number, count_slips_in_month,
    summarize_attendance, calculate_net_pay, delete_slip, get_slip, list_slips,
    list_worker_slips, list_payable_workers,
)
from utils.dates import day_start, day_end, parse_day
from utils.error_codes import (
    DuplicatePeriod, InvalidPeriod, InvalidState, SlipNotFound, WorkerNotFound, AppError,
)


def period(start, end):
    return day_start(parse_day(start)), day_end(parse_day(end))


WEEK = period("2026-10-05", "2026-10-10")


class TestEarnings:

    def test_scenario_net_pay(self, mock_db, worker_week):
        slip = run(generate_slip(worker_week, *WEEK, bonus=20000, deductions=0))
        earnings = slip["earnings"]
        assert earnings["total_daily_wage"] == 750000
        assert earnings["total_overtime"] == 0
        assert earnings["kasbon_deduction"] == 50000
        assert earnings["bonus"] == 20000
        assert earnings["daily_rate"] == 150000
        assert earnings["net_pay"] == 720000

    def test_summary_counts_and_hours(self, mock_db, worker_week):
        slip = run(generate_slip(worker_week, *WEEK))
        summary = slip["attendance_summary"]
        assert summary["total_days"] == 5
        assert summary["present_days"] == 4
        assert summary["late_days"] == 1
        assert summary["absent_days"] == 0
        assert summary["permit_days"] == 0
        assert summary["total_hours"] == 45.0

    def test_hours_need_both_punches(self):
        records = [
            attendance_day("w", "2026-10-05", check_in="01:00", check_out="09:30"),
            attendance_day("w", "2026-10-06", check_in="01:00", check_out=None),
            attendance_day("w", "2026-10-07", status="Absent", daily_rate=0, check_in=None, check_out=None),
            attendance_day("w", "2026-10-08", status="Permit", daily_rate=0, check_in=None, check_out=None),
        ]
        summary = summarize_attendance(records)
        assert summary.total_hours == 8.5
        assert summary.absent_days == 1
        assert summary.permit_days == 1
        assert summary.total_days == 4

    def test_only_approved_in_period_kasbon_deducted(self, mock_db, users, worker_week):
        run(mock_db.kasbon.insert_many([
            kasbon(worker_week, 70000, "2026-10-07T05:00:00.000Z", status="Pending"),
            kasbon(worker_week, 30000, "2026-10-07T05:00:00.000Z", status="Rejected"),
            kasbon(worker_week, 40000, "2026-10-11T00:00:00.000Z"),
            kasbon(worker_week, 10000, "2026-10-10T23:59:59.999Z", status="approved"),
            kasbon(users["worker2"]["id"], 99000, "2026-10-07T05:00:00.000Z"),
        ]))
        slip = run(generate_slip(worker_week, *WEEK))
        assert slip["earnings"]["kasbon_deduction"] == 60000

    def test_overtime_is_summed_not_recomputed(self, mock_db, users):
        worker_id = users["worker"]["id"]
        run(mock_db.attendance.insert_many([
            attendance_day(worker_id, "2026-10-05", overtime_pay=45000),
            attendance_day(worker_id, "2026-10-06", overtime_pay=30000, daily_rate=160000),
        ]))
        slip = run(generate_slip(worker_id, *WEEK))
        assert slip["earnings"]["total_overtime"] == 75000
        assert slip["earnings"]["total_daily_wage"] == 310000
        assert slip["earnings"]["daily_rate"] == 160000

    def test_net_pay_never_negative(self, mock_db, worker_week):
        slip = run(generate_slip(worker_week, *WEEK, deductions=5000000))
        assert slip["earnings"]["net_pay"] == 0
        assert calculate_net_pay(100, 0, 0, 50, 100) == 0
        assert calculate_net_pay(100, 20, 5, 10, 15) == 100

    def test_no_attendance_gives_empty_slip(self, mock_db, users):
        slip = run(generate_slip(users["worker2"]["id"], *WEEK, bonus=10000))
        assert slip["attendance_summary"]["total_days"] == 0
        assert slip["earnings"]["net_pay"] == 10000


class TestSlipDocument:

    def test_draft_with_snapshot_fields(self, mock_db, users, worker_week):
        slip = run(generate_slip(worker_week, *WEEK, notes="Minggu 41", created_by=users["supervisor"]["id"]))
        assert slip["status"] == "draft"
        assert slip["period"] == {
            "start_date": "2026-10-05T00:00:00.000Z",
            "end_date": "2026-10-10T23:59:59.999Z",
        }
        assert slip["authorization"] == {"director": None, "owner": None}
        assert slip["worker_payment_info"]["bank_platform"] == "BCA"
        assert slip["worker_name"] == "Joko Susilo"
        assert slip["notes"] == "Minggu 41"
        assert slip["created_by"] == users["supervisor"]["id"]
        assert slip["status_history"][0]["to_status"] == "draft"

    def test_snapshot_survives_profile_and_ledger_edits(self, mock_db, worker_week):
        slip = run(generate_slip(worker_week, *WEEK))
        run(mock_db.users.update_one({"id": worker_week}, {"$set": {"payment_info.bank_account": "999"}}))
        run(mock_db.attendance.update_many({"user_id": worker_week}, {"$set": {"daily_rate": 1}}))
        stored = run(get_slip(slip["id"]))
        assert stored["worker_payment_info"]["bank_account"] == "1234567890"
        assert stored["earnings"]["total_daily_wage"] == 750000


class TestSlipNumber:

    def test_first_slip_of_month(self, mock_db, worker_week):
        slip = run(generate_slip(worker_week, *WEEK))
        assert slip["slip_number"] == "SG-20261005-001"

    def test_sequence_per_month(self, mock_db, users):
        first = run(generate_slip(users["worker"]["id"], *WEEK))
        second = run(generate_slip(users["worker2"]["id"], *WEEK))
        other_start, other_end = period("2026-10-12", "2026-10-17")
        third = run(generate_slip(users["worker"]["id"], other_start, other_end))
        november = run(generate_slip(users["worker"]["id"], *period("2026-11-02", "2026-11-07")))
        assert first["slip_number"] == "SG-20261005-001"
        assert second["slip_number"] == "SG-20261005-002"
        assert third["slip_number"] == "SG-20261012-003"
        assert november["slip_number"] == "SG-20261102-001"

    def test_continues_from_existing_month_count(self, mock_db, users):
        for n in range(2):
            run(mock_db.payroll_slips.insert_one({
                "id": str(uuid.uuid4()),
                "slip_number": f"SG-20261001-00{n + 1}",
                "worker_id": f"legacy-{n}",
                "period": {"start_date": "2026-10-01T00:00:00.000Z", "end_date": "2026-10-03T23:59:59.999Z"},
                "status": "issued",
            }))
        start, _ = WEEK
        assert run(count_slips_in_month(start)) == 2
        assert run(generate_slip_number(start)) == "SG-20261005-003"
        assert run(generate_slip_number(start)) == "SG-20261005-004"

    def test_deleting_a_draft_does_not_reuse_number(self, mock_db, users):
        first = run(generate_slip(users["worker"]["id"], *WEEK))
        run(delete_slip(first["id"]))
        again = run(generate_slip(users["worker"]["id"], *WEEK))
        assert again["slip_number"] == "SG-20261005-002"

    def test_format(self):
        start, _ = period("2026-01-31", "2026-02-01")
        assert format_slip_number(start, 7) == "SG-20260131-007"


class TestGenerateValidation:

    def test_duplicate_period_rejected(self, mock_db, worker_week):
        first = run(generate_slip(worker_week, *WEEK))
        with pytest.raises(DuplicatePeriod) as exc:
            run(generate_slip(worker_week, *WEEK, bonus=5))
        assert "already exists" in str(exc.value.error_code[1])
        assert len(run(list_slips(worker_id=worker_week))) == 1
        assert run(get_slip(first["id"]))["earnings"]["bonus"] == 0

    def test_adjacent_and_different_periods_allowed(self, mock_db, worker_week):
        run(generate_slip(worker_week, *WEEK))
        run(generate_slip(worker_week, *period("2026-10-05", "2026-10-09")))
        run(generate_slip(worker_week, *period("2026-10-11", "2026-10-17")))
        assert len(run(list_worker_slips(worker_week))) == 3

    def test_same_period_other_worker_allowed(self, mock_db, users, worker_week):
        run(generate_slip(worker_week, *WEEK))
        run(generate_slip(users["worker2"]["id"], *WEEK))
        assert len(run(list_slips())) == 2

    def test_invalid_period(self, mock_db, worker_week):
        start, _ = WEEK
        end = day_end(parse_day("2026-10-04"))
        with pytest.raises(InvalidPeriod):
            run(generate_slip(worker_week, start, end))

    def test_single_day_period_is_valid(self, mock_db, worker_week):
        slip = run(generate_slip(worker_week, *period("2026-10-05", "2026-10-05")))
        assert slip["attendance_summary"]["total_days"] == 1

    def test_worker_not_found(self, mock_db, users):
        with pytest.raises(WorkerNotFound):
            run(generate_slip("no-such-worker", *WEEK))

    def test_negative_bonus_rejected(self, mock_db, worker_week):
        with pytest.raises(AppError):
            run(generate_slip(worker_week, *WEEK, bonus=-1))


class TestListAndDelete:

    def test_delete_draft(self, mock_db, worker_week):
        slip = run(generate_slip(worker_week, *WEEK))
        run(delete_slip(slip["id"]))
        with pytest.raises(SlipNotFound):
            run(get_slip(slip["id"]))

    @pytest.mark.parametrize("status", ["authorized", "issued"])
    def test_delete_non_draft_rejected(self, mock_db, worker_week, status):
        slip = run(generate_slip(worker_week, *WEEK))
        run(mock_db.payroll_slips.update_one({"id": slip["id"]}, {"$set": {"status": status}}))
        with pytest.raises(InvalidState):
            run(delete_slip(slip["id"]))
        assert run(get_slip(slip["id"]))["status"] == status

    def test_delete_unknown(self, mock_db):
        with pytest.raises(SlipNotFound):
            run(delete_slip("missing"))

    def test_list_filters(self, mock_db, users, worker_week):
        run(generate_slip(worker_week, *WEEK))
        run(generate_slip(users["worker2"]["id"], *period("2026-10-12", "2026-10-17")))
        assert len(run(list_slips(start=WEEK[0], end=WEEK[1]))) == 1
        assert len(run(list_slips(status="draft"))) == 2
        assert len(run(list_slips(status="issued"))) == 0

    def test_payable_workers(self, mock_db, users):
        workers = run(list_payable_workers())
        assert [w["full_name"] for w in workers] == ["Dedi Kurniawan", "Joko Susilo"]


def stored_slip(slip_number, worker_id, start, end):
    return {
        "id": str(uuid.uuid4()),
        "slip_number": slip_number,
        "worker_id": worker_id,
        "period": {"start_date": start, "end_date": end},
        "status": "draft",
    }


SEPTEMBER = ("2026-09-28T00:00:00.000Z", "2026-09-30T23:59:59.999Z")


class TestConcurrentGeneration:

    def test_taken_number_is_skipped(self, mock_db, worker_week):
        # numbered in October but its period is in September, so the month count misses it
        run(mock_db.payroll_slips.insert_one(stored_slip("SG-20261005-001", "legacy", *SEPTEMBER)))
        slip = run(generate_slip(worker_week, *WEEK))
        assert slip["slip_number"] == "SG-20261005-002"
        assert len(run(list_slips(worker_id=worker_week))) == 1

    def test_gives_up_after_repeated_collisions(self, mock_db, worker_week):
        run(mock_db.payroll_slips.insert_many([
            stored_slip(f"SG-20261005-00{n}", f"legacy-{n}", *SEPTEMBER) for n in range(1, 6)
        ]))
        with pytest.raises(AppError) as exc:
            run(generate_slip(worker_week, *WEEK))
        assert exc.value.code == "E6006"
        assert exc.value.status_code == 503
        assert run(list_slips(worker_id=worker_week)) == []

    def test_period_race_reported_as_duplicate(self, mock_db, monkeypatch, worker_week):
        real_find = slip_service.find_slip_for_period
        competitor = stored_slip(
            "SG-20261005-900", worker_week,
            "2026-10-05T00:00:00.000Z", "2026-10-10T23:59:59.999Z"
        )
        calls = []

        async def racing_find(worker_id, start_iso, end_iso):
            calls.append(worker_id)
            if len(calls) == 1:
                # the other request inserts after our duplicate check
                await mock_db.payroll_slips.insert_one(dict(competitor))
                return None
            return await real_find(worker_id, start_iso, end_iso)

        monkeypatch.setattr(slip_service, "find_slip_for_period", racing_find)

        with pytest.raises(DuplicatePeriod):
            run(generate_slip(worker_week, *WEEK))
        slips = run(list_slips(worker_id=worker_week))
        assert [s["slip_number"] for s in slips] == ["SG-20261005-900"]
