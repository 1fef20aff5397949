"""
Progress Service - cost-weighted project completion

progress = Σ (cost_i / total_cost) × progress_i, rounded half-up
- total_cost == 0 → plain average of progress values
- no items → 0
- supplies: Pending = 0, Ordered = 50, Delivered = 100

Used for overall project progress and for every daily report.
"""
import logging
import uuid
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional
from database import db
from models.project import ProjectStatus, SupplyStatus
from utils.dates import to_iso, utc_now, parse_day
from utils.error_codes import AppError, ErrorCode, ProjectNotFound, ProjectItemNotFound

logger = logging.getLogger(__name__)

SUPPLY_STATUS_PROGRESS = {
    SupplyStatus.PENDING.value: 0,
    SupplyStatus.ORDERED.value: 50,
    SupplyStatus.DELIVERED.value: 100,
}


def supply_status_progress(status) -> int:
    """Unknown statuses count as not started."""
    if isinstance(status, SupplyStatus):
        status = status.value
    return SUPPLY_STATUS_PROGRESS.get(status, 0)


def _decimal(value) -> Decimal:
    return Decimal(str(value or 0))


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def aggregate_progress(items: Iterable[dict]) -> int:
    """
    Cost-weighted completion percentage of a list of {cost, progress} items.

    Raises ValueError for negative cost or progress outside [0, 100];
    callers sanitize before aggregating.
    """
    items = list(items)
    if not items:
        return 0

    costs = []
    values = []
    for item in items:
        cost = _decimal(item.get("cost"))
        progress = _decimal(item.get("progress"))
        if cost < 0:
            raise ValueError(f"negative cost: {cost}")
        if progress < 0 or progress > 100:
            raise ValueError(f"progress out of range: {progress}")
        costs.append(cost)
        values.append(progress)

    total_cost = sum(costs, Decimal(0))
    if total_cost == 0:
        result = sum(values, Decimal(0)) / len(values)
    else:
        result = sum((c * p for c, p in zip(costs, values)), Decimal(0)) / total_cost

    return max(0, min(100, _round_half_up(result)))


def project_weighted_items(project: dict) -> List[dict]:
    """Work items and supplies of a project as weighted items."""
    items = []
    for wi in project.get("work_items") or []:
        items.append({
            "kind": "work_item",
            "id": wi.get("id"),
            "name": wi.get("name", ""),
            "cost": wi.get("cost", 0) or 0,
            "progress": wi.get("progress", 0) or 0,
        })
    for supply in project.get("supplies") or []:
        items.append({
            "kind": "supply",
            "id": supply.get("id"),
            "name": supply.get("item", ""),
            "cost": supply.get("cost", 0) or 0,
            "progress": supply_status_progress(supply.get("status")),
        })
    return items


def derive_project_status(progress: int, current: Optional[str] = None) -> str:
    if progress >= 100:
        return ProjectStatus.COMPLETED.value
    if progress > 0:
        return ProjectStatus.IN_PROGRESS.value
    return current or ProjectStatus.PLANNING.value


def progress_breakdown(project: dict) -> dict:
    """Per-item weight and contribution, for display; nothing is persisted."""
    items = project_weighted_items(project)
    total_cost = sum((_decimal(i["cost"]) for i in items), Decimal(0))
    weighted = total_cost > 0

    rows = []
    for item in items:
        if weighted:
            weight = _decimal(item["cost"]) / total_cost
        else:
            weight = Decimal(1) / len(items)
        rows.append({
            **item,
            "weight": float(round(weight * 100, 2)),
            "contribution": float(round(weight * _decimal(item["progress"]), 2)),
        })

    return {
        "project_id": project.get("id"),
        "total_cost": float(total_cost),
        "weighted": weighted,
        "items": rows,
        "progress": aggregate_progress(items),
    }


async def _get_project(project_id: str) -> dict:
    project = await db.projects.find_one({"id": project_id}, {"_id": 0})
    if not project:
        raise ProjectNotFound()
    return project


async def _save_progress(project: dict, extra_set: dict = None, push: dict = None) -> dict:
    progress = aggregate_progress(project_weighted_items(project))
    status = derive_project_status(progress, project.get("status"))

    update = {"$set": {
        "progress": progress,
        "status": status,
        "updated_at": to_iso(utc_now()),
        **(extra_set or {}),
    }}
    if push:
        update["$push"] = push

    await db.projects.update_one({"id": project["id"]}, update)
    logger.info(f"Project {project['id']} progress={progress} status={status}")
    return await _get_project(project["id"])


async def recompute_project_progress(project_id: str) -> dict:
    project = await _get_project(project_id)
    return await _save_progress(project)


async def _set_item_fields(project_id: str, array: str, item_id: str, fields: dict, label: str) -> dict:
    """Positional $set on one array element, then recompute from the stored project."""
    result = await db.projects.update_one(
        {"id": project_id, f"{array}.id": item_id},
        {"$set": {f"{array}.$.{k}": v for k, v in fields.items()}}
    )
    if result.matched_count == 0:
        await _get_project(project_id)
        raise ProjectItemNotFound(f"{label} {item_id} not found")
    return await recompute_project_progress(project_id)


async def update_work_item(project_id: str, item_id: str, progress: float, cost: float = None) -> dict:
    fields = {"progress": progress}
    if cost is not None:
        fields["cost"] = cost
    return await _set_item_fields(project_id, "work_items", item_id, fields, "Work item")


async def update_supply_status(project_id: str, supply_id: str, status: str, delivery_date: str = None) -> dict:
    fields = {"status": status}
    if delivery_date:
        fields["delivery_date"] = delivery_date
    return await _set_item_fields(project_id, "supplies", supply_id, fields, "Supply")


async def add_daily_report(project_id: str, report: dict, item_updates: List[dict], created_by: str = None) -> dict:
    """
    Apply the report's work item progress, then store the aggregated
    project progress on the report itself.
    """
    project = await _get_project(project_id)
    known = {wi.get("id") for wi in project.get("work_items") or []}
    for upd in item_updates:
        if upd["item_id"] not in known:
            raise ProjectItemNotFound(f"Work item {upd['item_id']} not found")

    try:
        report_date = parse_day(report.get("date") or utc_now()).isoformat()
    except ValueError:
        raise AppError(ErrorCode.GENERAL_VALIDATION_ERROR, f"Invalid report date: {report.get('date')}")

    for upd in item_updates:
        await db.projects.update_one(
            {"id": project_id, "work_items.id": upd["item_id"]},
            {"$set": {"work_items.$.progress": upd["progress"]}}
        )

    project = await _get_project(project_id)
    entry = {
        "id": str(uuid.uuid4()),
        "date": report_date,
        "progress_percent": aggregate_progress(project_weighted_items(project)),
        "weather": report.get("weather") or "Cerah",
        "materials": report.get("materials"),
        "workforce": report.get("workforce"),
        "notes": report.get("notes"),
        "work_items": item_updates,
        "created_by": created_by,
        "created_at": to_iso(utc_now()),
    }

    return await _save_progress(project, push={"daily_reports": entry})
