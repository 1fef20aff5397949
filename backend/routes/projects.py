"""
Project progress routes - progress follows work item cost and supply status
"""
from fastapi import APIRouter, Depends
from database import db
from models.project import DailyReportCreate, SupplyStatusUpdate, WorkItemProgressUpdate
from services.progress_service import (
    progress_breakdown, recompute_project_progress, update_work_item,
    update_supply_status, add_daily_report,
)
from utils.auth import get_current_user, require_roles
from utils.error_codes import ProjectNotFound

router = APIRouter(prefix="/api/projects", tags=["projects"])

EDITOR_ROLES = ('owner', 'director', 'supervisor')


@router.get("/{project_id}/progress")
async def get_progress(project_id: str, user=Depends(get_current_user)):
    """Weighted progress breakdown (read only)"""
    project = await db.projects.find_one({"id": project_id}, {"_id": 0})
    if not project:
        raise ProjectNotFound()
    return progress_breakdown(project)


@router.post("/{project_id}/progress/recompute")
async def post_recompute(project_id: str, user=Depends(require_roles(*EDITOR_ROLES))):
    """Re-derive progress and status from the stored items"""
    return await recompute_project_progress(project_id)


@router.put("/{project_id}/work-items/{item_id}")
async def put_work_item(
    project_id: str,
    item_id: str,
    req: WorkItemProgressUpdate,
    user=Depends(require_roles(*EDITOR_ROLES))
):
    return await update_work_item(project_id, item_id, req.progress, req.cost)


@router.put("/{project_id}/supplies/{supply_id}/status")
async def put_supply_status(
    project_id: str,
    supply_id: str,
    req: SupplyStatusUpdate,
    user=Depends(require_roles(*EDITOR_ROLES))
):
    return await update_supply_status(project_id, supply_id, req.status.value, req.delivery_date)


@router.post("/{project_id}/daily-report", status_code=201)
async def post_daily_report(
    project_id: str,
    req: DailyReportCreate,
    user=Depends(require_roles(*EDITOR_ROLES))
):
    """Daily report; project progress is recomputed and stored on the report"""
    report = req.model_dump(exclude={"work_items"})
    item_updates = [u.model_dump() for u in req.work_items]
    return await add_daily_report(project_id, report, item_updates, created_by=user["user_id"])
