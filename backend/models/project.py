"""
Project Model - work items, supplies and daily reports
"""
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field


class ProjectStatus(str, Enum):
    PLANNING = "Planning"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    ON_HOLD = "On Hold"


class SupplyStatus(str, Enum):
    PENDING = "Pending"
    ORDERED = "Ordered"
    DELIVERED = "Delivered"


class WorkItemProgressUpdate(BaseModel):
    progress: float = Field(..., ge=0, le=100)
    cost: Optional[float] = Field(None, ge=0)


class SupplyStatusUpdate(BaseModel):
    status: SupplyStatus
    delivery_date: Optional[str] = None


class ReportItemProgress(BaseModel):
    item_id: str
    progress: float = Field(..., ge=0, le=100)


class DailyReportCreate(BaseModel):
    date: Optional[str] = None  # YYYY-MM-DD
    weather: Optional[str] = "Cerah"
    materials: Optional[str] = None
    workforce: Optional[str] = None
    notes: Optional[str] = None
    work_items: List[ReportItemProgress] = []
