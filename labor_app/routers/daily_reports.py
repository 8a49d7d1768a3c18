import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from labor_app.models.users import User
from labor_app.routers.auth import get_current_user, require_permission
from labor_app.schemas.daily_reports import (
    DailyReportCreate, DailyReportDelete, DailyReportOut, DailyReportUpdate, EditHistoryOut,
)
from labor_app.services.daily_contractor_service import ContractorNotFoundError
from labor_app.services.daily_report_service import (
    DailyReportService, ReportLockedError, report_to_dict,
)
from labor_app.services.project_service import ProjectService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/daily-reports", tags=["daily-reports"])

create_reports = require_permission("can_create_daily_report")
edit_reports = require_permission("can_edit_daily_report")
delete_reports = require_permission("can_delete_daily_report")


async def _ensure_project_access(user: User, project_code: str):
    codes = await ProjectService.accessible_project_codes(user)
    if codes is not None and project_code not in codes:
        raise HTTPException(status_code=403, detail="Access denied - No permission for this project")


async def _load_report(report_id: str, user: User) -> dict:
    report = await DailyReportService.get_report(report_id)
    if not report:
        raise HTTPException(status_code=404, detail="Daily report not found")
    await _ensure_project_access(user, report["project_location_id"])
    return report


@router.get("/", response_model=List[DailyReportOut])
async def list_daily_reports(
    project_location_id: Optional[str] = Query(None),
    daily_contractor_id: Optional[str] = Query(None),
    work_type: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    current_user: User = Depends(get_current_user),
):
    codes = await ProjectService.accessible_project_codes(current_user)
    return await DailyReportService.list_reports(
        project_codes=codes,
        project_location_id=project_location_id.upper() if project_location_id else None,
        daily_contractor_id=daily_contractor_id,
        work_type=work_type,
        start_date=start_date,
        end_date=end_date,
    )


@router.post("/", response_model=DailyReportOut, status_code=201)
async def create_daily_report(payload: DailyReportCreate, current_user: User = Depends(create_reports)):
    await _ensure_project_access(current_user, payload.project_location_id)
    try:
        report = await DailyReportService.create_report(payload, str(current_user.id))
    except ContractorNotFoundError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return report_to_dict(report)


@router.get("/{report_id}", response_model=DailyReportOut)
async def get_daily_report(report_id: str, current_user: User = Depends(get_current_user)):
    return await _load_report(report_id, current_user)


@router.put("/{report_id}", response_model=DailyReportOut)
async def update_daily_report(report_id: str, payload: DailyReportUpdate,
                              current_user: User = Depends(edit_reports)):
    await _load_report(report_id, current_user)
    if payload.project_location_id:
        await _ensure_project_access(current_user, payload.project_location_id)
    try:
        report = await DailyReportService.update_report(report_id, payload, str(current_user.id))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not report:
        raise HTTPException(status_code=404, detail="Daily report not found")
    return report_to_dict(report)


@router.delete("/{report_id}")
async def delete_daily_report(report_id: str, payload: Optional[DailyReportDelete] = Body(None),
                              current_user: User = Depends(delete_reports)):
    await _load_report(report_id, current_user)
    try:
        report = await DailyReportService.delete_report(
            report_id, str(current_user.id), payload.change_reason if payload else None)
    except ReportLockedError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not report:
        raise HTTPException(status_code=404, detail="Daily report not found or already deleted")
    return {"message": "Daily report deleted successfully"}


@router.post("/{report_id}/restore", response_model=DailyReportOut)
async def restore_daily_report(report_id: str, payload: Optional[DailyReportDelete] = Body(None),
                               current_user: User = Depends(delete_reports)):
    await _load_report(report_id, current_user)
    try:
        report = await DailyReportService.restore_report(
            report_id, str(current_user.id), payload.change_reason if payload else None)
    except ReportLockedError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not report:
        raise HTTPException(status_code=404, detail="Daily report not found or not deleted")
    return report_to_dict(report)


@router.get("/{report_id}/history", response_model=List[EditHistoryOut])
async def get_daily_report_history(report_id: str, current_user: User = Depends(get_current_user)):
    await _load_report(report_id, current_user)
    return await DailyReportService.get_history(report_id)
