import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from labor_app.models.users import User
from labor_app.routers.auth import require_permission
from labor_app.schemas.daily_contractors import DailyContractorCreate, DailyContractorOut, DailyContractorUpdate
from labor_app.services.daily_contractor_service import (
    DailyContractorService, DuplicateEmployeeIdError, contractor_to_dict,
)

logger = logging.getLogger(__name__)

manage_contractors = require_permission("can_access_dc_management")

router = APIRouter(prefix="/daily-contractors", tags=["daily-contractors"])


async def _get_or_404(contractor_id: str):
    dc = await DailyContractorService.get(contractor_id)
    if not dc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Daily contractor not found")
    return dc


@router.get("/", response_model=List[DailyContractorOut])
async def list_daily_contractors(
    skill_id: Optional[str] = Query(None),
    project_location_id: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    current_user: User = Depends(manage_contractors),
):
    return await DailyContractorService.list_contractors(skill_id, project_location_id, is_active, search)


@router.post("/", response_model=DailyContractorOut, status_code=status.HTTP_201_CREATED)
async def create_daily_contractor(payload: DailyContractorCreate,
                                  current_user: User = Depends(manage_contractors)):
    try:
        dc = await DailyContractorService.create(payload, str(current_user.id))
    except DuplicateEmployeeIdError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return contractor_to_dict(dc)


@router.get("/{contractor_id}", response_model=DailyContractorOut)
async def get_daily_contractor(contractor_id: str, current_user: User = Depends(manage_contractors)):
    return contractor_to_dict(await _get_or_404(contractor_id))


@router.put("/{contractor_id}", response_model=DailyContractorOut)
async def update_daily_contractor(contractor_id: str, payload: DailyContractorUpdate,
                                  current_user: User = Depends(manage_contractors)):
    try:
        dc = await DailyContractorService.update(contractor_id, payload, str(current_user.id))
    except DuplicateEmployeeIdError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not dc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Daily contractor not found")
    return contractor_to_dict(dc)


@router.delete("/{contractor_id}")
async def deactivate_daily_contractor(contractor_id: str, current_user: User = Depends(manage_contractors)):
    dc = await DailyContractorService.deactivate(contractor_id, str(current_user.id))
    if not dc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Daily contractor not found")
    return {"message": "Daily contractor deactivated successfully"}
