import logging
from typing import Any, Dict, List, Optional

from beanie import PydanticObjectId
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from labor_app.core.timezone_utils import utc_now
from labor_app.models.daily_contractors import DailyContractor
from labor_app.schemas.daily_contractors import DailyContractorCreate, DailyContractorUpdate

logger = logging.getLogger(__name__)


class DuplicateEmployeeIdError(ValueError):
    pass


class ContractorNotFoundError(ValueError):
    pass


def contractor_to_dict(dc: DailyContractor) -> Dict[str, Any]:
    data = dc.model_dump(exclude={"revision_id"})
    data["id"] = str(dc.id)
    return data


class DailyContractorService:
    @staticmethod
    async def get(contractor_id: str) -> Optional[DailyContractor]:
        if not ObjectId.is_valid(str(contractor_id)):
            return None
        return await DailyContractor.get(PydanticObjectId(str(contractor_id)))

    @staticmethod
    async def ensure_active(contractor_id: str) -> DailyContractor:
        """Return the contractor or raise ContractorNotFoundError when missing or inactive."""
        dc = await DailyContractorService.get(contractor_id)
        if not dc or not dc.is_active:
            raise ContractorNotFoundError(f"Daily contractor not found: {contractor_id}")
        return dc

    @staticmethod
    async def _ensure_unique_employee_id(employee_id: str, exclude_id=None) -> None:
        existing = await DailyContractor.find_one(DailyContractor.employee_id == employee_id)
        if existing and existing.id != exclude_id:
            raise DuplicateEmployeeIdError("Employee ID already exists")

    @staticmethod
    async def list_contractors(skill_id: Optional[str] = None,
                               project_location_id: Optional[str] = None,
                               is_active: Optional[bool] = None,
                               search: Optional[str] = None) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {}
        if skill_id:
            query["skill_id"] = skill_id
        if project_location_id:
            # array field, matches any element
            query["project_location_ids"] = project_location_id.strip().upper()
        if is_active is not None:
            query["is_active"] = is_active

        contractors = await DailyContractor.find(query).sort("+employee_id").to_list()
        needle = (search or "").strip().lower()
        return [
            contractor_to_dict(dc) for dc in contractors
            if not needle or needle in dc.employee_id.lower() or needle in dc.name.lower()
        ]

    @staticmethod
    async def create(data: DailyContractorCreate, created_by: str) -> DailyContractor:
        await DailyContractorService._ensure_unique_employee_id(data.employee_id)
        now = utc_now()
        dc = DailyContractor(
            **data.model_dump(),
            created_at=now,
            updated_at=now,
            created_by=created_by,
            updated_by=created_by,
        )
        try:
            await dc.insert()
        except DuplicateKeyError:
            raise DuplicateEmployeeIdError("Employee ID already exists")
        logger.info("Daily contractor %s created by %s", dc.employee_id, created_by)
        return dc

    @staticmethod
    async def update(contractor_id: str, data: DailyContractorUpdate,
                     updated_by: str) -> Optional[DailyContractor]:
        dc = await DailyContractorService.get(contractor_id)
        if not dc:
            return None

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("employee_id") and update_data["employee_id"] != dc.employee_id:
            await DailyContractorService._ensure_unique_employee_id(update_data["employee_id"], exclude_id=dc.id)
        update_data["updated_at"] = utc_now()
        update_data["updated_by"] = updated_by
        try:
            await dc.set(update_data)
        except DuplicateKeyError:
            raise DuplicateEmployeeIdError("Employee ID already exists")
        logger.info("Daily contractor %s updated by %s", dc.employee_id, updated_by)
        return dc

    @staticmethod
    async def deactivate(contractor_id: str, updated_by: str) -> Optional[DailyContractor]:
        dc = await DailyContractorService.get(contractor_id)
        if not dc:
            return None
        # contractors stay referenced by their daily reports
        await dc.set({
            DailyContractor.is_active: False,
            DailyContractor.updated_at: utc_now(),
            DailyContractor.updated_by: updated_by,
        })
        logger.info("Daily contractor %s deactivated by %s", dc.employee_id, updated_by)
        return dc
