import logging
from typing import Any, Dict, List, Optional

from labor_app.models.projects import Project
from labor_app.services.permission import SUPER_ROLE, role_code_of

logger = logging.getLogger(__name__)

# roles that see every project regardless of assignment
UNRESTRICTED_PROJECT_ROLES = (SUPER_ROLE, "MD", "AM")


def project_to_dict(project: Project) -> Dict[str, Any]:
    data = project.model_dump(exclude={"revision_id"})
    data["id"] = str(project.id)
    return data


class ProjectService:
    @staticmethod
    async def accessible_project_codes(user: Any) -> Optional[List[str]]:
        """Project codes the user may read, or None when unrestricted."""
        role_code = role_code_of(user)
        if role_code in UNRESTRICTED_PROJECT_ROLES:
            return None

        codes = set(getattr(user, "project_location_ids", None) or [])
        if role_code == "PD":
            department = getattr(user, "department", None)
            async for p in Project.find(Project.department == department):
                codes.add(p.code)
        return sorted(codes)

    @staticmethod
    async def list_projects(user: Any, department: Optional[str] = None,
                            status: Optional[str] = None, is_active: Optional[bool] = None,
                            search: Optional[str] = None) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {}
        if department:
            query["department"] = department
        if status:
            query["status"] = status
        if is_active is not None:
            query["is_active"] = is_active

        codes = await ProjectService.accessible_project_codes(user)
        if codes is not None:
            query["code"] = {"$in": codes}

        projects = await Project.find(query).sort("+code").to_list()
        result = []
        needle = (search or "").strip().lower()
        for p in projects:
            if needle and needle not in p.code.lower() and needle not in p.name.lower():
                continue
            result.append(project_to_dict(p))
        return result

    @staticmethod
    async def get_project(code: str) -> Optional[Project]:
        return await Project.get(code.strip().upper())
