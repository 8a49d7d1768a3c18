# labor_app/routers/projects.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from labor_app.core.timezone_utils import utc_now
from labor_app.models.projects import Project
from labor_app.models.users import User
from labor_app.routers.auth import get_current_user, require_permission
from labor_app.schemas.projects import ProjectCreate, ProjectOut, ProjectUpdate
from labor_app.services.permission import can_access_project, resolve_permissions
from labor_app.services.project_service import ProjectService, UNRESTRICTED_PROJECT_ROLES, project_to_dict

logger = logging.getLogger(__name__)

manage_projects = require_permission("can_access_new_project")


class BaseController:
    prefix: str = ""
    tags: list = []

    def __init__(self):
        self.router = APIRouter(prefix=self.prefix, tags=self.tags)
        self.setup_routes()

    def setup_routes(self):
        raise NotImplementedError


class ProjectsController(BaseController):
    prefix = "/projects"
    tags = ["projects"]

    def setup_routes(self):
        self.router.add_api_route("/", self.get_all, methods=["GET"], response_model=List[ProjectOut])
        self.router.add_api_route("/", self.create_project, methods=["POST"], response_model=ProjectOut, status_code=201)
        self.router.add_api_route("/{code}", self.get_project, methods=["GET"], response_model=ProjectOut)
        self.router.add_api_route("/{code}", self.update_project, methods=["PUT"], response_model=ProjectOut)
        self.router.add_api_route("/{code}", self.deactivate_project, methods=["DELETE"])

    async def _get_or_404(self, code: str) -> Project:
        project = await ProjectService.get_project(code)
        if not project:
            raise HTTPException(status_code=404, detail="Project not found")
        return project

    def _ensure_access(self, user: User, project: Project):
        if resolve_permissions(user).role_code in UNRESTRICTED_PROJECT_ROLES:
            return
        if not can_access_project(user, project.code, project.department):
            logger.warning("Access denied: user %s attempted to access project %s",
                           getattr(user, "username", None), project.code)
            raise HTTPException(status_code=403, detail="Access denied - No permission for this project")

    async def get_all(
        self,
        department: Optional[str] = Query(None),
        status: Optional[str] = Query(None),
        is_active: Optional[bool] = Query(None),
        search: Optional[str] = Query(None),
        current_user: User = Depends(get_current_user),
    ):
        return await ProjectService.list_projects(current_user, department, status, is_active, search)

    async def create_project(self, payload: ProjectCreate, current_user: User = Depends(manage_projects)):
        if await Project.get(payload.code):
            raise HTTPException(status_code=400, detail=f"Project code already exists: {payload.code}")

        now = utc_now()
        actor = str(current_user.id)
        fields = payload.model_dump(exclude={"code"})
        project = Project.new(
            payload.code,
            **fields,
            created_at=now,
            updated_at=now,
            created_by=actor,
            updated_by=actor,
        )
        await project.insert()
        logger.info("Project %s created by %s", project.code, current_user.username)
        return project_to_dict(project)

    async def get_project(self, code: str, current_user: User = Depends(get_current_user)):
        project = await self._get_or_404(code)
        self._ensure_access(current_user, project)
        return project_to_dict(project)

    async def update_project(self, code: str, payload: ProjectUpdate,
                             current_user: User = Depends(manage_projects)):
        project = await self._get_or_404(code)
        self._ensure_access(current_user, project)

        update_data = payload.model_dump(exclude_unset=True)
        if not update_data:
            return project_to_dict(project)
        update_data["updated_at"] = utc_now()
        update_data["updated_by"] = str(current_user.id)
        await project.set(update_data)
        return project_to_dict(project)

    async def deactivate_project(self, code: str, current_user: User = Depends(manage_projects)):
        project = await self._get_or_404(code)
        self._ensure_access(current_user, project)
        await project.set({
            Project.is_active: False,
            Project.updated_at: utc_now(),
            Project.updated_by: str(current_user.id),
        })
        return {"message": "Project deactivated successfully"}


projects_router = ProjectsController().router
