"""
Role based capability resolution.

Roles, highest authority first:
    GOD  super user, every capability
    MD   Managing Director, all projects
    PD   Project Director, projects of own department
    PM   Project Manager
    PE   Project Engineer
    OE   Office Engineer
    SE   Site Engineer
    FM   Foreman
    AM   Admin, every management feature
"""
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from pydantic import BaseModel, Field

ROLE_CODES = ("GOD", "MD", "PD", "PM", "PE", "OE", "SE", "FM", "AM")
SUPER_ROLE = "GOD"

# role ids written by older tooling
ROLE_ID_ALIASES: Dict[str, str] = {
    "role-admin": "AM",
}

ROLE_NAMES: Dict[str, Dict[str, str]] = {
    "GOD": {"th": "ผู้ดูแลสูงสุด", "en": "Super User"},
    "MD": {"th": "กรรมการผู้จัดการ", "en": "Managing Director"},
    "PD": {"th": "ผู้อำนวยการโครงการ", "en": "Project Director"},
    "PM": {"th": "ผู้จัดการโครงการ", "en": "Project Manager"},
    "PE": {"th": "วิศวกรโครงการ", "en": "Project Engineer"},
    "OE": {"th": "วิศวกรสำนักงาน", "en": "Office Engineer"},
    "SE": {"th": "วิศวกรประจำหน้างาน", "en": "Site Engineer"},
    "FM": {"th": "หัวหน้างาน", "en": "Foreman"},
    "AM": {"th": "ผู้ดูแลระบบ", "en": "Admin"},
}

ROLE_LEVELS: Dict[str, int] = {code: level for level, code in enumerate(ROLE_CODES)}
UNKNOWN_ROLE_LEVEL = 99

DAILY_REPORT_ROLES = frozenset({"SE", "OE", "PE", "PM", "PD", "AM"})
NEW_PROJECT_ROLES = frozenset({"AM", "OE", "PE", "PM", "PD"})
MEMBER_MANAGEMENT_ROLES = frozenset({"AM"})
DC_MANAGEMENT_ROLES = frozenset({"AM", "FM"})
WAGE_CALCULATION_ROLES = frozenset({"AM", "PM", "PD", "MD"})
SCAN_DATA_UPLOAD_ROLES = frozenset({"AM"})
SCAN_DATA_MONITORING_ROLES = frozenset({"AM", "PM", "PD", "MD"})
ALL_PROJECTS_ROLES = frozenset({"MD"})
DEPARTMENT_RESTRICTED_ROLES = frozenset({"PD"})

# capability flag -> roles granted it (GOD is granted everything separately)
CAPABILITY_GRANTS: Dict[str, FrozenSet[str]] = {
    "can_access_dashboard": frozenset(ROLE_CODES),
    "can_create_daily_report": DAILY_REPORT_ROLES,
    "can_edit_daily_report": DAILY_REPORT_ROLES,
    "can_delete_daily_report": DAILY_REPORT_ROLES,
    "can_access_new_project": NEW_PROJECT_ROLES,
    "can_access_member_management": MEMBER_MANAGEMENT_ROLES,
    "can_access_dc_management": DC_MANAGEMENT_ROLES,
    "can_access_wage_calculation": WAGE_CALCULATION_ROLES,
    "can_upload_scan_data": SCAN_DATA_UPLOAD_ROLES,
    "can_access_scan_data_monitoring": SCAN_DATA_MONITORING_ROLES,
    "can_access_all_projects": ALL_PROJECTS_ROLES,
}

# menu key -> capability that unlocks it, in display order
MENU_ITEMS: List[tuple] = [
    ("dashboard", "can_access_dashboard"),
    ("daily-reports", "can_create_daily_report"),
    ("overtime", "can_create_daily_report"),
    ("projects", "can_access_new_project"),
    ("members", "can_access_member_management"),
    ("daily-contractors", "can_access_dc_management"),
    ("wage-calculation", "can_access_wage_calculation"),
    ("scan-data-monitoring", "can_access_scan_data_monitoring"),
]


class Permissions(BaseModel):
    role_code: Optional[str] = None
    role_name: str = ""
    role_level: int = UNKNOWN_ROLE_LEVEL

    can_access_dashboard: bool = False
    can_create_daily_report: bool = False
    can_edit_daily_report: bool = False
    can_delete_daily_report: bool = False
    can_access_new_project: bool = False
    can_access_member_management: bool = False
    can_access_dc_management: bool = False
    can_access_wage_calculation: bool = False
    can_upload_scan_data: bool = False
    can_access_scan_data_monitoring: bool = False
    can_access_all_projects: bool = False
    is_department_restricted: bool = False

    accessible_menu_items: List[str] = Field(default_factory=list)

    def granted(self) -> List[str]:
        return [name for name in CAPABILITY_GRANTS if getattr(self, name)]


def normalize_role_code(role_id: Optional[str]) -> Optional[str]:
    """Map a stored role id to a known role code, or None."""
    if not role_id:
        return None
    value = str(role_id).strip()
    value = ROLE_ID_ALIASES.get(value.lower(), value).upper()
    if value in ROLE_CODES:
        return value
    return None


def role_code_of(user: Any) -> Optional[str]:
    if user is None:
        return None
    if isinstance(user, dict):
        return normalize_role_code(user.get("role_code") or user.get("role_id"))
    return normalize_role_code(getattr(user, "role_code", None) or getattr(user, "role_id", None))


def _is_active(user: Any) -> bool:
    if isinstance(user, dict):
        return user.get("is_active", True) is not False
    return getattr(user, "is_active", True) is not False


def get_role_name(role_code: Optional[str], lang: str = "th") -> str:
    names = ROLE_NAMES.get(role_code or "")
    if not names:
        return role_code or ""
    return names.get(lang) or names["en"]


def get_role_level(role_code: Optional[str]) -> int:
    return ROLE_LEVELS.get(role_code or "", UNKNOWN_ROLE_LEVEL)


def has_authority(user_role: Optional[str], required_role: Optional[str]) -> bool:
    """True when user_role ranks at or above required_role."""
    user_role = normalize_role_code(user_role)
    if user_role == SUPER_ROLE:
        return True
    if user_role is None:
        return False
    return get_role_level(user_role) <= get_role_level(normalize_role_code(required_role))


def resolve_role_permissions(role_code: Optional[str]) -> Permissions:
    role_code = normalize_role_code(role_code)
    if role_code is None:
        return Permissions()

    is_super = role_code == SUPER_ROLE
    flags = {
        name: is_super or role_code in roles
        for name, roles in CAPABILITY_GRANTS.items()
    }
    flags["is_department_restricted"] = (not is_super) and role_code in DEPARTMENT_RESTRICTED_ROLES
    menu = [key for key, capability in MENU_ITEMS if flags[capability]]

    return Permissions(
        role_code=role_code,
        role_name=get_role_name(role_code),
        role_level=get_role_level(role_code),
        accessible_menu_items=menu,
        **flags,
    )


def resolve_permissions(user: Any) -> Permissions:
    """Capability flags for a user; a missing or inactive user gets none."""
    if user is None or not _is_active(user):
        return Permissions()
    return resolve_role_permissions(role_code_of(user))


def can_access_project(user: Any, project_code: str, project_department: Optional[str] = None) -> bool:
    if user is None or not _is_active(user):
        return False
    role_code = role_code_of(user)
    if role_code in (SUPER_ROLE, "MD"):
        return True
    if role_code == "PD" and project_department is not None:
        department = user.get("department") if isinstance(user, dict) else getattr(user, "department", None)
        if department == project_department:
            return True
    if isinstance(user, dict):
        project_ids: Iterable[str] = user.get("project_location_ids") or []
    else:
        project_ids = getattr(user, "project_location_ids", None) or []
    return project_code in project_ids
