from typing import Callable, List, Literal, Optional

from pydantic import BaseModel, Field

from labor_app.services.permission import Permissions

NO_ACCESS_TITLE = "ไม่มีสิทธิ์เข้าถึง"
NO_ACCESS_MESSAGE = (
    "บัญชีผู้ใช้นี้ยังไม่ได้รับสิทธิ์จัดการข้อมูลในส่วนใด "
    "หากต้องการเข้าถึงให้ติดต่อผู้ดูแลระบบ"
)

# roles allowed to open the hub at all
HUB_ROLES = ("AM", "FM", "OE", "PE", "PM", "PD", "MD")


class ManagementSection(BaseModel):
    key: str
    label: str
    description: str
    icon: str
    href: str


class ManagementHub(BaseModel):
    state: Literal["available", "no_access"]
    sections: List[ManagementSection] = Field(default_factory=list)
    title: Optional[str] = None
    message: Optional[str] = None


class SectionEntry:
    def __init__(self, key: str, label: str, description: str, icon: str, href: str,
                 predicate: Callable[[Permissions], bool]):
        self.key = key
        self.label = label
        self.description = description
        self.icon = icon
        self.href = href
        self.predicate = predicate

    def to_section(self) -> ManagementSection:
        return ManagementSection(
            key=self.key,
            label=self.label,
            description=self.description,
            icon=self.icon,
            href=self.href,
        )


MANAGEMENT_SECTIONS: List[SectionEntry] = [
    SectionEntry(
        key="projects",
        label="จัดการโครงการ",
        description="สร้างและปรับปรุงข้อมูลโครงการ กำหนดผู้รับผิดชอบและสถานะ",
        icon="folder",
        href="/project-management",
        predicate=lambda p: p.can_access_new_project,
    ),
    SectionEntry(
        key="members",
        label="จัดการสมาชิก",
        description="เพิ่มสิทธิ์ผู้ใช้งาน ปรับบทบาท และดูข้อมูลสมาชิกทั้งหมด",
        icon="groups",
        href="/member-management",
        predicate=lambda p: p.can_access_member_management,
    ),
    SectionEntry(
        key="daily-contractors",
        label="จัดการแรงงานรายวัน",
        description="ดูและบันทึกข้อมูลแรงงานรายวัน จัดกลุ่มทักษะ และสถานะการทำงาน",
        icon="engineering",
        href="/dc-management",
        predicate=lambda p: p.can_access_dc_management,
    ),
]


def available_sections(permissions: Permissions,
                       sections: Optional[List[SectionEntry]] = None) -> List[ManagementSection]:
    entries = MANAGEMENT_SECTIONS if sections is None else sections
    return [entry.to_section() for entry in entries if entry.predicate(permissions)]


def compose_hub(permissions: Permissions,
                sections: Optional[List[SectionEntry]] = None) -> ManagementHub:
    visible = available_sections(permissions, sections)
    if not visible:
        return ManagementHub(state="no_access", title=NO_ACCESS_TITLE, message=NO_ACCESS_MESSAGE)
    return ManagementHub(state="available", sections=visible)
