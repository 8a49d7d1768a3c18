from __future__ import annotations

import pytest

from conftest import make_user
from labor_app.services.management_hub import (
    MANAGEMENT_SECTIONS,
    SectionEntry,
    available_sections,
    compose_hub,
)
from labor_app.services.permission import ROLE_CODES, Permissions, resolve_permissions

SECTION_FLAGS = {
    "projects": "can_access_new_project",
    "members": "can_access_member_management",
    "daily-contractors": "can_access_dc_management",
}


@pytest.mark.parametrize("role", ROLE_CODES)
def test_sections_absent_without_capability(role):
    perms = resolve_permissions(make_user(role))
    keys = [s.key for s in available_sections(perms)]
    for key, flag in SECTION_FLAGS.items():
        assert (key in keys) == getattr(perms, flag), (role, key)


def test_admin_sees_every_section_in_order():
    hub = compose_hub(resolve_permissions(make_user("AM")))
    assert hub.state == "available"
    assert [s.key for s in hub.sections] == ["projects", "members", "daily-contractors"]
    assert hub.sections[0].href == "/project-management"


def test_zero_capabilities_render_no_access_state():
    hub = compose_hub(Permissions())
    assert hub.state == "no_access"
    assert hub.sections == []
    assert hub.message


def test_managing_director_has_no_management_sections():
    hub = compose_hub(resolve_permissions(make_user("MD")))
    assert hub.state == "no_access"


def test_custom_section_list_is_filtered():
    sections = [
        SectionEntry("a", "A", "", "icon", "/a", lambda p: True),
        SectionEntry("b", "B", "", "icon", "/b", lambda p: p.can_upload_scan_data),
    ]
    hub = compose_hub(resolve_permissions(make_user("FM")), sections)
    assert [s.key for s in hub.sections] == ["a"]


def test_static_sections_are_ordered():
    assert [s.key for s in MANAGEMENT_SECTIONS] == ["projects", "members", "daily-contractors"]
