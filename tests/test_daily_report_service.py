from __future__ import annotations

from datetime import datetime

import pytest
from pydantic import ValidationError

from labor_app.models.daily_contractors import DailyContractor
from labor_app.models.daily_reports import DailyReport
from labor_app.schemas.daily_reports import DailyReportCreate, DailyReportUpdate
from labor_app.services.daily_contractor_service import ContractorNotFoundError
from labor_app.services.daily_report_service import DailyReportService, ReportLockedError


@pytest.fixture
async def contractor(beanie_db):
    dc = DailyContractor(employee_id="DC001", name="Somchai", skill_id="mason",
                         project_location_ids=["P001"])
    await dc.insert()
    return dc


def _payload(contractor_id: str, **overrides) -> DailyReportCreate:
    # 08:00-17:00 site time
    data = {
        "project_location_id": "p001",
        "daily_contractor_id": contractor_id,
        "task_name": "Formwork",
        "work_date": datetime(2024, 3, 1),
        "start_time": datetime(2024, 3, 1, 1, 0),
        "end_time": datetime(2024, 3, 1, 10, 0),
    }
    data.update(overrides)
    return DailyReportCreate(**data)


async def _create(contractor, **overrides) -> DailyReport:
    return await DailyReportService.create_report(_payload(str(contractor.id), **overrides), "user-1")


async def test_create_report_starts_at_version_one_with_history(contractor):
    report = await _create(contractor)

    stored = await DailyReport.get(report.id)
    assert stored.version == 1
    assert stored.project_location_id == "P001"
    assert (stored.total_hours, stored.break_hours, stored.net_hours) == (9.0, 1.0, 8.0)

    history = await DailyReportService.get_history(str(report.id))
    assert len(history) == 1
    assert history[0]["change_type"] == "create"
    assert history[0]["previous_version"] == 0
    assert history[0]["old_values"] == {}
    assert history[0]["new_values"]["task_name"] == "Formwork"


async def test_create_report_requires_active_contractor(contractor):
    with pytest.raises(ContractorNotFoundError):
        await DailyReportService.create_report(_payload("65f000000000000000000000"), "user-1")

    await contractor.set({DailyContractor.is_active: False})
    with pytest.raises(ContractorNotFoundError):
        await _create(contractor)


async def test_update_with_offset_time_against_stored_naive_time(contractor):
    report = await _create(contractor)

    update = DailyReportUpdate.model_validate({"start_time": "2024-03-01T09:00:00+07:00"})
    updated = await DailyReportService.update_report(str(report.id), update, "user-2")

    stored = await DailyReport.get(report.id)
    assert updated is not None
    assert stored.start_time == datetime(2024, 3, 1, 2, 0)
    assert stored.start_time.tzinfo is None
    assert (stored.total_hours, stored.net_hours) == (8.0, 7.0)
    assert stored.version == 2
    assert stored.updated_by == "user-2"


async def test_update_records_changed_fields_and_lists_history_newest_first(contractor):
    report = await _create(contractor)

    update = DailyReportUpdate(task_name="Rebar tying", change_reason="typo")
    await DailyReportService.update_report(str(report.id), update, "user-2")

    history = await DailyReportService.get_history(str(report.id))
    assert [h["change_type"] for h in history] == ["update", "create"]
    latest = history[0]
    assert latest["previous_version"] == 1
    assert latest["changed_fields"] == ["task_name"]
    assert latest["old_values"] == {"task_name": "Formwork"}
    assert latest["new_values"] == {"task_name": "Rebar tying"}
    assert latest["change_reason"] == "typo"


async def test_update_without_changes_keeps_version(contractor):
    report = await _create(contractor)

    await DailyReportService.update_report(str(report.id), DailyReportUpdate(task_name="Formwork"), "user-2")

    stored = await DailyReport.get(report.id)
    assert stored.version == 1
    assert len(await DailyReportService.get_history(str(report.id))) == 1


@pytest.mark.parametrize("field", ["end_time", "start_time", "task_name", "daily_contractor_id", "work_type"])
def test_update_rejects_explicit_null_for_required_fields(field):
    with pytest.raises(ValidationError):
        DailyReportUpdate.model_validate({field: None})


def test_update_accepts_null_notes():
    update = DailyReportUpdate.model_validate({"notes": None})
    assert update.model_dump(exclude_unset=True) == {"notes": None}


def test_update_normalizes_offset_times_to_naive_utc():
    update = DailyReportUpdate.model_validate({"end_time": "2024-03-01T17:30:00+07:00"})
    assert update.end_time == datetime(2024, 3, 1, 10, 30)


async def test_update_with_end_before_start_is_rejected(contractor):
    report = await _create(contractor)

    with pytest.raises(ValueError):
        await DailyReportService.update_report(
            str(report.id), DailyReportUpdate(end_time=datetime(2024, 3, 1, 0, 30)), "user-2")

    assert (await DailyReport.get(report.id)).version == 1


async def test_update_to_unknown_contractor_is_rejected(contractor):
    report = await _create(contractor)

    with pytest.raises(ContractorNotFoundError):
        await DailyReportService.update_report(
            str(report.id), DailyReportUpdate(daily_contractor_id="65f000000000000000000000"), "user-2")


async def test_locked_report_cannot_be_edited_or_deleted(contractor):
    report = await _create(contractor, status="locked")

    with pytest.raises(ReportLockedError):
        await DailyReportService.update_report(str(report.id), DailyReportUpdate(task_name="Other"), "user-2")
    with pytest.raises(ReportLockedError):
        await DailyReportService.delete_report(str(report.id), "user-2")


async def test_soft_delete_and_restore(contractor):
    report = await _create(contractor)
    report_id = str(report.id)

    assert await DailyReportService.delete_report(report_id, "user-2", "wrong day") is not None
    assert (await DailyReport.get(report.id)).is_deleted is True
    assert await DailyReportService.list_reports(project_location_id="P001") == []
    assert len(await DailyReportService.list_reports(project_location_id="P001", include_deleted=True)) == 1
    # already deleted
    assert await DailyReportService.delete_report(report_id, "user-2") is None

    restored = await DailyReportService.restore_report(report_id, "user-3")
    assert restored.is_deleted is False
    assert restored.version == 3

    history = await DailyReportService.get_history(report_id)
    assert [h["change_type"] for h in history] == ["restore", "delete", "create"]
    assert history[1]["change_reason"] == "wrong day"


async def test_deleted_report_cannot_be_updated(contractor):
    report = await _create(contractor)
    await DailyReportService.delete_report(str(report.id), "user-2")

    assert await DailyReportService.update_report(
        str(report.id), DailyReportUpdate(task_name="Other"), "user-2") is None


async def test_list_reports_limited_to_project_codes(contractor):
    await _create(contractor)
    await _create(contractor, project_location_id="P002")

    visible = await DailyReportService.list_reports(project_codes=["P002"])
    assert [r["project_location_id"] for r in visible] == ["P002"]
    assert await DailyReportService.list_reports(project_codes=["P002"], project_location_id="P001") == []


async def test_reads_are_refreshed_after_update(contractor):
    report = await _create(contractor)
    report_id = str(report.id)

    assert (await DailyReportService.get_report(report_id))["task_name"] == "Formwork"
    assert len(await DailyReportService.get_history(report_id)) == 1

    await DailyReportService.update_report(report_id, DailyReportUpdate(task_name="Plastering"), "user-2")

    assert (await DailyReportService.get_report(report_id))["task_name"] == "Plastering"
    assert len(await DailyReportService.get_history(report_id)) == 2


async def test_get_report_with_invalid_id_returns_none(beanie_db):
    assert await DailyReportService.get_report("not-an-object-id") is None
