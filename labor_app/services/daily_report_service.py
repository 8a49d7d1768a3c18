import logging
from datetime import datetime

from bson import ObjectId
from typing import Any, Dict, Iterable, List, Optional

from labor_app.core.timezone_utils import to_naive_utc, utc_now
from labor_app.models.daily_reports import DailyReport, EditHistory
from labor_app.schemas.daily_reports import (
    DailyReportCreate, DailyReportUpdate, validate_report_times,
)
from labor_app.services.query_cache import (
    DAILY_REPORT, DAILY_REPORTS, EDIT_HISTORY,
    invalidate_daily_report, make_cache_key, query_cache,
)
from labor_app.services.daily_contractor_service import DailyContractorService

logger = logging.getLogger(__name__)

TIME_FIELDS = ("start_time", "end_time", "is_overnight", "work_type")
AUDIT_FIELDS = ("created_at", "updated_at", "created_by", "updated_by", "version", "id")


class ReportLockedError(ValueError):
    pass


def report_to_dict(report: DailyReport) -> Dict[str, Any]:
    data = report.model_dump(exclude={"revision_id"})
    data["id"] = str(report.id)
    return data


def history_to_dict(entry: EditHistory) -> Dict[str, Any]:
    data = entry.model_dump(exclude={"revision_id"})
    data["id"] = str(entry.id)
    return data


def diff_fields(before: Dict[str, Any], after: Dict[str, Any], fields: Iterable[str]):
    """Return (changed_fields, old_values, new_values) for fields whose value differs."""
    changed: List[str] = []
    old_values: Dict[str, Any] = {}
    new_values: Dict[str, Any] = {}
    for field in fields:
        if before.get(field) != after.get(field):
            changed.append(field)
            old_values[field] = before.get(field)
            new_values[field] = after.get(field)
    return changed, old_values, new_values


class DailyReportService:
    @staticmethod
    async def _get(report_id: str) -> Optional[DailyReport]:
        if not ObjectId.is_valid(str(report_id)):
            return None
        return await DailyReport.get(ObjectId(str(report_id)))

    @staticmethod
    async def _record_history(report_id: str, previous_version: int, change_type: str,
                              changed_fields: List[str], old_values: Dict[str, Any],
                              new_values: Dict[str, Any], created_by: str,
                              change_reason: Optional[str] = None) -> EditHistory:
        entry = EditHistory(
            daily_report_id=report_id,
            previous_version=previous_version,
            change_type=change_type,
            changed_fields=changed_fields,
            old_values=old_values,
            new_values=new_values,
            change_reason=change_reason,
            created_by=created_by,
        )
        await entry.insert()
        return entry

    @staticmethod
    async def list_reports(project_codes: Optional[List[str]] = None,
                           project_location_id: Optional[str] = None,
                           daily_contractor_id: Optional[str] = None,
                           work_type: Optional[str] = None,
                           start_date: Optional[datetime] = None,
                           end_date: Optional[datetime] = None,
                           include_deleted: bool = False) -> List[Dict[str, Any]]:
        params = {
            "codes": project_codes,
            "project": project_location_id,
            "contractor": daily_contractor_id,
            "work_type": work_type,
            "start": start_date,
            "end": end_date,
            "deleted": include_deleted,
        }
        key = make_cache_key(DAILY_REPORTS, scope=[project_location_id or "all"], params=params)

        async def load():
            query: Dict[str, Any] = {}
            if not include_deleted:
                query["is_deleted"] = False
            if project_location_id:
                if project_codes is not None and project_location_id not in project_codes:
                    return []
                query["project_location_id"] = project_location_id
            elif project_codes is not None:
                query["project_location_id"] = {"$in": project_codes}
            if daily_contractor_id:
                query["daily_contractor_id"] = daily_contractor_id
            if work_type:
                query["work_type"] = work_type
            date_range: Dict[str, Any] = {}
            if start_date:
                date_range["$gte"] = start_date
            if end_date:
                date_range["$lte"] = end_date
            if date_range:
                query["work_date"] = date_range

            reports = await DailyReport.find(query).sort("-work_date").to_list()
            return [report_to_dict(r) for r in reports]

        return await query_cache.get_or_load(key, load)

    @staticmethod
    async def get_report(report_id: str) -> Optional[Dict[str, Any]]:
        key = make_cache_key(DAILY_REPORT, scope=[report_id])

        async def load():
            report = await DailyReportService._get(report_id)
            return report_to_dict(report) if report else None

        return await query_cache.get_or_load(key, load)

    @staticmethod
    async def create_report(data: DailyReportCreate, created_by: str) -> DailyReport:
        await DailyContractorService.ensure_active(data.daily_contractor_id)
        report = DailyReport(
            **data.model_dump(),
            created_by=created_by,
            updated_by=created_by,
            version=1,
        )
        report.recalculate_hours()
        await report.insert()

        snapshot = report_to_dict(report)
        fields = [f for f in snapshot if f not in ("id",)]
        await DailyReportService._record_history(
            str(report.id), 0, "create", fields, {},
            {f: snapshot[f] for f in fields}, created_by,
        )
        invalidate_daily_report(str(report.id))
        logger.info("Daily report %s created by %s", report.id, created_by)
        return report

    @staticmethod
    async def update_report(report_id: str, data: DailyReportUpdate, updated_by: str) -> Optional[DailyReport]:
        report = await DailyReportService._get(report_id)
        if not report or report.is_deleted:
            return None
        if report.status == "locked":
            raise ReportLockedError("Locked reports cannot be edited")

        updates = data.model_dump(exclude_unset=True)
        change_reason = updates.pop("change_reason", None)
        if updates.get("daily_contractor_id", report.daily_contractor_id) != report.daily_contractor_id:
            await DailyContractorService.ensure_active(updates["daily_contractor_id"])

        before = report_to_dict(report)
        for field, value in updates.items():
            if isinstance(value, datetime):
                value = to_naive_utc(value)
            setattr(report, field, value)

        if any(f in updates for f in TIME_FIELDS) or "work_date" in updates:
            validate_report_times(report.work_type, report.start_time, report.end_time,
                                  report.is_overnight, report.work_date)
            report.recalculate_hours()

        after = report_to_dict(report)
        tracked = [f for f in after if f not in AUDIT_FIELDS]
        changed, old_values, new_values = diff_fields(before, after, tracked)
        if not changed:
            return report

        previous_version = report.version
        report.version = previous_version + 1
        report.updated_by = updated_by
        report.updated_at = utc_now()
        await report.save()

        await DailyReportService._record_history(
            report_id, previous_version, "update", changed, old_values, new_values,
            updated_by, change_reason,
        )
        invalidate_daily_report(report_id)
        return report

    @staticmethod
    async def _set_deleted(report_id: str, deleted: bool, user_id: str,
                           change_reason: Optional[str] = None) -> Optional[DailyReport]:
        report = await DailyReportService._get(report_id)
        if not report or report.is_deleted == deleted:
            return None
        if report.status == "locked":
            raise ReportLockedError("Locked reports cannot be changed")

        previous_version = report.version
        report.is_deleted = deleted
        report.version = previous_version + 1
        report.updated_by = user_id
        report.updated_at = utc_now()
        await report.save()

        await DailyReportService._record_history(
            report_id, previous_version, "delete" if deleted else "restore",
            ["is_deleted"], {"is_deleted": not deleted}, {"is_deleted": deleted},
            user_id, change_reason,
        )
        invalidate_daily_report(report_id)
        return report

    @staticmethod
    async def delete_report(report_id: str, deleted_by: str, change_reason: Optional[str] = None):
        return await DailyReportService._set_deleted(report_id, True, deleted_by, change_reason)

    @staticmethod
    async def restore_report(report_id: str, restored_by: str, change_reason: Optional[str] = None):
        return await DailyReportService._set_deleted(report_id, False, restored_by, change_reason)

    @staticmethod
    async def get_history(report_id: str) -> List[Dict[str, Any]]:
        key = make_cache_key(EDIT_HISTORY, scope=[report_id])

        async def load():
            entries = await EditHistory.find(
                EditHistory.daily_report_id == report_id
            ).sort("-created_at", "-previous_version").to_list()
            return [history_to_dict(e) for e in entries]

        return await query_cache.get_or_load(key, load)
