from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..classes.service import ClassService
from ..core.context import RequestContext
from ..identities.repository import IdentityRepository
from ..slots.repository import SlotRepository
from ..slots.service import SlotRegistry
from .model import RosterRow
from .repository import AttendanceRepository


@dataclass(frozen=True)
class ExportData:
    # Rows grouped by the slot's start date (YYYY-MM-DD, or "unknown" for closed slots).
    by_date: dict[str, list[dict]]

    @property
    def rows(self) -> list[dict]:
        return [dict(row, date=d) for d, rows in self.by_date.items() for row in rows]


class AttendanceReportService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        identities: IdentityRepository,
        slot_repo: SlotRepository,
        slots: SlotRegistry,
        classes: ClassService,
    ):
        self._attendance = attendance
        self._identities = identities
        self._slot_repo = slot_repo
        self._slots = slots
        self._classes = classes

    def roster(self, ctx: RequestContext) -> list[RosterRow]:
        """Every student of the class with a present flag for the slot."""
        self._classes.require_owner(ctx.class_id, ctx.acting_teacher_id)
        slot = self._slots.get(ctx.class_id, ctx.slot_id or "")

        attended = {r.identity_id: r for r in self._attendance.list_for_slot(slot.slot_id)}
        rows = []
        for s in self._identities.list_for_class(ctx.class_id):
            rec = attended.get(s.identity_id)
            rows.append(
                RosterRow(
                    identity_id=s.identity_id,
                    code=s.code,
                    display_name=s.display_name,
                    present=rec is not None,
                    manual=bool(rec and rec.manual),
                )
            )
        return rows

    def build_export(self, *, teacher_id: Optional[str], class_id: str) -> ExportData:
        self._classes.require_owner(class_id, teacher_id)

        students = {s.identity_id: s for s in self._identities.list_for_class(class_id)}
        slot_dates = {
            s.slot_id: s.start_time.strftime("%Y-%m-%d") for s in self._slot_repo.list_for_class(class_id)
        }

        by_date: dict[str, list[dict]] = {}
        for rec in self._attendance.list_for_class(class_id):
            student = students.get(rec.identity_id)
            day = slot_dates.get(rec.slot_id, "unknown")
            by_date.setdefault(day, []).append(
                {
                    "code": student.code if student else "",
                    "name": student.display_name if student else rec.identity_id,
                    "timestamp": rec.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                    "manual": rec.manual,
                }
            )
        return ExportData(by_date=dict(sorted(by_date.items())))
