from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

import pytest

from src.presence_check.presence_check.core.exceptions import AuthorizationError, SlotNotFound
from src.presence_check.presence_check.geofence.model import Coordinate
from src.presence_check.presence_check.identities.model import Identity

ANCHOR = Coordinate(10.0, 106.0)


@pytest.fixture
def second_student(repos, classroom):
    identity = Identity(identity_id="s2", class_id=classroom.class_id, display_name="Phạm D", code="SV002")
    repos.identities_repo.create(identity)
    return identity


def test_roster_lists_every_student_with_presence(container, teacher_ctx, enrolled, second_student, fixed_now):
    slot = container.slot_registry.open(teacher_ctx, anchor=ANCHOR, now=fixed_now)
    slot_ctx = replace(teacher_ctx, slot_id=slot.slot_id)
    container.attendance_pipeline.submit(
        slot_ctx, code="SV001", coordinate=ANCHOR, descriptor=enrolled.descriptor, now=fixed_now
    )
    container.attendance_pipeline.record_manual(slot_ctx, identity_id="s2", present=True, now=fixed_now)

    rows = {r.code: r for r in container.report_service.roster(slot_ctx)}

    assert rows["SV001"].present and not rows["SV001"].manual
    assert rows["SV002"].present and rows["SV002"].manual

    container.attendance_pipeline.record_manual(slot_ctx, identity_id="s1", present=False)
    rows = {r.code: r for r in container.report_service.roster(slot_ctx)}
    assert not rows["SV001"].present


def test_roster_requires_owner_and_existing_slot(container, teacher_ctx, fixed_now):
    slot = container.slot_registry.open(teacher_ctx, anchor=ANCHOR, now=fixed_now)
    with pytest.raises(AuthorizationError):
        container.report_service.roster(replace(teacher_ctx, slot_id=slot.slot_id, acting_teacher_id="t2"))
    with pytest.raises(SlotNotFound):
        container.report_service.roster(replace(teacher_ctx, slot_id="gone"))


def test_export_groups_rows_by_slot_date(container, teacher_ctx, enrolled, second_student, fixed_now):
    registry = container.slot_registry
    pipeline = container.attendance_pipeline
    day1 = registry.open(teacher_ctx, anchor=ANCHOR, now=fixed_now)
    day2 = registry.open(teacher_ctx, anchor=ANCHOR, now=fixed_now + timedelta(days=1))

    pipeline.submit(
        replace(teacher_ctx, slot_id=day1.slot_id),
        code="SV001",
        coordinate=ANCHOR,
        descriptor=enrolled.descriptor,
        now=fixed_now + timedelta(minutes=1),
    )
    pipeline.record_manual(
        replace(teacher_ctx, slot_id=day2.slot_id), identity_id="s2", present=True, now=fixed_now + timedelta(days=1)
    )

    export = container.report_service.build_export(teacher_id="t1", class_id=teacher_ctx.class_id)

    assert list(export.by_date) == ["2026-02-01", "2026-02-02"]
    assert export.by_date["2026-02-01"] == [
        {"code": "SV001", "name": "Nguyễn Văn A", "timestamp": "2026-02-01 08:31:00", "manual": False}
    ]
    assert export.rows[1]["date"] == "2026-02-02"
    assert export.rows[1]["manual"] is True


def test_export_keeps_rows_of_closed_slots(container, teacher_ctx, enrolled, fixed_now):
    slot = container.slot_registry.open(teacher_ctx, anchor=ANCHOR, now=fixed_now)
    ctx = replace(teacher_ctx, slot_id=slot.slot_id)
    container.attendance_pipeline.submit(
        ctx, code="SV001", coordinate=ANCHOR, descriptor=enrolled.descriptor, now=fixed_now
    )
    container.slot_registry.close(ctx)

    export = container.report_service.build_export(teacher_id="t1", class_id=teacher_ctx.class_id)
    assert list(export.by_date) == ["unknown"]


def test_export_requires_owner(container, teacher_ctx):
    with pytest.raises(AuthorizationError):
        container.report_service.build_export(teacher_id="t2", class_id=teacher_ctx.class_id)
