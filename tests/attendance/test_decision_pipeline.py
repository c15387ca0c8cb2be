from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

import pytest

from src.presence_check.presence_check.attendance.model import Accepted, RejectedNoMatch
from src.presence_check.presence_check.core.exceptions import (
    AuthorizationError,
    DescriptorExtractionFailed,
    FaceNotDetected,
    GeofenceViolation,
    GeolocationUnavailable,
    IdentityNotFound,
    SlotExpired,
    SlotNotFound,
    ValidationError,
)
from src.presence_check.presence_check.geofence.model import Coordinate
from src.presence_check.presence_check.identities.model import Identity
from src.presence_check.presence_check.slots.token import encode_token

ANCHOR = Coordinate(10.0, 106.0)
NEARBY = Coordinate(10.0005, 106.0)  # ~56m north
FAR = Coordinate(10.002, 106.0)  # ~222m north


@pytest.fixture
def slot(container, teacher_ctx, fixed_now):
    return container.slot_registry.open(teacher_ctx, anchor=ANCHOR, radius_meters=200, now=fixed_now)


@pytest.fixture
def slot_ctx(teacher_ctx, slot):
    return replace(teacher_ctx, slot_id=slot.slot_id, acting_teacher_id=None)


def test_matching_face_inside_geofence_is_accepted(container, repos, slot, slot_ctx, enrolled, fixed_now):
    live = (enrolled.descriptor[0] + 0.01,) + enrolled.descriptor[1:]
    now = fixed_now + timedelta(minutes=3)

    outcome = container.attendance_pipeline.submit(
        slot_ctx, code="SV001", coordinate=NEARBY, descriptor=live, now=now
    )

    assert isinstance(outcome, Accepted)
    assert outcome.accepted
    record = outcome.record
    assert record.identity_id == enrolled.identity_id
    assert record.slot_id == slot.slot_id
    assert record.timestamp == now
    assert record.distance_meters == 56
    assert record.confidence_score == pytest.approx(0.99)
    assert not record.manual
    assert repos.attendance_repo.get(slot.slot_id, enrolled.identity_id) == record


def test_code_is_trimmed_before_lookup(container, slot_ctx, enrolled, fixed_now):
    outcome = container.attendance_pipeline.submit(
        slot_ctx, code="  SV001 ", coordinate=ANCHOR, descriptor=enrolled.descriptor, now=fixed_now
    )
    assert outcome.accepted


def test_resubmission_overwrites_single_record(container, repos, slot, slot_ctx, enrolled, fixed_now):
    pipeline = container.attendance_pipeline
    pipeline.submit(slot_ctx, code="SV001", coordinate=NEARBY, descriptor=enrolled.descriptor, now=fixed_now)
    later = fixed_now + timedelta(minutes=5)
    pipeline.submit(slot_ctx, code="SV001", coordinate=ANCHOR, descriptor=enrolled.descriptor, now=later)

    assert repos.attendance_repo.count() == 1
    record = repos.attendance_repo.get(slot.slot_id, enrolled.identity_id)
    assert record.timestamp == later
    assert record.distance_meters == 0
    assert record.confidence_score == 1.0


def test_outside_geofence_raises_with_distance(container, repos, slot_ctx, enrolled, fixed_now):
    with pytest.raises(GeofenceViolation) as exc:
        container.attendance_pipeline.submit(
            slot_ctx, code="SV001", coordinate=FAR, descriptor=enrolled.descriptor, now=fixed_now
        )
    assert exc.value.distance == pytest.approx(222.4, abs=0.5)
    assert exc.value.radius == 200
    assert repos.attendance_repo.count() == 0


def test_face_mismatch_is_rejected_without_writing(container, repos, slot_ctx, enrolled, other_descriptor, fixed_now):
    outcome = container.attendance_pipeline.submit(
        slot_ctx, code="SV001", coordinate=NEARBY, descriptor=other_descriptor, now=fixed_now
    )

    assert isinstance(outcome, RejectedNoMatch)
    assert not outcome.accepted
    assert outcome.identity_id == enrolled.identity_id
    assert outcome.distance > 1.0
    assert outcome.confidence == 0.0
    assert repos.attendance_repo.count() == 0


def test_missing_or_malformed_live_descriptor_is_a_mismatch(container, repos, slot_ctx, enrolled, fixed_now):
    pipeline = container.attendance_pipeline
    for live in (None, enrolled.descriptor[:64]):
        outcome = pipeline.submit(slot_ctx, code="SV001", coordinate=NEARBY, descriptor=live, now=fixed_now)
        assert isinstance(outcome, RejectedNoMatch)
    assert repos.attendance_repo.count() == 0


def test_identity_without_enrolled_face_is_accepted_on_geofence(container, repos, classroom, slot, slot_ctx, fixed_now):
    repos.identities_repo.create(
        Identity(identity_id="s9", class_id=classroom.class_id, display_name="Lê C", code="SV009")
    )

    outcome = container.attendance_pipeline.submit(
        slot_ctx, code="SV009", coordinate=NEARBY, descriptor=None, now=fixed_now
    )

    assert outcome.accepted
    assert outcome.record.confidence_score == 0.0


def test_expired_slot_is_checked_before_identity(container, slot, slot_ctx, fixed_now):
    with pytest.raises(SlotExpired):
        container.attendance_pipeline.submit(
            slot_ctx, code="UNKNOWN", coordinate=FAR, descriptor=None, now=slot.end_time + timedelta(seconds=1)
        )


def test_unknown_code_and_missing_slot(container, slot_ctx, fixed_now, descriptor):
    pipeline = container.attendance_pipeline
    with pytest.raises(IdentityNotFound):
        pipeline.submit(slot_ctx, code="SV404", coordinate=ANCHOR, descriptor=descriptor, now=fixed_now)
    with pytest.raises(ValidationError):
        pipeline.submit(slot_ctx, code=" ", coordinate=ANCHOR, descriptor=descriptor, now=fixed_now)
    with pytest.raises(SlotNotFound):
        pipeline.submit(replace(slot_ctx, slot_id=None), code="SV001", coordinate=ANCHOR, descriptor=descriptor)
    with pytest.raises(SlotNotFound):
        pipeline.submit(replace(slot_ctx, slot_id="gone"), code="SV001", coordinate=ANCHOR, descriptor=descriptor)


def test_closed_slot_rejects_submissions(container, teacher_ctx, slot, slot_ctx, enrolled, fixed_now):
    container.slot_registry.close(replace(teacher_ctx, slot_id=slot.slot_id))
    with pytest.raises(SlotNotFound):
        container.attendance_pipeline.submit(
            slot_ctx, code="SV001", coordinate=ANCHOR, descriptor=enrolled.descriptor, now=fixed_now
        )


def test_submit_token_parses_qr_content(container, slot, enrolled, fixed_now):
    token = encode_token(slot.class_id, slot.slot_id)
    outcome = container.attendance_pipeline.submit_token(
        token, code="SV001", coordinate=ANCHOR, descriptor=enrolled.descriptor, now=fixed_now
    )
    assert outcome.accepted
    with pytest.raises(ValidationError):
        container.attendance_pipeline.submit_token(
            "garbage", code="SV001", coordinate=ANCHOR, descriptor=enrolled.descriptor, now=fixed_now
        )


class _Position:
    def __init__(self, coordinate=None, error=None):
        self.coordinate = coordinate
        self.error = error

    def current_position(self):
        if self.error:
            raise self.error
        return self.coordinate


class _Extractor:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error

    def extract(self, frame):
        if self.error:
            raise self.error
        return self.result


def test_submit_capture_uses_collaborators(container, slot, enrolled, fixed_now):
    token = encode_token(slot.class_id, slot.slot_id)
    outcome = container.attendance_pipeline.submit_capture(
        token,
        code="SV001",
        frame=b"jpeg",
        extractor=_Extractor(result=list(enrolled.descriptor)),
        geolocation=_Position(NEARBY),
        now=fixed_now,
    )
    assert outcome.accepted


def test_submit_capture_failures(container, slot, fixed_now):
    token = encode_token(slot.class_id, slot.slot_id)
    pipeline = container.attendance_pipeline

    with pytest.raises(FaceNotDetected):
        pipeline.submit_capture(
            token, code="SV001", frame=b"", extractor=_Extractor(), geolocation=_Position(ANCHOR), now=fixed_now
        )
    with pytest.raises(DescriptorExtractionFailed):
        pipeline.submit_capture(
            token,
            code="SV001",
            frame=b"",
            extractor=_Extractor(error=RuntimeError("model crashed")),
            geolocation=_Position(ANCHOR),
            now=fixed_now,
        )
    with pytest.raises(GeolocationUnavailable):
        pipeline.submit_capture(
            token,
            code="SV001",
            frame=b"",
            extractor=_Extractor(),
            geolocation=_Position(error=GeolocationUnavailable("timeout")),
            now=fixed_now,
        )


def test_manual_presence_and_absence(container, repos, teacher_ctx, slot, enrolled, fixed_now):
    pipeline = container.attendance_pipeline
    ctx = replace(teacher_ctx, slot_id=slot.slot_id)
    after_expiry = slot.end_time + timedelta(hours=2)

    record = pipeline.record_manual(ctx, identity_id=enrolled.identity_id, present=True, now=after_expiry)
    assert record.manual
    assert record.confidence_score == 1.0
    assert record.distance_meters == 0
    assert repos.attendance_repo.get(slot.slot_id, enrolled.identity_id) == record

    assert pipeline.record_manual(ctx, identity_id=enrolled.identity_id, present=False) is None
    assert repos.attendance_repo.get(slot.slot_id, enrolled.identity_id) is None
    # Marking absent twice is harmless.
    assert pipeline.record_manual(ctx, identity_id=enrolled.identity_id, present=False) is None


def test_manual_override_requires_owner_and_known_identity(container, teacher_ctx, slot, enrolled):
    ctx = replace(teacher_ctx, slot_id=slot.slot_id)
    with pytest.raises(AuthorizationError):
        container.attendance_pipeline.record_manual(
            replace(ctx, acting_teacher_id="t2"), identity_id=enrolled.identity_id, present=True
        )
    with pytest.raises(IdentityNotFound):
        container.attendance_pipeline.record_manual(ctx, identity_id="ghost", present=True)
    with pytest.raises(SlotNotFound):
        container.attendance_pipeline.record_manual(
            replace(ctx, slot_id="gone"), identity_id=enrolled.identity_id, present=True
        )
