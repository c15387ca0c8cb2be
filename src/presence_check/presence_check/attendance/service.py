from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional, Sequence

from ..biometrics.matcher import DescriptorMatcher
from ..classes.service import ClassService
from ..collaborators import DescriptorExtractor, GeolocationProvider
from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.context import RequestContext
from ..core.exceptions import (
    DescriptorExtractionFailed,
    FaceNotDetected,
    GeofenceViolation,
    IdentityNotFound,
    SlotNotFound,
    TransientError,
)
from ..geofence.evaluator import distance_meters, within_radius
from ..geofence.model import Coordinate
from ..identities.repository import IdentityRepository
from ..slots.service import SlotRegistry
from ..slots.token import parse_token
from .model import Accepted, AttendanceRecord, Outcome, RejectedNoMatch
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceDecisionPipeline:
    """Turn one attendance submission into an ACCEPT/REJECT outcome.

    Steps run in a fixed order and fail fast; the attendance record is the
    only write and happens last:

    1. slot is open (SlotNotFound / SlotExpired)
    2. student code exists in the slot's class (IdentityNotFound)
    3. position within the slot radius (GeofenceViolation)
    4. students without an enrolled face are accepted on the geofence alone
    5. live descriptor matches the enrolled one, else RejectedNoMatch
    6. record written (last write wins per slot and student)
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        identities: IdentityRepository,
        slots: SlotRegistry,
        classes: ClassService,
        *,
        matcher: DescriptorMatcher | None = None,
    ):
        self._attendance = attendance
        self._identities = identities
        self._slots = slots
        self._classes = classes
        self._matcher = matcher or DescriptorMatcher()

    def submit(
        self,
        ctx: RequestContext,
        *,
        code: str,
        coordinate: Coordinate,
        descriptor: Optional[Sequence[float]],
        now: datetime | None = None,
    ) -> Outcome:
        now = now or now_local()
        if not ctx.slot_id:
            raise SlotNotFound("Vui lòng quét QR trước")

        slot = self._slots.validate(ctx.class_id, ctx.slot_id, now=now)

        code = require_non_empty(code, "MSSV")
        identity = self._identities.get_by_code(slot.class_id, code)
        if not identity:
            raise IdentityNotFound("MSSV không tồn tại trong lớp")

        distance = distance_meters(coordinate, slot.anchor)
        if not within_radius(distance, slot.radius_meters):
            logger.info(
                "geofence violation: %s in slot %s is %.0fm away (radius %.0fm)",
                identity.identity_id,
                slot.slot_id,
                distance,
                slot.radius_meters,
            )
            raise GeofenceViolation(distance=distance, radius=slot.radius_meters)

        if identity.descriptor is None:
            # TODO: make this a per-class setting once teachers can require enrolled faces.
            logger.info("identity %s has no enrolled face; accepted on geofence only", identity.identity_id)
            confidence = 0.0
        else:
            result = self._matcher.evaluate(descriptor, identity.descriptor)
            if not result.is_match:
                logger.info(
                    "face mismatch for %s in slot %s (distance %.3f, threshold %.2f)",
                    identity.identity_id,
                    slot.slot_id,
                    result.distance,
                    self._matcher.threshold,
                )
                return RejectedNoMatch(
                    identity_id=identity.identity_id,
                    confidence=result.confidence,
                    distance=result.distance,
                )
            confidence = result.confidence

        record = AttendanceRecord(
            slot_id=slot.slot_id,
            identity_id=identity.identity_id,
            class_id=slot.class_id,
            timestamp=now,
            distance_meters=int(round(distance)),
            confidence_score=confidence,
            manual=False,
        )
        self._attendance.upsert(record)
        logger.info("attendance accepted: %s in slot %s", identity.identity_id, slot.slot_id)
        return Accepted(record=record)

    def submit_token(
        self,
        token: str,
        *,
        code: str,
        coordinate: Coordinate,
        descriptor: Optional[Sequence[float]],
        now: datetime | None = None,
    ) -> Outcome:
        return self.submit(parse_token(token), code=code, coordinate=coordinate, descriptor=descriptor, now=now)

    def submit_capture(
        self,
        token: str,
        *,
        code: str,
        frame: Any,
        extractor: DescriptorExtractor,
        geolocation: GeolocationProvider,
        now: datetime | None = None,
    ) -> Outcome:
        """Gather position and descriptor from the collaborators, then submit."""
        ctx = parse_token(token)
        coordinate = geolocation.current_position()

        try:
            descriptor = extractor.extract(frame)
        except TransientError:
            raise
        except Exception as e:
            logger.error("descriptor extraction failed: %s", e)
            raise DescriptorExtractionFailed(str(e)) from e
        if descriptor is None:
            raise FaceNotDetected("Không phát hiện khuôn mặt. Vui lòng đặt mặt rõ trong khung.")

        return self.submit(ctx, code=code, coordinate=coordinate, descriptor=descriptor, now=now)

    def record_manual(
        self,
        ctx: RequestContext,
        *,
        identity_id: str,
        present: bool,
        now: datetime | None = None,
    ) -> Optional[AttendanceRecord]:
        """Teacher override: mark present/absent without geofence or face checks.

        Works on expired slots too; the slot only has to still exist.
        """
        self._classes.require_owner(ctx.class_id, ctx.acting_teacher_id)
        if not ctx.slot_id:
            raise SlotNotFound("Slot điểm danh không tồn tại hoặc đã đóng")
        slot = self._slots.get(ctx.class_id, ctx.slot_id)
        if not self._identities.get(ctx.class_id, identity_id):
            raise IdentityNotFound("Sinh viên không tồn tại trong lớp")

        if not present:
            self._attendance.delete(slot.slot_id, identity_id)
            logger.info("manual absence: %s in slot %s by %s", identity_id, slot.slot_id, ctx.acting_teacher_id)
            return None

        record = AttendanceRecord(
            slot_id=slot.slot_id,
            identity_id=identity_id,
            class_id=slot.class_id,
            timestamp=now or now_local(),
            distance_meters=0,
            confidence_score=1.0,
            manual=True,
        )
        self._attendance.upsert(record)
        logger.info("manual presence: %s in slot %s by %s", identity_id, slot.slot_id, ctx.acting_teacher_id)
        return record
