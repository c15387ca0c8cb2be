from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional, Sequence

from ..classes.service import ClassService
from ..collaborators import GeolocationProvider
from ..common.datetime_utils import from_millis, now_local
from ..common.ids import new_id
from ..common.validators import require_positive
from ..core.constants import (
    DEFAULT_RECENT_SLOT_DAYS,
    DEFAULT_SLOT_DURATION_MINUTES,
    DEFAULT_SLOT_RADIUS_METERS,
    MAX_RECENT_SLOT_DAYS,
    MAX_SLOT_DURATION_MS,
    MAX_SLOT_RADIUS_METERS,
)
from ..core.context import RequestContext
from ..core.enums import SlotStatus
from ..core.exceptions import SlotExpired, SlotNotFound, ValidationError
from ..geofence.model import Coordinate
from .model import Slot
from .repository import SlotRepository

logger = logging.getLogger(__name__)


class SlotRegistry:
    """Opens, validates and closes attendance slots.

    Expiry is computed on every read; there is no background sweeper, so an
    expired slot stays in the store until a teacher closes it.
    """

    def __init__(
        self,
        slots: SlotRepository,
        classes: ClassService,
        *,
        default_radius_meters: float = DEFAULT_SLOT_RADIUS_METERS,
        default_duration_minutes: float = DEFAULT_SLOT_DURATION_MINUTES,
    ):
        self._slots = slots
        self._classes = classes
        self._default_radius = float(default_radius_meters)
        self._default_duration = timedelta(minutes=float(default_duration_minutes))

    def open(
        self,
        ctx: RequestContext,
        *,
        anchor: Coordinate,
        radius_meters: Optional[float] = None,
        duration_ms: Optional[int] = None,
        now: datetime | None = None,
    ) -> Slot:
        self._classes.require_owner(ctx.class_id, ctx.acting_teacher_id)
        anchor.validate()

        radius = require_positive(
            self._default_radius if radius_meters is None else radius_meters,
            "Bán kính",
            maximum=MAX_SLOT_RADIUS_METERS,
        )
        if duration_ms is None:
            duration = self._default_duration
        else:
            duration = from_millis(int(require_positive(duration_ms, "Thời lượng", maximum=MAX_SLOT_DURATION_MS)))
        if duration <= timedelta(0):
            raise ValidationError("Thời lượng phải lớn hơn 0")

        start = now or now_local()
        slot = Slot(
            slot_id=new_id("s"),
            class_id=ctx.class_id,
            start_time=start,
            end_time=start + duration,
            anchor=anchor,
            radius_meters=radius,
        )
        self._slots.create(slot)
        logger.info(
            "slot %s opened for class %s until %s (radius %.0fm)",
            slot.slot_id,
            slot.class_id,
            slot.end_time.isoformat(timespec="seconds"),
            slot.radius_meters,
        )
        return slot

    def open_here(
        self,
        ctx: RequestContext,
        *,
        geolocation: GeolocationProvider,
        radius_meters: Optional[float] = None,
        duration_ms: Optional[int] = None,
        now: datetime | None = None,
    ) -> Slot:
        """Open a slot anchored at the teacher's current position."""
        self._classes.require_owner(ctx.class_id, ctx.acting_teacher_id)
        anchor = geolocation.current_position()
        return self.open(ctx, anchor=anchor, radius_meters=radius_meters, duration_ms=duration_ms, now=now)

    def get(self, class_id: str, slot_id: str) -> Slot:
        """Fetch without the expiry check (manual attendance works on past slots)."""
        slot = self._slots.get(class_id, slot_id)
        if not slot:
            raise SlotNotFound("Slot điểm danh không tồn tại hoặc đã đóng")
        return slot

    def validate(self, class_id: str, slot_id: str, *, now: datetime | None = None) -> Slot:
        slot = self.get(class_id, slot_id)
        if slot.is_expired(now or now_local()):
            raise SlotExpired("Slot điểm danh đã hết hạn")
        return slot

    def status(self, class_id: str, slot_id: str, *, now: datetime | None = None) -> SlotStatus:
        slot = self._slots.get(class_id, slot_id)
        if not slot:
            return SlotStatus.CLOSED
        if slot.is_expired(now or now_local()):
            return SlotStatus.EXPIRED
        return SlotStatus.OPEN

    def close(self, ctx: RequestContext) -> None:
        self._classes.require_owner(ctx.class_id, ctx.acting_teacher_id)
        if not ctx.slot_id or not self._slots.delete(ctx.class_id, ctx.slot_id):
            raise SlotNotFound("Slot điểm danh không tồn tại hoặc đã đóng")
        logger.info("slot %s of class %s closed", ctx.slot_id, ctx.class_id)

    def list_recent(
        self,
        ctx: RequestContext,
        *,
        days: int = DEFAULT_RECENT_SLOT_DAYS,
        now: datetime | None = None,
    ) -> Sequence[Slot]:
        self._classes.require_owner(ctx.class_id, ctx.acting_teacher_id)
        days = int(require_positive(days, "Số ngày", maximum=MAX_RECENT_SLOT_DAYS))
        since = (now or now_local()) - timedelta(days=days)
        return self._slots.list_started_since(ctx.class_id, since)
