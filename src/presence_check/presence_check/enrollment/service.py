from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from ..classes.service import ClassService
from ..common.ids import new_id
from ..common.validators import require_descriptor, require_non_empty
from ..core.context import RequestContext
from ..core.exceptions import DuplicateCode, IdentityNotFound, InvalidDescriptor, NotFound
from ..identities.model import Identity
from ..identities.repository import IdentityRepository, StudentCodeRepository
from .model import FaceUpdateRequest, PendingIdentity
from .repository import FaceUpdateRequestRepository, PendingIdentityRepository

logger = logging.getLogger(__name__)


class EnrollmentWorkflow:
    """Two teacher-approval state machines: PENDING -> APPROVED | REJECTED.

    * enrollment: a self-registered student becomes an Identity, or is dropped;
    * face update: an enrolled student's descriptor is replaced, or the request is dropped.

    Resolved records are deleted, so resolving twice reports NotFound.
    """

    def __init__(
        self,
        identities: IdentityRepository,
        codes: StudentCodeRepository,
        pending: PendingIdentityRepository,
        face_requests: FaceUpdateRequestRepository,
        classes: ClassService,
    ):
        self._identities = identities
        self._codes = codes
        self._pending = pending
        self._face_requests = face_requests
        self._classes = classes

    @staticmethod
    def _descriptor(values: Optional[Sequence[Any]], field_name: str) -> tuple[float, ...]:
        try:
            return require_descriptor(values, field_name)
        except InvalidDescriptor as e:
            logger.error("rejected %s: %s", field_name, e)
            raise

    # Enrollment

    def submit_enrollment(
        self,
        *,
        class_id: str,
        display_name: str,
        code: str,
        descriptor: Optional[Sequence[Any]],
    ) -> PendingIdentity:
        self._classes.require_class(class_id)
        display_name = require_non_empty(display_name, "Tên")
        code = require_non_empty(code, "MSSV")
        vector = self._descriptor(descriptor, "descriptor")

        if self._identities.get_by_code(class_id, code) or self._pending.get_by_code(class_id, code):
            raise DuplicateCode("MSSV đã tồn tại trong lớp")

        pending = PendingIdentity(
            pending_id=new_id("p"),
            class_id=class_id,
            display_name=display_name,
            code=code,
            descriptor=vector,
        )
        # The lookup above is only a fast path; the reservation is what makes
        # concurrent submissions with the same code mutually exclusive.
        if not self._codes.reserve(class_id, code, pending.pending_id):
            raise DuplicateCode("MSSV đã tồn tại trong lớp")
        try:
            self._pending.create(pending)
        except Exception:
            self._codes.release(class_id, code)
            raise

        logger.info("enrollment %s submitted for class %s (code %s)", pending.pending_id, class_id, code)
        return pending

    def approve_enrollment(self, ctx: RequestContext, pending_id: str) -> Identity:
        self._classes.require_owner(ctx.class_id, ctx.acting_teacher_id)
        identity = self._pending.promote(ctx.class_id, pending_id)
        if not identity:
            raise NotFound("Yêu cầu không tồn tại hoặc đã được xử lý")
        logger.info("enrollment %s approved by teacher %s", pending_id, ctx.acting_teacher_id)
        return identity

    def reject_enrollment(self, ctx: RequestContext, pending_id: str) -> None:
        self._classes.require_owner(ctx.class_id, ctx.acting_teacher_id)
        if not self._pending.discard(ctx.class_id, pending_id):
            raise NotFound("Yêu cầu không tồn tại hoặc đã được xử lý")
        logger.info("enrollment %s rejected by teacher %s", pending_id, ctx.acting_teacher_id)

    def list_pending_enrollments(self, teacher_id: Optional[str]) -> Sequence[PendingIdentity]:
        class_ids = [c.class_id for c in self._classes.list_my_classes(teacher_id)]
        return self._pending.list_for_classes(class_ids)

    # Face update

    def submit_face_update(
        self,
        *,
        class_id: str,
        identity_id: str,
        new_descriptor: Optional[Sequence[Any]],
    ) -> FaceUpdateRequest:
        vector = self._descriptor(new_descriptor, "new_descriptor")
        if not self._identities.get(class_id, identity_id):
            raise IdentityNotFound("Sinh viên không tồn tại trong lớp")

        request = FaceUpdateRequest(identity_id=identity_id, class_id=class_id, new_descriptor=vector)
        # Overwrites any outstanding request: the latest submission wins.
        self._face_requests.put(request)
        logger.info("face update requested for %s in class %s", identity_id, class_id)
        return request

    def approve_face_update(self, ctx: RequestContext, identity_id: str) -> Identity:
        self._classes.require_owner(ctx.class_id, ctx.acting_teacher_id)
        if not self._face_requests.apply(ctx.class_id, identity_id):
            raise NotFound("Yêu cầu không tồn tại hoặc đã được xử lý")

        identity = self._identities.get(ctx.class_id, identity_id)
        if not identity:
            raise IdentityNotFound("Sinh viên không tồn tại trong lớp")
        logger.info("face update for %s approved by teacher %s", identity_id, ctx.acting_teacher_id)
        return identity

    def reject_face_update(self, ctx: RequestContext, identity_id: str) -> None:
        self._classes.require_owner(ctx.class_id, ctx.acting_teacher_id)
        if not self._face_requests.take(ctx.class_id, identity_id):
            raise NotFound("Yêu cầu không tồn tại hoặc đã được xử lý")
        logger.info("face update for %s rejected by teacher %s", identity_id, ctx.acting_teacher_id)

    def list_face_update_requests(self, teacher_id: Optional[str]) -> Sequence[FaceUpdateRequest]:
        class_ids = [c.class_id for c in self._classes.list_my_classes(teacher_id)]
        return self._face_requests.list_for_classes(class_ids)
