from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from types import SimpleNamespace
from typing import Optional

import pytest

from src.presence_check.presence_check.attendance.model import AttendanceRecord
from src.presence_check.presence_check.classes.model import ClassRoom
from src.presence_check.presence_check.container import wire_container
from src.presence_check.presence_check.core.context import RequestContext
from src.presence_check.presence_check.core.exceptions import IdentityNotFound
from src.presence_check.presence_check.enrollment.model import FaceUpdateRequest, PendingIdentity
from src.presence_check.presence_check.identities.model import Identity
from src.presence_check.presence_check.slots.model import Slot


class InMemoryClasses:
    def __init__(self):
        self._by_id: dict[str, ClassRoom] = {}

    def get(self, class_id: str) -> Optional[ClassRoom]:
        return self._by_id.get(class_id)

    def list_for_teacher(self, teacher_id: str):
        return [c for c in self._by_id.values() if c.teacher_id == teacher_id]

    def list_all(self):
        return sorted(self._by_id.values(), key=lambda c: (c.school, c.name))

    def create(self, classroom: ClassRoom) -> None:
        self._by_id[classroom.class_id] = classroom

    def delete(self, class_id: str) -> bool:
        return self._by_id.pop(class_id, None) is not None


class InMemoryIdentities:
    def __init__(self):
        self._by_key: dict[tuple[str, str], Identity] = {}

    def get(self, class_id: str, identity_id: str) -> Optional[Identity]:
        return self._by_key.get((class_id, identity_id))

    def get_by_code(self, class_id: str, code: str) -> Optional[Identity]:
        for s in self._by_key.values():
            if s.class_id == class_id and s.code == code:
                return s
        return None

    def list_for_class(self, class_id: str):
        return sorted((s for s in self._by_key.values() if s.class_id == class_id), key=lambda s: s.code)

    def create(self, identity: Identity) -> None:
        self._by_key[(identity.class_id, identity.identity_id)] = identity

    def update_descriptor(self, class_id: str, identity_id: str, descriptor) -> bool:
        current = self._by_key.get((class_id, identity_id))
        if not current:
            return False
        self._by_key[(class_id, identity_id)] = replace(current, descriptor=tuple(descriptor))
        return True


class InMemoryCodes:
    def __init__(self):
        self._lock = threading.Lock()
        self._owners: dict[tuple[str, str], str] = {}

    def reserve(self, class_id: str, code: str, owner_id: str) -> bool:
        with self._lock:
            if (class_id, code) in self._owners:
                return False
            self._owners[(class_id, code)] = owner_id
            return True

    def release(self, class_id: str, code: str) -> bool:
        with self._lock:
            return self._owners.pop((class_id, code), None) is not None

    def is_reserved(self, class_id: str, code: str) -> bool:
        return (class_id, code) in self._owners


class InMemoryPending:
    def __init__(self, identities: InMemoryIdentities, codes: InMemoryCodes):
        self._lock = threading.Lock()
        self._identities = identities
        self._codes = codes
        self._by_key: dict[tuple[str, str], PendingIdentity] = {}

    def create(self, pending: PendingIdentity) -> None:
        with self._lock:
            self._by_key[(pending.class_id, pending.pending_id)] = pending

    def get(self, class_id: str, pending_id: str) -> Optional[PendingIdentity]:
        return self._by_key.get((class_id, pending_id))

    def get_by_code(self, class_id: str, code: str) -> Optional[PendingIdentity]:
        for p in list(self._by_key.values()):
            if p.class_id == class_id and p.code == code:
                return p
        return None

    def list_for_classes(self, class_ids):
        return [p for p in self._by_key.values() if p.class_id in set(class_ids)]

    def promote(self, class_id: str, pending_id: str) -> Optional[Identity]:
        with self._lock:
            pending = self._by_key.get((class_id, pending_id))
            if not pending:
                return None
            identity = pending.to_identity()
            # Same all-or-nothing shape as the MySQL transaction.
            self._identities.create(identity)
            del self._by_key[(class_id, pending_id)]
            return identity

    def discard(self, class_id: str, pending_id: str) -> Optional[PendingIdentity]:
        with self._lock:
            pending = self._by_key.get((class_id, pending_id))
            if not pending:
                return None
            self._codes.release(class_id, pending.code)
            del self._by_key[(class_id, pending_id)]
            return pending


class InMemoryFaceRequests:
    def __init__(self, identities: InMemoryIdentities):
        self._lock = threading.Lock()
        self._identities = identities
        self._by_key: dict[tuple[str, str], FaceUpdateRequest] = {}

    def put(self, request: FaceUpdateRequest) -> None:
        with self._lock:
            self._by_key[(request.class_id, request.identity_id)] = request

    def get(self, class_id: str, identity_id: str) -> Optional[FaceUpdateRequest]:
        return self._by_key.get((class_id, identity_id))

    def list_for_classes(self, class_ids):
        return [r for r in self._by_key.values() if r.class_id in set(class_ids)]

    def take(self, class_id: str, identity_id: str) -> Optional[FaceUpdateRequest]:
        with self._lock:
            return self._by_key.pop((class_id, identity_id), None)

    def apply(self, class_id: str, identity_id: str) -> Optional[FaceUpdateRequest]:
        with self._lock:
            request = self._by_key.get((class_id, identity_id))
            if not request:
                return None
            if not self._identities.update_descriptor(class_id, identity_id, request.new_descriptor):
                raise IdentityNotFound("Sinh viên không tồn tại trong lớp")
            del self._by_key[(class_id, identity_id)]
            return request


class InMemorySlots:
    def __init__(self):
        self._by_key: dict[tuple[str, str], Slot] = {}

    def create(self, slot: Slot) -> None:
        self._by_key[(slot.class_id, slot.slot_id)] = slot

    def get(self, class_id: str, slot_id: str) -> Optional[Slot]:
        return self._by_key.get((class_id, slot_id))

    def list_started_since(self, class_id: str, since: datetime):
        items = [s for s in self._by_key.values() if s.class_id == class_id and s.start_time > since]
        return sorted(items, key=lambda s: s.start_time, reverse=True)

    def list_for_class(self, class_id: str):
        return sorted((s for s in self._by_key.values() if s.class_id == class_id), key=lambda s: s.start_time)

    def delete(self, class_id: str, slot_id: str) -> bool:
        return self._by_key.pop((class_id, slot_id), None) is not None


class InMemoryAttendance:
    def __init__(self):
        self._by_key: dict[tuple[str, str], AttendanceRecord] = {}

    def get(self, slot_id: str, identity_id: str) -> Optional[AttendanceRecord]:
        return self._by_key.get((slot_id, identity_id))

    def upsert(self, record: AttendanceRecord) -> None:
        self._by_key[(record.slot_id, record.identity_id)] = record

    def delete(self, slot_id: str, identity_id: str) -> bool:
        return self._by_key.pop((slot_id, identity_id), None) is not None

    def list_for_slot(self, slot_id: str):
        return [r for r in self._by_key.values() if r.slot_id == slot_id]

    def list_for_class(self, class_id: str):
        return sorted((r for r in self._by_key.values() if r.class_id == class_id), key=lambda r: r.timestamp)

    def count(self) -> int:
        return len(self._by_key)


def make_descriptor(offset: float = 0.0) -> tuple[float, ...]:
    return tuple(((i * 37) % 100) / 1000 + offset for i in range(128))


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 2, 1, 8, 30, 0)


@pytest.fixture
def repos() -> SimpleNamespace:
    identities = InMemoryIdentities()
    codes = InMemoryCodes()
    return SimpleNamespace(
        classes_repo=InMemoryClasses(),
        identities_repo=identities,
        codes_repo=codes,
        pending_repo=InMemoryPending(identities, codes),
        face_requests_repo=InMemoryFaceRequests(identities),
        slots_repo=InMemorySlots(),
        attendance_repo=InMemoryAttendance(),
    )


@pytest.fixture
def container(repos):
    return wire_container(**vars(repos))


@pytest.fixture
def descriptor() -> tuple[float, ...]:
    return make_descriptor()


@pytest.fixture
def other_descriptor() -> tuple[float, ...]:
    # Every component shifted by 0.1 => distance ~1.13, a clear non-match.
    return make_descriptor(0.1)


@pytest.fixture
def classroom(container) -> ClassRoom:
    return container.class_service.create_class(teacher_id="t1", name="CNTT 01")


@pytest.fixture
def teacher_ctx(classroom) -> RequestContext:
    return RequestContext(class_id=classroom.class_id, acting_teacher_id="t1")


@pytest.fixture
def enrolled(container, repos, classroom, descriptor) -> Identity:
    identity = Identity(
        identity_id="s1",
        class_id=classroom.class_id,
        display_name="Nguyễn Văn A",
        code="SV001",
        descriptor=descriptor,
    )
    repos.identities_repo.create(identity)
    repos.codes_repo.reserve(classroom.class_id, identity.code, identity.identity_id)
    return identity
