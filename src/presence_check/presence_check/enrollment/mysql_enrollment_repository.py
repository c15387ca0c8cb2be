from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import RequestStatus
from ..core.exceptions import IdentityNotFound
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_descriptor, fetchall, fetchone, load_descriptor
from ..identities.model import Identity
from .model import FaceUpdateRequest, PendingIdentity
from .repository import FaceUpdateRequestRepository, PendingIdentityRepository

_PENDING_COLS = "class_id, pending_id, display_name, code, descriptor, status"
_REQUEST_COLS = "class_id, identity_id, new_descriptor, status"


def _placeholders(n: int) -> str:
    return ",".join(["%s"] * n)


def _row_to_pending(r: dict) -> PendingIdentity:
    return PendingIdentity(
        pending_id=str(r["pending_id"]),
        class_id=str(r["class_id"]),
        display_name=r["display_name"],
        code=r["code"],
        descriptor=load_descriptor(r["descriptor"], required=True),
        status=RequestStatus(r.get("status") or RequestStatus.PENDING.value),
    )


def _row_to_request(r: dict) -> FaceUpdateRequest:
    return FaceUpdateRequest(
        identity_id=str(r["identity_id"]),
        class_id=str(r["class_id"]),
        new_descriptor=load_descriptor(r["new_descriptor"], required=True),
        status=RequestStatus(r.get("status") or RequestStatus.PENDING.value),
    )


class MySQLPendingIdentityRepository(PendingIdentityRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, pending: PendingIdentity) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO pending_students(class_id, pending_id, display_name, code, descriptor, status)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    pending.class_id,
                    pending.pending_id,
                    pending.display_name,
                    pending.code,
                    dump_descriptor(pending.descriptor),
                    pending.status.value,
                ),
            )

    def get(self, class_id: str, pending_id: str) -> Optional[PendingIdentity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_PENDING_COLS} FROM pending_students WHERE class_id=%s AND pending_id=%s",
                (class_id, pending_id),
            )
            row = fetchone(cur)
            return _row_to_pending(row) if row else None

    def get_by_code(self, class_id: str, code: str) -> Optional[PendingIdentity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_PENDING_COLS} FROM pending_students WHERE class_id=%s AND code=%s",
                (class_id, code),
            )
            row = fetchone(cur)
            return _row_to_pending(row) if row else None

    def list_for_classes(self, class_ids: Sequence[str]) -> Sequence[PendingIdentity]:
        if not class_ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_PENDING_COLS}
                FROM pending_students
                WHERE class_id IN ({_placeholders(len(class_ids))})
                ORDER BY created_at
                """,
                tuple(class_ids),
            )
            return [_row_to_pending(r) for r in fetchall(cur)]

    @staticmethod
    def _lock_for_delete(cur, class_id: str, pending_id: str) -> Optional[PendingIdentity]:
        cur.execute(
            f"SELECT {_PENDING_COLS} FROM pending_students WHERE class_id=%s AND pending_id=%s FOR UPDATE",
            (class_id, pending_id),
        )
        row = fetchone(cur)
        if not row:
            return None
        cur.execute("DELETE FROM pending_students WHERE class_id=%s AND pending_id=%s", (class_id, pending_id))
        if cur.rowcount == 0:
            return None
        return _row_to_pending(row)

    def promote(self, class_id: str, pending_id: str) -> Optional[Identity]:
        with db_cursor(self._conn_factory) as (_, cur):
            pending = self._lock_for_delete(cur, class_id, pending_id)
            if not pending:
                return None
            identity = pending.to_identity()
            # A failure here rolls back the DELETE above as well.
            cur.execute(
                """
                INSERT INTO students(class_id, identity_id, display_name, code, descriptor)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (
                    identity.class_id,
                    identity.identity_id,
                    identity.display_name,
                    identity.code,
                    dump_descriptor(identity.descriptor),
                ),
            )
            return identity

    def discard(self, class_id: str, pending_id: str) -> Optional[PendingIdentity]:
        with db_cursor(self._conn_factory) as (_, cur):
            pending = self._lock_for_delete(cur, class_id, pending_id)
            if not pending:
                return None
            cur.execute(
                "DELETE FROM student_codes WHERE class_id=%s AND code=%s AND owner_id=%s",
                (class_id, pending.code, pending.pending_id),
            )
            return pending


class MySQLFaceUpdateRequestRepository(FaceUpdateRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def put(self, request: FaceUpdateRequest) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO face_update_requests(class_id, identity_id, new_descriptor, status)
                VALUES(%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    new_descriptor=VALUES(new_descriptor),
                    status=VALUES(status),
                    created_at=CURRENT_TIMESTAMP
                """,
                (request.class_id, request.identity_id, dump_descriptor(request.new_descriptor), request.status.value),
            )

    def get(self, class_id: str, identity_id: str) -> Optional[FaceUpdateRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_REQUEST_COLS} FROM face_update_requests WHERE class_id=%s AND identity_id=%s",
                (class_id, identity_id),
            )
            row = fetchone(cur)
            return _row_to_request(row) if row else None

    def list_for_classes(self, class_ids: Sequence[str]) -> Sequence[FaceUpdateRequest]:
        if not class_ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_REQUEST_COLS}
                FROM face_update_requests
                WHERE class_id IN ({_placeholders(len(class_ids))})
                ORDER BY created_at
                """,
                tuple(class_ids),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    @staticmethod
    def _lock_for_delete(cur, class_id: str, identity_id: str) -> Optional[FaceUpdateRequest]:
        cur.execute(
            f"SELECT {_REQUEST_COLS} FROM face_update_requests WHERE class_id=%s AND identity_id=%s FOR UPDATE",
            (class_id, identity_id),
        )
        row = fetchone(cur)
        if not row:
            return None
        cur.execute(
            "DELETE FROM face_update_requests WHERE class_id=%s AND identity_id=%s",
            (class_id, identity_id),
        )
        if cur.rowcount == 0:
            return None
        return _row_to_request(row)

    def take(self, class_id: str, identity_id: str) -> Optional[FaceUpdateRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._lock_for_delete(cur, class_id, identity_id)

    def apply(self, class_id: str, identity_id: str) -> Optional[FaceUpdateRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            request = self._lock_for_delete(cur, class_id, identity_id)
            if not request:
                return None
            cur.execute(
                "UPDATE students SET descriptor=%s WHERE class_id=%s AND identity_id=%s",
                (dump_descriptor(request.new_descriptor), class_id, identity_id),
            )
            if cur.rowcount == 0:
                # rowcount is also 0 when the descriptor is unchanged.
                cur.execute(
                    "SELECT 1 AS ok FROM students WHERE class_id=%s AND identity_id=%s",
                    (class_id, identity_id),
                )
                if fetchone(cur) is None:
                    raise IdentityNotFound("Sinh viên không tồn tại trong lớp")
            return request
