from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.report import AttendanceReportService
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceDecisionPipeline
from .biometrics.matcher import DescriptorMatcher
from .classes.mysql_class_repository import MySQLClassRepository
from .classes.repository import ClassRepository
from .classes.service import ClassService
from .core.constants import DEFAULT_MATCH_THRESHOLD, DEFAULT_SLOT_DURATION_MINUTES, DEFAULT_SLOT_RADIUS_METERS
from .database.connection import DBConfig, DatabaseConnection
from .enrollment.mysql_enrollment_repository import (
    MySQLFaceUpdateRequestRepository,
    MySQLPendingIdentityRepository,
)
from .enrollment.repository import FaceUpdateRequestRepository, PendingIdentityRepository
from .enrollment.service import EnrollmentWorkflow
from .identities.mysql_identity_repository import MySQLIdentityRepository, MySQLStudentCodeRepository
from .identities.repository import IdentityRepository, StudentCodeRepository
from .slots.mysql_slot_repository import MySQLSlotRepository
from .slots.repository import SlotRepository
from .slots.service import SlotRegistry


@dataclass(frozen=True)
class Container:
    classes_repo: ClassRepository
    identities_repo: IdentityRepository
    codes_repo: StudentCodeRepository
    pending_repo: PendingIdentityRepository
    face_requests_repo: FaceUpdateRequestRepository
    slots_repo: SlotRepository
    attendance_repo: AttendanceRepository

    class_service: ClassService
    slot_registry: SlotRegistry
    enrollment_workflow: EnrollmentWorkflow
    attendance_pipeline: AttendanceDecisionPipeline
    report_service: AttendanceReportService


def wire_container(
    *,
    classes_repo: ClassRepository,
    identities_repo: IdentityRepository,
    codes_repo: StudentCodeRepository,
    pending_repo: PendingIdentityRepository,
    face_requests_repo: FaceUpdateRequestRepository,
    slots_repo: SlotRepository,
    attendance_repo: AttendanceRepository,
    settings: Any = None,
) -> Container:
    """Build services over any set of repositories (MySQL in the app, fakes in tests)."""

    threshold = float(getattr(settings, "FACE_MATCH_THRESHOLD", DEFAULT_MATCH_THRESHOLD))
    radius = float(getattr(settings, "SLOT_RADIUS_METERS", DEFAULT_SLOT_RADIUS_METERS))
    duration = float(getattr(settings, "SLOT_DURATION_MINUTES", DEFAULT_SLOT_DURATION_MINUTES))

    class_service = ClassService(classes_repo, identities_repo)
    slot_registry = SlotRegistry(
        slots_repo,
        class_service,
        default_radius_meters=radius,
        default_duration_minutes=duration,
    )
    enrollment_workflow = EnrollmentWorkflow(
        identities_repo,
        codes_repo,
        pending_repo,
        face_requests_repo,
        class_service,
    )
    attendance_pipeline = AttendanceDecisionPipeline(
        attendance_repo,
        identities_repo,
        slot_registry,
        class_service,
        matcher=DescriptorMatcher(threshold=threshold),
    )
    report_service = AttendanceReportService(
        attendance_repo,
        identities_repo,
        slots_repo,
        slot_registry,
        class_service,
    )

    return Container(
        classes_repo=classes_repo,
        identities_repo=identities_repo,
        codes_repo=codes_repo,
        pending_repo=pending_repo,
        face_requests_repo=face_requests_repo,
        slots_repo=slots_repo,
        attendance_repo=attendance_repo,
        class_service=class_service,
        slot_registry=slot_registry,
        enrollment_workflow=enrollment_workflow,
        attendance_pipeline=attendance_pipeline,
        report_service=report_service,
    )


def build_container(*, db_config: dict, settings: Any = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire_container(
        classes_repo=MySQLClassRepository(conn),
        identities_repo=MySQLIdentityRepository(conn),
        codes_repo=MySQLStudentCodeRepository(conn),
        pending_repo=MySQLPendingIdentityRepository(conn),
        face_requests_repo=MySQLFaceUpdateRequestRepository(conn),
        slots_repo=MySQLSlotRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        settings=settings,
    )
