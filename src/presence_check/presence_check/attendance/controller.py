from __future__ import annotations

import csv
import io

from flask import Flask, jsonify

from ..common.web import current_teacher_id, finite_or_none, json_body, parse_bool, teacher_required
from ..container import Container
from ..core.context import RequestContext
from ..geofence.model import Coordinate
from .model import Accepted, AttendanceRecord


def _record_json(rec: AttendanceRecord) -> dict:
    return {
        "slot_id": rec.slot_id,
        "identity_id": rec.identity_id,
        "timestamp": rec.timestamp.isoformat(timespec="seconds"),
        "distance_meters": rec.distance_meters,
        "confidence_score": rec.confidence_score,
        "manual": rec.manual,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance", methods=["POST"], endpoint="attendance_submit")
    def attendance_submit():
        data = json_body()
        outcome = container.attendance_pipeline.submit_token(
            str(data.get("token") or ""),
            code=str(data.get("code") or ""),
            coordinate=Coordinate.of(data.get("lat"), data.get("lng")),
            descriptor=data.get("descriptor"),
        )
        if isinstance(outcome, Accepted):
            return jsonify(
                {
                    "success": True,
                    "accepted": True,
                    "message": "Điểm danh thành công!",
                    "record": _record_json(outcome.record),
                }
            )

        return jsonify(
            {
                "success": True,
                "accepted": False,
                "message": f"Face không khớp (điểm: {outcome.confidence * 100:.1f}%).",
                "identity_id": outcome.identity_id,
                "confidence": outcome.confidence,
                "distance": finite_or_none(outcome.distance),
                "can_request_face_update": True,
            }
        )

    @app.route("/api/attendance/manual", methods=["POST"], endpoint="attendance_manual")
    @teacher_required
    def attendance_manual():
        data = json_body()
        ctx = RequestContext(
            class_id=str(data.get("class_id") or ""),
            slot_id=str(data.get("slot_id") or ""),
            acting_teacher_id=current_teacher_id(),
        )
        record = container.attendance_pipeline.record_manual(
            ctx,
            identity_id=str(data.get("identity_id") or ""),
            present=parse_bool(data.get("present")),
        )
        return jsonify({"success": True, "record": _record_json(record) if record else None})

    @app.route("/api/classes/<class_id>/slots/<slot_id>/roster", methods=["GET"], endpoint="attendance_roster")
    @teacher_required
    def attendance_roster(class_id: str, slot_id: str):
        ctx = RequestContext(class_id=class_id, slot_id=slot_id, acting_teacher_id=current_teacher_id())
        rows = container.report_service.roster(ctx)
        return jsonify(
            [
                {
                    "identity_id": r.identity_id,
                    "code": r.code,
                    "name": r.display_name,
                    "present": r.present,
                    "manual": r.manual,
                }
                for r in rows
            ]
        )

    @app.route("/api/classes/<class_id>/attendance.csv", methods=["GET"], endpoint="attendance_export_csv")
    @teacher_required
    def attendance_export_csv(class_id: str):
        data = container.report_service.build_export(teacher_id=current_teacher_id(), class_id=class_id)

        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=["date", "code", "name", "timestamp", "manual"])
        writer.writeheader()
        for row in data.rows:
            writer.writerow(row)

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename=diem-danh-{class_id}.csv"},
        )
