from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import current_teacher_id, json_body, teacher_required
from ..container import Container
from ..core.context import RequestContext


def register(app: Flask, container: Container) -> None:
    workflow = container.enrollment_workflow

    def _ctx(class_id: str) -> RequestContext:
        return RequestContext(class_id=class_id, acting_teacher_id=current_teacher_id())

    @app.route("/api/enrollments", methods=["POST"], endpoint="enrollments_submit")
    def enrollments_submit():
        data = json_body()
        pending = workflow.submit_enrollment(
            class_id=str(data.get("class_id") or ""),
            display_name=str(data.get("name") or ""),
            code=str(data.get("code") or ""),
            descriptor=data.get("descriptor"),
        )
        return (
            jsonify(
                {
                    "success": True,
                    "pending_id": pending.pending_id,
                    "status": pending.status.value,
                    "message": "Đăng ký thành công! Đang chờ giáo viên duyệt.",
                }
            ),
            201,
        )

    @app.route("/api/enrollments/pending", methods=["GET"], endpoint="enrollments_pending")
    @teacher_required
    def enrollments_pending():
        items = workflow.list_pending_enrollments(current_teacher_id())
        return jsonify(
            [
                {"class_id": p.class_id, "pending_id": p.pending_id, "name": p.display_name, "code": p.code}
                for p in items
            ]
        )

    @app.route("/api/enrollments/<class_id>/<pending_id>/approve", methods=["POST"], endpoint="enrollments_approve")
    @teacher_required
    def enrollments_approve(class_id: str, pending_id: str):
        identity = workflow.approve_enrollment(_ctx(class_id), pending_id)
        return jsonify({"success": True, "identity_id": identity.identity_id, "message": "Đã duyệt học sinh"})

    @app.route("/api/enrollments/<class_id>/<pending_id>/reject", methods=["POST"], endpoint="enrollments_reject")
    @teacher_required
    def enrollments_reject(class_id: str, pending_id: str):
        workflow.reject_enrollment(_ctx(class_id), pending_id)
        return jsonify({"success": True, "message": "Đã từ chối"})

    @app.route("/api/face-updates", methods=["POST"], endpoint="face_updates_submit")
    def face_updates_submit():
        data = json_body()
        req = workflow.submit_face_update(
            class_id=str(data.get("class_id") or ""),
            identity_id=str(data.get("identity_id") or ""),
            new_descriptor=data.get("descriptor"),
        )
        return (
            jsonify(
                {
                    "success": True,
                    "status": req.status.value,
                    "message": "Đã gửi yêu cầu cập nhật. Giáo viên sẽ duyệt.",
                }
            ),
            201,
        )

    @app.route("/api/face-updates/pending", methods=["GET"], endpoint="face_updates_pending")
    @teacher_required
    def face_updates_pending():
        items = workflow.list_face_update_requests(current_teacher_id())
        return jsonify([{"class_id": r.class_id, "identity_id": r.identity_id} for r in items])

    @app.route(
        "/api/face-updates/<class_id>/<identity_id>/approve",
        methods=["POST"],
        endpoint="face_updates_approve",
    )
    @teacher_required
    def face_updates_approve(class_id: str, identity_id: str):
        workflow.approve_face_update(_ctx(class_id), identity_id)
        return jsonify({"success": True, "message": "Đã cập nhật khuôn mặt"})

    @app.route(
        "/api/face-updates/<class_id>/<identity_id>/reject",
        methods=["POST"],
        endpoint="face_updates_reject",
    )
    @teacher_required
    def face_updates_reject(class_id: str, identity_id: str):
        workflow.reject_face_update(_ctx(class_id), identity_id)
        return jsonify({"success": True, "message": "Đã từ chối"})
