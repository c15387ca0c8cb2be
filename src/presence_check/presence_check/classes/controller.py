from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import current_teacher_id, json_body, teacher_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/classes", methods=["GET"], endpoint="classes_list")
    @teacher_required
    def classes_list():
        classes = container.class_service.list_my_classes(current_teacher_id())
        return jsonify([{"class_id": c.class_id, "name": c.name, "school": c.school} for c in classes])

    @app.route("/api/classes", methods=["POST"], endpoint="classes_create")
    @teacher_required
    def classes_create():
        data = json_body()
        classroom = container.class_service.create_class(
            teacher_id=current_teacher_id(),
            name=str(data.get("name") or ""),
            school=str(data.get("school") or ""),
        )
        return (
            jsonify(
                {"success": True, "class_id": classroom.class_id, "name": classroom.name, "school": classroom.school}
            ),
            201,
        )

    @app.route("/api/classes/<class_id>", methods=["DELETE"], endpoint="classes_delete")
    @teacher_required
    def classes_delete(class_id: str):
        container.class_service.delete_class(teacher_id=current_teacher_id(), class_id=class_id)
        return jsonify({"success": True, "message": "Đã xóa lớp"})

    @app.route("/api/classes/<class_id>/students", methods=["GET"], endpoint="classes_students")
    @teacher_required
    def classes_students(class_id: str):
        students = container.class_service.list_students(teacher_id=current_teacher_id(), class_id=class_id)
        return jsonify(
            [
                {
                    "identity_id": s.identity_id,
                    "code": s.code,
                    "name": s.display_name,
                    "has_face": s.is_enrolled,
                }
                for s in students
            ]
        )

    @app.route("/api/directory/schools", methods=["GET"], endpoint="directory_schools")
    def directory_schools():
        return jsonify(container.class_service.list_schools())

    @app.route("/api/directory/classes", methods=["GET"], endpoint="directory_classes")
    def directory_classes():
        # Public: only what a student needs to pick a class, no teacher ids.
        classes = container.class_service.directory(request.args.get("school"))
        return jsonify([{"class_id": c.class_id, "name": c.name, "school": c.school} for c in classes])
