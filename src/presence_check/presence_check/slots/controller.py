from __future__ import annotations

import io

import qrcode
from flask import Flask, jsonify, request, send_file

from ..common.web import current_teacher_id, json_body, teacher_required
from ..container import Container
from ..core.context import RequestContext
from ..geofence.model import Coordinate
from .model import Slot
from .token import encode_token, parse_token


def _slot_json(slot: Slot) -> dict:
    return {
        "class_id": slot.class_id,
        "slot_id": slot.slot_id,
        "token": encode_token(slot.class_id, slot.slot_id),
        "start_time": slot.start_time.isoformat(timespec="seconds"),
        "end_time": slot.end_time.isoformat(timespec="seconds"),
        "anchor": {"lat": slot.anchor.lat, "lng": slot.anchor.lng},
        "radius_meters": slot.radius_meters,
    }


def render_qr_png(content: str) -> io.BytesIO:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=2,
    )
    qr.add_data(content)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return buf


def register(app: Flask, container: Container) -> None:
    @app.route("/api/slots", methods=["POST"], endpoint="slots_open")
    @teacher_required
    def slots_open():
        data = json_body()
        ctx = RequestContext(class_id=str(data.get("class_id") or ""), acting_teacher_id=current_teacher_id())
        slot = container.slot_registry.open(
            ctx,
            anchor=Coordinate.of(data.get("lat"), data.get("lng")),
            radius_meters=data.get("radius_meters"),
            duration_ms=data.get("duration_ms"),
        )
        return jsonify({"success": True, "slot": _slot_json(slot)}), 201

    @app.route("/api/slots/<class_id>/<slot_id>", methods=["DELETE"], endpoint="slots_close")
    @teacher_required
    def slots_close(class_id: str, slot_id: str):
        ctx = RequestContext(class_id=class_id, slot_id=slot_id, acting_teacher_id=current_teacher_id())
        container.slot_registry.close(ctx)
        return jsonify({"success": True, "message": "Slot đã đóng"})

    @app.route("/api/slots/<token>/status", methods=["GET"], endpoint="slots_status")
    def slots_status(token: str):
        ctx = parse_token(token)
        status = container.slot_registry.status(ctx.class_id, ctx.slot_id)
        return jsonify({"class_id": ctx.class_id, "slot_id": ctx.slot_id, "status": status.value})

    @app.route("/api/classes/<class_id>/slots/recent", methods=["GET"], endpoint="slots_recent")
    @teacher_required
    def slots_recent(class_id: str):
        ctx = RequestContext(class_id=class_id, acting_teacher_id=current_teacher_id())
        days = request.args.get("days", default=7, type=int)
        slots = container.slot_registry.list_recent(ctx, days=days)
        return jsonify([_slot_json(s) for s in slots])

    @app.route("/api/slots/<class_id>/<slot_id>/qr.png", methods=["GET"], endpoint="slots_qr")
    @teacher_required
    def slots_qr(class_id: str, slot_id: str):
        slot = container.slot_registry.get(class_id, slot_id)
        container.class_service.require_owner(slot.class_id, current_teacher_id())
        buf = render_qr_png(encode_token(slot.class_id, slot.slot_id))
        return send_file(buf, mimetype="image/png")
