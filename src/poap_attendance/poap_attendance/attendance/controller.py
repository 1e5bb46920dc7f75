from __future__ import annotations

import logging

from flask import Flask, g, jsonify, request

from ..common.datetime_utils import to_iso
from ..common.http import error_response, identity_required, json_body
from ..core.enums import Role
from ..core.exceptions import DomainError, ValidationError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    resolver = container.resolver
    ledger = container.ledger
    workflow = container.workflow

    @app.route("/api/attendance/mark", methods=["POST"], endpoint="mark_attendance")
    @identity_required(resolver)
    def mark_attendance():
        data = json_body()
        try:
            record = ledger.mark_attendance(data.get("classId", ""), g.identity.address)
        except DomainError as e:
            return error_response(e)
        return jsonify({
            "message": "Attendance marked successfully",
            "markedAt": to_iso(record.marked_at),
            "attendance": record.to_dict(),
        }), 200

    @app.route("/api/attendance/validate", methods=["POST"], endpoint="validate_attendance")
    @identity_required(resolver)
    def validate_attendance():
        data = json_body()
        student = data.get("studentAddress") or data.get("studentIdentity") or ""
        try:
            outcome = workflow.validate(data.get("classId", ""), g.identity.address, student)
        except DomainError as e:
            return error_response(e)

        body = {
            "message": "Attendance validated successfully",
            "validatedAt": to_iso(outcome.validated_at),
            "badgeRef": outcome.badge_ref,
            "badgeStatus": outcome.badge_status.value,
        }
        if outcome.badge_error:
            body["badgeError"] = outcome.badge_error
        return jsonify(body), 200

    @app.route("/api/attendance/class/<class_id>", endpoint="class_attendance")
    @identity_required(resolver)
    def class_attendance(class_id: str):
        try:
            records = ledger.list_for_class(class_id, g.identity)
        except DomainError as e:
            return error_response(e)
        return jsonify([r.to_dict() for r in records]), 200

    @app.route("/api/student/attendance", endpoint="my_attendance")
    @identity_required(resolver, Role.STUDENT)
    def my_attendance():
        records = ledger.list_for_student(g.identity.address)
        return jsonify([r.to_dict() for r in records]), 200

    @app.route("/api/student/attendance/stats", endpoint="my_attendance_stats")
    @identity_required(resolver, Role.STUDENT)
    def my_attendance_stats():
        stats = ledger.stats_for_student(g.identity.address)
        return jsonify({s.class_id: s.to_dict() for s in stats}), 200

    @app.route("/api/student/badges", endpoint="my_badges")
    @identity_required(resolver, Role.STUDENT)
    def my_badges():
        records = ledger.badges_for_student(g.identity.address)
        return jsonify([
            {"attendanceId": r.attendance_id, "classId": r.class_id, "badgeRef": r.badge_ref, "validatedAt": to_iso(r.validated_at)}
            for r in records
        ]), 200

    @app.route("/api/admin/badges/retry", methods=["POST"], endpoint="retry_badges")
    @identity_required(resolver, Role.ADMIN)
    def retry_badges():
        try:
            limit = int(request.args.get("limit", "50"))
            if limit <= 0:
                raise ValidationError("limit must be positive")
        except ValueError:
            return error_response(ValidationError("limit must be an integer"))
        except DomainError as e:
            return error_response(e)

        report = workflow.retry_pending_badges(limit=limit)
        logger.info("Badge retry requested by %s", g.identity.address)
        return jsonify({"attempted": report.attempted, "issued": report.issued, "failed": report.failed}), 200
