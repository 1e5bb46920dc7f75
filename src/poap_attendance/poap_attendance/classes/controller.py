from __future__ import annotations

from flask import Flask, g, jsonify

from ..common.http import error_response, identity_required, json_body
from ..core.exceptions import DomainError
from ..container import Container
from ..identities.model import identity_to_dict


def register(app: Flask, container: Container) -> None:
    resolver = container.resolver
    registry = container.registry

    @app.route("/api/classes", endpoint="list_classes")
    @identity_required(resolver)
    def list_classes():
        classes = registry.list_classes_for(g.identity.address)
        return jsonify([c.to_dict() for c in classes]), 200

    @app.route("/api/classes", methods=["POST"], endpoint="create_class")
    @identity_required(resolver)
    def create_class():
        data = json_body()
        try:
            klass = registry.create_class_as(
                g.identity,
                data.get("classId", ""),
                data.get("title", ""),
                description=data.get("description"),
                lecturer=data.get("lecturerAddress"),
            )
        except DomainError as e:
            return error_response(e)
        return jsonify(klass.to_dict()), 201

    @app.route("/api/classes/<class_id>", endpoint="get_class")
    @identity_required(resolver)
    def get_class(class_id: str):
        try:
            klass = registry.get_class_for(class_id, g.identity)
        except DomainError as e:
            return error_response(e)
        return jsonify(klass.to_dict()), 200

    @app.route("/api/classes/<class_id>", methods=["PUT"], endpoint="update_class")
    @identity_required(resolver)
    def update_class(class_id: str):
        data = json_body()
        try:
            klass = registry.update_class(
                class_id,
                g.identity.address,
                title=data.get("title"),
                description=data.get("description"),
            )
        except DomainError as e:
            return error_response(e)
        return jsonify({"message": "Class updated successfully", "class": klass.to_dict()}), 200

    @app.route("/api/classes/<class_id>", methods=["DELETE"], endpoint="delete_class")
    @identity_required(resolver)
    def delete_class(class_id: str):
        try:
            registry.delete_class(class_id, g.identity.address)
        except DomainError as e:
            return error_response(e)
        return jsonify({"message": "Class deleted successfully"}), 200

    @app.route("/api/classes/<class_id>/students/<address>", methods=["PUT"], endpoint="update_student_details")
    @identity_required(resolver)
    def update_student_details(class_id: str, address: str):
        data = json_body()
        try:
            student = registry.update_student_details(
                class_id,
                g.identity.address,
                address,
                name=data.get("name"),
                student_number=data.get("studentNumber") or data.get("studentId"),
            )
        except DomainError as e:
            return error_response(e)
        return jsonify({"message": "Student details updated successfully", "student": identity_to_dict(student)}), 200

    @app.route("/api/classes/<class_id>/enroll", methods=["POST"], endpoint="enroll_student")
    @identity_required(resolver)
    def enroll_student(class_id: str):
        data = json_body()
        try:
            registry.enroll(class_id, g.identity.address, data.get("studentAddress", ""))
        except DomainError as e:
            return error_response(e)
        return jsonify({"message": "Student enrolled successfully"}), 200

    @app.route("/api/classes/<class_id>/students/<address>", methods=["DELETE"], endpoint="unenroll_student")
    @identity_required(resolver)
    def unenroll_student(class_id: str, address: str):
        try:
            registry.unenroll(class_id, g.identity.address, address)
        except DomainError as e:
            return error_response(e)
        return jsonify({"message": "Student removed successfully"}), 200
