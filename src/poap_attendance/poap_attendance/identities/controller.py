from __future__ import annotations

from flask import Flask, g, jsonify, request, session

from ..common.datetime_utils import parse_iso_date
from ..common.http import error_response, identity_required, json_body
from ..core.enums import Role
from ..core.exceptions import DomainError, ValidationError
from ..container import Container
from .model import identity_to_dict
from .service import parse_role


def _optional_date(value):
    if not value:
        return None
    try:
        return parse_iso_date(str(value)[:10])
    except ValueError:
        raise ValidationError("Invalid date (YYYY-MM-DD)") from None


def register(app: Flask, container: Container) -> None:
    resolver = container.resolver

    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        try:
            identity = container.auth_service.login(
                address=data.get("address", ""),
                message=data.get("message", ""),
                signature=data.get("signature", ""),
            )
        except DomainError as e:
            return error_response(e)

        session.clear()
        session.permanent = True
        session["address"] = identity.address
        return jsonify({"message": "Login successful", "user": identity_to_dict(identity)}), 200

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"message": "Logout successful"}), 200

    @app.route("/api/auth/me", endpoint="me")
    @identity_required(resolver)
    def me():
        return jsonify({"user": identity_to_dict(g.identity)}), 200

    @app.route("/api/profile", methods=["PUT"], endpoint="update_profile")
    @identity_required(resolver)
    def update_profile():
        data = json_body()
        try:
            updated = container.account_service.update_profile(
                actor=g.identity,
                name=data.get("name"),
                student_number=data.get("studentNumber"),
                graduation_date=_optional_date(data.get("graduationDate")),
            )
        except DomainError as e:
            return error_response(e)
        return jsonify({"message": "Profile updated successfully", "user": identity_to_dict(updated)}), 200

    @app.route("/api/admin/accounts", endpoint="list_accounts")
    @identity_required(resolver, Role.ADMIN)
    def list_accounts():
        try:
            role_s = request.args.get("role")
            role = parse_role(role_s) if role_s else None
            accounts = container.account_service.list_accounts(actor=g.identity, role=role)
        except DomainError as e:
            return error_response(e)
        return jsonify([identity_to_dict(a) for a in accounts]), 200

    @app.route("/api/admin/accounts", methods=["POST"], endpoint="create_account")
    @identity_required(resolver, Role.ADMIN)
    def create_account():
        data = json_body()
        try:
            identity = container.account_service.create_account(
                actor=g.identity,
                address=data.get("address", ""),
                name=data.get("name", ""),
                role=parse_role(data.get("role", "")),
                student_number=data.get("studentNumber"),
                graduation_date=_optional_date(data.get("graduationDate")),
                department=data.get("department"),
            )
        except DomainError as e:
            return error_response(e)
        return jsonify({"message": "Account created successfully", "user": identity_to_dict(identity)}), 201

    @app.route("/api/admin/accounts/<address>/role", methods=["PUT"], endpoint="assign_role")
    @identity_required(resolver, Role.ADMIN)
    def assign_role(address: str):
        data = json_body()
        try:
            identity = container.account_service.assign_role(
                actor=g.identity,
                address=address,
                role=parse_role(data.get("role", "")),
            )
        except DomainError as e:
            return error_response(e)
        return jsonify({"message": "Role updated successfully", "user": identity_to_dict(identity)}), 200

    @app.route("/api/admin/accounts/<address>", methods=["DELETE"], endpoint="delete_account")
    @identity_required(resolver, Role.ADMIN)
    def delete_account(address: str):
        try:
            container.account_service.delete_account(actor=g.identity, address=address)
        except DomainError as e:
            return error_response(e)
        return jsonify({"message": "Account deleted successfully"}), 200
