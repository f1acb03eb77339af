# herbaltrace/routes/auth/auth_routes.py

from flask import Blueprint, jsonify, request

from herbaltrace.constants.choices import ROLE_DESCRIPTIONS
from herbaltrace.routes.portal_auth import portal_context
from herbaltrace.row_store import get_row_store
from herbaltrace.services.auth.auth_service import AuthService

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


@auth_bp.post("/signin")
def sign_in():
    data = request.get_json(silent=True) or {}
    return jsonify(AuthService.for_app(get_row_store()).sign_in(data))


@auth_bp.post("/signup")
def sign_up():
    data = request.get_json(silent=True) or {}
    return jsonify(AuthService.for_app(get_row_store()).sign_up(data)), 201


@auth_bp.get("/me")
def me():
    ctx = portal_context()
    return jsonify({"ok": True, "profile": ctx.profile})


@auth_bp.get("/roles")
def roles():
    return jsonify({"ok": True, "roles": ROLE_DESCRIPTIONS})
