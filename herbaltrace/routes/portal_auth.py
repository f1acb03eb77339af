# herbaltrace/routes/portal_auth.py
from flask import jsonify
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from herbaltrace.models.auth.auth_models import PortalContext
from herbaltrace.row_store import get_row_store
from herbaltrace.services.auth.auth_service import AuthService


def portal_context() -> PortalContext:
    """Explicit acting-user context for the current request (bearer JWT required)."""
    verify_jwt_in_request()
    return AuthService.context_for(get_row_store(), get_jwt_identity())


def register_jwt_handlers(jwt):
    def _unauthorized(message):
        return jsonify({"ok": False, "err": message, "kind": "auth_error"}), 401

    @jwt.unauthorized_loader
    def _missing_token(reason):
        return _unauthorized("Missing or invalid Authorization header")

    @jwt.invalid_token_loader
    def _invalid_token(reason):
        return _unauthorized("Invalid token")

    @jwt.expired_token_loader
    def _expired_token(jwt_header, jwt_payload):
        return _unauthorized("Token expired")
