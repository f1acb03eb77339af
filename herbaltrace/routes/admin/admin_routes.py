# herbaltrace/routes/admin/admin_routes.py

from flask import Blueprint, jsonify, request

from herbaltrace.routes.portal_auth import portal_context
from herbaltrace.row_store import get_row_store
from herbaltrace.services.admin.admin_service import AdminService

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("/overview")
def overview():
    ctx = portal_context()
    return jsonify(AdminService(get_row_store()).get_overview(ctx))


@admin_bp.post("/herbs")
def create_herb():
    ctx = portal_context()
    herb = AdminService(get_row_store()).create_herb(ctx, request.get_json(silent=True) or {})
    return jsonify({"ok": True, "herb": herb}), 201


@admin_bp.post("/rules")
def create_rule():
    ctx = portal_context()
    rule = AdminService(get_row_store()).create_rule(ctx, request.get_json(silent=True) or {})
    return jsonify({"ok": True, "complianceRule": rule}), 201


@admin_bp.patch("/rules/<rule_id>")
def set_rule_active(rule_id: str):
    ctx = portal_context()
    rule = AdminService(get_row_store()).set_rule_active(ctx, rule_id, request.get_json(silent=True) or {})
    return jsonify({"ok": True, "complianceRule": rule})
