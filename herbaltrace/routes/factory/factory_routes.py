# herbaltrace/routes/factory/factory_routes.py

from flask import Blueprint, jsonify, request

from herbaltrace.routes.portal_auth import portal_context
from herbaltrace.row_store import get_row_store
from herbaltrace.services.factory.factory_service import FactoryService

factory_bp = Blueprint("factory", __name__, url_prefix="/api/factory")


@factory_bp.get("/dashboard")
def dashboard():
    ctx = portal_context()
    return jsonify(FactoryService(get_row_store()).get_dashboard(ctx))


@factory_bp.post("/steps")
def create_step():
    ctx = portal_context()
    data = request.get_json(silent=True) or {}
    step = FactoryService(get_row_store()).create_step(ctx, data)
    return jsonify({"ok": True, "processingStep": step}), 201


@factory_bp.post("/steps/<step_id>/complete")
def complete_step(step_id: str):
    ctx = portal_context()
    data = request.get_json(silent=True) or {}
    step = FactoryService(get_row_store()).complete_step(ctx, step_id, data)
    return jsonify({"ok": True, "processingStep": step})


@factory_bp.post("/products")
def create_product():
    ctx = portal_context()
    data = request.get_json(silent=True) or {}
    product = FactoryService(get_row_store()).create_product(ctx, data)
    return jsonify({"ok": True, "product": product}), 201
