# herbaltrace/routes/collector/collector_routes.py

from flask import Blueprint, jsonify, request

from herbaltrace.routes.portal_auth import portal_context
from herbaltrace.row_store import get_row_store
from herbaltrace.services.collector.collection_service import CollectorService

collector_bp = Blueprint("collector", __name__, url_prefix="/api/collector")


@collector_bp.get("/dashboard")
def dashboard():
    ctx = portal_context()
    return jsonify(CollectorService(get_row_store()).get_dashboard(ctx))


@collector_bp.post("/profile")
def create_profile():
    ctx = portal_context()
    collector = CollectorService(get_row_store()).create_collector_profile(ctx)
    return jsonify({"ok": True, "collector": collector}), 201


@collector_bp.post("/collections")
def record_collection():
    ctx = portal_context()
    data = request.get_json(silent=True) or {}
    event = CollectorService(get_row_store()).record_collection(ctx, data)
    return jsonify({"ok": True, "collectionEvent": event}), 201
