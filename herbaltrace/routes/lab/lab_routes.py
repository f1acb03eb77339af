# herbaltrace/routes/lab/lab_routes.py

from flask import Blueprint, jsonify, request

from herbaltrace.routes.portal_auth import portal_context
from herbaltrace.row_store import get_row_store
from herbaltrace.services.lab.quality_test_service import QualityTestService

lab_bp = Blueprint("lab", __name__, url_prefix="/api/lab")


@lab_bp.get("/tests")
def list_tests():
    ctx = portal_context()
    return jsonify(QualityTestService(get_row_store()).get_dashboard(ctx))


@lab_bp.post("/tests/<test_id>/results")
def submit_results(test_id: str):
    ctx = portal_context()
    data = request.get_json(silent=True) or {}
    test = QualityTestService(get_row_store()).submit_results(ctx, test_id, data)
    return jsonify({"ok": True, "qualityTest": test})
