# herbaltrace/routes/consumer/consumer_routes.py
# Public: no sign-in needed to verify a product.

from flask import Blueprint, Response, current_app, jsonify, request

from herbaltrace.errors import NotFound, ValidationError
from herbaltrace.qr.qr_image import render_qr_png, scan_url
from herbaltrace.row_store import get_row_store
from herbaltrace.services.traceability.traceability_services import TraceabilityService

consumer_bp = Blueprint("consumer", __name__, url_prefix="/api/consumer")


@consumer_bp.route("/scan", methods=["GET", "POST"])
def scan():
    if request.method == "POST":
        body = request.get_json(silent=True)
        token = body.get("token") if isinstance(body, dict) else None
    else:
        token = request.args.get("token")

    if not isinstance(token, str) or not token.strip():
        raise ValidationError("Please enter a QR code to scan.")

    service = TraceabilityService(get_row_store(), max_workers=current_app.config.get("TRACE_MAX_WORKERS", 3))
    trace = service.resolve(token)
    return jsonify({"ok": True, "trace": trace.to_dict()})


@consumer_bp.get("/qr/<product_id>.png")
def product_qr(product_id: str):
    product = get_row_store().get("products", product_id)
    if not product or not product.get("qr_code"):
        raise NotFound("Product not found")

    base_url = current_app.config.get("PUBLIC_BASE_URL")
    data = scan_url(base_url, product["qr_code"]) if base_url else product["qr_code"]

    return Response(
        render_qr_png(data),
        mimetype="image/png",
        headers={"Content-Disposition": f"inline; filename={product.get('product_code') or product_id}_qr.png"},
    )
