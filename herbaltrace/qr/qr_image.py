# herbaltrace/qr/qr_image.py
from io import BytesIO
from urllib.parse import quote

import qrcode


def scan_url(base_url: str, token: str) -> str:
    base = (base_url or "").rstrip("/")
    return f"{base}/api/consumer/scan?token={quote(token, safe='')}"


def render_qr_png(data: str) -> bytes:
    """Render ``data`` as a black-on-white PNG and return the bytes."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
