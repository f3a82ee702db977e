import base64
from decimal import Decimal
from typing import Optional
from urllib.parse import quote

from reportlab.graphics import renderSVG
from reportlab.graphics.barcode.qr import QrCodeWidget
from reportlab.graphics.shapes import Drawing

from app.utils.decimal_utils import to_decimal

QR_SIZE = 200


def build_upi_uri(upi_id: str, amount: Decimal) -> str:
    # UPI collects in INR only
    return f"upi://pay?pa={quote(upi_id.strip(), safe='@.')}&am={to_decimal(amount)}&cu=INR"


def qr_drawing(payload: str, size: int = QR_SIZE) -> Drawing:
    widget = QrCodeWidget(payload)
    x1, y1, x2, y2 = widget.getBounds()
    width, height = x2 - x1, y2 - y1

    drawing = Drawing(size, size, transform=[size / width, 0, 0, size / height, 0, 0])
    drawing.add(widget)
    return drawing


def generate_upi_qr(upi_id: Optional[str], amount: Optional[Decimal]) -> Optional[str]:
    """SVG data URI for a UPI collect request, or None when there is nothing to collect."""
    if not upi_id or not upi_id.strip() or amount is None or amount <= 0:
        return None

    svg = renderSVG.drawToString(qr_drawing(build_upi_uri(upi_id, amount)))
    if isinstance(svg, str):
        svg = svg.encode("utf-8")

    return "data:image/svg+xml;base64," + base64.b64encode(svg).decode("ascii")
