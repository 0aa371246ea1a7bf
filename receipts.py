"""Delivery receipt PDF for an order.

Fixed A4 layout drawn with the reportlab canvas. Text is folded to ASCII with
Unidecode because the base-14 Helvetica fonts carry no Arabic glyphs.
"""

from datetime import datetime
from io import BytesIO
from typing import Any, Dict, List, Optional

from reportlab.lib.colors import HexColor, black, white
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas
from unidecode import unidecode

import config
from checkout import items_subtotal
from shipping import governorate_label

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 50
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN
ROW_HEIGHT = 20

PAYMENT_LABELS = {
    "wallet-transfer": "Wallet Transfer",
    "cash-on-delivery": "Cash on Delivery",
}


def to_latin(value: Any) -> str:
    if value is None:
        return ""
    return unidecode(str(value))


def money(amount: float) -> str:
    return f"{amount:.2f}".rstrip("0").rstrip(".") + f" {config.CURRENCY}"


def short_order_id(order: Dict[str, Any]) -> str:
    return str(order.get("id", ""))[-6:].upper()


def payment_label(method: Optional[str]) -> str:
    return PAYMENT_LABELS.get(method, to_latin(method))


def receipt_totals(order: Dict[str, Any]) -> Dict[str, float]:
    """Subtotal from the line snapshots; shipping and total as stored."""
    return {
        "subtotal": items_subtotal(order.get("items", [])),
        "shipping": order.get("shippingCost", 0),
        "total": order.get("total", 0),
    }


def footer_lines(settings: Dict[str, Any]) -> List[str]:
    site_name = settings.get("siteName") or "RAHHALAH"
    lines = [f"Thank you for shopping | {to_latin(site_name).title()}"]

    contact = []
    if settings.get("email"):
        contact.append(f"Email: {settings['email']}")
    if settings.get("phone"):
        contact.append(f"Tel: {settings['phone']}")
    if contact:
        lines.append("  |  ".join(contact))

    social = []
    if settings.get("facebook"):
        social.append(f"FB: {settings['facebook']}")
    if settings.get("instagram"):
        social.append(f"IG: {settings['instagram']}")
    if settings.get("twitter"):
        social.append(f"TikTok: {settings['twitter']}")
    if social:
        lines.append("  |  ".join(social))

    return [to_latin(line) for line in lines]


class _Receipt:
    def __init__(self, buffer: BytesIO, title: str):
        self.pdf = canvas.Canvas(buffer, pagesize=A4)
        self.pdf.setTitle(title)
        self.y = PAGE_HEIGHT - MARGIN

    def down(self, amount: float) -> None:
        self.y -= amount
        if self.y < MARGIN:
            self.pdf.showPage()
            self.y = PAGE_HEIGHT - MARGIN

    def centred(self, text: str, font: str = "Helvetica", size: int = 10) -> None:
        self.pdf.setFont(font, size)
        self.pdf.drawCentredString(PAGE_WIDTH / 2, self.y, text)

    def field(self, label: str, value: str, x: float, y: float, width: float = 150) -> None:
        self.pdf.setFont("Helvetica-Bold", 9)
        self.pdf.drawString(x, y, label)
        self.pdf.setFont("Helvetica", 9)
        for offset, line in enumerate(simpleSplit(value, "Helvetica", 9, width)[:3]):
            self.pdf.drawString(x + 55, y - offset * 11, line)


def _order_date(order: Dict[str, Any]) -> str:
    created = order.get("createdAt")
    if isinstance(created, datetime):
        return created.strftime("%d/%m/%Y")
    return to_latin(created)


def render_receipt(order: Dict[str, Any], settings: Dict[str, Any]) -> bytes:
    """Render a serialized order (item products expanded) to PDF bytes."""
    buffer = BytesIO()
    receipt = _Receipt(buffer, f"Order {short_order_id(order)}")
    pdf = receipt.pdf

    # Header
    receipt.centred(to_latin(settings.get("siteName") or "RAHHALAH"), "Helvetica-Bold", 20)
    receipt.down(16)
    receipt.centred(to_latin(settings.get("siteDescription") or "Clothing Brand"))
    receipt.down(30)
    receipt.centred("DELIVERY RECEIPT", "Helvetica-Bold", 16)
    receipt.down(20)

    # Order and customer blocks
    box_top = receipt.y
    pdf.setFillColor(HexColor("#f8f9fa"))
    pdf.setStrokeColor(HexColor("#dee2e6"))
    pdf.rect(MARGIN, box_top - 110, CONTENT_WIDTH, 110, stroke=1, fill=1)
    pdf.setFillColor(black)

    left, right = MARGIN + 10, MARGIN + 250
    pdf.setFont("Helvetica-Bold", 12)
    pdf.drawString(left, box_top - 20, "Order Details")
    pdf.drawString(right, box_top - 20, "Customer")

    receipt.field("Order ID:", short_order_id(order), left, box_top - 40)
    receipt.field("Date:", _order_date(order), left, box_top - 55)
    receipt.field("Status:", to_latin(order.get("status")).upper(), left, box_top - 70)

    address = f"{governorate_label(order.get('governorate'))} - {to_latin(order.get('address'))}"
    receipt.field("Name:", to_latin(order.get("customerName")), right, box_top - 40)
    receipt.field("Phone:", to_latin(order.get("phone")), right, box_top - 55)
    receipt.field("Address:", to_latin(address), right, box_top - 70)
    receipt.down(140)

    # Items table
    pdf.setFont("Helvetica-Bold", 12)
    pdf.drawString(MARGIN, receipt.y, "Ordered Items")
    receipt.down(22)

    item_x, qty_x, size_x, price_x = MARGIN + 10, 320, 380, PAGE_WIDTH - MARGIN - 10
    pdf.setFillColor(HexColor("#333333"))
    pdf.rect(MARGIN, receipt.y - 6, CONTENT_WIDTH, ROW_HEIGHT, stroke=0, fill=1)
    pdf.setFillColor(white)
    pdf.setFont("Helvetica-Bold", 9)
    pdf.drawString(item_x, receipt.y, "ITEM")
    pdf.drawCentredString(qty_x, receipt.y, "QTY")
    pdf.drawCentredString(size_x, receipt.y, "SIZE")
    pdf.drawRightString(price_x, receipt.y, "PRICE")
    pdf.setFillColor(black)
    receipt.down(ROW_HEIGHT + 4)

    for index, item in enumerate(order.get("items", [])):
        if index % 2 == 0:
            pdf.setFillColor(HexColor("#f9f9f9"))
            pdf.rect(MARGIN, receipt.y - 6, CONTENT_WIDTH, ROW_HEIGHT, stroke=0, fill=1)
            pdf.setFillColor(black)

        product = item.get("product") or {}
        title = to_latin(product.get("title") or "Unknown Product")
        line_total = item["priceAtPurchase"] * item["quantity"]

        pdf.setFont("Helvetica", 9)
        pdf.drawString(item_x, receipt.y, simpleSplit(title, "Helvetica", 9, 240)[0])
        pdf.drawCentredString(qty_x, receipt.y, str(item["quantity"]))
        pdf.drawCentredString(size_x, receipt.y, to_latin(item.get("size") or "-"))
        pdf.drawRightString(price_x, receipt.y, money(line_total))

        if item.get("color"):
            pdf.setFont("Helvetica", 8)
            pdf.setFillColor(HexColor("#666666"))
            pdf.drawString(item_x, receipt.y - 10, f"Color: {to_latin(item['color'])}")
            pdf.setFillColor(black)
            receipt.down(10)

        receipt.down(ROW_HEIGHT)

    # Totals
    receipt.down(10)
    totals = receipt_totals(order)
    label_x = PAGE_WIDTH - MARGIN - 110
    for label, key in (("Subtotal:", "subtotal"), ("Shipping:", "shipping")):
        pdf.setFont("Helvetica", 10)
        pdf.drawRightString(label_x, receipt.y, label)
        pdf.drawRightString(price_x, receipt.y, money(totals[key]))
        receipt.down(16)

    pdf.setStrokeColor(black)
    pdf.setLineWidth(1)
    pdf.line(label_x - 100, receipt.y + 10, PAGE_WIDTH - MARGIN, receipt.y + 10)
    pdf.setFont("Helvetica-Bold", 11)
    pdf.drawRightString(label_x, receipt.y - 4, "TOTAL:")
    pdf.drawRightString(price_x, receipt.y - 4, money(totals["total"]))
    receipt.down(40)

    # Payment method
    pdf.setFillColor(HexColor("#eeeeee"))
    pdf.setStrokeColor(HexColor("#dddddd"))
    pdf.rect(150, receipt.y - 8, PAGE_WIDTH - 300, 25, stroke=1, fill=1)
    pdf.setFillColor(HexColor("#333333"))
    receipt.centred(f"Payment: {payment_label(order.get('paymentMethod'))}")
    receipt.down(60)

    # Footer
    pdf.setFillColor(HexColor("#666666"))
    for line in footer_lines(settings):
        receipt.centred(line, size=8)
        receipt.down(12)

    pdf.save()
    return buffer.getvalue()
