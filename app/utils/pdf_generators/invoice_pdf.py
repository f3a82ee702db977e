# app/utils/pdf_generators/invoice_pdf.py
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib.pagesizes import A4
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from reportlab.lib import colors
from reportlab.lib.styles import getSampleStyleSheet

from app.models.billing.invoice_models import Invoice
from app.models.enums.gst_type import GSTType
from app.services.billing.invoice_service import item_display_total
from app.utils.currency import format_currency
from app.utils.upi_qr import build_upi_uri, qr_drawing

QR_PDF_SIZE = 120


def _text(value) -> str:
    return escape(str(value)) if value not in (None, "") else "N/A"


def render_invoice_pdf(invoice: Invoice) -> bytes:
    """
    Render an invoice (items loaded) to PDF bytes.

    Line totals are printed tax-inclusive; the summary shows the stored
    tax-exclusive subtotal with the GST split and discount below it.
    """
    currency = invoice.currency
    is_igst = invoice.gst_type == GSTType.igst

    styles = getSampleStyleSheet()
    story = []

    # -----------------------------
    # HEADER
    # -----------------------------
    story.append(Paragraph(f"<b>TAX INVOICE #{_text(invoice.invoice_number)}</b>", styles["Title"]))
    story.append(Spacer(1, 8))
    story.append(Paragraph(f"Status: {invoice.status.value.upper()}", styles["Normal"]))
    story.append(Paragraph(f"Date: {invoice.issue_date.strftime('%d-%m-%Y')}", styles["Normal"]))
    if invoice.due_date:
        story.append(Paragraph(f"Due Date: {invoice.due_date.strftime('%d-%m-%Y')}", styles["Normal"]))
    if invoice.company_gstin:
        story.append(Paragraph(f"GSTIN: {_text(invoice.company_gstin)}", styles["Normal"]))
    if invoice.place_of_supply:
        story.append(Paragraph(f"Place of Supply: {_text(invoice.place_of_supply)}", styles["Normal"]))
    story.append(Spacer(1, 15))

    # -----------------------------
    # CLIENT INFO
    # -----------------------------
    story.append(Paragraph("<b>Bill To:</b>", styles["Heading3"]))
    story.append(Paragraph(f"Name: {_text(invoice.client_name)}", styles["Normal"]))
    story.append(Paragraph(f"Email: {_text(invoice.client_email)}", styles["Normal"]))
    story.append(Paragraph(f"Phone: {_text(invoice.client_phone)}", styles["Normal"]))
    story.append(Paragraph(f"Address: {_text(invoice.client_address)}", styles["Normal"]))
    if invoice.client_gstin:
        story.append(Paragraph(f"GSTIN: {_text(invoice.client_gstin)}", styles["Normal"]))
    story.append(Spacer(1, 15))

    # -----------------------------
    # ITEMS
    # -----------------------------
    if is_igst:
        data = [["Description", "HSN/SAC", "Qty", "Rate", "Taxable", "IGST", "Total"]]
    else:
        data = [["Description", "HSN/SAC", "Qty", "Rate", "Taxable", "CGST", "SGST", "Total"]]

    for item in invoice.items:
        row = [
            Paragraph(_text(item.description), styles["Normal"]),
            item.hsn_sac_code or "",
            str(item.quantity),
            format_currency(item.unit_price, currency),
            format_currency(item.taxable_amount, currency),
        ]
        if is_igst:
            row.append(f"{format_currency(item.igst_amount, currency)} ({item.igst_rate}%)")
        else:
            row.append(f"{format_currency(item.cgst_amount, currency)} ({item.cgst_rate}%)")
            row.append(f"{format_currency(item.sgst_amount, currency)} ({item.sgst_rate}%)")
        row.append(format_currency(item_display_total(item), currency))
        data.append(row)

    table = Table(data, repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.black),
        ("ALIGN", (2, 1), (-1, -1), "RIGHT"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
    ]))
    story.append(table)
    story.append(Spacer(1, 20))

    # -----------------------------
    # SUMMARY
    # -----------------------------
    story.append(Paragraph("<b>Summary:</b>", styles["Heading3"]))
    story.append(Paragraph(f"Subtotal: {format_currency(invoice.subtotal, currency)}", styles["Normal"]))
    if is_igst:
        story.append(Paragraph(f"IGST: {format_currency(invoice.igst_amount, currency)}", styles["Normal"]))
    else:
        story.append(Paragraph(f"CGST: {format_currency(invoice.cgst_amount, currency)}", styles["Normal"]))
        story.append(Paragraph(f"SGST: {format_currency(invoice.sgst_amount, currency)}", styles["Normal"]))
    if invoice.discount_amount:
        story.append(
            Paragraph(f"Discount: -{format_currency(invoice.discount_amount, currency)}", styles["Normal"])
        )
    story.append(Paragraph(f"<b>Total: {format_currency(invoice.total, currency)}</b>", styles["Heading2"]))
    story.append(Spacer(1, 20))

    # -----------------------------
    # UPI QR
    # -----------------------------
    if invoice.upi_id and invoice.payment_amount and invoice.payment_amount > 0:
        story.append(Paragraph("<b>Scan to pay (UPI):</b>", styles["Heading3"]))
        story.append(qr_drawing(build_upi_uri(invoice.upi_id, invoice.payment_amount), QR_PDF_SIZE))
        story.append(
            Paragraph(
                f"{_text(invoice.upi_id)} / {format_currency(invoice.payment_amount, 'INR')}",
                styles["Normal"],
            )
        )
        story.append(Spacer(1, 20))

    # -----------------------------
    # FOOTER
    # -----------------------------
    if invoice.notes:
        story.append(Paragraph(f"Notes: {_text(invoice.notes)}", styles["Normal"]))
    story.append(Paragraph("Thank you for your business!", styles["Italic"]))

    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, title=f"Invoice {invoice.invoice_number}")
    doc.build(story)

    return buffer.getvalue()


def invoice_pdf_filename(invoice: Invoice) -> str:
    return f"invoice-{invoice.invoice_number or 'draft'}.pdf"
