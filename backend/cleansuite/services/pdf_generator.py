"""
PDF Generator Service for CleanSuite.

Generates client-facing PDFs for:
- Estimates (valid for 30 days from creation)
- Invoices
- Payment receipts
"""

import io
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import HRFlowable, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

ESTIMATE_VALID_DAYS = 30


class PDFGenerator:
    """Generates estimate, invoice and receipt PDFs in the company's colours."""

    def __init__(self, primary_color: str = "#1a3d2e"):
        self.primary = colors.HexColor(primary_color)
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        """Add custom paragraph styles."""
        self.styles.add(ParagraphStyle(
            name='DocTitle',
            parent=self.styles['Heading1'],
            fontSize=22,
            spaceAfter=6,
            textColor=self.primary,
        ))
        self.styles.add(ParagraphStyle(
            name='DocNumber',
            parent=self.styles['Normal'],
            fontSize=11,
            alignment=TA_RIGHT,
            textColor=colors.HexColor('#666666'),
        ))
        self.styles.add(ParagraphStyle(
            name='SectionHeader',
            parent=self.styles['Heading2'],
            fontSize=13,
            spaceBefore=16,
            spaceAfter=8,
            textColor=self.primary,
        ))
        self.styles.add(ParagraphStyle(
            name='Footer',
            parent=self.styles['Normal'],
            fontSize=8,
            textColor=colors.HexColor('#888888'),
            alignment=TA_CENTER,
            spaceBefore=20,
        ))

    def _document(self, buffer: io.BytesIO) -> SimpleDocTemplate:
        return SimpleDocTemplate(
            buffer,
            pagesize=letter,
            rightMargin=0.75*inch,
            leftMargin=0.75*inch,
            topMargin=0.75*inch,
            bottomMargin=0.75*inch,
        )

    def _header(self, company: Dict[str, Any], title: str, number: str) -> List[Any]:
        story: List[Any] = [
            Paragraph(company.get("trade_name") or "CleanSuite", self.styles['DocTitle']),
        ]
        contact = " | ".join(
            str(v) for v in (company.get("address"), company.get("phone"), company.get("email")) if v
        )
        if contact:
            story.append(Paragraph(contact, self.styles['Normal']))
        if company.get("gst_hst_number"):
            story.append(Paragraph(f"GST/HST: {company['gst_hst_number']}", self.styles['Normal']))
        story.append(Spacer(1, 0.2*inch))
        story.append(Paragraph(f"{title} {number}", self.styles['DocNumber']))
        story.append(HRFlowable(width="100%", thickness=1, color=self.primary))
        return story

    def _field_table(self, rows: List[List[str]]) -> Table:
        table = Table(rows, colWidths=[2*inch, 4.5*inch])
        table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('TEXTCOLOR', (0, 0), (0, -1), colors.HexColor('#666666')),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
        ]))
        return table

    def _totals_table(self, rows: List[List[str]]) -> Table:
        table = Table(rows, colWidths=[4.5*inch, 2*inch])
        table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTNAME', (1, -1), (1, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 11),
            ('TEXTCOLOR', (0, 0), (0, -1), colors.HexColor('#666666')),
            ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
            ('LINEABOVE', (0, -1), (-1, -1), 1, self.primary),
        ]))
        return table

    def generate_estimate(self, company: Dict[str, Any], estimate: Dict[str, Any]) -> bytes:
        """
        Generate the PDF sent to a prospective client.

        Args:
            company: Company profile fields
            estimate: Estimate fields plus ``extras`` as (name, amount) pairs

        Returns:
            PDF bytes
        """
        buffer = io.BytesIO()
        doc = self._document(buffer)

        created_at = estimate.get("created_at") or datetime.utcnow()
        valid_until = created_at + timedelta(days=ESTIMATE_VALID_DAYS)
        story = self._header(company, "Estimate", str(estimate.get("id", ""))[:8].upper())

        story.append(Paragraph("CLIENT", self.styles['SectionHeader']))
        story.append(self._field_table([
            ["Name:", estimate.get("client_name") or "N/A"],
            ["Email:", estimate.get("client_email") or "N/A"],
            ["Phone:", estimate.get("client_phone") or "N/A"],
        ]))

        story.append(Paragraph("SERVICE", self.styles['SectionHeader']))
        story.append(self._field_table([
            ["Service type:", _label(estimate.get("service_type"))],
            ["Frequency:", _label(estimate.get("frequency"))],
            ["Square footage:", f"{estimate.get('square_footage', 0)} sq ft"],
            ["Rooms:", (
                f"{estimate.get('bedrooms', 0)} bed, {estimate.get('bathrooms', 0)} bath, "
                f"{estimate.get('living_areas', 0)} living"
                + (", kitchen" if estimate.get("has_kitchen") else "")
            )],
        ]))

        extras = estimate.get("extras") or []
        if extras:
            story.append(Paragraph("EXTRAS", self.styles['SectionHeader']))
            story.append(self._field_table([[name, _money(amount)] for name, amount in extras]))

        story.append(Spacer(1, 0.2*inch))
        story.append(self._totals_table([
            ["Estimated total:", _money(estimate.get("total_amount", 0))],
        ]))

        if estimate.get("notes"):
            story.append(Paragraph("NOTES", self.styles['SectionHeader']))
            story.append(Paragraph(estimate["notes"], self.styles['Normal']))

        story.append(Paragraph(
            f"This estimate is valid until {valid_until:%Y-%m-%d}. Taxes are not included.",
            self.styles['Footer'],
        ))
        doc.build(story)
        buffer.seek(0)
        return buffer.read()

    def generate_invoice(self, company: Dict[str, Any], invoice: Dict[str, Any]) -> bytes:
        """Generate an invoice PDF."""
        buffer = io.BytesIO()
        doc = self._document(buffer)

        story = self._header(company, "Invoice", invoice.get("invoice_number", ""))

        story.append(Paragraph("BILL TO", self.styles['SectionHeader']))
        story.append(self._field_table([
            ["Client:", invoice.get("client_name") or "N/A"],
            ["Service address:", invoice.get("location") or "N/A"],
            ["Service date:", self._format_date(invoice.get("service_date"))],
            ["Due date:", self._format_date(invoice.get("due_date"))],
            ["Status:", _label(invoice.get("status"))],
        ]))

        story.append(Spacer(1, 0.2*inch))
        line_items = [["Description", "Duration", "Amount"]]
        line_items.append([
            "Cleaning service",
            invoice.get("service_duration") or "-",
            _money(invoice.get("subtotal", 0)),
        ])
        items_table = Table(line_items, colWidths=[3.5*inch, 1.5*inch, 1.5*inch])
        items_table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('BACKGROUND', (0, 0), (-1, 0), self.primary),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#e0e0e0')),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
            ('TOPPADDING', (0, 0), (-1, -1), 8),
        ]))
        story.append(items_table)
        story.append(Spacer(1, 0.2*inch))

        story.append(self._totals_table([
            ["Subtotal:", _money(invoice.get("subtotal", 0))],
            [f"Tax ({invoice.get('tax_rate', 0)}%):", _money(invoice.get("tax_amount", 0))],
            ["Total:", _money(invoice.get("total", 0))],
        ]))

        story.append(Paragraph(
            f"Generated by CleanSuite on {datetime.utcnow().strftime('%Y-%m-%d %H:%M UTC')}",
            self.styles['Footer'],
        ))
        doc.build(story)
        buffer.seek(0)
        return buffer.read()

    def generate_receipt(self, company: Dict[str, Any], receipt: Dict[str, Any]) -> bytes:
        """Generate a payment receipt PDF for a job paid at completion."""
        buffer = io.BytesIO()
        doc = self._document(buffer)

        story = self._header(company, "Receipt", receipt.get("receipt_number", ""))

        story.append(Paragraph("RECEIVED FROM", self.styles['SectionHeader']))
        story.append(self._field_table([
            ["Client:", receipt.get("client_name") or "N/A"],
            ["Service address:", receipt.get("location") or "N/A"],
            ["Service date:", self._format_date(receipt.get("service_date"))],
            ["Service:", receipt.get("service_description") or "Cleaning service"],
        ]))

        story.append(Paragraph("PAYMENT", self.styles['SectionHeader']))
        story.append(self._field_table([
            ["Method:", _label(receipt.get("payment_method"))],
            ["Received by:", receipt.get("cleaner_name") or "N/A"],
            ["Issued:", self._format_date(receipt.get("created_at"))],
        ]))

        story.append(Spacer(1, 0.2*inch))
        story.append(self._totals_table([
            ["Amount:", _money(receipt.get("amount", 0))],
            ["Tax:", _money(receipt.get("tax_amount", 0))],
            ["Total paid:", _money(receipt.get("total", 0))],
        ]))

        if receipt.get("notes"):
            story.append(Paragraph("NOTES", self.styles['SectionHeader']))
            story.append(Paragraph(receipt["notes"], self.styles['Normal']))

        story.append(Paragraph(
            f"Thank you for your business. Generated by CleanSuite on "
            f"{datetime.utcnow().strftime('%Y-%m-%d %H:%M UTC')}",
            self.styles['Footer'],
        ))
        doc.build(story)
        buffer.seek(0)
        return buffer.read()

    def _format_date(self, value: Any) -> str:
        if value is None:
            return "N/A"
        if hasattr(value, 'strftime'):
            return value.strftime("%Y-%m-%d")
        return str(value)[:10]


def _money(value: Any) -> str:
    return f"${Decimal(str(value or 0)):,.2f}"


def _label(value: Optional[Any]) -> str:
    if value is None:
        return "N/A"
    raw = getattr(value, "value", value)
    return str(raw).replace("_", " ").title()


def get_pdf_generator(primary_color: Optional[str] = None) -> PDFGenerator:
    """Get PDF generator instance."""
    return PDFGenerator(primary_color or "#1a3d2e")


def company_context(company: Any) -> Dict[str, Any]:
    """Header fields of a Company row."""
    address = ", ".join(
        v for v in (company.address, company.city, getattr(company.province, "value", company.province)) if v
    )
    return {
        "trade_name": company.trade_name,
        "address": address,
        "phone": company.phone,
        "email": company.email,
        "gst_hst_number": company.gst_hst_number,
    }
