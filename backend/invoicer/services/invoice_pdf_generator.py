"""
Invoice PDF generator.

Layout (A4, platypus):
header band -> company/invoice detail cards -> bill to -> items table
(header row repeated on every page) -> totals. The footer is drawn on the
canvas of every page, so it never competes with the table for space.

Rendering reads a committed invoice and never writes; a failure here leaves
the invoice intact and can simply be retried.
"""
import logging
import time
from dataclasses import dataclass
from decimal import Decimal
from io import BytesIO
from typing import Any, List, Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.platypus import (
    KeepTogether,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from invoicer.exceptions import RenderingError
from invoicer.services.document_pdf_commons import (
    CONTENT_WIDTH_MM,
    DEFAULT_PRIMARY,
    DEFAULT_SECONDARY,
    ITALIC_FONTS,
    MUTED_TEXT,
    ROW_ALT_BG,
    build_bill_to_block,
    build_details_cards,
    build_header_band,
    get_document_styles,
    hex_color,
    pdf_currency_symbol,
    pdf_fonts,
    pdf_plain,
    pdf_text,
)
from invoicer.services.template_settings import TemplateSettings, parse_template_settings
from invoicer.utils.money import format_currency, format_date

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
TEMPLATE_MINIMAL = "minimal"

MARGIN_MM = 15
FOOTER_BAND_MM = 22


@dataclass
class RenderedDocument:
    filename: str
    content: bytes
    page_count: int
    media_type: str = PDF_MEDIA_TYPE


def invoice_number(invoice_id: Any, prefix: str = "INV-") -> str:
    """Display number: prefix + last 8 characters of the id."""
    return f"{prefix}{str(invoice_id)[-8:]}"


def invoice_filename(invoice_id: Any, prefix: str = "INV-", is_preview: bool = False) -> str:
    if is_preview:
        return f"invoice-preview-{int(time.time() * 1000)}.pdf"
    return f"invoice-{invoice_number(invoice_id, prefix)}.pdf"


def _company_lines(profile, ts: TemplateSettings) -> List[str]:
    if profile is None:
        return []
    lines = []
    if ts.show_company_address and profile.company_address:
        lines.append(profile.company_address)
    if ts.show_company_phone and profile.company_phone:
        lines.append(f"Phone: {profile.company_phone}")
    if ts.show_company_email and profile.company_email:
        lines.append(f"Email: {profile.company_email}")
    if ts.show_website and profile.website:
        lines.append(f"Web: {profile.website}")
    return lines


def footer_text(profile, ts: TemplateSettings) -> str:
    text = ts.footer_text or "Thank you for your business!"
    if profile is not None:
        if ts.show_website and profile.website:
            text += f" Visit: {profile.website}"
        if ts.show_company_email and profile.company_email:
            text += f" Contact: {profile.company_email}"
    return text


def _items_table(invoice, ts: TemplateSettings, st, primary, symbol: str, font_bold: str) -> Table:
    """ITEM DESCRIPTION | QTY | PRICE | TOTAL; header repeats on each page."""
    header_style = st["body"].clone("ItemHeader", fontName=font_bold, textColor=colors.white)
    header_right = st["body_right"].clone("ItemHeaderRight", fontName=font_bold, textColor=colors.white)
    data = [[
        Paragraph("ITEM DESCRIPTION", header_style),
        Paragraph("QTY", header_right),
        Paragraph("PRICE", header_right),
        Paragraph("TOTAL", header_right),
    ]]
    for line in invoice.items:
        data.append([
            Paragraph(pdf_text(line.name), st["body"]),
            Paragraph(str(line.quantity), st["body_right"]),
            Paragraph(pdf_text(format_currency(line.price, symbol=symbol)), st["body_right"]),
            Paragraph(pdf_text(format_currency(line.total, symbol=symbol)), st["body_right"]),
        ])
    if len(data) == 1:
        data.append([Paragraph("—", st["body"]), "", "", ""])

    table = Table(data, colWidths=[90 * mm, 20 * mm, 35 * mm, 35 * mm], repeatRows=1)
    style = [
        ("BACKGROUND", (0, 0), (-1, 0), primary),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("TOPPADDING", (0, 0), (-1, -1), 5),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
        ("LINEBELOW", (0, -1), (-1, -1), 0.5, colors.HexColor("#E5E7EB")),
    ]
    if ts.alternating_row_colors:
        style.append(("ROWBACKGROUNDS", (0, 1), (-1, -1), [ROW_ALT_BG, colors.white]))
    table.setStyle(TableStyle(style))
    return table


def _totals_table(invoice, st, primary, secondary, symbol: str, font_bold: str) -> Table:
    muted = st["body"].clone("TotalsLabel", textColor=MUTED_TEXT)
    muted_right = st["body_right"].clone("TotalsValue", textColor=MUTED_TEXT)
    rows = [[
        Paragraph("Subtotal:", muted),
        Paragraph(pdf_text(format_currency(invoice.subtotal, symbol=symbol)), muted_right),
    ]]
    discount = Decimal(invoice.discount or 0)
    if discount > 0:
        disc_label = st["body"].clone("DiscountLabel", textColor=secondary)
        disc_value = st["body_right"].clone("DiscountValue", textColor=secondary)
        rows.append([
            Paragraph(f"Discount ({discount.normalize():f}%):", disc_label),
            Paragraph("-" + pdf_text(format_currency(invoice.discount_amount, symbol=symbol)), disc_value),
        ])
    size = st["customer"].fontSize + 2
    total_label = st["body"].clone("TotalLabel", fontName=font_bold, fontSize=size, leading=size + 4, textColor=primary)
    total_value = st["body_right"].clone("TotalValue", fontName=font_bold, fontSize=size, leading=size + 4,
                                         textColor=primary)
    rows.append([
        Paragraph("TOTAL:", total_label),
        Paragraph(pdf_text(format_currency(invoice.total, symbol=symbol)), total_value),
    ])
    table = Table(rows, colWidths=[45 * mm, 45 * mm])
    table.hAlign = "RIGHT"
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, -1), colors.HexColor("#FAFAFA")),
        ("LINEABOVE", (0, -1), (-1, -1), 0.75, colors.HexColor("#C8C8C8")),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ]))
    return table


def render_invoice_pdf(
    invoice,
    branding=None,
    company_profile=None,
    is_preview: bool = False,
    logo_bytes: Optional[bytes] = None,
) -> RenderedDocument:
    """
    Render a persisted invoice to PDF bytes.

    branding: UserBranding row (colors, font, template, settings blob) or None for defaults.
    company_profile: CompanyProfile row or None ("Your Company").
    logo_bytes: already-downloaded logo; drawn only when show_company_logo is on.
    Raises RenderingError(stage="rendering").
    """
    ts = parse_template_settings(getattr(branding, "template_settings", None))
    primary = hex_color(getattr(branding, "primary_color", None), DEFAULT_PRIMARY)
    secondary = hex_color(getattr(branding, "secondary_color", None), DEFAULT_SECONDARY)
    font, font_bold = pdf_fonts(getattr(branding, "font_family", None))
    template_id = getattr(branding, "template_id", None)
    symbol = pdf_currency_symbol(ts.currency_symbol)
    filename = invoice_filename(invoice.id, ts.invoice_number_prefix, is_preview)

    try:
        st = get_document_styles(ts.base_font_size, ts.extra_leading, font, font_bold)
        buf = BytesIO()
        bottom = MARGIN_MM + (FOOTER_BAND_MM if ts.show_footer else 0)
        doc = SimpleDocTemplate(
            buf,
            pagesize=A4,
            leftMargin=MARGIN_MM * mm,
            rightMargin=MARGIN_MM * mm,
            topMargin=MARGIN_MM * mm,
            bottomMargin=bottom * mm,
            title=invoice_number(invoice.id, ts.invoice_number_prefix),
            author=getattr(company_profile, "company_name", None) or "",
        )
        flow: List[Any] = []

        # ----- 1. Header band -----
        flow.append(
            build_header_band(
                getattr(company_profile, "company_name", None) or "Your Company",
                primary,
                st,
                with_background=ts.header_background_enabled and template_id != TEMPLATE_MINIMAL,
                logo_bytes=logo_bytes if ts.show_company_logo else None,
            )
        )
        flow.append(Spacer(1, 8 * mm))

        # ----- 2. Company + invoice details -----
        invoice_lines = [
            f"Invoice #: {invoice_number(invoice.id, ts.invoice_number_prefix)}",
            f"Date: {format_date(invoice.created_at, ts.date_format)}",
        ]
        if ts.show_tax_id and company_profile is not None and company_profile.tax_id:
            invoice_lines.append(f"Tax ID: {company_profile.tax_id}")
        flow.append(build_details_cards(_company_lines(company_profile, ts), invoice_lines, primary, st))
        flow.append(Spacer(1, 8 * mm))

        # ----- 3. Bill to -----
        flow.extend(build_bill_to_block(invoice.customer_name, invoice.customer_contact, secondary, st))
        flow.append(Spacer(1, 8 * mm))

        # ----- 4. Items (paginates, header row repeated) -----
        flow.append(_items_table(invoice, ts, st, primary, symbol, font_bold))
        flow.append(Spacer(1, 6 * mm))

        # ----- 5. Totals -----
        flow.append(KeepTogether([_totals_table(invoice, st, primary, secondary, symbol, font_bold)]))

        pages = [0]
        footer = pdf_plain(footer_text(company_profile, ts)) if ts.show_footer else ""
        footer_size = max(ts.base_font_size, 8)
        page_width, _ = A4

        def _on_page(canvas, _doc):
            pages[0] += 1
            if not ts.show_footer:
                return
            canvas.saveState()
            canvas.setFillColor(ROW_ALT_BG)
            canvas.rect(0, 0, page_width, (MARGIN_MM + FOOTER_BAND_MM - 5) * mm, stroke=0, fill=1)
            canvas.setStrokeColor(primary)
            canvas.setLineWidth(2)
            canvas.line(MARGIN_MM * mm, (MARGIN_MM + FOOTER_BAND_MM - 5) * mm,
                        page_width - MARGIN_MM * mm, (MARGIN_MM + FOOTER_BAND_MM - 5) * mm)
            canvas.setFillColor(colors.HexColor("#787878"))
            canvas.setFont(ITALIC_FONTS.get(font, font), footer_size)
            canvas.drawCentredString(page_width / 2, (MARGIN_MM + 6) * mm, footer)
            canvas.setFont(font, footer_size - 1)
            canvas.drawRightString(page_width - MARGIN_MM * mm, MARGIN_MM * mm, f"Page {pages[0]}")
            canvas.restoreState()

        doc.build(flow, onFirstPage=_on_page, onLaterPages=_on_page)
    except Exception as e:
        logger.exception("Rendering invoice %s failed: %s", invoice.id, e)
        raise RenderingError("Could not generate invoice PDF", stage="rendering", entity="invoice") from e

    logger.info("Rendered invoice %s as %s (%d page(s))", invoice.id, filename, pages[0])
    return RenderedDocument(filename=filename, content=buf.getvalue(), page_count=pages[0])
