"""
PDF building blocks for the invoice document: styles sized from the template
settings, the colored header band, company/invoice detail cards, the bill-to
block, and the logo image.

Text is drawn with the standard PDF fonts (cp1252 only) unless PDF_FONT_PATH
points at a TTF, which is then registered once and used for every family.
"""
import logging
from io import BytesIO
from typing import Dict, List, Optional, Tuple

from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont
from reportlab.platypus import (
    Flowable,
    Image as RLImage,
    Paragraph,
    Spacer,
    Table,
    TableStyle,
)

from invoicer.config import settings

logger = logging.getLogger(__name__)

# Max display sizes (mm)
LOGO_MAX_WIDTH_MM = 40
LOGO_MAX_HEIGHT_MM = 18

# Usable width of A4 with 15mm side margins
CONTENT_WIDTH_MM = 180

DEFAULT_PRIMARY = "#2563EB"
DEFAULT_SECONDARY = "#DC2626"
ACCENT_BG = colors.HexColor("#F3F4F6")
ROW_ALT_BG = colors.HexColor("#F8FAFC")
TEXT_COLOR = colors.HexColor("#111827")
MUTED_TEXT = colors.HexColor("#6B7280")

# Branding font family -> (regular, bold) standard PDF fonts
_SERIF = ("Times-Roman", "Times-Bold")
_MONO = ("Courier", "Courier-Bold")
_SANS = ("Helvetica", "Helvetica-Bold")
ITALIC_FONTS = {"Helvetica": "Helvetica-Oblique", "Times-Roman": "Times-Italic", "Courier": "Courier-Oblique"}
FONT_FAMILIES = {
    "times": _SERIF,
    "times new roman": _SERIF,
    "georgia": _SERIF,
    "merriweather": _SERIF,
    "playfair display": _SERIF,
    "serif": _SERIF,
    "courier": _MONO,
    "courier new": _MONO,
    "monospace": _MONO,
}

# Standard PDF fonts only cover cp1252; symbols outside it get an ASCII stand-in
CURRENCY_FALLBACKS = {
    "₹": "Rs.",
    "₦": "NGN ",
    "₱": "PHP ",
    "₩": "KRW ",
    "₽": "RUB ",
    "₺": "TRY ",
}


UNICODE_FONT = "InvoicerSans"
UNICODE_FONT_BOLD = "InvoicerSans-Bold"

# PDF_FONT_PATH -> registered (regular, bold), or None if it failed to load
_registered_fonts: Dict[str, Optional[Tuple[str, str]]] = {}


def unicode_fonts() -> Optional[Tuple[str, str]]:
    """(regular, bold) TTF font names from PDF_FONT_PATH, registered on first use."""
    path = settings.PDF_FONT_PATH
    if not path:
        return None
    if path not in _registered_fonts:
        try:
            pdfmetrics.registerFont(TTFont(UNICODE_FONT, path))
            pdfmetrics.registerFont(TTFont(UNICODE_FONT_BOLD, settings.PDF_FONT_BOLD_PATH or path))
            _registered_fonts[path] = (UNICODE_FONT, UNICODE_FONT_BOLD)
            logger.info("Registered PDF font %s", path)
        except (TTFError, OSError) as e:
            logger.warning("Could not load PDF font %s, using base fonts: %s", path, e)
            _registered_fonts[path] = None
    return _registered_fonts[path]


def _escape(s: str) -> str:
    if not s:
        return ""
    return s.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def pdf_plain(s: Optional[str]) -> str:
    """Replace characters the base fonts cannot draw (for canvas strings)."""
    if not s:
        return ""
    if unicode_fonts():
        return s
    out = s.encode("cp1252", errors="replace").decode("cp1252")
    if out != s:
        logger.warning("Text %r is outside cp1252 and is drawn with '?'; set PDF_FONT_PATH to a TTF", s)
    return out


def pdf_text(s: Optional[str]) -> str:
    """pdf_plain, escaped for Paragraph markup."""
    return _escape(pdf_plain(s))


def pdf_currency_symbol(symbol: Optional[str]) -> str:
    symbol = symbol or ""
    if unicode_fonts():
        return symbol
    try:
        symbol.encode("cp1252")
        return symbol
    except UnicodeEncodeError:
        return CURRENCY_FALLBACKS.get(symbol, "")


def pdf_fonts(font_family: Optional[str]) -> Tuple[str, str]:
    """(regular, bold) font for a branding font family; sans-serif by default, or the configured TTF."""
    return unicode_fonts() or FONT_FAMILIES.get((font_family or "").strip().lower(), _SANS)


def hex_color(value: Optional[str], fallback: str) -> colors.Color:
    try:
        return colors.HexColor(value or fallback)
    except (ValueError, TypeError):
        return colors.HexColor(fallback)


def _image_flowable_from_bytes(
    data: bytes,
    max_width_mm: float,
    max_height_mm: float,
) -> Optional[RLImage]:
    """Build a ReportLab Image flowable from bytes, scaling to fit within max size."""
    if not data:
        return None
    try:
        from PIL import Image as PILImage
        pil_img = PILImage.open(BytesIO(data))
        w_px, h_px = pil_img.size
        if w_px <= 0 or h_px <= 0:
            return None
        scale = min(max_width_mm * mm / w_px, max_height_mm * mm / h_px, 1.0)
        return RLImage(BytesIO(data), width=w_px * scale, height=h_px * scale)
    except Exception:
        # unreadable logo: render without it
        return None


def get_document_styles(base_size: int = 10, extra_leading: int = 6,
                        font: str = "Helvetica", font_bold: str = "Helvetica-Bold") -> Dict[str, ParagraphStyle]:
    """
    Styles derived from the template's base font size and line spacing.
    Header text is base+16, titles base+6, body base+2 (as in the web preview).
    """
    styles = getSampleStyleSheet()
    body = base_size + 2
    return {
        "company_name": ParagraphStyle(
            name="CompanyName",
            parent=styles["Normal"],
            fontName=font_bold,
            fontSize=base_size + 16,
            leading=base_size + 20,
            textColor=colors.white,
        ),
        "doc_title": ParagraphStyle(
            name="DocTitle",
            parent=styles["Normal"],
            fontName=font_bold,
            fontSize=base_size + 22,
            leading=base_size + 26,
            alignment=TA_RIGHT,
            textColor=colors.white,
        ),
        "card_title": ParagraphStyle(
            name="CardTitle",
            parent=styles["Normal"],
            fontName=font_bold,
            fontSize=base_size + 6,
            leading=base_size + 6 + extra_leading,
            spaceAfter=2,
        ),
        "detail": ParagraphStyle(
            name="Detail",
            parent=styles["Normal"],
            fontName=font,
            fontSize=body - 1,
            leading=body - 1 + extra_leading,
            textColor=colors.HexColor("#3C3C3C"),
        ),
        "body": ParagraphStyle(
            name="Body",
            parent=styles["Normal"],
            fontName=font,
            fontSize=body,
            leading=body + extra_leading,
            textColor=TEXT_COLOR,
        ),
        "body_right": ParagraphStyle(
            name="BodyRight",
            parent=styles["Normal"],
            fontName=font,
            fontSize=body,
            leading=body + extra_leading,
            alignment=TA_RIGHT,
            textColor=TEXT_COLOR,
        ),
        "customer": ParagraphStyle(
            name="Customer",
            parent=styles["Normal"],
            fontName=font_bold,
            fontSize=base_size + 6,
            leading=base_size + 6 + extra_leading,
            textColor=colors.HexColor("#282828"),
        ),
    }


def build_header_band(
    company_name: str,
    primary: colors.Color,
    st: Dict[str, ParagraphStyle],
    with_background: bool = True,
    logo_bytes: Optional[bytes] = None,
) -> Table:
    """
    Company name (left) and INVOICE (right). With background: white text on
    the primary color; without: primary-colored text on white.
    """
    text_color = colors.white if with_background else primary
    name_style = ParagraphStyle(name="BandName", parent=st["company_name"], textColor=text_color)
    title_style = ParagraphStyle(name="BandTitle", parent=st["doc_title"], textColor=text_color)
    left: List[Flowable] = []
    logo = _image_flowable_from_bytes(logo_bytes, LOGO_MAX_WIDTH_MM, LOGO_MAX_HEIGHT_MM) if logo_bytes else None
    if logo is not None:
        logo.hAlign = "LEFT"
        left.append(logo)
        left.append(Spacer(1, 2 * mm))
    left.append(Paragraph(pdf_text(company_name or "Your Company"), name_style))
    table = Table(
        [[left, Paragraph("INVOICE", title_style)]],
        colWidths=[110 * mm, (CONTENT_WIDTH_MM - 110) * mm],
    )
    style = [
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("TOPPADDING", (0, 0), (-1, -1), 8),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
        ("LEFTPADDING", (0, 0), (-1, -1), 6),
        ("RIGHTPADDING", (0, 0), (-1, -1), 6),
    ]
    if with_background:
        style.append(("BACKGROUND", (0, 0), (-1, -1), primary))
        style.append(("LINEBELOW", (0, 0), (-1, -1), 3, colors.white))
    table.setStyle(TableStyle(style))
    return table


def build_details_cards(
    company_lines: List[str],
    invoice_lines: List[str],
    primary: colors.Color,
    st: Dict[str, ParagraphStyle],
) -> Table:
    """Company Details card (left, omitted when empty) and Invoice Details card (right)."""
    title_style = ParagraphStyle(name="CardTitleColored", parent=st["card_title"], textColor=primary)

    def card(title: str, lines: List[str]) -> List[Flowable]:
        return [Paragraph(title, title_style)] + [Paragraph(pdf_text(line), st["detail"]) for line in lines]

    left = card("Company Details", company_lines) if company_lines else [Spacer(1, 1)]
    right = card("Invoice Details", invoice_lines)
    table = Table([[left, "", right]], colWidths=[100 * mm, 10 * mm, (CONTENT_WIDTH_MM - 110) * mm])
    style = [
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("BACKGROUND", (2, 0), (2, 0), colors.HexColor("#FAFAFA")),
        ("TOPPADDING", (0, 0), (-1, -1), 6),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
    ]
    if company_lines:
        style.append(("BACKGROUND", (0, 0), (0, 0), ACCENT_BG))
    table.setStyle(TableStyle(style))
    return table


def build_bill_to_block(
    customer_name: str,
    customer_contact: str,
    secondary: colors.Color,
    st: Dict[str, ParagraphStyle],
) -> List[Flowable]:
    """BILL TO label on the secondary color, then customer name and phone."""
    label_style = ParagraphStyle(name="BillToLabel", parent=st["card_title"], textColor=colors.white, spaceAfter=0)
    label = Table([[Paragraph("BILL TO", label_style)]], colWidths=[60 * mm])
    label.hAlign = "LEFT"
    label.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, -1), secondary),
        ("TOPPADDING", (0, 0), (-1, -1), 3),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
    ]))
    contact_style = ParagraphStyle(name="CustomerContact", parent=st["body"], textColor=MUTED_TEXT)
    return [
        label,
        Spacer(1, 4 * mm),
        Paragraph(pdf_text(customer_name), st["customer"]),
        Paragraph(f"Phone: {pdf_text(customer_contact)}", contact_style),
    ]
