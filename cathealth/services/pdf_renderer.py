# services/pdf_renderer.py
import io
import logging

from reportlab.pdfgen import canvas

from cathealth.services.document import (
    Band,
    Footer,
    Page,
    PrintableDocument,
    Shape,
    TextLine,
)

logger = logging.getLogger(__name__)

FOOTER_FONT = "Helvetica"
FOOTER_SIZE = 8
FOOTER_COLOR = (0.42, 0.45, 0.50)
RULE_COLOR = (0.82, 0.84, 0.88)


def _draw_text(c: canvas.Canvas, el: TextLine) -> None:
    c.setFont(el.font, el.size)
    c.setFillColorRGB(*el.color)
    if el.align == "center":
        c.drawCentredString(el.x, el.y, el.text)
    else:
        c.drawString(el.x, el.y, el.text)


def _draw_band(c: canvas.Canvas, el: Band) -> None:
    c.setFillColorRGB(*el.fill)
    c.roundRect(el.x, el.y, el.width, el.height, 4, stroke=0, fill=1)
    c.setFillColorRGB(1, 1, 1)
    c.setFont("Helvetica-Bold", 13)
    c.drawString(el.x + 10, el.y + (el.height - 13) / 2 + 3, el.title)


def _draw_shape(c: canvas.Canvas, el: Shape) -> None:
    if el.fill:
        c.setFillColorRGB(*el.fill)
    if el.stroke:
        c.setStrokeColorRGB(*el.stroke)
    fill = 1 if el.fill else 0
    stroke = 1 if el.stroke else 0
    if el.kind == "circle":
        c.circle(el.x, el.y, el.radius, stroke=stroke, fill=fill)
    elif el.kind == "rect":
        c.rect(el.x, el.y, el.width, el.height, stroke=stroke, fill=fill)
    elif el.kind == "line":
        c.setLineWidth(1)
        c.line(el.x, el.y, el.x + el.width, el.y + el.height)
    else:
        logger.warning(f"Unknown shape kind '{el.kind}' skipped")


def _draw_footer(c: canvas.Canvas, footer: Footer, doc: PrintableDocument) -> None:
    left, right = doc.margin, doc.page_width - doc.margin
    base = doc.margin - 10
    c.setStrokeColorRGB(*RULE_COLOR)
    c.setLineWidth(0.5)
    c.line(left, base + 18, right, base + 18)
    c.setFont(FOOTER_FONT, FOOTER_SIZE)
    c.setFillColorRGB(*FOOTER_COLOR)
    c.drawString(left, base + 6, footer.disclaimer)
    c.drawRightString(right, base - 6, footer.label)


def _draw_page(c: canvas.Canvas, page: Page, doc: PrintableDocument) -> None:
    # shapes first so text always sits on top of decorations
    for el in page.elements:
        if isinstance(el, Shape):
            _draw_shape(c, el)
    for el in page.elements:
        if isinstance(el, Band):
            _draw_band(c, el)
        elif isinstance(el, TextLine):
            _draw_text(c, el)
    if page.footer is not None:
        _draw_footer(c, page.footer, doc)


def render_pdf(doc: PrintableDocument) -> bytes:
    """Draw a laid-out document onto a reportlab canvas and return the PDF bytes."""
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=(doc.page_width, doc.page_height))
    c.setTitle(doc.title)
    c.setAuthor("CatHealth")
    c.setSubject(f"Wellness plan for {doc.subject_name}")

    for page in doc.pages:
        _draw_page(c, page, doc)
        c.showPage()
    c.save()

    pdf = buffer.getvalue()
    logger.info(f"Rendered '{doc.title}' to PDF ({doc.page_count} pages, {len(pdf)} bytes)")
    return pdf
