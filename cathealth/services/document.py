# services/document.py
"""
Printable wellness-plan documents.

``DocumentSynthesizer.synthesize`` turns the AI's markdown narrative into a
``PrintableDocument``: a cover page followed by content pages holding the five
plan sections, each introduced by a coloured title band.  Layout happens here,
with reportlab's font metrics, so the document can be inspected (and tested)
before ``pdf_renderer.render_pdf`` draws it.

Coordinates are PDF points with the origin at the bottom-left corner; the text
flow moves downwards, so ``y`` shrinks as content is added.
"""
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple, Union

from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit

logger = logging.getLogger(__name__)

Color = Tuple[float, float, float]

# ------------------------------------------------------------------
# Section extraction
# ------------------------------------------------------------------

@dataclass(frozen=True)
class SectionRule:
    key: str
    title: str
    pattern: "re.Pattern"
    color: Color


SECTIONS: Tuple[SectionRule, ...] = (
    SectionRule("overview", "Overview",
                re.compile(r"\boverview\b", re.I), (0.31, 0.27, 0.90)),
    SectionRule("health_recommendations", "Health Recommendations",
                re.compile(r"\bhealth\b.*\brecommendations?\b", re.I), (0.06, 0.59, 0.53)),
    SectionRule("behavior_training", "Behavior Training",
                re.compile(r"\bbehaviou?r\b.*\b(training|advice)\b", re.I), (0.92, 0.35, 0.05)),
    SectionRule("enrichment_plan", "Enrichment Plan",
                re.compile(r"\benrichment\b", re.I), (0.58, 0.20, 0.92)),
    SectionRule("follow_up_schedule", "Follow-up Schedule",
                re.compile(r"\bfollow[\s-]?up\b", re.I), (0.15, 0.39, 0.92)),
)

_ATX_HEADING = re.compile(r"^\s{0,3}(#{1,6})\s+(.*?)\s*#*\s*$")
_BOLD_HEADING = re.compile(r"^\s*(?:\*\*|__)([^*]+?)(?:\*\*|__)\s*:?\s*$")
_NUMBER_PREFIX = re.compile(r"^\s*\d+[.)]\s*")
# bold-line headings rank below every markdown heading level
_BOLD_LEVEL = 7


def _heading(line: str) -> Optional[Tuple[int, str]]:
    """Return ``(level, text)`` for a heading line, None for anything else."""
    match = _ATX_HEADING.match(line)
    if match:
        level, raw = len(match.group(1)), match.group(2)
    else:
        match = _BOLD_HEADING.match(line)
        if not match:
            return None
        level, raw = _BOLD_LEVEL, match.group(1)
    return level, _NUMBER_PREFIX.sub("", clean_inline(raw))


def _match_section(heading: str, start: int) -> Optional[int]:
    for index in range(start, len(SECTIONS)):
        if SECTIONS[index].pattern.search(heading):
            return index
    return None


def extract_sections(text: str) -> Dict[str, str]:
    """
    Split the narrative into the five plan sections, in their fixed order.

    The first recognised section heading fixes the heading level of the
    plan; later sections only start at that level or a shallower one, so a
    subheading such as ``### Environmental Enrichment`` inside the health
    section stays part of it.  Only headings for a section later than the
    current one start a new section.  Sections whose heading never appears
    come back as empty strings.
    """
    collected: Dict[str, List[str]] = {rule.key: [] for rule in SECTIONS}
    current: Optional[str] = None
    section_level: Optional[int] = None
    next_index = 0

    for line in (text or "").splitlines():
        heading = _heading(line)
        if heading is not None:
            level, title = heading
            index = None
            if section_level is None or level <= section_level:
                index = _match_section(title, next_index)
            if index is not None:
                current = SECTIONS[index].key
                next_index = index + 1
                if section_level is None:
                    section_level = level
                continue
        if current is not None:
            collected[current].append(line)

    return {key: "\n".join(lines).strip() for key, lines in collected.items()}


# ------------------------------------------------------------------
# Markup stripping
# ------------------------------------------------------------------

BULLET = "• "

_IMAGE = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
_LINK = re.compile(r"\[([^\]]+)\]\([^)]*\)")
_STRONG = re.compile(r"(\*\*|__)(.+?)\1")
_EMPHASIS = re.compile(r"(?<![\w*])([*_])(?!\s)(.+?)(?<!\s)\1(?![\w*])")
_CODE = re.compile(r"`([^`]*)`")
_LIST_ITEM = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+(.*)$")
_RULE = re.compile(r"^\s*([-*_])(\s*\1){2,}\s*$")


@dataclass(frozen=True)
class TextBlock:
    kind: str  # "heading", "bullet" or "paragraph"
    text: str


def clean_inline(text: str) -> str:
    """Drop emphasis, link and code decorations, keeping the visible text."""
    text = _IMAGE.sub(r"\1", text)
    text = _LINK.sub(r"\1", text)
    text = _CODE.sub(r"\1", text)
    text = _STRONG.sub(r"\2", text)
    text = _EMPHASIS.sub(r"\2", text)
    return re.sub(r"\s+", " ", text).strip()


def to_blocks(text: str) -> List[TextBlock]:
    """Markdown-ish text to plain headings, bullets and paragraphs."""
    blocks: List[TextBlock] = []
    paragraph: List[str] = []

    def flush() -> None:
        if paragraph:
            blocks.append(TextBlock("paragraph", clean_inline(" ".join(paragraph))))
            paragraph.clear()

    for raw in (text or "").splitlines():
        line = raw.strip()
        if line.startswith(">"):
            line = line.lstrip("> ").strip()
        if not line or _RULE.match(line):
            flush()
            continue
        heading = _heading(line)
        if heading is not None:
            flush()
            if heading[1]:
                blocks.append(TextBlock("heading", heading[1]))
            continue
        item = _LIST_ITEM.match(line)
        if item:
            flush()
            blocks.append(TextBlock("bullet", BULLET + clean_inline(item.group(1))))
            continue
        paragraph.append(line)
    flush()
    return [block for block in blocks if block.text.strip()]


def _printable(text: str) -> str:
    # the standard PDF fonts only cover the Windows-1252 repertoire
    return text.encode("cp1252", "ignore").decode("cp1252")


# ------------------------------------------------------------------
# Document model
# ------------------------------------------------------------------

@dataclass
class TextLine:
    text: str
    x: float
    y: float
    font: str = "Helvetica"
    size: float = 11
    color: Color = (0.22, 0.25, 0.32)
    align: str = "left"  # or "center"


@dataclass
class Band:
    title: str
    x: float
    y: float
    width: float
    height: float
    fill: Color


@dataclass
class Shape:
    kind: str  # "circle", "rect" or "line"
    x: float
    y: float
    width: float = 0
    height: float = 0
    radius: float = 0
    fill: Optional[Color] = None
    stroke: Optional[Color] = None


Element = Union[TextLine, Band, Shape]


@dataclass
class Footer:
    page_number: int
    total_pages: int
    disclaimer: str

    @property
    def label(self) -> str:
        return f"Page {self.page_number} of {self.total_pages}"


@dataclass
class Page:
    number: int
    kind: str  # "cover" or "content"
    header: Optional[str] = None
    elements: List[Element] = field(default_factory=list)
    footer: Optional[Footer] = None

    def texts(self) -> List[str]:
        out = [el.text for el in self.elements if isinstance(el, TextLine)]
        out += [el.title for el in self.elements if isinstance(el, Band)]
        return out


@dataclass
class PrintableDocument:
    title: str
    subject_name: str
    generated_on: date
    page_width: float
    page_height: float
    margin: float
    sections: Dict[str, str] = field(default_factory=dict)
    pages: List[Page] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)


def document_filename(subject_name: str) -> str:
    safe = re.sub(r"[^A-Za-z0-9_-]+", "_", (subject_name or "").strip()).strip("_")
    return f"{safe or 'Cat'}_Wellness_Plan.pdf"


# ------------------------------------------------------------------
# Layout
# ------------------------------------------------------------------

DOCUMENT_TITLE = "Wellness & Behavior Plan"
DISCLAIMER = (
    "This plan is for informational purposes only and does not replace professional veterinary advice."
)
PLACEHOLDER_NOTICE = "No wellness plan content was available to include in this document."

BODY_FONT = "Helvetica"
BOLD_FONT = "Helvetica-Bold"
ITALIC_FONT = "Helvetica-Oblique"
BODY_SIZE = 11
SUBHEADING_SIZE = 12
LEADING = 15
PARAGRAPH_GAP = 6
BULLET_INDENT = 14
BAND_HEIGHT = 26
HEADER_HEIGHT = 36
FOOTER_HEIGHT = 40
CLOSING_BLOCK_HEIGHT = 78

INK: Color = (0.22, 0.25, 0.32)
MUTED: Color = (0.42, 0.45, 0.50)
ACCENT: Color = (0.31, 0.27, 0.90)
WHITE: Color = (1.0, 1.0, 1.0)
TINT: Color = (0.93, 0.95, 1.0)


class _Flow:
    """Cursor over the content pages of a document being laid out."""

    def __init__(self, synth: "DocumentSynthesizer", doc: PrintableDocument):
        self.synth = synth
        self.doc = doc
        self.page: Optional[Page] = None
        self.y = 0.0

    @property
    def remaining(self) -> float:
        return self.y - self.synth.bottom_limit

    def new_page(self) -> None:
        s = self.synth
        header = f"{self.doc.subject_name}'s {DOCUMENT_TITLE}"
        page = Page(number=len(self.doc.pages) + 1, kind="content", header=header)
        top = s.page_height - s.margin
        page.elements.append(TextLine(header, s.margin, top - 12, ITALIC_FONT, 9, MUTED))
        page.elements.append(Shape("line", s.margin, top - HEADER_HEIGHT + 12,
                                   width=s.content_width, stroke=TINT))
        self.doc.pages.append(page)
        self.page = page
        self.y = top - HEADER_HEIGHT

    def ensure(self, height: float) -> None:
        if self.page is None or self.remaining < height:
            self.new_page()

    def add_line(self, text: str, x: float, font: str = BODY_FONT, size: float = BODY_SIZE,
                 color: Color = INK) -> None:
        self.ensure(LEADING)
        self.page.elements.append(TextLine(text, x, self.y - size, font, size, color))
        self.y -= LEADING


class DocumentSynthesizer:
    """Lays out a plan narrative as a paginated, printable document."""

    def __init__(self, page_size: Tuple[float, float] = A4, margin: float = 50):
        self.page_width, self.page_height = page_size
        self.margin = margin
        self.content_width = self.page_width - 2 * margin
        # below this y the flow continues on a new page
        self.bottom_limit = margin + FOOTER_HEIGHT

    def synthesize(
        self,
        narrative_text: str,
        subject_name: str,
        generated_on: Optional[date] = None,
    ) -> PrintableDocument:
        name = _printable(subject_name or "").strip() or "Your Cat"
        doc = PrintableDocument(
            title=f"{name}'s {DOCUMENT_TITLE}",
            subject_name=name,
            generated_on=generated_on or date.today(),
            page_width=self.page_width,
            page_height=self.page_height,
            margin=self.margin,
        )
        cover = self._cover_page(doc)
        doc.pages.append(cover)

        text = (narrative_text or "").strip()
        if not text:
            logger.info(f"Empty narrative for '{name}', producing cover-only document")
            cover.elements.append(TextLine(PLACEHOLDER_NOTICE, self.page_width / 2, self.margin + 120,
                                           ITALIC_FONT, 12, MUTED, align="center"))
            return doc

        doc.sections = extract_sections(text)
        parts = [(rule, doc.sections[rule.key]) for rule in SECTIONS if doc.sections[rule.key]]
        if not parts:
            # no recognised headings: keep the whole narrative under one band
            parts = [(SectionRule("plan", "Wellness Plan", SECTIONS[0].pattern, ACCENT), text)]

        flow = _Flow(self, doc)
        for rule, body in parts:
            self._section(flow, rule, body)
        self._closing(flow, name)

        total = doc.page_count
        for page in doc.pages[1:]:
            page.footer = Footer(page.number, total, DISCLAIMER)
        logger.info(f"Laid out plan document for '{name}': {total} page(s)")
        return doc

    # -- pages ------------------------------------------------------------

    def _cover_page(self, doc: PrintableDocument) -> Page:
        w, h, m = self.page_width, self.page_height, self.margin
        cx = w / 2
        page = Page(number=1, kind="cover")
        els = page.elements

        els.append(Shape("rect", 0, h - 220, width=w, height=220, fill=ACCENT))
        els.append(Shape("rect", 0, 0, width=w, height=24, fill=ACCENT))
        # paw print
        paw_y = h - 400
        els.append(Shape("circle", cx, paw_y, radius=34, fill=TINT))
        for dx, dy in ((-38, 46), (-13, 62), (13, 62), (38, 46)):
            els.append(Shape("circle", cx + dx, paw_y + dy, radius=13, fill=TINT))

        els.append(TextLine("CatHealth", cx, h - 90, BOLD_FONT, 16, WHITE, align="center"))
        els.append(TextLine(DOCUMENT_TITLE, cx, h - 140, BOLD_FONT, 28, WHITE, align="center"))
        els.append(TextLine("A personalized plan for your cat's unique needs", cx, h - 170,
                            BODY_FONT, 12, WHITE, align="center"))
        els.append(TextLine(f"Prepared for {doc.subject_name}", cx, paw_y - 90,
                            BOLD_FONT, 20, INK, align="center"))
        els.append(TextLine(f"Generated on {doc.generated_on.strftime('%B %d, %Y')}", cx, paw_y - 118,
                            BODY_FONT, 12, MUTED, align="center"))
        els.append(Shape("line", m + 80, paw_y - 135, width=self.content_width - 160, stroke=ACCENT))
        return page

    def _section(self, flow: _Flow, rule: SectionRule, body: str) -> None:
        # keep a band together with at least two lines of its text
        flow.ensure(BAND_HEIGHT + 2 * LEADING)
        flow.page.elements.append(Band(rule.title, self.margin, flow.y - BAND_HEIGHT,
                                       self.content_width, BAND_HEIGHT, rule.color))
        flow.y -= BAND_HEIGHT + 10

        for block in to_blocks(body):
            text = _printable(block.text)
            if block.kind == "heading":
                flow.ensure(LEADING * 2)
                flow.y -= 2
                flow.add_line(text, self.margin, BOLD_FONT, SUBHEADING_SIZE)
            elif block.kind == "bullet":
                item = text[len(BULLET):]
                lines = simpleSplit(item, BODY_FONT, BODY_SIZE, self.content_width - BULLET_INDENT) or [""]
                flow.ensure(LEADING)
                flow.page.elements.append(TextLine(BULLET.strip(), self.margin + 2, flow.y - BODY_SIZE,
                                                   BODY_FONT, BODY_SIZE, INK))
                for line in lines:
                    flow.add_line(line, self.margin + BULLET_INDENT)
            else:
                for line in simpleSplit(text, BODY_FONT, BODY_SIZE, self.content_width):
                    flow.add_line(line, self.margin)
            flow.y -= PARAGRAPH_GAP
        flow.y -= 8

    def _closing(self, flow: _Flow, name: str) -> None:
        if flow.remaining < CLOSING_BLOCK_HEIGHT:
            return
        top = flow.y - 6
        els = flow.page.elements
        els.append(Shape("rect", self.margin, top - CLOSING_BLOCK_HEIGHT + 12,
                         width=self.content_width, height=CLOSING_BLOCK_HEIGHT - 12, fill=TINT))
        cx = self.page_width / 2
        els.append(TextLine(f"We hope this plan helps {name} live a happy, healthy life!",
                            cx, top - 30, BOLD_FONT, 12, ACCENT, align="center"))
        els.append(TextLine(f"Revisit it regularly and adjust as {name}'s needs change.",
                            cx, top - 50, BODY_FONT, 10, MUTED, align="center"))
        flow.y = top - CLOSING_BLOCK_HEIGHT
