"""
Step 6 — Paper Export Service (PDF)

Renders a question list as two A4 documents:
- Quiz paper: title, instruction line, numbered questions with options A-D
- Answer key: numbered questions, correct letter, explanation

Rendering is deterministic: the same questions always give the same bytes
(reportlab invariant mode pins the creation date and document id, and page
streams are left uncompressed). Text the built-in Helvetica can encode stays
in Helvetica; any other run is set in the bundled DejaVuSans TTF so
Vietnamese, Cyrillic and other non-Latin text keeps its glyphs.
"""

import logging
import os
from io import BytesIO
from typing import List, Sequence, Tuple

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import Flowable, KeepTogether, Paragraph, SimpleDocTemplate, Spacer

from quizgen.errors import RenderError
from quizgen.schemas import Question

log = logging.getLogger(__name__)

QUIZ_TITLE = "Quiz"
ANSWER_KEY_TITLE = "Answer Key"
DEFAULT_INSTRUCTION = "Instructions: choose the single best answer for each question."

PAGE_SIZE = A4
MARGIN = 2 * cm
CONTENT_WIDTH = PAGE_SIZE[0] - 2 * MARGIN

FONT_DIR = os.path.join(os.path.dirname(__file__), "fonts")
UNICODE_FONT = "DejaVuSans"
# Encoding of the standard 14 fonts
STANDARD_FONT_ENCODING = "cp1252"


def index_to_letter(index: int) -> str:
    """0 → "A", 1 → "B", ... Option letters always come from position."""
    return chr(ord("A") + index)


def _escape_html(text: str) -> str:
    """Escape HTML special characters so ReportLab Paragraph treats them as literal text."""
    if not text:
        return text or ""
    text = text.replace("&", "&amp;")
    text = text.replace("<", "&lt;")
    text = text.replace(">", "&gt;")
    return text


def register_fonts() -> None:
    """Register the bundled Unicode TTF once per process."""
    if UNICODE_FONT in pdfmetrics.getRegisteredFontNames():
        return
    path = os.path.join(FONT_DIR, f"{UNICODE_FONT}.ttf")
    try:
        pdfmetrics.registerFont(TTFont(UNICODE_FONT, path))
    except Exception as e:
        log.error("paper_exporter: cannot register font %s: %s", path, e)
        raise RenderError(f"Cannot load font {UNICODE_FONT}: {e}") from e


def _markup(text: str) -> str:
    """Escaped Paragraph markup for caller text; non-Latin runs switch to the TTF."""
    escaped = _escape_html(text)
    try:
        escaped.encode(STANDARD_FONT_ENCODING)
    except UnicodeEncodeError:
        return f'<font name="{UNICODE_FONT}">{escaped}</font>'
    return escaped


# ─── Custom Flowables ───────────────────────────────────────────────────────────

class HorizontalLine(Flowable):
    """Draw a horizontal line across the page."""

    def __init__(self, width, thickness=1, color=colors.black):
        Flowable.__init__(self)
        self.width = width
        self.thickness = thickness
        self.color = color

    def draw(self):
        self.canv.setStrokeColor(self.color)
        self.canv.setLineWidth(self.thickness)
        self.canv.line(0, 0, self.width, 0)


# ─── Style Definitions ──────────────────────────────────────────────────────────

def get_custom_styles():
    """Paragraph styles shared by both documents."""
    register_fonts()
    styles = getSampleStyleSheet()

    styles.add(ParagraphStyle(
        name='QuizTitle',
        parent=styles['Heading1'],
        fontSize=20,
        textColor=colors.black,
        alignment=TA_CENTER,
        spaceAfter=6,
        fontName='Helvetica-Bold',
    ))

    styles.add(ParagraphStyle(
        name='QuizDetails',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.black,
        alignment=TA_CENTER,
        spaceAfter=8,
        fontName='Helvetica',
    ))

    styles.add(ParagraphStyle(
        name='Instructions',
        parent=styles['Normal'],
        fontSize=11,
        alignment=TA_LEFT,
        spaceAfter=4,
        fontName='Helvetica-Oblique',
    ))

    styles.add(ParagraphStyle(
        name='QuestionText',
        parent=styles['Normal'],
        fontSize=12,
        textColor=colors.black,
        alignment=TA_LEFT,
        spaceAfter=6,
        fontName='Helvetica',
        leading=15,
    ))

    styles.add(ParagraphStyle(
        name='MCQOption',
        parent=styles['Normal'],
        fontSize=11,
        textColor=colors.black,
        alignment=TA_LEFT,
        leftIndent=24,
        spaceAfter=3,
        fontName='Helvetica',
    ))

    styles.add(ParagraphStyle(
        name='CorrectAnswer',
        parent=styles['Normal'],
        fontSize=11,
        textColor=colors.HexColor("#1a7a1a"),
        alignment=TA_LEFT,
        leftIndent=10,
        spaceAfter=4,
        fontName='Helvetica-Bold',
    ))

    styles.add(ParagraphStyle(
        name='Explanation',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.HexColor("#555555"),
        alignment=TA_LEFT,
        leftIndent=24,
        spaceAfter=4,
        fontName='Helvetica',
        leading=13,
    ))

    return styles


# ─── Shared helpers ─────────────────────────────────────────────────────────────

def _check_questions(questions: Sequence[Question]) -> None:
    if not questions:
        raise RenderError("No questions provided for PDF generation")
    for n, q in enumerate(questions, 1):
        if len(q.options) != 4 or not 0 <= q.correct_answer_index < len(q.options):
            raise RenderError(f"Question {n} is inconsistent: answer index does not address an option")


def _draw_page_number(canvas, doc):
    canvas.saveState()
    canvas.setFont('Helvetica', 9)
    canvas.setFillColor(colors.grey)
    canvas.drawCentredString(PAGE_SIZE[0] / 2, MARGIN / 2, f"Page {doc.page}")
    canvas.restoreState()


def _header(story: list, styles, title: str, count: int) -> None:
    story.append(Paragraph(title, styles['QuizTitle']))
    story.append(Paragraph(f"Questions: {count}", styles['QuizDetails']))
    story.append(HorizontalLine(width=CONTENT_WIDTH, thickness=1.5))
    story.append(Spacer(1, 0.4*cm))


def _build_pdf(story: list, title: str) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=PAGE_SIZE,
        rightMargin=MARGIN,
        leftMargin=MARGIN,
        topMargin=MARGIN,
        bottomMargin=MARGIN,
        title=title,
        creator="quizgen",
        invariant=1,
        pageCompression=0,
    )
    try:
        doc.build(story, onFirstPage=_draw_page_number, onLaterPages=_draw_page_number)
    except Exception as e:
        log.error("paper_exporter: failed to build '%s' PDF: %s", title, e)
        raise RenderError(f"Failed to build {title} PDF: {e}") from e
    return buffer.getvalue()


# ─── Quiz Paper ─────────────────────────────────────────────────────────────────

def render_quiz_document(questions: Sequence[Question]) -> bytes:
    """Quiz paper PDF: questions and options only, no answers."""
    _check_questions(questions)
    styles = get_custom_styles()
    story = []

    _header(story, styles, QUIZ_TITLE, len(questions))
    story.append(Paragraph(DEFAULT_INSTRUCTION, styles['Instructions']))
    story.append(Spacer(1, 0.5*cm))

    for n, q in enumerate(questions, 1):
        block = [Paragraph(f"{n}. {_markup(q.text)}", styles['QuestionText'])]
        for i, option in enumerate(q.options):
            block.append(Paragraph(f"{index_to_letter(i)}. {_markup(option)}", styles['MCQOption']))
        block.append(Spacer(1, 0.4*cm))
        story.append(KeepTogether(block))

    return _build_pdf(story, QUIZ_TITLE)


# ─── Answer Key ─────────────────────────────────────────────────────────────────

def render_answer_document(questions: Sequence[Question]) -> bytes:
    """Answer key PDF: same numbering as the quiz paper, correct letter, explanation."""
    _check_questions(questions)
    styles = get_custom_styles()
    story = []

    _header(story, styles, ANSWER_KEY_TITLE, len(questions))
    story.append(Spacer(1, 0.3*cm))

    for n, q in enumerate(questions, 1):
        block = [
            Paragraph(f"{n}. {_markup(q.text)}", styles['QuestionText']),
            Paragraph(f"Correct answer: {index_to_letter(q.correct_answer_index)}", styles['CorrectAnswer']),
        ]
        if q.explanation:
            block.append(Paragraph(f"Explanation: {_markup(q.explanation)}", styles['Explanation']))
        block.append(Spacer(1, 0.2*cm))
        block.append(HorizontalLine(width=CONTENT_WIDTH, thickness=0.5, color=colors.HexColor("#cccccc")))
        block.append(Spacer(1, 0.3*cm))
        story.append(KeepTogether(block))

    return _build_pdf(story, ANSWER_KEY_TITLE)


def render_documents(questions: Sequence[Question]) -> Tuple[bytes, bytes]:
    """Render (quiz paper, answer key) from one snapshot of the questions."""
    snapshot: List[Question] = list(questions)
    quiz = render_quiz_document(snapshot)
    answers = render_answer_document(snapshot)
    log.info("paper_exporter: rendered %d question(s) → quiz %d B, answers %d B",
             len(snapshot), len(quiz), len(answers))
    return quiz, answers
