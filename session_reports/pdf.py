from __future__ import annotations  # Styled PDF rendering for chat transcripts

import os
from datetime import datetime
from typing import Any, List, Tuple

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from agents.types import Session, Turn

DEJAVU_SANS = "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"  # System font
DEJAVU_SANS_BOLD = "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"  # System font
DEJAVU_MONO = "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf"  # System font

ACCENT = (8, 145, 178)  # Palette accent
TEXT = (34, 34, 34)  # Primary text color
MUTED = (100, 100, 100)  # Secondary text color
RULE = (230, 230, 230)  # Divider color
CANDIDATE_BG = (236, 254, 255)  # Candidate bubble background
INTERVIEWER_BG = (243, 244, 246)  # Interviewer bubble background


def _parse_datetime(value: str | None) -> datetime | None:  # Parse ISO timestamp safely
    if not value:
        return None
    try:
        normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
        return datetime.fromisoformat(normalized)
    except ValueError:
        return None


def _format_datetime(value: datetime | None) -> str:  # Format timestamp for display
    if not value:
        return "-"
    return value.strftime("%d %b %Y, %I:%M %p").lstrip("0").replace(" 0", " ")


def _effective_width(pdf: FPDF) -> float:  # Compute effective page width
    return float(pdf.w) - float(pdf.l_margin) - float(pdf.r_margin)


class TranscriptPDF(FPDF):  # PDF with custom header/footer styling
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.header_title = "Interview Transcript"
        self._font_regular = "Helvetica"
        self._font_bold = "Helvetica"
        self._font_mono = "Courier"
        self._supports_unicode = False
        if all(os.path.exists(path) for path in (DEJAVU_SANS, DEJAVU_SANS_BOLD, DEJAVU_MONO)):
            self.add_font("DejaVu", "", DEJAVU_SANS)
            self.add_font("DejaVu", "B", DEJAVU_SANS_BOLD)
            self.add_font("DejaVuMono", "", DEJAVU_MONO)
            self._font_regular = "DejaVu"
            self._font_bold = "DejaVu"
            self._font_mono = "DejaVuMono"
            self._supports_unicode = True

    def prepare_text(self, text: Any) -> str:  # Sanitize text for non-unicode fonts
        value = "" if text is None else str(text)
        if self._supports_unicode:
            return value
        cleaned = value.replace("•", "-").replace("—", "-").replace("’", "'")
        return cleaned.encode("latin-1", "ignore").decode("latin-1")

    def header(self) -> None:  # Render header banner
        usable = _effective_width(self)
        if self.page_no() == 1:
            self.set_fill_color(*ACCENT)
            self.rect(0, 0, self.w, 18, style="F")
            self.set_text_color(255, 255, 255)
            self.set_xy(self.l_margin, 5)
            self.set_font(self._font_bold, "B", 16)
            self.cell(usable, 8, self.prepare_text(self.header_title))
            self.set_text_color(*TEXT)
            self.set_y(24)
        else:
            self.set_text_color(80, 80, 80)
            self.set_xy(self.l_margin, 8)
            self.set_font(self._font_bold, "B", 11)
            self.cell(usable, 6, self.prepare_text(self.header_title))
            self.set_draw_color(*ACCENT)
            self.set_line_width(0.4)
            self.line(self.l_margin, 15, self.w - self.r_margin, 15)
            self.set_text_color(*TEXT)
            self.set_y(19)

    def footer(self) -> None:  # Render footer with pagination
        self.set_y(-12)
        self.set_draw_color(*RULE)
        self.set_line_width(0.2)
        self.line(self.l_margin, self.get_y(), self.w - self.r_margin, self.get_y())
        self.set_text_color(120, 120, 120)
        self.set_font(self._font_regular, "", 9)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="R")


def _section_title(pdf: TranscriptPDF, title: str) -> None:  # Render styled section title
    pdf.set_text_color(*TEXT)
    pdf.set_x(pdf.l_margin)
    pdf.set_font(pdf._font_bold, "B", 13)
    pdf.cell(0, 9, pdf.prepare_text(title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_draw_color(*RULE)
    pdf.set_line_width(0.2)
    y = pdf.get_y()
    pdf.line(pdf.l_margin, y, pdf.l_margin + _effective_width(pdf), y)
    pdf.ln(2)


def _meta_block(pdf: TranscriptPDF, rows: List[Tuple[str, str]]) -> None:  # Label/value lines
    for label, value in rows:
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*MUTED)
        pdf.set_font(pdf._font_regular, "", 10)
        pdf.cell(30, 6, pdf.prepare_text(label))
        pdf.set_text_color(*TEXT)
        pdf.set_font(pdf._font_bold, "B", 10)
        pdf.cell(0, 6, pdf.prepare_text(value), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(2)


def _render_block(pdf: TranscriptPDF, text: str, *, font: str, size: int) -> None:  # Full-width wrapped text
    pdf.set_x(pdf.l_margin)
    pdf.set_font(font, "", size)
    pdf.set_text_color(*TEXT)
    pdf.multi_cell(_effective_width(pdf), 5, pdf.prepare_text(text.strip() or "-"))
    pdf.ln(3)


def _render_turn(pdf: TranscriptPDF, turn: Turn) -> None:  # One speaker label plus its text
    is_candidate = turn.role == "candidate"
    label = "You" if is_candidate else "Interviewer"
    pdf.set_x(pdf.l_margin)
    pdf.set_text_color(*(ACCENT if not is_candidate else MUTED))
    pdf.set_font(pdf._font_bold, "B", 10)
    pdf.cell(0, 6, label, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_fill_color(*(CANDIDATE_BG if is_candidate else INTERVIEWER_BG))
    pdf.set_text_color(*TEXT)
    pdf.set_font(pdf._font_regular, "", 10)
    pdf.multi_cell(_effective_width(pdf), 5.5, pdf.prepare_text(turn.text), fill=True)
    pdf.ln(2)


def generate_transcript_pdf(session: Session) -> bytes:  # Build PDF payload for a saved chat
    pdf = TranscriptPDF()
    pdf.alias_nb_pages()
    pdf.header_title = f"{session.title} - Interview Transcript"
    pdf.set_margins(15, 22, 15)
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()

    _section_title(pdf, "Session Overview")
    _meta_block(
        pdf,
        [
            ("Chat ID", session.id),
            ("Created", _format_datetime(_parse_datetime(session.created_at))),
            ("Updated", _format_datetime(_parse_datetime(session.updated_at))),
            ("Turns", str(len(session.messages))),
        ],
    )

    _section_title(pdf, "Problem")
    _render_block(pdf, session.problem, font=pdf._font_regular, size=10)

    _section_title(pdf, "Solution")
    _render_block(pdf, session.code, font=pdf._font_mono, size=9)

    _section_title(pdf, "Conversation")
    if not session.messages:
        pdf.set_text_color(*MUTED)
        pdf.set_font(pdf._font_regular, "", 10)
        pdf.multi_cell(_effective_width(pdf), 6, "No messages recorded for this chat.")
    for turn in session.messages:
        _render_turn(pdf, turn)

    return bytes(pdf.output())


__all__ = ["generate_transcript_pdf"]
