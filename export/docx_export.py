# SPDX-License-Identifier: AGPL-3.0-only

"""
Word (.docx) export.

A deliberately small, line-oriented Markdown interpreter: fenced code,
three heading levels, flat bullet lists and math lines. Inline emphasis,
links, tables and nested lists are written out literally.
"""
import io
import logging
from datetime import date
from typing import Iterable, List, Optional

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Pt, Twips

from common.config import AppConfig
from common.errors import ExportError
from common.filenames import document_title, output_filename
from export.artifact import ExportArtifact, display_date

logger = logging.getLogger(__name__)

DOCX_MIMETYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
CODE_FONT = "Courier New"
ACCENT_COLOR = "5C6AC4"

HEADING_PREFIXES = (("# ", 1), ("## ", 2), ("### ", 3))
HEADING_SPACING = {1: (400, 200), 2: (400, 200), 3: (300, 200)}

MATH_NOTE_TITLE = "Note About Mathematical Expressions"
MATH_NOTE = (
    "This document may contain mathematical expressions that were originally formatted using LaTeX notation. "
    "For the best viewing experience of these expressions, please refer to the original markdown file."
)


def is_math_line(line: str) -> bool:
    return "$" in line or "\\" in line


def strip_math_markers(line: str) -> str:
    """`$x^2$` -> `x^2`; doubled backslashes collapse to one."""
    return line.replace("$", "").replace("\\\\", "\\")


def add_bottom_border(paragraph, color: str = ACCENT_COLOR, size: int = 8) -> None:
    """python-docx has no border API; write w:pBdr directly."""
    p_pr = paragraph._p.get_or_add_pPr()
    borders = OxmlElement("w:pBdr")
    bottom = OxmlElement("w:bottom")
    bottom.set(qn("w:val"), "single")
    bottom.set(qn("w:sz"), str(size))
    bottom.set(qn("w:space"), "1")
    bottom.set(qn("w:color"), color)
    borders.append(bottom)
    p_pr.append(borders)


class MarkdownDocxInterpreter:
    """Feed Markdown lines in order; paragraphs are appended to the document."""

    def __init__(self, document):
        self.document = document
        self.in_code_block = False
        self.list_items: List[str] = []

    def feed_all(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.feed(line)
        self.finish()

    def feed(self, line: str) -> None:
        if line.startswith("```"):
            self.flush_list()
            self.in_code_block = not self.in_code_block
            return

        if self.in_code_block:
            self._add_code(line)
            return

        if line.startswith("- "):
            self.list_items.append(line[2:])
            return

        # Any other line ends a running list
        self.flush_list()

        if line.strip() == "":
            self.document.add_paragraph("")
            return

        for prefix, level in HEADING_PREFIXES:
            if line.startswith(prefix):
                self._add_heading(line[len(prefix):], level)
                return

        if is_math_line(line):
            paragraph = self.document.add_paragraph()
            run = paragraph.add_run(strip_math_markers(line))
            run.italic = True
            return

        self.document.add_paragraph(line)

    def flush_list(self) -> None:
        """Write the pending items as a single bulleted paragraph."""
        if not self.list_items:
            return
        self.document.add_paragraph("\n".join(self.list_items), style="List Bullet")
        self.list_items = []

    def finish(self) -> None:
        self.flush_list()

    def _add_heading(self, text: str, level: int) -> None:
        heading = self.document.add_heading(text, level=level)
        before, after = HEADING_SPACING[level]
        heading.paragraph_format.space_before = Twips(before)
        heading.paragraph_format.space_after = Twips(after)

    def _add_code(self, line: str) -> None:
        paragraph = self.document.add_paragraph()
        paragraph.paragraph_format.space_before = Pt(0)
        paragraph.paragraph_format.space_after = Pt(0)
        run = paragraph.add_run(line)
        run.font.name = CODE_FONT
        run.font.size = Pt(10)


class DocxExporter:
    """Turn analysis Markdown into a structured Word document."""

    def __init__(self, settings: AppConfig):
        self.settings = settings

    def build_document(self, markdown_text: str, file_name: str, task_type: str,
                       generated_on: Optional[date] = None):
        document = Document()

        # Header
        brand = document.add_heading(self.settings.brand_name, level=1)
        brand.alignment = WD_ALIGN_PARAGRAPH.LEFT

        day = document.add_paragraph(display_date(generated_on or date.today()))
        day.alignment = WD_ALIGN_PARAGRAPH.RIGHT

        add_bottom_border(document.add_paragraph(""))

        title = document.add_heading(document_title(file_name, task_type), level=2)
        title.paragraph_format.space_before = Twips(400)
        title.paragraph_format.space_after = Twips(400)

        # Body
        MarkdownDocxInterpreter(document).feed_all(markdown_text.splitlines())

        # Closing note
        spacer = document.add_paragraph("")
        spacer.paragraph_format.space_before = Twips(800)
        document.add_heading(MATH_NOTE_TITLE, level=2)
        document.add_paragraph(MATH_NOTE)

        return document

    def export(self, markdown_text: str, file_name: str, task_type: str,
               generated_on: Optional[date] = None) -> ExportArtifact:
        """
        Build the .docx in memory.

        Raises:
            ExportError: document assembly or packing failed
        """
        try:
            document = self.build_document(markdown_text, file_name, task_type, generated_on)
            buffer = io.BytesIO()
            document.save(buffer)
        except Exception as e:
            logger.exception("Error generating Word document")
            raise ExportError("Word Document Generation Failed", str(e) or "An unexpected error occurred") from e

        artifact = ExportArtifact(
            filename=output_filename(file_name, task_type, "docx"),
            mimetype=DOCX_MIMETYPE,
            data=buffer.getvalue()
        )
        logger.info("Generated %s (%d bytes)", artifact.filename, artifact.size)
        return artifact
