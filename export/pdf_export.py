# SPDX-License-Identifier: AGPL-3.0-only

"""
Page-image PDF export.

The Markdown is laid out as one styled HTML document (PyMuPDF Story),
rasterized to a single tall image, then cut into page-height bands which are
placed one per A4 page with ReportLab and captioned with page numbers.
"""
import html
import io
import logging
import math
from datetime import date
from typing import Dict, List, Optional

import fitz  # PyMuPDF
from PIL import Image
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from common.config import AppConfig
from common.errors import ExportError
from common.filenames import document_title, output_filename
from export.artifact import ExportArtifact, display_date
from export.markdown_render import render_markdown

logger = logging.getLogger(__name__)

# Largest page PDF viewers accept; content taller than this spills onto more sheets
SHEET_HEIGHT = 14400
PAGE_TOP_MARGIN = 20
PAGE_BOTTOM_RESERVE = 40
CAPTION_BASELINE = 12
ACCENT_COLOR = "#5c6ac4"

DOCUMENT_CSS = """
body { font-family: sans-serif; font-size: 14px; line-height: 1.4; color: #000000; }
.brand { font-size: 24px; font-weight: bold; margin: 0; }
.date { font-size: 14px; text-align: right; margin: 0 0 10px 0; }
.rule { border-bottom: 2px solid %(accent)s; margin-bottom: 20px; }
.title { font-size: 20px; font-weight: bold; margin-bottom: 16px; }
h1 { font-size: 22px; } h2 { font-size: 18px; } h3 { font-size: 16px; }
pre { font-family: monospace; font-size: 12px; background-color: #f5f5f5; padding: 8px; }
code { font-family: monospace; }
blockquote { border-left: 3px solid #cccccc; padding-left: 10px; margin-left: 0; }
table { border-collapse: collapse; }
th, td { border: 1px solid #999999; padding: 4px; }
.math-display { text-align: center; margin: 8px 0; }
.math-error { color: #000000; }
.footer { margin-top: 30px; border-top: 1px solid #eaeaea; padding-top: 10px; font-size: 10px; text-align: center; }
""" % {"accent": ACCENT_COLOR}


def build_document_html(body: str, brand: str, title: str, day: str, footer: str) -> str:
    """Wrap a rendered Markdown body in the branded header and footer."""
    return (
        "<html><body>"
        f'<p class="brand">{html.escape(brand)}</p>'
        f'<p class="date">{html.escape(day)}</p>'
        '<div class="rule"></div>'
        f'<p class="title">{html.escape(title)}</p>'
        f'<div class="content">{body}</div>'
        f'<div class="footer">{html.escape(footer)}</div>'
        "</body></html>"
    )


def rasterize_html(document_html: str, images: Dict[str, bytes], width: float, padding: float,
                   scale: int) -> Image.Image:
    """
    Lay out HTML at a fixed width and return it as one tall RGB image.

    Each sheet is cropped to the height the story actually filled, so the
    stitched image has no trailing blank space.
    """
    archive = fitz.Archive()
    for name, png in images.items():
        archive.add(png, name)

    story = fitz.Story(html=document_html, user_css=DOCUMENT_CSS, archive=archive)
    mediabox = fitz.Rect(0, 0, width, SHEET_HEIGHT)
    where = fitz.Rect(padding, padding, width - padding, SHEET_HEIGHT - padding)

    buffer = io.BytesIO()
    writer = fitz.DocumentWriter(buffer)
    filled_heights: List[float] = []
    more = 1
    while more:
        device = writer.begin_page(mediabox)
        more, filled = story.place(where)
        story.draw(device)
        writer.end_page()
        filled_heights.append(min(fitz.Rect(filled).y1 + padding, SHEET_HEIGHT))
    writer.close()

    sheets: List[Image.Image] = []
    with fitz.open(stream=buffer.getvalue(), filetype="pdf") as doc:
        for page, height in zip(doc, filled_heights):
            clip = fitz.Rect(0, 0, width, height)
            pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), clip=clip, alpha=False)
            sheets.append(Image.frombytes("RGB", (pix.width, pix.height), pix.samples))

    return stitch_vertically(sheets)


def stitch_vertically(sheets: List[Image.Image]) -> Image.Image:
    if len(sheets) == 1:
        return sheets[0]
    total_height = sum(s.height for s in sheets)
    tall = Image.new("RGB", (max(s.width for s in sheets), total_height), "white")
    offset = 0
    for sheet in sheets:
        tall.paste(sheet, (0, offset))
        offset += sheet.height
    return tall


def slice_into_bands(image: Image.Image, band_height: float) -> List[Image.Image]:
    """Cut an image into ceil(height / band_height) horizontal bands."""
    if band_height <= 0:
        raise ValueError("band_height must be positive")
    count = max(1, math.ceil(image.height / band_height))
    bands = []
    for index in range(count):
        top = int(index * band_height)
        bottom = min(image.height, max(top + 1, int((index + 1) * band_height)))
        bands.append(image.crop((0, top, image.width, bottom)))
    return bands


def paginate(image: Image.Image, page_size=A4, copyright_notice: str = "") -> bytes:
    """
    Place successive bands of a tall image on A4 pages.

    The image is scaled to fit the page width (never enlarged); each page
    holds page_height - 40 pt of it, 20 pt from the top, with a "Page N"
    caption at the bottom right.
    """
    page_width, page_height = page_size
    ratio = min(page_width / image.width, 1)
    draw_width = image.width * ratio
    x = (page_width - draw_width) / 2
    usable_height = page_height - PAGE_BOTTOM_RESERVE

    bands = slice_into_bands(image, usable_height / ratio)

    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=page_size)
    for number, band in enumerate(bands, start=1):
        band_height = band.height * ratio
        top = page_height - PAGE_TOP_MARGIN
        pdf.drawImage(ImageReader(band), x, top - band_height, width=draw_width, height=band_height)

        pdf.setFillColorRGB(0, 0, 0)
        pdf.setFont("Helvetica", 10)
        pdf.drawRightString(page_width - 40, CAPTION_BASELINE, f"Page {number}")
        if number > 1 and copyright_notice:
            pdf.setFont("Helvetica", 8)
            pdf.drawCentredString(page_width / 2, CAPTION_BASELINE, copyright_notice)
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()


class PdfExporter:
    """Turn analysis Markdown into a paginated, image-based PDF."""

    def __init__(self, settings: AppConfig):
        self.settings = settings

    def render_image(self, markdown_text: str, file_name: str, task_type: str,
                     generated_on: Optional[date] = None) -> Image.Image:
        render = self.settings.get_render_config()
        rendered = render_markdown(markdown_text, scale=render["scale"], image_mode="archive")
        document_html = build_document_html(
            rendered.html,
            brand=self.settings.brand_name,
            title=document_title(file_name, task_type),
            day=display_date(generated_on or date.today()),
            footer=self.settings.copyright_notice
        )
        width = render["width_px"] + 2 * render["padding_px"]
        return rasterize_html(document_html, rendered.images, width, render["padding_px"], render["scale"])

    def export(self, markdown_text: str, file_name: str, task_type: str,
               generated_on: Optional[date] = None) -> ExportArtifact:
        """
        Build the PDF in memory.

        Raises:
            ExportError: rendering, rasterizing or page assembly failed
        """
        try:
            image = self.render_image(markdown_text, file_name, task_type, generated_on)
            data = paginate(image, copyright_notice=self.settings.copyright_notice)
        except Exception as e:
            logger.exception("Error generating PDF")
            raise ExportError("PDF Generation Failed", str(e) or "An unexpected error occurred") from e

        artifact = ExportArtifact(
            filename=output_filename(file_name, task_type, "pdf"),
            mimetype="application/pdf",
            data=data
        )
        logger.info("Generated %s (%d bytes)", artifact.filename, artifact.size)
        return artifact
