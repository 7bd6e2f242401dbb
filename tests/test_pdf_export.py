# SPDX-License-Identifier: AGPL-3.0-only

import fitz
import pytest
from PIL import Image
from unittest.mock import patch

from common.errors import ExportError
from export.pdf_export import (
    PdfExporter,
    build_document_html,
    paginate,
    slice_into_bands,
    stitch_vertically,
)


def page_texts(pdf_bytes):
    with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
        return [page.get_text() for page in doc]


class TestImageHelpers:

    @pytest.mark.parametrize("height, band, expected", [
        (100, 100, 1),
        (101, 100, 2),
        (250, 100, 3),
        (10, 100, 1),
        (1000, 333.2, 4),
        (7113, 3556.317, 3),
    ])
    def test_slice_into_bands_count(self, height, band, expected):
        bands = slice_into_bands(Image.new("RGB", (50, height), "white"), band)

        assert len(bands) == expected
        assert sum(b.height for b in bands) == height

    def test_slice_into_bands_rejects_zero(self):
        with pytest.raises(ValueError):
            slice_into_bands(Image.new("RGB", (10, 10)), 0)

    def test_stitch_vertically(self):
        tall = stitch_vertically([Image.new("RGB", (40, 30)), Image.new("RGB", (40, 20))])

        assert tall.size == (40, 50)

    def test_document_html_escapes_header(self):
        html = build_document_html("<p>x</p>", "Brand & Co", "Summary of: a<b>", "5/7/2025", "footer")

        assert "Brand &amp; Co" in html
        assert "Summary of: a&lt;b&gt;" in html
        assert '<div class="content"><p>x</p></div>' in html


class TestPaginate:

    def test_tall_image_spans_three_pages(self):
        # Scaled to A4 width each page holds ~3556 source px
        image = Image.new("RGB", (2640, 10000), "white")

        texts = page_texts(paginate(image, copyright_notice="(c) Test"))

        assert len(texts) == 3
        for number, text in enumerate(texts, start=1):
            assert f"Page {number}" in text
        assert "(c) Test" not in texts[0]
        assert "(c) Test" in texts[1]

    def test_last_partial_band_gets_its_own_page(self):
        # Two full pages leave a fraction of a pixel for the third
        texts = page_texts(paginate(Image.new("RGB", (2640, 7113), "white")))

        assert len(texts) == 3
        assert "Page 3" in texts[2]

    def test_short_image_is_one_page(self):
        texts = page_texts(paginate(Image.new("RGB", (400, 300), "white")))

        assert len(texts) == 1
        assert "Page 1" in texts[0]


class TestPdfExporter:

    def test_export_builds_pdf(self, settings, sample_markdown, fixed_date):
        artifact = PdfExporter(settings).export(sample_markdown, "lecture-notes.pdf", "summarize", fixed_date)

        assert artifact.filename == "lecture-notes_summarized.pdf"
        assert artifact.mimetype == "application/pdf"
        assert artifact.data.startswith(b"%PDF")
        assert artifact.size == len(artifact.data)
        assert len(page_texts(artifact.data)) >= 1

    def test_render_image_width_follows_settings(self, settings, fixed_date):
        image = PdfExporter(settings).render_image("# Hello", "a.pdf", "explain", fixed_date)

        assert image.width == settings.render_width_px + 2 * settings.render_padding_px
        assert image.height > 0

    def test_failure_becomes_export_error(self, settings):
        with patch("export.pdf_export.render_markdown", side_effect=RuntimeError("layout exploded")):
            with pytest.raises(ExportError) as exc_info:
                PdfExporter(settings).export("# x", "a.pdf", "summarize")

        assert exc_info.value.to_dict() == {"error": "PDF Generation Failed", "details": "layout exploded"}
