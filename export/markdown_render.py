# SPDX-License-Identifier: AGPL-3.0-only

"""
Markdown + LaTeX math to HTML.

Math spans are typeset synchronously with matplotlib's mathtext into PNGs
before the Markdown itself is converted, so the returned HTML is complete:
there is nothing left to settle when layout starts.
"""
import base64
import html
import io
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import markdown
from matplotlib import mathtext
from matplotlib.font_manager import FontProperties
from PIL import Image

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = ["extra", "sane_lists"]

FENCED_CODE = re.compile(r"(^```.*?^```[^\n]*$)", re.MULTILINE | re.DOTALL)
DISPLAY_MATH = re.compile(r"\$\$(.+?)\$\$", re.DOTALL)
INLINE_MATH = re.compile(r"(?<![\\$])\$(?!\$)([^\n$]+?)(?<!\\)\$(?!\$)")

# mathtext has no environments or line breaks; these are laid out row by row
ALIGN_ENVIRONMENT = re.compile(r"\\(?:begin|end)\{(?:aligned|align\*?|gathered|gather\*?|split|multline\*?)\}")
ROW_BREAK = re.compile(r"\\\\(?:\[[^\]]*\])?")

BASE_FONT_PX = 14
INLINE_MATH_EM = 1.21
DISPLAY_MATH_EM = 1.45


@dataclass
class MathImage:
    png: bytes
    width: float
    height: float


@dataclass
class RenderedMarkdown:
    html: str
    images: Dict[str, bytes] = field(default_factory=dict)


def typeset_math(latex: str, display: bool = False, scale: int = 3) -> Optional[MathImage]:
    """
    Render one LaTeX expression to PNG.

    Width and height are in CSS px at 1x; the bitmap itself is `scale` times
    larger so it stays sharp when the page is rasterized at the same scale.
    Returns None when mathtext cannot parse the expression.
    """
    size = BASE_FONT_PX * (DISPLAY_MATH_EM if display else INLINE_MATH_EM)
    buffer = io.BytesIO()
    try:
        mathtext.math_to_image(f"${latex}$", buffer, prop=FontProperties(size=size), dpi=72 * scale, format="png")
    except ValueError as e:
        logger.warning("Could not typeset %r: %s", latex, e)
        return None

    png = buffer.getvalue()
    with Image.open(io.BytesIO(png)) as img:
        px_width, px_height = img.size
    return MathImage(png=png, width=px_width / scale, height=px_height / scale)


def display_rows(latex: str) -> List[str]:
    """Split a multi-line display block into one expression per row."""
    body = ALIGN_ENVIRONMENT.sub("", latex)
    rows = [row.replace("&", "").strip() for row in ROW_BREAK.split(body)]
    return [row for row in rows if row]


class _MathCollector:
    """Swap math spans for placeholder tokens and remember what they were."""

    def __init__(self, scale: int, image_mode: str):
        self.scale = scale
        self.image_mode = image_mode
        self.fragments: List[str] = []
        self.images: Dict[str, bytes] = {}

    def token(self, index: int) -> str:
        return f"MATHTOKEN{index}X"

    def _img_tag(self, image: MathImage, css_class: str) -> str:
        name = f"math-{len(self.images)}.png"
        self.images[name] = image.png
        if self.image_mode == "inline":
            src = "data:image/png;base64," + base64.b64encode(image.png).decode("ascii")
        else:
            src = name
        return (
            f'<img class="{css_class}" src="{src}" '
            f'style="width:{image.width:.1f}px;height:{image.height:.1f}px"/>'
        )

    def _fragment(self, latex: str, display: bool) -> str:
        latex = latex.strip()
        rows = display_rows(latex) if display else [latex]
        images = [typeset_math(row, display=display, scale=self.scale) for row in rows if row]
        if not images or any(image is None for image in images):
            inner = f'<code class="math-error">{html.escape(latex)}</code>'
        else:
            css_class = "math-display" if display else "math-inline"
            inner = "<br/>".join(self._img_tag(image, css_class) for image in images)
        if display:
            return f'<div class="math-display">{inner}</div>'
        return inner

    def _replace_display(self, match: re.Match) -> str:
        self.fragments.append(self._fragment(match.group(1), display=True))
        return f"\n\n{self.token(len(self.fragments) - 1)}\n\n"

    def _replace_inline(self, match: re.Match) -> str:
        self.fragments.append(self._fragment(match.group(1), display=False))
        return self.token(len(self.fragments) - 1)

    def extract(self, text: str) -> str:
        parts = FENCED_CODE.split(text)
        for i in range(0, len(parts), 2):
            # Odd indices are fenced code blocks and keep their dollars
            part = DISPLAY_MATH.sub(self._replace_display, parts[i])
            parts[i] = INLINE_MATH.sub(self._replace_inline, part)
        return "".join(parts)

    def restore(self, body: str) -> str:
        for index, fragment in enumerate(self.fragments):
            token = self.token(index)
            body = body.replace(f"<p>{token}</p>", fragment)
            body = body.replace(token, fragment)
        return body


def render_markdown(text: str, scale: int = 3, image_mode: str = "archive") -> RenderedMarkdown:
    """
    Convert Markdown with `$...$` / `$$...$$` math into an HTML fragment.

    Args:
        text: Markdown source
        scale: Pixel density multiplier for math bitmaps
        image_mode: "archive" to reference images by name (PDF layout) or
            "inline" to embed them as data URIs (browser preview)
    """
    if image_mode not in ("archive", "inline"):
        raise ValueError(f"Unknown image mode: {image_mode}")

    collector = _MathCollector(scale, image_mode)
    source = collector.extract(text or "")
    body = markdown.markdown(source, extensions=MARKDOWN_EXTENSIONS, output_format="html")
    body = collector.restore(body)

    images = collector.images if image_mode == "archive" else {}
    return RenderedMarkdown(html=body, images=images)
