"""
PDF Page Canvas

Pages are drawn as RGB images with Pillow and saved as PDF. Coordinates
are given in millimetres on an A4 sheet so layouts read like a printed
form; the canvas scales them to pixels.
"""

from functools import lru_cache
from io import BytesIO
from typing import Optional, Union

from PIL import Image, ImageDraw, ImageFont


PAGE_WIDTH_MM = 210
PAGE_HEIGHT_MM = 297
PX_PER_MM = 4
RESOLUTION_DPI = 25.4 * PX_PER_MM

Color = tuple[int, int, int]

PRIMARY = (21, 128, 61)
SECONDARY = (107, 114, 128)
TEXT = (17, 24, 39)
PANEL = (248, 250, 252)
WHITE = (255, 255, 255)

FontType = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]


@lru_cache(maxsize=32)
def load_font(size_pt: int, bold: bool = False) -> FontType:
    """DejaVu Sans when installed, Pillow's bundled font otherwise."""
    size_px = int(size_pt * PX_PER_MM * 0.3528)  # 1pt = 0.3528mm
    name = "DejaVuSans-Bold.ttf" if bold else "DejaVuSans.ttf"
    try:
        return ImageFont.truetype(name, size_px)
    except OSError:
        return ImageFont.load_default(size=size_px)


class PdfPage:
    """One A4 page."""

    def __init__(self):
        self.image = Image.new(
            "RGB",
            (PAGE_WIDTH_MM * PX_PER_MM, PAGE_HEIGHT_MM * PX_PER_MM),
            WHITE,
        )
        self._draw = ImageDraw.Draw(self.image)

    @staticmethod
    def _px(*values: float) -> list[int]:
        return [int(v * PX_PER_MM) for v in values]

    def rect(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        fill: Optional[Color] = None,
        outline: Optional[Color] = None,
    ) -> None:
        x0, y0, x1, y1 = self._px(x, y, x + width, y + height)
        self._draw.rectangle(
            [x0, y0, x1, y1],
            fill=fill,
            outline=outline,
            width=2 if outline else 0,
        )

    def line(self, x0: float, y: float, x1: float, color: Color = PRIMARY) -> None:
        self._draw.line(self._px(x0, y, x1, y), fill=color, width=2)

    def text(
        self,
        x: float,
        y: float,
        value: str,
        size: int = 10,
        bold: bool = False,
        color: Color = TEXT,
    ) -> None:
        """Draw `value` with its baseline at (x, y) mm."""
        px, py = self._px(x, y)
        # Approximate the ascent so callers can think in baselines
        top = py - int(size * PX_PER_MM * 0.3528 * 0.8)
        self._draw.text((px, top), value, font=load_font(size, bold), fill=color)


def save_pages(pages: list[PdfPage]) -> bytes:
    """Render pages into a single PDF document."""
    buffer = BytesIO()
    first, *rest = [page.image for page in pages]
    first.save(
        buffer,
        format="PDF",
        resolution=RESOLUTION_DPI,
        save_all=True,
        append_images=rest,
    )
    return buffer.getvalue()
