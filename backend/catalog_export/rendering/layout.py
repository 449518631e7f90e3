"""
Page geometry and composition for product PDFs.

All public measurements are in millimetres; ``PageGeometry`` converts
them to pixels at the configured DPI.
"""

from __future__ import annotations

from dataclasses import dataclass

from PIL import Image, ImageDraw, ImageFont

MM_PER_INCH = 25.4
POINTS_PER_INCH = 72

CODE_FONT_PT = 40
ORDERED_CODE_FONT_PT = 12
ORDERED_CODE_INSET_MM = 8
CUT_MARK_SIZE_MM = (10, 5)
CUT_MARK_BOTTOM_MM = 5


@dataclass(frozen=True)
class PageGeometry:
    """A page of ``width_mm`` × ``height_mm`` rasterised at ``dpi``."""

    width_mm: float
    height_mm: float
    dpi: int

    def px(self, mm: float) -> int:
        return round(mm / MM_PER_INCH * self.dpi)

    def pt(self, points: float) -> int:
        return max(1, round(points / POINTS_PER_INCH * self.dpi))

    @property
    def size_px(self) -> tuple[int, int]:
        return self.px(self.width_mm), self.px(self.height_mm)

    def blank(self) -> Image.Image:
        return Image.new("RGB", self.size_px, "white")


def _font(size_px: int) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    return ImageFont.load_default(size=size_px)


def code_page(geometry: PageGeometry, code: str) -> Image.Image:
    """White page with the display code centred and a black cut mark on the right edge."""
    page = geometry.blank()
    draw = ImageDraw.Draw(page)
    width, height = page.size

    font = _font(geometry.pt(CODE_FONT_PT))
    left, top, right, bottom = draw.textbbox((0, 0), code, font=font)
    draw.text(
        ((width - (right - left)) / 2 - left, (height - (bottom - top)) / 2 - top),
        code,
        font=font,
        fill="black",
    )

    mark_w, mark_h = (geometry.px(v) for v in CUT_MARK_SIZE_MM)
    mark_bottom = height - geometry.px(CUT_MARK_BOTTOM_MM)
    draw.rectangle(
        (width - mark_w, mark_bottom - mark_h, width - 1, mark_bottom - 1),
        fill="black",
    )
    return page


def image_page(geometry: PageGeometry, image: Image.Image) -> Image.Image:
    """Stretch ``image`` over the whole page, bleed included."""
    return image.convert("RGB").resize(geometry.size_px, Image.Resampling.LANCZOS)


def stamp_code_corner(geometry: PageGeometry, page: Image.Image, code: str) -> Image.Image:
    """Draw the display code near the bottom-right corner of ``page``."""
    stamped = page.copy()
    draw = ImageDraw.Draw(stamped)
    font = _font(geometry.pt(ORDERED_CODE_FONT_PT))
    left, top, right, bottom = draw.textbbox((0, 0), code, font=font)
    inset = geometry.px(ORDERED_CODE_INSET_MM)
    x = stamped.width - inset - (right - left) - left
    y = stamped.height - inset - (bottom - top) - top
    draw.text((x, y), code, font=font, fill="black")
    return stamped
