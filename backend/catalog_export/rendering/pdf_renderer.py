"""
PdfArtifactRenderer — one multi-page PDF per product record.

Standard layout::

    page 1     display code centred, cut mark at the right edge
    page 2..n  one full-bleed page per product image

Ordered layout (categories that require review)::

    page 1..n  one full-bleed page per image, in the confirmed order,
               with the display code stamped on the first page

Page size is the category's manufacturing width × length plus bleed.
"""

from __future__ import annotations

import asyncio
import io
from collections.abc import Sequence
from typing import Any

import httpx
from PIL import Image, UnidentifiedImageError

from catalog_export.core.config import Settings, settings
from catalog_export.core.logging import get_logger
from catalog_export.pipeline.errors import RenderError
from catalog_export.pipeline.models import CategoryPolicy, ResolvedRecord
from catalog_export.rendering.layout import (
    PageGeometry,
    code_page,
    image_page,
    stamp_code_corner,
)

logger = get_logger(__name__)


class PdfArtifactRenderer:
    """
    Downloads a record's images and composes them into a PDF with Pillow.

    Usage::

        renderer = PdfArtifactRenderer.from_settings()
        pdf_bytes = await renderer.render(record, policy)
        await renderer.aclose()
    """

    def __init__(
        self,
        *,
        dpi: int = 150,
        bleed_mm: float = 6.0,
        image_timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.dpi = dpi
        self.bleed_mm = bleed_mm
        self.image_timeout = image_timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=image_timeout, follow_redirects=True)

    @classmethod
    def from_settings(cls, config: Settings = settings, **kwargs) -> PdfArtifactRenderer:
        return cls(
            dpi=config.RENDER_DPI,
            bleed_mm=config.RENDER_BLEED_MM,
            image_timeout=config.IMAGE_FETCH_TIMEOUT,
            **kwargs,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> PdfArtifactRenderer:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def geometry_for(self, record: ResolvedRecord, policy: CategoryPolicy) -> PageGeometry:
        size = policy.page_size_mm
        if size is None:
            raise RenderError(
                f"Category {policy.id} has no manufacturing size",
                record_id=record.id,
                details={"category_id": policy.id},
            )
        width_mm, height_mm = size
        return PageGeometry(width_mm + self.bleed_mm, height_mm + self.bleed_mm, self.dpi)

    async def render(self, record: ResolvedRecord, policy: CategoryPolicy) -> bytes:
        geometry = self.geometry_for(record, policy)
        if not record.images:
            raise RenderError("Record has no images", record_id=record.id)

        images = await self._fetch_images(record)
        if not images:
            raise RenderError(
                "None of the record's images could be loaded",
                record_id=record.id,
                details={"images": len(record.images)},
            )

        return await asyncio.to_thread(
            self._compose,
            geometry,
            record.code,
            images,
            policy.requires_ordered_layout,
        )

    # ─── Internal ──────────────────────────────────────

    async def _fetch_images(self, record: ResolvedRecord) -> list[Image.Image]:
        loaded: list[Image.Image] = []
        for position, url in enumerate(record.images):
            image = await self._fetch_one(url)
            if image is None:
                logger.warning(
                    "Image skipped",
                    record_id=record.id,
                    position=position,
                    url=url,
                )
                continue
            loaded.append(image)
        return loaded

    async def _fetch_one(self, url: str) -> Image.Image | None:
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.debug("Image download failed", url=url, error=str(exc))
            return None
        try:
            image = Image.open(io.BytesIO(response.content))
            image.load()
        except (UnidentifiedImageError, OSError) as exc:
            logger.debug("Image decode failed", url=url, error=str(exc))
            return None
        return image

    @staticmethod
    def _compose(
        geometry: PageGeometry,
        code: str,
        images: Sequence[Image.Image],
        ordered: bool,
    ) -> bytes:
        pages = [image_page(geometry, image) for image in images]
        if ordered:
            pages[0] = stamp_code_corner(geometry, pages[0], code)
        else:
            pages.insert(0, code_page(geometry, code))

        buffer = io.BytesIO()
        pages[0].save(
            buffer,
            format="PDF",
            save_all=True,
            append_images=pages[1:],
            resolution=float(geometry.dpi),
        )
        return buffer.getvalue()
