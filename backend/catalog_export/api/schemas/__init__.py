"""API schema package."""

from catalog_export.api.schemas.exports import (
    CreateExportRequest,
    DraftOrderingResponse,
    MoveImageRequest,
    ProgressResponse,
    ResolveSuspensionRequest,
    SummaryResponse,
    SuspensionResponse,
    SwapImagesRequest,
    TextInputRequest,
)

__all__ = [
    "CreateExportRequest",
    "DraftOrderingResponse",
    "MoveImageRequest",
    "ProgressResponse",
    "ResolveSuspensionRequest",
    "SummaryResponse",
    "SuspensionResponse",
    "SwapImagesRequest",
    "TextInputRequest",
]
