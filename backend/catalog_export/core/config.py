"""
Pydantic Settings — centralized configuration loaded from environment variables.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Application ───────────────────────────
    APP_ENV: str = "development"
    LOG_LEVEL: str = ""

    # ── Catalog API (lookup + category policies) ──
    CATALOG_API_BASE_URL: str = "http://127.0.0.1:8080/api/v1"
    CATALOG_API_TOKEN: str = ""
    CATALOG_API_TIMEOUT: float = 10.0

    # ── Identifier resolution ─────────────────
    LOOKUP_CHUNK_SIZE: int = 200
    IDENTIFIER_COLUMN_TOKEN: str = "SKU"

    # ── Review policy ─────────────────────────
    # Used only when the backend category payload carries no explicit flag
    ORDERED_LAYOUT_CATEGORY_IDS: list[str] = ["3", "4"]

    # ── Rendering ─────────────────────────────
    RENDER_DPI: int = 150
    RENDER_BLEED_MM: float = 6.0
    IMAGE_FETCH_TIMEOUT: float = 30.0

    # ── Outputs ───────────────────────────────
    ARCHIVE_NAME_PREFIX: str = "product-pdfs"
    LOGISTICS_DECLARED_VALUE: float = 0.99

    model_config = {"env_file": ["../.env", ".env"], "extra": "ignore"}

    @property
    def effective_log_level(self) -> str:
        """LOG_LEVEL if set, otherwise derived from APP_ENV."""
        if self.LOG_LEVEL:
            return self.LOG_LEVEL.upper()
        return "DEBUG" if self.APP_ENV == "development" else "INFO"


settings = Settings()
