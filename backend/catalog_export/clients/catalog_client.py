"""
CatalogClient — HTTP access to the product catalog backend.

Implements both the RecordLookup and the PolicySource collaborators:

    GET {base}/products?page=1&limit={page_size}&productCodes=a,b,c
    GET {base}/categories

Responses are either ``{"data": [...]}`` envelopes or bare lists.

Usage::

    async with CatalogClient.from_settings() as client:
        resolver = BatchResolver(client, chunk_size=settings.LOOKUP_CHUNK_SIZE)
        policies = await client.get_policies()
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

import httpx
from pydantic import ValidationError

from catalog_export.core.config import Settings, settings
from catalog_export.core.logging import get_logger
from catalog_export.pipeline.errors import LookupFailedError, PolicyFetchError
from catalog_export.pipeline.models import CategoryPolicy, ResolvedRecord

logger = get_logger(__name__)

# Default timeout for API calls (seconds)
DEFAULT_TIMEOUT = 10.0


def unwrap_items(payload: Any) -> list[dict[str, Any]]:
    """Accept ``{"data": [...]}`` or a bare list; anything else is malformed."""
    if isinstance(payload, dict):
        payload = payload.get("data")
        # paginated envelopes nest the list one level deeper
        if isinstance(payload, dict):
            payload = payload.get("items", payload.get("list"))
    if not isinstance(payload, list):
        raise ValueError("response body carries no item list")
    return [item for item in payload if isinstance(item, dict)]


class CatalogClient:
    """
    Thin async wrapper over the catalog's REST endpoints.

    An ``httpx.AsyncClient`` may be injected (tests pass one with a
    ``MockTransport``); otherwise the client owns and closes its own.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        ordered_layout_ids: Iterable[str] = (),
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.ordered_layout_ids = tuple(str(i) for i in ordered_layout_ids)
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = headers

    @classmethod
    def from_settings(cls, config: Settings = settings, **kwargs: Any) -> CatalogClient:
        return cls(
            config.CATALOG_API_BASE_URL,
            token=config.CATALOG_API_TOKEN,
            timeout=config.CATALOG_API_TIMEOUT,
            ordered_layout_ids=config.ORDERED_LAYOUT_CATEGORY_IDS,
            **kwargs,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> CatalogClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ─── RecordLookup ──────────────────────────────────

    async def lookup(self, identifiers: Sequence[str], page_size: int) -> list[ResolvedRecord]:
        """Fetch every product whose code is in ``identifiers``."""
        params = {
            "page": 1,
            "limit": page_size,
            "productCodes": ",".join(identifiers),
        }
        try:
            response = await self._client.get(
                f"{self.base_url}/products", params=params, headers=self._headers,
            )
        except httpx.HTTPError as exc:
            logger.error("Product lookup transport error", error=str(exc), identifiers=len(identifiers))
            raise LookupFailedError(f"Product lookup failed: {exc}") from exc

        if response.status_code != 200:
            logger.error(
                "Product lookup rejected",
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise LookupFailedError(
                f"Product lookup returned {response.status_code}",
                status_code=response.status_code,
                details={"body": response.text[:500]},
            )

        try:
            records = [ResolvedRecord.model_validate(item) for item in unwrap_items(response.json())]
        except (ValueError, ValidationError) as exc:
            raise LookupFailedError(f"Malformed product lookup response: {exc}") from exc

        logger.debug("Products fetched", requested=len(identifiers), returned=len(records))
        return records

    # ─── PolicySource ──────────────────────────────────

    async def get_policies(self) -> list[CategoryPolicy]:
        """Fetch the full category table."""
        try:
            response = await self._client.get(f"{self.base_url}/categories", headers=self._headers)
        except httpx.HTTPError as exc:
            logger.error("Category fetch transport error", error=str(exc))
            raise PolicyFetchError(f"Category fetch failed: {exc}") from exc

        if response.status_code != 200:
            logger.error("Category fetch rejected", status_code=response.status_code)
            raise PolicyFetchError(
                f"Category fetch returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            policies = [
                CategoryPolicy.from_payload(item, self.ordered_layout_ids)
                for item in unwrap_items(response.json())
            ]
        except (ValueError, ValidationError) as exc:
            raise PolicyFetchError(f"Malformed category response: {exc}") from exc

        logger.info(
            "Category policies fetched",
            count=len(policies),
            ordered_layout=[p.id for p in policies if p.requires_ordered_layout],
        )
        return policies
