"""
Records and policies as they arrive from the catalog API.

ResolvedRecord and CategoryPolicy are parsed straight from the backend's
camelCase JSON.  Both are frozen: a record's image list only changes by
building a new record through ``with_images()`` when a reviewer confirms
a new ordering.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ResolvedRecord(BaseModel):
    """One backend product matched from an identifier."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    id: str
    display_code: str | None = Field(default=None, alias="newProductCode")
    category_id: str | None = Field(default=None, alias="productCategoryId")
    images: tuple[str, ...] = Field(default=(), alias="productImages")

    shop_id: str | None = Field(default=None, alias="shopId")
    shop_name: str | None = Field(default=None, alias="shopName")
    category_name: str | None = Field(default=None, alias="productCategoryName")
    category_name_en: str | None = Field(default=None, alias="productCategoryNameEn")

    # grams / cm as stored by the backend
    weight: float | None = None
    length: float | None = None
    width: float | None = None
    height: float | None = None

    @field_validator("id", "display_code", "category_id", "shop_id", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("images", mode="before")
    @classmethod
    def _images_or_empty(cls, value: Any) -> Any:
        return () if value is None else value

    @property
    def code(self) -> str:
        """Display code, falling back to the backend ID."""
        return self.display_code or self.id

    @property
    def metadata(self) -> dict[str, Any]:
        """Backend fields this model does not name explicitly."""
        return dict(self.model_extra or {})

    def with_images(self, images: Iterable[str]) -> ResolvedRecord:
        return self.model_copy(update={"images": tuple(images)})


class CategoryPolicy(BaseModel):
    """Category metadata that drives classification and page layout."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    name: str = ""
    name_en: str | None = Field(default=None, alias="nameEn")
    requires_ordered_layout: bool = Field(default=False, alias="requiresOrderedLayout")
    # cm
    manufacturing_length: float | None = Field(default=None, alias="manufacturingLength")
    manufacturing_width: float | None = Field(default=None, alias="manufacturingWidth")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return value if isinstance(value, str) else str(value)

    @classmethod
    def from_payload(
        cls,
        payload: Mapping[str, Any],
        ordered_layout_ids: Iterable[str] = (),
    ) -> CategoryPolicy:
        """
        Build a policy from a backend category.

        Categories that do not carry ``requiresOrderedLayout`` get the flag
        from the configured list of ordered-layout category IDs.
        """
        data = dict(payload)
        if "requiresOrderedLayout" not in data and "requires_ordered_layout" not in data:
            data["requiresOrderedLayout"] = str(data.get("id")) in set(ordered_layout_ids)
        return cls.model_validate(data)

    @property
    def page_size_mm(self) -> tuple[float, float] | None:
        """(width, height) in mm; length maps to page height."""
        if not self.manufacturing_length or not self.manufacturing_width:
            return None
        return self.manufacturing_width * 10, self.manufacturing_length * 10


class CategoryPolicyTable:
    """
    Read-only snapshot of category policies keyed by category ID.

    Fetched once per job; later backend changes are not reflected.
    """

    def __init__(self, policies: Iterable[CategoryPolicy] = ()) -> None:
        self._by_id: dict[str, CategoryPolicy] = {p.id: p for p in policies}

    def get(self, category_id: str | None) -> CategoryPolicy | None:
        if category_id is None:
            return None
        return self._by_id.get(category_id)

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[CategoryPolicy]:
        return iter(self._by_id.values())

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._by_id
