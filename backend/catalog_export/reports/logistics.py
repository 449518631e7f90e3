"""
Logistics workbook for the freight forwarder's bulk-import template.

One row per resolved record, columns in the template's order.  Only a
handful of columns are filled from the record; the rest stay empty for
the operator to complete.
"""

from __future__ import annotations

import io
import re
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any

from openpyxl import Workbook

from catalog_export.core.config import settings
from catalog_export.core.logging import get_logger
from catalog_export.pipeline.collaborators import DownloadHandle
from catalog_export.pipeline.models import ResolvedRecord

logger = get_logger(__name__)

SHEET_TITLE = "物流信息"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
UNKNOWN_SHOP = "unknown-shop"
BATTERY_FREE = "不含电池"
BUNDLE_SLOTS = 25

BASE_COLUMNS = [
    "Fnsku",
    "seller sku",
    "产品英文名",
    "产品中文名",
    "产品描述",
    "申报价值",
    "重量",
    "长",
    "宽",
    "高",
    "海关编码",
    "原产地",
    "是否带电池",
    "颜色",
    "平台SKU(如有多个请用英文逗号隔开)",
    "规格型号",
    "图片URL",
    "备注",
    "是否组合[1为组合sku]",
]


def bundle_columns() -> list[str]:
    """组合sku1, 组合数量1, ... 组合sku25 (the last slot has no quantity column)."""
    columns: list[str] = []
    for slot in range(1, BUNDLE_SLOTS + 1):
        columns.append(f"组合sku{slot}")
        if slot < BUNDLE_SLOTS:
            columns.append(f"组合数量{slot}")
    return columns


COLUMNS = BASE_COLUMNS + bundle_columns()

_UNSAFE_FILENAME = re.compile(r'[\\/:*?"<>|]+')


def logistics_row(record: ResolvedRecord, declared_value: float) -> dict[str, Any]:
    code = record.display_code or ""
    return {
        "Fnsku": code,
        "seller sku": code,
        "产品英文名": record.category_name_en or "",
        "产品中文名": record.category_name or "",
        "申报价值": declared_value,
        # grams → kg
        "重量": record.weight / 1000 if record.weight else "",
        "长": record.length or "",
        "宽": record.width or "",
        "高": record.height or "",
        "是否带电池": BATTERY_FREE,
        "图片URL": record.images[0] if record.images else "",
    }


class LogisticsReportBuilder:
    """
    Builds the logistics workbook as an in-memory .xlsx download.

    Usage::

        handle = LogisticsReportBuilder().build(records)
        Path(handle.filename).write_bytes(handle.content)
    """

    def __init__(
        self,
        *,
        declared_value: float | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.declared_value = (
            settings.LOGISTICS_DECLARED_VALUE if declared_value is None else declared_value
        )
        self._clock = clock

    def build(self, records: Sequence[ResolvedRecord]) -> DownloadHandle:
        if not records:
            raise ValueError("cannot build a logistics report without records")

        workbook = Workbook()
        sheet = workbook.active
        sheet.title = SHEET_TITLE
        sheet.append(COLUMNS)
        for record in records:
            row = logistics_row(record, self.declared_value)
            sheet.append([row.get(column, "") for column in COLUMNS])

        buffer = io.BytesIO()
        workbook.save(buffer)
        filename = self.filename_for(records[0])
        logger.info("Logistics workbook written", filename=filename, rows=len(records))
        return DownloadHandle(filename=filename, content=buffer.getvalue(), media_type=XLSX_MEDIA_TYPE)

    def filename_for(self, first: ResolvedRecord) -> str:
        shop = first.shop_name or first.shop_id or UNKNOWN_SHOP
        shop = _UNSAFE_FILENAME.sub("-", shop).strip() or UNKNOWN_SHOP
        return f"{shop}_logistics_{self._clock():%Y%m%d%H%M}.xlsx"
