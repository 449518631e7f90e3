"""
SuspensionGate — the single review slot of an export job.

Opening the gate parks one record at the current cursor position and
hands the reviewer a draft of its image ordering.  The draft can be
permuted (swap / move) but its entries are fixed.  Resolving the gate
either yields the record with the confirmed ordering or a cancellation.

The gate never touches the JobCursor; the orchestrator advances it once
the reviewed record has been rendered.
"""

from __future__ import annotations

import uuid
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass

from catalog_export.core.logging import get_logger
from catalog_export.pipeline.context import SuspensionState
from catalog_export.pipeline.errors import (
    InvalidOrderingError,
    InvalidTransitionError,
    SuspensionTokenError,
)
from catalog_export.pipeline.models import CategoryPolicy, ResolvedRecord

logger = get_logger(__name__)


@dataclass(frozen=True)
class GateResolution:
    """What the reviewer decided for the parked record."""

    cancelled: bool
    cursor_index: int
    record: ResolvedRecord | None = None
    policy: CategoryPolicy | None = None


def validate_ordering(original: Sequence[str], edited: Sequence[str]) -> list[str]:
    """Return ``edited`` as a list if it is a permutation of ``original``."""
    if Counter(original) != Counter(edited):
        missing = sorted(set(original) - set(edited))
        extra = sorted(set(edited) - set(original))
        raise InvalidOrderingError(
            "Edited ordering must contain exactly the original images",
            details={
                "expected": len(original),
                "received": len(edited),
                "missing": missing,
                "unexpected": extra,
            },
        )
    return list(edited)


class SuspensionGate:
    """At most one open suspension per job, so a single optional slot."""

    def __init__(self) -> None:
        self._slot: SuspensionState | None = None

    @property
    def is_open(self) -> bool:
        return self._slot is not None

    @property
    def current(self) -> SuspensionState | None:
        return self._slot

    def open(
        self,
        record: ResolvedRecord,
        policy: CategoryPolicy,
        cursor_index: int,
        *,
        job_id: str | None = None,
    ) -> SuspensionState:
        if self._slot is not None:
            raise InvalidTransitionError(
                "A suspension is already open",
                job_id=job_id,
                details={"open_token": self._slot.token},
            )
        self._slot = SuspensionState(
            token=uuid.uuid4().hex,
            record=record,
            policy=policy,
            cursor_index=cursor_index,
            draft=list(record.images),
        )
        logger.info(
            "Suspension opened",
            job_id=job_id,
            token=self._slot.token,
            record_id=record.id,
            cursor_index=cursor_index,
            images=len(record.images),
        )
        return self._slot

    # ─── Draft editing ─────────────────────────────────

    def swap(self, token: str, first: int, second: int) -> list[str]:
        """Exchange two draft positions."""
        state = self._require(token)
        draft = state.draft
        self._check_positions(draft, first, second)
        draft[first], draft[second] = draft[second], draft[first]
        return list(draft)

    def move(self, token: str, source: int, target: int) -> list[str]:
        """Take the image at ``source`` out and reinsert it at ``target``."""
        state = self._require(token)
        draft = state.draft
        self._check_positions(draft, source, target)
        image = draft.pop(source)
        draft.insert(target, image)
        return list(draft)

    # ─── Resolution ────────────────────────────────────

    def resolve(
        self,
        token: str,
        ordering: Sequence[str] | None = None,
        *,
        cancel: bool = False,
    ) -> GateResolution:
        """
        Consume the open suspension.

        With ``cancel`` the record is dropped; otherwise ``ordering`` (or the
        current draft when omitted) is validated and substituted into the record.
        A rejected ordering leaves the gate open.
        """
        state = self._require(token)

        if cancel:
            self._slot = None
            logger.info("Suspension cancelled", token=token, record_id=state.record.id)
            return GateResolution(cancelled=True, cursor_index=state.cursor_index)

        confirmed = validate_ordering(
            state.record.images,
            state.draft if ordering is None else ordering,
        )
        self._slot = None
        logger.info(
            "Suspension confirmed",
            token=token,
            record_id=state.record.id,
            reordered=tuple(confirmed) != state.record.images,
        )
        return GateResolution(
            cancelled=False,
            cursor_index=state.cursor_index,
            record=state.record.with_images(confirmed),
            policy=state.policy,
        )

    def clear(self) -> None:
        """Drop any open suspension without resolving it (job reset)."""
        self._slot = None

    # ─── Internal ──────────────────────────────────────

    def _require(self, token: str) -> SuspensionState:
        if self._slot is None:
            raise SuspensionTokenError("No suspension is open")
        if self._slot.token != token:
            raise SuspensionTokenError(
                "Suspension token does not match the open suspension",
                details={"token": token},
            )
        return self._slot

    @staticmethod
    def _check_positions(draft: list[str], *positions: int) -> None:
        for position in positions:
            if not 0 <= position < len(draft):
                raise InvalidOrderingError(
                    f"Position {position} is outside the image list",
                    details={"size": len(draft)},
                )
