"""PolicyClassifier — decides how one resolved record enters the render stage."""

from __future__ import annotations

from catalog_export.core.constants import Decision
from catalog_export.pipeline.models import CategoryPolicyTable, ResolvedRecord


def classify(record: ResolvedRecord, policies: CategoryPolicyTable) -> Decision:
    """
    Pure function of the record and the policy snapshot.

    NO_CATEGORY when the record's category does not resolve, REQUIRES_REVIEW
    exactly when the category's ordered-layout flag is set, DIRECT_RENDER
    otherwise.
    """
    policy = policies.get(record.category_id)
    if policy is None:
        return Decision.NO_CATEGORY
    if policy.requires_ordered_layout:
        return Decision.REQUIRES_REVIEW
    return Decision.DIRECT_RENDER
