"""Tests for the pure classify() decision."""

import pytest

from catalog_export.core.constants import Decision
from catalog_export.pipeline.classifier import classify
from catalog_export.pipeline.models import CategoryPolicy, CategoryPolicyTable

from tests.fakes import make_policy, make_record


@pytest.fixture
def policies():
    return CategoryPolicyTable([make_policy("1"), make_policy("3", ordered=True)])


@pytest.mark.parametrize(
    ("category_id", "expected"),
    [
        ("1", Decision.DIRECT_RENDER),
        ("3", Decision.REQUIRES_REVIEW),
        ("99", Decision.NO_CATEGORY),
        (None, Decision.NO_CATEGORY),
    ],
)
def test_decision_per_category(policies, category_id, expected):
    assert classify(make_record("A", category_id=category_id), policies) == expected


def test_is_deterministic(policies):
    record = make_record("A", category_id="3")

    assert {classify(record, policies) for _ in range(5)} == {Decision.REQUIRES_REVIEW}


class TestCategoryPolicyPayload:
    def test_explicit_flag_wins(self):
        policy = CategoryPolicy.from_payload({"id": 3, "requiresOrderedLayout": False}, ["3"])

        assert policy.id == "3"
        assert policy.requires_ordered_layout is False

    def test_flag_derived_from_configured_ids(self):
        ordered = CategoryPolicy.from_payload({"id": 4, "name": "日历"}, ["3", "4"])
        plain = CategoryPolicy.from_payload({"id": 5, "name": "海报"}, ["3", "4"])

        assert ordered.requires_ordered_layout is True
        assert plain.requires_ordered_layout is False

    def test_page_size_in_mm(self):
        policy = CategoryPolicy.from_payload(
            {"id": 1, "manufacturingLength": 29.7, "manufacturingWidth": 21.0}
        )

        assert policy.page_size_mm == pytest.approx((210.0, 297.0))
        assert CategoryPolicy(id="2").page_size_mm is None
