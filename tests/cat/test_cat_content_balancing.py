"""
Tests for content balancing.

Covers:
- Tag extraction from dataclasses, dicts and enums
- Coverage counting
- Restriction to the least-covered tags, with fallback to the full pool
"""

import enum

from aptitude.core.cat.content_balancing import (
    balance_content_coverage,
    get_item_tag,
    track_content_coverage,
)
from aptitude.core.cat.items import Item


class _Subject(str, enum.Enum):
    MATH = "math"


def _item(item_id, tag):
    return Item(id=item_id, difficulty=0.0, content_tag=tag)


class TestGetItemTag:
    def test_attribute_tag(self):
        assert get_item_tag(_item(1, "math")) == "math"

    def test_mapping_tag(self):
        assert get_item_tag({"id": 1, "content_tag": "art"}) == "art"

    def test_custom_field(self):
        assert get_item_tag({"id": 1, "subject_id": "bio"}, "subject_id") == "bio"

    def test_enum_unwrapped(self):
        assert get_item_tag({"content_tag": _Subject.MATH}) == "math"

    def test_missing_tag(self):
        assert get_item_tag(_item(1, None)) is None
        assert get_item_tag({"id": 1}) is None


class TestTrackContentCoverage:
    def test_counts_per_tag(self):
        items = [_item(1, "a"), _item(2, "a"), _item(3, "b"), _item(4, None)]
        assert track_content_coverage(items) == {"a": 2, "b": 1}

    def test_empty(self):
        assert track_content_coverage([]) == {}


class TestBalanceContentCoverage:
    def test_restricts_to_least_covered_tag(self):
        pool = [_item(1, "a"), _item(2, "b"), _item(3, "c"), _item(4, "c")]
        used = [_item(10, "a"), _item(11, "a"), _item(12, "b")]
        balanced = balance_content_coverage(pool, used)
        assert [item.id for item in balanced] == [3, 4]

    def test_ties_keep_every_least_covered_tag(self):
        pool = [_item(1, "a"), _item(2, "b"), _item(3, "c")]
        used = [_item(10, "a")]
        balanced = balance_content_coverage(pool, used)
        assert {item.content_tag for item in balanced} == {"b", "c"}

    def test_equal_coverage_keeps_all_tagged_items(self):
        pool = [_item(1, "a"), _item(2, "b")]
        assert balance_content_coverage(pool, []) == pool

    def test_untagged_pool_returned_unchanged(self):
        pool = [_item(1, None), _item(2, None)]
        assert balance_content_coverage(pool, [_item(10, "a")]) == pool

    def test_minimum_taken_over_pool_tags_only(self):
        """A used tag absent from the pool does not set the minimum."""
        pool = [_item(1, "a"), _item(2, "b")]
        used = [_item(10, "a"), _item(11, "b"), _item(12, "b")]
        balanced = balance_content_coverage(pool, used)
        assert [item.id for item in balanced] == [1]

    def test_works_with_mappings(self):
        pool = [{"id": 1, "subject_id": "x"}, {"id": 2, "subject_id": "y"}]
        used = [{"id": 9, "subject_id": "x"}]
        balanced = balance_content_coverage(pool, used, tag_field="subject_id")
        assert balanced == [{"id": 2, "subject_id": "y"}]
