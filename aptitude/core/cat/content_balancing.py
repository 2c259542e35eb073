"""
Content balancing for Computerized Adaptive Testing.

Keeps coverage of content areas (subjects, topics) even while items are chosen
for information: before ranking, the candidate pool is restricted to items
whose content tag has been administered the fewest times so far.

The restriction never stalls selection. If it would leave no candidates the
unrestricted pool is returned.

References:
    - Kingsbury, G.G., & Zara, A.R. (1989). Procedures for selecting items
      for computerized adaptive tests.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_TAG_FIELD = "content_tag"


def get_item_tag(item: Any, tag_field: str = DEFAULT_TAG_FIELD) -> Optional[str]:
    """
    Extract the content tag from an item.

    Works for attribute-style items (dataclasses, ORM rows) and plain
    mappings, and unwraps ``str``-backed enums.

    Args:
        item: Item-like object or mapping.
        tag_field: Name of the field holding the tag.

    Returns:
        Tag as a string, or None if the item has no tag.
    """
    if isinstance(item, dict):
        tag = item.get(tag_field)
    else:
        tag = getattr(item, tag_field, None)
    if tag is None:
        return None
    return tag.value if hasattr(tag, "value") else str(tag)


def track_content_coverage(
    items: Iterable[Any], tag_field: str = DEFAULT_TAG_FIELD
) -> Dict[str, int]:
    """
    Count administered items per content tag.

    Items without a tag are ignored.

    Args:
        items: Administered items or responses.
        tag_field: Name of the field holding the tag.

    Returns:
        Dict mapping tag to the number of administered items with that tag.
    """
    coverage: Dict[str, int] = {}
    for item in items:
        tag = get_item_tag(item, tag_field)
        if tag is not None:
            coverage[tag] = coverage.get(tag, 0) + 1
    return coverage


def balance_content_coverage(
    pool: Sequence[Any],
    used_items: Iterable[Any],
    tag_field: str = DEFAULT_TAG_FIELD,
) -> List[Any]:
    """
    Restrict the pool to items from the least-covered content tags.

    Usage counts are taken over ``used_items``; tags present in the pool but
    never used count as 0. Only items whose tag's count equals the minimum
    count over the pool's tags are kept.

    Args:
        pool: Candidate items.
        used_items: Items (or responses) already administered.
        tag_field: Name of the field holding the tag.

    Returns:
        The restricted candidate list, or the full pool when the restriction
        would be empty (e.g., no item in the pool carries a tag).
    """
    coverage = track_content_coverage(used_items, tag_field)

    pool_tags = {
        tag for tag in (get_item_tag(item, tag_field) for item in pool) if tag
    }
    if not pool_tags:
        return list(pool)

    min_count = min(coverage.get(tag, 0) for tag in pool_tags)
    balanced = [
        item
        for item in pool
        if get_item_tag(item, tag_field) in pool_tags
        and coverage.get(get_item_tag(item, tag_field), 0) == min_count
    ]

    if not balanced:
        return list(pool)

    logger.debug(
        f"Content balancing: restricting to tags with {min_count} uses "
        f"({len(balanced)} of {len(pool)} items)"
    )
    return balanced
