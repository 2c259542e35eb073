"""
Item selection for Computerized Adaptive Testing.

Three interchangeable strategies choose the next item from the unused part of
the pool:

    maximum_information: rank by 3PL Fisher information at the current theta
    difficulty_matching: rank by |b - theta| (closest first)
    random:              uniform over all unused items (interest discovery)

For the two ranked strategies, exposure control samples uniformly from the top
``ceil(n * randomness)`` candidates instead of always taking the best item, so
sequences are not deterministic and cannot be memorized.

Selection pipeline:
1. Filter out already-administered items
2. Optionally apply content balancing (least-covered content tags)
3. Rank the remaining candidates by the strategy's criterion
4. Apply randomesque exposure control over the top slice
5. Return the selected item, or None when nothing is left

References:
    - Lord, F. M. (1980). Applications of item response theory to practical
      testing problems.
    - Kingsbury, G.G., & Zara, A.R. (1989). Procedures for selecting items
      for computerized adaptive tests.
"""

import logging
import math
import random
from dataclasses import dataclass
from typing import (
    Any,
    Collection,
    Hashable,
    Iterable,
    List,
    Optional,
    Sequence,
)

from aptitude.core.cat.content_balancing import (
    DEFAULT_TAG_FIELD,
    balance_content_coverage,
    get_item_tag,
)
from aptitude.core.cat.irt import information_3pl
from aptitude.core.cat.items import Item
from aptitude.core.config import settings
from libs.domain_types import SelectionMethod

logger = logging.getLogger(__name__)


@dataclass
class SelectionOptions:
    """Per-call selection settings.

    ``randomness`` defaults to settings.CAT_SELECTION_RANDOMNESS when None.
    Values outside (0, 1) disable exposure control and the top-ranked item is
    returned.
    """

    method: SelectionMethod = SelectionMethod.MAXIMUM_INFORMATION
    randomness: Optional[float] = None
    content_balancing: bool = False
    tag_field: str = DEFAULT_TAG_FIELD


@dataclass
class ItemCandidate:
    """An item with the value it was ranked by."""

    item: Item
    score: float


def filter_pool(
    pool: Iterable[Item],
    min_difficulty: Optional[float] = None,
    max_difficulty: Optional[float] = None,
    content_tags: Optional[Collection[str]] = None,
) -> List[Item]:
    """
    Repository-style pool filter by difficulty window and content tag.

    Args:
        pool: Items to filter.
        min_difficulty: Inclusive lower bound on b, or None.
        max_difficulty: Inclusive upper bound on b, or None.
        content_tags: Allowed tags, or None for all.

    Returns:
        Items satisfying every given constraint, in pool order.
    """
    allowed = set(content_tags) if content_tags is not None else None
    filtered = []
    for item in pool:
        if min_difficulty is not None and item.difficulty < min_difficulty:
            continue
        if max_difficulty is not None and item.difficulty > max_difficulty:
            continue
        if allowed is not None and get_item_tag(item) not in allowed:
            continue
        filtered.append(item)
    return filtered


def select_next_question(
    theta: float,
    pool: Sequence[Item],
    used_ids: Collection[Hashable],
    options: Optional[SelectionOptions] = None,
    rng: Optional[random.Random] = None,
    administered: Sequence[Any] = (),
) -> Optional[Item]:
    """
    Select the next item for the current ability estimate.

    Args:
        theta: Current ability estimate.
        pool: Candidate items.
        used_ids: Identifiers of items already administered in this session.
        options: Strategy, randomness and content balancing settings.
        rng: Optional Random instance for deterministic testing.
        administered: Items or responses already administered; only consulted
            when content balancing is enabled.

    Returns:
        An unused Item from the pool, or None if no unused item remains.
    """
    options = options or SelectionOptions()
    randomness = (
        settings.CAT_SELECTION_RANDOMNESS
        if options.randomness is None
        else options.randomness
    )
    rng = rng or random.Random()

    used = set(used_ids)
    unused = [item for item in pool if item.id not in used]

    if not unused:
        logger.warning(
            f"No unused items available. Pool size: {len(pool)}, "
            f"used: {len(used)}"
        )
        return None

    if options.content_balancing:
        unused = balance_content_coverage(unused, administered, options.tag_field)

    if options.method == SelectionMethod.RANDOM:
        selected = rng.choice(unused)
        logger.debug(f"Item selection: random, selected {selected.id}")
        return selected

    if options.method == SelectionMethod.DIFFICULTY_MATCHING:
        candidates = [
            ItemCandidate(item=item, score=abs(item.difficulty - theta))
            for item in unused
        ]
        candidates.sort(key=lambda c: c.score)
    else:
        candidates = [
            ItemCandidate(
                item=item,
                score=information_3pl(
                    theta, item.difficulty, item.discrimination, item.guessing
                ),
            )
            for item in unused
        ]
        candidates.sort(key=lambda c: c.score, reverse=True)

    selected_candidate = _apply_exposure_control(candidates, randomness, rng)

    logger.debug(
        f"Item selection: method={options.method.value}, theta={theta:.3f}, "
        f"eligible={len(candidates)}, selected {selected_candidate.item.id} "
        f"(b={selected_candidate.item.difficulty:.2f}, "
        f"score={selected_candidate.score:.4f})"
    )

    return selected_candidate.item


def select_initial_question(
    pool: Sequence[Item],
    target_difficulty: float = 0.0,
    used_ids: Optional[Collection[Hashable]] = None,
    rng: Optional[random.Random] = None,
    k: Optional[int] = None,
) -> Optional[Item]:
    """
    Select the first item before a reliable ability estimate exists.

    Picks uniformly among the ``k`` unused items whose difficulty is closest
    to ``target_difficulty`` (default settings.CAT_INITIAL_CANDIDATES).

    Returns:
        The selected Item, or None for an empty (or fully used) pool.
    """
    if k is None:
        k = settings.CAT_INITIAL_CANDIDATES
    used = set(used_ids or ())
    unused = [item for item in pool if item.id not in used]
    if not unused:
        logger.warning("No items available for initial selection")
        return None

    closest = sorted(unused, key=lambda item: abs(item.difficulty - target_difficulty))
    top_k = closest[: max(1, min(k, len(closest)))]
    return (rng or random).choice(top_k)


def _apply_exposure_control(
    candidates: List[ItemCandidate],
    randomness: float,
    rng: random.Random,
) -> ItemCandidate:
    """
    Randomesque exposure control over a ranked candidate list.

    Samples uniformly from the top ``max(1, ceil(n * randomness))`` candidates
    when ``0 < randomness < 1``; otherwise returns the top-ranked candidate.

    Args:
        candidates: Candidates sorted best-first.
        randomness: Fraction of the ranked list to sample from.
        rng: Random instance.

    Returns:
        The selected ItemCandidate.
    """
    if 0.0 < randomness < 1.0:
        top_n = max(1, math.ceil(len(candidates) * randomness))
        return rng.choice(candidates[:top_n])
    return candidates[0]
