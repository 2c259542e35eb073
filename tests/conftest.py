"""
Pytest configuration and shared fixtures for testing.
"""
import random
from typing import Callable, List, Optional

import pytest

from aptitude.core.cat.items import Item, Response


def make_item(
    item_id: int,
    difficulty: float = 0.0,
    discrimination: float = 1.0,
    guessing: float = 0.25,
    content_tag: Optional[str] = None,
    correct_answer: str = "A",
) -> Item:
    """Build an Item with sensible defaults."""
    return Item(
        id=item_id,
        difficulty=difficulty,
        discrimination=discrimination,
        guessing=guessing,
        content_tag=content_tag,
        correct_answer=correct_answer,
    )


def make_response(
    item_id: int,
    is_correct: bool,
    difficulty: float = 0.0,
    discrimination: float = 1.0,
    guessing: float = 0.25,
    content_tag: Optional[str] = None,
    time_taken: float = 0.0,
) -> Response:
    """Build a Response with sensible defaults."""
    return Response(
        item_id=item_id,
        is_correct=is_correct,
        difficulty=difficulty,
        discrimination=discrimination,
        guessing=guessing,
        content_tag=content_tag,
        time_taken=time_taken,
    )


@pytest.fixture
def item_factory() -> Callable[..., Item]:
    return make_item


@pytest.fixture
def response_factory() -> Callable[..., Response]:
    return make_response


@pytest.fixture
def rng() -> random.Random:
    """Seeded Random instance for deterministic selection."""
    return random.Random(42)


@pytest.fixture
def graded_pool() -> List[Item]:
    """41 items with difficulty -2.0..2.0 in steps of 0.1, tagged by sign."""
    return [
        make_item(
            item_id=i + 1,
            difficulty=round(-2.0 + i * 0.1, 1),
            content_tag="math" if i % 2 == 0 else "science",
        )
        for i in range(41)
    ]
