"""
Item and response records exchanged with the CAT core.

Items come from the hosting application's item repository and are never
mutated by the core. Responses are append-only within a session.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Hashable, Mapping, Optional

from aptitude.core.cat.irt import DEFAULT_DISCRIMINATION, DEFAULT_GUESSING


@dataclass(frozen=True)
class Item:
    """A calibrated 3PL item as read from the item repository."""

    id: Hashable
    difficulty: float  # b parameter
    discrimination: float = DEFAULT_DISCRIMINATION  # a parameter
    guessing: float = DEFAULT_GUESSING  # c parameter
    content_tag: Optional[str] = None  # Content area / subject tag
    correct_answer: Optional[str] = None

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "Item":
        """
        Build an Item from a repository row.

        Missing discrimination/guessing fall back to the model defaults; the
        content tag is read from ``content_tag`` and then ``subject_id``.
        """
        discrimination = row.get("discrimination")
        guessing = row.get("guessing")
        content_tag = row.get("content_tag", row.get("subject_id"))
        return cls(
            id=row["id"],
            difficulty=float(row["difficulty"]),
            discrimination=(
                float(discrimination)
                if discrimination is not None
                else DEFAULT_DISCRIMINATION
            ),
            guessing=float(guessing) if guessing is not None else DEFAULT_GUESSING,
            content_tag=str(content_tag) if content_tag is not None else None,
            correct_answer=row.get("correct_answer"),
        )


@dataclass(frozen=True)
class Response:
    """Single item response recorded during a session."""

    item_id: Hashable
    is_correct: bool
    difficulty: float  # b parameter at answer time
    discrimination: float  # a parameter at answer time
    guessing: float  # c parameter at answer time
    content_tag: Optional[str] = None
    selected_answer: Optional[str] = None
    time_taken: float = 0.0  # Seconds
    timestamp: Optional[datetime] = None
