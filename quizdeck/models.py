"""
Card models consumed by the quiz selector.
"""

from __future__ import annotations

import re
import uuid
from datetime import date, datetime, timezone
from enum import IntEnum
from typing import Optional, Protocol, Set, runtime_checkable
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Regex for Kebab-case validation (e.g., "my-cool-tag", "learning-python-3")
KEBAB_CASE_REGEX_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


@runtime_checkable
class ReviewableCard(Protocol):
    """
    The read-only contract the quiz selector needs from a card.

    Implementations must also provide value equality, since decks use it to
    keep their membership duplicate-free.
    """

    def is_new(self) -> bool:
        ...

    def is_due(self, current_date: date) -> bool:
        ...


class CardState(IntEnum):
    """
    Scheduling state of a card's memory trace.
    """

    New = 0
    Learning = 1
    Review = 2
    Relearning = 3


class Card(BaseModel):
    """
    A flashcard together with the scheduling fields the selector reads.

    How `state` and `next_due_date` change after an answer is decided
    elsewhere; this model only reports them.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    uuid: UUID = Field(
        default_factory=uuid.uuid4,
        description="Unique UUIDv4 for the card. Auto-generated.",
    )
    front: str = Field(
        ...,
        min_length=1,
        max_length=1024,
        description="Question text.",
    )
    back: str = Field(
        ...,
        min_length=1,
        max_length=1024,
        description="Answer text.",
    )
    tags: Set[str] = Field(
        default_factory=set,
        description="Unique kebab-case tags.",
    )
    state: CardState = Field(
        default=CardState.New,
        description="The current scheduling state of the card.",
    )
    next_due_date: Optional[date] = Field(
        default=None,
        description="The next date the card is scheduled for review.",
    )
    added_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="UTC timestamp when card was first added.",
    )

    @field_validator("tags")
    @classmethod
    def validate_tags_kebab_case(cls, tags: Set[str]) -> Set[str]:
        """Ensure each tag matches the kebab-case pattern."""
        for tag in tags:
            if not re.match(KEBAB_CASE_REGEX_PATTERN, tag):
                raise ValueError(f"Tag '{tag}' is not in kebab-case.")
        return tags

    def is_new(self) -> bool:
        """True if the card has never been scheduled."""
        return self.state == CardState.New

    def is_due(self, current_date: date) -> bool:
        """
        True if the card's next review date is on or before `current_date`.

        A card without a next review date is never due.
        """
        if isinstance(current_date, datetime):
            current_date = current_date.date()
        if self.next_due_date is None:
            return False
        return self.next_due_date <= current_date

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Card):
            return NotImplemented
        return self.uuid == other.uuid

    def __hash__(self) -> int:
        return hash(self.uuid)
