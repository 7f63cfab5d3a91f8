"""
Defines the Deck, an ordered and duplicate-free collection of cards with the
quiz selection entry point.
"""

from __future__ import annotations

import copy
import datetime
import logging
import threading
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from .exceptions import InvalidSelectionArgumentError
from .models import Card
from .selector import QuizQueueTable, QuizSelector

logger = logging.getLogger(__name__)


class AdmissionPolicy(str, Enum):
    """
    Rule applied by Deck.add_card.

    REQUIRE_EXISTING is the legacy behaviour kept for compatibility: a card
    is appended only when an equal card is already in the deck, so a deck
    never grows past the cards it was built with. REJECT_DUPLICATES is the
    set-like insert: a card is appended only when no equal card is present.
    """

    REQUIRE_EXISTING = "require_existing"
    REJECT_DUPLICATES = "reject_duplicates"


class Deck(BaseModel):
    """
    Represents a named collection of flashcards.

    Two decks compare equal when their names and sizes are equal; card
    contents are not compared.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    name: str = Field(..., min_length=1, description="The name of the deck.")
    description: str = Field(
        default="",
        description="A short note on what this deck contains.",
    )
    date_of_creation: datetime.date = Field(
        default_factory=datetime.date.today,
        frozen=True,
        description="Date the deck was created. Read-only.",
    )
    cards: List[Card] = Field(
        default_factory=list, description="The cards in the deck, in order."
    )
    admission_policy: AdmissionPolicy = Field(
        default=AdmissionPolicy.REQUIRE_EXISTING,
        description="Rule applied when adding cards.",
    )

    _lock: threading.RLock = PrivateAttr(default_factory=threading.RLock)
    _selector: QuizSelector = PrivateAttr(default_factory=QuizSelector)

    @field_validator("cards")
    @classmethod
    def validate_cards_unique(cls, cards: List[Card]) -> List[Card]:
        """Ensure no two cards in the deck are equal."""
        seen = set()
        for card in cards:
            if card in seen:
                raise ValueError(f"Duplicate card '{card.uuid}' in deck.")
            seen.add(card)
        return cards

    def __str__(self) -> str:
        return f"Deck has name: {self.name}, containing {self.size()} cards"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Deck):
            return NotImplemented
        return self.name == other.name and self.size() == other.size()

    __hash__ = None  # type: ignore[assignment]

    def __deepcopy__(self, memo: Optional[dict] = None) -> Deck:
        """Copies fields and selector; the copy gets its own lock."""
        with self._lock:
            state = copy.deepcopy(dict(self.__dict__), memo)
            copied = type(self).model_construct(
                _fields_set=set(self.model_fields_set), **state
            )
            copied._selector = copy.deepcopy(self._selector, memo)
        return copied

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, card: object) -> bool:
        return self.contains(card)

    def add_card(self, card: Card) -> bool:
        """
        Adds a card according to the deck's admission policy.

        Returns:
            True if the card was appended, False otherwise.
        """
        with self._lock:
            present = self.contains(card)
            if self.admission_policy is AdmissionPolicy.REQUIRE_EXISTING:
                admitted = present
                if not admitted:
                    logger.warning(
                        f"Deck '{self.name}' rejected card {card!r}: "
                        "require_existing policy only admits cards already present."
                    )
            else:
                admitted = not present
                if not admitted:
                    logger.debug(
                        f"Deck '{self.name}' already contains card {card!r}."
                    )
            if admitted:
                self.cards.append(card)
            return admitted

    def contains(self, card: object) -> bool:
        """True if an equal card is in the deck."""
        return card in self.cards

    def remove_card(self, card: Card) -> bool:
        """
        Removes the first card equal to `card`.

        Returns:
            True if a card was removed, False if none was found.
        """
        with self._lock:
            try:
                self.cards.remove(card)
            except ValueError:
                return False
            return True

    def size(self) -> int:
        """Number of cards currently in the deck."""
        return len(self.cards)

    def use_selector(self, selector: QuizSelector) -> None:
        """Replaces the selector used by select_for_quiz when none is given."""
        self._selector = selector

    def select_for_quiz(
        self,
        max_new_cards: int,
        current_date: datetime.date,
        selector: Optional[QuizSelector] = None,
    ) -> QuizQueueTable:
        """
        Returns the cards to quiz on `current_date` as a QuizQueueTable.

        The deck's card order is shuffled in place as a side effect;
        membership is unchanged.

        Raises:
            InvalidSelectionArgumentError: If `max_new_cards` is missing or
                negative, or `current_date` is not a date.
        """
        if max_new_cards is None:
            raise InvalidSelectionArgumentError(
                "max_new_cards must be a non-negative integer, got None."
            )
        selector = selector or self._selector
        with self._lock:
            logger.info(
                f"Selecting quiz cards from deck '{self.name}' "
                f"({self.size()} cards, max {max_new_cards} new)."
            )
            return selector.select(self.cards, max_new_cards, current_date)
