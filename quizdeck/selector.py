# quizdeck/selector.py

"""
Defines the QuizSelector, which decides which cards are shown in a study
session and partitions them into presentation queues.
"""

import datetime
import logging
import random
from typing import List, MutableSequence, NamedTuple, Optional

from pydantic import BaseModel, Field

from .constants import DEFAULT_MAX_NEW_CARDS
from .exceptions import InvalidSelectionArgumentError
from .models import ReviewableCard

logger = logging.getLogger(__name__)


class QuizQueueTable(NamedTuple):
    """
    The three ordered queues produced by one selection call.

    Indexable as a triple: ``table[0]`` is the due queue, ``table[1]`` the
    repeat queue and ``table[2]`` the introduction queue.
    """

    due_queue: List[ReviewableCard]
    repeat_queue: List[ReviewableCard]
    introduction_queue: List[ReviewableCard]


class QuizSelectorConfig(BaseModel):
    """Configuration for the QuizSelector."""

    max_new_cards: int = Field(default=DEFAULT_MAX_NEW_CARDS, ge=0)
    seed: Optional[int] = None


class QuizSelector:
    """
    Shuffles a card sequence in place and splits it into a QuizQueueTable.

    New cards compete for a bounded number of introduction slots; due cards
    are always selected. The random source is injectable so that tests can
    pin the shuffle.
    """

    def __init__(
        self,
        config: Optional[QuizSelectorConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        if config is None:
            config = QuizSelectorConfig()
        self.config = config
        self.rng = rng if rng is not None else random.Random(config.seed)

    def _validate_arguments(
        self, max_new_cards: object, current_date: object
    ) -> None:
        """Raises InvalidSelectionArgumentError for out-of-domain inputs."""
        if isinstance(max_new_cards, bool) or not isinstance(max_new_cards, int):
            raise InvalidSelectionArgumentError(
                f"max_new_cards must be an integer, got {max_new_cards!r}."
            )
        if max_new_cards < 0:
            raise InvalidSelectionArgumentError(
                f"max_new_cards must be non-negative, got {max_new_cards}."
            )
        if not isinstance(current_date, datetime.date):
            raise InvalidSelectionArgumentError(
                f"current_date must be a date, got {current_date!r}."
            )

    def shuffle(self, cards: MutableSequence[ReviewableCard]) -> None:
        """Permutes `cards` in place, uniformly at random."""
        self.rng.shuffle(cards)

    def select(
        self,
        cards: MutableSequence[ReviewableCard],
        max_new_cards: Optional[int] = None,
        current_date: Optional[datetime.date] = None,
    ) -> QuizQueueTable:
        """
        Builds the queues for a study session on `current_date`.

        Args:
            cards: The deck's own card storage. It is shuffled in place; no
                card is added or removed.
            max_new_cards: Cap on new cards admitted. Falls back to the
                configured value when omitted.
            current_date: The date the session is built for.

        Returns:
            A fresh QuizQueueTable. The repeat queue is always empty.

        Raises:
            InvalidSelectionArgumentError: If `max_new_cards` is negative or
                not an integer, or `current_date` is not a date.
        """
        if max_new_cards is None:
            max_new_cards = self.config.max_new_cards
        self._validate_arguments(max_new_cards, current_date)
        if isinstance(current_date, datetime.datetime):
            current_date = current_date.date()

        table = QuizQueueTable([], [], [])
        self.shuffle(cards)

        new_cards_admitted = 0
        for card in cards:
            # Newness is checked before due-ness: a new card that is also
            # due is dropped once the cap is reached, never demoted.
            if card.is_new():
                if new_cards_admitted < max_new_cards:
                    table.due_queue.append(card)
                    table.introduction_queue.append(card)
                    new_cards_admitted += 1
            elif card.is_due(current_date):
                table.due_queue.append(card)

        logger.debug(
            f"Selected {len(table.due_queue)} cards for {current_date} "
            f"({new_cards_admitted} new, cap {max_new_cards}) "
            f"from {len(cards)} candidates."
        )
        return table
