"""Quizdeck - Flashcard decks with a quiz selection engine."""

from .models import Card, CardState, ReviewableCard
from .constants import DEFAULT_MAX_NEW_CARDS
from .selector import QuizQueueTable, QuizSelector, QuizSelectorConfig
from .deck import AdmissionPolicy, Deck
from .snapshot import dump_deck, load_deck
from .db import DeckDatabase

__all__ = [
    "Card",
    "CardState",
    "ReviewableCard",
    "DEFAULT_MAX_NEW_CARDS",
    "QuizQueueTable",
    "QuizSelector",
    "QuizSelectorConfig",
    "AdmissionPolicy",
    "Deck",
    "dump_deck",
    "load_deck",
    "DeckDatabase",
]
