"""
Opaque snapshot and restore of a Deck.

Callers store the bytes wherever they like; restoring re-validates the deck so
a restored deck satisfies the same invariants as one built in memory.
"""

import logging
from typing import Union

from pydantic import ValidationError

from .deck import Deck
from .exceptions import SnapshotError

logger = logging.getLogger(__name__)


def dump_deck(deck: Deck) -> bytes:
    """
    Serialize a deck, including its cards in their current order.

    Raises:
        SnapshotError: If the deck cannot be serialized.
    """
    try:
        data = deck.model_dump_json().encode("utf-8")
    except (ValueError, TypeError) as e:
        raise SnapshotError(
            f"Failed to snapshot deck '{deck.name}': {e}", original_exception=e
        ) from e
    logger.debug(f"Snapshotted deck '{deck.name}' ({len(data)} bytes).")
    return data


def load_deck(data: Union[bytes, str]) -> Deck:
    """
    Restore a deck from a snapshot produced by dump_deck.

    Raises:
        SnapshotError: If the snapshot is malformed or describes a deck that
            violates the deck invariants (e.g. duplicate cards).
    """
    try:
        deck = Deck.model_validate_json(data)
    except ValidationError as e:
        logger.error(f"Could not restore deck snapshot: {e}")
        raise SnapshotError(
            f"Invalid deck snapshot: {e}", original_exception=e
        ) from e
    logger.debug(f"Restored deck '{deck.name}' with {deck.size()} cards.")
    return deck
