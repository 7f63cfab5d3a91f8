"""Database package for quizdeck.

Stores deck snapshots in DuckDB. Only DeckDatabase is exported as the
public API.
"""

from .database import DeckDatabase

__all__ = ["DeckDatabase"]
