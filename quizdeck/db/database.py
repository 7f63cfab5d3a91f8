"""
DuckDB storage for deck snapshots.

Decks are stored opaquely: one row per deck name holding the bytes produced by
quizdeck.snapshot, plus a few columns used for listing.
"""

import duckdb
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from ..deck import Deck
from ..exceptions import (
    DatabaseConnectionError,
    DeckAlreadyExistsError,
    DeckNotFoundError,
    DeckOperationError,
    SnapshotError,
)
from .. import snapshot
from .schema_manager import SchemaManager

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"


def _rows_to_dicts(cursor: duckdb.DuckDBPyConnection) -> List[Dict[str, Any]]:
    """Convert cursor results to list of dictionaries using column names."""
    rows = cursor.fetchall()
    if not rows:
        return []
    description = cursor.description
    if description is None:
        return []
    columns = [desc[0] for desc in description]
    return [dict(zip(columns, row, strict=True)) for row in rows]


class DeckDatabase:
    """
    Facade over the deck snapshot store.

    Owns the DuckDB connection and delegates table creation to a
    SchemaManager. Intended for use as a context manager.
    """

    _UPSERT_DECK_SQL = """
        INSERT INTO decks (name, description, card_count, snapshot, saved_at)
        VALUES ($1, $2, $3, $4, $5)
        ON CONFLICT (name) DO UPDATE SET
            description = EXCLUDED.description,
            card_count = EXCLUDED.card_count,
            snapshot = EXCLUDED.snapshot,
            saved_at = EXCLUDED.saved_at;
        """

    _INSERT_DECK_SQL = """
        INSERT INTO decks (name, description, card_count, snapshot, saved_at)
        VALUES ($1, $2, $3, $4, $5);
        """

    def __init__(self, db_path: Union[str, Path], read_only: bool = False):
        """
        Create a DeckDatabase backed by the given DuckDB path.

        Args:
            db_path (str | Path): Path to the database file. Use ':memory:' for an in-memory database.
            read_only (bool): If True, open the database in read-only mode.
        """
        self.is_memory: bool = (
            isinstance(db_path, str) and db_path.lower() == MEMORY_DB
        )
        self.db_path_resolved: Path = (
            Path(MEMORY_DB) if self.is_memory else Path(db_path).resolve()
        )
        self.read_only: bool = read_only
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        self._created_store = False
        self._schema_manager = SchemaManager(self)
        logger.info(f"DeckDatabase initialized for DB at: {self.db_path_resolved}")

    def get_connection(self) -> duckdb.DuckDBPyConnection:
        """
        Return the open connection, connecting on first use.

        A deck store counts as newly created when it is in memory or its file
        did not exist before connecting.

        Raises:
            DatabaseConnectionError: If DuckDB cannot open the store.
        """
        if self._connection is not None:
            return self._connection
        if self.is_memory:
            self._created_store = True
        else:
            self._created_store = not self.db_path_resolved.exists()
            if not self.read_only:
                self.db_path_resolved.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._connection = duckdb.connect(
                database=str(self.db_path_resolved), read_only=self.read_only
            )
        except duckdb.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to database: {e}", original_exception=e
            ) from e
        logger.info(f"Opened deck store at {self.db_path_resolved}.")
        return self._connection

    def close_connection(self) -> None:
        """Close the connection; the next call to get_connection reopens it."""
        if self._connection is None:
            return
        try:
            self._connection.close()
            logger.info(f"Deck store at {self.db_path_resolved} closed.")
        except duckdb.Error as e:
            logger.error(f"Error closing the deck store: {e}")
        finally:
            self._connection = None

    def __enter__(self) -> "DeckDatabase":
        """
        Open the connection and create the decks table if a new writable
        store was created.
        """
        self.get_connection()
        if self._created_store and not self.read_only:
            self.initialize_schema()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close_connection()

    def initialize_schema(self, force_recreate_tables: bool = False) -> None:
        self._schema_manager.initialize_schema(
            force_recreate_tables=force_recreate_tables
        )

    @contextmanager
    def transaction(self, context: str) -> Iterator[duckdb.DuckDBPyConnection]:
        """
        Yield a cursor inside a transaction that commits on success.

        On error the transaction is rolled back on the same cursor and the
        error is re-raised. A failing rollback is logged, never raised.
        """
        cursor = self.get_connection().cursor()
        try:
            cursor.begin()
            yield cursor
            cursor.commit()
        except Exception:
            try:
                cursor.rollback()
                logger.info(f"Transaction rolled back due to {context} error.")
            except duckdb.Error as rb_err:
                logger.error(
                    f"Failed to rollback transaction during {context} error: {rb_err}"  # noqa: E501
                )
            raise
        finally:
            cursor.close()

    def _require_writable(self, action: str) -> None:
        if self.read_only:
            raise DeckOperationError(f"Cannot {action} in read-only mode.")

    # --- Deck Operations ---

    def save_deck(self, deck: Deck, overwrite: bool = True) -> None:
        """
        Store a snapshot of `deck` under its name.

        Parameters:
            deck (Deck): The deck to store. Its current card order is kept.
            overwrite (bool): Replace an existing deck with the same name.

        Raises:
            DeckAlreadyExistsError: If `overwrite` is False and the name is taken.
            DeckOperationError: If the snapshot or the database write fails.
        """
        self._require_writable("save decks")
        if not overwrite and self.deck_exists(deck.name):
            raise DeckAlreadyExistsError(
                f"Deck '{deck.name}' already exists."
            )

        try:
            data = snapshot.dump_deck(deck)
        except SnapshotError as e:
            raise DeckOperationError(
                f"Failed to prepare deck '{deck.name}' for storage.",
                original_exception=e,
            ) from e

        params = (
            deck.name,
            deck.description,
            deck.size(),
            data,
            datetime.now(timezone.utc).replace(tzinfo=None),
        )
        sql = self._UPSERT_DECK_SQL if overwrite else self._INSERT_DECK_SQL
        try:
            with self.transaction("deck save") as cursor:
                cursor.execute(sql, params)
        except duckdb.ConstraintException as e:
            raise DeckAlreadyExistsError(
                f"Deck '{deck.name}' already exists.", original_exception=e
            ) from e
        except duckdb.Error as e:
            logger.error(f"Error saving deck '{deck.name}': {e}")
            raise DeckOperationError(
                f"Failed to save deck '{deck.name}': {e}", original_exception=e
            ) from e
        logger.info(f"Saved deck '{deck.name}' with {deck.size()} cards.")

    def load_deck(self, name: str) -> Deck:
        """
        Restore the deck stored under `name`.

        Raises:
            DeckNotFoundError: If no deck is stored under `name`.
            DeckOperationError: If the query fails or the snapshot is invalid.
        """
        conn = self.get_connection()
        sql = "SELECT snapshot FROM decks WHERE name = $1;"
        try:
            row = conn.execute(sql, (name,)).fetchone()
        except duckdb.Error as e:
            logger.error(f"Error loading deck '{name}': {e}")
            raise DeckOperationError(
                f"Failed to load deck '{name}': {e}", original_exception=e
            ) from e

        if row is None:
            raise DeckNotFoundError(f"Deck '{name}' not found.")

        try:
            deck = snapshot.load_deck(bytes(row[0]))
        except SnapshotError as e:
            raise DeckOperationError(
                f"Stored snapshot for deck '{name}' is invalid.",
                original_exception=e,
            ) from e
        logger.debug(f"Loaded deck '{name}' with {deck.size()} cards.")
        return deck

    def delete_deck(self, name: str) -> bool:
        """
        Delete the deck stored under `name`.

        Returns:
            bool: True if a deck was deleted, False if none was stored.

        Raises:
            DeckOperationError: If in read-only mode or the delete fails.
        """
        self._require_writable("delete decks")
        sql = "DELETE FROM decks WHERE name = $1 RETURNING name;"
        try:
            with self.transaction("deck delete") as cursor:
                deleted = cursor.execute(sql, (name,)).fetchall()
        except duckdb.Error as e:
            logger.error(f"Failed to delete deck '{name}': {e}")
            raise DeckOperationError(
                f"Failed to delete deck '{name}': {e}", original_exception=e
            ) from e
        if deleted:
            logger.info(f"Deleted deck '{name}'.")
        return bool(deleted)

    def deck_exists(self, name: str) -> bool:
        conn = self.get_connection()
        try:
            row = conn.execute(
                "SELECT COUNT(*) FROM decks WHERE name = $1;", (name,)
            ).fetchone()
        except duckdb.Error as e:
            raise DeckOperationError(
                f"Failed to look up deck '{name}': {e}", original_exception=e
            ) from e
        return bool(row and row[0])

    def get_deck_names(self) -> List[str]:
        """
        Return the stored deck names in ascending order.

        Raises:
            DeckOperationError: If a database error occurs.
        """
        return [row["name"] for row in self.get_deck_summaries()]

    def get_deck_summaries(self) -> List[Dict[str, Any]]:
        """
        Return name, description, card count and save time for each stored
        deck, ordered by name.

        Raises:
            DeckOperationError: If a database error occurs.
        """
        conn = self.get_connection()
        sql = (
            "SELECT name, description, card_count, saved_at "
            "FROM decks ORDER BY name;"
        )
        try:
            cursor = conn.execute(sql)
            return _rows_to_dicts(cursor)
        except duckdb.Error as e:
            logger.error(
                f"Could not fetch deck names due to a database error: {e}"
            )
            raise DeckOperationError(
                "Could not fetch deck names.", original_exception=e
            ) from e
