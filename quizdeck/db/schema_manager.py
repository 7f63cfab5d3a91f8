import duckdb
import logging
from typing import TYPE_CHECKING

from ..exceptions import DatabaseConnectionError, SchemaInitializationError

if TYPE_CHECKING:
    from .database import DeckDatabase

logger = logging.getLogger(__name__)

DB_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS decks (
    name VARCHAR PRIMARY KEY,
    description VARCHAR NOT NULL DEFAULT '',
    card_count INTEGER NOT NULL,
    snapshot BLOB NOT NULL,
    saved_at TIMESTAMP NOT NULL
);
"""


class SchemaManager:
    """Creates the decks table for a DeckDatabase."""

    def __init__(self, database: "DeckDatabase"):
        self._db = database

    def initialize_schema(self, force_recreate_tables: bool = False) -> None:
        """
        Initializes the database schema in a transaction. Skipped in read-only
        mode unless the database is in memory. `force_recreate_tables` drops
        the decks table first, deleting every stored deck.
        """
        if self._handle_read_only_initialization(force_recreate_tables):
            return

        location = self._db.db_path_resolved
        try:
            with self._db.transaction("schema initialization") as cursor:
                if force_recreate_tables:
                    logger.warning(
                        f"Forcing table recreation for {location}. "
                        "ALL STORED DECKS WILL BE LOST."
                    )
                    cursor.execute("DROP TABLE IF EXISTS decks CASCADE;")
                cursor.execute(DB_SCHEMA_SQL)
        except duckdb.Error as e:
            logger.error(f"Error initializing database schema at {location}: {e}")
            raise SchemaInitializationError(
                f"Failed to initialize schema: {e}", original_exception=e
            ) from e
        logger.info(f"Deck table at {location} is ready.")

    def _handle_read_only_initialization(
        self, force_recreate_tables: bool
    ) -> bool:
        """Returns True if initialization should be skipped for a read-only DB."""
        if self._db.read_only:
            if force_recreate_tables:
                raise DatabaseConnectionError(
                    "Cannot force_recreate_tables in read-only mode."
                )
            if not self._db.is_memory:
                logger.warning(
                    "Attempting to initialize schema in read-only mode. Skipping."
                )
                return True
        return False
