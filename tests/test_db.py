import pytest
from pathlib import Path
from datetime import date
from unittest.mock import MagicMock, patch

import duckdb

from quizdeck.db import DeckDatabase
from quizdeck.deck import Deck
from quizdeck.exceptions import (
    DatabaseConnectionError,
    DeckAlreadyExistsError,
    DeckNotFoundError,
    DeckOperationError,
    SchemaInitializationError,
)


class TestDeckDatabaseLifecycle:
    def test_memory_path_is_recognised(self):
        db = DeckDatabase(":memory:")
        assert str(db.db_path_resolved) == ":memory:"
        assert db.read_only is False

    def test_file_path_is_resolved(self, tmp_path: Path):
        db = DeckDatabase(tmp_path / "sub" / "decks.db")
        assert db.db_path_resolved.is_absolute()

    def test_context_manager_initializes_new_database(self, tmp_path: Path):
        db_path = tmp_path / "fresh.db"
        with DeckDatabase(db_path) as db:
            assert db.get_deck_names() == []
        assert db_path.exists()

    def test_initialize_schema_is_idempotent(self, initialized_db_manager):
        initialized_db_manager.initialize_schema()
        assert initialized_db_manager.get_deck_names() == []

    def test_force_recreate_drops_stored_decks(
        self, initialized_db_manager, scenario_deck
    ):
        initialized_db_manager.save_deck(scenario_deck)
        initialized_db_manager.initialize_schema(force_recreate_tables=True)
        assert initialized_db_manager.get_deck_names() == []


class TestDeckOperations:
    def test_save_and_load(self, initialized_db_manager, scenario_deck):
        initialized_db_manager.save_deck(scenario_deck)

        loaded = initialized_db_manager.load_deck("Scenario")

        assert loaded == scenario_deck
        assert loaded.cards == scenario_deck.cards
        assert loaded.date_of_creation == date(2024, 1, 1)

    def test_save_overwrites_by_default(
        self, initialized_db_manager, scenario_deck, scenario_cards
    ):
        initialized_db_manager.save_deck(scenario_deck)
        scenario_deck.remove_card(scenario_cards["E"])
        scenario_deck.description = "Trimmed"
        initialized_db_manager.save_deck(scenario_deck)

        loaded = initialized_db_manager.load_deck("Scenario")
        assert loaded.size() == 4
        assert loaded.description == "Trimmed"
        assert initialized_db_manager.get_deck_names() == ["Scenario"]

    def test_save_without_overwrite_rejects_existing_name(
        self, initialized_db_manager, scenario_deck
    ):
        initialized_db_manager.save_deck(scenario_deck)
        with pytest.raises(DeckAlreadyExistsError):
            initialized_db_manager.save_deck(Deck(name="Scenario"), overwrite=False)
        assert initialized_db_manager.load_deck("Scenario").size() == 5

    def test_save_without_overwrite_accepts_new_name(self, initialized_db_manager):
        initialized_db_manager.save_deck(Deck(name="Fresh"), overwrite=False)
        assert initialized_db_manager.deck_exists("Fresh")

    def test_load_missing_deck_raises(self, initialized_db_manager):
        with pytest.raises(DeckNotFoundError, match="not found"):
            initialized_db_manager.load_deck("Nope")

    def test_delete_deck(self, initialized_db_manager, scenario_deck):
        initialized_db_manager.save_deck(scenario_deck)

        assert initialized_db_manager.delete_deck("Scenario") is True
        assert initialized_db_manager.deck_exists("Scenario") is False
        assert initialized_db_manager.delete_deck("Scenario") is False

    def test_deck_names_are_sorted(self, initialized_db_manager):
        for name in ["Zulu", "alpha", "Mike"]:
            initialized_db_manager.save_deck(Deck(name=name))
        assert initialized_db_manager.get_deck_names() == sorted(
            ["Zulu", "alpha", "Mike"]
        )

    def test_deck_summaries(self, initialized_db_manager, scenario_deck):
        initialized_db_manager.save_deck(scenario_deck)

        (summary,) = initialized_db_manager.get_deck_summaries()

        assert summary["name"] == "Scenario"
        assert summary["card_count"] == 5
        assert summary["description"] == scenario_deck.description
        assert summary["saved_at"] is not None

    def test_corrupt_snapshot_raises(self, initialized_db_manager):
        conn = initialized_db_manager.get_connection()
        conn.execute(
            "INSERT INTO decks VALUES ('Broken', '', 0, $1, now()::TIMESTAMP);",
            (b"garbage",),
        )
        with pytest.raises(DeckOperationError, match="invalid"):
            initialized_db_manager.load_deck("Broken")


class TestReadOnlyMode:
    def test_write_operations_rejected(self, tmp_path: Path, scenario_deck):
        db_path = tmp_path / "ro.db"
        with DeckDatabase(db_path) as db:
            db.save_deck(scenario_deck)

        with DeckDatabase(db_path, read_only=True) as db:
            assert db.load_deck("Scenario").size() == 5
            with pytest.raises(DeckOperationError, match="read-only"):
                db.save_deck(scenario_deck)
            with pytest.raises(DeckOperationError, match="read-only"):
                db.delete_deck("Scenario")

    def test_force_recreate_in_read_only_mode_raises(self):
        db = DeckDatabase(":memory:", read_only=True)
        with pytest.raises(DatabaseConnectionError):
            db.initialize_schema(force_recreate_tables=True)


class TestDatabaseErrors:
    @patch("quizdeck.db.database.duckdb.connect")
    def test_get_connection_raises_custom_error(self, mock_connect):
        mock_connect.side_effect = duckdb.Error("Connection failed")
        db = DeckDatabase(db_path=":memory:")

        with pytest.raises(
            DatabaseConnectionError, match="Failed to connect to database"
        ) as excinfo:
            db.get_connection()
        assert isinstance(excinfo.value.original_exception, duckdb.Error)

    @patch("quizdeck.db.database.duckdb.connect")
    def test_initialize_schema_raises_custom_error(self, mock_connect):
        mock_cursor = MagicMock()
        mock_cursor.execute.side_effect = duckdb.Error("Schema creation failed")
        mock_connection = MagicMock()
        mock_connection.cursor.return_value = mock_cursor
        mock_connect.return_value = mock_connection

        db = DeckDatabase(db_path=":memory:")

        with pytest.raises(SchemaInitializationError, match="Failed to initialize schema"):
            db.initialize_schema()
        mock_cursor.rollback.assert_called_once()
        mock_cursor.commit.assert_not_called()
        mock_cursor.close.assert_called_once()

    @patch("quizdeck.db.database.logger.error")
    @patch("quizdeck.db.database.duckdb.connect")
    def test_initialize_schema_logs_rollback_failure(
        self, mock_connect, mock_logger_error
    ):
        mock_cursor = MagicMock()
        mock_cursor.execute.side_effect = duckdb.Error("Initial schema error")
        mock_cursor.rollback.side_effect = duckdb.Error("Rollback failed!")
        mock_connection = MagicMock()
        mock_connection.cursor.return_value = mock_cursor
        mock_connect.return_value = mock_connection

        db = DeckDatabase(db_path=":memory:")

        with pytest.raises(SchemaInitializationError):
            db.initialize_schema()
        mock_logger_error.assert_any_call(
            "Failed to rollback transaction during schema initialization "
            "error: Rollback failed!"
        )

    def test_save_wraps_duckdb_errors(self, scenario_deck):
        db = DeckDatabase(":memory:")
        mock_cursor = MagicMock()
        mock_cursor.execute.side_effect = duckdb.Error("disk full")
        mock_connection = MagicMock()
        mock_connection.cursor.return_value = mock_cursor

        with patch.object(db, "get_connection", return_value=mock_connection):
            with pytest.raises(DeckOperationError, match="Failed to save deck") as excinfo:
                db.save_deck(scenario_deck)

        assert isinstance(excinfo.value.original_exception, duckdb.Error)
        mock_cursor.rollback.assert_called_once()
        mock_cursor.commit.assert_not_called()

    def test_delete_rolls_back_on_the_transaction_cursor(self):
        db = DeckDatabase(":memory:")
        mock_cursor = MagicMock()
        mock_cursor.execute.side_effect = duckdb.Error("locked")
        mock_connection = MagicMock()
        mock_connection.cursor.return_value = mock_cursor

        with patch.object(db, "get_connection", return_value=mock_connection):
            with pytest.raises(DeckOperationError, match="Failed to delete deck"):
                db.delete_deck("Scenario")

        mock_cursor.rollback.assert_called_once()
        mock_connection.rollback.assert_not_called()

    def test_failed_transaction_leaves_no_partial_write(
        self, initialized_db_manager: DeckDatabase, scenario_deck
    ):
        initialized_db_manager.save_deck(scenario_deck)
        with pytest.raises(duckdb.Error):
            with initialized_db_manager.transaction("test") as cursor:
                cursor.execute("DELETE FROM decks WHERE name = 'Scenario';")
                cursor.execute("SELECT * FROM no_such_table;")

        assert initialized_db_manager.deck_exists("Scenario")
        initialized_db_manager.save_deck(Deck(name="After"))
        assert initialized_db_manager.get_deck_names() == ["After", "Scenario"]

    def test_queries_against_missing_schema_raise(self):
        db = DeckDatabase(":memory:")
        try:
            with pytest.raises(DeckOperationError):
                db.get_deck_names()
            with pytest.raises(DeckOperationError):
                db.load_deck("anything")
        finally:
            db.close_connection()
