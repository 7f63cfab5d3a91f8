import sys
import pytest
from pathlib import Path
from typing import Callable, Generator, Optional
from datetime import date, timedelta

from quizdeck.models import Card, CardState
from quizdeck.deck import AdmissionPolicy, Deck
from quizdeck.db import DeckDatabase


TODAY = date(2024, 5, 1)


# each test runs on cwd to its temp dir
@pytest.fixture(autouse=True)
def go_to_tmpdir(request):
    """
    Temporarily change the process working directory to the test's tmpdir and prepend that tmpdir to sys.path.
    """
    tmpdir = request.getfixturevalue("tmpdir")
    sys.path.insert(0, str(tmpdir))
    with tmpdir.as_cwd():
        yield


class StubCard:
    """
    Minimal object satisfying the ReviewableCard protocol, with fixed answers.
    """

    def __init__(self, label: str, new: bool = False, due: bool = False):
        self.label = label
        self.new = new
        self.due = due

    def is_new(self) -> bool:
        return self.new

    def is_due(self, current_date: date) -> bool:
        return self.due

    def __repr__(self) -> str:
        return f"StubCard({self.label!r})"


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def make_card() -> Callable[..., Card]:
    """
    Factory for Cards.

    `due_in` is the number of days from TODAY to the next review (negative
    for overdue); omitting it leaves the card without a review date.
    """

    def _make(
        front: str,
        state: CardState = CardState.New,
        due_in: Optional[int] = None,
    ) -> Card:
        next_due = TODAY + timedelta(days=due_in) if due_in is not None else None
        return Card(
            front=front,
            back=f"Answer to {front}",
            state=state,
            next_due_date=next_due,
        )

    return _make


@pytest.fixture
def scenario_cards(make_card) -> dict:
    """
    Five cards: A and B are new, C and D are due, E is neither.
    """
    return {
        "A": make_card("Card A"),
        "B": make_card("Card B"),
        "C": make_card("Card C", state=CardState.Review, due_in=-3),
        "D": make_card("Card D", state=CardState.Review, due_in=0),
        "E": make_card("Card E", state=CardState.Review, due_in=7),
    }


@pytest.fixture
def scenario_deck(scenario_cards) -> Deck:
    return Deck(
        name="Scenario",
        description="Two new, two due, one scheduled later.",
        date_of_creation=date(2024, 1, 1),
        cards=list(scenario_cards.values()),
    )


@pytest.fixture
def set_policy_deck() -> Deck:
    return Deck(
        name="Set Policy",
        admission_policy=AdmissionPolicy.REJECT_DUPLICATES,
    )


# --- Database Fixtures ---
@pytest.fixture
def db_path_memory() -> str:
    return ":memory:"


@pytest.fixture
def db_path_file(tmp_path: Path) -> Path:
    return tmp_path / "test_decks.db"


@pytest.fixture(params=["memory", "file"])
def db_manager(
    request, db_path_memory: str, db_path_file: Path
) -> Generator[DeckDatabase, None, None]:
    """
    Provide a DeckDatabase instance, either in-memory or file-backed, and close it on teardown.
    """
    if request.param == "memory":
        db_man = DeckDatabase(db_path_memory)
    else:
        db_man = DeckDatabase(db_path_file)
    try:
        yield db_man
    finally:
        db_man.close_connection()
        if request.param == "file" and db_path_file.exists():
            try:
                db_path_file.unlink()
            except OSError as e:
                import logging

                logging.warning(
                    f"Error removing temporary DB file in test fixture teardown: {e}"
                )


@pytest.fixture
def initialized_db_manager(db_manager: DeckDatabase) -> DeckDatabase:
    db_manager.initialize_schema()
    return db_manager
