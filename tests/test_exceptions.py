from utils.exceptions import (
    BaseConflict,
    ConcurrentUpdate,
    ConflictError,
    IncompleteAdvancement,
    IncompleteLineup,
    PersistenceError,
    ScoringError,
    ValidationError,
)

NAMES = {"R1": "Ada Lovelace", "R3": "Grace Hopper"}


def test_incomplete_advancement_names_each_runner():
    exc = IncompleteAdvancement(["first", "third"], {"first": "R1", "third": "R3"})
    assert exc.user_messages(NAMES.get) == [
        "Select advancement for Ada Lovelace on first base",
        "Select advancement for Grace Hopper on third base",
    ]
    assert isinstance(exc, ValidationError)


def test_base_conflict_keeps_batter_label():
    exc = BaseConflict("second", ["Batter", "R1"])
    assert exc.user_messages(NAMES.get) == [
        "Multiple runners cannot occupy second base: Batter, Ada Lovelace"
    ]


def test_incomplete_lineup_lists_problems():
    exc = IncompleteLineup(["Duplicate batting order: 2."], "L1")
    assert exc.user_messages() == ["Duplicate batting order: 2."]
    assert "Duplicate batting order" in str(exc)


def test_conflict_and_persistence_details():
    conflict = ConcurrentUpdate("G1", 3, 4)
    assert isinstance(conflict, ConflictError)
    assert "expected version 3, found 4" in str(conflict)

    failure = PersistenceError("disk full", game_id="G1", payload={"id": "G1:ab000"})
    assert str(failure) == "disk full (game G1)"
    assert failure.payload == {"id": "G1:ab000"}
    assert isinstance(failure, ScoringError)
