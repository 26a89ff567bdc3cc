import pytest

from models.baserunner_state import BaserunnerState, advance_base


def test_duplicate_runner_rejected():
    with pytest.raises(ValueError, match="more than one base"):
        BaserunnerState(first="R1", third="R1")


def test_forced_chain_stops_at_first_gap():
    assert BaserunnerState("R1", "R2").forced_bases() == ["first", "second"]
    assert BaserunnerState("R1", None, "R3").forced_bases() == ["first"]
    assert BaserunnerState(None, "R2", "R3").forced_bases() == []


def test_queries():
    bases = BaserunnerState(first="R1", third="R3")
    assert bases.occupied_bases() == ["first", "third"]
    assert bases.runners() == ["R1", "R3"]
    assert bases.base_of("R3") == "third"
    assert bases.base_of("R9") is None
    assert bases.lead_base() == "third"
    assert not bases.is_empty
    assert not bases.is_loaded
    assert BaserunnerState("A", "B", "C").is_loaded
    assert BaserunnerState.empty().is_empty
    with pytest.raises(ValueError):
        bases.runner_on("home")


def test_dict_round_trip_and_unknown_base():
    bases = BaserunnerState(second="R2")
    assert BaserunnerState.from_dict(bases.to_dict()) == bases
    assert BaserunnerState.from_dict(None) == BaserunnerState()
    with pytest.raises(ValueError, match="Unknown base"):
        BaserunnerState.from_mapping({"home": "R1"})


def test_describe():
    assert BaserunnerState().describe() == "Bases empty"
    assert BaserunnerState("A", None, "C").describe() == "1B: A, 3B: C"


def test_advance_base_caps_at_home():
    assert advance_base("first", 1) == "second"
    assert advance_base("second", 2) == "home"
    assert advance_base("third", 3) == "home"
