import pytest

from services.roster_provider import CsvRosterProvider, StaticRosterProvider
from tests.util.game_factory import make_lineup
from utils.exceptions import IncompleteLineup


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_csv_lineup_and_names(tmp_path):
    _write(
        tmp_path / "lineups" / "TEAM_game1.csv",
        "order,player_id,position,starter\n"
        "1,P100,SS,1\n"
        "2,P200,C,\n"
        ",P300,,0\n",
    )
    _write(
        tmp_path / "players.csv",
        "player_id,first_name,last_name\nP100,Ada,Lovelace\nP200,Grace,\n",
    )
    provider = CsvRosterProvider(tmp_path / "lineups", tmp_path / "players.csv")

    lineup = provider.get_lineup("TEAM_game1")
    assert lineup.batting_order == ["P100", "P200"]
    assert lineup.slot_for("P100").defensive_position == "SS"
    assert provider.display_name("P100") == "Ada Lovelace"
    assert provider.display_name("P200") == "Grace"
    assert provider.display_name("P999") == "P999"


def test_substitute_rows_become_substitutes(tmp_path):
    _write(
        tmp_path / "L.csv",
        "order,player_id,position,starter\n1,A,P,1\n2,B,C,true\n3,S,DH,no\n",
    )
    lineup = CsvRosterProvider(tmp_path).get_lineup("L")
    assert lineup.batting_order == ["A", "B"]
    assert lineup.substitutes == ["S"]


def test_missing_lineup_file(tmp_path):
    with pytest.raises(IncompleteLineup, match="not found"):
        CsvRosterProvider(tmp_path).get_lineup("ghost")


def test_bad_order_reported_as_incomplete_lineup(tmp_path):
    _write(tmp_path / "L.csv", "order,player_id,position\nx,A,P\n")
    with pytest.raises(IncompleteLineup):
        CsvRosterProvider(tmp_path).get_lineup("L")


def test_missing_players_file_falls_back_to_ids(tmp_path):
    provider = CsvRosterProvider(tmp_path, tmp_path / "nope.csv")
    assert provider.display_name("P1") == "P1"


def test_static_provider():
    provider = StaticRosterProvider({"L1": make_lineup()}, {"P1": "Pat"})
    assert provider.get_lineup("L1").batting_order == ["P1", "P2", "P3"]
    assert provider.display_name("P1") == "Pat"
    assert provider.display_name("P2") == "P2"
    with pytest.raises(IncompleteLineup):
        provider.get_lineup("L2")
