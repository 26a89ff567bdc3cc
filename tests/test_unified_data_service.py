from __future__ import annotations

import os
from pathlib import Path

from services.unified_data_service import EventBus, get_unified_data_service
from utils import path_utils


def test_document_cache_and_invalidation(tmp_path):
    doc_path = tmp_path / "lineup.csv"
    doc_path.write_text("dummy\n", encoding="utf-8")

    service = get_unified_data_service()
    calls: list[Path] = []

    def loader(resolved: Path):
        calls.append(resolved)
        return [resolved.name]

    first = service.get_document(doc_path, loader, topic="lineups")
    second = service.get_document(doc_path, loader, topic="lineups")

    assert first == [doc_path.name]
    assert second == [doc_path.name]
    assert first is not second  # callers receive copies
    assert len(calls) == 1

    service.invalidate_document(doc_path, topic="lineups")
    service.get_document(doc_path, loader, topic="lineups")
    assert len(calls) == 2


def test_update_document_publishes_payload(tmp_path):
    service = get_unified_data_service()
    seen = []
    service.events.subscribe("games.updated", seen.append)

    service.update_document(tmp_path / "g.json", {"v": 1}, topic="games", payload={"version": 1})

    assert seen[0]["version"] == 1
    assert service.get_document(tmp_path / "g.json", lambda p: {"v": 0}, topic="games") == {"v": 1}


def test_event_bus_unsubscribe_and_failing_subscriber():
    bus = EventBus()
    seen = []

    def broken(payload):
        raise RuntimeError("boom")

    bus.subscribe("topic", broken)
    stop = bus.subscribe("topic", seen.append)
    assert bus.publish("topic", {"n": 1}) == 1
    stop()
    bus.publish("topic", {"n": 2})

    assert seen == [{"n": 1, "topic": "topic"}]


def test_event_bus_wildcards():
    bus = EventBus()
    games, everything = [], []
    bus.subscribe("games.*", games.append)
    bus.subscribe("*", everything.append)

    bus.publish("games.at_bat_recorded", {"game_id": "G1"})
    bus.publish("lineups.loaded")

    assert [event["topic"] for event in games] == ["games.at_bat_recorded"]
    assert [event["topic"] for event in everything] == ["games.at_bat_recorded", "lineups.loaded"]


def test_changed_file_is_reloaded(tmp_path):
    doc_path = tmp_path / "players.csv"
    doc_path.write_text("a\n", encoding="utf-8")
    service = get_unified_data_service()

    def read(path):
        return path.read_text(encoding="utf-8")

    assert service.get_document(doc_path, read, topic="players") == "a\n"
    doc_path.write_text("b\n", encoding="utf-8")
    stat = doc_path.stat()
    os.utime(doc_path, (stat.st_atime, stat.st_mtime + 5))

    assert service.get_document(doc_path, read, topic="players") == "b\n"
    assert service.cached_paths("players") == [doc_path.resolve()]
    assert service.invalidate_document(topic="players") == 1
    assert service.cached_paths("players") == []


def test_data_dir_override(monkeypatch, tmp_path):
    monkeypatch.setattr(path_utils, "get_base_dir", lambda: tmp_path)
    monkeypatch.delenv("SB_DATA_DIR", raising=False)
    assert path_utils.get_data_dir() == tmp_path / "data"

    monkeypatch.setenv("SB_DATA_DIR", "scoring")
    assert path_utils.get_data_dir() == tmp_path / "scoring"

    absolute = tmp_path / "elsewhere"
    monkeypatch.setenv("SB_DATA_DIR", str(absolute))
    assert path_utils.get_data_dir() == absolute
