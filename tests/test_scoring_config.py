import json

import pytest

from logic.scoring_config import ScoringConfig, load_config


def test_defaults():
    cfg = ScoringConfig()
    assert cfg.regulation_innings == 7
    assert cfg.mercy_run_threshold == 10
    assert cfg.mercy_min_innings == 5
    assert (cfg.min_lineup_size, cfg.max_lineup_size) == (1, 15)


def test_missing_file_gives_defaults(tmp_path):
    assert load_config(tmp_path / "none.json") == ScoringConfig()


def test_overrides_merge_and_unknown_keys_ignored(tmp_path):
    path = tmp_path / "scoring.json"
    path.write_text(json.dumps({"regulation_innings": 9, "bogus": 1}), encoding="utf-8")
    cfg = load_config(path)
    assert cfg.regulation_innings == 9
    assert cfg.mercy_run_threshold == 10


def test_malformed_json_ignored(tmp_path):
    path = tmp_path / "scoring.json"
    path.write_text("{oops", encoding="utf-8")
    assert load_config(path) == ScoringConfig()


def test_environment_variable(tmp_path, monkeypatch):
    path = tmp_path / "env.json"
    path.write_text(json.dumps({"mercy_run_threshold": 8}), encoding="utf-8")
    monkeypatch.setenv("SB_SCORING_CONFIG", str(path))
    assert load_config().mercy_run_threshold == 8


def test_save_overrides_only_writes_changes(tmp_path):
    path = tmp_path / "out" / "scoring.json"
    ScoringConfig(regulation_innings=6).save_overrides(path)
    assert json.loads(path.read_text(encoding="utf-8")) == {"regulation_innings": 6}
    assert load_config(path).regulation_innings == 6


def test_invalid_limits_rejected():
    with pytest.raises(ValueError):
        ScoringConfig(max_lineup_size=20)
    with pytest.raises(ValueError):
        ScoringConfig(min_lineup_size=5, max_lineup_size=3)


def test_out_limit_is_not_configurable(tmp_path):
    path = tmp_path / "scoring.json"
    path.write_text(json.dumps({"max_outs": 4}), encoding="utf-8")
    cfg = load_config(path)
    assert cfg == ScoringConfig()
    assert not hasattr(cfg, "max_outs")
