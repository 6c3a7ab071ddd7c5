"""Tests for the snapshot builder and the savers"""

import json
import os

from engine import new_game
from snapshot import JsonFileSaver, NullSaver, to_snapshot


def test_snapshot_is_json_safe(engine):
    engine.dispatch("start_development", type_key="MAPS")
    engine.tick_month()
    snapshot = to_snapshot(engine.ctx)
    text = json.dumps(snapshot)
    assert json.loads(text) == snapshot


def test_snapshot_sections(engine):
    engine.tick_month()
    snapshot = engine.snapshot()
    assert set(snapshot) == {"time", "game_control", "company", "products", "market", "achievements",
                             "notifications"}
    assert snapshot["time"]["current_date"] == "2004-02-01"
    assert snapshot["time"]["months_passed"] == 1
    assert snapshot["company"]["cash"] == engine.company.cash
    assert len(snapshot["company"]["history"]) == 1
    assert len(snapshot["market"]["competitors"]) == len(engine.competitors)
    assert "Social Networks" in snapshot["market"]["trends"]

    rival = snapshot["market"]["competitors"][0]
    assert rival["total_users"] == sum(p["users"] for p in rival["products"])
    assert rival["products"][0]["status"] == "active"


def test_development_products_carry_allocation(engine):
    engine.dispatch("start_development", type_key="MAPS")
    developing = engine.snapshot()["products"]["in_development"][0]
    assert developing["resource_allocation"] == {"backend": 20, "frontend": 20, "infrastructure": 20,
                                                 "ai": 20, "database": 20}
    assert developing["status"] == "in_development"


def test_json_file_saver_round_trip(tmp_path, engine):
    path = tmp_path / "saves" / "game.json"
    saver = JsonFileSaver(str(path))
    snapshot = engine.snapshot()
    saver.save(snapshot)

    assert path.exists()
    assert saver.load() == json.loads(json.dumps(snapshot))
    assert saver.saves == 1
    assert os.listdir(path.parent) == ["game.json"]


def test_json_file_saver_replaces_previous(tmp_path, small_settings):
    path = tmp_path / "game.json"
    engine = new_game(seed=1, settings=small_settings, saver=JsonFileSaver(str(path)))
    engine.tick_month()
    engine.tick_month()
    assert json.loads(path.read_text())["time"]["current_date"] == "2004-03-01"
    assert sorted(os.listdir(tmp_path)) == ["game.json"]


def test_save_path_setting_picks_file_saver(tmp_path, small_settings):
    small_settings.save_path = str(tmp_path / "auto.json")
    engine = new_game(seed=1, settings=small_settings)
    assert isinstance(engine.ctx.saver, JsonFileSaver)
    engine.tick_month()
    assert (tmp_path / "auto.json").exists()


def test_null_saver_is_default():
    assert isinstance(new_game(seed=1).ctx.saver, NullSaver)
