"""Shared fixtures: a small reference data directory and decoded replays."""

import logging

import pytest

from buildorder.core.config import reset_config
from buildorder.lookup.reference_data import clear_reference_cache, load_reference_data
from buildorder.lookup.resolver import BlueprintResolver
from tests.blueprint_data import EBPS, LOCSTRINGS, SBPS, write_json


@pytest.fixture(autouse=True)
def _isolated_state(monkeypatch):
    """Each test starts without cached reference data, global config or logging changes."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    for name in (
        "BUILDORDER_DATA_DIR",
        "BUILDORDER_LOCALE",
        "BUILDORDER_TRACKING_ENABLED",
        "BUILDORDER_CORRELATION_WINDOW_MS",
        "BUILDORDER_FILTER_PRESETS",
        "BUILDORDER_FILTER_KINDS",
        "BUILDORDER_FILTER_CATEGORIES",
        "BUILDORDER_LOG_LEVEL",
        "BUILDORDER_LOG_FILE",
    ):
        monkeypatch.delenv(name, raising=False)
    clear_reference_cache()
    reset_config()
    yield
    clear_reference_cache()
    reset_config()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def data_dir(tmp_path):
    """Reference data directory with sbps, ebps and an English locale table."""
    root = tmp_path / "coh3-data"
    write_json(root / "sbps.json", SBPS)
    write_json(root / "ebps.json", EBPS)
    write_json(root / "locales" / "en-locstring.json", LOCSTRINGS)
    return root


@pytest.fixture
def reference(data_dir):
    return load_reference_data(data_dir)


@pytest.fixture
def resolver(reference):
    return BlueprintResolver(reference)


@pytest.fixture
def replay_dict():
    """Decoded replay JSON for a 1v1 with an Afrika Korps player."""
    return {
        "success": True,
        "map_name": "Gazala Landing Ground",
        "map_filename": "data:scenarios\\multiplayer\\gazala",
        "duration_seconds": 754,
        "duration_ticks": 6032,
        "game_version": 10612,
        "teams": [
            {"team_id": 0, "players": [{"player_id": 0, "player_name": "Rommel", "faction": "afrika_korps", "is_human": True}]},
            {"team_id": 1, "players": [{"player_id": 1, "player_name": "Monty", "faction": "british", "is_human": True}]},
        ],
        "winning_team": 0,
        "players": [
            {
                "player_id": 0,
                "player_name": "Rommel",
                "team_id": 0,
                "faction": "afrika_korps",
                "is_human": True,
                "steam_id": "76561198000000001",
                "commands": [
                    {"timestamp": 1000, "command_type": "build_squad", "details": "", "pbgid": "198340", "index": "1"},
                    {"timestamp": 30000, "command_type": "construct_entity", "details": "", "index": "7"},
                    {"timestamp": 45000, "command_type": "build_global_upgrade", "details": "", "pbgid": "2072101"},
                    {"timestamp": 50000, "command_type": "use_ability", "details": "", "pbgid": "198342"},
                    {"timestamp": 52000, "command_type": "build_squad", "details": "", "pbgid": "198347", "index": "1"},
                    {"timestamp": 60000, "command_type": "select_battlegroup", "details": "", "pbgid": "2075338"},
                    {"timestamp": 61000, "command_type": "cancel_production", "details": ""},
                    {"timestamp": 62000, "command_type": "weird_new_command", "details": "0x3f"},
                ],
                "build_commands": [],
                "chat_messages": [{"timestamp": 500, "player_id": 0, "content": "gl hf", "message_type": "all"}],
            },
            {
                "player_id": 1,
                "player_name": "Monty",
                "team_id": 1,
                "faction": "british",
                "is_human": True,
                "commands": [
                    {"timestamp": 2000, "command_type": "construct_entity", "details": ""},
                    {"timestamp": 3000, "command_type": "select_battlegroup", "details": ""},
                ],
                "build_commands": [],
                "chat_messages": [],
            },
        ],
        "messages": [{"timestamp": 500, "player_id": 0, "content": "gl hf", "message_type": "all"}],
    }
