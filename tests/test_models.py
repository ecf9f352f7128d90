"""Tests for the decoded replay data models."""

import json

import pytest

from buildorder.core.constants import CommandKind
from buildorder.core.errors import BuildOrderError, ReplayFormatError
from buildorder.core.models import Command, GameMessage, Player, ReplayData, load_replay


class TestCommand:
    """Tests for the Command model."""

    def test_from_dict_maps_decoder_keys(self):
        cmd = Command.from_dict(
            {"timestamp": 1000, "command_type": "build_squad", "details": "", "pbgid": "198340", "index": "1"}
        )
        assert cmd.command_kind == CommandKind.BUILD_SQUAD
        assert cmd.numeric_id == "198340"
        assert cmd.entity_index == "1"

    def test_numeric_ids_become_strings(self):
        """Decoders that emit numbers are normalized to decimal strings."""
        cmd = Command.from_dict({"timestamp": 0, "command_type": "build_squad", "pbgid": 198340.0, "index": 3})
        assert (cmd.numeric_id, cmd.entity_index) == ("198340", "3")

    def test_to_dict_omits_empty_fields(self):
        data = Command.from_dict({"timestamp": 2000, "command_type": "construct_entity", "details": ""}).to_dict()
        assert data == {"timestamp": 2000, "command_type": "construct_entity", "details": ""}

    def test_round_trip(self):
        raw = {
            "timestamp": 30000,
            "command_type": "construct_entity",
            "details": "x",
            "pbgid": "198236",
            "index": "7",
            "building_name": "Light Support Kompanie",
        }
        assert Command.from_dict(raw).to_dict() == raw

    def test_unknown_command_type_preserved(self):
        cmd = Command.from_dict({"timestamp": 0, "command_type": "weird_new_command"})
        assert cmd.command_kind == CommandKind.UNKNOWN
        assert cmd.to_dict()["command_type"] == "weird_new_command"

    def test_missing_command_type(self):
        cmd = Command.from_dict({"timestamp": 0})
        assert cmd.command_kind == CommandKind.UNKNOWN
        assert cmd.command_type == "unknown"

    def test_constructor_accepts_strings(self):
        cmd = Command(5, "use_ability")
        assert cmd.command_kind == CommandKind.USE_ABILITY
        assert cmd.command_type == "use_ability"

    def test_names_are_write_once(self):
        """The first non-empty name sticks."""
        cmd = Command(0, CommandKind.BUILD_SQUAD)
        assert not cmd.set_unit_name("")
        assert not cmd.set_unit_name(None)
        assert cmd.set_unit_name("Grenadier Squad")
        assert not cmd.set_unit_name("Something Else")
        assert cmd.unit_name == "Grenadier Squad"

        assert cmd.set_building_name("Headquarters")
        assert not cmd.set_building_name("Barracks")
        assert cmd.building_name == "Headquarters"

    @pytest.mark.parametrize(
        "raw",
        [
            {"timestamp": -1, "command_type": "build_squad"},
            {"timestamp": "soon", "command_type": "build_squad"},
            {"timestamp": True, "command_type": "build_squad"},
            {"timestamp": 0, "command_type": 5},
            {"timestamp": 0, "command_type": "build_squad", "pbgid": False},
        ],
    )
    def test_malformed_commands(self, raw):
        with pytest.raises(ReplayFormatError):
            Command.from_dict(raw)

    def test_command_must_be_object(self):
        with pytest.raises(ReplayFormatError, match="expected object"):
            Command.from_dict(["build_squad"])


class TestPlayerAndMessages:
    """Tests for players and chat messages."""

    def test_player_from_dict(self, replay_dict):
        player = Player.from_dict(replay_dict["players"][0])
        assert player.player_name == "Rommel"
        assert player.faction_name == "afrika_korps"
        assert len(player.commands) == 8
        assert player.chat_messages == [GameMessage(timestamp=500, content="gl hf", message_type="all", player_id=0)]

    def test_missing_faction(self):
        player = Player.from_dict({"player_id": 3})
        assert player.faction is None
        assert player.faction_name == "Unknown"
        assert "faction" not in player.to_dict()

    def test_commands_must_be_a_list(self):
        with pytest.raises(ReplayFormatError, match="commands must be a list"):
            Player.from_dict({"player_id": 0, "commands": {"timestamp": 0}})


class TestReplayData:
    """Tests for the top-level replay model."""

    def test_round_trip(self, replay_dict):
        """Serializing an unenriched replay reproduces the decoder JSON."""
        assert ReplayData.from_dict(replay_dict).to_dict() == replay_dict

    def test_duration_str(self, replay_dict):
        assert ReplayData.from_dict(replay_dict).duration_str == "12:34"

    def test_get_player(self, replay_dict):
        replay = ReplayData.from_dict(replay_dict)
        assert replay.get_player(1).player_name == "Monty"
        assert replay.get_player(7) is None

    def test_teams(self, replay_dict):
        replay = ReplayData.from_dict(replay_dict)
        assert [t.team_id for t in replay.teams] == [0, 1]
        assert replay.teams[0].players[0].faction == "afrika_korps"

    def test_failed_decode(self):
        replay = ReplayData.from_dict({"success": False, "error_message": "truncated replay"})
        assert replay.success is False
        assert replay.players == []
        assert replay.to_dict()["error_message"] == "truncated replay"

    def test_replay_must_be_object(self):
        with pytest.raises(ReplayFormatError):
            ReplayData.from_dict("not a replay")


class TestLoadReplay:
    """Tests for reading decoded replays from disk."""

    def test_load(self, tmp_path, replay_dict):
        path = tmp_path / "match.json"
        path.write_text(json.dumps(replay_dict), encoding="utf-8")
        replay = load_replay(path)
        assert replay.map_name == "Gazala Landing Ground"
        assert len(replay.players) == 2

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "match.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(ReplayFormatError, match="not valid JSON"):
            load_replay(path)

    def test_format_error_is_library_error(self, tmp_path):
        path = tmp_path / "match.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(BuildOrderError):
            load_replay(path)
