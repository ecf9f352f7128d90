"""
Data Models

Dataclasses for the decoded replay JSON: commands, players, teams, chat
messages and the replay itself. Field names follow the decoder's JSON so
`from_dict` / `to_dict` are near-direct mappings; keys whose value is None
are omitted on output, matching the decoder.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from buildorder.core.constants import UNKNOWN_FACTION, CommandKind
from buildorder.core.errors import ReplayFormatError

logger = logging.getLogger(__name__)


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ReplayFormatError(f"Expected a string or number, got {value!r}")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def _non_negative_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ReplayFormatError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or value < 0:
        raise ReplayFormatError(f"{name} must be a non-negative integer, got {value!r}")
    return value


def _optional_int(value: Any, name: str) -> int | None:
    return None if value is None else _non_negative_int(value, name)


def _list_of(data: dict, key: str, context: str) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ReplayFormatError(f"{context}.{key} must be a list, got {type(value).__name__}")
    return value


def _require_dict(value: Any, context: str) -> dict:
    if not isinstance(value, dict):
        raise ReplayFormatError(f"{context}: expected object, got {type(value).__name__}")
    return value


@dataclass
class Command:
    """
    One decoded player command.

    unit_name and building_name are filled by enrichment and are write-once:
    once non-empty they are never replaced.
    """

    timestamp: int  # milliseconds from match start
    command_kind: CommandKind
    details: str = ""
    numeric_id: str | None = None  # decoder "pbgid"
    entity_index: str | None = None  # decoder "index"
    unit_name: str | None = None
    building_name: str | None = None
    # Decoder's command_type string, kept when it is not a known kind
    command_type: str | None = None

    def __post_init__(self):
        self.command_kind = CommandKind.parse(self.command_kind)
        if self.command_type is None:
            self.command_type = self.command_kind.value

    def set_unit_name(self, name: str | None) -> bool:
        """Set unit_name unless already set. Returns whether it was written."""
        if self.unit_name or not name:
            return False
        self.unit_name = name
        return True

    def set_building_name(self, name: str | None) -> bool:
        """Set building_name unless already set. Returns whether it was written."""
        if self.building_name or not name:
            return False
        self.building_name = name
        return True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Command:
        data = _require_dict(data, "command")
        raw_type = data.get("command_type")
        if raw_type is not None and not isinstance(raw_type, str):
            raise ReplayFormatError(f"command_type must be a string, got {raw_type!r}")
        return cls(
            timestamp=_non_negative_int(data.get("timestamp", 0), "timestamp"),
            command_kind=CommandKind.parse(raw_type),
            details=str(data.get("details") or ""),
            numeric_id=_optional_str(data.get("pbgid")),
            entity_index=_optional_str(data.get("index")),
            unit_name=_optional_str(data.get("unit_name")),
            building_name=_optional_str(data.get("building_name")),
            command_type=raw_type or None,
        )

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "timestamp": self.timestamp,
                "command_type": self.command_type,
                "details": self.details,
                "pbgid": self.numeric_id,
                "index": self.entity_index,
                "unit_name": self.unit_name,
                "building_name": self.building_name,
            }
        )


@dataclass
class GameMessage:
    """A chat or system message."""

    timestamp: int
    content: str = ""
    message_type: str = ""
    player_id: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameMessage:
        data = _require_dict(data, "message")
        return cls(
            timestamp=_non_negative_int(data.get("timestamp", 0), "timestamp"),
            content=str(data.get("content") or ""),
            message_type=str(data.get("message_type") or ""),
            player_id=_optional_int(data.get("player_id"), "player_id"),
        )

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "timestamp": self.timestamp,
                "player_id": self.player_id,
                "content": self.content,
                "message_type": self.message_type,
            }
        )


@dataclass
class TeamMember:
    player_id: int
    player_name: str = ""
    faction: str | None = None
    is_human: bool = True
    steam_id: str | None = None
    profile_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TeamMember:
        data = _require_dict(data, "team member")
        return cls(
            player_id=_non_negative_int(data.get("player_id", 0), "player_id"),
            player_name=str(data.get("player_name") or ""),
            faction=_optional_str(data.get("faction")),
            is_human=bool(data.get("is_human", True)),
            steam_id=_optional_str(data.get("steam_id")),
            profile_id=_optional_str(data.get("profile_id")),
        )

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "player_id": self.player_id,
                "player_name": self.player_name,
                "faction": self.faction,
                "is_human": self.is_human,
                "steam_id": self.steam_id,
                "profile_id": self.profile_id,
            }
        )


@dataclass
class Team:
    team_id: int
    players: list[TeamMember] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Team:
        data = _require_dict(data, "team")
        return cls(
            team_id=_non_negative_int(data.get("team_id", 0), "team_id"),
            players=[TeamMember.from_dict(p) for p in _list_of(data, "players", "team")],
        )

    def to_dict(self) -> dict[str, Any]:
        return {"team_id": self.team_id, "players": [p.to_dict() for p in self.players]}


@dataclass
class Player:
    """A player with their full command stream and filtered build order."""

    player_id: int
    player_name: str = ""
    team_id: int = 0
    faction: str | None = None
    is_human: bool = True
    steam_id: str | None = None
    profile_id: str | None = None
    battlegroup_id: str | None = None
    commands: list[Command] = field(default_factory=list)
    build_commands: list[Command] = field(default_factory=list)
    chat_messages: list[GameMessage] = field(default_factory=list)

    @property
    def faction_name(self) -> str:
        return self.faction or UNKNOWN_FACTION

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Player:
        data = _require_dict(data, "player")
        context = f"player {data.get('player_id', '?')}"
        return cls(
            player_id=_non_negative_int(data.get("player_id", 0), "player_id"),
            player_name=str(data.get("player_name") or ""),
            team_id=_non_negative_int(data.get("team_id", 0), "team_id"),
            faction=_optional_str(data.get("faction")),
            is_human=bool(data.get("is_human", True)),
            steam_id=_optional_str(data.get("steam_id")),
            profile_id=_optional_str(data.get("profile_id")),
            battlegroup_id=_optional_str(data.get("battlegroup_id")),
            commands=[Command.from_dict(c) for c in _list_of(data, "commands", context)],
            build_commands=[Command.from_dict(c) for c in _list_of(data, "build_commands", context)],
            chat_messages=[GameMessage.from_dict(m) for m in _list_of(data, "chat_messages", context)],
        )

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "player_id": self.player_id,
                "player_name": self.player_name,
                "team_id": self.team_id,
                "faction": self.faction,
                "is_human": self.is_human,
                "steam_id": self.steam_id,
                "profile_id": self.profile_id,
                "battlegroup_id": self.battlegroup_id,
                "commands": [c.to_dict() for c in self.commands],
                "build_commands": [c.to_dict() for c in self.build_commands],
                "chat_messages": [m.to_dict() for m in self.chat_messages],
            }
        )


@dataclass
class ReplayData:
    """A decoded replay: match metadata, teams, players and messages."""

    success: bool = True
    error_message: str | None = None
    map_name: str = ""
    map_filename: str = ""
    duration_seconds: int = 0
    duration_ticks: int = 0
    game_version: int | None = None
    timestamp: str | None = None
    game_type: str | None = None
    matchhistory_id: str | None = None
    teams: list[Team] = field(default_factory=list)
    winning_team: int | None = None
    players: list[Player] = field(default_factory=list)
    messages: list[GameMessage] = field(default_factory=list)

    @property
    def duration_str(self) -> str:
        minutes, seconds = divmod(self.duration_seconds, 60)
        return f"{minutes:02d}:{seconds:02d}"

    def get_player(self, player_id: int) -> Player | None:
        for player in self.players:
            if player.player_id == player_id:
                return player
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReplayData:
        data = _require_dict(data, "replay")
        return cls(
            success=bool(data.get("success", True)),
            error_message=_optional_str(data.get("error_message")),
            map_name=str(data.get("map_name") or ""),
            map_filename=str(data.get("map_filename") or ""),
            duration_seconds=_non_negative_int(data.get("duration_seconds", 0), "duration_seconds"),
            duration_ticks=_non_negative_int(data.get("duration_ticks", 0), "duration_ticks"),
            game_version=_optional_int(data.get("game_version"), "game_version"),
            timestamp=_optional_str(data.get("timestamp")),
            game_type=_optional_str(data.get("game_type")),
            matchhistory_id=_optional_str(data.get("matchhistory_id")),
            teams=[Team.from_dict(t) for t in _list_of(data, "teams", "replay")],
            winning_team=_optional_int(data.get("winning_team"), "winning_team"),
            players=[Player.from_dict(p) for p in _list_of(data, "players", "replay")],
            messages=[GameMessage.from_dict(m) for m in _list_of(data, "messages", "replay")],
        )

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "success": self.success,
                "error_message": self.error_message,
                "map_name": self.map_name,
                "map_filename": self.map_filename,
                "duration_seconds": self.duration_seconds,
                "duration_ticks": self.duration_ticks,
                "game_version": self.game_version,
                "timestamp": self.timestamp,
                "game_type": self.game_type,
                "matchhistory_id": self.matchhistory_id,
                "teams": [t.to_dict() for t in self.teams],
                "winning_team": self.winning_team,
                "players": [p.to_dict() for p in self.players],
                "messages": [m.to_dict() for m in self.messages],
            }
        )


def load_replay(path: Path | str) -> ReplayData:
    """
    Load decoded replay JSON from disk.

    Raises:
        ReplayFormatError: file is not valid JSON or not a replay object
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ReplayFormatError(f"Replay file {path} is not valid JSON: {e}") from e

    replay = ReplayData.from_dict(data)
    logger.info(f"Loaded replay {path.name}: {replay.map_name or 'unknown map'}, {len(replay.players)} players")
    return replay
