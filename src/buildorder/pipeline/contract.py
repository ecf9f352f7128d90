"""
Output Contract - the JSON shape front ends consume.

Defines the structure that ReplayData.to_dict() produces after enrichment.
Every field name, nesting level and type is locked here.

Rules:
  1. Serialized replays MUST match REPLAY_CONTRACT.
  2. Keys marked with a trailing "?" are omitted when empty (the decoder's
     omitempty); when present they must have the declared type.
  3. Any new field goes here FIRST, then gets wired through models.py.

Validated by: tests/test_contract.py
"""

from __future__ import annotations

OPTIONAL_MARK = "?"

# ─── One command ─────────────────────────────────────────────────────
COMMAND_CONTRACT: dict = {
    "timestamp": int,  # ms from match start
    "command_type": str,
    "details?": str,
    "pbgid?": str,  # decimal string
    "index?": str,
    "unit_name?": str,
    "building_name?": str,
}

MESSAGE_CONTRACT: dict = {
    "timestamp": int,
    "player_id?": int,
    "content?": str,
    "message_type?": str,
}

# ─── One player ──────────────────────────────────────────────────────
PLAYER_CONTRACT: dict = {
    "player_id": int,
    "player_name": str,
    "team_id": int,
    "faction?": str,
    "is_human": bool,
    "steam_id?": str,
    "profile_id?": str,
    "battlegroup_id?": str,
    "commands": [COMMAND_CONTRACT],
    "build_commands": [COMMAND_CONTRACT],
    "chat_messages": [MESSAGE_CONTRACT],
}

# ─── Top-level replay ────────────────────────────────────────────────
REPLAY_CONTRACT: dict = {
    "success": bool,
    "error_message?": str,
    "map_name": str,
    "map_filename": str,
    "duration_seconds": int,
    "duration_ticks": int,
    "game_version?": int,
    "timestamp?": str,
    "game_type?": str,
    "matchhistory_id?": str,
    "teams": list,
    "winning_team?": int,
    "players": [PLAYER_CONTRACT],
    "messages": [MESSAGE_CONTRACT],
}

# ─── Timeline response (POST /api/timeline) ──────────────────────────
TIMELINE_EVENT_CONTRACT: dict = {
    "player_id": int,
    "player_name": str,
    "faction": str,
    "timestamp": int,
    "timestamp_str": str,  # "MM:SS"
    "command_type": str,
    "description": str,
    "color": str,
}

TIMELINE_CONTRACT: dict = {
    "success": bool,
    "map_name?": str,
    "duration?": str,  # "MM:SS"
    "players": [
        {
            "id": int,
            "name": str,
            "faction": str,
            "color": str,
            "commands": int,
        }
    ],
    "timeline": [TIMELINE_EVENT_CONTRACT],
}


def validate_command(command_data: dict, errors: list[str] | None = None) -> list[str]:
    """Validate a command dict against the contract. Returns list of errors."""
    if errors is None:
        errors = []
    _validate_dict(command_data, COMMAND_CONTRACT, "command", errors)
    return errors


def validate_player(player_data: dict, errors: list[str] | None = None) -> list[str]:
    """Validate a player dict against the contract. Returns list of errors."""
    if errors is None:
        errors = []
    _validate_dict(player_data, PLAYER_CONTRACT, "player", errors)
    return errors


def validate_result(result: dict) -> list[str]:
    """Validate a full serialized replay. Returns list of errors."""
    errors: list[str] = []
    _validate_dict(result, REPLAY_CONTRACT, "replay", errors)

    # Name fields are only ever filled on the kinds that carry them
    for i, player in enumerate(result.get("players") or []):
        if not isinstance(player, dict):
            continue
        for j, cmd in enumerate(player.get("commands") or []):
            if not isinstance(cmd, dict):
                continue
            if "building_name" in cmd and cmd.get("command_type") != "construct_entity":
                errors.append(f"UNEXPECTED replay.players[{i}].commands[{j}].building_name")
    return errors


def validate_timeline(result: dict) -> list[str]:
    errors: list[str] = []
    _validate_dict(result, TIMELINE_CONTRACT, "timeline", errors)
    return errors


def _check_type(value, expected_type, full_path: str, errors: list[str]) -> None:
    # bool is an int subclass; never let True pass as a timestamp
    if isinstance(value, bool) and expected_type is not bool:
        if not (isinstance(expected_type, tuple) and bool in expected_type):
            errors.append(f"TYPE {full_path}: expected {_type_name(expected_type)}, got bool = {value!r}")
            return
    if not isinstance(value, expected_type):
        errors.append(
            f"TYPE {full_path}: expected {_type_name(expected_type)}, "
            f"got {type(value).__name__} = {value!r}"
        )


def _type_name(expected_type) -> str:
    if isinstance(expected_type, tuple):
        return " | ".join(t.__name__ for t in expected_type)
    return expected_type.__name__


def _validate_dict(data: dict, contract: dict, path: str, errors: list[str]) -> None:
    """Recursively validate data against contract schema."""
    if not isinstance(data, dict):
        errors.append(f"{path}: expected dict, got {type(data).__name__}")
        return

    for raw_key, expected_type in contract.items():
        optional = raw_key.endswith(OPTIONAL_MARK)
        key = raw_key.rstrip(OPTIONAL_MARK)
        full_path = f"{path}.{key}"
        if key not in data:
            if not optional:
                errors.append(f"MISSING {full_path}")
            continue

        value = data[key]
        if value is None:
            errors.append(f"NULL {full_path}: None values must be omitted")
            continue

        # If expected_type is a dict, recurse
        if isinstance(expected_type, dict):
            _validate_dict(value, expected_type, full_path, errors)
        # A one-element list means "list of this shape"
        elif isinstance(expected_type, list):
            if not isinstance(value, list):
                errors.append(f"TYPE {full_path}: expected list, got {type(value).__name__}")
                continue
            for i, item in enumerate(value):
                _validate_dict(item, expected_type[0], f"{full_path}[{i}]", errors)
        else:
            _check_type(value, expected_type, full_path, errors)
