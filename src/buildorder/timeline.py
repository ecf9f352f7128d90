"""
Timeline View

Flattens an enriched replay into a single chronological list of build
events across all players, with a display colour per player and a short
human-readable description per event. This is the payload behind the
timeline front end.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from buildorder.core.constants import UNKNOWN_FACTION, CommandKind
from buildorder.core.models import Command, ReplayData
from buildorder.entity.tracker import format_timestamp

PLAYER_COLORS = (
    "#e74c3c",
    "#3498db",
    "#2ecc71",
    "#f39c12",
    "#9b59b6",
    "#1abc9c",
    "#e67e22",
    "#95a5a6",
)


@dataclass
class TimelineEvent:
    player_id: int
    player_name: str
    faction: str
    timestamp: int
    timestamp_str: str
    command_type: str
    description: str
    color: str


@dataclass
class PlayerSummary:
    id: int
    name: str
    faction: str
    color: str
    commands: int  # size of the filtered build order


@dataclass
class Timeline:
    success: bool = True
    map_name: str = ""
    duration: str = ""
    players: list[PlayerSummary] = field(default_factory=list)
    timeline: list[TimelineEvent] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if not data["map_name"]:
            del data["map_name"]
        if not data["duration"]:
            del data["duration"]
        return data


def describe_command(cmd: Command) -> str:
    """One-line description of a build command for display."""
    kind = cmd.command_kind
    if kind == CommandKind.BUILD_SQUAD:
        return f"🪖 Built: {cmd.unit_name}" if cmd.unit_name else "🪖 Built unit"
    if kind == CommandKind.CONSTRUCT_ENTITY:
        return f"🏗️ Constructed: {cmd.building_name}" if cmd.building_name else "🏗️ Constructed building"
    if kind == CommandKind.BUILD_GLOBAL_UPGRADE:
        return f"🔬 Researched: {cmd.unit_name}" if cmd.unit_name else "🔬 Researched upgrade"
    if kind == CommandKind.SELECT_BATTLEGROUP:
        return f"⚔️ Selected: {cmd.unit_name}" if cmd.unit_name else "⚔️ Selected battlegroup"
    return f"📋 {cmd.command_type}"


def build_timeline(replay: ReplayData) -> Timeline:
    """
    Merge every player's build order into one timeline.

    Uses each player's build_commands, so run the replay through the
    enrichment pipeline first. Events are ordered by timestamp; events at
    the same time keep player order.
    """
    timeline = Timeline(map_name=replay.map_name, duration=replay.duration_str)

    for i, player in enumerate(replay.players):
        color = PLAYER_COLORS[i % len(PLAYER_COLORS)]
        faction = player.faction or UNKNOWN_FACTION
        timeline.players.append(
            PlayerSummary(
                id=player.player_id,
                name=player.player_name,
                faction=faction,
                color=color,
                commands=len(player.build_commands),
            )
        )
        for cmd in player.build_commands:
            timeline.timeline.append(
                TimelineEvent(
                    player_id=player.player_id,
                    player_name=player.player_name,
                    faction=faction,
                    timestamp=cmd.timestamp,
                    timestamp_str=format_timestamp(cmd.timestamp),
                    command_type=cmd.command_type or cmd.command_kind.value,
                    description=describe_command(cmd),
                    color=color,
                )
            )

    timeline.timeline.sort(key=lambda e: e.timestamp)
    return timeline
