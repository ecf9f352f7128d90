"""Building inference from production activity.

Construction commands often carry no blueprint id, only an entity index.
The tracker collects every command per entity index and infers what a
constructed building is from the units produced by it, or failing that,
from units queued anywhere shortly after it was placed.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from buildorder.core.constants import DEFAULT_CORRELATION_WINDOW_MS, HQ_BUILDING_ID, CommandKind
from buildorder.core.errors import ConfigError
from buildorder.core.models import Command
from buildorder.lookup.reference_data import normalize_pbgid

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

UNKNOWN_BUILDING_ID = "UNKNOWN"

# Normalized faction key -> unit PBGID -> building id
UNIT_TO_BUILDING: dict[str, dict[str, str]] = {
    "afrikakorps": {
        # Headquarters
        "198340": HQ_BUILDING_ID,  # Panzergrenadier Squad
        "198341": HQ_BUILDING_ID,  # Panzerpioneer Squad
        "198355": HQ_BUILDING_ID,  # Kradschützen Motorcycle Team
        # Light Support Kompanie
        "198347": "198236",  # MG34 Machine Gun Team
        "198342": "198236",  # Panzerjäger Squad
        "2072237": "198236",  # 2.5-tonne Medical Truck
        "2063111": "198236",  # Flakvierling Half-track
        # Mechanized Kompanie
        "2033664": "198237",  # StuG III D Assault Gun
        "198357": "198237",  # Marder III Tank Destroyer
        "198361": "198237",  # Panzer III Medium Tank
        # Producing building not identified yet
        "198413": UNKNOWN_BUILDING_ID,  # Walking Stuka Rocket Launcher
    },
    "wehrmacht": {},
    "americans": {},
    "british": {},
}

BUILDING_NAMES: dict[str, str] = {
    HQ_BUILDING_ID: "Headquarters",
    "198236": "Light Support Kompanie",
    "198237": "Mechanized Kompanie",
    UNKNOWN_BUILDING_ID: "Unknown Building Type",
}


def normalize_faction(faction: str | None) -> str:
    """Afrika Korps / afrika_korps -> afrikakorps"""
    return (faction or "").lower().replace(" ", "").replace("_", "")


def format_timestamp(timestamp_ms: int) -> str:
    """Milliseconds -> MM:SS"""
    minutes, seconds = divmod(timestamp_ms // 1000, 60)
    return f"{minutes:02d}:{seconds:02d}"


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


class EntityState(StrEnum):
    TRACKED = "tracked"
    BUILDING_CONFIRMED = "building_confirmed"
    BUILDING_INFERRED = "building_inferred"


@dataclass(frozen=True)
class BuildingInfo:
    building_id: str
    name: str


@dataclass(frozen=True)
class EntityCommand:
    """A command as recorded in an entity's history."""

    timestamp: int
    command_kind: CommandKind
    numeric_id: str | None = None
    details: str = ""


@dataclass
class TrackedEntity:
    """Everything seen for one entity index."""

    index: str
    first_seen: int
    last_seen: int
    faction: str
    history: list[EntityCommand] = field(default_factory=list)
    inferred_building: BuildingInfo | None = None  # set at most once

    @property
    def construct_timestamp(self) -> int | None:
        """Time of the first construct_entity command, if any."""
        for cmd in self.history:
            if cmd.command_kind == CommandKind.CONSTRUCT_ENTITY:
                return cmd.timestamp
        return None

    @property
    def is_building(self) -> bool:
        return self.construct_timestamp is not None

    @property
    def state(self) -> EntityState:
        if self.inferred_building is not None:
            return EntityState.BUILDING_INFERRED
        if self.is_building:
            return EntityState.BUILDING_CONFIRMED
        return EntityState.TRACKED

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "faction": self.faction,
            "state": self.state.value,
            "first_seen": self.first_seen,
            "last_seen": self.last_seen,
            "first_seen_str": format_timestamp(self.first_seen),
            "command_count": len(self.history),
            "inferred_building_id": self.inferred_building.building_id if self.inferred_building else None,
            "inferred_building_name": self.inferred_building.name if self.inferred_building else None,
        }


# ---------------------------------------------------------------------------
# Tracker
# ---------------------------------------------------------------------------


class EntityTracker:
    """
    Tracks entities of one player's command stream.

    Inference per building, in order:
      1. Direct: the first unit built from the entity itself that maps to a
         building (HQ included).
      2. Correlated: the first unit queued anywhere within the correlation
         window after the entity's construction that maps to a non-HQ
         building.
    Results are write-once. Create one tracker per command stream.
    """

    def __init__(
        self,
        unit_to_building: Mapping[str, Mapping[str, str]] | None = None,
        correlation_window_ms: int = DEFAULT_CORRELATION_WINDOW_MS,
        correlation_enabled: bool = True,
    ):
        if correlation_window_ms < 0:
            raise ConfigError(f"correlation_window_ms must be >= 0, got {correlation_window_ms}")
        self.unit_to_building = unit_to_building if unit_to_building is not None else UNIT_TO_BUILDING
        self.correlation_window_ms = correlation_window_ms
        self.correlation_enabled = correlation_enabled
        self._entities: dict[str, TrackedEntity] = {}
        # (timestamp, unit id) of every tracked build_squad, in arrival order
        self._production: list[tuple[int, str]] = []

    def track_command(self, command: Command, faction: str | None) -> None:
        """Record a command against its entity index; commands without one are ignored."""
        index = command.entity_index
        if not index:
            return

        entity = self._entities.get(index)
        if entity is None:
            entity = TrackedEntity(
                index=index,
                first_seen=command.timestamp,
                last_seen=command.timestamp,
                faction=faction or "",
            )
            self._entities[index] = entity
        entity.last_seen = command.timestamp

        numeric_id = normalize_pbgid(command.numeric_id)
        entity.history.append(
            EntityCommand(
                timestamp=command.timestamp,
                command_kind=command.command_kind,
                numeric_id=numeric_id,
                details=command.details,
            )
        )
        if command.command_kind == CommandKind.BUILD_SQUAD and numeric_id is not None:
            self._production.append((command.timestamp, numeric_id))

        self._infer(entity)

    def infer_building_from_unit(self, unit_id: str, faction: str) -> BuildingInfo | None:
        """Building that produces a unit for a faction, or None when unmapped."""
        table = self.unit_to_building.get(normalize_faction(faction))
        if not table:
            return None
        building_id = table.get(unit_id)
        if building_id is None:
            return None
        name = BUILDING_NAMES.get(building_id, f"Unknown Building (ID: {building_id})")
        return BuildingInfo(building_id=building_id, name=name)

    def _infer(self, entity: TrackedEntity) -> None:
        if entity.inferred_building is not None:
            return
        construct_time = entity.construct_timestamp
        if construct_time is None:
            return

        # Units built from the entity itself
        for cmd in entity.history:
            if cmd.command_kind != CommandKind.BUILD_SQUAD or cmd.numeric_id is None:
                continue
            building = self.infer_building_from_unit(cmd.numeric_id, entity.faction)
            if building is not None:
                entity.inferred_building = building
                logger.debug(f"Entity {entity.index}: {building.name} (direct, unit {cmd.numeric_id})")
                return

        if not self.correlation_enabled:
            return

        # Units queued anywhere shortly after construction. HQ is the
        # starting building, so it never explains a new construction.
        window_end = construct_time + self.correlation_window_ms
        for timestamp, unit_id in self._production:
            if not construct_time <= timestamp <= window_end:
                continue
            building = self.infer_building_from_unit(unit_id, entity.faction)
            if building is not None and building.building_id != HQ_BUILDING_ID:
                entity.inferred_building = building
                logger.debug(
                    f"Entity {entity.index}: {building.name} "
                    f"(correlated, unit {unit_id} at {format_timestamp(timestamp)})"
                )
                return

    def finalize_tracking(self) -> None:
        """Re-run inference for every entity once the whole stream is ingested."""
        for entity in self._entities.values():
            self._infer(entity)

    def inferred_building(self, index: str | None) -> BuildingInfo | None:
        entity = self._entities.get(index) if index else None
        return entity.inferred_building if entity else None

    def get_tracked_entities(self) -> dict[str, TrackedEntity]:
        return dict(self._entities)

    def get_buildings(self) -> list[TrackedEntity]:
        """Entities with a construct_entity command, in first-seen order."""
        return [e for e in self._entities.values() if e.is_building]

    format_timestamp = staticmethod(format_timestamp)

    def to_dict(self) -> dict[str, Any]:
        buildings = self.get_buildings()
        return {
            "entity_count": len(self._entities),
            "building_count": len(buildings),
            "inferred_count": sum(1 for b in buildings if b.inferred_building is not None),
            "correlation_window_ms": self.correlation_window_ms if self.correlation_enabled else None,
            "entities": [e.to_dict() for e in self._entities.values()],
        }
