"""
Command Taxonomy

Static registry describing every command kind the decoder can emit: its
category and whether it builds something, is a combat action, or affects the
economy. This table is the single source of truth for filtering.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from buildorder.core.constants import CommandCategory, CommandKind


@dataclass(frozen=True)
class CommandDefinition:
    """Properties and categorization of one command kind."""

    kind: CommandKind
    category: CommandCategory
    description: str
    is_buildable: bool = False  # Does this command create/build something?
    is_combat: bool = False  # Is this a combat-related action?
    is_economic: bool = False  # Does this affect economy/resources?


COMMAND_DEFINITIONS: dict[CommandKind, CommandDefinition] = {
    CommandKind.BUILD_SQUAD: CommandDefinition(
        CommandKind.BUILD_SQUAD,
        CommandCategory.BUILD,
        "Build a squad/unit",
        is_buildable=True,
        is_economic=True,
    ),
    CommandKind.CONSTRUCT_ENTITY: CommandDefinition(
        CommandKind.CONSTRUCT_ENTITY,
        CommandCategory.BUILD,
        "Construct a building",
        is_buildable=True,
        is_economic=True,
    ),
    CommandKind.BUILD_GLOBAL_UPGRADE: CommandDefinition(
        CommandKind.BUILD_GLOBAL_UPGRADE,
        CommandCategory.BUILD,
        "Research a technology upgrade",
        is_buildable=True,
        is_economic=True,
    ),
    CommandKind.USE_ABILITY: CommandDefinition(
        CommandKind.USE_ABILITY,
        CommandCategory.COMBAT,
        "Use a unit ability",
        is_combat=True,
    ),
    CommandKind.USE_BATTLEGROUP_ABILITY: CommandDefinition(
        CommandKind.USE_BATTLEGROUP_ABILITY,
        CommandCategory.COMBAT,
        "Use a battlegroup ability",
        is_combat=True,
    ),
    CommandKind.SELECT_BATTLEGROUP: CommandDefinition(
        CommandKind.SELECT_BATTLEGROUP,
        CommandCategory.BUILD,
        "Select a battlegroup",
        is_buildable=True,
        is_economic=True,
    ),
    CommandKind.SELECT_BATTLEGROUP_ABILITY: CommandDefinition(
        CommandKind.SELECT_BATTLEGROUP_ABILITY,
        CommandCategory.BUILD,
        "Select a battlegroup ability",
        is_buildable=True,
        is_economic=True,
    ),
    CommandKind.CANCEL_CONSTRUCTION: CommandDefinition(
        CommandKind.CANCEL_CONSTRUCTION,
        CommandCategory.CANCEL,
        "Cancel building construction",
        is_economic=True,
    ),
    CommandKind.CANCEL_PRODUCTION: CommandDefinition(
        CommandKind.CANCEL_PRODUCTION,
        CommandCategory.CANCEL,
        "Cancel unit production",
        is_economic=True,
    ),
    CommandKind.AI_TAKEOVER: CommandDefinition(
        CommandKind.AI_TAKEOVER,
        CommandCategory.CONTROL,
        "AI takes control of player",
    ),
    CommandKind.UNKNOWN: CommandDefinition(
        CommandKind.UNKNOWN,
        CommandCategory.OTHER,
        "Unknown command type",
    ),
}


def definition_of(kind: CommandKind | str | None) -> CommandDefinition:
    """
    Look up the definition of a command kind.

    Total over every input: strings the decoder does not document map to the
    UNKNOWN definition instead of raising.
    """
    return COMMAND_DEFINITIONS[CommandKind.parse(kind)]


def all_command_kinds() -> list[CommandKind]:
    """All known command kinds, in declaration order."""
    return list(CommandKind)


def commands_by_category(category: CommandCategory) -> list[CommandKind]:
    """Command kinds belonging to one category."""
    return [kind for kind, d in COMMAND_DEFINITIONS.items() if d.category == category]


def commands_by_property(predicate: Callable[[CommandDefinition], bool]) -> list[CommandKind]:
    """Command kinds whose definition satisfies a predicate."""
    return [kind for kind, d in COMMAND_DEFINITIONS.items() if predicate(d)]


# ============================================================================
# Filter Presets
# ============================================================================


@dataclass(frozen=True)
class FilterPreset:
    """A named collection of command kinds to include."""

    name: str
    description: str
    include: tuple[CommandKind, ...]


def create_preset(name: str, description: str, kinds: Iterable[CommandKind]) -> FilterPreset:
    """Build a FilterPreset, keeping declaration order and dropping duplicates."""
    return FilterPreset(name=name, description=description, include=tuple(dict.fromkeys(kinds)))


BUILD_ONLY_PRESET = create_preset(
    "build",
    "Units, buildings, upgrades, and battlegroup selections",
    [
        CommandKind.BUILD_SQUAD,
        CommandKind.CONSTRUCT_ENTITY,
        CommandKind.BUILD_GLOBAL_UPGRADE,
        CommandKind.SELECT_BATTLEGROUP,
        CommandKind.SELECT_BATTLEGROUP_ABILITY,
    ],
)

COMBAT_ONLY_PRESET = create_preset(
    "combat",
    "Combat abilities and tactical actions",
    [CommandKind.USE_ABILITY, CommandKind.USE_BATTLEGROUP_ABILITY],
)

ECONOMIC_PRESET = create_preset(
    "economic",
    "All economy-affecting commands",
    commands_by_property(lambda d: d.is_economic),
)

ALL_COMMANDS_PRESET = create_preset("all", "All command types", all_command_kinds())

ARMY_BUILDING_PRESET = create_preset(
    "army_building",
    "Squad building and upgrades only",
    [CommandKind.BUILD_SQUAD, CommandKind.BUILD_GLOBAL_UPGRADE],
)

CONSTRUCTION_PRESET = create_preset(
    "construction",
    "All construction activities",
    [CommandKind.CONSTRUCT_ENTITY, CommandKind.CANCEL_CONSTRUCTION],
)

BATTLEGROUP_PRESET = create_preset(
    "battlegroup",
    "Battlegroup selections and abilities",
    [
        CommandKind.SELECT_BATTLEGROUP,
        CommandKind.SELECT_BATTLEGROUP_ABILITY,
        CommandKind.USE_BATTLEGROUP_ABILITY,
    ],
)

COMBAT_AND_ECONOMIC_PRESET = create_preset(
    "combat_and_economic",
    "Commands that affect combat or economy",
    commands_by_property(lambda d: d.is_combat or d.is_economic),
)

FILTER_PRESETS: dict[str, FilterPreset] = {
    preset.name: preset
    for preset in (
        BUILD_ONLY_PRESET,
        COMBAT_ONLY_PRESET,
        ECONOMIC_PRESET,
        ALL_COMMANDS_PRESET,
        ARMY_BUILDING_PRESET,
        CONSTRUCTION_PRESET,
        BATTLEGROUP_PRESET,
        COMBAT_AND_ECONOMIC_PRESET,
    )
}
