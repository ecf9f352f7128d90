"""
Command Filters

Immutable inclusion masks over command kinds. Filters are built by free
functions (from a preset, explicit kinds, a category or a predicate) and
composed by union, so combining filters only ever adds kinds.

Usage:
    from buildorder.commands.filters import filter_from_kinds, filter_from_preset

    f = filter_from_preset("combat") | filter_from_kinds("build_squad")
    f.includes("use_ability")  # True
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass

from buildorder.commands.taxonomy import (
    ALL_COMMANDS_PRESET,
    BUILD_ONLY_PRESET,
    COMBAT_ONLY_PRESET,
    ECONOMIC_PRESET,
    FILTER_PRESETS,
    CommandDefinition,
    FilterPreset,
    commands_by_category,
    commands_by_property,
)
from buildorder.core.constants import CommandCategory, CommandKind
from buildorder.core.errors import FilterConfigError

# Prefix of the decoder's per-kind flags (include_build_squad, ...)
FLAG_PREFIX = "include_"


@dataclass(frozen=True)
class CommandFilter:
    """Set of command kinds to include in the filtered view."""

    kinds: frozenset[CommandKind] = frozenset()

    def includes(self, kind: CommandKind | str | None) -> bool:
        """Whether commands of this kind pass the filter."""
        return CommandKind.parse(kind) in self.kinds

    @property
    def is_empty(self) -> bool:
        return not self.kinds

    @property
    def mask(self) -> dict[CommandKind, bool]:
        """One boolean per known command kind, in declaration order."""
        return {kind: kind in self.kinds for kind in CommandKind}

    def union(self, other: CommandFilter) -> CommandFilter:
        return CommandFilter(self.kinds | other.kinds)

    __or__ = union

    def issubset(self, other: CommandFilter) -> bool:
        return self.kinds <= other.kinds

    def included_kinds(self) -> list[CommandKind]:
        """Included kinds, in declaration order."""
        return [kind for kind in CommandKind if kind in self.kinds]

    def to_dict(self) -> dict[str, bool]:
        """Render as the decoder's include_<kind> flag dictionary."""
        return {f"{FLAG_PREFIX}{kind.value}": included for kind, included in self.mask.items()}

    @classmethod
    def from_dict(cls, flags: Mapping[str, bool]) -> CommandFilter:
        """Inverse of to_dict(). Unknown flag names are rejected."""
        kinds = set()
        for name, included in flags.items():
            kind = _flag_to_kind(name)
            if included:
                kinds.add(kind)
        return cls(frozenset(kinds))


def _flag_to_kind(name: str) -> CommandKind:
    if not name.startswith(FLAG_PREFIX):
        raise FilterConfigError(f"Unknown filter flag: {name!r}")
    try:
        return CommandKind(name[len(FLAG_PREFIX):])
    except ValueError:
        raise FilterConfigError(f"Unknown filter flag: {name!r}") from None


def _coerce_kind(kind: CommandKind | str) -> CommandKind:
    # Strict: configuration typos must not silently become "unknown"
    if isinstance(kind, CommandKind):
        return kind
    if isinstance(kind, str):
        try:
            return CommandKind(kind.strip().lower())
        except ValueError:
            pass
    raise FilterConfigError(
        f"Unknown command kind: {kind!r}. Valid kinds: {', '.join(k.value for k in CommandKind)}"
    )


# ============================================================================
# Filter Constructors
# ============================================================================


def filter_from_preset(preset: FilterPreset | str) -> CommandFilter:
    """Filter including every kind of a preset (object or registered name)."""
    if isinstance(preset, FilterPreset):
        return CommandFilter(frozenset(preset.include))
    if isinstance(preset, str) and preset.strip().lower() in FILTER_PRESETS:
        return CommandFilter(frozenset(FILTER_PRESETS[preset.strip().lower()].include))
    raise FilterConfigError(
        f"Unknown filter preset: {preset!r}. Valid presets: {', '.join(FILTER_PRESETS)}"
    )


def filter_from_kinds(*kinds: CommandKind | str) -> CommandFilter:
    """Filter including exactly the given kinds."""
    return CommandFilter(frozenset(_coerce_kind(kind) for kind in kinds))


def filter_from_category(category: CommandCategory | str) -> CommandFilter:
    """Filter including every kind of one category."""
    try:
        resolved = CommandCategory(category.strip().lower() if isinstance(category, str) else category)
    except (ValueError, AttributeError):
        raise FilterConfigError(
            f"Unknown command category: {category!r}. "
            f"Valid categories: {', '.join(c.value for c in CommandCategory)}"
        ) from None
    return CommandFilter(frozenset(commands_by_category(resolved)))


def filter_from_predicate(predicate: Callable[[CommandDefinition], bool]) -> CommandFilter:
    """Filter including every kind whose definition satisfies the predicate."""
    if not callable(predicate):
        raise FilterConfigError(f"Filter predicate must be callable, got {type(predicate).__name__}")
    return CommandFilter(frozenset(commands_by_property(predicate)))


def combine_filters(*filters: CommandFilter) -> CommandFilter:
    """Union of several filters."""
    kinds: frozenset[CommandKind] = frozenset()
    for f in filters:
        kinds |= f.kinds
    return CommandFilter(kinds)


def effective_filter(*filters: CommandFilter) -> CommandFilter:
    """
    Union of the given filters, defaulting to the build preset.

    A configuration that specifies nothing still yields a useful build order.
    """
    combined = combine_filters(*filters)
    if combined.is_empty:
        return filter_from_preset(BUILD_ONLY_PRESET)
    return combined


def filter_from_settings(
    presets: Iterable[str] = (),
    kinds: Iterable[str] = (),
    categories: Iterable[str] = (),
) -> CommandFilter:
    """Build the effective filter from configuration lists."""
    if isinstance(presets, str) or isinstance(kinds, str) or isinstance(categories, str):
        raise FilterConfigError("Filter presets, kinds and categories must be lists, not strings")
    parts = [filter_from_preset(p) for p in presets]
    if kinds:
        parts.append(filter_from_kinds(*kinds))
    parts.extend(filter_from_category(c) for c in categories)
    return effective_filter(*parts)


# ============================================================================
# Quick access functions for common configurations
# ============================================================================


def build_commands() -> CommandFilter:
    """Build-related commands only."""
    return filter_from_preset(BUILD_ONLY_PRESET)


def combat_commands() -> CommandFilter:
    """Combat-related commands only."""
    return filter_from_preset(COMBAT_ONLY_PRESET)


def economic_commands() -> CommandFilter:
    """Economy-affecting commands."""
    return filter_from_preset(ECONOMIC_PRESET)


def all_commands() -> CommandFilter:
    return filter_from_preset(ALL_COMMANDS_PRESET)


def only_squad_building() -> CommandFilter:
    return filter_from_kinds(CommandKind.BUILD_SQUAD)


def only_buildings() -> CommandFilter:
    return filter_from_kinds(CommandKind.CONSTRUCT_ENTITY)


def only_abilities() -> CommandFilter:
    return filter_from_kinds(CommandKind.USE_ABILITY, CommandKind.USE_BATTLEGROUP_ABILITY)


def battlegroup_related() -> CommandFilter:
    return filter_from_kinds(
        CommandKind.SELECT_BATTLEGROUP,
        CommandKind.SELECT_BATTLEGROUP_ABILITY,
        CommandKind.USE_BATTLEGROUP_ABILITY,
    )
