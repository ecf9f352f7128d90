"""
Enrichment Pipeline - resolves names for decoded replay commands.

For each player's command list:
  1. Scan once for commands carrying both an entity index and a blueprint
     id, building an index -> id correlation table.
  2. Feed every command to a fresh EntityTracker and finalize it.
  3. Apply the per-kind naming rule to each command.

Enrichment only adds unit_name / building_name. Commands are never dropped
or reordered. When the reference data cannot be loaded the pipeline passes
commands through unenriched; classification and filtering still apply.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from buildorder.commands.filters import CommandFilter, effective_filter, filter_from_settings
from buildorder.core.config import BuildOrderConfig, get_config, validate_config
from buildorder.core.constants import (
    DEFAULT_CORRELATION_WINDOW_MS,
    DEFAULT_LOCALE,
    UNKNOWN_FACTION,
    CommandKind,
)
from buildorder.core.errors import ConfigError, ReferenceDataError
from buildorder.core.models import Command, Player, ReplayData
from buildorder.entity.tracker import EntityTracker
from buildorder.lookup.reference_data import (
    ReferenceData,
    get_reference_data,
    load_reference_data,
    normalize_pbgid,
)
from buildorder.lookup.resolver import BlueprintResolver

logger = logging.getLogger(__name__)

PLACEHOLDER_UPGRADE = "Unknown Upgrade"
PLACEHOLDER_BATTLEGROUP = "Unknown Battlegroup"
PLACEHOLDER_BATTLEGROUP_ABILITY = "Unknown Battlegroup Ability"


def build_index_correlation(commands: Iterable[Command]) -> dict[str, str]:
    """
    Map entity index -> blueprint id from commands carrying both.

    Indices are reused by the decoder, so the last association wins.
    """
    table: dict[str, str] = {}
    for cmd in commands:
        if not cmd.entity_index:
            continue
        numeric_id = normalize_pbgid(cmd.numeric_id)
        if numeric_id is not None:
            table[cmd.entity_index] = numeric_id
    return table


def fallback_building_name(faction: str | None, index: str | None) -> str:
    """Positional name for a construction nothing else could identify."""
    faction = faction or UNKNOWN_FACTION
    if index:
        return f"{faction} Building (Structure #{index})"
    return f"{faction} Building"


class EnrichmentPipeline:
    """
    Orchestrates resolver, tracker and filter over replay commands.

    Reference data is loaded (or taken from the process cache) when the
    pipeline is built. A fresh resolver and tracker are created for each
    command list, so one pipeline can serve concurrent requests.
    """

    def __init__(
        self,
        data_dir: Path | str | None = None,
        *,
        locale: str = DEFAULT_LOCALE,
        command_filter: CommandFilter | None = None,
        tracking_enabled: bool = True,
        correlation_window_ms: int = DEFAULT_CORRELATION_WINDOW_MS,
        reference: ReferenceData | None = None,
        use_cache: bool = True,
    ):
        if correlation_window_ms < 0:
            raise ConfigError(f"correlation_window_ms must be >= 0, got {correlation_window_ms}")
        filters = (command_filter,) if command_filter is not None else ()
        self.command_filter = effective_filter(*filters)
        self.tracking_enabled = tracking_enabled
        self.correlation_window_ms = correlation_window_ms
        self.reference = reference

        if self.reference is None and data_dir is not None:
            loader = get_reference_data if use_cache else load_reference_data
            try:
                self.reference = loader(data_dir, locale)
            except ReferenceDataError as e:
                logger.warning(f"Reference data unavailable, names will not be resolved: {e}")

        if self.reference is None:
            logger.warning("Enrichment pipeline running in passthrough mode")

    @classmethod
    def from_config(
        cls,
        config: BuildOrderConfig | None = None,
        command_filter: CommandFilter | None = None,
    ) -> EnrichmentPipeline:
        """
        Build a pipeline from configuration (the global config by default).

        An explicit command_filter replaces the configured filter settings.

        Raises:
            ConfigError: a configured value has the wrong type or range
            FilterConfigError: the configured filter settings are invalid
        """
        if config is None:
            config = get_config()
        validate_config(config)
        if command_filter is None:
            command_filter = filter_from_settings(
                config.filter.presets, config.filter.kinds, config.filter.categories
            )
        return cls(
            config.data.data_dir,
            locale=config.data.locale,
            command_filter=command_filter,
            tracking_enabled=config.tracking.enabled,
            correlation_window_ms=config.tracking.correlation_window_ms,
        )

    @property
    def is_passthrough(self) -> bool:
        return self.reference is None

    def _new_tracker(self) -> EntityTracker | None:
        if not self.tracking_enabled:
            return None
        return EntityTracker(correlation_window_ms=self.correlation_window_ms)

    def enrich_commands(self, commands: list[Command], faction: str | None = None) -> list[Command]:
        """Fill name fields on one player's commands in place and return them."""
        if self.reference is None:
            return commands

        resolver = BlueprintResolver(self.reference)
        correlation = build_index_correlation(commands)

        tracker = self._new_tracker()
        if tracker is not None:
            for cmd in commands:
                tracker.track_command(cmd, faction)
            tracker.finalize_tracking()

        for cmd in commands:
            self._enrich_command(cmd, resolver, tracker, correlation, faction)
        return commands

    def _enrich_command(
        self,
        cmd: Command,
        resolver: BlueprintResolver,
        tracker: EntityTracker | None,
        correlation: dict[str, str],
        faction: str | None,
    ) -> None:
        kind = cmd.command_kind
        correlated_id = correlation.get(cmd.entity_index) if cmd.entity_index else None

        if kind in (CommandKind.BUILD_SQUAD, CommandKind.USE_ABILITY):
            name = resolver.friendly_name(cmd.numeric_id)
            if not name and correlated_id:
                name = resolver.friendly_name(correlated_id)
            cmd.set_unit_name(name)

        elif kind == CommandKind.CONSTRUCT_ENTITY:
            cmd.set_building_name(self._building_name(cmd, resolver, tracker, correlated_id, faction))

        elif kind == CommandKind.SELECT_BATTLEGROUP:
            if cmd.numeric_id is None:
                cmd.set_unit_name(PLACEHOLDER_BATTLEGROUP)
            else:
                cmd.set_unit_name(resolver.battlegroup_name(cmd.numeric_id))

        elif kind == CommandKind.BUILD_GLOBAL_UPGRADE:
            if cmd.numeric_id is None:
                cmd.set_unit_name(PLACEHOLDER_UPGRADE)
            else:
                cmd.set_unit_name(resolver.upgrade_name(cmd.numeric_id))

        elif kind == CommandKind.SELECT_BATTLEGROUP_ABILITY:
            if cmd.numeric_id is None:
                cmd.set_unit_name(PLACEHOLDER_BATTLEGROUP_ABILITY)

        # Remaining kinds carry nothing nameable

    def _building_name(
        self,
        cmd: Command,
        resolver: BlueprintResolver,
        tracker: EntityTracker | None,
        correlated_id: str | None,
        faction: str | None,
    ) -> str:
        name = resolver.friendly_name(cmd.numeric_id)
        if name:
            return name
        if correlated_id:
            name = resolver.friendly_name(correlated_id)
            if name:
                return name
        if tracker is not None:
            building = tracker.inferred_building(cmd.entity_index)
            if building is not None:
                return building.name
        return fallback_building_name(faction, cmd.entity_index)

    def filter_commands(self, commands: Iterable[Command]) -> list[Command]:
        """Commands passing the pipeline's filter, in original order."""
        return [cmd for cmd in commands if self.command_filter.includes(cmd.command_kind)]

    def enrich_player(self, player: Player) -> Player:
        """Enrich a player's commands and rebuild their filtered build order."""
        # Some decoder outputs carry only the pre-filtered list
        source = player.commands if player.commands else player.build_commands
        self.enrich_commands(source, player.faction)
        player.build_commands = self.filter_commands(source)
        logger.debug(
            f"Player {player.player_name or player.player_id}: {len(player.commands)} commands, "
            f"{len(player.build_commands)} in build order"
        )
        return player

    def enrich_replay(self, replay: ReplayData) -> ReplayData:
        """Enrich every player of a replay in place and return it."""
        for player in replay.players:
            self.enrich_player(player)
        logger.info(
            f"Enriched {len(replay.players)} players"
            + (" (passthrough, no reference data)" if self.is_passthrough else "")
        )
        return replay
