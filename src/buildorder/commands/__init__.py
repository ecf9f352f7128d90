"""
buildorder Commands - Command taxonomy and filtering.

- taxonomy: per-kind definitions (category, buildable/combat/economic) and presets
- filters: immutable inclusion masks composed by union
"""

from buildorder.commands.filters import (
    CommandFilter,
    combine_filters,
    effective_filter,
    filter_from_category,
    filter_from_kinds,
    filter_from_predicate,
    filter_from_preset,
    filter_from_settings,
)
from buildorder.commands.taxonomy import (
    COMMAND_DEFINITIONS,
    FILTER_PRESETS,
    CommandDefinition,
    FilterPreset,
    definition_of,
)

__all__ = [
    "COMMAND_DEFINITIONS",
    "FILTER_PRESETS",
    "CommandDefinition",
    "CommandFilter",
    "FilterPreset",
    "combine_filters",
    "definition_of",
    "effective_filter",
    "filter_from_category",
    "filter_from_kinds",
    "filter_from_predicate",
    "filter_from_preset",
    "filter_from_settings",
]
