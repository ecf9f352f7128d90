"""
buildorder - Constants

Command kinds, command categories, faction display names and timing values
shared by the taxonomy, resolver, tracker and pipeline.
"""

from enum import StrEnum


class CommandKind(StrEnum):
    """
    Command kinds emitted by the replay decoder.

    Values are the decoder's `command_type` strings. Anything the decoder
    emits that is not listed here is treated as UNKNOWN.
    """

    BUILD_SQUAD = "build_squad"
    CONSTRUCT_ENTITY = "construct_entity"
    BUILD_GLOBAL_UPGRADE = "build_global_upgrade"
    USE_ABILITY = "use_ability"
    USE_BATTLEGROUP_ABILITY = "use_battlegroup_ability"
    SELECT_BATTLEGROUP = "select_battlegroup"
    SELECT_BATTLEGROUP_ABILITY = "select_battlegroup_ability"
    CANCEL_CONSTRUCTION = "cancel_construction"
    CANCEL_PRODUCTION = "cancel_production"
    AI_TAKEOVER = "ai_takeover"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: "str | CommandKind | None") -> "CommandKind":
        """Map a decoder string to a kind, falling back to UNKNOWN."""
        if isinstance(value, cls):
            return value
        if not value:
            return cls.UNKNOWN
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN


class CommandCategory(StrEnum):
    """Logical groupings of command kinds."""

    BUILD = "build"
    COMBAT = "combat"
    CONTROL = "control"
    CANCEL = "cancel"
    OTHER = "other"


# Production queues empty quickly once a new building completes, so units
# queued within this window are attributed to the newest building.
DEFAULT_CORRELATION_WINDOW_MS = 60 * 1000

# Starting building of every faction
HQ_BUILDING_ID = "HQ"

# Internal race keys in the blueprint databases -> display faction names
FACTION_DISPLAY_NAMES = {
    "afrika_korps": "Afrika Korps",
    "american": "US Forces",
    "british": "British",
    "british_africa": "British",
    "german": "Wehrmacht",
    "common": "Common",
}

# Name used in fallback building labels when the player's faction is missing
UNKNOWN_FACTION = "Unknown"

# Default locale of the localization table
DEFAULT_LOCALE = "en"
