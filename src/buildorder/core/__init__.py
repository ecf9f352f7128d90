"""Core data models, configuration, constants and errors."""

from buildorder.core.constants import CommandCategory, CommandKind
from buildorder.core.errors import (
    BuildOrderError,
    ConfigError,
    FilterConfigError,
    ReferenceDataError,
    ReplayFormatError,
)
from buildorder.core.models import Command, GameMessage, Player, ReplayData, Team, load_replay

__all__ = [
    "BuildOrderError",
    "Command",
    "CommandCategory",
    "CommandKind",
    "ConfigError",
    "FilterConfigError",
    "GameMessage",
    "Player",
    "ReferenceDataError",
    "ReplayData",
    "ReplayFormatError",
    "Team",
    "load_replay",
]
