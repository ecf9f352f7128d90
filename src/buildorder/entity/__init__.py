"""Entity tracking and building inference."""

from buildorder.entity.tracker import (
    BuildingInfo,
    EntityState,
    EntityTracker,
    TrackedEntity,
    format_timestamp,
)

__all__ = ["BuildingInfo", "EntityState", "EntityTracker", "TrackedEntity", "format_timestamp"]
