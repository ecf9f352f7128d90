"""Enrichment pipeline and its output contract."""

from buildorder.pipeline.contract import validate_command, validate_player, validate_result
from buildorder.pipeline.enrichment import (
    EnrichmentPipeline,
    build_index_correlation,
    fallback_building_name,
)

__all__ = [
    "EnrichmentPipeline",
    "build_index_correlation",
    "fallback_building_name",
    "validate_command",
    "validate_player",
    "validate_result",
]
