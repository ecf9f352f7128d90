"""
buildorder Web API

FastAPI application serving build order enrichment to the web front end.

Provides:
- Enrichment of decoded replay JSON (names, filtered build order)
- Timeline view across all players of a replay
- Filter preset listing
"""

import logging
from typing import Any

from fastapi import Body, FastAPI, HTTPException, Query
from pydantic import BaseModel

from buildorder import __version__
from buildorder.commands.filters import filter_from_settings
from buildorder.commands.taxonomy import FILTER_PRESETS
from buildorder.core.config import get_config, validate_config
from buildorder.core.errors import ConfigError, FilterConfigError, ReplayFormatError
from buildorder.core.models import ReplayData
from buildorder.pipeline.enrichment import EnrichmentPipeline
from buildorder.timeline import build_timeline

logger = logging.getLogger(__name__)

app = FastAPI(
    title="buildorder",
    description="Company of Heroes 3 build orders from decoded replays",
    version=__version__,
)


# =============================================================================
# Response Models
# =============================================================================


class PresetResponse(BaseModel):
    name: str
    description: str
    kinds: list[str]


class PlayerSummaryModel(BaseModel):
    id: int
    name: str
    faction: str
    color: str
    commands: int


class TimelineEventModel(BaseModel):
    player_id: int
    player_name: str
    faction: str
    timestamp: int
    timestamp_str: str
    command_type: str
    description: str
    color: str


class TimelineResponse(BaseModel):
    success: bool
    map_name: str | None = None
    duration: str | None = None
    players: list[PlayerSummaryModel] = []
    timeline: list[TimelineEventModel] = []


# =============================================================================
# Helpers
# =============================================================================


def _enrich(
    payload: dict[str, Any],
    presets: list[str],
    kinds: list[str],
    categories: list[str],
    tracking: bool,
) -> tuple[ReplayData, EnrichmentPipeline]:
    """Parse a request body and run it through a fresh pipeline."""
    try:
        config = validate_config(get_config())
        if presets or kinds or categories:
            command_filter = filter_from_settings(presets, kinds, categories)
        else:
            command_filter = filter_from_settings(
                config.filter.presets, config.filter.kinds, config.filter.categories
            )
    except (ConfigError, FilterConfigError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        replay = ReplayData.from_dict(payload)
    except ReplayFormatError as e:
        raise HTTPException(status_code=422, detail=str(e))

    pipeline = EnrichmentPipeline(
        config.data.data_dir,
        locale=config.data.locale,
        command_filter=command_filter,
        tracking_enabled=tracking and config.tracking.enabled,
        correlation_window_ms=config.tracking.correlation_window_ms,
    )
    return pipeline.enrich_replay(replay), pipeline


# =============================================================================
# Routes
# =============================================================================


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


@app.get("/api/presets", response_model=list[PresetResponse])
async def list_presets():
    """Available command filter presets."""
    return [
        PresetResponse(name=name, description=p.description, kinds=[k.value for k in p.include])
        for name, p in FILTER_PRESETS.items()
    ]


@app.post("/api/enrich")
def enrich_replay(
    payload: dict[str, Any] = Body(..., description="Decoded replay JSON"),
    preset: list[str] = Query(default=[], description="Filter presets to include"),
    kind: list[str] = Query(default=[], description="Command kinds to include"),
    category: list[str] = Query(default=[], description="Command categories to include"),
    tracking: bool = Query(default=True, description="Infer building types from production"),
):
    """Enrich a decoded replay with unit/building names and a filtered build order."""
    replay, pipeline = _enrich(payload, preset, kind, category, tracking)
    if pipeline.is_passthrough:
        logger.warning("Served /api/enrich without reference data")
    return replay.to_dict()


@app.post("/api/timeline", response_model=TimelineResponse, response_model_exclude_none=True)
def replay_timeline(
    payload: dict[str, Any] = Body(..., description="Decoded replay JSON"),
    preset: list[str] = Query(default=[], description="Filter presets to include"),
    kind: list[str] = Query(default=[], description="Command kinds to include"),
    category: list[str] = Query(default=[], description="Command categories to include"),
    tracking: bool = Query(default=True, description="Infer building types from production"),
):
    """Enrich a decoded replay and flatten every build order into one timeline."""
    replay, _ = _enrich(payload, preset, kind, category, tracking)
    return build_timeline(replay).to_dict()
