"""
buildorder - Company of Heroes 3 Build Order Enrichment

Turns the decoded command stream of a CoH3 replay into a readable build order:
blueprint ids become unit and building names, commands are classified and
filtered, and constructed buildings are identified from later production.

Usage:
    from buildorder import EnrichmentPipeline, load_replay

    replay = load_replay("decoded_replay.json")
    pipeline = EnrichmentPipeline.from_config()
    enriched = pipeline.enrich_replay(replay)

    for cmd in enriched.players[0].build_commands:
        print(cmd.timestamp, cmd.unit_name or cmd.building_name)
"""

__version__ = "0.3.0"
__author__ = "buildorder Contributors"


def __getattr__(name):
    """Lazy import so that `import buildorder` stays cheap."""
    if name == "EnrichmentPipeline":
        from buildorder.pipeline.enrichment import EnrichmentPipeline
        return EnrichmentPipeline
    elif name == "BlueprintResolver":
        from buildorder.lookup.resolver import BlueprintResolver
        return BlueprintResolver
    elif name == "EntityTracker":
        from buildorder.entity.tracker import EntityTracker
        return EntityTracker
    elif name == "CommandKind":
        from buildorder.core.constants import CommandKind
        return CommandKind
    elif name == "CommandFilter":
        from buildorder.commands.filters import CommandFilter
        return CommandFilter
    elif name == "load_replay":
        from buildorder.core.models import load_replay
        return load_replay
    raise AttributeError(f"module 'buildorder' has no attribute '{name}'")


__all__ = [
    # Version
    "__version__",
    # Pipeline
    "EnrichmentPipeline",
    "BlueprintResolver",
    "EntityTracker",
    "CommandKind",
    "CommandFilter",
    "load_replay",
]
