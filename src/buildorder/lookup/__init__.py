"""Blueprint reference data and PBGID resolution."""

from buildorder.lookup.reference_data import (
    ReferenceData,
    clear_reference_cache,
    get_reference_data,
    load_reference_data,
    normalize_pbgid,
)
from buildorder.lookup.resolver import BlueprintResolver, UnitInfo, parse_pbgid

__all__ = [
    "BlueprintResolver",
    "ReferenceData",
    "UnitInfo",
    "clear_reference_cache",
    "get_reference_data",
    "load_reference_data",
    "normalize_pbgid",
    "parse_pbgid",
]
