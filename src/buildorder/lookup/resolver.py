"""
Blueprint Resolver

Turns numeric blueprint ids (PBGIDs) into human-readable unit and building
names, plus hand-curated lookups for battlegroups and global upgrades that
the blueprint databases do not describe.

Usage:
    resolver = BlueprintResolver.from_directory("./data/coh3-data")
    info = resolver.resolve("198340")
    if info:
        print(info.name, info.faction, info.category)
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from buildorder.core.constants import DEFAULT_LOCALE, FACTION_DISPLAY_NAMES
from buildorder.lookup.reference_data import (
    BlueprintRecord,
    ReferenceData,
    get_reference_data,
    load_reference_data,
    normalize_pbgid,
)

logger = logging.getLogger(__name__)

MAX_PBGID = 2**32 - 1

# sbps sub-category -> display category
UNIT_CATEGORIES = {
    "vehicles": "Vehicle",
    "infantry": "Infantry",
    "aircraft": "Aircraft",
    "emplacements": "Support",
    "team_weapons": "Support",
}

# ebps has no structural category; keywords in the blueprint key decide
BUILDING_CATEGORY_KEYWORDS = (
    (("vehicle", "tank", "halftrack"), "Vehicle"),
    (("engineer", "pioneer"), "Engineer"),
    (("gun", "mortar", "mg"), "Support"),
)

BATTLEGROUP_NAMES: dict[int, str] = {
    # Afrika Korps
    2075338: "Armored Support",
    2074237: "Italian Combined Arms",
    2072429: "Italian Infantry",
    2164392: "Panzerjäger Kommand",
    2151628: "Subterfuge",
    2164378: "Unknown Afrika Korps BG",
    # US Forces
    199102: "Airborne",
    199103: "Armored",
    199104: "Infantry",
    201151: "Special Operations",
    2164585: "Special Weapons",
    196934: "Armored (US)",
    # British
    2031369: "Australian Defense",
    222365: "British Air and Sea",
    202334: "British Armored",
    2164115: "Canadian Shock",
    201661: "Indian Artillery",
    2164107: "Unknown British BG 1",
    2031370: "Unknown British BG 2",
    # Wehrmacht
    199106: "Breakthrough",
    2033170: "Coastal",
    200769: "Defense",
    199091: "Luftwaffe",
    199105: "Mechanized",
    2163770: "Terror",
    198405: "Unknown Wehrmacht BG 1",
    197799: "Unknown Wehrmacht BG 2",
}

UPGRADE_NAMES: dict[int, str] = {
    # Afrika Korps
    2072101: "T1 Unit Unlock (Afrika Korps)",
    2072102: "T2 Unit Unlock (Afrika Korps)",
    2108279: "Armored Assault Tactics (Afrika Korps)",
    2084237: "Vehicle Survivability Self-Repair (Afrika Korps)",
    2084216: "Operational Blitzkrieg (Afrika Korps)",
    2084214: "Smoke Survivability (Afrika Korps)",
    # British
    197637: "Bishop Squad Unlock (British)",
    197636: "Stuart Squad Unlock (British)",
    197635: "Rifle Grenade Tommy (British)",
    197638: "17-pounder Squad Unlock (British)",
    2072354: "Grant Tank Unlock (British)",
    2082737: "Training Center Infantry (British Africa)",
    2082738: "Training Center Team Weapons (British Africa)",
    # Wehrmacht
    170742: "Medical Station (Wehrmacht)",
    2081888: "Panzer Kompanie Veterancy (Wehrmacht)",
    2081886: "Panzergrenadier Kompanie Veterancy (Wehrmacht)",
    2089293: "Side Skirts Global (Wehrmacht)",
    2140327: "Medical Bunker Defense (Wehrmacht)",
    201588: "Advanced Mechanical Assault Tactics (Wehrmacht)",
    205683: "Repair Bunker Defense (Wehrmacht)",
}


def parse_pbgid(value: Any) -> int | None:
    """Parse an id as an unsigned 32-bit integer; None when malformed."""
    text = normalize_pbgid(value)
    if text is None:
        return None
    number = int(text)
    if number < 0 or number > MAX_PBGID:
        return None
    return number


def title_case(key: str) -> str:
    """blueprint_key -> Blueprint Key (only first letters are changed)."""
    words = key.replace("_", " ").split(" ")
    return " ".join(word[:1].upper() + word[1:] for word in words)


def faction_display_name(faction_key: str) -> str:
    return FACTION_DISPLAY_NAMES.get(faction_key, title_case(faction_key))


def building_category(key: str) -> str:
    lowered = key.lower()
    for keywords, category in BUILDING_CATEGORY_KEYWORDS:
        if any(word in lowered for word in keywords):
            return category
    return "Building"


@dataclass(frozen=True)
class UnitInfo:
    """Resolved display information for one blueprint."""

    name: str
    faction: str
    category: str
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


class BlueprintResolver:
    """
    Resolves PBGIDs against one loaded data directory.

    Squads are searched before entities, so an id present in both databases
    resolves to the squad. Misses and malformed ids return None.
    """

    def __init__(self, reference: ReferenceData):
        self.reference = reference

    @classmethod
    def from_directory(
        cls,
        data_dir: Path | str,
        locale: str = DEFAULT_LOCALE,
        use_cache: bool = True,
    ) -> BlueprintResolver:
        """
        Load (or reuse) reference data for a directory.

        Raises:
            ReferenceDataError: sbps.json or ebps.json cannot be loaded
        """
        loader = get_reference_data if use_cache else load_reference_data
        return cls(loader(data_dir, locale))

    def _find(self, numeric_id: Any) -> BlueprintRecord | None:
        pbgid = parse_pbgid(numeric_id)
        if pbgid is None:
            return None
        key = str(pbgid)
        return self.reference.squads.get(key) or self.reference.entities.get(key)

    def _to_info(self, record: BlueprintRecord) -> UnitInfo:
        name = self.reference.localize(record.name_ref) or title_case(record.key)
        if record.is_squad:
            category = UNIT_CATEGORIES.get(record.sub_category or "", "Unit")
        else:
            category = building_category(record.key)
        return UnitInfo(
            name=name,
            faction=faction_display_name(record.faction_key),
            category=category,
            description=self.reference.localize(record.description_ref),
        )

    def resolve(self, numeric_id: Any) -> UnitInfo | None:
        """Resolve a PBGID to its display info, or None."""
        record = self._find(numeric_id)
        if record is None:
            logger.debug(f"No blueprint for id {numeric_id!r}")
            return None
        return self._to_info(record)

    def friendly_name(self, numeric_id: Any) -> str:
        """Display name for a PBGID, or an empty string."""
        info = self.resolve(numeric_id)
        return info.name if info else ""

    def battlegroup_name(self, numeric_id: Any) -> str | None:
        pbgid = parse_pbgid(numeric_id)
        return BATTLEGROUP_NAMES.get(pbgid) if pbgid is not None else None

    def upgrade_name(self, numeric_id: Any) -> str | None:
        pbgid = parse_pbgid(numeric_id)
        return UPGRADE_NAMES.get(pbgid) if pbgid is not None else None
