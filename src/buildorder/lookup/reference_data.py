"""
Reference Data Loading

Loads the CoH3 blueprint databases (sbps.json for squads, ebps.json for
entities/buildings) and the localization table, and indexes every blueprint
by PBGID.

The JSON is deeply nested and only partially populated, so each blueprint is
validated against a lenient pydantic schema where every field is optional.
A blueprint that does not fit the schema is skipped, never fatal.

Loaded data is immutable and cached per (data_dir, locale), so concurrent
enrichments share one copy instead of re-parsing the databases.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from buildorder.core.constants import DEFAULT_LOCALE
from buildorder.core.errors import ReferenceDataError

logger = logging.getLogger(__name__)

SQUAD_DATABASE = "sbps.json"
ENTITY_DATABASE = "ebps.json"
FALLBACK_LOCSTRINGS = "locstring.json"

# Localization reference meaning "no text"
EMPTY_LOCSTRING = "0"

NumericRef = int | float | str | None

MAX_ID_DIGITS = 20


def normalize_pbgid(value: Any) -> str | None:
    """
    Render a blueprint id or locstring id as a canonical decimal string.

    The databases store ids as JSON numbers, which some exporters write as
    floats (198340.0). Comparing decimal strings keeps 198340, 198340.0 and
    "198340" equal. Returns None for anything that is not a whole number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    try:
        number = Decimal(value.strip()) if isinstance(value, str) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return None
    if not number.is_finite() or number != number.to_integral_value():
        return None
    # Exponent forms like "1e5000" are far wider than any blueprint id
    if number.adjusted() >= MAX_ID_DIGITS:
        return None
    return str(int(number))


# ============================================================================
# Blueprint Schema
# ============================================================================


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


def _dicts_only(value: Any) -> Any:
    # Lists in the databases mix records with other shapes
    if isinstance(value, list):
        return [item for item in value if isinstance(item, dict)]
    return value


class LocString(_Lenient):
    value: NumericRef = None


class LocStringField(_Lenient):
    locstring: LocString | None = None


class SquadInfo(_Lenient):
    screen_name: LocStringField | None = None
    help_text: LocStringField | None = None


class RaceData(_Lenient):
    info: SquadInfo | None = None


class RaceListItem(_Lenient):
    race_data: RaceData | None = None


class SquadExts(_Lenient):
    race_list: list[RaceListItem] = []

    @field_validator("race_list", mode="before")
    @classmethod
    def drop_non_records(cls, value: Any) -> Any:
        return _dicts_only(value)


class SquadExtension(_Lenient):
    squadexts: SquadExts | None = None


class SquadBlueprint(_Lenient):
    """One entry of sbps.json races/<faction>/<category>/<key>."""

    pbgid: NumericRef = None
    extensions: list[SquadExtension] = []

    @field_validator("extensions", mode="before")
    @classmethod
    def drop_non_records(cls, value: Any) -> Any:
        return _dicts_only(value)

    def screen_info(self) -> SquadInfo | None:
        """First race UI info block carrying a screen name, if any."""
        first = None
        for ext in self.extensions:
            if ext.squadexts is None:
                continue
            for race in ext.squadexts.race_list:
                info = race.race_data.info if race.race_data else None
                if info is None:
                    continue
                if first is None:
                    first = info
                if info.screen_name and info.screen_name.locstring:
                    return info
        return first


class EntityUIInfo(_Lenient):
    screen_name_id: NumericRef = None
    help_text_id: NumericRef = None


class EntityBlueprint(_Lenient):
    """One entry of ebps.json races/<faction>/<key>."""

    pbgid: NumericRef = None
    ui_info: EntityUIInfo | None = None


# ============================================================================
# Indexed Records
# ============================================================================


@dataclass(frozen=True)
class BlueprintRecord:
    """A blueprint flattened out of the nested databases."""

    pbgid: str
    key: str
    faction_key: str
    is_squad: bool
    sub_category: str | None = None  # sbps only (infantry, vehicles, ...)
    name_ref: str | None = None
    description_ref: str | None = None


@dataclass(frozen=True)
class ReferenceData:
    """Immutable, indexed view of one data directory."""

    data_dir: Path
    locale: str
    squads: Mapping[str, BlueprintRecord] = field(default_factory=dict)
    entities: Mapping[str, BlueprintRecord] = field(default_factory=dict)
    locstrings: Mapping[str, str] = field(default_factory=dict)

    def localize(self, ref: str | None) -> str | None:
        """Localized text for a reference, or None."""
        if not ref or ref == EMPTY_LOCSTRING:
            return None
        text = self.locstrings.get(ref)
        return text or None

    def stats(self) -> dict:
        return {
            "squads": len(self.squads),
            "entities": len(self.entities),
            "locstrings": len(self.locstrings),
        }


def _locstring_ref(value: NumericRef) -> str | None:
    if value is None:
        return None
    ref = normalize_pbgid(value)
    if ref is not None:
        return ref
    text = str(value).strip()
    return text or None


def _races(document: Any, path: Path) -> dict:
    if not isinstance(document, dict):
        raise ReferenceDataError(f"Blueprint database {path} is not a JSON object", path)
    races = document.get("races")
    if not isinstance(races, dict):
        logger.warning(f"No 'races' table in {path}; database treated as empty")
        return {}
    return races


def index_squads(document: Any, path: Path) -> dict[str, BlueprintRecord]:
    """Index sbps.json by PBGID. The first blueprint seen for an id wins."""
    index: dict[str, BlueprintRecord] = {}
    for faction_key, faction in _races(document, path).items():
        if not isinstance(faction, dict):
            continue
        for category_key, category in faction.items():
            if not isinstance(category, dict):
                continue
            for unit_key, raw in category.items():
                if not isinstance(raw, dict) or "pbgid" not in raw:
                    continue
                try:
                    blueprint = SquadBlueprint.model_validate(raw)
                except ValidationError as e:
                    logger.debug(f"Skipping malformed squad blueprint {unit_key}: {e.error_count()} errors")
                    continue
                pbgid = normalize_pbgid(blueprint.pbgid)
                if pbgid is None or pbgid in index:
                    continue
                info = blueprint.screen_info()
                index[pbgid] = BlueprintRecord(
                    pbgid=pbgid,
                    key=unit_key,
                    faction_key=faction_key,
                    is_squad=True,
                    sub_category=category_key,
                    name_ref=_locstring_ref(
                        info.screen_name.locstring.value
                        if info and info.screen_name and info.screen_name.locstring
                        else None
                    ),
                    description_ref=_locstring_ref(
                        info.help_text.locstring.value
                        if info and info.help_text and info.help_text.locstring
                        else None
                    ),
                )
    return index


def index_entities(document: Any, path: Path) -> dict[str, BlueprintRecord]:
    """Index ebps.json by PBGID. The first blueprint seen for an id wins."""
    index: dict[str, BlueprintRecord] = {}
    for faction_key, faction in _races(document, path).items():
        if not isinstance(faction, dict):
            continue
        for entity_key, raw in faction.items():
            if not isinstance(raw, dict) or "pbgid" not in raw:
                continue
            try:
                blueprint = EntityBlueprint.model_validate(raw)
            except ValidationError as e:
                logger.debug(f"Skipping malformed entity blueprint {entity_key}: {e.error_count()} errors")
                continue
            pbgid = normalize_pbgid(blueprint.pbgid)
            if pbgid is None or pbgid in index:
                continue
            ui = blueprint.ui_info
            index[pbgid] = BlueprintRecord(
                pbgid=pbgid,
                key=entity_key,
                faction_key=faction_key,
                is_squad=False,
                name_ref=normalize_pbgid(ui.screen_name_id) if ui else None,
                description_ref=normalize_pbgid(ui.help_text_id) if ui else None,
            )
    return index


# ============================================================================
# Loading
# ============================================================================


def _read_json(path: Path) -> Any:
    with open(path, encoding="utf-8-sig") as f:
        return json.load(f)


def _load_database(path: Path) -> Any:
    try:
        return _read_json(path)
    except FileNotFoundError as e:
        raise ReferenceDataError(f"Blueprint database not found: {path}", path) from e
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ReferenceDataError(f"Failed to load blueprint database {path}: {e}", path) from e


def load_locstrings(data_dir: Path, locale: str = DEFAULT_LOCALE) -> dict[str, str]:
    """
    Load the localization table, best effort.

    Tries locales/<locale>-locstring.json, then locstring.json. Returns an
    empty table when neither loads; names then fall back to blueprint keys.
    """
    candidates = [data_dir / "locales" / f"{locale}-locstring.json", data_dir / FALLBACK_LOCSTRINGS]
    for path in candidates:
        try:
            raw = _read_json(path)
        except FileNotFoundError:
            continue
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Unreadable localization table {path}: {e}")
            continue
        if not isinstance(raw, dict):
            logger.warning(f"Localization table {path} is not a JSON object")
            continue
        table = {str(k): str(v) for k, v in raw.items() if v is not None}
        logger.info(f"Loaded {len(table):,} locstrings from {path}")
        return table

    logger.warning(f"No localization table in {data_dir}; using key-derived names")
    return {}


def load_reference_data(data_dir: Path | str, locale: str = DEFAULT_LOCALE) -> ReferenceData:
    """
    Load and index one data directory.

    Raises:
        ReferenceDataError: sbps.json or ebps.json is missing or unparseable
    """
    root = Path(data_dir)
    sbps_path = root / SQUAD_DATABASE
    ebps_path = root / ENTITY_DATABASE

    squads = index_squads(_load_database(sbps_path), sbps_path)
    entities = index_entities(_load_database(ebps_path), ebps_path)
    locstrings = load_locstrings(root, locale)

    data = ReferenceData(
        data_dir=root,
        locale=locale,
        squads=MappingProxyType(squads),
        entities=MappingProxyType(entities),
        locstrings=MappingProxyType(locstrings),
    )
    logger.info(f"Indexed reference data from {root}: {data.stats()}")
    return data


@lru_cache(maxsize=8)
def _cached_reference_data(data_dir: str, locale: str) -> ReferenceData:
    return load_reference_data(Path(data_dir), locale)


def get_reference_data(data_dir: Path | str, locale: str = DEFAULT_LOCALE) -> ReferenceData:
    """Process-wide cached load_reference_data(). Failures are not cached."""
    return _cached_reference_data(str(Path(data_dir).resolve()), locale)


def clear_reference_cache() -> None:
    """Drop every cached data directory."""
    _cached_reference_data.cache_clear()
