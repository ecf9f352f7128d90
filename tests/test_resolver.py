"""Tests for reference data loading and blueprint resolution."""

import json

import pytest

from buildorder.core.errors import ReferenceDataError
from buildorder.lookup.reference_data import (
    get_reference_data,
    clear_reference_cache,
    load_reference_data,
    normalize_pbgid,
)
from buildorder.lookup.resolver import (
    BlueprintResolver,
    UnitInfo,
    building_category,
    faction_display_name,
    parse_pbgid,
    title_case,
)
from tests.blueprint_data import EBPS, SBPS, write_json


class TestIdentifiers:
    """Tests for PBGID normalization and parsing."""

    @pytest.mark.parametrize("value", [198340, 198340.0, "198340", " 198340 ", "198340.0"])
    def test_equivalent_forms_normalize_equal(self, value):
        """Int, float and string forms compare as the same decimal string."""
        assert normalize_pbgid(value) == "198340"

    @pytest.mark.parametrize("value", [None, True, "abc", "", 1.5, float("nan"), float("inf"), [1]])
    def test_non_integers_normalize_to_none(self, value):
        assert normalize_pbgid(value) is None

    @pytest.mark.parametrize("value", ["-1", -5, 2**32, "4294967296", "12x", "1e400"])
    def test_malformed_ids_do_not_parse(self, value):
        """Negative, too wide and non-numeric ids are rejected."""
        assert parse_pbgid(value) is None

    @pytest.mark.parametrize("value", ["1e5000", "1e99", "-1e5000", 10**30])
    def test_huge_exponent_ids_rejected(self, value):
        """Ids written with huge exponents neither normalize nor parse."""
        assert normalize_pbgid(value) is None
        assert parse_pbgid(value) is None

    def test_max_id_parses(self):
        assert parse_pbgid(str(2**32 - 1)) == 2**32 - 1


class TestNameHelpers:
    """Tests for the display name helpers."""

    def test_title_case_only_touches_first_letters(self):
        assert title_case("stug_iii_d_ak") == "Stug Iii D Ak"
        assert title_case("17_pounder_uk") == "17 Pounder Uk"
        assert title_case("mg42HMG") == "Mg42HMG"

    @pytest.mark.parametrize(
        "key,expected",
        [
            ("afrika_korps", "Afrika Korps"),
            ("american", "US Forces"),
            ("british", "British"),
            ("british_africa", "British"),
            ("german", "Wehrmacht"),
            ("common", "Common"),
            ("french_resistance", "French Resistance"),
        ],
    )
    def test_faction_display_names(self, key, expected):
        assert faction_display_name(key) == expected

    @pytest.mark.parametrize(
        "key,expected",
        [
            ("halftrack_bay_ak", "Vehicle"),
            ("tank_depot_us", "Vehicle"),
            ("pioneer_workshop_ger", "Engineer"),
            ("mortar_pit_uk", "Support"),
            ("mg_bunker_ger", "Support"),
            ("headquarters_ak", "Building"),
        ],
    )
    def test_building_category_keywords(self, key, expected):
        assert building_category(key) == expected


class TestResolveUnits:
    """Tests for squad (sbps) resolution."""

    def test_localized_name_and_description(self, resolver):
        info = resolver.resolve("198340")
        assert info == UnitInfo(
            name="Panzergrenadier Squad",
            faction="Afrika Korps",
            category="Infantry",
            description="Versatile assault infantry.",
        )

    def test_float_pbgid_in_database(self, resolver):
        """Blueprints stored with float ids resolve from the integer string."""
        info = resolver.resolve("198342")
        assert info.name == "Panzerjäger Squad"

    def test_zero_description_means_none(self, resolver):
        assert resolver.resolve("198342").description is None

    def test_key_derived_name_without_locstring(self, resolver):
        info = resolver.resolve(2033664)
        assert info.name == "Stug Iii D Ak"
        assert info.category == "Vehicle"

    def test_support_category(self, resolver):
        info = resolver.resolve("199000")
        assert info.category == "Support"
        assert info.faction == "US Forces"

    def test_unmapped_faction_title_cased(self, resolver):
        info = resolver.resolve("600001")
        assert info.faction == "French Resistance"
        assert info.name == "Maquis Fr"

    def test_unit_wins_over_building(self, resolver):
        """Ids present in both databases resolve to the squad."""
        info = resolver.resolve("555555")
        assert info.name == "Shared Squad"
        assert info.category == "Infantry"


class TestResolveBuildings:
    """Tests for entity (ebps) resolution."""

    def test_localized_building(self, resolver):
        info = resolver.resolve("198236")
        assert info.name == "Light Support Kompanie"
        assert info.description == "Fields support weapons."
        assert info.category == "Building"

    def test_building_without_ui_info(self, resolver):
        info = resolver.resolve("198237")
        assert info.name == "Halftrack Bay Ak"
        assert info.category == "Vehicle"
        assert info.description is None

    def test_float_building_id(self, resolver):
        info = resolver.resolve("170001")
        assert info.faction == "Wehrmacht"
        assert info.category == "Support"


class TestMisses:
    """Resolution misses return None, never raise."""

    @pytest.mark.parametrize("value", ["999", "abc", "-198340", None, "", str(2**32 + 198340)])
    def test_resolve_miss(self, resolver, value):
        assert resolver.resolve(value) is None

    def test_friendly_name_miss_is_empty(self, resolver):
        assert resolver.friendly_name("999") == ""
        assert resolver.friendly_name("198340") == "Panzergrenadier Squad"

    def test_unit_info_to_dict_omits_missing_description(self, resolver):
        assert "description" not in resolver.resolve("2033664").to_dict()


class TestStaticTables:
    """Tests for the battlegroup and upgrade tables."""

    def test_battlegroups(self, resolver):
        assert resolver.battlegroup_name("2075338") == "Armored Support"
        assert resolver.battlegroup_name(2164392) == "Panzerjäger Kommand"
        assert resolver.battlegroup_name("196934") == "Armored (US)"
        assert resolver.battlegroup_name("1") is None
        assert resolver.battlegroup_name("x") is None

    def test_upgrades(self, resolver):
        assert resolver.upgrade_name("2072101") == "T1 Unit Unlock (Afrika Korps)"
        assert resolver.upgrade_name("205683") == "Repair Bunker Defense (Wehrmacht)"
        assert resolver.upgrade_name("2075338") is None


class TestLoading:
    """Tests for reference data loading and caching."""

    def test_missing_squad_database(self, tmp_path):
        write_json(tmp_path / "ebps.json", EBPS)
        with pytest.raises(ReferenceDataError) as exc_info:
            load_reference_data(tmp_path)
        assert exc_info.value.path == tmp_path / "sbps.json"

    def test_unparseable_entity_database(self, tmp_path):
        write_json(tmp_path / "sbps.json", SBPS)
        (tmp_path / "ebps.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(ReferenceDataError, match="ebps.json"):
            BlueprintResolver.from_directory(tmp_path)

    def test_database_must_be_object(self, tmp_path):
        write_json(tmp_path / "sbps.json", [1, 2, 3])
        write_json(tmp_path / "ebps.json", EBPS)
        with pytest.raises(ReferenceDataError):
            load_reference_data(tmp_path)

    def test_missing_locale_falls_back_to_keys(self, tmp_path):
        """Without any locstring table names come from blueprint keys."""
        write_json(tmp_path / "sbps.json", SBPS)
        write_json(tmp_path / "ebps.json", EBPS)
        resolver = BlueprintResolver.from_directory(tmp_path, use_cache=False)
        assert resolver.friendly_name("198340") == "Panzergrenadier Ak"
        assert resolver.resolve("198340").description is None

    def test_root_locstring_fallback(self, tmp_path):
        """locstring.json at the root is used when the locale file is absent."""
        write_json(tmp_path / "sbps.json", SBPS)
        write_json(tmp_path / "ebps.json", EBPS)
        write_json(tmp_path / "locstring.json", {"11001": "Grenadiere"})
        resolver = BlueprintResolver.from_directory(tmp_path, locale="de", use_cache=False)
        assert resolver.friendly_name("198340") == "Grenadiere"

    def test_unreadable_locale_is_tolerated(self, data_dir):
        (data_dir / "locales" / "en-locstring.json").write_text("[broken", encoding="utf-8")
        reference = load_reference_data(data_dir)
        assert reference.locstrings == {}

    def test_malformed_blueprints_skipped(self, tmp_path):
        """Entries that do not fit the schema are skipped, the rest still load."""
        sbps = json.loads(json.dumps(SBPS))
        infantry = sbps["races"]["afrika_korps"]["infantry"]
        infantry["broken_squad"] = {"pbgid": 700001, "extensions": "not-a-list"}
        infantry["no_pbgid"] = {"extensions": []}
        infantry["bad_pbgid"] = {"pbgid": "abc"}
        sbps["races"]["afrika_korps"]["notes"] = "not a category"
        write_json(tmp_path / "sbps.json", sbps)
        write_json(tmp_path / "ebps.json", {"races": {"german": {"junk": [1, 2]}}})

        reference = load_reference_data(tmp_path)
        assert "700001" not in reference.squads
        assert "198340" in reference.squads
        assert reference.entities == {}

    def test_missing_races_table_is_empty(self, tmp_path):
        write_json(tmp_path / "sbps.json", {"version": 1})
        write_json(tmp_path / "ebps.json", {})
        reference = load_reference_data(tmp_path)
        assert reference.stats() == {"squads": 0, "entities": 0, "locstrings": 0}

    def test_cache_shares_loaded_data(self, data_dir):
        first = get_reference_data(data_dir)
        assert get_reference_data(str(data_dir)) is first
        assert get_reference_data(data_dir, "de") is not first

        clear_reference_cache()
        assert get_reference_data(data_dir) is not first

    def test_loaded_data_is_read_only(self, reference):
        with pytest.raises(TypeError):
            reference.squads["1"] = None
