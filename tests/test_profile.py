"""Tests for language profiles, profile sources and the resolver."""

from __future__ import annotations

import logging

import pytest
import yaml

from typo_correct.core.errors import ProfileLoadError, ProfileValidationError
from typo_correct.core.profile import (
    LanguageProfile,
    deep_merge,
    expand_dotted,
    validate_profile_data,
)
from typo_correct.core.profile_source import (
    ChainedProfileSource,
    DirectoryProfileSource,
    MappingProfileSource,
    ProfileSource,
    builtin_source,
)
from typo_correct.core.resolver import ProfileResolver, resolve
from typo_correct.core.text_utils import EN_DASH, NBSP, NNBSP

BUILTIN_IDS = ["fr-FR", "fr-CH", "en-US", "en-UK", "de", "es", "it"]


# ---------------------------------------------------------------------------
# Merging helpers
# ---------------------------------------------------------------------------


class TestDeepMerge:
    def test_overlay_wins_on_scalars(self):
        assert deep_merge({"a": 1, "b": 2}, {"b": 3}) == {"a": 1, "b": 3}

    def test_nested_dicts_merge(self):
        base = {"numbers": {"decimalSeparator": ",", "groupThousands": True}}
        merged = deep_merge(base, {"numbers": {"decimalSeparator": "."}})
        assert merged == {"numbers": {"decimalSeparator": ".", "groupThousands": True}}

    def test_lists_are_replaced(self):
        assert deep_merge({"l": [1, 2]}, {"l": [3]}) == {"l": [3]}

    def test_inputs_untouched(self):
        base = {"a": {"b": 1}}
        overlay = {"a": {"b": 2}}
        deep_merge(base, overlay)
        assert base == {"a": {"b": 1}}
        assert overlay == {"a": {"b": 2}}


class TestExpandDotted:
    def test_dotted_key_becomes_nested(self):
        assert expand_dotted({"numbers.thousandsSeparator": "."}) == {
            "numbers": {"thousandsSeparator": "."}
        }

    def test_plain_key_kept(self):
        assert expand_dotted({"dashes": {"incise": "-"}}) == {"dashes": {"incise": "-"}}

    def test_two_paths_in_same_group_merge(self):
        out = expand_dotted({"numbers.a": 1, "numbers.b": 2})
        assert out == {"numbers": {"a": 1, "b": 2}}


# ---------------------------------------------------------------------------
# LanguageProfile
# ---------------------------------------------------------------------------


class TestLanguageProfile:
    def test_from_minimal_document(self, minimal_data):
        profile = LanguageProfile.from_dict(minimal_data)
        assert profile.profile_id == "xx"
        assert profile.punctuation.space_before[":"] == NBSP
        assert profile.numbers.thousands_separator == NNBSP
        assert profile.dashes.incise == EN_DASH
        assert not profile.centuries.enabled
        assert not profile.references.enabled

    def test_missing_required_group(self, minimal_data):
        del minimal_data["quotes"]
        with pytest.raises(ProfileValidationError) as excinfo:
            LanguageProfile.from_dict(minimal_data)
        assert excinfo.value.profile_id == "xx"
        assert any("quotes" in p for p in excinfo.value.problems)

    def test_missing_meta_id(self, minimal_data):
        del minimal_data["meta"]
        assert "missing meta.id" in validate_profile_data(minimal_data)

    def test_bad_year_range(self, minimal_data):
        minimal_data["numbers"]["yearRange"] = [2050, 0]
        with pytest.raises(ProfileValidationError):
            LanguageProfile.from_dict(minimal_data)

    def test_bad_case_style(self, minimal_data):
        minimal_data["centuries"] = {"enabled": True, "caseStyle": "shouting"}
        with pytest.raises(ProfileValidationError):
            LanguageProfile.from_dict(minimal_data)

    @pytest.mark.parametrize(
        "group, values",
        [
            ("ordinals", {"titleAbbreviations": ["Mme"]}),
            ("ordinals", {"corrections": ["eme"]}),
            ("ordinals", {"corrections": {"eme": None}}),
            ("punctuation", {"spaceBefore": [":"]}),
            ("punctuation", {"spaceAfter": {"\u00ab": 1}}),
            ("dashes", {"incise": ""}),
            ("dashes", {"rangeDash": ""}),
            ("dashes", {"incise": 45}),
        ],
    )
    def test_malformed_values_rejected(self, minimal_data, group, values):
        minimal_data[group] = {**minimal_data.get(group, {}), **values}
        with pytest.raises(ProfileValidationError) as excinfo:
            LanguageProfile.from_dict(minimal_data)
        assert any(group in p for p in excinfo.value.problems)

    def test_null_spacing_means_absent(self, minimal_data):
        minimal_data["punctuation"]["spaceBefore"][";"] = None
        profile = LanguageProfile.from_dict(minimal_data)
        assert ";" not in profile.punctuation.space_before

    def test_literal_space_value(self, minimal_data):
        minimal_data["punctuation"]["spaceBefore"][":"] = " "
        profile = LanguageProfile.from_dict(minimal_data)
        assert profile.punctuation.space_before[":"] == " "

    def test_merged_returns_new_instance(self, minimal_data):
        base = LanguageProfile.from_dict(minimal_data)
        merged = base.merged({"numbers.thousandsSeparator": "."})
        assert merged is not base
        assert merged.numbers.thousands_separator == "."
        assert base.numbers.thousands_separator == NNBSP

    def test_merged_keeps_untouched_paths(self, minimal_data):
        base = LanguageProfile.from_dict(minimal_data)
        merged = base.merged({"numbers.thousandsSeparator": "."})
        assert merged.numbers.decimal_separator == base.numbers.decimal_separator
        assert merged.quotes == base.quotes

    def test_unknown_fields_survive_merge(self, minimal_data):
        minimal_data["future"] = {"flag": True}
        minimal_data["numbers"]["extraKey"] = 7
        profile = LanguageProfile.from_dict(minimal_data).merged({"dashes.incise": "-"})
        data = profile.to_dict()
        assert data["future"] == {"flag": True}
        assert data["numbers"]["extraKey"] == 7

    def test_to_dict_is_a_copy(self, minimal_data):
        profile = LanguageProfile.from_dict(minimal_data)
        profile.to_dict()["numbers"]["decimalSeparator"] = "X"
        assert profile.to_dict()["numbers"]["decimalSeparator"] == ","

    def test_profile_is_frozen(self, minimal_data):
        profile = LanguageProfile.from_dict(minimal_data)
        with pytest.raises(AttributeError):
            profile.profile_id = "yy"
        with pytest.raises(TypeError):
            profile.punctuation.space_before[":"] = ""

    def test_year_range(self, minimal_data):
        minimal_data["numbers"]["yearRange"] = [1000, 2100]
        numbers = LanguageProfile.from_dict(minimal_data).numbers
        assert numbers.is_year(1999)
        assert not numbers.is_year(999)
        assert not numbers.is_year(2101)


# ---------------------------------------------------------------------------
# Built-in profiles
# ---------------------------------------------------------------------------


class TestBuiltinProfiles:
    @pytest.mark.parametrize("profile_id", BUILTIN_IDS)
    def test_loads_and_validates(self, resolver, profile_id):
        profile = resolver.resolve(profile_id)
        assert profile.profile_id == profile_id
        assert profile.quotes.levels

    def test_list_starts_with_french(self):
        ids = [info.id for info in builtin_source().list_profiles()]
        assert ids[0] == "fr-FR"
        assert set(ids) == set(BUILTIN_IDS)

    def test_french_spacing_codes(self, fr_profile):
        assert fr_profile.punctuation.space_before[";"] == NNBSP
        assert fr_profile.punctuation.space_before[":"] == NBSP
        assert fr_profile.quotes.space_inside == NBSP

    def test_swiss_thousands_separator(self, resolver):
        assert resolver.resolve("fr-CH").numbers.thousands_separator == "'"

    def test_english_has_no_ordinals(self, en_profile):
        assert not en_profile.ordinals.enabled
        assert not en_profile.centuries.enabled
        assert not en_profile.references.enabled


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


class TestDirectoryProfileSource:
    def test_load(self, profile_dir):
        source = DirectoryProfileSource(profile_dir)
        assert source.has_profile("xx")
        assert source.load_profile("xx")["meta"]["id"] == "xx"

    def test_missing_profile(self, profile_dir):
        with pytest.raises(ProfileLoadError):
            DirectoryProfileSource(profile_dir).load_profile("zz")

    def test_unparseable_file(self, profile_dir):
        (profile_dir / "lang-bad.yml").write_text("meta: [unclosed\n", encoding="utf-8")
        with pytest.raises(ProfileLoadError) as excinfo:
            DirectoryProfileSource(profile_dir).load_profile("bad")
        assert excinfo.value.profile_id == "bad"

    def test_non_mapping_document(self, profile_dir):
        (profile_dir / "lang-list.yml").write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ProfileLoadError):
            DirectoryProfileSource(profile_dir).load_profile("list")

    def test_cached_copies_are_independent(self, profile_dir):
        source = DirectoryProfileSource(profile_dir)
        first = source.load_profile("xx")
        first["meta"]["id"] = "mutated"
        assert source.load_profile("xx")["meta"]["id"] == "xx"

    def test_clear_cache_rereads_file(self, profile_dir):
        source = DirectoryProfileSource(profile_dir)
        data = source.load_profile("xx")
        data["meta"]["label"] = "Edited"
        (profile_dir / "lang-xx.yml").write_text(yaml.safe_dump(data), encoding="utf-8")
        assert source.load_profile("xx")["meta"]["label"] != "Edited"
        source.clear_cache()
        assert source.load_profile("xx")["meta"]["label"] == "Edited"

    def test_list_skips_unreadable(self, profile_dir):
        (profile_dir / "lang-bad.yml").write_text("meta: [unclosed\n", encoding="utf-8")
        ids = [info.id for info in DirectoryProfileSource(profile_dir).list_profiles()]
        assert ids == ["xx"]

    def test_missing_directory_lists_nothing(self, tmp_path):
        assert DirectoryProfileSource(tmp_path / "nope").list_profiles() == []


class TestChainedProfileSource:
    def test_first_source_shadows(self, minimal_data):
        shadow = dict(minimal_data, meta={"id": "fr-FR", "label": "Mine"})
        chained = ChainedProfileSource([MappingProfileSource({"fr-FR": shadow}), builtin_source()])
        assert chained.load_profile("fr-FR")["meta"]["label"] == "Mine"
        assert chained.load_profile("de")["meta"]["id"] == "de"

    def test_not_found_anywhere(self):
        with pytest.raises(ProfileLoadError):
            ChainedProfileSource([MappingProfileSource({})]).load_profile("fr-FR")


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class _BrokenSource(ProfileSource):
    def load_profile(self, profile_id):
        raise RuntimeError("backend unavailable")

    def list_profiles(self):
        return []


class TestProfileResolver:
    def test_resolve_with_overrides(self, minimal_data):
        resolver = ProfileResolver(MappingProfileSource({"xx": minimal_data}))
        profile = resolver.resolve("xx", {"numbers.decimalSeparator": "."})
        assert profile.numbers.decimal_separator == "."

    def test_overrides_do_not_leak_between_calls(self, minimal_data):
        resolver = ProfileResolver(MappingProfileSource({"xx": minimal_data}))
        resolver.resolve("xx", {"numbers.decimalSeparator": "."})
        assert resolver.resolve("xx").numbers.decimal_separator == ","

    def test_unknown_id(self):
        with pytest.raises(ProfileLoadError):
            ProfileResolver(MappingProfileSource({})).resolve("xx")

    def test_foreign_errors_are_wrapped(self):
        with pytest.raises(ProfileLoadError) as excinfo:
            ProfileResolver(_BrokenSource()).resolve("xx")
        assert "backend unavailable" in str(excinfo.value)

    def test_override_can_break_validation(self, minimal_data):
        resolver = ProfileResolver(MappingProfileSource({"xx": minimal_data}))
        with pytest.raises(ProfileValidationError):
            resolver.resolve("xx", {"quotes": {"levels": []}})

    @pytest.mark.parametrize(
        "overrides",
        [
            {"ordinals": {"titleAbbreviations": ["Mme"]}},
            {"ordinals": {"corrections": ["eme"]}},
            {"dashes": {"incise": ""}},
        ],
    )
    def test_malformed_override_is_a_validation_error(self, resolver, overrides):
        with pytest.raises(ProfileValidationError):
            resolver.resolve("fr-FR", overrides)

    def test_meta_id_mismatch_warns(self, minimal_data, caplog):
        source = MappingProfileSource({"yy": minimal_data})
        with caplog.at_level(logging.WARNING, logger="typo_correct.core.resolver"):
            profile = ProfileResolver(source).resolve("yy")
        assert profile.profile_id == "xx"
        assert "meta.id" in caplog.text

    def test_module_level_shortcut(self, profile_dir):
        profile = resolve("xx", source=DirectoryProfileSource(profile_dir))
        assert profile.profile_id == "xx"

    def test_json_profile(self, tmp_path, minimal_data):
        import json

        (tmp_path / "lang-xx.json").write_text(json.dumps(minimal_data), encoding="utf-8")
        profile = ProfileResolver(DirectoryProfileSource(tmp_path)).resolve("xx")
        assert profile.dashes.incise == EN_DASH

    def test_yaml_round_trip_of_merged_profile(self, fr_profile):
        merged = fr_profile.merged({"numbers.thousandsSeparator": "~S"})
        reloaded = LanguageProfile.from_dict(yaml.safe_load(yaml.safe_dump(merged.to_dict())))
        assert reloaded.to_dict() == merged.to_dict()
        assert reloaded.numbers.thousands_separator == NBSP
