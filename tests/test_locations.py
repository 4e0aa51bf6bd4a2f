"""Unit tests for location filter projections and parsing."""

from locations import (
    ParsedLocation,
    extract_target_countries,
    meta_offices,
    microsoft_location_params,
    tiktok_location_codes,
)


class TestTargetCountries:
    def test_empty_filter_defaults_to_us_and_canada(self):
        assert extract_target_countries("") == {"United States", "Canada"}
        assert extract_target_countries("   ") == {"United States", "Canada"}

    def test_unrecognized_filter_defaults_to_us_and_canada(self):
        assert extract_target_countries("xyz") == {"United States", "Canada"}

    def test_city_keywords(self):
        assert extract_target_countries("London") == {"United Kingdom"}
        assert extract_target_countries("Seattle") == {"United States"}
        assert extract_target_countries("Osaka") == {"Japan"}


class TestProjections:
    def test_microsoft_uses_country_names(self):
        assert microsoft_location_params("") == ["Canada", "United States"]
        assert microsoft_location_params("Osaka") == []

    def test_tiktok_city_and_state_codes(self):
        codes = tiktok_location_codes("Seattle, CA, remote")
        assert codes == ["CT_157", "CT_75", "CT_94", "CT_243", "CT_1103355"]

    def test_tiktok_fails_open(self):
        assert tiktok_location_codes("") == []
        assert tiktok_location_codes("Narnia") == []

    def test_meta_offices_exact_and_partial(self):
        assert meta_offices("Seattle, nyc") == ["Seattle, WA", "New York, NY"]
        assert meta_offices("menlo park ca") == ["Menlo Park, CA"]
        assert meta_offices("") == []


class TestParsedLocation:
    def test_three_segments(self):
        parsed = ParsedLocation.parse("Seattle, WA, United States")
        assert (parsed.city, parsed.state, parsed.country) == ("Seattle", "WA", "United States")
        assert parsed.display_string == "Seattle, WA"

    def test_multiple_locations(self):
        parsed = ParsedLocation.parse("Multiple Locations, United States")
        assert parsed.is_multiple
        assert parsed.display_string == "Multiple Locations, United States"

    def test_single_segment_is_country(self):
        parsed = ParsedLocation.parse("Remote")
        assert parsed.country == "Remote"
        assert parsed.is_remote
        assert parsed.display_string == "Remote"

    def test_semicolons_split_too(self):
        parsed = ParsedLocation.parse("Austin; TX; United States")
        assert parsed.display_string == "Austin, TX"

    def test_empty(self):
        parsed = ParsedLocation.parse("")
        assert parsed.display_string == ""
        assert not parsed.is_remote
