import pytest

from CoverageChecker.countries import (
    ALL_COUNTRIES,
    country_code_for_name,
    country_label,
    is_known_country,
    resolve_country_code,
)


def test_country_list_is_unique_iso2():
    assert len(ALL_COUNTRIES) == len(set(ALL_COUNTRIES))
    assert all(len(code) == 2 and code.isupper() for code in ALL_COUNTRIES)
    assert is_known_country("MO")
    assert not is_known_country("ZZ")


@pytest.mark.parametrize(
    "name, code",
    [
        ("France", "FR"),
        ("  Germany ", "DE"),
        ("Macao", "MO"),
        ("Macau", "MO"),
        ("Ivory Coast", "CI"),
        # only the table is consulted
        ("Russian Federation", "RU"),
        ("Congo, The Democratic Republic of the", "CG"),
        # partial match in either direction
        ("Macau SAR", "MO"),
        ("Togo Republic", "TG"),
        ("Zealand", "NZ"),
        # first table entry contained in the name wins
        ("Guinea-Bissau Republic", "GN"),
    ],
)
def test_country_code_for_name(name, code):
    assert country_code_for_name(name) == code


@pytest.mark.parametrize("name", ["", "   ", None, "Atlantis", "Korea, Republic of"])
def test_country_code_for_unknown_name(name):
    assert country_code_for_name(name) == ""


def test_special_region_overrides_country_code():
    address = {"country_code": "cn", "ISO3166-2-lvl3": "CN-HK"}
    assert resolve_country_code(address) == "HK"


def test_lvl4_sub_code_is_used_when_lvl3_missing():
    address = {"country_code": "us", "ISO3166-2-lvl4": "US-PR"}
    assert resolve_country_code(address) == "PR"


def test_ordinary_sub_code_keeps_country_code():
    address = {"country_code": "fr", "ISO3166-2-lvl4": "FR-IDF"}
    assert resolve_country_code(address) == "FR"
    assert resolve_country_code({"country_code": "de"}) == "DE"


def test_country_label():
    assert country_label("FR") == "France"
    assert country_label("ZZ") == "ZZ"
