import pytest

from rumba.util import country_iso_to_name, normalize_uri


@pytest.mark.parametrize(
    ("code", "name"),
    [
        ("IS", "Iceland"),
        ("XK", "Kosovo"),
        ("GB", "United Kingdom"),
        ("AX", "Åland Islands"),
        ("TV", "Tuvalu"),
    ],
)
def test_known_countries(code, name):
    assert country_iso_to_name(code) == name


@pytest.mark.parametrize("code", ["ZZ", "is", "", "ISL"])
def test_unknown_codes_return_none(code):
    assert country_iso_to_name(code) is None


def test_normalize_uri_lowercases_and_trims():
    assert normalize_uri("  /En-US/Docs/Web  \n") == "/en-us/docs/web"


def test_normalize_uri_is_idempotent():
    once = normalize_uri(" /EN-us/DOCS ")
    assert normalize_uri(once) == once