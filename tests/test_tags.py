import pytest

from rumba.tags import Tags, UserAgentInfo, parse_user_agent

FIREFOX_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:72.0) Gecko/20100101 Firefox/72.0"
)
PATH = "/1.5/42/storage/meta/global"


def test_tags():
    tags = Tags.from_request_head("GET", PATH, {"User-Agent": FIREFOX_WINDOWS})
    assert tags.tags == {
        "ua.os.ver": "NT 10.0",
        "ua.os.family": "Windows",
        "ua.browser.ver": "72.0",
        "ua.name": "Firefox",
        "ua.browser.family": "Firefox",
        "uri.method": "GET",
    }


def test_no_empty_tags():
    tags = Tags.from_request_head(
        "GET", PATH, {"User-Agent": "Mozilla/5.0 (curl) Gecko/20100101 curl"}
    )
    assert "ua.os.ver" not in tags.tags
    assert tags.tags["ua.os.family"] == "Other"
    assert tags.tags["ua.browser.family"] == "Other"


def test_extra_keeps_agent_and_path():
    tags = Tags.from_request_head("GET", PATH, {"User-Agent": FIREFOX_WINDOWS})
    assert tags.extra == {"ua": FIREFOX_WINDOWS, "uri.path": PATH}
    assert tags.extra_tree() == {"ua": FIREFOX_WINDOWS, "uri.path": PATH}


def test_header_lookup_ignores_case():
    tags = Tags.from_request_head("POST", PATH, [("user-agent", FIREFOX_WINDOWS)])
    assert tags.tags["ua.name"] == "Firefox"
    assert tags.tags["uri.method"] == "POST"


def test_without_user_agent():
    tags = Tags.from_request_head("GET", PATH, {})
    assert tags.tags == {"uri.method": "GET"}
    assert tags.extra == {"uri.path": PATH}


def test_non_ascii_user_agent_is_ignored():
    tags = Tags.from_request_head("GET", PATH, {"User-Agent": "Fïrefox/72.0"})
    assert tags.tags == {"uri.method": "GET"}
    assert "ua" not in tags.extra


def test_get_missing_label():
    tags = Tags.with_tags({"a": "b"})
    assert tags.get("a") == "b"
    assert tags.get("missing") == "None"


def test_with_tags_empty_is_default():
    assert Tags.with_tags({}) == Tags()
    assert Tags.with_tags({"x": "y"}).extra == {}


def test_extend_overwrites():
    tags = Tags.with_tags({"a": "1", "b": "2"})
    tags.extend({"b": "3", "c": "4"})
    assert tags.tags == {"a": "1", "b": "3", "c": "4"}


def test_tag_tree_is_sorted():
    tags = Tags.with_tags({"z": "1", "a": "2", "m": "3"})
    assert list(tags.tag_tree()) == ["a", "m", "z"]


def test_to_json_skips_empty_values():
    tags = Tags.with_tags({"b": "", "a": "x"})
    assert tags.to_json() == {"a": "x"}


@pytest.mark.parametrize(
    ("agent", "os_family", "browser_family"),
    [
        (
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
            "Mac OSX",
            "Chrome",
        ),
        (
            "Mozilla/5.0 (X11; Linux x86_64; rv:109.0) Gecko/20100101 Firefox/115.0",
            "Linux",
            "Firefox",
        ),
        ("Mozilla/5.0 (Mobile; rv:26.0) Gecko/26.0 Firefox/26.0", "Firefox OS", "Firefox"),
        ("Mozilla/4.0 (compatible; MSIE 8.0; Windows NT 6.1; Trident/4.0)", "Windows", "Other"),
        ("", "Other", "Other"),
    ],
)
def test_parse_user_agent_families(agent, os_family, browser_family):
    _, metrics_os, metrics_browser = parse_user_agent(agent)
    assert (metrics_os, metrics_browser) == (os_family, browser_family)


def test_parse_user_agent_details():
    info, _, _ = parse_user_agent(FIREFOX_WINDOWS)
    assert info.name == "Firefox"
    assert info.version == "72.0"
    assert info.os == "Windows 10"
    assert info.os_version == "NT 10.0"


def test_unknown_agent_is_empty():
    info, _, _ = parse_user_agent("something odd")
    assert info == UserAgentInfo()