"""Request tags attached to metrics and log records."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

# Browsers and operating systems kept as metric tags; anything else is "Other".
VALID_UA_BROWSER = ("Chrome", "Firefox", "Safari", "Opera")
VALID_UA_OS = ("Firefox OS", "Linux", "Mac OSX")

_WINDOWS_RE = re.compile(r"Windows ([ .a-zA-Z0-9]+)[;\\)]")
_WINDOWS_PHONE_RE = re.compile(r"Windows Phone (?:OS )?([.0-9]+)")
_WINDOWS_NAMES = {
    "NT 10.0": "Windows 10",
    "NT 6.3": "Windows 8.1",
    "NT 6.2": "Windows 8",
    "NT 6.1": "Windows 7",
    "NT 6.0": "Windows Vista",
    "NT 5.2": "Windows Server 2003",
    "NT 5.1": "Windows XP",
    "NT 5.0": "Windows 2000",
    "NT 4.0": "Windows NT 4.0",
    "98": "Windows 98",
    "95": "Windows 95",
    "CE": "Windows CE",
}
_IOS_RE = re.compile(r"; CPU(?: iPhone)? OS (\d+_\d+(?:_\d+)?) like Mac OS X")
_MAC_RE = re.compile(r"Mac OS X (1\d[._]\d+(?:[._]\d+)?)")
_ANDROID_RE = re.compile(r"Android[- ](\d+(?:\.\d+(?:\.\d+)?)?)")
_FIREFOX_OS_RE = re.compile(
    r"^Mozilla/[.0-9]+ \((?:Mobile|Tablet);(?:.*;)? rv:([.0-9]+)\) Gecko/[.0-9]+ Firefox/[.0-9]+$"
)

_MSIE_RE = re.compile(r"MSIE ([.0-9]+);")
_TRIDENT_RE = re.compile(r"Trident/[.0-9]+;(?: BOIE[0-9]+;[A-Z]+;)?(?: Touch;)? rv:([.0-9]+)")
_EDGE_RE = re.compile(r"(?:Edge|Edg|EdgiOS|EdgA)/([.0-9]+)")
_OPR_RE = re.compile(r"OPR/([.0-9]+)")
_OPERA_RE = re.compile(r"Opera[/ ]([.0-9]+)")
_CHROME_RE = re.compile(r"(?:Chrome|CrMo|CriOS)/([.0-9]+)")
_SAFARI_VERSION_RE = re.compile(r"Version/([.0-9]+)")
_FIREFOX_RE = re.compile(r"Firefox/([.0-9]+)")
_VERSION_RE = re.compile(r"Version/([.0-9]+)")


@dataclass(frozen=True)
class UserAgentInfo:
    """What was recognised in a User-Agent string; unknown parts are empty."""

    name: str = ""
    category: str = ""
    os: str = ""
    os_version: str = ""
    browser_type: str = ""
    version: str = ""
    vendor: str = ""


def _first_group(pattern: re.Pattern[str], text: str) -> str:
    match = pattern.search(text)
    return match.group(1) if match else ""


def _detect_browser(agent: str) -> tuple[str, str, str]:
    """Return (name, version, vendor) of the browser, or empty strings."""
    if (match := _MSIE_RE.search(agent)) or (match := _TRIDENT_RE.search(agent)):
        return "Internet Explorer", match.group(1), "Microsoft"
    if match := _EDGE_RE.search(agent):
        return "Edge", match.group(1), "Microsoft"
    if match := _OPR_RE.search(agent):
        return "Opera", match.group(1), "Opera"
    if match := _CHROME_RE.search(agent):
        return "Chrome", match.group(1), "Google"
    if "Safari/" in agent:
        return "Safari", _first_group(_SAFARI_VERSION_RE, agent), "Apple"
    if match := _FIREFOX_RE.search(agent):
        return "Firefox", match.group(1), "Mozilla"
    if "Opera" in agent:
        version = _first_group(_VERSION_RE, agent) or _first_group(_OPERA_RE, agent)
        return "Opera", version, "Opera"
    return "", "", ""


def _detect_os(agent: str) -> tuple[str, str, str]:
    """Return (os, os_version, category), or empty strings."""
    if "Windows Phone" in agent:
        return "Windows Phone OS", _first_group(_WINDOWS_PHONE_RE, agent), "smartphone"
    if "Windows" in agent:
        match = _WINDOWS_RE.search(agent)
        if match is None:
            return "Windows UNKNOWN Ver", "", "pc"
        version = match.group(1)
        return _WINDOWS_NAMES.get(version, "Windows UNKNOWN Ver"), version, "pc"
    for device in ("iPhone", "iPad", "iPod"):
        if device in agent:
            return device, _first_group(_IOS_RE, agent).replace("_", "."), "smartphone"
    if "Android" in agent:
        return "Android", _first_group(_ANDROID_RE, agent), "smartphone"
    if match := _FIREFOX_OS_RE.search(agent):
        return "Firefox OS", match.group(1), "smartphone"
    if "CrOS" in agent:
        return "ChromeOS", "", "pc"
    if "Mac OS X" in agent:
        return "Mac OSX", _first_group(_MAC_RE, agent).replace("_", "."), "pc"
    if "Linux" in agent:
        return "Linux", "", "pc"
    for bsd in ("FreeBSD", "OpenBSD", "NetBSD"):
        if bsd in agent:
            return bsd, "", "pc"
    if "SunOS" in agent:
        return "Solaris", "", "pc"
    return "", "", ""


def parse_user_agent(agent: str) -> tuple[UserAgentInfo, str, str]:
    """Parse a User-Agent and reduce it to (info, metrics os family, metrics browser family)."""
    name, version, vendor = _detect_browser(agent)
    os_name, os_version, category = _detect_os(agent)
    info = UserAgentInfo(
        name=name,
        category=category,
        os=os_name,
        os_version=os_version,
        browser_type="browser" if name else "",
        version=version,
        vendor=vendor,
    )
    if info.os.startswith("Windows"):
        metrics_os = "Windows"
    elif info.os in VALID_UA_OS:
        metrics_os = info.os
    else:
        metrics_os = "Other"
    metrics_browser = info.name if info.name in VALID_UA_BROWSER else "Other"
    return info, metrics_os, metrics_browser


def _is_visible_ascii(value: str) -> bool:
    return all(char == "\t" or " " <= char <= "~" for char in value)


def _insert_if_not_empty(label: str, value: str, tags: dict[str, str]) -> None:
    if value:
        tags[label] = value


@dataclass
class Tags:
    """Low-cardinality ``tags`` for metrics and free-form ``extra`` data for logs."""

    tags: dict[str, str] = field(default_factory=dict)
    extra: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_request_head(
        cls,
        method: str = "GET",
        uri: str = "/",
        headers: Mapping[str, str] | Iterable[tuple[str, str]] | None = None,
    ) -> Tags:
        """Build tags from a request's method, URI and headers."""
        tags: dict[str, str] = {}
        extra: dict[str, str] = {}
        pairs = headers.items() if isinstance(headers, Mapping) else (headers or ())
        agent = next(
            (value for name, value in pairs if name.lower() == "user-agent"), None
        )
        if agent is not None and _is_visible_ascii(agent):
            info, metrics_os, metrics_browser = parse_user_agent(agent)
            _insert_if_not_empty("ua.os.family", metrics_os, tags)
            _insert_if_not_empty("ua.browser.family", metrics_browser, tags)
            _insert_if_not_empty("ua.name", info.name, tags)
            _insert_if_not_empty("ua.os.ver", info.os_version, tags)
            _insert_if_not_empty("ua.browser.ver", info.version, tags)
            extra["ua"] = agent
        tags["uri.method"] = method
        # The path has too much cardinality for metrics; keep it for error reports.
        extra["uri.path"] = uri
        return cls(tags=tags, extra=extra)

    @classmethod
    def with_tags(cls, tags: Mapping[str, str]) -> Tags:
        """Tags holding a copy of ``tags`` and no extra data."""
        return cls(tags=dict(tags))

    def get(self, label: str) -> str:
        """The tag's value, or the string "None" when it is not set."""
        return self.tags.get(label, "None")

    def extend(self, tags: Mapping[str, str]) -> None:
        """Add or overwrite tags."""
        self.tags.update(tags)

    def tag_tree(self) -> dict[str, str]:
        """The tags ordered by key."""
        return dict(sorted(self.tags.items()))

    def extra_tree(self) -> dict[str, str]:
        """The extra data ordered by key."""
        return dict(sorted(self.extra.items()))

    def to_json(self) -> dict[str, str]:
        """The tags with non-empty values, ordered by key."""
        return {key: value for key, value in sorted(self.tags.items()) if value}