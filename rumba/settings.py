"""Service settings loaded from a TOML file with environment overrides."""

from __future__ import annotations

import base64
import binascii
import functools
import os
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

SETTINGS_ENV = "MDN_SETTINGS"
DEFAULT_SETTINGS_FILE = ".settings.toml"
ENV_PREFIX = "mdn"
ENV_SEPARATOR = "__"
COOKIE_KEY_LENGTH = 64

_U16_MAX = 0xFFFF
_U32_MAX = 0xFFFF_FFFF
_U64_MAX = 0xFFFF_FFFF_FFFF_FFFF
_I64_MIN = -(1 << 63)
_I64_MAX = (1 << 63) - 1

_TRUE_WORDS = {"true", "on", "yes", "1"}
_FALSE_WORDS = {"false", "off", "no", "0"}


class SettingsError(Exception):
    """The settings could not be read or are invalid."""


def _section(data: Mapping[str, Any], key: str, where: str = "") -> Mapping[str, Any]:
    value = _require(data, key, where)
    if not isinstance(value, Mapping):
        raise SettingsError(f"invalid type for `{where}{key}`: expected a table")
    return value


def _optional_section(data: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    if data.get(key) is None:
        return None
    return _section(data, key)


def _require(data: Mapping[str, Any], key: str, where: str) -> Any:
    value = data.get(key)
    if value is None:
        raise SettingsError(f"missing field `{where}{key}`")
    return value


def _to_string(value: Any, name: str) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise SettingsError(f"invalid type for `{name}`: expected a string")


def _string(data: Mapping[str, Any], key: str, where: str) -> str:
    return _to_string(_require(data, key, where), where + key)


def _optional_string(data: Mapping[str, Any], key: str, where: str) -> str | None:
    value = data.get(key)
    return None if value is None else _to_string(value, where + key)


def _boolean(data: Mapping[str, Any], key: str, where: str) -> bool:
    value = _require(data, key, where)
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise SettingsError(f"invalid value for `{where}{key}`: expected a boolean")


def _integer(data: Mapping[str, Any], key: str, where: str, low: int, high: int) -> int:
    value = _require(data, key, where)
    if isinstance(value, bool):
        number = int(value)
    elif isinstance(value, int):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    elif isinstance(value, str):
        try:
            number = int(value.strip())
        except ValueError:
            raise SettingsError(f"invalid value for `{where}{key}`: expected an integer") from None
    else:
        raise SettingsError(f"invalid type for `{where}{key}`: expected an integer")
    if not low <= number <= high:
        raise SettingsError(f"invalid value for `{where}{key}`: {number} is out of range")
    return number


def _url(data: Mapping[str, Any], key: str, where: str) -> str:
    value = _string(data, key, where)
    parts = urlsplit(value)
    if not parts.scheme or ":" not in value:
        raise SettingsError(f"invalid value for `{where}{key}`: not an absolute URL")
    return value


def _cookie_key(data: Mapping[str, Any], key: str, where: str) -> bytes:
    value = _string(data, key, where)
    try:
        decoded = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        raise SettingsError(f"invalid value for `{where}{key}`: not valid base64") from None
    if len(decoded) != COOKIE_KEY_LENGTH:
        raise SettingsError(
            f"invalid value for `{where}{key}`: expected {COOKIE_KEY_LENGTH} bytes, "
            f"got {len(decoded)}"
        )
    return decoded


_Parser = Callable[[Mapping[str, Any], str, str], Any]


def _parse_fields(
    cls: type, data: Mapping[str, Any], where: str, parsers: Mapping[str, _Parser]
) -> dict[str, Any]:
    """Parse every dataclass field of ``cls``, as a string unless ``parsers`` says otherwise."""
    return {f.name: parsers.get(f.name, _string)(data, f.name, where) for f in fields(cls)}


@dataclass(frozen=True)
class DB:
    uri: str

    @classmethod
    def _from_mapping(cls, data: Mapping[str, Any]) -> DB:
        return cls(uri=_string(data, "uri", "db."))


@dataclass(frozen=True)
class Server:
    host: str
    port: int

    @classmethod
    def _from_mapping(cls, data: Mapping[str, Any]) -> Server:
        return cls(
            host=_string(data, "host", "server."),
            port=_integer(data, "port", "server.", 0, _U16_MAX),
        )


_AUTH_PARSERS: dict[str, _Parser] = {
    "redirect_url": _url,
    "auth_cookie_secure": _boolean,
    "cookie_key": _cookie_key,
}


@dataclass(frozen=True)
class Auth:
    issuer_url: str
    client_id: str
    client_secret: str = field(repr=False)
    scopes: str
    redirect_url: str
    auth_cookie_name: str
    login_cookie_name: str
    auth_cookie_secure: bool
    cookie_key: bytes = field(repr=False)
    admin_update_bearer_token: str = field(repr=False)

    @classmethod
    def _from_mapping(cls, data: Mapping[str, Any]) -> Auth:
        return cls(**_parse_fields(cls, data, "auth.", _AUTH_PARSERS))


@dataclass(frozen=True)
class Application:
    document_base_url: str
    bcd_updates_url: str
    mdn_metadata_url: str
    subscriptions_limit_collections: int
    encoded_id_salt: str

    @classmethod
    def _from_mapping(cls, data: Mapping[str, Any]) -> Application:
        w = "application."
        return cls(
            document_base_url=_string(data, "document_base_url", w),
            bcd_updates_url=_url(data, "bcd_updates_url", w),
            mdn_metadata_url=_url(data, "mdn_metadata_url", w),
            subscriptions_limit_collections=_integer(
                data, "subscriptions_limit_collections", w, _I64_MIN, _I64_MAX
            ),
            encoded_id_salt=_string(data, "encoded_id_salt", w),
        )


@dataclass(frozen=True)
class Search:
    url: str
    cache_max_age: int
    query_max_length: int

    @classmethod
    def _from_mapping(cls, data: Mapping[str, Any]) -> Search:
        w = "search."
        return cls(
            url=_string(data, "url", w),
            cache_max_age=_integer(data, "cache_max_age", w, 0, _U32_MAX),
            query_max_length=_integer(data, "query_max_length", w, 0, _U64_MAX),
        )


@dataclass(frozen=True)
class LoggingSettings:
    human_logs: bool = False

    @classmethod
    def _from_mapping(cls, data: Mapping[str, Any]) -> LoggingSettings:
        return cls(human_logs=_boolean(data, "human_logs", "logging."))


@dataclass(frozen=True)
class MetricsSettings:
    statsd_label: str = ""
    statsd_host: str | None = None
    statsd_port: int = 0

    @classmethod
    def _from_mapping(cls, data: Mapping[str, Any]) -> MetricsSettings:
        w = "metrics."
        return cls(
            statsd_label=_string(data, "statsd_label", w),
            statsd_host=_optional_string(data, "statsd_host", w),
            statsd_port=_integer(data, "statsd_port", w, 0, _U16_MAX),
        )


@dataclass(frozen=True)
class Sentry:
    dsn: str = ""

    @classmethod
    def _from_mapping(cls, data: Mapping[str, Any]) -> Sentry:
        return cls(dsn=_string(data, "dsn", "sentry."))


_BASKET_PARSERS: dict[str, _Parser] = {"basket_url": _url}


@dataclass(frozen=True)
class Basket:
    api_key: str = field(repr=False)
    basket_url: str

    @classmethod
    def _from_mapping(cls, data: Mapping[str, Any]) -> Basket:
        return cls(**_parse_fields(cls, data, "basket.", _BASKET_PARSERS))


@dataclass(frozen=True)
class Settings:
    """All service settings."""

    db: DB
    server: Server
    auth: Auth
    application: Application
    search: Search
    logging: LoggingSettings
    metrics: MetricsSettings
    sentry: Sentry | None = None
    basket: Basket | None = None
    skip_migrations: bool = False
    maintenance: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Settings:
        """Build settings from nested mappings, validating every field."""
        sentry = _optional_section(data, "sentry")
        basket = _optional_section(data, "basket")
        return cls(
            db=DB._from_mapping(_section(data, "db")),
            server=Server._from_mapping(_section(data, "server")),
            auth=Auth._from_mapping(_section(data, "auth")),
            application=Application._from_mapping(_section(data, "application")),
            search=Search._from_mapping(_section(data, "search")),
            logging=LoggingSettings._from_mapping(_section(data, "logging")),
            metrics=MetricsSettings._from_mapping(_section(data, "metrics")),
            sentry=None if sentry is None else Sentry._from_mapping(sentry),
            basket=None if basket is None else Basket._from_mapping(basket),
            skip_migrations=(
                False if data.get("skip_migrations") is None
                else _boolean(data, "skip_migrations", "")
            ),
            maintenance=_optional_string(data, "maintenance", ""),
        )

    @classmethod
    def load(
        cls,
        path: str | os.PathLike[str] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> Settings:
        """Read the settings file, then apply ``MDN__SECTION__KEY`` environment overrides."""
        env = os.environ if environ is None else environ
        file = Path(path if path is not None else env.get(SETTINGS_ENV, DEFAULT_SETTINGS_FILE))
        data = _read_file(file)
        _merge(data, _from_environment(env))
        return cls.from_mapping(data)


def _read_file(file: Path) -> dict[str, Any]:
    candidates = [file] if file.suffix else [file, file.with_name(file.name + ".toml")]
    for candidate in candidates:
        if candidate.is_file():
            try:
                with candidate.open("rb") as handle:
                    return tomllib.load(handle)
            except tomllib.TOMLDecodeError as exc:
                raise SettingsError(f"could not parse {candidate}: {exc}") from exc
    raise SettingsError(f"configuration file {str(file)!r} not found")


def _from_environment(env: Mapping[str, str]) -> dict[str, Any]:
    prefix = ENV_PREFIX + ENV_SEPARATOR
    overrides: dict[str, Any] = {}
    for name, value in env.items():
        lowered = name.lower()
        if not lowered.startswith(prefix):
            continue
        *parents, leaf = lowered[len(prefix):].split(ENV_SEPARATOR)
        if not leaf or not all(parents):
            continue
        target = overrides
        for part in parents:
            child = target.get(part)
            if not isinstance(child, dict):
                child = target[part] = {}
            target = child
        target[leaf] = value
    return overrides


def _merge(base: dict[str, Any], overrides: Mapping[str, Any]) -> None:
    for key, value in overrides.items():
        existing = base.get(key)
        if isinstance(value, Mapping) and isinstance(existing, dict):
            _merge(existing, value)
        elif isinstance(value, Mapping):
            base[key] = dict(value)
        else:
            base[key] = value


@functools.cache
def get_settings() -> Settings:
    """Load the process-wide settings once."""
    return Settings.load()