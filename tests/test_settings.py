import base64
import json

import pytest

from rumba.settings import Settings, SettingsError

COOKIE_KEY = base64.b64encode(bytes(64)).decode()


def _config():
    return {
        "db": {"uri": "postgres://localhost/mdn"},
        "server": {"host": "localhost", "port": 8000},
        "auth": {
            "issuer_url": "https://accounts.example.com",
            "client_id": "client",
            "client_secret": "secret",
            "scopes": "openid profile",
            "redirect_url": "http://localhost:8000/users/fxa/login/callback/",
            "auth_cookie_name": "auth-cookie",
            "login_cookie_name": "login-cookie",
            "auth_cookie_secure": False,
            "cookie_key": COOKIE_KEY,
            "admin_update_bearer_token": "token",
        },
        "application": {
            "document_base_url": "https://developer.example.com",
            "bcd_updates_url": "http://localhost:4321/bcd-updates.json",
            "mdn_metadata_url": "http://localhost:4321/metadata.json",
            "subscriptions_limit_collections": 3,
            "encoded_id_salt": "salt",
        },
        "search": {"url": "http://localhost:4321", "cache_max_age": 86400, "query_max_length": 200},
        "logging": {"human_logs": True},
        "metrics": {"statsd_label": "rumba", "statsd_port": 8125},
    }


def _write_toml(path, data):
    lines = []
    for section, values in data.items():
        lines.append(f"[{section}]")
        lines.extend(f"{key} = {json.dumps(value)}" for key, value in values.items())
        lines.append("")
    path.write_text("\n".join(lines), encoding="utf-8")


def test_from_mapping_reads_all_sections():
    settings = Settings.from_mapping(_config())
    assert settings.server.port == 8000
    assert settings.db.uri == "postgres://localhost/mdn"
    assert settings.auth.cookie_key == bytes(64)
    assert settings.application.subscriptions_limit_collections == 3
    assert settings.logging.human_logs is True
    assert settings.metrics.statsd_host is None


def test_defaults_for_optional_fields():
    settings = Settings.from_mapping(_config())
    assert settings.sentry is None
    assert settings.basket is None
    assert settings.skip_migrations is False
    assert settings.maintenance is None


def test_optional_sections_present():
    data = _config()
    data["basket"] = {"api_key": "placeholder", "basket_url": "http://localhost:4321"}
    data["sentry"] = {"dsn": "http://sentry.example.com/1"}
    settings = Settings.from_mapping(data)
    assert settings.basket.basket_url == "http://localhost:4321"
    assert settings.sentry.dsn == "http://sentry.example.com/1"


def test_missing_section_is_error():
    data = _config()
    del data["db"]
    with pytest.raises(SettingsError):
        Settings.from_mapping(data)


def test_port_out_of_range_is_error():
    data = _config()
    data["server"]["port"] = 70000
    with pytest.raises(SettingsError):
        Settings.from_mapping(data)


def test_short_cookie_key_is_error():
    data = _config()
    data["auth"]["cookie_key"] = base64.b64encode(bytes(32)).decode()
    with pytest.raises(SettingsError):
        Settings.from_mapping(data)


def test_relative_url_is_error():
    data = _config()
    data["application"]["bcd_updates_url"] = "/relative/path"
    with pytest.raises(SettingsError):
        Settings.from_mapping(data)


def test_load_file_with_environment_overrides(tmp_path):
    path = tmp_path / "settings.toml"
    _write_toml(path, _config())
    environ = {
        "MDN_SETTINGS": str(path),
        "MDN__SERVER__PORT": "9000",
        "mdn__auth__auth_cookie_secure": "yes",
        "MDN__METRICS__STATSD_HOST": "localhost",
        "OTHER__SERVER__PORT": "1",
    }
    settings = Settings.load(environ=environ)
    assert settings.server.port == 9000
    assert settings.auth.auth_cookie_secure is True
    assert settings.metrics.statsd_host == "localhost"
    assert settings.server.host == "localhost"


def test_load_explicit_path(tmp_path):
    path = tmp_path / "custom.toml"
    _write_toml(path, _config())
    settings = Settings.load(path, environ={})
    assert settings.search.query_max_length == 200


def test_load_missing_file_is_error(tmp_path):
    with pytest.raises(SettingsError):
        Settings.load(tmp_path / "absent.toml", environ={})


def test_load_bad_environment_value_is_error(tmp_path):
    path = tmp_path / "settings.toml"
    _write_toml(path, _config())
    with pytest.raises(SettingsError):
        Settings.load(path, environ={"MDN__SERVER__PORT": "not-a-number"})