# rumba

Building blocks for a documentation site back end, written with the Python
standard library alone.

## What it provides

- `rumba.settings`: typed, frozen settings read from a TOML file with
  environment overrides (`Settings.load`, `Settings.from_mapping`,
  `get_settings`). Invalid or missing values raise `SettingsError`.
- `rumba.ids`: short, salted, reversible ids (`Hashids`, `EncodedId`,
  `default_codec`). Bad input raises `MalformedIdError`.
- `rumba.helpers`: conversions for JSON values: `string_or_list`,
  `utc_from_seconds`, `utc_from_milliseconds`, `utc_to_milliseconds`,
  `naive_to_utc`, `maybe_naive_to_utc`, `array_like_maybe` and
  `decode_ids_maybe`.
- `rumba.tags`: request tags built from the method, URI and User-Agent
  header (`Tags`, `parse_user_agent`, `UserAgentInfo`).
- `rumba.metrics`: a small statsd client (`StatsdClient`) with a discarding
  sink (`NopMetricSink`) and a UDP sink (`UdpMetricSink`). It also has a
  `Metrics` helper for counters and timers that adds request tags, and
  `metrics_from_settings`.
- `rumba.logs`: root logging setup that writes either MozLog-style JSON lines
  (`MozLogJsonFormatter`) or plain text (`init_logging`, `reset_logging`).
- `rumba.util`: `country_iso_to_name` and `normalize_uri`.
- `rumba.fxa.types`: the `Subscription` enumeration.
- `rumba.fxa.error`: the account errors (`FxaError` and its subclasses).

## Installation

```
pip install .
```

## Example

```python
from rumba.ids import Hashids, EncodedId
from rumba.util import country_iso_to_name

codec = Hashids(salt="placeholder", min_length=4)
encoded = EncodedId.encode(42, codec)
assert EncodedId.decode(encoded, codec) == 42

assert country_iso_to_name("IS") == "Iceland"
```

## Settings

`Settings.load()` reads the file named by the `MDN_SETTINGS` environment
variable, or `.settings.toml` when that variable is not set. If the name has
no suffix, `.toml` is also tried. Environment variables whose names start
with `MDN__` override nested keys, with `__` between levels. For example,
`MDN__SERVER__PORT=8000` sets `server.port`. `get_settings()` loads the
settings once and caches them. `default_codec()` uses
`application.encoded_id_salt` from those settings.

## What it does not do

The package has no HTTP server, routes or request handlers. It has no
database access or migrations, no account login flow, no search client and no
newsletter client. It provides only the pieces listed above, for use by an
application that supplies those parts.

## Tests

```
pip install .[test]
pytest
```