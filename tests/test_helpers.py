from datetime import datetime, timedelta, timezone

import pytest

from rumba.helpers import (
    array_like_maybe,
    decode_ids_maybe,
    maybe_naive_to_utc,
    naive_to_utc,
    string_or_list,
    utc_from_milliseconds,
    utc_from_seconds,
    utc_to_milliseconds,
)
from rumba.ids import Hashids

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def codec():
    return Hashids(salt="test salt", min_length=4)


def test_string_or_list_single():
    assert string_or_list("foo") == ["foo"]


def test_string_or_list_list():
    assert string_or_list(["foo", "bar"]) == ["foo", "bar"]


def test_utc_milliseconds_round_trip():
    dt = utc_from_milliseconds(1655312049699)
    assert dt == EPOCH + timedelta(seconds=1655312049, milliseconds=699)
    assert utc_to_milliseconds(dt) == 1655312049699


def test_utc_milliseconds_small_values():
    assert utc_from_milliseconds(0) == EPOCH
    assert utc_from_milliseconds(1001) == EPOCH + timedelta(seconds=1, milliseconds=1)


def test_utc_milliseconds_beyond_datetime_range():
    with pytest.raises(ValueError, match="in milliseconds"):
        utc_from_milliseconds(1655312049699001)


def test_utc_milliseconds_rejects_float():
    with pytest.raises(ValueError):
        utc_from_milliseconds(1655312049699.1)


def test_utc_milliseconds_rejects_negative_remainder():
    with pytest.raises(ValueError):
        utc_from_milliseconds(-1)


def test_utc_milliseconds_negative_whole_seconds():
    assert utc_from_milliseconds(-2000) == EPOCH - timedelta(seconds=2)


def test_utc_to_milliseconds_naive_as_utc():
    assert utc_to_milliseconds(datetime(1970, 1, 1, 0, 0, 1)) == 1000


def test_utc_seconds_integer():
    assert utc_from_seconds(1655312049) == EPOCH + timedelta(seconds=1655312049)


def test_utc_seconds_fraction():
    assert utc_from_seconds(1655312049.5) == EPOCH + timedelta(
        seconds=1655312049, milliseconds=500
    )


def test_utc_seconds_truncates_below_milliseconds():
    assert utc_from_seconds(0.0019) == EPOCH + timedelta(milliseconds=1)


def test_utc_seconds_rejects_non_number():
    with pytest.raises(ValueError, match="in seconds"):
        utc_from_seconds("12")


def test_utc_seconds_out_of_range():
    with pytest.raises(ValueError):
        utc_from_seconds(1655312049699.1)


def test_to_utc():
    assert naive_to_utc(datetime(1970, 1, 1)) == "1970-01-01T00:00:00Z"


def test_maybe_to_utc():
    assert maybe_naive_to_utc(datetime(1970, 1, 1)) == "1970-01-01T00:00:00Z"
    assert maybe_naive_to_utc(None) is None


def test_decode_ids_none():
    assert decode_ids_maybe(None) is None


def test_decode_ids(codec):
    ids = [1, 2, 3, 4]
    id_string = ",".join(codec.encode(i) for i in ids)
    assert decode_ids_maybe(id_string, codec) == ids


def test_decode_ids_trailing_comma(codec):
    ids = [1, 2, 3, 4]
    id_string = ",".join(codec.encode(i) for i in ids) + ","
    assert decode_ids_maybe(id_string, codec) == ids


def test_decode_ids_malformed_gives_empty(codec):
    good = codec.encode(1)
    assert decode_ids_maybe(f"{good},!!!!", codec) == []


def test_array_like():
    assert array_like_maybe("firefox,lynx,") == ["firefox", "lynx"]
    assert array_like_maybe("firefox") == ["firefox"]
    assert array_like_maybe(None) is None