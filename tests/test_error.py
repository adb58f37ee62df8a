import pytest

from rumba.fxa.error import (
    FxaError,
    IdTokenMissing,
    UserInfoBadStatus,
    UserInfoDeserializeError,
    UserInfoError,
)


def test_bad_status_message_and_attribute():
    err = UserInfoBadStatus(500)
    assert err.status == 500
    assert str(err) == "Bad status getting user info: 500 Internal Server Error"


def test_bad_status_unknown_code():
    assert str(UserInfoBadStatus(599)).endswith("599 <unknown status code>")


def test_user_info_error_prefix():
    assert str(UserInfoError("boom")) == "Error fetching user info: boom"


def test_deserialize_error_prefix():
    assert str(UserInfoDeserializeError("bad json")) == "Error deserializing user info: bad json"


def test_id_token_missing_message():
    assert str(IdTokenMissing()) == "Id token missing"


@pytest.mark.parametrize(
    ("err", "message"),
    [
        (UserInfoBadStatus(404), "Bad status getting user info: 404 Not Found"),
        (UserInfoError("x"), "Error fetching user info: x"),
        (UserInfoDeserializeError("y"), "Error deserializing user info: y"),
        (IdTokenMissing(), "Id token missing"),
    ],
)
def test_all_are_fxa_errors(err, message):
    with pytest.raises(FxaError) as info:
        raise err
    assert info.value is err
    assert str(info.value) == message