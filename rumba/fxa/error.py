"""Errors raised while talking to the accounts service."""

from __future__ import annotations

from http import HTTPStatus


class FxaError(Exception):
    """Base class for account service failures."""


class UserInfoError(FxaError):
    """Fetching the user's profile failed."""

    def __str__(self) -> str:
        return f"Error fetching user info: {super().__str__()}"


class UserInfoBadStatus(FxaError):
    """The profile endpoint answered with an unexpected status."""

    def __init__(self, status: int) -> None:
        self.status = int(status)
        super().__init__(self.status)

    def __str__(self) -> str:
        try:
            reason = HTTPStatus(self.status).phrase
        except ValueError:
            reason = "<unknown status code>"
        return f"Bad status getting user info: {self.status} {reason}"


class UserInfoDeserializeError(FxaError):
    """The profile response could not be parsed."""

    def __str__(self) -> str:
        return f"Error deserializing user info: {super().__str__()}"


class IdTokenMissing(FxaError):
    """The token response carried no id token."""

    def __str__(self) -> str:
        return "Id token missing"