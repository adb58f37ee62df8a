"""Process-wide logging setup: MozLog JSON lines or human readable text."""

from __future__ import annotations

import json
import logging
import os
import socket
import sys
from importlib.metadata import PackageNotFoundError, version
from typing import IO, Any

PACKAGE_NAME = "rumba"
ENV_VERSION = "2.0"

_STANDARD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}
_HANDLER_FLAG = "_rumba_handler"


def _severity(levelno: int) -> int:
    if levelno >= logging.CRITICAL:
        return 2
    if levelno >= logging.ERROR:
        return 3
    if levelno >= logging.WARNING:
        return 4
    if levelno >= logging.INFO:
        return 6
    return 7


def _package_version() -> str:
    try:
        return version(PACKAGE_NAME)
    except PackageNotFoundError:
        return "0.0.0"


class MozLogJsonFormatter(logging.Formatter):
    """Format records as single-line MozLog JSON documents."""

    def __init__(self, logger_name: str, msg_type: str, hostname: str) -> None:
        super().__init__()
        self.logger_name = logger_name
        self.msg_type = msg_type
        self.hostname = hostname

    def format(self, record: logging.LogRecord) -> str:
        fields: dict[str, Any] = {"msg": record.getMessage()}
        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                fields[key] = value if _is_json_scalar(value) else str(value)
        if record.exc_info:
            fields["exc"] = self.formatException(record.exc_info)
        document = {
            "Timestamp": int(record.created * 1_000_000_000),
            "Type": self.msg_type,
            "Logger": self.logger_name,
            "Hostname": self.hostname,
            "EnvVersion": ENV_VERSION,
            "Pid": record.process if record.process is not None else os.getpid(),
            "Severity": _severity(record.levelno),
            "Fields": fields,
        }
        return json.dumps(document, ensure_ascii=False)


def _is_json_scalar(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


def _remove_installed(root: logging.Logger) -> None:
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_FLAG, False):
            root.removeHandler(handler)
            handler.close()


def init_logging(json: bool, stream: IO[str] | None = None) -> None:
    """Install the root handler, replacing one installed earlier."""
    target = stream if stream is not None else sys.stdout
    handler = logging.StreamHandler(target)
    if json:
        handler.setFormatter(
            MozLogJsonFormatter(
                logger_name=f"{PACKAGE_NAME}-{_package_version()}",
                msg_type=f"{PACKAGE_NAME}:log",
                hostname=socket.gethostname(),
            )
        )
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-5s %(name)s: %(message)s")
        )
    setattr(handler, _HANDLER_FLAG, True)
    root = logging.getLogger()
    _remove_installed(root)
    root.addHandler(handler)
    root.setLevel(logging.INFO)
    logging.captureWarnings(True)


def reset_logging() -> None:
    """Replace the installed handler with one that discards everything."""
    root = logging.getLogger()
    _remove_installed(root)
    discard = logging.NullHandler()
    setattr(discard, _HANDLER_FLAG, True)
    root.addHandler(discard)