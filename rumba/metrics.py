"""Statsd metrics with request tags."""

from __future__ import annotations

import logging
import socket
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from .settings import get_settings
from .tags import Tags

logger = logging.getLogger(__name__)


class MetricSinkError(Exception):
    """A metric could not be delivered."""


class _Sink(Protocol):
    def emit(self, line: str) -> int: ...


class NopMetricSink:
    """A sink that discards every metric, keeping only a count of them."""

    def __init__(self) -> None:
        self.discarded = 0

    def emit(self, line: str) -> int:
        """Discard ``line``; no bytes are ever sent."""
        self.discarded += 1
        return 0


class UdpMetricSink:
    """Send metrics as UDP datagrams from a non-blocking socket."""

    def __init__(self, host: str, port: int) -> None:
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            sock.bind(("0.0.0.0", 0))
        except OSError as exc:
            raise MetricSinkError(f"Could not bind UDP port {exc!r}") from exc
        try:
            sock.setblocking(False)
        except OSError as exc:
            sock.close()
            raise MetricSinkError(f"Could not init UDP port {exc!r}") from exc
        try:
            address = socket.getaddrinfo(host, port, socket.AF_INET, socket.SOCK_DGRAM)[0][4]
        except (OSError, UnicodeError, OverflowError, IndexError) as exc:
            sock.close()
            raise MetricSinkError(f"Could not generate UDP sink {exc!r}") from exc
        self._socket = sock
        self._address = address

    def emit(self, line: str) -> int:
        try:
            return self._socket.sendto(line.encode("utf-8"), self._address)
        except OSError as exc:
            raise MetricSinkError(str(exc)) from exc

    def close(self) -> None:
        self._socket.close()

    def __enter__(self) -> UdpMetricSink:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class StatsdClient:
    """Format statsd lines with tags and hand them to a sink."""

    def __init__(self, prefix: str = "", sink: _Sink | None = None) -> None:
        self.prefix = f"{prefix}." if prefix else ""
        self.sink = sink if sink is not None else NopMetricSink()

    def _send(self, label: str, value: int, kind: str, tags: Mapping[str, str] | None) -> str:
        line = f"{self.prefix}{label}:{value}|{kind}"
        if tags:
            line += "|#" + ",".join(f"{key}:{val}" for key, val in tags.items())
        self.sink.emit(line)
        return line

    def incr(self, label: str, tags: Mapping[str, str] | None = None) -> str:
        """Increment a counter by one; returns the line sent."""
        return self._send(label, 1, "c", tags)

    def count(self, label: str, count: int, tags: Mapping[str, str] | None = None) -> str:
        """Add ``count`` to a counter; returns the line sent."""
        if isinstance(count, bool) or not isinstance(count, int):
            raise TypeError("count must be an integer")
        return self._send(label, count, "c", tags)

    def time(self, label: str, millis: int, tags: Mapping[str, str] | None = None) -> str:
        """Record a timing in milliseconds; returns the line sent."""
        if isinstance(millis, bool) or not isinstance(millis, int) or millis < 0:
            raise ValueError("millis must be a non-negative integer")
        return self._send(label, millis, "ms", tags)


@dataclass
class MetricTimer:
    label: str
    start: float
    tags: Tags = field(default_factory=Tags)


class Metrics:
    """Per-request metrics that add the request's tags to every metric."""

    def __init__(self, client: StatsdClient | None = None, tags: Tags | None = None) -> None:
        self.client = client
        self.tags = tags
        self.timer: MetricTimer | None = None

    @classmethod
    def noop(cls) -> Metrics:
        """Metrics whose client discards everything."""
        return cls(StatsdClient("", NopMetricSink()))

    def _merged(self, tags: Tags | None) -> Tags:
        merged = Tags.with_tags(self.tags.tags) if self.tags is not None else Tags()
        if tags is not None:
            merged.extend(tags.tags)
        return merged

    def start_timer(self, label: str, tags: Tags | None = None) -> None:
        """Start timing ``label``; :meth:`finish` reports the elapsed time."""
        merged = self._merged(tags)
        logger.debug("Starting timer... %r", label, extra={"tags": merged.tags})
        self.timer = MetricTimer(label=label, start=time.monotonic(), tags=merged)

    def finish(self) -> None:
        """Report a running timer, if any, and clear it."""
        timer, self.timer = self.timer, None
        if self.client is None or timer is None:
            return
        lapse = int((time.monotonic() - timer.start) * 1000)
        try:
            line = self.client.time(timer.label, lapse, timer.tags.tag_tree())
        except MetricSinkError as exc:
            logger.warning("Metric %s error: %r", timer.label, exc)
        else:
            logger.debug("%s", line)

    def __enter__(self) -> Metrics:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.finish()

    def incr(self, label: str) -> None:
        self.incr_with_tags(label, None)

    def incr_with_tags(self, label: str, tags: Tags | None) -> None:
        if self.client is None:
            return
        merged = self._merged(tags)
        try:
            line = self.client.incr(label, merged.tag_tree())
        except MetricSinkError as exc:
            logger.warning("Metric %s error: %r", label, exc, extra={"tags": merged.tags})
        else:
            logger.debug("%s", line)

    def count(self, label: str, count: int) -> None:
        self.count_with_tags(label, count, None)

    def count_with_tags(self, label: str, count: int, tags: Tags | None) -> None:
        if self.client is None:
            return
        merged = self._merged(tags)
        try:
            line = self.client.count(label, count, merged.tag_tree())
        except MetricSinkError as exc:
            logger.warning("Metric %s error: %r", label, exc, extra={"tags": merged.tags})
        else:
            logger.debug("%s", line)


def metrics_from_settings(settings: Any = None) -> StatsdClient:
    """Build a client from the metrics settings: UDP when a statsd host is set."""
    config = (settings if settings is not None else get_settings()).metrics
    if config.statsd_host is not None:
        sink: _Sink = UdpMetricSink(config.statsd_host, config.statsd_port)
    else:
        sink = NopMetricSink()
    return StatsdClient(config.statsd_label, sink)