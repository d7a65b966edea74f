"""Typed failures raised by the fetch and decode layers.

Nothing here is fatal: the controller turns every :class:`TransportError` and
:class:`DecodeError` into an error view state carrying :meth:`describe`.
"""
from __future__ import annotations

from typing import Literal

TransportKind = Literal["connect", "timeout", "io"]
DecodeKind = Literal["http_status", "malformed", "empty"]


class ViewerError(Exception):
    """Base class for errors raised by the viewer core."""


class TransportError(ViewerError):
    """The request never produced an HTTP response."""

    def __init__(self, kind: TransportKind, url: str, detail: str = "") -> None:
        self.kind = kind
        self.url = url
        self.detail = detail
        super().__init__(f"{kind} error for {url}: {detail}" if detail else f"{kind} error for {url}")

    def describe(self) -> str:
        if self.kind == "timeout":
            return "request timed out"
        if self.kind == "connect":
            return "could not connect to the server"
        return "network error while reading the response"


class DecodeError(ViewerError):
    """The response arrived but could not be turned into products."""

    def __init__(self, kind: DecodeKind, detail: str = "", status: int | None = None) -> None:
        self.kind = kind
        self.detail = detail
        self.status = status
        label = f"{kind} (HTTP {status})" if status is not None else kind
        super().__init__(f"{label}: {detail}" if detail else label)

    def describe(self) -> str:
        if self.kind == "http_status":
            return f"server returned HTTP {self.status}"
        if self.kind == "empty":
            return self.detail or "server returned an empty response"
        return self.detail or "response was not valid JSON"


class InvalidCommand(ViewerError, ValueError):
    """A command was built with arguments no caller should ever pass."""
