"""
lu_replay — Error taxonomy

Every error here is fatal to a replay run. Nothing inside the library
catches them; they propagate to the top of the replay.

    ReplayError
     ├── CatalogUnavailable          catalog query failed
     ├── UnknownComponentKind        catalog and decoder tables disagree
     ├── UnderrunOrMalformedPayload  payload could not be decoded
     │    └── TruncatedError         read past the end of the payload
     └── IncompleteConsumption       bytes left over after decoding
"""

from __future__ import annotations


class ReplayError(Exception):
    """Base class for everything that aborts a replay."""


class CatalogUnavailable(ReplayError):
    """Raised when the component catalog cannot be queried."""


class UnknownComponentKind(ReplayError):
    """Raised when a component kind has no entry in either decode table."""

    def __init__(self, kind: int, lot: int | None = None):
        self.kind = kind
        self.lot = lot
        owner = f" (lot {lot})" if lot is not None else ""
        super().__init__(f"unknown component kind {kind}{owner}")


class UnderrunOrMalformedPayload(ReplayError):
    """Raised when a payload does not match the schema used to decode it."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.capture: str | None = None
        self.tag: str | None = None
        self.size: int | None = None

    def locate(self, capture: str, tag: str, size: int) -> None:
        """Attach the capture entry this error came from (first call wins)."""
        if self.capture is not None:
            return
        self.capture = capture
        self.tag = tag
        self.size = size

    def __str__(self) -> str:
        if self.capture is None:
            return self.message
        return f"Capture: {self.capture}, Entry: {self.tag}, {self.size} bytes: {self.message}"


class TruncatedError(UnderrunOrMalformedPayload):
    """Raised when a read runs past the end of the payload."""


class IncompleteConsumption(ReplayError):
    """Raised when a decoded payload still has unread bytes."""

    def __init__(self, capture: str, tag: str, size: int, remaining: int):
        self.capture = capture
        self.tag = tag
        self.size = size
        self.remaining = remaining
        super().__init__(
            f"Capture: {capture}, Entry: {tag}, {size} bytes: "
            f"{remaining} bytes left unread"
        )
