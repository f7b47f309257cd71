# errors.py
from typing import Optional


class NeighwatchError(Exception):
    """Base class for errors raised while syncing neighbour snapshots."""


class ValidationError(NeighwatchError):
    """A snapshot is missing a required field."""

    def __init__(self, field: str, source: Optional[str] = None):
        self.field = field
        self.source = source
        where = f" in {source}" if source else ""
        super().__init__(f"Invalid interface data{where}: missing or invalid '{field}'")


class TransportError(NeighwatchError):
    """The origin could not be reached or answered with an error."""

    def __init__(self, url: str, status: Optional[int] = None, reason: str = ""):
        self.url = url
        self.status = status
        self.reason = reason
        detail = f"HTTP {status}" if status is not None else reason
        super().__init__(f"Request to {url} failed: {detail}")


class PartialFetchWarning(UserWarning):
    """One snapshot file was skipped while the rest of the cycle went on."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Skipped {name}: {reason}")
