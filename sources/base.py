# sources/base.py
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class FetchResult:
    """Outcome of fetching one snapshot file."""
    name: str
    status: int
    last_modified: Optional[str] = None
    body: bytes = b""

    @property
    def not_modified(self) -> bool:
        return self.status == 304

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class BaseSource(ABC):
    """Abstract base class for origins that publish interface snapshots."""

    @abstractmethod
    def list_files(self) -> List[Dict[str, Any]]:
        """Retrieves the directory listing.

        Returns:
            A list of dictionaries with keys 'name', 'type', 'mtime' and 'size'.

        Raises:
            TransportError: if the listing could not be retrieved.
        """

    @abstractmethod
    def fetch(self, name: str, if_modified_since: Optional[str] = None) -> FetchResult:
        """Fetches one snapshot file, conditionally when a token is given.

        Raises:
            TransportError: if the origin could not be reached.
        """

    def fetch_config(self) -> Dict[str, Any]:
        """Returns the origin's UI settings, or {} when it publishes none."""
        return {}

    def whoami(self) -> str:
        """Returns the name of the user the origin sees, or ''."""
        return ""
