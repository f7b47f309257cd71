# vendor.py
import logging
from typing import Dict, Mapping, Optional

from mac_vendor_lookup import MacLookup

from utils import mac_oui

logger = logging.getLogger(__name__)


class VendorLookup:
    """Read-only OUI to vendor name lookup backed by mac_vendor_lookup."""

    def __init__(self, overrides: Optional[Mapping[str, str]] = None, mac_lookup: Optional[MacLookup] = None):
        self.overrides = {k.lower(): v for k, v in (overrides or {}).items()}
        self._mac_lookup = mac_lookup
        self._cache: Dict[str, str] = {}

    @property
    def mac_lookup(self) -> MacLookup:
        if self._mac_lookup is None:
            self._mac_lookup = MacLookup()
        return self._mac_lookup

    def lookup(self, mac: str) -> str:
        """Returns the vendor name for a MAC's prefix, or '' if invalid or unknown."""
        prefix = mac_oui(mac)
        if not prefix:
            return ""
        if prefix in self.overrides:
            return self.overrides[prefix]
        if prefix not in self._cache:
            try:
                self._cache[prefix] = self.mac_lookup.lookup(f"{prefix}:00:00:00")
            except Exception as e:  # pylint: disable=broad-except
                logger.debug(f"Could not determine vendor for MAC {mac}: {e}")
                self._cache[prefix] = ""
        return self._cache[prefix]

    def update_vendors(self) -> None:
        """Refreshes the library's vendor database and drops cached answers."""
        self.mac_lookup.update_vendors()
        self._cache.clear()
