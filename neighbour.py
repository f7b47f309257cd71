# neighbour.py
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple


@dataclass(frozen=True)
class Neighbour:
    interface: str
    mac: str
    ipv4: Tuple[str, ...] = ()
    ipv6: Tuple[str, ...] = ()
    first_seen: Optional[str] = None
    last_seen: Optional[str] = None


@dataclass(frozen=True)
class InterfaceStats:
    tx_bytes: int = 0
    rx_bytes: int = 0
    tx_packets: int = 0
    rx_packets: int = 0
    tx_errors: int = 0
    rx_errors: int = 0
    tx_dropped: int = 0
    rx_dropped: int = 0


@dataclass(frozen=True)
class InterfaceInfo:
    mac: str = ""
    ipv4: Tuple[str, ...] = ()
    ipv6: Tuple[str, ...] = ()
    export_interval: str = ""
    stats: Optional[InterfaceStats] = None


@dataclass(frozen=True)
class MergedView:
    """Result of one merge cycle. Replaced as a whole, never patched."""
    neighbours: Tuple[Neighbour, ...] = ()
    timestamps: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    interface_info: Mapping[str, InterfaceInfo] = field(default_factory=lambda: MappingProxyType({}))
