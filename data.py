# data.py
import logging
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Optional

from errors import ValidationError
from neighbour import InterfaceInfo, InterfaceStats, MergedView, Neighbour

logger = logging.getLogger(__name__)

STATS_FIELDS = (
    "tx_bytes", "rx_bytes",
    "tx_packets", "rx_packets",
    "tx_errors", "rx_errors",
    "tx_dropped", "rx_dropped",
)


def validate_snapshot(raw: Any, source: Optional[str] = None) -> None:
    """Checks that a raw snapshot carries the fields needed to merge it.

    Args:
        raw: Decoded JSON body of one interface file.
        source: File name, used in the error message only.

    Raises:
        ValidationError: naming 'interface' or 'neighbours'.
    """
    if not isinstance(raw, dict):
        raise ValidationError("interface", source)
    interface = raw.get("interface")
    if not interface or not isinstance(interface, str):
        raise ValidationError("interface", source)
    neighbours = raw.get("neighbours")
    if not isinstance(neighbours, list) or not all(isinstance(n, dict) for n in neighbours):
        raise ValidationError("neighbours", source)


def parse_neighbours(raw: Dict[str, Any]) -> List[Neighbour]:
    """Parses one interface snapshot into neighbours tagged with the interface name.

    MACs and timestamps are passed through as received. Missing address
    lists become empty tuples.

    Raises:
        ValidationError: if 'interface' or 'neighbours' is missing.
    """
    validate_snapshot(raw)
    interface = raw["interface"]
    return [
        Neighbour(
            interface=interface,
            mac=entry.get("mac"),
            ipv4=tuple(entry.get("ipv4") or ()),
            ipv6=tuple(entry.get("ipv6") or ()),
            first_seen=entry.get("first_seen"),
            last_seen=entry.get("last_seen"),
        )
        for entry in raw["neighbours"]
    ]


def parse_stats(raw_stats: Any, interface: str = "") -> Optional[InterfaceStats]:
    """Parses the probe's counter block. Returns None if absent or malformed."""
    if raw_stats is None:
        return None
    if not isinstance(raw_stats, dict):
        logger.warning("Ignoring stats for %s: not an object", interface)
        return None
    values = {}
    for name in STATS_FIELDS:
        value = raw_stats.get(name)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            logger.warning("Ignoring stats for %s: bad counter %s=%r", interface, name, value)
            return None
        values[name] = value
    return InterfaceStats(**values)


def parse_interface_info(raw: Dict[str, Any]) -> InterfaceInfo:
    """Extracts the interface's own identity and counters, with defaults."""
    return InterfaceInfo(
        mac=raw.get("mac") or "",
        ipv4=tuple(raw.get("ipv4") or ()),
        ipv6=tuple(raw.get("ipv6") or ()),
        export_interval=raw.get("export_interval") or "",
        stats=parse_stats(raw.get("stats"), raw.get("interface", "")),
    )


def merge_snapshots(snapshots: Iterable[Dict[str, Any]]) -> MergedView:
    """Merges several interface snapshots into one view.

    Neighbours are concatenated in input order without de-duplication, so a
    MAC seen on two interfaces yields two rows. Every snapshot gets an
    interface_info entry, even with zero neighbours; timestamps are recorded
    only when present.

    Raises:
        ValidationError: if any snapshot is invalid. Callers that need
            per-file tolerance validate with validate_snapshot() first.
    """
    neighbours: List[Neighbour] = []
    timestamps: Dict[str, str] = {}
    interface_info: Dict[str, InterfaceInfo] = {}

    for raw in snapshots:
        neighbours.extend(parse_neighbours(raw))
        interface = raw["interface"]
        if raw.get("timestamp"):
            timestamps[interface] = raw["timestamp"]
        interface_info[interface] = parse_interface_info(raw)

    logger.debug("Merged %d neighbours from %d interfaces", len(neighbours), len(interface_info))
    return MergedView(
        neighbours=tuple(neighbours),
        timestamps=MappingProxyType(timestamps),
        interface_info=MappingProxyType(interface_info),
    )
