# table.py
"""Filtering, ordering and staleness rules for the neighbour table."""
import functools
import math
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from neighbour import Neighbour

STALE_THRESHOLD_MS = 5 * 60 * 1000

SORT_KEYS = ("interface", "mac", "ipv4", "ipv6", "firstSeen", "lastSeen")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parses an ISO-8601 instant. Returns None if it does not parse."""
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _epoch_ms(value: Optional[str]) -> float:
    parsed = parse_timestamp(value)
    return parsed.timestamp() * 1000 if parsed else math.nan


def _now_ms(now: Optional[datetime]) -> float:
    return (now or datetime.now(timezone.utc)).timestamp() * 1000


def filter_neighbours(neighbours: Sequence[Neighbour], search: str = "", iface: str = "") -> List[Neighbour]:
    """Narrows rows by exact interface name and a case-insensitive substring.

    The search text is matched against the MAC and every IPv4/IPv6 address.
    Empty values do not restrict.
    """
    filtered = list(neighbours)
    if iface:
        filtered = [n for n in filtered if n.interface == iface]
    if search:
        query = search.lower()
        filtered = [
            n for n in filtered
            if query in (n.mac or "").lower()
            or any(query in ip.lower() for ip in n.ipv4)
            or any(query in ip.lower() for ip in n.ipv6)
        ]
    return filtered


def _compare(a, b) -> int:
    # NaN never compares less or greater, so it ties with everything.
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def _sort_value(neighbour: Neighbour, key: str):
    if key == "interface":
        return neighbour.interface
    if key == "mac":
        return neighbour.mac or ""
    if key == "ipv4":
        return neighbour.ipv4[0] if neighbour.ipv4 else ""
    if key == "ipv6":
        return neighbour.ipv6[0] if neighbour.ipv6 else ""
    if key == "firstSeen":
        return _epoch_ms(neighbour.first_seen)
    return _epoch_ms(neighbour.last_seen)


def sort_neighbours(neighbours: Sequence[Neighbour], key: str = "lastSeen", direction: str = "desc") -> List[Neighbour]:
    """Returns a new, stably sorted list. Unknown keys sort by lastSeen."""
    sign = -1 if direction == "desc" else 1

    def comparator(a: Neighbour, b: Neighbour) -> int:
        return sign * _compare(_sort_value(a, key), _sort_value(b, key))

    return sorted(neighbours, key=functools.cmp_to_key(comparator))


def is_stale(neighbour: Neighbour, now: Optional[datetime] = None, threshold_ms: float = STALE_THRESHOLD_MS) -> bool:
    """True when lastSeen is set and more than threshold_ms old."""
    if not neighbour.last_seen:
        return False
    return _now_ms(now) - _epoch_ms(neighbour.last_seen) > threshold_ms


def get_interfaces(neighbours: Iterable[Neighbour]) -> List[str]:
    return sorted({n.interface for n in neighbours})


def summarize(neighbours: Sequence[Neighbour], now: Optional[datetime] = None,
              window_ms: float = STALE_THRESHOLD_MS) -> Dict[str, object]:
    """Counts rows overall, rows seen within the window, and rows per interface."""
    cutoff = _now_ms(now) - window_ms
    per_interface: Dict[str, int] = {}
    for n in neighbours:
        per_interface[n.interface] = per_interface.get(n.interface, 0) + 1
    return {
        "total": len(neighbours),
        "active": sum(1 for n in neighbours if _epoch_ms(n.last_seen) >= cutoff),
        "per_interface": sorted(per_interface.items()),
    }


_AGO_UNITS: Tuple[Tuple[str, int], ...] = (("d", 86400), ("h", 3600), ("m", 60))


def format_ago(value: Optional[str], now: Optional[datetime] = None) -> str:
    """Renders an instant as '12s ago', '3m ago' and so on; 'unknown' if unparseable."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return "unknown"
    seconds = max(0, int((_now_ms(now) - parsed.timestamp() * 1000) // 1000))
    for suffix, size in _AGO_UNITS:
        if seconds >= size:
            return f"{seconds // size}{suffix} ago"
    return f"{seconds}s ago"
