# obfuscation.py
"""Privacy mode: masks the host-unique part of MACs and link-local IPv6 addresses.

The vendor prefix of each MAC is kept so the display can still show who made
the device; the remaining three octets become a counter local to one mapping.
"""
import dataclasses
import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from neighbour import InterfaceInfo, MergedView, Neighbour
from utils import compress_groups, ipv6_groups, is_link_local

logger = logging.getLogger(__name__)


def build_mac_mapping(macs: Iterable[str]) -> Dict[str, str]:
    """Builds a real-to-masked MAC mapping in first-occurrence order.

    Args:
        macs: MAC addresses, duplicates allowed.

    Returns:
        Dict with one entry per distinct MAC: the original 3-octet prefix
        followed by a zero-based counter written as 3 hex octets.
    """
    mapping: Dict[str, str] = {}
    for mac in macs:
        if mac in mapping:
            continue
        counter = len(mapping)
        suffix = ":".join(f"{(counter >> shift) & 0xff:02x}" for shift in (16, 8, 0))
        mapping[mac] = f"{mac[:8]}:{suffix}"
    return mapping


def obfuscate_link_local_ipv6(addrs: Optional[Sequence[str]]) -> Optional[List[str]]:
    """Zeroes the low 24 bits of link-local addresses; others pass through unchanged."""
    if addrs is None:
        return None
    result = []
    for addr in addrs:
        if not is_link_local(addr):
            result.append(addr)
            continue
        try:
            groups = ipv6_groups(addr)
        except ValueError:
            logger.debug("Leaving unparseable link-local address as is: %s", addr)
            result.append(addr)
            continue
        groups[6] &= 0xff00
        groups[7] = 0
        scope = addr[addr.index("%"):] if "%" in addr else ""
        result.append(compress_groups(groups) + scope)
    return result


def _mask_entry(entry, mapping: Mapping[str, str]):
    return dataclasses.replace(
        entry,
        mac=mapping.get(entry.mac, entry.mac),
        ipv6=tuple(obfuscate_link_local_ipv6(entry.ipv6)),
    )


def obfuscate(
    neighbours: Sequence[Neighbour],
    interface_info: Mapping[str, InterfaceInfo],
    mapping: Mapping[str, str],
) -> Tuple[List[Neighbour], Dict[str, InterfaceInfo]]:
    """Returns masked copies of the neighbours and interface info.

    MACs without a mapping entry are left as they are.
    """
    masked_neighbours = [_mask_entry(n, mapping) for n in neighbours]
    masked_info = {name: _mask_entry(info, mapping) for name, info in interface_info.items()}
    return masked_neighbours, masked_info


def privacy_view(view: MergedView) -> MergedView:
    """Builds a fresh mapping for the view and returns its masked copy."""
    macs = [n.mac for n in view.neighbours if n.mac]
    macs.extend(info.mac for info in view.interface_info.values() if info.mac)
    mapping = build_mac_mapping(macs)
    neighbours, interface_info = obfuscate(view.neighbours, view.interface_info, mapping)
    return MergedView(
        neighbours=tuple(neighbours),
        timestamps=view.timestamps,
        interface_info=MappingProxyType(interface_info),
    )


def split_mac_for_display(mac: str) -> Dict[str, str]:
    """Splits a MAC into the vendor prefix and the de-emphasized host part."""
    if not mac:
        return {"prefix": mac or "", "masked": ""}
    return {"prefix": mac[:8], "masked": mac[8:]}


def split_ipv6_for_display(addr: str) -> Dict[str, str]:
    """Splits a link-local address before its last two groups.

    Non-link-local addresses, and link-local ones whose last two groups are
    already zero, come back whole in 'prefix' with an empty 'masked'.
    """
    if not is_link_local(addr):
        return {"prefix": addr, "masked": ""}
    try:
        groups = ipv6_groups(addr)
    except ValueError:
        return {"prefix": addr, "masked": ""}
    if groups[6] == 0 and groups[7] == 0:
        return {"prefix": addr, "masked": ""}
    # Non-zero stand-ins for the last two groups keep them out of the "::" run.
    prefix = compress_groups(groups[:6] + [1, 1])[:-len("1:1")]
    return {"prefix": prefix, "masked": f"{groups[6]:x}:{groups[7]:x}"}
