# utils.py
import ipaddress
import re
from typing import List

OUI_PATTERN = re.compile(r"^[0-9a-f]{2}:[0-9a-f]{2}:[0-9a-f]{2}$")
LINK_LOCAL_PREFIX = "fe80:"


def format_mac(mac: str) -> str:
    """Formats a MAC address to lowercase with colons."""
    return mac.lower().replace("-", ":")


def mac_oui(mac: str) -> str:
    """Returns the lowercase 'aa:bb:cc' vendor prefix of a MAC, or '' if it has none."""
    if not mac or not isinstance(mac, str):
        return ""
    prefix = ":".join(format_mac(mac).split(":")[:3])
    return prefix if OUI_PATTERN.match(prefix) else ""


def is_link_local(addr: str) -> bool:
    """Checks for the fe80::/10 link-local prefix by its literal 'fe80:' form."""
    return addr.lower().startswith(LINK_LOCAL_PREFIX)


def ipv6_groups(addr: str) -> List[int]:
    """Expands an IPv6 address into its eight 16-bit groups.

    Raises:
        ValueError: if the address does not parse.
    """
    address = ipaddress.IPv6Address(addr.split("%", 1)[0])
    return [int(group, 16) for group in address.exploded.split(":")]


def compress_groups(groups: List[int]) -> str:
    """Joins eight 16-bit groups in the shortened form of ipaddress."""
    value = 0
    for group in groups:
        value = (value << 16) | group
    return ipaddress.IPv6Address(value).compressed
