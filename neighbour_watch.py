# neighbour_watch.py
import argparse
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from dynaconf import Dynaconf

from obfuscation import privacy_view, split_ipv6_for_display, split_mac_for_display
from poller import Poller, PollerState
from sources import get_source
from table import SORT_KEYS, filter_neighbours, format_ago, is_stale, sort_neighbours, summarize
from vendor import VendorLookup

# Load settings
config = Dynaconf(
    settings_files=['config/settings.toml'],
    envvar_prefix="NEIGHWATCH",
)

logger = logging.getLogger(__name__)

UI_CONFIG_DEFAULTS = {"privacyMode": False}


def load_ui_config(remote: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Merges the origin's config.json over the built-in defaults."""
    return {**UI_CONFIG_DEFAULTS, **(remote or {})}


def resolve_privacy_mode(flag: Optional[bool], remote: Optional[Mapping[str, Any]], default: bool = False) -> bool:
    """Command line wins, then the origin's config.json, then local settings."""
    if flag is not None:
        return flag
    if remote and "privacyMode" in remote:
        return bool(load_ui_config(remote)["privacyMode"])
    return bool(default)


def _masked(text: str, split) -> str:
    parts = split(text)
    if not parts["masked"]:
        return text
    return f"{parts['prefix']}[{parts['masked']}]"


def render_table(state: PollerState, privacy: bool = False, search: str = "", iface: str = "",
                 sort_key: str = "lastSeen", sort_dir: str = "desc",
                 vendors: Optional[VendorLookup] = None, now: Optional[datetime] = None,
                 stale_threshold_ms: float = 300000) -> List[str]:
    """Formats the current state as plain-text lines. Stale rows are marked with '*'."""
    now = now or datetime.now(timezone.utc)
    view = privacy_view(state.view) if privacy else state.view
    rows = sort_neighbours(filter_neighbours(view.neighbours, search=search, iface=iface), sort_key, sort_dir)

    lines = []
    if state.error:
        lines.append(f"! connection problem: {state.error}")
    stats = summarize(view.neighbours, now=now)
    per_iface = ", ".join(f"{name}={count}" for name, count in stats["per_interface"])
    lines.append(f"Total {stats['total']}, active (5 min) {stats['active']}" + (f" [{per_iface}]" if per_iface else ""))

    for name, info in sorted(view.interface_info.items()):
        stamp = view.timestamps.get(name)
        lines.append(
            f"  {name}: mac={info.mac or '-'} ipv4={','.join(info.ipv4) or '-'} "
            f"ipv6={','.join(info.ipv6) or '-'} updated={format_ago(stamp, now) if stamp else '-'}"
        )

    lines.append(f"  {'IFACE':<10} {'MAC':<30} {'IPV4':<18} {'IPV6':<28} {'FIRST':>10} {'LAST':>10}")
    for n in rows:
        mac = n.mac or "-"
        if privacy and n.mac:
            mac = _masked(n.mac, split_mac_for_display)
        vendor = vendors.lookup(n.mac) if vendors else ""
        if vendor:
            mac = f"{mac} ({vendor})"
        ipv6 = [_masked(ip, split_ipv6_for_display) if privacy else ip for ip in n.ipv6]
        marker = "*" if is_stale(n, now, stale_threshold_ms) else " "
        lines.append(
            f"{marker} {n.interface:<10} {mac:<30} {', '.join(n.ipv4) or '-':<18} {', '.join(ipv6) or '-':<28} "
            f"{format_ago(n.first_seen, now) if n.first_seen else '':>10} "
            f"{format_ago(n.last_seen, now) if n.last_seen else '':>10}"
        )
    if not rows:
        lines.append("  No neighbours found")
    return lines


def main():
    parser = argparse.ArgumentParser(description="Watch link-layer neighbours published by a probe")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--once", action="store_true", help="Run a single sync cycle and exit")
    parser.add_argument("--privacy", dest="privacy", action="store_true", default=None, help="Mask MAC and link-local IPv6 host bits")
    parser.add_argument("--no-privacy", dest="privacy", action="store_false", help="Show addresses unmasked")
    parser.add_argument("--search", default="", help="Case-insensitive MAC/IP substring filter")
    parser.add_argument("--iface", default="", help="Only show this interface")
    parser.add_argument("--sort", choices=SORT_KEYS, default=config.general.get("sort_key", "lastSeen"), help="Sort column")
    parser.add_argument("--asc", dest="sort_dir", action="store_const", const="asc", default=config.general.get("sort_dir", "desc"))
    parser.add_argument("--desc", dest="sort_dir", action="store_const", const="desc")
    parser.add_argument("--interval", type=float, default=config.general.get("poll_interval", 5), help="Seconds between polls")
    parser.add_argument("--update-mac-db", action="store_true", help="Force update of the MAC vendor database")
    args = parser.parse_args()

    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format='%(asctime)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

    vendors = VendorLookup(overrides=config.get("vendor", {}).get("overrides", {}))
    if args.update_mac_db:
        # Update the database if requested.
        vendors.update_vendors()

    source = get_source(config)
    username = source.whoami()
    if username:
        logger.info(f"Signed in as {username}")
    privacy = resolve_privacy_mode(args.privacy, source.fetch_config(), config.general.get("privacy_mode", False))

    poller = Poller(
        source,
        interval=args.interval,
        suffix=config.general.get("snapshot_suffix", ".json"),
    )
    stale_ms = config.general.get("stale_threshold", 300) * 1000

    def show(state: PollerState):
        print("\n".join(render_table(state, privacy, args.search, args.iface, args.sort, args.sort_dir,
                                     vendors, stale_threshold_ms=stale_ms)))

    if args.once:
        state = poller.run_cycle()
        show(state)
        return 1 if state.error else 0

    poller.subscribe(show)
    poller.start()
    try:
        while True:
            poller.wait_for_update(timeout=args.interval)
    except KeyboardInterrupt:
        logger.info("Stopping")
    finally:
        poller.stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
