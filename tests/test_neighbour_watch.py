from datetime import datetime, timezone

from conftest import make_neighbour, make_snapshot
from data import merge_snapshots
from neighbour_watch import load_ui_config, render_table, resolve_privacy_mode
from poller import PollerState

NOW = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def state(error=None):
    view = merge_snapshots([
        make_snapshot("eth0", [
            make_neighbour("aa:bb:cc:11:22:33", ipv4=["192.168.1.10"], ipv6=["fe80::aabb:ccff:fedd:eeff"],
                           last_seen="2026-01-01T11:59:50Z"),
            make_neighbour("dd:ee:ff:44:55:66", last_seen="2026-01-01T11:00:00Z"),
        ], mac="02:00:00:00:00:01"),
    ])
    return PollerState(view=view, loading=False, error=error)


def test_load_ui_config_defaults():
    assert load_ui_config(None) == {"privacyMode": False}
    assert load_ui_config({"privacyMode": True, "theme": "dark"}) == {"privacyMode": True, "theme": "dark"}


def test_resolve_privacy_mode_precedence():
    assert resolve_privacy_mode(False, {"privacyMode": True}, True) is False
    assert resolve_privacy_mode(None, {"privacyMode": True}, False) is True
    assert resolve_privacy_mode(None, {"privacyMode": False}, True) is False
    assert resolve_privacy_mode(None, {}, True) is True


def test_render_plain_table():
    text = "\n".join(render_table(state(), now=NOW))
    assert "Total 2, active (5 min) 1 [eth0=2]" in text
    assert "aa:bb:cc:11:22:33" in text
    assert "fe80::aabb:ccff:fedd:eeff" in text
    assert "10s ago" in text


def test_render_marks_stale_rows():
    lines = render_table(state(), now=NOW, sort_key="mac", sort_dir="asc")
    rows = [line for line in lines if "eth0 " in line and ":" in line and not line.startswith("  eth0:")]
    assert rows[0].startswith(" ")
    assert rows[1].startswith("*")


def test_render_privacy_masks_addresses():
    text = "\n".join(render_table(state(), privacy=True, now=NOW))
    assert "aa:bb:cc:11:22:33" not in text
    assert "aa:bb:cc[:00:00:00]" in text
    assert "fe80::aabb:ccff:[fe00:0]" in text
    assert "mac=02:00:00:00:00:02" in text


def test_render_filters_and_reports_errors():
    text = "\n".join(render_table(state(error="Request to x failed"), search="no-such", now=NOW))
    assert "! connection problem: Request to x failed" in text
    assert "No neighbours found" in text


def state_without_mac():
    view = merge_snapshots([
        make_snapshot("eth0", [{"ipv4": ["10.0.0.7"], "last_seen": "2026-01-01T11:59:50Z"}]),
    ])
    return PollerState(view=view, loading=False)


def test_render_neighbour_without_mac():
    lines = render_table(state_without_mac(), now=NOW)
    row = [line for line in lines if "10.0.0.7" in line][0]
    assert " - " in row


def test_render_privacy_neighbour_without_mac():
    lines = render_table(state_without_mac(), privacy=True, now=NOW)
    assert any("10.0.0.7" in line for line in lines)
