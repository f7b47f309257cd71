import pytest

from conftest import make_neighbour, make_snapshot
from data import merge_snapshots, parse_interface_info, parse_neighbours, validate_snapshot
from errors import ValidationError
from neighbour import InterfaceInfo, InterfaceStats, Neighbour

STATS = {
    "tx_bytes": 10, "rx_bytes": 20, "tx_packets": 1, "rx_packets": 2,
    "tx_errors": 0, "rx_errors": 0, "tx_dropped": 0, "rx_dropped": 3,
}


def test_parse_neighbours_tags_interface_and_defaults_addresses():
    raw = make_snapshot("eth0", [make_neighbour("AA:BB:CC:DD:EE:01", ipv4=["10.0.0.1"]), {"mac": "aa:bb:cc:dd:ee:02"}])
    result = parse_neighbours(raw)
    assert result[0] == Neighbour(
        interface="eth0", mac="AA:BB:CC:DD:EE:01", ipv4=("10.0.0.1",), ipv6=(),
        first_seen="2026-01-01T11:00:00Z", last_seen="2026-01-01T12:00:00Z",
    )
    assert result[1].ipv4 == () and result[1].ipv6 == ()
    assert result[1].first_seen is None and result[1].last_seen is None


def test_parse_neighbours_keeps_malformed_timestamps_verbatim():
    raw = make_snapshot("eth0", [make_neighbour("aa:bb:cc:dd:ee:01", first_seen="yesterday", last_seen="not-a-date")])
    assert parse_neighbours(raw)[0].last_seen == "not-a-date"


@pytest.mark.parametrize("raw, field", [
    ({"neighbours": []}, "interface"),
    ({"interface": "", "neighbours": []}, "interface"),
    ({"interface": "eth0"}, "neighbours"),
    ({"interface": "eth0", "neighbours": {}}, "neighbours"),
    ({"interface": "eth0", "neighbours": ["aa:bb"]}, "neighbours"),
    ([], "interface"),
    (None, "interface"),
])
def test_invalid_snapshots_are_rejected(raw, field):
    with pytest.raises(ValidationError) as exc:
        validate_snapshot(raw, "neigh-x.json")
    assert exc.value.field == field
    assert "neigh-x.json" in str(exc.value)


def test_parse_interface_info_defaults():
    assert parse_interface_info({"interface": "eth0", "neighbours": []}) == InterfaceInfo()


def test_parse_interface_info_reads_identity_and_stats():
    raw = make_snapshot("eth0", mac="02:00:00:00:00:01", ipv4=["10.0.0.2"], ipv6=["fe80::1"],
                        export_interval="5s", stats=STATS)
    info = parse_interface_info(raw)
    assert info.mac == "02:00:00:00:00:01"
    assert info.ipv4 == ("10.0.0.2",)
    assert info.export_interval == "5s"
    assert info.stats == InterfaceStats(**STATS)


@pytest.mark.parametrize("stats", [
    {**STATS, "rx_dropped": -1},
    {**STATS, "tx_bytes": "10"},
    {k: v for k, v in STATS.items() if k != "tx_errors"},
    "nope",
])
def test_malformed_stats_become_none(stats):
    assert parse_interface_info(make_snapshot("eth0", stats=stats)).stats is None


def test_merge_concatenates_in_input_order():
    eth0 = make_snapshot("eth0", [make_neighbour("aa:bb:cc:00:00:01"), make_neighbour("aa:bb:cc:00:00:02")])
    wlan0 = make_snapshot("wlan0", [make_neighbour("dd:ee:ff:00:00:01")])
    view = merge_snapshots([eth0, wlan0])
    assert len(view.neighbours) == 3
    assert [n.mac for n in view.neighbours] == ["aa:bb:cc:00:00:01", "aa:bb:cc:00:00:02", "dd:ee:ff:00:00:01"]


def test_merge_keeps_same_mac_on_two_interfaces():
    mac = "aa:bb:cc:dd:ee:ff"
    view = merge_snapshots([make_snapshot("eth0", [make_neighbour(mac)]), make_snapshot("wlan0", [make_neighbour(mac)])])
    assert [(n.interface, n.mac) for n in view.neighbours] == [("eth0", mac), ("wlan0", mac)]


def test_merge_records_timestamps_only_when_present_and_info_always():
    with_ts = make_snapshot("eth0", [make_neighbour("aa:bb:cc:00:00:01")])
    without_ts = {"interface": "wlan0", "neighbours": []}
    view = merge_snapshots([with_ts, without_ts])
    assert dict(view.timestamps) == {"eth0": "2026-01-01T12:00:00Z"}
    assert set(view.interface_info) == {"eth0", "wlan0"}
    assert view.interface_info["wlan0"] == InterfaceInfo(mac="", ipv4=(), ipv6=(), export_interval="", stats=None)


def test_merge_is_deterministic():
    snapshots = [make_snapshot("eth0", [make_neighbour("aa:bb:cc:00:00:01")]), make_snapshot("eth1")]
    assert merge_snapshots(snapshots) == merge_snapshots(snapshots)


def test_merge_of_nothing_is_empty():
    view = merge_snapshots([])
    assert view.neighbours == ()
    assert dict(view.timestamps) == {}
    assert dict(view.interface_info) == {}


def test_merged_view_maps_are_read_only():
    view = merge_snapshots([make_snapshot("eth0")])
    with pytest.raises(TypeError):
        view.timestamps["eth1"] = "x"


def test_merge_raises_on_invalid_snapshot():
    with pytest.raises(ValidationError):
        merge_snapshots([make_snapshot("eth0"), {"interface": "eth1"}])
