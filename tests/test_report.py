"""Test the stats views."""

import io
import json

import pytest
from rich.console import Console

from wg_stats.models import InterfaceStats, PeerStats, StatsRecord
from wg_stats.report import (
    format_iec,
    ordered_peers,
    print_colorized,
    render_json,
    render_json_all,
    render_plain,
    time_diff,
)

NOW = 1700000000


@pytest.mark.parametrize(
    "ago, expected",
    [
        (0, "Just now"),
        (-5, "Just now"),
        (1, "1 second ago"),
        (59, "59 seconds ago"),
        (60, "1 minute ago"),
        (3661, "1 hour, 1 minute, 1 second ago"),
        (2 * 86400 + 3 * 3600 + 60, "2 days, 3 hours, 1 minute ago"),
        (2592000 + 86400 + 3600 + 61, "1 month, 1 day, 1 hour ago"),
    ],
)
def test_time_diff(ago, expected):
    assert time_diff(NOW - ago, NOW) == expected


@pytest.mark.parametrize(
    "size, expected",
    [
        (0, "0 B"),
        (1023, "1023 B"),
        (1024, "1.00 KiB"),
        (1536, "1.50 KiB"),
        (5 * 1024 ** 2, "5.00 MiB"),
        (3 * 1024 ** 3, "3.00 GiB"),
        (2048 * 1024 ** 4, "2048.00 TiB"),
    ],
)
def test_format_iec(size, expected):
    assert format_iec(size) == expected


@pytest.fixture
def record():
    return StatsRecord(
        interface=InterfaceStats(
            name="wg0", public_key="ifacepub", listen_port=51820,
            create_at=NOW - 86400, update_at=NOW - 60,
        ),
        peers={
            "old-pub": PeerStats(allowed_ips="10.0.0.2/32", latest_handshake=NOW - 3600, total_rx=1024, total_tx=2048),
            "never-pub": PeerStats(allowed_ips="10.0.0.3/32"),
            "new-pub": PeerStats(
                allowed_ips="10.0.0.4/32", endpoint="198.51.100.1:51820",
                latest_handshake=NOW - 10, total_rx=100, total_tx=0,
            ),
        },
    )


def test_peers_ordered_by_handshake(record):
    assert [k for k, _ in ordered_peers(record)] == ["new-pub", "old-pub", "never-pub"]


def test_plain(record):
    text = render_plain(record, NOW, {"new-pub": "alice"})

    assert text.startswith(
        "interface: wg0\n"
        "  public key: ifacepub\n"
        "  listening port: 51820\n"
        "  recorded since: 1 day ago\n"
        "  last updated: 1 minute ago\n"
        "  transfer: 1.10 KiB received, 2.00 KiB sent\n"
    )
    assert (
        "peer: new-pub\n"
        "  name: alice\n"
        "  endpoint: 198.51.100.1:51820\n"
        "  allowed ips: 10.0.0.4/32\n"
        "  latest handshake: 10 seconds ago\n"
        "  transfer: 100 B received, 0 B sent\n"
    ) in text
    # nothing known about this peer beyond its addresses
    assert text.endswith("peer: never-pub\n  allowed ips: 10.0.0.3/32\n")


def test_colorized(record):
    out = io.StringIO()
    console = Console(file=out, force_terminal=True, width=200)

    print_colorized(record, NOW, console, {"new-pub": "alice"})

    text = out.getvalue()
    assert "\x1b[" in text
    assert "interface:" in text and "wg0" in text
    assert "alice" in text


def test_colorized_without_terminal_is_plain_text(record):
    out = io.StringIO()
    print_colorized(record, NOW, Console(file=out, width=200))
    assert "\x1b[" not in out.getvalue()
    assert "listening port: 51820" in out.getvalue()


def test_json(record):
    data = json.loads(render_json(record, NOW, {"old-pub": "bob"}))

    assert data["interface"]["name"] == "wg0"
    assert data["interface"]["update_at"] == "1 minute ago"
    assert list(data["peers"]) == ["new-pub", "old-pub", "never-pub"]
    assert data["peers"]["old-pub"] == {
        "name": "bob",
        "allowed_ips": "10.0.0.2/32",
        "latest_handshake": "1 hour ago",
        "total_rx": "1.00 KiB",
        "total_tx": "2.00 KiB",
    }
    assert data["peers"]["never-pub"] == {"allowed_ips": "10.0.0.3/32"}


def test_json_all(record):
    data = json.loads(render_json_all([record, StatsRecord.empty("wg1")], NOW))
    assert [i["interface"]["name"] for i in data["interfaces"]] == ["wg0", "wg1"]
