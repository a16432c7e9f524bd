"""Test collecting live samples into stats records."""

import json

import pytest

from conftest import make_peer, make_record
from wg_sync.errors import CorruptRecord, InterfaceNotRunning, NoInterfacesFound, StatsNotFound
from wg_sync.models import PeerStatus
from wg_stats.collector import Collector, config_peer_names, stats_store


def dump_text(peers, listen_port=51820):
    """peers: (public_key, rx, tx, handshake)"""
    lines = [f"ifacepriv\tifacepub\t{listen_port}\toff"]
    for key, rx, tx, handshake in peers:
        lines.append(f"{key}\t(none)\t203.0.113.9:4000\t10.0.0.2/32\t{handshake}\t{rx}\t{tx}\toff")
    return "\n".join(lines) + "\n"


class Clock:
    def __init__(self, now=1700000000):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def stats(tmp_path):
    return stats_store(tmp_path / "stats")


@pytest.fixture
def collector(stats, wg, clock):
    return Collector(stats, wg, clock=clock, workers=4)


def test_first_update_creates_the_record(collector, stats, wg, clock):
    wg.running.add("wg0")
    wg.dumps["wg0"] = dump_text([("alice-pub", 100, 200, 1699999990)])

    collector.update_interface("wg0")

    record = stats.load("wg0")
    assert record.interface.public_key == "ifacepub"
    assert record.interface.listen_port == 51820
    assert record.interface.create_at == record.interface.update_at == clock.now
    peer = record.peers["alice-pub"]
    assert (peer.total_rx, peer.total_tx) == (100, 200)
    assert peer.endpoint == "203.0.113.9:4000"


def test_later_updates_keep_create_at(collector, stats, wg, clock):
    wg.dumps["wg0"] = dump_text([("alice-pub", 100, 200, 1699999990)])
    collector.update_interface("wg0")
    created = clock.now

    clock.now += 300
    wg.dumps["wg0"] = dump_text([("alice-pub", 150, 260, 1700000250)])
    collector.update_interface("wg0")

    record = stats.load("wg0")
    assert record.interface.create_at == created
    assert record.interface.update_at == created + 300
    assert (record.peers["alice-pub"].total_rx, record.peers["alice-pub"].total_tx) == (150, 260)


def test_interface_restart_is_accumulated(collector, stats, wg, clock):
    wg.dumps["wg0"] = dump_text([("alice-pub", 1000, 1000, 1)])
    collector.update_interface("wg0")
    wg.dumps["wg0"] = dump_text([("alice-pub", 10, 20, 0)])
    collector.update_interface("wg0")

    peer = stats.load("wg0").peers["alice-pub"]
    assert (peer.total_rx, peer.total_tx) == (1010, 1020)
    assert peer.latest_handshake == 1


def test_peers_gone_from_the_live_interface_are_kept(collector, stats, wg):
    wg.dumps["wg0"] = dump_text([("alice-pub", 1, 1, 1), ("bob-pub", 2, 2, 2)])
    collector.update_interface("wg0")
    wg.dumps["wg0"] = dump_text([("alice-pub", 5, 5, 5)])
    collector.update_interface("wg0")

    assert set(stats.load("wg0").peers) == {"alice-pub", "bob-pub"}


def test_update_of_interface_that_is_not_running(collector, stats):
    with pytest.raises(InterfaceNotRunning):
        collector.update_interface("wg0")
    assert not stats.exists("wg0")


def test_update_all_isolates_failures(collector, stats, wg):
    wg.running.update({"wg0", "wg1", "wg2"})
    wg.dumps["wg0"] = dump_text([("alice-pub", 1, 1, 1)])
    wg.dumps["wg2"] = dump_text([("carol-pub", 3, 3, 3)])
    # wg1 is listed as running but cannot be dumped

    result = collector.update_all()

    assert not result.ok
    assert set(result.failed) == {"wg1"}
    assert isinstance(result.failed["wg1"], InterfaceNotRunning)
    assert stats.list() == {"wg0", "wg2"}


def test_update_all_without_running_interfaces(collector):
    with pytest.raises(NoInterfacesFound):
        collector.update_all()


def test_corrupt_record_is_not_overwritten(collector, stats, wg):
    stats.root.mkdir(parents=True)
    stats.path("wg0").write_text("[]")
    wg.dumps["wg0"] = dump_text([("alice-pub", 1, 1, 1)])

    with pytest.raises(CorruptRecord):
        collector.update_interface("wg0")
    assert stats.path("wg0").read_text() == "[]"


def test_flush(collector, stats, wg):
    wg.dumps["wg0"] = dump_text([("alice-pub", 1, 1, 1)])
    collector.update_interface("wg0")

    collector.flush("wg0")

    assert not stats.exists("wg0")
    with pytest.raises(StatsNotFound):
        collector.load("wg0")


def test_flush_of_missing_record(collector):
    with pytest.raises(StatsNotFound):
        collector.flush("wg0")


def test_persisted_stats_layout(collector, stats, wg):
    wg.dumps["wg0"] = dump_text([("alice-pub", 7, 8, 9)])
    collector.update_interface("wg0")

    data = json.loads(stats.path("wg0").read_text())
    assert data["interface"]["name"] == "wg0"
    assert data["peers"]["alice-pub"]["total_rx"] == 7
    assert data["peers"]["alice-pub"]["transfer_tx"] == 8


def test_enabled_config_peers_resolve_to_stats(collector, store, wg):
    record = make_record(
        peers=[
            make_peer("alice", "10.0.0.2/32"),
            make_peer("bob", "10.0.0.3/32"),
            make_peer("carol", "10.0.0.4/32", PeerStatus.DISABLED),
        ]
    )
    store.create(record)
    wg.dumps["wg0"] = dump_text([(p.public_key, 1, 1, 1) for p in record.enabled_peers()])
    collector.update_interface("wg0")

    names = config_peer_names(store, "wg0")
    peers = collector.load("wg0").peers
    for peer in record.enabled_peers():
        assert peer.public_key in peers
        assert names[peer.public_key] == peer.name


def test_config_peer_names_of_unknown_interface(store):
    assert config_peer_names(store, "wg7") == {}
