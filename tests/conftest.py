"""Shared fixtures: a fake wg(8) and stores rooted in tmp_path."""

import pytest

from wg_sync.dump import parse_dump
from wg_sync.errors import InterfaceNotRunning, StopFailed
from wg_sync.models import GlobalSettings, Interface, InterfaceRecord, Peer, PeerStatus
from wg_sync.reconcile import Reconciler
from wg_sync.controller import Controller
from wg_sync.store import interface_store


class FakeWireGuard:
    """
    Stands in for wg/wg-quick. Keys are deterministic, running interfaces
    are a set, and every call that would change live state is recorded.
    """

    def __init__(self):
        self.running = set()
        self.dumps = {}
        self.calls = []
        self.fail_down = False
        self._counter = 0

    def genkey(self):
        self._counter += 1
        return f"priv{self._counter}"

    def pubkey(self, private_key):
        return f"pub-{private_key}"

    def generate_keypair(self, private_key=None):
        priv = private_key or self.genkey()
        return priv, self.pubkey(priv)

    def show_interfaces(self):
        return sorted(self.running)

    def is_up(self, name):
        self.calls.append(("is_up", name))
        return name in self.running

    def dump(self, name):
        self.calls.append(("dump", name))
        if name not in self.dumps:
            raise InterfaceNotRunning(name)
        return parse_dump(self.dumps[name])

    def syncconf(self, name, stripped_conf):
        self.calls.append(("syncconf", name, stripped_conf))

    def up(self, conf_path):
        self.calls.append(("up", str(conf_path)))
        self.running.add(conf_path.stem)

    def down(self, conf_path):
        self.calls.append(("down", str(conf_path)))
        if self.fail_down:
            raise StopFailed("device busy")
        self.running.discard(conf_path.stem)

    def live_calls(self):
        return [c for c in self.calls if c[0] in ("syncconf", "up", "down", "dump")]


@pytest.fixture
def wg():
    return FakeWireGuard()


@pytest.fixture
def store(tmp_path):
    return interface_store(tmp_path / "db")


@pytest.fixture
def reconciler(wg, tmp_path):
    return Reconciler(wg, tmp_path / "wireguard")


@pytest.fixture
def controller(store, wg, reconciler):
    return Controller(store, wg, reconciler)


def make_record(name="wg0", address="10.0.0.1/24", peers=None):
    record = InterfaceRecord(
        interface=Interface(
            name=name,
            private_key="ifacepriv",
            public_key="ifacepub",
            listen_port=51820,
            address=address,
        ),
        global_=GlobalSettings(dns="1.1.1.1", endpoint="vpn.example.com"),
    )
    for peer in peers or []:
        record.peers[peer.name] = peer
    return record


def make_peer(name, ip, status=PeerStatus.ENABLED):
    return Peer(
        name=name,
        private_key=f"{name}-priv",
        public_key=f"{name}-pub",
        allowed_ips=ip,
        status=status,
    )
