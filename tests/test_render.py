"""Test wg-quick and client configuration rendering."""

import json

import pytest

from conftest import make_peer, make_record
from wg_sync.errors import PeerNotFound
from wg_sync.models import PeerStatus
from wg_sync.render import (
    render_interface_conf,
    render_peer_conf,
    render_record_ini,
    render_record_json,
)


@pytest.fixture
def record():
    r = make_record(
        peers=[
            make_peer("bob", "10.0.0.3/32"),
            make_peer("alice", "10.0.0.2/32"),
            make_peer("carol", "10.0.0.4/32", status=PeerStatus.DISABLED),
        ]
    )
    r.interface.post_up = "iptables -A FORWARD -i wg0 -j ACCEPT"
    return r


def test_interface_conf_layout(record):
    assert render_interface_conf(record) == (
        "[Interface]\n"
        "PrivateKey = ifacepriv\n"
        "ListenPort = 51820\n"
        "Address = 10.0.0.1/24\n"
        "PostUp = iptables -A FORWARD -i wg0 -j ACCEPT\n"
        "\n"
        "[Peer]\n"
        "PublicKey = alice-pub\n"
        "AllowedIPs = 10.0.0.2/32\n"
        "\n"
        "[Peer]\n"
        "PublicKey = bob-pub\n"
        "AllowedIPs = 10.0.0.3/32\n"
    )


def test_rendering_is_byte_identical_across_calls(record):
    assert render_interface_conf(record) == render_interface_conf(record)


def test_peer_insertion_order_does_not_matter(record):
    reordered = make_record(peers=[record.peers[n] for n in ("carol", "alice", "bob")])
    reordered.interface.post_up = record.interface.post_up
    assert render_interface_conf(reordered) == render_interface_conf(record)


def test_disabled_peers_are_left_out(record):
    conf = render_interface_conf(record)
    assert "carol-pub" not in conf
    assert "10.0.0.4" not in conf


def test_no_private_key_of_a_peer_or_the_interface_public_key(record):
    conf = render_interface_conf(record)
    for peer in record.peers.values():
        assert peer.private_key not in conf
    assert "ifacepub" not in conf


def test_empty_hooks_are_not_written():
    conf = render_interface_conf(make_record())
    for key in ("PreUp", "PostUp", "PreDown", "PostDown"):
        assert key not in conf


def test_stripped_conf_drops_wg_quick_keys(record):
    conf = render_interface_conf(record, stripped=True)
    assert "Address" not in conf
    assert "PostUp" not in conf
    assert "PrivateKey = ifacepriv" in conf
    assert "PublicKey = alice-pub" in conf


def test_peer_export(record):
    assert render_peer_conf(record, "alice") == (
        "[Interface]\n"
        "PrivateKey = alice-priv\n"
        "Address = 10.0.0.2/32\n"
        "DNS = 1.1.1.1\n"
        "\n"
        "[Peer]\n"
        "PublicKey = ifacepub\n"
        "Endpoint = vpn.example.com:51820\n"
        "AllowedIPs = 0.0.0.0/0, ::/0\n"
    )


def test_peer_export_without_dns(record):
    record.global_.dns = ""
    assert "DNS" not in render_peer_conf(record, "alice")


def test_export_of_unknown_peer(record):
    with pytest.raises(PeerNotFound):
        render_peer_conf(record, "mallory")


def test_ini_view_lists_every_peer_with_status(record):
    text = render_record_ini(record)
    assert text.startswith("[Global]\nDNS = 1.1.1.1\nEndpoint = vpn.example.com\n")
    assert "Name = carol\nPublicKey = carol-pub\nAllowedIPs = 10.0.0.4/32\nStatus = disable" in text
    assert "PublicKey = ifacepub" in text


def test_json_view_drops_empty_interface_fields(record):
    data = json.loads(render_record_json(record))
    assert "preUp" not in data["interface"]
    assert data["interface"]["postUp"].startswith("iptables")
    assert data["peers"]["alice"]["status"] == "enable"
