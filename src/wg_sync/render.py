# src/wg_sync/render.py
from __future__ import annotations

import json

from .errors import PeerNotFound
from .models import InterfaceRecord
from .state import record_to_dict

CLIENT_ALLOWED_IPS = "0.0.0.0/0, ::/0"


def _finish(lines: list) -> str:
    return "\n".join(lines).strip() + "\n"


def render_interface_conf(record: InterfaceRecord, stripped: bool = False) -> str:
    """
    Configuration consumed by wg-quick. Only enabled peers are written, and
    only their public half. With ``stripped`` the wg-quick specific keys
    (Address and hooks) are left out, which is what ``wg syncconf`` accepts.

    Peers are ordered by name so the same record always renders to the same
    bytes.
    """
    i = record.interface

    lines = [
        "[Interface]",
        f"PrivateKey = {i.private_key}",
        f"ListenPort = {i.listen_port}",
    ]
    if not stripped:
        lines.append(f"Address = {i.address}")
        for key, command in i.hooks():
            if command:
                lines.append(f"{key} = {command}")

    for p in record.enabled_peers():
        lines += [
            "",
            "[Peer]",
            f"PublicKey = {p.public_key}",
            f"AllowedIPs = {p.allowed_ips}",
        ]

    return _finish(lines)


def render_peer_conf(record: InterfaceRecord, peer_name: str) -> str:
    """
    Client side configuration for one peer, pointing at this interface.
    """
    if peer_name not in record.peers:
        raise PeerNotFound(peer_name)

    p = record.peers[peer_name]
    i = record.interface
    g = record.global_

    lines = [
        "[Interface]",
        f"PrivateKey = {p.private_key}",
        f"Address = {p.allowed_ips}",
    ]
    if g.dns:
        lines.append(f"DNS = {g.dns}")

    lines += [
        "",
        "[Peer]",
        f"PublicKey = {i.public_key}",
        f"Endpoint = {g.endpoint}:{i.listen_port}",
        f"AllowedIPs = {CLIENT_ALLOWED_IPS}",
    ]

    return _finish(lines)


# ---------- human views ----------

def render_record_ini(record: InterfaceRecord) -> str:
    i = record.interface
    g = record.global_

    lines = [
        "[Global]",
        f"DNS = {g.dns}",
        f"Endpoint = {g.endpoint}",
        "",
        "[Interface]",
        f"Name = {i.name}",
        f"PrivateKey = {i.private_key}",
        f"PublicKey = {i.public_key}",
        f"ListenPort = {i.listen_port}",
        f"Address = {i.address}",
    ]
    for key, command in i.hooks():
        if command:
            lines.append(f"{key} = {command}")

    for name, p in sorted(record.peers.items()):
        lines += [
            "",
            "[Peer]",
            f"Name = {name}",
            f"PublicKey = {p.public_key}",
            f"AllowedIPs = {p.allowed_ips}",
            f"Status = {p.status.value}",
        ]

    return _finish(lines)


def render_record_json(record: InterfaceRecord) -> str:
    data = record_to_dict(record)
    data["interface"] = {k: v for k, v in data["interface"].items() if v != ""}
    return json.dumps(data, indent=2)
