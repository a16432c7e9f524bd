# src/wg_sync/state.py
from __future__ import annotations

from .errors import CorruptRecord, InvalidPort
from .models import GlobalSettings, Interface, InterfaceRecord, Peer, PeerStatus


def parse_port(value) -> int:
    """
    Listen ports are integers in [1, 65535]; anything else is rejected.
    Records written by the shell tools store the port as a string.
    """
    text = str(value).strip()
    if not (text.isascii() and text.isdigit()):
        raise InvalidPort(repr(value))
    port = int(text)
    if not 1 <= port <= 65535:
        raise InvalidPort(repr(value))
    return port


def record_to_dict(record: InterfaceRecord) -> dict:
    i = record.interface
    return {
        "global": {
            "dns": record.global_.dns,
            "endpoint": record.global_.endpoint,
        },
        "interface": {
            "name": i.name,
            "privateKey": i.private_key,
            "publicKey": i.public_key,
            "listenPort": i.listen_port,
            "address": i.address,
            "preUp": i.pre_up,
            "postUp": i.post_up,
            "preDown": i.pre_down,
            "postDown": i.post_down,
        },
        "peers": {
            name: {
                "privateKey": p.private_key,
                "publicKey": p.public_key,
                "allowedIPs": p.allowed_ips,
                "status": p.status.value,
            }
            for name, p in record.peers.items()
        },
    }


def dict_to_record(data: dict) -> InterfaceRecord:
    try:
        i = data["interface"]
        interface = Interface(
            name=i["name"],
            private_key=i["privateKey"],
            public_key=i["publicKey"],
            listen_port=parse_port(i["listenPort"]),
            address=i["address"],
            pre_up=i.get("preUp", ""),
            post_up=i.get("postUp", ""),
            pre_down=i.get("preDown", ""),
            post_down=i.get("postDown", ""),
        )

        g = data.get("global", {})
        global_ = GlobalSettings(
            dns=g.get("dns", ""),
            endpoint=g.get("endpoint", ""),
        )

        peers = {}
        for name, p in data.get("peers", {}).items():
            peers[name] = Peer(
                name=name,
                private_key=p["privateKey"],
                public_key=p["publicKey"],
                allowed_ips=p["allowedIPs"],
                status=PeerStatus(p.get("status", PeerStatus.ENABLED.value)),
            )
    except (KeyError, TypeError, ValueError, InvalidPort) as e:
        raise CorruptRecord(f"{type(e).__name__}: {e}") from e

    return InterfaceRecord(interface=interface, global_=global_, peers=peers)
