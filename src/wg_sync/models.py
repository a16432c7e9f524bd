# src/wg_sync/models.py
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List

from .errors import (
    AddressConflict,
    CorruptRecord,
    InvalidInterfaceName,
    InvalidPeerName,
    PeerExists,
)

NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")

DEFAULT_DNS = "1.1.1.1, 1.0.0.1"


class PeerStatus(str, Enum):
    # persisted values match records written by the shell tools
    ENABLED = "enable"
    DISABLED = "disable"


@dataclass
class Peer:
    name: str
    private_key: str
    public_key: str
    allowed_ips: str            # ex "10.0.0.2/32", comma separated when several
    status: PeerStatus = PeerStatus.ENABLED

    @property
    def enabled(self) -> bool:
        return self.status is PeerStatus.ENABLED

    def allowed_ips_list(self) -> List[str]:
        return [ip.strip() for ip in self.allowed_ips.split(",") if ip.strip()]


@dataclass
class Interface:
    name: str                  # ex: "wg0"
    private_key: str
    public_key: str            # derived from private_key by wg(8)
    listen_port: int           # ex: 51820
    address: str               # ex "10.0.0.1/24", defines the subnet
    pre_up: str = ""
    post_up: str = ""
    pre_down: str = ""
    post_down: str = ""

    def hooks(self) -> List[tuple[str, str]]:
        return [
            ("PreUp", self.pre_up),
            ("PostUp", self.post_up),
            ("PreDown", self.pre_down),
            ("PostDown", self.post_down),
        ]


@dataclass
class GlobalSettings:
    dns: str = DEFAULT_DNS
    endpoint: str = ""         # public host clients dial, port comes from the interface


@dataclass
class InterfaceRecord:
    interface: Interface
    global_: GlobalSettings = field(default_factory=GlobalSettings)
    peers: Dict[str, Peer] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.interface.name

    def enabled_peers(self) -> List[Peer]:
        return [p for _, p in sorted(self.peers.items()) if p.enabled]

    def peer_names_by_key(self) -> Dict[str, str]:
        return {p.public_key: name for name, p in self.peers.items()}


# ---------- validation ----------

def valid_name(name: str) -> bool:
    return bool(name) and NAME_RE.match(name) is not None


def check_interface_name(name: str) -> None:
    if not valid_name(name):
        raise InvalidInterfaceName(repr(name))


def check_peer_name(name: str) -> None:
    if not valid_name(name):
        raise InvalidPeerName(repr(name))


def check_record(record: InterfaceRecord) -> None:
    """
    Record invariants enforced before every save through the store.
    """
    check_interface_name(record.interface.name)

    keys: Dict[str, str] = {}
    # the interface owns its own address
    addresses: Dict[str, str] = {
        record.interface.address.split("/")[0].strip(): f"interface {record.name}"
    }
    for name, peer in record.peers.items():
        check_peer_name(name)
        if peer.name != name:
            raise CorruptRecord(f"peer entry '{name}' is named '{peer.name}'")

        other = keys.setdefault(peer.public_key, name)
        if other != name:
            raise PeerExists(f"'{name}' and '{other}' share a public key")

        for ip in peer.allowed_ips_list():
            owner = addresses.setdefault(ip.split("/")[0], name)
            if owner != name:
                raise AddressConflict(f"{ip} is used by '{owner}' and '{name}'")
