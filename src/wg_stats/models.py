# src/wg_stats/models.py
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Dict

from wg_sync.dump import NONE
from wg_sync.errors import CorruptRecord


@dataclass
class PeerStats:
    allowed_ips: str = ""
    endpoint: str = NONE            # last endpoint seen, "(none)" until one is
    persistent_keepalive: str = "off"
    transfer_rx: int = 0            # last raw sample, resets with the interface
    transfer_tx: int = 0
    total_rx: int = 0               # accumulated, never decreases
    total_tx: int = 0
    latest_handshake: int = 0       # epoch seconds, 0 means never


@dataclass
class InterfaceStats:
    name: str
    public_key: str = ""
    listen_port: int = 0
    create_at: int = 0
    update_at: int = 0


@dataclass
class StatsRecord:
    interface: InterfaceStats
    peers: Dict[str, PeerStats] = field(default_factory=dict)  # keyed by public key

    @property
    def name(self) -> str:
        return self.interface.name

    @classmethod
    def empty(cls, name: str) -> "StatsRecord":
        return cls(interface=InterfaceStats(name=name))

    def totals(self) -> tuple[int, int]:
        return (
            sum(p.total_rx for p in self.peers.values()),
            sum(p.total_tx for p in self.peers.values()),
        )


def stats_to_dict(record: StatsRecord) -> dict:
    return {
        "interface": asdict(record.interface),
        "peers": {key: asdict(p) for key, p in record.peers.items()},
    }


def dict_to_stats(data: dict) -> StatsRecord:
    try:
        i = data["interface"]
        interface = InterfaceStats(
            name=i["name"],
            public_key=i.get("public_key", ""),
            listen_port=int(i.get("listen_port") or 0),
            create_at=int(i.get("create_at") or 0),
            update_at=int(i.get("update_at") or 0),
        )

        peers = {}
        for key, p in data.get("peers", {}).items():
            peers[key] = PeerStats(
                allowed_ips=p.get("allowed_ips", ""),
                endpoint=p.get("endpoint", NONE),
                persistent_keepalive=str(p.get("persistent_keepalive", "off")),
                transfer_rx=int(p.get("transfer_rx", 0)),
                transfer_tx=int(p.get("transfer_tx", 0)),
                total_rx=int(p.get("total_rx", 0)),
                total_tx=int(p.get("total_tx", 0)),
                latest_handshake=int(p.get("latest_handshake", 0)),
            )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise CorruptRecord(f"{type(e).__name__}: {e}") from e

    return StatsRecord(interface=interface, peers=peers)
