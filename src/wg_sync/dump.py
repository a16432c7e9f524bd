# src/wg_sync/dump.py
"""
Parser for ``wg show <interface> dump``.

The first line describes the interface:
    private-key  public-key  listen-port  fwmark
every following line one peer:
    public-key  preshared-key  endpoint  allowed-ips  latest-handshake
    transfer-rx  transfer-tx  persistent-keepalive
Fields are tab separated.
"""
from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from typing import FrozenSet, List

from .errors import CorruptRecord

NONE = "(none)"


@dataclass
class PeerSample:
    public_key: str
    preshared_key: str
    endpoint: str
    allowed_ips: str
    latest_handshake: int
    transfer_rx: int
    transfer_tx: int
    persistent_keepalive: str

    def allowed_set(self) -> FrozenSet[str]:
        return normalize_allowed_ips(self.allowed_ips)


@dataclass
class InterfaceDump:
    private_key: str
    public_key: str
    listen_port: int
    fwmark: str
    peers: List[PeerSample] = field(default_factory=list)


def normalize_allowed_ips(text: str) -> FrozenSet[str]:
    """
    wg prints '10.0.0.2/32' for an entry configured as '10.0.0.2', and
    '(none)' for an empty list.
    """
    out = set()
    for entry in text.split(","):
        entry = entry.strip()
        if not entry or entry == NONE:
            continue
        try:
            out.add(str(ipaddress.ip_network(entry, strict=False)))
        except ValueError:
            out.add(entry)
    return frozenset(out)


def parse_dump(text: str) -> InterfaceDump:
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        raise CorruptRecord("empty interface dump")

    head = lines[0].split("\t")
    if len(head) < 4:
        raise CorruptRecord(f"unexpected interface line: {lines[0]!r}")

    try:
        dump = InterfaceDump(
            private_key=head[0],
            public_key=head[1],
            listen_port=int(head[2]),
            fwmark=head[3],
        )

        for line in lines[1:]:
            fields = line.split("\t")
            if len(fields) < 8:
                raise CorruptRecord(f"unexpected peer line: {line!r}")
            dump.peers.append(
                PeerSample(
                    public_key=fields[0],
                    preshared_key=fields[1],
                    endpoint=fields[2],
                    allowed_ips=fields[3],
                    latest_handshake=int(fields[4]),
                    transfer_rx=int(fields[5]),
                    transfer_tx=int(fields[6]),
                    persistent_keepalive=fields[7],
                )
            )
    except ValueError as e:
        raise CorruptRecord(f"bad number in dump: {e}") from e

    return dump
