# src/wg_sync/peers.py
"""
In-place edits of an ``InterfaceRecord``. Callers run these inside
``RecordStore.mutate`` so the whole load/edit/save happens under the lock.
"""
from __future__ import annotations

import logging

from .errors import PeerExists, PeerNotFound
from .ipam import allocate_ip
from .models import InterfaceRecord, Peer, PeerStatus
from .options import AddPeerOptions
from .tunnel import WireGuard

logger = logging.getLogger(__name__)


def add_peer(record: InterfaceRecord, options: AddPeerOptions, wg: WireGuard) -> Peer:
    if options.name in record.peers:
        raise PeerExists(options.name)

    allowed_ips = options.allowed_ips or allocate_ip(record)
    priv, pub = wg.generate_keypair(options.private_key)

    peer = Peer(
        name=options.name,
        private_key=priv,
        public_key=pub,
        allowed_ips=allowed_ips,
        status=PeerStatus.ENABLED,
    )

    record.peers[peer.name] = peer
    logger.info("Added peer %s (%s) to %s", peer.name, allowed_ips, record.name)
    return peer


def remove_peer(record: InterfaceRecord, name: str) -> Peer:
    if name not in record.peers:
        raise PeerNotFound(name)
    peer = record.peers.pop(name)
    logger.info("Removed peer %s from %s", name, record.name)
    return peer


def set_peer_status(record: InterfaceRecord, name: str, status: PeerStatus) -> Peer:
    if name not in record.peers:
        raise PeerNotFound(name)
    peer = record.peers[name]
    peer.status = status
    logger.info("Peer %s of %s is now %s", name, record.name, status.name.lower())
    return peer
