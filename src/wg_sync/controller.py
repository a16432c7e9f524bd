# src/wg_sync/controller.py
"""
The wgctl operations. Arguments are validated before the store is touched,
and every change to a record goes through ``RecordStore.mutate``.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional

from .errors import InterfaceExists, InterfaceNotFound, NoInterfacesFound
from .models import GlobalSettings, Interface, InterfaceRecord, Peer, PeerStatus, check_interface_name
from .options import AddPeerOptions, CreateInterfaceOptions, PeerRef
from .peers import add_peer, remove_peer, set_peer_status
from .reconcile import ApplyResult, InterfaceState, Reconciler
from .render import render_peer_conf
from .settings import Settings
from .store import RecordStore, interface_store
from .tunnel import WireGuard

logger = logging.getLogger(__name__)


class Controller:
    def __init__(self, store: RecordStore[InterfaceRecord], wg: WireGuard, reconciler: Reconciler):
        self.store = store
        self.wg = wg
        self.reconciler = reconciler

    @classmethod
    def from_settings(cls, settings: Settings, wg: Optional[WireGuard] = None) -> "Controller":
        wg = wg or WireGuard()
        return cls(
            store=interface_store(settings.DB_PATH),
            wg=wg,
            reconciler=Reconciler(wg, settings.CONFIG_PATH),
        )

    # ---------- interfaces ----------

    def list_interfaces(self) -> Dict[str, InterfaceState]:
        names = sorted(self.store.list())
        if not names:
            raise NoInterfacesFound()
        running = set(self.wg.show_interfaces())
        return {
            name: InterfaceState.UP if name in running else InterfaceState.DOWN
            for name in names
        }

    def create(self, options: CreateInterfaceOptions) -> InterfaceRecord:
        options.validate()
        if self.store.exists(options.name):
            raise InterfaceExists(options.name)

        priv, pub = self.wg.generate_keypair(options.private_key)
        record = InterfaceRecord(
            interface=Interface(
                name=options.name,
                private_key=priv,
                public_key=pub,
                listen_port=options.listen_port,
                address=options.address,
                pre_up=options.pre_up,
                post_up=options.post_up,
                pre_down=options.pre_down,
                post_down=options.post_down,
            ),
            global_=GlobalSettings(dns=options.dns, endpoint=options.endpoint),
        )
        self.store.create(record)
        logger.info("Created interface %s (%s)", record.name, record.interface.address)
        return record

    def show(self, name: str) -> InterfaceRecord:
        check_interface_name(name)
        return self.store.load(name)

    def apply(self, name: str) -> ApplyResult:
        check_interface_name(name)
        with self.store.lock(name):
            record = self.store.load(name)
            return self.reconciler.apply(record)

    def start(self, name: str) -> bool:
        check_interface_name(name)
        return self.reconciler.start(name)

    def stop(self, name: str) -> bool:
        check_interface_name(name)
        return self.reconciler.stop(name)

    def delete(self, name: str) -> None:
        """
        Tear down the live interface and its rendered file, then drop the
        record. If stopping fails the record stays, so the interface can be
        stopped and deleted again later.
        """
        check_interface_name(name)
        with self.store.lock(name):
            if not self.store.exists(name):
                raise InterfaceNotFound(name)
            self.reconciler.teardown(name)
            self.store.delete(name)
        logger.info("Deleted interface %s", name)

    # ---------- peers ----------

    def add_peer(self, options: AddPeerOptions) -> Peer:
        options.validate()
        return self.store.mutate(options.interface, lambda r: add_peer(r, options, self.wg))

    def remove_peer(self, ref: PeerRef) -> Peer:
        ref.validate()
        return self.store.mutate(ref.interface, lambda r: remove_peer(r, ref.name))

    def enable_peer(self, ref: PeerRef) -> Peer:
        ref.validate()
        return self.store.mutate(
            ref.interface, lambda r: set_peer_status(r, ref.name, PeerStatus.ENABLED)
        )

    def disable_peer(self, ref: PeerRef) -> Peer:
        ref.validate()
        return self.store.mutate(
            ref.interface, lambda r: set_peer_status(r, ref.name, PeerStatus.DISABLED)
        )

    def export_peer(self, ref: PeerRef) -> str:
        ref.validate()
        return render_peer_conf(self.store.load(ref.interface), ref.name)
