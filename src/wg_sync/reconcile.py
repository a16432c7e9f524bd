# src/wg_sync/reconcile.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Set

from .dump import InterfaceDump, normalize_allowed_ips
from .errors import DeleteFailed, InterfaceNotFound, RecordWriteError
from .models import InterfaceRecord
from .render import render_interface_conf
from .store import atomic_write_text
from .tunnel import WireGuard

logger = logging.getLogger(__name__)


class InterfaceState(str, Enum):
    ABSENT = "absent"   # no rendered file
    DOWN = "down"       # rendered, not loaded
    UP = "up"           # loaded into the running stack


@dataclass
class LiveDiff:
    added: Set[str] = field(default_factory=set)
    removed: Set[str] = field(default_factory=set)
    modified: Set[str] = field(default_factory=set)
    interface_changed: bool = False

    @property
    def empty(self) -> bool:
        return not (self.added or self.removed or self.modified or self.interface_changed)

    def summary(self) -> str:
        parts = [
            f"+{len(self.added)}",
            f"-{len(self.removed)}",
            f"~{len(self.modified)}",
        ]
        if self.interface_changed:
            parts.append("interface")
        return " ".join(parts)


@dataclass
class ApplyResult:
    path: Path
    state: InterfaceState
    diff: Optional[LiveDiff] = None
    synced: bool = False


def diff_live(record: InterfaceRecord, live: InterfaceDump) -> LiveDiff:
    """
    What the running interface lacks compared to the record. Peers are
    matched by public key; a peer is modified when its allowed IPs differ.
    """
    desired = {p.public_key: normalize_allowed_ips(p.allowed_ips) for p in record.enabled_peers()}
    running = {s.public_key: s.allowed_set() for s in live.peers}

    diff = LiveDiff(
        added=set(desired) - set(running),
        removed=set(running) - set(desired),
        modified={k for k in set(desired) & set(running) if desired[k] != running[k]},
    )
    i = record.interface
    diff.interface_changed = (
        i.private_key != live.private_key or i.listen_port != live.listen_port
    )
    return diff


class Reconciler:
    def __init__(self, wg: WireGuard, config_dir: Path):
        self.wg = wg
        self.config_dir = Path(config_dir)

    def conf_path(self, name: str) -> Path:
        return self.config_dir / f"{name}.conf"

    def state(self, name: str) -> InterfaceState:
        if not self.conf_path(name).is_file():
            return InterfaceState.ABSENT
        if self.wg.is_up(name):
            return InterfaceState.UP
        return InterfaceState.DOWN

    def apply(self, record: InterfaceRecord) -> ApplyResult:
        """
        Write the rendered file; when the interface is running, push the
        changes live. An empty diff leaves the running interface alone.
        """
        path = self.conf_path(record.name)
        try:
            atomic_write_text(path, render_interface_conf(record))
        except OSError as e:
            raise RecordWriteError(f"{path}: {e}") from e
        logger.info("Rendered %s", path)

        if not self.wg.is_up(record.name):
            return ApplyResult(path=path, state=InterfaceState.DOWN)

        diff = diff_live(record, self.wg.dump(record.name))
        if diff.empty:
            logger.info("%s is up to date", record.name)
            return ApplyResult(path=path, state=InterfaceState.UP, diff=diff)

        self.wg.syncconf(record.name, render_interface_conf(record, stripped=True))
        logger.info("Synced %s (%s)", record.name, diff.summary())
        return ApplyResult(path=path, state=InterfaceState.UP, diff=diff, synced=True)

    def start(self, name: str) -> bool:
        path = self.conf_path(name)
        if not path.is_file():
            raise InterfaceNotFound(name)
        if self.wg.is_up(name):
            return False
        self.wg.up(path)
        logger.info("Started %s", name)
        return True

    def stop(self, name: str) -> bool:
        path = self.conf_path(name)
        if not path.is_file():
            raise InterfaceNotFound(name)
        if not self.wg.is_up(name):
            return False
        self.wg.down(path)
        logger.info("Stopped %s", name)
        return True

    def teardown(self, name: str) -> None:
        """
        Stop the interface if it runs and remove its rendered file. A failed
        stop raises before anything is removed.
        """
        path = self.conf_path(name)
        if self.wg.is_up(name):
            self.wg.down(path)
            logger.info("Stopped %s", name)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise DeleteFailed(f"{path}: {e}") from e
