# src/wg_stats/collector.py
from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Optional

from wg_sync.dump import InterfaceDump
from wg_sync.errors import InterfaceExists, NoInterfacesFound, StatsNotFound, WgError
from wg_sync.models import check_interface_name
from wg_sync.store import RecordStore
from wg_sync.tunnel import WireGuard

from .accounting import AccountingState, fold
from .models import PeerStats, StatsRecord, dict_to_stats, stats_to_dict

logger = logging.getLogger(__name__)


def stats_store(root: Path) -> RecordStore[StatsRecord]:
    return RecordStore(
        root,
        encode=stats_to_dict,
        decode=dict_to_stats,
        name_of=lambda r: r.name,
        not_found=StatsNotFound,
        exists_error=InterfaceExists,
    )


def fold_dump(record: StatsRecord, dump: InterfaceDump, now: int) -> Dict[str, AccountingState]:
    """
    Fold a live dump into a stats record, in place. Returns the accounting
    state each peer was found in.
    """
    i = record.interface
    i.public_key = dump.public_key
    i.listen_port = dump.listen_port
    if not i.create_at:
        i.create_at = now
    i.update_at = now

    states = {}
    for sample in dump.peers:
        stats = record.peers.setdefault(sample.public_key, PeerStats())
        states[sample.public_key] = fold(stats, sample)
        if states[sample.public_key] is AccountingState.RESET_OBSERVED:
            logger.info("Counter reset on %s peer %s", i.name, sample.public_key[:8])
    return states


@dataclass
class BatchResult:
    outcomes: Dict[str, Optional[WgError]] = field(default_factory=dict)

    @property
    def failed(self) -> Dict[str, WgError]:
        return {name: e for name, e in self.outcomes.items() if e is not None}

    @property
    def ok(self) -> bool:
        return not self.failed


class Collector:
    def __init__(
        self,
        store: RecordStore[StatsRecord],
        wg: WireGuard,
        clock: Callable[[], float] = time.time,
        workers: int = 8,
    ):
        self.store = store
        self.wg = wg
        self.clock = clock
        self.workers = workers

    def update_interface(self, name: str) -> StatsRecord:
        check_interface_name(name)
        dump = self.wg.dump(name)
        now = int(self.clock())

        def _fold(record: StatsRecord) -> StatsRecord:
            fold_dump(record, dump, now)
            return record

        record = self.store.mutate(name, _fold, default=lambda: StatsRecord.empty(name))
        logger.info("Updated %s (%d peers)", name, len(dump.peers))
        return record

    def update_all(self) -> BatchResult:
        """
        Update every running interface in parallel. Interfaces use separate
        record files, so the tasks do not coordinate; one failing does not
        stop the others.
        """
        names = self.wg.show_interfaces()
        if not names:
            raise NoInterfacesFound()

        result = BatchResult()
        with ThreadPoolExecutor(max_workers=min(self.workers, len(names))) as pool:
            futures = {name: pool.submit(self.update_interface, name) for name in names}
            for name, future in futures.items():
                try:
                    future.result()
                    result.outcomes[name] = None
                except WgError as e:
                    logger.error("Updating %s failed: %s", name, e)
                    result.outcomes[name] = e
        return result

    def flush(self, name: str) -> None:
        check_interface_name(name)
        with self.store.lock(name):
            self.store.delete(name)
        logger.info("Flushed statistics of %s", name)

    def load(self, name: str) -> StatsRecord:
        check_interface_name(name)
        return self.store.load(name)


def config_peer_names(config_store: RecordStore, name: str) -> Dict[str, str]:
    """
    Public key -> peer name from the wgctl record of the same interface, so
    statistics can be shown under the names peers were created with.
    """
    if not config_store.exists(name):
        return {}
    try:
        return config_store.load(name).peer_names_by_key()
    except WgError as e:
        logger.warning("Cannot read peer names of %s: %s", name, e)
        return {}
