# src/wg_stats/accounting.py
"""
Reset tolerant traffic accounting.

wg reports transfer counters that start from zero every time the interface
(or a peer's session) is recreated. Each sample is compared with the
previous raw sample of the same peer:

* NORMAL: both counters grew or stayed put, the total grows by the
  difference.
* RESET_OBSERVED: either counter went backwards, so the sample counts from
  a fresh zero and the total grows by the whole sample.

The raw sample is kept either way, to compare the next one against.
"""
from __future__ import annotations

from enum import Enum

from wg_sync.dump import NONE, PeerSample

from .models import PeerStats


class AccountingState(str, Enum):
    NORMAL = "normal"
    RESET_OBSERVED = "reset_observed"


def classify(prev_rx: int, prev_tx: int, rx: int, tx: int) -> AccountingState:
    if rx < prev_rx or tx < prev_tx:
        return AccountingState.RESET_OBSERVED
    return AccountingState.NORMAL


def fold(stats: PeerStats, sample: PeerSample) -> AccountingState:
    """
    Fold one sample into the peer's stats, in place.
    """
    state = classify(stats.transfer_rx, stats.transfer_tx, sample.transfer_rx, sample.transfer_tx)

    if state is AccountingState.RESET_OBSERVED:
        stats.total_rx += sample.transfer_rx
        stats.total_tx += sample.transfer_tx
    else:
        stats.total_rx += sample.transfer_rx - stats.transfer_rx
        stats.total_tx += sample.transfer_tx - stats.transfer_tx

    stats.transfer_rx = sample.transfer_rx
    stats.transfer_tx = sample.transfer_tx
    stats.allowed_ips = sample.allowed_ips
    stats.persistent_keepalive = sample.persistent_keepalive

    # a zero handshake or a missing endpoint never erases what we knew
    if sample.latest_handshake != 0:
        stats.latest_handshake = sample.latest_handshake
    if sample.endpoint != NONE:
        stats.endpoint = sample.endpoint

    return state
