# src/wg_stats/report.py
"""
Plain, colorized and JSON views of a stats record, in the layout of
``wg show``.
"""
from __future__ import annotations

import json
from typing import Dict, List, Optional, Tuple

from rich.console import Console
from rich.markup import escape

from wg_sync.dump import NONE

from .models import PeerStats, StatsRecord

UNITS = (("month", 2592000), ("day", 86400), ("hour", 3600), ("minute", 60), ("second", 1))
IEC = ("KiB", "MiB", "GiB", "TiB")


def time_diff(timestamp: int, now: int) -> str:
    """
    '2 days, 3 hours, 1 minute ago' with at most three units.
    """
    diff = now - int(timestamp)
    if diff <= 0:
        return "Just now"

    parts = []
    for unit, seconds in UNITS:
        if len(parts) == 3:
            break
        value, diff = divmod(diff, seconds)
        if value:
            parts.append(f"{value} {unit}{'s' if value > 1 else ''}")
    return ", ".join(parts) + " ago"


def format_iec(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    value = size / 1024
    for unit in IEC[:-1]:
        if value < 1024:
            return f"{value:.2f} {unit}"
        value /= 1024
    return f"{value:.2f} {IEC[-1]}"


def ordered_peers(record: StatsRecord) -> List[Tuple[str, PeerStats]]:
    """
    Most recent handshake first; peers never seen keep their stored order
    at the end.
    """
    seen = [(k, p) for k, p in record.peers.items() if p.latest_handshake > 0]
    never = [(k, p) for k, p in record.peers.items() if p.latest_handshake == 0]
    seen.sort(key=lambda kp: kp[1].latest_handshake, reverse=True)
    return seen + never


Row = Tuple[str, str]


def _sections(
    record: StatsRecord, names: Dict[str, str], now: int
) -> Tuple[List[Row], List[Tuple[str, List[Row]]]]:
    i = record.interface
    rx, tx = record.totals()
    header = [
        ("public key", i.public_key),
        ("listening port", str(i.listen_port)),
        ("recorded since", time_diff(i.create_at, now)),
        ("last updated", time_diff(i.update_at, now)),
        ("transfer", f"{format_iec(rx)} received, {format_iec(tx)} sent"),
    ]

    peers = []
    for key, p in ordered_peers(record):
        rows = []
        if key in names:
            rows.append(("name", names[key]))
        if p.endpoint != NONE:
            rows.append(("endpoint", p.endpoint))
        rows.append(("allowed ips", p.allowed_ips))
        if p.latest_handshake:
            rows.append(("latest handshake", time_diff(p.latest_handshake, now)))
        if p.total_rx or p.total_tx:
            rows.append(("transfer", f"{format_iec(p.total_rx)} received, {format_iec(p.total_tx)} sent"))
        peers.append((key, rows))
    return header, peers


def render_plain(record: StatsRecord, now: int, names: Optional[Dict[str, str]] = None) -> str:
    header, peers = _sections(record, names or {}, now)
    lines = [f"interface: {record.name}"]
    lines += [f"  {label}: {value}" for label, value in header]
    for key, rows in peers:
        lines += ["", f"peer: {key}"]
        lines += [f"  {label}: {value}" for label, value in rows]
    return "\n".join(lines) + "\n"


def print_colorized(
    record: StatsRecord, now: int, console: Console, names: Optional[Dict[str, str]] = None
) -> None:
    header, peers = _sections(record, names or {}, now)

    def row(label: str, value: str) -> str:
        return f"  [bold white]{escape(label)}:[/] [white]{escape(value)}[/]"

    console.print(f"[bold green]interface:[/] [green]{escape(record.name)}[/]", highlight=False)
    for label, value in header:
        console.print(row(label, value), highlight=False)
    for key, rows in peers:
        console.print()
        console.print(f"[bold yellow]peer:[/] [yellow]{escape(key)}[/]", highlight=False)
        for label, value in rows:
            console.print(row(label, value), highlight=False)


def to_json(record: StatsRecord, now: int, names: Optional[Dict[str, str]] = None) -> dict:
    names = names or {}
    i = record.interface
    rx, tx = record.totals()
    out = {
        "interface": {
            "name": i.name,
            "public_key": i.public_key,
            "listen_port": i.listen_port,
            "create_at": time_diff(i.create_at, now),
            "update_at": time_diff(i.update_at, now),
            "total_rx": format_iec(rx),
            "total_tx": format_iec(tx),
        },
        "peers": {},
    }
    for key, p in ordered_peers(record):
        peer = {
            "name": names.get(key, ""),
            "allowed_ips": p.allowed_ips,
            "endpoint": p.endpoint,
            "latest_handshake": time_diff(p.latest_handshake, now) if p.latest_handshake else "",
            "total_rx": format_iec(p.total_rx) if p.total_rx else "",
            "total_tx": format_iec(p.total_tx) if p.total_tx else "",
        }
        out["peers"][key] = {k: v for k, v in peer.items() if v not in ("", NONE)}
    return out


def render_json(record: StatsRecord, now: int, names: Optional[Dict[str, str]] = None) -> str:
    return json.dumps(to_json(record, now, names), indent=2)


def render_json_all(records: List[StatsRecord], now: int, names: Optional[Dict[str, str]] = None) -> str:
    return json.dumps({"interfaces": [to_json(r, now, names) for r in records]}, indent=2)
