import argparse
import json
import os
import sys
import time
from pathlib import Path

import qrcode
from rich.console import Console

from wg_stats.collector import Collector, config_peer_names, stats_store
from wg_stats.report import print_colorized, render_json, render_json_all, render_plain
from wg_sync.controller import Controller
from wg_sync.errors import NoInterfacesFound, RecordWriteError, RootRequired, WgError
from wg_sync.log import setup_logging
from wg_sync.options import AddPeerOptions, CreateInterfaceOptions, PeerRef
from wg_sync.render import render_record_ini, render_record_json
from wg_sync.settings import Settings
from wg_sync.store import atomic_write_text, interface_store
from wg_sync.tunnel import WireGuard


def _is_root() -> bool:
    return hasattr(os, "geteuid") and os.geteuid() == 0


def _require_root() -> None:
    if not _is_root():
        raise RootRequired()


def _settings(args) -> Settings:
    s = Settings.from_env()
    if getattr(args, "db_path", None):
        s.DB_PATH = Path(args.db_path)
    if getattr(args, "config_path", None):
        s.CONFIG_PATH = Path(args.config_path)
    if getattr(args, "stats_path", None):
        s.STATS_PATH = Path(args.stats_path)
    if getattr(args, "log_level", None):
        s.LOG_LEVEL = args.log_level
    return s


def _controller(args) -> Controller:
    return Controller.from_settings(args.settings, WireGuard())


def _collector(args) -> Collector:
    return Collector(
        stats_store(args.settings.STATS_PATH),
        wg=WireGuard(),
        workers=args.settings.UPDATE_WORKERS,
    )


def _stamp() -> str:
    return time.strftime("%Y-%m-%d %H:%M:%S")


# ---------------------------------------------------
# wgctl: interfaces
# ---------------------------------------------------

def cmd_show(args):
    ctl = _controller(args)

    if args.target == "interfaces":
        states = ctl.list_interfaces()
        if args.format == "json":
            print(json.dumps({"interfaces": {n: s.value for n, s in states.items()}}, indent=2))
        else:
            print(" ".join(f"{n}({s.value})" for n, s in states.items()))
        return 0

    record = ctl.show(args.target)
    if args.format == "json":
        print(render_record_json(record))
    else:
        print(render_record_ini(record), end="")
    return 0


def cmd_create(args):
    options = CreateInterfaceOptions(
        name=args.name,
        address=args.address,
        listen_port=args.listen_port,
        endpoint=args.endpoint,
        dns=args.dns if args.dns is not None else args.settings.DEFAULT_DNS,
        private_key=args.private_key,
        pre_up=args.pre_up,
        post_up=args.post_up,
        pre_down=args.pre_down,
        post_down=args.post_down,
    )
    _controller(args).create(options)
    print("Interface created successfully")
    return 0


def cmd_apply(args):
    result = _controller(args).apply(args.name)
    print(f"[+] Rendered {result.path}")
    if result.synced:
        print(f"[+] Live interface updated ({result.diff.summary()})")
    print("Interface applied successfully")
    return 0


def cmd_start(args):
    _controller(args).start(args.name)
    print("Interface started successfully")
    return 0


def cmd_stop(args):
    _controller(args).stop(args.name)
    print("Interface stopped successfully")
    return 0


def cmd_delete(args):
    _controller(args).delete(args.name)
    print("Interface deleted successfully")
    return 0


# ---------------------------------------------------
# wgctl: peers
# ---------------------------------------------------

def cmd_add(args):
    peer = _controller(args).add_peer(
        AddPeerOptions(
            interface=args.interface,
            name=args.peer,
            private_key=args.private_key,
            allowed_ips=args.allowed_ips,
        )
    )
    print(f"[+] {peer.name}: {peer.allowed_ips}")
    print("Peer added successfully")
    return 0


def cmd_remove(args):
    _controller(args).remove_peer(PeerRef(args.interface, args.peer))
    print("Peer removed successfully")
    return 0


def cmd_enable(args):
    _controller(args).enable_peer(PeerRef(args.interface, args.peer))
    print("Peer enabled successfully")
    return 0


def cmd_disable(args):
    _controller(args).disable_peer(PeerRef(args.interface, args.peer))
    print("Peer disabled successfully")
    return 0


def cmd_export(args):
    conf = _controller(args).export_peer(PeerRef(args.interface, args.peer))

    if args.output:
        path = Path(args.output)
        try:
            atomic_write_text(path, conf)
        except OSError as e:
            raise RecordWriteError(f"{path}: {e}") from e
        print(f"[OK] Config written: {path}", file=sys.stderr)

    if args.qr:
        img = qrcode.make(conf)
        Path(args.qr).parent.mkdir(parents=True, exist_ok=True)
        img.save(args.qr)
        print(f"[OK] QR code written: {args.qr}", file=sys.stderr)

    if not args.output and not args.qr:
        print(conf, end="")
    return 0


# ---------------------------------------------------
# wgstat
# ---------------------------------------------------

def cmd_stat_show(args):
    collector = _collector(args)
    config = interface_store(args.settings.DB_PATH)
    now = int(time.time())

    if args.target == "interfaces":
        names = sorted(collector.store.list())
        if not names:
            raise NoInterfacesFound()
        print(" ".join(names))
        return 0

    if args.target == "all":
        names = sorted(collector.store.list())
        if not names:
            raise NoInterfacesFound()
    else:
        names = [args.target]

    records = [collector.load(n) for n in names]
    fmt = args.format or ("colorized" if sys.stdout.isatty() else "plain")

    if fmt == "json":
        if args.target == "all":
            peer_names = {}
            for n in names:
                peer_names.update(config_peer_names(config, n))
            print(render_json_all(records, now, peer_names))
        else:
            print(render_json(records[0], now, config_peer_names(config, names[0])))
        return 0

    console = Console(highlight=False)
    for index, record in enumerate(records):
        if index:
            print()
        peer_names = config_peer_names(config, record.name)
        if fmt == "colorized":
            print_colorized(record, now, console, peer_names)
        else:
            print(render_plain(record, now, peer_names), end="")
    return 0


def cmd_stat_update(args):
    _require_root()
    collector = _collector(args)

    if args.target != "all":
        collector.update_interface(args.target)
        print(f"Interface {args.target} updated at {_stamp()}")
        return 0

    result = collector.update_all()
    status = 0
    for name, error in result.outcomes.items():
        if error is None:
            print(f"Interface {name} updated at {_stamp()}")
        else:
            print(f"Error: {name}: {error}", file=sys.stderr)
            status = status or error.exit_code
    return status


def cmd_stat_flush(args):
    _require_root()
    _collector(args).flush(args.name)
    print(f"Interface {args.name} flushed at {_stamp()}")
    return 0


# ---------------------------------------------------
# Parsers
# ---------------------------------------------------

def _common(parser):
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--db-path", help="directory holding the interface records")


def build_wgctl_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wgctl", description="Manage WireGuard interfaces and peers")
    _common(parser)
    parser.add_argument("--config-path", help="directory of the rendered wg-quick files")
    sub = parser.add_subparsers(dest="cmd")

    # show
    p = sub.add_parser("show", help="list interfaces, or show one interface")
    p.add_argument("target", help="'interfaces' or an interface name")
    p.add_argument("--format", choices=["plain", "ini", "json"], default="ini")
    p.set_defaults(func=cmd_show)

    # create
    p = sub.add_parser("create", help="create a new interface")
    p.add_argument("name")
    p.add_argument("--address", help="interface address in CIDR form")
    p.add_argument("--listen-port")
    p.add_argument("--endpoint", help="public host peers connect to")
    p.add_argument("--dns")
    p.add_argument("--private-key")
    p.add_argument("--pre-up", default="")
    p.add_argument("--post-up", default="")
    p.add_argument("--pre-down", default="")
    p.add_argument("--post-down", default="")
    p.set_defaults(func=cmd_create)

    # apply / start / stop / delete
    for verb, func, text in (
        ("apply", cmd_apply, "render the interface and sync it when running"),
        ("start", cmd_start, "bring the interface up"),
        ("stop", cmd_stop, "bring the interface down"),
        ("delete", cmd_delete, "stop the interface and delete it"),
    ):
        p = sub.add_parser(verb, help=text)
        p.add_argument("name")
        p.set_defaults(func=func)

    # add
    p = sub.add_parser("add", help="add a peer to an interface")
    p.add_argument("interface")
    p.add_argument("peer")
    p.add_argument("--private-key")
    p.add_argument("--allowed-ips", help="defaults to the next free address of the subnet")
    p.set_defaults(func=cmd_add)

    # remove / enable / disable
    for verb, func in (("remove", cmd_remove), ("enable", cmd_enable), ("disable", cmd_disable)):
        p = sub.add_parser(verb, help=f"{verb} a peer")
        p.add_argument("interface")
        p.add_argument("peer")
        p.set_defaults(func=func)

    # export
    p = sub.add_parser("export", help="print a peer's client configuration")
    p.add_argument("interface")
    p.add_argument("peer")
    p.add_argument("--output", help="write the configuration to a file")
    p.add_argument("--qr", help="write the configuration as a PNG QR code")
    p.set_defaults(func=cmd_export)

    return parser


def build_wgstat_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wgstat", description="Accumulated WireGuard traffic statistics")
    _common(parser)
    parser.add_argument("--stats-path", help="directory holding the statistics records")
    sub = parser.add_subparsers(dest="cmd")

    p = sub.add_parser("show", help="show statistics")
    p.add_argument("target", nargs="?", default="all", help="'interfaces', 'all' or an interface name")
    p.add_argument("--format", choices=["plain", "colorized", "json"])
    p.set_defaults(func=cmd_stat_show)

    p = sub.add_parser("update", help="fold the live counters into the statistics")
    p.add_argument("target", nargs="?", default="all")
    p.set_defaults(func=cmd_stat_update)

    p = sub.add_parser("flush", help="drop the statistics of an interface")
    p.add_argument("name")
    p.set_defaults(func=cmd_stat_flush)

    return parser


def _run(parser, argv, root_required=True) -> int:
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    args.settings = _settings(args)
    setup_logging(args.settings.LOG_LEVEL)

    try:
        if root_required:
            _require_root()
        return args.func(args)
    except WgError as e:
        print(f"Error: {e}", file=sys.stderr)
        return e.exit_code


def wgctl(argv=None) -> int:
    return _run(build_wgctl_parser(), argv)


def wgstat(argv=None) -> int:
    # show is readable without root; update and flush check for themselves
    return _run(build_wgstat_parser(), argv, root_required=False)


if __name__ == "__main__":
    sys.exit(wgctl())
