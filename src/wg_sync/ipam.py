# src/wg_sync/ipam.py
from __future__ import annotations

import ipaddress
import re
from typing import Iterable, Set

from .errors import InvalidAddress, InvalidPrefix, NoAvailableAddress
from .models import InterfaceRecord

_CIDR_RE = re.compile(r"^\d+\.\d+\.\d+\.\d+/\d+$")


def parse_interface_address(address: str) -> ipaddress.IPv4Interface:
    """
    Parse 'a.b.c.d/p'. The prefix is mandatory: it defines the subnet peers
    are allocated from.
    """
    text = address.strip()
    if not _CIDR_RE.match(text):
        raise InvalidAddress(repr(address))
    ip_part, prefix = text.split("/")
    if int(prefix) > 32:
        raise InvalidPrefix(repr(address))
    try:
        return ipaddress.IPv4Interface(f"{ip_part}/{int(prefix)}")
    except ValueError as e:
        raise InvalidAddress(repr(address)) from e


def _ipv4(entry: str):
    try:
        return ipaddress.IPv4Address(entry.split("/")[0].strip())
    except ValueError:
        return None


def used_addresses(record: InterfaceRecord) -> Set[ipaddress.IPv4Address]:
    used = {parse_interface_address(record.interface.address).ip}

    for p in record.peers.values():
        for entry in p.allowed_ips_list():
            ip = _ipv4(entry)
            if ip is not None:
                used.add(ip)

    return used


def allocate_address(interface_address: str, used: Iterable) -> str:
    """
    Return the numerically smallest free host address of the interface's
    subnet as 'a.b.c.d/32'. Network and broadcast addresses are never handed
    out, so /31 and /32 subnets have nothing to allocate.
    """
    net = parse_interface_address(interface_address).network
    taken = {int(ipaddress.IPv4Address(u)) for u in used}

    first = int(net.network_address) + 1
    last = int(net.broadcast_address) - 1
    for value in range(first, last + 1):
        if value not in taken:
            return f"{ipaddress.IPv4Address(value)}/32"

    raise NoAvailableAddress(str(net))


def allocate_ip(record: InterfaceRecord) -> str:
    return allocate_address(record.interface.address, used_addresses(record))
