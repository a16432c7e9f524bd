# src/wg_sync/options.py
"""
Typed, validated arguments for the operations that take more than a name.

Validation happens once, here, before any record is touched.
"""
from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Optional

from .errors import InvalidAddress, MissingParameter
from .ipam import parse_interface_address
from .models import DEFAULT_DNS, check_interface_name, check_peer_name
from .state import parse_port


@dataclass
class CreateInterfaceOptions:
    name: str
    address: str
    listen_port: int
    endpoint: str
    dns: str = DEFAULT_DNS
    private_key: Optional[str] = None
    pre_up: str = ""
    post_up: str = ""
    pre_down: str = ""
    post_down: str = ""

    def validate(self) -> "CreateInterfaceOptions":
        check_interface_name(self.name)
        missing = [
            flag
            for flag, value in (
                ("address", self.address),
                ("listen-port", self.listen_port),
                ("endpoint", self.endpoint),
            )
            if value in (None, "")
        ]
        if missing:
            raise MissingParameter(", ".join(missing))
        parse_interface_address(self.address)
        self.listen_port = parse_port(self.listen_port)
        return self


@dataclass
class AddPeerOptions:
    interface: str
    name: str
    private_key: Optional[str] = None
    allowed_ips: Optional[str] = None   # allocated from the interface subnet when unset

    def validate(self) -> "AddPeerOptions":
        check_interface_name(self.interface)
        check_peer_name(self.name)
        if self.allowed_ips is not None:
            entries = [e.strip() for e in self.allowed_ips.split(",") if e.strip()]
            if not entries:
                raise InvalidAddress(repr(self.allowed_ips))
            for entry in entries:
                try:
                    ipaddress.ip_network(entry, strict=False)
                except ValueError as e:
                    raise InvalidAddress(repr(entry)) from e
            self.allowed_ips = ", ".join(entries)
        return self


@dataclass
class PeerRef:
    interface: str
    name: str

    def validate(self) -> "PeerRef":
        check_interface_name(self.interface)
        check_peer_name(self.name)
        return self
