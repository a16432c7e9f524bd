# src/wg_sync/errors.py
"""
Error taxonomy shared by wgctl and wgstat.

Every error carries a stable ``exit_code`` and a one-line message. Library
code raises these; only the command line layer turns them into an exit
status.
"""
from __future__ import annotations


class WgError(Exception):
    kind = "error"
    exit_code = 1
    message = "Unknown error"

    def __init__(self, detail: str | None = None):
        self.detail = detail
        super().__init__(detail or self.message)

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message


# ---------- validation ----------

class ValidationError(WgError):
    kind = "validation"


class InvalidInterfaceName(ValidationError):
    exit_code = 10
    message = "Invalid interface name"


class UnknownParameter(ValidationError):
    exit_code = 11
    message = "Unknown parameter"


class MissingParameter(ValidationError):
    exit_code = 13
    message = "Missing required parameters"


class InvalidAddress(ValidationError):
    exit_code = 14
    message = "Invalid IP format"


class InvalidPrefix(ValidationError):
    exit_code = 15
    message = "Invalid prefix"


class InvalidPort(ValidationError):
    exit_code = 19
    message = "Invalid port"


class InvalidPeerName(ValidationError):
    exit_code = 27
    message = "Invalid peer name"


# ---------- not found ----------

class NotFoundError(WgError):
    kind = "not-found"


class InterfaceNotFound(NotFoundError):
    exit_code = 8
    message = "Interface not found"


class PeerNotFound(NotFoundError):
    exit_code = 26
    message = "Peer not found"


class StatsNotFound(NotFoundError):
    exit_code = 30
    message = "No statistics recorded for interface"


class NoInterfacesFound(NotFoundError):
    exit_code = 31
    message = "No interfaces found"


# ---------- conflict ----------

class ConflictError(WgError):
    kind = "conflict"


class InterfaceExists(ConflictError):
    exit_code = 12
    message = "Interface already exists"


class PeerExists(ConflictError):
    exit_code = 25
    message = "Peer already exists"


class AddressConflict(ConflictError):
    exit_code = 29
    message = "Address already assigned to another peer"


# ---------- exhaustion ----------

class NoAvailableAddress(WgError):
    kind = "exhaustion"
    exit_code = 20
    message = "No available IP found"


# ---------- I/O ----------

class StoreIOError(WgError):
    kind = "io"


class RecordWriteError(StoreIOError):
    exit_code = 16
    message = "Failed to save configuration"


class RecordReadError(StoreIOError):
    exit_code = 17
    message = "Failed to load configuration"


# ---------- parse / consistency ----------

class CorruptRecord(WgError):
    kind = "consistency"
    exit_code = 28
    message = "Malformed stored record"


# ---------- external tool ----------

class TunnelError(WgError):
    kind = "external-tool"


class MissingTool(TunnelError):
    exit_code = 9
    message = "Missing required tool"


class KeyGenerationFailed(TunnelError):
    exit_code = 18
    message = "Failed to generate key"


class SyncFailed(TunnelError):
    exit_code = 21
    message = "Failed to sync configuration"


class StartFailed(TunnelError):
    exit_code = 22
    message = "Failed to start interface"


class StopFailed(TunnelError):
    exit_code = 23
    message = "Failed to stop interface"


class DeleteFailed(TunnelError):
    exit_code = 24
    message = "Failed to delete interface"


class InterfaceNotRunning(TunnelError):
    exit_code = 32
    message = "Interface is not running"


# ---------- environment ----------

class RootRequired(WgError):
    kind = "environment"
    exit_code = 7
    message = "Root privileges required"
