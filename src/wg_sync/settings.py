# src/wg_sync/settings.py
"""
Paths and defaults for wgctl and wgstat.

Values come from the environment when set, and command line flags override
them.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .models import DEFAULT_DNS


@dataclass
class Settings:
    # Record of every interface and its peers
    DB_PATH: Path = Path("/var/lib/wgctl")
    # Rendered files read by wg-quick
    CONFIG_PATH: Path = Path("/etc/wireguard")
    # Accumulated traffic statistics
    STATS_PATH: Path = Path("/var/lib/wgstat")

    DEFAULT_DNS: str = DEFAULT_DNS
    LOG_LEVEL: str = "WARNING"
    UPDATE_WORKERS: int = 8

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        env = os.environ if environ is None else environ
        s = cls()
        if env.get("WGCTL_DB_PATH"):
            s.DB_PATH = Path(env["WGCTL_DB_PATH"])
        if env.get("WGCTL_CONFIG_PATH"):
            s.CONFIG_PATH = Path(env["WGCTL_CONFIG_PATH"])
        if env.get("WGSTAT_DB_PATH"):
            s.STATS_PATH = Path(env["WGSTAT_DB_PATH"])
        if env.get("WGCTL_LOG_LEVEL"):
            s.LOG_LEVEL = env["WGCTL_LOG_LEVEL"]
        if env.get("WGSTAT_WORKERS", "").isdigit():
            s.UPDATE_WORKERS = max(1, int(env["WGSTAT_WORKERS"]))
        return s
