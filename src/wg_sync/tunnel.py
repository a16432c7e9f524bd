# src/wg_sync/tunnel.py
"""
Thin wrapper around wg(8) and wg-quick(8).

Each method runs one command; failures are logged with the tool's stderr
and raised as the matching ``TunnelError``. Nothing here retries.
"""
from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Type

from .dump import InterfaceDump, parse_dump
from .errors import (
    InterfaceNotRunning,
    KeyGenerationFailed,
    MissingTool,
    StartFailed,
    StopFailed,
    SyncFailed,
    TunnelError,
)

logger = logging.getLogger(__name__)


class WireGuard:
    def __init__(self, wg: str = "wg", wg_quick: str = "wg-quick"):
        self.wg = wg
        self.wg_quick = wg_quick

    def _run(
        self,
        cmd: List[str],
        error: Type[TunnelError],
        input: Optional[str] = None,
    ) -> str:
        logger.debug("Running %s", " ".join(cmd))
        try:
            proc = subprocess.run(
                cmd, input=input, capture_output=True, text=True, check=True
            )
        except FileNotFoundError as e:
            raise MissingTool(cmd[0]) from e
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            logger.error("%s failed (%s): %s", " ".join(cmd[:3]), e.returncode, stderr)
            raise error(stderr or f"exit status {e.returncode}") from e
        return (proc.stdout or "").strip()

    # ---------- keys ----------

    def genkey(self) -> str:
        return self._run([self.wg, "genkey"], KeyGenerationFailed)

    def pubkey(self, private_key: str) -> str:
        # pubkey reads the private key on stdin
        pub = self._run([self.wg, "pubkey"], KeyGenerationFailed, input=private_key + "\n")
        if not pub:
            raise KeyGenerationFailed("empty public key")
        return pub

    def generate_keypair(self, private_key: Optional[str] = None) -> tuple[str, str]:
        """
        Return (private_key, public_key); a new private key is generated when
        none is given.
        """
        priv = private_key or self.genkey()
        return priv, self.pubkey(priv)

    # ---------- live state ----------

    def show_interfaces(self) -> List[str]:
        out = self._run([self.wg, "show", "interfaces"], TunnelError)
        return out.split()

    def is_up(self, name: str) -> bool:
        return name in self.show_interfaces()

    def dump(self, name: str) -> InterfaceDump:
        return parse_dump(self._run([self.wg, "show", name, "dump"], InterfaceNotRunning))

    def syncconf(self, name: str, stripped_conf: str) -> None:
        self._run([self.wg, "syncconf", name, "/dev/stdin"], SyncFailed, input=stripped_conf)

    # ---------- wg-quick ----------

    def up(self, conf_path: Path) -> None:
        self._run([self.wg_quick, "up", str(conf_path)], StartFailed)

    def down(self, conf_path: Path) -> None:
        self._run([self.wg_quick, "down", str(conf_path)], StopFailed)
