from __future__ import annotations
from dataclasses import dataclass

@dataclass(frozen=True)
class Holder:
    pid: str
    inode: str = ""
    port: int = 0
    ports: str = ""     # comma-joined, filled by gather()
    cmd: bytes = b""    # cmdline with NULs turned into spaces
    cmd_color: int = 0  # 0 = no alias color

    def port_list(self) -> str:
        return self.ports or str(self.port)
