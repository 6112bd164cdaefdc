from __future__ import annotations
import re
from dataclasses import dataclass, field
from typing import List, Optional

from .rules import Alias, load_aliases

PROC_ROOT = "/proc"
LISTEN_STATE = "0A"     # TCP_LISTEN in /proc/net/tcp "st" column
GREP_BUFFER = 12        # capacity of the pipe behind the grep stage

SORT_PID, SORT_PORT, SORT_CMD = 0, 1, 2
SORT_KEYS = {SORT_PID: "pid", SORT_PORT: "port", SORT_CMD: "command"}

# 256-color palette indexes used by the formatted table
PID_COLOR = 15
PORT_COLOR = 58

@dataclass
class CFG:
    proc_root: str = PROC_ROOT
    show_commands: bool = False
    bare: bool = False
    sort: Optional[int] = None
    use_aliases: bool = False
    aliases: List[Alias] = field(default_factory=list)
    grep: Optional[re.Pattern] = None
    table: bool = False
    color: Optional[bool] = None  # None: decided by the terminal

    @property
    def load_commands(self) -> bool:
        return self.show_commands or self.use_aliases or self.grep is not None

def init_cfg_from_args(args) -> CFG:
    cfg = CFG()
    cfg.proc_root = getattr(args, "proc", None) or PROC_ROOT
    cfg.show_commands = bool(args.command)
    cfg.bare = bool(args.bare)
    cfg.sort = args.sort
    cfg.table = bool(args.table)
    cfg.color = False if getattr(args, "no_color", False) else None
    cfg.grep = args.grep
    aliases_file = getattr(args, "aliases_file", None)
    if args.aliases or aliases_file:
        cfg.use_aliases = True
        cfg.aliases = load_aliases(aliases_file)
    return cfg
