from __future__ import annotations
import logging

from ..collectors.procfs import build_listen_map, find_pids, get_sockets
from ..config import CFG
from ..errors import ErrorReporter
from ..models import Holder
from .channel import Pipe
from .stages import gather, grep, map_aliases, map_commands, map_ports, sort_records

log = logging.getLogger(__name__)

def build_pipeline(cfg: CFG, reporter: ErrorReporter) -> Pipe[Holder]:
    """
    Wire up the stages for cfg and return the final pipe.

    The listening socket table is read and the process root opened before
    any worker starts; OSError from either is fatal and propagates.
    """
    listen_map = build_listen_map(cfg.proc_root)
    pipe = map_ports(listen_map, get_sockets(cfg.proc_root, find_pids(cfg.proc_root, reporter), reporter))

    if cfg.load_commands:
        pipe = map_commands(cfg.proc_root, pipe, reporter)
    if cfg.grep is not None:
        pipe = grep(cfg.grep, pipe)
    if cfg.use_aliases:
        pipe = map_aliases(cfg.aliases, pipe)
    if not cfg.table:
        pipe = gather(pipe)
    if cfg.sort is not None:
        pipe = sort_records(pipe, cfg.sort)

    log.debug("pipeline: commands=%s grep=%s aliases=%d grouped=%s sort=%s",
              cfg.load_commands, cfg.grep is not None, len(cfg.aliases), not cfg.table, cfg.sort)
    return pipe
