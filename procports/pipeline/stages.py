"""
Stages between socket discovery and rendering.

Each function takes the upstream Pipe, starts a worker thread and returns
the downstream Pipe right away. Holders are frozen; stages hand on new
copies made with dataclasses.replace.
"""
from __future__ import annotations
import re
from dataclasses import replace
from typing import Dict, Iterable, List

from ..collectors.procfs import ListenMap, read_cmdline
from ..config import GREP_BUFFER, SORT_CMD, SORT_KEYS, SORT_PID, SORT_PORT
from ..errors import ErrorReporter
from ..models import Holder
from ..rules import Alias, apply_aliases
from .channel import Pipe, stage


def parse_port(hex_port: str) -> int:
    try:
        return int(hex_port, 16)
    except ValueError:
        return 0


def map_ports(listen_map: ListenMap, inp: Pipe[Holder]) -> Pipe[Holder]:
    """Drop holders whose inode is not a listening socket, set port on the rest."""
    def body(out: Pipe) -> None:
        for h in inp:
            p = listen_map.get(h.inode)
            if p is None:
                continue
            out.put(replace(h, port=parse_port(p)))
    return stage("map_ports", Pipe(), body)


def map_commands(proc_root: str, inp: Pipe[Holder], reporter: ErrorReporter) -> Pipe[Holder]:
    def body(out: Pipe) -> None:
        for h in inp:
            try:
                cmd = read_cmdline(proc_root, h.pid)
            except OSError as e:
                reporter.handle(e)
                cmd = b""
            out.put(replace(h, cmd=cmd))
    return stage("map_commands", Pipe(), body)


def grep(pattern: re.Pattern, inp: Pipe[Holder]) -> Pipe[Holder]:
    def body(out: Pipe) -> None:
        for h in inp:
            if pattern.search(h.cmd):
                out.put(h)
    return stage("grep", Pipe(GREP_BUFFER), body)


def map_aliases(aliases: Iterable[Alias], inp: Pipe[Holder]) -> Pipe[Holder]:
    aliases = list(aliases)

    def body(out: Pipe) -> None:
        for h in inp:
            cmd, color = apply_aliases(aliases, h.cmd, h.cmd_color)
            out.put(replace(h, cmd=cmd, cmd_color=color))
    return stage("map_aliases", Pipe(), body)


def merge_port(group: Holder, h: Holder) -> Holder:
    # keeps the lowest port first so a port sort still works after grouping
    if h.port > group.port:
        return replace(group, ports=f"{group.ports},{h.port}")
    return replace(group, port=h.port, ports=f"{h.port},{group.ports}")


def gather(inp: Pipe[Holder]) -> Pipe[Holder]:
    """One holder per pid with all of its ports; waits for the whole input."""
    def body(out: Pipe) -> None:
        groups: Dict[str, Holder] = {}
        for h in inp:
            g = groups.get(h.pid)
            groups[h.pid] = merge_port(g, h) if g else replace(h, ports=str(h.port))
        for g in groups.values():
            out.put(g)
    return stage("gather", Pipe(), body)


def _pid_key(h: Holder) -> int:
    return int(h.pid)


def _port_key(h: Holder) -> int:
    return h.port


def _cmd_key(h: Holder) -> bytes:
    return h.cmd


SORTERS = {SORT_PID: _pid_key, SORT_PORT: _port_key, SORT_CMD: _cmd_key}


def sort_records(inp: Pipe[Holder], index: int) -> Pipe[Holder]:
    """
    Ascending order by pid, port or command (see SORT_KEYS). Waits for the
    whole input. sorted() is stable, so holders with equal keys keep their
    arrival order and none are lost.
    """
    if index not in SORTERS:
        raise ValueError(f"sort index must be one of {sorted(SORT_KEYS)}, got {index!r}")
    key = SORTERS[index]

    def body(out: Pipe) -> None:
        rows: List[Holder] = list(inp)
        for h in sorted(rows, key=key):
            out.put(h)
    return stage(f"sort_{SORT_KEYS[index]}", Pipe(), body)
