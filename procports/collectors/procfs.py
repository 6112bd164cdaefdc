import logging
import os
import re
from typing import Dict, Optional

from ..config import LISTEN_STATE, PROC_ROOT
from ..errors import ErrorReporter
from ..models import Holder
from ..pipeline.channel import Pipe, stage

log = logging.getLogger(__name__)

SOCKET_RE = re.compile(r"socket:\[(?P<inode>\d+)\]")

ListenMap = Dict[str, str]

def read_tcp_table(path: str, ret: ListenMap) -> ListenMap:
    """
    Add the listening sockets of one /proc/net/tcp{,6} table to ret.

    Row layout (whitespace separated):
      sl  local_address  rem_address  st  tx:rx  tr:when  retrnsmt  uid  timeout  inode ...
    ret maps inode -> hex port. Inodes already in ret are kept, so the
    first table read wins. OSError from reading the file propagates.
    """
    with open(path, "r", encoding="ascii", errors="replace") as f:
        content = f.read()

    # first line is the header, last is what follows the final newline
    lines = content.split("\n")[1:-1]
    for line in lines:
        words = line.split()
        if len(words) < 10:
            continue
        if words[3] != LISTEN_STATE:
            continue
        inode = words[9]
        if inode in ret:
            continue
        addr = words[1].split(":")
        if len(addr) > 1:
            ret[inode] = addr[-1]
    return ret

def build_listen_map(proc_root: str = PROC_ROOT) -> ListenMap:
    ret: ListenMap = {}
    for name in ("tcp", "tcp6"):
        read_tcp_table(os.path.join(proc_root, "net", name), ret)
    log.debug("%d listening sockets in %s/net", len(ret), proc_root)
    return ret

def socket_inode(link: str) -> Optional[str]:
    m = SOCKET_RE.fullmatch(link)
    return m.group("inode") if m else None

def find_pids(proc_root: str, reporter: ErrorReporter) -> "Pipe[str]":
    """
    Stream the numeric entries of proc_root. The directory is opened
    before returning, so an unreadable root raises here rather than in
    the worker.
    """
    it = os.scandir(proc_root)

    def body(out: Pipe) -> None:
        with it:
            try:
                for entry in it:
                    if entry.name.isdigit() and entry.name.isascii():
                        out.put(entry.name)
            except OSError as e:
                reporter.handle(e)

    return stage("find_pids", Pipe(), body)

def read_fd_sockets(proc_root: str, pid: str, reporter: ErrorReporter) -> list[str]:
    fd_dir = os.path.join(proc_root, pid, "fd")
    inodes: list[str] = []
    try:
        with os.scandir(fd_dir) as it:
            for entry in it:
                try:
                    link = os.readlink(entry.path)
                except OSError:
                    # fd closed since the listing
                    continue
                inode = socket_inode(link)
                if inode:
                    inodes.append(inode)
    except OSError as e:
        reporter.handle(e)
        return []
    return inodes

def get_sockets(proc_root: str, pids: "Pipe[str]", reporter: ErrorReporter) -> "Pipe[Holder]":
    def body(out: Pipe) -> None:
        for pid in pids:
            for inode in read_fd_sockets(proc_root, pid, reporter):
                out.put(Holder(pid=pid, inode=inode))

    return stage("get_sockets", Pipe(), body)

def read_cmdline(proc_root: str, pid: str) -> bytes:
    with open(os.path.join(proc_root, pid, "cmdline"), "rb") as f:
        return f.read().replace(b"\0", b" ")
