"""
Fixtures that fabricate a small procfs tree under tmp_path.

Layout written by make_proc():
    <root>/net/tcp, <root>/net/tcp6
    <root>/<pid>/cmdline
    <root>/<pid>/fd/<n> -> "socket:[<inode>]" (dangling symlinks, like the real thing)
"""
import os
from pathlib import Path

import pytest

from procports.errors import ErrorReporter
from procports.pipeline import Pipe, stage

TCP_HEADER = ("  sl  local_address rem_address   st tx_queue rx_queue tr tm->when "
              "retrnsmt   uid  timeout inode\n")


def tcp_row(sl, local, remote, state, inode, uid=0):
    return (f"  {sl:>2}: {local} {remote} {state} 00000000:00000000 00:00000000 "
            f"00000000 {uid:>5}        0 {inode} 1 0000000000000000 100 0 0 10 0\n")


TCP = TCP_HEADER + "".join([
    tcp_row(0, "00000000:18EB", "00000000:0000", "0A", 21620, uid=999),   # 6379
    tcp_row(1, "0100007F:0CEA", "00000000:0000", "0A", 17051, uid=122),   # 3306
    tcp_row(2, "00000000:0016", "00000000:0000", "0A", 14000),            # 22
    tcp_row(3, "0100007F:0019", "00000000:0000", "0A", 15123),            # 25
    tcp_row(4, "0100007F:A1B2", "0100007F:18EB", "01", 30001, uid=1000),  # established
    "   5: garbage\n",
])

TCP6 = TCP_HEADER + "".join([
    # same inode as the IPv4 redis row, the IPv4 entry has to win
    tcp_row(0, "00000000000000000000000000000000:1F90", "00000000000000000000000000000000:0000", "0A", 21620),
    tcp_row(1, "00000000000000000000000000000000:0050", "00000000000000000000000000000000:0000", "0A", 22000),
    tcp_row(2, "00000000000000000000000001000000:01BB", "00000000000000000000000001000000:C350", "06", 0),
])

# pid -> (cmdline parts, {fd: link target})
PROCS = {
    "1446": (["/usr/bin/redis-server", "*:6379"], {"0": "/dev/null", "3": "socket:[21620]", "4": "socket:[30001]"}),
    "2001": (["/usr/sbin/mysqld", "--port=3306"], {"5": "socket:[17051]", "6": "socket:[22000]", "7": "pipe:[9911]"}),
    "3100": (["/usr/sbin/sshd", "-D"], {"3": "socket:[14000]"}),
    "4242": (["bash"], {"0": "/dev/pts/0", "1": "socket:[30001]"}),
}


def make_proc(root: Path, procs=None, tcp=TCP, tcp6=TCP6) -> Path:
    (root / "net").mkdir(parents=True)
    if tcp is not None:
        (root / "net" / "tcp").write_text(tcp)
    if tcp6 is not None:
        (root / "net" / "tcp6").write_text(tcp6)
    for pid, (argv, fds) in (PROCS if procs is None else procs).items():
        fd_dir = root / pid / "fd"
        fd_dir.mkdir(parents=True)
        (root / pid / "cmdline").write_bytes(b"\0".join(a.encode() for a in argv) + b"\0")
        for fd, target in fds.items():
            os.symlink(target, fd_dir / fd)
    # non-process entries that live in /proc as well
    (root / "self").mkdir()
    (root / "sys").mkdir()
    (root / "version").write_text("Linux version 6.1.0\n")
    return root


@pytest.fixture
def proc_root(tmp_path) -> str:
    return str(make_proc(tmp_path / "proc"))


@pytest.fixture
def reporter() -> ErrorReporter:
    return ErrorReporter()


def from_iterable(items, maxsize: int = 0) -> Pipe:
    """A closed pipe holding items, standing in for an upstream stage."""
    def body(out: Pipe) -> None:
        for i in items:
            out.put(i)
    return stage("source", Pipe(maxsize), body)
