from __future__ import annotations
from typing import Iterable, Optional, TextIO

from rich.console import Console
from rich.measure import Measurement
from rich.table import Table
from rich.text import Text

from ..config import PID_COLOR, PORT_COLOR
from ..models import Holder

# upper bound for a piped table line
MAX_PIPE_WIDTH = 1 << 16


def _cmd_text(h: Holder) -> str:
    return h.cmd.decode("utf-8", errors="replace")


def emit_bare(inp: Iterable[Holder], out: TextIO) -> None:
    """
    pid, ports and command separated by tabs, one line per holder.
    Command lines go out as raw bytes when out has a binary buffer.
    """
    raw = getattr(out, "buffer", None)
    if raw is None:
        for h in inp:
            cmd = h.cmd.decode("utf-8", errors="surrogateescape")
            out.write(f"{h.pid}\t{h.port_list()}\t\t{cmd}\n")
        return
    out.flush()
    for h in inp:
        raw.write(b"%s\t%s\t\t%s\n" % (h.pid.encode(), h.port_list().encode(), h.cmd))
    raw.flush()


def build_table(inp: Iterable[Holder]) -> Table:
    table = Table(box=None, show_edge=False, pad_edge=False, padding=(0, 2),
                  header_style="underline")
    table.add_column("pid", no_wrap=True)
    table.add_column("port", no_wrap=True)
    table.add_column("", no_wrap=True, overflow="ellipsis")
    for h in inp:
        cmd_style = f"color({h.cmd_color})" if h.cmd_color > 0 else ""
        table.add_row(
            Text(h.pid, style=f"color({PID_COLOR})"),
            Text(h.port_list(), style=f"color({PORT_COLOR})"),
            # Text() keeps brackets in command lines from being read as markup
            Text(_cmd_text(h), style=cmd_style),
        )
    return table


def emit_formatted(inp: Iterable[Holder], out: TextIO, color: Optional[bool] = None) -> None:
    """
    Aligned table with an underlined header, one line per holder.

    With color=None rich looks at the output stream to decide on ANSI
    codes; False turns colors off. On a terminal long command lines are
    cut at the screen edge. Piped output is as wide as the widest row and
    carries no trailing padding.
    """
    console = Console(file=out, highlight=False, color_system="256" if color else "auto",
                      no_color=color is False,
                      force_terminal=True if color else None)
    table = build_table(inp)
    if console.is_terminal:
        console.print(table)
        return

    console.width = max(1, Measurement.get(console, console.options.update_width(MAX_PIPE_WIDTH), table).maximum)
    with console.capture() as capture:
        console.print(table)
    for line in capture.get().splitlines():
        out.write(line.rstrip() + "\n")
