from __future__ import annotations
import argparse, logging, re, sys
from typing import Optional, Sequence

from .config import PROC_ROOT, SORT_PORT, init_cfg_from_args
from .errors import ErrorReporter
from .pipeline.build import build_pipeline
from .render import emit_bare, emit_formatted
from .rules import RuleError

log = logging.getLogger("procports")

def grep_pattern(s: str):
    """--grep value as a bytes pattern, the form command lines are matched in."""
    if not s:
        return None
    try:
        return re.compile(s.encode())
    except re.error as e:
        raise argparse.ArgumentTypeError(str(e)) from e

def parse_args(argv: Optional[Sequence[str]] = None):
    ap = argparse.ArgumentParser(prog="procports", description='which process listens on which TCP port')
    ap.add_argument('-c', '--command', action='store_true', help='show commandlines')
    ap.add_argument('-b', '--bare', action='store_true', help='clean tab separated output')
    ap.add_argument('-s', '--sort', type=int, nargs='?', const=SORT_PORT, default=None, choices=(0, 1, 2),
                    help='sort by 0=pid, 1=port, 2=command; port if given without a value')
    ap.add_argument('-a', '--aliases', action='store_true', help='show aliases instead of full command')
    ap.add_argument('-g', '--grep', type=grep_pattern, default=None, metavar='PATTERN', help='grep for command')
    ap.add_argument('-t', '--table', action='store_true', help='output one line per port')
    ap.add_argument('--aliases-file', type=str, default=None, help='YAML or JSON alias rules, replaces the built-in ones')
    ap.add_argument('--proc', type=str, default=PROC_ROOT, help='procfs mount point')
    ap.add_argument('--no-color', action='store_true', help='formatted output without colors')
    ap.add_argument('-v', '--verbose', action='store_true', help='debug logging on stderr')
    return ap.parse_args(argv)

def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="[%(levelname)s] %(message)s",
        stream=sys.stderr,
    )

def main(argv: Optional[Sequence[str]] = None, out=None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)
    out = out or sys.stdout

    try:
        cfg = init_cfg_from_args(args)
    except RuleError as e:
        log.error("%s", e)
        return 1

    reporter = ErrorReporter()
    try:
        pipe = build_pipeline(cfg, reporter)
    except OSError as e:
        log.error("%s", e)
        return 1

    if cfg.bare:
        emit_bare(pipe, out)
    else:
        emit_formatted(pipe, out, color=cfg.color)
    out.flush()
    log.debug("done: %d per-process errors, permission denied seen: %s", reporter.errors, reporter.warned)
    return 0

if __name__ == '__main__':
    sys.exit(main())
