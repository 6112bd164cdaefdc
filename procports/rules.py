from __future__ import annotations
import json
import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

import yaml

from .utils.path import to_abs_path

# (match, display, color); "@N" in display is replaced by capture group N
DEFAULT_ALIASES = [
    ("java.*webstorm", "webstorm", 51),
    (r"^/usr/bin/([\w_\-\.]+)\s.*", "@1", 48),
    (r"^/usr/sbin/([\w_\-\.]+)\s.*", "@1", 46),
]

GROUP_REF = re.compile(rb"@(\d+)")


class RuleError(ValueError):
    pass


@dataclass(frozen=True)
class Alias:
    display: bytes
    pattern: re.Pattern
    color: int = 0


def make_alias(match: str, display: str, color: int = 0) -> Alias:
    try:
        pattern = re.compile(match.encode())
    except re.error as e:
        raise RuleError(f"bad alias pattern {match!r}: {e}") from e
    return Alias(display=display.encode(), pattern=pattern, color=int(color))


def default_aliases() -> list[Alias]:
    return [make_alias(*a) for a in DEFAULT_ALIASES]


def expand(display: bytes, m: re.Match) -> bytes:
    """Fill "@N" references in display with the groups of m.

    @0 is the whole match, groups that did not take part become empty and
    references past the last group are left alone.
    """
    groups = (m.group(0),) + m.groups()

    def sub(ref: re.Match) -> bytes:
        i = int(ref.group(1))
        if i >= len(groups):
            return ref.group(0)
        return groups[i] or b""

    return GROUP_REF.sub(sub, display)


def apply_aliases(aliases: Iterable[Alias], cmd: bytes, color: int = 0) -> tuple[bytes, int]:
    # every rule is tried, so the last match decides
    for a in aliases:
        m = a.pattern.search(cmd)
        if m:
            cmd = expand(a.display, m)
            color = a.color
    return cmd, color


def _alias_from_entry(entry: Any) -> Alias:
    if not isinstance(entry, dict):
        raise RuleError(f"alias entry must be a mapping, got {entry!r}")
    try:
        match, display = entry["match"], entry["display"]
    except KeyError as e:
        raise RuleError(f"alias entry {entry!r} is missing {e}") from e
    try:
        color = int(entry.get("color") or 0)
    except (TypeError, ValueError) as e:
        raise RuleError(f"bad color in alias entry {entry!r}") from e
    return make_alias(str(match), str(display), color)


def load_aliases(path: Optional[str]) -> List[Alias]:
    if not path:
        return default_aliases()
    p = to_abs_path(path)
    if not p or not p.exists():
        raise RuleError(f"aliases file not found: {path}")
    txt = p.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(txt) if p.suffix in (".yaml", ".yml") else json.loads(txt)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise RuleError(f"cannot parse {p}: {e}") from e
    if data is None:
        return []
    if not isinstance(data, list):
        raise RuleError(f"{p}: expected a list of aliases")
    return [_alias_from_entry(r) for r in data]
