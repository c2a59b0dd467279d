# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/snaptrail/changes/parser.py

"""Line-level parsing of `btrfs receive --dump` output."""

from __future__ import annotations

import re
from typing import NamedTuple

from . import pathcodec
from .models import ChangeKind

_LINE_RE = re.compile(r"^(\w+)\s+(.+)$")
_DEST_RE = re.compile(r"^(.+?)\s+dest=(.+)$")
_LEN_RE = re.compile(r"\blen=(\d+)")


class DumpLine(NamedTuple):
    """A recognised dump line with decoded, still-prefixed paths."""
    kind: ChangeKind
    path: str  # rename: source path
    dest: str | None = None  # rename only
    size: int | None = None  # write only


def split_line(line: str) -> tuple[str, str] | None:
    """Split a line into (lower-cased keyword, remainder)."""
    match = _LINE_RE.match(line.strip())
    if not match:
        return None
    return match.group(1).lower(), match.group(2)


def parse_line(line: str) -> DumpLine | None:
    """Parse one dump line.

    Returns None for blank lines, malformed lines and every keyword outside
    the ChangeKind vocabulary (utimes, chmod, chown, set_xattr, snapshot, ...).
    """
    parts = split_line(line)
    if parts is None:
        return None
    keyword, rest = parts
    kind = ChangeKind.from_keyword(keyword)
    if kind is None:
        return None

    if kind is ChangeKind.RENAME:
        return _parse_rename(rest)

    size = None
    if kind is ChangeKind.WRITE:
        len_match = _LEN_RE.search(rest)
        if len_match:
            size = int(len_match.group(1))
    return DumpLine(kind=kind, path=pathcodec.decode(rest), size=size)


def _parse_rename(rest: str) -> DumpLine | None:
    match = _DEST_RE.match(rest)
    if match:
        source, dest = match.group(1), match.group(2)
    elif pathcodec.RENAME_ARROW in rest:
        source, dest = rest.split(pathcodec.RENAME_ARROW, 1)
    else:
        return None
    return DumpLine(
        kind=ChangeKind.RENAME,
        path=pathcodec.decode(source),
        dest=pathcodec.decode(dest),
    )
