# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/snaptrail/changes/pathcodec.py

"""Decoding of escaped path tokens from `btrfs receive --dump` output.

The dump prints paths without quoting. Non-ASCII bytes come out as octal
escapes (`\\303\\251` for é), other special characters are backslash-escaped
(`save\\ ff8`), and a path ends where the next `key=value` attribute or the
` -> ` rename arrow begins.
"""

from __future__ import annotations

import re
from typing import Final

ATTRIBUTE_KEYS: Final = (
    "offset", "len", "atime", "mtime", "ctime", "mode", "uid", "gid",
    "dest", "uuid", "transid", "parent_uuid", "parent_transid", "name",
)
RENAME_ARROW: Final = " -> "

_OCTAL_RE = re.compile(r"[0-7]{1,3}")
_ATTRIBUTE_RE = re.compile(r"(?:%s)=" % "|".join(ATTRIBUTE_KEYS))
_ORPHAN_RE = re.compile(r"^o\d+-\d+-\d+(/|$)")


def decode(token: str) -> str:
    """Decode one escaped path token into text."""
    buf = bytearray()
    i = 0
    n = len(token)
    while i < n:
        ch = token[i]
        if ch == "\\" and i + 1 < n:
            octal = _OCTAL_RE.match(token, i + 1)
            if octal:
                # \NNN can exceed 0o377; keep the low byte
                buf.append(int(octal.group(), 8) & 0xFF)
                i = octal.end()
            else:
                buf.extend(token[i + 1].encode("utf-8"))
                i += 2
        elif ch == " ":
            if token.startswith(RENAME_ARROW, i) or _ATTRIBUTE_RE.match(token, i + 1):
                break
            buf.append(0x20)
            i += 1
        else:
            buf.extend(ch.encode("utf-8"))
            i += 1
    return buf.decode("utf-8", errors="replace")


def strip_root_prefix(path: str) -> str:
    """Drop the leading `./` and the synthetic snapshot directory."""
    if path.startswith("./"):
        path = path[2:]
    _, sep, rest = path.partition("/")
    return rest if sep else path


def is_orphan(path: str) -> bool:
    """True for btrfs orphan placeholders such as `o257-12-0` or `o257-12-0/sub`."""
    return bool(_ORPHAN_RE.match(path))


def orphan_root(path: str) -> str:
    """First component of an orphan path (`o257-12-0/sub` -> `o257-12-0`)."""
    return path.split("/", 1)[0]
