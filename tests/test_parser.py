# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# snaptrail/tests/test_parser.py

import pytest

from snaptrail.changes.models import ChangeKind
from snaptrail.changes.parser import DumpLine, parse_line, split_line


class TestParseLine:
    """Dump lines become structured operations; noise is dropped."""

    def test_write_with_length(self):
        line = parse_line("write        ./snap/dir/file.txt offset=0 len=4096")
        assert line.kind is ChangeKind.WRITE
        assert line.path == "./snap/dir/file.txt"
        assert line.size == 4096

    def test_write_without_length(self):
        line = parse_line("write ./snap/file.txt offset=0")
        assert line.size is None

    def test_keyword_is_case_insensitive(self):
        assert parse_line("MKDIR ./snap/newdir").kind is ChangeKind.MKDIR

    def test_rename_with_dest_attribute(self):
        line = parse_line("rename       ./snap/a.txt dest=./snap/b.txt")
        assert line.kind is ChangeKind.RENAME
        assert line.path == "./snap/a.txt"
        assert line.dest == "./snap/b.txt"

    def test_rename_with_arrow(self):
        line = parse_line("rename ./snap/a.txt -> ./snap/b.txt")
        assert line.path == "./snap/a.txt"
        assert line.dest == "./snap/b.txt"

    def test_rename_with_escaped_names(self):
        line = parse_line(r"rename ./snap/old\ name dest=./snap/caf\303\251")
        assert line.path == "./snap/old name"
        assert line.dest == "./snap/café"

    def test_rename_without_destination_is_dropped(self):
        assert parse_line("rename ./snap/a.txt") is None

    @pytest.mark.parametrize("line", [
        "utimes ./snap/a.txt atime=2026-01-01T00:00:00 mtime=2026-01-01T00:00:00",
        "chmod ./snap/a.txt mode=644",
        "chown ./snap/a.txt gid=0 uid=0",
        "set_xattr ./snap/a.txt name=user.x data=1",
        "update_extent ./snap/a.txt offset=0 len=10",
        "mkfile ./snap/o257-7-0",
        "snapshot ./snap uuid=abc transid=7",
        "",
        "   ",
        "write",
    ])
    def test_noise_is_dropped(self, line):
        assert parse_line(line) is None


def test_split_line():
    assert split_line("  unlink   ./snap/x  ") == ("unlink", "./snap/x")
    assert split_line("") is None


def test_unlisted_attribute_stays_in_path():
    parsed = parse_line("truncate ./s/a.txt size=5")
    assert parsed == DumpLine(kind=ChangeKind.TRUNCATE, path="./s/a.txt size=5")
