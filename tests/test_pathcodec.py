# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# snaptrail/tests/test_pathcodec.py

from snaptrail.changes import pathcodec


class TestDecode:
    """Escaped path tokens decode to the real file names."""

    def test_escaped_spaces_and_octal_utf8(self):
        assert pathcodec.decode(r"save\ ff8\ ps1\303\251") == "save ff8 ps1é"

    def test_plain_path(self):
        assert pathcodec.decode("./snap/dir/file.txt") == "./snap/dir/file.txt"

    def test_stops_at_attribute(self):
        assert pathcodec.decode("./snap/file.txt offset=0 len=10") == "./snap/file.txt"

    def test_stops_at_rename_arrow(self):
        assert pathcodec.decode("./snap/a.txt -> ./snap/b.txt") == "./snap/a.txt"

    def test_literal_space_kept_when_not_followed_by_attribute(self):
        assert pathcodec.decode("./snap/my file.txt mode=644") == "./snap/my file.txt"

    def test_three_byte_sequence(self):
        # U+20AC EURO SIGN
        assert pathcodec.decode(r"price\342\202\254.txt") == "price€.txt"

    def test_escaped_backslash(self):
        assert pathcodec.decode(r"a\\b") == "a\\b"


class TestStripRootPrefix:
    """The snapshot directory never leaks into emitted paths."""

    def test_dot_slash_and_snapshot_dir(self):
        assert pathcodec.strip_root_prefix("./2026-01-28_00:00:01/storage/a.txt") == "storage/a.txt"

    def test_without_dot_slash(self):
        assert pathcodec.strip_root_prefix("snap/a.txt") == "a.txt"

    def test_single_segment_unchanged(self):
        assert pathcodec.strip_root_prefix("o257-12-0") == "o257-12-0"


class TestIsOrphan:

    def test_orphan_patterns(self):
        assert pathcodec.is_orphan("o12345-6-0")
        assert pathcodec.is_orphan("o12345-6-0/subpath")

    def test_non_orphans(self):
        assert not pathcodec.is_orphan("o12345-6")
        assert not pathcodec.is_orphan("docs/o1-2-3")
        assert not pathcodec.is_orphan("o1-2-3x")
        assert not pathcodec.is_orphan("notes.txt")

    def test_orphan_root(self):
        assert pathcodec.orphan_root("o1-2-3/a/b") == "o1-2-3"
