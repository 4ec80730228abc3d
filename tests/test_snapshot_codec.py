"""
Tests for the T / D / F snapshot text format.
"""
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

from treesync.core.content_tree import build_content_tree
from treesync.errors import SnapshotParseError
from treesync.state.snapshot_codec import SnapshotCodec

CAPTURED = datetime(2024, 1, 15, 10, 30, 0, 123000, tzinfo=timezone.utc)

HASH_A = "a" * 64
HASH_B = "b" * 64
HASH_C = "c" * 64


def _sample_tree(captured_at=CAPTURED):
    return build_content_tree(
        ["dir2", "dir2/dir4", "dir3"],
        [("file1.txt", HASH_A), ("dir2/dir4/file5.text", HASH_B), ("dir2/file2.txt", HASH_C)],
        captured_at,
    )


class TestSerialize(unittest.TestCase):

    def setUp(self):
        self.codec = SnapshotCodec()

    def test_layout_is_pre_order_with_time_first(self):
        lines = self.codec.serialize(_sample_tree())
        self.assertEqual(lines, [
            "T 2024-01-15 10:30:00.123 +0000",
            "D dir2/",
            "D dir2/dir4/",
            f"F {HASH_B} dir2/dir4/file5.text",
            f"F {HASH_C} dir2/file2.txt",
            "D dir3/",
            f"F {HASH_A} file1.txt",
        ])

    def test_no_time_line_without_capture_time(self):
        lines = self.codec.serialize(_sample_tree(captured_at=None))
        self.assertFalse(any(line.startswith("T ") for line in lines))

    def test_format_time_truncates_to_milliseconds(self):
        t = datetime(2024, 3, 1, 8, 5, 9, 987654, tzinfo=timezone.utc)
        self.assertEqual(self.codec.format_time(t), "2024-03-01 08:05:09.987 +0000")


class TestParse(unittest.TestCase):

    def setUp(self):
        self.codec = SnapshotCodec()

    def test_round_trip_preserves_content(self):
        tree = _sample_tree()
        parsed = self.codec.parse(self.codec.serialize(tree))
        parsed.sort()
        self.assertEqual(parsed.file_hashes(), tree.file_hashes())
        self.assertEqual([d.relative_path for d in parsed.iter_dirs()],
                         [d.relative_path for d in tree.iter_dirs()])
        self.assertEqual(parsed.captured_at, CAPTURED)

    def test_naive_capture_time_round_trips_as_utc(self):
        naive = datetime(2024, 1, 15, 10, 30)
        tree = build_content_tree([], [("a.txt", "h1")], naive)
        lines = self.codec.serialize(tree)
        self.assertTrue(lines[0].endswith(" +0000"))

        parsed = self.codec.parse(lines)
        self.assertEqual(parsed.captured_at, naive.astimezone(timezone.utc))
        self.assertEqual(parsed.file_hashes(), {"a.txt": "h1"})

    def test_other_offsets_written_in_utc(self):
        plus_two = timezone(timedelta(hours=2))
        t = datetime(2024, 1, 15, 12, 30, 0, 123000, tzinfo=plus_two)
        self.assertEqual(self.codec.format_time(t), "2024-01-15 10:30:00.123 +0000")

    def test_line_order_does_not_matter(self):
        lines = [f"F {HASH_A} x/y/z.txt", "D x/", "T 2024-01-15 10:30:00.123 +0000"]
        tree = self.codec.parse(lines)
        self.assertEqual(tree.file_hashes(), {"x/y/z.txt": HASH_A})
        self.assertIsNotNone(tree.get_dir("x").get_dir("y"))
        self.assertEqual(tree.captured_at, CAPTURED)

    def test_unrecognised_line_raises(self):
        with self.assertRaises(SnapshotParseError) as ctx:
            self.codec.parse(["D a/", "X what is this"], source="cache.txt")
        self.assertEqual(ctx.exception.line_number, 2)
        self.assertEqual(ctx.exception.line, "X what is this")

    def test_blank_line_raises(self):
        with self.assertRaises(SnapshotParseError):
            self.codec.parse(["D a/", ""])

    def test_bad_time_raises(self):
        with self.assertRaises(SnapshotParseError):
            self.codec.parse(["T yesterday"])

    def test_file_line_without_hash_raises(self):
        with self.assertRaises(SnapshotParseError):
            self.codec.parse(["F onlyname"])


class TestFiles(unittest.TestCase):

    def setUp(self):
        self.codec = SnapshotCodec()
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_write_creates_parents_and_reads_back(self):
        path = self.tmp / "nested" / "cache" / "snapshot.txt"
        self.codec.write(_sample_tree(), path)
        self.assertTrue(path.is_file())
        text = path.read_text(encoding="utf-8")
        self.assertTrue(text.startswith("T 2024-01-15 10:30:00.123 +0000\n"))
        self.assertTrue(text.endswith("\n"))

        tree = self.codec.read(path)
        self.assertEqual(tree.file_hashes(), _sample_tree().file_hashes())

    def test_read_hash_map(self):
        path = self.tmp / "snapshot.txt"
        self.codec.write(_sample_tree(), path)
        captured_at, hashes = self.codec.read_hash_map(path)
        self.assertEqual(captured_at, CAPTURED)
        self.assertEqual(hashes, {
            "file1.txt": HASH_A,
            "dir2/dir4/file5.text": HASH_B,
            "dir2/file2.txt": HASH_C,
        })

    def test_read_reports_source_path_on_error(self):
        path = self.tmp / "broken.txt"
        path.write_text("D ok/\nnonsense\n", encoding="utf-8")
        with self.assertRaises(SnapshotParseError) as ctx:
            self.codec.read(path)
        self.assertIn("broken.txt", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
