"""
Snapshot text format: a content tree as T / D / F lines

    T 2024-01-15 10:30:00.000 +0000
    D dir2/
    D dir2/dir4/
    F <hash> dir2/dir4/file5.text
    F <hash> file1.txt

The time line is written first and only when the tree has a capture time.
Directories are written pre-order (a directory line, then its contents,
then its next sibling). Each line addresses its entry by full relative path,
so the reader does not depend on line order.
"""
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from ..config import DEFAULT_SNAPSHOT_FORMAT, SnapshotFormat
from ..core.content_tree import DirectoryNode
from ..errors import SnapshotParseError
from ..utils.logging import vlog


class SnapshotCodec:
    def __init__(self, fmt: SnapshotFormat = DEFAULT_SNAPSHOT_FORMAT):
        self.fmt = fmt

    # ── time ───────────────────────────────────────────────────────────────

    def format_time(self, t: datetime) -> str:
        """Format *t* in UTC; a naive value is taken as local time."""
        t = t.astimezone(timezone.utc)
        millis = t.microsecond // 1000
        return f"{t.strftime(self.fmt.time_format)}.{millis:03d} {t.strftime('%z')}"

    def parse_time(self, text: str) -> datetime:
        return datetime.strptime(text.strip(), self.fmt.parse_format)

    # ── writing ────────────────────────────────────────────────────────────

    def _node_lines(self, node: DirectoryNode, prefix: str) -> Iterable[str]:
        for d in node.dirs:
            path = f"{prefix}{d.name}/"
            yield f"D {path}"
            yield from self._node_lines(d, path)
        for f in node.files:
            yield f"F {f.hash} {prefix}{f.name}"

    def serialize(self, tree: DirectoryNode) -> list:
        lines = []
        if tree.captured_at is not None:
            lines.append(f"T {self.format_time(tree.captured_at)}")
        lines.extend(self._node_lines(tree, ""))
        return lines

    def write(self, tree: DirectoryNode, path: Path):
        vlog(f"[cache] writing content tree to {path} …")
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="\n") as f:
            for line in self.serialize(tree):
                f.write(line + "\n")

    # ── reading ────────────────────────────────────────────────────────────

    def _records(self, lines: Iterable[str], source: str):
        """Yield (kind, groups) for each line; raise on anything unrecognised."""
        for number, raw in enumerate(lines, start=1):
            line = raw.rstrip("\r\n")
            m = self.fmt.dir_line.match(line)
            if m:
                yield "D", m.groups()
                continue
            m = self.fmt.file_line.match(line)
            if m:
                yield "F", m.groups()
                continue
            m = self.fmt.time_line.match(line)
            if m:
                try:
                    yield "T", (self.parse_time(m.group(1)),)
                except ValueError:
                    raise SnapshotParseError(number, line, source) from None
                continue
            raise SnapshotParseError(number, line, source)

    def parse(self, lines: Iterable[str], source: str = "<snapshot>") -> DirectoryNode:
        tree = DirectoryNode()
        for kind, groups in self._records(lines, source):
            if kind == "D":
                tree.add_dir(groups[0])
            elif kind == "F":
                digest, rel = groups
                tree.add_file(rel, digest)
            else:
                tree.captured_at = groups[0]
        return tree

    def read(self, path: Path) -> DirectoryNode:
        vlog(f"[cache] reading content tree from {path} …")
        with path.open("r", encoding="utf-8") as f:
            return self.parse(f, source=str(path))

    def read_hash_map(self, path: Path) -> tuple:
        """Return (captured_at, {relative_path: hash}) from a snapshot file."""
        captured_at: Optional[datetime] = None
        hashes: dict = {}
        with path.open("r", encoding="utf-8") as f:
            for kind, groups in self._records(f, str(path)):
                if kind == "F":
                    digest, rel = groups
                    hashes[rel] = digest
                elif kind == "T":
                    captured_at = groups[0]
        return captured_at, hashes
