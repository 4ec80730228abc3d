"""
Ignore patterns handling (.stignore file parsing)
"""
import re
from pathlib import Path

from ..config import STIGNORE_FILE


def _compile_pattern(raw: str):
    """Compile a .stignore pattern into a regex"""
    p = raw.strip()
    if not p or p.startswith("#"):
        return None
    escaped = re.escape(p)
    escaped = escaped.replace(r"\*\*", "§DS§")
    escaped = escaped.replace(r"\*", "[^/]*")
    escaped = escaped.replace(r"\?", "[^/]")
    escaped = escaped.replace("§DS§", ".*")
    if escaped.startswith("/"):
        escaped = "^" + escaped[1:]
    else:
        escaped = r"(^|.*/)" + escaped
    try:
        return re.compile(escaped + r"(/.*)?$")
    except re.error:
        return None


def compile_patterns(lines) -> list:
    """Compile an iterable of .stignore lines, skipping blanks and comments"""
    patterns = []
    for line in lines:
        c = _compile_pattern(line)
        if c:
            patterns.append(c)
    return patterns


def load_ignore_patterns(root: Path) -> list:
    """Load ignore patterns from the .stignore file in root"""
    f = root / STIGNORE_FILE
    if not f.exists():
        return []
    return compile_patterns(f.read_text(encoding="utf-8", errors="replace").splitlines())


def is_ignored(rel_path: str, patterns: list) -> bool:
    """Check if a path matches any ignore pattern"""
    norm = rel_path.replace("\\", "/")
    return any(p.search(norm) for p in patterns)
