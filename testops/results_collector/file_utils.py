"""Small file helpers shared by the writers."""

import json
import os
import re
from pathlib import Path

_INVALID_FILENAME_CHARS = re.compile(r'[/\\?<>:*|"\x00-\x1f\x80-\x9f]')
_RESERVED_FILENAME = re.compile(
    r"^(con|prn|aux|nul|com[0-9]|lpt[0-9])(\..*)?$", re.IGNORECASE
)


def write_atomic(path: Path, content: str) -> None:
    """Write ``content`` to ``path`` through a temporary file and a rename.

    Readers never observe a partially written file. Parent directories are
    created when missing.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp")
    try:
        tmp_path.write_text(content, encoding="utf-8")
        os.replace(tmp_path, path)
    finally:
        tmp_path.unlink(missing_ok=True)


def write_json(path: Path, data: object) -> None:
    """Write ``data`` as indented JSON, atomically."""
    write_atomic(path, json.dumps(data, indent=2, ensure_ascii=False))


def sanitize_filename(name: str, replacement: str = "") -> str:
    """Make ``name`` safe to use as a single path component.

    Removes path separators, characters reserved on common filesystems and
    control characters, trailing dots and spaces, and Windows reserved
    device names. The result is truncated to 255 bytes.
    """
    sanitized = _INVALID_FILENAME_CHARS.sub(replacement, name)
    sanitized = sanitized.rstrip(". ")
    if sanitized in {".", ".."} or _RESERVED_FILENAME.match(sanitized):
        sanitized = replacement

    encoded = sanitized.encode("utf-8")[:255]
    return encoded.decode("utf-8", errors="ignore")


def sanitize_test_name(test_name: str, max_length: int = 50) -> str:
    """Reduce a test name to ``[A-Za-z0-9_]`` for screenshot file names."""
    return re.sub(r"[^a-z0-9]", "_", test_name, flags=re.IGNORECASE)[:max_length]
