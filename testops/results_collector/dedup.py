"""Per-queue record of already collected executions."""

import logging
from pathlib import Path

from testops.results_collector.file_utils import write_atomic

logger = logging.getLogger(__name__)


class DedupTracker:
    """Line-oriented store of processed execution keys, most recent first.

    The file only grows: keys are never removed. A missing file means
    nothing has been processed yet. One process writes a given file at a
    time; there is no locking.
    """

    def __init__(self, path: Path) -> None:
        """Initialize the tracker backed by ``path``."""
        self.path = path

    def keys(self) -> list[str]:
        """Return recorded keys, most recent first."""
        if not self.path.exists():
            return []
        lines = self.path.read_text(encoding="utf-8").splitlines()
        return [line.strip() for line in lines if line.strip()]

    def has(self, execution_key: str) -> bool:
        """Check whether ``execution_key`` was already collected."""
        return execution_key in self.keys()

    def record_processed(self, execution_key: str) -> None:
        """Prepend ``execution_key`` unless it is already recorded."""
        existing = self.keys()
        if execution_key in existing:
            logger.debug(f"{self.path.name} already contains {execution_key}")
            return

        lines = [execution_key, *existing]
        write_atomic(self.path, "\n".join(lines) + "\n")
        logger.info(f"Marked execution {execution_key} as processed in {self.path}")
