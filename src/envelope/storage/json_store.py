#!/usr/bin/env python3
"""
JSON File Repository

Persists the whole ledger as one JSON snapshot. Every write rewrites the
snapshot atomically, so a write is durable when it returns and a crash never
leaves a half-written file behind.
"""

import logging
from datetime import datetime
from pathlib import Path

from ..core.json_utils import read_json, write_json
from .memory import InMemoryRepository

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


class JsonFileRepository(InMemoryRepository):
    """
    Snapshot-file repository for the CLI.

    Args:
        ledger_file: Path of the JSON snapshot (created on first write)
    """

    def __init__(self, ledger_file: Path):
        super().__init__()
        self.ledger_file = Path(ledger_file)
        if self.exists():
            self.load()

    def exists(self) -> bool:
        """Check if the snapshot file exists."""
        return self.ledger_file.exists()

    def last_modified(self) -> datetime | None:
        if not self.exists():
            return None
        return datetime.fromtimestamp(self.ledger_file.stat().st_mtime)

    def load(self) -> None:
        """
        Reload store contents from disk.

        Raises:
            FileNotFoundError: If the snapshot doesn't exist
        """
        if not self.exists():
            raise FileNotFoundError(f"Ledger file not found: {self.ledger_file}")
        data = read_json(self.ledger_file)
        version = data.get("version", SNAPSHOT_VERSION)
        if version != SNAPSHOT_VERSION:
            raise ValueError(f"Unsupported ledger snapshot version: {version}")
        self.load_dict(data)
        logger.info(f"Loaded ledger from {self.ledger_file}")

    def save(self) -> None:
        """Write the current store contents to disk."""
        data = {"version": SNAPSHOT_VERSION, **self.to_dict()}
        write_json(self.ledger_file, data)
        logger.debug(f"Saved ledger snapshot to {self.ledger_file}")

    def _after_write(self) -> None:
        self.save()
