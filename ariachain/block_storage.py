"""Stores serialized blocks by epoch, in memory or in files."""

from __future__ import annotations

import logging
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Union

log = logging.getLogger(__name__)

_EPOCH_FILE = "block_num.txt"


class BlockStorage(ABC):
    """Blocks indexed by epoch, with the latest saved epoch tracked."""

    def __init__(self) -> None:
        self._latest = 0
        self._lock = threading.Lock()

    def latest_saved_epoch(self) -> int:
        """Return the epoch of the most recently appended block."""
        return self._latest

    def append_block(self, epoch: int, data: bytes) -> None:
        """Store ``data`` as the block of ``epoch`` and make it the latest."""
        with self._lock:
            self._insert(epoch, bytes(data))
            self._latest = epoch
            self._save_latest()
        log.info("block stored successfully, epoch=%d", epoch)

    def load_block(self, epoch: int) -> bytes:
        """Return the block of ``epoch``; KeyError if it has not been saved."""
        if epoch > self._latest:
            raise KeyError(f"block {epoch} has not been saved")
        with self._lock:
            return self._read(epoch)

    @abstractmethod
    def _insert(self, epoch: int, data: bytes) -> None: ...

    @abstractmethod
    def _read(self, epoch: int) -> bytes: ...

    def _save_latest(self) -> None:
        pass


class MemoryBlockStorage(BlockStorage):
    """Keeps blocks in a dictionary."""

    def __init__(self) -> None:
        super().__init__()
        self._blocks: Dict[int, bytes] = {}

    def _insert(self, epoch: int, data: bytes) -> None:
        self._blocks[epoch] = data

    def _read(self, epoch: int) -> bytes:
        try:
            return self._blocks[epoch]
        except KeyError:
            raise KeyError(f"block {epoch} has not been saved") from None


class FileBlockStorage(BlockStorage):
    """Writes each block to ``<epoch>.bin`` and the latest epoch to ``block_num.txt``."""

    def __init__(
        self, directory: Union[str, os.PathLike] = ".", reset_epoch: bool = False
    ) -> None:
        super().__init__()
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        if reset_epoch:
            self._save_latest()
        else:
            self._latest = self._load_latest()

    @property
    def _epoch_file(self) -> Path:
        return self.directory / _EPOCH_FILE

    def _block_path(self, epoch: int) -> Path:
        return self.directory / f"{epoch}.bin"

    def _load_latest(self) -> int:
        try:
            return int(self._epoch_file.read_text().split()[0])
        except (OSError, ValueError, IndexError):
            return 0

    def _save_latest(self) -> None:
        self._epoch_file.write_text(str(self._latest))

    def _insert(self, epoch: int, data: bytes) -> None:
        self._block_path(epoch).write_bytes(data)

    def _read(self, epoch: int) -> bytes:
        try:
            return self._block_path(epoch).read_bytes()
        except FileNotFoundError:
            raise KeyError(f"block {epoch} has not been saved") from None