"""On-disk layout of a mirror: artifacts and the failure report."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Iterable

from .urls import local_path

LOGGER = logging.getLogger(__name__)


class OutputDirectoryError(Exception):
    """Raised when the output root cannot be cleared or created."""

    def __init__(self, message: str, path: Path):
        self.path = path
        super().__init__(message)


class MirrorStorage:
    """Maps resource URLs to files under a fixed output root."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def prepare(self, *, clean: bool = True) -> None:
        """Recreate the output root (delete, then make).

        Raises:
            OutputDirectoryError: If the directory cannot be cleared or created.
        """
        try:
            if clean and self.root.exists():
                if self.root.is_dir():
                    shutil.rmtree(self.root)
                else:
                    self.root.unlink()
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OutputDirectoryError(
                f"Cannot prepare output directory {self.root}: {exc}", self.root
            ) from exc
        LOGGER.info("Output directory: %s", self.root.resolve())

    def path_for(self, url: str) -> Path:
        return local_path(url, self.root)

    def exists(self, url: str) -> bool:
        return self.path_for(url).exists()

    def write(self, url: str, content: bytes) -> Path:
        """Write *content* to the mirrored path of *url*, creating directories."""
        path = self.path_for(url)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    def write_failure_report(self, failures: Iterable[str], name: str) -> Path:
        """Overwrite the failure report with one URL per line."""
        path = self.root / name
        path.unlink(missing_ok=True)
        path.write_text("".join(f"{url}\n" for url in failures), encoding="utf-8")
        return path
