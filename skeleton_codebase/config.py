import os
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigError

MAX_FILE_SIZE_FOR_PARSING = 5 * 1024 * 1024  # 5 MiB
PROGRESS_REPORT_INTERVAL = 100
DEFAULT_OUTPUT_FILE = os.path.join("ai-pack", "PACK_STAGE2_COMPRESSED.xml")


@dataclass
class Config:
    """Configuration for skeleton generation."""

    max_file_size: int = MAX_FILE_SIZE_FOR_PARSING
    progress_interval: int = PROGRESS_REPORT_INTERVAL
    max_workers: Optional[int] = None  # None: one per CPU
    verbose: bool = False

    def validate(self) -> None:
        """Raise ConfigError for values the generator cannot work with."""
        if self.max_file_size < 0:
            raise ConfigError("max_file_size", self.max_file_size, "must be >= 0")
        if self.progress_interval < 1:
            raise ConfigError(
                "progress_interval", self.progress_interval, "must be >= 1"
            )
        if self.max_workers is not None and self.max_workers < 1:
            raise ConfigError("max_workers", self.max_workers, "must be >= 1")

    def worker_count(self) -> int:
        if self.max_workers:
            return self.max_workers
        return os.cpu_count() or 1
