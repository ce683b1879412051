"""
Concurrent skeleton generation over a batch of files.

Each file is an independent unit of work: workers return a FileOutcome and
the collecting thread folds the outcomes into a BatchResult. A failure while
processing one file is counted against that file only; the batch fails only
when the worker pool itself does.
"""

import codecs
import logging
import os
import sys
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional

from tqdm import tqdm

from .config import Config
from .errors import BatchCancelledError, ParallelProcessingError
from .extractor import CodeExtractor
from .languages import file_extension, resolve_profile
from .serializer import render_artifact, write_artifact


class FileStatus(Enum):
    SKELETONIZED = "skeletonized"
    SKIPPED_OVERSIZED = "skipped_oversized"
    SKIPPED_UNSUPPORTED = "skipped_unsupported"
    SKIPPED_CANCELLED = "skipped_cancelled"


@dataclass(frozen=True)
class FileTask:
    """One input path. The size is only looked up when asked for."""

    path: str
    extension: str

    @classmethod
    def from_path(cls, path) -> "FileTask":
        path = os.fspath(path)
        return cls(path=path, extension=file_extension(path))

    def size(self) -> int:
        return os.stat(self.path).st_size


@dataclass(frozen=True)
class FileOutcome:
    path: str
    status: FileStatus
    skeleton: Optional[str] = None


@dataclass
class BatchResult:
    skeletons: Dict[str, str] = field(default_factory=dict)
    processed: int = 0
    skipped_oversized: int = 0
    skipped_unsupported: int = 0
    cancelled: int = 0

    def record(self, outcome: FileOutcome) -> None:
        if outcome.status is FileStatus.SKELETONIZED:
            self.skeletons[outcome.path] = outcome.skeleton
            self.processed += 1
        elif outcome.status is FileStatus.SKIPPED_OVERSIZED:
            self.skipped_oversized += 1
        elif outcome.status is FileStatus.SKIPPED_CANCELLED:
            self.cancelled += 1
        else:
            self.skipped_unsupported += 1

    @property
    def total(self) -> int:
        return (
            self.processed
            + self.skipped_oversized
            + self.skipped_unsupported
            + self.cancelled
        )

    def as_stats(self) -> Dict[str, int]:
        return {
            "files_processed": self.processed,
            "skipped_oversized": self.skipped_oversized,
            "skipped_unsupported": self.skipped_unsupported,
            "cancelled": self.cancelled,
        }


def tally(outcomes: Iterable[FileOutcome]) -> BatchResult:
    """Fold per-file outcomes into a BatchResult."""
    result = BatchResult()
    for outcome in outcomes:
        result.record(outcome)
    return result


class SkeletonGenerator:
    """Drives skeleton extraction over a batch of files with a thread pool."""

    def __init__(
        self,
        config: Optional[Config] = None,
        extractor: Optional[CodeExtractor] = None,
    ):
        self.config = config or Config()
        self.config.validate()
        self.extractor = extractor or CodeExtractor()
        self.stats = BatchResult().as_stats()

    def process_file(
        self, task: FileTask, cancel_event: Optional[threading.Event] = None
    ) -> FileOutcome:
        """Run the size gate, language lookup, read and extraction for one file."""
        if cancel_event is not None and cancel_event.is_set():
            return FileOutcome(task.path, FileStatus.SKIPPED_CANCELLED)

        try:
            size = task.size()
        except OSError as e:
            logging.error(f"Cannot access file: {task.path} - {str(e)}")
            return FileOutcome(task.path, FileStatus.SKIPPED_UNSUPPORTED)

        if size > self.config.max_file_size:
            logging.debug(f"Excluded file due to size: {task.path} ({size} bytes)")
            return FileOutcome(task.path, FileStatus.SKIPPED_OVERSIZED)

        profile = resolve_profile(task.path)
        if profile is None:
            logging.debug(f"Unsupported file type: {task.path}")
            return FileOutcome(task.path, FileStatus.SKIPPED_UNSUPPORTED)

        try:
            with open(task.path, "rb") as f:
                data = f.read()
        except OSError as e:
            logging.error(f"Cannot read file {task.path}: {str(e)}")
            return FileOutcome(task.path, FileStatus.SKIPPED_UNSUPPORTED)

        try:
            data.decode("utf-8")
        except UnicodeDecodeError:
            logging.warning(f"File {task.path} is not valid UTF-8, skipping")
            return FileOutcome(task.path, FileStatus.SKIPPED_UNSUPPORTED)

        if data.startswith(codecs.BOM_UTF8):
            data = data[len(codecs.BOM_UTF8) :]

        skeleton = self.extractor.skeletonize(data, profile)
        if skeleton is None:
            logging.debug(f"No structural elements extracted from {task.path}")
            return FileOutcome(task.path, FileStatus.SKIPPED_UNSUPPORTED)

        return FileOutcome(task.path, FileStatus.SKELETONIZED, skeleton)

    def _process_contained(
        self, task: FileTask, cancel_event: Optional[threading.Event]
    ) -> FileOutcome:
        try:
            return self.process_file(task, cancel_event)
        except Exception as e:
            logging.error(f"Error processing file {task.path}: {str(e)}")
            return FileOutcome(task.path, FileStatus.SKIPPED_UNSUPPORTED)

    def _report(self, message: str) -> None:
        logging.info(message)
        if self.config.verbose:
            tqdm.write(message, file=sys.stderr)

    def run(
        self, paths: Iterable, cancel_event: Optional[threading.Event] = None
    ) -> BatchResult:
        """
        Skeletonize every path and return the folded result.

        Raises:
            ParallelProcessingError: the worker pool failed or lost results.
            BatchCancelledError: cancel_event was set before all files ran.
        """
        # dict.fromkeys keeps the first occurrence of each path, in order
        tasks = [FileTask.from_path(p) for p in dict.fromkeys(os.fspath(p) for p in paths)]
        total = len(tasks)
        if total == 0:
            self.stats = BatchResult().as_stats()
            return BatchResult()

        self._report(f"    Skeleton: Processing {total} files in parallel...")

        outcomes: List[FileOutcome] = []
        done = 0
        try:
            with ThreadPoolExecutor(max_workers=self.config.worker_count()) as executor:
                future_to_task = {
                    executor.submit(self._process_contained, task, cancel_event): task
                    for task in tasks
                }
                for future in as_completed(future_to_task):
                    outcome = future.result()
                    outcomes.append(outcome)
                    if outcome.status is FileStatus.SKELETONIZED:
                        done += 1
                        if done % self.config.progress_interval == 0:
                            self._report(f"    Skeleton: Processed {done} / {total} files")
        except Exception as e:
            logging.error(f"Parallel processing failed: {str(e)}")
            raise ParallelProcessingError(f"worker pool failed: {e}") from e

        if len(outcomes) != total:
            raise ParallelProcessingError(
                f"collected {len(outcomes)} results for {total} files"
            )

        result = tally(outcomes)
        self.stats = result.as_stats()

        if result.cancelled:
            raise BatchCancelledError(
                f"{result.cancelled} of {total} files were not processed"
            )

        self._report(f"    Skeleton: Successfully parsed {result.processed} files")
        if result.skipped_oversized:
            self._report(
                f"    Skeleton: Skipped {result.skipped_oversized} files "
                f"(>{self.config.max_file_size} bytes)"
            )
        if result.skipped_unsupported:
            self._report(
                f"    Skeleton: Skipped {result.skipped_unsupported} files (unsupported/errors)"
            )
        return result

    def generate(
        self,
        paths: Iterable,
        output_path,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """Skeletonize the batch, write the artifact and return a summary line."""
        result = self.run(paths, cancel_event)
        write_artifact(render_artifact(result.skeletons), output_path)

        if result.processed:
            summary = (
                f"Wrote compressed skeleton for {result.processed} files to: {output_path}"
            )
        else:
            summary = (
                "No supported files found for skeletonization; "
                f"wrote empty artifact to: {output_path}"
            )

        if self.config.verbose:
            summary += (
                f"\n  Skipped (too large): {result.skipped_oversized}"
                f"\n  Skipped (unsupported/errors): {result.skipped_unsupported}"
            )
        return summary
