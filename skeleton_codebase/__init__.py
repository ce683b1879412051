"""Codebase skeleton packer: tree-sitter signatures of source files in one XML artifact."""

from .config import Config
from .errors import (
    ArtifactWriteError,
    BatchCancelledError,
    ConfigError,
    ParallelProcessingError,
    SkeletonError,
)
from .extractor import CHUNK_SEPARATOR, CodeExtractor
from .generator import BatchResult, FileOutcome, FileStatus, SkeletonGenerator
from .languages import LanguageFamily, resolve_profile

__version__ = "0.2.0"
__all__ = [
    "ArtifactWriteError",
    "BatchCancelledError",
    "BatchResult",
    "CHUNK_SEPARATOR",
    "CodeExtractor",
    "Config",
    "ConfigError",
    "FileOutcome",
    "FileStatus",
    "LanguageFamily",
    "ParallelProcessingError",
    "SkeletonError",
    "SkeletonGenerator",
    "resolve_profile",
]
