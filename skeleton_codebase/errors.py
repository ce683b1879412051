"""
Error types for skeleton generation.

Per-file problems (unsupported language, unreadable or oversized files) are
never raised: they are tallied by the generator. Only batch-level failures
surface as exceptions from this module.
"""


class SkeletonError(Exception):
    """Base class for batch-level failures."""

    stage = "skeleton"

    def __str__(self) -> str:
        return f"{self.stage}: {super().__str__()}"


class ConfigError(SkeletonError, ValueError):
    """Invalid configuration value."""

    stage = "configuration"

    def __init__(self, field: str, value, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"{field} = {value!r} ({reason})")


class ParallelProcessingError(SkeletonError):
    """The worker pool or its result collection became unusable."""

    stage = "parallel processing"


class ArtifactWriteError(SkeletonError):
    """The output directory or artifact could not be written."""

    stage = "artifact write"

    def __init__(self, path, reason: str):
        self.path = path
        super().__init__(f"{reason} (path: {path})")


class BatchCancelledError(SkeletonError):
    """Cancellation was requested before the batch finished."""

    stage = "cancelled"
