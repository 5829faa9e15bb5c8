"""Exception hierarchy for mediasweep."""

from typing import List, Tuple


class MediaSweepError(RuntimeError):
    """Base class for all mediasweep errors."""


class ConfigError(MediaSweepError):
    """Settings file exists but could not be read."""


class ScannerError(MediaSweepError):
    """The external scanner failed."""


class ScannerNotFoundError(ScannerError):
    """The scanner executable could not be spawned."""


class ScannerArtifactMissingError(ScannerError):
    """
    The scanner ran but left no readable result file.

    This is also what a cancelled scan surfaces as; ``cancelled`` is set when
    cancellation had been requested for the operation.
    """

    cancelled = False


class MalformedOutputError(MediaSweepError, ValueError):
    """The result file exists but is not valid JSON."""


class MetadataError(MediaSweepError):
    """exiftool could not read or write metadata."""


class PartialDeleteFailure(MediaSweepError):
    """
    Some files could not be moved to the trash.

    Files that were trashed successfully stay trashed; ``deleted`` counts them
    and ``failures`` lists ``(path, reason)`` for the rest.
    """

    def __init__(self, deleted: int, failures: List[Tuple[str, str]]):
        self.deleted = deleted
        self.failures = failures
        details = "; ".join(f"{path}: {reason}" for path, reason in failures)
        super().__init__(
            f"Deleted {deleted} files, but {len(failures)} failed: {details}"
        )
