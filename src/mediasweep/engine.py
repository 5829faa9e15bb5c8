"""Client-facing scan operations sharing one cancellation registry."""

import logging
import uuid
from typing import Callable, Optional, Sequence, TypeVar

from . import launcher, trash
from .config import Settings
from .errors import ScannerArtifactMissingError
from .launcher import DUPLICATE_MODE, SIMILAR_MODE, ProgressCallback, ScanMode
from .models import DedupResult, SimilarResult
from .parser import parse_duplicate_json, parse_similar_json
from .registry import CancellationRegistry

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT", DedupResult, SimilarResult)


def new_operation_id() -> str:
    """Generate a unique operation id."""
    return uuid.uuid4().hex


class ScanEngine:
    """
    Entry point for scanning, cancelling and trashing.

    Create one engine per process and share it between request handlers;
    every scan registers with the same registry, so any handler can cancel
    any operation by id. Scans block the calling thread only, so several
    may run at once from different threads.
    """

    def __init__(
        self,
        registry: Optional[CancellationRegistry] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the engine.

        Args:
            registry: Shared cancellation registry (created if omitted)
            settings: User settings (defaults if omitted)
        """
        self.registry = registry or CancellationRegistry()
        self.settings = settings or Settings()

    def _scanner(self, scanner_path: Optional[str]) -> str:
        return scanner_path or self.settings.scanner

    def check_scanner_available(self, scanner_path: Optional[str] = None) -> str:
        """Return the scanner's version message or raise if it cannot run."""
        return launcher.check_scanner_available(self._scanner(scanner_path))

    def find_duplicates(
        self,
        root_path: str,
        scanner_path: Optional[str] = None,
        operation_id: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> DedupResult:
        """
        Find byte-identical files under a directory.

        Args:
            root_path: Directory to scan
            scanner_path: Scanner executable (default: from settings)
            operation_id: Id for cancellation (generated if omitted)
            progress_callback: Optional callback(message: str, percentage: int)

        Returns:
            DedupResult with groups and total wasted space
        """
        return self._scan(
            DUPLICATE_MODE,
            parse_duplicate_json,
            root_path,
            scanner_path,
            operation_id,
            progress_callback,
        )

    def find_similar(
        self,
        root_path: str,
        scanner_path: Optional[str] = None,
        operation_id: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> SimilarResult:
        """
        Find visually similar images under a directory.

        Args:
            root_path: Directory to scan
            scanner_path: Scanner executable (default: from settings)
            operation_id: Id for cancellation (generated if omitted)
            progress_callback: Optional callback(message: str, percentage: int)

        Returns:
            SimilarResult with groups and their similarity percentages
        """
        return self._scan(
            SIMILAR_MODE,
            parse_similar_json,
            root_path,
            scanner_path,
            operation_id,
            progress_callback,
        )

    def _scan(
        self,
        mode: ScanMode,
        parse: Callable[[str], ResultT],
        root_path: str,
        scanner_path: Optional[str],
        operation_id: Optional[str],
        progress_callback: Optional[ProgressCallback],
    ) -> ResultT:
        operation_id = operation_id or new_operation_id()
        flag = self.registry.register(operation_id)
        try:
            content = launcher.run_scan(
                mode,
                root_path,
                operation_id,
                self.registry,
                scanner_path=self._scanner(scanner_path),
                scratch_dir=self.settings.scratch_dir or None,
                progress_callback=progress_callback,
            )
            # The scanner may finish normally after a late cancel
            if flag.is_set():
                raise ScannerArtifactMissingError(
                    f"Scan {operation_id} was cancelled; discarding its output"
                )
            return parse(content)
        except ScannerArtifactMissingError as e:
            e.cancelled = flag.is_set()
            if e.cancelled:
                logger.info("Operation %s was cancelled", operation_id)
            raise
        finally:
            self.registry.unregister(operation_id)

    def cancel(self, operation_id: str) -> None:
        """Cancel an in-flight operation; unknown ids are ignored."""
        self.registry.cancel(operation_id)

    def is_cancelled(self, operation_id: str) -> bool:
        """Check whether an in-flight operation has been cancelled."""
        return self.registry.is_cancelled(operation_id)

    def delete_to_trash(
        self, paths: Sequence[str], show_progress: bool = False
    ) -> str:
        """Move files to the trash; see :func:`mediasweep.trash.delete_to_trash`."""
        return trash.delete_to_trash(paths, show_progress=show_progress)
