"""Launch the czkawka scanner as a subprocess and collect its result file."""

import logging
import re
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, List, Literal, Optional

from .config import DEFAULT_SCANNER
from .errors import ScannerArtifactMissingError, ScannerError, ScannerNotFoundError
from .registry import CancellationRegistry, terminate_process

logger = logging.getLogger(__name__)

ScanMode = Literal["dup", "image"]

DUPLICATE_MODE: ScanMode = "dup"
SIMILAR_MODE: ScanMode = "image"

PROGRESS_MESSAGES = {
    DUPLICATE_MODE: "Running duplicate scan...",
    SIMILAR_MODE: "Scanning for similar images...",
}

# Percentage reported when the scanner gives no progress information
INDETERMINATE = -1

ProgressCallback = Callable[[str, int], None]


def artifact_path(
    mode: ScanMode, operation_id: str, scratch_dir: Optional[str] = None
) -> Path:
    """
    Get the result file location for a scan.

    The name includes the mode and operation id so concurrent scans never
    write to the same file.

    Args:
        mode: Scanner mode token
        operation_id: Operation the scan belongs to
        scratch_dir: Directory for result files (default: system temp dir)

    Returns:
        Path the scanner should write its JSON result to
    """
    safe_id = re.sub(r"[^A-Za-z0-9_-]", "_", operation_id)
    base = Path(scratch_dir) if scratch_dir else Path(tempfile.gettempdir())
    return base / f"mediasweep_{mode}_results_{safe_id}.json"


def build_command(
    scanner: str, mode: ScanMode, root_path: str, output_path: Path
) -> List[str]:
    """Build the scanner invocation: ``<scanner> <mode> -d <root> -C <output>``."""
    return [scanner, mode, "-d", root_path, "-C", str(output_path)]


def check_scanner_available(scanner_path: Optional[str] = None) -> str:
    """
    Check that the scanner can be executed.

    Args:
        scanner_path: Scanner executable (default: czkawka_cli on PATH)

    Returns:
        Message with the scanner's reported version

    Raises:
        ScannerNotFoundError: If the executable cannot be spawned
        ScannerError: If it runs but reports failure
    """
    scanner = scanner_path or DEFAULT_SCANNER
    try:
        result = subprocess.run(
            [scanner, "--version"],
            capture_output=True,
            text=True,
            timeout=30,
            check=False,
        )
    except OSError as e:
        raise ScannerNotFoundError(
            f"{scanner} not found. Please install it or set the scanner path "
            f"in the settings. Error: {e}"
        ) from e
    except subprocess.TimeoutExpired as e:
        raise ScannerError(f"{scanner} --version timed out") from e

    if result.returncode != 0:
        raise ScannerError(f"{scanner} failed: {result.stderr.strip()}")

    return f"{scanner} found: {result.stdout.strip()}"


def run_scan(
    mode: ScanMode,
    root_path: str,
    operation_id: str,
    registry: CancellationRegistry,
    scanner_path: Optional[str] = None,
    scratch_dir: Optional[str] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> str:
    """
    Run the scanner on a directory and return the contents of its result file.

    Blocks the calling thread until the scanner exits. While it runs, its
    process id is recorded in the registry so the scan can be cancelled.
    The scanner's exit code is not trusted: a missing or empty result file
    is the failure signal.

    Args:
        mode: DUPLICATE_MODE or SIMILAR_MODE
        root_path: Directory to scan (not checked here; the scanner reports it)
        operation_id: Id under which the process is registered
        registry: Shared cancellation registry
        scanner_path: Scanner executable (default: czkawka_cli on PATH)
        scratch_dir: Directory for the result file (default: system temp dir)
        progress_callback: Optional callback(message: str, percentage: int)

    Returns:
        Raw JSON text written by the scanner

    Raises:
        ValueError: If mode is unknown
        ScannerNotFoundError: If the scanner cannot be spawned
        ScannerArtifactMissingError: If no usable result file was written,
            including when the operation is cancelled before the scanner starts
    """
    if mode not in PROGRESS_MESSAGES:
        raise ValueError(f"Unknown scan mode: {mode}")

    scanner = scanner_path or DEFAULT_SCANNER
    output_path = artifact_path(mode, operation_id, scratch_dir)

    # A leftover file from an earlier run must not pass for this run's result
    output_path.unlink(missing_ok=True)

    if progress_callback:
        progress_callback(PROGRESS_MESSAGES[mode], INDETERMINATE)

    if registry.is_cancelled(operation_id):
        raise ScannerArtifactMissingError(
            f"{scanner} did not produce output file: scan cancelled before start"
        )

    cmd = build_command(scanner, mode, root_path, output_path)
    try:
        process = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
        )
    except OSError as e:
        raise ScannerNotFoundError(f"Failed to spawn {scanner}: {e}") from e

    logger.info("Started %s scan of %s (pid %d)", mode, root_path, process.pid)
    registry.record_process(operation_id, process.pid)
    try:
        # A cancel that arrived before the pid was recorded only set the flag
        if registry.is_cancelled(operation_id):
            terminate_process(process.pid)
        _stdout, stderr = process.communicate()
    finally:
        registry.clear_process(operation_id)

    if process.returncode != 0:
        logger.warning(
            "%s exited with code %d: %s",
            scanner,
            process.returncode,
            (stderr or "").strip()[:500],
        )

    return _read_artifact(output_path, scanner, process.returncode, stderr)


def _read_artifact(
    output_path: Path, scanner: str, returncode: int, stderr: Optional[str]
) -> str:
    """Read and remove the scanner's result file."""
    details = f"exit code {returncode}"
    if stderr and stderr.strip():
        details += f", stderr: {stderr.strip()[:500]}"

    try:
        content = output_path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise ScannerArtifactMissingError(
            f"{scanner} did not produce output file. Is {scanner} installed? "
            f"Error: {e} ({details})"
        ) from e

    try:
        output_path.unlink()
    except OSError as e:
        logger.debug("Could not remove %s: %s", output_path, e)

    if not content:
        raise ScannerArtifactMissingError(
            f"{scanner} produced an empty output file. Is {scanner} installed "
            f"and able to read the directory? ({details})"
        )

    return content
