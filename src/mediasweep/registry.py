"""Process-wide table of in-flight operations for cancellation by id."""

import logging
import os
import platform
import signal
import subprocess
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

CancelFlag = threading.Event


@dataclass
class _Operation:
    """Per-operation state: cancel flag and the scanner's process id."""

    flag: Optional[CancelFlag] = None
    pid: Optional[int] = None


def terminate_process(pid: int) -> None:
    """
    Send a best-effort termination request to a process.

    Fire-and-forget: failures (process already gone, no permission) are
    logged and ignored.

    Args:
        pid: OS process id
    """
    try:
        if platform.system() == "Windows":
            subprocess.run(
                ["taskkill", "/PID", str(pid), "/T", "/F"],
                capture_output=True,
                check=False,
            )
        else:
            os.kill(pid, signal.SIGTERM)
        logger.debug("Sent termination request to pid %d", pid)
    except (ProcessLookupError, OSError, subprocess.SubprocessError) as e:
        logger.debug("Could not terminate pid %d: %s", pid, e)


class CancellationRegistry:
    """
    Thread-safe map from operation id to cancel flag and process id.

    One lock guards the map. It is only held for dictionary access, never
    while spawning processes, signalling them or doing file I/O.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._operations: Dict[str, _Operation] = {}

    def register(self, operation_id: str) -> CancelFlag:
        """
        Create an unset cancel flag for an operation.

        Reusing an id silently replaces the previous flag, so callers must
        supply unique ids.

        Args:
            operation_id: Caller-generated unique token

        Returns:
            The new cancel flag
        """
        flag = CancelFlag()
        with self._lock:
            entry = self._operations.setdefault(operation_id, _Operation())
            entry.flag = flag
        return flag

    def record_process(self, operation_id: str, pid: int) -> None:
        """Associate a running process with an operation, replacing any prior one."""
        with self._lock:
            entry = self._operations.setdefault(operation_id, _Operation())
            entry.pid = pid

    def clear_process(self, operation_id: str) -> None:
        """Drop the process association once the process has exited."""
        with self._lock:
            entry = self._operations.get(operation_id)
            if entry is None:
                return
            entry.pid = None
            if entry.flag is None:
                del self._operations[operation_id]

    def cancel(self, operation_id: str) -> None:
        """
        Cancel an operation.

        Sets the flag if one is registered and terminates the recorded
        process, if any. Unknown ids are a no-op.

        Args:
            operation_id: Operation to cancel
        """
        with self._lock:
            entry = self._operations.get(operation_id)
            if entry is None:
                logger.debug("Cancel requested for unknown operation %s", operation_id)
                return
            if entry.flag is not None:
                entry.flag.set()
            pid = entry.pid
            entry.pid = None
            if entry.flag is None:
                del self._operations[operation_id]

        logger.info("Cancelled operation %s", operation_id)
        if pid is not None:
            terminate_process(pid)

    def unregister(self, operation_id: str) -> None:
        """Remove an operation's flag after it completes or fails."""
        with self._lock:
            entry = self._operations.get(operation_id)
            if entry is None:
                return
            entry.flag = None
            if entry.pid is None:
                del self._operations[operation_id]

    def is_cancelled(self, operation_id: str) -> bool:
        """Check whether cancellation was requested for an operation."""
        with self._lock:
            entry = self._operations.get(operation_id)
            return bool(entry and entry.flag and entry.flag.is_set())

    def process_id(self, operation_id: str) -> Optional[int]:
        """Get the process currently associated with an operation."""
        with self._lock:
            entry = self._operations.get(operation_id)
            return entry.pid if entry else None

    def active_operations(self) -> List[str]:
        """Snapshot of operation ids currently tracked."""
        with self._lock:
            return list(self._operations)
