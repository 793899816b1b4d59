# biblio_export/application/processing/cancellation.py

"""Per-request cancellation signal with an optional wall-clock deadline"""

# Standard library imports
from threading import Event
from time import monotonic
from typing import Callable

# Local imports
from biblio_export.core.domain.enums import ManifestStatus
from biblio_export.core.domain.errors import ExportCancelledError
from biblio_export.core.domain.errors import ExportTimeoutError


class CancellationToken:
    """Checked by every phase of a request

    Explicit cancellation wins over an expired deadline when both apply.
    Tokens are never shared between requests.
    """

    __slots__ = ("_event", "_deadline", "_clock")

    def __init__(self, timeout: float | None = None, clock: Callable[[], float] = monotonic):
        """Initialize the token

        Args:
            timeout: Wall-clock budget in seconds from now, None for no deadline
            clock: Monotonic time source
        """
        self._event = Event()
        self._clock = clock
        self._deadline = clock() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def timed_out(self) -> bool:
        return self._deadline is not None and self._clock() >= self._deadline

    @property
    def stopped(self) -> bool:
        return self.cancelled or self.timed_out

    @property
    def stop_status(self) -> ManifestStatus | None:
        """Manifest status for records left unresolved by a stop"""
        if self.cancelled:
            return ManifestStatus.CANCELLED
        if self.timed_out:
            return ManifestStatus.TIMED_OUT
        return None

    def remaining(self) -> float | None:
        """Seconds until the deadline, None without one"""
        if self._deadline is None:
            return None
        return max(self._deadline - self._clock(), 0.0)

    def raise_if_stopped(self) -> None:
        """Phase boundary check

        Raises:
            ExportCancelledError: If cancel() was called
            ExportTimeoutError: If the deadline has passed
        """
        if self.cancelled:
            raise ExportCancelledError("Export cancelled")
        if self.timed_out:
            raise ExportTimeoutError("Export exceeded its time budget")
