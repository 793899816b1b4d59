# tests/unit/application/processing/test_cancellation.py

"""Tests for request cancellation and deadlines"""

# Third party imports
import pytest

# Local imports
from biblio_export.application.processing import CancellationToken
from biblio_export.core.domain.enums import ManifestStatus
from biblio_export.core.domain.errors import ExportCancelledError
from biblio_export.core.domain.errors import ExportTimeoutError


class FakeClock:
    """Monotonic clock advanced by hand"""

    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestCancellationToken:
    def test_fresh_token_not_stopped(self):
        token = CancellationToken()
        assert not token.stopped
        assert token.stop_status is None
        assert token.remaining() is None
        token.raise_if_stopped()

    def test_cancel(self):
        token = CancellationToken()
        token.cancel()
        assert token.cancelled
        assert token.stop_status is ManifestStatus.CANCELLED
        with pytest.raises(ExportCancelledError):
            token.raise_if_stopped()

    def test_deadline(self):
        clock = FakeClock()
        token = CancellationToken(timeout=5.0, clock=clock)
        assert token.remaining() == 5.0
        clock.now += 4.0
        assert not token.timed_out
        assert token.remaining() == 1.0
        clock.now += 1.0
        assert token.timed_out
        assert token.remaining() == 0.0
        assert token.stop_status is ManifestStatus.TIMED_OUT
        with pytest.raises(ExportTimeoutError):
            token.raise_if_stopped()

    def test_cancellation_wins_over_timeout(self):
        clock = FakeClock()
        token = CancellationToken(timeout=1.0, clock=clock)
        clock.now += 10.0
        token.cancel()
        assert token.stop_status is ManifestStatus.CANCELLED
        with pytest.raises(ExportCancelledError):
            token.raise_if_stopped()
