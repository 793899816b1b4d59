# biblio_export/shared/utils/memory_utils.py

"""Memory monitoring for long catalogue exports"""

# Standard library imports
from logging import getLogger
from time import time

# Third party imports
from psutil import Process
from psutil import virtual_memory

logger = getLogger(__name__)

BYTES_PER_MB = 1024**2


class MemoryMonitor:
    """Track and periodically log process memory during an export

    Peak usage is kept so the run summary can report it.
    """

    def __init__(self, log_interval: int = 60) -> None:
        """Initialize memory monitor

        Args:
            log_interval: Seconds between memory usage logs
        """
        self.process = Process()
        self.log_interval = log_interval
        self.last_log_time = 0.0
        self.peak_mb = 0.0
        self.start_time = time()

        initial = self.get_memory_usage()
        logger.info(f"Memory monitoring initialized: {initial['process_mb']:.0f}MB process memory")

    def get_memory_usage(self) -> dict[str, float]:
        """Current process and system memory figures

        Returns:
            Dictionary with process_mb, system_percent, available_mb and peak_mb
        """
        process_mb = self.process.memory_info().rss / BYTES_PER_MB
        self.peak_mb = max(self.peak_mb, process_mb)
        system = virtual_memory()
        return {
            "process_mb": process_mb,
            "system_percent": system.percent,
            "available_mb": system.available / BYTES_PER_MB,
            "peak_mb": self.peak_mb,
        }

    def _log(self, context: str = "") -> None:
        stats = self.get_memory_usage()
        elapsed_minutes = (time() - self.start_time) / 60
        context_str = f" ({context})" if context else ""
        logger.info(
            f"Memory [{elapsed_minutes:.1f}min]{context_str}: {stats['process_mb']:.0f}MB process, "
            f"{stats['system_percent']:.1f}% system used, Peak: {self.peak_mb:.0f}MB"
        )

    def log_if_needed(self) -> None:
        """Log memory stats if the interval has passed since the last log"""
        now = time()
        if now - self.last_log_time >= self.log_interval:
            self._log()
            self.last_log_time = now

    def force_log(self, context: str = "") -> None:
        self._log(context)

    def get_final_summary(self) -> str:
        final = self.get_memory_usage()
        elapsed = time() - self.start_time
        return (
            f"Memory Summary: Peak {final['peak_mb']:.0f}MB, "
            f"Final {final['process_mb']:.0f}MB, "
            f"Runtime {elapsed / 60:.1f} minutes"
        )
