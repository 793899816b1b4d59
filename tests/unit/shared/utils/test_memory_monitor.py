# tests/unit/shared/utils/test_memory_monitor.py

"""Tests for memory monitoring utilities"""

# Standard library imports
from unittest.mock import Mock
from unittest.mock import patch

# Local imports
from biblio_export.shared.utils.memory_utils import MemoryMonitor

MB = 1024 * 1024


def _mock_memory(mock_process_class: Mock, mock_virtual_memory: Mock, rss_values: list[int]):
    mock_process = Mock()
    mock_process.memory_info.side_effect = [Mock(rss=value) for value in rss_values]
    mock_process_class.return_value = mock_process
    mock_virtual_memory.return_value = Mock(percent=42.0, available=2048 * MB)


class TestMemoryMonitor:
    """Test memory monitoring functionality"""

    @patch("biblio_export.shared.utils.memory_utils.Process")
    @patch("biblio_export.shared.utils.memory_utils.virtual_memory")
    def test_get_memory_usage(self, mock_virtual_memory: Mock, mock_process_class: Mock):
        """Test get_memory_usage reports megabytes"""
        _mock_memory(mock_process_class, mock_virtual_memory, [100 * MB, 150 * MB])

        monitor = MemoryMonitor(log_interval=30)
        stats = monitor.get_memory_usage()

        assert monitor.log_interval == 30
        assert stats["process_mb"] == 150.0
        assert stats["system_percent"] == 42.0
        assert stats["available_mb"] == 2048.0
        assert stats["peak_mb"] == 150.0

    @patch("biblio_export.shared.utils.memory_utils.Process")
    @patch("biblio_export.shared.utils.memory_utils.virtual_memory")
    def test_peak_survives_decrease(self, mock_virtual_memory: Mock, mock_process_class: Mock):
        _mock_memory(mock_process_class, mock_virtual_memory, [100 * MB, 300 * MB, 200 * MB])

        monitor = MemoryMonitor()
        monitor.get_memory_usage()
        stats = monitor.get_memory_usage()

        assert stats["process_mb"] == 200.0
        assert stats["peak_mb"] == 300.0

    @patch("biblio_export.shared.utils.memory_utils.Process")
    @patch("biblio_export.shared.utils.memory_utils.virtual_memory")
    def test_log_if_needed_respects_interval(
        self, mock_virtual_memory: Mock, mock_process_class: Mock
    ):
        _mock_memory(mock_process_class, mock_virtual_memory, [100 * MB] * 5)

        monitor = MemoryMonitor(log_interval=3600)
        with patch.object(monitor, "_log") as mock_log:
            monitor.log_if_needed()
            monitor.log_if_needed()
        assert mock_log.call_count == 1

    @patch("biblio_export.shared.utils.memory_utils.Process")
    @patch("biblio_export.shared.utils.memory_utils.virtual_memory")
    def test_final_summary(self, mock_virtual_memory: Mock, mock_process_class: Mock):
        _mock_memory(mock_process_class, mock_virtual_memory, [64 * MB, 128 * MB])

        summary = MemoryMonitor().get_final_summary()
        assert summary.startswith("Memory Summary: Peak 128MB, Final 128MB")
