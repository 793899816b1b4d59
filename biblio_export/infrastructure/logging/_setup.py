# biblio_export/infrastructure/logging/_setup.py

"""Logging configuration and setup for CLI and server"""

# Standard library imports
from datetime import datetime
from logging import DEBUG
from logging import FileHandler
from logging import Formatter
from logging import INFO
from logging import StreamHandler
from logging import getLevelNamesMapping
from logging import getLogger
from os import makedirs
from os.path import exists


def get_default_log_path() -> str:
    """Generate default log file path with timestamp"""
    log_dir = "logs"
    if not exists(log_dir):
        makedirs(log_dir)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{log_dir}/biblio_export_{timestamp}.log"


def set_up_logging(
    log_file: str | None = None,
    log_level: str = "INFO",
    silent: bool = False,
    disable_file_logging: bool = False,
) -> str | None:
    """Configure logging for the application

    Args:
        log_file: Path to log file (auto-generated if None and file logging enabled)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        silent: If True, suppress console output
        disable_file_logging: If True, disable file logging

    Returns:
        Path to log file if file logging is enabled, None otherwise
    """
    level = getLevelNamesMapping().get(log_level.upper(), INFO)

    root_logger = getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []

    console_formatter = Formatter("%(asctime)s - %(levelname)s - %(message)s")
    file_formatter = Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not silent:
        console_handler = StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(console_formatter)
        root_logger.addHandler(console_handler)

    if not disable_file_logging:
        if log_file is None:
            log_file = get_default_log_path()

        file_handler = FileHandler(log_file)
        file_handler.setLevel(DEBUG)  # Always log debug to file
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

        getLogger(__name__).info(f"Logging to file: {log_file}")
        return log_file

    return None


def log_export_summary(
    label: str,
    format_label: str,
    start_time: float,
    end_time: float,
    counts: dict[str, int],
    complete: bool = True,
    output_path: str | None = None,
    log_file: str | None = None,
) -> None:
    """Log final export summary with statistics

    Args:
        label: What was exported (e.g. "publisher 1234")
        format_label: Format id and version
        start_time: Export start time
        end_time: Export end time
        counts: Manifest status value -> record count
        complete: False when enumeration stopped before the catalogue end
        output_path: Where the output was written
        log_file: Path to log file (if any)
    """
    logger = getLogger(__name__)

    processing_time = end_time - start_time
    minutes = int(processing_time // 60)
    seconds = int(processing_time % 60)
    total_records = sum(counts.values())
    records_per_minute = total_records / processing_time * 60 if processing_time > 0 else 0

    summary_lines = ["\n" + "=" * 80, "EXPORT COMPLETE", "=" * 80]
    summary_lines.extend(
        [
            f"Exported: {label} as {format_label}",
            f"Total records: {total_records:,}",
            f"Processing time: {minutes}m {seconds}s",
            f"Processing rate: {records_per_minute:.0f} records/minute",
        ]
    )

    if total_records > 0:
        summary_lines.extend(["", "Record Status:"])
        for status, count in counts.items():
            if count:
                pct = count / total_records * 100
                status_label = status.replace("_", " ").title()
                summary_lines.append(f"  {status_label}: {count:,} ({pct:.1f}%)")

    if not complete:
        summary_lines.extend(
            ["", "WARNING: catalogue enumeration stopped early; output is partial"]
        )

    summary_lines.extend(["", "Output:"])
    if output_path:
        summary_lines.append(f"  Results: {output_path}")
    if log_file:
        summary_lines.append(f"  Log: {log_file}")
    summary_lines.append("=" * 80)

    logger.info("\n".join(summary_lines))
