# biblio_export/adapters/cli/parser.py

"""Command-line argument parser configuration"""

# Standard library imports
from argparse import ArgumentParser
from argparse import Namespace
from datetime import datetime
from os.path import join
from re import sub

# Local imports
from biblio_export.infrastructure.config import get_config


def _add_export_options(parser: ArgumentParser) -> None:
    """Options shared by the work and catalogue commands"""
    parser.add_argument("--format", "-f", dest="format_id", required=True, help="Format id")
    parser.add_argument(
        "--format-version", dest="format_version", required=True, help="Format version"
    )
    parser.add_argument(
        "--output-dir",
        "-o",
        default="exports",
        help="Directory for output files (default: exports)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Wall-clock budget in seconds (default: processing.request_timeout)",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        default=None,
        help="Worker threads for validation and generation (default: from config)",
    )
    # Combined output is the config default, so only a flag to split it
    parser.add_argument(
        "--separate",
        action="store_true",
        help="Write one file per record instead of a combined document",
    )


def create_argument_parser() -> ArgumentParser:
    """Create and configure argument parser with all CLI options"""
    config = get_config()
    logging_config = config.logging
    server_config = config.server

    parser = ArgumentParser(
        prog="biblio-export",
        description="Export bibliographic metadata in industry formats",
    )
    parser.add_argument("--config", default=None, help="Path to JSON configuration file")

    # Logging options
    parser.add_argument(
        "--log-file",
        default=logging_config.log_file,
        help="Path to log file (default: logs/biblio_export_[timestamp].log)",
    )
    # File logging is enabled by default, so use store_true to disable it
    parser.add_argument("--disable-file-logging", action="store_true", help="Disable file logging")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="DEBUG" if logging_config.debug else "INFO",
        help="Console log level",
    )
    parser.add_argument("--silent", action="store_true", help="Suppress all console output")

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("formats", help="List registered formats and versions")

    work = commands.add_parser("work", help="Export one or more works")
    work.add_argument("work_ids", nargs="+", metavar="WORK_ID", help="Work identifiers")
    _add_export_options(work)

    catalogue = commands.add_parser("catalogue", help="Export a publisher's catalogue")
    catalogue.add_argument("publisher_id", metavar="PUBLISHER_ID", help="Publisher identifier")
    _add_export_options(catalogue)
    catalogue.add_argument("--no-progress", action="store_true", help="Disable the progress bar")

    # Memory monitoring options
    catalogue.add_argument(
        "--monitor-memory",
        action="store_true",
        help="Log memory usage statistics during processing",
    )
    catalogue.add_argument(
        "--memory-log-interval",
        type=int,
        default=60,
        help="Seconds between memory usage logs (default: 60)",
    )

    serve = commands.add_parser("serve", help="Run the HTTP export server")
    serve.add_argument("--host", default=server_config.host, help="Bind address")
    serve.add_argument("--port", type=int, default=server_config.port, help="Bind port")

    return parser


def generate_output_dirname(args: Namespace, label: str) -> str:
    """Generate a per-run output directory name

    Args:
        args: Parsed command-line arguments
        label: What is being exported, e.g. a publisher id

    Returns:
        Path under the output directory

    Example:
        "exports/20250201_143052_publisher-1234_onix_3.0"
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    safe_label = sub(r"[^A-Za-z0-9._-]+", "-", label).strip("-") or "export"
    name = f"{timestamp}_{safe_label}_{args.format_id}_{args.format_version}"
    return join(args.output_dir, name)
