# biblio_export/adapters/cli/main.py

"""
Bibliographic Export Engine - CLI Main Module

Command-line interface for exporting works and publisher catalogues to
files, listing formats and running the HTTP export server.
"""

# Standard library imports
from argparse import Namespace
from json import dumps
from logging import getLogger
from os import makedirs
from os.path import join
from time import time
from typing import Sequence

# Local imports
from biblio_export.adapters.cli.parser import create_argument_parser
from biblio_export.adapters.cli.parser import generate_output_dirname
from biblio_export.adapters.specifications import build_registry
from biblio_export.application.models.export_results import BatchExportResult
from biblio_export.application.models.export_results import ExportDocument
from biblio_export.application.models.export_results import ManifestEntry
from biblio_export.application.services import ExportDispatcher
from biblio_export.core.domain.errors import ExportError
from biblio_export.core.domain.errors import ValidationFailedError
from biblio_export.infrastructure.client import MetadataClient
from biblio_export.infrastructure.config import ConfigLoader
from biblio_export.infrastructure.config import get_config
from biblio_export.infrastructure.logging import ProgressBarManager
from biblio_export.infrastructure.logging import log_export_summary
from biblio_export.infrastructure.logging import setup_logging

logger = getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_PARTIAL = 2


def write_document(directory: str, document: ExportDocument) -> str:
    makedirs(directory, exist_ok=True)
    path = join(directory, document.file_name)
    with open(path, "wb") as f:
        f.write(document.content)
    return path


def write_batch(directory: str, result: BatchExportResult) -> str:
    """Write the manifest and every generated document into a directory

    Returns:
        Path of the written manifest
    """
    makedirs(directory, exist_ok=True)
    if result.document is not None:
        write_document(directory, result.document)
    for document in result.documents:
        write_document(directory, document)

    manifest_path = join(directory, "manifest.json")
    with open(manifest_path, "w", encoding="utf-8") as f:
        f.write(dumps(result.to_dict(), indent=2, ensure_ascii=False))
    return manifest_path


def _list_formats(config: ConfigLoader) -> int:
    for descriptor in build_registry(config).list_specifications():
        print(
            f"{descriptor.format_id:<10} {descriptor.version:<7} {descriptor.name} "
            f"({descriptor.content_type}, .{descriptor.file_extension})"
        )
    return EXIT_OK


def _serve(args: Namespace, config: ConfigLoader) -> int:
    # Third party imports
    import uvicorn

    # Local imports
    from biblio_export.adapters.api import get_app

    logger.info(f"Starting export server on {args.host}:{args.port}")
    uvicorn.run(get_app(config=config), host=args.host, port=args.port)
    return EXIT_OK


def _batch_exit_code(result: BatchExportResult) -> int:
    if result.generated == result.manifest.total and result.complete:
        return EXIT_OK
    return EXIT_PARTIAL


def _export_works(
    args: Namespace, dispatcher: ExportDispatcher, log_file: str | None, start_time: float
) -> int:
    format_label = f"{args.format_id} {args.format_version}"

    if len(args.work_ids) == 1 and not args.separate:
        work_id = args.work_ids[0]
        try:
            document = dispatcher.export_work(
                work_id, args.format_id, args.format_version, timeout=args.timeout
            )
        except ValidationFailedError as e:
            logger.error(f"Work {work_id} cannot be exported as {format_label}:")
            for issue in e.issues:
                logger.error(f"  [{issue.severity.value}] {issue.field}: {issue.message}")
            return EXIT_FAILED
        path = write_document(args.output_dir, document)
        logger.info(f"Wrote {document.size:,} bytes to {path}")
        return EXIT_OK

    result = dispatcher.export_works(
        args.work_ids,
        args.format_id,
        args.format_version,
        combined=not args.separate,
        timeout=args.timeout,
    )
    directory = generate_output_dirname(args, "works")
    manifest_path = write_batch(directory, result)
    log_export_summary(
        label=f"{len(args.work_ids)} works",
        format_label=format_label,
        start_time=start_time,
        end_time=time(),
        counts=result.manifest.counts,
        output_path=manifest_path,
        log_file=log_file,
    )
    return _batch_exit_code(result)


def _export_catalogue(
    args: Namespace, dispatcher: ExportDispatcher, log_file: str | None, start_time: float
) -> int:
    format_label = f"{args.format_id} {args.format_version}"

    memory_monitor = None
    if args.monitor_memory:
        # Local imports
        from biblio_export.shared.utils.memory_utils import MemoryMonitor

        memory_monitor = MemoryMonitor(log_interval=args.memory_log_interval)
        logger.info(f"Memory monitoring enabled (interval: {args.memory_log_interval}s)")

    progress = ProgressBarManager(enabled=not (args.no_progress or args.silent))

    def on_record(entry: ManifestEntry) -> None:
        progress.advance("records")
        if memory_monitor:
            memory_monitor.log_if_needed()

    with progress.task_context(
        "records", description=f"Exporting {args.publisher_id} as {format_label}"
    ):
        result = dispatcher.export_catalogue(
            args.publisher_id,
            args.format_id,
            args.format_version,
            combined=not args.separate,
            timeout=args.timeout,
            on_record=on_record,
        )

    directory = generate_output_dirname(args, f"publisher-{args.publisher_id}")
    manifest_path = write_batch(directory, result)
    if result.fetch_error:
        logger.warning(f"Catalogue is incomplete: {result.fetch_error}")

    log_export_summary(
        label=f"publisher {args.publisher_id}",
        format_label=format_label,
        start_time=start_time,
        end_time=time(),
        counts=result.manifest.counts,
        complete=result.complete,
        output_path=manifest_path,
        log_file=log_file,
    )
    if memory_monitor:
        logger.info(memory_monitor.get_final_summary())
    return _batch_exit_code(result)


def main(argv: Sequence[str] | None = None) -> int:
    """Main CLI entry point

    Returns:
        0 when everything was exported, 2 for a partial batch, 1 on failure
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    config = ConfigLoader(args.config) if args.config else get_config()

    log_file = setup_logging(
        log_file=args.log_file,
        log_level=args.log_level,
        silent=args.silent,
        disable_file_logging=args.disable_file_logging,
    )

    if args.command == "formats":
        return _list_formats(config)
    if args.command == "serve":
        return _serve(args, config)

    processing = config.processing
    if args.max_workers is not None:
        processing = processing.model_copy(update={"max_workers": args.max_workers})

    start_time = time()
    try:
        with MetadataClient(config.client) as client:
            dispatcher = ExportDispatcher(client, build_registry(config), processing)
            if args.command == "work":
                return _export_works(args, dispatcher, log_file, start_time)
            return _export_catalogue(args, dispatcher, log_file, start_time)
    except ExportError as e:
        logger.error(f"Export failed ({e.kind}): {e.message}")
        return EXIT_FAILED


if __name__ == "__main__":
    raise SystemExit(main())
