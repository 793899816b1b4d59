# biblio_export/application/services/_export_dispatcher.py

"""Export orchestration: fetch, validate, generate and merge"""

# Standard library imports
from concurrent.futures import CancelledError
from concurrent.futures import Future
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import as_completed
from io import BytesIO
from logging import getLogger
from os import cpu_count
from typing import Callable
from typing import Iterable
from typing import Iterator
from typing import Sequence

# Local imports
from biblio_export.adapters.specifications import SpecificationRegistry
from biblio_export.adapters.specifications import get_registry
from biblio_export.application.models.export_results import BatchExportResult
from biblio_export.application.models.export_results import ExportDocument
from biblio_export.application.models.export_results import Manifest
from biblio_export.application.models.export_results import ManifestEntry
from biblio_export.application.processing.cancellation import CancellationToken
from biblio_export.application.processing.record_pipeline import RecordOutcome
from biblio_export.application.processing.record_pipeline import process_record
from biblio_export.application.processing.result_slots import ResultSlots
from biblio_export.core.domain.enums import ManifestStatus
from biblio_export.core.domain.errors import ExportCancelledError
from biblio_export.core.domain.errors import ExportError
from biblio_export.core.domain.errors import ExportTimeoutError
from biblio_export.core.domain.errors import GenerationError
from biblio_export.core.domain.errors import ValidationFailedError
from biblio_export.core.domain.issue import has_errors
from biblio_export.core.types.protocols import BatchPreparing
from biblio_export.core.types.protocols import Specification
from biblio_export.infrastructure.client import FetchResult
from biblio_export.infrastructure.client import MetadataClient
from biblio_export.infrastructure.client import WorkPager
from biblio_export.infrastructure.config import ProcessingConfig

logger = getLogger(__name__)

type RecordCallback = Callable[[ManifestEntry], None]


class _Settled:
    """Slot content: manifest entry plus the record's output"""

    __slots__ = ("entry", "fragment", "content")

    def __init__(
        self, entry: ManifestEntry, fragment: object | None = None, content: bytes | None = None
    ) -> None:
        self.entry = entry
        self.fragment = fragment
        self.content = content


class _CatalogueSource:
    """Iterates a pager, turning a failure after the first page into a partial result

    Once the token stops no further page is requested; works already fetched
    are still yielded so that each gets a manifest entry.
    """

    __slots__ = ("_pager", "_token", "fetch_error", "exhausted")

    def __init__(self, pager: WorkPager, token: CancellationToken) -> None:
        self._pager = pager
        self._token = token
        self.fetch_error: str | None = None
        self.exhausted = False

    def __iter__(self) -> Iterator[FetchResult]:
        while True:
            if self._token.stopped:
                yield from self._pager.drain()
                self.exhausted = self._pager.exhausted
                return
            try:
                result = next(self._pager)
            except StopIteration:
                self.exhausted = True
                return
            except ExportError as e:
                if self._pager.pages_fetched == 0:
                    raise
                self.fetch_error = f"{e.kind}: {e.message}"
                logger.error(
                    f"Catalogue enumeration for {self._pager.publisher_id} stopped at offset "
                    f"{self._pager.cursor}: {e.message}"
                )
                return
            yield result


class ExportDispatcher:
    """Runs single-record and batch exports

    Workers of a bounded thread pool validate and render records. Only the
    calling thread writes result slots, and output is serialized strictly
    in slot order.
    """

    __slots__ = ("_client", "_registry", "_config")

    def __init__(
        self,
        client: MetadataClient,
        registry: SpecificationRegistry | None = None,
        config: ProcessingConfig | None = None,
    ) -> None:
        self._client = client
        self._registry = registry or get_registry()
        self._config = config or ProcessingConfig()

    @property
    def registry(self) -> SpecificationRegistry:
        return self._registry

    def _token(self, token: CancellationToken | None, timeout: float | None) -> CancellationToken:
        if token is not None:
            return token
        budget = timeout if timeout is not None else self._config.request_timeout
        return CancellationToken(budget)

    def _max_workers(self) -> int:
        return self._config.max_workers or min(8, cpu_count() or 1)

    # ------------------------------------------------------------------
    # Single record
    # ------------------------------------------------------------------

    def export_work(
        self,
        work_id: str,
        format_id: str,
        version: str,
        timeout: float | None = None,
        token: CancellationToken | None = None,
    ) -> ExportDocument:
        """Export one work as a standalone document

        Raises:
            UnsupportedFormatError: Before any fetch, if the format is unknown
            NotFoundError: If the work does not exist
            ValidationFailedError: With the issues, if the work cannot be exported
            GenerationError: If the adapter fails after validation
            UpstreamUnavailableError: If the repository cannot be reached
            ExportTimeoutError: If the time budget runs out
            ExportCancelledError: If the token is cancelled
        """
        specification = self._registry.resolve(format_id, version)
        token = self._token(token, timeout)

        token.raise_if_stopped()
        work = self._client.fetch_work(work_id)

        token.raise_if_stopped()
        issues = specification.validate(work)
        if has_errors(issues):
            logger.info(f"Work {work_id} rejected for {format_id} {version}")
            raise ValidationFailedError(work_id, issues)

        token.raise_if_stopped()
        buffer = BytesIO()
        try:
            specification.generate(work, buffer)
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError(f"Generation raised {type(e).__name__}: {e}") from e

        return ExportDocument(
            format_id=specification.format_id,
            version=specification.version,
            content_type=specification.content_type,
            file_name=f"{work_id}.{specification.file_extension}",
            content=buffer.getvalue(),
            work_id=work_id,
        )

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    def export_catalogue(
        self,
        publisher_id: str,
        format_id: str,
        version: str,
        combined: bool | None = None,
        timeout: float | None = None,
        token: CancellationToken | None = None,
        on_record: RecordCallback | None = None,
    ) -> BatchExportResult:
        """Export every work of a publisher in catalogue order

        Raises:
            UnsupportedFormatError: If the format is unknown
            NotFoundError: If the publisher does not exist
            UpstreamUnavailableError: If the first catalogue page cannot be fetched
        """
        specification = self._registry.resolve(format_id, version)
        token = self._token(token, timeout)

        token.raise_if_stopped()
        self._client.fetch_publisher(publisher_id)
        source = _CatalogueSource(self._client.fetch_works_by_publisher(publisher_id), token)

        logger.info(f"Exporting catalogue of publisher {publisher_id} as {format_id} {version}")
        result = self._run_batch(specification, source, combined, token, on_record)
        complete = source.exhausted and source.fetch_error is None
        return result.model_copy(update={"complete": complete, "fetch_error": source.fetch_error})

    def export_works(
        self,
        work_ids: Sequence[str],
        format_id: str,
        version: str,
        combined: bool | None = None,
        timeout: float | None = None,
        token: CancellationToken | None = None,
        on_record: RecordCallback | None = None,
    ) -> BatchExportResult:
        """Export explicit works in request order

        A repeated id is fetched once but keeps one manifest entry per request
        position.

        Raises:
            UnsupportedFormatError: If the format is unknown
        """
        specification = self._registry.resolve(format_id, version)
        token = self._token(token, timeout)

        token.raise_if_stopped()
        fetched = self._client.fetch_works_by_ids(work_ids)
        results = [fetched[work_id] for work_id in work_ids]
        logger.info(f"Exporting {len(results)} works as {format_id} {version}")
        return self._run_batch(specification, results, combined, token, on_record)

    def _run_batch(
        self,
        specification: Specification,
        source: Iterable[FetchResult],
        combined: bool | None,
        token: CancellationToken,
        on_record: RecordCallback | None,
    ) -> BatchExportResult:
        combined = self._config.default_combined if combined is None else combined
        slots: ResultSlots[_Settled] = ResultSlots()
        work_ids: list[str] = []

        def settle(index: int, settled: _Settled) -> None:
            slots.fill(index, settled)
            if on_record is not None:
                on_record(settled.entry)

        executor = ThreadPoolExecutor(max_workers=self._max_workers(), thread_name_prefix="export")
        future_to_index: dict[Future[RecordOutcome], int] = {}
        try:
            # Fetch phase: reserve a slot per record in source order; once stopped,
            # remaining records keep their slot but are not submitted
            for result in source:
                index = slots.reserve()
                work_ids.append(result.work_id)
                if token.stopped:
                    continue
                if result.work is None:
                    error = result.error or ExportError("Work could not be fetched")
                    settle(index, _Settled(self._failed_entry(index, result.work_id, error)))
                    continue
                future = executor.submit(
                    process_record, index, result.work, specification, token, combined
                )
                future_to_index[future] = index

            # Collect phase: only this thread writes slots
            try:
                for future in as_completed(future_to_index, timeout=token.remaining()):
                    index = future_to_index[future]
                    settle(index, self._settle_future(future, index, work_ids[index], token))
            except TimeoutError:
                logger.warning("Batch deadline reached with records still in progress")
        finally:
            executor.shutdown(wait=not token.stopped, cancel_futures=token.stopped)

        for index in slots.unresolved():
            status = token.stop_status or ManifestStatus.TIMED_OUT
            entry = ManifestEntry(
                index=index,
                work_id=work_ids[index],
                status=status,
                error_kind=status.value,
                message="Not processed before the request stopped",
            )
            settle(index, _Settled(entry))

        result = self._serialize(specification, slots.in_order(), combined)
        logger.info(f"Batch finished: {result.manifest.counts}")
        return result

    @staticmethod
    def _failed_entry(index: int, work_id: str, error: ExportError) -> ManifestEntry:
        return ManifestEntry(
            index=index,
            work_id=work_id,
            status=ManifestStatus.FAILED,
            error_kind=error.kind,
            message=error.message,
        )

    def _settle_future(
        self,
        future: Future[RecordOutcome],
        index: int,
        work_id: str,
        token: CancellationToken,
    ) -> _Settled:
        try:
            outcome = future.result()
        except (ExportCancelledError, ExportTimeoutError, CancelledError) as e:
            status = token.stop_status or (
                ManifestStatus.TIMED_OUT
                if isinstance(e, ExportTimeoutError)
                else ManifestStatus.CANCELLED
            )
            entry = ManifestEntry(
                index=index,
                work_id=work_id,
                status=status,
                error_kind=status.value,
                message="Stopped before completion",
            )
            return _Settled(entry)

        issues = tuple(outcome.issues)
        status = outcome.status
        if status is ManifestStatus.FAILED and outcome.error is not None:
            failed = self._failed_entry(index, work_id, outcome.error)
            return _Settled(failed.model_copy(update={"issues": issues}))
        if status is ManifestStatus.REJECTED:
            errors = [issue.field for issue in issues if issue.is_error]
            entry = ManifestEntry(
                index=index,
                work_id=work_id,
                status=status,
                error_kind=ValidationFailedError.kind,
                message=f"Missing or invalid: {', '.join(errors)}",
                issues=issues,
            )
            return _Settled(entry)
        entry = ManifestEntry(index=index, work_id=work_id, status=status, issues=issues)
        return _Settled(entry, outcome.fragment, outcome.content)

    @staticmethod
    def _manifest(specification: Specification, settled: list[_Settled]) -> Manifest:
        return Manifest(
            format_id=specification.format_id,
            version=specification.version,
            entries=tuple(item.entry for item in settled),
        )

    @staticmethod
    def _assemble(specification: Specification, fragments: Sequence[object]) -> bytes:
        buffer = BytesIO()
        specification.assemble(fragments, buffer)
        return buffer.getvalue()

    def _fail_generated(self, item: _Settled, error: Exception) -> None:
        """Turn a generated record whose output cannot be written into a failure"""
        if not isinstance(error, GenerationError):
            error = GenerationError(f"Assembly raised {type(error).__name__}: {error}")
        failed = self._failed_entry(item.entry.index, item.entry.work_id, error)
        item.entry = failed.model_copy(update={"issues": item.entry.issues})
        item.fragment = None
        item.content = None

    def _assemble_combined(
        self, specification: Specification, generated: list[_Settled]
    ) -> bytes | None:
        """Combined document of the generated records

        When assembly fails, each record is assembled alone; the records that
        still fail are marked FAILED and the document is built from the rest.
        """
        try:
            return self._assemble(specification, [item.fragment for item in generated])
        except Exception as e:
            logger.warning(f"Combined assembly failed ({type(e).__name__}); isolating records")

        kept = []
        for item in generated:
            try:
                self._assemble(specification, [item.fragment])
            except Exception as e:
                logger.error(f"Assembly of {item.entry.work_id} failed: {e}")
                self._fail_generated(item, e)
                continue
            kept.append(item)
        if not kept:
            return None

        try:
            return self._assemble(specification, [item.fragment for item in kept])
        except Exception as e:
            logger.error(f"Combined assembly failed without a single faulty record: {e}")
            for item in kept:
                self._fail_generated(item, e)
            return None

    def _prepare_separate(self, specification: Specification, generated: list[_Settled]) -> None:
        """Rewrite per-record documents whose content depends on the whole batch"""
        if not isinstance(specification, BatchPreparing) or not generated:
            return
        prepared = specification.prepare_batch([item.fragment for item in generated])
        for item, fragment in zip(generated, prepared):
            try:
                item.content = self._assemble(specification, [fragment])
            except Exception as e:
                logger.error(f"Assembly of {item.entry.work_id} failed: {e}")
                self._fail_generated(item, e)

    def _serialize(
        self,
        specification: Specification,
        settled: list[_Settled],
        combined: bool,
    ) -> BatchExportResult:
        """Final pass in strict index order"""
        generated = [item for item in settled if item.entry.status is ManifestStatus.GENERATED]

        if combined:
            document = None
            content = self._assemble_combined(specification, generated) if generated else None
            if content is not None:
                document = ExportDocument(
                    format_id=specification.format_id,
                    version=specification.version,
                    content_type=specification.content_type,
                    file_name=f"export.{specification.file_extension}",
                    content=content,
                )
            manifest = self._manifest(specification, settled)
            return BatchExportResult(manifest=manifest, combined=True, document=document)

        self._prepare_separate(specification, generated)
        manifest = self._manifest(specification, settled)
        generated = [item for item in settled if item.entry.status is ManifestStatus.GENERATED]
        documents = []
        entries = list(manifest.entries)
        for item in generated:
            extension = specification.file_extension
            file_name = f"{item.entry.index:05d}_{item.entry.work_id}.{extension}"
            documents.append(
                ExportDocument(
                    format_id=specification.format_id,
                    version=specification.version,
                    content_type=specification.content_type,
                    file_name=file_name,
                    content=item.content or b"",
                    work_id=item.entry.work_id,
                )
            )
            entries[item.entry.index] = item.entry.model_copy(update={"file_name": file_name})
        manifest = manifest.model_copy(update={"entries": tuple(entries)})
        return BatchExportResult(manifest=manifest, combined=False, documents=tuple(documents))
