# biblio_export/application/processing/record_pipeline.py

"""Per-record validate and generate steps run by batch workers"""

# Standard library imports
from io import BytesIO
from logging import getLogger

# Local imports
from biblio_export.application.processing.cancellation import CancellationToken
from biblio_export.core.domain.enums import ManifestStatus
from biblio_export.core.domain.enums import RecordState
from biblio_export.core.domain.errors import ExportError
from biblio_export.core.domain.errors import GenerationError
from biblio_export.core.domain.issue import Issue
from biblio_export.core.domain.issue import has_errors
from biblio_export.core.domain.work import Work
from biblio_export.core.types.protocols import BatchPreparing
from biblio_export.core.types.protocols import Specification

logger = getLogger(__name__)

# Legal moves of the per-record state machine
TRANSITIONS: dict[RecordState, frozenset[RecordState]] = {
    RecordState.FETCHED: frozenset({RecordState.VALIDATING}),
    RecordState.VALIDATING: frozenset({RecordState.VALID, RecordState.INVALID}),
    RecordState.VALID: frozenset({RecordState.GENERATING}),
    RecordState.INVALID: frozenset({RecordState.REJECTED}),
    RecordState.GENERATING: frozenset({RecordState.GENERATED}),
    RecordState.GENERATED: frozenset(),
    RecordState.REJECTED: frozenset(),
}


class RecordOutcome:
    """What a worker produced for one record"""

    __slots__ = (
        "index",
        "work_id",
        "state",
        "history",
        "issues",
        "fragment",
        "content",
        "error",
    )

    def __init__(self, index: int, work_id: str) -> None:
        self.index = index
        self.work_id = work_id
        self.state = RecordState.FETCHED
        self.history: list[RecordState] = [RecordState.FETCHED]
        self.issues: list[Issue] = []
        self.fragment: object | None = None
        self.content: bytes | None = None
        self.error: ExportError | None = None

    def advance(self, state: RecordState) -> None:
        if state not in TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal record transition {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    @property
    def status(self) -> ManifestStatus:
        if self.error is not None:
            return ManifestStatus.FAILED
        if self.state is RecordState.GENERATED:
            return ManifestStatus.GENERATED
        if self.state is RecordState.REJECTED:
            return ManifestStatus.REJECTED
        raise RuntimeError(f"Record {self.work_id} has no terminal outcome ({self.state.value})")


def process_record(
    index: int,
    work: Work,
    specification: Specification,
    token: CancellationToken,
    combined: bool,
) -> RecordOutcome:
    """Validate and render one work

    Generation faults are captured in the outcome. Cancellation and timeout
    propagate so that the collector can mark the record accordingly.

    Args:
        index: Record position in the batch
        work: Fetched snapshot
        specification: Target format
        token: Request cancellation token
        combined: Render a fragment for assembly instead of a standalone document

    Raises:
        ExportCancelledError: If the request was cancelled before a phase
        ExportTimeoutError: If the request deadline passed before a phase
    """
    outcome = RecordOutcome(index, work.work_id)

    token.raise_if_stopped()
    outcome.advance(RecordState.VALIDATING)
    try:
        outcome.issues = specification.validate(work)
    except Exception as e:
        logger.exception(f"Validation of {work.work_id} raised")
        outcome.error = GenerationError(f"Validation raised {type(e).__name__}: {e}")
        return outcome

    if has_errors(outcome.issues):
        outcome.advance(RecordState.INVALID)
        outcome.advance(RecordState.REJECTED)
        return outcome
    outcome.advance(RecordState.VALID)

    token.raise_if_stopped()
    outcome.advance(RecordState.GENERATING)
    try:
        if combined:
            outcome.fragment = specification.render_record(work)
        elif isinstance(specification, BatchPreparing):
            # Fragment kept so the document can be rewritten once the batch is known
            outcome.fragment = specification.render_record(work)
            buffer = BytesIO()
            specification.assemble([outcome.fragment], buffer)
            outcome.content = buffer.getvalue()
        else:
            buffer = BytesIO()
            specification.generate(work, buffer)
            outcome.content = buffer.getvalue()
    except GenerationError as e:
        logger.error(f"Generation of {work.work_id} failed: {e.message}")
        outcome.error = e
        return outcome
    except Exception as e:
        logger.exception(f"Generation of {work.work_id} raised")
        outcome.error = GenerationError(f"Generation raised {type(e).__name__}: {e}")
        return outcome

    outcome.advance(RecordState.GENERATED)
    return outcome
