# tests/unit/application/processing/test_record_pipeline.py

"""Tests for the per-record validate and generate pipeline"""

# Third party imports
import pytest

# Local imports
from biblio_export.application.processing import CancellationToken
from biblio_export.application.processing import RecordOutcome
from biblio_export.application.processing import process_record
from biblio_export.core.domain.enums import ManifestStatus
from biblio_export.core.domain.enums import RecordState
from biblio_export.core.domain.errors import ExportCancelledError
from biblio_export.core.domain.errors import GenerationError
from biblio_export.core.domain.issue import Issue
from tests.fixtures.works import WorkBuilder


class StubSpecification:
    """Configurable specification that records the calls it receives"""

    format_id = "stub"
    version = "1.0"
    name = "Stub"
    content_type = "text/plain"
    file_extension = "txt"

    def __init__(self, issues=None, failure: Exception | None = None):
        self.issues = issues or []
        self.failure = failure
        self.calls: list[str] = []

    def validate(self, work):
        self.calls.append("validate")
        return list(self.issues)

    def render_record(self, work):
        self.calls.append("render_record")
        if self.failure:
            raise self.failure
        return work.work_id

    def generate(self, work, sink):
        self.calls.append("generate")
        if self.failure:
            raise self.failure
        sink.write(work.work_id.encode("utf-8"))

    def assemble(self, fragments, sink):
        sink.write("\n".join(fragments).encode("utf-8"))


class TestProcessRecord:
    """State transitions of one record"""

    def test_generated_fragment(self):
        spec = StubSpecification()
        outcome = process_record(0, WorkBuilder.monograph(), spec, CancellationToken(), True)
        assert outcome.status is ManifestStatus.GENERATED
        assert outcome.fragment == "work-0001"
        assert outcome.content is None
        assert outcome.history == [
            RecordState.FETCHED,
            RecordState.VALIDATING,
            RecordState.VALID,
            RecordState.GENERATING,
            RecordState.GENERATED,
        ]

    def test_generated_standalone_document(self):
        spec = StubSpecification()
        outcome = process_record(3, WorkBuilder.monograph(), spec, CancellationToken(), False)
        assert outcome.content == b"work-0001"
        assert outcome.index == 3
        assert spec.calls == ["validate", "generate"]

    def test_rejected_never_generates(self):
        spec = StubSpecification(issues=[Issue.error("doi", "required")])
        outcome = process_record(0, WorkBuilder.monograph(), spec, CancellationToken(), True)
        assert outcome.status is ManifestStatus.REJECTED
        assert outcome.history[-2:] == [RecordState.INVALID, RecordState.REJECTED]
        assert spec.calls == ["validate"]
        assert [i.field for i in outcome.issues] == ["doi"]

    def test_warnings_do_not_reject(self):
        spec = StubSpecification(issues=[Issue.warning("place", "missing")])
        outcome = process_record(0, WorkBuilder.monograph(), spec, CancellationToken(), True)
        assert outcome.status is ManifestStatus.GENERATED
        assert len(outcome.issues) == 1

    def test_generation_error_captured(self):
        spec = StubSpecification(failure=GenerationError("field too long"))
        outcome = process_record(0, WorkBuilder.monograph(), spec, CancellationToken(), True)
        assert outcome.status is ManifestStatus.FAILED
        assert outcome.error.kind == "generation_error"
        assert outcome.state is RecordState.GENERATING

    def test_unexpected_exception_wrapped(self):
        spec = StubSpecification(failure=KeyError("boom"))
        outcome = process_record(0, WorkBuilder.monograph(), spec, CancellationToken(), False)
        assert isinstance(outcome.error, GenerationError)
        assert "KeyError" in outcome.error.message

    def test_stopped_token_propagates(self):
        token = CancellationToken()
        token.cancel()
        spec = StubSpecification()
        with pytest.raises(ExportCancelledError):
            process_record(0, WorkBuilder.monograph(), spec, token, True)
        assert spec.calls == []


class TestRecordOutcome:
    def test_illegal_transition(self):
        outcome = RecordOutcome(0, "work-0001")
        with pytest.raises(RuntimeError, match="fetched -> generated"):
            outcome.advance(RecordState.GENERATED)

    def test_status_requires_terminal_state(self):
        outcome = RecordOutcome(0, "work-0001")
        with pytest.raises(RuntimeError):
            outcome.status
