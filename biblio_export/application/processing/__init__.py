# biblio_export/application/processing/__init__.py

"""Batch processing primitives"""

# Local imports
from biblio_export.application.processing.cancellation import CancellationToken
from biblio_export.application.processing.record_pipeline import RecordOutcome
from biblio_export.application.processing.record_pipeline import process_record
from biblio_export.application.processing.result_slots import ResultSlots

__all__ = ["CancellationToken", "RecordOutcome", "ResultSlots", "process_record"]
