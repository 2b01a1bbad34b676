"""Application state around the core: the loaded dataset, its records and the active settings.

Each operation computes its result first and only then swaps it in, so a failed
parse or backend call leaves the session as it was.
"""
from __future__ import annotations
from typing import List, Optional
from loguru import logger

from .config import Settings
from .annotation import reconcile
from .annotation.filters import ResultsFilters, filter_records, sort_records
from .annotation.label_mapping import LabelMapping, set_mapping
from .annotation.records import InputRow, Record
from .etl import csv_codec
from .etl.csv_codec import ParseError
from .modeling.metrics import MetricsSnapshot, compute_metrics

class AnalysisSession:
    def __init__(self, settings: Settings = None):
        self.settings = settings or Settings()
        self.raw_rows: List[InputRow] = []
        self.records: List[Record] = []
        self.file_name: Optional[str] = None

    @property
    def label_mapping(self) -> LabelMapping:
        return self.settings.label_mapping

    def load_input(self, source, file_name: str = None) -> int:
        parsed = csv_codec.parse_input_csv(source)
        if not parsed.rows:
            raise ParseError("No rows with text found in the file.")
        self.raw_rows = list(parsed.rows)
        self.records = []
        self.file_name = file_name
        logger.info(f"Loaded {parsed.total_rows} rows from {file_name or 'input'}")
        return parsed.total_rows

    def run_analysis(self, predictor) -> List[Record]:
        if not self.raw_rows:
            raise ValueError("Load a CSV with a 'text' column first.")
        predictions = predictor.predict_many([r.text for r in self.raw_rows])
        self.records = reconcile.records_from_predictions(self.raw_rows, predictions)
        logger.info(f"Analyzed {len(self.records)} rows")
        return self.records

    def update_corrected_label(self, record_id: str, label: Optional[int]):
        self.records = reconcile.set_corrected_label(self.records, record_id, label)

    def apply_validation(self, source) -> int:
        parsed = csv_codec.parse_validation_csv(source)
        self.records = reconcile.apply_validation(self.records, parsed.rows)
        logger.info(f"Applied {parsed.total_rows} validation rows")
        return parsed.total_rows

    def reset_validation(self):
        self.records = reconcile.reset_validation(self.records)

    def set_label_mapping(self, code: int, cls) -> LabelMapping:
        self.settings.label_mapping = set_mapping(self.settings.label_mapping, code, cls)
        return self.settings.label_mapping

    def summary(self) -> dict:
        return reconcile.summarize(self.records)

    def results(self, filters: ResultsFilters = None, sort_by: str = "id", descending: bool = False) -> List[Record]:
        """Records as the results table shows them: filtered, then sorted."""
        rows = filter_records(self.records, filters or ResultsFilters())
        return sort_records(rows, sort_by, descending)

    def metrics(self) -> Optional[MetricsSnapshot]:
        return compute_metrics(self.records, self.label_mapping)

    def export_results(self, include_id: bool = None, include_text: bool = None) -> str:
        exp = self.settings.export
        return csv_codec.export_results_csv(
            self.records, self.label_mapping,
            include_id=exp["include_id"] if include_id is None else include_id,
            include_text=exp["include_text"] if include_text is None else include_text,
        )

    def export_full(self) -> str:
        return csv_codec.export_full_csv(self.records, self.label_mapping)

    def export_metrics_report(self) -> Optional[str]:
        snapshot = self.metrics()
        return csv_codec.export_metrics_report(snapshot) if snapshot else None
