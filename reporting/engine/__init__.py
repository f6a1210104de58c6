"""
Monthly reporting engine.

Components, leaf to root:

- event_log: windowed read-only view over participant histories
- metric_derivation: per-month metrics derived from the windowed log
- overrides: manual-override resolution and metric accessors
- report_lifecycle: report creation, field-group updates and posting
- aggregation: multi-month total/average summaries
- comparator: month-over-month deltas

All engine functions operate on fully materialized snapshots and perform no
I/O of their own; ReportService is the only component that talks to a store.
"""

__all__ = [
    "AggregationEngine",
    "EventLogReader",
    "MetricDerivationEngine",
    "ReportComparator",
    "ReportService",
]

from reporting.engine.aggregation import AggregationEngine
from reporting.engine.comparator import ReportComparator
from reporting.engine.event_log import EventLogReader
from reporting.engine.metric_derivation import MetricDerivationEngine
from reporting.engine.report_lifecycle import ReportService
