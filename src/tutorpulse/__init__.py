# ABOUTME: Makes the tutoring analytics package importable from scripts and tests.
# ABOUTME: Re-exports record types and the top-level report builders for convenience.

from .schemas import Assessment, Goal, Session, Student, Subject
from .config import AnalyticsConfig, load_config
from .report import AnalyticsReport, AnalyticsSnapshot, build_analytics_report
from .store import RecordStore, WriteResult, load_snapshot

__all__ = [
    "AnalyticsConfig",
    "AnalyticsReport",
    "AnalyticsSnapshot",
    "Assessment",
    "Goal",
    "RecordStore",
    "Session",
    "Student",
    "Subject",
    "WriteResult",
    "build_analytics_report",
    "load_config",
    "load_snapshot",
]
