"""Analysis pipeline: stage sequencing, segment handling and background runs."""

from .orchestrator import UNKNOWN_PROBABILITY, AnalysisPipeline
from .runner import TaskRunner
from .segments import ensure_segments, segments_from_words

__all__ = [
    "UNKNOWN_PROBABILITY",
    "AnalysisPipeline",
    "TaskRunner",
    "ensure_segments",
    "segments_from_words",
]
