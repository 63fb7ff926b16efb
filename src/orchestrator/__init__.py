"""Pipeline orchestrator for the mark-read job.

Connects UnreadMessageLister, Dispatcher and the shared
ThrottledCallExecutor into a single run with structured results.
"""

from .models import PipelineResult, StepResult
from .pipeline import MarkReadOrchestrator

__all__ = [
    "MarkReadOrchestrator",
    "PipelineResult",
    "StepResult",
]
