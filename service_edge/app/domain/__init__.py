"""
Domain logic for the edge router.
"""

from .clone import CloneError, ClonePlan, WorkerCloner
from .jobs import JobOutcome, JobRecorder

__all__ = [
    "CloneError",
    "ClonePlan",
    "JobOutcome",
    "JobRecorder",
    "WorkerCloner",
]
