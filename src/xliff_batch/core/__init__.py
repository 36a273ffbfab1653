"""
Core Batch Translation Pipeline Components.
"""

from .job_manager import JobManager
from .schemas.job import (
    BatchHandle, BatchStatus, DocumentOutcome, DocumentStatus,
    MonitorOutcome, MonitorState, RunReport
)

__all__ = [
    'JobManager',
    'BatchHandle',
    'BatchStatus',
    'DocumentOutcome',
    'DocumentStatus',
    'MonitorOutcome',
    'MonitorState',
    'RunReport'
]
