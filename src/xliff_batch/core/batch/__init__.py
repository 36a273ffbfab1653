"""
Batch job stages: request building, monitoring and result merging.
"""

from .request_builder import BatchRequestBuilder, INSTRUCTION_ID
from .monitor import BatchMonitor
from .result_merger import ResultMerger

__all__ = [
    'BatchRequestBuilder',
    'INSTRUCTION_ID',
    'BatchMonitor',
    'ResultMerger'
]
