from .batch import (
    BatchRequest, BatchRequestLine, BatchResultLine, ChatMessage,
    ChatRequestBody, InstructionRecord, UnitRecord
)
from .job import (
    BatchHandle, BatchInfo, BatchStatus, DocumentOutcome, DocumentStatus,
    MonitorOutcome, MonitorState, RunReport
)

__all__ = [
    'BatchRequest',
    'BatchRequestLine',
    'BatchResultLine',
    'ChatMessage',
    'ChatRequestBody',
    'InstructionRecord',
    'UnitRecord',
    'BatchHandle',
    'BatchInfo',
    'BatchStatus',
    'DocumentOutcome',
    'DocumentStatus',
    'MonitorOutcome',
    'MonitorState',
    'RunReport'
]
