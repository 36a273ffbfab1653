"""
Error taxonomy for the batch translation pipeline.

Every error is scoped to a single document or batch; the job manager turns
them into per-document outcomes instead of letting them reach siblings.
"""

from typing import Optional


class BatchTranslationError(Exception):
    """Base class for all pipeline errors."""

    def __init__(self, message: str, path: Optional[str] = None,
                 batch_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path
        self.batch_id = batch_id

    def __str__(self) -> str:
        where = self.path or self.batch_id
        return f"{self.message} ({where})" if where else self.message


class ParseError(BatchTranslationError):
    """Document is unreadable or not a usable XLIFF file."""


class WriteError(BatchTranslationError):
    """Document could not be saved."""


class SubmissionError(BatchTranslationError):
    """Batch job could not be created."""


class PollingError(BatchTranslationError):
    """Batch status could not be retrieved."""


class FetchError(BatchTranslationError):
    """Batch output could not be downloaded."""


class MalformedResultLine(BatchTranslationError):
    """A single line of batch output could not be interpreted."""

    def __init__(self, message: str, line: str):
        super().__init__(message)
        self.line = line
