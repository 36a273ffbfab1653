"""
Clients for the remote batch translation service.
"""

from .batch_client import JobService, OpenAIBatchClient

__all__ = [
    'JobService',
    'OpenAIBatchClient'
]
