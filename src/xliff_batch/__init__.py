"""
Translate missing content in XLIFF files through the OpenAI Batch API.
"""

__version__ = "1.0.0"
