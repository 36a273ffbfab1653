"""
XLIFF document handling: parsing, unit selection and write-back.
"""

from .document import (
    XLIFFDocument, TranslationUnit, select_untranslated,
    load_document, save_document
)

__all__ = [
    'XLIFFDocument',
    'TranslationUnit',
    'select_untranslated',
    'load_document',
    'save_document'
]
