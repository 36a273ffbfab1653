"""
Result Merger - Maps batch output back onto translation units.
"""

import asyncio
import json
import logging
from typing import Dict, Optional, Sequence

from pydantic import ValidationError

from ..errors import MalformedResultLine
from ..schemas.batch import BatchRequest, BatchResultLine
from ..schemas.job import BatchHandle
from ..xliff.document import TranslationUnit, XLIFFDocument, save_document

logger = logging.getLogger(__name__)


class ResultMerger:
    """
    Applies batch output to a document on a best-effort basis.

    Unknown ids and malformed lines are dropped; units without a result keep
    an empty target and are picked up again on the next run.
    """

    def parse_results(self, raw_text: str,
                      request: Optional[BatchRequest] = None) -> Dict[str, str]:
        """
        Parse JSONL batch output into a correlation id -> translation map.

        Args:
            raw_text: Raw output file content
            request: The request the output belongs to; limits the map to its unit ids

        Returns:
            Mapping of unit id to translated text
        """
        results: Dict[str, str] = {}
        for line in raw_text.splitlines():
            if not line.strip():
                continue
            try:
                custom_id, content = self.parse_line(line)
            except MalformedResultLine as e:
                logger.error(f"Error parsing result line: {e.line} ({e.message})")
                continue
            results[custom_id] = content

        if request is not None:
            unit_ids = request.unit_ids
            ignored = [custom_id for custom_id in results if custom_id not in unit_ids]
            if ignored:
                logger.debug(f"Ignoring {len(ignored)} uncorrelated results: {ignored}")
            results = {k: v for k, v in results.items() if k in unit_ids}

        return results

    @staticmethod
    def parse_line(line: str) -> tuple[str, str]:
        try:
            result = BatchResultLine.model_validate(json.loads(line))
        except (ValueError, ValidationError) as e:
            raise MalformedResultLine(str(e), line) from e

        content = result.content
        if content is None:
            raise MalformedResultLine("Missing message content", line)
        return result.custom_id, content.strip()

    def apply(self, document: XLIFFDocument, units: Sequence[TranslationUnit],
              results: Dict[str, str]) -> int:
        """
        Write translations into the selected units.

        Only ``units`` are touched, and only those still untranslated.

        Returns:
            Number of units that received a translation
        """
        updated_count = 0
        for unit in units:
            if not unit.needs_translation:
                continue
            translation = results.get(unit.id)
            if translation:
                unit.target = translation
                updated_count += 1

        missing = len(units) - updated_count
        if missing:
            logger.warning(f"{missing} units in {document.path.name} were not translated this run")
        return updated_count

    async def merge(self, handle: BatchHandle, raw_text: str) -> int:
        """
        Parse, apply and persist the output of one batch.

        The staging file is removed only once the document has been saved.
        """
        results = self.parse_results(raw_text, handle.request)
        updated_count = self.apply(handle.document, handle.units, results)

        await save_document(handle.document)
        logger.info(f"{handle.target_language} XLIFF file updated successfully! "
                    f"{updated_count} translations added.")

        loop = asyncio.get_event_loop()
        await loop.run_in_executor(None, self._remove_staging, handle)
        return updated_count

    @staticmethod
    def _remove_staging(handle: BatchHandle):
        try:
            handle.staging_path.unlink()
        except FileNotFoundError:
            logger.debug(f"Staging file {handle.staging_path} already removed")
