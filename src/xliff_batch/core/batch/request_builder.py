"""
Batch Request Builder - Turns untranslated units into a batch input file.
One JSONL staging file is written per document, keyed by target language.
"""

import asyncio
import logging
import re
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ..schemas.batch import (
    BatchRequest, ChatMessage, ChatRequestBody, InstructionRecord, UnitRecord
)
from ..xliff.document import TranslationUnit

logger = logging.getLogger(__name__)

INSTRUCTION_ID = '__instructions__'


class BatchRequestBuilder:
    """
    Builds correlation-tagged batch requests and stages them on disk.
    """

    def __init__(self, model: str = "gpt-4o-mini",
                 staging_dir: Optional[Union[str, Path]] = None):
        self.model = model
        self.staging_dir = Path(staging_dir) if staging_dir else Path.cwd()

    def build(self, units: Sequence[TranslationUnit], target_language: str) -> BatchRequest:
        """
        Build the batch request for one document.

        Args:
            units: Selected units, in document order
            target_language: Language tag to translate into

        Returns:
            BatchRequest with one instruction record and one record per unit
        """
        unit_ids = [unit.id for unit in units]
        if len(set(unit_ids)) != len(unit_ids):
            raise ValueError(f"Duplicate unit ids in {target_language} request")

        instruction = InstructionRecord(
            custom_id=self._instruction_id(unit_ids),
            body=ChatRequestBody(
                model=self.model,
                messages=[ChatMessage(role="system", content=self._system_prompt(target_language))]
            )
        )

        records = [self._unit_record(unit, target_language) for unit in units]
        return BatchRequest(target_language=target_language, instruction=instruction, records=records)

    def _unit_record(self, unit: TranslationUnit, target_language: str) -> UnitRecord:
        context = ''
        if unit.context:
            context = f"The term/words are in the context of {unit.context}\n"

        return UnitRecord(
            custom_id=unit.id,
            body=ChatRequestBody(
                model=self.model,
                messages=[
                    ChatMessage(
                        role="user",
                        content=f"{context}Translate ONLY the following to {target_language}. "
                                f"Provide ONLY the translation, nothing else:"
                    ),
                    ChatMessage(role="user", content=unit.source or '')
                ]
            )
        )

    @staticmethod
    def _instruction_id(unit_ids: List[str]) -> str:
        taken = set(unit_ids)
        custom_id = INSTRUCTION_ID
        while custom_id in taken:
            custom_id += '_'
        return custom_id

    @staticmethod
    def _system_prompt(target_language: str) -> str:
        return (
            f"You are a professional translator. Translate the following text accurately "
            f"and concisely to {target_language}. Preserve any placeholders or special syntax. "
            f"Provide ONLY the direct translation of the content, nothing else. "
            f"Do not translate or include any context information in your response."
        )

    def staging_path(self, target_language: str) -> Path:
        safe_language = re.sub(r'[^A-Za-z0-9_.-]', '_', target_language)
        return self.staging_dir / f"batch_{safe_language}.jsonl"

    async def write(self, request: BatchRequest) -> Path:
        """
        Write the request as a JSONL staging file.

        Returns:
            Path of the staging file
        """
        path = self.staging_path(request.target_language)
        loop = asyncio.get_event_loop()
        await loop.run_in_executor(None, self._write_sync, path, request.to_jsonl())
        logger.info(f"Staged {len(request.records)} requests for {request.target_language} in {path}")
        return path

    def _write_sync(self, path: Path, payload: str):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(payload, encoding="utf-8")
