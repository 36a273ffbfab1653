"""
Job Manager - Main orchestrator for the batch translation pipeline.
Runs one pipeline per XLIFF document, from scan to write-back.
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Tuple, Union

from ..config import Settings
from .batch import BatchMonitor, BatchRequestBuilder, ResultMerger
from .errors import BatchTranslationError, WriteError
from .schemas.job import (
    BatchHandle, DocumentOutcome, DocumentStatus, MonitorOutcome, MonitorState, RunReport
)
from .translation import JobService
from .xliff import TranslationUnit, XLIFFDocument, load_document, select_untranslated

logger = logging.getLogger(__name__)

PendingDocument = Tuple[XLIFFDocument, List[TranslationUnit]]


class JobManager:
    """
    Main orchestrator for the batch translation pipeline.

    Documents are fanned out concurrently; every stage returns either the
    input for the next stage or a DocumentOutcome, so one document's failure
    never reaches its siblings.
    """

    def __init__(self, service: JobService, settings: Settings,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.service = service
        self.settings = settings

        # Initialize pipeline components
        self.request_builder = BatchRequestBuilder(settings.model, settings.staging_dir)
        self.batch_monitor = BatchMonitor(service, settings.poll_interval, sleep=sleep)
        self.result_merger = ResultMerger()

    def discover(self, root: Union[str, Path]) -> List[Path]:
        """List candidate documents directly inside ``root``."""
        extension = self.settings.file_extension.lower()
        return sorted(
            path for path in Path(root).iterdir()
            if path.is_file() and path.suffix.lower() == extension
        )

    async def run(self, root: Union[str, Path]) -> RunReport:
        """
        Translate missing content in every document under ``root``.

        Returns:
            RunReport with one outcome per discovered document
        """
        logger.info(f"Translating missing content in folder: {root}")
        report = RunReport(root=str(root))
        start_time = time.monotonic()

        try:
            paths = self.discover(root)
        except OSError as e:
            logger.error(f"Error processing files: {e}")
            paths = []

        # Phase 1: Load and select
        loaded = await asyncio.gather(*(self._load(path) for path in paths))
        pending = self._claim_languages(loaded, report)

        # Phase 2: Stage and submit
        submitted = await asyncio.gather(*(self._submit(doc, units) for doc, units in pending))
        handles = []
        for item in submitted:
            if isinstance(item, DocumentOutcome):
                report.outcomes.append(item)
            else:
                handles.append(item)

        if handles:
            # Phase 3: Monitor all batches
            monitored = await asyncio.gather(*(self.batch_monitor.monitor(h) for h in handles))

            # Phase 4: Merge completed batches
            report.outcomes.extend(await asyncio.gather(
                *(self._finish(handle, outcome) for handle, outcome in zip(handles, monitored))
            ))
        else:
            logger.info("No batches to process.")

        report.mark_completed(time.monotonic() - start_time)
        logger.info(
            f"Run finished: {report.count(DocumentStatus.TRANSLATED)} translated, "
            f"{report.count(DocumentStatus.SKIPPED)} skipped, "
            f"{report.count(DocumentStatus.FAILED)} failed"
        )
        logger.info(f"Total Duration: {report.format_duration()}")
        return report

    async def _load(self, path: Path) -> Union[PendingDocument, DocumentOutcome]:
        logger.info(f"Processing file: {path.name}")
        try:
            document = await load_document(path)
        except BatchTranslationError as e:
            logger.error(f"Cannot load {path.name}: {e}")
            return DocumentOutcome(path=str(path), status=DocumentStatus.FAILED, reason=str(e))
        except Exception as e:
            logger.exception(f"Unexpected error loading {path.name}")
            return DocumentOutcome(path=str(path), status=DocumentStatus.FAILED, reason=str(e))

        units = select_untranslated(document)
        if not units:
            logger.info(f"All units are already translated for {document.target_language}. Skipping.")
            return DocumentOutcome(
                path=str(path),
                status=DocumentStatus.SKIPPED,
                target_language=document.target_language,
                reason="nothing to translate"
            )
        return document, units

    def _claim_languages(self, loaded: List[Union[PendingDocument, DocumentOutcome]],
                         report: RunReport) -> List[PendingDocument]:
        """
        Keep one document per staging file.

        Target languages that sanitise to the same file name (sr@latin and
        sr_latin, or pt-br and pt-BR on a case-insensitive filesystem) count
        as the same language.
        """
        claimed: Dict[str, Path] = {}
        pending = []
        for item in loaded:
            if isinstance(item, DocumentOutcome):
                report.outcomes.append(item)
                continue

            document, units = item
            staging_key = self.request_builder.staging_path(document.target_language).name.casefold()
            owner = claimed.get(staging_key)
            if owner is not None:
                logger.warning(f"Skipping {document.path.name}: target language "
                               f"{document.target_language} already handled by {owner.name}")
                report.outcomes.append(DocumentOutcome(
                    path=str(document.path),
                    status=DocumentStatus.SKIPPED,
                    target_language=document.target_language,
                    reason=f"duplicate target language (see {owner.name})"
                ))
                continue

            claimed[staging_key] = document.path
            pending.append(item)
        return pending

    async def _submit(self, document: XLIFFDocument,
                      units: List[TranslationUnit]) -> Union[BatchHandle, DocumentOutcome]:
        target_language = document.target_language
        try:
            request = self.request_builder.build(units, target_language)
            staging_path = await self.request_builder.write(request)
            batch_id = await self.service.submit(staging_path)
        except (BatchTranslationError, OSError, ValueError) as e:
            logger.error(f"Error submitting batch for {target_language}: {e}")
            return self._failed(document, len(units), str(e))
        except Exception as e:
            logger.exception(f"Unexpected error submitting batch for {target_language}")
            return self._failed(document, len(units), str(e))

        logger.info(f"Batch submitted for {target_language}: {batch_id}")
        return BatchHandle(
            batch_id=batch_id,
            target_language=target_language,
            document=document,
            units=units,
            request=request,
            staging_path=staging_path
        )

    async def _finish(self, handle: BatchHandle, outcome: MonitorOutcome) -> DocumentOutcome:
        result = DocumentOutcome(
            path=str(handle.path),
            status=DocumentStatus.SKIPPED,
            target_language=handle.target_language,
            batch_id=handle.batch_id,
            monitor_state=outcome.state,
            requested_count=len(handle.units)
        )

        if outcome.state is not MonitorState.COMPLETED:
            result.reason = f"batch status: {outcome.state.value}"
            if outcome.error:
                result.reason += f" ({outcome.error})"
            logger.info(f"Skipping update for {handle.target_language} due to {result.reason}")
            return result

        try:
            result.updated_count = await self.result_merger.merge(handle, outcome.text or "")
        except WriteError as e:
            logger.error(f"Translations for {handle.target_language} lost: {e}")
            result.status = DocumentStatus.FAILED
            result.reason = str(e)
            return result
        except Exception as e:
            logger.exception(f"Unexpected error merging results for {handle.target_language}")
            result.status = DocumentStatus.FAILED
            result.reason = str(e)
            return result

        result.status = DocumentStatus.TRANSLATED
        return result

    @staticmethod
    def _failed(document: XLIFFDocument, requested_count: int,
                reason: Optional[str]) -> DocumentOutcome:
        return DocumentOutcome(
            path=str(document.path),
            status=DocumentStatus.FAILED,
            target_language=document.target_language,
            requested_count=requested_count,
            reason=reason
        )
