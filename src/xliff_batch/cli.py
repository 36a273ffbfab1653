"""
Command line entry point.

    xliff-batch-translate [directory]
"""

import argparse
import asyncio
import logging
from typing import List, Optional

from pydantic import ValidationError

from .config import Settings
from .core import JobManager, RunReport
from .core.translation import OpenAIBatchClient

logger = logging.getLogger(__name__)

DEFAULT_DIRECTORY = "./translations/xliff"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="xliff-batch-translate",
        description="Translate missing content in a folder of XLIFF files"
    )
    parser.add_argument(
        "directory",
        nargs="?",
        default=DEFAULT_DIRECTORY,
        help=f"Folder containing the XLIFF files (default: {DEFAULT_DIRECTORY})"
    )
    return parser


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


async def translate_missing_in_folder(directory: str, settings: Settings) -> RunReport:
    async with OpenAIBatchClient(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        completion_window=settings.completion_window,
        timeout=settings.request_timeout
    ) as client:
        job_manager = JobManager(client, settings)
        return await job_manager.run(directory)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as e:
        configure_logging()
        logger.error(f"Invalid configuration: {e}")
        return 1

    configure_logging(settings.log_level)
    asyncio.run(translate_missing_in_folder(args.directory, settings))
    return 0
