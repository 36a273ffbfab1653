"""
Batch Client - Interfaces with the OpenAI Batch API.
Uploads staged request files, creates batches, reports status and downloads output.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

import httpx
from pydantic import ValidationError

from ..errors import FetchError, PollingError, SubmissionError
from ..schemas.batch import CHAT_COMPLETIONS_URL
from ..schemas.job import BatchInfo, BatchStatus

logger = logging.getLogger(__name__)


class JobService(Protocol):
    """Asynchronous bulk translation backend."""

    async def submit(self, payload_path: Union[str, Path]) -> str:
        ...

    async def poll_status(self, batch_id: str) -> BatchStatus:
        ...

    async def fetch_result(self, batch_id: str) -> str:
        ...


class OpenAIBatchClient:
    """
    Client for the OpenAI Files and Batches endpoints.

    One instance is shared by every document pipeline in a run; the
    underlying httpx connection pool handles concurrent requests.
    """

    def __init__(self, api_key: str, base_url: str = "https://api.openai.com/v1",
                 completion_window: str = "24h", timeout: float = 60.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.completion_window = completion_window
        self.timeout = timeout

        self.headers = {
            "Authorization": f"Bearer {self.api_key}",
        }
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=timeout,
            transport=transport
        )

    async def __aenter__(self) -> 'OpenAIBatchClient':
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def close(self):
        await self._client.aclose()

    async def submit(self, payload_path: Union[str, Path]) -> str:
        """
        Upload a staged JSONL file and create a batch from it.

        Args:
            payload_path: Path to the staging file

        Returns:
            Batch ID for tracking

        Raises:
            SubmissionError: if the upload or batch creation fails
        """
        payload_path = Path(payload_path)
        try:
            payload = payload_path.read_bytes()
            file_response = await self._client.post(
                "/files",
                data={"purpose": "batch"},
                files={"file": (payload_path.name, payload, "application/jsonl")}
            )
            file_id = self._json(file_response)["id"]

            batch_response = await self._client.post(
                "/batches",
                json={
                    "input_file_id": file_id,
                    "endpoint": CHAT_COMPLETIONS_URL,
                    "completion_window": self.completion_window
                }
            )
            batch_id = self._json(batch_response)["id"]
        except (OSError, httpx.HTTPError, KeyError, ValueError) as e:
            raise SubmissionError(f"Batch submission failed: {e}", path=str(payload_path)) from e

        logger.info(f"Created batch {batch_id} from {payload_path.name}")
        return batch_id

    async def retrieve(self, batch_id: str) -> BatchInfo:
        """
        Fetch the remote batch object.

        Raises:
            PollingError: on transport errors or an unreadable response
        """
        try:
            response = await self._client.get(f"/batches/{batch_id}")
            return BatchInfo.model_validate(self._json(response))
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            raise PollingError(f"Cannot retrieve batch: {e}", batch_id=batch_id) from e

    async def poll_status(self, batch_id: str) -> BatchStatus:
        return (await self.retrieve(batch_id)).status

    async def fetch_result(self, batch_id: str) -> str:
        """
        Download the output file of a completed batch.

        Returns:
            Raw JSONL output, or an empty string if the batch produced none

        Raises:
            FetchError: if the batch or its output cannot be downloaded
        """
        try:
            info = await self.retrieve(batch_id)
        except PollingError as e:
            raise FetchError(e.message, batch_id=batch_id) from e

        if not info.output_file_id:
            logger.warning(f"Batch {batch_id} has no output file (error file: {info.error_file_id})")
            return ""

        try:
            response = await self._client.get(f"/files/{info.output_file_id}/content")
            response.raise_for_status()
            return response.text
        except httpx.HTTPError as e:
            raise FetchError(f"Cannot download batch output: {e}", batch_id=batch_id) from e

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        if response.status_code >= 400:
            logger.error(f"Batch API error: {response.status_code} - {response.text}")
        response.raise_for_status()
        return response.json()
