"""Pytest configuration and shared fixtures for xliff-batch-translate tests."""
import json
from collections import defaultdict
from pathlib import Path
from typing import Dict, Optional

import pytest

from xliff_batch.config import Settings
from xliff_batch.core.schemas.job import BatchStatus


FR_XLIFF = """<?xml version="1.0" encoding="UTF-8"?>
<xliff version="1.2" xmlns="urn:oasis:names:tc:xliff:document:1.2">
<file target-language="fr" source-language="en" original="lit-localize-inputs" datatype="plaintext">
<header>
<tool tool-id="lit-localize" tool-name="lit-localize"/>
</header>
<body>
<!-- generated by lit-localize -->
<trans-unit id="a">
  <source>Hello</source>
  <note from="lit-localize">greeting on the home page</note>
</trans-unit>
<trans-unit id="b">
  <source>Bye</source>
  <target>Au revoir</target>
</trans-unit>
</body>
</file>
</xliff>
"""

DE_XLIFF_TRANSLATED = """<?xml version="1.0" encoding="UTF-8"?>
<xliff version="1.2" xmlns="urn:oasis:names:tc:xliff:document:1.2">
<file target-language="de" source-language="en" original="lit-localize-inputs" datatype="plaintext">
<body>
<trans-unit id="a">
  <source>Hello</source>
  <target>Hallo</target>
</trans-unit>
</body>
</file>
</xliff>
"""


def result_line(custom_id: str, content: str) -> str:
    """One line of batch output as returned by the batch API."""
    return json.dumps({
        "id": f"req_{custom_id}",
        "custom_id": custom_id,
        "response": {
            "status_code": 200,
            "body": {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}
        },
        "error": None
    })


async def no_sleep(_seconds: float):
    return None


class FakeJobService:
    """
    In-memory stand-in for the batch API.

    Batches complete on the first poll unless a status is configured for the
    language. Output contains a line for every request, the instruction
    record included, whose id has a configured translation.
    """

    def __init__(self, translations: Optional[Dict[str, Dict[str, str]]] = None,
                 statuses: Optional[Dict[str, BatchStatus]] = None):
        self.translations = translations or {}
        self.statuses = statuses or {}
        self.submissions = []
        self.payloads = {}
        self.polls = defaultdict(int)

    @staticmethod
    def _language(batch_id: str) -> str:
        return batch_id[len("batch-"):]

    async def submit(self, payload_path) -> str:
        path = Path(payload_path)
        language = path.stem[len("batch_"):]
        batch_id = f"batch-{language}"
        self.submissions.append(path)
        self.payloads[batch_id] = [json.loads(line) for line in path.read_text().splitlines()]
        return batch_id

    async def poll_status(self, batch_id: str) -> BatchStatus:
        self.polls[batch_id] += 1
        return self.statuses.get(self._language(batch_id), BatchStatus.COMPLETED)

    async def fetch_result(self, batch_id: str) -> str:
        translations = self.translations.get(self._language(batch_id), {})
        lines = [result_line(self.payloads[batch_id][0]["custom_id"], "Understood.")]
        for record in self.payloads[batch_id][1:]:
            if record["custom_id"] in translations:
                lines.append(result_line(record["custom_id"], translations[record["custom_id"]]))
        return "\n".join(lines)


@pytest.fixture
def xliff_dir(tmp_path):
    """A folder holding the French sample document."""
    directory = tmp_path / "xliff"
    directory.mkdir()
    (directory / "fr.xlf").write_text(FR_XLIFF, encoding="utf-8")
    return directory


@pytest.fixture
def fr_path(xliff_dir):
    return xliff_dir / "fr.xlf"


@pytest.fixture
def staging_dir(tmp_path):
    directory = tmp_path / "staging"
    directory.mkdir()
    return directory


@pytest.fixture
def settings(staging_dir):
    return Settings(
        openai_api_key="test-key",
        poll_interval=0.01,
        staging_dir=staging_dir
    )


@pytest.fixture
def fake_service():
    return FakeJobService(translations={"fr": {"a": "Bonjour"}})
