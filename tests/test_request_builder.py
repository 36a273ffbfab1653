"""Tests for batch request building and staging."""
import json

import pytest

from xliff_batch.core.batch import BatchRequestBuilder, INSTRUCTION_ID
from xliff_batch.core.schemas.batch import InstructionRecord, UnitRecord
from xliff_batch.core.xliff import XLIFFDocument, select_untranslated


@pytest.fixture
def builder(staging_dir):
    return BatchRequestBuilder(model="gpt-4o-mini", staging_dir=staging_dir)


@pytest.fixture
def fr_units(fr_path):
    return select_untranslated(XLIFFDocument.load(fr_path))


class TestBuild:

    def test_one_record_per_selected_unit(self, builder, fr_units):
        request = builder.build(fr_units, "fr")

        assert [r.custom_id for r in request.records] == ["a"]
        assert request.unit_ids == {"a"}

    def test_instruction_record_is_first_and_not_a_unit(self, builder, fr_units):
        request = builder.build(fr_units, "fr")
        lines = request.lines()

        assert isinstance(lines[0], InstructionRecord)
        assert all(isinstance(line, UnitRecord) for line in lines[1:])
        assert request.instruction_id == INSTRUCTION_ID
        assert request.instruction_id not in request.unit_ids

    def test_instruction_describes_target_language_and_style(self, builder, fr_units):
        message = builder.build(fr_units, "fr").instruction.body.messages[0]

        assert message.role == "system"
        assert "to fr" in message.content
        assert "Preserve any placeholders" in message.content
        assert "ONLY the direct translation" in message.content

    def test_context_is_prepended_to_its_own_record(self, builder, fr_units):
        messages = builder.build(fr_units, "fr").records[0].body.messages

        assert messages[0].content.startswith(
            "The term/words are in the context of greeting on the home page\n"
        )
        assert "Translate ONLY the following to fr" in messages[0].content
        assert messages[1].content == "Hello"

    def test_record_without_context_has_no_framing(self, builder, tmp_path):
        path = tmp_path / "es.xlf"
        path.write_text(
            '<xliff version="1.2"><file target-language="es"><body>'
            '<trans-unit id="1"><source>One</source></trans-unit>'
            '</body></file></xliff>'
        )
        units = select_untranslated(XLIFFDocument.load(path))

        first = builder.build(units, "es").records[0].body.messages[0].content
        assert first.startswith("Translate ONLY the following to es")

    def test_sentinel_never_collides_with_unit_ids(self, builder, tmp_path):
        path = tmp_path / "es.xlf"
        path.write_text(
            '<xliff version="1.2"><file target-language="es"><body>'
            f'<trans-unit id="{INSTRUCTION_ID}"><source>One</source></trans-unit>'
            f'<trans-unit id="{INSTRUCTION_ID}_"><source>Two</source></trans-unit>'
            '</body></file></xliff>'
        )
        units = select_untranslated(XLIFFDocument.load(path))

        request = builder.build(units, "es")
        assert request.instruction_id == f"{INSTRUCTION_ID}__"
        assert request.instruction_id not in request.unit_ids

    def test_duplicate_unit_ids_are_rejected(self, builder, tmp_path):
        path = tmp_path / "es.xlf"
        path.write_text(
            '<xliff version="1.2"><file target-language="es"><body>'
            '<trans-unit id="1"><source>One</source></trans-unit>'
            '<trans-unit id="1"><source>Uno</source></trans-unit>'
            '</body></file></xliff>'
        )
        units = select_untranslated(XLIFFDocument.load(path))

        with pytest.raises(ValueError):
            builder.build(units, "es")

    def test_jsonl_matches_batch_input_format(self, builder, fr_units):
        lines = [json.loads(line) for line in builder.build(fr_units, "fr").to_jsonl().splitlines()]

        assert [line["custom_id"] for line in lines] == [INSTRUCTION_ID, "a"]
        for line in lines:
            assert line["method"] == "POST"
            assert line["url"] == "/v1/chat/completions"
            assert line["body"]["model"] == "gpt-4o-mini"


class TestWrite:

    @pytest.mark.asyncio
    async def test_writes_staging_file_named_after_language(self, builder, fr_units, staging_dir):
        request = builder.build(fr_units, "fr")

        path = await builder.write(request)

        assert path == staging_dir / "batch_fr.jsonl"
        assert path.read_text(encoding="utf-8") == request.to_jsonl()

    def test_staging_name_is_filesystem_safe(self, builder, staging_dir):
        assert builder.staging_path("zh-Hant/TW") == staging_dir / "batch_zh-Hant_TW.jsonl"
