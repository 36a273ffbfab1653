"""Tests for the command line entry point."""
from unittest.mock import AsyncMock, patch

from xliff_batch import cli
from xliff_batch.config import Settings


class TestParser:

    def test_directory_defaults_to_translations_folder(self):
        assert cli.build_parser().parse_args([]).directory == "./translations/xliff"

    def test_directory_is_positional(self):
        assert cli.build_parser().parse_args(["locales"]).directory == "locales"


class TestMain:

    def test_missing_api_key_fails_fast(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with patch.object(cli, "translate_missing_in_folder", new=AsyncMock()) as run:
            assert cli.main(["locales"]) == 1
        run.assert_not_called()

    def test_runs_pipeline_for_directory(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("OPENAI_API_KEY", "test-key")
        monkeypatch.setenv("BATCH_POLL_INTERVAL", "5")

        with patch.object(cli, "translate_missing_in_folder", new=AsyncMock()) as run:
            assert cli.main(["locales"]) == 0

        directory, settings = run.await_args.args
        assert directory == "locales"
        assert settings.openai_api_key == "test-key"
        assert settings.poll_interval == 5.0

    def test_reads_settings_from_dotenv(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.delenv("TRANSLATION_MODEL", raising=False)
        (tmp_path / ".env").write_text("OPENAI_API_KEY=from-dotenv\nTRANSLATION_MODEL=gpt-4.1-mini\n")

        settings = Settings()

        assert settings.openai_api_key == "from-dotenv"
        assert settings.model == "gpt-4.1-mini"
        assert settings.file_extension == ".xlf"
