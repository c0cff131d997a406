import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from src.config.settings import AppSettings
from src.importing.api import (
    build_import_workflow,
    build_model_client,
    load_uploaded_files,
    run_import,
    run_import_async,
)
from src.importing.domain.models import ImportReport
from src.importing.infrastructure.anthropic_client import AnthropicMessagesClient
from tests.utils.tempdir import managed_temp_dir


class ImportApiTests(unittest.TestCase):
    def test_model_client_requires_api_key(self):
        self.assertIsNone(build_model_client(AppSettings(anthropic_api_key=None)))
        client = build_model_client(AppSettings(anthropic_api_key="sk", anthropic_base_url="http://x.invalid"))
        self.assertIsInstance(client, AnthropicMessagesClient)
        self.assertEqual(client.messages_url, "http://x.invalid/v1/messages")

    def test_import_workflow_uses_settings(self):
        with managed_temp_dir("import_api") as tmp:
            settings = AppSettings(
                anthropic_api_key="sk",
                notes_dir=tmp / "notes",
                log_dir=tmp / "logs",
                import_concurrency=5,
                import_max_retries=1,
                import_retry_base_delay_seconds=2.0,
            )
            workflow = build_import_workflow(settings)

        self.assertEqual(workflow.config.concurrency, 5)
        self.assertEqual(workflow.config.retry_policy.max_retries, 1)
        self.assertEqual(workflow.config.retry_policy.base_delay_seconds, 2.0)
        self.assertEqual(workflow.sink.inner.file_path, tmp / "logs" / "import.log")

    def test_load_uploaded_files_reads_bytes_and_guesses_type(self):
        with managed_temp_dir("import_api") as tmp:
            html_path = tmp / "Report.html"
            html_path.write_bytes(b"<p>x</p>")

            files = load_uploaded_files([html_path])

        self.assertEqual(files[0].filename, "Report.html")
        self.assertEqual(files[0].data, b"<p>x</p>")
        self.assertEqual(files[0].content_type, "text/html")

    def test_run_import_sync_wrapper(self):
        expected = ImportReport(results=(), unmatched=())
        with patch("src.importing.api.run_import_async", new=AsyncMock(return_value=expected)):
            result = run_import([], settings=AppSettings(anthropic_api_key=None))
        self.assertEqual(result, expected)


class ImportApiAsyncTests(unittest.IsolatedAsyncioTestCase):
    async def test_run_import_async_builds_and_runs_workflow(self):
        expected = ImportReport(results=(), unmatched=("a.png",))
        workflow = MagicMock()
        workflow.run = AsyncMock(return_value=expected)
        settings = AppSettings(anthropic_api_key="sk")

        with patch("src.importing.api.build_import_workflow", return_value=workflow) as build:
            result = await run_import_async([], instructions="short", settings=settings, show_progress=False)

        self.assertEqual(result, expected)
        build.assert_called_once_with(settings, show_progress=False)
        workflow.run.assert_awaited_once_with([], "short")


if __name__ == "__main__":
    unittest.main()
