from aiohttp import FormData
from aiohttp.test_utils import AioHTTPTestCase

from src.config.settings import AppSettings
from src.importing.application.workflows.import_files import ImportFilesWorkflow
from src.notes.infrastructure.fs_page_store import FilePageStore
from src.web.server import create_app
from tests.utils.fakes import FakeModelClient, RecordingSink
from tests.utils.tempdir import managed_temp_dir

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 8


class NotesServerTestCase(AioHTTPTestCase):
    ingest_api_key = None
    with_model = True

    def setUp(self):
        self._tmp = managed_temp_dir("web_server")
        self.root = self._tmp.__enter__()
        self.addCleanup(self._tmp.__exit__, None, None, None)
        super().setUp()

    async def get_application(self):
        settings = AppSettings(
            anthropic_api_key=None,
            notes_dir=self.root / "notes",
            log_dir=self.root / "logs",
            ingest_api_key=self.ingest_api_key,
        )
        self.store = FilePageStore(settings.notes_dir)
        self.sink = RecordingSink()
        self.model_client = FakeModelClient()
        import_workflow = ImportFilesWorkflow(
            model_client=self.model_client if self.with_model else None,
            page_store=self.store,
            sink=self.sink,
        )
        return create_app(settings, page_store=self.store, import_workflow=import_workflow)


class ImportRouteTests(NotesServerTestCase):
    async def test_import_converts_uploads(self):
        form = FormData()
        form.add_field("files", b"<p>hi</p>", filename="Report.html", content_type="text/html")
        form.add_field("files", PNG_BYTES, filename="Report-1.png", content_type="image/png")
        form.add_field("files", PNG_BYTES, filename="Orphan.png", content_type="image/png")
        form.add_field("explanation", "newest first")

        resp = await self.client.request("POST", "/api/import", data=form)

        self.assertEqual(resp.status, 200)
        self.assertEqual(
            await resp.json(),
            {
                "results": [{"name": "Report", "slug": "Report", "success": True}],
                "unmatched": ["Orphan.png"],
            },
        )
        self.assertEqual(self.store.get_page_content(["Report"]), "# Converted")
        self.assertIn("User instructions: newest first", self.model_client.calls[0]["content"][-1]["text"])

    async def test_import_without_files_is_bad_request(self):
        form = FormData()
        form.add_field("explanation", "nothing")

        resp = await self.client.request("POST", "/api/import", data=form)

        self.assertEqual(resp.status, 400)
        self.assertEqual(await resp.json(), {"error": "No files provided"})


class ImportWithoutModelRouteTests(NotesServerTestCase):
    with_model = False

    async def test_missing_api_key_is_bad_request(self):
        form = FormData()
        form.add_field("files", b"<p>hi</p>", filename="A.html", content_type="text/html")

        resp = await self.client.request("POST", "/api/import", data=form)

        self.assertEqual(resp.status, 400)
        self.assertEqual(await resp.json(), {"error": "ANTHROPIC_API_KEY not configured"})
        self.assertEqual(self.store.get_tree(), [])


class PageRouteTests(NotesServerTestCase):
    async def test_save_read_tree_and_delete(self):
        resp = await self.client.request("POST", "/api/notes", json={"slug": "team/plan", "content": "# Plan"})
        self.assertEqual(await resp.json(), {"ok": True})

        resp = await self.client.request("GET", "/api/notes", params={"slug": "team/plan"})
        self.assertEqual(await resp.json(), {"content": "# Plan"})

        resp = await self.client.request("GET", "/api/notes/tree")
        self.assertEqual(
            await resp.json(),
            [{"name": "team", "path": "team", "children": [{"name": "plan", "path": "team/plan", "children": []}]}],
        )

        resp = await self.client.request("DELETE", "/api/notes", params={"slug": "team"})
        self.assertEqual(await resp.json(), {"ok": True})
        self.assertEqual(self.store.get_tree(), [])

    async def test_rename_and_move(self):
        self.store.save_page_content(["a", "old"], "x")
        self.store.create_page(["b"])

        resp = await self.client.request("PATCH", "/api/notes", json={"slug": "a/old", "newName": "new"})
        self.assertEqual(await resp.json(), {"newSlug": "a/new"})

        resp = await self.client.request("PATCH", "/api/notes", json={"slug": "a/new", "newParent": "b"})
        self.assertEqual(await resp.json(), {"newSlug": "b/new"})

        resp = await self.client.request("PATCH", "/api/notes", json={"slug": "b", "newParent": "b/new"})
        self.assertEqual(resp.status, 400)
        self.assertEqual(await resp.json(), {"error": "Cannot move a page into its own subtree"})

    async def test_missing_slug_and_traversal_are_rejected(self):
        resp = await self.client.request("GET", "/api/notes")
        self.assertEqual(resp.status, 400)

        resp = await self.client.request("POST", "/api/notes", json={"slug": "../escape", "content": "x"})
        self.assertEqual(resp.status, 400)


class AssetRouteTests(NotesServerTestCase):
    async def test_serves_saved_image_with_cache_header(self):
        self.store.save_asset(["Report"], "chart.png", PNG_BYTES)

        resp = await self.client.request("GET", "/api/notes/images/Report/chart.png")

        self.assertEqual(resp.status, 200)
        self.assertEqual(resp.content_type, "image/png")
        self.assertEqual(resp.headers["Cache-Control"], "public, max-age=3600")
        self.assertEqual(await resp.read(), PNG_BYTES)

    async def test_missing_and_unsupported_assets(self):
        resp = await self.client.request("GET", "/api/notes/images/Report/none.png")
        self.assertEqual(resp.status, 404)

        resp = await self.client.request("GET", "/api/notes/images/Report/notes.txt")
        self.assertEqual(resp.status, 400)


class IngestRouteTests(NotesServerTestCase):
    ingest_api_key = "ingest-secret"

    def _form(self):
        form = FormData()
        form.add_field("file", b"a,b\n1,2\n", filename="data.csv", content_type="text/csv")
        form.add_field("slug", "imports/data")
        return form

    async def test_requires_bearer_token(self):
        resp = await self.client.request("POST", "/api/ingest", data=self._form())
        self.assertEqual(resp.status, 401)

        resp = await self.client.request(
            "POST",
            "/api/ingest",
            data=self._form(),
            headers={"Authorization": "Bearer wrong"},
        )
        self.assertEqual(resp.status, 401)

    async def test_ingests_csv_with_valid_token(self):
        resp = await self.client.request(
            "POST",
            "/api/ingest",
            data=self._form(),
            headers={"Authorization": "Bearer ingest-secret"},
        )

        self.assertEqual(resp.status, 200)
        self.assertEqual(await resp.json(), {"ok": True, "slug": "imports/data", "path": "/pages/imports/data"})
        self.assertIn("| a | b |", self.store.get_page_content(["imports", "data"]))


class AnalysisRouteTests(NotesServerTestCase):
    async def test_analysis_without_api_key_is_bad_request(self):
        resp = await self.client.request("POST", "/api/analysis", json={"slugs": ["a"]})

        self.assertEqual(resp.status, 400)
        self.assertEqual(await resp.json(), {"error": "ANTHROPIC_API_KEY not configured"})

    async def test_analysis_requires_pages(self):
        resp = await self.client.request("POST", "/api/analysis", json={"slugs": []})

        self.assertEqual(resp.status, 400)
        self.assertEqual(await resp.json(), {"error": "No pages selected"})
